"""Shared validation and unit helpers for the on-chain tools."""

from __future__ import annotations

import re
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Optional

from solders.pubkey import Pubkey

from marinade_mcp.tools.errors import InvalidAddressError

# Solana addresses are Base58-encoded 32-byte keys (32-44 characters).
BASE58_REGEX = re.compile(r"^[1-9A-HJ-NP-Za-km-z]+$")
ADDRESS_MIN_LENGTH = 32
ADDRESS_MAX_LENGTH = 44

WALLET_ADDRESS_LABEL = "Invalid wallet address"
RECIPIENT_ADDRESS_LABEL = "Invalid recipient address"


def is_valid_solana_address(address: Optional[str]) -> bool:
    """Format check for a Solana public key; no network access."""
    if not address or not isinstance(address, str):
        return False
    candidate = address.strip()
    if not ADDRESS_MIN_LENGTH <= len(candidate) <= ADDRESS_MAX_LENGTH:
        return False
    if not BASE58_REGEX.fullmatch(candidate):
        return False
    try:
        Pubkey.from_string(candidate)
    except ValueError:
        return False
    return True


def parse_address(address: str, *, label: str = WALLET_ADDRESS_LABEL) -> Pubkey:
    """Return the Pubkey for ``address`` or raise InvalidAddressError under ``label``."""
    if not is_valid_solana_address(address):
        raise InvalidAddressError(
            f"'{address}' is not a valid Solana address",
            label=label,
            suggestion="Provide a base58-encoded Solana public key.",
        )
    return Pubkey.from_string(address.strip())


def to_base_units(amount: float, decimals: int) -> int:
    """Convert a human amount (SOL, mSOL) to integer base units, rounding down."""
    try:
        scaled = Decimal(str(amount)) * (Decimal(10) ** decimals)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount: {amount}") from exc
    if scaled < 0:
        raise ValueError(f"Amount must be non-negative: {amount}")
    return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def from_base_units(value: int, decimals: int) -> str:
    """Render integer base units as a plain decimal string."""
    quantized = Decimal(value) / (Decimal(10) ** decimals)
    return format(quantized.normalize(), "f")
