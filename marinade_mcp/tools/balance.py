"""mSOL balance and transfer tools."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from marinade_mcp.config import MarinadeConfig
from marinade_mcp.marinade_api import MSOL_DECIMALS, MarinadeApiClient
from marinade_mcp.tools.common import explorer_url, open_chain_client
from marinade_mcp.tools.errors import InsufficientBalanceError, with_tool_error_handling
from marinade_mcp.tools.validators import (
    RECIPIENT_ADDRESS_LABEL,
    WALLET_ADDRESS_LABEL,
    from_base_units,
    parse_address,
    to_base_units,
)

logger = logging.getLogger(__name__)


@with_tool_error_handling("Failed to fetch mSOL balance")
async def get_msol_balance(
    wallet_address: Optional[str] = None,
    *,
    config: MarinadeConfig,
    client: Optional[MarinadeApiClient] = None,
) -> Dict[str, Any]:
    """
    Report the mSOL balance of ``wallet_address`` (default: configured wallet).

    A wallet without an mSOL token account has a zero balance.
    """
    owner = None
    if wallet_address is not None:
        owner = parse_address(wallet_address, label=WALLET_ADDRESS_LABEL)

    async with open_chain_client(config, client) as chain:
        if owner is None:
            owner = chain.wallet
        token_account, balance = await chain.get_msol_balance(owner)

    raw_amount = balance.amount if balance is not None else 0
    return {
        "wallet": str(owner),
        "tokenAccount": str(token_account),
        "tokenAccountExists": balance is not None,
        "balance": float(from_base_units(raw_amount, MSOL_DECIMALS)),
        "balanceRaw": str(raw_amount),
        "decimals": MSOL_DECIMALS,
        "network": config.mode_label,
    }


@with_tool_error_handling("Failed to send mSOL", timeout_label="Transaction timed out")
async def send_msol(
    recipient_address: str,
    amount: float,
    *,
    config: MarinadeConfig,
    client: Optional[MarinadeApiClient] = None,
) -> Dict[str, Any]:
    """Transfer ``amount`` mSOL from the configured wallet to ``recipient_address``."""
    recipient = parse_address(recipient_address, label=RECIPIENT_ADDRESS_LABEL)
    amount_raw = to_base_units(amount, MSOL_DECIMALS)

    async with open_chain_client(config, client) as chain:
        sender = chain.wallet
        source_account, balance = await chain.get_msol_balance(sender)
        available = balance.amount if balance is not None else 0
        if amount_raw > available:
            raise InsufficientBalanceError(
                f"Wallet holds {from_base_units(available, MSOL_DECIMALS)} mSOL "
                f"but {amount} mSOL was requested",
                suggestion="Send a smaller amount or stake more SOL first.",
            )
        destination, created = await chain.get_or_create_msol_account(recipient)
        signature = await chain.transfer_msol(destination, amount_raw)

    logger.info("Sent msol=%s to=%s signature=%s", amount_raw, recipient, signature)
    return {
        "success": True,
        "action": "transfer",
        "from": str(sender),
        "to": str(recipient),
        "sourceTokenAccount": str(source_account),
        "recipientTokenAccount": str(destination),
        "recipientAccountCreated": created,
        "amountMsol": amount,
        "msolBaseUnits": amount_raw,
        "signature": signature,
        "explorerUrl": explorer_url(signature, config),
        "network": config.mode_label,
    }
