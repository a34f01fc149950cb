"""Exceptions raised by the Solana/Marinade client layer."""

from __future__ import annotations

from typing import Optional


class MarinadeApiError(Exception):
    """Base exception for chain access errors."""

    def __init__(self, message: str, *, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code


class WalletConfigurationError(MarinadeApiError):
    """Raised when wallet credentials are missing or cannot be decoded."""


class StateDecodeError(MarinadeApiError):
    """Raised when the Marinade state account is missing or malformed."""
