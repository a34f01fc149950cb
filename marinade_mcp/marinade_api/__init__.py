"""Solana RPC wrappers for the Marinade liquid-staking program."""

from .client import (
    LAMPORTS_PER_SOL,
    MARINADE_PROGRAM_ID,
    MARINADE_STATE_ADDRESS,
    MSOL_DECIMALS,
    MarinadeApiClient,
    TokenBalance,
)
from .errors import MarinadeApiError, StateDecodeError, WalletConfigurationError
from .state import MarinadeState, decode_state

__all__ = [
    "MarinadeApiClient",
    "MarinadeApiError",
    "MarinadeState",
    "StateDecodeError",
    "TokenBalance",
    "WalletConfigurationError",
    "decode_state",
    "LAMPORTS_PER_SOL",
    "MARINADE_PROGRAM_ID",
    "MARINADE_STATE_ADDRESS",
    "MSOL_DECIMALS",
]
