"""LLM-facing tool implementations."""

from .docs import search_documentation
from .staking import get_marinade_state, stake_msol, unstake_msol
from .balance import get_msol_balance, send_msol
from .errors import (
    InsufficientBalanceError,
    InvalidAddressError,
    ToolError,
    with_tool_error_handling,
)
from .serialize import safe_serialize
from . import validators

__all__ = [
    "search_documentation",
    "get_marinade_state",
    "get_msol_balance",
    "stake_msol",
    "unstake_msol",
    "send_msol",
    "ToolError",
    "InvalidAddressError",
    "InsufficientBalanceError",
    "with_tool_error_handling",
    "safe_serialize",
    "validators",
]
