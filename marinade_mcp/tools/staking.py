"""Marinade protocol state, stake and liquid-unstake tools."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from marinade_mcp.config import MarinadeConfig
from marinade_mcp.marinade_api import MARINADE_PROGRAM_ID, MSOL_DECIMALS, MarinadeApiClient
from marinade_mcp.tools.common import explorer_url, open_chain_client
from marinade_mcp.tools.errors import InsufficientBalanceError, with_tool_error_handling
from marinade_mcp.tools.serialize import safe_serialize
from marinade_mcp.tools.validators import from_base_units, to_base_units

logger = logging.getLogger(__name__)

SOL_DECIMALS = 9
TRANSACTION_TIMEOUT_LABEL = "Transaction timed out"


@with_tool_error_handling("Failed to fetch Marinade state")
async def get_marinade_state(
    *,
    config: MarinadeConfig,
    client: Optional[MarinadeApiClient] = None,
) -> Dict[str, Any]:
    async with open_chain_client(config, client) as chain:
        state = await chain.get_state()
        # The state keeps live handles and refers back to the client.
        rendered = safe_serialize(state)
    return {
        "network": config.mode_label,
        "programId": str(MARINADE_PROGRAM_ID),
        "state": rendered,
    }


@with_tool_error_handling("Failed to stake SOL", timeout_label=TRANSACTION_TIMEOUT_LABEL)
async def stake_msol(
    amount: float,
    *,
    config: MarinadeConfig,
    client: Optional[MarinadeApiClient] = None,
) -> Dict[str, Any]:
    """Deposit ``amount`` SOL into Marinade in exchange for mSOL."""
    lamports = to_base_units(amount, SOL_DECIMALS)
    async with open_chain_client(config, client) as chain:
        balance = await chain.get_sol_balance()
        if lamports > balance:
            raise InsufficientBalanceError(
                f"Wallet holds {from_base_units(balance, SOL_DECIMALS)} SOL "
                f"but {amount} SOL was requested",
                suggestion="Fund the wallet or stake a smaller amount.",
            )
        signature = await chain.deposit(lamports)
        wallet = str(chain.wallet)
    logger.info("Staked lamports=%s signature=%s", lamports, signature)
    return {
        "success": True,
        "action": "stake",
        "wallet": wallet,
        "amountSol": amount,
        "lamports": lamports,
        "signature": signature,
        "explorerUrl": explorer_url(signature, config),
        "network": config.mode_label,
    }


@with_tool_error_handling("Failed to unstake mSOL", timeout_label=TRANSACTION_TIMEOUT_LABEL)
async def unstake_msol(
    amount: float,
    *,
    config: MarinadeConfig,
    client: Optional[MarinadeApiClient] = None,
) -> Dict[str, Any]:
    """Liquid-unstake ``amount`` mSOL; the program rejects amounts above the balance."""
    msol_amount = to_base_units(amount, MSOL_DECIMALS)
    async with open_chain_client(config, client) as chain:
        signature = await chain.liquid_unstake(msol_amount)
        wallet = str(chain.wallet)
    logger.info("Liquid-unstaked msol=%s signature=%s", msol_amount, signature)
    return {
        "success": True,
        "action": "liquid_unstake",
        "wallet": wallet,
        "amountMsol": amount,
        "msolBaseUnits": msol_amount,
        "signature": signature,
        "explorerUrl": explorer_url(signature, config),
        "network": config.mode_label,
    }

