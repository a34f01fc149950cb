"""
Thin async client for the Marinade liquid-staking program and mSOL token.

Each instance owns one RPC connection opened with ``confirmed`` commitment and
signs with the configured wallet. Tools open a fresh client per call and close
it afterwards; nothing is pooled.
"""

from __future__ import annotations

import hashlib
import logging
import struct
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import base58
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solana.rpc.types import TxOpts
from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.transaction import Transaction
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import (
    TransferCheckedParams,
    create_associated_token_account,
    get_associated_token_address,
    transfer_checked,
)

from marinade_mcp.config import MarinadeConfig
from marinade_mcp.marinade_api.errors import StateDecodeError, WalletConfigurationError
from marinade_mcp.marinade_api.state import MarinadeState, decode_state

logger = logging.getLogger(__name__)

MARINADE_PROGRAM_ID = Pubkey.from_string("MarBmsSgKXdrN1egZf5sqe1TMai9K1rChYNDJgjq7aD")
MARINADE_STATE_ADDRESS = Pubkey.from_string("8szGkuLTAux9XMgZ2vtY39jVSowEcpBfFfD8hXSEqdGC")

LAMPORTS_PER_SOL = 1_000_000_000
MSOL_DECIMALS = 9
SEND_MAX_RETRIES = 3

RESERVE_SEED = b"reserve"
MSOL_MINT_AUTHORITY_SEED = b"st_mint"
LIQ_POOL_SOL_LEG_SEED = b"liq_sol"
LIQ_POOL_MSOL_LEG_AUTHORITY_SEED = b"liq_st_sol_authority"


def _instruction_discriminator(name: str) -> bytes:
    return hashlib.sha256(f"global:{name}".encode("utf-8")).digest()[:8]


DEPOSIT_DISCRIMINATOR = _instruction_discriminator("deposit")
LIQUID_UNSTAKE_DISCRIMINATOR = _instruction_discriminator("liquid_unstake")


def find_state_pda(seed: bytes, state_address: Pubkey = MARINADE_STATE_ADDRESS) -> Pubkey:
    address, _bump = Pubkey.find_program_address([bytes(state_address), seed], MARINADE_PROGRAM_ID)
    return address


@dataclass(slots=True)
class TokenBalance:
    address: Pubkey
    amount: int
    decimals: int
    ui_amount: str


class MarinadeApiClient:
    """Async client for the subset of Marinade/SPL operations the tools need."""

    def __init__(
        self,
        config: MarinadeConfig,
        *,
        connection: Optional[AsyncClient] = None,
    ) -> None:
        if not config.has_wallet_credentials:
            raise WalletConfigurationError(
                "Missing wallet configuration: PRIVATE_KEY, RPC_URL and DEVNET_RPC_URL are required"
            )
        try:
            self.keypair = Keypair.from_bytes(base58.b58decode(config.private_key or ""))
        except (TypeError, ValueError) as exc:
            raise WalletConfigurationError(f"Invalid wallet private key: {exc}") from exc
        self.config = config
        self.rpc_url = config.rpc_url
        self.connection = connection or AsyncClient(self.rpc_url, commitment=Confirmed)
        self._state: Optional[MarinadeState] = None

    async def __aenter__(self) -> "MarinadeApiClient":
        return self

    async def __aexit__(self, *_exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.connection.close()

    @property
    def wallet(self) -> Pubkey:
        return self.keypair.pubkey()

    async def get_state(self) -> MarinadeState:
        """Read and decode the Marinade state account."""
        if self._state is not None:
            return self._state
        resp = await self.connection.get_account_info(MARINADE_STATE_ADDRESS)
        account = resp.value
        if account is None:
            raise StateDecodeError(f"Marinade state account {MARINADE_STATE_ADDRESS} not found")
        state = decode_state(MARINADE_STATE_ADDRESS, bytes(account.data))
        state.reserve_address = find_state_pda(RESERVE_SEED)
        state.msol_mint_authority = find_state_pda(MSOL_MINT_AUTHORITY_SEED)
        state.liq_pool_sol_leg = find_state_pda(LIQ_POOL_SOL_LEG_SEED)
        state.liq_pool_msol_leg_authority = find_state_pda(LIQ_POOL_MSOL_LEG_AUTHORITY_SEED)
        state.connection = self.connection
        state.marinade = self
        self._state = state
        return state

    async def get_sol_balance(self, owner: Optional[Pubkey] = None) -> int:
        """Return the SOL balance of ``owner`` (default: configured wallet) in lamports."""
        resp = await self.connection.get_balance(owner or self.wallet)
        return int(resp.value)

    async def msol_token_address(self, owner: Pubkey) -> Pubkey:
        state = await self.get_state()
        return get_associated_token_address(owner, state.msol_mint)

    async def get_msol_balance(self, owner: Pubkey) -> Tuple[Pubkey, Optional[TokenBalance]]:
        """
        Return the owner's mSOL token account address and its balance.

        The balance is None when the associated token account does not exist.
        """
        token_account = await self.msol_token_address(owner)
        info = await self.connection.get_account_info(token_account)
        if info.value is None:
            return token_account, None
        resp = await self.connection.get_token_account_balance(token_account)
        amount = resp.value
        return token_account, TokenBalance(
            address=token_account,
            amount=int(amount.amount),
            decimals=amount.decimals,
            ui_amount=amount.ui_amount_string,
        )

    async def get_or_create_msol_account(self, owner: Pubkey) -> Tuple[Pubkey, bool]:
        """Resolve the owner's mSOL account, creating it (wallet pays) when missing."""
        state = await self.get_state()
        token_account = get_associated_token_address(owner, state.msol_mint)
        info = await self.connection.get_account_info(token_account)
        if info.value is not None:
            return token_account, False
        logger.info("Creating mSOL token account %s for %s", token_account, owner)
        await self._send([create_associated_token_account(self.wallet, owner, state.msol_mint)])
        return token_account, True

    async def deposit(self, lamports: int) -> str:
        """Stake ``lamports`` of SOL and mint mSOL to the wallet."""
        state = await self.get_state()
        instructions: List[Instruction] = []
        mint_to = get_associated_token_address(self.wallet, state.msol_mint)
        if (await self.connection.get_account_info(mint_to)).value is None:
            instructions.append(create_associated_token_account(self.wallet, self.wallet, state.msol_mint))
        accounts = [
            AccountMeta(state.address, is_signer=False, is_writable=True),
            AccountMeta(state.msol_mint, is_signer=False, is_writable=True),
            AccountMeta(state.liq_pool_sol_leg, is_signer=False, is_writable=True),
            AccountMeta(state.liq_pool.msol_leg, is_signer=False, is_writable=True),
            AccountMeta(state.liq_pool_msol_leg_authority, is_signer=False, is_writable=False),
            AccountMeta(state.reserve_address, is_signer=False, is_writable=True),
            AccountMeta(self.wallet, is_signer=True, is_writable=True),
            AccountMeta(mint_to, is_signer=False, is_writable=True),
            AccountMeta(state.msol_mint_authority, is_signer=False, is_writable=False),
            AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
        ]
        data = DEPOSIT_DISCRIMINATOR + struct.pack("<Q", lamports)
        instructions.append(Instruction(MARINADE_PROGRAM_ID, data, accounts))
        return await self._send(instructions)

    async def liquid_unstake(self, msol_amount: int) -> str:
        """Swap ``msol_amount`` base units of mSOL for SOL through the liquidity pool."""
        state = await self.get_state()
        get_msol_from = get_associated_token_address(self.wallet, state.msol_mint)
        accounts = [
            AccountMeta(state.address, is_signer=False, is_writable=True),
            AccountMeta(state.msol_mint, is_signer=False, is_writable=True),
            AccountMeta(state.liq_pool_sol_leg, is_signer=False, is_writable=True),
            AccountMeta(state.liq_pool.msol_leg, is_signer=False, is_writable=True),
            AccountMeta(state.treasury_msol_account, is_signer=False, is_writable=True),
            AccountMeta(get_msol_from, is_signer=False, is_writable=True),
            AccountMeta(self.wallet, is_signer=True, is_writable=False),
            AccountMeta(self.wallet, is_signer=True, is_writable=True),
            AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
        ]
        data = LIQUID_UNSTAKE_DISCRIMINATOR + struct.pack("<Q", msol_amount)
        return await self._send([Instruction(MARINADE_PROGRAM_ID, data, accounts)])

    async def transfer_msol(self, destination: Pubkey, amount: int) -> str:
        """Transfer ``amount`` base units of mSOL from the wallet to a token account."""
        state = await self.get_state()
        source = get_associated_token_address(self.wallet, state.msol_mint)
        instruction = transfer_checked(
            TransferCheckedParams(
                program_id=TOKEN_PROGRAM_ID,
                source=source,
                mint=state.msol_mint,
                dest=destination,
                owner=self.wallet,
                amount=amount,
                decimals=MSOL_DECIMALS,
            )
        )
        return await self._send([instruction])

    async def _send(self, instructions: Sequence[Instruction]) -> str:
        latest = (await self.connection.get_latest_blockhash(Confirmed)).value
        message = Message.new_with_blockhash(list(instructions), self.wallet, latest.blockhash)
        transaction = Transaction([self.keypair], message, latest.blockhash)
        opts = TxOpts(
            skip_confirmation=False,
            preflight_commitment=Confirmed,
            max_retries=SEND_MAX_RETRIES,
            last_valid_block_height=latest.last_valid_block_height,
        )
        resp = await self.connection.send_raw_transaction(bytes(transaction), opts=opts)
        signature = str(resp.value)
        logger.info("Transaction confirmed signature=%s", signature)
        return signature
