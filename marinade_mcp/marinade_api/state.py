"""
Decoding of the Marinade liquid-staking program state account.

Only the leading, stable part of the account layout is decoded: enough to
build deposit and liquid-unstake instructions and to report protocol figures.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Any, Optional

from solders.pubkey import Pubkey

from marinade_mcp.marinade_api.errors import StateDecodeError

ACCOUNT_DISCRIMINATOR_SIZE = 8
# msol_price is stored as a fixed-point value scaled by 2**32.
PRICE_DENOMINATOR = 0x1_0000_0000
FEE_BASIS_POINTS_DENOMINATOR = 10_000


class _Reader:
    def __init__(self, data: bytes, offset: int = 0) -> None:
        self.data = data
        self.offset = offset

    def _take(self, size: int) -> bytes:
        end = self.offset + size
        if end > len(self.data):
            raise StateDecodeError(
                f"State account too short: needed {end} bytes, have {len(self.data)}"
            )
        chunk = self.data[self.offset:end]
        self.offset = end
        return chunk

    def pubkey(self) -> Pubkey:
        return Pubkey.from_bytes(self._take(32))

    def u8(self) -> int:
        return self._take(1)[0]

    def u32(self) -> int:
        return struct.unpack("<I", self._take(4))[0]

    def u64(self) -> int:
        return struct.unpack("<Q", self._take(8))[0]


@dataclass(slots=True)
class AccountList:
    account: Pubkey
    item_size: int
    count: int

    @classmethod
    def read(cls, reader: _Reader) -> "AccountList":
        account = reader.pubkey()
        item_size = reader.u32()
        count = reader.u32()
        reader.pubkey()  # reserved
        reader.u32()  # reserved
        return cls(account=account, item_size=item_size, count=count)


@dataclass(slots=True)
class StakeSystem:
    stake_list: AccountList
    delayed_unstake_cooling_down: int
    stake_deposit_bump_seed: int
    stake_withdraw_bump_seed: int
    slots_for_stake_delta: int
    last_stake_delta_epoch: int
    min_stake: int
    extra_stake_delta_runs: int


@dataclass(slots=True)
class ValidatorSystem:
    validator_list: AccountList
    manager_authority: Pubkey
    total_validator_score: int
    total_active_balance: int
    auto_add_validator_enabled: bool


@dataclass(slots=True)
class LiqPool:
    lp_mint: Pubkey
    lp_mint_authority_bump_seed: int
    sol_leg_bump_seed: int
    msol_leg_authority_bump_seed: int
    msol_leg: Pubkey
    lp_liquidity_target: int
    lp_max_fee_bps: int
    lp_min_fee_bps: int
    treasury_cut_bps: int
    lp_supply: int
    lent_from_sol_leg: int
    liquidity_sol_cap: int


@dataclass
class MarinadeState:
    """Decoded program state plus the live handles it was read through."""

    address: Pubkey
    msol_mint: Pubkey
    admin_authority: Pubkey
    operational_sol_account: Pubkey
    treasury_msol_account: Pubkey
    reserve_bump_seed: int
    msol_mint_authority_bump_seed: int
    rent_exempt_for_token_acc: int
    reward_fee_bps: int
    stake_system: StakeSystem
    validator_system: ValidatorSystem
    liq_pool: LiqPool
    available_reserve_balance: int
    msol_supply: int
    msol_price_raw: int
    circulating_ticket_count: int
    circulating_ticket_balance: int
    lent_from_reserve: int
    min_deposit: int
    min_withdraw: int
    staking_sol_cap: int
    emergency_cooling_down: int
    msol_price: float
    reward_fee_percent: float
    reserve_address: Optional[Pubkey] = None
    msol_mint_authority: Optional[Pubkey] = None
    liq_pool_sol_leg: Optional[Pubkey] = None
    liq_pool_msol_leg_authority: Optional[Pubkey] = None
    connection: Any = field(default=None, repr=False)
    marinade: Any = field(default=None, repr=False)


def decode_state(address: Pubkey, data: bytes) -> MarinadeState:
    """Decode raw state account data (including the 8-byte discriminator)."""
    reader = _Reader(data, ACCOUNT_DISCRIMINATOR_SIZE)

    msol_mint = reader.pubkey()
    admin_authority = reader.pubkey()
    operational_sol_account = reader.pubkey()
    treasury_msol_account = reader.pubkey()
    reserve_bump_seed = reader.u8()
    msol_mint_authority_bump_seed = reader.u8()
    rent_exempt_for_token_acc = reader.u64()
    reward_fee_bps = reader.u32()

    stake_system = StakeSystem(
        stake_list=AccountList.read(reader),
        delayed_unstake_cooling_down=reader.u64(),
        stake_deposit_bump_seed=reader.u8(),
        stake_withdraw_bump_seed=reader.u8(),
        slots_for_stake_delta=reader.u64(),
        last_stake_delta_epoch=reader.u64(),
        min_stake=reader.u64(),
        extra_stake_delta_runs=reader.u32(),
    )
    validator_system = ValidatorSystem(
        validator_list=AccountList.read(reader),
        manager_authority=reader.pubkey(),
        total_validator_score=reader.u32(),
        total_active_balance=reader.u64(),
        auto_add_validator_enabled=bool(reader.u8()),
    )
    liq_pool = LiqPool(
        lp_mint=reader.pubkey(),
        lp_mint_authority_bump_seed=reader.u8(),
        sol_leg_bump_seed=reader.u8(),
        msol_leg_authority_bump_seed=reader.u8(),
        msol_leg=reader.pubkey(),
        lp_liquidity_target=reader.u64(),
        lp_max_fee_bps=reader.u32(),
        lp_min_fee_bps=reader.u32(),
        treasury_cut_bps=reader.u32(),
        lp_supply=reader.u64(),
        lent_from_sol_leg=reader.u64(),
        liquidity_sol_cap=reader.u64(),
    )

    available_reserve_balance = reader.u64()
    msol_supply = reader.u64()
    msol_price_raw = reader.u64()

    return MarinadeState(
        address=address,
        msol_mint=msol_mint,
        admin_authority=admin_authority,
        operational_sol_account=operational_sol_account,
        treasury_msol_account=treasury_msol_account,
        reserve_bump_seed=reserve_bump_seed,
        msol_mint_authority_bump_seed=msol_mint_authority_bump_seed,
        rent_exempt_for_token_acc=rent_exempt_for_token_acc,
        reward_fee_bps=reward_fee_bps,
        stake_system=stake_system,
        validator_system=validator_system,
        liq_pool=liq_pool,
        available_reserve_balance=available_reserve_balance,
        msol_supply=msol_supply,
        msol_price_raw=msol_price_raw,
        circulating_ticket_count=reader.u64(),
        circulating_ticket_balance=reader.u64(),
        lent_from_reserve=reader.u64(),
        min_deposit=reader.u64(),
        min_withdraw=reader.u64(),
        staking_sol_cap=reader.u64(),
        emergency_cooling_down=reader.u64(),
        msol_price=msol_price_raw / PRICE_DENOMINATOR,
        reward_fee_percent=reward_fee_bps * 100 / FEE_BASIS_POINTS_DENOMINATOR,
    )
