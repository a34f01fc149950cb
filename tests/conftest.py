import os
import struct
import sys

import pytest

# Ensure repository root is on sys.path before importing project modules.
repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

from solders.keypair import Keypair  # noqa: E402
from solders.pubkey import Pubkey  # noqa: E402

from marinade_mcp.config import MarinadeConfig  # noqa: E402
from marinade_mcp.metrics import default_metrics  # noqa: E402

MSOL_PRICE = 1.25


@pytest.fixture(autouse=True)
def reset_metrics():
    default_metrics.reset()
    yield
    default_metrics.reset()


@pytest.fixture
def keypair():
    return Keypair()


@pytest.fixture
def wallet_config(keypair):
    return MarinadeConfig(
        private_key=str(keypair),
        rpc_url_mainnet="https://mainnet.example.invalid",
        rpc_url_devnet="https://devnet.example.invalid",
    )


@pytest.fixture
def docs_only_config():
    return MarinadeConfig()


def _key(n: int) -> bytes:
    return bytes([n]) * 32


def _account_list(n: int) -> bytes:
    return _key(n) + struct.pack("<II", 36, 10) + _key(0) + struct.pack("<I", 0)


@pytest.fixture
def state_keys():
    return {
        "msol_mint": Pubkey.from_bytes(_key(1)),
        "treasury_msol_account": Pubkey.from_bytes(_key(4)),
        "msol_leg": Pubkey.from_bytes(_key(9)),
    }


@pytest.fixture
def state_bytes():
    """Synthetic Marinade state account data in on-chain layout."""
    data = b"\x00" * 8
    data += _key(1) + _key(2) + _key(3) + _key(4)
    data += struct.pack("<BBQI", 255, 254, 2_039_280, 600)
    # stake system
    data += _account_list(5)
    data += struct.pack("<QBBQQQI", 0, 1, 2, 3000, 500, 1_000_000_000, 0)
    # validator system
    data += _account_list(6)
    data += _key(7) + struct.pack("<IQB", 1000, 5_000_000_000, 1)
    # liquidity pool
    data += _key(8) + struct.pack("<BBB", 1, 2, 3) + _key(9)
    data += struct.pack("<QIIIQQQ", 10_000, 300, 30, 2500, 123, 0, 99)
    # totals and limits
    data += struct.pack(
        "<QQQQQQQQQQ",
        42,
        7_000_000_000,
        int(MSOL_PRICE * 0x1_0000_0000),
        3,
        4,
        0,
        1_000_000,
        1_000,
        10**18,
        0,
    )
    return data
