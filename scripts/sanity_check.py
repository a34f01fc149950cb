"""Minimal live sanity checks for the Marinade MCP tools."""

from __future__ import annotations

import asyncio
import os
import sys

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from dotenv import load_dotenv  # noqa: E402

from marinade_mcp.config import load_config  # noqa: E402
from marinade_mcp.tools import get_marinade_state, get_msol_balance, search_documentation  # noqa: E402

SAMPLE_QUERY = os.getenv("MARINADE_SAMPLE_QUERY", "How do I liquid unstake mSOL?")
# Optional wallet to inspect instead of the configured one.
SAMPLE_WALLET = os.getenv("MARINADE_SAMPLE_WALLET")


async def main() -> None:
    load_dotenv()
    config = load_config()
    print("Mode:", config.mode_label)
    print("Docs search:", await search_documentation(SAMPLE_QUERY, config=config))

    if not config.has_wallet_credentials:
        print("Wallet credentials not configured; skipping on-chain checks.")
        return

    print("Marinade state:", await get_marinade_state(config=config))
    print("mSOL balance:", await get_msol_balance(SAMPLE_WALLET, config=config))


if __name__ == "__main__":
    asyncio.run(main())
