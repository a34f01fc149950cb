"""Helpers shared by the on-chain tools."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from marinade_mcp.config import MarinadeConfig
from marinade_mcp.marinade_api import MarinadeApiClient

EXPLORER_TX_URL = "https://explorer.solana.com/tx/{signature}"


@asynccontextmanager
async def open_chain_client(
    config: MarinadeConfig,
    client: Optional[MarinadeApiClient] = None,
) -> AsyncIterator[MarinadeApiClient]:
    """
    Yield ``client`` unchanged, or open a fresh connection for this call only.

    A connection opened here is closed when the block exits.
    """
    if client is not None:
        yield client
        return
    async with MarinadeApiClient(config) as opened:
        yield opened


def explorer_url(signature: str, config: MarinadeConfig) -> str:
    url = EXPLORER_TX_URL.format(signature=signature)
    if not config.is_mainnet:
        url += "?cluster=devnet"
    return url
