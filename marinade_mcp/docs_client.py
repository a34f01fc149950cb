"""
Client for the Marinade Finance documentation MCP endpoint (GitBook).

A fresh connection is opened for every use; callers hold it with
``async with`` so the transport and session are torn down afterwards.
"""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack
from typing import Any, Dict, List, Optional

from mcp import ClientSession
from mcp.client.streamable_http import streamablehttp_client
from mcp.types import Implementation

from marinade_mcp.config import MarinadeConfig

logger = logging.getLogger(__name__)


class DocsMcpClient:
    """Connected MCP client for one documentation endpoint."""

    def __init__(self, url: str, *, client_name: str, client_version: str) -> None:
        self.url = url
        self.client_info = Implementation(name=client_name, version=client_version)
        self._stack: Optional[AsyncExitStack] = None
        self._session: Optional[ClientSession] = None

    async def __aenter__(self) -> "DocsMcpClient":
        stack = AsyncExitStack()
        try:
            read, write, _get_session_id = await stack.enter_async_context(
                streamablehttp_client(self.url)
            )
            session = await stack.enter_async_context(
                ClientSession(read, write, client_info=self.client_info)
            )
            await session.initialize()
        except Exception as exc:
            logger.error("Error connecting to documentation MCP server %s: %s", self.url, exc)
            await stack.aclose()
            raise
        self._stack = stack
        self._session = session
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        stack, self._stack, self._session = self._stack, None, None
        if stack is not None:
            await stack.__aexit__(*exc_info)

    @property
    def session(self) -> ClientSession:
        if self._session is None:
            raise RuntimeError("Documentation client is not connected")
        return self._session

    async def list_tools(self) -> List[Any]:
        result = await self.session.list_tools()
        return list(result.tools or [])

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Any:
        return await self.session.call_tool(name, arguments or {})


def create_docs_client(config: MarinadeConfig) -> DocsMcpClient:
    """Build an (unconnected) client for the configured Marinade docs endpoint."""
    return DocsMcpClient(
        config.docs_mcp_url,
        client_name=config.client_name,
        client_version=config.client_version,
    )
