"""Documentation search tool."""

from __future__ import annotations

import logging
from typing import Any, Callable

from marinade_mcp.config import MarinadeConfig
from marinade_mcp.docs_client import DocsMcpClient, create_docs_client
from marinade_mcp.tools.errors import with_tool_error_handling

logger = logging.getLogger(__name__)

DOCS_SEARCH_TOOL = "searchDocumentation"


def _dump_response(response: Any) -> Any:
    if hasattr(response, "model_dump"):
        return response.model_dump(mode="json", by_alias=True, exclude_none=True)
    return response


@with_tool_error_handling("Failed to search documentation")
async def search_documentation(
    query: str,
    *,
    config: MarinadeConfig,
    docs_client_factory: Callable[[MarinadeConfig], DocsMcpClient] = create_docs_client,
) -> Any:
    """Forward ``query`` to the documentation server and return its raw response."""
    logger.debug("Searching documentation query=%r", query)
    async with docs_client_factory(config) as docs:
        response = await docs.call_tool(DOCS_SEARCH_TOOL, {"query": query})
    return _dump_response(response)
