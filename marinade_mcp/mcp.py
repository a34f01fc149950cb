"""
JSON-RPC surface for MCP tooling.

Holds the tool registry (built once from configuration) and a small,
transport-agnostic dispatcher used by both the stdio loop and the HTTP
endpoint. The dispatcher is stateless apart from a closed flag.
"""

from __future__ import annotations

import functools
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from marinade_mcp.config import MarinadeConfig
from marinade_mcp.metrics import default_metrics
from marinade_mcp.tools import (
    get_marinade_state,
    get_msol_balance,
    search_documentation,
    send_msol,
    stake_msol,
    unstake_msol,
)
from marinade_mcp.tools.errors import TEXT_CONTENT_TYPE

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class _ToolArguments(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class SearchDocumentationArgs(_ToolArguments):
    query: str = Field(description="The search query string")


class NoArgs(_ToolArguments):
    pass


class MsolBalanceArgs(_ToolArguments):
    wallet_address: Optional[str] = Field(
        default=None,
        alias="walletAddress",
        description="Solana wallet address to check (defaults to the configured wallet)",
    )


class StakeArgs(_ToolArguments):
    amount: float = Field(ge=0, description="Amount of SOL to stake")


class UnstakeArgs(_ToolArguments):
    amount: float = Field(ge=0, description="Amount of mSOL to liquid-unstake")


class SendMsolArgs(_ToolArguments):
    recipient_address: str = Field(alias="recipientAddress", description="Recipient Solana wallet address")
    amount: float = Field(ge=0, description="Amount of mSOL to send")


ToolCallable = Callable[..., Awaitable[Dict[str, Any]]]


@dataclass(slots=True)
class ToolDefinition:
    name: str
    title: str
    description: str
    arguments: Type[BaseModel]
    callable: ToolCallable

    @property
    def input_schema(self) -> Dict[str, Any]:
        return self.arguments.model_json_schema(by_alias=True)

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


def build_registry(config: MarinadeConfig) -> List[ToolDefinition]:
    """
    Build the ordered tool list for ``config``.

    Documentation search is always present. The on-chain tools are present
    only when the wallet private key and both RPC URLs are configured; the
    check happens here, once, not per call.
    """
    tools = [
        ToolDefinition(
            name="search_documentation",
            title="Search Marinade Finance Documentation",
            description=(
                "Search across the documentation to find relevant information, code examples, "
                "API references, and guides. Use this tool when you need to answer questions about "
                "Marinade Finance Docs, find specific documentation, understand how features work, "
                "or locate implementation details. The search returns contextual content with titles "
                "and direct links to the documentation pages."
            ),
            arguments=SearchDocumentationArgs,
            callable=functools.partial(search_documentation, config=config),
        ),
    ]
    if not config.has_wallet_credentials:
        return tools

    tools.extend(
        [
            ToolDefinition(
                name="get_marinade_state",
                title="Get Marinade State",
                description="Return the current Marinade liquid-staking program state (mSOL price, supply, fees, liquidity pool).",
                arguments=NoArgs,
                callable=functools.partial(get_marinade_state, config=config),
            ),
            ToolDefinition(
                name="get_msol_balance",
                title="Get mSOL Balance",
                description="Return the mSOL balance of a wallet (defaults to the configured wallet).",
                arguments=MsolBalanceArgs,
                callable=functools.partial(get_msol_balance, config=config),
            ),
            ToolDefinition(
                name="stake_msol",
                title="Stake SOL for mSOL",
                description="Stake SOL with Marinade from the configured wallet and receive mSOL.",
                arguments=StakeArgs,
                callable=functools.partial(stake_msol, config=config),
            ),
            ToolDefinition(
                name="unstake_msol",
                title="Liquid Unstake mSOL",
                description="Liquid-unstake mSOL from the configured wallet back to SOL through the Marinade liquidity pool.",
                arguments=UnstakeArgs,
                callable=functools.partial(unstake_msol, config=config),
            ),
            ToolDefinition(
                name="send_msol",
                title="Send mSOL",
                description="Transfer mSOL from the configured wallet to a recipient, creating the recipient's token account if needed.",
                arguments=SendMsolArgs,
                callable=functools.partial(send_msol, config=config),
            ),
        ]
    )
    return tools


def jsonrpc_success(rpc_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": rpc_id, "result": result}


def jsonrpc_error(rpc_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": rpc_id, "error": {"code": code, "message": message}}


def normalize_tool_result(result: Any) -> Dict[str, Any]:
    """Force every content item's type to text, whatever the callback produced."""
    content = result.get("content") if isinstance(result, dict) else None
    if not isinstance(content, list):
        content = [{"text": json.dumps(result, default=str)}]
    items = []
    for item in content:
        if isinstance(item, dict):
            items.append({**item, "type": TEXT_CONTENT_TYPE})
        else:
            items.append({"type": TEXT_CONTENT_TYPE, "text": str(item)})
    return {"content": items}


def _error_label(result: Dict[str, Any]) -> Optional[str]:
    try:
        payload = json.loads(result["content"][0]["text"])
    except (KeyError, IndexError, TypeError, ValueError):
        return None
    if isinstance(payload, dict) and "error" in payload:
        return str(payload["error"])
    return None


class McpServer:
    """Dispatch MCP JSON-RPC messages against a tool registry."""

    def __init__(self, config: MarinadeConfig, registry: List[ToolDefinition]) -> None:
        self.config = config
        self._tools: Dict[str, ToolDefinition] = {}
        for tool in registry:
            if tool.name in self._tools:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            self._tools[tool.name] = tool
        self.closed = False

    def has_tool(self, tool_name: str) -> bool:
        return tool_name in self._tools

    def list_tools(self) -> List[Dict[str, Any]]:
        return [tool.describe() for tool in self._tools.values()]

    async def call_tool(self, tool_name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Validate ``arguments`` and run one tool.

        Raises KeyError for unknown tools and ValidationError for bad arguments;
        ``handle`` maps both to JSON-RPC errors.
        """
        tool = self._tools[tool_name]
        parsed = tool.arguments.model_validate(arguments or {})
        result = await tool.callable(**parsed.model_dump(exclude_none=True))
        normalized = normalize_tool_result(result)
        default_metrics.record_tool(tool_name, error_label=_error_label(normalized))
        return normalized

    async def handle(self, message: Any) -> Optional[Dict[str, Any]]:
        """
        Process one JSON-RPC message.

        Returns the response payload, or None for notifications.
        """
        if not isinstance(message, dict):
            return jsonrpc_error(None, INVALID_REQUEST, "Invalid request")
        method = message.get("method")
        rpc_id = message.get("id")
        raw_params = message.get("params")
        if not isinstance(method, str) or not method:
            return jsonrpc_error(rpc_id, INVALID_REQUEST, "Invalid request")
        if method.startswith("notifications/") or method == "initialized":
            logger.debug("mcp notification method=%s", method)
            return None
        if raw_params is None:
            params: Dict[str, Any] = {}
        elif isinstance(raw_params, dict):
            params = raw_params
        else:
            return jsonrpc_error(rpc_id, INVALID_PARAMS, "Invalid params")

        if method == "initialize":
            protocol_version = params.get("protocolVersion")
            if not isinstance(protocol_version, str) or not protocol_version:
                return jsonrpc_error(rpc_id, INVALID_PARAMS, "Invalid params")
            result = {
                "protocolVersion": protocol_version,
                "serverInfo": {"name": self.config.server_name, "version": self.config.server_version},
                "capabilities": {"tools": {"listChanged": False}},
            }
            return jsonrpc_success(rpc_id, result)
        if method == "ping":
            return jsonrpc_success(rpc_id, {})
        if method in ("list_tools", "tools/list"):
            return jsonrpc_success(rpc_id, {"tools": self.list_tools()})
        if method in ("call_tool", "tools/call"):
            return await self._handle_call(rpc_id, params)
        return jsonrpc_error(rpc_id, METHOD_NOT_FOUND, "Method not found")

    async def _handle_call(self, rpc_id: Any, params: Dict[str, Any]) -> Dict[str, Any]:
        tool_name = params.get("name") or params.get("tool")
        arguments = params.get("arguments")
        if arguments is None:
            arguments = params.get("params") or {}
        if not isinstance(tool_name, str) or not tool_name.strip():
            return jsonrpc_error(rpc_id, INVALID_PARAMS, "Invalid params")
        if not isinstance(arguments, dict):
            return jsonrpc_error(rpc_id, INVALID_PARAMS, "Invalid params")
        if not self.has_tool(tool_name):
            logger.warning("mcp unknown tool=%s", tool_name, extra={"tool": tool_name})
            return jsonrpc_error(rpc_id, INVALID_PARAMS, f"Unknown tool: {tool_name}")
        try:
            result = await self.call_tool(tool_name, arguments)
        except ValidationError as exc:
            logger.info("mcp invalid arguments tool=%s errors=%s", tool_name, exc.error_count(), extra={"tool": tool_name})
            return jsonrpc_error(rpc_id, INVALID_PARAMS, "Invalid params")
        return jsonrpc_success(rpc_id, result)

    def close(self) -> None:
        self.closed = True
