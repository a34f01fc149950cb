"""Transports for the Marinade MCP server: stateless HTTP (FastAPI) and stdio (MCP SDK)."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from marinade_mcp.config import MarinadeConfig, load_config
from marinade_mcp.mcp import (
    INTERNAL_ERROR,
    PARSE_ERROR,
    McpServer,
    ToolDefinition,
    build_registry,
    jsonrpc_error,
)
from marinade_mcp.metrics import default_metrics

logger = logging.getLogger(__name__)

MCP_PATH = "/mcp"
SESSION_ID_HEADER = "mcp-session-id"
METHOD_NOT_ALLOWED_CODE = -32000


def _method_not_allowed() -> JSONResponse:
    return JSONResponse(
        status_code=405,
        content={
            "jsonrpc": "2.0",
            "error": {"code": METHOD_NOT_ALLOWED_CODE, "message": "Method not allowed."},
            "id": None,
        },
    )


def create_app(
    config: Optional[MarinadeConfig] = None,
    registry: Optional[List[ToolDefinition]] = None,
) -> FastAPI:
    """
    Build the stateless streamable-HTTP app.

    Every POST gets its own ``McpServer`` that is discarded once the exchange
    completes. The registry itself is built once, here.
    """
    config = config or load_config()
    tools = registry if registry is not None else build_registry(config)

    app = FastAPI(
        title="Marinade Finance MCP Server",
        description="Marinade Finance documentation and staking tools for LLM agents.",
        version=config.server_version,
    )
    app.state.config = config
    app.state.registry = tools
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["Content-Type", SESSION_ID_HEADER],
    )

    @app.middleware("http")
    async def add_request_context(request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        start = time.time()
        default_metrics.incr_request()
        response = await call_next(request)
        default_metrics.record_duration(request_id, (time.time() - start) * 1000)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.post(MCP_PATH)
    async def mcp_post(request: Request) -> Response:
        request_id = getattr(request.state, "request_id", None)
        try:
            body = await request.json()
        except ValueError:
            return JSONResponse(status_code=400, content=jsonrpc_error(None, PARSE_ERROR, "Parse error"))

        server = McpServer(config, tools)
        try:
            payload = await server.handle(body)
        except Exception:
            logger.exception("Error handling MCP request", extra={"request_id": request_id})
            return JSONResponse(
                status_code=500,
                content=jsonrpc_error(None, INTERNAL_ERROR, "Internal server error"),
            )
        finally:
            server.close()
            logger.debug("Request closed", extra={"request_id": request_id})

        if payload is None:
            return Response(status_code=202)
        return JSONResponse(content=payload)

    @app.get(MCP_PATH)
    async def mcp_get() -> JSONResponse:
        logger.info("Received GET MCP request")
        return _method_not_allowed()

    @app.delete(MCP_PATH)
    async def mcp_delete() -> JSONResponse:
        logger.info("Received DELETE MCP request")
        return _method_not_allowed()

    @app.get("/health")
    async def health() -> PlainTextResponse:
        return PlainTextResponse("ok")

    @app.get("/metrics")
    async def metrics() -> JSONResponse:
        return JSONResponse(content=default_metrics.snapshot())

    return app


def create_stdio_server(config: MarinadeConfig, registry: List[ToolDefinition]) -> Server:
    """
    Build the SDK server used for the stdio transport.

    Listing and calling go through the same registry dispatcher as HTTP. The SDK
    runs each incoming request in its own task, so a slow tool call does not
    hold up ``ping`` or other requests.
    """
    dispatcher = McpServer(config, registry)
    server = Server(config.server_name, version=config.server_version)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return [types.Tool(**tool.describe()) for tool in registry]

    @server.call_tool()
    async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[types.TextContent]:
        # Raised errors come back to the client as an isError tool result.
        if not dispatcher.has_tool(name):
            logger.warning("mcp unknown tool=%s", name, extra={"tool": name})
            raise ValueError(f"Unknown tool: {name}")
        result = await dispatcher.call_tool(name, arguments or {})
        return [
            types.TextContent(type="text", text=str(item.get("text", "")))
            for item in result["content"]
        ]

    return server


async def run_stdio(server: Server) -> None:
    """Serve one MCP session over stdin/stdout; returns when the client disconnects."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
