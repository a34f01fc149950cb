"""Process entry point: ``python -m marinade_mcp`` or the ``marinade-mcp`` script."""

from __future__ import annotations

import asyncio
import logging
import sys
from contextlib import redirect_stdout
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from marinade_mcp.config import MarinadeConfig, load_config
from marinade_mcp.log_config import configure_logging
from marinade_mcp.mcp import build_registry
from marinade_mcp.server import create_app, create_stdio_server, run_stdio

logger = logging.getLogger("marinade_mcp")

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _load_env() -> None:
    # stdout carries the protocol in stdio mode; keep it untouched while loading.
    with redirect_stdout(sys.stderr):
        load_dotenv(PROJECT_ROOT / ".env")
        load_dotenv()


def start(config: MarinadeConfig) -> None:
    registry = build_registry(config)
    logger.info("Registered tools: %s", ", ".join(tool.name for tool in registry))

    if not config.use_http:
        logger.info("Marinade Finance MCP Server running on stdio")
        logger.info("Mode: %s", config.mode_label)
        asyncio.run(run_stdio(create_stdio_server(config, registry)))
        return

    app = create_app(config, registry)
    logger.info(
        "MCP Stateless Streamable HTTP listening on http://%s:%s", config.host, config.port
    )
    logger.info("Mode: %s", config.mode_label)
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())


def main() -> None:
    _load_env()
    config = load_config()
    configure_logging(config)
    try:
        start(config)
    except KeyboardInterrupt:
        pass
    except Exception:
        logger.exception("Fatal error")
        sys.exit(1)


if __name__ == "__main__":
    main()
