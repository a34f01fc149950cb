"""Logging setup that keeps stdout clean when it carries the stdio protocol."""

from __future__ import annotations

import json
import logging
import sys

from marinade_mcp.config import MarinadeConfig

STDIO_FORMAT = "[%(levelname)s] %(message)s"
PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "message": record.getMessage(),
            "name": record.name,
        }
        for key in ("tool", "request_id", "error"):
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        return json.dumps(payload)


def build_handler(config: MarinadeConfig) -> logging.Handler:
    """
    Return the handler for the configured transport.

    Stdio mode always writes ``[LEVEL] message`` lines to stderr. HTTP mode
    writes to stdout, as JSON lines when ``log_format`` is ``json``.
    """
    if not config.use_http:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(STDIO_FORMAT))
        return handler

    handler = logging.StreamHandler(sys.stdout)
    if config.log_format.lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
    return handler


def configure_logging(config: MarinadeConfig) -> None:
    level = getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, handlers=[build_handler(config)], force=True)
