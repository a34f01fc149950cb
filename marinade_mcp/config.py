"""
Configuration helpers for the Marinade Finance MCP server.

This module centralizes identity strings, transport selection, Solana network
selection and wallet credentials. No secrets are stored in the repository; the
private key and RPC endpoints are read from the environment once at startup.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

# Identity
MCP_CLIENT_NAME = "marinade-finance-docs-client"
MCP_CLIENT_VERSION = "1.0.0"
MCP_SERVER_NAME = "marinade-finance-mcp-server"
MCP_SERVER_VERSION = "1.0.0"

# Documentation endpoint
MARINADE_FINANCE_DOCS_URL = "https://docs.marinade.finance"
DOCS_MCP_SUFFIX = "/~gitbook/mcp"

# Transport defaults
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000

# Environment variable names
USE_HTTP_ENV_VAR = "USE_STREAMABLE_HTTP"
HOST_ENV_VAR = "HOST"
PORT_ENV_VAR = "PORT"
ENVIRONMENT_ENV_VAR = "ENVIRONMENT"
PRIVATE_KEY_ENV_VAR = "PRIVATE_KEY"
RPC_URL_ENV_VAR = "RPC_URL"
DEVNET_RPC_URL_ENV_VAR = "DEVNET_RPC_URL"
LOG_LEVEL_ENV_VAR = "MARINADE_MCP_LOG_LEVEL"
LOG_FORMAT_ENV_VAR = "MARINADE_MCP_LOG_FORMAT"

MAINNET = "MAINNET"


def _load_port(raw_port: Optional[str]) -> int:
    if raw_port:
        try:
            port = int(raw_port)
        except ValueError:
            return DEFAULT_PORT
        if 0 < port < 65536:
            return port
    return DEFAULT_PORT


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


@dataclass(slots=True)
class MarinadeConfig:
    """Runtime configuration, built once and passed to every component."""

    use_http: bool = False
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    environment: str = "TESTNET"
    private_key: Optional[str] = None
    rpc_url_mainnet: Optional[str] = None
    rpc_url_devnet: Optional[str] = None
    docs_url: str = MARINADE_FINANCE_DOCS_URL
    client_name: str = MCP_CLIENT_NAME
    client_version: str = MCP_CLIENT_VERSION
    server_name: str = MCP_SERVER_NAME
    server_version: str = MCP_SERVER_VERSION
    log_level: str = "INFO"
    log_format: str = "plain"  # plain or json

    @property
    def is_mainnet(self) -> bool:
        return self.environment.upper() == MAINNET

    @property
    def mode_label(self) -> str:
        return "Mainnet" if self.is_mainnet else "Testnet"

    @property
    def rpc_url(self) -> Optional[str]:
        return self.rpc_url_mainnet if self.is_mainnet else self.rpc_url_devnet

    @property
    def has_wallet_credentials(self) -> bool:
        """True when the private key and both RPC endpoints are present."""
        return all(
            _clean(value)
            for value in (self.private_key, self.rpc_url_mainnet, self.rpc_url_devnet)
        )

    @property
    def docs_mcp_url(self) -> str:
        return f"{self.docs_url.rstrip('/')}{DOCS_MCP_SUFFIX}"


def load_config(environ: Optional[Mapping[str, str]] = None) -> MarinadeConfig:
    """
    Build a MarinadeConfig from environment variables.

    Args:
        environ: Mapping to read from; defaults to ``os.environ``.
    """
    env = os.environ if environ is None else environ
    return MarinadeConfig(
        use_http=(env.get(USE_HTTP_ENV_VAR) or "").strip().lower() == "true",
        host=_clean(env.get(HOST_ENV_VAR)) or DEFAULT_HOST,
        port=_load_port(env.get(PORT_ENV_VAR)),
        environment=_clean(env.get(ENVIRONMENT_ENV_VAR)) or "TESTNET",
        private_key=_clean(env.get(PRIVATE_KEY_ENV_VAR)),
        rpc_url_mainnet=_clean(env.get(RPC_URL_ENV_VAR)),
        rpc_url_devnet=_clean(env.get(DEVNET_RPC_URL_ENV_VAR)),
        log_level=_clean(env.get(LOG_LEVEL_ENV_VAR)) or "INFO",
        log_format=_clean(env.get(LOG_FORMAT_ENV_VAR)) or "plain",
    )
