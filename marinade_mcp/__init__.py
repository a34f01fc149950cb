"""
Marinade Finance MCP server package.

This package exposes LLM-friendly tools for searching the Marinade Finance
documentation and, when a wallet is configured, staking SOL for mSOL on
Solana. See DESIGN.md for full details.
"""

__all__ = ["config"]
