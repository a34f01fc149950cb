"""
Error envelopes and the shared wrapper every tool callback is built from.

A wrapped tool never raises: success payloads and failures alike come back as
an MCP text result whose text is a JSON document.
"""

from __future__ import annotations

import functools
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx
from solana.rpc.core import TransactionExpiredBlockheightExceededError, UnconfirmedTxError

logger = logging.getLogger(__name__)

TEXT_CONTENT_TYPE = "text"
DEFAULT_TIMEOUT_LABEL = "Request timed out"
TIMEOUT_SUGGESTION = "The request timed out. Please try again."
TIMEOUT_MARKERS = ("abort", "cancel", "timeout", "timed out")
# Raised by solana-py when a sent transaction is not confirmed in its blockhash window.
TRANSACTION_EXPIRY_ERRORS = (TransactionExpiredBlockheightExceededError, UnconfirmedTxError)

ToolResult = Dict[str, Any]


class ToolError(Exception):
    """Expected, user-facing tool failure carrying its own envelope fields."""

    label = "Tool error"

    def __init__(
        self,
        reason: str,
        *,
        label: Optional[str] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        super().__init__(reason)
        self.reason = reason
        if label is not None:
            self.label = label
        self.suggestion = suggestion

    def envelope(self) -> Dict[str, str]:
        return error_envelope(self.label, self.reason, suggestion=self.suggestion)


class InvalidAddressError(ToolError):
    label = "Invalid wallet address"


class InsufficientBalanceError(ToolError):
    label = "Insufficient balance"


def error_envelope(label: str, reason: str, *, suggestion: Optional[str] = None) -> Dict[str, str]:
    envelope = {"error": label, "reason": reason}
    if suggestion:
        envelope["suggestion"] = suggestion
    return envelope


def text_result(payload: Any) -> ToolResult:
    return {
        "content": [
            {
                "type": TEXT_CONTENT_TYPE,
                "text": json.dumps(payload, indent=2, default=str),
            }
        ]
    }


def is_timeout_error(exc: BaseException) -> bool:
    """True when the exception's type or message signals an abort or timeout."""
    if isinstance(exc, (TimeoutError, httpx.TimeoutException, *TRANSACTION_EXPIRY_ERRORS)):
        return True
    name = type(exc).__name__.lower()
    message = str(exc).lower()
    return any(marker in name or marker in message for marker in TIMEOUT_MARKERS)


def with_tool_error_handling(
    label: str,
    *,
    timeout_label: str = DEFAULT_TIMEOUT_LABEL,
) -> Callable[[Callable[..., Awaitable[Any]]], Callable[..., Awaitable[ToolResult]]]:
    """
    Turn an async payload-returning function into a tool callback.

    ``ToolError`` keeps its own label; abort/timeout failures become
    ``timeout_label`` with a retry suggestion; anything else is reported
    under ``label`` with the underlying message as the reason.
    """

    def decorator(fn: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[ToolResult]]:
        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> ToolResult:
            tool_name = fn.__name__
            try:
                payload = await fn(*args, **kwargs)
            except ToolError as exc:
                logger.info("tool=%s outcome=rejected error=%s", tool_name, exc.label, extra={"tool": tool_name})
                return text_result(exc.envelope())
            except Exception as exc:
                if is_timeout_error(exc):
                    logger.warning("tool=%s outcome=timeout reason=%s", tool_name, exc, extra={"tool": tool_name})
                    return text_result(error_envelope(timeout_label, str(exc), suggestion=TIMEOUT_SUGGESTION))
                logger.exception("tool=%s outcome=error", tool_name, extra={"tool": tool_name, "error": label})
                return text_result(error_envelope(label, str(exc)))
            return text_result(payload)

        return wrapper

    return decorator
