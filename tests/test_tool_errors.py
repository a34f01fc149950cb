import asyncio
import json

import httpx
import pytest
from solana.rpc.core import TransactionExpiredBlockheightExceededError, UnconfirmedTxError

from marinade_mcp.tools.errors import (
    InsufficientBalanceError,
    ToolError,
    is_timeout_error,
    with_tool_error_handling,
)


def _payload(result):
    assert len(result["content"]) == 1
    assert result["content"][0]["type"] == "text"
    return json.loads(result["content"][0]["text"])


class AbortError(Exception):
    pass


@pytest.mark.parametrize(
    "exc",
    [
        AbortError("The operation was aborted"),
        TimeoutError(),
        asyncio.TimeoutError(),
        httpx.ReadTimeout("read timed out"),
        RuntimeError("Request was cancelled by the client"),
    ],
)
def test_timeout_detection(exc):
    assert is_timeout_error(exc)


def test_plain_errors_are_not_timeouts():
    assert not is_timeout_error(RuntimeError("account not found"))


@pytest.mark.asyncio
async def test_success_payload_serialized():
    @with_tool_error_handling("Failed")
    async def tool(value):
        return {"value": value}

    assert _payload(await tool(3)) == {"value": 3}


@pytest.mark.asyncio
async def test_tool_error_keeps_its_label():
    @with_tool_error_handling("Failed")
    async def tool():
        raise InsufficientBalanceError("not enough", suggestion="add funds")

    assert _payload(await tool()) == {
        "error": "Insufficient balance",
        "reason": "not enough",
        "suggestion": "add funds",
    }


@pytest.mark.asyncio
async def test_tool_error_label_override():
    @with_tool_error_handling("Failed")
    async def tool():
        raise ToolError("bad input", label="Custom label")

    assert _payload(await tool()) == {"error": "Custom label", "reason": "bad input"}


@pytest.mark.asyncio
async def test_timeout_relabelled_with_suggestion():
    @with_tool_error_handling("Failed", timeout_label="Transaction timed out")
    async def tool():
        raise AbortError("aborted")

    payload = _payload(await tool())
    assert payload["error"] == "Transaction timed out"
    assert payload["reason"] == "aborted"
    assert "try again" in payload["suggestion"]


@pytest.mark.asyncio
async def test_unclassified_error_uses_generic_label():
    @with_tool_error_handling("Failed to do the thing")
    async def tool():
        raise RuntimeError("kaboom")

    assert _payload(await tool()) == {"error": "Failed to do the thing", "reason": "kaboom"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "exc",
    [
        UnconfirmedTxError("Unable to confirm transaction 5h6xBEauJ3PK6SWCZ1PGjBvj8vDdWG3KpwATGy1ARAXF"),
        TransactionExpiredBlockheightExceededError("block height exceeded"),
    ],
)
async def test_unconfirmed_transaction_reported_as_timeout(exc):
    @with_tool_error_handling("Failed to stake SOL", timeout_label="Transaction timed out")
    async def tool():
        raise exc

    payload = _payload(await tool())
    assert payload["error"] == "Transaction timed out"
    assert "try again" in payload["suggestion"]
