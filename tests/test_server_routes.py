import json

import pytest
from fastapi.testclient import TestClient

from marinade_mcp.mcp import NoArgs, ToolDefinition, build_registry
from marinade_mcp.server import create_app


@pytest.fixture
def client(docs_only_config):
    return TestClient(create_app(docs_only_config))


def test_health_route(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.text == "ok"
    assert resp.headers.get("X-Request-ID")


@pytest.mark.parametrize("method", ["GET", "DELETE"])
def test_mcp_rejects_get_and_delete(client, method):
    resp = client.request(method, "/mcp", content=b'{"jsonrpc": "2.0", "id": 1, "method": "tools/list"}')
    assert resp.status_code == 405
    assert resp.json() == {
        "jsonrpc": "2.0",
        "error": {"code": -32000, "message": "Method not allowed."},
        "id": None,
    }


def test_mcp_initialize(client):
    payload = {
        "jsonrpc": "2.0",
        "id": 1,
        "method": "initialize",
        "params": {"protocolVersion": "2025-03-26", "capabilities": {}, "clientInfo": {"name": "test", "version": "0.0.1"}},
    }
    resp = client.post("/mcp", json=payload)
    assert resp.status_code == 200
    body = resp.json()
    assert body["id"] == 1
    assert body["result"]["serverInfo"]["name"] == "marinade-finance-mcp-server"


def test_mcp_list_tools_docs_only(client):
    resp = client.post("/mcp", json={"jsonrpc": "2.0", "id": 2, "method": "tools/list"})
    assert resp.status_code == 200
    assert [t["name"] for t in resp.json()["result"]["tools"]] == ["search_documentation"]


def test_mcp_list_tools_with_wallet(wallet_config):
    client = TestClient(create_app(wallet_config))
    resp = client.post("/mcp", json={"jsonrpc": "2.0", "id": 2, "method": "tools/list"})
    names = [t["name"] for t in resp.json()["result"]["tools"]]
    assert "stake_msol" in names and "send_msol" in names


def test_mcp_parse_error(client):
    resp = client.post("/mcp", content=b"{not json", headers={"Content-Type": "application/json"})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == -32700


def test_mcp_notification_accepted(client):
    resp = client.post("/mcp", json={"jsonrpc": "2.0", "method": "notifications/initialized"})
    assert resp.status_code == 202
    assert resp.content == b""


def test_mcp_tool_call_forces_text_type(docs_only_config):
    async def fake(**_kwargs):
        return {"content": [{"type": "json", "text": json.dumps({"ok": True})}]}

    registry = [ToolDefinition(name="fake", title="Fake", description="fake", arguments=NoArgs, callable=fake)]
    client = TestClient(create_app(docs_only_config, registry))
    resp = client.post(
        "/mcp",
        json={"jsonrpc": "2.0", "id": 3, "method": "tools/call", "params": {"name": "fake", "arguments": {}}},
    )
    assert resp.status_code == 200
    content = resp.json()["result"]["content"]
    assert content == [{"type": "text", "text": json.dumps({"ok": True})}]


def test_mcp_internal_error(docs_only_config):
    async def explode(**_kwargs):
        raise RuntimeError("boom")

    registry = [ToolDefinition(name="explode", title="Explode", description="x", arguments=NoArgs, callable=explode)]
    client = TestClient(create_app(docs_only_config, registry))
    resp = client.post(
        "/mcp",
        json={"jsonrpc": "2.0", "id": 4, "method": "tools/call", "params": {"name": "explode"}},
    )
    assert resp.status_code == 500
    assert resp.json() == {
        "jsonrpc": "2.0",
        "id": None,
        "error": {"code": -32603, "message": "Internal server error"},
    }


def test_mcp_balance_invalid_address_over_http(wallet_config):
    client = TestClient(create_app(wallet_config))
    resp = client.post(
        "/mcp",
        json={
            "jsonrpc": "2.0",
            "id": 5,
            "method": "tools/call",
            "params": {"name": "get_msol_balance", "arguments": {"walletAddress": "not-a-key"}},
        },
    )
    payload = json.loads(resp.json()["result"]["content"][0]["text"])
    assert payload["error"] == "Invalid wallet address"


def test_cors_allows_any_origin(client):
    resp = client.options(
        "/mcp",
        headers={
            "Origin": "https://agent.example",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "mcp-session-id",
        },
    )
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"
    assert "mcp-session-id" in resp.headers["access-control-allow-headers"].lower()


def test_metrics_counts_requests(client):
    client.get("/health")
    data = client.get("/metrics").json()
    assert data["requests"] >= 2


def test_registry_built_once(docs_only_config):
    registry = build_registry(docs_only_config)
    app = create_app(docs_only_config, registry)
    assert app.state.registry is registry
