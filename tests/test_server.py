import io
import json

import pytest
from fastapi.testclient import TestClient

from bitcoin_data_mcp import server
from bitcoin_data_mcp.config import BitcoinDataConfig
from bitcoin_data_mcp.mcp import Dispatcher, SessionState
from bitcoin_data_mcp.server import create_app, serve_stdio

INITIALIZE = {
    "jsonrpc": "2.0",
    "id": 1,
    "method": "initialize",
    "params": {
        "protocolVersion": "2024-11-05",
        "capabilities": {},
        "clientInfo": {"name": "test-client", "version": "1.0.0"},
    },
}
INITIALIZED = {"jsonrpc": "2.0", "method": "notifications/initialized"}
LIST_TOOLS = {"jsonrpc": "2.0", "id": 2, "method": "tools/list", "params": {}}
CALL_TIP = {
    "jsonrpc": "2.0",
    "id": 3,
    "method": "tools/call",
    "params": {"name": "get_tip_height", "arguments": {"network": "testnet"}},
}


def _dispatcher(client):
    return Dispatcher(client=client, config=BitcoinDataConfig(require_explicit_network=False, endpoint_overrides={}))


@pytest.mark.asyncio
async def test_stdio_session_end_to_end(recording_client):
    recording_client.body = "840000"
    lines = [INITIALIZE, INITIALIZED, LIST_TOOLS, CALL_TIP]
    stdin = io.StringIO("\n".join(json.dumps(line) for line in lines) + "\n\n")
    stdout = io.StringIO()
    dispatcher = _dispatcher(recording_client)

    await serve_stdio(dispatcher, stdin=stdin, stdout=stdout)

    responses = [json.loads(line) for line in stdout.getvalue().splitlines()]
    assert [r["id"] for r in responses] == [1, 2, 3]
    assert responses[0]["result"]["serverInfo"]["name"] == "bitcoin-data-mcp"
    tools = responses[1]["result"]["tools"]
    assert all(isinstance(tool["inputSchema"], dict) for tool in tools)
    assert responses[2]["result"]["content"][0]["text"] == "840000"
    assert recording_client.urls == ["https://blockstream.info/testnet/api/blocks/tip/height"]
    assert dispatcher.state is SessionState.CLOSED


@pytest.mark.asyncio
async def test_stdio_reports_parse_errors_and_keeps_going(recording_client):
    stdin = io.StringIO("{broken\n" + json.dumps(INITIALIZE) + "\n")
    stdout = io.StringIO()
    await serve_stdio(_dispatcher(recording_client), stdin=stdin, stdout=stdout)
    first, second = [json.loads(line) for line in stdout.getvalue().splitlines()]
    assert first["error"]["code"] == -32700
    assert second["id"] == 1
    assert "result" in second


def test_http_gateway_lifecycle(recording_client):
    client = TestClient(create_app(_dispatcher(recording_client)))

    early = client.post("/mcp", json=LIST_TOOLS)
    assert early.status_code == 200
    assert early.json()["error"]["code"] == -32002

    init = client.post("/mcp", json=INITIALIZE)
    assert init.json()["result"]["capabilities"]["tools"]["listChanged"] is False

    ack = client.post("/mcp", json=INITIALIZED)
    assert ack.status_code == 202
    assert ack.text == ""

    listed = client.post("/mcp", json=LIST_TOOLS)
    assert any(tool["name"] == "get_fee_estimates" for tool in listed.json()["result"]["tools"])

    called = client.post("/mcp", json=CALL_TIP)
    assert called.json()["result"]["isError"] is False
    assert "X-Request-ID" in called.headers


def test_http_gateway_parse_and_shape_errors(recording_client):
    client = TestClient(create_app(_dispatcher(recording_client)))
    resp = client.post("/mcp", content="{not json", headers={"Content-Type": "application/json"})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == -32700

    resp = client.post("/mcp", json=[INITIALIZE])
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == -32600


def test_health_and_metrics_routes(recording_client):
    client = TestClient(create_app(_dispatcher(recording_client)))
    client.post("/mcp", json=INITIALIZE)
    health = client.get("/health")
    assert health.json() == {"status": "ok", "session": "ready"}
    metrics = client.get("/metrics").json()
    assert metrics["methods"]["initialize"] == 1


@pytest.mark.asyncio
async def test_stdio_invalid_utf8_is_parse_error(recording_client):
    raw = b"\xff\xfe garbage\n" + json.dumps(INITIALIZE).encode("utf-8") + b"\n"
    stdin = io.TextIOWrapper(io.BytesIO(raw), encoding="utf-8")
    stdout = io.StringIO()
    await serve_stdio(_dispatcher(recording_client), stdin=stdin, stdout=stdout)
    first, second = [json.loads(line) for line in stdout.getvalue().splitlines()]
    assert first["id"] is None
    assert first["error"]["code"] == -32700
    assert second["id"] == 1
    assert "result" in second


class ClosingClient:
    def __init__(self):
        self.closed = False

    async def fetch(self, url):
        return "{}"

    async def aclose(self):
        self.closed = True


def test_http_shutdown_closes_session_client():
    backend = ClosingClient()
    dispatcher = _dispatcher(backend)
    with TestClient(create_app(dispatcher)) as client:
        client.post("/mcp", json=INITIALIZE)
        assert backend.closed is False
    assert backend.closed is True
    assert dispatcher.state is SessionState.CLOSED


def test_http_app_config_reaches_tool_handlers(recording_client, monkeypatch):
    monkeypatch.setattr(server, "default_client", recording_client)
    config = BitcoinDataConfig(
        require_explicit_network=False,
        endpoint_overrides={("esplora", "testnet"): "http://localhost:3002/api"},
    )
    client = TestClient(create_app(config=config))
    client.post("/mcp", json=INITIALIZE)
    client.post("/mcp", json=INITIALIZED)
    called = client.post("/mcp", json=CALL_TIP)
    assert called.json()["result"]["isError"] is False
    assert recording_client.urls == ["http://localhost:3002/api/blocks/tip/height"]
