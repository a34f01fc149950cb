from marinade_mcp.metrics import RECENT_DURATIONS_LIMIT, MetricsRecorder, default_metrics


def test_recent_durations_are_bounded():
    metrics = MetricsRecorder(recent_limit=3)
    for i in range(10):
        metrics.record_duration(f"req-{i}", float(i))
    durations = metrics.snapshot()["recent_request_durations_ms"]
    assert list(durations) == ["req-7", "req-8", "req-9"]
    assert durations["req-9"] == 9.0


def test_default_recorder_window_over_http(docs_only_config):
    from fastapi.testclient import TestClient

    from marinade_mcp.server import create_app

    client = TestClient(create_app(docs_only_config))
    for _ in range(RECENT_DURATIONS_LIMIT + 25):
        client.get("/health")
    snapshot = default_metrics.snapshot()
    assert snapshot["requests"] == RECENT_DURATIONS_LIMIT + 25
    assert len(snapshot["recent_request_durations_ms"]) == RECENT_DURATIONS_LIMIT


def test_tool_counters_and_reset():
    metrics = MetricsRecorder()
    metrics.record_tool("stake_msol")
    metrics.record_tool("stake_msol", error_label="Insufficient balance")
    snapshot = metrics.snapshot()
    assert snapshot["tool_calls"] == {"stake_msol": 2}
    assert snapshot["tool_errors"] == {"stake_msol": 1}
    assert snapshot["error_labels"] == {"Insufficient balance": 1}
    metrics.reset()
    assert metrics.snapshot()["tool_calls"] == {}
