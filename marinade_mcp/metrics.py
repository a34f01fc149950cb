"""In-process counters for MCP traffic (per process, reset on restart)."""

from __future__ import annotations

from collections import Counter, OrderedDict
from threading import Lock
from typing import Dict, Optional

# Number of request durations kept for the snapshot; older entries are dropped.
RECENT_DURATIONS_LIMIT = 100


class MetricsRecorder:
    def __init__(self, *, recent_limit: int = RECENT_DURATIONS_LIMIT) -> None:
        self._lock = Lock()
        self._recent_limit = recent_limit
        self._requests = 0
        self._request_durations_ms: "OrderedDict[str, float]" = OrderedDict()
        self._tool_calls: Counter[str] = Counter()
        self._tool_errors: Counter[str] = Counter()
        self._error_labels: Counter[str] = Counter()

    def incr_request(self) -> None:
        with self._lock:
            self._requests += 1

    def record_duration(self, request_id: str, duration_ms: float) -> None:
        with self._lock:
            self._request_durations_ms[request_id] = duration_ms
            self._request_durations_ms.move_to_end(request_id)
            while len(self._request_durations_ms) > self._recent_limit:
                self._request_durations_ms.popitem(last=False)

    def record_tool(self, tool: str, *, error_label: Optional[str] = None) -> None:
        """Count one tool call; ``error_label`` is the envelope's ``error`` field on failure."""
        with self._lock:
            self._tool_calls[tool] += 1
            if error_label is not None:
                self._tool_errors[tool] += 1
                self._error_labels[error_label] += 1

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            return {
                "requests": self._requests,
                "tool_calls": dict(self._tool_calls),
                "tool_errors": dict(self._tool_errors),
                "error_labels": dict(self._error_labels),
                "recent_request_durations_ms": dict(self._request_durations_ms),
            }

    def reset(self) -> None:
        with self._lock:
            self._requests = 0
            self._request_durations_ms.clear()
            self._tool_calls.clear()
            self._tool_errors.clear()
            self._error_labels.clear()


default_metrics = MetricsRecorder()
