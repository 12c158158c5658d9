"""
Relay observability metrics.

Thread-safe counters for the /session websocket relay.
Exposed via GET /metrics/streaming (JSON snapshot).
"""

import threading
from collections import deque
from typing import Any, Dict

# ----- Shared state (module-level for singleton behavior) -----
_lock = threading.Lock()
_active_connections = 0
_active_sessions = 0
_auth_failures = 0
_protocol_errors = 0
_provider_errors = 0
_idle_timeouts = 0
_sessions_completed = 0
_accuracy_samples: deque = deque(maxlen=1000)  # last N session accuracy_percent values


def record_connection_open() -> None:
    """Call when a websocket connection is accepted."""
    with _lock:
        global _active_connections
        _active_connections += 1


def record_connection_close() -> None:
    """Call when a websocket connection closes."""
    with _lock:
        global _active_connections
        _active_connections = max(0, _active_connections - 1)


def record_session_started() -> None:
    with _lock:
        global _active_sessions
        _active_sessions += 1


def record_session_released() -> None:
    """Call when a session leaves the registry for any reason."""
    with _lock:
        global _active_sessions
        _active_sessions = max(0, _active_sessions - 1)


def record_session_completed(accuracy_percent: float) -> None:
    """Call once per emitted summary."""
    with _lock:
        global _sessions_completed
        _sessions_completed += 1
        _accuracy_samples.append(accuracy_percent)


def record_auth_failure() -> None:
    with _lock:
        global _auth_failures
        _auth_failures += 1


def record_protocol_error() -> None:
    with _lock:
        global _protocol_errors
        _protocol_errors += 1


def record_provider_error() -> None:
    with _lock:
        global _provider_errors
        _provider_errors += 1


def record_idle_timeout() -> None:
    with _lock:
        global _idle_timeouts
        _idle_timeouts += 1


def reset() -> None:
    """Zero every counter (tests)."""
    global _active_connections, _active_sessions, _auth_failures, _protocol_errors
    global _provider_errors, _idle_timeouts, _sessions_completed
    with _lock:
        _active_connections = 0
        _active_sessions = 0
        _auth_failures = 0
        _protocol_errors = 0
        _provider_errors = 0
        _idle_timeouts = 0
        _sessions_completed = 0
        _accuracy_samples.clear()


def get_snapshot() -> Dict[str, Any]:
    """
    Return a JSON-serializable snapshot of relay metrics.
    Used by GET /metrics/streaming.
    """
    with _lock:
        samples = list(_accuracy_samples)
        snapshot = {
            "active_connections": _active_connections,
            "active_sessions": _active_sessions,
            "auth_failures": _auth_failures,
            "protocol_errors": _protocol_errors,
            "provider_errors": _provider_errors,
            "idle_timeouts": _idle_timeouts,
            "sessions_completed": _sessions_completed,
        }
    snapshot["avg_accuracy_percent"] = round(sum(samples) / len(samples), 2) if samples else None
    return snapshot
