"""
Relay observability metrics.
"""

from metrics.streaming_metrics import (
    get_snapshot,
    record_auth_failure,
    record_connection_close,
    record_connection_open,
    record_idle_timeout,
    record_protocol_error,
    record_provider_error,
    record_session_completed,
    record_session_released,
    record_session_started,
    reset,
)

__all__ = [
    "get_snapshot",
    "record_auth_failure",
    "record_connection_close",
    "record_connection_open",
    "record_idle_timeout",
    "record_protocol_error",
    "record_provider_error",
    "record_session_completed",
    "record_session_released",
    "record_session_started",
    "reset",
]
