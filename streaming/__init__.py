"""
Real-time relay layer.

- audio_buffer: per-session PCM buffer (append / flush).
- protocol: wire message names, close codes, event builders.
- session_manager: per-connection state machine (import separately; pulls in providers and FastAPI).
- websocket_server: FastAPI handler for /session (import separately).
"""

from streaming.audio_buffer import (
    AudioBuffer,
    append_chunk,
    bytes_to_duration_ms,
    create_audio_buffer,
    flush_buffer,
)

__all__ = [
    "AudioBuffer",
    "append_chunk",
    "bytes_to_duration_ms",
    "create_audio_buffer",
    "flush_buffer",
]
