"""
WebSocket endpoint for /session.

Clients connect at ws(s)://<host>/session?token=<jwt>, send session:start,
stream binary PCM frames, then send session:end to receive a session:summary.
"""

from typing import Callable, Optional

from fastapi import WebSocket

from core.models import StreamingSessionConfig
from providers.base import TranscriptionProvider
from streaming.session_manager import (
    DEFAULT_FORWARD_BYTES,
    IDLE_TIMEOUT_SECONDS,
    GetStoryWords,
    RelaySessionManager,
    SummaryCallback,
    VerifyToken,
)


def build_ws_session_handler(
    provider: TranscriptionProvider,
    verify_token: VerifyToken,
    get_story_words: GetStoryWords,
    stream_config: Optional[StreamingSessionConfig] = None,
    idle_timeout_s: float = IDLE_TIMEOUT_SECONDS,
    forward_bytes: int = DEFAULT_FORWARD_BYTES,
    alignment_mode: str = "positional",
    on_summary: Optional[SummaryCallback] = None,
) -> Callable:
    """
    Build the async WebSocket handler for /session.

    Args:
        provider: Transcription backend shared by all connections.
        verify_token: async token -> user id (None if invalid).
        get_story_words: story id -> StoryWords (None if unknown).
        stream_config: Provider session config.
        idle_timeout_s: Seconds without any client message before the relay closes (1000).
        forward_bytes: Buffered bytes that trigger a forward to the provider.
        alignment_mode: "positional" or "sequence".
        on_summary: Optional persistence hand-off.

    Returns:
        Async function (websocket: WebSocket) -> None for use with FastAPI.
        The manager is exposed as `handler.manager`.
    """
    manager = RelaySessionManager(
        provider=provider,
        verify_token=verify_token,
        get_story_words=get_story_words,
        stream_config=stream_config,
        idle_timeout_s=idle_timeout_s,
        forward_bytes=forward_bytes,
        alignment_mode=alignment_mode,
        on_summary=on_summary,
    )

    async def handle_ws_session(websocket: WebSocket) -> None:
        await manager.handle_connection(websocket)

    handle_ws_session.manager = manager  # type: ignore[attr-defined]
    return handle_ws_session
