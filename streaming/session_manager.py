"""
Relay session manager for the /session websocket.

Per-connection state machine:

    Unauthenticated -> Authenticated (no session) -> InSession -> Closed

- The token from the connection URL is verified before anything is read from
  the socket; an invalid or missing token closes with 4001.
- With no session, only session:start is accepted. A start missing sessionId,
  childId or storyId closes with 4002. Audio and other control messages get a
  non-fatal invalid_message error.
- In a session, binary frames go to the session's AudioBuffer and are forwarded
  to the transcription provider in contiguous regions. session:end flushes,
  closes the provider session, scores, emits session:summary and closes 1000.
- Any message (control or audio) resets the idle window. No message within the
  window closes the connection with 1000.

All state for a connection is mutated only by that connection's own handler
coroutine on the event loop; `sessions` maps connection -> ReadingSession.
"""

import asyncio
import inspect
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Union

from fastapi import WebSocketDisconnect

import metrics
from alignment.word_alignment import ALIGNMENT_POSITIONAL
from core.models import (
    EVENT_ERROR,
    EVENT_FINAL,
    ReadingSessionSummary,
    StoryWord,
    StreamingSessionConfig,
    TranscribedWord,
    TranscriptEvent,
    TranscriptionResult,
)
from core.scoring import score_session
from providers.base import ProviderError, TranscriptionProvider
from streaming.audio_buffer import AudioBuffer, bytes_to_duration_ms, create_audio_buffer
from streaming.protocol import (
    CLOSE_AUTH_FAILED,
    CLOSE_INVALID_SESSION,
    CLOSE_NORMAL,
    MSG_SESSION_END,
    MSG_SESSION_START,
    error_event,
    parse_session_start,
    ready_event,
    summary_event,
    transcript_event,
)

logger = logging.getLogger(__name__)

IDLE_TIMEOUT_SECONDS = 5 * 60.0
# 200 ms of 16 kHz 16-bit mono
DEFAULT_FORWARD_BYTES = 6400

VerifyToken = Callable[[Optional[str]], Awaitable[Optional[str]]]
GetStoryWords = Callable[[str], Optional[Sequence[StoryWord]]]
SummaryCallback = Callable[[ReadingSessionSummary], Union[None, Awaitable[None]]]


@dataclass
class ReadingSession:
    """One live reading attempt bound to one connection."""
    session_id: str
    user_id: str
    child_id: str
    story_id: str
    story_words: List[StoryWord]
    buffer: AudioBuffer
    created_at: float = field(default_factory=time.time)
    provider_open: bool = False
    bytes_received: int = 0
    final_words: List[TranscribedWord] = field(default_factory=list)


class RelaySessionManager:
    """Owns the connection -> session registry and runs each connection's state machine."""

    def __init__(
        self,
        provider: TranscriptionProvider,
        verify_token: VerifyToken,
        get_story_words: GetStoryWords,
        stream_config: Optional[StreamingSessionConfig] = None,
        idle_timeout_s: float = IDLE_TIMEOUT_SECONDS,
        forward_bytes: int = DEFAULT_FORWARD_BYTES,
        alignment_mode: str = ALIGNMENT_POSITIONAL,
        on_summary: Optional[SummaryCallback] = None,
    ):
        """
        Args:
            provider: Transcription backend, built once at process start.
            verify_token: async token -> user id (None if invalid).
            get_story_words: story id -> expected words (None if unknown).
            stream_config: Provider session config (language, sample rate, threshold, child mode).
            idle_timeout_s: Close the connection after this long with no message.
            forward_bytes: Forward buffered audio to the provider once this many bytes are buffered.
            alignment_mode: "positional" or "sequence"; passed to the scorer.
            on_summary: Optional persistence hand-off for finished summaries (sync or async).
        """
        self.provider = provider
        self.verify_token = verify_token
        self.get_story_words = get_story_words
        self.stream_config = stream_config or StreamingSessionConfig()
        self.idle_timeout_s = idle_timeout_s
        self.forward_bytes = max(1, forward_bytes)
        self.alignment_mode = alignment_mode
        self.on_summary = on_summary
        self.sessions: Dict[Any, ReadingSession] = {}

    # ----- connection lifecycle -----

    async def handle_connection(self, websocket: Any) -> None:
        """Run one connection to completion. Always leaves no session behind."""
        token = websocket.query_params.get("token")
        # Accept first so the 4001 close code reaches the client.
        await websocket.accept()
        metrics.record_connection_open()
        try:
            user_id = await self._authenticate(token)
            if not user_id:
                metrics.record_auth_failure()
                logger.warning("Authentication failed; closing connection")
                await self._close(websocket, CLOSE_AUTH_FAILED, "Authentication failed")
                return
            logger.info("Connection authenticated for user %s", user_id)
            await self._serve(websocket, user_id)
        except WebSocketDisconnect:
            logger.debug("Client disconnected")
        finally:
            await self._release(websocket)
            metrics.record_connection_close()

    async def _authenticate(self, token: Optional[str]) -> Optional[str]:
        try:
            return await self.verify_token(token)
        except Exception as e:
            # Verifier failures are treated as auth failures; nothing is sent to the client.
            logger.warning("Token verification error: %s", type(e).__name__)
            return None

    async def _serve(self, websocket: Any, user_id: str) -> None:
        while True:
            try:
                message = await asyncio.wait_for(websocket.receive(), timeout=self.idle_timeout_s)
            except asyncio.TimeoutError:
                metrics.record_idle_timeout()
                session = self.sessions.get(websocket)
                logger.info(
                    "Idle timeout after %.0fs (session %s)",
                    self.idle_timeout_s,
                    session.session_id if session else None,
                )
                await self._close(websocket, CLOSE_NORMAL, "Idle timeout")
                return

            kind = message.get("type")
            if kind == "websocket.disconnect":
                return
            if kind != "websocket.receive":
                continue
            if message.get("bytes") is not None:
                await self._handle_audio(websocket, message["bytes"])
            elif message.get("text") is not None:
                if not await self._handle_text(websocket, message["text"], user_id):
                    return

    # ----- message handling -----

    async def _handle_text(self, websocket: Any, raw: str, user_id: str) -> bool:
        """Dispatch one control message. Returns False when the connection has been closed."""
        try:
            message = json.loads(raw)
        except ValueError:
            await self._protocol_error(websocket, "Invalid JSON")
            return True
        if not isinstance(message, dict):
            await self._protocol_error(websocket, "Message must be a JSON object")
            return True

        msg_type = message.get("type")
        session = self.sessions.get(websocket)
        logger.debug("Control message %r (in session: %s)", msg_type, session is not None)

        if msg_type == MSG_SESSION_START and session is None:
            return await self._start_session(websocket, message, user_id)
        if msg_type == MSG_SESSION_END and session is not None:
            await self._end_session(websocket, session)
            return False

        if msg_type == MSG_SESSION_START:
            reason = "Session already active"
        elif msg_type == MSG_SESSION_END:
            reason = "No active session"
        else:
            reason = f"Unknown message type: {msg_type}"
        await self._protocol_error(websocket, reason)
        return True

    async def _handle_audio(self, websocket: Any, chunk: bytes) -> None:
        session = self.sessions.get(websocket)
        if session is None:
            await self._protocol_error(websocket, "No active session")
            return
        session.buffer.append(chunk)
        session.bytes_received += len(chunk)
        if session.buffer.total_bytes >= self.forward_bytes:
            await self._forward_audio(websocket, session)

    async def _start_session(self, websocket: Any, message: Dict[str, Any], user_id: str) -> bool:
        parsed = parse_session_start(message)
        if parsed is None:
            metrics.record_protocol_error()
            logger.warning("Malformed session:start; closing with %d", CLOSE_INVALID_SESSION)
            await self._close(websocket, CLOSE_INVALID_SESSION, "Invalid session: missing sessionId, childId, or storyId")
            return False
        session_id, child_id, story_id = parsed

        story_words = self.get_story_words(story_id)
        if story_words is None:
            logger.warning("Unknown story %s for session %s; scoring against no words", story_id, session_id)
            story_words = []

        session = ReadingSession(
            session_id=session_id,
            user_id=user_id,
            child_id=child_id,
            story_id=story_id,
            story_words=list(story_words),
            buffer=create_audio_buffer(session_id),
        )
        self.sessions[websocket] = session
        metrics.record_session_started()

        await self._send(websocket, ready_event(session_id))
        logger.info("Session %s started (child %s, story %s)", session_id, child_id, story_id)
        # Open failures arrive after session:ready as transcript error events.
        await self._open_provider_session(websocket, session)
        return True

    async def _end_session(self, websocket: Any, session: ReadingSession) -> None:
        await self._forward_audio(websocket, session)

        result: Optional[TranscriptionResult] = None
        if session.provider_open:
            session.provider_open = False
            try:
                result = await self.provider.close_session(session.session_id)
            except ProviderError as e:
                await self._provider_error(websocket, session, e)

        words = result.words if result and result.words else session.final_words
        if result and result.audio_duration_ms > 0:
            duration_ms = result.audio_duration_ms
        else:
            duration_ms = round(bytes_to_duration_ms(session.bytes_received, self.stream_config.sample_rate))

        summary = score_session(
            session.session_id,
            session.child_id,
            session.story_id,
            session.story_words,
            words,
            duration_ms,
            self.stream_config.confidence_threshold,
            alignment_mode=self.alignment_mode,
        )
        self._take(websocket)
        metrics.record_session_completed(summary.accuracy_percent)
        await self._send(websocket, summary_event(summary))
        logger.info(
            "Session %s summary: %.2f%% (%d/%d words)",
            summary.session_id,
            summary.accuracy_percent,
            summary.words_correct,
            summary.words_read,
        )
        await self._hand_off(summary)
        await self._close(websocket, CLOSE_NORMAL, "Session ended")

    # ----- provider plumbing -----

    async def _open_provider_session(self, websocket: Any, session: ReadingSession) -> None:
        try:
            await self.provider.open_session(session.session_id, self.stream_config)
        except ProviderError as e:
            await self._provider_error(websocket, session, e)
            return
        session.provider_open = True
        # Register only after a successful open so a reused id cannot take over another session's handler.
        self.provider.on_transcript_event(session.session_id, self._transcript_handler(websocket, session))

    def _transcript_handler(self, websocket: Any, session: ReadingSession) -> Callable[[TranscriptEvent], Awaitable[None]]:
        async def handle(event: TranscriptEvent) -> None:
            if event.type == EVENT_FINAL:
                session.final_words.extend(event.words)
            elif event.type == EVENT_ERROR:
                metrics.record_provider_error()
            await self._send(websocket, transcript_event(event))

        return handle

    async def _forward_audio(self, websocket: Any, session: ReadingSession) -> None:
        """Flush the buffer and send it as one region. Without an open provider session the audio is dropped."""
        audio = session.buffer.flush()
        if not audio or not session.provider_open:
            return
        logger.debug("Forwarding %d bytes for session %s", len(audio), session.session_id)
        try:
            await self.provider.send_audio_chunk(session.session_id, audio)
        except ProviderError as e:
            session.provider_open = self.provider.is_open(session.session_id)
            await self._provider_error(websocket, session, e)

    async def _provider_error(self, websocket: Any, session: ReadingSession, error: ProviderError) -> None:
        metrics.record_provider_error()
        logger.warning("Provider error in session %s: %s: %s", session.session_id, type(error).__name__, error)
        event = TranscriptEvent(type=EVENT_ERROR, session_id=session.session_id, error=f"{type(error).__name__}: {error}")
        await self._send(websocket, transcript_event(event))

    # ----- teardown -----

    def _take(self, websocket: Any) -> Optional[ReadingSession]:
        session = self.sessions.pop(websocket, None)
        if session is not None:
            metrics.record_session_released()
        return session

    async def _release(self, websocket: Any) -> None:
        """Drop the connection's session (if any) and close its provider session."""
        session = self._take(websocket)
        if session is None or not session.provider_open:
            return
        session.provider_open = False
        try:
            await self.provider.close_session(session.session_id)
        except ProviderError as e:
            logger.warning("Closing provider session %s during cleanup failed: %s", session.session_id, e)

    async def _hand_off(self, summary: ReadingSessionSummary) -> None:
        if self.on_summary is None:
            return
        try:
            result = self.on_summary(summary)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Summary hand-off failed for session %s", summary.session_id)

    # ----- socket helpers -----

    async def _protocol_error(self, websocket: Any, message: str) -> None:
        metrics.record_protocol_error()
        await self._send(websocket, error_event(message))

    async def _send(self, websocket: Any, payload: Dict[str, Any]) -> bool:
        try:
            await websocket.send_json(payload)
            return True
        except (WebSocketDisconnect, RuntimeError):
            logger.debug("Dropped %s event; socket closed", payload.get("type"))
            return False

    async def _close(self, websocket: Any, code: int, reason: str) -> None:
        try:
            await websocket.close(code=code, reason=reason)
        except RuntimeError:
            logger.debug("Close %d skipped; socket already closed", code)
