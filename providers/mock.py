"""
Deterministic transcription backend for local development and tests.
Never calls a network service. Returns a canned transcript (empty by default).
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from core.models import (
    EVENT_FINAL,
    StreamingSessionConfig,
    TranscribedWord,
    TranscriptEvent,
    TranscriptionResult,
)
from providers.base import AlreadyOpen, SessionNotOpen, TranscriptionProvider
from streaming.audio_buffer import bytes_to_duration_ms

# Spacing used when turning a canned transcript string into timed words.
CANNED_WORD_SPACING_MS = 400


def words_from_text(text: str, spacing_ms: int = CANNED_WORD_SPACING_MS) -> List[TranscribedWord]:
    """Evenly timed, full-confidence words for a plain transcript string."""
    return [
        TranscribedWord(word=w, start_ms=i * spacing_ms, end_ms=(i + 1) * spacing_ms, confidence=1.0)
        for i, w in enumerate((text or "").split())
    ]


@dataclass
class _MockSession:
    config: StreamingSessionConfig
    bytes_received: int = 0


class MockTranscriptionProvider(TranscriptionProvider):
    name = "mock"

    def __init__(self, canned_words: Optional[Sequence[TranscribedWord]] = None, canned_transcript: str = ""):
        super().__init__()
        if canned_words is None:
            canned_words = words_from_text(canned_transcript)
        self.canned_words: List[TranscribedWord] = list(canned_words)
        self._sessions: Dict[str, _MockSession] = {}
        self.received: Dict[str, List[bytes]] = {}

    def is_open(self, session_id: str) -> bool:
        return session_id in self._sessions

    async def open_session(self, session_id: str, config: StreamingSessionConfig) -> None:
        if session_id in self._sessions:
            raise AlreadyOpen(f"Session {session_id} is already open")
        self._sessions[session_id] = _MockSession(config=config)
        self.received[session_id] = []

    async def send_audio_chunk(self, session_id: str, chunk: bytes) -> None:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotOpen(f"Session {session_id} is not open")
        session.bytes_received += len(chunk)
        self.received[session_id].append(bytes(chunk))

    async def close_session(self, session_id: str) -> TranscriptionResult:
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotOpen(f"Session {session_id} is not open")
        words = list(self.canned_words)
        transcript = " ".join(w.word for w in words)
        if words:
            await self._emit(TranscriptEvent(type=EVENT_FINAL, session_id=session_id, words=words, transcript=transcript))
        self._release(session_id)
        return TranscriptionResult(
            session_id=session_id,
            transcript=transcript,
            words=words,
            is_final=True,
            audio_duration_ms=round(bytes_to_duration_ms(session.bytes_received, session.config.sample_rate)),
        )

    async def emit_event(self, session_id: str, event: TranscriptEvent) -> None:
        """Test helper: push a transcript event to the handler registered for a session."""
        await self._emit(event)
