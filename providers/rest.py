"""
Shared plumbing for vendor backends that transcribe over a REST API.

Audio sent during a session is accumulated per session and uploaded once on
close. Blocking HTTP calls (requests) run in the default thread executor so the
relay's event loop keeps serving other connections.
"""
import asyncio
import logging
import struct
from abc import abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

import requests

from core.models import (
    EVENT_FINAL,
    StreamingSessionConfig,
    TranscribedWord,
    TranscriptEvent,
    TranscriptionResult,
)
from providers.base import AlreadyOpen, ProviderUnavailable, SessionNotOpen, TranscriptionProvider

logger = logging.getLogger(__name__)


def raw_to_wav(raw: bytes, sample_rate: int = 16000, sample_width: int = 2) -> bytes:
    """Wrap raw PCM (16-bit mono) in a minimal WAV header."""
    n = len(raw)
    header = bytearray(44)
    header[0:4] = b"RIFF"
    struct.pack_into("<I", header, 4, 36 + n)
    header[8:12] = b"WAVE"
    header[12:16] = b"fmt "
    struct.pack_into("<I", header, 16, 16)  # fmt chunk size
    struct.pack_into("<H", header, 20, 1)   # PCM
    struct.pack_into("<H", header, 22, 1)   # mono
    struct.pack_into("<I", header, 24, sample_rate)
    struct.pack_into("<I", header, 28, sample_rate * sample_width)
    struct.pack_into("<H", header, 32, sample_width)  # block align
    struct.pack_into("<H", header, 34, sample_width * 8)
    header[36:40] = b"data"
    struct.pack_into("<I", header, 40, n)
    return bytes(header) + raw


@dataclass
class _PendingSession:
    config: StreamingSessionConfig
    audio: bytearray = field(default_factory=bytearray)


class RestTranscriptionProvider(TranscriptionProvider):
    """Base for batch-on-close REST backends. Subclasses supply probe and transcribe."""

    def __init__(self, api_key: str, request_timeout: float = 30.0):
        super().__init__()
        self.api_key = api_key
        self.request_timeout = request_timeout
        self._sessions: Dict[str, _PendingSession] = {}

    @abstractmethod
    def _probe(self) -> None:
        """Cheap authenticated request; raises requests.RequestException on failure."""

    @abstractmethod
    def _transcribe(self, wav: bytes, config: StreamingSessionConfig) -> Tuple[str, List[TranscribedWord], int]:
        """Blocking transcription call. Returns (transcript, words in ms, audio duration ms)."""

    async def _run_blocking(self, fn: Any, *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, fn, *args)

    def is_open(self, session_id: str) -> bool:
        return session_id in self._sessions

    async def open_session(self, session_id: str, config: StreamingSessionConfig) -> None:
        if session_id in self._sessions:
            raise AlreadyOpen(f"Session {session_id} is already open")
        try:
            await self._run_blocking(self._probe)
        except requests.RequestException as e:
            raise ProviderUnavailable(f"{self.name} unreachable: {e}") from e
        self._sessions[session_id] = _PendingSession(config=config)

    async def send_audio_chunk(self, session_id: str, chunk: bytes) -> None:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotOpen(f"Session {session_id} is not open")
        session.audio.extend(chunk)

    async def close_session(self, session_id: str) -> TranscriptionResult:
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotOpen(f"Session {session_id} is not open")
        try:
            if session.audio:
                wav = raw_to_wav(bytes(session.audio), sample_rate=session.config.sample_rate)
                transcript, words, duration_ms = await self._run_blocking(self._transcribe, wav, session.config)
            else:
                transcript, words, duration_ms = "", [], 0
        except (requests.RequestException, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning("%s transcription failed for session %s: %s", self.name, session_id, e)
            self._release(session_id)
            raise ProviderUnavailable(f"{self.name} transcription failed: {e}") from e

        await self._emit(TranscriptEvent(type=EVENT_FINAL, session_id=session_id, words=words, transcript=transcript))
        self._release(session_id)
        return TranscriptionResult(
            session_id=session_id,
            transcript=transcript,
            words=words,
            is_final=True,
            audio_duration_ms=duration_ms,
        )
