"""
Transcription provider interface.

Every backend implements the same four capabilities:
    open_session(session_id, config)
    send_audio_chunk(session_id, chunk)
    on_transcript_event(session_id, handler)
    close_session(session_id) -> TranscriptionResult

Timestamps crossing this interface are always milliseconds; converting a
backend's native unit is the backend's job.
"""
import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from core.models import StreamingSessionConfig, TranscriptEvent, TranscriptionResult

logger = logging.getLogger(__name__)

TranscriptHandler = Callable[[TranscriptEvent], Union[None, Awaitable[None]]]


class ProviderError(Exception):
    """Base class for errors raised by a transcription backend."""


class ProviderUnavailable(ProviderError):
    """The backend cannot be reached or rejected the request."""


class AlreadyOpen(ProviderError):
    """open_session was called with a session id that is still open."""


class SessionNotOpen(ProviderError):
    """The session was never opened or is already closed."""


class ProviderConfigError(ValueError):
    """Provider selection or credentials are invalid."""


class TranscriptionProvider(ABC):
    """Base class holding the per-session handler registry shared by all backends."""

    name = "base"

    def __init__(self) -> None:
        self._handlers: Dict[str, TranscriptHandler] = {}

    @abstractmethod
    async def open_session(self, session_id: str, config: StreamingSessionConfig) -> None:
        ...

    @abstractmethod
    async def send_audio_chunk(self, session_id: str, chunk: bytes) -> None:
        ...

    @abstractmethod
    async def close_session(self, session_id: str) -> TranscriptionResult:
        ...

    @abstractmethod
    def is_open(self, session_id: str) -> bool:
        ...

    def on_transcript_event(self, session_id: str, handler: TranscriptHandler) -> None:
        """Register the handler for a session. Registering again replaces the previous one."""
        self._handlers[session_id] = handler

    async def _emit(self, event: TranscriptEvent) -> None:
        handler = self._handlers.get(event.session_id)
        if handler is None:
            logger.debug("No transcript handler for session %s; dropping %s event", event.session_id, event.type)
            return
        result: Optional[Any] = handler(event)
        if inspect.isawaitable(result):
            await result

    def _release(self, session_id: str) -> None:
        self._handlers.pop(session_id, None)
