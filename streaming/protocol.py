"""
Wire protocol for the /session relay.

Client -> server (text JSON):
    {"type": "session:start", "sessionId": "...", "childId": "...", "storyId": "..."}
    {"type": "session:end"}
Client -> server (binary): 16-bit PCM mono little-endian, after session:ready.

Server -> client (text JSON):
    {"type": "session:ready", "sessionId": "..."}
    {"type": "transcript", "sessionId": "...", "event": {...}}
    {"type": "session:summary", "sessionId": "...", "summary": {...}}
    {"type": "error", "code": "invalid_message", "message": "..."}
"""
from typing import Any, Dict, Optional, Tuple

from core.models import ReadingSessionSummary, TranscriptEvent

MSG_SESSION_START = "session:start"
MSG_SESSION_END = "session:end"
MSG_SESSION_READY = "session:ready"
MSG_SESSION_SUMMARY = "session:summary"
MSG_TRANSCRIPT = "transcript"
MSG_ERROR = "error"

ERROR_INVALID_MESSAGE = "invalid_message"

CLOSE_NORMAL = 1000
CLOSE_AUTH_FAILED = 4001
CLOSE_INVALID_SESSION = 4002

START_FIELDS = ("sessionId", "childId", "storyId")


def parse_session_start(message: Dict[str, Any]) -> Optional[Tuple[str, str, str]]:
    """Return (session_id, child_id, story_id), or None if any field is missing or empty."""
    values = [message.get(k) for k in START_FIELDS]
    if not all(isinstance(v, str) and v for v in values):
        return None
    return values[0], values[1], values[2]


def ready_event(session_id: str) -> Dict[str, Any]:
    return {"type": MSG_SESSION_READY, "sessionId": session_id}


def summary_event(summary: ReadingSessionSummary) -> Dict[str, Any]:
    return {"type": MSG_SESSION_SUMMARY, "sessionId": summary.session_id, "summary": summary.to_dict()}


def transcript_event(event: TranscriptEvent) -> Dict[str, Any]:
    return {"type": MSG_TRANSCRIPT, "sessionId": event.session_id, "event": event.to_dict()}


def error_event(message: str, code: str = ERROR_INVALID_MESSAGE) -> Dict[str, Any]:
    return {"type": MSG_ERROR, "code": code, "message": message}
