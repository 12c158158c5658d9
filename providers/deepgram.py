"""
Deepgram backend (pre-recorded /v1/listen endpoint).

Deepgram reports word timestamps and audio duration in SECONDS; they are
converted to milliseconds here so callers only ever see milliseconds.
"""
from typing import Any, Dict, List, Tuple

import requests

from core.models import StreamingSessionConfig, TranscribedWord
from providers.rest import RestTranscriptionProvider

DEEPGRAM_API_URL = "https://api.deepgram.com/v1"


def _seconds_to_ms(value: Any) -> int:
    return int(round(float(value or 0.0) * 1000))


def parse_deepgram_response(data: Dict[str, Any]) -> Tuple[str, List[TranscribedWord], int]:
    """Map a /v1/listen response to (transcript, words in ms, duration ms)."""
    channels = (data.get("results") or {}).get("channels") or []
    alternatives = (channels[0] or {}).get("alternatives") if channels else []
    best = (alternatives[0] if alternatives else None) or {}
    words = [
        TranscribedWord(
            word=w.get("word") or "",
            start_ms=_seconds_to_ms(w.get("start")),
            end_ms=_seconds_to_ms(w.get("end")),
            confidence=float(w.get("confidence") or 0.0),
        )
        for w in best.get("words") or []
        if w
    ]
    duration_ms = _seconds_to_ms((data.get("metadata") or {}).get("duration"))
    return (best.get("transcript") or "").strip(), words, duration_ms


class DeepgramProvider(RestTranscriptionProvider):
    name = "deepgram"

    def __init__(self, api_key: str, request_timeout: float = 30.0, model: str = "nova-2"):
        super().__init__(api_key, request_timeout=request_timeout)
        self.model = model

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Token {self.api_key}"}

    def _probe(self) -> None:
        resp = requests.get(f"{DEEPGRAM_API_URL}/projects", headers=self._headers(), timeout=self.request_timeout)
        resp.raise_for_status()

    def _transcribe(self, wav: bytes, config: StreamingSessionConfig) -> Tuple[str, List[TranscribedWord], int]:
        params = {
            "model": self.model,
            "language": config.language,
            "punctuate": "false",
            "smart_format": "false",
        }
        if config.child_mode:
            # Keep hesitations ("um", "uh") so they do not get merged into story words.
            params["filler_words"] = "true"
        headers = dict(self._headers(), **{"Content-Type": "audio/wav"})
        resp = requests.post(
            f"{DEEPGRAM_API_URL}/listen",
            params=params,
            headers=headers,
            data=wav,
            timeout=self.request_timeout,
        )
        resp.raise_for_status()
        return parse_deepgram_response(resp.json())
