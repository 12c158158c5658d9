"""
AssemblyAI backend (upload + transcript job + poll).

AssemblyAI reports word timestamps in milliseconds already; only the overall
audio_duration (seconds) needs converting.
"""
import time
from typing import Any, Dict, List, Tuple

import requests

from core.models import StreamingSessionConfig, TranscribedWord
from providers.rest import RestTranscriptionProvider

ASSEMBLYAI_API_URL = "https://api.assemblyai.com/v2"


def to_assemblyai_language(bcp47: str) -> str:
    """'en-US' -> 'en_us'; a bare 'en' stays 'en'."""
    return (bcp47 or "en").replace("-", "_").lower()


def parse_assemblyai_transcript(data: Dict[str, Any]) -> Tuple[str, List[TranscribedWord], int]:
    """Map a completed transcript job to (transcript, words in ms, duration ms)."""
    words = [
        TranscribedWord(
            word=w.get("text") or "",
            start_ms=int(w.get("start") or 0),
            end_ms=int(w.get("end") or 0),
            confidence=float(w.get("confidence") or 0.0),
        )
        for w in data.get("words") or []
        if w
    ]
    duration_ms = int(round(float(data.get("audio_duration") or 0.0) * 1000))
    return (data.get("text") or "").strip(), words, duration_ms


class AssemblyAIProvider(RestTranscriptionProvider):
    name = "assemblyai"

    def __init__(self, api_key: str, request_timeout: float = 30.0, poll_interval: float = 1.0):
        super().__init__(api_key, request_timeout=request_timeout)
        self.poll_interval = poll_interval

    def _headers(self) -> Dict[str, str]:
        return {"authorization": self.api_key}

    def _probe(self) -> None:
        resp = requests.get(
            f"{ASSEMBLYAI_API_URL}/transcript",
            params={"limit": 1},
            headers=self._headers(),
            timeout=self.request_timeout,
        )
        resp.raise_for_status()

    def _transcribe(self, wav: bytes, config: StreamingSessionConfig) -> Tuple[str, List[TranscribedWord], int]:
        upload = requests.post(
            f"{ASSEMBLYAI_API_URL}/upload",
            headers=self._headers(),
            data=wav,
            timeout=self.request_timeout,
        )
        upload.raise_for_status()
        job = requests.post(
            f"{ASSEMBLYAI_API_URL}/transcript",
            headers=self._headers(),
            json={
                "audio_url": upload.json()["upload_url"],
                "language_code": to_assemblyai_language(config.language),
                "punctuate": False,
                "format_text": False,
                "disfluencies": bool(config.child_mode),
            },
            timeout=self.request_timeout,
        )
        job.raise_for_status()
        transcript_id = job.json()["id"]

        deadline = time.monotonic() + self.request_timeout
        while True:
            resp = requests.get(
                f"{ASSEMBLYAI_API_URL}/transcript/{transcript_id}",
                headers=self._headers(),
                timeout=self.request_timeout,
            )
            resp.raise_for_status()
            data = resp.json()
            status = data.get("status")
            if status == "completed":
                return parse_assemblyai_transcript(data)
            if status == "error":
                raise ValueError(data.get("error") or "AssemblyAI transcript failed")
            if time.monotonic() >= deadline:
                raise requests.Timeout(f"AssemblyAI transcript {transcript_id} not ready after {self.request_timeout}s")
            time.sleep(self.poll_interval)
