"""
Shared data types for the reading-session relay.

Field names are snake_case in Python; `to_dict()` produces the camelCase shape
used on the wire and handed to the persistence collaborator.
All times are milliseconds.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

EVENT_PARTIAL = "partial"
EVENT_FINAL = "final"
EVENT_ERROR = "error"
EVENT_TYPES = (EVENT_PARTIAL, EVENT_FINAL, EVENT_ERROR)

DEFAULT_CONFIDENCE_THRESHOLD = 0.70


@dataclass(frozen=True)
class StoryWord:
    """One expected word of a story. Supplied per story, never mutated."""
    index: int
    text: str
    text_normalized: str
    char_offset: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wordIndex": self.index,
            "text": self.text,
            "textNormalized": self.text_normalized,
            "charOffset": self.char_offset,
        }


@dataclass(frozen=True)
class TranscribedWord:
    word: str
    start_ms: float
    end_ms: float
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "word": self.word,
            "startTime": self.start_ms,
            "endTime": self.end_ms,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class AlignmentResult:
    story_word: StoryWord
    transcribed_word: Optional[TranscribedWord]
    was_correct: bool

    @property
    def word_index(self) -> int:
        return self.story_word.index


@dataclass(frozen=True)
class StruggledWord:
    word: str
    expected_word: str
    confidence: float
    start_ms: float
    end_ms: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "word": self.word,
            "expectedWord": self.expected_word,
            "confidence": self.confidence,
            "startTimeMs": self.start_ms,
            "endTimeMs": self.end_ms,
        }


@dataclass(frozen=True)
class ReadingSessionSummary:
    """Result of one finished reading session. Created once, at session end."""
    session_id: str
    child_id: str
    story_id: str
    accuracy_percent: float
    words_read: int
    words_correct: int
    duration_ms: int
    struggled_words: List[StruggledWord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "childId": self.child_id,
            "storyId": self.story_id,
            "accuracyPercent": self.accuracy_percent,
            "wordsRead": self.words_read,
            "wordsCorrect": self.words_correct,
            "durationMs": self.duration_ms,
            "struggledWords": [w.to_dict() for w in self.struggled_words],
        }


@dataclass
class StreamingSessionConfig:
    """Per-session provider configuration."""
    language: str = "en-US"          # BCP-47
    sample_rate: int = 16000         # Hz
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD
    child_mode: bool = True


@dataclass
class TranscriptEvent:
    """Streaming transcript event delivered to the handler registered for a session."""
    type: str
    session_id: str
    words: List[TranscribedWord] = field(default_factory=list)
    transcript: str = ""
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "type": self.type,
            "sessionId": self.session_id,
            "words": [w.to_dict() for w in self.words],
            "transcript": self.transcript,
        }
        if self.error is not None:
            out["error"] = self.error
        return out


@dataclass
class TranscriptionResult:
    session_id: str
    transcript: str
    words: List[TranscribedWord]
    is_final: bool
    audio_duration_ms: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "transcript": self.transcript,
            "words": [w.to_dict() for w in self.words],
            "isFinal": self.is_final,
            "audioDurationMs": self.audio_duration_ms,
        }
