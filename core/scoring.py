"""
Reading-session scoring: reduce word alignment into an accuracy summary.

- words_read: story words that have a recognized word paired with them
- words_correct: pairs marked correct by the aligner
- accuracy_percent: words_correct / words_read * 100, 2 decimals; 0 when nothing was read
- struggled_words: recognized words that were wrong OR below the confidence threshold

Pure function of its inputs; no I/O.
"""
import math
from typing import List, Sequence

from alignment.word_alignment import ALIGNMENT_POSITIONAL, align
from core.models import (
    DEFAULT_CONFIDENCE_THRESHOLD,
    AlignmentResult,
    ReadingSessionSummary,
    StoryWord,
    StruggledWord,
    TranscribedWord,
)


def accuracy_percent(words_correct: int, words_read: int) -> float:
    if words_read <= 0:
        return 0.0
    # Half-up to 2 decimals (round() would send 3.125 to 3.12).
    return math.floor(words_correct / words_read * 100 * 100 + 0.5) / 100


def struggled_words(
    alignment: Sequence[AlignmentResult],
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
) -> List[StruggledWord]:
    """Confidence gate is independent of correctness: a correct but mumbled word still counts."""
    out: List[StruggledWord] = []
    for r in alignment:
        heard = r.transcribed_word
        if heard is None:
            continue
        if r.was_correct and heard.confidence >= confidence_threshold:
            continue
        out.append(
            StruggledWord(
                word=heard.word,
                expected_word=r.story_word.text_normalized,
                confidence=heard.confidence,
                start_ms=heard.start_ms,
                end_ms=heard.end_ms,
            )
        )
    return out


def score_session(
    session_id: str,
    child_id: str,
    story_id: str,
    story_words: Sequence[StoryWord],
    transcribed_words: Sequence[TranscribedWord],
    duration_ms: int,
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
    alignment_mode: str = ALIGNMENT_POSITIONAL,
) -> ReadingSessionSummary:
    """
    Score one reading session.

    Args:
        story_words: Expected words, in story order.
        transcribed_words: Recognized words, in recognition order.
        duration_ms: Session audio duration in milliseconds.
        confidence_threshold: Words below this confidence are reported as struggled.
        alignment_mode: "positional" (default) or "sequence".

    Returns:
        ReadingSessionSummary
    """
    alignment = align(story_words, transcribed_words, mode=alignment_mode)
    words_read = sum(1 for r in alignment if r.transcribed_word is not None)
    words_correct = sum(1 for r in alignment if r.was_correct)

    return ReadingSessionSummary(
        session_id=session_id,
        child_id=child_id,
        story_id=story_id,
        accuracy_percent=accuracy_percent(words_correct, words_read),
        words_read=words_read,
        words_correct=words_correct,
        duration_ms=int(duration_ms),
        struggled_words=struggled_words(alignment, confidence_threshold),
    )
