"""
Word alignment: pair expected story words with recognized words.

Two policies are available:
- positional (default): the i-th story word is compared with the i-th recognized
  word. A single dropped or inserted recognized word shifts every later position,
  so everything after it is scored against the wrong word. Kept as the default so
  summaries stay comparable with earlier sessions.
- sequence: edit-distance alignment over normalized words, with recognized words
  ordered by start time. Substitution blocks are paired by string similarity.

Both return exactly one AlignmentResult per story word.
"""
from difflib import SequenceMatcher
from typing import Dict, List, Optional, Sequence, Tuple

from rapidfuzz import fuzz

from core.models import AlignmentResult, StoryWord, TranscribedWord
from core.normalization import normalize_word

ALIGNMENT_POSITIONAL = "positional"
ALIGNMENT_SEQUENCE = "sequence"
ALIGNMENT_MODES = (ALIGNMENT_POSITIONAL, ALIGNMENT_SEQUENCE)


def align_words(
    story_words: Sequence[StoryWord],
    transcribed_words: Sequence[TranscribedWord],
) -> List[AlignmentResult]:
    """Positional alignment: correct iff transcribed[i].word.lower() == story[i].text_normalized."""
    results: List[AlignmentResult] = []
    for i, story_word in enumerate(story_words):
        heard = transcribed_words[i] if i < len(transcribed_words) else None
        was_correct = heard is not None and heard.word.lower() == story_word.text_normalized
        results.append(AlignmentResult(story_word=story_word, transcribed_word=heard, was_correct=was_correct))
    return results


def _pair_substitutions(
    ref_range: List[str],
    heard_range: List[str],
) -> Dict[int, int]:
    """Greedy best-similarity pairing inside a replace block: ref offset -> heard offset."""
    pairs: List[Tuple[int, int, float]] = []
    for ii, ref in enumerate(ref_range):
        for jj, heard in enumerate(heard_range):
            pairs.append((ii, jj, fuzz.ratio(ref, heard)))
    # Highest similarity first; ties go to the earliest positions.
    pairs.sort(key=lambda p: (-p[2], p[0], p[1]))
    used_ref, used_heard = set(), set()
    assigned: Dict[int, int] = {}
    for ii, jj, _ in pairs:
        if ii in used_ref or jj in used_heard:
            continue
        used_ref.add(ii)
        used_heard.add(jj)
        assigned[ii] = jj
    return assigned


def align_words_sequence(
    story_words: Sequence[StoryWord],
    transcribed_words: Sequence[TranscribedWord],
) -> List[AlignmentResult]:
    """
    Sequence alignment tolerant of dropped and inserted words.

    Recognized words are ordered by start time and normalized the same way as
    story words. Deleted story words get no transcribed word; inserted
    recognized words are ignored.
    """
    heard = sorted(transcribed_words, key=lambda w: w.start_ms)
    ref_norm = [w.text_normalized for w in story_words]
    heard_norm = [normalize_word(w.word) for w in heard]

    matched: List[Optional[TranscribedWord]] = [None] * len(story_words)
    matcher = SequenceMatcher(None, ref_norm, heard_norm, autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            for k in range(i2 - i1):
                matched[i1 + k] = heard[j1 + k]
        elif tag == "replace":
            assigned = _pair_substitutions(ref_norm[i1:i2], heard_norm[j1:j2])
            for ii, jj in assigned.items():
                matched[i1 + ii] = heard[j1 + jj]
        # "delete" leaves None; "insert" words have no story counterpart.

    results: List[AlignmentResult] = []
    for story_word, word in zip(story_words, matched):
        was_correct = word is not None and normalize_word(word.word) == story_word.text_normalized
        results.append(AlignmentResult(story_word=story_word, transcribed_word=word, was_correct=was_correct))
    return results


def align(
    story_words: Sequence[StoryWord],
    transcribed_words: Sequence[TranscribedWord],
    mode: str = ALIGNMENT_POSITIONAL,
) -> List[AlignmentResult]:
    """Dispatch to the alignment policy named by `mode`."""
    if mode == ALIGNMENT_POSITIONAL:
        return align_words(story_words, transcribed_words)
    if mode == ALIGNMENT_SEQUENCE:
        return align_words_sequence(story_words, transcribed_words)
    raise ValueError(f"Unknown alignment mode: {mode!r}. Must be one of: {', '.join(ALIGNMENT_MODES)}")
