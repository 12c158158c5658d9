import re
from typing import List, Optional

from core.models import StoryWord

# Anything that is not a word character, whitespace or apostrophe counts as punctuation.
_PUNCTUATION = re.compile(r"[^\w\s']|_")
_TOKEN = re.compile(r"\S+")


def normalize_word(text: Optional[str]) -> str:
    """
    Normalize a word for matching: lowercase, punctuation stripped.
    Inner apostrophes are kept ("Don't" -> "don't") so contractions returned by
    recognizers still compare equal; leading/trailing quotes are dropped.
    """
    if not text:
        return ""
    text = _PUNCTUATION.sub("", text.lower())
    text = re.sub(r"\s+", " ", text)
    return text.strip().strip("'")


def tokenize_story(text: Optional[str]) -> List[StoryWord]:
    """
    Split story text into StoryWords with contiguous 0-based indices and the
    character offset of each token in the source text. Tokens that normalize to
    nothing (stray dashes, ellipses) are skipped and do not consume an index.
    """
    words: List[StoryWord] = []
    for match in _TOKEN.finditer(text or ""):
        raw = match.group(0)
        norm = normalize_word(raw)
        if not norm:
            continue
        words.append(
            StoryWord(
                index=len(words),
                text=raw,
                text_normalized=norm,
                char_offset=match.start(),
            )
        )
    return words
