"""
Story catalog loader.

Accepts a JSON file holding either a list of stories or a dict keyed by story id.
Each story provides its words one of two ways:
  - "text": plain story text, tokenized with tokenize_story
  - "content": {"paragraphs": [{"sentences": [{"words": [{wordIndex, text, textNormalized, charOffset}]}]}]}
"""
import json
import logging
import os
from typing import Any, Dict, List

from core.models import StoryWord
from core.normalization import normalize_word, tokenize_story

logger = logging.getLogger(__name__)


def _words_from_content(content: Dict[str, Any]) -> List[StoryWord]:
    raw_words: List[Dict[str, Any]] = []
    for paragraph in content.get("paragraphs") or []:
        for sentence in paragraph.get("sentences") or []:
            raw_words.extend(sentence.get("words") or [])
    raw_words.sort(key=lambda w: w.get("wordIndex", 0))
    words: List[StoryWord] = []
    for w in raw_words:
        text = w.get("text", "")
        words.append(
            StoryWord(
                index=len(words),
                text=text,
                text_normalized=w.get("textNormalized") or normalize_word(text),
                char_offset=int(w.get("charOffset", 0)),
            )
        )
    return words


def story_words_from_entry(entry: Dict[str, Any]) -> List[StoryWord]:
    if isinstance(entry.get("content"), dict):
        return _words_from_content(entry["content"])
    return tokenize_story(entry.get("text", ""))


def load_stories(path: str) -> Dict[str, List[StoryWord]]:
    """Load story_id -> StoryWords. Missing path yields an empty catalog."""
    if not path or not os.path.isfile(path):
        logger.warning("No story catalog at %r", path)
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        entries = [dict(v, id=k) for k, v in data.items()]
    else:
        entries = list(data)

    catalog: Dict[str, List[StoryWord]] = {}
    for entry in entries:
        story_id = str(entry.get("id") or entry.get("storyId") or "")
        if not story_id:
            logger.warning("Skipping story without id: %r", entry.get("title"))
            continue
        catalog[story_id] = story_words_from_entry(entry)
    logger.info("Loaded %d stories from %s", len(catalog), path)
    return catalog
