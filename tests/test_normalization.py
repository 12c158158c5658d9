"""
Story text normalization, tokenization and the story catalog loader.
"""
import json
import os
import tempfile
import unittest

from core.normalization import normalize_word, tokenize_story
from core.stories import load_stories


class TestNormalizeWord(unittest.TestCase):

    def test_lowercase_and_punctuation(self):
        self.assertEqual(normalize_word("Dog."), "dog")
        self.assertEqual(normalize_word("\"Hello,\""), "hello")
        self.assertEqual(normalize_word("wow!?"), "wow")

    def test_contraction_keeps_inner_apostrophe(self):
        self.assertEqual(normalize_word("Don't"), "don't")
        self.assertEqual(normalize_word("'quoted'"), "quoted")

    def test_empty(self):
        self.assertEqual(normalize_word(""), "")
        self.assertEqual(normalize_word(None), "")
        self.assertEqual(normalize_word("--"), "")


class TestTokenizeStory(unittest.TestCase):

    def test_indices_and_offsets(self):
        words = tokenize_story("The quick brown fox jumps over the lazy dog.")
        self.assertEqual(len(words), 9)
        self.assertEqual([w.index for w in words], list(range(9)))
        self.assertEqual(words[3].text, "fox")
        self.assertEqual(words[3].char_offset, 16)
        self.assertEqual(words[8].text, "dog.")
        self.assertEqual(words[8].text_normalized, "dog")
        self.assertEqual(words[8].char_offset, 40)

    def test_punctuation_only_tokens_skipped(self):
        words = tokenize_story("Run - run!")
        self.assertEqual([w.text_normalized for w in words], ["run", "run"])
        self.assertEqual([w.index for w in words], [0, 1])
        self.assertEqual(words[1].char_offset, 6)


class TestLoadStories(unittest.TestCase):

    def _write(self, data):
        fd, path = tempfile.mkstemp(suffix=".json")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f)
        self.addCleanup(os.remove, path)
        return path

    def test_plain_text_and_nested_content(self):
        path = self._write([
            {"id": "fox", "text": "The quick brown fox."},
            {"id": "cat", "content": {"paragraphs": [{"sentences": [{"words": [
                {"wordIndex": 1, "text": "cat.", "textNormalized": "cat", "charOffset": 4},
                {"wordIndex": 0, "text": "The", "textNormalized": "the", "charOffset": 0},
            ]}]}]}},
        ])
        catalog = load_stories(path)
        self.assertEqual(set(catalog), {"fox", "cat"})
        self.assertEqual(len(catalog["fox"]), 4)
        self.assertEqual([w.text_normalized for w in catalog["cat"]], ["the", "cat"])
        self.assertEqual(catalog["cat"][1].char_offset, 4)

    def test_dict_keyed_by_id(self):
        path = self._write({"s1": {"text": "a b"}})
        self.assertEqual(len(load_stories(path)["s1"]), 2)

    def test_entries_without_id_skipped(self):
        path = self._write([{"title": "No id", "text": "x"}])
        self.assertEqual(load_stories(path), {})

    def test_missing_file(self):
        self.assertEqual(load_stories("/nonexistent/stories.json"), {})


if __name__ == "__main__":
    unittest.main()
