"""
Unit tests for session scoring: accuracy, words read/correct, struggled words.
No audio or provider required; uses hand-built recognized words.
Run: python -m unittest tests.test_scoring -v
"""

import unittest

from core.models import TranscribedWord
from core.normalization import tokenize_story
from core.scoring import accuracy_percent, score_session

SENTENCE = "The quick brown fox jumps over the lazy dog"


def heard(text, confidence=0.95):
    return [
        TranscribedWord(word=w, start_ms=i * 400, end_ms=i * 400 + 300, confidence=confidence)
        for i, w in enumerate(text.split())
    ]


class TestScoreSession(unittest.TestCase):

    def setUp(self):
        self.story = tokenize_story(SENTENCE)

    def score(self, words, threshold=0.70, **kwargs):
        return score_session("sess-1", "child-1", "story-1", self.story, words, 3600, threshold, **kwargs)

    def test_perfect_reading(self):
        summary = self.score(heard("the quick brown fox jumps over the lazy dog"))
        self.assertEqual(summary.accuracy_percent, 100.00)
        self.assertEqual(summary.words_read, 9)
        self.assertEqual(summary.words_correct, 9)
        self.assertEqual(summary.struggled_words, [])

    def test_one_wrong_word(self):
        summary = self.score(heard("the quick brown socks jumps over the lazy dog"))
        self.assertEqual(summary.words_read, 9)
        self.assertEqual(summary.words_correct, 8)
        self.assertEqual(summary.accuracy_percent, 88.89)
        self.assertEqual(len(summary.struggled_words), 1)
        struggled = summary.struggled_words[0]
        self.assertEqual(struggled.word, "socks")
        self.assertEqual(struggled.expected_word, "fox")
        self.assertEqual(struggled.start_ms, 1200)
        self.assertEqual(struggled.end_ms, 1500)

    def test_nothing_read_is_zero(self):
        summary = self.score([])
        self.assertEqual(summary.words_read, 0)
        self.assertEqual(summary.words_correct, 0)
        self.assertEqual(summary.accuracy_percent, 0)

    def test_low_confidence_correct_word_is_struggled(self):
        words = heard("the quick brown fox jumps over the lazy dog")
        words[5] = TranscribedWord(word="over", start_ms=2000, end_ms=2300, confidence=0.4)
        summary = self.score(words)
        self.assertEqual(summary.words_correct, 9)
        self.assertEqual(summary.accuracy_percent, 100.00)
        self.assertEqual([s.word for s in summary.struggled_words], ["over"])
        self.assertEqual(summary.struggled_words[0].confidence, 0.4)

    def test_threshold_boundary_is_not_struggled(self):
        summary = self.score(heard("the quick", confidence=0.70))
        self.assertEqual(summary.struggled_words, [])

    def test_partial_reading_accuracy_uses_words_read(self):
        summary = self.score(heard("the quick brown"))
        self.assertEqual(summary.words_read, 3)
        self.assertEqual(summary.words_correct, 3)
        self.assertEqual(summary.accuracy_percent, 100.00)

    def test_identifiers_and_duration_carried(self):
        summary = self.score(heard("the"))
        self.assertEqual(summary.session_id, "sess-1")
        self.assertEqual(summary.child_id, "child-1")
        self.assertEqual(summary.story_id, "story-1")
        self.assertEqual(summary.duration_ms, 3600)

    def test_wire_shape(self):
        d = self.score(heard("the quick brown socks")).to_dict()
        for key in ("sessionId", "childId", "storyId", "accuracyPercent", "wordsRead",
                    "wordsCorrect", "durationMs", "struggledWords"):
            self.assertIn(key, d)
        self.assertEqual(d["struggledWords"][0]["expectedWord"], "fox")
        self.assertIn("startTimeMs", d["struggledWords"][0])

    def test_sequence_mode_recovers_dropped_word(self):
        words = heard("the quick fox jumps over the lazy dog")
        positional = self.score(words)
        sequence = self.score(words, alignment_mode="sequence")
        self.assertLess(positional.words_correct, sequence.words_correct)
        self.assertEqual(sequence.words_read, 8)
        self.assertEqual(sequence.accuracy_percent, 100.00)


class TestAccuracyPercent(unittest.TestCase):

    def test_rounding(self):
        self.assertEqual(accuracy_percent(2, 3), 66.67)

    def test_exact_ties_round_up(self):
        self.assertEqual(accuracy_percent(1, 32), 3.13)
        self.assertEqual(accuracy_percent(5, 32), 15.63)
        self.assertEqual(accuracy_percent(1, 8), 12.5)

    def test_whole_reading_is_exactly_100(self):
        self.assertEqual(accuracy_percent(32, 32), 100.0)

    def test_zero_read(self):
        self.assertEqual(accuracy_percent(0, 0), 0.0)


if __name__ == "__main__":
    unittest.main()
