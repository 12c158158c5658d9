"""
Tests for the per-session audio buffer: append in arrival order, flush as one region.
Run: python -m unittest tests.test_audio_buffer -v
"""

import unittest

from streaming.audio_buffer import (
    AudioBuffer,
    append_chunk,
    bytes_to_duration_ms,
    create_audio_buffer,
    flush_buffer,
)


class TestAudioBuffer(unittest.TestCase):

    def test_create_is_empty(self):
        buf = create_audio_buffer("s1")
        self.assertEqual(buf.session_id, "s1")
        self.assertEqual(buf.chunks, [])
        self.assertEqual(buf.total_bytes, 0)

    def test_append_then_flush_yields_one_region(self):
        buf = create_audio_buffer("s1")
        for size in (10, 20, 5):
            append_chunk(buf, b"\x01" * size)
        self.assertEqual(buf.total_bytes, 35)
        out = flush_buffer(buf)
        self.assertEqual(len(out), 35)
        self.assertEqual(buf.total_bytes, 0)
        self.assertEqual(buf.chunks, [])

    def test_second_flush_is_empty(self):
        buf = create_audio_buffer("s1")
        append_chunk(buf, b"\x00" * 10)
        flush_buffer(buf)
        self.assertEqual(flush_buffer(buf), b"")

    def test_arrival_order_preserved(self):
        buf = AudioBuffer("s1")
        buf.append(b"ab")
        buf.append(b"cd")
        buf.append(b"e")
        self.assertEqual(buf.flush(), b"abcde")

    def test_no_format_validation(self):
        """Odd-length chunk (half a sample) is accepted as-is."""
        buf = AudioBuffer("s1")
        buf.append(b"\x00" * 3)
        self.assertEqual(len(buf.flush()), 3)

    def test_buffers_are_independent(self):
        a, b = create_audio_buffer("a"), create_audio_buffer("b")
        a.append(b"\x00" * 8)
        self.assertEqual(b.total_bytes, 0)
        self.assertEqual(b.flush(), b"")
        self.assertEqual(len(a.flush()), 8)


class TestDurationHelpers(unittest.TestCase):

    def test_one_second_at_16k(self):
        self.assertAlmostEqual(bytes_to_duration_ms(32000), 1000.0, delta=0.01)

    def test_other_sample_rate(self):
        self.assertAlmostEqual(bytes_to_duration_ms(16000, sample_rate=8000), 1000.0, delta=0.01)

    def test_zero_bytes(self):
        self.assertEqual(bytes_to_duration_ms(0), 0.0)


if __name__ == "__main__":
    unittest.main()
