"""
Per-session audio buffer for the relay.

Accumulates raw PCM chunks in arrival order and flushes them as one contiguous
region. Chunk format is not validated; PCM framing is a contract between the
client and the transcription provider. One buffer belongs to exactly one session.
"""

from typing import List

# 16 kHz mono, 16-bit = 32000 bytes/sec
SAMPLE_RATE = 16000
BYTES_PER_SAMPLE = 2


def bytes_to_duration_ms(num_bytes: int, sample_rate: int = SAMPLE_RATE) -> float:
    """Convert raw 16-bit mono byte count to duration in milliseconds."""
    if num_bytes <= 0 or sample_rate <= 0:
        return 0.0
    return (num_bytes / (sample_rate * BYTES_PER_SAMPLE)) * 1000.0


class AudioBuffer:
    """Ordered chunks plus a running byte count; cleared on flush."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        self.chunks: List[bytes] = []
        self.total_bytes = 0

    def append(self, chunk: bytes) -> None:
        """Append a raw audio chunk."""
        self.chunks.append(bytes(chunk))
        self.total_bytes += len(chunk)

    def flush(self) -> bytes:
        """Return all buffered audio as one region and reset the buffer."""
        combined = b"".join(self.chunks)
        self.chunks = []
        self.total_bytes = 0
        return combined


def create_audio_buffer(session_id: str) -> AudioBuffer:
    return AudioBuffer(session_id)


def append_chunk(buffer: AudioBuffer, chunk: bytes) -> None:
    buffer.append(chunk)


def flush_buffer(buffer: AudioBuffer) -> bytes:
    return buffer.flush()
