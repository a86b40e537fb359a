"""Audio-related data models."""

import io
import wave
from dataclasses import dataclass, field
from datetime import datetime
from typing import Tuple

BYTES_PER_SAMPLE = 2  # 16-bit PCM


@dataclass
class AudioStats:
    """Audio recording statistics."""
    is_recording: bool
    duration_seconds: float
    sample_rate: int
    chunk_size: int
    total_chunks: int


@dataclass
class AudioFrame:
    """A single audio frame with timestamp."""
    data: bytes
    timestamp: float  # Stream time of the first sample in this frame
    frame_number: int


@dataclass(frozen=True)
class Utterance:
    """One sealed span of speech, handed to the transcription chain as an immutable blob."""
    id: str
    started_at: float
    chunks: Tuple[bytes, ...]
    sample_rate: int = 16000
    channels: int = 1
    mime_type: str = "audio/pcm"
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def audio_bytes(self) -> bytes:
        """Raw PCM payload in capture order."""
        return b"".join(self.chunks)

    @property
    def size(self) -> int:
        return sum(len(chunk) for chunk in self.chunks)

    @property
    def duration_seconds(self) -> float:
        bytes_per_second = self.sample_rate * self.channels * BYTES_PER_SAMPLE
        return self.size / bytes_per_second

    def to_wav(self) -> bytes:
        """Wrap the PCM payload in a WAV container for providers that need one."""
        buffer = io.BytesIO()
        with wave.open(buffer, "wb") as wf:
            wf.setnchannels(self.channels)
            wf.setsampwidth(BYTES_PER_SAMPLE)
            wf.setframerate(self.sample_rate)
            for chunk in self.chunks:
                wf.writeframes(chunk)
        return buffer.getvalue()
