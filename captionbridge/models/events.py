"""Event models for the pub/sub audio processing architecture."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass
class AudioEvent:
    """Audio chunk event with metadata."""
    chunk_id: str
    audio_data: bytes
    timestamp: float  # Stream time (seconds) of the first sample in the chunk
    sequence_number: int
    sample_rate: int = 16000
    channels: int = 1
    chunk_duration_ms: Optional[int] = None
    final: bool = False  # True if this is the final chunk for the session

    def __post_init__(self):
        """Calculate chunk duration if not provided."""
        if self.chunk_duration_ms is None and self.audio_data:
            # 16-bit audio (2 bytes per sample)
            bytes_per_second = self.sample_rate * self.channels * 2
            duration_seconds = len(self.audio_data) / bytes_per_second
            self.chunk_duration_ms = int(round(duration_seconds * 1000))

    @property
    def duration_seconds(self) -> float:
        return (self.chunk_duration_ms or 0) / 1000.0

    @property
    def end_time(self) -> float:
        return self.timestamp + self.duration_seconds


class VadEventType(Enum):
    """Discrete transitions emitted by the voice activity detector."""
    SPEECH_STARTED = "speech_started"
    SPEECH_ENDED = "speech_ended"


@dataclass
class VadEvent:
    """A speech start or end decision.

    For SPEECH_STARTED, ``speech_time`` is when the energy first crossed the
    threshold. For SPEECH_ENDED it is when the trailing silence began, so the
    recorder can trim the silence tail off the utterance.
    """
    event_type: VadEventType
    timestamp: float
    speech_time: float
    level: float = 0.0
