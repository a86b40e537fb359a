"""Caption and playback data models."""

import time
import uuid
from dataclasses import dataclass, field
from typing import Optional


def epoch_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Caption:
    """One caption line, owned by the participant that spoke it."""
    id: str
    speaker_id: str
    original_text: str
    translated_text: str
    target_lang: str
    timestamp: int  # Unix epoch milliseconds

    @classmethod
    def create(cls, speaker_id: str, original_text: str, translated_text: str,
               target_lang: str, timestamp: Optional[int] = None) -> "Caption":
        return cls(
            id=f"{epoch_ms()}-{uuid.uuid4().hex[:9]}",
            speaker_id=speaker_id,
            original_text=original_text,
            translated_text=translated_text,
            target_lang=target_lang,
            timestamp=timestamp if timestamp is not None else epoch_ms(),
        )

    def age_seconds(self, now_ms: Optional[int] = None) -> float:
        now_ms = now_ms if now_ms is not None else epoch_ms()
        return (now_ms - self.timestamp) / 1000.0


@dataclass
class PlaybackEntry:
    """A clip waiting in, or taken from, the session playback queue."""
    audio_ref: bytes
    enqueued_at: float = field(default_factory=time.monotonic)
    origin: str = "local"  # "local" or the remote sender id
    text: str = ""
    sample_rate: int = 16000
    sequence_number: int = 0
