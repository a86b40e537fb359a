"""Transcription-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class CacheEntry:
    """Corrected and translated text remembered for one audio fingerprint."""
    fingerprint: str
    corrected_text: str
    translated_text: str
    created_at: float  # time.monotonic() at insert


@dataclass
class TranscriptionResult:
    """Result of running an utterance through the transcription chain."""
    original_text: str
    provider_id: str
    processing_time: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)
    utterance_id: Optional[str] = None
    cache_entry: Optional[CacheEntry] = None

    @property
    def from_cache(self) -> bool:
        return self.cache_entry is not None


@dataclass
class CorrectionResult:
    """Output of the correction and translation stage."""
    corrected_text: str
    translated_text: str
    target_lang: str
    source_lang: Optional[str] = None
    service: str = ""
    degraded: bool = False  # True when the raw transcript was passed through after a failure
