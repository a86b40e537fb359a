"""Data models for the captionbridge pipeline."""

from .audio import AudioStats, AudioFrame, Utterance
from .caption import Caption, PlaybackEntry
from .events import AudioEvent, VadEvent, VadEventType
from .session import PipelineMode, PipelineSettings, SessionStats, VadState
from .transcription import CacheEntry, CorrectionResult, TranscriptionResult

__all__ = [
    "AudioStats",
    "AudioFrame",
    "Utterance",
    "Caption",
    "PlaybackEntry",
    "AudioEvent",
    "VadEvent",
    "VadEventType",
    "PipelineMode",
    "PipelineSettings",
    "SessionStats",
    "VadState",
    "CacheEntry",
    "CorrectionResult",
    "TranscriptionResult",
]
