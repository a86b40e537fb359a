"""Session-related data models."""

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, Optional


class VadState(Enum):
    """Voice activity detector state."""
    IDLE = "idle"
    SPEAKING = "speaking"
    TRAILING_SILENCE = "trailing_silence"


class PipelineMode(Enum):
    """How utterances are delimited for the local participant."""
    AUTO = "auto"
    PUSH_TO_TALK = "push_to_talk"


# Accepted ranges for the user-facing tuning knobs
THRESHOLD_RANGE = (0.005, 0.10)
SILENCE_DURATION_RANGE_MS = (500, 4000)
MIN_SPEECH_DURATION_FLOOR_MS = 300


@dataclass
class PipelineSettings:
    """Tuning and feature switches for one pipeline session."""
    threshold: float = 0.02
    silence_duration_ms: int = 1500
    min_speech_duration_ms: int = 300
    max_utterance_seconds: float = 10.0
    min_utterance_bytes: int = 6400
    smoothing: float = 0.3
    target_lang: str = "en"
    source_lang: Optional[str] = None
    voice_id: Optional[str] = None
    mode: PipelineMode = PipelineMode.AUTO
    translate_speech: bool = False
    play_own_translation: bool = True
    max_captions: int = 10
    caption_max_age_seconds: float = 30.0

    def validate(self) -> "PipelineSettings":
        """Check every field against its accepted range.

        Returns:
            self, so calls can be chained

        Raises:
            ValueError: naming the first offending field
        """
        low, high = THRESHOLD_RANGE
        if not low <= self.threshold <= high:
            raise ValueError(f"threshold must be within [{low}, {high}], got {self.threshold}")
        low, high = SILENCE_DURATION_RANGE_MS
        if not low <= self.silence_duration_ms <= high:
            raise ValueError(
                f"silence_duration_ms must be within [{low}, {high}], got {self.silence_duration_ms}")
        if self.min_speech_duration_ms < MIN_SPEECH_DURATION_FLOOR_MS:
            raise ValueError(
                f"min_speech_duration_ms must be at least {MIN_SPEECH_DURATION_FLOOR_MS}, "
                f"got {self.min_speech_duration_ms}")
        if self.max_utterance_seconds <= 0:
            raise ValueError("max_utterance_seconds must be positive")
        if self.min_utterance_bytes < 0:
            raise ValueError("min_utterance_bytes must not be negative")
        if not 0.0 <= self.smoothing < 1.0:
            raise ValueError(f"smoothing must be within [0, 1), got {self.smoothing}")
        if not self.target_lang:
            raise ValueError("target_lang is required")
        if self.max_captions < 1:
            raise ValueError("max_captions must be at least 1")
        if not isinstance(self.mode, PipelineMode):
            raise ValueError(f"mode must be a PipelineMode, got {self.mode!r}")
        return self

    def with_changes(self, **changes: Any) -> "PipelineSettings":
        """Return a validated copy with ``changes`` applied."""
        if "mode" in changes and isinstance(changes["mode"], str):
            changes["mode"] = PipelineMode(changes["mode"])
        return replace(self, **changes).validate()

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "PipelineSettings":
        """Build settings from a config section, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in (values or {}).items() if k in known}
        if isinstance(kwargs.get("mode"), str):
            kwargs["mode"] = PipelineMode(kwargs["mode"])
        return cls(**kwargs).validate()


@dataclass
class SessionStats:
    """Snapshot of a running pipeline session."""
    session_id: str
    is_running: bool
    mode: PipelineMode
    vad_state: VadState
    level: float = 0.0
    in_flight: int = 0
    utterances_sealed: int = 0
    utterances_discarded: int = 0
    captions_produced: int = 0
    playback_pending: int = 0
    cache: Dict[str, Any] = field(default_factory=dict)
