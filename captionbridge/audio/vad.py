"""Energy-based voice activity detection over the microphone frame stream.

The detector runs once per captured frame (one 50ms tick at the default
chunk size) and is the only writer of its VadState. It emits discrete
SPEECH_STARTED / SPEECH_ENDED events and, independently, a 0-100 level for
the UI meter.
"""

import logging
from typing import Callable, Optional

import numpy as np

from ..models.events import AudioEvent, VadEvent, VadEventType
from ..models.session import PipelineMode, PipelineSettings, VadState

logger = logging.getLogger(__name__)

# RMS that drives the level meter to 100
METER_FULL_SCALE = 0.25


def compute_rms(audio_data: bytes) -> float:
    """RMS of 16-bit PCM normalised to [0, 1]."""
    if len(audio_data) < 2:
        return 0.0
    samples = np.frombuffer(audio_data[: len(audio_data) // 2 * 2], dtype=np.int16)
    normalized = samples.astype(np.float32) / 32768.0
    return float(np.sqrt(np.mean(normalized ** 2)))


def level_to_meter(level: float) -> float:
    return float(min(100.0, max(0.0, level / METER_FULL_SCALE * 100.0)))


class VoiceActivityDetector:
    """Turns a smoothed energy level into speech start and end decisions.

    Usage:
        vad = VoiceActivityDetector(settings, on_event=publisher.publish_vad_event)
        for event in frames:
            vad.process_frame(event)
    """

    def __init__(self,
                 settings: PipelineSettings,
                 on_event: Optional[Callable[[VadEvent], None]] = None,
                 on_level: Optional[Callable[[float, VadState], None]] = None):
        self.on_event = on_event
        self.on_level = on_level
        self.configure(settings)

        self.state = VadState.IDLE
        self.level = 0.0
        self.meter = 0.0
        self._speech_start_time: Optional[float] = None
        self._silence_start_time: Optional[float] = None

    def configure(self, settings: PipelineSettings) -> None:
        """Apply new settings. Only called while the pipeline is stopped."""
        self.threshold = settings.threshold
        self.min_speech_duration = settings.min_speech_duration_ms / 1000.0
        self.silence_duration = settings.silence_duration_ms / 1000.0
        self.smoothing = settings.smoothing
        self.mode = settings.mode

    @property
    def emits_events(self) -> bool:
        return self.mode is PipelineMode.AUTO

    def process_frame(self, event: AudioEvent) -> Optional[VadEvent]:
        """Advance the state machine by one frame.

        Returns:
            The VadEvent emitted for this frame, if any
        """
        rms = compute_rms(event.audio_data)
        self.level = self.smoothing * self.level + (1.0 - self.smoothing) * rms
        self.meter = level_to_meter(self.level)

        emitted = None
        if self.emits_events:
            emitted = self._advance(self.level > self.threshold, event.timestamp, event.end_time)

        if self.on_level:
            self.on_level(self.meter, self.state)
        if emitted and self.on_event:
            self.on_event(emitted)
        return emitted

    # pubsub listener signature
    def on_audio_frame(self, event: AudioEvent) -> None:
        self.process_frame(event)

    def _advance(self, above: bool, frame_start: float, now: float) -> Optional[VadEvent]:
        if self.state is VadState.IDLE:
            if not above:
                self._speech_start_time = None
                return None
            if self._speech_start_time is None:
                self._speech_start_time = frame_start
            if now - self._speech_start_time >= self.min_speech_duration:
                self.state = VadState.SPEAKING
                logger.debug(f"Speech started at {self._speech_start_time:.3f}s")
                return VadEvent(VadEventType.SPEECH_STARTED, timestamp=now,
                                speech_time=self._speech_start_time, level=self.meter)
            return None

        if self.state is VadState.SPEAKING:
            if not above:
                self.state = VadState.TRAILING_SILENCE
                self._silence_start_time = frame_start
                return self._check_silence(now)
            return None

        # TRAILING_SILENCE
        if above:
            # Voice resumed, cancel the pending end
            self.state = VadState.SPEAKING
            self._silence_start_time = None
            return None
        return self._check_silence(now)

    def _check_silence(self, now: float) -> Optional[VadEvent]:
        if now - self._silence_start_time < self.silence_duration:
            return None
        speech_end = self._silence_start_time
        logger.debug(f"Speech ended at {speech_end:.3f}s after {now - speech_end:.2f}s of silence")
        self.state = VadState.IDLE
        self._speech_start_time = None
        self._silence_start_time = None
        return VadEvent(VadEventType.SPEECH_ENDED, timestamp=now,
                        speech_time=speech_end, level=self.meter)

    def reset(self) -> None:
        """Return to IDLE and forget any partial speech or silence."""
        self.state = VadState.IDLE
        self.level = 0.0
        self.meter = 0.0
        self._speech_start_time = None
        self._silence_start_time = None
