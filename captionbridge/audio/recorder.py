"""Cuts the frame stream into utterances using VAD events or push-to-talk keys."""

import logging
import threading
import uuid
from typing import Callable, List, Optional

from ..models.audio import BYTES_PER_SAMPLE, AudioFrame, Utterance
from ..models.events import AudioEvent, VadEvent
from .buffer import RollingAudioBuffer

logger = logging.getLogger(__name__)


class UtteranceRecorder:
    """Accumulates frames between a start and an end trigger and seals them.

    A trigger is either a SPEECH_STARTED/SPEECH_ENDED pair from the VAD or a
    push-to-talk key press and release. Recordings started by the VAD are
    seeded from the pre-roll buffer back to the first voiced frame, and the
    trailing silence is trimmed off when speech ends. Sealed utterances below
    ``min_bytes`` are discarded, and a recording that reaches
    ``max_duration_seconds`` is force-sealed and continued in a new utterance
    while the trigger is still held.
    """

    def __init__(self,
                 on_utterance: Callable[[Utterance], None],
                 sample_rate: int = 16000,
                 channels: int = 1,
                 min_bytes: int = 6400,
                 max_duration_seconds: float = 10.0,
                 preroll_seconds: float = 1.0):
        self.on_utterance = on_utterance
        self.sample_rate = sample_rate
        self.channels = channels
        self.min_bytes = min_bytes
        self.max_duration_seconds = max_duration_seconds
        self.bytes_per_second = sample_rate * channels * BYTES_PER_SAMPLE

        self.preroll = RollingAudioBuffer(preroll_seconds, sample_rate, channels)
        self._lock = threading.Lock()
        self._frames: List[AudioFrame] = []
        self._recording = False
        self._trigger_active = False
        self._started_at = 0.0
        self._last_frame_timestamp: Optional[float] = None
        self._stream_time = 0.0

        self.utterances_sealed = 0
        self.utterances_discarded = 0

    def configure(self, min_bytes: int, max_duration_seconds: float, preroll_seconds: float) -> None:
        """Apply new limits. Only called while the pipeline is stopped."""
        with self._lock:
            self.min_bytes = min_bytes
            self.max_duration_seconds = max_duration_seconds
            self.preroll = RollingAudioBuffer(preroll_seconds, self.sample_rate, self.channels)

    @property
    def is_recording(self) -> bool:
        with self._lock:
            return self._recording

    # Listeners. Frames and VAD events may arrive in either order for the same tick.

    def on_audio_frame(self, event: AudioEvent) -> None:
        sealed = []
        with self._lock:
            self._stream_time = event.end_time
            self.preroll.add_audio_chunk(event.audio_data, event.timestamp)
            if not self._recording:
                return
            if self._last_frame_timestamp is not None and event.timestamp <= self._last_frame_timestamp:
                # Already seeded from the pre-roll
                return
            self._append(AudioFrame(event.audio_data, event.timestamp, event.sequence_number))

            if self._recorded_seconds() >= self.max_duration_seconds:
                logger.info(f"Utterance reached {self.max_duration_seconds:.1f}s ceiling, force-sealing")
                sealed.append(self._seal())
                if self._trigger_active:
                    self._open(event.end_time, [])

        self._forward(sealed)

    def on_speech_started(self, event: VadEvent) -> None:
        with self._lock:
            self._trigger_active = True
            if self._recording:
                return
            self._open(event.speech_time, self.preroll.frames_since(event.speech_time))

    def on_speech_ended(self, event: VadEvent) -> None:
        sealed = []
        with self._lock:
            self._trigger_active = False
            if not self._recording:
                return
            self._frames = [f for f in self._frames if f.timestamp < event.speech_time]
            sealed.append(self._seal())
        self._forward(sealed)

    def key_down(self) -> None:
        """Push-to-talk press: start recording from the current stream time."""
        with self._lock:
            self._trigger_active = True
            if self._recording:
                return
            self._open(self._stream_time, [])

    def key_up(self) -> None:
        """Push-to-talk release: seal whatever was recorded."""
        sealed = []
        with self._lock:
            self._trigger_active = False
            if not self._recording:
                return
            sealed.append(self._seal())
        self._forward(sealed)

    def cancel(self) -> None:
        """Drop any open recording without forwarding it."""
        with self._lock:
            if self._recording:
                logger.debug(f"Cancelled open recording with {len(self._frames)} frames")
            self._recording = False
            self._trigger_active = False
            self._frames = []
            self._last_frame_timestamp = None
            self.preroll.clear()

    def _open(self, started_at: float, seed: List[AudioFrame]) -> None:
        self._recording = True
        self._started_at = started_at
        self._frames = []
        self._last_frame_timestamp = None
        for frame in seed:
            self._append(frame)
        logger.debug(f"Recording opened at {started_at:.3f}s with {len(seed)} pre-roll frames")

    def _append(self, frame: AudioFrame) -> None:
        self._frames.append(frame)
        self._last_frame_timestamp = frame.timestamp

    def _recorded_seconds(self) -> float:
        return sum(len(f.data) for f in self._frames) / self.bytes_per_second

    def _seal(self) -> Optional[Utterance]:
        frames = self._frames
        self._recording = False
        self._frames = []
        self._last_frame_timestamp = None

        size = sum(len(f.data) for f in frames)
        if size < self.min_bytes:
            self.utterances_discarded += 1
            logger.debug(f"Discarded utterance of {size} bytes (< {self.min_bytes})")
            return None

        utterance = Utterance(
            id=f"utt_{uuid.uuid4().hex[:12]}",
            started_at=self._started_at,
            chunks=tuple(f.data for f in frames),
            sample_rate=self.sample_rate,
            channels=self.channels,
        )
        self.utterances_sealed += 1
        logger.info(f"🎙️ Sealed utterance {utterance.id}: {utterance.duration_seconds:.2f}s, {size} bytes")
        return utterance

    def _forward(self, sealed: List[Optional[Utterance]]) -> None:
        for utterance in sealed:
            if utterance is not None:
                self.on_utterance(utterance)
