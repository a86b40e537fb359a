"""Rolling pre-roll buffer of recent audio frames."""

import logging
import threading
from collections import deque
from typing import List

from ..models.audio import AudioFrame

logger = logging.getLogger(__name__)


class RollingAudioBuffer:
    """Keeps the last ``duration_seconds`` of frames so a recording can start in the past.

    The VAD only confirms speech after ``min_speech_duration``, so the recorder
    seeds each utterance from this buffer back to the moment the energy first
    crossed the threshold.
    """

    def __init__(self, duration_seconds: float, sample_rate: int = 16000, channels: int = 1):
        """Initialize rolling audio buffer.

        Args:
            duration_seconds: How many seconds of audio to keep in buffer
            sample_rate: Audio sample rate
            channels: Number of audio channels
        """
        self.duration_seconds = duration_seconds
        self.sample_rate = sample_rate
        self.channels = channels
        self.bytes_per_sample = 2  # 16-bit audio

        self.bytes_per_second = sample_rate * channels * self.bytes_per_sample
        self.max_buffer_bytes = int(self.bytes_per_second * duration_seconds)

        self.buffer = deque()
        self.lock = threading.Lock()
        self.total_bytes = 0
        self.frame_counter = 0

    def add_audio_chunk(self, audio_data: bytes, timestamp: float) -> None:
        """Add audio chunk to the rolling buffer."""
        if not audio_data:
            return

        with self.lock:
            frame = AudioFrame(
                data=audio_data,
                timestamp=timestamp,
                frame_number=self.frame_counter
            )
            self.frame_counter += 1

            self.buffer.append(frame)
            self.total_bytes += len(audio_data)

            while self.total_bytes > self.max_buffer_bytes and len(self.buffer) > 1:
                old_frame = self.buffer.popleft()
                self.total_bytes -= len(old_frame.data)

    def frames_since(self, start_time: float) -> List[AudioFrame]:
        """Frames whose audio overlaps ``start_time`` or later, oldest first."""
        with self.lock:
            selected = []
            for frame in self.buffer:
                frame_end = frame.timestamp + len(frame.data) / self.bytes_per_second
                if frame_end > start_time:
                    selected.append(frame)
            return selected

    def clear(self) -> None:
        """Clear the buffer."""
        with self.lock:
            self.buffer.clear()
            self.total_bytes = 0
            self.frame_counter = 0
