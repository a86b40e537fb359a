"""Pytest configuration and fixtures for captionbridge tests."""

import asyncio
import logging
import time
import threading
from typing import List, Optional, Sequence, Tuple
from unittest.mock import Mock, patch

import numpy as np
import pytest
from pubsub import pub

from captionbridge.audio.playback import AudioPlayer
from captionbridge.errors import ProviderError
from captionbridge.models.audio import Utterance
from captionbridge.models.caption import PlaybackEntry
from captionbridge.models.events import AudioEvent
from captionbridge.synthesis.base import AbstractSynthesizer
from captionbridge.transcription.base import AbstractTranscriptionBackend
from captionbridge.translation.base import AbstractCorrectionEngine


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SAMPLE_RATE = 16000
CHUNK_SIZE = 800  # 50ms


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests with no I/O")
    config.addinivalue_line("markers", "integration: several components wired together")
    config.addinivalue_line("markers", "slow: tests that take more than a couple of seconds")
    config.addinivalue_line("markers", "hardware: needs a real microphone")


@pytest.fixture(autouse=True)
def clean_pubsub():
    """Drop every pubsub listener a test left behind."""
    yield
    pub.unsubAll()


def generate_audio(pattern: str = "sine", duration_seconds: float = 1.0,
                   sample_rate: int = SAMPLE_RATE, amplitude: float = 0.3) -> bytes:
    """16-bit mono PCM test signal: 'sine', 'noise' or 'silence'."""
    samples = int(round(duration_seconds * sample_rate))
    if pattern == "sine":
        t = np.arange(samples) / sample_rate
        wave_data = amplitude * np.sin(2 * np.pi * 440 * t)
    elif pattern == "noise":
        wave_data = np.random.default_rng(0).uniform(-amplitude, amplitude, samples)
    elif pattern == "silence":
        wave_data = np.zeros(samples)
    else:
        raise ValueError(f"Unknown pattern: {pattern}")
    return (wave_data * 32767).astype(np.int16).tobytes()


def frames_from_segments(segments: Sequence[Tuple[str, float]], chunk_size: int = CHUNK_SIZE,
                         sample_rate: int = SAMPLE_RATE, amplitude: float = 0.3) -> List[AudioEvent]:
    """Cut a sequence of (pattern, seconds) segments into capture-style AudioEvents."""
    events = []
    samples_so_far = 0
    for pattern, seconds in segments:
        audio = generate_audio(pattern, seconds, sample_rate, amplitude)
        step = chunk_size * 2
        for offset in range(0, len(audio), step):
            chunk = audio[offset:offset + step]
            events.append(AudioEvent(
                chunk_id=f"chunk_{len(events) + 1}",
                audio_data=chunk,
                timestamp=samples_so_far / sample_rate,
                sequence_number=len(events) + 1,
                sample_rate=sample_rate,
            ))
            samples_so_far += len(chunk) // 2
    return events


@pytest.fixture
def audio_test_data():
    return generate_audio


@pytest.fixture
def make_frames():
    return frames_from_segments


@pytest.fixture
def make_utterance():
    def _make(size: int = 3000, fill: bytes = b"\x01", utterance_id: str = "utt_test") -> Utterance:
        return Utterance(id=utterance_id, started_at=0.0, chunks=(fill * size,))
    return _make


class FakeTranscriptionBackend(AbstractTranscriptionBackend):
    """Answers with fixed text, or raises, after an optional delay."""

    def __init__(self, name: str, text: str = "hello world", delay: float = 0.0,
                 error: Optional[Exception] = None, timeout: float = 1.0):
        super().__init__(name, timeout)
        self.text = text
        self.delay = delay
        self.error = error
        self.calls = 0
        self._lock = threading.Lock()

    async def transcribe(self, utterance: Utterance) -> str:
        with self._lock:
            self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.text


class FakeCorrectionEngine(AbstractCorrectionEngine):
    def __init__(self, prefix: str = "", delay: float = 0.0, error: Optional[Exception] = None):
        super().__init__("fake")
        self.prefix = prefix
        self.delay = delay
        self.error = error
        self.calls = 0

    async def correct_and_translate(self, text, target_lang, source_lang=None):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return text.capitalize(), f"{self.prefix}[{target_lang}] {text}"


class FakeSynthesizer(AbstractSynthesizer):
    def __init__(self, audio: bytes = b"\x00\x01" * 800, error: Optional[Exception] = None):
        super().__init__("fake")
        self.audio = audio
        self.error = error
        self.requests = []

    async def synthesize(self, text: str, voice_id: str) -> bytes:
        self.requests.append((text, voice_id))
        if self.error:
            raise self.error
        return self.audio


class RecordingPlayer(AudioPlayer):
    """Records play order and (start, end) times instead of making sound."""

    def __init__(self, play_seconds: float = 0.0, fail_on: Sequence[str] = (), interruptible: bool = True):
        self.play_seconds = play_seconds
        self.interruptible = interruptible
        self.interrupted = threading.Event()
        self.fail_on = set(fail_on)
        self.played: List[PlaybackEntry] = []
        self.spans: List[Tuple[float, float]] = []
        self.active = 0
        self.max_active = 0
        self.closed = 0
        self._lock = threading.Lock()

    def play(self, entry: PlaybackEntry) -> None:
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        start = time.monotonic()
        try:
            if self.play_seconds and self.interruptible:
                self.interrupted.wait(self.play_seconds)
            elif self.play_seconds:
                time.sleep(self.play_seconds)
            if entry.text in self.fail_on:
                raise ProviderError("player", f"cannot play {entry.text}")
            self.played.append(entry)
        finally:
            self.spans.append((start, time.monotonic()))
            with self._lock:
                self.active -= 1

    def interrupt(self) -> None:
        self.interrupted.set()

    def resume(self) -> None:
        self.interrupted.clear()

    def close(self) -> None:
        self.closed += 1


@pytest.fixture
def fake_backend():
    return FakeTranscriptionBackend


@pytest.fixture
def fake_engine():
    return FakeCorrectionEngine


@pytest.fixture
def fake_synthesizer():
    return FakeSynthesizer


@pytest.fixture
def recording_player():
    return RecordingPlayer()


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        mock_stream.read.return_value = b'\x00' * (CHUNK_SIZE * 2)
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


def wait_until(predicate, timeout: float = 5.0, interval: float = 0.02) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` elapses."""
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def wait_for():
    return wait_until


@pytest.fixture
def player_factory():
    return RecordingPlayer
