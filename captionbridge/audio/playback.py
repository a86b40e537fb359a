"""Sequential playback of synthesized clips."""

import io
import logging
import queue
import threading
import wave
from abc import ABC, abstractmethod
from typing import Optional

import pyaudio

from ..models.caption import PlaybackEntry

logger = logging.getLogger(__name__)


class AudioPlayer(ABC):
    """Plays one clip to completion."""

    @abstractmethod
    def play(self, entry: PlaybackEntry) -> None:
        """Block until ``entry`` has finished playing or ``interrupt`` is called."""

    def interrupt(self) -> None:
        """Cut the current clip short. Players that cannot do so let it finish."""

    def resume(self) -> None:
        """Undo ``interrupt`` so later clips play in full."""

    def close(self) -> None:
        pass


class PyAudioPlayer(AudioPlayer):
    """Plays 16-bit PCM or WAV clips on the default output device."""

    def __init__(self, output_device_index: Optional[int] = None, chunk_size: int = 1024):
        self.output_device_index = output_device_index
        self.chunk_size = chunk_size
        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.interrupted = threading.Event()

    def play(self, entry: PlaybackEntry) -> None:
        if self.pyaudio_instance is None:
            self.pyaudio_instance = pyaudio.PyAudio()

        pcm, sample_rate, channels = self._decode(entry)
        stream = self.pyaudio_instance.open(
            format=pyaudio.paInt16,
            channels=channels,
            rate=sample_rate,
            output=True,
            output_device_index=self.output_device_index,
        )
        try:
            step = self.chunk_size * 2 * channels
            for offset in range(0, len(pcm), step):
                if self.interrupted.is_set():
                    logger.debug(f"Clip #{entry.sequence_number} interrupted")
                    break
                stream.write(pcm[offset:offset + step])
        finally:
            stream.stop_stream()
            stream.close()

    def interrupt(self) -> None:
        self.interrupted.set()

    def resume(self) -> None:
        self.interrupted.clear()

    @staticmethod
    def _decode(entry: PlaybackEntry):
        data = entry.audio_ref
        if data[:4] == b"RIFF":
            with wave.open(io.BytesIO(data), "rb") as wf:
                return wf.readframes(wf.getnframes()), wf.getframerate(), wf.getnchannels()
        return data, entry.sample_rate, 1

    def close(self) -> None:
        if self.pyaudio_instance:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None


class PlaybackQueue:
    """FIFO of clips played one at a time by a single consumer thread.

    A clip that fails to play is logged and skipped; playback continues with
    the next entry. ``stop()`` interrupts the current clip; if the player
    cannot be interrupted the consumer finishes that clip first, and a
    ``start()`` in the meantime keeps that same consumer instead of adding
    a second one.
    """

    POLL_SECONDS = 0.1

    def __init__(self, player: AudioPlayer):
        self.player = player
        self.entries: "queue.Queue[PlaybackEntry]" = queue.Queue()
        self.worker_thread: Optional[threading.Thread] = None
        self.is_playing = False
        self._sequence = 0
        self._lock = threading.Lock()
        # Guards the consumer's exit decision against a concurrent start()
        self._state_lock = threading.Lock()
        self._stop_requested = threading.Event()
        self._consumer_alive = False
        self.played = 0
        self.failed = 0

    def start(self) -> None:
        with self._state_lock:
            self._stop_requested.clear()
            self.player.resume()
            if self._consumer_alive:
                logger.debug("Playback consumer still running, reusing it")
                return
            self._consumer_alive = True
            self.worker_thread = threading.Thread(target=self._play_loop, daemon=True)
            self.worker_thread.name = "PlaybackThread"
            self.worker_thread.start()

    def enqueue(self, audio: bytes, origin: str = "local", text: str = "",
                sample_rate: int = 16000) -> PlaybackEntry:
        with self._lock:
            self._sequence += 1
            entry = PlaybackEntry(audio_ref=audio, origin=origin, text=text,
                                  sample_rate=sample_rate, sequence_number=self._sequence)
        self.entries.put(entry)
        logger.debug(f"Queued clip #{entry.sequence_number} from {origin} ({len(audio)} bytes)")
        return entry

    @property
    def pending(self) -> int:
        return self.entries.qsize()

    def clear(self) -> int:
        """Drop every clip that has not started playing yet."""
        dropped = 0
        while True:
            try:
                self.entries.get_nowait()
            except queue.Empty:
                break
            self.entries.task_done()
            dropped += 1
        if dropped:
            logger.info(f"Cleared {dropped} pending clips")
        return dropped

    def stop(self, timeout: float = 2.0) -> None:
        with self._state_lock:
            if not self._consumer_alive:
                return
            self._stop_requested.set()
            self.player.interrupt()
            thread = self.worker_thread
        if thread is not threading.current_thread():
            thread.join(timeout)
        if thread.is_alive():
            logger.warning("Playback thread still finishing a clip")

    def _should_continue(self) -> bool:
        with self._state_lock:
            if not self._stop_requested.is_set():
                return True
            self._consumer_alive = False
            self.player.close()
            return False

    def _play_loop(self) -> None:
        while self._should_continue():
            try:
                entry = self.entries.get(timeout=self.POLL_SECONDS)
            except queue.Empty:
                continue
            try:
                self.is_playing = True
                self.player.play(entry)
                self.played += 1
            except Exception as e:
                self.failed += 1
                logger.error(f"Playback of clip #{entry.sequence_number} failed: {e}")
            finally:
                self.is_playing = False
                self.entries.task_done()

    def wait_idle(self, timeout: float = 5.0) -> bool:
        """Block until the queue is drained. Returns False on timeout."""
        done = threading.Event()

        def _join():
            self.entries.join()
            done.set()

        threading.Thread(target=_join, daemon=True).start()
        return done.wait(timeout)
