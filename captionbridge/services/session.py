"""PipelineSession: owns capture, VAD, recorder, workers and playback for one participant."""

import asyncio
import logging
import threading
from typing import Any, Callable, List, Optional

from pubsub import pub

from ..audio.audio_pub import AudioPublisher, VadPublisher
from ..audio.capture import AudioCapture
from ..audio.playback import AudioPlayer, PlaybackQueue
from ..audio.recorder import UtteranceRecorder
from ..audio.vad import VoiceActivityDetector
from ..broadcast.broadcaster import CaptionBroadcaster
from ..broadcast.channel import AbstractDataChannel
from ..errors import DeviceError, SettingsLockedError
from ..models.audio import Utterance
from ..models.caption import Caption
from ..models.events import AudioEvent
from ..models.session import PipelineMode, PipelineSettings, SessionStats
from ..topics import SessionTopics
from ..transcription.consumers import UtteranceConsumer
from ..transcription.publisher import CaptionPublisher
from .caption_history import CaptionHistory
from .pipeline import CaptionPipeline
from .provider_service import PipelineProviders

logger = logging.getLogger(__name__)

CaptureFactory = Callable[[Callable[[AudioEvent], None]], AudioCapture]

# Extra pre-roll kept beyond min_speech_duration
PREROLL_MARGIN_SECONDS = 0.5


def default_capture_factory(callback: Callable[[AudioEvent], None]) -> AudioCapture:
    return AudioCapture(callback=callback)


class PipelineSession:
    """Explicit start/stop lifecycle around the whole caption pipeline.

    Stopping halts capture, drops any open recording, abandons queued
    utterances (results of in-flight ones are discarded when they arrive) and
    clears the playback queue. Settings can only be changed while stopped.

    Usage:
        with PipelineSession(settings, providers, channel, player=PyAudioPlayer()) as session:
            ...
    """

    def __init__(self,
                 settings: PipelineSettings,
                 providers: PipelineProviders,
                 channel: AbstractDataChannel,
                 player: AudioPlayer,
                 capture_factory: CaptureFactory = default_capture_factory,
                 sender_name: Optional[str] = None,
                 workers: int = 4,
                 topics: Optional[SessionTopics] = None):
        self.settings = settings.validate()
        self.providers = providers
        self.channel = channel
        self.participant_id = channel.participant_id
        self.capture_factory = capture_factory
        self.topics = topics or SessionTopics.unique()

        self.audio_publisher = AudioPublisher(self.topics.audio_frame)
        self.vad_publisher = VadPublisher(self.topics)
        self.caption_publisher = CaptionPublisher(self.topics.caption)

        self.history = CaptionHistory(settings.max_captions, settings.caption_max_age_seconds)
        self.playback = PlaybackQueue(player)
        self.broadcaster = CaptionBroadcaster(
            channel, self.history, self.playback,
            sender_name=sender_name,
            on_caption=self.caption_publisher.publish_caption,
        )
        self.vad = VoiceActivityDetector(
            settings,
            on_event=self.vad_publisher.publish_vad_event,
            on_level=self.vad_publisher.publish_level,
        )
        self.recorder = self._build_recorder(settings)
        self.pipeline = CaptionPipeline(
            speaker_id=self.participant_id,
            settings=settings,
            chain=providers.chain,
            correction=providers.correction,
            synthesis=providers.synthesis,
            history=self.history,
            broadcaster=self.broadcaster,
            playback=self.playback,
            caption_publisher=self.caption_publisher,
            cache=providers.cache,
        )
        self.consumer = UtteranceConsumer("pipeline", self.pipeline.process_utterance, workers)

        self.capture: Optional[AudioCapture] = None
        self.is_running = False
        self._lock = threading.RLock()
        self._subscriptions: List[tuple] = []

    def _build_recorder(self, settings: PipelineSettings) -> UtteranceRecorder:
        return UtteranceRecorder(
            on_utterance=self._on_utterance,
            min_bytes=settings.min_utterance_bytes,
            max_duration_seconds=settings.max_utterance_seconds,
            preroll_seconds=self._preroll_seconds(settings),
        )

    @staticmethod
    def _preroll_seconds(settings: PipelineSettings) -> float:
        return settings.min_speech_duration_ms / 1000.0 + PREROLL_MARGIN_SECONDS

    # Lifecycle

    def start(self) -> None:
        """Open the microphone and start processing.

        Raises:
            DeviceError: If the microphone cannot be opened; the session stays stopped
        """
        with self._lock:
            if self.is_running:
                logger.warning("Session already running")
                return

            generation = self.pipeline.next_generation()
            logger.info(f"▶️ Starting session {self.participant_id} "
                        f"(mode={self.settings.mode.value}, generation={generation})")
            self.playback.start()
            self.consumer.start()
            self._subscribe()
            self.broadcaster.attach()

            self.capture = self.capture_factory(self.audio_publisher.publish_audio_event)
            try:
                self.capture.start_recording()
            except DeviceError:
                logger.error("Microphone unavailable, session not started")
                self._teardown()
                self.capture = None
                raise
            self.is_running = True

    def stop(self) -> None:
        with self._lock:
            if not self.is_running:
                return
            logger.info(f"⏹️ Stopping session {self.participant_id}")
            self.is_running = False
            if self.capture:
                self.capture.stop_recording()
                self.capture = None
            self._teardown()

    def _teardown(self) -> None:
        self.recorder.cancel()
        self._unsubscribe()
        self.broadcaster.detach()
        self.vad.reset()
        self.pipeline.next_generation()
        self.consumer.shutdown(drain=False)
        self.playback.clear()
        self.playback.stop()

    def _subscribe(self) -> None:
        self._subscriptions = [
            (self.vad.on_audio_frame, self.topics.audio_frame),
            (self.recorder.on_audio_frame, self.topics.audio_frame),
            (self.recorder.on_speech_started, self.topics.speech_started),
            (self.recorder.on_speech_ended, self.topics.speech_ended),
        ]
        for listener, topic in self._subscriptions:
            pub.subscribe(listener, topic)

    def _unsubscribe(self) -> None:
        for listener, topic in self._subscriptions:
            if pub.isSubscribed(listener, topic):
                pub.unsubscribe(listener, topic)
        self._subscriptions = []

    def _on_utterance(self, utterance: Utterance) -> None:
        self.consumer.submit(utterance, self.pipeline.generation)

    def __enter__(self) -> "PipelineSession":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    # Settings and mode

    def update_settings(self, **changes: Any) -> PipelineSettings:
        """Apply validated setting changes.

        Raises:
            SettingsLockedError: If the session is running
            ValueError: If a value is out of range
        """
        with self._lock:
            if self.is_running:
                raise SettingsLockedError("Stop the pipeline before changing its settings")
            settings = self.settings.with_changes(**changes)
            if settings.target_lang != self.settings.target_lang and self.providers.cache is not None:
                # Cached translations are for the old target language
                self.providers.cache.clear()

            self.settings = settings
            self.vad.configure(settings)
            self.recorder.configure(settings.min_utterance_bytes, settings.max_utterance_seconds,
                                    self._preroll_seconds(settings))
            self.history.max_captions = settings.max_captions
            self.history.max_age_seconds = settings.caption_max_age_seconds
            self.pipeline.settings = settings
            logger.info(f"Settings updated: {changes}")
            return settings

    def set_mode(self, mode: PipelineMode) -> None:
        """Switch between auto and push-to-talk, restarting if running."""
        with self._lock:
            if mode == self.settings.mode:
                return
            was_running = self.is_running
            self.stop()
            self.update_settings(mode=mode)
            if was_running:
                self.start()

    def toggle_mode(self) -> PipelineMode:
        new_mode = (PipelineMode.PUSH_TO_TALK if self.settings.mode is PipelineMode.AUTO
                    else PipelineMode.AUTO)
        self.set_mode(new_mode)
        return new_mode

    def push_to_talk_down(self) -> bool:
        if not self._push_to_talk_active():
            return False
        self.recorder.key_down()
        return True

    def push_to_talk_up(self) -> bool:
        if not self._push_to_talk_active():
            return False
        self.recorder.key_up()
        return True

    def _push_to_talk_active(self) -> bool:
        if self.settings.mode is not PipelineMode.PUSH_TO_TALK:
            logger.debug("Push-to-talk key ignored in auto mode")
            return False
        return self.is_running

    # Queries and extras

    def captions(self) -> List[Caption]:
        self.history.prune_expired()
        return self.history.list()

    def clear_captions(self) -> None:
        self.history.clear()

    def preview_voice(self, voice_key: Optional[str] = None) -> bool:
        """Synthesize and queue a sample phrase. Blocks the caller while synthesizing.

        Returns False without synthesizing while the session is stopped.
        """
        if not self.is_running:
            logger.info("Voice preview skipped, session is stopped")
            return False
        audio = asyncio.run(self.providers.synthesis.preview(
            voice_key or self.settings.voice_id, self.settings.target_lang))
        if audio is None:
            return False
        self.playback.enqueue(audio, origin="preview", sample_rate=self.providers.synthesis.sample_rate)
        return True

    def stats(self) -> SessionStats:
        cache = self.providers.cache.stats() if self.providers.cache is not None else {}
        return SessionStats(
            session_id=self.participant_id,
            is_running=self.is_running,
            mode=self.settings.mode,
            vad_state=self.vad.state,
            level=self.vad.meter,
            in_flight=self.pipeline.in_flight + self.consumer.get_pending_task_count(),
            utterances_sealed=self.recorder.utterances_sealed,
            utterances_discarded=self.recorder.utterances_discarded,
            captions_produced=self.pipeline.captions_produced,
            playback_pending=self.playback.pending,
            cache=cache,
        )
