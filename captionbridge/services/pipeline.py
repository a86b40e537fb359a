"""Per-utterance processing: transcribe, correct, caption, broadcast, speak."""

import logging
import threading
from typing import Optional

from ..audio.playback import PlaybackQueue
from ..broadcast.broadcaster import CaptionBroadcaster
from ..models.audio import Utterance
from ..models.caption import Caption
from ..models.session import PipelineSettings
from ..synthesis.stage import SpeechSynthesisStage
from ..transcription.cache import TranscriptionCache
from ..transcription.fallback_chain import TranscriptionFallbackChain
from ..transcription.publisher import CaptionPublisher
from ..translation.stage import CorrectionStage
from .caption_history import CaptionHistory

logger = logging.getLogger(__name__)


class CaptionPipeline:
    """One parameterized pipeline for captions, with optional spoken translation.

    ``process_utterance`` is run by the consumer workers, several at once.
    Each call carries the session generation it was submitted under; once the
    session is stopped the generation moves on and late results are dropped
    instead of being applied.
    """

    def __init__(self,
                 speaker_id: str,
                 settings: PipelineSettings,
                 chain: TranscriptionFallbackChain,
                 correction: CorrectionStage,
                 synthesis: SpeechSynthesisStage,
                 history: CaptionHistory,
                 broadcaster: CaptionBroadcaster,
                 playback: PlaybackQueue,
                 caption_publisher: Optional[CaptionPublisher] = None,
                 cache: Optional[TranscriptionCache] = None):
        self.speaker_id = speaker_id
        self.settings = settings
        self.chain = chain
        self.correction = correction
        self.synthesis = synthesis
        self.history = history
        self.broadcaster = broadcaster
        self.playback = playback
        self.caption_publisher = caption_publisher
        self.cache = cache

        self.generation = 0
        self._lock = threading.Lock()
        self.in_flight = 0
        self.captions_produced = 0
        self.results_discarded = 0

    def next_generation(self) -> int:
        with self._lock:
            self.generation += 1
            return self.generation

    def is_stale(self, generation: int) -> bool:
        return generation != self.generation

    async def process_utterance(self, utterance: Utterance, generation: int) -> Optional[Caption]:
        """Run one utterance end to end. Never raises."""
        with self._lock:
            self.in_flight += 1
        try:
            return await self._process(utterance, generation)
        except Exception as e:
            logger.error(f"Processing {utterance.id} failed: {e}", exc_info=True)
            return None
        finally:
            with self._lock:
                self.in_flight -= 1

    async def _process(self, utterance: Utterance, generation: int) -> Optional[Caption]:
        settings = self.settings
        result = await self.chain.transcribe(utterance)
        if result is None:
            return None
        if self._discard_if_stale(utterance, generation):
            return None

        if result.from_cache:
            corrected_text = result.cache_entry.corrected_text
            translated_text = result.cache_entry.translated_text
        else:
            correction = await self.correction.correct_and_translate(
                result.original_text, settings.target_lang, settings.source_lang)
            corrected_text = correction.corrected_text
            translated_text = correction.translated_text
            if self.cache is not None and not correction.degraded:
                self.cache.put(TranscriptionCache.fingerprint(utterance.audio_bytes),
                               corrected_text, translated_text)

        if self._discard_if_stale(utterance, generation):
            return None

        caption = Caption.create(
            speaker_id=self.speaker_id,
            original_text=corrected_text,
            translated_text=translated_text,
            target_lang=settings.target_lang,
        )
        self.history.add(caption)
        with self._lock:
            self.captions_produced += 1
        logger.info(f"📝 Caption {caption.id}: '{corrected_text}' -> '{translated_text}' via {result.provider_id}")
        self.broadcaster.send_caption(caption)
        if self.caption_publisher:
            self.caption_publisher.publish_caption(caption)

        if settings.translate_speech:
            await self._speak(caption, settings, generation)
        return caption

    async def _speak(self, caption: Caption, settings: PipelineSettings, generation: int) -> None:
        audio = await self.synthesis.synthesize(caption.translated_text, settings.voice_id, settings.target_lang)
        if audio is None or self.is_stale(generation):
            # Caption stays up without audio
            return
        if settings.play_own_translation:
            self.playback.enqueue(audio, origin="local", text=caption.translated_text,
                                  sample_rate=self.synthesis.sample_rate)
        self.broadcaster.send_translation_audio(
            audio, caption.translated_text,
            original_text=caption.original_text,
            source_lang=settings.source_lang,
            sample_rate=self.synthesis.sample_rate,
        )

    def _discard_if_stale(self, utterance: Utterance, generation: int) -> bool:
        if not self.is_stale(generation):
            return False
        with self._lock:
            self.results_discarded += 1
        logger.info(f"Discarding result for {utterance.id}: pipeline was stopped")
        return True
