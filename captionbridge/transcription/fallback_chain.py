"""Ordered speech-to-text fallback chain with per-provider timeouts."""

import asyncio
import logging
import time
from typing import List, Optional

from ..errors import EmptyResult, ProviderError, ProviderTimeout
from ..models.audio import Utterance
from ..models.transcription import TranscriptionResult
from .base import AbstractTranscriptionBackend
from .cache import TranscriptionCache

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 2


class TranscriptionFallbackChain:
    """Tries each backend in priority order until one returns usable text.

    Every failure is logged and swallowed here. Callers get either a
    TranscriptionResult or None, never an exception.
    """

    def __init__(self,
                 backends: List[AbstractTranscriptionBackend],
                 cache: Optional[TranscriptionCache] = None,
                 min_text_length: int = MIN_TEXT_LENGTH):
        if not backends:
            raise ValueError("At least one transcription backend is required")
        self.backends = list(backends)
        self.cache = cache
        self.min_text_length = min_text_length
        self.provider_calls = 0

    @property
    def provider_names(self) -> List[str]:
        return [backend.name for backend in self.backends]

    async def transcribe(self, utterance: Utterance) -> Optional[TranscriptionResult]:
        """Resolve an utterance to text from the cache or the first working backend.

        Returns:
            TranscriptionResult, or None when every backend failed or returned blank text
        """
        if self.cache is not None:
            entry = self.cache.get(TranscriptionCache.fingerprint(utterance.audio_bytes))
            if entry is not None:
                logger.info(f"💾 Cache hit for {utterance.id}")
                return TranscriptionResult(
                    original_text=entry.corrected_text,
                    provider_id="cache",
                    utterance_id=utterance.id,
                    cache_entry=entry,
                )

        for backend in self.backends:
            start_time = time.time()
            try:
                text = await self._call(backend, utterance)
            except (ProviderError, EmptyResult) as e:
                logger.warning(f"Transcription via {backend.name} failed for {utterance.id}: {e}")
                continue
            except Exception as e:
                logger.warning(f"Transcription via {backend.name} crashed for {utterance.id}: {e}", exc_info=True)
                continue

            processing_time = time.time() - start_time
            logger.info(f"✅ {backend.name}: '{text}' ({processing_time:.2f}s)")
            return TranscriptionResult(
                original_text=text,
                provider_id=backend.name,
                processing_time=processing_time,
                utterance_id=utterance.id,
            )

        logger.info(f"No provider produced text for {utterance.id}; dropping it")
        return None

    async def _call(self, backend: AbstractTranscriptionBackend, utterance: Utterance) -> str:
        self.provider_calls += 1
        try:
            text = await asyncio.wait_for(backend.transcribe(utterance), timeout=backend.timeout)
        except asyncio.TimeoutError as e:
            raise ProviderTimeout(backend.name, backend.timeout) from e
        text = (text or "").strip()
        if len(text) < self.min_text_length:
            raise EmptyResult(f"{backend.name} returned {text!r}")
        return text

    async def close(self) -> None:
        for backend in self.backends:
            await backend.close()
