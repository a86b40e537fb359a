"""Builds the provider stack (chain, correction, synthesis) from configuration."""

import logging
from dataclasses import dataclass
from typing import List, Optional

from ..config import CaptionBridgeConfig
from ..synthesis.base import AbstractSynthesizer
from ..synthesis.elevenlabs_synthesizer import ElevenLabsSynthesizer
from ..synthesis.http_synthesizer import HttpSynthesizer
from ..synthesis.stage import SpeechSynthesisStage
from ..transcription.base import AbstractTranscriptionBackend
from ..transcription.cache import TranscriptionCache
from ..transcription.fallback_chain import TranscriptionFallbackChain
from ..transcription.google_backend import GoogleSpeechBackend
from ..transcription.http_backend import (ElevenLabsTranscriptionBackend, HttpTranscriptionBackend,
                                          WhisperTranscriptionBackend)
from ..translation.base import AbstractCorrectionEngine
from ..translation.chatgpt_engine import ChatGPTCorrectionEngine
from ..translation.http_engine import HttpCorrectionEngine
from ..translation.mymemory_engine import MyMemoryCorrectionEngine
from ..translation.stage import CorrectionStage

logger = logging.getLogger(__name__)

TRANSCRIPTION_PROVIDERS = ("elevenlabs", "google", "whisper", "http")


@dataclass
class PipelineProviders:
    """Everything a session needs that talks to the outside world."""
    chain: TranscriptionFallbackChain
    correction: CorrectionStage
    synthesis: SpeechSynthesisStage
    cache: Optional[TranscriptionCache] = None


class ProviderService:
    """Reads the ``providers`` and ``cache`` sections and instantiates providers.

    A transcription provider whose credentials are missing is skipped with a
    warning; an empty chain is a configuration error.
    """

    def __init__(self, config: CaptionBridgeConfig):
        self.config = config

    def build(self) -> PipelineProviders:
        cache = self.build_cache()
        settings = self.config.pipeline_settings()
        backends = self.build_transcription_backends(settings.source_lang)
        if not backends:
            raise ValueError("No transcription provider could be configured "
                             f"(order: {self.config.transcription_order()})")
        chain = TranscriptionFallbackChain(backends, cache=cache)
        logger.info(f"Transcription chain: {' -> '.join(chain.provider_names)}")

        correction = CorrectionStage(
            self.build_correction_engine(),
            timeout=float(self.config.get('providers.correction.timeout_seconds', 8.0)))
        synthesis = SpeechSynthesisStage(
            self.build_synthesizer(),
            timeout=float(self.config.get('providers.synthesis.timeout_seconds', 10.0)))
        return PipelineProviders(chain=chain, correction=correction, synthesis=synthesis, cache=cache)

    def build_cache(self) -> Optional[TranscriptionCache]:
        if not self.config.get('cache.enabled', True):
            return None
        return TranscriptionCache(
            max_entries=int(self.config.get('cache.max_entries', 2000)),
            ttl_seconds=float(self.config.get('cache.ttl_seconds', 3600)),
        )

    def build_transcription_backends(self, language: Optional[str] = None) -> List[AbstractTranscriptionBackend]:
        backends = []
        for name in self.config.transcription_order():
            try:
                backends.append(self._build_transcription_backend(name, language))
            except (ValueError, FileNotFoundError) as e:
                logger.warning(f"Skipping transcription provider '{name}': {e}")
        return backends

    def _build_transcription_backend(self, name: str, language: Optional[str]) -> AbstractTranscriptionBackend:
        timeout = self.config.provider_timeout(name)
        if name == "elevenlabs":
            return ElevenLabsTranscriptionBackend(
                api_key=self.config.require_api_key("elevenlabs"),
                timeout=timeout,
                language=language,
                model=self.config.get('providers.elevenlabs.stt_model', 'scribe_v1'),
                base_url=self.config.get('providers.elevenlabs.base_url',
                                         ElevenLabsTranscriptionBackend.DEFAULT_BASE_URL),
            )
        if name == "whisper":
            return WhisperTranscriptionBackend(
                api_key=self.config.require_api_key("openai"),
                timeout=timeout,
                language=language,
                model=self.config.get('providers.whisper.model', 'whisper-1'),
                base_url=self.config.get('providers.openai.base_url',
                                         WhisperTranscriptionBackend.DEFAULT_BASE_URL),
            )
        if name == "google":
            return GoogleSpeechBackend(
                credentials_path=self.config.get_google_credentials_path(),
                timeout=timeout,
                language=language,
                use_enhanced=self.config.get('providers.google.use_enhanced_model', True),
                enable_automatic_punctuation=self.config.get(
                    'providers.google.enable_automatic_punctuation', True),
            )
        if name == "http":
            url = self.config.get('providers.http.transcription_url')
            if not url:
                raise ValueError("providers.http.transcription_url is not set")
            return HttpTranscriptionBackend("http", url, timeout=timeout, language=language,
                                            headers=self.config.get('providers.http.headers'))
        raise ValueError(f"Unknown transcription provider '{name}' (expected one of {TRANSCRIPTION_PROVIDERS})")

    def build_correction_engine(self) -> Optional[AbstractCorrectionEngine]:
        engine = self.config.get('providers.correction.engine', 'chatgpt')
        try:
            if engine == "chatgpt":
                return ChatGPTCorrectionEngine(
                    api_key=self.config.require_api_key("openai"),
                    model=self.config.get('providers.correction.model', 'gpt-4o-mini'))
            if engine == "mymemory":
                return MyMemoryCorrectionEngine()
            if engine == "http":
                return HttpCorrectionEngine(self.config.get('providers.http.correction_url'),
                                            headers=self.config.get('providers.http.headers'))
        except ValueError as e:
            logger.warning(f"Correction engine '{engine}' unavailable: {e}; captions will use raw text")
            return None
        if engine not in (None, "none"):
            logger.warning(f"Unknown correction engine '{engine}'")
        return None

    def build_synthesizer(self) -> Optional[AbstractSynthesizer]:
        engine = self.config.get('providers.synthesis.engine', 'elevenlabs')
        try:
            if engine == "elevenlabs":
                return ElevenLabsSynthesizer(
                    api_key=self.config.require_api_key("elevenlabs"),
                    model=self.config.get('providers.synthesis.model', 'eleven_turbo_v2_5'),
                    base_url=self.config.get('providers.elevenlabs.base_url',
                                             ElevenLabsSynthesizer.DEFAULT_BASE_URL),
                )
            if engine == "http":
                return HttpSynthesizer(self.config.get('providers.http.synthesis_url'),
                                       headers=self.config.get('providers.http.headers'))
        except ValueError as e:
            logger.warning(f"Synthesizer '{engine}' unavailable: {e}; spoken translation disabled")
            return None
        if engine not in (None, "none"):
            logger.warning(f"Unknown synthesis engine '{engine}'")
        return None
