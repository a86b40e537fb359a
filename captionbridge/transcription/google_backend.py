"""Google Speech-to-Text transcription backend."""

import asyncio
import functools
import logging
import time
from typing import Optional

from .base import AbstractTranscriptionBackend
from ..errors import ProviderError
from ..languages import to_google_code
from ..models.audio import Utterance

from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.oauth2 import service_account

logger = logging.getLogger(__name__)


class GoogleSpeechBackend(AbstractTranscriptionBackend):
    """Google Speech-to-Text API backend.

    The client library is synchronous, so ``recognize`` runs in the default
    executor and the fallback chain's timeout still applies.
    """

    def __init__(self,
                 credentials_path: Optional[str] = None,
                 timeout: float = 8.0,
                 language: Optional[str] = None,
                 sample_rate: int = 16000,
                 use_enhanced: bool = True,
                 enable_automatic_punctuation: bool = True):
        """Initialize Google Speech backend.

        Args:
            credentials_path: Path to Google Cloud service account JSON file
            timeout: Per-request deadline in seconds
            language: ISO-639-1 source language, defaults to en-US
            sample_rate: Sample rate of the PCM sent
            use_enhanced: Whether to use enhanced model (costs more but better quality)
            enable_automatic_punctuation: Enable automatic punctuation
        """
        super().__init__("google", timeout, language)
        if not credentials_path:
            raise ValueError("Google credentials path is required - cannot initialize without credentials")
        self.credentials_path = credentials_path
        self.use_enhanced = use_enhanced
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.client = None
        self.project_id = None
        self.config = speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=sample_rate,
            language_code=to_google_code(language),
            use_enhanced=self.use_enhanced,
            enable_automatic_punctuation=self.enable_automatic_punctuation,
            model="latest_short",
        )

    def initialize(self) -> None:
        """Load credentials and create the client. Invalid credentials raise."""
        logger.info(f"Loading Google credentials from: {self.credentials_path}")
        credentials = service_account.Credentials.from_service_account_file(self.credentials_path)
        self.client = speech.SpeechClient(credentials=credentials)
        self.project_id = credentials.project_id
        logger.info(f"Using Google Cloud project: {self.project_id}")

    async def transcribe(self, utterance: Utterance) -> str:
        if self.client is None:
            self.initialize()
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, functools.partial(self._recognize, utterance.id, utterance.audio_bytes))

    def _recognize(self, utterance_id: str, audio_bytes: bytes) -> str:
        start_time = time.time()
        audio = speech.RecognitionAudio(content=audio_bytes)
        try:
            response = self.client.recognize(config=self.config, audio=audio, timeout=self.timeout)
        except gax_exceptions.DeadlineExceeded as e:
            raise ProviderError(self.name, f"recognize deadline exceeded for {utterance_id}") from e
        except gax_exceptions.ServiceUnavailable as e:
            raise ProviderError(self.name, f"service unavailable for {utterance_id}") from e
        except gax_exceptions.GoogleAPICallError as e:
            raise ProviderError(self.name, f"API error for {utterance_id}: {e}") from e

        processing_time = time.time() - start_time
        if not response.results:
            logger.debug(f"No speech detected in {utterance_id} ({processing_time:.3f}s)")
            return ""

        transcript = " ".join(
            result.alternatives[0].transcript.strip()
            for result in response.results if result.alternatives
        )
        logger.debug(f"Google transcript for {utterance_id}: '{transcript}' ({processing_time:.3f}s)")
        return transcript
