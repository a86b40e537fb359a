"""HTTP speech-to-text backends: a generic endpoint, ElevenLabs Scribe and OpenAI Whisper."""

import logging
from typing import Dict, Optional

import aiohttp

from ..errors import ProviderError
from ..languages import normalize, to_scribe_code
from ..models.audio import Utterance
from .base import AbstractTranscriptionBackend

logger = logging.getLogger(__name__)


async def _read_text_field(provider: str, response: aiohttp.ClientResponse) -> str:
    if response.status != 200:
        error_text = await response.text()
        raise ProviderError(provider, f"HTTP {response.status} - {error_text[:200]}", status=response.status)
    try:
        payload = await response.json(content_type=None)
    except ValueError as e:
        raise ProviderError(provider, f"invalid JSON response: {e}") from e
    if not isinstance(payload, dict):
        raise ProviderError(provider, "response is not a JSON object")
    return str(payload.get("text") or "")


class HttpTranscriptionBackend(AbstractTranscriptionBackend):
    """Generic provider: ``POST audio/octet-stream -> {"text": ...}``."""

    def __init__(self, name: str, url: str, timeout: float = 8.0,
                 headers: Optional[Dict[str, str]] = None, language: Optional[str] = None):
        super().__init__(name, timeout, language)
        self.url = url
        self.headers = dict(headers or {})

    async def transcribe(self, utterance: Utterance) -> str:
        headers = {"Content-Type": "application/octet-stream", **self.headers}
        params = {"sampleRate": str(utterance.sample_rate)}
        if self.language:
            params["language"] = self.language
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(self.url, data=utterance.audio_bytes,
                                        headers=headers, params=params) as response:
                    return await _read_text_field(self.name, response)
        except aiohttp.ClientError as e:
            raise ProviderError(self.name, f"request failed: {e}") from e


class ElevenLabsTranscriptionBackend(AbstractTranscriptionBackend):
    """ElevenLabs Scribe speech-to-text."""

    DEFAULT_BASE_URL = "https://api.elevenlabs.io"

    def __init__(self, api_key: str, timeout: float = 8.0, language: Optional[str] = None,
                 model: str = "scribe_v1", base_url: str = DEFAULT_BASE_URL):
        super().__init__("elevenlabs", timeout, language)
        if not api_key:
            raise ValueError("ElevenLabs API key is required")
        self.api_key = api_key
        self.model = model
        self.url = f"{base_url.rstrip('/')}/v1/speech-to-text"

    async def transcribe(self, utterance: Utterance) -> str:
        form = aiohttp.FormData()
        form.add_field("file", utterance.to_wav(), filename="audio.wav", content_type="audio/wav")
        form.add_field("model_id", self.model)
        language_code = to_scribe_code(self.language)
        if language_code:
            form.add_field("language_code", language_code)

        logger.debug(f"Scribe request for {utterance.id}: {utterance.size} bytes, language={language_code or 'auto'}")
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(self.url, data=form, headers={"xi-api-key": self.api_key}) as response:
                    return await _read_text_field(self.name, response)
        except aiohttp.ClientError as e:
            raise ProviderError(self.name, f"request failed: {e}") from e


class WhisperTranscriptionBackend(AbstractTranscriptionBackend):
    """OpenAI Whisper transcription endpoint."""

    DEFAULT_BASE_URL = "https://api.openai.com"

    def __init__(self, api_key: str, timeout: float = 8.0, language: Optional[str] = None,
                 model: str = "whisper-1", base_url: str = DEFAULT_BASE_URL):
        super().__init__("whisper", timeout, language)
        if not api_key:
            raise ValueError("OpenAI API key is required")
        self.api_key = api_key
        self.model = model
        self.url = f"{base_url.rstrip('/')}/v1/audio/transcriptions"

    async def transcribe(self, utterance: Utterance) -> str:
        form = aiohttp.FormData()
        form.add_field("file", utterance.to_wav(), filename="audio.wav", content_type="audio/wav")
        form.add_field("model", self.model)
        form.add_field("response_format", "json")
        language = normalize(self.language)
        if language:
            form.add_field("language", language)

        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(self.url, data=form, headers=headers) as response:
                    return await _read_text_field(self.name, response)
        except aiohttp.ClientError as e:
            raise ProviderError(self.name, f"request failed: {e}") from e
