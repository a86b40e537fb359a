"""ElevenLabs text-to-speech."""

import logging

import aiohttp

from ..errors import ProviderError
from .base import AbstractSynthesizer

logger = logging.getLogger(__name__)


class ElevenLabsSynthesizer(AbstractSynthesizer):
    """Requests raw ``pcm_16000`` so clips go straight to the playback queue."""

    DEFAULT_BASE_URL = "https://api.elevenlabs.io"

    def __init__(self, api_key: str, model: str = "eleven_turbo_v2_5",
                 base_url: str = DEFAULT_BASE_URL, stability: float = 0.5,
                 similarity_boost: float = 0.75):
        super().__init__("elevenlabs")
        if not api_key:
            raise ValueError("ElevenLabs API key is required")
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.voice_settings = {"stability": stability, "similarity_boost": similarity_boost}

    async def synthesize(self, text: str, voice_id: str) -> bytes:
        url = f"{self.base_url}/v1/text-to-speech/{voice_id}"
        headers = {"xi-api-key": self.api_key, "Content-Type": "application/json", "Accept": "audio/pcm"}
        body = {"text": text, "model_id": self.model, "voice_settings": self.voice_settings}
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(url, json=body, headers=headers,
                                        params={"output_format": "pcm_16000"}) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise ProviderError(self.name, f"HTTP {response.status} - {error_text[:200]}",
                                            status=response.status)
                    audio = await response.read()
        except aiohttp.ClientError as e:
            raise ProviderError(self.name, f"request failed: {e}") from e

        logger.debug(f"Synthesized {len(text)} chars with voice {voice_id}: {len(audio)} bytes")
        return audio
