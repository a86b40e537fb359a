"""Generic HTTP speech synthesis endpoint."""

import base64
import binascii
import logging
from typing import Dict, Optional

import aiohttp

from ..errors import ProviderError
from .base import AbstractSynthesizer

logger = logging.getLogger(__name__)


class HttpSynthesizer(AbstractSynthesizer):
    """``POST {text, voiceId} -> audio bytes`` or ``{"audioBase64": ...}``."""

    def __init__(self, url: str, headers: Optional[Dict[str, str]] = None, name: str = "http"):
        super().__init__(name)
        if not url:
            raise ValueError(f"{name} endpoint URL is required")
        self.url = url
        self.headers = dict(headers or {})

    async def synthesize(self, text: str, voice_id: str) -> bytes:
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(self.url, json={"text": text, "voiceId": voice_id},
                                        headers=self.headers) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise ProviderError(self.name, f"HTTP {response.status} - {error_text[:200]}",
                                            status=response.status)
                    if response.content_type == "application/json":
                        payload = await response.json()
                        return self._decode_base64(payload)
                    return await response.read()
        except aiohttp.ClientError as e:
            raise ProviderError(self.name, f"request failed: {e}") from e

    def _decode_base64(self, payload) -> bytes:
        encoded = payload.get("audioBase64") if isinstance(payload, dict) else None
        if not encoded:
            raise ProviderError(self.name, "JSON response without audioBase64")
        try:
            return base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ProviderError(self.name, f"invalid base64 audio: {e}") from e
