"""Generic HTTP correction and translation engine."""

import logging
from typing import Dict, Optional, Tuple

import aiohttp

from ..errors import ProviderError
from .base import AbstractCorrectionEngine

logger = logging.getLogger(__name__)


class HttpCorrectionEngine(AbstractCorrectionEngine):
    """``POST {originalText, targetLang, sourceLang?} -> {corrected, translated}``."""

    def __init__(self, url: str, headers: Optional[Dict[str, str]] = None, name: str = "http"):
        super().__init__(name)
        if not url:
            raise ValueError(f"{name} endpoint URL is required")
        self.url = url
        self.headers = dict(headers or {})

    async def correct_and_translate(self, text: str, target_lang: str,
                                    source_lang: Optional[str] = None) -> Tuple[str, str]:
        body = {"originalText": text, "targetLang": target_lang}
        if source_lang:
            body["sourceLang"] = source_lang

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(self.url, json=body, headers=self.headers) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise ProviderError(self.name, f"HTTP {response.status} - {error_text[:200]}",
                                            status=response.status)
                    payload = await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise ProviderError(self.name, f"request failed: {e}") from e
        except ValueError as e:
            raise ProviderError(self.name, f"invalid JSON response: {e}") from e

        if not isinstance(payload, dict) or not payload.get("translated"):
            raise ProviderError(self.name, f"response missing 'translated': {payload!r}")
        corrected = payload.get("corrected") or text
        return str(corrected), str(payload["translated"])
