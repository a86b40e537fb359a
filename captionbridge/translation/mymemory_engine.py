"""MyMemory free translation API."""

import logging
from typing import Optional, Tuple

import aiohttp

from ..errors import ProviderError
from ..languages import normalize
from .base import AbstractCorrectionEngine

logger = logging.getLogger(__name__)


class MyMemoryCorrectionEngine(AbstractCorrectionEngine):
    """Translation only. The corrected text is the raw transcript."""

    DEFAULT_URL = "https://api.mymemory.translated.net/get"

    def __init__(self, url: str = DEFAULT_URL, default_source_lang: str = "en"):
        super().__init__("mymemory")
        self.url = url
        self.default_source_lang = default_source_lang

    async def correct_and_translate(self, text: str, target_lang: str,
                                    source_lang: Optional[str] = None) -> Tuple[str, str]:
        source = normalize(source_lang) or self.default_source_lang
        params = {"q": text, "langpair": f"{source}|{normalize(target_lang)}"}
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(self.url, params=params) as response:
                    if response.status != 200:
                        raise ProviderError(self.name, f"HTTP {response.status}", status=response.status)
                    payload = await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise ProviderError(self.name, f"request failed: {e}") from e
        except ValueError as e:
            raise ProviderError(self.name, f"invalid JSON response: {e}") from e

        translated = (payload.get("responseData") or {}).get("translatedText")
        if not translated:
            raise ProviderError(self.name, f"no translation in response (status {payload.get('responseStatus')})")
        return text, translated
