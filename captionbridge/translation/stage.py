"""Correction and translation stage with graceful degradation."""

import asyncio
import logging
from typing import Optional

from ..languages import normalize
from ..models.transcription import CorrectionResult
from .base import AbstractCorrectionEngine

logger = logging.getLogger(__name__)


class CorrectionStage:
    """Wraps an engine with a timeout and never raises.

    On any engine failure the raw transcript is used as both the corrected and
    the translated text, and the result is flagged ``degraded`` so it is not
    cached.
    """

    def __init__(self, engine: Optional[AbstractCorrectionEngine], timeout: float = 8.0):
        self.engine = engine
        self.timeout = timeout

    async def correct_and_translate(self, raw_text: str, target_lang: str,
                                    source_lang: Optional[str] = None) -> CorrectionResult:
        if source_lang and normalize(source_lang) == normalize(target_lang):
            return CorrectionResult(raw_text, raw_text, target_lang, source_lang, service="passthrough")

        if self.engine is None:
            return self._degraded(raw_text, target_lang, source_lang, "no engine configured")

        try:
            corrected, translated = await asyncio.wait_for(
                self.engine.correct_and_translate(raw_text, target_lang, source_lang),
                timeout=self.timeout)
        except asyncio.TimeoutError:
            return self._degraded(raw_text, target_lang, source_lang, f"timed out after {self.timeout:.1f}s")
        except Exception as e:
            return self._degraded(raw_text, target_lang, source_lang, str(e))

        corrected = (corrected or "").strip()
        translated = (translated or "").strip()
        if not translated:
            return self._degraded(raw_text, target_lang, source_lang, "blank translation")

        logger.debug(f"{self.engine.name}: '{raw_text}' -> '{translated}' ({target_lang})")
        return CorrectionResult(corrected or raw_text, translated, target_lang, source_lang,
                                service=self.engine.name)

    def _degraded(self, raw_text: str, target_lang: str, source_lang: Optional[str],
                  reason: str) -> CorrectionResult:
        name = self.engine.name if self.engine else "none"
        logger.warning(f"Correction via {name} failed ({reason}); using raw transcript")
        return CorrectionResult(raw_text, raw_text, target_lang, source_lang, service=name, degraded=True)
