"""Speech synthesis stage: voice resolution, timeout and failure isolation."""

import asyncio
import logging
from typing import Optional

from .base import AbstractSynthesizer
from .voices import preview_text, resolve_voice

logger = logging.getLogger(__name__)


class SpeechSynthesisStage:
    """Returns audio bytes or None. A failed synthesis never raises."""

    def __init__(self, synthesizer: Optional[AbstractSynthesizer], timeout: float = 10.0):
        self.synthesizer = synthesizer
        self.timeout = timeout

    @property
    def sample_rate(self) -> int:
        return self.synthesizer.sample_rate if self.synthesizer else 16000

    async def synthesize(self, text: str, voice_key: Optional[str] = None,
                         target_lang: Optional[str] = None) -> Optional[bytes]:
        if self.synthesizer is None or not text.strip():
            return None
        voice = resolve_voice(voice_key, target_lang)
        try:
            audio = await asyncio.wait_for(self.synthesizer.synthesize(text, voice.voice_id),
                                           timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Synthesis via {self.synthesizer.name} timed out after {self.timeout:.1f}s")
            return None
        except Exception as e:
            logger.warning(f"Synthesis via {self.synthesizer.name} failed: {e}")
            return None
        if not audio:
            logger.warning(f"Synthesis via {self.synthesizer.name} returned no audio")
            return None
        return audio

    async def preview(self, voice_key: Optional[str], target_lang: str,
                      text: Optional[str] = None) -> Optional[bytes]:
        """Synthesize a sample phrase for choosing a voice."""
        return await self.synthesize(text or preview_text(target_lang), voice_key, target_lang)
