"""Abstract base class for correction and translation engines."""

from abc import ABC, abstractmethod
from typing import Optional, Tuple


class AbstractCorrectionEngine(ABC):
    """Normalizes a raw transcript and translates it in one call."""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    async def correct_and_translate(self, text: str, target_lang: str,
                                    source_lang: Optional[str] = None) -> Tuple[str, str]:
        """Correct ``text`` and translate it into ``target_lang``.

        Args:
            text: Raw transcript
            target_lang: ISO-639-1 code of the listener's language
            source_lang: ISO-639-1 code of the speaker, None to auto-detect

        Returns:
            (corrected_text, translated_text)

        Raises:
            ProviderError: If the provider fails or answers with something unusable
        """
        pass
