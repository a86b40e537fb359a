"""Abstract base classes for transcription backends."""

from abc import ABC, abstractmethod
import logging
from typing import Optional

from ..models.audio import Utterance

logger = logging.getLogger(__name__)


class AbstractTranscriptionBackend(ABC):
    """Abstract base class for speech-to-text providers in the fallback chain."""

    def __init__(self, name: str, timeout: float = 8.0, language: Optional[str] = None):
        """Initialize backend.

        Args:
            name: Provider id reported on results and in logs
            timeout: Seconds the fallback chain waits before moving on
            language: ISO-639-1 source language hint, None to auto-detect
        """
        self.name = name
        self.timeout = timeout
        self.language = language

    @abstractmethod
    async def transcribe(self, utterance: Utterance) -> str:
        """Transcribe one utterance.

        Args:
            utterance: Sealed utterance to send

        Returns:
            Raw transcript text, possibly empty

        Raises:
            ProviderError: If the provider rejects the request
        """
        pass

    async def close(self) -> None:
        """Release provider resources."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, timeout={self.timeout})"
