"""Abstract base class for speech synthesizers."""

from abc import ABC, abstractmethod


class AbstractSynthesizer(ABC):
    """Renders text to 16-bit PCM (or a WAV container)."""

    sample_rate = 16000

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    async def synthesize(self, text: str, voice_id: str) -> bytes:
        """Render ``text`` with the provider voice ``voice_id``.

        Raises:
            ProviderError: If the provider fails
        """
        pass
