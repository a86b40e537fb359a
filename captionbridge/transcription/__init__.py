"""Speech-to-text backends, fallback chain and cache."""

from .base import AbstractTranscriptionBackend
from .cache import TranscriptionCache
from .consumers import UtteranceConsumer
from .fallback_chain import TranscriptionFallbackChain
from .http_backend import (ElevenLabsTranscriptionBackend, HttpTranscriptionBackend,
                           WhisperTranscriptionBackend)
from .publisher import CaptionPublisher

__all__ = [
    "AbstractTranscriptionBackend",
    "TranscriptionCache",
    "UtteranceConsumer",
    "TranscriptionFallbackChain",
    "ElevenLabsTranscriptionBackend",
    "HttpTranscriptionBackend",
    "WhisperTranscriptionBackend",
    "CaptionPublisher",
]
