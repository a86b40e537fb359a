"""Text-to-speech for spoken translations."""

from .base import AbstractSynthesizer
from .elevenlabs_synthesizer import ElevenLabsSynthesizer
from .http_synthesizer import HttpSynthesizer
from .stage import SpeechSynthesisStage
from .voices import DEFAULT_VOICE_BY_LANG, VOICES, Voice, resolve_voice

__all__ = [
    "AbstractSynthesizer",
    "ElevenLabsSynthesizer",
    "HttpSynthesizer",
    "SpeechSynthesisStage",
    "DEFAULT_VOICE_BY_LANG",
    "VOICES",
    "Voice",
    "resolve_voice",
]
