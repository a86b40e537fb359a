"""Named synthesis voices and per-language defaults."""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from ..languages import normalize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Voice:
    key: str
    voice_id: str
    name: str
    gender: str


VOICES: Dict[str, Voice] = {v.key: v for v in (
    Voice("female-sarah", "EXAVITQu4vr4xnSDxMaL", "Sarah", "female"),
    Voice("female-laura", "FGY2WhTYpPnrIDTdsKH5", "Laura", "female"),
    Voice("female-alice", "Xb7hH8MSUJpSbSDYk0k2", "Alice", "female"),
    Voice("female-matilda", "XrExE9yKIg1WjnnlVkGX", "Matilda", "female"),
    Voice("female-lily", "pFZP5JQG7iQjIQuC4Bku", "Lily", "female"),
    Voice("female-jessica", "cgSgspJ2msm6clMCkdW9", "Jessica", "female"),
    Voice("male-daniel", "onwK4e9ZLuTAKqWW03F9", "Daniel", "male"),
    Voice("male-george", "JBFqnCBsd6RMkjVDRZzb", "George", "male"),
    Voice("male-charlie", "IKne3meq5aSn9XLyUdCD", "Charlie", "male"),
    Voice("male-liam", "TX3LPaxmHKxFdv7VOQHJ", "Liam", "male"),
    Voice("male-brian", "nPczCjzI2devNBz1zQrb", "Brian", "male"),
    Voice("male-chris", "iP95p4xoKVk53GoZ742B", "Chris", "male"),
    Voice("neutral-river", "SAz9YHcvj6GT2YYXdXww", "River", "neutral"),
    Voice("neutral-alloy", "CwhRBWXzGAHq8TQ4Fs17", "Roger", "neutral"),
)}

FALLBACK_VOICE = "female-sarah"

DEFAULT_VOICE_BY_LANG = {
    "en": "female-sarah",
    "ru": "male-daniel",
    "uk": "male-daniel",
    "es": "female-sarah",
    "de": "male-george",
    "fr": "female-matilda",
    "it": "female-sarah",
    "pt": "female-sarah",
    "zh": "female-sarah",
    "ja": "female-sarah",
    "ko": "female-sarah",
    "ar": "male-daniel",
}

# Sample phrases for voice preview
PREVIEW_TEXT = {
    "en": "Hello! This is how I sound.",
    "ru": "Привет! Вот так звучит мой голос.",
    "uk": "Привіт! Ось так звучить мій голос.",
    "es": "¡Hola! Así suena mi voz.",
    "de": "Hallo! So klingt meine Stimme.",
    "fr": "Bonjour ! Voici ma voix.",
}


def resolve_voice(voice_key: Optional[str], target_lang: Optional[str] = None) -> Voice:
    """Voice for ``voice_key``, else the language default, else Sarah.

    A raw provider voice id is accepted too.
    """
    if voice_key:
        if voice_key in VOICES:
            return VOICES[voice_key]
        for voice in VOICES.values():
            if voice.voice_id == voice_key:
                return voice
        logger.debug(f"Unknown voice '{voice_key}', using language default")
    default_key = DEFAULT_VOICE_BY_LANG.get(normalize(target_lang), FALLBACK_VOICE)
    return VOICES[default_key]


def preview_text(target_lang: Optional[str]) -> str:
    return PREVIEW_TEXT.get(normalize(target_lang), PREVIEW_TEXT["en"])
