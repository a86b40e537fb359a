"""Language code tables shared by the providers."""

from typing import Optional

# ISO-639-1 -> ISO-639-3 as expected by ElevenLabs Scribe
SCRIBE_LANGUAGE_CODES = {
    "en": "eng",
    "ru": "rus",
    "uk": "ukr",
    "es": "spa",
    "de": "deu",
    "fr": "fra",
    "it": "ita",
    "pt": "por",
    "zh": "cmn",
    "ja": "jpn",
    "ko": "kor",
    "ar": "ara",
}

# ISO-639-1 -> BCP-47 for Google Speech-to-Text
GOOGLE_LANGUAGE_CODES = {
    "en": "en-US",
    "ru": "ru-RU",
    "uk": "uk-UA",
    "es": "es-ES",
    "de": "de-DE",
    "fr": "fr-FR",
    "it": "it-IT",
    "pt": "pt-BR",
    "zh": "cmn-Hans-CN",
    "ja": "ja-JP",
    "ko": "ko-KR",
    "ar": "ar-SA",
}

SUPPORTED_LANGUAGES = tuple(SCRIBE_LANGUAGE_CODES)


def normalize(lang: Optional[str]) -> Optional[str]:
    """'EN-us' -> 'en'. None and '' stay None."""
    if not lang:
        return None
    return lang.split("-")[0].split("_")[0].lower()


def to_scribe_code(lang: Optional[str]) -> Optional[str]:
    """ISO-639-3 code for Scribe, or None to let it auto-detect."""
    return SCRIBE_LANGUAGE_CODES.get(normalize(lang))


def to_google_code(lang: Optional[str], default: str = "en-US") -> str:
    code = normalize(lang)
    if code is None:
        return default
    return GOOGLE_LANGUAGE_CODES.get(code, lang)
