"""Unit tests for voices and the speech synthesis stage."""

import asyncio

import pytest

from captionbridge.errors import ProviderError
from captionbridge.languages import normalize, to_google_code, to_scribe_code
from captionbridge.synthesis.http_synthesizer import HttpSynthesizer
from captionbridge.synthesis.stage import SpeechSynthesisStage
from captionbridge.synthesis.voices import FALLBACK_VOICE, VOICES, preview_text, resolve_voice


@pytest.mark.unit
class TestLanguages:

    @pytest.mark.parametrize("code,expected", [("EN-us", "en"), ("pt_BR", "pt"), ("", None), (None, None)])
    def test_normalize(self, code, expected):
        assert normalize(code) == expected

    def test_provider_codes(self):
        assert to_scribe_code("ru") == "rus"
        assert to_scribe_code("xx") is None
        assert to_google_code("uk") == "uk-UA"
        assert to_google_code(None) == "en-US"


@pytest.mark.unit
class TestVoices:

    def test_named_voice(self):
        assert resolve_voice("male-george").voice_id == VOICES["male-george"].voice_id

    def test_raw_voice_id_is_accepted(self):
        voice_id = VOICES["female-lily"].voice_id
        assert resolve_voice(voice_id).key == "female-lily"

    def test_language_default(self):
        assert resolve_voice(None, "ru").key == "male-daniel"

    def test_unknown_everything_falls_back(self):
        assert resolve_voice("nobody", "xx").key == FALLBACK_VOICE

    def test_preview_text(self):
        assert preview_text("de").startswith("Hallo")
        assert preview_text("xx") == preview_text("en")


@pytest.mark.unit
class TestSpeechSynthesisStage:

    def test_returns_audio_for_resolved_voice(self, fake_synthesizer):
        synth = fake_synthesizer(audio=b"\x01\x02" * 100)
        stage = SpeechSynthesisStage(synth)
        audio = asyncio.run(stage.synthesize("hola", "male-brian", "es"))
        assert audio == b"\x01\x02" * 100
        assert synth.requests == [("hola", VOICES["male-brian"].voice_id)]

    def test_failure_returns_none(self, fake_synthesizer):
        stage = SpeechSynthesisStage(fake_synthesizer(error=ProviderError("fake", "HTTP 429", status=429)))
        assert asyncio.run(stage.synthesize("hola", None, "es")) is None

    def test_timeout_returns_none(self, fake_synthesizer):
        synth = fake_synthesizer()

        async def slow(text, voice_id):
            await asyncio.sleep(1.0)
            return b"late"

        synth.synthesize = slow
        stage = SpeechSynthesisStage(synth, timeout=0.05)
        assert asyncio.run(stage.synthesize("hola", None, "es")) is None

    def test_empty_audio_returns_none(self, fake_synthesizer):
        stage = SpeechSynthesisStage(fake_synthesizer(audio=b""))
        assert asyncio.run(stage.synthesize("hola", None, "es")) is None

    def test_without_synthesizer(self):
        stage = SpeechSynthesisStage(None)
        assert asyncio.run(stage.synthesize("hola")) is None
        assert stage.sample_rate == 16000

    def test_blank_text_is_skipped(self, fake_synthesizer):
        synth = fake_synthesizer()
        assert asyncio.run(SpeechSynthesisStage(synth).synthesize("  ")) is None
        assert synth.requests == []

    def test_preview_uses_sample_phrase(self, fake_synthesizer):
        synth = fake_synthesizer()
        asyncio.run(SpeechSynthesisStage(synth).preview("female-laura", "fr"))
        assert synth.requests == [(preview_text("fr"), VOICES["female-laura"].voice_id)]

    def test_http_synthesizer_requires_url(self):
        with pytest.raises(ValueError):
            HttpSynthesizer("")
