"""Unit tests for VoiceActivityDetector."""

import pytest

from captionbridge.audio.vad import VoiceActivityDetector, compute_rms, level_to_meter
from captionbridge.models.events import VadEventType
from captionbridge.models.session import PipelineMode, PipelineSettings, VadState


def run_frames(vad, frames):
    events = []
    for frame in frames:
        event = vad.process_frame(frame)
        if event:
            events.append(event)
    return events


@pytest.mark.unit
class TestLevels:

    def test_silence_has_zero_rms(self, audio_test_data):
        assert compute_rms(audio_test_data("silence", 0.05)) == 0.0

    def test_sine_rms(self, audio_test_data):
        # amplitude / sqrt(2)
        assert compute_rms(audio_test_data("sine", 0.5, amplitude=0.3)) == pytest.approx(0.212, abs=0.005)

    def test_empty_and_odd_length_frames(self):
        assert compute_rms(b"") == 0.0
        assert compute_rms(b"\x01") == 0.0
        assert compute_rms(b"\x00\x40\x00") > 0.0

    def test_meter_is_clamped(self):
        assert level_to_meter(0.0) == 0.0
        assert level_to_meter(0.125) == pytest.approx(50.0)
        assert level_to_meter(1.0) == 100.0


@pytest.mark.unit
class TestVoiceActivityDetector:

    @pytest.fixture
    def settings(self):
        return PipelineSettings(threshold=0.02, silence_duration_ms=2000, min_speech_duration_ms=300)

    def test_starts_idle(self, settings):
        vad = VoiceActivityDetector(settings)
        assert vad.state is VadState.IDLE
        assert vad.meter == 0.0

    def test_speech_burst_emits_one_start_and_one_end(self, settings, make_frames):
        vad = VoiceActivityDetector(settings)
        events = run_frames(vad, make_frames([("sine", 1.2), ("silence", 2.5)]))

        assert [e.event_type for e in events] == [VadEventType.SPEECH_STARTED, VadEventType.SPEECH_ENDED]
        started, ended = events
        # Start is confirmed after min speech, but dated back to the first voiced frame
        assert started.speech_time == pytest.approx(0.0)
        assert started.timestamp == pytest.approx(0.3)
        # Smoothed level falls under the threshold about one frame after the voice stops
        assert 1.2 <= ended.speech_time <= 1.3
        assert ended.timestamp - ended.speech_time >= 2.0
        assert vad.state is VadState.IDLE

    def test_short_noise_is_not_speech(self, settings, make_frames):
        vad = VoiceActivityDetector(settings)
        events = run_frames(vad, make_frames([("silence", 0.5), ("sine", 0.15), ("silence", 1.0)]))
        assert events == []
        assert vad.state is VadState.IDLE

    def test_short_pause_does_not_end_speech(self, settings, make_frames):
        vad = VoiceActivityDetector(settings)
        frames = make_frames([("sine", 1.0), ("silence", 0.8), ("sine", 1.0), ("silence", 2.5)])
        events = run_frames(vad, frames)
        assert [e.event_type for e in events] == [VadEventType.SPEECH_STARTED, VadEventType.SPEECH_ENDED]
        assert events[1].speech_time > 2.7

    def test_trailing_silence_state(self, settings, make_frames):
        vad = VoiceActivityDetector(settings)
        run_frames(vad, make_frames([("sine", 1.0), ("silence", 0.5)]))
        assert vad.state is VadState.TRAILING_SILENCE

    def test_silence_duration_is_honoured(self, make_frames):
        vad = VoiceActivityDetector(PipelineSettings(silence_duration_ms=500))
        events = run_frames(vad, make_frames([("sine", 1.0), ("silence", 1.0)]))
        ended = events[-1]
        assert ended.event_type is VadEventType.SPEECH_ENDED
        assert ended.timestamp - ended.speech_time == pytest.approx(0.5, abs=0.06)

    def test_push_to_talk_reports_level_without_events(self, make_frames):
        levels = []
        vad = VoiceActivityDetector(
            PipelineSettings(mode=PipelineMode.PUSH_TO_TALK),
            on_level=lambda level, state: levels.append((level, state)),
        )
        events = run_frames(vad, make_frames([("sine", 1.0), ("silence", 2.0)]))
        assert events == []
        assert max(level for level, _ in levels) > 50
        assert all(state is VadState.IDLE for _, state in levels)

    def test_callbacks_receive_events(self, settings, make_frames):
        received = []
        vad = VoiceActivityDetector(settings, on_event=received.append)
        for frame in make_frames([("sine", 1.0), ("silence", 2.5)]):
            vad.on_audio_frame(frame)
        assert [e.event_type for e in received] == [VadEventType.SPEECH_STARTED, VadEventType.SPEECH_ENDED]

    def test_reset_forgets_partial_speech(self, settings, make_frames):
        vad = VoiceActivityDetector(settings)
        run_frames(vad, make_frames([("sine", 1.0)]))
        assert vad.state is VadState.SPEAKING
        vad.reset()
        assert vad.state is VadState.IDLE
        assert vad.level == 0.0

    def test_configure_switches_mode(self, settings, make_frames):
        vad = VoiceActivityDetector(settings)
        vad.configure(PipelineSettings(mode=PipelineMode.PUSH_TO_TALK))
        assert not vad.emits_events
        assert run_frames(vad, make_frames([("sine", 1.0)])) == []
