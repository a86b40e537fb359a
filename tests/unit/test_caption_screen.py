"""Unit tests for the terminal caption screen and keyboard handler."""

import threading
from unittest.mock import Mock

import pytest
from rich.console import Console

from captionbridge.errors import DeviceError
from captionbridge.models.caption import Caption
from captionbridge.models.session import PipelineMode, PipelineSettings, SessionStats, VadState
from captionbridge.ui.caption_screen import CaptionScreen, build_caption_table, render_level_bar
from captionbridge.ui.keyboard_input import KeyboardInputHandler


@pytest.fixture
def session():
    mock_session = Mock()
    mock_session.settings = PipelineSettings(mode=PipelineMode.PUSH_TO_TALK)
    mock_session.participant_id = "alice"
    mock_session.captions.return_value = []
    mock_session.stats.return_value = SessionStats(
        session_id="alice", is_running=True, mode=PipelineMode.PUSH_TO_TALK, vad_state=VadState.IDLE)
    return mock_session


@pytest.mark.unit
class TestRendering:

    def test_level_bar(self):
        assert render_level_bar(0, width=10) == "░" * 10 + "   0.0"
        assert render_level_bar(50, width=10).startswith("█" * 5 + "░" * 5)
        assert render_level_bar(250, width=10).startswith("█" * 10)

    def test_caption_table_marks_local_speaker(self):
        captions = [
            Caption("1", "alice", "Hello", "Hola", "es", 1700000000000),
            Caption("2", "bob", "Hi", "Hola", "es", 1700000001000),
        ]
        console = Console(record=True, width=100)
        console.print(build_caption_table(captions, "alice"))
        text = console.export_text()
        assert "you" in text
        assert "bob" in text
        assert "Hello" in text

    def test_update_display(self, session):
        screen = CaptionScreen(session, console=Console(record=True, width=120))
        layout = screen.create_layout()
        screen.update_display(layout)
        session.captions.assert_called()


@pytest.mark.unit
class TestKeyHandling:

    def test_push_to_talk_toggles(self, session):
        screen = CaptionScreen(session)
        assert screen.handle_key_input('p')
        session.push_to_talk_down.assert_called_once()
        assert screen.ptt_held
        screen.handle_key_input('p')
        session.push_to_talk_up.assert_called_once()
        assert not screen.ptt_held

    def test_push_to_talk_in_auto_mode(self, session):
        session.settings = PipelineSettings()
        screen = CaptionScreen(session)
        screen.handle_key_input('p')
        session.push_to_talk_down.assert_not_called()
        assert "off" in screen.message

    def test_mode_clear_and_preview(self, session):
        session.toggle_mode.return_value = PipelineMode.AUTO
        session.preview_voice.return_value = True
        screen = CaptionScreen(session)
        screen.handle_key_input('m')
        screen.handle_key_input('c')
        screen.handle_key_input('v')
        session.toggle_mode.assert_called_once()
        session.clear_captions.assert_called_once()
        session.preview_voice.assert_called_once()
        assert screen.message == "Voice preview queued"

    def test_device_error_is_shown(self, session):
        session.toggle_mode.side_effect = DeviceError("unplugged")
        screen = CaptionScreen(session)
        assert screen.handle_key_input('m')
        assert "unplugged" in screen.message

    def test_quit(self, session):
        screen = CaptionScreen(session)
        screen.running = True
        assert screen.handle_key_input('q') is False
        assert screen.running is False


@pytest.mark.unit
class TestKeyboardInputHandler:

    def test_keys_reach_callback_until_quit(self):
        keys = iter(['m', None, 'c', 'q', 'x'])
        seen = []
        done = threading.Event()

        def callback(key):
            seen.append(key)
            if key == 'q':
                done.set()
                return False
            return True

        handler = KeyboardInputHandler(callback, reader=lambda: next(keys, None))
        handler.start()
        assert done.wait(2.0)
        handler.stop()
        assert seen == ['m', 'c', 'q']

    def test_unreadable_stdin_ends_loop(self):
        def reader():
            raise OSError("not a tty")

        handler = KeyboardInputHandler(lambda key: True, reader=reader)
        handler.start()
        handler.thread.join(1.0)
        assert not handler.running
