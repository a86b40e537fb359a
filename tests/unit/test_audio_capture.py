"""Unit tests for AudioCapture class."""

import time
from unittest.mock import patch

import pytest

from captionbridge.audio.capture import AudioCapture
from captionbridge.errors import DeviceError


@pytest.mark.unit
class TestAudioCapture:
    """Test cases for AudioCapture class."""

    def test_initialization(self):
        """Test AudioCapture initialization with default parameters."""
        capture = AudioCapture(callback=lambda event: None)

        assert capture.sample_rate == 16000
        assert capture.chunk_size == 800
        assert capture.channels == 1
        assert capture.is_recording is False
        assert capture.total_chunks == 0

    def test_start_recording(self, mock_pyaudio):
        """Test starting audio recording."""
        capture = AudioCapture(callback=lambda event: None)

        with patch.object(capture, '_record_continuously') as mock_record:
            capture.start_recording()

            assert capture.is_recording is True
            assert capture.start_time is not None
            assert capture.recording_thread.daemon is True
            mock_record.assert_called_once()
            mock_pyaudio['instance'].open.assert_called_once()

    def test_start_recording_already_recording(self, mock_pyaudio):
        capture = AudioCapture(callback=lambda event: None)
        capture.is_recording = True

        with patch.object(capture, '_record_continuously') as mock_record:
            capture.start_recording()
            mock_record.assert_not_called()

    def test_unavailable_device_raises(self, mock_pyaudio):
        mock_pyaudio['instance'].open.side_effect = OSError(-9996, "Invalid input device")
        capture = AudioCapture(callback=lambda event: None)

        with pytest.raises(DeviceError):
            capture.start_recording()

        assert capture.is_recording is False
        mock_pyaudio['instance'].terminate.assert_called_once()

    def test_publishes_stream_timestamps(self, mock_pyaudio):
        events = []
        capture = AudioCapture(callback=events.append)
        capture.start_recording()
        deadline = time.time() + 2.0
        while len(events) < 3 and time.time() < deadline:
            time.sleep(0.01)
        capture.stop_recording()

        assert len(events) >= 3
        assert [e.sequence_number for e in events[:3]] == [1, 2, 3]
        assert [e.timestamp for e in events[:3]] == [0.0, 0.05, 0.1]
        assert events[0].chunk_duration_ms == 50
        mock_pyaudio['stream'].close.assert_called()

    def test_stop_recording(self, mock_pyaudio):
        capture = AudioCapture(callback=lambda event: None)

        with patch.object(capture, '_record_continuously'):
            capture.start_recording()
            capture.stop_recording()

            assert capture.is_recording is False
            assert capture.stop_event.is_set()

    def test_recording_stats(self):
        stats = AudioCapture(callback=lambda event: None, chunk_size=1600).get_recording_stats()
        assert stats.is_recording is False
        assert stats.chunk_size == 1600
        assert stats.total_chunks == 0
