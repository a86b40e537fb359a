"""Audio capture, voice activity detection and playback."""

from .capture import AudioCapture
from .buffer import RollingAudioBuffer
from .vad import VoiceActivityDetector
from .recorder import UtteranceRecorder
from .playback import AudioPlayer, PlaybackQueue, PyAudioPlayer

__all__ = [
    'AudioCapture',
    'RollingAudioBuffer',
    'VoiceActivityDetector',
    'UtteranceRecorder',
    'AudioPlayer',
    'PlaybackQueue',
    'PyAudioPlayer',
]
