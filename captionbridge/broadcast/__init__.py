"""Caption broadcast over the shared data channel."""

from .broadcaster import CaptionBroadcaster
from .channel import AbstractDataChannel, LoopbackDataChannel, LoopbackHub
from .protocol import (CaptionMessage, CaptionPayload, TranslationAudioMessage, decode_message,
                       encode_caption, encode_translation_audio)

__all__ = [
    "CaptionBroadcaster",
    "AbstractDataChannel",
    "LoopbackDataChannel",
    "LoopbackHub",
    "CaptionMessage",
    "CaptionPayload",
    "TranslationAudioMessage",
    "decode_message",
    "encode_caption",
    "encode_translation_audio",
]
