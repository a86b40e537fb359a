"""Sends local results to peers and merges peer results into local state."""

import logging
from typing import TYPE_CHECKING, Callable, Optional

from ..errors import MalformedMessage
from ..models.caption import Caption, epoch_ms
from .channel import AbstractDataChannel
from .protocol import (CaptionMessage, TranslationAudioMessage, decode_message,
                       encode_caption, encode_translation_audio)

if TYPE_CHECKING:
    from ..audio.playback import PlaybackQueue
    from ..services.caption_history import CaptionHistory

logger = logging.getLogger(__name__)


class CaptionBroadcaster:
    """Fire-and-forget sender and tolerant receiver for one participant."""

    def __init__(self,
                 channel: AbstractDataChannel,
                 history: "CaptionHistory",
                 playback: Optional["PlaybackQueue"] = None,
                 sender_name: Optional[str] = None,
                 on_caption: Optional[Callable[[Caption], None]] = None):
        self.channel = channel
        self.local_id = channel.participant_id
        self.sender_name = sender_name or self.local_id
        self.history = history
        self.playback = playback
        self.on_caption = on_caption

        self.sent = 0
        self.send_failures = 0
        self.received = 0
        self.ignored = 0

    def attach(self) -> None:
        self.channel.set_receive_handler(self.on_receive)

    def detach(self) -> None:
        self.channel.set_receive_handler(None)

    def send_caption(self, caption: Caption) -> None:
        self._send(encode_caption(caption), f"caption {caption.id}")

    def send_translation_audio(self, audio: bytes, text: str,
                               original_text: Optional[str] = None,
                               source_lang: Optional[str] = None,
                               sample_rate: int = 16000) -> None:
        payload = encode_translation_audio(
            audio, text, self.sender_name,
            original_text=original_text,
            source_lang=source_lang,
            timestamp=epoch_ms(),
            sample_rate=sample_rate,
        )
        self._send(payload, f"translation audio ({len(audio)} bytes)")

    def _send(self, payload: bytes, what: str) -> None:
        # Not retried: a late caption is worth less than the retry latency
        try:
            self.channel.send(payload)
            self.sent += 1
        except Exception as e:
            self.send_failures += 1
            logger.warning(f"Broadcast of {what} failed: {e}")

    def on_receive(self, payload: bytes, sender_id: str) -> None:
        """Data-channel handler. Never raises."""
        if sender_id == self.local_id:
            self.ignored += 1
            return

        try:
            message = decode_message(payload)
        except MalformedMessage as e:
            self.ignored += 1
            logger.debug(f"Dropped malformed message from {sender_id}: {e}")
            return
        if message is None:
            self.ignored += 1
            logger.debug(f"Ignored message of unhandled type from {sender_id}")
            return

        self.received += 1
        if isinstance(message, CaptionMessage):
            self._merge_caption(message.caption.to_caption(), sender_id)
        elif isinstance(message, TranslationAudioMessage):
            self._enqueue_audio(message, sender_id)

    def _merge_caption(self, caption: Caption, sender_id: str) -> None:
        if caption.speaker_id == self.local_id:
            return
        if self.history.add(caption):
            logger.debug(f"Merged caption {caption.id} from {sender_id}")
            if self.on_caption:
                self.on_caption(caption)

    def _enqueue_audio(self, message: TranslationAudioMessage, sender_id: str) -> None:
        if self.playback is None:
            return
        try:
            audio = message.audio_bytes()
        except MalformedMessage as e:
            logger.debug(f"Dropped translation audio from {sender_id}: {e}")
            return
        self.playback.enqueue(audio, origin=sender_id, text=message.text, sample_rate=message.sampleRate)
