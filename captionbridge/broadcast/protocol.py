"""Wire messages carried over the shared data channel (JSON)."""

import base64
import json
import logging
from typing import Literal, Optional, Union

from pydantic import BaseModel, ValidationError

from ..errors import MalformedMessage
from ..models.caption import Caption

logger = logging.getLogger(__name__)


class CaptionPayload(BaseModel):
    id: str
    speakerId: str
    originalText: str
    translatedText: str
    targetLang: str
    timestamp: int

    @classmethod
    def from_caption(cls, caption: Caption) -> "CaptionPayload":
        return cls(
            id=caption.id,
            speakerId=caption.speaker_id,
            originalText=caption.original_text,
            translatedText=caption.translated_text,
            targetLang=caption.target_lang,
            timestamp=caption.timestamp,
        )

    def to_caption(self) -> Caption:
        return Caption(
            id=self.id,
            speaker_id=self.speakerId,
            original_text=self.originalText,
            translated_text=self.translatedText,
            target_lang=self.targetLang,
            timestamp=self.timestamp,
        )


class CaptionMessage(BaseModel):
    type: Literal["caption"] = "caption"
    caption: CaptionPayload


class TranslationAudioMessage(BaseModel):
    type: Literal["translation_audio"] = "translation_audio"
    audioBase64: str
    text: str
    senderName: str
    # Optional extras, absent from older senders
    originalText: Optional[str] = None
    sourceLang: Optional[str] = None
    timestamp: Optional[int] = None
    sampleRate: int = 16000

    def audio_bytes(self) -> bytes:
        try:
            return base64.b64decode(self.audioBase64, validate=True)
        except ValueError as e:
            raise MalformedMessage(f"invalid audioBase64: {e}") from e


WireMessage = Union[CaptionMessage, TranslationAudioMessage]

MESSAGE_TYPES = {
    "caption": CaptionMessage,
    "translation_audio": TranslationAudioMessage,
}


def encode_caption(caption: Caption) -> bytes:
    message = CaptionMessage(caption=CaptionPayload.from_caption(caption))
    return message.model_dump_json().encode("utf-8")


def encode_translation_audio(audio: bytes, text: str, sender_name: str,
                             original_text: Optional[str] = None,
                             source_lang: Optional[str] = None,
                             timestamp: Optional[int] = None,
                             sample_rate: int = 16000) -> bytes:
    message = TranslationAudioMessage(
        audioBase64=base64.b64encode(audio).decode("ascii"),
        text=text,
        senderName=sender_name,
        originalText=original_text,
        sourceLang=source_lang,
        timestamp=timestamp,
        sampleRate=sample_rate,
    )
    return message.model_dump_json(exclude_none=True).encode("utf-8")


def decode_message(payload: bytes) -> Optional[WireMessage]:
    """Parse a data-channel payload.

    Returns:
        The typed message, or None for a well-formed message of a type this
        pipeline does not handle (timers, reactions, ...)

    Raises:
        MalformedMessage: If the payload is not JSON or does not match its declared type
    """
    try:
        data = json.loads(payload)
    except (ValueError, UnicodeDecodeError) as e:
        raise MalformedMessage(f"payload is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedMessage(f"payload is a {type(data).__name__}, not an object")

    message_type = data.get("type")
    if message_type is None:
        return None
    if not isinstance(message_type, str):
        raise MalformedMessage(f"message type is a {type(message_type).__name__}, not a string")
    model = MESSAGE_TYPES.get(message_type)
    if model is None:
        return None
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise MalformedMessage(f"invalid {data['type']} message: {e.error_count()} errors") from e
