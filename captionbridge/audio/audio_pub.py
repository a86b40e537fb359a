"""Audio and VAD publishers for pub/sub event publishing."""

import logging
from pubsub import pub

from ..models.events import AudioEvent, VadEvent, VadEventType
from ..models.session import VadState
from ..topics import SessionTopics

logger = logging.getLogger(__name__)


class AudioPublisher:
    """Publishes audio events using pubsub.pub for pub/sub architecture."""

    def __init__(self, topic: str = "audio_frame"):
        """Initialize audio publisher.

        Args:
            topic: Pub/sub topic name for audio events
        """
        self.topic = topic
        logger.info(f"AudioPublisher initialized with topic: {topic}")

    def publish_audio_event(self, audio_event: AudioEvent) -> None:
        """Publish an audio event to the pub/sub topic."""
        pub.sendMessage(self.topic, event=audio_event)


class VadPublisher:
    """Publishes VAD transitions and the level meter on a session's topics."""

    def __init__(self, topics: SessionTopics):
        self.topics = topics

    def publish_vad_event(self, event: VadEvent) -> None:
        if event.event_type is VadEventType.SPEECH_STARTED:
            topic = self.topics.speech_started
        else:
            topic = self.topics.speech_ended
        logger.debug(f"VAD {event.event_type.value} at {event.timestamp:.3f}s (speech_time={event.speech_time:.3f}s)")
        pub.sendMessage(topic, event=event)

    def publish_level(self, level: float, state: VadState) -> None:
        pub.sendMessage(self.topics.level, level=level, state=state)
