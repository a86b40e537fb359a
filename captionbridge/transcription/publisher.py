"""Caption publisher module for pub/sub event publishing."""

import logging
from typing import Callable
from pubsub import pub

from ..models.caption import Caption

logger = logging.getLogger(__name__)


class CaptionPublisher:
    """Publishes captions (local and remote) using pubsub.pub for the UI."""

    def __init__(self, topic: str):
        """Initialize caption publisher.

        Args:
            topic: Pub/sub topic name for captions
        """
        self.topic = topic
        logger.info(f"CaptionPublisher initialized with topic: {topic}")

    def publish_caption(self, caption: Caption) -> None:
        """Publish a caption to the pub/sub topic."""
        pub.sendMessage(self.topic, caption=caption)
        logger.debug(f"Published caption {caption.id} from {caption.speaker_id}")

    def get_callback(self) -> Callable[[Caption], None]:
        return self.publish_caption
