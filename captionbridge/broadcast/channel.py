"""Data channel seam to the external media transport."""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

ReceiveHandler = Callable[[bytes, str], None]


class AbstractDataChannel(ABC):
    """Reliable, ordered broadcast to every other participant."""

    def __init__(self, participant_id: str):
        self.participant_id = participant_id
        self._handler: Optional[ReceiveHandler] = None

    @abstractmethod
    def send(self, payload: bytes) -> None:
        """Broadcast ``payload`` to all peers."""

    def set_receive_handler(self, handler: Optional[ReceiveHandler]) -> None:
        """Install ``handler(payload, sender_id)``; None detaches."""
        self._handler = handler

    def deliver(self, payload: bytes, sender_id: str) -> None:
        handler = self._handler
        if handler is not None:
            handler(payload, sender_id)


class LoopbackHub:
    """In-process broadcast between LoopbackDataChannels, delivered synchronously in send order."""

    def __init__(self, echo: bool = False):
        self.echo = echo
        self.channels: List["LoopbackDataChannel"] = []
        self._lock = threading.RLock()

    def channel(self, participant_id: str) -> "LoopbackDataChannel":
        channel = LoopbackDataChannel(self, participant_id)
        with self._lock:
            self.channels.append(channel)
        return channel

    def broadcast(self, payload: bytes, sender_id: str) -> None:
        # Serialized so every receiver sees the same order
        with self._lock:
            for channel in list(self.channels):
                if channel.participant_id == sender_id and not self.echo:
                    continue
                try:
                    channel.deliver(payload, sender_id)
                except Exception as e:
                    logger.error(f"Receive handler of {channel.participant_id} failed: {e}", exc_info=True)

    def detach(self, channel: "LoopbackDataChannel") -> None:
        with self._lock:
            if channel in self.channels:
                self.channels.remove(channel)


class LoopbackDataChannel(AbstractDataChannel):
    def __init__(self, hub: LoopbackHub, participant_id: str):
        super().__init__(participant_id)
        self.hub = hub
        self.sent = 0

    def send(self, payload: bytes) -> None:
        self.sent += 1
        self.hub.broadcast(payload, self.participant_id)

    def close(self) -> None:
        self.hub.detach(self)
