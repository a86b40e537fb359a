"""Bounded, time-limited caption history for one session."""

import logging
import threading
from typing import List, Optional

from ..models.caption import Caption, epoch_ms

logger = logging.getLogger(__name__)


class CaptionHistory:
    """Last ``max_captions`` captions, oldest first, none older than ``max_age_seconds``.

    Local and remote captions share one list. Adding a caption id that is
    already present is a no-op.
    """

    def __init__(self, max_captions: int = 10, max_age_seconds: Optional[float] = 30.0):
        self.max_captions = max_captions
        self.max_age_seconds = max_age_seconds
        self._captions: List[Caption] = []
        self._lock = threading.RLock()

    def add(self, caption: Caption) -> bool:
        with self._lock:
            if any(existing.id == caption.id for existing in self._captions):
                logger.debug(f"Caption {caption.id} already in history")
                return False
            self._captions.append(caption)
            self._captions.sort(key=lambda c: c.timestamp)
            self.prune_expired()
            overflow = len(self._captions) - self.max_captions
            if overflow > 0:
                del self._captions[:overflow]
            return any(existing.id == caption.id for existing in self._captions)

    def prune_expired(self, now_ms: Optional[int] = None) -> int:
        if self.max_age_seconds is None:
            return 0
        now_ms = now_ms if now_ms is not None else epoch_ms()
        with self._lock:
            before = len(self._captions)
            self._captions = [c for c in self._captions if c.age_seconds(now_ms) <= self.max_age_seconds]
            return before - len(self._captions)

    def list(self) -> List[Caption]:
        with self._lock:
            return list(self._captions)

    def clear(self) -> None:
        with self._lock:
            self._captions = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._captions)
