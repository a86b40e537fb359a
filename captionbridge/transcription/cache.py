"""Content-addressed cache of corrected and translated text."""

import hashlib
import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Dict, Optional

from ..models.transcription import CacheEntry

logger = logging.getLogger(__name__)


class TranscriptionCache:
    """LRU + TTL map from audio fingerprint to text.

    Concurrent readers and writers share one lock. Two identical utterances
    processed at once may both miss and both insert; the later insert simply
    replaces the earlier one.
    """

    def __init__(self, max_entries: int = 2000, ttl_seconds: float = 3600.0, clock=time.monotonic):
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def fingerprint(audio: bytes) -> str:
        """Size plus SHA-256 of the PCM payload."""
        return f"{len(audio)}-{hashlib.sha256(audio).hexdigest()}"

    def get(self, fingerprint: str) -> Optional[CacheEntry]:
        with self._lock:
            entry = self._entries.get(fingerprint)
            if entry is not None and self._expired(entry):
                del self._entries[fingerprint]
                entry = None
            if entry is None:
                self.misses += 1
                return None
            self._entries.move_to_end(fingerprint)
            self.hits += 1
            return entry

    def put(self, fingerprint: str, corrected_text: str, translated_text: str) -> CacheEntry:
        entry = CacheEntry(
            fingerprint=fingerprint,
            corrected_text=corrected_text,
            translated_text=translated_text,
            created_at=self.clock(),
        )
        with self._lock:
            self._entries[fingerprint] = entry
            self._entries.move_to_end(fingerprint)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted cache entry {evicted[:24]}")
        return entry

    def cleanup_expired(self) -> int:
        with self._lock:
            expired = [key for key, entry in self._entries.items() if self._expired(entry)]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug(f"Removed {len(expired)} expired cache entries")
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {"size": len(self._entries), "hits": self.hits, "misses": self.misses}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _expired(self, entry: CacheEntry) -> bool:
        return self.clock() - entry.created_at > self.ttl_seconds
