"""Pub/sub topic names for one pipeline session.

Names are flat (no dots) so pypubsub never builds a topic tree.
Every session publishes under its own prefix so two sessions in one process
(e.g. two loopback participants in a test) never hear each other's frames.
"""

import itertools
from dataclasses import dataclass

_session_counter = itertools.count(1)


@dataclass(frozen=True)
class SessionTopics:
    audio_frame: str
    speech_started: str
    speech_ended: str
    level: str
    caption: str

    @classmethod
    def for_prefix(cls, prefix: str) -> "SessionTopics":
        return cls(
            audio_frame=f"{prefix}_audio_frame",
            speech_started=f"{prefix}_speech_started",
            speech_ended=f"{prefix}_speech_ended",
            level=f"{prefix}_level",
            caption=f"{prefix}_caption",
        )

    @classmethod
    def unique(cls) -> "SessionTopics":
        return cls.for_prefix(f"session{next(_session_counter)}")
