"""Unit tests for CaptionHistory."""

import pytest

from captionbridge.models.caption import Caption, epoch_ms
from captionbridge.services.caption_history import CaptionHistory


def make_caption(caption_id, timestamp, speaker="alice"):
    return Caption(id=caption_id, speaker_id=speaker, original_text="hi",
                   translated_text="hola", target_lang="es", timestamp=timestamp)


@pytest.mark.unit
class TestCaptionHistory:

    def test_keeps_timestamp_order(self):
        now = epoch_ms()
        history = CaptionHistory()
        history.add(make_caption("b", now - 1000))
        history.add(make_caption("a", now - 5000))
        history.add(make_caption("c", now))
        assert [c.id for c in history.list()] == ["a", "b", "c"]

    def test_duplicate_id_is_ignored(self):
        now = epoch_ms()
        history = CaptionHistory()
        assert history.add(make_caption("a", now))
        assert not history.add(make_caption("a", now, speaker="bob"))
        assert len(history) == 1
        assert history.list()[0].speaker_id == "alice"

    def test_bounded_to_max_captions(self):
        now = epoch_ms()
        history = CaptionHistory(max_captions=10)
        for i in range(11):
            history.add(make_caption(f"c{i}", now - (11 - i) * 100))
        captions = history.list()
        assert len(captions) == 10
        assert captions[0].id == "c1"

    def test_old_captions_expire(self):
        now = epoch_ms()
        history = CaptionHistory(max_age_seconds=30)
        history.add(make_caption("old", now - 20_000))
        history.add(make_caption("new", now))
        assert history.prune_expired(now + 15_000) == 1
        assert [c.id for c in history.list()] == ["new"]

    def test_already_expired_caption_is_not_kept(self):
        history = CaptionHistory(max_age_seconds=30)
        assert not history.add(make_caption("stale", epoch_ms() - 60_000))
        assert len(history) == 0

    def test_no_age_limit(self):
        history = CaptionHistory(max_age_seconds=None)
        history.add(make_caption("ancient", 0))
        assert history.prune_expired() == 0
        assert len(history) == 1

    def test_clear(self):
        history = CaptionHistory()
        history.add(make_caption("a", epoch_ms()))
        history.clear()
        assert history.list() == []
