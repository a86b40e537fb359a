"""Unit tests for PlaybackQueue."""

import time

import pytest

from captionbridge.audio.playback import PlaybackQueue


@pytest.mark.unit
class TestPlaybackQueue:

    def test_plays_in_fifo_order_without_overlap(self, player_factory):
        player = player_factory(play_seconds=0.05)
        playback = PlaybackQueue(player)
        playback.start()
        try:
            for text in ("one", "two", "three"):
                playback.enqueue(b"\x00\x00" * 10, origin="alice", text=text)
            assert playback.wait_idle(5.0)
        finally:
            playback.stop()

        assert [e.text for e in player.played] == ["one", "two", "three"]
        assert player.max_active == 1
        for (_, first_end), (second_start, _) in zip(player.spans, player.spans[1:]):
            assert second_start >= first_end

    def test_sequence_numbers_increase(self, player_factory):
        playback = PlaybackQueue(player_factory())
        first = playback.enqueue(b"\x00\x00")
        second = playback.enqueue(b"\x00\x00")
        assert second.sequence_number == first.sequence_number + 1
        assert playback.pending == 2

    def test_failed_clip_is_skipped(self, player_factory):
        player = player_factory(fail_on=["bad"])
        playback = PlaybackQueue(player)
        playback.start()
        try:
            playback.enqueue(b"\x00\x00", text="bad")
            playback.enqueue(b"\x00\x00", text="good")
            assert playback.wait_idle(5.0)
        finally:
            playback.stop()

        assert [e.text for e in player.played] == ["good"]
        assert playback.failed == 1
        assert playback.played == 1

    def test_clear_drops_pending(self, player_factory):
        playback = PlaybackQueue(player_factory())
        for _ in range(3):
            playback.enqueue(b"\x00\x00")
        assert playback.clear() == 3
        assert playback.pending == 0

    def test_restart_after_stop(self, player_factory):
        player = player_factory()
        playback = PlaybackQueue(player)
        playback.start()
        playback.stop()
        playback.start()
        try:
            playback.enqueue(b"\x00\x00", text="again")
            assert playback.wait_idle(5.0)
        finally:
            playback.stop()
        assert [e.text for e in player.played] == ["again"]

    def test_stop_interrupts_current_clip(self, player_factory, wait_for):
        player = player_factory(play_seconds=5.0)
        playback = PlaybackQueue(player)
        playback.start()
        playback.enqueue(b"\x00\x00", text="long")
        assert wait_for(lambda: playback.is_playing)

        started = time.monotonic()
        playback.stop()
        assert time.monotonic() - started < 2.0
        assert not playback.worker_thread.is_alive()
        assert player.closed == 1

    def test_restart_while_clip_finishes_keeps_one_consumer(self, player_factory, wait_for):
        player = player_factory(play_seconds=1.0, interruptible=False)
        playback = PlaybackQueue(player)
        playback.start()
        playback.enqueue(b"\x00\x00", text="long")
        assert wait_for(lambda: playback.is_playing)

        playback.stop(timeout=0.1)
        assert playback.worker_thread.is_alive()
        old_thread = playback.worker_thread
        playback.start()
        assert playback.worker_thread is old_thread

        try:
            playback.enqueue(b"\x00\x00", text="short")
            assert playback.wait_idle(5.0)
        finally:
            playback.stop()

        assert [e.text for e in player.played] == ["long", "short"]
        assert player.max_active == 1
        (_, first_end), (second_start, _) = player.spans
        assert second_start >= first_end
        assert wait_for(lambda: not old_thread.is_alive())
        assert player.closed == 1
