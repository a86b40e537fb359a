"""Unit tests for CaptionBroadcaster over the in-process loopback hub."""

import json

import pytest

from captionbridge.audio.playback import PlaybackQueue
from captionbridge.broadcast.broadcaster import CaptionBroadcaster
from captionbridge.broadcast.channel import AbstractDataChannel, LoopbackHub
from captionbridge.broadcast.protocol import encode_caption
from captionbridge.models.caption import Caption
from captionbridge.services.caption_history import CaptionHistory


class BrokenChannel(AbstractDataChannel):
    def send(self, payload: bytes) -> None:
        raise ConnectionError("transport down")


def make_peer(hub, participant_id, player=None):
    history = CaptionHistory()
    playback = PlaybackQueue(player) if player else None
    merged = []
    broadcaster = CaptionBroadcaster(hub.channel(participant_id), history, playback,
                                     sender_name=participant_id.title(), on_caption=merged.append)
    broadcaster.attach()
    return broadcaster, history, playback, merged


@pytest.mark.unit
class TestCaptionBroadcaster:

    def test_caption_reaches_peer_history(self):
        hub = LoopbackHub()
        alice, alice_history, _, _ = make_peer(hub, "alice")
        _, bob_history, _, bob_merged = make_peer(hub, "bob")

        caption = Caption.create("alice", "Hello.", "Hola.", "es")
        alice_history.add(caption)
        alice.send_caption(caption)

        assert bob_history.list() == [caption]
        assert bob_merged == [caption]
        assert alice_history.list() == [caption]
        assert alice.sent == 1

    def test_duplicate_caption_is_merged_once(self):
        hub = LoopbackHub()
        alice, _, _, _ = make_peer(hub, "alice")
        _, bob_history, _, bob_merged = make_peer(hub, "bob")
        caption = Caption.create("alice", "Hello.", "Hola.", "es")
        alice.send_caption(caption)
        alice.send_caption(caption)
        assert len(bob_history) == 1
        assert len(bob_merged) == 1

    def test_own_echo_is_ignored(self):
        hub = LoopbackHub(echo=True)
        alice, alice_history, _, merged = make_peer(hub, "alice")
        alice.send_caption(Caption.create("alice", "Hello.", "Hola.", "es"))
        assert len(alice_history) == 0
        assert merged == []
        assert alice.ignored == 1

    def test_caption_claiming_local_speaker_is_not_merged(self):
        hub = LoopbackHub()
        _, bob_history, _, _ = make_peer(hub, "bob")
        mallory = hub.channel("mallory")
        mallory.send(encode_caption(Caption.create("bob", "spoof", "spoof", "en")))
        assert len(bob_history) == 0

    @pytest.mark.parametrize("payload", [
        b"garbage",
        b'{"type": "caption"}',
        b'{"type": "reaction", "emoji": "+1"}',
        b'{"type": ["caption"]}',
        b'{"type": {"name": "caption"}}',
    ])
    def test_bad_or_unknown_messages_are_dropped(self, payload):
        hub = LoopbackHub()
        bob, bob_history, _, _ = make_peer(hub, "bob")
        hub.channel("alice").send(payload)
        assert bob.ignored == 1
        assert bob.received == 0
        assert len(bob_history) == 0

    def test_translation_audio_is_queued_for_playback(self, recording_player):
        hub = LoopbackHub()
        alice, _, _, _ = make_peer(hub, "alice")
        _, _, bob_playback, _ = make_peer(hub, "bob", player=recording_player)

        alice.send_translation_audio(b"\x01\x00" * 10, "Hola", original_text="Hello", source_lang="en")

        assert bob_playback.pending == 1
        entry = bob_playback.entries.get_nowait()
        assert entry.origin == "alice"
        assert entry.text == "Hola"
        assert entry.audio_ref == b"\x01\x00" * 10

    def test_translation_audio_payload_names_sender(self):
        hub = LoopbackHub()
        alice, _, _, _ = make_peer(hub, "alice")
        seen = []
        spy = hub.channel("spy")
        spy.set_receive_handler(lambda payload, sender: seen.append(json.loads(payload)))
        alice.send_translation_audio(b"\x00\x00", "Hola")
        assert seen[0]["senderName"] == "Alice"
        assert isinstance(seen[0]["timestamp"], int)

    def test_send_failure_is_counted_not_raised(self):
        history = CaptionHistory()
        broadcaster = CaptionBroadcaster(BrokenChannel("alice"), history)
        broadcaster.send_caption(Caption.create("alice", "a", "b", "es"))
        assert broadcaster.send_failures == 1
        assert broadcaster.sent == 0

    def test_detach_stops_receiving(self):
        hub = LoopbackHub()
        alice, _, _, _ = make_peer(hub, "alice")
        bob, bob_history, _, _ = make_peer(hub, "bob")
        bob.detach()
        alice.send_caption(Caption.create("alice", "a", "b", "es"))
        assert len(bob_history) == 0
