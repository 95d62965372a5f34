"""
Unit tests for utils.protocol module.

Tests:
- create_client() / connect_client() relay handling
- fetch_events() ordering and the contact/follower helpers
- reply_tags(), reaction_tags(), repost_tags() construction
- iter_notifications() bridging of the callback API and its bounded buffer
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from nostr_sdk import Client, EventBuilder, Filter, HandleNotification, Keys, Timestamp

from nostaro.utils.protocol import (
    connect_client,
    create_client,
    fetch_contacts,
    fetch_event_by_id,
    fetch_events,
    fetch_followers,
    iter_notifications,
    reaction_tags,
    reply_tags,
    repost_tags,
    shutdown_client,
)


def _note_at(keys: Keys, ts: int, content: str = ""):
    builder = EventBuilder.text_note(content).custom_created_at(Timestamp.from_secs(ts))
    return builder.sign_with_keys(keys)


def _client_returning(*events) -> MagicMock:
    result = MagicMock()
    result.to_vec.return_value = list(events)
    client = MagicMock()
    client.fetch_events = AsyncMock(return_value=result)
    return client


def _vecs(tags) -> list[list[str]]:
    return [list(t.as_vec()) for t in tags]


# =============================================================================
# Client lifecycle
# =============================================================================


class TestCreateClient:
    def test_signing(self, keys):
        assert isinstance(create_client(keys), Client)

    def test_read_only(self):
        assert isinstance(create_client(), Client)


class TestConnectClient:
    @pytest.fixture
    def fake_client(self):
        client = MagicMock()
        client.add_relay = AsyncMock()
        client.connect = AsyncMock()
        with patch("nostaro.utils.protocol.create_client", return_value=client):
            yield client

    async def test_connects(self, keys, fake_client):
        client = await connect_client(keys, ["wss://relay.example.com", "wss://nos.lol"])
        assert client is fake_client
        assert fake_client.add_relay.await_count == 2
        fake_client.connect.assert_awaited_once()

    async def test_no_relays(self, keys, fake_client):
        with pytest.raises(ValueError, match="No usable relays"):
            await connect_client(keys, [])
        fake_client.connect.assert_not_awaited()

    async def test_bad_urls_skipped(self, keys, fake_client):
        with pytest.raises(ValueError, match="No usable relays"):
            await connect_client(keys, ["not a relay url"])

    async def test_one_good_url_enough(self, keys, fake_client):
        await connect_client(keys, ["not a relay url", "wss://nos.lol"])
        assert fake_client.add_relay.await_count == 1


class TestShutdownClient:
    async def test_errors_suppressed(self):
        client = MagicMock()
        client.shutdown = AsyncMock(side_effect=RuntimeError("ffi"))
        await shutdown_client(client)
        client.shutdown.assert_awaited_once()


# =============================================================================
# Fetching
# =============================================================================


class TestFetchEvents:
    async def test_newest_first(self, keys):
        events = [_note_at(keys, ts) for ts in (100, 300, 200)]
        result = await fetch_events(_client_returning(*events), Filter())
        assert [e.created_at().as_secs() for e in result] == [300, 200, 100]

    async def test_by_id_missing(self, keys):
        event = _note_at(keys, 1)
        assert await fetch_event_by_id(_client_returning(), event.id()) is None

    async def test_by_id_found(self, keys):
        event = _note_at(keys, 1)
        assert await fetch_event_by_id(_client_returning(event), event.id()) is event


class TestContacts:
    async def test_deduplicated_in_order(self, keys, make_event):
        a, b = Keys.generate().public_key().to_hex(), Keys.generate().public_key().to_hex()
        contacts = make_event(keys, kind=3, tags=[["p", a], ["p", b], ["p", a], ["t", "x"]])
        result = await fetch_contacts(_client_returning(contacts), keys.public_key())
        assert result == [a, b]

    async def test_none(self, keys):
        assert await fetch_contacts(_client_returning(), keys.public_key()) == []

    async def test_followers_unique_authors(self, keys, other_keys, make_event):
        mine = keys.public_key().to_hex()
        events = [
            make_event(other_keys, kind=3, tags=[["p", mine]]),
            make_event(other_keys, kind=3, tags=[["p", mine]]),
        ]
        result = await fetch_followers(_client_returning(*events), keys.public_key())
        assert result == [other_keys.public_key().to_hex()]


# =============================================================================
# Tag construction
# =============================================================================


class TestReplyTags:
    def test_top_level_target_becomes_root(self, keys, other_keys, make_event):
        target = make_event(other_keys, content="hello")
        tags = _vecs(reply_tags(target, own_pubkey=keys.public_key().to_hex()))
        assert tags == [
            ["e", target.id().to_hex(), "", "root"],
            ["p", other_keys.public_key().to_hex()],
        ]

    def test_root_carried_over(self, keys, other_keys, make_event):
        root = make_event(keys, content="root")
        target = make_event(
            other_keys,
            content="reply",
            tags=[["e", root.id().to_hex(), "wss://nos.lol", "root"]],
        )
        tags = _vecs(reply_tags(target))
        assert tags[0] == ["e", root.id().to_hex(), "wss://nos.lol", "root"]
        assert tags[1] == ["e", target.id().to_hex(), "", "reply"]

    def test_mentions_forwarded_without_self(self, keys, other_keys, make_event):
        me = keys.public_key().to_hex()
        third = Keys.generate().public_key().to_hex()
        target = make_event(other_keys, tags=[["p", me], ["p", third]])
        p_tags = [t[1] for t in _vecs(reply_tags(target, own_pubkey=me)) if t[0] == "p"]
        assert p_tags == [other_keys.public_key().to_hex(), third]


class TestReactionAndRepostTags:
    def test_reaction(self, other_keys, make_event):
        target = make_event(other_keys, kind=1, content="nice")
        assert _vecs(reaction_tags(target)) == [
            ["e", target.id().to_hex()],
            ["p", other_keys.public_key().to_hex()],
            ["k", "1"],
        ]

    def test_repost(self, other_keys, make_event):
        target = make_event(other_keys, content="share me")
        assert _vecs(repost_tags(target)) == [
            ["e", target.id().to_hex(), ""],
            ["p", other_keys.public_key().to_hex()],
        ]


# =============================================================================
# Notifications
# =============================================================================


class TestIterNotifications:
    def test_sdk_exposes_callback_api(self):
        assert isinstance(HandleNotification, type)
        assert callable(Client.handle_notifications)

    async def test_yields_in_order_then_ends(self, keys):
        first, second = _note_at(keys, 1, "a"), _note_at(keys, 2, "b")

        async def handle_notifications(handler):
            await handler.handle("wss://nos.lol", "sub", first)
            await handler.handle("wss://nos.lol", "sub", second)

        client = MagicMock()
        client.handle_notifications = handle_notifications

        received = [event async for event in iter_notifications(client)]
        assert received == [first, second]

    async def test_stream_error_ends_iteration(self, keys):
        event = _note_at(keys, 1)

        async def handle_notifications(handler):
            await handler.handle("wss://nos.lol", "sub", event)
            raise RuntimeError("relay pool closed")

        client = MagicMock()
        client.handle_notifications = handle_notifications

        assert [e async for e in iter_notifications(client)] == [event]

    async def test_full_queue_holds_back_producer(self, keys):
        events = [_note_at(keys, ts) for ts in range(1, 5)]
        handed_over = []

        async def handle_notifications(handler):
            for event in events:
                await handler.handle("wss://nos.lol", "sub", event)
                handed_over.append(event)

        client = MagicMock()
        client.handle_notifications = handle_notifications

        received = []
        with patch("nostaro.utils.protocol.NOTIFICATION_QUEUE_SIZE", 1):
            async for event in iter_notifications(client):
                # one event in hand plus at most one buffered
                assert len(handed_over) <= len(received) + 2
                received.append(event)
        assert received == events
