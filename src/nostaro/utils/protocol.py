"""Nostr protocol client operations for nostaro.

Thin helpers over ``nostr_sdk.Client`` used by every command: client
construction and relay connection, bounded fetches that return plain lists,
contact-list handling, NIP-10/NIP-18/NIP-25 tag construction, and the
notification bridge that turns ``Client.handle_notifications`` into an
async iterator for the watch loop.

Attributes:
    connect_client: Build a signing client and connect it to a relay list.
    fetch_events: Bounded filter query returning events newest first.
    fetch_profile: Latest kind-0 metadata of an author as a
        [Profile][nostaro.models.profile.Profile].
    iter_notifications: Async iterator over inbound subscription events.

Note:
    Relay errors from the SDK surface as ``nostr_sdk.NostrSdkError``; this
    module lets them propagate (except during shutdown) so each command can
    decide how to report them.

Examples:
    ```python
    client = await connect_client(keys, ["wss://relay.damus.io"])
    try:
        notes = await fetch_events(client, Filter().kind(Kind(1)).limit(20))
    finally:
        await shutdown_client(client)
    ```
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from nostr_sdk import (
    Client,
    ClientBuilder,
    EventBuilder,
    Filter,
    HandleNotification,
    Kind,
    NostrSdkError,
    NostrSigner,
    RelayUrl,
    Tag,
)

from nostaro.models.constants import EventKind
from nostaro.models.profile import Profile
from nostaro.models.tags import PubkeyRef, event_tags, root_event_ref


if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable

    from nostr_sdk import Event, EventId, Keys, PublicKey


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

# Inbound events buffered ahead of the consumer; a full queue blocks the SDK callback
NOTIFICATION_QUEUE_SIZE = 1000


# ---------------------------------------------------------------------------
# Client lifecycle
# ---------------------------------------------------------------------------


def create_client(keys: Keys | None = None) -> Client:
    """Create a client, signing with *keys* when given (read-only otherwise)."""
    builder = ClientBuilder()
    if keys is not None:
        builder = builder.signer(NostrSigner.keys(keys))
    return builder.build()


async def connect_client(keys: Keys | None, relays: Iterable[str]) -> Client:
    """Create a client, add every relay in *relays*, and connect.

    Relays the SDK refuses to add are logged and skipped.

    Raises:
        ValueError: If none of the relays could be added.
    """
    client = create_client(keys)
    added = 0
    for url in relays:
        try:
            await client.add_relay(RelayUrl.parse(url))
        except NostrSdkError as e:
            logger.warning("relay_add_failed url=%s error=%s", url, e)
            continue
        added += 1
    if added == 0:
        raise ValueError("No usable relays configured. Add one with `nostaro relay add`.")
    await client.connect()
    logger.debug("client_connected relays=%d", added)
    return client


async def shutdown_client(client: Client) -> None:
    """Shut the client down, ignoring errors from the FFI layer."""
    # nostr-sdk Rust FFI can raise arbitrary exception types during shutdown.
    with contextlib.suppress(Exception):
        await client.shutdown()


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------


async def fetch_events(
    client: Client,
    event_filter: Filter,
    timeout: float = DEFAULT_TIMEOUT,  # noqa: ASYNC109
) -> list[Event]:
    """Fetch events matching *event_filter*, newest first."""
    events = await client.fetch_events(event_filter, timedelta(seconds=timeout))
    result = list(events.to_vec())
    result.sort(key=lambda e: e.created_at().as_secs(), reverse=True)
    return result


async def fetch_event_by_id(
    client: Client,
    event_id: EventId,
    timeout: float = DEFAULT_TIMEOUT,  # noqa: ASYNC109
) -> Event | None:
    events = await fetch_events(client, Filter().id(event_id).limit(1), timeout)
    return events[0] if events else None


async def fetch_metadata_event(
    client: Client,
    pubkey: PublicKey,
    timeout: float = DEFAULT_TIMEOUT,  # noqa: ASYNC109
) -> Event | None:
    """Return the newest kind-0 event of *pubkey*, if any relay has one."""
    f = Filter().kind(Kind(EventKind.METADATA)).author(pubkey).limit(1)
    events = await fetch_events(client, f, timeout)
    return events[0] if events else None


async def fetch_profile(
    client: Client,
    pubkey: PublicKey,
    timeout: float = DEFAULT_TIMEOUT,  # noqa: ASYNC109
) -> Profile | None:
    event = await fetch_metadata_event(client, pubkey, timeout)
    return Profile.from_json(event.content()) if event is not None else None


async def fetch_contacts(
    client: Client,
    pubkey: PublicKey,
    timeout: float = DEFAULT_TIMEOUT,  # noqa: ASYNC109
) -> list[str]:
    """Return the hex pubkeys in the newest contact list of *pubkey*."""
    f = Filter().kind(Kind(EventKind.CONTACTS)).author(pubkey).limit(1)
    events = await fetch_events(client, f, timeout)
    if not events:
        return []
    contacts: list[str] = []
    for tag in event_tags(events[0]):
        if isinstance(tag, PubkeyRef) and tag.pubkey not in contacts:
            contacts.append(tag.pubkey)
    return contacts


async def fetch_followers(
    client: Client,
    pubkey: PublicKey,
    limit: int = 500,
    timeout: float = DEFAULT_TIMEOUT,  # noqa: ASYNC109
) -> list[str]:
    """Return hex authors whose contact lists mention *pubkey*."""
    f = Filter().kind(Kind(EventKind.CONTACTS)).pubkey(pubkey).limit(limit)
    events = await fetch_events(client, f, timeout)
    followers: list[str] = []
    for event in events:
        author = event.author().to_hex()
        if author not in followers:
            followers.append(author)
    return followers


# ---------------------------------------------------------------------------
# Publishing
# ---------------------------------------------------------------------------


async def send_builder(client: Client, builder: EventBuilder) -> EventId:
    """Sign and send *builder*; return the published event id."""
    output = await client.send_event_builder(builder)
    return output.id


async def publish_contact_list(client: Client, contacts: Iterable[str]) -> EventId:
    tags = [Tag.parse(["p", pk]) for pk in contacts]
    builder = EventBuilder(Kind(EventKind.CONTACTS), "").tags(tags)
    return await send_builder(client, builder)


# ---------------------------------------------------------------------------
# Tag construction
# ---------------------------------------------------------------------------


def reply_tags(target: Event, own_pubkey: str | None = None) -> list[Tag]:
    """NIP-10 marked tags for a reply to *target*.

    The thread root is carried over from *target* when it has one; otherwise
    *target* itself becomes the root. The author of *target* and every
    identity it already mentions are tagged, excluding *own_pubkey*.
    """
    target_id = target.id().to_hex()
    target_author = target.author().to_hex()
    parsed = event_tags(target)

    root = root_event_ref(parsed)
    tags: list[Tag] = []
    if root is not None and root.event_id != target_id:
        tags.append(Tag.parse(["e", root.event_id, root.relay_url or "", "root"]))
        tags.append(Tag.parse(["e", target_id, "", "reply"]))
    else:
        tags.append(Tag.parse(["e", target_id, "", "root"]))

    mentioned: list[str] = [target_author]
    for tag in parsed:
        if isinstance(tag, PubkeyRef) and tag.pubkey not in mentioned:
            mentioned.append(tag.pubkey)
    tags.extend(Tag.parse(["p", pk]) for pk in mentioned if pk != own_pubkey)
    return tags


def reaction_tags(target: Event) -> list[Tag]:
    """NIP-25 tags: reacted-to event, its author, and its kind."""
    return [
        Tag.parse(["e", target.id().to_hex()]),
        Tag.parse(["p", target.author().to_hex()]),
        Tag.parse(["k", str(target.kind().as_u16())]),
    ]


def repost_tags(target: Event) -> list[Tag]:
    """NIP-18 tags for a kind-6 repost of *target*."""
    return [
        Tag.parse(["e", target.id().to_hex(), ""]),
        Tag.parse(["p", target.author().to_hex()]),
    ]


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


class _QueueHandler(HandleNotification):
    """Push every inbound subscription event onto an ``asyncio.Queue``."""

    def __init__(self, queue: asyncio.Queue[Any]) -> None:
        super().__init__()
        self._queue = queue

    async def handle(self, relay_url: Any, subscription_id: str, event: Event) -> None:
        await self._queue.put(event)

    async def handle_msg(self, relay_url: Any, msg: Any) -> None:
        return None


_STREAM_END = object()


async def iter_notifications(client: Client) -> AsyncIterator[Event]:
    """Yield inbound subscription events in delivery order.

    ``Client.handle_notifications`` is callback driven; it runs in a
    background task that feeds a bounded queue, so a slow consumer holds
    back the SDK callback instead of growing memory. The iterator ends when
    that task finishes (the SDK stops on shutdown), logging any error it
    raised, and cancels the task when the consumer stops early.
    """
    queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=NOTIFICATION_QUEUE_SIZE)

    def _on_done(task: asyncio.Task[Any]) -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.warning("notification_stream_failed error=%s", task.exception())
        # A full queue is drained by the consumer, which then sees the task done
        with contextlib.suppress(asyncio.QueueFull):
            queue.put_nowait(_STREAM_END)

    task = asyncio.create_task(client.handle_notifications(_QueueHandler(queue)))
    task.add_done_callback(_on_done)
    try:
        while not (task.done() and queue.empty()):
            item = await queue.get()
            if item is _STREAM_END:
                return
            yield item
    finally:
        if not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await task
