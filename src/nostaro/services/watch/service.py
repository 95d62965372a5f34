"""Watch loop: relay subscription events to a webhook as readable alerts.

The [Watcher][nostaro.services.watch.Watcher] subscribes to mentions,
replies and reactions aimed at a target identity (and optionally to the
messages of one NIP-28 channel), then consumes the notification stream one
event at a time:

```text
event -> dedup -> self filter -> classify -> resolve author -> render -> POST
```

Processing is strictly sequential: each delivery is awaited before the next
event is taken, so alerts keep the order in which relays delivered them.
Every step that can fail for a single event (metadata lookup, reacted-to
event lookup, webhook POST) is contained inside that event's iteration; a
bad event or a failed delivery is logged and counted, never fatal.

Author identities are memoized per run in a plain dict owned by the
watcher, including lookup failures, and are never refreshed while the loop
runs.

See Also:
    [iter_notifications()][nostaro.utils.protocol.iter_notifications]:
        Adapter producing the event stream from the SDK client.
    [post_webhook()][nostaro.services.watch.webhook.post_webhook]: Delivery
        primitive raising [DeliveryError][nostaro.core.exceptions.DeliveryError].
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Self

from nostr_sdk import EventId, Filter, Kind, NostrSdkError, Timestamp

from nostaro.core.exceptions import DeliveryError
from nostaro.core.logger import Logger
from nostaro.core.metrics import WATCH_DELIVERY_SECONDS, WATCH_NOTIFICATIONS
from nostaro.models.constants import EventKind
from nostaro.models.tags import event_tags, first_event_ref, has_event_ref, root_event_ref
from nostaro.utils.http import create_session
from nostaro.utils.keys import parse_event_id, resolve_pubkey
from nostaro.utils.protocol import fetch_event_by_id, fetch_profile, iter_notifications

from .utils import (
    Notification,
    NotificationLabel,
    Outcome,
    ProfileDisplay,
    build_payload,
    display_from_metadata,
    excerpt,
    reaction_emoji,
)
from .webhook import post_webhook


if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable
    from types import TracebackType

    import aiohttp
    from nostr_sdk import Client, Event, Keys, PublicKey

    from .configs import WatchConfig


# Maximum number of processed event IDs to track before resetting
_MAX_PROCESSED_IDS = 10_000

# Per-event failures that must not end the session
_EVENT_ERRORS = (NostrSdkError, ValueError, OSError, TimeoutError)


class WatchStats:
    """Mutable per-run counters, one per [Outcome][nostaro.services.watch.utils.Outcome]."""

    __slots__ = ("delivered", "duplicate", "failed", "skipped")

    def __init__(self) -> None:
        self.delivered = 0
        self.skipped = 0
        self.duplicate = 0
        self.failed = 0

    def record(self, outcome: Outcome) -> None:
        setattr(self, outcome.value, getattr(self, outcome.value) + 1)

    @property
    def total(self) -> int:
        return self.delivered + self.skipped + self.duplicate + self.failed


class Watcher:
    """Consume subscription events and forward alerts to a webhook.

    Use as an async context manager so the HTTP session is closed:

    ```python
    async with Watcher(client, keys, config) as watcher:
        await watcher.subscribe()
        stats = await watcher.run(iter_notifications(client))
    ```

    Args:
        client: Connected ``nostr_sdk.Client`` used for subscriptions and
            enrichment lookups.
        keys: Operator keys; their public key is the default target and the
            identity whose own notes are filtered out.
        config: What to watch and where to deliver.
        session: Optional pre-built ``aiohttp`` session (owned by the caller).
        echo: Optional callback receiving each delivered message, used by the
            CLI to mirror alerts on the console.
    """

    def __init__(
        self,
        client: Client,
        keys: Keys,
        config: WatchConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        echo: Callable[[str], None] | None = None,
    ) -> None:
        self._client = client
        self._config = config
        self._own_pubkey = keys.public_key().to_hex()
        self._target: PublicKey = (
            resolve_pubkey(config.target) if config.target else keys.public_key()
        )
        self._session = session
        self._owns_session = session is None
        self._echo = echo
        self._logger = Logger("watch")
        self._processed_ids: set[str] = set()
        self._display_cache: dict[str, ProfileDisplay] = {}
        self.stats = WatchStats()

    async def __aenter__(self) -> Self:
        if self._session is None:
            self._session = create_session(self._config.webhook_timeout)
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    @property
    def target(self) -> PublicKey:
        return self._target

    @property
    def display_cache(self) -> dict[str, ProfileDisplay]:
        return self._display_cache

    # -------------------------------------------------------------------
    # Subscription
    # -------------------------------------------------------------------

    def filters(self, since: Timestamp | None = None) -> list[Filter]:
        """Subscription filters, all scoped to events created from *since* on."""
        since = since or Timestamp.now()
        filters = [
            Filter()
            .kinds([Kind(EventKind.TEXT_NOTE), Kind(EventKind.REACTION)])
            .pubkey(self._target)
            .since(since)
        ]
        if self._config.channel:
            filters.append(
                Filter()
                .kind(Kind(EventKind.CHANNEL_MESSAGE))
                .event(EventId.parse(self._config.channel))
                .since(since)
            )
        return filters

    async def subscribe(self) -> None:
        since = Timestamp.now()
        for f in self.filters(since):
            await self._client.subscribe(f, None)
        self._logger.info(
            "subscribed",
            target=self._target.to_hex(),
            channel=self._config.channel or "-",
        )

    async def watch(self) -> WatchStats:
        """Subscribe, then run until the client's notification stream ends."""
        await self.subscribe()
        return await self.run(iter_notifications(self._client))

    # -------------------------------------------------------------------
    # Loop
    # -------------------------------------------------------------------

    async def run(self, events: AsyncIterator[Event]) -> WatchStats:
        """Process *events* in order until the stream is exhausted."""
        async for event in events:
            outcome = await self.process(event)
            self.stats.record(outcome)
            WATCH_NOTIFICATIONS.labels(outcome=outcome.value).inc()
        self._logger.info(
            "watch_finished",
            delivered=self.stats.delivered,
            skipped=self.stats.skipped,
            duplicate=self.stats.duplicate,
            failed=self.stats.failed,
        )
        return self.stats

    async def process(self, event: Event) -> Outcome:
        """Handle one inbound event; never raises for per-event failures."""
        event_id = event.id().to_hex()
        if event_id in self._processed_ids:
            return Outcome.DUPLICATE
        self._manage_dedup_set()
        self._processed_ids.add(event_id)

        try:
            notification = await self.classify(event)
            if notification is None:
                return Outcome.SKIPPED
            await self.deliver(notification)
        except DeliveryError as e:
            self._logger.error("webhook_failed", event_id=event_id, error=str(e))
            return Outcome.FAILED
        except _EVENT_ERRORS as e:
            self._logger.warning("event_processing_failed", event_id=event_id, error=str(e))
            return Outcome.FAILED
        except Exception as e:  # noqa: BLE001
            # Unexpected errors from SDK bindings or the echo callback
            self._logger.error(
                "event_processing_failed",
                event_id=event_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return Outcome.FAILED
        return Outcome.DELIVERED

    def _manage_dedup_set(self) -> None:
        """Clear the processed IDs set when it reaches the maximum size.

        The ``since`` bound on every subscription keeps replays after a
        reset limited to events relays re-deliver during this run.
        """
        if len(self._processed_ids) >= _MAX_PROCESSED_IDS:
            self._processed_ids.clear()

    # -------------------------------------------------------------------
    # Classification
    # -------------------------------------------------------------------

    async def classify(self, event: Event) -> Notification | None:
        """Turn *event* into a notification, or ``None`` if it is not relayed.

        Self-authored events are dropped except channel messages: channel
        mode mirrors all activity in the channel, the operator's included.
        """
        kind = event.kind().as_u16()
        is_channel_message = kind == EventKind.CHANNEL_MESSAGE
        if event.author().to_hex() == self._own_pubkey and not is_channel_message:
            return None

        tags = event_tags(event)
        body: str | None = None
        quote: str | None = None

        match kind:
            case EventKind.CHANNEL_MESSAGE:
                root = root_event_ref(tags)
                if not self._config.channel or root is None:
                    return None
                if root.event_id != self._config.channel:
                    return None
                label = NotificationLabel.CHANNEL_MESSAGE
                quote = event.content()
            case EventKind.TEXT_NOTE:
                label = NotificationLabel.REPLY if has_event_ref(tags) else NotificationLabel.MENTION
                quote = event.content()
            case EventKind.REACTION:
                label = NotificationLabel.REACTION
                body = reaction_emoji(event.content())
                target = first_event_ref(tags)
                if target is not None:
                    quote = await self._reaction_excerpt(target.event_id)
            case _:
                return None

        author = await self.resolve_display(event.author())
        return Notification(
            label=label,
            author=author,
            note_link=event.id().to_bech32(),
            body=body,
            quote=quote,
        )

    async def _reaction_excerpt(self, event_id: str) -> str | None:
        """Excerpt of the reacted-to note; ``None`` on any lookup failure."""
        try:
            original = await fetch_event_by_id(
                self._client,
                parse_event_id(event_id),
                timeout=self._config.reaction_fetch_timeout,
            )
        except _EVENT_ERRORS as e:
            self._logger.debug("reaction_target_lookup_failed", event_id=event_id, error=str(e))
            return None
        if original is None:
            return None
        return excerpt(original.content(), self._config.excerpt_length)

    async def resolve_display(self, pubkey: PublicKey) -> ProfileDisplay:
        """Display identity of *pubkey*, memoized for the rest of the run.

        Falls back to the npub without avatar when metadata is missing or
        the lookup fails; the fallback is cached as well.
        """
        key = pubkey.to_hex()
        cached = self._display_cache.get(key)
        if cached is not None:
            return cached

        npub = pubkey.to_bech32()
        display = ProfileDisplay(npub)
        try:
            profile = await fetch_profile(self._client, pubkey, timeout=self._config.profile_timeout)
        except _EVENT_ERRORS as e:
            self._logger.debug("profile_lookup_failed", pubkey=key, error=str(e))
        else:
            if profile is not None:
                display = display_from_metadata(
                    profile.display_name, profile.name, profile.picture, npub
                )

        self._display_cache[key] = display
        return display

    # -------------------------------------------------------------------
    # Delivery
    # -------------------------------------------------------------------

    async def deliver(self, notification: Notification) -> None:
        """Render and POST *notification*.

        Raises:
            DeliveryError: If the webhook call fails.
        """
        if self._session is None:
            raise DeliveryError("Watcher session is not open")

        payload: dict[str, Any] = build_payload(
            notification.render(),
            username=notification.author.name,
            avatar_url=notification.author.avatar_url,
            max_length=self._config.max_message_length,
        )
        start = time.monotonic()
        status = await post_webhook(self._session, self._config.webhook_url, payload)
        elapsed = time.monotonic() - start
        WATCH_DELIVERY_SECONDS.observe(elapsed)

        self._logger.info(
            "webhook_delivered",
            label=notification.label.value,
            status=status,
            duration_ms=round(elapsed * 1000, 1),
        )
        if self._echo is not None:
            self._echo(payload["content"])
