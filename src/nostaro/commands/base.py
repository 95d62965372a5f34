"""Shared plumbing for command handlers.

A [Context][nostaro.commands.base.Context] is built once per invocation by
the CLI entry point and handed to the selected handler. It owns the config
directory, the loaded [NostaroConfig][nostaro.core.config.NostaroConfig],
and the output stream, and provides the few steps every command repeats:
deriving keys, connecting a client to the active relays, opening the cache,
and caching fetched data without letting cache failures abort the command.
"""

from __future__ import annotations

import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, TextIO

from nostr_sdk import Event, PublicKey

from nostaro.core.cache import CacheStore
from nostaro.core.config import CACHE_FILENAME
from nostaro.core.exceptions import ConfigurationError, StorageError
from nostaro.core.logger import Logger
from nostaro.utils.keys import load_keys
from nostaro.utils.protocol import connect_client, fetch_event_by_id, shutdown_client


if TYPE_CHECKING:
    import argparse
    from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
    from pathlib import Path

    from nostr_sdk import Client, EventId, Keys

    from nostaro.core.config import NostaroConfig
    from nostaro.models.profile import Profile

    Handler = Callable[["Context", argparse.Namespace], Awaitable[int] | int]


SEPARATOR = "-" * 60

logger = Logger("commands")


@dataclass(slots=True)
class Context:
    """Per-invocation state shared by all command handlers."""

    config_dir: Path
    config: NostaroConfig
    out: TextIO = field(default_factory=lambda: sys.stdout)
    _keys: Keys | None = field(default=None, repr=False)

    @property
    def cache_path(self) -> Path:
        return self.config_dir / CACHE_FILENAME

    def echo(self, text: str = "") -> None:
        print(text, file=self.out)

    def keys(self) -> Keys:
        """The operator's keys, loaded once.

        Raises:
            ConfigurationError: If no secret key is configured or it is invalid.
        """
        if self._keys is None:
            try:
                self._keys = load_keys(self.config.secret_key)
            except ValueError as e:
                raise ConfigurationError(str(e)) from e
        return self._keys

    @asynccontextmanager
    async def client(self, *, sign: bool = True) -> AsyncIterator[Client]:
        """A client connected to the active relays, shut down on exit."""
        keys = self.keys() if sign else None
        client = await connect_client(keys, self.config.active_relays())
        try:
            yield client
        finally:
            await shutdown_client(client)

    def open_cache(self) -> CacheStore:
        return CacheStore(self.cache_path).open()

    # -------------------------------------------------------------------------
    # Best-effort caching
    # -------------------------------------------------------------------------

    def cache_events(self, events: Iterable[Event]) -> int:
        """Cache fetched *events*; storage failures are logged and ignored."""
        try:
            with self.open_cache() as cache:
                return cache.store_nostr_events(events)
        except StorageError as e:
            logger.debug("cache_write_failed", error=str(e))
            return 0

    def cache_profile(self, pubkey: PublicKey, profile: Profile) -> None:
        try:
            with self.open_cache() as cache:
                cache.store_profile(
                    pubkey.to_hex(),
                    name=profile.name,
                    display_name=profile.display_name,
                    about=profile.about,
                    picture=profile.picture,
                )
        except StorageError as e:
            logger.debug("cache_write_failed", error=str(e))

    def cached_event(self, event_id: EventId) -> Event | None:
        """Event *event_id* from the cache, or ``None`` on a miss or any failure."""
        try:
            with self.open_cache() as cache:
                cached = cache.get_event(event_id.to_hex())
        except StorageError as e:
            logger.debug("cache_read_failed", error=str(e))
            return None
        if cached is None:
            return None
        try:
            return Event.from_json(cached.raw)
        except Exception as e:  # noqa: BLE001 -- SDK raises its own error types on bad JSON
            logger.debug("cached_event_unparsable", event_id=cached.id, error=str(e))
            return None


async def lookup_event(ctx: Context, client: Client, event_id: EventId) -> Event:
    """Resolve *event_id* from the cache first, then from the relays.

    A network hit is cached.

    Raises:
        ValueError: If no relay returns the event.
    """
    event = ctx.cached_event(event_id)
    if event is not None:
        return event
    event = await fetch_event_by_id(client, event_id)
    if event is None:
        raise ValueError(f"Event not found: {event_id.to_bech32()}")
    ctx.cache_events([event])
    return event


# -----------------------------------------------------------------------------
# Output helpers
# -----------------------------------------------------------------------------


def format_time(timestamp: int, fmt: str = "%Y-%m-%d %H:%M:%S UTC") -> str:
    try:
        return datetime.fromtimestamp(timestamp, tz=UTC).strftime(fmt)
    except (OverflowError, OSError, ValueError):
        return "unknown"


def short_npub(pubkey: PublicKey | str, length: int = 12) -> str:
    """First *length* characters of the npub of *pubkey* (hex or ``PublicKey``)."""
    pk = PublicKey.parse(pubkey) if isinstance(pubkey, str) else pubkey
    return pk.to_bech32()[:length]


def print_note(ctx: Context, author: str, created_at: int, content: str, label: str = "") -> None:
    """Print one note block: header, content, separator."""
    ctx.echo(f"[{short_npub(author)}]{label} {format_time(created_at)}")
    ctx.echo(content)
    ctx.echo(SEPARATOR)


def print_event(ctx: Context, event: Event, label: str = "") -> None:
    print_note(
        ctx,
        event.author().to_hex(),
        event.created_at().as_secs(),
        event.content(),
        label,
    )


def first_relay(ctx: Context) -> str:
    relays = ctx.config.active_relays()
    return relays[0] if relays else ""


def add_parser(
    subparsers: Any,
    name: str,
    handler: Handler,
    help_text: str,
) -> argparse.ArgumentParser:
    """Register a sub-command whose namespace carries ``handler``."""
    parser: argparse.ArgumentParser = subparsers.add_parser(
        name, help=help_text, description=help_text
    )
    parser.set_defaults(handler=handler)
    return parser
