"""Reading commands: timeline and NIP-50 search."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from nostr_sdk import Filter, Kind, PublicKey

from nostaro.models.constants import EventKind
from nostaro.utils.protocol import fetch_contacts, fetch_events

from .base import add_parser, print_event, print_note


if TYPE_CHECKING:
    import argparse

    from nostr_sdk import Event

    from .base import Context


def rank_timeline(events: list[Event], followed: set[str], limit: int) -> list[Event]:
    """Followed authors first, each group newest first, at most *limit* notes."""
    unique: dict[str, Event] = {}
    for e in events:
        unique.setdefault(e.id().to_hex(), e)
    ranked = sorted(
        unique.values(),
        key=lambda e: (e.author().to_hex() not in followed, -e.created_at().as_secs()),
    )
    return ranked[:limit]


async def timeline(ctx: Context, args: argparse.Namespace) -> int:
    if args.cached:
        return _cached_timeline(ctx, args.limit)

    keys = ctx.keys()
    own = keys.public_key().to_hex()
    ctx.echo("Fetching timeline...\n")

    async with ctx.client() as client:
        contacts = await fetch_contacts(client, keys.public_key())
        followed = {*contacts, own}
        authors = [PublicKey.parse(pk) for pk in followed]
        events = await fetch_events(
            client,
            Filter().kind(Kind(EventKind.TEXT_NOTE)).authors(authors).limit(args.limit),
        )
        if len(events) < args.limit:
            events += await fetch_events(
                client, Filter().kind(Kind(EventKind.TEXT_NOTE)).limit(args.limit)
            )

    notes = rank_timeline(events, followed, args.limit)
    if not notes:
        ctx.echo("No notes found.")
        return 0

    ctx.cache_events(notes)
    for note in notes:
        author = note.author().to_hex()
        if author == own:
            label = " [you]"
        elif author in followed:
            label = " [following]"
        else:
            label = ""
        print_event(ctx, note, label)
    ctx.echo(f"\nShowing {len(notes)} note(s).")
    return 0


def _cached_timeline(ctx: Context, limit: int) -> int:
    with ctx.open_cache() as cache:
        notes = cache.recent_events(EventKind.TEXT_NOTE, limit)
    if not notes:
        ctx.echo("No cached notes. Run `nostaro timeline` first.")
        return 0
    for note in notes:
        print_note(ctx, note.author, note.created_at, note.content)
    ctx.echo(f"\nShowing {len(notes)} cached note(s).")
    return 0


async def search(ctx: Context, args: argparse.Namespace) -> int:
    ctx.echo(f'Searching for "{args.query}"...\n')
    async with ctx.client() as client:
        events = await fetch_events(
            client,
            Filter().kind(Kind(EventKind.TEXT_NOTE)).search(args.query).limit(args.limit),
        )

    if not events:
        ctx.echo(f'No notes found matching "{args.query}".')
        return 0

    ctx.cache_events(events)
    for e in events:
        print_event(ctx, e)
    ctx.echo(f"\nFound {len(events)} note(s).")
    return 0


def register(subparsers: Any) -> None:
    p = add_parser(subparsers, "timeline", timeline, "Show notes from followed users and others")
    p.add_argument("-l", "--limit", type=int, default=20, help="Maximum notes (default: 20)")
    p.add_argument(
        "--cached",
        action="store_true",
        help="Read recent notes from the local cache without connecting",
    )

    p = add_parser(subparsers, "search", search, "Search notes (NIP-50)")
    p.add_argument("query", help="Search query")
    p.add_argument("-l", "--limit", type=int, default=20, help="Maximum results (default: 20)")
