"""Public chat channel commands (NIP-28)."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from nostr_sdk import EventBuilder, Filter, Kind, Tag

from nostaro.models.constants import EventKind
from nostaro.utils.keys import parse_event_id
from nostaro.utils.protocol import fetch_events, send_builder

from .base import add_parser, first_relay, format_time


if TYPE_CHECKING:
    import argparse

    from .base import Context


CHANNEL_LIST_LIMIT = 20
CHANNEL_READ_LIMIT = 30


def channel_metadata(name: str, about: str | None = None, picture: str | None = None) -> str:
    """Kind-40/41 content JSON."""
    meta: dict[str, str] = {"name": name}
    if about is not None:
        meta["about"] = about
    if picture is not None:
        meta["picture"] = picture
    return json.dumps(meta, ensure_ascii=False)


def describe_channel(content: str) -> tuple[str, str]:
    """``(name, about)`` from kind-40 content; raw content when it is not JSON."""
    try:
        meta = json.loads(content)
    except ValueError:
        return content, ""
    if not isinstance(meta, dict):
        return content, ""
    name = meta.get("name")
    about = meta.get("about")
    return (
        name if isinstance(name, str) and name else "Unnamed",
        about if isinstance(about, str) else "",
    )


async def create(ctx: Context, args: argparse.Namespace) -> int:
    content = channel_metadata(args.name, args.about, args.picture)
    ctx.echo("Creating channel...")
    async with ctx.client() as client:
        builder = EventBuilder(Kind(EventKind.CHANNEL_CREATION), content)
        event_id = await send_builder(client, builder)
    ctx.echo(f"Channel created! ID: {event_id.to_hex()}")
    return 0


async def edit(ctx: Context, args: argparse.Namespace) -> int:
    channel_id = parse_event_id(args.channel_id)
    content = channel_metadata(args.name, args.about, args.picture)
    tags = [Tag.parse(["e", channel_id.to_hex(), first_relay(ctx)])]
    ctx.echo("Updating channel metadata...")
    async with ctx.client() as client:
        builder = EventBuilder(Kind(EventKind.CHANNEL_METADATA), content).tags(tags)
        await send_builder(client, builder)
    ctx.echo("Channel metadata updated!")
    return 0


async def list_channels(ctx: Context, args: argparse.Namespace) -> int:
    ctx.echo("Fetching channels...\n")
    async with ctx.client(sign=False) as client:
        channels = await fetch_events(
            client, Filter().kind(Kind(EventKind.CHANNEL_CREATION)).limit(args.limit)
        )
    if not channels:
        ctx.echo("No channels found.")
        return 0
    for ch in channels:
        name, about = describe_channel(ch.content())
        ctx.echo(f"[{ch.id().to_hex()}] {name}")
        if about:
            ctx.echo(f"  {about}")
    ctx.echo(f"\n{len(channels)} channel(s) found.")
    return 0


async def read(ctx: Context, args: argparse.Namespace) -> int:
    channel_id = parse_event_id(args.channel_id)
    ctx.echo("Fetching channel messages...\n")
    async with ctx.client(sign=False) as client:
        messages = await fetch_events(
            client,
            Filter().kind(Kind(EventKind.CHANNEL_MESSAGE)).event(channel_id).limit(args.limit),
        )
    if not messages:
        ctx.echo("No messages in this channel.")
        return 0

    ctx.cache_events(messages)
    # Chat order: oldest first
    for msg in reversed(messages):
        when = format_time(msg.created_at().as_secs(), "%H:%M:%S")
        ctx.echo(f"[{when}] {msg.author().to_bech32()}: {msg.content()}")
    ctx.echo(f"\n{len(messages)} message(s).")
    return 0


async def post(ctx: Context, args: argparse.Namespace) -> int:
    channel_id = parse_event_id(args.channel_id)
    tags = [Tag.parse(["e", channel_id.to_hex(), first_relay(ctx), "root"])]
    ctx.echo("Posting to channel...")
    async with ctx.client() as client:
        builder = EventBuilder(Kind(EventKind.CHANNEL_MESSAGE), args.message).tags(tags)
        await send_builder(client, builder)
    ctx.echo("Message posted successfully!")
    return 0


def register(subparsers: Any) -> None:
    parser = subparsers.add_parser("channel", help="Public chat channels (NIP-28)")
    actions = parser.add_subparsers(dest="action", required=True)

    p = add_parser(actions, "create", create, "Create a channel (kind 40)")
    p.add_argument("--name", required=True, help="Channel name")
    p.add_argument("--about", help="Channel description")
    p.add_argument("--picture", help="Channel picture URL")

    p = add_parser(actions, "edit", edit, "Update channel metadata (kind 41)")
    p.add_argument("channel_id", help="Channel id (hex, note1 or nevent1)")
    p.add_argument("--name", required=True, help="Channel name")
    p.add_argument("--about", help="Channel description")
    p.add_argument("--picture", help="Channel picture URL")

    p = add_parser(actions, "list", list_channels, "List recently created channels")
    p.add_argument("-l", "--limit", type=int, default=CHANNEL_LIST_LIMIT, help="Maximum channels")

    p = add_parser(actions, "read", read, "Read channel messages")
    p.add_argument("channel_id", help="Channel id (hex, note1 or nevent1)")
    p.add_argument("-l", "--limit", type=int, default=CHANNEL_READ_LIMIT, help="Maximum messages")

    p = add_parser(actions, "post", post, "Post a message to a channel (kind 42)")
    p.add_argument("channel_id", help="Channel id (hex, note1 or nevent1)")
    p.add_argument("message", help="Message to post")
