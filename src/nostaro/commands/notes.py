"""Publishing commands: post, reply, repost, react, and raw events."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from nostr_sdk import EventBuilder, Kind, Tag

from nostaro.models.constants import EVENT_KIND_MAX, EventKind
from nostaro.utils.keys import parse_event_id
from nostaro.utils.protocol import reaction_tags, reply_tags, repost_tags, send_builder

from .base import add_parser, lookup_event


if TYPE_CHECKING:
    import argparse

    from .base import Context


DEFAULT_REACTION = "⚡"


def parse_tag_arg(value: str) -> list[str]:
    """Split a ``key,value[,value...]`` command-line tag.

    Raises:
        ValueError: If fewer than two comma-separated parts are given.
    """
    parts = value.split(",")
    if len(parts) < 2 or not parts[0]:  # noqa: PLR2004
        raise ValueError(f"Invalid tag format: '{value}'. Expected 'key,value[,value...]'")
    return parts


def parse_kind(value: str) -> int:
    kind = int(value)
    if not 0 <= kind <= EVENT_KIND_MAX:
        raise ValueError(f"Event kind must be between 0 and {EVENT_KIND_MAX}")
    return kind


async def post(ctx: Context, args: argparse.Namespace) -> int:
    async with ctx.client() as client:
        event_id = await send_builder(client, EventBuilder.text_note(args.message))
    ctx.echo("Note published!")
    ctx.echo(f"ID: {event_id.to_bech32()}")
    return 0


async def reply(ctx: Context, args: argparse.Namespace) -> int:
    target_id = parse_event_id(args.note_id)
    own = ctx.keys().public_key().to_hex()
    async with ctx.client() as client:
        target = await lookup_event(ctx, client, target_id)
        builder = EventBuilder(Kind(EventKind.TEXT_NOTE), args.message).tags(
            reply_tags(target, own)
        )
        event_id = await send_builder(client, builder)
    ctx.echo("Reply published!")
    ctx.echo(f"ID: {event_id.to_bech32()}")
    return 0


async def repost(ctx: Context, args: argparse.Namespace) -> int:
    target_id = parse_event_id(args.note_id)
    async with ctx.client() as client:
        target = await lookup_event(ctx, client, target_id)
        builder = EventBuilder(Kind(EventKind.REPOST), target.as_json()).tags(repost_tags(target))
        event_id = await send_builder(client, builder)
    ctx.echo("Reposted!")
    ctx.echo(f"ID: {event_id.to_bech32()}")
    return 0


async def react(ctx: Context, args: argparse.Namespace) -> int:
    target_id = parse_event_id(args.note_id)
    async with ctx.client() as client:
        target = await lookup_event(ctx, client, target_id)
        builder = EventBuilder(Kind(EventKind.REACTION), args.emoji).tags(reaction_tags(target))
        await send_builder(client, builder)
    ctx.echo(f"Reacted with {args.emoji} to {target_id.to_bech32()}")
    return 0


async def event(ctx: Context, args: argparse.Namespace) -> int:
    tags = [Tag.parse(parse_tag_arg(t)) for t in args.tag]
    ctx.echo(f"Publishing kind:{args.kind} event...")
    async with ctx.client() as client:
        builder = EventBuilder(Kind(args.kind), args.content).tags(tags)
        event_id = await send_builder(client, builder)
    ctx.echo(f"Event published! ID: {event_id.to_hex()}")
    return 0


def register(subparsers: Any) -> None:
    p = add_parser(subparsers, "post", post, "Post a text note (kind 1)")
    p.add_argument("message", help="The message to post")

    p = add_parser(subparsers, "reply", reply, "Reply to a note (kind 1 with NIP-10 tags)")
    p.add_argument("note_id", help="Note to reply to (note1, nevent1 or hex)")
    p.add_argument("message", help="Reply message")

    p = add_parser(subparsers, "repost", repost, "Repost a note (kind 6)")
    p.add_argument("note_id", help="Note to repost (note1, nevent1 or hex)")

    p = add_parser(subparsers, "react", react, "React to a note (kind 7)")
    p.add_argument("note_id", help="Note to react to (note1, nevent1 or hex)")
    p.add_argument(
        "emoji",
        nargs="?",
        default=DEFAULT_REACTION,
        help=f"Reaction content (default: {DEFAULT_REACTION})",
    )

    p = add_parser(subparsers, "event", event, "Publish an event of any kind")
    p.add_argument("-k", "--kind", type=parse_kind, required=True, help="Event kind number")
    p.add_argument(
        "-t",
        "--tag",
        action="append",
        default=[],
        help="Tag as 'key,value[,value...]' (repeatable)",
    )
    p.add_argument("-c", "--content", default="", help="Event content")
