"""Commands that only touch local state: relay list and cache."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .base import add_parser


if TYPE_CHECKING:
    import argparse

    from .base import Context


# -----------------------------------------------------------------------------
# Relays
# -----------------------------------------------------------------------------


async def relay_add(ctx: Context, args: argparse.Namespace) -> int:
    if not ctx.config.add_relay(args.url):
        ctx.echo(f"Relay {args.url} is already configured.")
        return 0
    ctx.config.save(ctx.config_dir)
    ctx.echo(f"Added relay: {ctx.config.relays[-1]}")
    return 0


async def relay_remove(ctx: Context, args: argparse.Namespace) -> int:
    if not ctx.config.remove_relay(args.url):
        raise ValueError(f"Relay {args.url} is not in the configuration.")
    ctx.config.save(ctx.config_dir)
    ctx.echo(f"Removed relay: {args.url}")
    return 0


async def relay_list(ctx: Context, _args: argparse.Namespace) -> int:
    active = ctx.config.active_relays()
    if not active:
        ctx.echo("No relays configured. Add one with: nostaro relay add <url>")
        return 0
    suffix = "" if ctx.config.relays else " (default)"
    ctx.echo("Active relays:")
    for url in active:
        ctx.echo(f"  - {url}{suffix}")
    return 0


# -----------------------------------------------------------------------------
# Cache
# -----------------------------------------------------------------------------


async def cache_stats(ctx: Context, _args: argparse.Namespace) -> int:
    with ctx.open_cache() as cache:
        stats = cache.stats()
    ctx.echo("Cache statistics:")
    ctx.echo(f"  Events:   {stats.events}")
    ctx.echo(f"  Profiles: {stats.profiles}")
    ctx.echo(f"  Path:     {ctx.cache_path}")
    return 0


async def cache_clear(ctx: Context, _args: argparse.Namespace) -> int:
    with ctx.open_cache() as cache:
        cache.clear()
    ctx.echo("Cache cleared.")
    return 0


def register(subparsers: Any) -> None:
    parser = subparsers.add_parser("relay", help="Manage relays")
    actions = parser.add_subparsers(dest="action", required=True)
    p = add_parser(actions, "add", relay_add, "Add a relay")
    p.add_argument("url", help="Relay URL (wss://...)")
    p = add_parser(actions, "remove", relay_remove, "Remove a relay")
    p.add_argument("url", help="Relay URL")
    add_parser(actions, "list", relay_list, "List active relays")

    parser = subparsers.add_parser("cache", help="Manage the local cache")
    actions = parser.add_subparsers(dest="action", required=True)
    add_parser(actions, "stats", cache_stats, "Show cached event and profile counts")
    add_parser(actions, "clear", cache_clear, "Delete all cached data")
