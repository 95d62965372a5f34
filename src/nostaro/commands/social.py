"""Follow-list commands (NIP-02)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from nostr_sdk import NostrSdkError, PublicKey

from nostaro.utils.keys import resolve_pubkey
from nostaro.utils.protocol import (
    fetch_contacts,
    fetch_followers,
    fetch_profile,
    publish_contact_list,
)

from .base import add_parser, logger


if TYPE_CHECKING:
    import argparse

    from nostr_sdk import Client

    from .base import Context


async def follow(ctx: Context, args: argparse.Namespace) -> int:
    target = resolve_pubkey(args.npub)
    npub = target.to_bech32()
    async with ctx.client() as client:
        contacts = await fetch_contacts(client, ctx.keys().public_key())
        if target.to_hex() in contacts:
            ctx.echo(f"Already following {npub}")
            return 0
        contacts.append(target.to_hex())
        await publish_contact_list(client, contacts)
    ctx.echo(f"Now following {npub}")
    return 0


async def unfollow(ctx: Context, args: argparse.Namespace) -> int:
    target = resolve_pubkey(args.npub)
    npub = target.to_bech32()
    async with ctx.client() as client:
        contacts = await fetch_contacts(client, ctx.keys().public_key())
        if target.to_hex() not in contacts:
            ctx.echo(f"Not following {npub}")
            return 0
        contacts.remove(target.to_hex())
        await publish_contact_list(client, contacts)
    ctx.echo(f"Unfollowed {npub}")
    return 0


async def _describe(ctx: Context, client: Client, pubkey_hex: str) -> str:
    pk = PublicKey.parse(pubkey_hex)
    npub = pk.to_bech32()
    try:
        profile = await fetch_profile(client, pk)
    except NostrSdkError as e:
        logger.debug("profile_lookup_failed", pubkey=pubkey_hex, error=str(e))
        return npub
    if profile is None:
        return npub
    ctx.cache_profile(pk, profile)
    name = profile.best_name
    return f"{name} ({npub})" if name else npub


async def following(ctx: Context, args: argparse.Namespace) -> int:
    pubkey = resolve_pubkey(args.npub) if args.npub else ctx.keys().public_key()
    async with ctx.client() as client:
        contacts = await fetch_contacts(client, pubkey)
        if not contacts:
            ctx.echo("Not following anyone yet.")
            return 0
        ctx.echo(f"Following {len(contacts)} user(s):")
        for pk in contacts:
            ctx.echo(f"  {await _describe(ctx, client, pk)}")
    return 0


async def followers(ctx: Context, args: argparse.Namespace) -> int:
    pubkey = resolve_pubkey(args.npub) if args.npub else ctx.keys().public_key()
    async with ctx.client() as client:
        found = await fetch_followers(client, pubkey, limit=args.limit)
    if not found:
        ctx.echo("No followers found.")
        return 0
    ctx.echo(f"{len(found)} follower(s):")
    for pk in found:
        ctx.echo(f"  {PublicKey.parse(pk).to_bech32()}")
    return 0


def register(subparsers: Any) -> None:
    p = add_parser(subparsers, "follow", follow, "Follow a user (kind 3)")
    p.add_argument("npub", help="npub, nprofile or hex public key")

    p = add_parser(subparsers, "unfollow", unfollow, "Unfollow a user (kind 3)")
    p.add_argument("npub", help="npub, nprofile or hex public key")

    p = add_parser(subparsers, "following", following, "List followed users")
    p.add_argument("npub", nargs="?", help="Whose follow list (default: your own)")

    p = add_parser(subparsers, "followers", followers, "List followers")
    p.add_argument("npub", nargs="?", help="Whose followers (default: your own)")
    p.add_argument("-l", "--limit", type=int, default=500, help="Contact lists to scan")
