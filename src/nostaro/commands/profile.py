"""Profile commands: show and set kind-0 metadata."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from nostr_sdk import EventBuilder, Kind, Nip19Profile

from nostaro.models.constants import EventKind
from nostaro.models.profile import Profile
from nostaro.utils.keys import resolve_pubkey
from nostaro.utils.protocol import fetch_profile, send_builder

from .base import add_parser, short_npub


if TYPE_CHECKING:
    import argparse

    from .base import Context


PROFILE_FIELDS = (
    "name",
    "display_name",
    "about",
    "picture",
    "lud16",
    "lud06",
    "nip05",
    "banner",
    "website",
)

_LABELS = {
    "name": "Name",
    "display_name": "Display Name",
    "about": "About",
    "picture": "Picture",
    "banner": "Banner",
    "website": "Website",
    "nip05": "NIP-05",
    "lud16": "Lightning",
    "lud06": "LNURL",
}


def profile_lines(profile: Profile) -> list[str]:
    """``Label: value`` lines for every field set on *profile*."""
    lines = []
    for name, label in _LABELS.items():
        value = getattr(profile, name)
        if value:
            lines.append(f"{label + ':':<14}{value}")
    return lines


async def show(ctx: Context, args: argparse.Namespace) -> int:
    pubkey = resolve_pubkey(args.pubkey) if args.pubkey else ctx.keys().public_key()
    ctx.echo(f"Fetching profile for {short_npub(pubkey)}...\n")

    async with ctx.client() as client:
        profile = await fetch_profile(client, pubkey)

    if profile is None:
        ctx.echo("No profile metadata found.")
    else:
        ctx.cache_profile(pubkey, profile)
        for line in profile_lines(profile):
            ctx.echo(line)

    ctx.echo(f"{'Npub:':<14}{pubkey.to_bech32()}")
    ctx.echo(f"{'Nprofile:':<14}{Nip19Profile(pubkey, []).to_bech32()}")
    return 0


async def set_profile(ctx: Context, args: argparse.Namespace) -> int:
    updates = {name: getattr(args, name) for name in PROFILE_FIELDS}
    if all(v is None for v in updates.values()):
        flags = ", ".join("--" + name.replace("_", "-") for name in PROFILE_FIELDS)
        raise ValueError(f"At least one field must be specified ({flags})")

    keys = ctx.keys()
    async with ctx.client() as client:
        current = await fetch_profile(client, keys.public_key()) or Profile()
        updated = current.merged(**updates)
        ctx.echo("Setting profile metadata...")
        await send_builder(client, EventBuilder(Kind(EventKind.METADATA), updated.to_json()))

    ctx.cache_profile(keys.public_key(), updated)
    ctx.echo("Profile updated successfully!")
    return 0


def register(subparsers: Any) -> None:
    parser = subparsers.add_parser("profile", help="View or set a profile")
    actions = parser.add_subparsers(dest="action", required=True)

    p = add_parser(actions, "show", show, "Show a profile")
    p.add_argument("-p", "--pubkey", help="npub, nprofile or hex (default: your own)")

    p = add_parser(actions, "set", set_profile, "Set your profile metadata (kind 0)")
    for name in PROFILE_FIELDS:
        p.add_argument("--" + name.replace("_", "-"), dest=name, help=_LABELS[name])
