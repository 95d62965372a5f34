"""``nostaro init``: create or import the operator's keypair."""

from __future__ import annotations

import getpass
from typing import TYPE_CHECKING, Any

from nostaro.core.exceptions import ConfigurationError
from nostaro.utils.keys import generate_keys, parse_keys

from .base import add_parser


if TYPE_CHECKING:
    import argparse

    from nostr_sdk import Keys

    from .base import Context


def key_info(keys: Keys) -> list[str]:
    return [
        f"Public key (npub): {keys.public_key().to_bech32()}",
        f"Public key (hex):  {keys.public_key().to_hex()}",
        f"Secret key (nsec): {keys.secret_key().to_bech32()}",
    ]


async def init(ctx: Context, args: argparse.Namespace) -> int:
    if ctx.config.secret_key and not args.force:
        raise ConfigurationError(
            "A secret key is already configured. Re-run with --force to replace it."
        )

    if args.import_key:
        secret = getpass.getpass("Enter your secret key (nsec1... or hex): ").strip()
        if not secret:
            raise ValueError("No secret key provided")
        keys = parse_keys(secret)
    else:
        ctx.echo("Generating new keypair...")
        keys = generate_keys()

    ctx.echo()
    for line in key_info(keys):
        ctx.echo(line)
    ctx.echo("\nKeep your nsec secret. Anyone holding it can post as you.")

    ctx.config.secret_key = keys.secret_key().to_bech32()
    if not ctx.config.relays:
        ctx.config.relays = list(ctx.config.default_relays)
    path = ctx.config.save(ctx.config_dir)

    ctx.echo(f"\nConfiguration saved to {path}")
    ctx.echo('You\'re all set! Try posting with: nostaro post "Hello Nostr!"')
    return 0


def register(subparsers: Any) -> None:
    p = add_parser(subparsers, "init", init, "Generate or import a keypair")
    p.add_argument(
        "--import",
        dest="import_key",
        action="store_true",
        help="Import an existing secret key instead of generating one",
    )
    p.add_argument("--force", action="store_true", help="Replace an existing secret key")
