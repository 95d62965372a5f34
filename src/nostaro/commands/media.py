"""Upload and zap commands: the two that talk plain HTTP besides relays."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from nostaro.core.exceptions import PaymentError
from nostaro.services.upload import upload_blossom, upload_nip96
from nostaro.services.zap import send_zap
from nostaro.utils.http import create_session
from nostaro.utils.keys import resolve_pubkey
from nostaro.utils.protocol import fetch_profile

from .base import add_parser, short_npub


if TYPE_CHECKING:
    import argparse

    from .base import Context


UPLOAD_TIMEOUT = 120.0


async def upload(ctx: Context, args: argparse.Namespace) -> int:
    path = Path(args.file).expanduser()
    if not path.is_file():
        raise ValueError(f"File not found: {path}")
    keys = ctx.keys()

    async with create_session(UPLOAD_TIMEOUT) as session:
        if args.nip96:
            server = args.server or ctx.config.nip96_url()
            ctx.echo(f"Uploading {path.name} to {server} (NIP-96)...")
            result = await upload_nip96(session, keys, path, server)
        else:
            server = args.server or ctx.config.blossom_url()
            ctx.echo(f"Uploading {path.name} to {server} (Blossom)...")
            result = await upload_blossom(session, keys, path, server)

    if result.url:
        ctx.echo(f"Uploaded: {result.url}")
    else:
        ctx.echo(f"Upload accepted but no URL was returned: {result.response}")
    ctx.echo(f"SHA-256: {result.sha256}")
    return 0


async def zap(ctx: Context, args: argparse.Namespace) -> int:
    recipient = resolve_pubkey(args.target)
    keys = ctx.keys()

    async with ctx.client() as client:
        profile = await fetch_profile(client, recipient)
    if profile is None:
        raise PaymentError(f"Could not find profile for {args.target}")
    ctx.cache_profile(recipient, profile)

    ctx.echo("Requesting invoice...")
    async with create_session() as session:
        receipt = await send_zap(
            session,
            keys,
            recipient,
            profile,
            args.amount,
            ctx.config.active_relays(),
            message=args.message or "",
            payment_command=ctx.config.payment_command,
            mint=ctx.config.payment_mint,
        )
    ctx.echo(f"⚡ Zap sent successfully! {receipt.amount_sats} sats to {short_npub(recipient)}")
    return 0


def register(subparsers: Any) -> None:
    p = add_parser(subparsers, "upload", upload, "Upload a file via Blossom (default) or NIP-96")
    p.add_argument("file", help="Path to the file")
    p.add_argument("--server", help="Upload server URL (default from config)")
    p.add_argument("--nip96", action="store_true", help="Use NIP-96 instead of Blossom")

    p = add_parser(subparsers, "zap", zap, "Send a zap (NIP-57)")
    p.add_argument("target", help="Recipient npub, nprofile or hex")
    p.add_argument("amount", type=int, help="Amount in sats")
    p.add_argument("-m", "--message", help="Zap comment")
