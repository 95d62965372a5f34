"""``nostaro vanity``: brute-force a keypair with a chosen npub prefix.

Runs synchronously (no event loop): the work happens in worker processes
and the parent only reports progress.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Any

from nostaro.services.vanity import expected_attempts, search, validate_prefix

from .base import add_parser


if TYPE_CHECKING:
    import argparse

    from .base import Context


def format_progress(tried: int, elapsed: float) -> str:
    rate = int(tried / elapsed) if elapsed > 0 else tried
    return f"Tried: {tried} keys | Elapsed: {int(elapsed)}s | Rate: {rate} keys/s"


def vanity(ctx: Context, args: argparse.Namespace) -> int:
    prefix = validate_prefix(args.prefix)
    ctx.echo(f"Searching for npub1{prefix}...")
    ctx.echo(f"Expected attempts: ~{expected_attempts(prefix):,}")
    if args.threads:
        ctx.echo(f"Using {args.threads} worker(s)")

    def progress(tried: int, elapsed: float) -> None:
        print(format_progress(tried, elapsed), file=sys.stderr)

    result = search(prefix, args.threads, progress=progress)
    if result is None:
        ctx.echo("\nCancelled. No match found.")
        return 130

    ctx.echo(f"\nFound after {result.tried} tries ({result.elapsed:.2f}s)!")
    ctx.echo(f"nsec: {result.nsec}")
    ctx.echo(f"npub: {result.npub}")
    ctx.echo(f"hex:  {result.public_key_hex}")
    return 0


def register(subparsers: Any) -> None:
    p = add_parser(subparsers, "vanity", vanity, "Search for an npub with a given prefix")
    p.add_argument("prefix", help="Desired characters after npub1")
    p.add_argument("-t", "--threads", type=int, help="Worker processes (default: CPU count)")
