"""CLI entry point for nostaro.

Parses the command line, loads the configuration once, and dispatches to
the selected handler in [nostaro.commands][nostaro.commands]. This module
is the error boundary: every
[NostaroError][nostaro.core.exceptions.NostaroError] and ``ValueError``
raised below it is logged, printed to stderr, and turned into exit code 1;
Ctrl+C exits with 130.

Examples:
    ```bash
    nostaro init
    nostaro post "Hello Nostr!"
    nostaro timeline --limit 10 --cached
    nostaro watch --webhook https://discord.com/api/webhooks/... --log-level INFO
    python -m nostaro relay list
    ```
"""

import argparse
import asyncio
import inspect
import sys
from collections.abc import Sequence

from nostr_sdk import NostrSdkError

from nostaro import __version__
from nostaro.commands import Context, register_all
from nostaro.core.config import NostaroConfig, resolve_config_dir
from nostaro.core.exceptions import NostaroError
from nostaro.core.logger import Logger, setup_logging


logger = Logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nostaro",
        description="A Nostr CLI client",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config-dir",
        help="Configuration directory (default: $NOSTARO_HOME or ~/.nostaro)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Log level (default: WARNING)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit log records as JSON",
    )

    subparsers = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")
    register_all(subparsers)
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """Run one command and return its exit code.

    Coroutine handlers get their own event loop; the synchronous ``vanity``
    handler runs directly so Ctrl+C reaches its worker pool loop.
    """
    args = parse_args(argv)
    setup_logging(args.log_level, json_output=args.log_json)

    try:
        config_dir = resolve_config_dir(args.config_dir)
        ctx = Context(config_dir=config_dir, config=NostaroConfig.load(config_dir))
        result = args.handler(ctx, args)
        if inspect.isawaitable(result):
            result = asyncio.run(result)
        return int(result)
    except (NostaroError, ValueError, NostrSdkError) as e:
        logger.error(f"{args.command}_failed", error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("interrupted")
        print("\nInterrupted.", file=sys.stderr)
        return 130


def cli() -> None:
    """Synchronous entry point for console_scripts."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
