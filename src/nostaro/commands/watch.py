"""``nostaro watch``: relay notifications to a webhook until interrupted."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from nostaro.core.exceptions import ConfigurationError
from nostaro.core.logger import Logger
from nostaro.core.metrics import MetricsConfig, MetricsServer
from nostaro.services.watch import WatchConfig, Watcher
from nostaro.utils.keys import parse_event_id

from .base import add_parser


if TYPE_CHECKING:
    import argparse

    from .base import Context


logger = Logger("watch")


def build_watch_config(args: argparse.Namespace) -> WatchConfig:
    """Translate CLI flags into a validated [WatchConfig][nostaro.services.watch.WatchConfig].

    Raises:
        ConfigurationError: If the webhook URL, channel id or port is invalid.
    """
    channel = parse_event_id(args.channel).to_hex() if args.channel else None
    metrics = (
        {"enabled": True, "port": args.metrics_port}
        if args.metrics_port is not None
        else {"enabled": False}
    )
    try:
        return WatchConfig(
            webhook_url=args.webhook,
            target=args.npub,
            channel=channel,
            metrics=MetricsConfig.model_validate(metrics),
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid watch options: {e}") from e


async def watch(ctx: Context, args: argparse.Namespace) -> int:
    config = build_watch_config(args)
    keys = ctx.keys()

    def echo(content: str) -> None:
        ctx.echo(content)
        ctx.echo()

    metrics_server = MetricsServer(config.metrics)
    await metrics_server.start()
    if metrics_server.running:
        logger.info(
            "metrics_server_started",
            host=config.metrics.host,
            port=config.metrics.port,
            path=config.metrics.path,
        )

    try:
        async with ctx.client() as client, Watcher(client, keys, config, echo=echo) as watcher:
            ctx.echo(f"Watching {watcher.target.to_bech32()}")
            if config.channel:
                ctx.echo(f"Channel: {config.channel}")
            ctx.echo("Press Ctrl+C to stop.\n")
            stats = await watcher.watch()
    finally:
        await metrics_server.stop()

    ctx.echo(
        f"Stream ended: {stats.delivered} delivered, {stats.skipped} skipped, "
        f"{stats.duplicate} duplicate, {stats.failed} failed."
    )
    return 0


def register(subparsers: Any) -> None:
    p = add_parser(
        subparsers,
        "watch",
        watch,
        "Forward mentions, replies, reactions and channel messages to a webhook",
    )
    p.add_argument("--webhook", required=True, help="Webhook URL (Discord-compatible)")
    p.add_argument("--npub", help="Identity to watch (default: your own)")
    p.add_argument("--channel", help="NIP-28 channel id whose messages are relayed")
    p.add_argument(
        "--metrics-port",
        type=int,
        help="Serve Prometheus metrics on this port while watching",
    )
