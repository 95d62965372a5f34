"""
Prometheus metrics for long-running commands and their HTTP exposition.

Only ``watch`` runs long enough for scraping to be useful, so the metrics
here describe notification handling. Metric objects are module-level
singletons (thread-safe); the [MetricsServer][nostaro.core.metrics.MetricsServer]
is started only when ``--metrics-port`` is given.

Architecture:
    WATCH_NOTIFICATIONS:    Counter of handled notifications by ``outcome``
                            (``delivered``, ``skipped``, ``duplicate``, ``failed``).
    WATCH_DELIVERY_SECONDS: Histogram of webhook round-trip latency.
"""

from __future__ import annotations

from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)
from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class MetricsConfig(BaseModel):
    """Configuration for the Prometheus metrics endpoint.

    The endpoint is only started when ``enabled`` is True.
    """

    enabled: bool = Field(default=False, description="Enable the /metrics endpoint")
    port: int = Field(default=9464, ge=1024, le=65535, description="Metrics HTTP port")
    host: str = Field(default="127.0.0.1", description="Metrics HTTP bind address")
    path: str = Field(default="/metrics", description="Metrics endpoint path")


# ---------------------------------------------------------------------------
# Watch metrics
# ---------------------------------------------------------------------------

WATCH_NOTIFICATIONS = Counter(
    "nostaro_watch_notifications",
    "Notifications handled by the watch loop, by outcome",
    ["outcome"],
)

WATCH_DELIVERY_SECONDS = Histogram(
    "nostaro_watch_delivery_seconds",
    "Webhook delivery latency in seconds",
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30),
)


# ---------------------------------------------------------------------------
# HTTP Server
# ---------------------------------------------------------------------------


class MetricsServer:
    """Async HTTP server exposing a Prometheus-compatible /metrics endpoint.

    Example:
        server = MetricsServer(MetricsConfig(enabled=True, port=9464))
        await server.start()
        # ... watch runs ...
        await server.stop()
    """

    def __init__(self, config: MetricsConfig) -> None:
        self._config = config
        self._runner: web.AppRunner | None = None

    @property
    def running(self) -> bool:
        return self._runner is not None

    async def start(self) -> None:
        """Bind the endpoint; no-op when metrics are disabled.

        Raises:
            OSError: If the port is already in use or binding fails.
        """
        if not self._config.enabled or self._runner is not None:
            return

        app = web.Application()
        app.router.add_get(self._config.path, self._handle_metrics)

        runner = web.AppRunner(app, access_log=None)
        await runner.setup()
        site = web.TCPSite(runner, self._config.host, self._config.port)
        try:
            await site.start()
        except OSError:
            await runner.cleanup()
            raise
        self._runner = runner

    async def stop(self) -> None:
        """Stop the HTTP server. Idempotent."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None

    @staticmethod
    async def _handle_metrics(_request: web.Request) -> web.Response:
        return web.Response(
            body=generate_latest(),
            headers={"Content-Type": CONTENT_TYPE_LATEST},
        )
