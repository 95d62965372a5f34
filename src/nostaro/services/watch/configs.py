"""Watch loop configuration models.

See Also:
    [Watcher][nostaro.services.watch.Watcher]: The service class that
        consumes this configuration.
    [MetricsConfig][nostaro.core.metrics.MetricsConfig]: Optional Prometheus
        endpoint for long-running watches.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, Field, field_validator

from nostaro.core.metrics import MetricsConfig


_HEX_ID = re.compile(r"^[0-9a-f]{64}$")


class WatchConfig(BaseModel):
    """What to watch and where to send alerts.

    Attributes:
        webhook_url: Destination for alerts (``http``/``https``).
        target: Identity to monitor (npub, hex, or nprofile); ``None`` means
            the operator's own key.
        channel: Hex id of a NIP-28 channel whose messages are relayed.
        profile_timeout: Seconds allowed for an author metadata lookup.
        reaction_fetch_timeout: Seconds allowed for fetching a reacted-to event.
        webhook_timeout: Total seconds allowed for one webhook POST.
        max_message_length: Hard cap on the delivered message, ellipsis included.
        excerpt_length: Characters of reacted-to content kept in the excerpt.
        metrics: Prometheus endpoint settings.
    """

    webhook_url: str = Field(min_length=1)
    target: str | None = None
    channel: str | None = None
    profile_timeout: float = Field(default=10.0, gt=0, le=120.0)
    reaction_fetch_timeout: float = Field(default=5.0, gt=0, le=120.0)
    webhook_timeout: float = Field(default=10.0, gt=0, le=120.0)
    max_message_length: int = Field(default=2000, ge=10)
    excerpt_length: int = Field(default=200, ge=1)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    @field_validator("webhook_url")
    @classmethod
    def _validate_webhook_url(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("webhook_url must be an http(s) URL")
        return v

    @field_validator("channel")
    @classmethod
    def _validate_channel(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip().lower()
        if not _HEX_ID.match(v):
            raise ValueError("channel must be a 64-character hex event id")
        return v
