"""Shared fixtures for services.watch test package."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Iterator
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from nostaro.services.watch import Watcher, WatchConfig


CHANNEL_ID = "c" * 64
WEBHOOK_URL = "https://hooks.example.com/nostaro"


async def _stream(*events: Any) -> AsyncIterator[Any]:
    for event in events:
        yield event


@pytest.fixture
def stream() -> Callable[..., AsyncIterator[Any]]:
    """Factory turning events into the async iterator ``Watcher.run`` consumes."""
    return _stream


@pytest.fixture
def lookups() -> Iterator[dict[str, AsyncMock]]:
    """Patch the network lookups the watcher performs for enrichment.

    Both return ``None`` (nothing found) unless a test reconfigures them.
    """
    with (
        patch(
            "nostaro.services.watch.service.fetch_profile", new=AsyncMock(return_value=None)
        ) as profile,
        patch(
            "nostaro.services.watch.service.fetch_event_by_id", new=AsyncMock(return_value=None)
        ) as event,
    ):
        yield {"profile": profile, "event": event}


@pytest.fixture
def make_watcher(keys: Any, lookups: dict[str, AsyncMock]) -> Callable[..., Watcher]:
    """Build a watcher over a mock client and the given mock session."""

    def _make(session: MagicMock, **overrides: Any) -> Watcher:
        fields: dict[str, Any] = {"webhook_url": WEBHOOK_URL, "channel": CHANNEL_ID}
        fields.update(overrides)
        echo = fields.pop("echo", None)
        return Watcher(MagicMock(), keys, WatchConfig(**fields), session=session, echo=echo)

    return _make


def posted_payloads(session: MagicMock) -> list[dict[str, Any]]:
    """JSON bodies of every webhook POST made through *session*."""
    return [c.kwargs["json"] for c in session.post.call_args_list]


@pytest.fixture
def payloads() -> Callable[[MagicMock], list[dict[str, Any]]]:
    return posted_payloads
