"""
Pytest configuration and shared fixtures for nostaro tests.

Provides:
- Deterministic test keypairs and signed event factories
- Isolated config directory and cache store under ``tmp_path``
- Mock aiohttp session/response builders
"""

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from nostr_sdk import Event, EventBuilder, Keys, Kind, Tag

from nostaro.core.cache import CacheStore
from nostaro.core.config import NostaroConfig
from nostaro.utils.keys import ENV_SECRET_KEY


# ============================================================================
# Test Constants
# ============================================================================

# Valid secp256k1 test keys (DO NOT USE IN PRODUCTION)
VALID_HEX_KEY = (
    "67dea2ed018072d675f5415ecfaed7d2597555e202d85b3d65ea4e58d2d92ffa"  # pragma: allowlist secret
)
VALID_NSEC_KEY = (
    "nsec1vl029mgpspedva04g90vltkh6fvh240zqtv9k0t9af8935ke9laqsnlfe5"  # pragma: allowlist secret
)

CHANNEL_ID = "c" * 64
OTHER_CHANNEL_ID = "d" * 64


# ============================================================================
# Environment
# ============================================================================


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the operator's real key and config directory out of every test."""
    monkeypatch.delenv(ENV_SECRET_KEY, raising=False)
    monkeypatch.delenv("NOSTARO_HOME", raising=False)


# ============================================================================
# Keys and Events
# ============================================================================


@pytest.fixture
def keys() -> Keys:
    """The operator's keypair."""
    return Keys.parse(VALID_HEX_KEY)


@pytest.fixture
def other_keys() -> Keys:
    """A second, random identity."""
    return Keys.generate()


@pytest.fixture
def make_event() -> Callable[..., Event]:
    """Factory signing an event of any kind with the given tags."""

    def _make(
        signer: Keys,
        kind: int = 1,
        content: str = "",
        tags: list[list[str]] | None = None,
    ) -> Event:
        builder = EventBuilder(Kind(kind), content).tags([Tag.parse(t) for t in tags or []])
        return builder.sign_with_keys(signer)

    return _make


# ============================================================================
# Config and Cache
# ============================================================================


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    return tmp_path / "nostaro"


@pytest.fixture
def config() -> NostaroConfig:
    return NostaroConfig(secret_key=VALID_HEX_KEY)


@pytest.fixture
def cache(tmp_path: Path) -> Iterator[CacheStore]:
    store = CacheStore(tmp_path / "cache.db").open()
    yield store
    store.close()


# ============================================================================
# HTTP Mocks
# ============================================================================


def _mock_response(status: int = 200, body: bytes = b"") -> MagicMock:
    """Build a mock aiohttp.ClientResponse whose body is read in one chunk."""
    resp = MagicMock()
    resp.status = status
    content = MagicMock()
    content.read = AsyncMock(side_effect=[body, b""])
    resp.content = content
    return resp


def _mock_context(response: Any) -> MagicMock:
    """Wrap *response* in an async context manager, as session methods return."""
    ctx = MagicMock()
    ctx.__aenter__ = AsyncMock(return_value=response)
    ctx.__aexit__ = AsyncMock(return_value=False)
    return ctx


def _mock_session(*responses: MagicMock, method: str = "post") -> MagicMock:
    """A session whose *method* returns the given responses in order."""
    session = MagicMock()
    setattr(
        session,
        method,
        MagicMock(side_effect=[_mock_context(r) for r in responses]),
    )
    session.close = AsyncMock()
    return session


@pytest.fixture
def http_response() -> Callable[..., MagicMock]:
    """Factory for mock responses: ``http_response(status, body)``."""
    return _mock_response


@pytest.fixture
def http_session() -> Callable[..., MagicMock]:
    """Factory for mock sessions: ``http_session(*responses, method="post")``."""
    return _mock_session
