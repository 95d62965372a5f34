"""Operator configuration stored as YAML under the config directory.

The config directory holds ``config.yaml`` (this model) and ``cache.db``
(the [CacheStore][nostaro.core.cache.CacheStore]). It is resolved once per
invocation by [resolve_config_dir()][nostaro.core.config.resolve_config_dir]
and then passed explicitly to everything that needs a path, so tests can
point the whole client at a temporary directory.

Examples:
    ```yaml
    secret_key: nsec1...
    relays:
      - wss://relay.damus.io
      - wss://nos.lol
    blossom_server: https://blossom.primal.net
    ```

See Also:
    [load_yaml()][nostaro.core.yaml.load_yaml]: Underlying file reader.
    [load_keys()][nostaro.utils.keys.load_keys]: Derives signing keys from
        ``secret_key`` (or ``$NOSTARO_SECRET_KEY``).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from nostaro.models.relay import Relay

from .exceptions import ConfigurationError
from .yaml import load_yaml, save_yaml


ENV_HOME = "NOSTARO_HOME"
CONFIG_FILENAME = "config.yaml"
CACHE_FILENAME = "cache.db"

DEFAULT_RELAYS = [
    "wss://relay.damus.io",
    "wss://nos.lol",
    "wss://relay.nostr.band",
    "wss://r.kojira.io",
]
DEFAULT_BLOSSOM_SERVER = "https://blossom.primal.net"
DEFAULT_NIP96_SERVER = "https://nostr.build"


def resolve_config_dir(explicit: str | Path | None = None) -> Path:
    """Return the config directory: *explicit*, else ``$NOSTARO_HOME``, else ``~/.nostaro``."""
    if explicit:
        return Path(explicit).expanduser()
    env = os.getenv(ENV_HOME)
    if env:
        return Path(env).expanduser()
    return Path.home() / ".nostaro"


def _normalize_relays(values: list[str]) -> list[str]:
    urls: list[str] = []
    for value in values:
        url = Relay.parse(value).url
        if url not in urls:
            urls.append(url)
    return urls


class NostaroConfig(BaseModel):
    """Persistent operator settings.

    Attributes:
        secret_key: nsec or hex secret key; ``None`` until ``nostaro init``.
        relays: Operator-selected relays (normalized, deduplicated).
        default_relays: Fallback relays used while ``relays`` is empty.
        blossom_server: Preferred Blossom upload server.
        nip96_server: Preferred NIP-96 upload server.
        payment_command: Executable used to pay zap invoices.
        payment_mint: Mint URL passed to ``payment_command``.
    """

    secret_key: str | None = Field(default=None, repr=False)
    relays: list[str] = Field(default_factory=list)
    default_relays: list[str] = Field(default_factory=lambda: list(DEFAULT_RELAYS))
    blossom_server: str | None = None
    nip96_server: str | None = None
    payment_command: str = Field(default="cashu", min_length=1)
    payment_mint: str = Field(default="https://mint.coinos.io", min_length=1)

    @field_validator("relays", "default_relays")
    @classmethod
    def _validate_relays(cls, v: list[str]) -> list[str]:
        return _normalize_relays(v)

    @field_validator("secret_key")
    @classmethod
    def _strip_secret_key(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NostaroConfig:
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @classmethod
    def load(cls, config_dir: Path) -> NostaroConfig:
        """Load ``config.yaml`` from *config_dir*; a missing file yields defaults.

        Raises:
            ConfigurationError: If the file is unreadable, not valid YAML, or
                fails model validation.
        """
        path = config_dir / CONFIG_FILENAME
        if not path.exists():
            return cls()
        try:
            data = load_yaml(path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read {path}: {e}") from e
        return cls.from_dict(data)

    def save(self, config_dir: Path) -> Path:
        """Write the config to ``config.yaml`` (mode 0600) and return its path."""
        path = config_dir / CONFIG_FILENAME
        data = self.model_dump(exclude_none=True)
        try:
            save_yaml(path, data, private=True)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot write {path}: {e}") from e
        return path

    def active_relays(self) -> list[str]:
        """Configured relays, or the defaults when none are configured."""
        return list(self.relays) if self.relays else list(self.default_relays)

    def blossom_url(self) -> str:
        return self.blossom_server or DEFAULT_BLOSSOM_SERVER

    def nip96_url(self) -> str:
        return self.nip96_server or DEFAULT_NIP96_SERVER

    def add_relay(self, url: str) -> bool:
        """Add a relay; return ``False`` if it was already configured.

        Raises:
            ValueError: If *url* is not a valid relay URL.
        """
        normalized = Relay.parse(url).url
        if normalized in self.relays:
            return False
        self.relays.append(normalized)
        return True

    def remove_relay(self, url: str) -> bool:
        """Remove a relay; return ``False`` if it was not configured."""
        try:
            normalized = Relay.parse(url).url
        except ValueError:
            normalized = url
        if normalized not in self.relays:
            return False
        self.relays.remove(normalized)
        return True
