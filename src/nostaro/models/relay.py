"""
Relay URLs as they are stored in the operator's configuration.

[Relay.parse()][nostaro.models.relay.Relay.parse] turns whatever a user
typed after ``nostaro relay add`` into one canonical form, so the relay
list never holds the same endpoint twice under different spellings
(``ws://`` vs ``wss://``, default port, trailing slash, letter case).

Host classification lives in [network_of()][nostaro.models.relay.network_of]
and decides which scheme a relay gets:

* clearnet hosts always get ``wss://``
* ``.onion`` / ``.i2p`` / ``.loki`` hosts get ``ws://``; the overlay
  encrypts the transport
* loopback and private addresses keep the scheme they were given, so
  ``ws://localhost:7777`` works for a development relay
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from ipaddress import ip_address

from rfc3986 import uri_reference
from rfc3986.exceptions import UnpermittedComponentError, ValidationError
from rfc3986.validators import Validator

from ._validation import validate_str_not_empty
from .constants import NetworkType


_OVERLAY_SUFFIXES = {
    ".onion": NetworkType.TOR,
    ".i2p": NetworkType.I2P,
    ".loki": NetworkType.LOKI,
}

_DEFAULT_PORTS = {"ws": 80, "wss": 443}

_REPEATED_SLASHES = re.compile(r"/{2,}")


def network_of(host: str) -> NetworkType:
    """Classify *host* (name or IP literal, brackets allowed)."""
    host = host.lower().strip("[]")

    for suffix, network in _OVERLAY_SUFFIXES.items():
        if host.endswith(suffix):
            return network
    if host == "localhost" or host.endswith(".localhost"):
        return NetworkType.LOCAL

    try:
        ip = ip_address(host)
    except ValueError:
        labels = host.split(".")
        if len(labels) == 1:
            return NetworkType.UNKNOWN
        if any(not label or label[0] == "-" or label[-1] == "-" for label in labels):
            return NetworkType.UNKNOWN
        return NetworkType.CLEARNET

    if ip.is_loopback or ip.is_private or ip.is_link_local:
        return NetworkType.LOCAL
    return NetworkType.CLEARNET


@dataclass(frozen=True, slots=True)
class Relay:
    """A normalized WebSocket relay endpoint.

    Two relays compare equal when their normalized components match, so
    ``Relay.parse("ws://relay.example.com/") == Relay.parse("wss://relay.example.com")``.

    Attributes:
        scheme: ``ws`` or ``wss``.
        host: Lowercase hostname or IP address, IPv6 without brackets.
        port: Explicit non-default port, else ``None``.
        path: Path without trailing slash, else ``None``.

    Examples:
        ```python
        relay = Relay.parse("ws://Relay.Damus.io:443/")
        relay.url       # 'wss://relay.damus.io'
        relay.network   # NetworkType.CLEARNET
        ```
    """

    scheme: str
    host: str
    port: int | None = None
    path: str | None = None

    def __post_init__(self) -> None:
        if self.scheme not in _DEFAULT_PORTS:
            raise ValueError(f"Invalid scheme: {self.scheme!r} (relays use ws or wss)")
        validate_str_not_empty(self.host, "host")

    def __str__(self) -> str:
        return self.url

    @property
    def network(self) -> NetworkType:
        return network_of(self.host)

    @property
    def url(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        port = f":{self.port}" if self.port is not None else ""
        return f"{self.scheme}://{host}{port}{self.path or ''}"

    @classmethod
    def parse(cls, raw: str) -> Relay:
        """Validate and normalize a user-supplied relay URL.

        Raises:
            ValueError: If the URL is malformed, not ``ws``/``wss``, carries a
                query string or fragment, or its host cannot be classified.
        """
        if "\x00" in raw:
            raise ValueError("Relay URL contains null bytes")

        uri = uri_reference(raw.strip()).normalize()
        validator = (
            Validator()
            .require_presence_of("scheme", "host")
            .allow_schemes("ws", "wss")
            .check_validity_of("scheme", "host", "port", "path")
        )
        try:
            validator.validate(uri)
        except UnpermittedComponentError:
            raise ValueError(f"Invalid scheme in {raw.strip()!r}: must be ws or wss") from None
        except ValidationError as e:
            raise ValueError(f"Invalid relay URL {raw.strip()!r}: {e}") from None

        if uri.query or uri.fragment:
            raise ValueError(f"Relay URL must not have a query string or fragment: {raw.strip()}")

        host = uri.host.strip("[]")
        network = network_of(host)
        if network == NetworkType.UNKNOWN:
            raise ValueError(f"Invalid host: '{host}'")
        if network == NetworkType.CLEARNET:
            scheme = "wss"
        elif network == NetworkType.LOCAL:
            scheme = uri.scheme
        else:
            scheme = "ws"

        port = int(uri.port) if uri.port else None
        if port == _DEFAULT_PORTS[scheme]:
            port = None
        path = _REPEATED_SLASHES.sub("/", uri.path or "").rstrip("/") or None

        return cls(scheme=scheme, host=host, port=port, path=path)
