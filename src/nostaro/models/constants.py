"""Shared constants for the models layer.

Defines enumerations that are used across multiple model and service
modules. Placing them here avoids circular dependencies between the
models and utils layers.

See Also:
    [nostaro.models.relay][]: Uses [NetworkType][nostaro.models.constants.NetworkType]
        to classify relay URLs during construction.
    [nostaro.services.watch][]: Classifies inbound notifications by
        [EventKind][nostaro.models.constants.EventKind].
"""

from __future__ import annotations

from enum import IntEnum, StrEnum


class NetworkType(StrEnum):
    """Where a relay host lives, as decided by
    [network_of()][nostaro.models.relay.network_of].

    [Relay.parse()][nostaro.models.relay.Relay.parse] picks the scheme from
    this value and rejects ``UNKNOWN`` hosts.

    Attributes:
        CLEARNET: Public internet relay using ``wss://`` (TLS required).
        TOR: Tor hidden service identified by a ``.onion`` hostname.
        I2P: I2P eepsite identified by a ``.i2p`` hostname.
        LOKI: Lokinet service identified by a ``.loki`` hostname.
        LOCAL: Loopback or private address (e.g. a relay on ``localhost``).
        UNKNOWN: Hostname that could not be classified (rejected during validation).
    """

    CLEARNET = "clearnet"
    TOR = "tor"
    I2P = "i2p"
    LOKI = "loki"
    LOCAL = "local"
    UNKNOWN = "unknown"


class EventKind(IntEnum):
    """Well-known Nostr event kinds used by nostaro.

    Attributes:
        METADATA: Kind 0 -- user profile metadata (NIP-01).
        TEXT_NOTE: Kind 1 -- short text note (NIP-01).
        CONTACTS: Kind 3 -- follow list (NIP-02).
        ENCRYPTED_DIRECT_MESSAGE: Kind 4 -- legacy encrypted DM (NIP-04).
        REPOST: Kind 6 -- repost of a text note (NIP-18).
        REACTION: Kind 7 -- reaction (NIP-25).
        CHANNEL_CREATION: Kind 40 -- public chat channel creation (NIP-28).
        CHANNEL_METADATA: Kind 41 -- public chat channel metadata (NIP-28).
        CHANNEL_MESSAGE: Kind 42 -- public chat channel message (NIP-28).
        GIFT_WRAP: Kind 1059 -- sealed envelope (NIP-59).
        ZAP_REQUEST: Kind 9734 -- lightning zap request (NIP-57).
        BLOSSOM_AUTH: Kind 24242 -- Blossom blob server authorization.
        HTTP_AUTH: Kind 27235 -- HTTP authorization (NIP-98, used by NIP-96).
    """

    METADATA = 0
    TEXT_NOTE = 1
    CONTACTS = 3
    ENCRYPTED_DIRECT_MESSAGE = 4
    REPOST = 6
    REACTION = 7
    CHANNEL_CREATION = 40
    CHANNEL_METADATA = 41
    CHANNEL_MESSAGE = 42
    GIFT_WRAP = 1059
    ZAP_REQUEST = 9734
    BLOSSOM_AUTH = 24_242
    HTTP_AUTH = 27_235


EVENT_KIND_MAX = 65_535
