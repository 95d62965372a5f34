"""Utility layer: keys and identifiers, protocol client helpers, HTTP.

Depends only on ``nostaro.models`` and third-party libraries
(``nostr_sdk``, ``aiohttp``). Functions here raise ``ValueError`` for bad
user input and let SDK/transport errors propagate; the services and the
CLI translate them into [NostaroError][nostaro.core.exceptions.NostaroError]
subclasses where needed.

See Also:
    [nostaro.utils.keys][]: Key loading and NIP-19 identifier parsing.
    [nostaro.utils.protocol][]: Client factory, fetch helpers, tag builders,
        notification stream.
    [nostaro.utils.http][]: Bounded response reading.
"""

from .http import create_session, read_bounded, read_bounded_json, read_bounded_text
from .keys import (
    ENV_SECRET_KEY,
    generate_keys,
    load_keys,
    parse_event_id,
    parse_keys,
    resolve_pubkey,
)
from .protocol import (
    DEFAULT_TIMEOUT,
    connect_client,
    create_client,
    fetch_contacts,
    fetch_event_by_id,
    fetch_events,
    fetch_followers,
    fetch_metadata_event,
    fetch_profile,
    iter_notifications,
    publish_contact_list,
    reaction_tags,
    reply_tags,
    repost_tags,
    send_builder,
    shutdown_client,
)


__all__ = [
    "DEFAULT_TIMEOUT",
    "ENV_SECRET_KEY",
    "connect_client",
    "create_client",
    "create_session",
    "fetch_contacts",
    "fetch_event_by_id",
    "fetch_events",
    "fetch_followers",
    "fetch_metadata_event",
    "fetch_profile",
    "generate_keys",
    "iter_notifications",
    "load_keys",
    "parse_event_id",
    "parse_keys",
    "publish_contact_list",
    "reaction_tags",
    "read_bounded",
    "read_bounded_json",
    "read_bounded_text",
    "reply_tags",
    "repost_tags",
    "resolve_pubkey",
    "send_builder",
    "shutdown_client",
]
