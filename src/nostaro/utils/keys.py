"""Nostr key and identifier handling.

Loads the operator's signing keys (nsec1 bech32 or 64-char hex) and parses
the identifier formats users type on the command line: public keys as
``npub``/hex/``nprofile`` and event ids as hex/``note``/``nevent``.

The secret key normally lives in ``config.yaml`` (written by ``nostaro
init`` with mode 0600). Setting ``NOSTARO_SECRET_KEY`` overrides it, which
keeps the key out of the file entirely in CI or container deployments.

Warning:
    Secret keys must never be logged. Nothing in this module logs key
    material; callers must not either.

Examples:
    ```python
    keys = load_keys("nsec1...")  # pragma: allowlist secret
    resolve_pubkey("npub1...").to_hex()
    parse_event_id("note1...").to_hex()
    ```
"""

from __future__ import annotations

import os

from nostr_sdk import EventId, Keys, Nip19Event, Nip19Profile, NostrSdkError, PublicKey


ENV_SECRET_KEY = "NOSTARO_SECRET_KEY"  # pragma: allowlist secret


def generate_keys() -> Keys:
    """Generate a fresh random keypair."""
    return Keys.generate()


def parse_keys(value: str) -> Keys:
    """Parse an nsec1 or hex secret key.

    Raises:
        ValueError: If *value* is not a valid secret key.
    """
    try:
        return Keys.parse(value.strip())
    except NostrSdkError as e:
        raise ValueError(f"Invalid secret key: {e}") from None


def load_keys(secret_key: str | None, env_var: str = ENV_SECRET_KEY) -> Keys:
    """Return the operator's keys, preferring the environment over *secret_key*.

    Args:
        secret_key: Value of ``secret_key`` from the config file, if any.
        env_var: Environment variable that overrides the config value.

    Raises:
        ValueError: If no key is configured or the key is malformed.
    """
    value = os.getenv(env_var) or secret_key
    if not value:
        raise ValueError("No secret key found in config. Run `nostaro init` first.")
    return parse_keys(value)


def resolve_pubkey(value: str) -> PublicKey:
    """Parse a public key given as npub, hex, or nprofile (NIP-19 TLV).

    Raises:
        ValueError: If *value* matches none of the accepted formats.
    """
    value = value.strip().removeprefix("nostr:")
    try:
        return PublicKey.parse(value)
    except NostrSdkError:
        pass
    try:
        return Nip19Profile.from_bech32(value).public_key()
    except NostrSdkError:
        pass
    raise ValueError(f"Invalid pubkey, npub, or nprofile: {value}")


def parse_event_id(value: str) -> EventId:
    """Parse an event id given as hex, note, or nevent.

    Raises:
        ValueError: If *value* matches none of the accepted formats.
    """
    value = value.strip().removeprefix("nostr:")
    try:
        return EventId.parse(value)
    except NostrSdkError:
        pass
    try:
        return Nip19Event.from_bech32(value).event_id()
    except NostrSdkError:
        pass
    raise ValueError(f"Invalid event id: {value}")
