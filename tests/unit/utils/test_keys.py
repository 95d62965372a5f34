"""
Unit tests for utils.keys module.

Tests:
- parse_keys() with hex and nsec secret keys
- load_keys() environment override and missing-key message
- resolve_pubkey() with npub, hex, nprofile and nostr: URIs
- parse_event_id() with hex and note identifiers
"""

import pytest
from nostr_sdk import Keys, Nip19Profile

from nostaro.utils.keys import (
    ENV_SECRET_KEY,
    generate_keys,
    load_keys,
    parse_event_id,
    parse_keys,
    resolve_pubkey,
)


# =============================================================================
# Test Constants
# =============================================================================

# Valid secp256k1 test keys (DO NOT USE IN PRODUCTION)
VALID_HEX_KEY = (
    "67dea2ed018072d675f5415ecfaed7d2597555e202d85b3d65ea4e58d2d92ffa"  # pragma: allowlist secret
)
VALID_NSEC_KEY = (
    "nsec1vl029mgpspedva04g90vltkh6fvh240zqtv9k0t9af8935ke9laqsnlfe5"  # pragma: allowlist secret
)

INVALID_KEYS = [
    "invalid_key",
    "0" * 32,
    "0" * 128,
    "nsec1invalid",
    "xyz" * 21 + "x",
]


class TestParseKeys:
    def test_hex(self):
        assert parse_keys(VALID_HEX_KEY).secret_key().to_hex() == VALID_HEX_KEY

    def test_nsec_matches_hex(self):
        assert (
            parse_keys(VALID_NSEC_KEY).public_key().to_hex()
            == parse_keys(VALID_HEX_KEY).public_key().to_hex()
        )

    def test_whitespace(self):
        assert parse_keys(f"  {VALID_HEX_KEY}\n").secret_key().to_hex() == VALID_HEX_KEY

    @pytest.mark.parametrize("value", INVALID_KEYS)
    def test_invalid(self, value):
        with pytest.raises(ValueError, match="Invalid secret key"):
            parse_keys(value)

    def test_generate(self):
        assert isinstance(generate_keys(), Keys)


class TestLoadKeys:
    def test_from_config(self):
        assert load_keys(VALID_NSEC_KEY).secret_key().to_hex() == VALID_HEX_KEY

    def test_env_overrides_config(self, monkeypatch):
        other = Keys.generate()
        monkeypatch.setenv(ENV_SECRET_KEY, other.secret_key().to_hex())
        keys = load_keys(VALID_HEX_KEY)
        assert keys.public_key().to_hex() == other.public_key().to_hex()

    def test_empty_env_ignored(self, monkeypatch):
        monkeypatch.setenv(ENV_SECRET_KEY, "")
        assert load_keys(VALID_HEX_KEY).secret_key().to_hex() == VALID_HEX_KEY

    def test_missing(self):
        with pytest.raises(ValueError, match="nostaro init"):
            load_keys(None)

    def test_custom_env_var(self, monkeypatch):
        monkeypatch.setenv("OTHER_KEY_VAR", VALID_HEX_KEY)
        assert load_keys(None, env_var="OTHER_KEY_VAR").secret_key().to_hex() == VALID_HEX_KEY


class TestResolvePubkey:
    @pytest.fixture
    def pubkey(self):
        return Keys.parse(VALID_HEX_KEY).public_key()

    def test_hex(self, pubkey):
        assert resolve_pubkey(pubkey.to_hex()).to_hex() == pubkey.to_hex()

    def test_npub(self, pubkey):
        assert resolve_pubkey(pubkey.to_bech32()).to_hex() == pubkey.to_hex()

    def test_nostr_uri(self, pubkey):
        assert resolve_pubkey(f"nostr:{pubkey.to_bech32()}").to_hex() == pubkey.to_hex()

    def test_nprofile(self, pubkey):
        nprofile = Nip19Profile(pubkey, []).to_bech32()
        assert resolve_pubkey(nprofile).to_hex() == pubkey.to_hex()

    @pytest.mark.parametrize("value", ["", "npub1nope", "abc"])
    def test_invalid(self, value):
        with pytest.raises(ValueError, match="Invalid pubkey"):
            resolve_pubkey(value)


class TestParseEventId:
    def test_hex(self, keys, make_event):
        event = make_event(keys, content="x")
        assert parse_event_id(event.id().to_hex()).to_hex() == event.id().to_hex()

    def test_note(self, keys, make_event):
        event = make_event(keys, content="x")
        assert parse_event_id(event.id().to_bech32()).to_hex() == event.id().to_hex()

    def test_note_uri(self, keys, make_event):
        event = make_event(keys, content="x")
        note = f"nostr:{event.id().to_bech32()}"
        assert parse_event_id(note).to_hex() == event.id().to_hex()

    @pytest.mark.parametrize("value", ["", "note1nope", "zz" * 32])
    def test_invalid(self, value):
        with pytest.raises(ValueError, match="Invalid event id"):
            parse_event_id(value)
