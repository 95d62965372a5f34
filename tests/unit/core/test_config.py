"""
Unit tests for core.config module.

Tests:
- resolve_config_dir() precedence (explicit, env, home)
- NostaroConfig defaults and relay normalization
- load()/save() round trip and file permissions
- Relay add/remove bookkeeping
"""

import stat

import pytest

from nostaro.core import (
    CONFIG_FILENAME,
    DEFAULT_RELAYS,
    ConfigurationError,
    NostaroConfig,
    resolve_config_dir,
)


class TestResolveConfigDir:
    def test_explicit(self, tmp_path, monkeypatch):
        monkeypatch.setenv("NOSTARO_HOME", "/elsewhere")
        assert resolve_config_dir(tmp_path) == tmp_path

    def test_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("NOSTARO_HOME", str(tmp_path))
        assert resolve_config_dir() == tmp_path

    def test_home_default(self):
        assert resolve_config_dir().name == ".nostaro"


class TestDefaults:
    def test_empty(self):
        config = NostaroConfig()
        assert config.secret_key is None
        assert config.relays == []
        assert config.active_relays() == DEFAULT_RELAYS

    def test_configured_relays_win(self):
        config = NostaroConfig(relays=["wss://relay.example.com"])
        assert config.active_relays() == ["wss://relay.example.com"]

    def test_upload_servers(self):
        config = NostaroConfig(blossom_server="https://blobs.example.com")
        assert config.blossom_url() == "https://blobs.example.com"
        assert config.nip96_url() == "https://nostr.build"

    def test_secret_key_stripped(self):
        assert NostaroConfig(secret_key="  abc  ").secret_key == "abc"
        assert NostaroConfig(secret_key="   ").secret_key is None

    def test_secret_key_not_in_repr(self):
        assert "topsecret" not in repr(NostaroConfig(secret_key="topsecret"))


class TestRelayValidation:
    def test_normalized_and_deduplicated(self):
        config = NostaroConfig(
            relays=["ws://relay.example.com/", "wss://relay.example.com", "wss://nos.lol"]
        )
        assert config.relays == ["wss://relay.example.com", "wss://nos.lol"]

    def test_invalid_rejected(self):
        with pytest.raises(ConfigurationError):
            NostaroConfig.from_dict({"relays": ["https://not-a-relay.example.com"]})

    def test_add(self):
        config = NostaroConfig()
        assert config.add_relay("wss://relay.example.com") is True
        assert config.add_relay("ws://relay.example.com") is False
        assert config.relays == ["wss://relay.example.com"]

    def test_add_invalid(self):
        with pytest.raises(ValueError):
            NostaroConfig().add_relay("not a url")

    def test_remove(self):
        config = NostaroConfig(relays=["wss://relay.example.com"])
        assert config.remove_relay("wss://relay.example.com/") is True
        assert config.relays == []

    def test_remove_missing(self):
        assert NostaroConfig().remove_relay("garbage") is False


class TestPersistence:
    def test_missing_file_gives_defaults(self, tmp_path):
        assert NostaroConfig.load(tmp_path) == NostaroConfig()

    def test_round_trip(self, tmp_path):
        config = NostaroConfig(
            secret_key="nsec1example",
            relays=["wss://relay.example.com"],
            blossom_server="https://blobs.example.com",
        )
        config.save(tmp_path)
        assert NostaroConfig.load(tmp_path) == config

    def test_private_permissions(self, tmp_path):
        path = NostaroConfig(secret_key="abc").save(tmp_path)
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_none_fields_omitted(self, tmp_path):
        path = NostaroConfig().save(tmp_path)
        assert "secret_key" not in path.read_text()

    def test_invalid_yaml(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text("relays: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Cannot read"):
            NostaroConfig.load(tmp_path)

    def test_not_a_mapping(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError):
            NostaroConfig.load(tmp_path)

    def test_empty_file(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text("")
        assert NostaroConfig.load(tmp_path) == NostaroConfig()
