"""
Unit tests for core.yaml module.

Tests:
- load_yaml() mappings, empty files, missing files, invalid syntax
- save_yaml() block style, unicode, parent creation, private mode
"""

import stat
from pathlib import Path

import pytest
import yaml

from nostaro.core.yaml import load_yaml, save_yaml


class TestLoadYaml:
    def test_mapping(self, tmp_path: Path):
        path = tmp_path / "c.yaml"
        path.write_text("relays:\n  - wss://nos.lol\npayment_command: cashu\n")
        assert load_yaml(path) == {"relays": ["wss://nos.lol"], "payment_command": "cashu"}

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "c.yaml"
        path.write_text("")
        assert load_yaml(path) == {}

    def test_comments_only(self, tmp_path: Path):
        path = tmp_path / "c.yaml"
        path.write_text("# nothing here\n")
        assert load_yaml(path) == {}

    def test_missing(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_yaml(tmp_path / "absent.yaml")

    def test_invalid_syntax(self, tmp_path: Path):
        path = tmp_path / "c.yaml"
        path.write_text("key: [unclosed\n")
        with pytest.raises(yaml.YAMLError):
            load_yaml(path)

    def test_scalar_rejected(self, tmp_path: Path):
        path = tmp_path / "c.yaml"
        path.write_text("just a string\n")
        with pytest.raises(ValueError, match="mapping"):
            load_yaml(path)

    def test_unsafe_tags_rejected(self, tmp_path: Path):
        path = tmp_path / "c.yaml"
        path.write_text("x: !!python/object/apply:os.system ['true']\n")
        with pytest.raises(yaml.YAMLError):
            load_yaml(path)


class TestSaveYaml:
    def test_round_trip(self, tmp_path: Path):
        path = tmp_path / "c.yaml"
        data = {"secret_key": "nsec1x", "relays": ["wss://a.example.com"]}
        save_yaml(path, data)
        assert load_yaml(path) == data

    def test_block_style_and_order(self, tmp_path: Path):
        path = tmp_path / "c.yaml"
        save_yaml(path, {"b": 1, "a": [1, 2]})
        assert path.read_text() == "b: 1\na:\n- 1\n- 2\n"

    def test_unicode_preserved(self, tmp_path: Path):
        path = tmp_path / "c.yaml"
        save_yaml(path, {"about": "東京"})
        assert "東京" in path.read_text(encoding="utf-8")

    def test_creates_parents(self, tmp_path: Path):
        path = tmp_path / "deep" / "dir" / "c.yaml"
        save_yaml(path, {"a": 1})
        assert path.exists()

    def test_private_mode(self, tmp_path: Path):
        path = tmp_path / "c.yaml"
        save_yaml(path, {"a": 1}, private=True)
        assert stat.S_IMODE(path.stat().st_mode) == 0o600
