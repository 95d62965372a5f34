"""
Unit tests for models.profile module.

Tests:
- Tolerant kind-0 parsing (malformed JSON, non-dict, non-string values)
- Unknown keys retained across a serialize round trip
- merged() update semantics
- best_name fallback order
"""

import json

from nostaro.models import Profile


class TestFromJson:
    """Profile.from_json() never raises."""

    def test_known_fields(self):
        p = Profile.from_json(
            json.dumps({"name": "alice", "display_name": "Alice", "lud16": "alice@example.com"})
        )
        assert p.name == "alice"
        assert p.display_name == "Alice"
        assert p.lud16 == "alice@example.com"

    def test_malformed_json(self):
        assert Profile.from_json("{not json") == Profile()

    def test_non_object(self):
        assert Profile.from_json("[1, 2]") == Profile()

    def test_non_string_values_dropped(self):
        p = Profile.from_json(json.dumps({"name": 42, "about": None, "picture": "x"}))
        assert p.name is None
        assert p.about is None
        assert p.picture == "x"

    def test_unknown_keys_kept(self):
        p = Profile.from_json(json.dumps({"name": "a", "bot": True}))
        assert p.extra == {"bot": True}


class TestSerialization:
    def test_to_dict_omits_unset(self):
        assert Profile(name="a").to_dict() == {"name": "a"}

    def test_extra_survives(self):
        p = Profile.from_json(json.dumps({"name": "a", "custom": "x"}))
        assert json.loads(p.to_json()) == {"name": "a", "custom": "x"}

    def test_non_ascii(self):
        assert "東京" in Profile(about="東京").to_json()


class TestMerged:
    def test_applies_non_none(self):
        p = Profile(name="old", about="keep").merged(name="new", about=None)
        assert p.name == "new"
        assert p.about == "keep"

    def test_original_unchanged(self):
        p = Profile(name="old")
        p.merged(name="new")
        assert p.name == "old"


class TestBestName:
    def test_display_name_first(self):
        assert Profile(name="n", display_name="D").best_name == "D"

    def test_falls_back_to_name(self):
        assert Profile(name="n", display_name="").best_name == "n"

    def test_none(self):
        assert Profile().best_name is None
