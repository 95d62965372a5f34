"""
Unit tests for models.cached module.

Tests:
- CachedEvent field validation (types, kind range, null bytes accepted)
- CachedProfile optional fields
- CacheStats unpacking as a pair
"""

import pytest

from nostaro.models import CachedEvent, CachedProfile, CacheStats


def _event(**overrides):
    fields = {
        "id": "a" * 64,
        "author": "b" * 64,
        "kind": 1,
        "content": "hello",
        "created_at": 1_700_000_000,
        "tags": "[]",
        "raw": "{}",
    }
    fields.update(overrides)
    return CachedEvent(**fields)


class TestCachedEvent:
    def test_valid(self):
        e = _event()
        assert e.kind == 1
        assert e.content == "hello"

    def test_negative_created_at_allowed(self):
        assert _event(created_at=-5).created_at == -5

    def test_empty_id_rejected(self):
        with pytest.raises(ValueError, match="id"):
            _event(id="")

    @pytest.mark.parametrize("kind", [-1, 65_536])
    def test_kind_out_of_range(self, kind):
        with pytest.raises(ValueError, match="kind"):
            _event(kind=kind)

    def test_bool_kind_rejected(self):
        with pytest.raises(TypeError):
            _event(kind=True)

    def test_null_byte_in_content_accepted(self):
        assert _event(content="a\x00b").content == "a\x00b"

    def test_frozen(self):
        with pytest.raises(AttributeError):
            _event().content = "changed"  # type: ignore[misc]


class TestCachedProfile:
    def test_defaults(self):
        p = CachedProfile(pubkey="c" * 64)
        assert p.name is None
        assert p.updated_at == 0

    def test_wrong_type(self):
        with pytest.raises(TypeError):
            CachedProfile(pubkey="c" * 64, name=1)  # type: ignore[arg-type]


class TestCacheStats:
    def test_unpacks_as_pair(self):
        events, profiles = CacheStats(events=3, profiles=1)
        assert (events, profiles) == (3, 1)

    def test_equals_tuple(self):
        assert CacheStats(0, 0) == (0, 0)
