"""
Unit tests for core.cache module.

Tests:
- Event store/get round trip (null bytes included) and full-overwrite semantics
- Malformed rows refused before they are written
- recent_events() kind filtering, ordering and limit
- Profile upsert idempotency
- clear() and stats()
- Lifecycle (context manager, closed store, unreachable path)
"""

import json

import pytest

from nostaro.core import CacheStore, StorageError
from nostaro.models import CachedEvent, CacheStats


def _store(cache, id, *, kind=1, content="hello", created_at=100, author="a" * 64):  # noqa: A002
    cache.store_event(id, author, kind, content, created_at, "[]", "{}")


class TestEvents:
    def test_round_trip(self, cache):
        cache.store_event("e1", "pk", 1, "hi", 1_700_000_000, '[["p","x"]]', '{"id":"e1"}')
        assert cache.get_event("e1") == CachedEvent(
            id="e1",
            author="pk",
            kind=1,
            content="hi",
            created_at=1_700_000_000,
            tags='[["p","x"]]',
            raw='{"id":"e1"}',
        )

    def test_overwrite_replaces_all_fields(self, cache):
        _store(cache, "e1", content="first", created_at=100)
        _store(cache, "e1", content="second", created_at=50, kind=7)
        event = cache.get_event("e1")
        assert event.content == "second"
        assert event.created_at == 50
        assert event.kind == 7
        assert cache.stats().events == 1

    def test_absent_event(self, cache):
        assert cache.get_event("missing") is None

    def test_unicode_content(self, cache):
        _store(cache, "e1", content="こんにちは ⚡")
        assert cache.get_event("e1").content == "こんにちは ⚡"

    def test_null_byte_round_trip(self, cache):
        cache.store_event("e1", "pk", 1, "a\x00b", 100, "[]", '{"content":"a\x00b"}')
        event = cache.get_event("e1")
        assert event.content == "a\x00b"
        assert event.raw == '{"content":"a\x00b"}'

    @pytest.mark.parametrize(
        ("id", "kind", "content"),
        [("", 1, "x"), ("e1", 70_000, "x"), ("e1", 1, None), ("e1", True, "x")],
    )
    def test_malformed_row_refused_before_write(self, cache, id, kind, content):  # noqa: A002
        with pytest.raises(StorageError, match="malformed event row"):
            cache.store_event(id, "pk", kind, content, 100, "[]", "{}")
        assert cache.stats().events == 0


class TestRecentEvents:
    def test_newest_first_with_limit(self, cache):
        for i, ts in enumerate((100, 200, 300)):
            _store(cache, f"e{i}", created_at=ts)
        assert [e.created_at for e in cache.recent_events(1, 2)] == [300, 200]

    def test_filters_by_kind(self, cache):
        _store(cache, "note", kind=1, created_at=100)
        _store(cache, "reaction", kind=7, created_at=200)
        result = cache.recent_events(1, 10)
        assert [e.id for e in result] == ["note"]
        assert all(e.kind == 1 for e in result)

    def test_fewer_than_limit(self, cache):
        _store(cache, "only")
        assert len(cache.recent_events(1, 50)) == 1

    @pytest.mark.parametrize("limit", [0, -1])
    def test_non_positive_limit(self, cache, limit):
        _store(cache, "e1")
        assert cache.recent_events(1, limit) == []

    def test_null_byte_row_mixed_in(self, cache):
        _store(cache, "plain", content="plain", created_at=100)
        _store(cache, "nul", content="a\x00b", created_at=200)
        result = cache.recent_events(1, 10)
        assert [(e.id, e.content) for e in result] == [("nul", "a\x00b"), ("plain", "plain")]


class TestNostrEvents:
    def test_store_sdk_event(self, cache, keys, make_event):
        event = make_event(keys, content="from sdk", tags=[["t", "nostr"]])
        cache.store_nostr_event(event)
        row = cache.get_event(event.id().to_hex())
        assert row.author == keys.public_key().to_hex()
        assert row.content == "from sdk"
        assert json.loads(row.tags) == [["t", "nostr"]]
        assert json.loads(row.raw)["id"] == event.id().to_hex()

    def test_store_many(self, cache, keys, make_event):
        events = [make_event(keys, content=str(i)) for i in range(3)]
        assert cache.store_nostr_events(events) == 3
        assert cache.stats().events == 3


class TestProfiles:
    def test_upsert_keeps_one_row(self, cache):
        cache.store_profile("pk1", name="first")
        cache.store_profile("pk1", name="second")
        assert cache.get_profile("pk1").name == "second"
        assert cache.stats().profiles == 1

    def test_overwrite_clears_unset_fields(self, cache):
        cache.store_profile("pk1", name="alice", about="bio")
        cache.store_profile("pk1", name="alice")
        assert cache.get_profile("pk1").about is None

    def test_updated_at_stamped(self, cache):
        cache.store_profile("pk1")
        assert cache.get_profile("pk1").updated_at > 0

    def test_absent_profile(self, cache):
        assert cache.get_profile("nobody") is None

    def test_malformed_profile_refused(self, cache):
        with pytest.raises(StorageError, match="malformed profile row"):
            cache.store_profile("", name="alice")
        with pytest.raises(StorageError, match="malformed profile row"):
            cache.store_profile("pk1", name=42)
        assert cache.stats().profiles == 0


class TestMaintenance:
    def test_clear(self, cache):
        _store(cache, "e1")
        cache.store_profile("pk1", name="a")
        cache.clear()
        assert cache.stats() == (0, 0)

    def test_clear_empty(self, cache):
        cache.clear()
        assert cache.stats() == CacheStats(events=0, profiles=0)


class TestLifecycle:
    def test_context_manager(self, tmp_path):
        with CacheStore(tmp_path / "c.db") as cache:
            assert cache.is_open
        assert not cache.is_open

    def test_creates_parent_dirs(self, tmp_path):
        path = tmp_path / "a" / "b" / "cache.db"
        with CacheStore(path):
            pass
        assert path.exists()

    def test_persists_across_opens(self, tmp_path):
        path = tmp_path / "cache.db"
        with CacheStore(path) as cache:
            _store(cache, "e1")
        with CacheStore(path) as cache:
            assert cache.get_event("e1") is not None

    def test_open_idempotent(self, tmp_path):
        cache = CacheStore(tmp_path / "c.db")
        assert cache.open() is cache.open()
        cache.close()
        cache.close()

    def test_closed_store_raises(self, tmp_path):
        cache = CacheStore(tmp_path / "c.db")
        with pytest.raises(StorageError, match="not open"):
            cache.get_event("e1")

    def test_unreachable_path(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(StorageError):
            CacheStore(blocker / "cache.db").open()

    def test_not_a_database(self, tmp_path):
        path = tmp_path / "cache.db"
        path.write_bytes(b"this is definitely not sqlite" * 100)
        with pytest.raises(StorageError):
            CacheStore(path).open()
