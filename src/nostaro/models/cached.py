"""
Immutable rows of the local cache store.

[CachedEvent][nostaro.models.cached.CachedEvent] is a denormalized snapshot
of a Nostr event and [CachedProfile][nostaro.models.cached.CachedProfile] the
last-known metadata of an author. Both are produced by
[CacheStore][nostaro.core.cache.CacheStore] lookups and carry no I/O.

See Also:
    [CacheStore][nostaro.core.cache.CacheStore]: SQLite-backed store that
        persists and returns these rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

from ._validation import (
    validate_int,
    validate_kind,
    validate_optional_str,
    validate_str,
    validate_str_not_empty,
    validate_timestamp,
)


@dataclass(frozen=True, slots=True)
class CachedEvent:
    """Denormalized snapshot of a protocol event.

    Attributes:
        id: Event id (hex), the primary key.
        author: Author public key (hex).
        kind: Event kind (``0..65535``).
        content: Raw event content.
        created_at: Author-supplied Unix timestamp (may be any signed integer).
        tags: JSON-encoded tag array, kept as an opaque blob.
        raw: Complete serialized event, kept verbatim.

    Raises:
        TypeError: If a field has the wrong type.
        ValueError: If ``id`` is empty or ``kind`` is out of range.
    """

    id: str
    author: str
    kind: int
    content: str
    created_at: int
    tags: str
    raw: str

    def __post_init__(self) -> None:
        validate_str_not_empty(self.id, "id")
        validate_str(self.author, "author")
        validate_kind(self.kind)
        validate_str(self.content, "content")
        validate_int(self.created_at, "created_at")
        validate_str(self.tags, "tags")
        validate_str(self.raw, "raw")


@dataclass(frozen=True, slots=True)
class CachedProfile:
    """Last-known metadata for an author.

    ``updated_at`` is stamped by the store at write time and is used only
    for local bookkeeping.
    """

    pubkey: str
    name: str | None = None
    display_name: str | None = None
    about: str | None = None
    picture: str | None = None
    updated_at: int = 0

    def __post_init__(self) -> None:
        validate_str_not_empty(self.pubkey, "pubkey")
        validate_optional_str(self.name, "name")
        validate_optional_str(self.display_name, "display_name")
        validate_optional_str(self.about, "about")
        validate_optional_str(self.picture, "picture")
        validate_timestamp(self.updated_at, "updated_at")


class CacheStats(NamedTuple):
    """Row counts per cache table."""

    events: int
    profiles: int
