"""
Typed view over Nostr event tags.

Event tags arrive as an open-ended list of string arrays. This module parses
each array into one of three variants so callers can pattern-match instead
of poking at positional strings:

* [EventRef][nostaro.models.tags.EventRef] -- ``["e", <id>, <relay>?, <marker>?]``
* [PubkeyRef][nostaro.models.tags.PubkeyRef] -- ``["p", <pubkey>, <relay>?]``
* [CustomTag][nostaro.models.tags.CustomTag] -- everything else, including
  ``e``/``p`` tags whose value is not a 64-char hex id.

Examples:
    ```python
    tags = parse_tags([["e", "ab" * 32, "", "root"], ["t", "nostr"]])
    root_event_ref(tags)   # EventRef(event_id='abab...', relay_url=None, marker='root')
    ```
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence


_HEX_ID = re.compile(r"^[0-9a-f]{64}$")


@dataclass(frozen=True, slots=True)
class EventRef:
    """Reference to another event (``e`` tag, NIP-01/NIP-10)."""

    event_id: str
    relay_url: str | None = None
    marker: str | None = None


@dataclass(frozen=True, slots=True)
class PubkeyRef:
    """Reference to an identity (``p`` tag)."""

    pubkey: str
    relay_url: str | None = None


@dataclass(frozen=True, slots=True)
class CustomTag:
    """Any tag this client does not interpret."""

    name: str
    values: tuple[str, ...] = ()


EventTag = EventRef | PubkeyRef | CustomTag


def parse_tag(values: Sequence[str]) -> EventTag:
    """Parse one raw tag array into its typed variant.

    Empty strings for optional positions (relay hint, marker) are read as
    absent. An empty array yields a ``CustomTag`` with an empty name.
    """
    if not values:
        return CustomTag("")

    name, *rest = (str(v) for v in values)
    match name, rest:
        case "e", [event_id, *extra] if _HEX_ID.match(event_id.lower()):
            relay = extra[0] if len(extra) > 0 and extra[0] else None
            marker = extra[1] if len(extra) > 1 and extra[1] else None
            return EventRef(event_id.lower(), relay, marker)
        case "p", [pubkey, *extra] if _HEX_ID.match(pubkey.lower()):
            relay = extra[0] if extra and extra[0] else None
            return PubkeyRef(pubkey.lower(), relay)
        case _:
            return CustomTag(name, tuple(rest))


def parse_tags(raw: Iterable[Sequence[str]]) -> list[EventTag]:
    """Parse a list of raw tag arrays, preserving order."""
    return [parse_tag(values) for values in raw]


def event_tags(event: Any) -> list[EventTag]:
    """Parse the tags of a ``nostr_sdk.Event`` (or unsigned rumor)."""
    return parse_tags(tag.as_vec() for tag in event.tags().to_vec())


def raw_tags(event: Any) -> list[list[str]]:
    """Return the tags of a ``nostr_sdk.Event`` as plain string lists."""
    return [list(tag.as_vec()) for tag in event.tags().to_vec()]


def event_refs(tags: Iterable[EventTag]) -> list[EventRef]:
    """Return every event reference in tag order."""
    return [tag for tag in tags if isinstance(tag, EventRef)]


def pubkey_refs(tags: Iterable[EventTag]) -> list[PubkeyRef]:
    """Return every identity reference in tag order."""
    return [tag for tag in tags if isinstance(tag, PubkeyRef)]


def has_event_ref(tags: Iterable[EventTag]) -> bool:
    """Whether any tag references another event."""
    return any(isinstance(tag, EventRef) for tag in tags)


def root_event_ref(tags: Iterable[EventTag]) -> EventRef | None:
    """Return the first event reference marked ``root``, if any."""
    for tag in tags:
        match tag:
            case EventRef(marker="root"):
                return tag
            case EventRef() | PubkeyRef() | CustomTag():
                continue
    return None


def first_event_ref(tags: Iterable[EventTag]) -> EventRef | None:
    """Return the first event reference (the reacted-to event of a reaction)."""
    refs = event_refs(tags)
    return refs[0] if refs else None
