"""Pure frozen dataclasses with zero I/O for cache rows, tags, profiles, and relays.

The models layer is the foundation of the diamond DAG. It depends only on the
standard library and ``rfc3986``. Every model uses
``@dataclass(frozen=True, slots=True)`` and validates in ``__post_init__`` so
invalid instances never escape the constructor.

Attributes:
    CachedEvent: Denormalized event row of the local cache store.
    CachedProfile: Profile row of the local cache store.
    CacheStats: Row counts per cache table.
    EventRef: ``e`` tag variant (event reference with optional relay/marker).
    PubkeyRef: ``p`` tag variant (identity reference).
    CustomTag: Any other tag.
    Profile: Parsed kind-0 metadata, tolerant of malformed content.
    Relay: Validated relay URL with network detection.
    EventKind: Well-known event kinds.
    NetworkType: Relay network classification.

See Also:
    [nostaro.models.tags][]: Tag parsing and lookup helpers.
    [nostaro.core.cache][]: Store that produces the cached rows.
"""

from .cached import CachedEvent, CachedProfile, CacheStats
from .constants import EVENT_KIND_MAX, EventKind, NetworkType
from .profile import Profile
from .relay import Relay
from .tags import CustomTag, EventRef, EventTag, PubkeyRef


__all__ = [
    "EVENT_KIND_MAX",
    "CacheStats",
    "CachedEvent",
    "CachedProfile",
    "CustomTag",
    "EventKind",
    "EventRef",
    "EventTag",
    "NetworkType",
    "Profile",
    "PubkeyRef",
    "Relay",
]
