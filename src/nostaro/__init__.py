r"""nostaro -- a command-line client for the Nostr protocol.

Publishes and reads notes, profiles, follow lists, direct messages and
channel messages through ``nostr-sdk``, keeps a small SQLite cache of what
it fetched, and can relay incoming mentions, replies, reactions and channel
messages to a webhook.

Architecture follows a **diamond DAG** dependency structure where imports
flow strictly downward:

```text
           __main__ / commands   CLI surface and per-command glue
                   |
               services          Watch loop, vanity search, upload, zap
              /        \
           core       utils      Cache, config, logging, errors / keys,
              \        /         protocol client, HTTP
               models            Pure frozen dataclasses (zero I/O)
```

Attributes:
    models: Pure frozen dataclasses and tag variants. Zero I/O.
    core: Cache store, configuration, exceptions, logging, metrics.
    utils: Key parsing, ``nostr_sdk`` client helpers, bounded HTTP reads.
    services: Watch loop, vanity search, Blossom/NIP-96 upload, zaps.
    commands: Argument parsing and output for each CLI command.

Note:
    Top-level imports (``from nostaro import CacheStore``) use lazy loading
    and resolve on first access.
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("nostaro")

__all__ = [
    "CacheStore",
    "CachedEvent",
    "CachedProfile",
    "Logger",
    "NostaroConfig",
    "NostaroError",
    "Profile",
    "Relay",
    "WatchConfig",
    "Watcher",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "CacheStore": ("nostaro.core", "CacheStore"),
    "Logger": ("nostaro.core", "Logger"),
    "NostaroConfig": ("nostaro.core", "NostaroConfig"),
    "NostaroError": ("nostaro.core", "NostaroError"),
    "CachedEvent": ("nostaro.models", "CachedEvent"),
    "CachedProfile": ("nostaro.models", "CachedProfile"),
    "Profile": ("nostaro.models", "Profile"),
    "Relay": ("nostaro.models", "Relay"),
    "WatchConfig": ("nostaro.services", "WatchConfig"),
    "Watcher": ("nostaro.services", "Watcher"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value
        return value
    raise AttributeError(f"module 'nostaro' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
