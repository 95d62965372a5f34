"""Command handlers for the ``nostaro`` CLI.

Each module exposes a ``register(subparsers)`` function adding its
sub-commands; every leaf parser stores its handler under ``handler``.
Handlers take a [Context][nostaro.commands.base.Context] and the parsed
namespace and return an exit code. Most are coroutines; ``vanity`` is
synchronous because its work runs in worker processes.
"""

from typing import Any

from . import channel, dm, feed, init, local, media, notes, profile, social, vanity, watch
from .base import Context


COMMAND_MODULES = (init, notes, feed, profile, social, dm, channel, media, local, vanity, watch)


def register_all(subparsers: Any) -> None:
    for module in COMMAND_MODULES:
        module.register(subparsers)


__all__ = ["COMMAND_MODULES", "Context", "register_all"]
