"""Field checks shared by the cache row dataclasses.

Private to ``nostaro.models``. Each ``__post_init__`` calls these, and the
cache store builds the row before its INSERT, so malformed input is refused
at write time and never reaches a read.
"""

from __future__ import annotations

from typing import Any

from .constants import EVENT_KIND_MAX


def _wrong_type(name: str, wanted: str, value: Any) -> TypeError:
    return TypeError(f"{name}: expected {wanted}, got {type(value).__name__}")


def validate_int(value: Any, name: str) -> None:
    # bool subclasses int but is never a valid count or timestamp
    if isinstance(value, bool) or not isinstance(value, int):
        raise _wrong_type(name, "int", value)


def validate_timestamp(value: Any, name: str) -> None:
    validate_int(value, name)
    if value < 0:
        raise ValueError(f"{name}: must be non-negative, got {value}")


def validate_kind(value: Any, name: str = "kind") -> None:
    validate_int(value, name)
    if value < 0 or value > EVENT_KIND_MAX:
        raise ValueError(f"{name}: {value} is outside 0..{EVENT_KIND_MAX}")


def validate_str(value: Any, name: str) -> None:
    # NUL is legal in event content and sqlite3 stores it intact
    if not isinstance(value, str):
        raise _wrong_type(name, "str", value)


def validate_str_not_empty(value: Any, name: str) -> None:
    validate_str(value, name)
    if not value:
        raise ValueError(f"{name}: must not be empty")


def validate_optional_str(value: Any, name: str) -> None:
    if value is None:
        return
    validate_str(value, name)
