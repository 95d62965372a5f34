"""
Parsed kind-0 profile metadata.

Kind-0 content is author-supplied JSON with no enforced schema, so
[Profile.from_json][nostaro.models.profile.Profile.from_json] never raises:
malformed JSON yields an empty profile and non-string values are dropped.
Unknown keys are retained in ``extra`` so that a ``profile set`` round trip
does not lose fields written by other clients.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, replace
from typing import Any


@dataclass(frozen=True, slots=True)
class Profile:
    """User metadata as published in a kind-0 event (NIP-01, NIP-24)."""

    name: str | None = None
    display_name: str | None = None
    about: str | None = None
    picture: str | None = None
    banner: str | None = None
    website: str | None = None
    nip05: str | None = None
    lud06: str | None = None
    lud16: str | None = None
    extra: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_json(cls, content: str) -> Profile:
        """Parse kind-0 content, tolerating malformed input."""
        try:
            data = json.loads(content)
        except (TypeError, ValueError):
            return cls()
        if not isinstance(data, dict):
            return cls()
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Profile:
        known = {f.name for f in fields(cls)} - {"extra"}
        values = {k: v for k, v in data.items() if k in known and isinstance(v, str)}
        extra = {k: v for k, v in data.items() if k not in known}
        return cls(**values, extra=extra)

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to a kind-0 dict, omitting unset fields."""
        data = dict(self.extra)
        for f in fields(self):
            if f.name == "extra":
                continue
            value = getattr(self, f.name)
            if value is not None:
                data[f.name] = value
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    def merged(self, **updates: str | None) -> Profile:
        """Return a copy with every non-``None`` update applied."""
        return replace(self, **{k: v for k, v in updates.items() if v is not None})

    @property
    def best_name(self) -> str | None:
        """``display_name`` if non-empty, else ``name`` if non-empty."""
        return self.display_name or self.name or None
