"""Pure helpers for the watch loop: classification labels, text shaping, payloads.

Nothing here performs I/O, so the formatting rules (quoting, excerpting,
hard truncation) are tested without a client or a webhook.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, NamedTuple


ELLIPSIS = "..."
DEFAULT_REACTION = "👍"


class NotificationLabel(StrEnum):
    """Classification of a relayed event."""

    REPLY = "Reply"
    MENTION = "Mention"
    REACTION = "Reaction"
    CHANNEL_MESSAGE = "Channel message"

    @property
    def icon(self) -> str:
        return _ICONS[self]


_ICONS = {
    NotificationLabel.REPLY: "💬",
    NotificationLabel.MENTION: "📩",
    NotificationLabel.REACTION: "⚡",
    NotificationLabel.CHANNEL_MESSAGE: "📢",
}


class Outcome(StrEnum):
    """What happened to one inbound notification (metric label values)."""

    DELIVERED = "delivered"
    SKIPPED = "skipped"
    DUPLICATE = "duplicate"
    FAILED = "failed"


class ProfileDisplay(NamedTuple):
    """Resolved author identity: display string and optional avatar URL."""

    name: str
    avatar_url: str | None = None


@dataclass(frozen=True, slots=True)
class Notification:
    """A classified event, ready to be rendered and delivered."""

    label: NotificationLabel
    author: ProfileDisplay
    note_link: str
    body: str | None = None
    quote: str | None = None

    def render(self) -> str:
        lines = [f"{self.label.icon} **{self.label}** from {self.author.name}"]
        if self.body:
            lines.append(self.body)
        if self.quote:
            lines.append(quote_lines(self.quote))
        lines.append(f"🔗 nostr:{self.note_link}")
        return "\n".join(lines)


def excerpt(text: str, length: int = 200) -> str:
    """First *length* characters of *text*, with an ellipsis appended if cut."""
    if len(text) <= length:
        return text
    return text[:length] + ELLIPSIS


def truncate_message(text: str, max_length: int = 2000) -> str:
    """Cap *text* at *max_length* characters, the ellipsis included."""
    if len(text) <= max_length:
        return text
    return text[: max_length - len(ELLIPSIS)] + ELLIPSIS


def quote_lines(text: str) -> str:
    """Prefix every line of *text* with a markdown quote marker."""
    return "\n".join(f"> {line}" for line in text.splitlines() or [""])


def reaction_emoji(content: str) -> str:
    return content.strip() or DEFAULT_REACTION


def display_from_metadata(
    display_name: str | None,
    name: str | None,
    picture: str | None,
    fallback: str,
) -> ProfileDisplay:
    """``display_name``, else ``name``, else *fallback*; avatar from ``picture``."""
    shown = (display_name or "").strip() or (name or "").strip() or fallback
    avatar = (picture or "").strip() or None
    return ProfileDisplay(shown, avatar)


def build_payload(
    content: str,
    username: str | None = None,
    avatar_url: str | None = None,
    max_length: int = 2000,
) -> dict[str, Any]:
    """Webhook JSON body; absent ``username``/``avatar_url`` keys are omitted."""
    payload: dict[str, Any] = {"content": truncate_message(content, max_length)}
    if username:
        payload["username"] = username
    if avatar_url:
        payload["avatar_url"] = avatar_url
    return payload
