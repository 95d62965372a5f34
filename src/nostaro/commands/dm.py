"""Direct message commands: NIP-17 private messages and legacy NIP-04."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, NamedTuple

from nostr_sdk import (
    EventBuilder,
    Filter,
    Kind,
    NostrSdkError,
    NostrSigner,
    Tag,
    UnwrappedGift,
    nip04_decrypt,
    nip04_encrypt,
)

from nostaro.models.constants import EventKind
from nostaro.models.tags import event_tags, pubkey_refs
from nostaro.utils.keys import resolve_pubkey
from nostaro.utils.protocol import fetch_events, send_builder

from .base import SEPARATOR, add_parser, format_time, logger, short_npub


if TYPE_CHECKING:
    import argparse

    from nostr_sdk import Client, Event, Keys

    from .base import Context


DM_FETCH_LIMIT = 20


class DirectMessage(NamedTuple):
    """A decrypted message, from the operator's point of view."""

    peer: str
    outgoing: bool
    created_at: int
    content: str
    protocol: str

    def header(self) -> str:
        direction = "To" if self.outgoing else "From"
        when = format_time(self.created_at)
        return f"[{direction} {short_npub(self.peer)}] {when} [{self.protocol}]"


async def send(ctx: Context, args: argparse.Namespace) -> int:
    receiver = resolve_pubkey(args.npub)
    keys = ctx.keys()
    ctx.echo("Sending DM...")
    async with ctx.client() as client:
        if args.nip04:
            encrypted = nip04_encrypt(keys.secret_key(), receiver, args.message)
            builder = EventBuilder(Kind(EventKind.ENCRYPTED_DIRECT_MESSAGE), encrypted).tags(
                [Tag.parse(["p", receiver.to_hex()])]
            )
            await send_builder(client, builder)
        else:
            await client.send_private_msg(receiver, args.message, [])
    ctx.echo(f"DM sent to {short_npub(receiver)}!")
    return 0


async def unwrap_gift_wraps(keys: Keys, events: list[Event]) -> list[DirectMessage]:
    """Open NIP-59 gift wraps addressed to *keys*; undecryptable ones are skipped."""
    signer = NostrSigner.keys(keys)
    own = keys.public_key().to_hex()
    messages: list[DirectMessage] = []
    for gift_wrap in events:
        try:
            unwrapped = await UnwrappedGift.from_gift_wrap(signer, gift_wrap)
        except NostrSdkError as e:
            logger.debug("gift_wrap_unwrap_failed", event_id=gift_wrap.id().to_hex(), error=str(e))
            continue
        rumor = unwrapped.rumor()
        sender = unwrapped.sender().to_hex()
        messages.append(
            DirectMessage(
                peer=sender,
                outgoing=sender == own,
                created_at=rumor.created_at().as_secs(),
                content=rumor.content(),
                protocol="NIP-17",
            )
        )
    return messages


def decrypt_nip04(keys: Keys, events: list[Event]) -> list[DirectMessage]:
    """Decrypt kind-4 messages sent or received by *keys*."""
    own = keys.public_key().to_hex()
    messages: list[DirectMessage] = []
    for dm in events:
        author = dm.author()
        outgoing = author.to_hex() == own
        if outgoing:
            refs = pubkey_refs(event_tags(dm))
            if not refs:
                continue
            peer_key = resolve_pubkey(refs[0].pubkey)
        else:
            peer_key = author
        try:
            content = nip04_decrypt(keys.secret_key(), peer_key, dm.content())
        except NostrSdkError as e:
            logger.debug("nip04_decrypt_failed", event_id=dm.id().to_hex(), error=str(e))
            continue
        messages.append(
            DirectMessage(
                peer=peer_key.to_hex(),
                outgoing=outgoing,
                created_at=dm.created_at().as_secs(),
                content=content,
                protocol="NIP-04",
            )
        )
    return messages


async def _fetch_messages(client: Client, keys: Keys) -> list[DirectMessage]:
    me = keys.public_key()
    gift_wraps = await fetch_events(
        client, Filter().kind(Kind(EventKind.GIFT_WRAP)).pubkey(me).limit(DM_FETCH_LIMIT)
    )
    dm_kind = Kind(EventKind.ENCRYPTED_DIRECT_MESSAGE)
    received = await fetch_events(client, Filter().kind(dm_kind).pubkey(me).limit(DM_FETCH_LIMIT))
    sent = await fetch_events(client, Filter().kind(dm_kind).author(me).limit(DM_FETCH_LIMIT))

    seen: set[str] = set()
    legacy: list[Event] = []
    for e in received + sent:
        if e.id().to_hex() not in seen:
            seen.add(e.id().to_hex())
            legacy.append(e)

    messages = await unwrap_gift_wraps(keys, gift_wraps)
    messages += decrypt_nip04(keys, legacy)
    messages.sort(key=lambda m: m.created_at, reverse=True)
    return messages


async def read(ctx: Context, args: argparse.Namespace) -> int:
    peer = resolve_pubkey(args.npub).to_hex() if args.npub else None
    keys = ctx.keys()
    ctx.echo("Fetching DMs...\n")
    async with ctx.client() as client:
        messages = await _fetch_messages(client, keys)

    if peer is not None:
        messages = [m for m in messages if m.peer == peer]
    if not messages:
        ctx.echo("No direct messages found.")
        return 0

    for m in messages:
        ctx.echo(m.header())
        ctx.echo(m.content)
        ctx.echo(SEPARATOR)
    ctx.echo(f"\n{len(messages)} message(s).")
    return 0


def register(subparsers: Any) -> None:
    parser = subparsers.add_parser("dm", help="Direct messages (NIP-17, NIP-04)")
    actions = parser.add_subparsers(dest="action", required=True)

    p = add_parser(actions, "send", send, "Send a direct message")
    p.add_argument("npub", help="Recipient npub, nprofile or hex")
    p.add_argument("message", help="Message to send")
    p.add_argument("--nip04", action="store_true", help="Use NIP-04 (kind 4) instead of NIP-17")

    p = add_parser(actions, "read", read, "Read received and sent direct messages")
    p.add_argument("npub", nargs="?", help="Only show the conversation with this user")
