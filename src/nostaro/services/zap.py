"""NIP-57 zaps paid through an external wallet command.

Flow:

1. Resolve the recipient's LNURL-pay endpoint from their profile
   (``lud16`` Lightning address, or an http(s) ``lud06``).
2. Fetch the pay info and check ``allowsNostr`` and the sendable range.
3. Sign a kind-9734 zap request and ask the ``callback`` for an invoice.
4. Pay the invoice with ``<payment_command> -h <mint> pay <invoice> -y``.

Every failure raises [PaymentError][nostaro.core.exceptions.PaymentError].
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, NamedTuple

import aiohttp
from nostr_sdk import EventBuilder, Kind, Tag
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from nostaro.core.exceptions import PaymentError
from nostaro.core.logger import Logger
from nostaro.models.constants import EventKind
from nostaro.utils.http import read_bounded_json


if TYPE_CHECKING:
    from collections.abc import Sequence

    from nostr_sdk import Event, Keys, PublicKey

    from nostaro.models.profile import Profile


_MAX_RESPONSE = 262_144

logger = Logger("zap")


class LnurlPayInfo(BaseModel):
    """LNURL-pay endpoint description (LUD-06), with the NIP-57 extension."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    callback: str
    min_sendable: int | None = Field(default=None, alias="minSendable")
    max_sendable: int | None = Field(default=None, alias="maxSendable")
    allows_nostr: bool = Field(default=False, alias="allowsNostr")
    nostr_pubkey: str | None = Field(default=None, alias="nostrPubkey")

    def check_amount(self, amount_msats: int) -> None:
        """Raise unless the endpoint accepts zaps of *amount_msats*.

        Raises:
            PaymentError: If nostr zaps are unsupported or the amount is out
                of the sendable range.
        """
        if not self.allows_nostr:
            raise PaymentError("Target's LNURL endpoint does not support Nostr zaps")
        if self.min_sendable is not None and amount_msats < self.min_sendable:
            raise PaymentError(f"Amount too small. Minimum: {self.min_sendable // 1000} sats")
        if self.max_sendable is not None and amount_msats > self.max_sendable:
            raise PaymentError(f"Amount too large. Maximum: {self.max_sendable // 1000} sats")


class ZapReceipt(NamedTuple):
    """A paid zap: the signed request, the invoice and the wallet output."""

    request: Event
    invoice: str
    amount_sats: int
    output: str


def resolve_lnurl(profile: Profile) -> str:
    """LNURL-pay endpoint URL for *profile*.

    ``lud16`` (``name@domain``) wins over ``lud06``; bech32 ``lud06`` values
    are not decoded, only plain http(s) URLs are accepted.

    Raises:
        PaymentError: If the profile has no usable Lightning address.
    """
    if profile.lud16:
        name, sep, domain = profile.lud16.strip().partition("@")
        if sep and name and domain and "@" not in domain:
            return f"https://{domain}/.well-known/lnurlp/{name}"

    if profile.lud06:
        lud06 = profile.lud06.strip()
        if lud06.lower().startswith(("http://", "https://")):
            return lud06
        raise PaymentError(
            "LNURL bech32 decoding not supported. Use a Lightning address (lud16) instead."
        )

    raise PaymentError("Target has no Lightning address configured (lud06/lud16)")


async def fetch_pay_info(session: aiohttp.ClientSession, url: str) -> LnurlPayInfo:
    """Fetch and parse the LNURL-pay description at *url*."""
    try:
        async with session.get(url) as response:
            if response.status != 200:  # noqa: PLR2004
                raise PaymentError(f"LNURL endpoint returned {response.status}")
            data = await read_bounded_json(response, _MAX_RESPONSE)
    except (aiohttp.ClientError, TimeoutError, ValueError) as e:
        raise PaymentError(f"LNURL request failed: {e}") from e

    try:
        return LnurlPayInfo.model_validate(data)
    except ValidationError as e:
        raise PaymentError(f"Invalid LNURL pay response: {e}") from e


def build_zap_request(
    keys: Keys,
    recipient: PublicKey,
    amount_msats: int,
    relays: Sequence[str],
    message: str = "",
) -> Event:
    """Signed kind-9734 zap request with ``p``, ``amount`` and ``relays`` tags."""
    tags = [
        Tag.parse(["p", recipient.to_hex()]),
        Tag.parse(["amount", str(amount_msats)]),
        Tag.parse(["relays", *relays]),
    ]
    return EventBuilder(Kind(EventKind.ZAP_REQUEST), message).tags(tags).sign_with_keys(keys)


async def request_invoice(
    session: aiohttp.ClientSession,
    info: LnurlPayInfo,
    amount_msats: int,
    zap_request: Event,
) -> str:
    """Ask the LNURL callback for a bolt11 invoice carrying *zap_request*."""
    params = {"amount": str(amount_msats), "nostr": zap_request.as_json()}
    try:
        async with session.get(info.callback, params=params) as response:
            data = await read_bounded_json(response, _MAX_RESPONSE)
    except (aiohttp.ClientError, TimeoutError, ValueError) as e:
        raise PaymentError(f"Invoice request failed: {e}") from e

    if not isinstance(data, dict):
        raise PaymentError("Invalid invoice response")
    if data.get("status") == "ERROR":
        raise PaymentError(f"Invoice request rejected: {data.get('reason', 'unknown reason')}")
    invoice = data.get("pr")
    if not isinstance(invoice, str) or not invoice:
        raise PaymentError("Invoice response has no 'pr' field")
    return invoice


async def pay_invoice(command: str, mint: str, invoice: str) -> str:
    """Run the wallet binary to pay *invoice*; return its combined output.

    Raises:
        PaymentError: If the binary is missing or exits non-zero.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            command,
            "-h",
            mint,
            "pay",
            invoice,
            "-y",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise PaymentError(f"Cannot run payment command '{command}': {e}") from e

    stdout, stderr = await proc.communicate()
    output = stdout.decode(errors="replace") + stderr.decode(errors="replace")
    if proc.returncode != 0:
        raise PaymentError(f"Payment failed (exit {proc.returncode}):\n{output}")
    return output


async def send_zap(  # noqa: PLR0913
    session: aiohttp.ClientSession,
    keys: Keys,
    recipient: PublicKey,
    profile: Profile,
    amount_sats: int,
    relays: Sequence[str],
    *,
    message: str = "",
    payment_command: str = "cashu",
    mint: str = "https://mint.coinos.io",
) -> ZapReceipt:
    """Resolve, request and pay a zap of *amount_sats* to *recipient*."""
    if amount_sats <= 0:
        raise PaymentError("Amount must be positive")
    amount_msats = amount_sats * 1000

    endpoint = resolve_lnurl(profile)
    logger.info("lnurl_resolved", endpoint=endpoint)
    info = await fetch_pay_info(session, endpoint)
    info.check_amount(amount_msats)

    request = build_zap_request(keys, recipient, amount_msats, relays, message)
    invoice = await request_invoice(session, info, amount_msats, request)
    logger.info("invoice_received", amount_msats=amount_msats)

    output = await pay_invoice(payment_command, mint, invoice)
    logger.info("zap_paid", recipient=recipient.to_hex(), amount_sats=amount_sats)
    return ZapReceipt(request, invoice, amount_sats, output)
