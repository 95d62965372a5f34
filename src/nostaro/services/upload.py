"""File upload to Blossom and NIP-96 media servers.

Both protocols authenticate with a signed, short-lived Nostr event sent as
``Authorization: Nostr <base64(event-json)>``:

* **Blossom** -- kind 24242 with ``t=upload``, ``x=<sha256>`` and a
  five-minute ``expiration``; the blob is sent raw with ``PUT /upload`` and
  the response JSON carries the ``url``.
* **NIP-96** -- the upload endpoint is discovered from
  ``/.well-known/nostr/nip96.json``; auth is a kind 27235 (NIP-98) event
  with ``u=<endpoint>`` and ``method=POST``; the file is sent as multipart
  field ``file`` and the URL comes back in ``nip94_event.tags``.

Server failures raise [UploadError][nostaro.core.exceptions.UploadError].
"""

from __future__ import annotations

import asyncio
import base64
import hashlib
import mimetypes
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, NamedTuple

import aiohttp
from nostr_sdk import EventBuilder, Kind, Tag

from nostaro.core.exceptions import UploadError
from nostaro.core.logger import Logger
from nostaro.models.constants import EventKind
from nostaro.utils.http import read_bounded_json, read_bounded_text


if TYPE_CHECKING:
    from nostr_sdk import Keys


AUTH_EXPIRATION = 300
_MAX_RESPONSE = 1_048_576

logger = Logger("upload")


class UploadResult(NamedTuple):
    """Outcome of a successful upload."""

    url: str | None
    sha256: str
    size: int
    response: Any


def content_type_for(path: str | Path) -> str:
    """MIME type guessed from the file extension, else ``application/octet-stream``."""
    guessed, _ = mimetypes.guess_type(str(path))
    return guessed or "application/octet-stream"


def _encode_auth(event_json: str) -> str:
    return "Nostr " + base64.b64encode(event_json.encode("utf-8")).decode("ascii")


def blossom_auth_header(keys: Keys, sha256: str, now: int | None = None) -> str:
    """Signed kind-24242 upload authorization for a blob with digest *sha256*."""
    now = int(time.time()) if now is None else now
    tags = [
        Tag.parse(["t", "upload"]),
        Tag.parse(["x", sha256]),
        Tag.parse(["expiration", str(now + AUTH_EXPIRATION)]),
    ]
    event = EventBuilder(Kind(EventKind.BLOSSOM_AUTH), "Upload").tags(tags).sign_with_keys(keys)
    return _encode_auth(event.as_json())


def http_auth_header(keys: Keys, url: str, method: str = "POST") -> str:
    """Signed kind-27235 (NIP-98) authorization for *method* on *url*."""
    tags = [Tag.parse(["u", url]), Tag.parse(["method", method])]
    event = EventBuilder(Kind(EventKind.HTTP_AUTH), "").tags(tags).sign_with_keys(keys)
    return _encode_auth(event.as_json())


def nip94_url(data: Any) -> str | None:
    """The ``url`` tag value from a NIP-96 response's ``nip94_event``."""
    if not isinstance(data, dict):
        return None
    event = data.get("nip94_event")
    if not isinstance(event, dict):
        return None
    for tag in event.get("tags") or []:
        if isinstance(tag, list) and len(tag) >= 2 and tag[0] == "url":  # noqa: PLR2004
            return str(tag[1])
    return None


def resolve_api_url(server: str, api_url: str) -> str:
    """Absolute upload endpoint; relative ``api_url`` values are joined to *server*."""
    if api_url.startswith(("http://", "https://")):
        return api_url
    return server.rstrip("/") + "/" + api_url.lstrip("/")


async def _read_file(path: Path) -> bytes:
    try:
        return await asyncio.to_thread(path.read_bytes)
    except OSError as e:
        raise UploadError(f"Cannot read {path}: {e}") from e


async def _check(response: aiohttp.ClientResponse) -> Any:
    if not 200 <= response.status < 300:  # noqa: PLR2004
        try:
            body = await read_bounded_text(response, _MAX_RESPONSE)
        except (aiohttp.ClientError, ValueError):
            body = ""
        raise UploadError(f"Upload failed ({response.status}): {body.strip()}")
    try:
        return await read_bounded_json(response, _MAX_RESPONSE)
    except ValueError as e:
        raise UploadError(f"Server returned an unreadable response: {e}") from e


async def upload_blossom(
    session: aiohttp.ClientSession,
    keys: Keys,
    path: Path,
    server: str,
) -> UploadResult:
    """Upload *path* to the Blossom *server*.

    Raises:
        UploadError: If the file is unreadable, the server rejects the blob,
            or the request fails.
    """
    data = await _read_file(path)
    digest = hashlib.sha256(data).hexdigest()
    endpoint = server.rstrip("/") + "/upload"
    headers = {
        "Authorization": blossom_auth_header(keys, digest),
        "Content-Type": content_type_for(path),
    }
    logger.info("blossom_upload_started", server=server, size=len(data), sha256=digest)
    try:
        async with session.put(endpoint, data=data, headers=headers) as response:
            body = await _check(response)
    except (aiohttp.ClientError, TimeoutError) as e:
        raise UploadError(f"Upload request failed: {e}") from e

    url = body.get("url") if isinstance(body, dict) else None
    return UploadResult(url, digest, len(data), body)


async def upload_nip96(
    session: aiohttp.ClientSession,
    keys: Keys,
    path: Path,
    server: str,
) -> UploadResult:
    """Upload *path* to the NIP-96 *server*.

    Raises:
        UploadError: If discovery fails, the file is unreadable, or the
            server rejects the upload.
    """
    data = await _read_file(path)
    digest = hashlib.sha256(data).hexdigest()
    well_known = server.rstrip("/") + "/.well-known/nostr/nip96.json"

    try:
        async with session.get(well_known) as response:
            info = await _check(response)
    except (aiohttp.ClientError, TimeoutError) as e:
        raise UploadError(f"NIP-96 discovery failed: {e}") from e

    api_url = info.get("api_url") if isinstance(info, dict) else None
    if not isinstance(api_url, str) or not api_url:
        raise UploadError("No api_url in NIP-96 well-known document")
    endpoint = resolve_api_url(server, api_url)

    form = aiohttp.FormData()
    form.add_field("file", data, filename=path.name, content_type=content_type_for(path))
    headers = {"Authorization": http_auth_header(keys, endpoint, "POST")}

    logger.info("nip96_upload_started", endpoint=endpoint, size=len(data), sha256=digest)
    try:
        async with session.post(endpoint, data=form, headers=headers) as response:
            body = await _check(response)
    except (aiohttp.ClientError, TimeoutError) as e:
        raise UploadError(f"Upload request failed: {e}") from e

    return UploadResult(nip94_url(body), digest, len(data), body)
