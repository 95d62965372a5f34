"""HTTP helpers shared by the webhook, upload, and zap code paths.

Bounded body reading keeps a misbehaving server (LNURL endpoint, blob
server, webhook) from exhausting memory, and one session factory gives
every outbound request the same timeout and ``User-Agent``.

Note:
    This module sits in the ``utils`` layer and depends only on stdlib and
    ``aiohttp``.
"""

from __future__ import annotations

import json
from typing import Any

import aiohttp


USER_AGENT = "nostaro"
DEFAULT_MAX_BODY = 1_048_576


def create_session(timeout: float = 30.0) -> aiohttp.ClientSession:  # noqa: ASYNC109
    """Create a session with a total-request timeout and the client User-Agent."""
    return aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=timeout),
        headers={"User-Agent": USER_AGENT},
    )


async def read_bounded(response: aiohttp.ClientResponse, max_size: int = DEFAULT_MAX_BODY) -> bytes:
    """Read an entire response body, failing once it exceeds *max_size*.

    Reads chunk by chunk so chunked transfer-encoding is handled correctly.

    Raises:
        ValueError: If the response body exceeds *max_size*.
    """
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await response.content.read(max_size + 1 - total)
        if not chunk:
            break
        total += len(chunk)
        if total > max_size:
            raise ValueError(f"Response body too large: >{max_size} bytes")
        chunks.append(chunk)
    return b"".join(chunks)


async def read_bounded_text(
    response: aiohttp.ClientResponse, max_size: int = DEFAULT_MAX_BODY
) -> str:
    body = await read_bounded(response, max_size)
    return body.decode("utf-8", errors="replace")


async def read_bounded_json(
    response: aiohttp.ClientResponse, max_size: int = DEFAULT_MAX_BODY
) -> Any:
    """Read and parse a JSON body with size enforcement.

    Raises:
        ValueError: If the body exceeds *max_size* or is not valid JSON
            (``json.JSONDecodeError`` is a ``ValueError``).
    """
    body = await read_bounded(response, max_size)
    return json.loads(body)
