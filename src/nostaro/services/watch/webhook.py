"""Outbound webhook delivery.

Posts ``{"content", "username"?, "avatar_url"?}`` JSON (the shape accepted
by Discord-compatible webhooks). Any transport failure or non-2xx status is
reported as [DeliveryError][nostaro.core.exceptions.DeliveryError]; the
caller decides whether that is fatal.
"""

from __future__ import annotations

from typing import Any

import aiohttp

from nostaro.core.exceptions import DeliveryError
from nostaro.utils.http import read_bounded_text


_MAX_ERROR_BODY = 4096


async def post_webhook(session: aiohttp.ClientSession, url: str, payload: dict[str, Any]) -> int:
    """POST *payload* to *url* and return the HTTP status.

    Raises:
        DeliveryError: On connection/timeout errors or a non-2xx response.
    """
    try:
        async with session.post(url, json=payload) as response:
            if 200 <= response.status < 300:  # noqa: PLR2004
                return response.status
            try:
                body = await read_bounded_text(response, _MAX_ERROR_BODY)
            except (aiohttp.ClientError, ValueError):
                body = ""
            raise DeliveryError(f"Webhook returned {response.status}: {body.strip()[:200]}")
    except (aiohttp.ClientError, TimeoutError) as e:
        raise DeliveryError(f"Webhook request failed: {e}") from e
