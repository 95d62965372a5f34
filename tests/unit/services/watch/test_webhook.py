"""
Unit tests for services.watch.webhook module.

Tests:
- 2xx responses return the status
- Non-2xx responses raise DeliveryError with the status and body
- Transport errors are wrapped in DeliveryError
"""

from unittest.mock import MagicMock

import aiohttp
import pytest

from nostaro.core.exceptions import DeliveryError
from nostaro.services.watch.webhook import post_webhook


URL = "https://hooks.example.com/nostaro"


class TestPostWebhook:
    @pytest.mark.parametrize("status", [200, 204])
    async def test_success(self, http_session, http_response, status):
        session = http_session(http_response(status))

        assert await post_webhook(session, URL, {"content": "hi"}) == status
        session.post.assert_called_once_with(URL, json={"content": "hi"})

    async def test_server_error(self, http_session, http_response):
        session = http_session(http_response(500, b"  upstream exploded  "))

        with pytest.raises(DeliveryError, match="500: upstream exploded"):
            await post_webhook(session, URL, {"content": "hi"})

    async def test_client_error_status(self, http_session, http_response):
        session = http_session(http_response(404))

        with pytest.raises(DeliveryError, match="404"):
            await post_webhook(session, URL, {"content": "hi"})

    async def test_error_body_truncated(self, http_session, http_response):
        session = http_session(http_response(400, b"e" * 1000))

        with pytest.raises(DeliveryError) as exc_info:
            await post_webhook(session, URL, {"content": "hi"})
        assert len(str(exc_info.value)) < 300

    @pytest.mark.parametrize(
        "error", [aiohttp.ClientConnectionError("refused"), TimeoutError("slow")]
    )
    async def test_transport_error(self, error):
        session = MagicMock()
        session.post = MagicMock(side_effect=error)

        with pytest.raises(DeliveryError, match="Webhook request failed") as exc_info:
            await post_webhook(session, URL, {"content": "hi"})
        assert exc_info.value.__cause__ is error
