"""
Unit tests for the SendGrid notification gateway using httpx.MockTransport.
"""
import json

import httpx
import pytest

from shelfkeeper.shared.config.settings import Settings
from shelfkeeper.shared.core.result import OperationErrorType
from shelfkeeper.modules.subscription_management.infrastructure.external.email_notification import (
    SENDGRID_SEND_URL,
    LoggingNotificationGateway,
    SendGridNotificationGateway,
    build_notification_gateway,
)


def _gateway(handler, max_attempts: int = 3) -> SendGridNotificationGateway:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SendGridNotificationGateway(
        api_key="SG.test",
        from_email="noreply@shelfkeeper.app",
        max_attempts=max_attempts,
        client=client,
    )


@pytest.mark.asyncio
async def test_send_posts_plain_text_message():
    captured = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(202)

    result = await _gateway(handler).send("reader@example.com", "Hello", "Body text")

    assert result.is_success
    request = captured[0]
    assert str(request.url) == SENDGRID_SEND_URL
    assert request.headers["Authorization"] == "Bearer SG.test"
    payload = json.loads(request.content)
    assert payload["personalizations"] == [{"to": [{"email": "reader@example.com"}]}]
    assert payload["from"] == {"email": "noreply@shelfkeeper.app", "name": "ShelfKeeper"}
    assert payload["subject"] == "Hello"
    assert payload["content"] == [{"type": "text/plain", "value": "Body text"}]


@pytest.mark.asyncio
async def test_rejected_message_is_external_failure():
    result = await _gateway(lambda request: httpx.Response(401, text="bad key")).send("a@b.c", "s", "b")

    assert result.has_error(OperationErrorType.EXTERNAL_SERVICE_ERROR)
    assert result.first_error.message == "Email delivery failed: SendGrid returned 401"


@pytest.mark.asyncio
async def test_transport_errors_are_retried():
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        if len(attempts) < 2:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(202)

    result = await _gateway(handler).send("a@b.c", "s", "b")

    assert result.is_success
    assert len(attempts) == 2


@pytest.mark.asyncio
async def test_gives_up_after_max_attempts():
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    result = await _gateway(handler, max_attempts=2).send("a@b.c", "s", "b")

    assert len(attempts) == 2
    assert result.has_error(OperationErrorType.EXTERNAL_SERVICE_ERROR)
    assert result.first_error.message.startswith("Email delivery failed:")


@pytest.mark.asyncio
async def test_logging_gateway_always_succeeds():
    result = await LoggingNotificationGateway().send("a@b.c", "s", "b")
    assert result.is_success


def test_builder_picks_provider_from_settings():
    with_key = Settings(JWT_SECRET_KEY="x", SENDGRID_API_KEY="SG.key")
    without_key = Settings(JWT_SECRET_KEY="x", SENDGRID_API_KEY=None)

    assert isinstance(build_notification_gateway(with_key), SendGridNotificationGateway)
    assert isinstance(build_notification_gateway(without_key), LoggingNotificationGateway)
