# 📄 File: shelfkeeper/modules/subscription_management/infrastructure/external/email_notification.py
# 🧭 Purpose (Layman Explanation):
# Sends emails to users (for example when they own too many items for their plan).
# Without an email account configured, it just writes the email to the log instead.
# 🧪 Purpose (Technical Summary):
# NotificationGateway implementations: SendGrid v3 mail/send over an httpx AsyncClient with
# tenacity retries on transport errors, and a logging-only fallback for development and tests.
# Delivery failures are returned as EXTERNAL_SERVICE_ERROR results.
# 🔗 Dependencies:
# httpx, tenacity, shelfkeeper.shared.core.result, settings
# 🔄 Connected Modules / Calls From:
# ReconciliationService via the scheduler, the Celery task and presentation dependencies

import logging
from typing import Optional

import httpx
from tenacity import AsyncRetrying, RetryError, retry_if_exception_type, stop_after_attempt, wait_exponential

from shelfkeeper.shared.config.settings import Settings
from shelfkeeper.shared.core.result import OperationErrorType, OperationResult
from shelfkeeper.modules.subscription_management.domain.services.collaborators import NotificationGateway

logger = logging.getLogger(__name__)

SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"


class SendGridNotificationGateway(NotificationGateway):
    """
    Plain-text email through SendGrid.

    A client can be injected (tests use ``httpx.MockTransport``); otherwise a
    short-lived client is opened per message.
    """

    def __init__(
        self,
        api_key: str,
        from_email: str,
        from_name: str = "ShelfKeeper",
        timeout_seconds: float = 10.0,
        max_attempts: int = 3,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self.timeout_seconds = timeout_seconds
        self.max_attempts = max_attempts
        self._client = client

    def _payload(self, to_address: str, subject: str, body: str) -> dict:
        return {
            "personalizations": [{"to": [{"email": to_address}]}],
            "from": {"email": self.from_email, "name": self.from_name},
            "subject": subject,
            "content": [{"type": "text/plain", "value": body}],
        }

    async def _post(self, client: httpx.AsyncClient, payload: dict) -> httpx.Response:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            retry=retry_if_exception_type(httpx.TransportError),
            wait=wait_exponential(multiplier=0.2, max=2),
        ):
            with attempt:
                return await client.post(
                    SENDGRID_SEND_URL,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    timeout=self.timeout_seconds,
                )

    async def send(self, to_address: str, subject: str, body: str) -> OperationResult[None]:
        payload = self._payload(to_address, subject, body)
        try:
            if self._client is not None:
                response = await self._post(self._client, payload)
            else:
                async with httpx.AsyncClient() as client:
                    response = await self._post(client, payload)
        except RetryError as e:
            cause = e.last_attempt.exception()
            logger.error(f"SendGrid unreachable after {self.max_attempts} attempts: {cause}")
            return OperationResult.failure(
                f"Email delivery failed: {cause}",
                OperationErrorType.EXTERNAL_SERVICE_ERROR,
            )

        if response.status_code >= 400:
            logger.error(f"SendGrid rejected message to {to_address}: {response.status_code} {response.text}")
            return OperationResult.failure(
                f"Email delivery failed: SendGrid returned {response.status_code}",
                OperationErrorType.EXTERNAL_SERVICE_ERROR,
            )

        logger.info(f"Email '{subject}' sent to {to_address}")
        return OperationResult.success()


class LoggingNotificationGateway(NotificationGateway):
    """Writes messages to the log instead of sending them."""

    async def send(self, to_address: str, subject: str, body: str) -> OperationResult[None]:
        logger.info(f"Email to {to_address} (not sent, no provider configured): {subject}\n{body}")
        return OperationResult.success()


def build_notification_gateway(settings: Settings) -> NotificationGateway:
    if settings.SENDGRID_API_KEY:
        return SendGridNotificationGateway(
            api_key=settings.SENDGRID_API_KEY,
            from_email=settings.SENDGRID_FROM_EMAIL,
            from_name=settings.SENDGRID_FROM_NAME,
            timeout_seconds=settings.SENDGRID_TIMEOUT_SECONDS,
        )
    logger.warning("SENDGRID_API_KEY not set; emails will only be logged")
    return LoggingNotificationGateway()
