# 📄 File: shelfkeeper/modules/subscription_management/infrastructure/external/stripe_gateway.py
# 🧭 Purpose (Layman Explanation):
# Talks to Stripe, the card payment company: registers paying customers, opens the
# hosted payment page and checks that webhook calls really come from Stripe.
# 🧪 Purpose (Technical Summary):
# PaymentGateway implementation over the official `stripe` library. The blocking SDK calls
# run in a worker thread under a timeout; every StripeError (and timeout) is returned as an
# EXTERNAL_SERVICE_ERROR OperationResult instead of raised.
# 🔗 Dependencies:
# stripe, asyncio, shelfkeeper.shared.core.result, collaborator contracts, settings
# 🔄 Connected Modules / Calls From:
# presentation dependencies (checkout endpoint, webhook endpoint)

import asyncio
import logging
from functools import partial
from typing import Any, Callable, Dict, Optional

import stripe

from shelfkeeper.shared.core.result import OperationErrorType, OperationResult
from shelfkeeper.modules.subscription_management.domain.services.collaborators import (
    CheckoutSession,
    PaymentEvent,
    PaymentGateway,
)

logger = logging.getLogger(__name__)


class StripePaymentGateway(PaymentGateway):
    """
    Stripe adapter. The API key is passed per request so several gateways
    with different keys can coexist in one process.
    """

    def __init__(self, api_key: str, webhook_secret: Optional[str] = None, timeout_seconds: float = 10.0):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.timeout_seconds = timeout_seconds

    async def _call(self, action: str, func: Callable[..., Any], *args: Any, **params: Any) -> OperationResult[Any]:
        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(partial(func, *args, api_key=self.api_key, **params)),
                timeout=self.timeout_seconds,
            )
            return OperationResult.success(response)
        except asyncio.TimeoutError:
            logger.error(f"Stripe call timed out {action} after {self.timeout_seconds}s")
            return OperationResult.failure(
                f"Stripe error {action}: request timed out",
                OperationErrorType.EXTERNAL_SERVICE_ERROR,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe error {action}: {e}")
            return OperationResult.failure(
                f"Stripe error {action}: {e.user_message or str(e)}",
                OperationErrorType.EXTERNAL_SERVICE_ERROR,
            )

    async def create_customer(self, email: str) -> OperationResult[str]:
        result = await self._call("creating customer", stripe.Customer.create, email=email)
        if result.is_failure:
            return OperationResult.from_errors(result.errors)

        customer = result.value
        logger.info(f"Stripe customer {customer.id} created")
        return OperationResult.success(customer.id)

    async def create_checkout_session(
        self,
        customer_id: str,
        price_ref: str,
        success_url: str,
        cancel_url: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> OperationResult[CheckoutSession]:
        metadata = metadata or {}
        result = await self._call(
            "creating checkout session",
            stripe.checkout.Session.create,
            customer=customer_id,
            mode="subscription",
            line_items=[{"price": price_ref, "quantity": 1}],
            success_url=success_url,
            cancel_url=cancel_url,
            metadata=metadata,
            subscription_data={"metadata": metadata},
        )
        if result.is_failure:
            return OperationResult.from_errors(result.errors)

        session = result.value
        return OperationResult.success(CheckoutSession(session_id=session.id, url=session.url))

    async def cancel_remote_subscription(self, remote_subscription_id: str) -> OperationResult[None]:
        result = await self._call("cancelling subscription", stripe.Subscription.cancel, remote_subscription_id)
        if result.is_failure:
            return OperationResult.from_errors(result.errors)

        logger.info(f"Stripe subscription {remote_subscription_id} cancelled")
        return OperationResult.success()

    async def update_remote_subscription(
        self,
        remote_subscription_id: str,
        new_price_ref: str,
    ) -> OperationResult[None]:
        """Swap the price on the subscription's single line item."""
        current = await self._call(
            "retrieving subscription",
            stripe.Subscription.retrieve,
            remote_subscription_id,
        )
        if current.is_failure:
            return OperationResult.from_errors(current.errors)

        items = current.value["items"]["data"]
        if not items:
            return OperationResult.failure(
                f"Stripe error updating subscription: {remote_subscription_id} has no items",
                OperationErrorType.EXTERNAL_SERVICE_ERROR,
            )

        result = await self._call(
            "updating subscription",
            stripe.Subscription.modify,
            remote_subscription_id,
            items=[{"id": items[0]["id"], "price": new_price_ref}],
        )
        if result.is_failure:
            return OperationResult.from_errors(result.errors)

        logger.info(f"Stripe subscription {remote_subscription_id} moved to price {new_price_ref}")
        return OperationResult.success()

    async def verify_and_parse_webhook(self, payload: bytes, signature: str) -> OperationResult[PaymentEvent]:
        if not self.webhook_secret:
            return OperationResult.failure(
                "Stripe webhook error: webhook secret is not configured",
                OperationErrorType.EXTERNAL_SERVICE_ERROR,
            )

        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as e:
            logger.warning(f"Stripe webhook signature verification failed: {e}")
            return OperationResult.failure(
                f"Stripe webhook error: {e}",
                OperationErrorType.EXTERNAL_SERVICE_ERROR,
            )
        except ValueError as e:
            logger.warning(f"Stripe webhook payload could not be parsed: {e}")
            return OperationResult.failure(
                "Stripe webhook error: invalid payload",
                OperationErrorType.EXTERNAL_SERVICE_ERROR,
            )

        data_object = event["data"]["object"] if "data" in event else {}
        logger.info(f"Stripe webhook {event['id']} received: {event['type']}")
        return OperationResult.success(
            PaymentEvent(event_id=event["id"], event_type=event["type"], data=dict(data_object))
        )
