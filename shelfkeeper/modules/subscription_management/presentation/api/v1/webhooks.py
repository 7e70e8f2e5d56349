# 📄 File: shelfkeeper/modules/subscription_management/presentation/api/v1/webhooks.py
# 🧭 Purpose (Layman Explanation):
# The address Stripe calls to tell us something happened with a payment. We check the
# call really came from Stripe and confirm we got it.
# 🧪 Purpose (Technical Summary):
# Public Stripe webhook endpoint: verifies the Stripe-Signature header against the raw body
# through the PaymentGateway and acknowledges the event; verification failures answer 400.
# 🔗 Dependencies:
# FastAPI, PaymentGateway, presentation dependencies
# 🔄 Connected Modules / Calls From:
# shelfkeeper.api.v1.router (mounted under /api/v1/stripe), AuthenticationMiddleware public paths

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from shelfkeeper.modules.subscription_management.domain.services.collaborators import PaymentGateway
from shelfkeeper.modules.subscription_management.presentation.api.schemas.subscription_schemas import (
    WebhookAckResponse,
)
from shelfkeeper.modules.subscription_management.presentation.dependencies import get_payment_gateway

logger = logging.getLogger(__name__)

webhooks_router = APIRouter()

# Events the subscription lifecycle cares about; everything else is acknowledged and ignored.
HANDLED_EVENT_TYPES = frozenset({
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
    "invoice.payment_succeeded",
})


@webhooks_router.post(
    "/webhooks",
    response_model=WebhookAckResponse,
    summary="Stripe webhook",
    responses={400: {"description": "Missing or invalid Stripe signature"}},
)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
    payment_gateway: Optional[PaymentGateway] = Depends(get_payment_gateway),
) -> WebhookAckResponse:
    if payment_gateway is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Stripe webhook error: payment processing is not configured",
        )
    if not stripe_signature:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing Stripe-Signature header")

    payload = await request.body()
    result = await payment_gateway.verify_and_parse_webhook(payload, stripe_signature)
    if result.is_failure:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.first_error.message)

    event = result.value
    if event.event_type in HANDLED_EVENT_TYPES:
        logger.info(f"Stripe event {event.event_id} ({event.event_type}) acknowledged")
    else:
        logger.debug(f"Ignoring Stripe event {event.event_id} ({event.event_type})")

    return WebhookAckResponse(received=True, event_type=event.event_type)
