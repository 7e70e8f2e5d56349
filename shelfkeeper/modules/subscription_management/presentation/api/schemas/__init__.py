from shelfkeeper.modules.subscription_management.presentation.api.schemas.subscription_schemas import (
    ChangePlanRequest,
    CheckoutRequest,
    CheckoutResponse,
    CreateSubscriptionRequest,
    FeatureAccessResponse,
    SubscriptionResponse,
    UpdateSubscriptionStatusRequest,
    WebhookAckResponse,
)

__all__ = [
    "ChangePlanRequest",
    "CheckoutRequest",
    "CheckoutResponse",
    "CreateSubscriptionRequest",
    "FeatureAccessResponse",
    "SubscriptionResponse",
    "UpdateSubscriptionStatusRequest",
    "WebhookAckResponse",
]
