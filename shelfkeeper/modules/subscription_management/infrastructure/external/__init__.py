"""
External service integrations: Stripe payments and SendGrid email.
"""

from shelfkeeper.modules.subscription_management.infrastructure.external.email_notification import (
    LoggingNotificationGateway,
    SendGridNotificationGateway,
    build_notification_gateway,
)
from shelfkeeper.modules.subscription_management.infrastructure.external.stripe_gateway import (
    StripePaymentGateway,
)

__all__ = [
    "LoggingNotificationGateway",
    "SendGridNotificationGateway",
    "build_notification_gateway",
    "StripePaymentGateway",
]
