"""
Domain services for subscription management: lifecycle, entitlements and
media item limit reconciliation, plus the collaborator contracts they use.
"""

from .collaborators import (
    CatalogService,
    CheckoutSession,
    NotificationGateway,
    PaymentEvent,
    PaymentGateway,
    UserContact,
    UserDirectory,
)
from .subscription_service import SubscriptionService
from .feature_gate_service import FeatureGateService
from .reconciliation_service import ReconciliationService, SweepReport

__all__ = [
    "CatalogService",
    "CheckoutSession",
    "NotificationGateway",
    "PaymentEvent",
    "PaymentGateway",
    "UserContact",
    "UserDirectory",
    "SubscriptionService",
    "FeatureGateService",
    "ReconciliationService",
    "SweepReport",
]
