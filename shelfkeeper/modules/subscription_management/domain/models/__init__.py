# 📄 File: shelfkeeper/modules/subscription_management/domain/models/__init__.py
# 🧭 Purpose (Layman Explanation):
# Collects the subscription data shapes and the plan rule book in one import location.
# 🧪 Purpose (Technical Summary):
# Domain models package exporting the Subscription entity, its enumerations and the entitlement table.
# 🔗 Dependencies:
# subscription.py, entitlement.py
# 🔄 Connected Modules / Calls From:
# Domain services, repositories, API schemas

from .subscription import (
    Subscription,
    SubscriptionPlan,
    SubscriptionStatus,
)

from .entitlement import (
    FeatureType,
    FeatureGate,
    FEATURE_GATES,
    MEDIA_ITEM_LIMITS,
    ENTITLEMENT_MATRIX,
    media_item_limit,
    is_feature_enabled,
)

__all__ = [
    # Subscription entity and enums
    "Subscription",
    "SubscriptionPlan",
    "SubscriptionStatus",

    # Entitlement table
    "FeatureType",
    "FeatureGate",
    "FEATURE_GATES",
    "MEDIA_ITEM_LIMITS",
    "ENTITLEMENT_MATRIX",
    "media_item_limit",
    "is_feature_enabled",
]
