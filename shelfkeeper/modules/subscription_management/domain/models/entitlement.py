# 📄 File: shelfkeeper/modules/subscription_management/domain/models/entitlement.py
# 🧭 Purpose (Layman Explanation):
# The rule book of what each plan includes: how many items you may catalog and which
# extra features (shared lists, advanced search, batch edits, CSV files) are unlocked.
# 🧪 Purpose (Technical Summary):
# Feature enumeration plus an exhaustive (plan, feature) decision table and the
# per-plan media item ceilings, with the denial messages shown to users.
# 🔗 Dependencies:
# dataclasses, enum, typing, subscription.py (SubscriptionPlan)
# 🔄 Connected Modules / Calls From:
# feature_gate_service.py, reconciliation_service.py, features API

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple

from .subscription import SubscriptionPlan


class FeatureType(str, Enum):
    """Features guarded by plan entitlements."""
    MEDIA_ITEM_LIMIT = "media_item_limit"
    SHARED_LISTS = "shared_lists"
    ADVANCED_SEARCH = "advanced_search"
    BATCH_OPERATIONS = "batch_operations"
    CSV_IMPORT_EXPORT = "csv_import_export"


@dataclass(frozen=True)
class FeatureGate:
    """Plans that unlock an on/off feature and the reason shown otherwise."""
    allowed_plans: FrozenSet[SubscriptionPlan]
    denial_message: str


# None means unbounded.
MEDIA_ITEM_LIMITS: Dict[SubscriptionPlan, Optional[int]] = {
    SubscriptionPlan.FREE: 10,
    SubscriptionPlan.BASIC: 100,
    SubscriptionPlan.PREMIUM: None,
}

FEATURE_GATES: Dict[FeatureType, FeatureGate] = {
    FeatureType.SHARED_LISTS: FeatureGate(
        allowed_plans=frozenset({SubscriptionPlan.PREMIUM}),
        denial_message="Shared lists require Premium plan.",
    ),
    FeatureType.ADVANCED_SEARCH: FeatureGate(
        allowed_plans=frozenset({SubscriptionPlan.BASIC, SubscriptionPlan.PREMIUM}),
        denial_message="Advanced search requires Basic or Premium plan.",
    ),
    FeatureType.BATCH_OPERATIONS: FeatureGate(
        allowed_plans=frozenset({SubscriptionPlan.PREMIUM}),
        denial_message="Batch operations require Premium plan.",
    ),
    FeatureType.CSV_IMPORT_EXPORT: FeatureGate(
        allowed_plans=frozenset({SubscriptionPlan.PREMIUM}),
        denial_message="CSV import/export requires Premium plan.",
    ),
}

# One cell per (plan, on/off feature).
ENTITLEMENT_MATRIX: Dict[Tuple[SubscriptionPlan, FeatureType], bool] = {
    (plan, feature): plan in gate.allowed_plans
    for feature, gate in FEATURE_GATES.items()
    for plan in SubscriptionPlan
}


def media_item_limit(plan: SubscriptionPlan) -> Optional[int]:
    """Maximum number of catalog items for a plan, or None when unbounded."""
    return MEDIA_ITEM_LIMITS[plan]


def media_item_limit_message(plan: SubscriptionPlan, limit: int) -> str:
    return f"Media item limit ({limit}) exceeded for {plan.display_name} plan."


def is_feature_enabled(plan: SubscriptionPlan, feature: FeatureType) -> bool:
    """Look up an on/off feature; raises KeyError for the media item ceiling."""
    return ENTITLEMENT_MATRIX[(plan, feature)]
