# 📄 File: shelfkeeper/modules/subscription_management/domain/services/feature_gate_service.py
# 🧭 Purpose (Layman Explanation):
# Answers "may this user do that?" by looking at their plan and, for the item limit,
# how many items they already have. Users without a subscription count as Free.
# 🧪 Purpose (Technical Summary):
# Side-effect-free entitlement policy: resolves the caller's plan through the lifecycle
# service, then applies the (plan, feature) decision table. Denials are FORBIDDEN results
# carrying a display-ready reason; unknown features are VALIDATION results.
# 🔗 Dependencies:
# entitlement.py (decision table), subscription_service.py, CatalogService contract
# 🔄 Connected Modules / Calls From:
# features API endpoint, require_feature dependency

import logging
from typing import Optional
from uuid import UUID

from shelfkeeper.shared.core.result import OperationErrorType, OperationResult

from ..models.entitlement import (
    FEATURE_GATES,
    FeatureType,
    is_feature_enabled,
    media_item_limit,
    media_item_limit_message,
)
from ..models.subscription import SubscriptionPlan
from .collaborators import CatalogService
from .subscription_service import SubscriptionService

logger = logging.getLogger(__name__)

UNKNOWN_FEATURE = "Unknown feature."


class FeatureGateService:
    """
    Decides whether a user's plan grants a feature.

    Advisory only: callers must invoke it in front of the guarded action.
    """

    def __init__(self, subscription_service: SubscriptionService, catalog_service: CatalogService):
        self.subscription_service = subscription_service
        self.catalog_service = catalog_service

    async def resolve_plan(self, user_id: UUID) -> OperationResult[SubscriptionPlan]:
        """The user's active plan, or FREE when they have no active subscription."""
        active = await self.subscription_service.get_active(user_id)
        if active.is_success:
            return OperationResult.success(active.value.plan)
        if active.has_error(OperationErrorType.NOT_FOUND_ERROR):
            return OperationResult.success(SubscriptionPlan.FREE)
        return OperationResult.from_errors(active.errors)

    async def has_access(self, user_id: UUID, feature: FeatureType) -> OperationResult[None]:
        plan_result = await self.resolve_plan(user_id)
        if plan_result.is_failure:
            return OperationResult.from_errors(plan_result.errors)

        return await self.check(user_id, plan_result.value, feature)

    async def check(self, user_id: UUID, plan: SubscriptionPlan, feature: FeatureType) -> OperationResult[None]:
        """Apply the decision table for an already-resolved plan."""
        if feature == FeatureType.MEDIA_ITEM_LIMIT:
            limit = media_item_limit(plan)
            if limit is None:
                return OperationResult.success()

            count = await self.catalog_service.count_items(user_id)
            if count >= limit:
                logger.info(f"User {user_id} denied new media item: {count}/{limit} on {plan.display_name} plan")
                return OperationResult.failure(
                    media_item_limit_message(plan, limit),
                    OperationErrorType.FORBIDDEN_ERROR,
                )
            return OperationResult.success()

        gate = FEATURE_GATES.get(feature)
        if gate is None:
            return OperationResult.failure(UNKNOWN_FEATURE, OperationErrorType.VALIDATION_ERROR)

        if not is_feature_enabled(plan, feature):
            return OperationResult.failure(gate.denial_message, OperationErrorType.FORBIDDEN_ERROR)

        return OperationResult.success()

    @staticmethod
    def denial_reason(result: OperationResult) -> Optional[str]:
        return result.first_error.message if result.is_failure else None
