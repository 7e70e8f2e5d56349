# 📄 File: shelfkeeper/modules/subscription_management/application/dto/subscription_dto.py
# 🧭 Purpose (Layman Explanation):
# Packages subscription and feature-access information in a tidy shape that can be
# handed to the website or app.
# 🧪 Purpose (Technical Summary):
# Data transfer objects built from domain entities and results; payment provider references
# are left out of the public subscription view.
# 🔗 Dependencies:
# pydantic, subscription domain model, entitlement table
# 🔄 Connected Modules / Calls From:
# application handlers, presentation schemas and endpoints

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from shelfkeeper.modules.subscription_management.domain.models.entitlement import FeatureType
from shelfkeeper.modules.subscription_management.domain.models.subscription import (
    Subscription,
    SubscriptionPlan,
    SubscriptionStatus,
)


class SubscriptionDTO(BaseModel):
    """Public view of a subscription."""

    subscription_id: UUID
    user_id: UUID
    plan: SubscriptionPlan
    status: SubscriptionStatus
    start_time: datetime
    end_time: datetime
    auto_renew: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, subscription: Subscription) -> "SubscriptionDTO":
        return cls(
            subscription_id=subscription.subscription_id,
            user_id=subscription.user_id,
            plan=subscription.plan,
            status=subscription.status,
            start_time=subscription.start_time,
            end_time=subscription.end_time,
            auto_renew=subscription.auto_renew,
            created_at=subscription.created_at,
            updated_at=subscription.updated_at,
        )


class FeatureAccessDTO(BaseModel):
    feature: FeatureType
    plan: Optional[SubscriptionPlan] = None
    allowed: bool
    reason: Optional[str] = None


class CheckoutDTO(BaseModel):
    checkout_url: str
