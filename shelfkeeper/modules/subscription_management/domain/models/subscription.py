# 📄 File: shelfkeeper/modules/subscription_management/domain/models/subscription.py
# 🧭 Purpose (Layman Explanation):
# Describes a library owner's subscription: which plan they pay for (Free, Basic or Premium),
# whether it is still running, and when it started and ended.
# 🧪 Purpose (Technical Summary):
# Domain model for the Subscription entity with an ordered plan enumeration, the status
# enumeration and construction-time invariants (validity window and audit timestamps).
# 🔗 Dependencies:
# pydantic, datetime, typing, uuid, enum
# 🔄 Connected Modules / Calls From:
# subscription_service.py, feature_gate_service.py, reconciliation_service.py,
# subscription_repository_impl.py, API schemas

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from shelfkeeper.shared.core.clock import ensure_utc


class SubscriptionPlan(str, Enum):
    """
    Subscription tiers. Declaration order is the tier order:
    FREE < BASIC < PREMIUM.
    """
    FREE = "free"
    BASIC = "basic"
    PREMIUM = "premium"

    @property
    def rank(self) -> int:
        return list(type(self)).index(self)

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    # str already defines ordering, so every comparison is overridden to use rank.
    def __lt__(self, other):
        if not isinstance(other, SubscriptionPlan):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, SubscriptionPlan):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, SubscriptionPlan):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, SubscriptionPlan):
            return NotImplemented
        return self.rank >= other.rank


class SubscriptionStatus(str, Enum):
    """Subscription status enumeration"""
    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    TRIAL = "trial"
    PAUSED = "paused"
    INCOMPLETE = "incomplete"


class Subscription(BaseModel):
    """
    Subscription domain model.

    - subscription_id (UUID): Unique subscription identifier
    - user_id (UUID): Owning user
    - plan (SubscriptionPlan): free/basic/premium
    - status (SubscriptionStatus): active/cancelled/expired/trial/paused/incomplete
    - start_time / end_time: validity window, end never before start
    - auto_renew (bool): renews at the end of the window
    - payment_customer_id / payment_subscription_id: opaque billing references
    - created_at / updated_at: audit timestamps, updated never before created

    Records are never deleted; a superseded subscription stays as history.
    """

    model_config = ConfigDict(frozen=True)

    subscription_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    user_id: uuid.UUID

    plan: SubscriptionPlan
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE

    start_time: datetime
    end_time: datetime
    auto_renew: bool = False

    payment_customer_id: Optional[str] = None
    payment_subscription_id: Optional[str] = None

    created_at: datetime
    updated_at: datetime

    @field_validator("start_time", "end_time", "created_at", "updated_at")
    @classmethod
    def normalize_timezone(cls, v: datetime) -> datetime:
        """Stored timestamps are UTC; naive values are read as UTC."""
        return ensure_utc(v)

    @model_validator(mode="after")
    def validate_timestamps(self) -> "Subscription":
        if self.end_time < self.start_time:
            raise ValueError("Subscription end time must not precede its start time")
        if self.updated_at < self.created_at:
            raise ValueError("Subscription update time must not precede its creation time")
        return self

    # Business Logic Methods

    @property
    def is_active(self) -> bool:
        return self.status == SubscriptionStatus.ACTIVE

    def is_upgrade_to(self, new_plan: SubscriptionPlan) -> bool:
        return new_plan > self.plan

    def is_downgrade_to(self, new_plan: SubscriptionPlan) -> bool:
        return new_plan < self.plan

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subscription_id": str(self.subscription_id),
            "user_id": str(self.user_id),
            "plan": self.plan.value,
            "status": self.status.value,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "auto_renew": self.auto_renew,
        }
