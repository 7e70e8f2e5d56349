# 📄 File: shelfkeeper/modules/subscription_management/presentation/api/schemas/subscription_schemas.py
# 🧭 Purpose (Layman Explanation):
# Describes exactly what the website or app must send to the subscription endpoints
# and what it gets back.
# 🧪 Purpose (Technical Summary):
# Pydantic request/response schemas for the subscription, feature access and payment webhook
# endpoints, with conversion helpers from application DTOs.
# 🔗 Dependencies:
# pydantic, application DTOs, subscription domain enums
# 🔄 Connected Modules / Calls From:
# presentation.api.v1.subscriptions, presentation.api.v1.features, presentation.api.v1.webhooks

"""
Subscription API Schemas

Request Schemas:
- CreateSubscriptionRequest: start a subscription
- ChangePlanRequest: upgrade/downgrade target plan
- UpdateSubscriptionStatusRequest: admin status override
- CheckoutRequest: paid plan checkout

Response Schemas:
- SubscriptionResponse, CheckoutResponse, FeatureAccessResponse, WebhookAckResponse
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from shelfkeeper.modules.subscription_management.application.dto.subscription_dto import (
    FeatureAccessDTO,
    SubscriptionDTO,
)
from shelfkeeper.modules.subscription_management.domain.models.entitlement import FeatureType
from shelfkeeper.modules.subscription_management.domain.models.subscription import (
    SubscriptionPlan,
    SubscriptionStatus,
)


# =========================================================================
# REQUESTS
# =========================================================================

class CreateSubscriptionRequest(BaseModel):
    plan: SubscriptionPlan = Field(..., description="free, basic or premium", examples=["basic"])
    start_time: datetime = Field(..., description="Validity window start (UTC)")
    end_time: datetime = Field(..., description="Validity window end (UTC)")
    auto_renew: bool = Field(default=False, description="Renew automatically at the end of the window")


class ChangePlanRequest(BaseModel):
    new_plan: SubscriptionPlan = Field(..., description="Target plan", examples=["premium"])


class UpdateSubscriptionStatusRequest(BaseModel):
    status: SubscriptionStatus = Field(..., description="New status", examples=["paused"])


class CheckoutRequest(BaseModel):
    plan: SubscriptionPlan = Field(..., description="Paid plan to check out", examples=["premium"])
    success_url: str = Field(..., min_length=1, max_length=2000)
    cancel_url: str = Field(..., min_length=1, max_length=2000)

    @model_validator(mode="after")
    def validate_urls(self) -> "CheckoutRequest":
        for url in (self.success_url, self.cancel_url):
            if not url.startswith(("http://", "https://")):
                raise ValueError("Redirect URLs must be absolute http(s) URLs")
        return self


# =========================================================================
# RESPONSES
# =========================================================================

class SubscriptionResponse(BaseModel):
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
    def from_dto(cls, dto: SubscriptionDTO) -> "SubscriptionResponse":
        return cls(**dto.model_dump())


class CheckoutResponse(BaseModel):
    checkout_url: str


class FeatureAccessResponse(BaseModel):
    feature: FeatureType
    plan: Optional[SubscriptionPlan] = Field(None, description="Plan the decision was made for")
    allowed: bool
    reason: Optional[str] = Field(None, description="Why access was denied, ready for display")

    @classmethod
    def from_dto(cls, dto: FeatureAccessDTO) -> "FeatureAccessResponse":
        return cls(**dto.model_dump())


class WebhookAckResponse(BaseModel):
    received: bool = True
    event_type: str
