# 📄 File: shelfkeeper/modules/subscription_management/application/commands/subscription_commands.py
# 🧭 Purpose (Layman Explanation):
# The "request forms" for changing a subscription: start one, cancel it, move plans,
# set its status or go to the payment page.
# 🧪 Purpose (Technical Summary):
# CQRS command definitions (pydantic) for subscription write operations. Each command carries
# the acting user so handlers can enforce ownership before delegating to the domain service.
# 🔗 Dependencies:
# pydantic, subscription domain model
# 🔄 Connected Modules / Calls From:
# application.handlers.subscription_command_handlers, presentation API endpoints

"""
Subscription Commands

Commands represent write operations on the subscription lifecycle:
- CreateSubscriptionCommand: start a new Active subscription
- CancelSubscriptionCommand: end the caller's subscription now
- ChangePlanCommand: upgrade or downgrade the caller's subscription
- UpdateSubscriptionStatusCommand: administrative status override
- StartCheckoutCommand: open a hosted payment page for a paid plan
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from shelfkeeper.modules.subscription_management.domain.models.subscription import (
    SubscriptionPlan,
    SubscriptionStatus,
)


class CreateSubscriptionCommand(BaseModel):
    """Start a subscription; any current Active one is cancelled."""
    model_config = ConfigDict(frozen=True)

    user_id: UUID = Field(..., description="Owner of the new subscription")
    plan: SubscriptionPlan = Field(..., description="Plan to subscribe to")
    start_time: datetime = Field(..., description="Validity window start")
    end_time: datetime = Field(..., description="Validity window end")
    auto_renew: bool = Field(default=False, description="Renew at end of window")


class CancelSubscriptionCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    subscription_id: UUID
    requested_by: UUID = Field(..., description="User issuing the cancellation")


class ChangePlanCommand(BaseModel):
    """Used for both upgrades and downgrades; direction is checked by the handler."""
    model_config = ConfigDict(frozen=True)

    subscription_id: UUID
    requested_by: UUID
    new_plan: SubscriptionPlan


class UpdateSubscriptionStatusCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    subscription_id: UUID
    status: SubscriptionStatus


class StartCheckoutCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: UUID
    plan: SubscriptionPlan
    success_url: str = Field(..., min_length=1, max_length=2000)
    cancel_url: str = Field(..., min_length=1, max_length=2000)
