"""
Subscription Commands

Write operations on the subscription lifecycle following the CQRS pattern.
"""

from shelfkeeper.modules.subscription_management.application.commands.subscription_commands import (
    CancelSubscriptionCommand,
    ChangePlanCommand,
    CreateSubscriptionCommand,
    StartCheckoutCommand,
    UpdateSubscriptionStatusCommand,
)

__all__ = [
    "CancelSubscriptionCommand",
    "ChangePlanCommand",
    "CreateSubscriptionCommand",
    "StartCheckoutCommand",
    "UpdateSubscriptionStatusCommand",
]
