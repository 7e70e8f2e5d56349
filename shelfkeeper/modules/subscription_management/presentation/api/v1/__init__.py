"""
Subscription Management API v1 routers.
"""

from shelfkeeper.modules.subscription_management.presentation.api.v1.features import features_router
from shelfkeeper.modules.subscription_management.presentation.api.v1.subscriptions import subscriptions_router
from shelfkeeper.modules.subscription_management.presentation.api.v1.webhooks import webhooks_router

__all__ = ["features_router", "subscriptions_router", "webhooks_router"]
