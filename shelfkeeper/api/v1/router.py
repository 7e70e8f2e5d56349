# 📄 File: shelfkeeper/api/v1/router.py
# 🧭 Purpose (Layman Explanation):
# The traffic director for version 1 of the API: sends subscription, feature and Stripe
# requests to the right handlers.
# 🧪 Purpose (Technical Summary):
# Aggregates the health router and the subscription management module routers under their
# v1 prefixes.
# 🔗 Dependencies:
# FastAPI, shelfkeeper.api.v1.health, subscription_management.presentation.api.v1
# 🔄 Connected Modules / Calls From:
# shelfkeeper.main (mounted at /api/v1)

import logging

from fastapi import APIRouter

from shelfkeeper.modules.subscription_management.presentation.api.v1 import (
    features_router,
    subscriptions_router,
    webhooks_router,
)

from . import ROUTE_PREFIXES
from .health import health_router

logger = logging.getLogger(__name__)

api_v1_router = APIRouter()

api_v1_router.include_router(health_router, tags=["Health Check"])

api_v1_router.include_router(
    subscriptions_router,
    prefix=ROUTE_PREFIXES["subscriptions"],
    tags=["Subscriptions"]
)
api_v1_router.include_router(
    features_router,
    prefix=ROUTE_PREFIXES["features"],
    tags=["Feature Access"]
)
api_v1_router.include_router(
    webhooks_router,
    prefix=ROUTE_PREFIXES["stripe"],
    tags=["Payments"]
)
