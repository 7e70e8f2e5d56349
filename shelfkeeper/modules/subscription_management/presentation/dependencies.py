# 📄 File: shelfkeeper/modules/subscription_management/presentation/dependencies.py
# 🧭 Purpose (Layman Explanation):
# Wires everything the subscription web endpoints need (database access, Stripe, the
# subscription rules) and provides the "is this user's plan good enough?" check for routes.
# 🧪 Purpose (Technical Summary):
# FastAPI dependency providers for the subscription module: repository and collaborator
# adapters bound to the request session, domain services, the command handler, result-to-HTTP
# translation and the require_feature() route guard.
# 🔗 Dependencies:
# FastAPI, SQLAlchemy AsyncSession, settings, domain services, infrastructure adapters
# 🔄 Connected Modules / Calls From:
# presentation.api.v1.subscriptions, presentation.api.v1.features, presentation.api.v1.webhooks

"""
Subscription Management Module Dependencies

- Request-scoped repositories and collaborator adapters
- SubscriptionService / FeatureGateService assembly
- Payment gateway built from Stripe settings (None when not configured)
- require_feature(feature): guard any route behind a plan entitlement
"""

import logging
from functools import lru_cache
from typing import Dict, Optional, TypeVar

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shelfkeeper.shared.config.settings import get_settings
from shelfkeeper.shared.core.clock import Clock, SystemClock
from shelfkeeper.shared.core.dependencies import CurrentUser, get_current_user
from shelfkeeper.shared.core.exceptions import AuthorizationError
from shelfkeeper.shared.core.result import OperationErrorType, OperationResult
from shelfkeeper.shared.infrastructure.database.session import get_db_session

from shelfkeeper.modules.subscription_management.application.handlers.subscription_command_handlers import (
    SubscriptionCommandHandler,
)
from shelfkeeper.modules.subscription_management.domain.models.entitlement import FeatureType
from shelfkeeper.modules.subscription_management.domain.models.subscription import SubscriptionPlan
from shelfkeeper.modules.subscription_management.domain.repositories.subscription_repository import (
    SubscriptionRepository,
)
from shelfkeeper.modules.subscription_management.domain.services.collaborators import (
    CatalogService,
    PaymentGateway,
    UserDirectory,
)
from shelfkeeper.modules.subscription_management.domain.services.feature_gate_service import FeatureGateService
from shelfkeeper.modules.subscription_management.domain.services.subscription_service import SubscriptionService
from shelfkeeper.modules.subscription_management.infrastructure.database.catalog_repository_impl import (
    SqlCatalogService,
    SqlUserDirectory,
)
from shelfkeeper.modules.subscription_management.infrastructure.database.subscription_repository_impl import (
    SubscriptionRepositoryImpl,
)
from shelfkeeper.modules.subscription_management.infrastructure.external.stripe_gateway import (
    StripePaymentGateway,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_system_clock = SystemClock()


# =========================================================================
# RESULT TRANSLATION
# =========================================================================

def raise_for_result(result: OperationResult[T]) -> T:
    """Return the value of a successful result or raise its HTTP-aware exception."""
    if result.is_failure:
        raise result.to_exception()
    return result.value


# =========================================================================
# INFRASTRUCTURE PROVIDERS
# =========================================================================

def get_clock() -> Clock:
    return _system_clock


def get_subscription_repository(session: AsyncSession = Depends(get_db_session)) -> SubscriptionRepository:
    return SubscriptionRepositoryImpl(session)


def get_catalog_service(session: AsyncSession = Depends(get_db_session)) -> CatalogService:
    return SqlCatalogService(session)


def get_user_directory(session: AsyncSession = Depends(get_db_session)) -> UserDirectory:
    return SqlUserDirectory(session)


@lru_cache()
def get_payment_gateway() -> Optional[PaymentGateway]:
    """Stripe gateway, or None when no secret key is configured."""
    settings = get_settings()
    if not settings.STRIPE_SECRET_KEY:
        logger.warning("STRIPE_SECRET_KEY not set; checkout and webhooks are disabled")
        return None
    return StripePaymentGateway(
        api_key=settings.STRIPE_SECRET_KEY,
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
        timeout_seconds=settings.STRIPE_TIMEOUT_SECONDS,
    )


def get_price_refs() -> Dict[SubscriptionPlan, Optional[str]]:
    price_map = get_settings().stripe_price_map
    return {SubscriptionPlan(plan): price_ref for plan, price_ref in price_map.items()}


# =========================================================================
# DOMAIN SERVICE PROVIDERS
# =========================================================================

def get_subscription_service(
    repository: SubscriptionRepository = Depends(get_subscription_repository),
    clock: Clock = Depends(get_clock),
    payment_gateway: Optional[PaymentGateway] = Depends(get_payment_gateway),
    user_directory: UserDirectory = Depends(get_user_directory),
    price_refs: Dict[SubscriptionPlan, Optional[str]] = Depends(get_price_refs),
) -> SubscriptionService:
    return SubscriptionService(
        repository=repository,
        clock=clock,
        payment_gateway=payment_gateway,
        user_directory=user_directory,
        price_refs=price_refs,
    )


def get_feature_gate_service(
    subscription_service: SubscriptionService = Depends(get_subscription_service),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> FeatureGateService:
    return FeatureGateService(subscription_service, catalog_service)


def get_subscription_command_handler(
    subscription_service: SubscriptionService = Depends(get_subscription_service),
) -> SubscriptionCommandHandler:
    return SubscriptionCommandHandler(subscription_service)


# =========================================================================
# ROUTE GUARDS
# =========================================================================

def require_feature(feature: FeatureType):
    """
    Build a dependency that lets the request through only when the caller's
    plan grants ``feature``.

    Usage:
        @router.post("/lists/share", dependencies=[Depends(require_feature(FeatureType.SHARED_LISTS))])
    """

    async def _require_feature(
        current_user: CurrentUser = Depends(get_current_user),
        feature_gate: FeatureGateService = Depends(get_feature_gate_service),
    ) -> CurrentUser:
        result = await feature_gate.has_access(current_user.user_uuid, feature)
        if result.is_success:
            return current_user

        if result.has_error(OperationErrorType.FORBIDDEN_ERROR):
            logger.info(f"User {current_user.user_id} denied feature {feature.value}: {result.first_error.message}")
            raise AuthorizationError(result.first_error.message, feature=feature.value)
        raise result.to_exception()

    return _require_feature
