"""
Unit tests for FeatureGateService: plan resolution and entitlement decisions.
"""
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from shelfkeeper.shared.core.result import OperationErrorType, OperationResult
from shelfkeeper.modules.subscription_management.domain.models.entitlement import FeatureType
from shelfkeeper.modules.subscription_management.domain.models.subscription import (
    SubscriptionPlan,
    SubscriptionStatus,
)
from shelfkeeper.modules.subscription_management.domain.services.feature_gate_service import FeatureGateService
from tests.conftest import make_subscription


@pytest.fixture
def feature_gate(subscription_service, catalog):
    return FeatureGateService(subscription_service, catalog)


@pytest.mark.asyncio
async def test_user_without_subscription_resolves_to_free(feature_gate):
    result = await feature_gate.resolve_plan(uuid4())
    assert result.is_success
    assert result.value == SubscriptionPlan.FREE


@pytest.mark.asyncio
async def test_cancelled_subscription_does_not_count(feature_gate, repository):
    user_id = uuid4()
    repository.add(make_subscription(user_id=user_id, plan=SubscriptionPlan.PREMIUM, status=SubscriptionStatus.CANCELLED))

    result = await feature_gate.resolve_plan(user_id)
    assert result.value == SubscriptionPlan.FREE


@pytest.mark.asyncio
async def test_active_plan_is_resolved(feature_gate, repository):
    user_id = uuid4()
    repository.add(make_subscription(user_id=user_id, plan=SubscriptionPlan.BASIC))

    result = await feature_gate.resolve_plan(user_id)
    assert result.value == SubscriptionPlan.BASIC


@pytest.mark.asyncio
async def test_resolution_failure_other_than_not_found_is_propagated(catalog):
    subscription_service = AsyncMock()
    subscription_service.get_active.return_value = OperationResult.failure(
        "Concurrent subscription change detected; please retry.",
        OperationErrorType.CONFLICT_ERROR,
    )
    feature_gate = FeatureGateService(subscription_service, catalog)

    result = await feature_gate.has_access(uuid4(), FeatureType.SHARED_LISTS)
    assert result.has_error(OperationErrorType.CONFLICT_ERROR)


@pytest.mark.asyncio
async def test_free_user_under_item_limit_is_allowed(feature_gate, catalog):
    user_id = uuid4()
    catalog.counts[user_id] = 9

    result = await feature_gate.has_access(user_id, FeatureType.MEDIA_ITEM_LIMIT)
    assert result.is_success


@pytest.mark.asyncio
async def test_free_user_at_item_limit_is_denied(feature_gate, catalog):
    user_id = uuid4()
    catalog.counts[user_id] = 10

    result = await feature_gate.has_access(user_id, FeatureType.MEDIA_ITEM_LIMIT)
    assert result.has_error(OperationErrorType.FORBIDDEN_ERROR)
    assert result.first_error.message == "Media item limit (10) exceeded for Free plan."


@pytest.mark.asyncio
async def test_basic_user_item_limit(feature_gate, repository, catalog):
    user_id = uuid4()
    repository.add(make_subscription(user_id=user_id, plan=SubscriptionPlan.BASIC))

    catalog.counts[user_id] = 99
    assert (await feature_gate.has_access(user_id, FeatureType.MEDIA_ITEM_LIMIT)).is_success

    catalog.counts[user_id] = 100
    denied = await feature_gate.has_access(user_id, FeatureType.MEDIA_ITEM_LIMIT)
    assert denied.first_error.message == "Media item limit (100) exceeded for Basic plan."


@pytest.mark.asyncio
async def test_premium_item_limit_skips_catalog(subscription_service):
    catalog = AsyncMock()
    feature_gate = FeatureGateService(subscription_service, catalog)

    result = await feature_gate.check(uuid4(), SubscriptionPlan.PREMIUM, FeatureType.MEDIA_ITEM_LIMIT)
    assert result.is_success
    catalog.count_items.assert_not_called()


@pytest.mark.asyncio
async def test_basic_user_gets_advanced_search_but_not_shared_lists(feature_gate, repository):
    user_id = uuid4()
    repository.add(make_subscription(user_id=user_id, plan=SubscriptionPlan.BASIC))

    assert (await feature_gate.has_access(user_id, FeatureType.ADVANCED_SEARCH)).is_success

    denied = await feature_gate.has_access(user_id, FeatureType.SHARED_LISTS)
    assert denied.has_error(OperationErrorType.FORBIDDEN_ERROR)
    assert FeatureGateService.denial_reason(denied) == "Shared lists require Premium plan."


@pytest.mark.asyncio
async def test_premium_user_gets_every_feature(feature_gate, repository, catalog):
    user_id = uuid4()
    repository.add(make_subscription(user_id=user_id, plan=SubscriptionPlan.PREMIUM))
    catalog.counts[user_id] = 10_000

    for feature in FeatureType:
        assert (await feature_gate.has_access(user_id, feature)).is_success, feature


@pytest.mark.asyncio
async def test_unknown_feature_is_a_validation_failure(feature_gate):
    result = await feature_gate.check(uuid4(), SubscriptionPlan.PREMIUM, "teleportation")
    assert result.has_error(OperationErrorType.VALIDATION_ERROR)
    assert result.first_error.message == "Unknown feature."


def test_denial_reason_of_success_is_none():
    assert FeatureGateService.denial_reason(OperationResult.success()) is None
