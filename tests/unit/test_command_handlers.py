"""
Unit tests for SubscriptionCommandHandler: ownership checks and delegation.
"""
from datetime import timedelta
from uuid import uuid4

import pytest

from shelfkeeper.shared.core.result import OperationErrorType
from shelfkeeper.modules.subscription_management.application.commands.subscription_commands import (
    CancelSubscriptionCommand,
    ChangePlanCommand,
    CreateSubscriptionCommand,
    StartCheckoutCommand,
    UpdateSubscriptionStatusCommand,
)
from shelfkeeper.modules.subscription_management.application.dto.subscription_dto import SubscriptionDTO
from shelfkeeper.modules.subscription_management.application.handlers.subscription_command_handlers import (
    NOT_YOUR_SUBSCRIPTION,
    SubscriptionCommandHandler,
)
from shelfkeeper.modules.subscription_management.domain.models.subscription import (
    SubscriptionPlan,
    SubscriptionStatus,
)
from tests.conftest import NOW, make_subscription


@pytest.fixture
def handler(subscription_service):
    return SubscriptionCommandHandler(subscription_service)


@pytest.mark.asyncio
async def test_create_returns_dto(handler):
    user_id = uuid4()
    result = await handler.handle_create(
        CreateSubscriptionCommand(
            user_id=user_id,
            plan=SubscriptionPlan.BASIC,
            start_time=NOW,
            end_time=NOW + timedelta(days=30),
        )
    )

    assert isinstance(result.value, SubscriptionDTO)
    assert result.value.user_id == user_id
    assert result.value.auto_renew is False
    assert not hasattr(result.value, "payment_customer_id")


@pytest.mark.asyncio
async def test_create_failure_is_passed_through(handler):
    result = await handler.handle_create(
        CreateSubscriptionCommand(
            user_id=uuid4(),
            plan=SubscriptionPlan.BASIC,
            start_time=NOW,
            end_time=NOW - timedelta(days=1),
        )
    )
    assert result.has_error(OperationErrorType.VALIDATION_ERROR)


@pytest.mark.asyncio
async def test_owner_can_cancel_current_subscription(handler, repository):
    subscription = repository.add(make_subscription())

    result = await handler.handle_cancel(
        CancelSubscriptionCommand(subscription_id=subscription.subscription_id, requested_by=subscription.user_id)
    )

    assert result.is_success
    assert repository.rows[subscription.subscription_id].status == SubscriptionStatus.CANCELLED


@pytest.mark.asyncio
async def test_cannot_cancel_someone_elses_subscription(handler, repository):
    subscription = repository.add(make_subscription())
    intruder = uuid4()
    repository.add(make_subscription(user_id=intruder))

    result = await handler.handle_cancel(
        CancelSubscriptionCommand(subscription_id=subscription.subscription_id, requested_by=intruder)
    )

    assert result.has_error(OperationErrorType.FORBIDDEN_ERROR)
    assert result.first_error.message == NOT_YOUR_SUBSCRIPTION
    assert repository.rows[subscription.subscription_id].is_active


@pytest.mark.asyncio
async def test_cannot_change_superseded_subscription(handler, repository):
    user_id = uuid4()
    old = repository.add(make_subscription(user_id=user_id, status=SubscriptionStatus.CANCELLED))
    repository.add(make_subscription(user_id=user_id))

    result = await handler.handle_upgrade(
        ChangePlanCommand(subscription_id=old.subscription_id, requested_by=user_id, new_plan=SubscriptionPlan.PREMIUM)
    )

    assert result.has_error(OperationErrorType.FORBIDDEN_ERROR)


@pytest.mark.asyncio
async def test_upgrade_and_downgrade_delegate(handler, repository):
    subscription = repository.add(make_subscription(plan=SubscriptionPlan.BASIC))
    command = dict(subscription_id=subscription.subscription_id, requested_by=subscription.user_id)

    upgraded = await handler.handle_upgrade(ChangePlanCommand(new_plan=SubscriptionPlan.PREMIUM, **command))
    downgraded = await handler.handle_downgrade(ChangePlanCommand(new_plan=SubscriptionPlan.FREE, **command))

    assert upgraded.is_success
    assert downgraded.is_success
    assert repository.rows[subscription.subscription_id].plan == SubscriptionPlan.FREE


@pytest.mark.asyncio
async def test_invalid_direction_reaches_caller(handler, repository):
    subscription = repository.add(make_subscription(plan=SubscriptionPlan.PREMIUM))

    result = await handler.handle_upgrade(
        ChangePlanCommand(
            subscription_id=subscription.subscription_id,
            requested_by=subscription.user_id,
            new_plan=SubscriptionPlan.BASIC,
        )
    )

    assert result.first_error.message == "New plan must be an upgrade."


@pytest.mark.asyncio
async def test_update_status_needs_no_ownership(handler, repository):
    subscription = repository.add(make_subscription())

    result = await handler.handle_update_status(
        UpdateSubscriptionStatusCommand(subscription_id=subscription.subscription_id, status=SubscriptionStatus.EXPIRED)
    )

    assert result.is_success
    assert repository.rows[subscription.subscription_id].status == SubscriptionStatus.EXPIRED


@pytest.mark.asyncio
async def test_checkout_returns_url(handler, user_directory):
    user_id = uuid4()
    user_directory.register(user_id, "reader@example.com")

    result = await handler.handle_checkout(
        StartCheckoutCommand(
            user_id=user_id,
            plan=SubscriptionPlan.BASIC,
            success_url="https://app.test/ok",
            cancel_url="https://app.test/cancel",
        )
    )

    assert result.value.checkout_url.startswith("https://checkout.stripe.test/")
