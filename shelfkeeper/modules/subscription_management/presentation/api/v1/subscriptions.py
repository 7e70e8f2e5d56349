# 📄 File: shelfkeeper/modules/subscription_management/presentation/api/v1/subscriptions.py
# 🧭 Purpose (Layman Explanation):
# The web addresses the app calls to see, start, cancel, upgrade or downgrade a subscription,
# and to go to the payment page.
# 🧪 Purpose (Technical Summary):
# FastAPI router for the subscription lifecycle. Endpoints build commands, run them through
# SubscriptionCommandHandler and translate failed OperationResults into HTTP-aware exceptions.
# 🔗 Dependencies:
# FastAPI, shared core dependencies, application commands/handlers, presentation dependencies
# 🔄 Connected Modules / Calls From:
# shelfkeeper.api.v1.router (mounted under /api/v1/subscriptions)

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from shelfkeeper.shared.core.dependencies import CurrentUser, get_current_admin_user, get_current_user

from shelfkeeper.modules.subscription_management.application.commands.subscription_commands import (
    CancelSubscriptionCommand,
    ChangePlanCommand,
    CreateSubscriptionCommand,
    StartCheckoutCommand,
    UpdateSubscriptionStatusCommand,
)
from shelfkeeper.modules.subscription_management.application.dto.subscription_dto import SubscriptionDTO
from shelfkeeper.modules.subscription_management.application.handlers.subscription_command_handlers import (
    SubscriptionCommandHandler,
)
from shelfkeeper.modules.subscription_management.domain.services.subscription_service import SubscriptionService
from shelfkeeper.modules.subscription_management.presentation.api.schemas.subscription_schemas import (
    ChangePlanRequest,
    CheckoutRequest,
    CheckoutResponse,
    CreateSubscriptionRequest,
    SubscriptionResponse,
    UpdateSubscriptionStatusRequest,
)
from shelfkeeper.modules.subscription_management.presentation.dependencies import (
    get_subscription_command_handler,
    get_subscription_service,
    raise_for_result,
)

logger = logging.getLogger(__name__)

subscriptions_router = APIRouter()

_OWNERSHIP_RESPONSES = {
    401: {"description": "Authentication required"},
    403: {"description": "Not the caller's current active subscription"},
    404: {"description": "Subscription not found"},
}


@subscriptions_router.get(
    "/me",
    response_model=SubscriptionResponse,
    summary="Get current subscription",
    description="Get the caller's active subscription. 404 means the caller is on the Free tier.",
    responses={
        401: {"description": "Authentication required"},
        404: {"description": "No active subscription"},
    }
)
async def get_my_subscription(
    current_user: CurrentUser = Depends(get_current_user),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
) -> SubscriptionResponse:
    subscription = raise_for_result(await subscription_service.get_active(current_user.user_uuid))
    return SubscriptionResponse.from_dto(SubscriptionDTO.from_domain(subscription))


@subscriptions_router.post(
    "",
    response_model=SubscriptionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start a subscription",
    description="Start a new active subscription. Any active subscription the caller has is cancelled.",
    responses={
        409: {"description": "Concurrent subscription change"},
        422: {"description": "Invalid validity window"},
    }
)
async def create_subscription(
    request: CreateSubscriptionRequest,
    current_user: CurrentUser = Depends(get_current_user),
    handler: SubscriptionCommandHandler = Depends(get_subscription_command_handler),
) -> SubscriptionResponse:
    command = CreateSubscriptionCommand(
        user_id=current_user.user_uuid,
        plan=request.plan,
        start_time=request.start_time,
        end_time=request.end_time,
        auto_renew=request.auto_renew,
    )
    dto = raise_for_result(await handler.handle_create(command))
    logger.info(f"User {current_user.user_id} started {dto.plan.value} subscription {dto.subscription_id}")
    return SubscriptionResponse.from_dto(dto)


@subscriptions_router.post(
    "/checkout",
    response_model=CheckoutResponse,
    summary="Start checkout for a paid plan",
    description="Create a hosted payment page for the chosen plan and return its URL.",
    responses={
        422: {"description": "Free plan or invalid redirect URL"},
        502: {"description": "Payment provider error"},
    }
)
async def start_checkout(
    request: CheckoutRequest,
    current_user: CurrentUser = Depends(get_current_user),
    handler: SubscriptionCommandHandler = Depends(get_subscription_command_handler),
) -> CheckoutResponse:
    command = StartCheckoutCommand(
        user_id=current_user.user_uuid,
        plan=request.plan,
        success_url=request.success_url,
        cancel_url=request.cancel_url,
    )
    dto = raise_for_result(await handler.handle_checkout(command))
    return CheckoutResponse(checkout_url=dto.checkout_url)


@subscriptions_router.post(
    "/{subscription_id}/cancel",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Cancel subscription",
    responses=_OWNERSHIP_RESPONSES,
)
async def cancel_subscription(
    subscription_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    handler: SubscriptionCommandHandler = Depends(get_subscription_command_handler),
) -> Response:
    command = CancelSubscriptionCommand(subscription_id=subscription_id, requested_by=current_user.user_uuid)
    raise_for_result(await handler.handle_cancel(command))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@subscriptions_router.post(
    "/{subscription_id}/upgrade",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Upgrade subscription",
    responses={**_OWNERSHIP_RESPONSES, 422: {"description": "New plan is not an upgrade"}},
)
async def upgrade_subscription(
    subscription_id: UUID,
    request: ChangePlanRequest,
    current_user: CurrentUser = Depends(get_current_user),
    handler: SubscriptionCommandHandler = Depends(get_subscription_command_handler),
) -> Response:
    command = ChangePlanCommand(
        subscription_id=subscription_id,
        requested_by=current_user.user_uuid,
        new_plan=request.new_plan,
    )
    raise_for_result(await handler.handle_upgrade(command))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@subscriptions_router.post(
    "/{subscription_id}/downgrade",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Downgrade subscription",
    responses={**_OWNERSHIP_RESPONSES, 422: {"description": "New plan is not a downgrade"}},
)
async def downgrade_subscription(
    subscription_id: UUID,
    request: ChangePlanRequest,
    current_user: CurrentUser = Depends(get_current_user),
    handler: SubscriptionCommandHandler = Depends(get_subscription_command_handler),
) -> Response:
    command = ChangePlanCommand(
        subscription_id=subscription_id,
        requested_by=current_user.user_uuid,
        new_plan=request.new_plan,
    )
    raise_for_result(await handler.handle_downgrade(command))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@subscriptions_router.patch(
    "/{subscription_id}/status",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Set subscription status (admin)",
    responses={
        403: {"description": "Admin privileges required"},
        404: {"description": "Subscription not found"},
        409: {"description": "User already has an active subscription"},
    }
)
async def update_subscription_status(
    subscription_id: UUID,
    request: UpdateSubscriptionStatusRequest,
    admin_user: CurrentUser = Depends(get_current_admin_user),
    handler: SubscriptionCommandHandler = Depends(get_subscription_command_handler),
) -> Response:
    command = UpdateSubscriptionStatusCommand(subscription_id=subscription_id, status=request.status)
    raise_for_result(await handler.handle_update_status(command))
    logger.info(f"Admin {admin_user.user_id} set subscription {subscription_id} to {request.status.value}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
