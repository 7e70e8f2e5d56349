# 📄 File: shelfkeeper/modules/subscription_management/application/handlers/subscription_command_handlers.py
# 🧭 Purpose (Layman Explanation):
# Takes a request form (like "cancel my subscription"), checks the person asking is allowed
# to do it, and hands it to the subscription rules.
# 🧪 Purpose (Technical Summary):
# CQRS command handler for subscription write operations. Enforces that self-service changes
# target the caller's current active subscription, then delegates to SubscriptionService.
# 🔗 Dependencies:
# application.commands, application.dto, SubscriptionService, OperationResult
# 🔄 Connected Modules / Calls From:
# presentation API endpoints (via presentation.dependencies)

__all__ = [
    "SubscriptionCommandHandler",
]

import logging
from uuid import UUID

from shelfkeeper.shared.core.result import OperationErrorType, OperationResult

from shelfkeeper.modules.subscription_management.application.commands.subscription_commands import (
    CancelSubscriptionCommand,
    ChangePlanCommand,
    CreateSubscriptionCommand,
    StartCheckoutCommand,
    UpdateSubscriptionStatusCommand,
)
from shelfkeeper.modules.subscription_management.application.dto.subscription_dto import (
    CheckoutDTO,
    SubscriptionDTO,
)
from shelfkeeper.modules.subscription_management.domain.services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)

NOT_YOUR_SUBSCRIPTION = "You can only change your own active subscription."


class SubscriptionCommandHandler:
    """
    Handles subscription lifecycle commands on behalf of an authenticated user.
    """

    def __init__(self, subscription_service: SubscriptionService):
        self._subscription_service = subscription_service

    async def _ensure_current(self, subscription_id: UUID, requested_by: UUID) -> OperationResult[None]:
        active = await self._subscription_service.get_active(requested_by)
        if active.is_failure or active.value.subscription_id != subscription_id:
            logger.warning(f"User {requested_by} tried to change subscription {subscription_id}")
            return OperationResult.failure(NOT_YOUR_SUBSCRIPTION, OperationErrorType.FORBIDDEN_ERROR)
        return OperationResult.success()

    async def handle_create(self, command: CreateSubscriptionCommand) -> OperationResult[SubscriptionDTO]:
        result = await self._subscription_service.create(
            user_id=command.user_id,
            plan=command.plan,
            start_time=command.start_time,
            end_time=command.end_time,
            auto_renew=command.auto_renew,
        )
        if result.is_failure:
            return OperationResult.from_errors(result.errors)
        return OperationResult.success(SubscriptionDTO.from_domain(result.value))

    async def handle_cancel(self, command: CancelSubscriptionCommand) -> OperationResult[None]:
        allowed = await self._ensure_current(command.subscription_id, command.requested_by)
        if allowed.is_failure:
            return allowed
        return await self._subscription_service.cancel(command.subscription_id)

    async def handle_upgrade(self, command: ChangePlanCommand) -> OperationResult[None]:
        allowed = await self._ensure_current(command.subscription_id, command.requested_by)
        if allowed.is_failure:
            return allowed
        return await self._subscription_service.upgrade(command.subscription_id, command.new_plan)

    async def handle_downgrade(self, command: ChangePlanCommand) -> OperationResult[None]:
        allowed = await self._ensure_current(command.subscription_id, command.requested_by)
        if allowed.is_failure:
            return allowed
        return await self._subscription_service.downgrade(command.subscription_id, command.new_plan)

    async def handle_update_status(self, command: UpdateSubscriptionStatusCommand) -> OperationResult[None]:
        """Administrative override; the caller's role is checked at the endpoint."""
        return await self._subscription_service.update_status(command.subscription_id, command.status)

    async def handle_checkout(self, command: StartCheckoutCommand) -> OperationResult[CheckoutDTO]:
        result = await self._subscription_service.initiate_checkout(
            user_id=command.user_id,
            plan=command.plan,
            success_url=command.success_url,
            cancel_url=command.cancel_url,
        )
        if result.is_failure:
            return OperationResult.from_errors(result.errors)
        return OperationResult.success(CheckoutDTO(checkout_url=result.value))
