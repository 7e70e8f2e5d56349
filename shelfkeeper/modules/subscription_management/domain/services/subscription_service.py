# 📄 File: shelfkeeper/modules/subscription_management/domain/services/subscription_service.py
# 🧭 Purpose (Layman Explanation):
# The rules for a subscription's life: starting one (and retiring the old one), cancelling,
# moving up or down a plan, changing its status and sending the user to the payment page.
# 🧪 Purpose (Technical Summary):
# Domain service enforcing subscription state transitions and plan-ordering invariants.
# Every operation returns an OperationResult; only unexpected faults (storage outages) raise.
# Lost races are retried against the repository's atomic primitives.
# 🔗 Dependencies:
# Subscription domain model, SubscriptionRepository, payment gateway and user directory
# contracts, Clock, tenacity (retry on concurrent activation)
# 🔄 Connected Modules / Calls From:
# feature_gate_service.py, subscription API endpoints

import logging
from datetime import datetime
from typing import Dict, Optional
from uuid import UUID, uuid4

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_random

from shelfkeeper.shared.core.clock import Clock, ensure_utc
from shelfkeeper.shared.core.exceptions import ConcurrencyError
from shelfkeeper.shared.core.result import OperationErrorType, OperationResult
from shelfkeeper.shared.utils.logging import get_logger

from ..models.subscription import Subscription, SubscriptionPlan, SubscriptionStatus
from ..repositories.subscription_repository import SubscriptionRepository
from .collaborators import PaymentGateway, UserDirectory

logger = logging.getLogger(__name__)
audit_logger = get_logger("shelfkeeper.audit")

ACTIVE_SUBSCRIPTION_NOT_FOUND = "Active subscription not found."
SUBSCRIPTION_NOT_FOUND = "Subscription not found."
CONCURRENT_CHANGE = "Concurrent subscription change detected; please retry."


class SubscriptionService:
    """
    Domain service for the subscription lifecycle.

    Holds no mutable state of its own; concurrent callers are serialized by
    the repository (single-statement updates and a unique index on the
    user's active row).
    """

    def __init__(
        self,
        repository: SubscriptionRepository,
        clock: Clock,
        payment_gateway: Optional[PaymentGateway] = None,
        user_directory: Optional[UserDirectory] = None,
        price_refs: Optional[Dict[SubscriptionPlan, Optional[str]]] = None,
        max_attempts: int = 3,
    ):
        self.repository = repository
        self.clock = clock
        self.payment_gateway = payment_gateway
        self.user_directory = user_directory
        self.price_refs = price_refs or {}
        self.max_attempts = max_attempts

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def get_active(self, user_id: UUID) -> OperationResult[Subscription]:
        """
        Return the user's most recently started Active subscription.

        A NOT_FOUND failure means the user is on the implicit Free tier.
        """
        subscription = await self.repository.get_active_by_user(user_id)
        if subscription is None:
            return OperationResult.failure(ACTIVE_SUBSCRIPTION_NOT_FOUND, OperationErrorType.NOT_FOUND_ERROR)
        return OperationResult.success(subscription)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def create(
        self,
        user_id: UUID,
        plan: SubscriptionPlan,
        start_time: datetime,
        end_time: datetime,
        auto_renew: bool,
    ) -> OperationResult[Subscription]:
        """
        Start a new Active subscription, cancelling any Active one the user
        already has. Both steps happen in one repository transaction.
        """
        start_time = ensure_utc(start_time)
        end_time = ensure_utc(end_time)
        if end_time < start_time:
            return OperationResult.failure(
                "End time must not precede start time.",
                OperationErrorType.VALIDATION_ERROR,
            )

        now = self.clock.now()
        subscription = Subscription(
            subscription_id=uuid4(),
            user_id=user_id,
            plan=plan,
            status=SubscriptionStatus.ACTIVE,
            start_time=start_time,
            end_time=end_time,
            auto_renew=auto_renew,
            created_at=now,
            updated_at=now,
        )

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                retry=retry_if_exception_type(ConcurrencyError),
                wait=wait_random(0, 0.05),
                reraise=True,
            ):
                with attempt:
                    saved = await self.repository.replace_active(subscription, deactivated_at=now)
        except ConcurrencyError:
            logger.warning(f"Gave up creating subscription for user {user_id} after {self.max_attempts} attempts")
            return OperationResult.failure(CONCURRENT_CHANGE, OperationErrorType.CONFLICT_ERROR)

        audit_logger.log_business_event(
            "subscription_created",
            f"Subscription {saved.subscription_id} created on {plan.display_name} plan",
            entity_id=str(saved.subscription_id),
            entity_type="subscription",
            extra={"user_id": str(user_id), "plan": plan.value},
        )
        return OperationResult.success(saved)

    async def update_status(self, subscription_id: UUID, status: SubscriptionStatus) -> OperationResult[None]:
        """Set the status directly. No transition rules beyond existence."""
        try:
            updated = await self.repository.update_status(subscription_id, status, self.clock.now())
        except ConcurrencyError:
            return OperationResult.failure(
                "User already has an active subscription.",
                OperationErrorType.CONFLICT_ERROR,
            )
        if not updated:
            return OperationResult.failure(SUBSCRIPTION_NOT_FOUND, OperationErrorType.NOT_FOUND_ERROR)

        logger.info(f"Subscription {subscription_id} status set to {status.value}")
        return OperationResult.success()

    async def cancel(self, subscription_id: UUID) -> OperationResult[None]:
        """
        Cancel a subscription, ending it now. Cancelling again succeeds and
        re-stamps the end and update times.
        """
        cancelled = await self.repository.cancel(subscription_id, self.clock.now())
        if not cancelled:
            return OperationResult.failure(SUBSCRIPTION_NOT_FOUND, OperationErrorType.NOT_FOUND_ERROR)

        audit_logger.log_business_event(
            "subscription_cancelled",
            f"Subscription {subscription_id} cancelled",
            entity_id=str(subscription_id),
            entity_type="subscription",
        )
        return OperationResult.success()

    async def upgrade(self, subscription_id: UUID, new_plan: SubscriptionPlan) -> OperationResult[None]:
        return await self._change_plan(
            subscription_id,
            new_plan,
            is_allowed=lambda subscription: subscription.is_upgrade_to(new_plan),
            rejection="New plan must be an upgrade.",
        )

    async def downgrade(self, subscription_id: UUID, new_plan: SubscriptionPlan) -> OperationResult[None]:
        return await self._change_plan(
            subscription_id,
            new_plan,
            is_allowed=lambda subscription: subscription.is_downgrade_to(new_plan),
            rejection="New plan must be a downgrade.",
        )

    async def _change_plan(self, subscription_id: UUID, new_plan: SubscriptionPlan, is_allowed, rejection: str) -> OperationResult[None]:
        """
        Read, validate against the current plan, then compare-and-swap. A
        lost race re-reads and re-validates against the winner's plan.
        """
        for attempt in range(1, self.max_attempts + 1):
            subscription = await self.repository.get_by_id(subscription_id)
            if subscription is None:
                return OperationResult.failure(SUBSCRIPTION_NOT_FOUND, OperationErrorType.NOT_FOUND_ERROR)

            if not is_allowed(subscription):
                return OperationResult.failure(rejection, OperationErrorType.VALIDATION_ERROR)

            swapped = await self.repository.change_plan(
                subscription_id,
                expected_plan=subscription.plan,
                new_plan=new_plan,
                updated_at=self.clock.now(),
            )
            if swapped:
                audit_logger.log_business_event(
                    "subscription_plan_changed",
                    f"Subscription {subscription_id} moved from {subscription.plan.display_name} "
                    f"to {new_plan.display_name}",
                    entity_id=str(subscription_id),
                    entity_type="subscription",
                    extra={"from_plan": subscription.plan.value, "to_plan": new_plan.value},
                )
                return OperationResult.success()

            logger.warning(
                f"Plan change for subscription {subscription_id} lost a race "
                f"(attempt {attempt}/{self.max_attempts})"
            )

        return OperationResult.failure(CONCURRENT_CHANGE, OperationErrorType.CONFLICT_ERROR)

    # =========================================================================
    # CHECKOUT
    # =========================================================================

    async def initiate_checkout(
        self,
        user_id: UUID,
        plan: SubscriptionPlan,
        success_url: str,
        cancel_url: str,
    ) -> OperationResult[str]:
        """
        Create (or reuse) the user's payment customer and a hosted checkout
        session for ``plan``; return the redirect URL. Completion arrives
        later through the payment webhook.
        """
        if self.payment_gateway is None or self.user_directory is None:
            return OperationResult.failure(
                "Payment processing is not configured.",
                OperationErrorType.INTERNAL_SERVER_ERROR,
            )

        if plan == SubscriptionPlan.FREE:
            return OperationResult.failure(
                "Free plan does not require checkout.",
                OperationErrorType.VALIDATION_ERROR,
            )

        price_ref = self.price_refs.get(plan)
        if not price_ref:
            return OperationResult.failure(
                f"No price configured for {plan.display_name} plan.",
                OperationErrorType.INTERNAL_SERVER_ERROR,
            )

        customer_id = await self.repository.get_payment_customer_id(user_id)
        if customer_id is None:
            contact = await self.user_directory.get_contact(user_id)
            if contact is None:
                return OperationResult.failure("User not found.", OperationErrorType.NOT_FOUND_ERROR)
            customer_id = contact.payment_customer_id

        if customer_id is None:
            customer_result = await self.payment_gateway.create_customer(contact.email)
            if customer_result.is_failure:
                return OperationResult.from_errors(customer_result.errors)
            customer_id = customer_result.value

            # The user record exists even for Free users with no subscription row.
            await self.user_directory.attach_payment_customer(user_id, customer_id)
            active = await self.repository.get_active_by_user(user_id)
            if active is not None:
                await self.repository.attach_payment_customer(
                    active.subscription_id, customer_id, self.clock.now()
                )

        session_result = await self.payment_gateway.create_checkout_session(
            customer_id=customer_id,
            price_ref=price_ref,
            success_url=success_url,
            cancel_url=cancel_url,
            metadata={"user_id": str(user_id), "plan": plan.value},
        )
        if session_result.is_failure:
            return OperationResult.from_errors(session_result.errors)

        logger.info(f"Checkout session {session_result.value.session_id} created for user {user_id}")
        return OperationResult.success(session_result.value.url)
