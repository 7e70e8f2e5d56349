# 📄 File: shelfkeeper/modules/subscription_management/infrastructure/database/subscription_repository_impl.py
# 🧭 Purpose (Layman Explanation):
# This file handles all the actual database work for subscriptions: saving new ones,
# retiring old ones, changing plans and finding who is on which plan.
# 🧪 Purpose (Technical Summary):
# SQLAlchemy implementation of the subscription repository. Mutations are single UPDATE
# statements (plan changes compare-and-swap on the current plan) and activation runs
# deactivate-then-insert in one transaction guarded by a partial unique index.
# 🔗 Dependencies:
# SQLAlchemy, shelfkeeper.shared.core.exceptions, subscription domain model, ORM models
# 🔄 Connected Modules / Calls From:
# Subscription services, presentation dependencies, reconciliation jobs

import logging
from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import case, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shelfkeeper.shared.core.exceptions import ConcurrencyError, DatabaseError
from shelfkeeper.modules.subscription_management.domain.models.subscription import (
    Subscription,
    SubscriptionPlan,
    SubscriptionStatus,
)
from shelfkeeper.modules.subscription_management.domain.repositories.subscription_repository import (
    SubscriptionRepository,
)
from shelfkeeper.modules.subscription_management.infrastructure.database.models import SubscriptionModel

logger = logging.getLogger(__name__)

_ACTIVE = SubscriptionStatus.ACTIVE.value


class SubscriptionRepositoryImpl(SubscriptionRepository):
    """
    SQLAlchemy implementation of subscription repository.
    Handles all subscription database operations with proper error handling.

    Updates bypass the identity map, so entity reads refresh loaded rows.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session
        """
        self.session = session

    # =========================================================================
    # READS
    # =========================================================================

    async def get_by_id(self, subscription_id: UUID) -> Optional[Subscription]:
        try:
            result = await self.session.execute(
                select(SubscriptionModel)
                .where(SubscriptionModel.subscription_id == subscription_id)
                .execution_options(populate_existing=True)
            )
            model = result.scalar_one_or_none()
            return self._to_domain(model) if model else None

        except SQLAlchemyError as e:
            logger.error(f"Database error getting subscription {subscription_id}: {e}")
            raise DatabaseError(f"Failed to get subscription: {e}", operation="get_by_id", table="subscriptions")

    async def get_active_by_user(self, user_id: UUID) -> Optional[Subscription]:
        try:
            result = await self.session.execute(
                select(SubscriptionModel)
                .where(
                    SubscriptionModel.user_id == user_id,
                    SubscriptionModel.status == _ACTIVE,
                )
                .order_by(SubscriptionModel.start_time.desc())
                .limit(1)
                .execution_options(populate_existing=True)
            )
            model = result.scalars().first()
            return self._to_domain(model) if model else None

        except SQLAlchemyError as e:
            logger.error(f"Database error getting active subscription for user {user_id}: {e}")
            raise DatabaseError(
                f"Failed to get active subscription: {e}",
                operation="get_active_by_user",
                table="subscriptions",
            )

    async def list_active_by_plans(self, plans: Sequence[SubscriptionPlan]) -> List[Subscription]:
        try:
            result = await self.session.execute(
                select(SubscriptionModel)
                .where(
                    SubscriptionModel.status == _ACTIVE,
                    SubscriptionModel.plan.in_([plan.value for plan in plans]),
                )
                .order_by(SubscriptionModel.start_time)
                .execution_options(populate_existing=True)
            )
            return [self._to_domain(model) for model in result.scalars().all()]

        except SQLAlchemyError as e:
            logger.error(f"Database error listing active subscriptions: {e}")
            raise DatabaseError(
                f"Failed to list active subscriptions: {e}",
                operation="list_active_by_plans",
                table="subscriptions",
            )

    async def get_payment_customer_id(self, user_id: UUID) -> Optional[str]:
        try:
            result = await self.session.execute(
                select(SubscriptionModel.payment_customer_id)
                .where(
                    SubscriptionModel.user_id == user_id,
                    SubscriptionModel.payment_customer_id.is_not(None),
                )
                .order_by(SubscriptionModel.updated_at.desc())
                .limit(1)
            )
            return result.scalars().first()

        except SQLAlchemyError as e:
            logger.error(f"Database error getting payment customer for user {user_id}: {e}")
            raise DatabaseError(
                f"Failed to get payment customer: {e}",
                operation="get_payment_customer_id",
                table="subscriptions",
            )

    # =========================================================================
    # WRITES
    # =========================================================================

    async def replace_active(self, subscription: Subscription, deactivated_at: datetime) -> Subscription:
        try:
            deactivated = await self.session.execute(
                update(SubscriptionModel)
                .where(
                    SubscriptionModel.user_id == subscription.user_id,
                    SubscriptionModel.status == _ACTIVE,
                )
                .values(status=SubscriptionStatus.CANCELLED.value, updated_at=deactivated_at)
                .execution_options(synchronize_session=False)
            )
            if deactivated.rowcount:
                logger.info(
                    f"Deactivated {deactivated.rowcount} active subscription(s) for user {subscription.user_id}"
                )

            model = self._to_model(subscription)
            self.session.add(model)
            await self.session.flush()

            logger.info(f"Created subscription {subscription.subscription_id} for user {subscription.user_id}")
            return self._to_domain(model)

        except IntegrityError as e:
            # The partial unique index rejected a second active row.
            await self.session.rollback()
            logger.warning(f"Concurrent activation for user {subscription.user_id}: {e}")
            raise ConcurrencyError(
                "Another active subscription was created concurrently",
                operation="replace_active",
                table="subscriptions",
            )
        except SQLAlchemyError as e:
            logger.error(f"Database error creating subscription for user {subscription.user_id}: {e}")
            raise DatabaseError(
                f"Failed to create subscription: {e}",
                operation="replace_active",
                table="subscriptions",
            )

    async def update_status(
        self,
        subscription_id: UUID,
        status: SubscriptionStatus,
        updated_at: datetime,
    ) -> bool:
        try:
            result = await self.session.execute(
                update(SubscriptionModel)
                .where(SubscriptionModel.subscription_id == subscription_id)
                .values(status=status.value, updated_at=updated_at)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(f"Status change for subscription {subscription_id} conflicts with another active row: {e}")
            raise ConcurrencyError(
                "User already has an active subscription",
                operation="update_status",
                table="subscriptions",
            )
        except SQLAlchemyError as e:
            logger.error(f"Database error updating status of subscription {subscription_id}: {e}")
            raise DatabaseError(f"Failed to update subscription status: {e}", operation="update_status", table="subscriptions")

    async def cancel(self, subscription_id: UUID, cancelled_at: datetime) -> bool:
        try:
            result = await self.session.execute(
                update(SubscriptionModel)
                .where(SubscriptionModel.subscription_id == subscription_id)
                .values(
                    status=SubscriptionStatus.CANCELLED.value,
                    start_time=case(
                        (SubscriptionModel.start_time > cancelled_at, cancelled_at),
                        else_=SubscriptionModel.start_time,
                    ),
                    end_time=cancelled_at,
                    updated_at=cancelled_at,
                )
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

        except SQLAlchemyError as e:
            logger.error(f"Database error cancelling subscription {subscription_id}: {e}")
            raise DatabaseError(f"Failed to cancel subscription: {e}", operation="cancel", table="subscriptions")

    async def change_plan(
        self,
        subscription_id: UUID,
        expected_plan: SubscriptionPlan,
        new_plan: SubscriptionPlan,
        updated_at: datetime,
    ) -> bool:
        try:
            result = await self.session.execute(
                update(SubscriptionModel)
                .where(
                    SubscriptionModel.subscription_id == subscription_id,
                    SubscriptionModel.plan == expected_plan.value,
                )
                .values(plan=new_plan.value, updated_at=updated_at)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

        except SQLAlchemyError as e:
            logger.error(f"Database error changing plan of subscription {subscription_id}: {e}")
            raise DatabaseError(f"Failed to change subscription plan: {e}", operation="change_plan", table="subscriptions")

    async def attach_payment_customer(
        self,
        subscription_id: UUID,
        customer_id: str,
        updated_at: datetime,
    ) -> bool:
        try:
            result = await self.session.execute(
                update(SubscriptionModel)
                .where(SubscriptionModel.subscription_id == subscription_id)
                .values(payment_customer_id=customer_id, updated_at=updated_at)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

        except SQLAlchemyError as e:
            logger.error(f"Database error attaching payment customer to subscription {subscription_id}: {e}")
            raise DatabaseError(
                f"Failed to attach payment customer: {e}",
                operation="attach_payment_customer",
                table="subscriptions",
            )

    # =========================================================================
    # MAPPING
    # =========================================================================

    @staticmethod
    def _to_model(subscription: Subscription) -> SubscriptionModel:
        return SubscriptionModel(
            subscription_id=subscription.subscription_id,
            user_id=subscription.user_id,
            plan=subscription.plan.value,
            status=subscription.status.value,
            start_time=subscription.start_time,
            end_time=subscription.end_time,
            auto_renew=subscription.auto_renew,
            payment_customer_id=subscription.payment_customer_id,
            payment_subscription_id=subscription.payment_subscription_id,
            created_at=subscription.created_at,
            updated_at=subscription.updated_at,
        )

    @staticmethod
    def _to_domain(model: SubscriptionModel) -> Subscription:
        return Subscription(
            subscription_id=model.subscription_id,
            user_id=model.user_id,
            plan=SubscriptionPlan(model.plan),
            status=SubscriptionStatus(model.status),
            start_time=model.start_time,
            end_time=model.end_time,
            auto_renew=model.auto_renew,
            payment_customer_id=model.payment_customer_id,
            payment_subscription_id=model.payment_subscription_id,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
