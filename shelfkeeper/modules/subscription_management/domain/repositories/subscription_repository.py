# 📄 File: shelfkeeper/modules/subscription_management/domain/repositories/subscription_repository.py
# 🧭 Purpose (Layman Explanation):
# Defines what the service may ask of its subscription storage: find, create, cancel,
# change plans and list subscriptions, without saying which database is used.
# 🧪 Purpose (Technical Summary):
# Abstract repository interface for subscription records. Implementations must make each
# mutation atomic per record and keep at most one Active subscription per user.
# 🔗 Dependencies:
# - abc (Abstract Base Classes)
# - UUID and datetime types
# - Subscription domain model
# 🔄 Connected Modules / Calls From:
# - Subscription, feature gate and reconciliation services (business logic)
# - Repository Implementation (concrete implementation)

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from shelfkeeper.modules.subscription_management.domain.models.subscription import (
    Subscription,
    SubscriptionPlan,
    SubscriptionStatus,
)


class SubscriptionRepository(ABC):
    """
    Abstract repository interface for subscription data access operations.

    Mutating methods return False when the subscription does not exist
    instead of raising; storage failures raise DatabaseError.
    """

    @abstractmethod
    async def get_by_id(self, subscription_id: UUID) -> Optional[Subscription]:
        """Get subscription by ID."""
        pass

    @abstractmethod
    async def get_active_by_user(self, user_id: UUID) -> Optional[Subscription]:
        """Get the user's Active subscription with the latest start time."""
        pass

    @abstractmethod
    async def replace_active(self, subscription: Subscription, deactivated_at: datetime) -> Subscription:
        """
        Cancel every Active subscription of ``subscription.user_id`` and insert
        ``subscription`` as the new Active one, in a single transaction.

        Raises:
            ConcurrencyError: another writer activated a subscription for the same user first
        """
        pass

    @abstractmethod
    async def update_status(
        self,
        subscription_id: UUID,
        status: SubscriptionStatus,
        updated_at: datetime,
    ) -> bool:
        """Set the status of a subscription."""
        pass

    @abstractmethod
    async def cancel(self, subscription_id: UUID, cancelled_at: datetime) -> bool:
        """
        Mark a subscription Cancelled, ending it at ``cancelled_at``. A start
        time later than ``cancelled_at`` is pulled back to it.
        """
        pass

    @abstractmethod
    async def change_plan(
        self,
        subscription_id: UUID,
        expected_plan: SubscriptionPlan,
        new_plan: SubscriptionPlan,
        updated_at: datetime,
    ) -> bool:
        """
        Compare-and-swap the plan. Returns False when the subscription is
        missing or its plan is no longer ``expected_plan``.
        """
        pass

    @abstractmethod
    async def list_active_by_plans(self, plans: Sequence[SubscriptionPlan]) -> List[Subscription]:
        """List Active subscriptions whose plan is one of ``plans``."""
        pass

    @abstractmethod
    async def get_payment_customer_id(self, user_id: UUID) -> Optional[str]:
        """Most recently stored payment-customer id for the user, if any."""
        pass

    @abstractmethod
    async def attach_payment_customer(
        self,
        subscription_id: UUID,
        customer_id: str,
        updated_at: datetime,
    ) -> bool:
        """Store the payment-customer reference on a subscription."""
        pass
