"""
Pytest configuration and shared test helpers for the subscription service tests.

In-memory stand-ins for the repository and collaborator contracts live here so
unit tests exercise the domain services without a database or network.
"""
import os

# Settings are read at import time by the application factory.
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-shelfkeeper-tests")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RECONCILIATION_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import UUID, uuid4

import pytest

from shelfkeeper.shared.core.clock import Clock
from shelfkeeper.shared.core.exceptions import ConcurrencyError
from shelfkeeper.shared.core.result import OperationErrorType, OperationResult
from shelfkeeper.shared.core.security import create_access_token
from shelfkeeper.modules.subscription_management.domain.models.subscription import (
    Subscription,
    SubscriptionPlan,
    SubscriptionStatus,
)
from shelfkeeper.modules.subscription_management.domain.repositories.subscription_repository import (
    SubscriptionRepository,
)
from shelfkeeper.modules.subscription_management.domain.services.collaborators import (
    CatalogService,
    CheckoutSession,
    NotificationGateway,
    PaymentEvent,
    PaymentGateway,
    UserContact,
    UserDirectory,
)
from shelfkeeper.modules.subscription_management.domain.services.subscription_service import SubscriptionService

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FixedClock(Clock):
    def __init__(self, now: datetime = NOW):
        self._now = now

    def now(self) -> datetime:
        return self._now

    def advance(self, delta: timedelta) -> None:
        self._now = self._now + delta


class InMemorySubscriptionRepository(SubscriptionRepository):
    """
    Dict-backed repository with the same contract as the SQL one.

    ``activation_conflicts`` / ``plan_conflicts`` make the next N writes lose
    a race, to exercise the retry paths.
    """

    def __init__(self):
        self.rows: Dict[UUID, Subscription] = {}
        self.activation_conflicts = 0
        self.plan_conflicts = 0
        self.change_plan_calls = 0

    def add(self, subscription: Subscription) -> Subscription:
        self.rows[subscription.subscription_id] = subscription
        return subscription

    def _replace(self, subscription_id: UUID, **changes) -> None:
        self.rows[subscription_id] = self.rows[subscription_id].model_copy(update=changes)

    def _active_for(self, user_id: UUID, exclude: Optional[UUID] = None) -> List[Subscription]:
        return [
            row for row in self.rows.values()
            if row.user_id == user_id and row.is_active and row.subscription_id != exclude
        ]

    async def get_by_id(self, subscription_id: UUID) -> Optional[Subscription]:
        return self.rows.get(subscription_id)

    async def get_active_by_user(self, user_id: UUID) -> Optional[Subscription]:
        active = self._active_for(user_id)
        return max(active, key=lambda row: row.start_time) if active else None

    async def replace_active(self, subscription: Subscription, deactivated_at: datetime) -> Subscription:
        if self.activation_conflicts:
            self.activation_conflicts -= 1
            raise ConcurrencyError("Another active subscription was created concurrently")

        for row in self._active_for(subscription.user_id):
            self._replace(row.subscription_id, status=SubscriptionStatus.CANCELLED, updated_at=deactivated_at)
        return self.add(subscription)

    async def update_status(self, subscription_id: UUID, status: SubscriptionStatus, updated_at: datetime) -> bool:
        row = self.rows.get(subscription_id)
        if row is None:
            return False
        if status == SubscriptionStatus.ACTIVE and self._active_for(row.user_id, exclude=subscription_id):
            raise ConcurrencyError("User already has an active subscription")
        self._replace(subscription_id, status=status, updated_at=updated_at)
        return True

    async def cancel(self, subscription_id: UUID, cancelled_at: datetime) -> bool:
        row = self.rows.get(subscription_id)
        if row is None:
            return False
        self._replace(
            subscription_id,
            status=SubscriptionStatus.CANCELLED,
            start_time=min(row.start_time, cancelled_at),
            end_time=cancelled_at,
            updated_at=cancelled_at,
        )
        return True

    async def change_plan(
        self,
        subscription_id: UUID,
        expected_plan: SubscriptionPlan,
        new_plan: SubscriptionPlan,
        updated_at: datetime,
    ) -> bool:
        self.change_plan_calls += 1
        row = self.rows.get(subscription_id)
        if row is None:
            return False
        if self.plan_conflicts:
            self.plan_conflicts -= 1
            return False
        if row.plan != expected_plan:
            return False
        self._replace(subscription_id, plan=new_plan, updated_at=updated_at)
        return True

    async def list_active_by_plans(self, plans: Sequence[SubscriptionPlan]) -> List[Subscription]:
        return [row for row in self.rows.values() if row.is_active and row.plan in plans]

    async def get_payment_customer_id(self, user_id: UUID) -> Optional[str]:
        rows = [row for row in self.rows.values() if row.user_id == user_id and row.payment_customer_id]
        if not rows:
            return None
        return max(rows, key=lambda row: row.updated_at).payment_customer_id

    async def attach_payment_customer(self, subscription_id: UUID, customer_id: str, updated_at: datetime) -> bool:
        if subscription_id not in self.rows:
            return False
        self._replace(subscription_id, payment_customer_id=customer_id, updated_at=updated_at)
        return True


class FakeCatalogService(CatalogService):
    def __init__(self, counts: Optional[Dict[UUID, int]] = None):
        self.counts = counts or {}
        self.failing_users: set = set()

    async def count_items(self, user_id: UUID) -> int:
        if user_id in self.failing_users:
            raise RuntimeError("catalog unavailable")
        return self.counts.get(user_id, 0)


class FakeUserDirectory(UserDirectory):
    def __init__(self):
        self.contacts: Dict[UUID, UserContact] = {}

    def register(
        self,
        user_id: UUID,
        email: str,
        name: str = "Reader",
        payment_customer_id: Optional[str] = None,
    ) -> UserContact:
        contact = UserContact(user_id=user_id, email=email, name=name, payment_customer_id=payment_customer_id)
        self.contacts[user_id] = contact
        return contact

    async def get_contact(self, user_id: UUID) -> Optional[UserContact]:
        return self.contacts.get(user_id)

    async def attach_payment_customer(self, user_id: UUID, customer_id: str) -> bool:
        contact = self.contacts.get(user_id)
        if contact is None:
            return False
        self.contacts[user_id] = replace(contact, payment_customer_id=customer_id)
        return True


class RecordingNotificationGateway(NotificationGateway):
    def __init__(self):
        self.sent: List[Tuple[str, str, str]] = []
        self.failing_addresses: set = set()

    async def send(self, to_address: str, subject: str, body: str) -> OperationResult[None]:
        if to_address in self.failing_addresses:
            return OperationResult.failure(
                "Email delivery failed: mailbox unavailable",
                OperationErrorType.EXTERNAL_SERVICE_ERROR,
            )
        self.sent.append((to_address, subject, body))
        return OperationResult.success()


class FakePaymentGateway(PaymentGateway):
    def __init__(self):
        self.customers: List[str] = []
        self.sessions: List[dict] = []
        self.fail_customer = False
        self.fail_session = False
        self.events: Dict[str, PaymentEvent] = {}

    async def create_customer(self, email: str) -> OperationResult[str]:
        if self.fail_customer:
            return OperationResult.failure(
                "Stripe error creating customer: card network down",
                OperationErrorType.EXTERNAL_SERVICE_ERROR,
            )
        self.customers.append(email)
        return OperationResult.success(f"cus_{len(self.customers)}")

    async def create_checkout_session(self, customer_id, price_ref, success_url, cancel_url, metadata=None):
        if self.fail_session:
            return OperationResult.failure(
                "Stripe error creating checkout session: price inactive",
                OperationErrorType.EXTERNAL_SERVICE_ERROR,
            )
        self.sessions.append({
            "customer_id": customer_id,
            "price_ref": price_ref,
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata,
        })
        session_id = f"cs_test_{len(self.sessions)}"
        return OperationResult.success(
            CheckoutSession(session_id=session_id, url=f"https://checkout.stripe.test/{session_id}")
        )

    async def cancel_remote_subscription(self, remote_subscription_id: str) -> OperationResult[None]:
        return OperationResult.success()

    async def update_remote_subscription(self, remote_subscription_id: str, new_price_ref: str) -> OperationResult[None]:
        return OperationResult.success()

    async def verify_and_parse_webhook(self, payload: bytes, signature: str) -> OperationResult[PaymentEvent]:
        event = self.events.get(signature)
        if event is None:
            return OperationResult.failure(
                "Stripe webhook error: No signatures found matching the expected signature for payload",
                OperationErrorType.EXTERNAL_SERVICE_ERROR,
            )
        return OperationResult.success(event)


def make_subscription(
    user_id: Optional[UUID] = None,
    plan: SubscriptionPlan = SubscriptionPlan.BASIC,
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
    start_time: datetime = NOW - timedelta(days=10),
    end_time: datetime = NOW + timedelta(days=20),
    **extra,
) -> Subscription:
    return Subscription(
        subscription_id=extra.pop("subscription_id", uuid4()),
        user_id=user_id or uuid4(),
        plan=plan,
        status=status,
        start_time=start_time,
        end_time=end_time,
        created_at=extra.pop("created_at", start_time),
        updated_at=extra.pop("updated_at", start_time),
        **extra,
    )


def auth_headers(user_id: UUID, roles: Optional[List[str]] = None) -> Dict[str, str]:
    payload = {"sub": str(user_id), "email": f"{user_id.hex[:8]}@example.com"}
    if roles:
        payload["roles"] = roles
    return {"Authorization": f"Bearer {create_access_token(payload)}"}


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def repository() -> InMemorySubscriptionRepository:
    return InMemorySubscriptionRepository()


@pytest.fixture
def catalog() -> FakeCatalogService:
    return FakeCatalogService()


@pytest.fixture
def user_directory() -> FakeUserDirectory:
    return FakeUserDirectory()


@pytest.fixture
def notifier() -> RecordingNotificationGateway:
    return RecordingNotificationGateway()


@pytest.fixture
def payment_gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture
def price_refs() -> Dict[SubscriptionPlan, Optional[str]]:
    return {
        SubscriptionPlan.FREE: None,
        SubscriptionPlan.BASIC: "price_basic_test",
        SubscriptionPlan.PREMIUM: "price_premium_test",
    }


@pytest.fixture
def subscription_service(repository, clock, payment_gateway, user_directory, price_refs) -> SubscriptionService:
    return SubscriptionService(
        repository=repository,
        clock=clock,
        payment_gateway=payment_gateway,
        user_directory=user_directory,
        price_refs=price_refs,
    )
