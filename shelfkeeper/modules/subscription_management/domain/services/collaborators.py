# 📄 File: shelfkeeper/modules/subscription_management/domain/services/collaborators.py
# 🧭 Purpose (Layman Explanation):
# Lists the outside helpers the subscription rules rely on: the catalog (how many items a user has),
# the user directory (who to email), the payment provider and the email sender.
# 🧪 Purpose (Technical Summary):
# Abstract collaborator contracts consumed by the domain services. Payment and notification
# contracts report failures through OperationResult instead of raising.
# 🔗 Dependencies:
# abc, dataclasses, typing, uuid, shelfkeeper.shared.core.result
# 🔄 Connected Modules / Calls From:
# subscription_service.py, feature_gate_service.py, reconciliation_service.py,
# infrastructure/database and infrastructure/external implementations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from uuid import UUID

from shelfkeeper.shared.core.result import OperationResult


@dataclass(frozen=True)
class UserContact:
    """How to address a user in a notification, plus their payment customer if one exists."""
    user_id: UUID
    email: str
    name: str
    payment_customer_id: Optional[str] = None


@dataclass(frozen=True)
class CheckoutSession:
    session_id: str
    url: str


@dataclass(frozen=True)
class PaymentEvent:
    """A verified webhook event from the payment provider."""
    event_id: str
    event_type: str
    data: Dict[str, Any] = field(default_factory=dict)


class CatalogService(ABC):
    """Read access to the catalog owned by another part of ShelfKeeper."""

    @abstractmethod
    async def count_items(self, user_id: UUID) -> int:
        """Number of media items the user currently owns."""
        pass


class UserDirectory(ABC):
    @abstractmethod
    async def get_contact(self, user_id: UUID) -> Optional[UserContact]:
        """Email address and display name for a user, or None if unknown."""
        pass

    @abstractmethod
    async def attach_payment_customer(self, user_id: UUID, customer_id: str) -> bool:
        """Remember the user's payment customer; False when the user is unknown."""
        pass


class PaymentGateway(ABC):
    """
    Opaque payment provider. Every failure is an EXTERNAL_SERVICE_ERROR result.
    """

    @abstractmethod
    async def create_customer(self, email: str) -> OperationResult[str]:
        """Create a customer and return its id."""
        pass

    @abstractmethod
    async def create_checkout_session(
        self,
        customer_id: str,
        price_ref: str,
        success_url: str,
        cancel_url: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> OperationResult[CheckoutSession]:
        """Create a hosted checkout session for a recurring price."""
        pass

    @abstractmethod
    async def cancel_remote_subscription(self, remote_subscription_id: str) -> OperationResult[None]:
        pass

    @abstractmethod
    async def update_remote_subscription(
        self,
        remote_subscription_id: str,
        new_price_ref: str,
    ) -> OperationResult[None]:
        pass

    @abstractmethod
    async def verify_and_parse_webhook(self, payload: bytes, signature: str) -> OperationResult[PaymentEvent]:
        """Check the webhook signature and decode the event."""
        pass


class NotificationGateway(ABC):
    @abstractmethod
    async def send(self, to_address: str, subject: str, body: str) -> OperationResult[None]:
        """Deliver a plain-text message. Failures are returned, never raised."""
        pass
