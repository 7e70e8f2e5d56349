"""
Repository interfaces for the subscription management domain.
"""

from .subscription_repository import SubscriptionRepository

__all__ = ["SubscriptionRepository"]
