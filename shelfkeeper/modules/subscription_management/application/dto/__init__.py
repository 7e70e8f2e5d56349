from shelfkeeper.modules.subscription_management.application.dto.subscription_dto import (
    CheckoutDTO,
    FeatureAccessDTO,
    SubscriptionDTO,
)

__all__ = ["CheckoutDTO", "FeatureAccessDTO", "SubscriptionDTO"]
