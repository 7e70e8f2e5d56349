"""
Subscription Management Database Layer

SQLAlchemy models and repository implementations.
"""

from shelfkeeper.modules.subscription_management.infrastructure.database.models import (
    MediaItemModel,
    SubscriptionModel,
    UserModel,
)
from shelfkeeper.modules.subscription_management.infrastructure.database.subscription_repository_impl import (
    SubscriptionRepositoryImpl,
)
from shelfkeeper.modules.subscription_management.infrastructure.database.catalog_repository_impl import (
    SqlCatalogService,
    SqlUserDirectory,
)

__all__ = [
    "MediaItemModel",
    "SubscriptionModel",
    "UserModel",
    "SubscriptionRepositoryImpl",
    "SqlCatalogService",
    "SqlUserDirectory",
]
