# 📄 File: shelfkeeper/modules/subscription_management/infrastructure/database/catalog_repository_impl.py
# 🧭 Purpose (Layman Explanation):
# Looks up how many items a user has in their catalog and how to email them,
# straight from the shared ShelfKeeper database.
# 🧪 Purpose (Technical Summary):
# SQLAlchemy adapters for the CatalogService and UserDirectory contracts over the media_items
# and users tables owned by other ShelfKeeper modules. Only the user's payment customer is written.
# 🔗 Dependencies:
# SQLAlchemy, ORM models, collaborator contracts
# 🔄 Connected Modules / Calls From:
# presentation dependencies, reconciliation scheduler and Celery task

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shelfkeeper.shared.core.exceptions import DatabaseError
from shelfkeeper.modules.subscription_management.domain.services.collaborators import (
    CatalogService,
    UserContact,
    UserDirectory,
)
from shelfkeeper.modules.subscription_management.infrastructure.database.models import (
    MediaItemModel,
    UserModel,
)

logger = logging.getLogger(__name__)


class SqlCatalogService(CatalogService):
    """Counts catalog items per owner."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def count_items(self, user_id: UUID) -> int:
        try:
            result = await self.session.execute(
                select(func.count(MediaItemModel.media_item_id)).where(MediaItemModel.owner_id == user_id)
            )
            return int(result.scalar_one())

        except SQLAlchemyError as e:
            logger.error(f"Database error counting media items for user {user_id}: {e}")
            raise DatabaseError(f"Failed to count media items: {e}", operation="count_items", table="media_items")


class SqlUserDirectory(UserDirectory):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_contact(self, user_id: UUID) -> Optional[UserContact]:
        try:
            result = await self.session.execute(
                select(UserModel.user_id, UserModel.email, UserModel.name, UserModel.payment_customer_id)
                .where(UserModel.user_id == user_id)
            )
            row = result.first()
            if row is None:
                return None
            return UserContact(
                user_id=row.user_id,
                email=row.email,
                name=row.name or row.email,
                payment_customer_id=row.payment_customer_id,
            )

        except SQLAlchemyError as e:
            logger.error(f"Database error getting contact for user {user_id}: {e}")
            raise DatabaseError(f"Failed to get user contact: {e}", operation="get_contact", table="users")

    async def attach_payment_customer(self, user_id: UUID, customer_id: str) -> bool:
        try:
            result = await self.session.execute(
                update(UserModel)
                .where(UserModel.user_id == user_id)
                .values(payment_customer_id=customer_id)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

        except SQLAlchemyError as e:
            logger.error(f"Database error attaching payment customer to user {user_id}: {e}")
            raise DatabaseError(
                f"Failed to attach payment customer: {e}",
                operation="attach_payment_customer",
                table="users",
            )
