# 📄 File: shelfkeeper/modules/subscription_management/infrastructure/database/models.py
# 🧭 Purpose (Layman Explanation):
# Describes how subscriptions, users and catalog items are laid out as database tables.
# 🧪 Purpose (Technical Summary):
# SQLAlchemy ORM models for the subscriptions table (with check constraints and a partial
# unique index allowing one active row per user) and the users / media_items
# tables owned by the account and catalog parts of ShelfKeeper (only users.payment_customer_id is written here).
# 🔗 Dependencies:
# sqlalchemy, shelfkeeper.shared.infrastructure.database.connection (Base)
# 🔄 Connected Modules / Calls From:
# subscription_repository_impl.py, catalog_repository_impl.py, migrations, tests

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Uuid,
    text,
)
from sqlalchemy.sql import func
from sqlalchemy.types import TypeDecorator

from shelfkeeper.shared.infrastructure.database.connection import Base


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware timestamp that always reads back in UTC.

    SQLite drops the offset on storage, so values are normalised to UTC on the
    way in and re-tagged as UTC on the way out.
    """
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect):
        if value is not None and value.tzinfo is not None:
            return value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value: Optional[datetime], dialect):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


# =============================================================================
# USER MODEL - owned by the account service, read here for notifications
# =============================================================================

class UserModel(Base):
    """
    Minimal view of a ShelfKeeper account: enough to address an email and to
    find the payment customer for users who have never subscribed.
    """
    __tablename__ = "users"

    user_id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
        nullable=False,
        comment="Unique user identifier"
    )
    email = Column(String(255), nullable=False, unique=True, comment="Login and contact email")
    name = Column(String(255), nullable=False, default="", comment="Display name used in emails")
    role = Column(String(20), nullable=False, default="user", comment="user/admin")
    payment_customer_id = Column(String(255), nullable=True, comment="Payment provider customer id")
    created_at = Column(UTCDateTime(), nullable=False, server_default=func.now())
    updated_at = Column(UTCDateTime(), nullable=False, server_default=func.now())


# =============================================================================
# MEDIA ITEM MODEL - owned by the catalog service, counted here
# =============================================================================

class MediaItemModel(Base):
    """
    Catalog item. Only the owner column matters to entitlement checks.
    """
    __tablename__ = "media_items"

    media_item_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4, nullable=False)
    owner_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.user_id"),
        nullable=False,
        comment="User that owns the item"
    )
    title = Column(String(500), nullable=False, default="")
    created_at = Column(UTCDateTime(), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_media_items_owner_id", "owner_id"),
    )


# =============================================================================
# SUBSCRIPTION MODEL
# =============================================================================

class SubscriptionModel(Base):
    """
    SQLAlchemy model for subscription records.

    - Plan and status stored as lowercase enum values
    - Validity window and audit timestamps with ordering constraints
    - Opaque payment provider references
    - At most one active row per user (partial unique index)
    """
    __tablename__ = "subscriptions"

    subscription_id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
        nullable=False,
        comment="Unique subscription identifier"
    )
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.user_id"),
        nullable=False,
        comment="Owning user"
    )

    plan = Column(String(20), nullable=False, default="free", comment="free/basic/premium")
    status = Column(
        String(20),
        nullable=False,
        default="active",
        comment="active/cancelled/expired/trial/paused/incomplete"
    )

    start_time = Column(UTCDateTime(), nullable=False, comment="Validity window start")
    end_time = Column(UTCDateTime(), nullable=False, comment="Validity window end")
    auto_renew = Column(Boolean, nullable=False, default=False, comment="Renew at end of window")

    payment_customer_id = Column(String(255), nullable=True, comment="Payment provider customer id")
    payment_subscription_id = Column(String(255), nullable=True, comment="Payment provider subscription id")

    created_at = Column(UTCDateTime(), nullable=False, comment="Creation time")
    updated_at = Column(UTCDateTime(), nullable=False, comment="Last update time")

    __table_args__ = (
        CheckConstraint("plan IN ('free', 'basic', 'premium')", name="ck_subscriptions_plan"),
        CheckConstraint(
            "status IN ('active', 'cancelled', 'expired', 'trial', 'paused', 'incomplete')",
            name="ck_subscriptions_status"
        ),
        CheckConstraint("end_time >= start_time", name="ck_subscriptions_window"),
        CheckConstraint("updated_at >= created_at", name="ck_subscriptions_audit"),
        Index("ix_subscriptions_user_id", "user_id"),
        Index("ix_subscriptions_status_plan", "status", "plan"),
        Index(
            "uq_subscriptions_one_active_per_user",
            "user_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )
