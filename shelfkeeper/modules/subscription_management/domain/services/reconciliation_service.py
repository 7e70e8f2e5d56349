# 📄 File: shelfkeeper/modules/subscription_management/domain/services/reconciliation_service.py
# 🧭 Purpose (Layman Explanation):
# Goes through everyone on the Free and Basic plans and emails the people who own more
# items than their plan allows, asking them to upgrade or tidy up.
# 🧪 Purpose (Technical Summary):
# One best-effort sweep over Active Free/Basic subscriptions. Each record is handled on its own:
# a failed email or an unexpected error is logged and counted, and the sweep moves on.
# A stop callback is checked between records for cooperative shutdown.
# Each record runs inside its own scope (a savepoint in production) so a failed query is rolled back.
# 🔗 Dependencies:
# SubscriptionRepository, CatalogService, UserDirectory, NotificationGateway, entitlement table
# 🔄 Connected Modules / Calls From:
# shelfkeeper.background_jobs.reconciliation_scheduler (in-process loop)
# shelfkeeper.background_jobs.tasks.subscription_reconciliation (Celery task)

import logging
from contextlib import nullcontext
from dataclasses import asdict, dataclass
from typing import Any, AsyncContextManager, Callable, Dict, Optional

from shelfkeeper.shared.utils.logging import get_logger

from ..models.entitlement import media_item_limit
from ..models.subscription import Subscription, SubscriptionPlan
from ..repositories.subscription_repository import SubscriptionRepository
from .collaborators import CatalogService, NotificationGateway, UserDirectory

logger = logging.getLogger(__name__)
audit_logger = get_logger("shelfkeeper.audit")

RECONCILED_PLANS = (SubscriptionPlan.FREE, SubscriptionPlan.BASIC)

# Wraps the work on one record; a failure inside must leave the next record a usable connection.
RecordScope = Callable[[], AsyncContextManager[Any]]

LIMIT_EXCEEDED_SUBJECT = "ShelfKeeper: Media Item Limit Exceeded!"
LIMIT_EXCEEDED_BODY = (
    "Dear {name},\n\n"
    "Your current {plan} plan allows a maximum of {limit} media items. "
    "You currently have {count} media items.\n\n"
    "Please upgrade your subscription or remove some items to comply with your plan's limit.\n\n"
    "Best regards,\n"
    "Your ShelfKeeper Team"
)


@dataclass
class SweepReport:
    checked: int = 0
    violations: int = 0
    notified: int = 0
    failed: int = 0
    stopped_early: bool = False

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


class ReconciliationService:
    def __init__(
        self,
        repository: SubscriptionRepository,
        catalog_service: CatalogService,
        user_directory: UserDirectory,
        notification_gateway: NotificationGateway,
        record_scope: Optional[RecordScope] = None,
    ):
        self.repository = repository
        self.catalog_service = catalog_service
        self.user_directory = user_directory
        self.notification_gateway = notification_gateway
        self.record_scope = record_scope or nullcontext

    async def run_sweep(self, should_stop: Optional[Callable[[], bool]] = None) -> SweepReport:
        """
        Check every Active Free/Basic subscription against its item ceiling.

        ``should_stop`` is polled before each record; when it returns True the
        sweep ends after the record in progress.
        """
        report = SweepReport()
        subscriptions = await self.repository.list_active_by_plans(RECONCILED_PLANS)
        logger.info(f"Media item limit sweep started for {len(subscriptions)} subscriptions")

        for subscription in subscriptions:
            if should_stop is not None and should_stop():
                report.stopped_early = True
                logger.info("Media item limit sweep stopping on shutdown request")
                break

            report.checked += 1
            try:
                async with self.record_scope():
                    await self._reconcile(subscription, report)
            except Exception as e:
                report.failed += 1
                logger.error(
                    f"Error checking media item limit for subscription {subscription.subscription_id}: {e}",
                    exc_info=True,
                )

        logger.info(
            f"Media item limit sweep finished: checked={report.checked} violations={report.violations} "
            f"notified={report.notified} failed={report.failed}"
        )
        return report

    async def _reconcile(self, subscription: Subscription, report: SweepReport) -> None:
        limit = media_item_limit(subscription.plan)
        if limit is None:
            return

        count = await self.catalog_service.count_items(subscription.user_id)
        if count <= limit:
            return

        report.violations += 1
        contact = await self.user_directory.get_contact(subscription.user_id)
        if contact is None:
            report.failed += 1
            logger.warning(f"User {subscription.user_id} exceeds the media item limit but has no contact record")
            return

        plan_name = subscription.plan.display_name
        logger.warning(
            f"User {contact.user_id} ({contact.email}) has exceeded media item limit for {plan_name} plan. "
            f"Current: {count}, Max: {limit}"
        )

        body = LIMIT_EXCEEDED_BODY.format(name=contact.name, plan=plan_name, limit=limit, count=count)
        result = await self.notification_gateway.send(contact.email, LIMIT_EXCEEDED_SUBJECT, body)
        if result.is_failure:
            report.failed += 1
            logger.error(
                f"Failed to notify user {contact.user_id} about exceeded media item limit: "
                f"{result.first_error.message}"
            )
            return

        report.notified += 1
        audit_logger.log_business_event(
            "media_item_limit_exceeded",
            f"User {contact.user_id} notified about exceeding the {plan_name} plan limit",
            entity_id=str(subscription.subscription_id),
            entity_type="subscription",
            extra={"count": count, "limit": limit},
        )
