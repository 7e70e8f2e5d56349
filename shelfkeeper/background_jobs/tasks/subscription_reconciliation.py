# 📄 File: shelfkeeper/background_jobs/tasks/subscription_reconciliation.py
# 🧭 Purpose (Layman Explanation):
# The same "who owns too many items?" check as the in-server timer, packaged so a separate
# worker machine can run it on a schedule instead.
# 🧪 Purpose (Technical Summary):
# Celery task running one reconciliation sweep inside asyncio.run, with its own database
# engine lifecycle, and returning the sweep report as a JSON-serializable dict.
# 🔗 Dependencies:
# celery, asyncio, database connection/session managers, reconciliation scheduler scope
# 🔄 Connected Modules / Calls From:
# celery_config beat schedule ("reconcile-media-item-limits"), Celery workers

import asyncio
import logging
from typing import Any, Dict

from celery import shared_task

from shelfkeeper.shared.infrastructure.database.connection import close_database, init_database
from shelfkeeper.shared.infrastructure.database.session import initialize_sessions, session_manager
from shelfkeeper.shared.utils.logging import log_context, setup_logging
from shelfkeeper.background_jobs.reconciliation_scheduler import reconciliation_service_scope

logger = logging.getLogger(__name__)

TASK_NAME = "subscriptions.reconcile_media_item_limits"


async def _run_sweep() -> Dict[str, Any]:
    await init_database()
    try:
        await initialize_sessions()
        async with reconciliation_service_scope() as service:
            report = await service.run_sweep()
        return report.to_dict()
    finally:
        session_manager.reset()
        await close_database()


@shared_task(name=TASK_NAME, bind=True, acks_late=True)
def reconcile_media_item_limits(self) -> Dict[str, Any]:
    """Run one media item limit sweep and return its report."""
    setup_logging()
    logger.info(f"Task {self.request.id}: starting media item limit sweep")
    with log_context(request_id=self.request.id, correlation_id="media-item-reconciliation"):
        report = asyncio.run(_run_sweep())
    logger.info(f"Task {self.request.id}: sweep finished {report}")
    return report
