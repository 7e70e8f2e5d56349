# 📄 File: shelfkeeper/background_jobs/reconciliation_scheduler.py
# 🧭 Purpose (Layman Explanation):
# A timer that runs inside the web server and, once a day by default, checks whether Free and
# Basic users have more items than their plan allows. It stops quickly when the server shuts down.
# 🧪 Purpose (Technical Summary):
# asyncio background loop around ReconciliationService.run_sweep. Each tick opens its own
# service scope (fresh DB session); ticks are separated by waiting on a stop event with a
# timeout so shutdown wakes the loop immediately. stop() drains the in-flight tick up to a
# bounded timeout and then cancels it.
# 🔗 Dependencies:
# asyncio, contextlib, settings, database_session, subscription repositories and gateways
# 🔄 Connected Modules / Calls From:
# shelfkeeper.main (lifespan start/stop), shelfkeeper.api.v1.health (status), tests

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import AsyncContextManager, AsyncIterator, Callable, Dict, Any, Optional, Union

from shelfkeeper.shared.config.settings import get_settings
from shelfkeeper.shared.infrastructure.database.session import database_session
from shelfkeeper.shared.utils.logging import log_context
from shelfkeeper.modules.subscription_management.domain.services.reconciliation_service import (
    ReconciliationService,
    SweepReport,
)
from shelfkeeper.modules.subscription_management.infrastructure.database.catalog_repository_impl import (
    SqlCatalogService,
    SqlUserDirectory,
)
from shelfkeeper.modules.subscription_management.infrastructure.database.subscription_repository_impl import (
    SubscriptionRepositoryImpl,
)
from shelfkeeper.modules.subscription_management.infrastructure.external.email_notification import (
    build_notification_gateway,
)

logger = logging.getLogger(__name__)

SweepFactory = Callable[[], AsyncContextManager[ReconciliationService]]


@asynccontextmanager
async def reconciliation_service_scope() -> AsyncIterator[ReconciliationService]:
    """
    ReconciliationService bound to a fresh database session.

    Every record is checked under its own SAVEPOINT, so a failed query rolls back
    to it instead of aborting the transaction for the records that follow.
    """
    async with database_session() as session:
        yield ReconciliationService(
            repository=SubscriptionRepositoryImpl(session),
            catalog_service=SqlCatalogService(session),
            user_directory=SqlUserDirectory(session),
            notification_gateway=build_notification_gateway(get_settings()),
            record_scope=session.begin_nested,
        )


class ReconciliationScheduler:
    """
    Runs a media item limit sweep immediately on start and then once per interval.
    """

    def __init__(
        self,
        sweep_factory: SweepFactory = reconciliation_service_scope,
        interval: Union[timedelta, float] = timedelta(hours=24),
        drain_timeout: float = 30.0,
    ):
        interval_seconds = interval.total_seconds() if isinstance(interval, timedelta) else float(interval)
        if interval_seconds <= 0:
            raise ValueError("Reconciliation interval must be positive")

        self._sweep_factory = sweep_factory
        self._interval_seconds = interval_seconds
        self._drain_timeout = drain_timeout
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

        self.ticks = 0
        self.last_report: Optional[SweepReport] = None
        self.last_run_at: Optional[datetime] = None
        self.last_error: Optional[str] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            logger.warning("Reconciliation scheduler already running")
            return

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name="reconciliation-scheduler")
        logger.info(f"Reconciliation scheduler started (interval {self._interval_seconds:.0f}s)")

    async def stop(self) -> None:
        """Stop the loop, letting an in-flight tick finish within the drain timeout."""
        if self._task is None:
            return

        self._stop_event.set()
        try:
            await asyncio.wait_for(asyncio.shield(self._task), timeout=self._drain_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Reconciliation tick did not finish within {self._drain_timeout}s; cancelling")
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        finally:
            self._task = None

        logger.info("Reconciliation scheduler stopped")

    async def run_once(self) -> Optional[SweepReport]:
        """Run a single tick. Failures are logged and reported as None."""
        self.ticks += 1
        self.last_run_at = datetime.now(timezone.utc)
        try:
            with log_context(request_id=f"reconcile-tick-{self.ticks}", correlation_id="media-item-reconciliation"):
                async with self._sweep_factory() as service:
                    report = await service.run_sweep(should_stop=self._stop_event.is_set)
        except Exception as e:
            self.last_error = str(e)
            logger.error(f"Reconciliation tick {self.ticks} failed: {e}", exc_info=True)
            return None

        self.last_report = report
        self.last_error = None
        return report

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            await self.run_once()
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval_seconds)
            except asyncio.TimeoutError:
                continue

    def status(self) -> Dict[str, Any]:
        return {
            "running": self.is_running,
            "interval_seconds": self._interval_seconds,
            "ticks": self.ticks,
            "last_run_at": self.last_run_at.isoformat() if self.last_run_at else None,
            "last_report": self.last_report.to_dict() if self.last_report else None,
            "last_error": self.last_error,
        }
