# 📄 File: celery_config.py
#
# 🧭 Purpose (Layman Explanation):
# Configuration for the background worker system (Celery) used by deployments that run the
# daily "too many items" check on separate worker machines instead of inside the web server.
#
# 🧪 Purpose (Technical Summary):
# Celery configuration for the subscription reconciliation task: Redis broker and result
# backend, a dedicated "subscriptions" queue, and a beat schedule on RECONCILIATION_INTERVAL.
#
# 🔗 Dependencies:
# - celery, kombu
# - Redis server (message broker)
# - pydantic (interval parsing identical to application settings)
#
# 🔄 Connected Modules / Calls From:
# - shelfkeeper/background_jobs/tasks/subscription_reconciliation.py
# - Celery worker / beat processes (celery -A celery_config worker -B)

import os
from datetime import timedelta

from celery import Celery
from kombu import Queue
from pydantic import TypeAdapter

RECONCILIATION_TASK = "subscriptions.reconcile_media_item_limits"


def _reconciliation_interval() -> timedelta:
    """Parse RECONCILIATION_INTERVAL the same way the API settings do (ISO 8601 or HH:MM:SS)."""
    raw = os.getenv("RECONCILIATION_INTERVAL")
    if not raw:
        return timedelta(hours=24)
    interval = TypeAdapter(timedelta).validate_python(raw)
    if interval <= timedelta(0):
        raise ValueError("RECONCILIATION_INTERVAL must be a positive duration")
    return interval


# =============================================================================
# CELERY CONFIGURATION CLASS
# =============================================================================


class CeleryConfig:
    """
    Celery configuration for ShelfKeeper subscription jobs.
    """

    # =========================================================================
    # BROKER AND BACKEND SETTINGS
    # =========================================================================

    broker_url = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/1")
    result_backend = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/2")

    broker_connection_retry_on_startup = True
    broker_connection_max_retries = 10
    result_expires = timedelta(hours=24)

    # =========================================================================
    # TASK SETTINGS
    # =========================================================================

    task_serializer = "json"
    result_serializer = "json"
    accept_content = ["json"]
    timezone = "UTC"
    enable_utc = True

    task_default_queue = "default"

    # A sweep walks every Free/Basic subscription; give it room.
    task_time_limit = 3600
    task_soft_time_limit = 3300
    task_acks_late = True
    task_reject_on_worker_lost = True
    worker_prefetch_multiplier = 1

    task_routes = {
        RECONCILIATION_TASK: {"queue": "subscriptions"},
    }

    task_queues = (
        Queue("subscriptions", routing_key="subscriptions"),
        Queue("default", routing_key="default"),
    )

    # =========================================================================
    # WORKER SETTINGS
    # =========================================================================

    worker_concurrency = int(os.getenv("CELERY_WORKER_CONCURRENCY", 2))
    worker_hijack_root_logger = False
    worker_log_format = "[%(asctime)s: %(levelname)s/%(processName)s] %(message)s"
    worker_task_log_format = "[%(asctime)s: %(levelname)s/%(processName)s][%(task_name)s(%(task_id)s)] %(message)s"

    # =========================================================================
    # BEAT SCHEDULER SETTINGS
    # =========================================================================

    beat_schedule = {
        "reconcile-media-item-limits": {
            "task": RECONCILIATION_TASK,
            "schedule": _reconciliation_interval(),
            "options": {"queue": "subscriptions"},
        },
    }


class ProductionCeleryConfig(CeleryConfig):
    """Production-specific Celery configuration."""

    task_send_sent_event = True
    worker_send_task_events = True


# =============================================================================
# CONFIG FACTORY
# =============================================================================

def get_celery_config() -> CeleryConfig:
    """
    Pick the Celery configuration for the current ENVIRONMENT.
    """
    environment = os.getenv("ENVIRONMENT", "development").lower()

    config_map = {
        "staging": ProductionCeleryConfig,
        "production": ProductionCeleryConfig,
    }

    config_class = config_map.get(environment, CeleryConfig)
    return config_class()


# =============================================================================
# CELERY APPLICATION INSTANCE
# =============================================================================

app = Celery("shelfkeeper_subscriptions")
app.config_from_object(get_celery_config())

app.autodiscover_tasks(["shelfkeeper.background_jobs.tasks"], related_name="subscription_reconciliation")


if __name__ == "__main__":
    app.start()
