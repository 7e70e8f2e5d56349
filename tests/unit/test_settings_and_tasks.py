"""
Unit tests for configuration parsing and the Celery reconciliation task.
"""
from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
from pydantic import ValidationError

import celery_config
from shelfkeeper.shared.config.settings import Settings
from shelfkeeper.background_jobs.tasks.subscription_reconciliation import (
    TASK_NAME,
    reconcile_media_item_limits,
)


def test_reconciliation_defaults():
    settings = Settings(JWT_SECRET_KEY="x")
    assert settings.RECONCILIATION_INTERVAL == timedelta(hours=24)
    assert settings.RECONCILIATION_DRAIN_TIMEOUT_SECONDS == 30.0


@pytest.mark.parametrize("raw, expected", [("01:00:00", timedelta(hours=1)), ("PT15M", timedelta(minutes=15))])
def test_reconciliation_interval_accepts_clock_and_iso8601(raw, expected):
    assert Settings(JWT_SECRET_KEY="x", RECONCILIATION_INTERVAL=raw).RECONCILIATION_INTERVAL == expected


@pytest.mark.parametrize("raw", ["PT0S", "-PT1M"])
def test_reconciliation_interval_must_be_positive(raw):
    with pytest.raises(ValidationError):
        Settings(JWT_SECRET_KEY="x", RECONCILIATION_INTERVAL=raw)


def test_price_map_keyed_by_plan():
    settings = Settings(JWT_SECRET_KEY="x", STRIPE_PRICE_BASIC="price_b", STRIPE_PRICE_PREMIUM=None)
    assert settings.stripe_price_map == {"basic": "price_b", "premium": None}


def test_environment_is_validated():
    with pytest.raises(ValidationError):
        Settings(JWT_SECRET_KEY="x", ENVIRONMENT="moon")


def test_celery_beat_uses_interval_from_environment(monkeypatch):
    monkeypatch.setenv("RECONCILIATION_INTERVAL", "PT6H")
    assert celery_config._reconciliation_interval() == timedelta(hours=6)

    monkeypatch.delenv("RECONCILIATION_INTERVAL")
    assert celery_config._reconciliation_interval() == timedelta(hours=24)


def test_celery_routes_task_to_subscriptions_queue():
    assert celery_config.RECONCILIATION_TASK == TASK_NAME
    assert celery_config.CeleryConfig.task_routes[TASK_NAME] == {"queue": "subscriptions"}
    assert celery_config.CeleryConfig.beat_schedule["reconcile-media-item-limits"]["task"] == TASK_NAME


def test_task_returns_sweep_report():
    report = {"checked": 4, "violations": 1, "notified": 1, "failed": 0, "stopped_early": False}
    with patch(
        "shelfkeeper.background_jobs.tasks.subscription_reconciliation._run_sweep",
        new=AsyncMock(return_value=report),
    ):
        result = reconcile_media_item_limits.apply()

    assert result.successful()
    assert result.get() == report
