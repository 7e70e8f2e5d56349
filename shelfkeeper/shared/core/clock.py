# 📄 File: shelfkeeper/shared/core/clock.py
# 🧭 Purpose (Layman Explanation):
# One place that answers "what time is it?" so subscription dates are stamped consistently
# and tests can freeze time.
# 🧪 Purpose (Technical Summary):
# Injectable clock abstraction returning timezone-aware UTC datetimes, with the wall-clock
# implementation used in production.
# 🔗 Dependencies:
# abc, datetime
# 🔄 Connected Modules / Calls From:
# Subscription lifecycle service, presentation dependencies, test fixtures

from abc import ABC, abstractmethod
from datetime import datetime, timezone


class Clock(ABC):
    """Source of the current time."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current time as an aware UTC datetime."""
        pass


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
