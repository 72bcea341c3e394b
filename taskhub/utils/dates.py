# taskhub/utils/dates.py
# All timestamps are stored as naive UTC datetimes
import math
from datetime import datetime, timedelta, timezone
from typing import Optional

DAY = timedelta(days=1)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC already"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def start_of_day(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def days_until(target: datetime, now: datetime) -> int:
    """Whole days left until target, rounded up"""
    return math.ceil((target - now) / DAY)


def days_since(origin: datetime, now: datetime) -> int:
    return math.floor((now - origin) / DAY)
