# discussify/utils/datetime_utils.py
from datetime import datetime, timedelta, timezone


def now_utc() -> datetime:
    # Naive UTC, the same shape motor hands back for stored datetimes
    return datetime.now(timezone.utc).replace(tzinfo=None)


def days_ago(days: int) -> datetime:
    return now_utc() - timedelta(days=days)
