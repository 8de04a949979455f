from datetime import datetime, date, time
from typing import Optional, Union

import pytz

from config import settings

APP_TZ = pytz.timezone(settings.APP_TIMEZONE)


def now() -> datetime:
    """Current time, timezone-aware, in the application timezone."""
    return datetime.now(APP_TZ)


def localize(value: Optional[datetime]) -> Optional[datetime]:
    """Express a datetime in the application timezone. Naive values (SQLite drops tzinfo) are taken as already local."""
    if value is None:
        return None
    if value.tzinfo is None:
        return APP_TZ.localize(value)
    return value.astimezone(APP_TZ)


def to_expiry_datetime(value: Optional[Union[date, datetime]]) -> Optional[datetime]:
    """Expiry dates entered as plain dates mean midnight in the application timezone."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return localize(value)
    return APP_TZ.localize(datetime.combine(value, time.min))
