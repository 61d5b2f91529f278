"""
Date and time helpers. Fantasy days roll over on Pacific time.
"""

import time
from datetime import datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

PACIFIC = ZoneInfo("America/Los_Angeles")


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def pacific_now() -> datetime:
    return datetime.now(PACIFIC)


def pacific_date_string(when: Optional[datetime] = None) -> str:
    """Date in YYYY-MM-DD form, Pacific time."""
    when = when or pacific_now()
    return when.astimezone(PACIFIC).strftime("%Y-%m-%d")


def tomorrow_pacific_date_string() -> str:
    return pacific_date_string(pacific_now() + timedelta(days=1))


def current_pacific_num_day() -> int:
    """Day of week with Sunday as 0, matching Yahoo's weekly_deadline values."""
    return (pacific_now().weekday() + 1) % 7
