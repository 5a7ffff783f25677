from dataclasses import dataclass
from datetime import datetime
from typing import Callable
from zoneinfo import ZoneInfo

from config import get_settings

MIN_YEAR = 1900

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class ReportPeriod:
    user_id: int
    year: int
    month: int


def system_clock() -> datetime:
    return datetime.now(ZoneInfo(get_settings().timezone)).replace(tzinfo=None)


def fixed_clock(moment: datetime) -> Clock:
    def clock() -> datetime:
        return moment

    return clock


def is_closed(year: int, month: int, now: datetime) -> bool:
    """True when (year, month) lies strictly before the month of ``now``.

    The current month is still open: costs may be added to it until it ends.
    """
    if year != now.year:
        return year < now.year
    return month < now.month
