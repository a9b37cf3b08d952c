# backend/app/domain/clock.py
from __future__ import annotations

import calendar
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from ..config import settings

DATE_FMT = "%d/%m/%Y"


def local_tz() -> ZoneInfo:
    return ZoneInfo(settings.timezone)


def local_now() -> datetime:
    return datetime.now(local_tz())


def local_today() -> date:
    return local_now().date()


def end_of_day(d: date) -> datetime:
    """Timezone-aware 23:59:59 of `d`, used as task eta."""
    return datetime.combine(d, time(23, 59, 59), tzinfo=local_tz())


def start_of_day(d: date) -> datetime:
    return datetime.combine(d, time.min, tzinfo=local_tz())


def days_in_month(d: date) -> int:
    return calendar.monthrange(d.year, d.month)[1]


def month_start(d: date) -> date:
    return d.replace(day=1)


def month_end(d: date) -> date:
    return d.replace(day=days_in_month(d))


def next_month_start(d: date) -> date:
    return month_start(d) + relativedelta(months=1)


def fmt_date(d: date) -> str:
    return d.strftime(DATE_FMT)


def fmt_month(d: date) -> str:
    """MM/YYYY"""
    return d.strftime("%m/%Y")
