# backend/app/domain/billing.py
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Optional

from dateutil.relativedelta import relativedelta

from .clock import days_in_month, month_end, month_start, next_month_start


@dataclass(frozen=True)
class DepositBreakdown:
    price: float
    bail: float
    deposit: float
    after_check_in_cost: float
    total: float


def deposit_breakdown(price: float, deposit_price: float | None) -> DepositBreakdown:
    """
    Contract money split.

    bail falls back to one month of rent when the room has no explicit deposit.
    The tenant pays half a month up front (deposit) and the rest of the first
    month plus the bail on check-in.
    """
    price = float(price or 0.0)
    bail = float(deposit_price or 0.0) or price
    return DepositBreakdown(
        price=price,
        bail=bail,
        deposit=price / 2,
        after_check_in_cost=price * 0.5 + bail,
        total=price + bail,
    )


def check_out_date(check_in: date, rental_period: int) -> date:
    return check_in + relativedelta(months=int(rental_period)) - timedelta(days=1)


def months_between(later: date, earlier: date) -> int:
    """Whole calendar months from `earlier` to `later`, truncated toward zero."""
    rd = relativedelta(later, earlier)
    return rd.years * 12 + rd.months


def contract_ends_this_month(check_in: date, rental_period: int, today: date) -> bool:
    return months_between(check_out_date(check_in, rental_period), month_start(today)) < 1


def days_stayed_in_month(check_in: date, period_start: date) -> int:
    """Billable days for the month of `period_start`; the check-in month is prorated."""
    if (period_start.year, period_start.month) == (check_in.year, check_in.month):
        return days_in_month(check_in) - check_in.day + 1
    return days_in_month(period_start)


def history_periods(check_in: date, today: date, check_out: Optional[date] = None) -> list[tuple[date, date]]:
    """
    Billing periods from the check-in month up to, not including, the month of `today`.
    The first period starts on the check-in date.
    """
    out: list[tuple[date, date]] = []
    cursor = month_start(check_in)
    stop = month_start(today)
    while cursor < stop:
        start = max(cursor, check_in)
        end = month_end(cursor)
        if check_out is not None:
            if start > check_out:
                break
            end = min(end, check_out)
        out.append((start, end))
        cursor = next_month_start(cursor)
    return out


@dataclass(frozen=True)
class MonthlyCharges:
    number_day_stay: int
    electric_number: float
    electric_price: float
    water_price: float
    service_price: float
    vehicle_price: float
    room_price: float
    wifi_price: float

    @property
    def amount(self) -> float:
        return float(
            self.electric_price
            + self.water_price
            + self.service_price
            + self.vehicle_price
            + self.room_price
            + self.wifi_price
        )


def monthly_charges(room: Any, *, period_start: date, days_stayed: int, kwh: float = 0.0) -> MonthlyCharges:
    """
    Charges for one billing month of `room`.

    Room rent is prorated by days stayed; water and wifi are per person,
    parking is per vehicle, garbage/service is flat.
    """
    dim = days_in_month(period_start)
    person = int(getattr(room, "person", 0) or 0)
    vehicle = int(getattr(room, "vehicle", 0) or 0)
    kwh = float(kwh or 0.0)

    return MonthlyCharges(
        number_day_stay=int(days_stayed),
        electric_number=kwh,
        electric_price=kwh * float(room.electricity_price or 0.0),
        water_price=float(room.water_price or 0.0) * person,
        service_price=float(room.garbage_price or 0.0),
        vehicle_price=float(room.vehicle_price or 0.0) * vehicle,
        room_price=float(room.price or 0.0) / dim * int(days_stayed),
        wifi_price=float(room.wifi_price or 0.0) * person,
    )


def prorated_rent(price: float, check_in: date) -> int:
    """
    Rent from check-in to the end of that month, floored to whole VND.

    Counts whole days after the check-in day, so check-in on the 20th of a
    31-day month bills 11 days. History orders use `days_stayed_in_month`,
    which includes the check-in day.
    """
    days = days_in_month(check_in) - check_in.day
    return int(math.floor(float(price or 0.0) / days_in_month(check_in) * days))
