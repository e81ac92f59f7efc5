"""Game calendar helpers; day 0 is 1 January of ``START_YEAR``."""
from __future__ import annotations

from datetime import date, timedelta

from config import DAYS_PER_YEAR, MONTH_DAYS, START_YEAR

EPOCH = date(START_YEAR, 1, 1)


def year_for_day(day: int) -> int:
    return START_YEAR + day // DAYS_PER_YEAR


def is_month_boundary(day: int) -> bool:
    return day % MONTH_DAYS == 0


def format_date(day: int) -> str:
    return (EPOCH + timedelta(days=day)).strftime("%b %d, %Y")


def format_money(amount: float) -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(round(amount)):,}"
