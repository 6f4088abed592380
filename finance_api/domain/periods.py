"""Period (YYYY-MM) calendar rules used when projecting records onto another month"""

import re
from calendar import monthrange
from datetime import date
from typing import Optional, Tuple

from finance_api.domain.exceptions import InvalidPeriodFormatError

PERIOD_PATTERN = re.compile(r"^\d{4}-\d{2}$")


def parse_period(label: str) -> Tuple[int, int]:
    """
    Split a period label into (year, month).

    Raises:
        InvalidPeriodFormatError: label is not YYYY-MM or the month is outside 01-12
    """
    if not isinstance(label, str) or not PERIOD_PATTERN.match(label):
        raise InvalidPeriodFormatError(label)

    year, month = int(label[:4]), int(label[5:])
    if not 1 <= month <= 12 or year < 1:
        raise InvalidPeriodFormatError(label)

    return year, month


def period_of(day: date) -> str:
    """Period label a calendar date belongs to"""
    return f"{day.year:04d}-{day.month:02d}"


def last_day_of(year: int, month: int) -> int:
    """Number of days in the month (28-31, leap years included)"""
    return monthrange(year, month)[1]


def clamp_to_month(year: int, month: int, day: int) -> date:
    """Place `day` inside the given month, pulling overflow back to the last day"""
    return date(year, month, max(1, min(day, last_day_of(year, month))))


def project_date(target_period: str, source_date: date, anchor_day: Optional[int] = None) -> date:
    """
    Re-project a recurring transaction's date onto the target period.

    The anchor day wins when set, otherwise the source date's own day is reused.
    Either is clamped to the target month's length:
        anchor 31 -> April 30, February 28 (29 in leap years)
    """
    year, month = parse_period(target_period)
    day = anchor_day if anchor_day else source_date.day
    projected = clamp_to_month(year, month, day)

    # Result must always land in the target month
    if (projected.year, projected.month) != (year, month):
        projected = date(year, month, last_day_of(year, month))

    return projected


def bill_due_date(target_period: str, due_day: int) -> date:
    """Due date of a card bill in the target period"""
    year, month = parse_period(target_period)
    return clamp_to_month(year, month, due_day)
