"""
Billing cycle calendar arithmetic.

Uses date only (no timezone). Month addition clips to the last valid day of
the target month (Jan 31 + 1 month -> Feb 28/29).

Cycles:
- MONTHLY: 1 month per period
- QUARTERLY: 3 months per period
- YEARLY: 12 months per period
"""
import calendar
from datetime import date
from decimal import Decimal
from enum import Enum

from substracker.domain.errors import UnknownCycleError


class CycleUnit(str, Enum):
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"

    @classmethod
    def parse(cls, value) -> "CycleUnit":
        """Coerce a stored / submitted value, raising UnknownCycleError."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnknownCycleError(value) from None


MONTHS_PER_PERIOD = {
    CycleUnit.MONTHLY: 1,
    CycleUnit.QUARTERLY: 3,
    CycleUnit.YEARLY: 12,
}


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(d: date, n: int) -> date:
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    day = min(d.day, last_day_of_month(year, month))
    return date(year, month, day)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start to end (0 if end < start).

    A month counts as completed once end reaches the same day-of-month as start:
    15.01 -> 15.04 = 3, 15.01 -> 14.04 = 2.
    """
    if end < start:
        return 0
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    return months


def add_periods(d: date, cycle: CycleUnit, n: int) -> date:
    """Add n billing periods of the given cycle to d."""
    cycle = CycleUnit.parse(cycle)
    return add_months(d, MONTHS_PER_PERIOD[cycle] * n)


def elapsed_periods(start: date, end: date, cycle: CycleUnit) -> int:
    """Whole completed billing periods between two dates, never negative."""
    cycle = CycleUnit.parse(cycle)
    return months_between(start, end) // MONTHS_PER_PERIOD[cycle]


def monthly_equivalent(amount: Decimal, cycle: CycleUnit) -> Decimal:
    """Per-month share of an amount billed once per cycle. Not rounded."""
    cycle = CycleUnit.parse(cycle)
    if cycle is CycleUnit.MONTHLY:
        return amount
    return amount / MONTHS_PER_PERIOD[cycle]
