"""
Renewal scheduling over a subscription's next-renewal date.

Two transitions:
- advance_renewal: the owner paid N periods -> move the date N periods forward
  (no staleness check, the caller's period count is trusted)
- catch_up: while the date is before today, move it one period forward

Plus the list-view status of a renewal date (overdue / due today / due soon).
"""
from datetime import date
from enum import Enum

from substracker.domain.cycle import CycleUnit, add_periods
from substracker.domain.subscription import Subscription


class RenewalStatus(str, Enum):
    FIRST_PAYMENT_PENDING = "FIRST_PAYMENT_PENDING"
    OVERDUE = "OVERDUE"
    DUE_TODAY = "DUE_TODAY"
    DUE_SOON = "DUE_SOON"
    SCHEDULED = "SCHEDULED"


def advance_renewal(renewal_date: date, cycle: CycleUnit, periods: int) -> date:
    if periods < 0:
        raise ValueError("periods must be >= 0")
    return add_periods(renewal_date, cycle, periods)


def catch_up(renewal_date: date, cycle: CycleUnit, today: date) -> date:
    """Step renewal_date one period at a time until it is not before today.

    Each step starts from the previous result, so month-end clipping carries
    over (31.01 -> 28.02 -> 28.03).
    """
    while renewal_date < today:
        renewal_date = add_periods(renewal_date, cycle, 1)
    return renewal_date


def days_until_renewal(sub: Subscription, today: date) -> int | None:
    if sub.renewal_date is None:
        return None
    return (sub.renewal_date - today).days


def renewal_status(sub: Subscription, today: date, due_soon_days: int = 7) -> RenewalStatus | None:
    if sub.renewal_date is None:
        return None
    if sub.renewal_date == sub.activation_date and sub.renewal_date <= today:
        return RenewalStatus.FIRST_PAYMENT_PENDING
    days_left = (sub.renewal_date - today).days
    if days_left < 0:
        return RenewalStatus.OVERDUE
    if days_left == 0:
        return RenewalStatus.DUE_TODAY
    if days_left <= due_soon_days:
        return RenewalStatus.DUE_SOON
    return RenewalStatus.SCHEDULED
