"""
Contributor payment status: is the latest payment still covering the date?

Recomputed on every read; nothing is stored.
"""
from datetime import date
from enum import Enum

from substracker.domain.cycle import CycleUnit, add_periods
from substracker.domain.errors import InvalidReferenceDateError
from substracker.domain.subscription import Contribution


class ContributionStatus(str, Enum):
    UP_TO_DATE = "UP_TO_DATE"
    PENDING = "PENDING"


def covered_until(contribution: Contribution, cycle: CycleUnit) -> date | None:
    """Date the latest payment runs out (payment date + covered periods)."""
    if contribution.paid_on is None:
        return None
    return add_periods(contribution.paid_on, cycle, contribution.periods_covered)


def classify_contribution(
    contribution: Contribution,
    cycle: CycleUnit,
    reference_date: date,
) -> ContributionStatus:
    if reference_date is None:
        raise InvalidReferenceDateError()
    until = covered_until(contribution, cycle)
    if until is None or until < reference_date:
        return ContributionStatus.PENDING
    return ContributionStatus.UP_TO_DATE
