"""
Per-subscription financials — gross vs net historical cost for the owner.

Payment-in-advance model: the first charge happens on the activation day,
so a subscription activated today has already cost one period.

Net historical cost is NOT floored: contributors who paid ahead of elapsed
charges produce a negative net ("benefit"). The monthly rollup in
reporting.py floors its per-subscription figure instead.
"""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from substracker.domain.cycle import CycleUnit, elapsed_periods
from substracker.domain.errors import IncompleteSubscriptionError, InvalidReferenceDateError
from substracker.domain.renewal import advance_renewal
from substracker.domain.subscription import Contribution, Subscription

_ZERO = Decimal("0")


@dataclass(frozen=True)
class Financials:
    elapsed_periods: int
    gross_historical: Decimal
    total_received: Decimal
    net_historical: Decimal
    net_per_cycle: Decimal  # price minus contributors' per-cycle amounts

    @property
    def is_benefit(self) -> bool:
        return self.net_historical < 0


def require_complete(sub: Subscription, *fields: str) -> None:
    """Raise IncompleteSubscriptionError if any of the given fields is None."""
    missing = [f for f in fields if getattr(sub, f) is None]
    if missing:
        raise IncompleteSubscriptionError(sub.id, missing)


def total_received(contributions) -> Decimal:
    """Money actually collected from contributors (paid records only)."""
    total = _ZERO
    for c in contributions:
        if c.paid_on is not None:
            total += c.amount * c.periods_covered
    return total


def compute_financials(
    sub: Subscription,
    contributions: list[Contribution] | None,
    reference_date: date,
) -> Financials:
    if reference_date is None:
        raise InvalidReferenceDateError()
    require_complete(sub, "price", "activation_date", "cycle")
    cycle = CycleUnit.parse(sub.cycle)
    if contributions is None:
        contributions = sub.contributions

    per_cycle_in = sum((c.amount for c in contributions), _ZERO)
    net_per_cycle = sub.price - per_cycle_in

    if reference_date < sub.activation_date:
        return Financials(
            elapsed_periods=0,
            gross_historical=_ZERO,
            total_received=_ZERO,
            net_historical=_ZERO,
            net_per_cycle=net_per_cycle,
        )

    periods = elapsed_periods(sub.activation_date, reference_date, cycle) + 1
    gross = sub.price * periods
    received = total_received(contributions)
    return Financials(
        elapsed_periods=periods,
        gross_historical=gross,
        total_received=received,
        net_historical=gross - received,
        net_per_cycle=net_per_cycle,
    )


def compute_renewal_advance(sub: Subscription, periods_just_paid: int) -> date:
    """New renewal date after the owner paid periods_just_paid periods."""
    require_complete(sub, "renewal_date", "cycle")
    return advance_renewal(sub.renewal_date, CycleUnit.parse(sub.cycle), periods_just_paid)
