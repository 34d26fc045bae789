"""
Spend report: monthly rollup over a user's active subscriptions.

Every price is normalised to a monthly equivalent so monthly, quarterly and
yearly subscriptions can be summed. Per subscription the owner's monthly
share is floored at zero: one over-funded subscription must not reduce what
the owner pays for the others.

The fold is best effort. A subscription that cannot be computed (missing
price or dates, unknown cycle) is logged, listed in `skipped` and left out of the
totals; the rest of the report is still built.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal

from substracker.domain.cycle import CycleUnit, monthly_equivalent
from substracker.domain.errors import IncompleteSubscriptionError, UnknownCycleError
from substracker.domain.subscription import Category, Subscription
from substracker.application.financials import require_complete

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")
DEFAULT_TOP_N = 3


@dataclass(frozen=True)
class MonthlyCost:
    subscription_id: int | None
    name: str
    category: Category | None
    service_monthly: Decimal
    contributors_monthly: Decimal
    owner_net_monthly: Decimal


@dataclass(frozen=True)
class SkippedSubscription:
    subscription_id: int | None
    name: str
    reason: str


@dataclass(frozen=True)
class AggregateReport:
    total_monthly_spend: Decimal
    total_monthly_savings: Decimal
    annual_projection: Decimal
    category_totals: dict[Category, Decimal]
    top: list[MonthlyCost]
    skipped: list[SkippedSubscription] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


def compute_monthly_cost(sub: Subscription) -> MonthlyCost:
    """Owner's current monthly obligation for one subscription."""
    require_complete(sub, "price", "cycle", "activation_date", "renewal_date")
    cycle = CycleUnit.parse(sub.cycle)

    service_monthly = monthly_equivalent(sub.price, cycle)
    contributors_monthly = _ZERO
    for c in sub.contributions:
        contributors_monthly += monthly_equivalent(c.amount, cycle)

    return MonthlyCost(
        subscription_id=sub.id,
        name=sub.name,
        category=sub.category,
        service_monthly=service_monthly,
        contributors_monthly=contributors_monthly,
        owner_net_monthly=max(_ZERO, service_monthly - contributors_monthly),
    )


def compute_aggregate_report(subscriptions, top_n: int = DEFAULT_TOP_N) -> AggregateReport:
    """Fold active subscriptions (with contributions attached) into a report.

    Ranking: owner_net_monthly descending; ties keep input order (stable sort).
    """
    total_spend = _ZERO
    total_savings = _ZERO
    category_totals: dict[Category, Decimal] = {}
    costs: list[MonthlyCost] = []
    skipped: list[SkippedSubscription] = []

    for sub in subscriptions:
        if not sub.is_active:
            continue
        try:
            cost = compute_monthly_cost(sub)
        except (IncompleteSubscriptionError, UnknownCycleError) as e:
            logger.warning("Spend report: skipping subscription id=%s (%s)", sub.id, e)
            skipped.append(SkippedSubscription(sub.id, sub.name, str(e)))
            continue

        total_spend += cost.owner_net_monthly
        total_savings += cost.contributors_monthly
        if cost.category is not None:
            category_totals[cost.category] = (
                category_totals.get(cost.category, _ZERO) + cost.owner_net_monthly
            )
        costs.append(cost)

    ranking = sorted(costs, key=lambda c: c.owner_net_monthly, reverse=True)

    return AggregateReport(
        total_monthly_spend=total_spend,
        total_monthly_savings=total_savings,
        annual_projection=total_spend * 12,
        category_totals=category_totals,
        top=ranking[:top_n],
        skipped=skipped,
    )
