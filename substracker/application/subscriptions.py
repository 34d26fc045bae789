"""
Subscription use cases — create, charge, contributors, activation, delete.

Each use case loads immutable records through SubscriptionRepository, derives
the new record with domain functions and saves it back in one commit.
"""
import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from substracker.config import today as current_date
from substracker.domain.cycle import CycleUnit
from substracker.domain.renewal import catch_up
from substracker.domain.subscription import (
    Category, Charge, Contribution, Contributor, GuestContributor, PaymentMethod,
    RegisteredContributor, Subscription,
)
from substracker.application.financials import compute_renewal_advance
from substracker.infrastructure.db.repository import SubscriptionRepository

logger = logging.getLogger(__name__)


class SubscriptionValidationError(ValueError):
    pass


class SubscriptionNotFoundError(SubscriptionValidationError):
    pass


def _get_owned(repo: SubscriptionRepository, subscription_id: int, owner_id: int) -> Subscription:
    sub = repo.get_subscription(subscription_id, owner_id=owner_id)
    if not sub:
        raise SubscriptionNotFoundError("Subscription not found")
    return sub


def _get_contribution(sub: Subscription, contribution_id: int) -> Contribution:
    for c in sub.contributions:
        if c.id == contribution_id:
            return c
    raise SubscriptionNotFoundError("Contributor not found")


def _parse_cycle(cycle) -> CycleUnit:
    try:
        return CycleUnit.parse(cycle)
    except ValueError as e:
        raise SubscriptionValidationError(str(e)) from e


def _validate_periods(periods: int) -> None:
    if periods < 1:
        raise SubscriptionValidationError("Periods covered must be at least 1")


# ============================================================================
# Subscriptions
# ============================================================================


class CreateSubscriptionUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        owner_id: int,
        name: str,
        price: Decimal,
        cycle: CycleUnit | str,
        activation_date: date,
        first_payment_date: date,
        category: Category | None = None,
        today: date | None = None,
    ) -> int:
        if today is None:
            today = current_date()

        name = name.strip()
        if not name:
            raise SubscriptionValidationError("Name must not be empty")
        if price is None or price <= 0:
            raise SubscriptionValidationError("Price must be greater than zero")
        cycle = _parse_cycle(cycle)
        if activation_date is None or first_payment_date is None:
            raise SubscriptionValidationError("Activation and first payment dates are required")
        if first_payment_date < activation_date:
            raise SubscriptionValidationError("First payment cannot be before the activation date")

        sub = Subscription(
            owner_id=owner_id,
            name=name,
            price=price,
            cycle=cycle,
            category=category,
            is_active=True,
            activation_date=activation_date,
            renewal_date=catch_up(first_payment_date, cycle, today),
        )
        saved = SubscriptionRepository(self.db).save_subscription(sub)
        self.db.commit()
        logger.info(
            "Created subscription id=%d owner=%d renewal=%s", saved.id, owner_id, saved.renewal_date,
        )
        return saved.id


class UpdateSubscriptionUseCase:
    """Edit name / price / cycle / category / dates. No catch-up is applied."""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, subscription_id: int, owner_id: int, **changes) -> None:
        repo = SubscriptionRepository(self.db)
        sub = _get_owned(repo, subscription_id, owner_id)
        fields = {}

        if "name" in changes:
            name = changes["name"].strip()
            if not name:
                raise SubscriptionValidationError("Name must not be empty")
            fields["name"] = name
        if "price" in changes:
            if changes["price"] is None or changes["price"] <= 0:
                raise SubscriptionValidationError("Price must be greater than zero")
            fields["price"] = changes["price"]
        if "cycle" in changes:
            fields["cycle"] = _parse_cycle(changes["cycle"])
        if "category" in changes:
            fields["category"] = changes["category"]
        for key in ("activation_date", "renewal_date"):
            if key in changes:
                fields[key] = changes[key]

        activation = fields.get("activation_date", sub.activation_date)
        renewal = fields.get("renewal_date", sub.renewal_date)
        if activation and renewal and renewal < activation:
            raise SubscriptionValidationError("Renewal date cannot be before the activation date")

        repo.save_subscription(replace(sub, **fields))
        self.db.commit()


class SetSubscriptionActiveUseCase:
    """Pause / resume a subscription without touching its history."""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, subscription_id: int, owner_id: int, is_active: bool) -> None:
        repo = SubscriptionRepository(self.db)
        sub = _get_owned(repo, subscription_id, owner_id)
        if sub.is_active == is_active:
            state = "active" if is_active else "paused"
            raise SubscriptionValidationError(f"Subscription is already {state}")
        repo.save_subscription(sub.with_active(is_active))
        self.db.commit()


class DeleteSubscriptionUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, subscription_id: int, owner_id: int) -> None:
        repo = SubscriptionRepository(self.db)
        _get_owned(repo, subscription_id, owner_id)
        repo.delete_subscription(subscription_id)
        self.db.commit()
        logger.info("Deleted subscription id=%d owner=%d", subscription_id, owner_id)


# ============================================================================
# Charges
# ============================================================================


class RecordChargeUseCase:
    """Owner paid the provider: append a Charge and push the renewal date."""

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        subscription_id: int,
        owner_id: int,
        charged_on: date,
        periods_covered: int = 1,
        payment_method: PaymentMethod | None = None,
        note: str = "",
    ) -> date:
        _validate_periods(periods_covered)
        if charged_on is None:
            raise SubscriptionValidationError("Charge date is required")

        repo = SubscriptionRepository(self.db)
        sub = _get_owned(repo, subscription_id, owner_id)
        new_renewal = compute_renewal_advance(sub, periods_covered)

        repo.save_charge(Charge(
            subscription_id=sub.id,
            charged_on=charged_on,
            periods_covered=periods_covered,
            payment_method=payment_method,
            note=note.strip(),
        ))
        repo.save_subscription(sub.with_renewal(new_renewal))
        self.db.commit()
        logger.info(
            "Recorded charge for subscription id=%d: %d period(s), renewal %s -> %s",
            sub.id, periods_covered, sub.renewal_date, new_renewal,
        )
        return new_renewal


# ============================================================================
# Contributors
# ============================================================================


class AddContributorUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        subscription_id: int,
        owner_id: int,
        contributor: Contributor,
        amount: Decimal,
        paid_on: date | None = None,
        periods_covered: int = 1,
        payment_method: PaymentMethod | None = None,
        note: str = "",
    ) -> int:
        if amount is None or amount < 0:
            raise SubscriptionValidationError("Amount must not be negative")
        _validate_periods(periods_covered)

        repo = SubscriptionRepository(self.db)
        sub = _get_owned(repo, subscription_id, owner_id)

        if isinstance(contributor, RegisteredContributor):
            if contributor.user_id == owner_id:
                raise SubscriptionValidationError("The owner cannot contribute to their own subscription")
            if not repo.user_exists(contributor.user_id):
                raise SubscriptionNotFoundError("User not found")
            if any(
                isinstance(c.contributor, RegisteredContributor)
                and c.contributor.user_id == contributor.user_id
                for c in sub.contributions
            ):
                raise SubscriptionValidationError("This user already contributes to the subscription")
        elif isinstance(contributor, GuestContributor):
            name = contributor.name.strip()
            if not name:
                raise SubscriptionValidationError("Guest name must not be empty")
            contributor = GuestContributor(name)

        saved = repo.save_contribution(Contribution(
            subscription_id=sub.id,
            contributor=contributor,
            amount=amount,
            paid_on=paid_on,
            periods_covered=periods_covered,
            payment_method=payment_method,
            note=note.strip(),
        ))
        self.db.commit()
        return saved.id


class LogContributionPaymentUseCase:
    """Contributor paid: overwrite their latest payment state."""

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        subscription_id: int,
        owner_id: int,
        contribution_id: int,
        paid_on: date,
        periods_covered: int = 1,
        payment_method: PaymentMethod | None = None,
        amount: Decimal | None = None,
        note: str | None = None,
    ) -> None:
        if paid_on is None:
            raise SubscriptionValidationError("Payment date is required")
        _validate_periods(periods_covered)
        if amount is not None and amount < 0:
            raise SubscriptionValidationError("Amount must not be negative")

        repo = SubscriptionRepository(self.db)
        sub = _get_owned(repo, subscription_id, owner_id)
        contribution = _get_contribution(sub, contribution_id)

        repo.save_contribution(contribution.with_payment(
            paid_on=paid_on,
            periods_covered=periods_covered,
            payment_method=payment_method,
            amount=amount,
            note=note.strip() if note is not None else None,
        ))
        self.db.commit()


class RemoveContributorUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, subscription_id: int, owner_id: int, contribution_id: int) -> None:
        repo = SubscriptionRepository(self.db)
        sub = _get_owned(repo, subscription_id, owner_id)
        _get_contribution(sub, contribution_id)
        repo.delete_contribution(contribution_id)
        self.db.commit()
