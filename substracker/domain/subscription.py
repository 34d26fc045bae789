"""
Subscription domain records — immutable values handed to the billing engine.

A Subscription owns its Contributions (co-payments from other people) and
Charges (what the owner actually paid the provider). Records are frozen;
every change produces a new record via dataclasses.replace.
"""
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum

from substracker.domain.cycle import CycleUnit


class Category(str, Enum):
    LEISURE = "LEISURE"
    HOME = "HOME"
    WORK = "WORK"
    HEALTH = "HEALTH"
    EDUCATION = "EDUCATION"


class PaymentMethod(str, Enum):
    CARD = "CARD"
    TRANSFER = "TRANSFER"
    CASH = "CASH"
    MOBILE = "MOBILE"
    OTHER = "OTHER"


# ============================================================================
# Contributor: registered user or free-text guest
# ============================================================================


@dataclass(frozen=True)
class RegisteredContributor:
    user_id: int
    name: str = ""

    @property
    def display_name(self) -> str:
        return self.name or f"#{self.user_id}"


@dataclass(frozen=True)
class GuestContributor:
    name: str

    @property
    def display_name(self) -> str:
        return self.name


Contributor = RegisteredContributor | GuestContributor


# ============================================================================
# Records
# ============================================================================


@dataclass(frozen=True)
class Contribution:
    """
    Latest payment state of one contributor against one subscription.

    paid_on is None while the contribution is only pledged. The record is
    replaced (not appended) when a new payment is logged.
    """
    contributor: Contributor
    amount: Decimal  # per billing period
    paid_on: date | None = None
    payment_method: PaymentMethod | None = None
    periods_covered: int = 1
    note: str = ""
    subscription_id: int | None = None
    id: int | None = None

    def __post_init__(self):
        if self.amount < 0:
            raise ValueError("contribution amount must be >= 0")
        if self.paid_on is not None and self.periods_covered < 1:
            raise ValueError("periods_covered must be >= 1 for a paid contribution")

    @property
    def is_paid(self) -> bool:
        return self.paid_on is not None

    @property
    def display_note(self) -> str:
        if self.note:
            return self.note
        if self.payment_method is not None:
            return f"Paid via {self.payment_method.value}"
        return ""

    def with_payment(
        self,
        paid_on: date,
        periods_covered: int,
        payment_method: PaymentMethod | None = None,
        amount: Decimal | None = None,
        note: str | None = None,
    ) -> "Contribution":
        return replace(
            self,
            paid_on=paid_on,
            periods_covered=periods_covered,
            payment_method=payment_method if payment_method is not None else self.payment_method,
            amount=amount if amount is not None else self.amount,
            note=note if note is not None else self.note,
        )


@dataclass(frozen=True)
class Charge:
    """Owner's payment to the provider. Never mutated."""
    charged_on: date
    periods_covered: int = 1
    payment_method: PaymentMethod | None = None
    note: str = ""
    subscription_id: int | None = None
    id: int | None = None


@dataclass(frozen=True)
class Subscription:
    """
    Recurring-payment subscription owned by a user.

    price / activation_date / renewal_date are mandatory once a subscription
    exists; the engine reports their absence as IncompleteSubscriptionError
    rather than trusting storage.
    """
    owner_id: int
    name: str
    price: Decimal | None
    cycle: CycleUnit
    activation_date: date | None
    renewal_date: date | None
    category: Category | None = None
    is_active: bool = True
    id: int | None = None
    contributions: tuple[Contribution, ...] = field(default_factory=tuple)
    charges: tuple[Charge, ...] = field(default_factory=tuple)

    @property
    def is_shared(self) -> bool:
        return bool(self.contributions)

    def with_renewal(self, renewal_date: date) -> "Subscription":
        return replace(self, renewal_date=renewal_date)

    def with_active(self, is_active: bool) -> "Subscription":
        return replace(self, is_active=is_active)

    def with_contributions(self, contributions) -> "Subscription":
        return replace(self, contributions=tuple(contributions))
