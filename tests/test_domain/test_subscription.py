"""Tests for subscription domain records."""
import pytest
from dataclasses import FrozenInstanceError
from datetime import date
from decimal import Decimal

from substracker.domain.cycle import CycleUnit
from substracker.domain.subscription import (
    Contribution, GuestContributor, PaymentMethod, RegisteredContributor, Subscription,
)


def _sub(**kw):
    fields = dict(
        owner_id=1, name="HBO Max", price=Decimal("9.99"), cycle=CycleUnit.MONTHLY,
        activation_date=date(2025, 1, 1), renewal_date=date(2025, 2, 1),
    )
    fields.update(kw)
    return Subscription(**fields)


class TestSubscription:
    def test_defaults(self):
        sub = _sub()
        assert sub.is_active is True
        assert sub.category is None
        assert sub.contributions == ()
        assert sub.is_shared is False

    def test_frozen(self):
        with pytest.raises(FrozenInstanceError):
            _sub().name = "x"

    def test_with_renewal_returns_new_record(self):
        sub = _sub()
        moved = sub.with_renewal(date(2025, 3, 1))
        assert moved.renewal_date == date(2025, 3, 1)
        assert sub.renewal_date == date(2025, 2, 1)

    def test_with_active(self):
        assert _sub().with_active(False).is_active is False

    def test_is_shared(self):
        c = Contribution(contributor=GuestContributor("Ana"), amount=Decimal("3"))
        assert _sub().with_contributions([c]).is_shared is True


class TestContribution:
    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError):
            Contribution(contributor=GuestContributor("Ana"), amount=Decimal("-1"))

    def test_paid_needs_a_period(self):
        with pytest.raises(ValueError):
            Contribution(
                contributor=GuestContributor("Ana"), amount=Decimal("1"),
                paid_on=date(2025, 1, 1), periods_covered=0,
            )

    def test_with_payment_replaces_state(self):
        c = Contribution(
            contributor=RegisteredContributor(2, "Lucía"), amount=Decimal("5"),
            payment_method=PaymentMethod.CASH, note="old",
        )
        paid = c.with_payment(paid_on=date(2025, 5, 1), periods_covered=2)
        assert paid.is_paid
        assert paid.periods_covered == 2
        assert paid.payment_method == PaymentMethod.CASH
        assert paid.note == "old"
        assert paid.amount == Decimal("5")
        assert not c.is_paid

    def test_display_note(self):
        c = Contribution(contributor=GuestContributor("Ana"), amount=Decimal("1"),
                         payment_method=PaymentMethod.MOBILE)
        assert c.display_note == "Paid via MOBILE"
        assert Contribution(contributor=GuestContributor("Ana"), amount=Decimal("1"),
                            note="January").display_note == "January"


class TestContributor:
    def test_registered_display_name(self):
        assert RegisteredContributor(7, "Marta").display_name == "Marta"
        assert RegisteredContributor(7).display_name == "#7"

    def test_guest_display_name(self):
        assert GuestContributor("Pablo").display_name == "Pablo"
