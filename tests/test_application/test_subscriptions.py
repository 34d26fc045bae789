"""Tests for subscription use cases — create, charges, contributors, delete."""
import pytest
from datetime import date
from decimal import Decimal

from substracker.application.subscriptions import (
    AddContributorUseCase, CreateSubscriptionUseCase, DeleteSubscriptionUseCase,
    LogContributionPaymentUseCase, RecordChargeUseCase, RemoveContributorUseCase,
    SetSubscriptionActiveUseCase, SubscriptionNotFoundError, SubscriptionValidationError,
    UpdateSubscriptionUseCase,
)
from substracker.domain.contribution_status import ContributionStatus, classify_contribution
from substracker.domain.cycle import CycleUnit
from substracker.domain.subscription import (
    Category, GuestContributor, PaymentMethod, RegisteredContributor,
)
from substracker.infrastructure.db.models import (
    SubscriptionChargeModel, SubscriptionContributionModel, SubscriptionModel,
)
from substracker.infrastructure.db.repository import SubscriptionRepository

OWNER = 1
TODAY = date(2026, 3, 10)


@pytest.fixture
def subscription_id(db_session, owner):
    return CreateSubscriptionUseCase(db_session).execute(
        owner_id=OWNER,
        name="YouTube Premium",
        price=Decimal("18.00"),
        cycle=CycleUnit.MONTHLY,
        category=Category.LEISURE,
        activation_date=date(2026, 1, 20),
        first_payment_date=date(2026, 1, 20),
        today=TODAY,
    )


def _load(db, sub_id):
    return SubscriptionRepository(db).get_subscription(sub_id)


# ======================================================================
# 1. Create subscription
# ======================================================================

class TestCreateSubscription:
    def test_create_catches_up_renewal(self, db_session, subscription_id):
        sub = _load(db_session, subscription_id)
        assert sub.name == "YouTube Premium"
        assert sub.is_active
        assert sub.cycle is CycleUnit.MONTHLY
        assert sub.category is Category.LEISURE
        assert sub.activation_date == date(2026, 1, 20)
        # 20.01 -> 20.02 -> 20.03 (first date not before today)
        assert sub.renewal_date == date(2026, 3, 20)

    def test_future_first_payment_kept(self, db_session, owner):
        sub_id = CreateSubscriptionUseCase(db_session).execute(
            owner_id=OWNER, name="Gym", price=Decimal("90"), cycle="QUARTERLY",
            activation_date=date(2026, 3, 1), first_payment_date=date(2026, 4, 1), today=TODAY,
        )
        assert _load(db_session, sub_id).renewal_date == date(2026, 4, 1)

    def test_name_stripped(self, db_session, owner):
        sub_id = CreateSubscriptionUseCase(db_session).execute(
            owner_id=OWNER, name="  Spotify  ", price=Decimal("10.99"), cycle=CycleUnit.MONTHLY,
            activation_date=TODAY, first_payment_date=TODAY, today=TODAY,
        )
        assert _load(db_session, sub_id).name == "Spotify"

    def test_empty_name(self, db_session, owner):
        with pytest.raises(SubscriptionValidationError):
            CreateSubscriptionUseCase(db_session).execute(
                owner_id=OWNER, name="   ", price=Decimal("1"), cycle=CycleUnit.MONTHLY,
                activation_date=TODAY, first_payment_date=TODAY, today=TODAY,
            )

    @pytest.mark.parametrize("price", [Decimal("0"), Decimal("-5")])
    def test_price_must_be_positive(self, db_session, owner, price):
        with pytest.raises(SubscriptionValidationError):
            CreateSubscriptionUseCase(db_session).execute(
                owner_id=OWNER, name="X", price=price, cycle=CycleUnit.MONTHLY,
                activation_date=TODAY, first_payment_date=TODAY, today=TODAY,
            )

    def test_unknown_cycle(self, db_session, owner):
        with pytest.raises(SubscriptionValidationError):
            CreateSubscriptionUseCase(db_session).execute(
                owner_id=OWNER, name="X", price=Decimal("1"), cycle="WEEKLY",
                activation_date=TODAY, first_payment_date=TODAY, today=TODAY,
            )

    def test_first_payment_before_activation(self, db_session, owner):
        with pytest.raises(SubscriptionValidationError):
            CreateSubscriptionUseCase(db_session).execute(
                owner_id=OWNER, name="X", price=Decimal("1"), cycle=CycleUnit.MONTHLY,
                activation_date=date(2026, 2, 1), first_payment_date=date(2026, 1, 31), today=TODAY,
            )


# ======================================================================
# 2. Update / activate / delete
# ======================================================================

class TestUpdateSubscription:
    def test_update_fields(self, db_session, subscription_id):
        UpdateSubscriptionUseCase(db_session).execute(
            subscription_id, OWNER, name="YT Family", price=Decimal("25.99"), category=None,
        )
        sub = _load(db_session, subscription_id)
        assert sub.name == "YT Family"
        assert sub.price == Decimal("25.99")
        assert sub.category is None

    def test_renewal_before_activation_rejected(self, db_session, subscription_id):
        with pytest.raises(SubscriptionValidationError):
            UpdateSubscriptionUseCase(db_session).execute(
                subscription_id, OWNER, renewal_date=date(2025, 12, 1),
            )

    def test_other_owner_not_found(self, db_session, subscription_id):
        with pytest.raises(SubscriptionNotFoundError):
            UpdateSubscriptionUseCase(db_session).execute(subscription_id, 999, name="x")


class TestActivation:
    def test_pause_and_resume(self, db_session, subscription_id):
        SetSubscriptionActiveUseCase(db_session).execute(subscription_id, OWNER, False)
        assert _load(db_session, subscription_id).is_active is False
        SetSubscriptionActiveUseCase(db_session).execute(subscription_id, OWNER, True)
        assert _load(db_session, subscription_id).is_active is True

    def test_already_active(self, db_session, subscription_id):
        with pytest.raises(SubscriptionValidationError):
            SetSubscriptionActiveUseCase(db_session).execute(subscription_id, OWNER, True)


class TestDeleteSubscription:
    def test_delete_removes_history(self, db_session, subscription_id):
        AddContributorUseCase(db_session).execute(
            subscription_id, OWNER, GuestContributor("Pablo"), Decimal("5"),
        )
        RecordChargeUseCase(db_session).execute(subscription_id, OWNER, charged_on=TODAY)

        DeleteSubscriptionUseCase(db_session).execute(subscription_id, OWNER)

        assert db_session.query(SubscriptionModel).count() == 0
        assert db_session.query(SubscriptionContributionModel).count() == 0
        assert db_session.query(SubscriptionChargeModel).count() == 0


# ======================================================================
# 3. Charges
# ======================================================================

class TestRecordCharge:
    def test_charge_advances_renewal(self, db_session, subscription_id):
        new_date = RecordChargeUseCase(db_session).execute(
            subscription_id, OWNER, charged_on=date(2026, 3, 20),
            periods_covered=2, payment_method=PaymentMethod.CARD, note=" two months ",
        )
        assert new_date == date(2026, 5, 20)

        sub = _load(db_session, subscription_id)
        assert sub.renewal_date == date(2026, 5, 20)
        assert len(sub.charges) == 1
        charge = sub.charges[0]
        assert charge.periods_covered == 2
        assert charge.payment_method is PaymentMethod.CARD
        assert charge.note == "two months"

    def test_charges_are_appended(self, db_session, subscription_id):
        uc = RecordChargeUseCase(db_session)
        uc.execute(subscription_id, OWNER, charged_on=date(2026, 3, 20))
        uc.execute(subscription_id, OWNER, charged_on=date(2026, 4, 20))
        sub = _load(db_session, subscription_id)
        assert [c.charged_on for c in sub.charges] == [date(2026, 3, 20), date(2026, 4, 20)]
        assert sub.renewal_date == date(2026, 5, 20)

    def test_zero_periods_rejected(self, db_session, subscription_id):
        with pytest.raises(SubscriptionValidationError):
            RecordChargeUseCase(db_session).execute(
                subscription_id, OWNER, charged_on=TODAY, periods_covered=0,
            )

    def test_unknown_subscription(self, db_session, owner):
        with pytest.raises(SubscriptionNotFoundError):
            RecordChargeUseCase(db_session).execute(12345, OWNER, charged_on=TODAY)


# ======================================================================
# 4. Contributors
# ======================================================================

class TestContributors:
    def test_add_guest_pledge(self, db_session, subscription_id):
        cid = AddContributorUseCase(db_session).execute(
            subscription_id, OWNER, GuestContributor(" Pablo "), Decimal("6.00"),
        )
        c = SubscriptionRepository(db_session).get_contribution(cid)
        assert c.contributor == GuestContributor("Pablo")
        assert c.paid_on is None
        assert classify_contribution(c, CycleUnit.MONTHLY, TODAY) == ContributionStatus.PENDING

    def test_add_registered(self, db_session, subscription_id, friend):
        cid = AddContributorUseCase(db_session).execute(
            subscription_id, OWNER, RegisteredContributor(friend.id), Decimal("6.00"),
            paid_on=date(2026, 3, 1), periods_covered=1, payment_method=PaymentMethod.MOBILE,
        )
        c = SubscriptionRepository(db_session).get_contribution(cid)
        assert c.contributor.user_id == friend.id
        assert c.contributor.display_name == "Lucía"
        assert classify_contribution(c, CycleUnit.MONTHLY, TODAY) == ContributionStatus.UP_TO_DATE

    def test_registered_twice_rejected(self, db_session, subscription_id, friend):
        uc = AddContributorUseCase(db_session)
        uc.execute(subscription_id, OWNER, RegisteredContributor(friend.id), Decimal("1"))
        with pytest.raises(SubscriptionValidationError):
            uc.execute(subscription_id, OWNER, RegisteredContributor(friend.id), Decimal("1"))

    def test_owner_cannot_contribute(self, db_session, subscription_id):
        with pytest.raises(SubscriptionValidationError):
            AddContributorUseCase(db_session).execute(
                subscription_id, OWNER, RegisteredContributor(OWNER), Decimal("1"),
            )

    def test_unknown_user(self, db_session, subscription_id):
        with pytest.raises(SubscriptionNotFoundError):
            AddContributorUseCase(db_session).execute(
                subscription_id, OWNER, RegisteredContributor(77), Decimal("1"),
            )

    def test_empty_guest_name(self, db_session, subscription_id):
        with pytest.raises(SubscriptionValidationError):
            AddContributorUseCase(db_session).execute(
                subscription_id, OWNER, GuestContributor("  "), Decimal("1"),
            )

    def test_negative_amount(self, db_session, subscription_id):
        with pytest.raises(SubscriptionValidationError):
            AddContributorUseCase(db_session).execute(
                subscription_id, OWNER, GuestContributor("Ana"), Decimal("-1"),
            )

    def test_log_payment_updates_in_place(self, db_session, subscription_id):
        cid = AddContributorUseCase(db_session).execute(
            subscription_id, OWNER, GuestContributor("Ana"), Decimal("6.00"),
        )
        uc = LogContributionPaymentUseCase(db_session)
        uc.execute(subscription_id, OWNER, cid, paid_on=date(2026, 1, 1), periods_covered=1)
        uc.execute(
            subscription_id, OWNER, cid, paid_on=date(2026, 3, 1), periods_covered=3,
            payment_method=PaymentMethod.CASH, amount=Decimal("7.00"),
        )

        contributions = SubscriptionRepository(db_session).load_contributions(subscription_id)
        assert len(contributions) == 1
        c = contributions[0]
        assert c.id == cid
        assert c.paid_on == date(2026, 3, 1)
        assert c.periods_covered == 3
        assert c.amount == Decimal("7.00")
        assert c.payment_method is PaymentMethod.CASH

    def test_log_payment_unknown_contribution(self, db_session, subscription_id):
        with pytest.raises(SubscriptionNotFoundError):
            LogContributionPaymentUseCase(db_session).execute(
                subscription_id, OWNER, 999, paid_on=TODAY,
            )

    def test_remove_contributor(self, db_session, subscription_id):
        cid = AddContributorUseCase(db_session).execute(
            subscription_id, OWNER, GuestContributor("Ana"), Decimal("6.00"),
        )
        RemoveContributorUseCase(db_session).execute(subscription_id, OWNER, cid)
        assert SubscriptionRepository(db_session).load_contributions(subscription_id) == []
