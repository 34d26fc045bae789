"""
Subscription repository — maps ORM rows to immutable domain records and back.

The engine never sees ORM objects: loads return domain dataclasses with
contributions / charges eagerly attached, saves take a domain record and
return it with its database id filled in. Integrity errors from the database
propagate to the caller.
"""
from dataclasses import replace

from sqlalchemy.orm import Session

from substracker.domain.cycle import CycleUnit
from substracker.domain.errors import UnknownCycleError
from substracker.domain.subscription import (
    Category, Charge, Contribution, GuestContributor, PaymentMethod,
    RegisteredContributor, Subscription,
)
from substracker.infrastructure.db.models import (
    SubscriptionChargeModel, SubscriptionContributionModel, SubscriptionModel, User,
)


def _cycle(value):
    # Unknown stored values stay raw and surface as UnknownCycleError when computed.
    try:
        return CycleUnit.parse(value)
    except UnknownCycleError:
        return value


def _enum_or_none(enum_cls, value):
    return enum_cls(value) if value else None


def _to_contribution(row: SubscriptionContributionModel, names: dict[int, str]) -> Contribution:
    if row.user_id is not None:
        contributor = RegisteredContributor(row.user_id, names.get(row.user_id, ""))
    else:
        contributor = GuestContributor(row.guest_name)
    return Contribution(
        id=row.id,
        subscription_id=row.subscription_id,
        contributor=contributor,
        amount=row.amount,
        paid_on=row.paid_on,
        payment_method=_enum_or_none(PaymentMethod, row.payment_method),
        periods_covered=row.periods_covered,
        note=row.note or "",
    )


def _to_charge(row: SubscriptionChargeModel) -> Charge:
    return Charge(
        id=row.id,
        subscription_id=row.subscription_id,
        charged_on=row.charged_on,
        periods_covered=row.periods_covered,
        payment_method=_enum_or_none(PaymentMethod, row.payment_method),
        note=row.note or "",
    )


def _to_subscription(row: SubscriptionModel, contributions=(), charges=()) -> Subscription:
    return Subscription(
        id=row.id,
        owner_id=row.owner_id,
        name=row.name,
        price=row.price,
        cycle=_cycle(row.cycle),
        category=_enum_or_none(Category, row.category),
        is_active=row.is_active,
        activation_date=row.activation_date,
        renewal_date=row.renewal_date,
        contributions=tuple(contributions),
        charges=tuple(charges),
    )


class SubscriptionRepository:
    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Loads
    # ------------------------------------------------------------------

    def _user_names(self, user_ids) -> dict[int, str]:
        user_ids = list(set(user_ids))
        if not user_ids:
            return {}
        users = self.db.query(User).filter(User.id.in_(user_ids)).all()
        return {u.id: u.name or u.email for u in users}

    def _contributions_for(self, sub_ids: list[int]) -> dict[int, list[Contribution]]:
        if not sub_ids:
            return {}
        rows = self.db.query(SubscriptionContributionModel).filter(
            SubscriptionContributionModel.subscription_id.in_(sub_ids),
        ).order_by(SubscriptionContributionModel.id).all()
        names = self._user_names(r.user_id for r in rows if r.user_id is not None)
        result: dict[int, list[Contribution]] = {}
        for r in rows:
            result.setdefault(r.subscription_id, []).append(_to_contribution(r, names))
        return result

    def _charges_for(self, sub_ids: list[int]) -> dict[int, list[Charge]]:
        if not sub_ids:
            return {}
        rows = self.db.query(SubscriptionChargeModel).filter(
            SubscriptionChargeModel.subscription_id.in_(sub_ids),
        ).order_by(SubscriptionChargeModel.charged_on, SubscriptionChargeModel.id).all()
        result: dict[int, list[Charge]] = {}
        for r in rows:
            result.setdefault(r.subscription_id, []).append(_to_charge(r))
        return result

    def load_subscriptions_by_owner(
        self,
        owner_id: int,
        search: str | None = None,
        category: Category | None = None,
        is_active: bool | None = None,
    ) -> list[Subscription]:
        """Owner's subscriptions ordered by name; optional filters are ANDed."""
        q = self.db.query(SubscriptionModel).filter(SubscriptionModel.owner_id == owner_id)
        if search:
            q = q.filter(SubscriptionModel.name.icontains(search.strip(), autoescape=True))
        if category is not None:
            q = q.filter(SubscriptionModel.category == category.value)
        if is_active is not None:
            q = q.filter(SubscriptionModel.is_active == is_active)
        rows = q.order_by(SubscriptionModel.name, SubscriptionModel.id).all()
        sub_ids = [r.id for r in rows]
        contributions = self._contributions_for(sub_ids)
        charges = self._charges_for(sub_ids)
        return [
            _to_subscription(r, contributions.get(r.id, []), charges.get(r.id, []))
            for r in rows
        ]

    def get_subscription(self, subscription_id: int, owner_id: int | None = None) -> Subscription | None:
        q = self.db.query(SubscriptionModel).filter(SubscriptionModel.id == subscription_id)
        if owner_id is not None:
            q = q.filter(SubscriptionModel.owner_id == owner_id)
        row = q.first()
        if not row:
            return None
        return _to_subscription(
            row,
            self._contributions_for([row.id]).get(row.id, []),
            self._charges_for([row.id]).get(row.id, []),
        )

    def load_contributions(self, subscription_id: int) -> list[Contribution]:
        return self._contributions_for([subscription_id]).get(subscription_id, [])

    def get_contribution(self, contribution_id: int) -> Contribution | None:
        row = self.db.get(SubscriptionContributionModel, contribution_id)
        if not row:
            return None
        names = self._user_names([row.user_id] if row.user_id is not None else [])
        return _to_contribution(row, names)

    def user_exists(self, user_id: int) -> bool:
        return self.db.get(User, user_id) is not None

    # ------------------------------------------------------------------
    # Saves (flush only; the calling use case commits)
    # ------------------------------------------------------------------

    def save_subscription(self, sub: Subscription) -> Subscription:
        row = self.db.get(SubscriptionModel, sub.id) if sub.id is not None else None
        if row is None:
            row = SubscriptionModel(owner_id=sub.owner_id)
            self.db.add(row)
        row.name = sub.name
        row.price = sub.price
        row.cycle = sub.cycle.value if isinstance(sub.cycle, CycleUnit) else sub.cycle
        row.category = sub.category.value if sub.category else None
        row.is_active = sub.is_active
        row.activation_date = sub.activation_date
        row.renewal_date = sub.renewal_date
        self.db.flush()
        return replace(sub, id=row.id)

    def save_contribution(self, contribution: Contribution) -> Contribution:
        row = None
        if contribution.id is not None:
            row = self.db.get(SubscriptionContributionModel, contribution.id)
        if row is None:
            row = SubscriptionContributionModel(subscription_id=contribution.subscription_id)
            self.db.add(row)
        contributor = contribution.contributor
        if isinstance(contributor, RegisteredContributor):
            row.user_id, row.guest_name = contributor.user_id, None
        else:
            row.user_id, row.guest_name = None, contributor.name
        row.amount = contribution.amount
        row.paid_on = contribution.paid_on
        row.payment_method = contribution.payment_method.value if contribution.payment_method else None
        row.periods_covered = contribution.periods_covered
        row.note = contribution.note or None
        self.db.flush()
        return replace(contribution, id=row.id)

    def save_charge(self, charge: Charge) -> Charge:
        row = SubscriptionChargeModel(
            subscription_id=charge.subscription_id,
            charged_on=charge.charged_on,
            payment_method=charge.payment_method.value if charge.payment_method else None,
            periods_covered=charge.periods_covered,
            note=charge.note or None,
        )
        self.db.add(row)
        self.db.flush()
        return replace(charge, id=row.id)

    # ------------------------------------------------------------------
    # Deletes
    # ------------------------------------------------------------------

    def delete_contribution(self, contribution_id: int) -> None:
        self.db.query(SubscriptionContributionModel).filter(
            SubscriptionContributionModel.id == contribution_id,
        ).delete()
        self.db.flush()

    def delete_subscription(self, subscription_id: int) -> None:
        """Remove contributions and charges first, then the subscription."""
        self.db.query(SubscriptionContributionModel).filter(
            SubscriptionContributionModel.subscription_id == subscription_id,
        ).delete()
        self.db.query(SubscriptionChargeModel).filter(
            SubscriptionChargeModel.subscription_id == subscription_id,
        ).delete()
        self.db.query(SubscriptionModel).filter(
            SubscriptionModel.id == subscription_id,
        ).delete()
        self.db.flush()
