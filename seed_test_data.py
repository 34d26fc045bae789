"""
Seed demo subscriptions for user id=1 (creates the user if missing).
Run:  python seed_test_data.py
"""
from datetime import date
from decimal import Decimal

# ── bootstrap ────────────────────────────────────────────────────
from substracker.infrastructure.db.session import get_session_factory
from substracker.infrastructure.db.models import User, SubscriptionModel
from substracker.domain.cycle import CycleUnit
from substracker.domain.subscription import (
    Category, GuestContributor, PaymentMethod, RegisteredContributor,
)
from substracker.application.subscriptions import (
    AddContributorUseCase, CreateSubscriptionUseCase, RecordChargeUseCase,
)
from substracker.application.reporting import compute_aggregate_report
from substracker.infrastructure.db.repository import SubscriptionRepository
from substracker.utils.money import format_money

db = get_session_factory()()
OWNER_ID = 1
FRIEND_ID = 2

for uid, email, name in ((OWNER_ID, "owner@substracker.local", "Owner"),
                         (FRIEND_ID, "friend@substracker.local", "Lucía")):
    if not db.get(User, uid):
        db.add(User(id=uid, email=email, name=name))
db.commit()

existing = db.query(SubscriptionModel).filter_by(owner_id=OWNER_ID).count()
if existing:
    print(f"Owner already has {existing} subscription(s), nothing to seed")
else:
    create = CreateSubscriptionUseCase(db)

    netflix = create.execute(
        owner_id=OWNER_ID, name="Netflix 4K", price=Decimal("17.99"),
        cycle=CycleUnit.MONTHLY, category=Category.LEISURE,
        activation_date=date(2024, 1, 15), first_payment_date=date(2024, 1, 15),
    )
    AddContributorUseCase(db).execute(
        subscription_id=netflix, owner_id=OWNER_ID,
        contributor=RegisteredContributor(FRIEND_ID), amount=Decimal("6.00"),
        paid_on=date.today(), periods_covered=3, payment_method=PaymentMethod.MOBILE,
    )
    AddContributorUseCase(db).execute(
        subscription_id=netflix, owner_id=OWNER_ID,
        contributor=GuestContributor("Pablo"), amount=Decimal("6.00"),
    )

    office = create.execute(
        owner_id=OWNER_ID, name="Microsoft 365", price=Decimal("99.00"),
        cycle=CycleUnit.YEARLY, category=Category.WORK,
        activation_date=date(2023, 9, 1), first_payment_date=date(2023, 9, 1),
    )
    RecordChargeUseCase(db).execute(
        subscription_id=office, owner_id=OWNER_ID, charged_on=date(2025, 9, 1),
        periods_covered=1, payment_method=PaymentMethod.CARD,
    )

    create.execute(
        owner_id=OWNER_ID, name="Gym", price=Decimal("90.00"),
        cycle=CycleUnit.QUARTERLY, category=Category.HEALTH,
        activation_date=date(2025, 2, 1), first_payment_date=date(2025, 2, 1),
    )
    print("Seeded 3 subscriptions")

report = compute_aggregate_report(SubscriptionRepository(db).load_subscriptions_by_owner(OWNER_ID))
print(f"Monthly spend:   {format_money(report.total_monthly_spend)}")
print(f"Monthly savings: {format_money(report.total_monthly_savings)}")
print(f"Annual:          {format_money(report.annual_projection)}")

db.close()
