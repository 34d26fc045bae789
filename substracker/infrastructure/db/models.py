"""
SQLAlchemy ORM models
"""
from decimal import Decimal
from datetime import date as date_type
from sqlalchemy import (
    String, DateTime, Integer, Text, TIMESTAMP, Date, func, Boolean, Numeric,
    ForeignKey, UniqueConstraint, CheckConstraint, Index,
)
from sqlalchemy.orm import Mapped, mapped_column

from substracker.infrastructure.db.session import Base


class User(Base):
    """Registered identity: subscription owners and registered contributors"""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="", server_default="")

    created_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )


class SubscriptionModel(Base):
    """Recurring-payment subscription owned by a user"""
    __tablename__ = "subscriptions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # price / dates are required by the use cases; legacy rows may lack them
    price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    cycle: Mapped[str] = mapped_column(String(16), nullable=False)  # MONTHLY, QUARTERLY, YEARLY
    category: Mapped[str | None] = mapped_column(String(16), nullable=True)  # LEISURE, HOME, WORK, HEALTH, EDUCATION
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")

    activation_date: Mapped[date_type | None] = mapped_column(Date, nullable=True)
    renewal_date: Mapped[date_type | None] = mapped_column(Date, nullable=True, index=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class SubscriptionContributionModel(Base):
    """Latest payment state of one contributor (registered user XOR guest name)"""
    __tablename__ = "subscription_contributions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    subscription_id: Mapped[int] = mapped_column(
        ForeignKey("subscriptions.id"), nullable=False, index=True,
    )
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    guest_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    paid_on: Mapped[date_type | None] = mapped_column(Date, nullable=True)  # NULL = pledged, not paid
    payment_method: Mapped[str | None] = mapped_column(String(16), nullable=True)
    periods_covered: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("subscription_id", "user_id", name="uq_contribution_sub_user"),
        CheckConstraint(
            "(user_id IS NULL) <> (guest_name IS NULL)",
            name="ck_contribution_contributor",
        ),
        CheckConstraint("amount >= 0", name="ck_contribution_amount"),
    )


class SubscriptionChargeModel(Base):
    """Owner's payment to the provider (append-only)"""
    __tablename__ = "subscription_charges"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    subscription_id: Mapped[int] = mapped_column(
        ForeignKey("subscriptions.id"), nullable=False,
    )
    charged_on: Mapped[date_type] = mapped_column(Date, nullable=False)
    payment_method: Mapped[str | None] = mapped_column(String(16), nullable=True)
    periods_covered: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_charge_sub_date", "subscription_id", "charged_on"),
    )
