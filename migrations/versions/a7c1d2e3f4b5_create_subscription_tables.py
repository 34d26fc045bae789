"""create users, subscriptions, contributions and charges tables

Revision ID: a7c1d2e3f4b5
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


revision = 'a7c1d2e3f4b5'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('name', sa.String(255), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'subscriptions',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('owner_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=True),
        sa.Column('cycle', sa.String(16), nullable=False),
        sa.Column('category', sa.String(16), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('activation_date', sa.Date(), nullable=True),
        sa.Column('renewal_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_subscriptions_owner_id', 'subscriptions', ['owner_id'])
    op.create_index('ix_subscriptions_renewal_date', 'subscriptions', ['renewal_date'])

    op.create_table(
        'subscription_contributions',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('subscription_id', sa.Integer(), sa.ForeignKey('subscriptions.id'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('guest_name', sa.String(255), nullable=True),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('paid_on', sa.Date(), nullable=True),
        sa.Column('payment_method', sa.String(16), nullable=True),
        sa.Column('periods_covered', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('subscription_id', 'user_id', name='uq_contribution_sub_user'),
        sa.CheckConstraint('(user_id IS NULL) <> (guest_name IS NULL)', name='ck_contribution_contributor'),
        sa.CheckConstraint('amount >= 0', name='ck_contribution_amount'),
    )
    op.create_index(
        'ix_subscription_contributions_subscription_id', 'subscription_contributions', ['subscription_id'],
    )

    op.create_table(
        'subscription_charges',
        sa.Column('id', sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column('subscription_id', sa.Integer(), sa.ForeignKey('subscriptions.id'), nullable=False),
        sa.Column('charged_on', sa.Date(), nullable=False),
        sa.Column('payment_method', sa.String(16), nullable=True),
        sa.Column('periods_covered', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_charge_sub_date', 'subscription_charges', ['subscription_id', 'charged_on'])


def downgrade():
    op.drop_table('subscription_charges')
    op.drop_table('subscription_contributions')
    op.drop_table('subscriptions')
    op.drop_table('users')
