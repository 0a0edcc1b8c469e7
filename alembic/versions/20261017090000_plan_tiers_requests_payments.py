"""meal plan tiers, plan requests, recent meals, payment intents

Revision ID: 20261017090000
Revises: 20261001120000
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261017090000'
down_revision: Union[str, Sequence[str], None] = '20261001120000'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _user_fk():
    return sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)


def upgrade() -> None:
    with op.batch_alter_table('meal_plans') as batch_op:
        batch_op.add_column(sa.Column('is_premium', sa.Boolean(), nullable=False, server_default=sa.false()))
        batch_op.add_column(sa.Column('goal', sa.String(32), nullable=True))

    op.create_table(
        'recent_meals',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        _user_fk(),
        sa.Column('food_item_name', sa.String(255), nullable=False),
        sa.Column('meal_type', sa.String(16), nullable=False),
        *[
            sa.Column(name, sa.Float(), nullable=False, server_default='0')
            for name in ('calories', 'protein', 'carbs', 'fats')
        ],
        sa.Column('last_logged_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'food_item_name', name='uq_recent_meals_user_food'),
    )

    op.create_table(
        'meal_plan_requests',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        _user_fk(),
        sa.Column('dietary_preference', sa.String(255), nullable=False, server_default=''),
        sa.Column('comments', sa.Text(), nullable=False, server_default=''),
        sa.Column('status', sa.String(16), nullable=False, server_default='pending', index=True),
        sa.Column('meal_plan_id', sa.Integer(), sa.ForeignKey('meal_plans.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        'payment_intents',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        _user_fk(),
        sa.Column('plan', sa.String(16), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(8), nullable=False),
        sa.Column('client_secret', sa.String(255), nullable=False, unique=True),
        sa.Column('status', sa.String(16), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('confirmed_at', sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    op.drop_table('payment_intents')
    op.drop_table('meal_plan_requests')
    op.drop_table('recent_meals')
    with op.batch_alter_table('meal_plans') as batch_op:
        batch_op.drop_column('goal')
        batch_op.drop_column('is_premium')
