"""initial schema: users, challenges, nutrition, community

Revision ID: 20261001120000
Revises:
Create Date: 2026-10-01 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261001120000'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id():
    return sa.Column('id', sa.Integer(), primary_key=True, index=True)


def _user_fk(name='user_id'):
    return sa.Column(name, sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)


def _created_at():
    return sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now())


def _macros():
    return [
        sa.Column(name, sa.Float(), nullable=False, server_default='0')
        for name in ('calories', 'protein', 'carbs', 'fats')
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        _id(),
        sa.Column('email', sa.String(), nullable=False, unique=True, index=True),
        sa.Column('username', sa.String(), nullable=False, unique=True, index=True),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('role', sa.String(), nullable=False, server_default='user'),
        sa.Column('is_premium', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('profile_picture', sa.Text(), nullable=True),
        sa.Column('age', sa.Integer(), nullable=True),
        sa.Column('gender', sa.String(16), nullable=True),
        sa.Column('height', sa.Float(), nullable=True),
        sa.Column('weight', sa.Float(), nullable=True),
        sa.Column('activity_level', sa.String(32), nullable=True),
        sa.Column('goal', sa.String(32), nullable=True),
        _created_at(),
        sa.Column('last_active', sa.DateTime(timezone=True), nullable=True),
    )

    # Challenges
    op.create_table(
        'challenges',
        _id(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('content', sa.Text(), nullable=False, server_default=''),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('max_participants', sa.Integer(), nullable=True),
        sa.Column('difficulty', sa.String(32), nullable=False, server_default='beginner'),
        sa.Column('target_audience', sa.String(255), nullable=False, server_default=''),
        _created_at(),
    )
    op.create_table(
        'tasks',
        _id(),
        sa.Column('challenge_id', sa.Integer(), sa.ForeignKey('challenges.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('task_name', sa.String(255), nullable=False),
        sa.Column('task_description', sa.Text(), nullable=False, server_default=''),
        _created_at(),
    )
    op.create_table(
        'challenge_participants',
        _id(),
        sa.Column('challenge_id', sa.Integer(), sa.ForeignKey('challenges.id', ondelete='CASCADE'), nullable=False, index=True),
        _user_fk(),
        sa.Column('progress', sa.Text(), nullable=True),
        sa.Column('completion_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completion_notified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('joined_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('challenge_id', 'user_id', name='uq_challenge_participant'),
    )
    op.create_table(
        'challenge_submissions',
        _id(),
        _user_fk(),
        sa.Column('task_id', sa.Integer(), sa.ForeignKey('tasks.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('proof', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('status', sa.String(16), nullable=False, server_default='pending', index=True),
        sa.Column('submission_time', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'task_id', name='uq_submission_user_task'),
    )

    # Nutrition
    op.create_table(
        'daily_nutrition',
        _id(),
        _user_fk(),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('total_calories', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total_protein', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total_carbs', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total_fats', sa.Float(), nullable=False, server_default='0'),
        sa.Column('water_intake', sa.Integer(), nullable=False, server_default='0'),
        sa.UniqueConstraint('user_id', 'date', name='uq_daily_nutrition_user_date'),
    )
    op.create_table(
        'meals',
        _id(),
        sa.Column('nutrition_id', sa.Integer(), sa.ForeignKey('daily_nutrition.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('meal_type', sa.String(16), nullable=False),
        sa.Column('food_item_name', sa.String(255), nullable=False),
        *_macros(),
        _created_at(),
    )
    op.create_table(
        'recipe_meals',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('ingredients', sa.Text(), nullable=False, server_default=''),
        sa.Column('instructions', sa.Text(), nullable=False, server_default=''),
        sa.Column('image_base64', sa.Text(), nullable=True),
        *_macros(),
        _created_at(),
    )
    op.create_table(
        'meal_plans',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        _created_at(),
    )
    op.create_table(
        'meal_plan_meals',
        _id(),
        sa.Column('meal_plan_id', sa.Integer(), sa.ForeignKey('meal_plans.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('recipe_meal_id', sa.Integer(), sa.ForeignKey('recipe_meals.id', ondelete='CASCADE'), nullable=False, index=True),
    )

    # Community
    op.create_table(
        'articles',
        _id(),
        _user_fk(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('image_base64', sa.Text(), nullable=True),
        sa.Column('approval_status', sa.String(16), nullable=False, server_default='pending', index=True),
        _created_at(),
    )
    op.create_table(
        'moments',
        _id(),
        _user_fk(),
        sa.Column('content', sa.Text(), nullable=False, server_default=''),
        sa.Column('image_base64', sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_table(
        'moment_likes',
        _id(),
        sa.Column('moment_id', sa.Integer(), sa.ForeignKey('moments.id', ondelete='CASCADE'), nullable=False, index=True),
        _user_fk(),
        _created_at(),
        sa.UniqueConstraint('moment_id', 'user_id', name='uq_moment_like'),
    )
    op.create_table(
        'moment_comments',
        _id(),
        sa.Column('moment_id', sa.Integer(), sa.ForeignKey('moments.id', ondelete='CASCADE'), nullable=False, index=True),
        _user_fk(),
        sa.Column('content', sa.Text(), nullable=False),
        _created_at(),
    )
    op.create_table(
        'moment_reports',
        _id(),
        sa.Column('moment_id', sa.Integer(), sa.ForeignKey('moments.id', ondelete='CASCADE'), nullable=False, index=True),
        _user_fk('reporter_id'),
        sa.Column('reason', sa.Text(), nullable=False),
        _created_at(),
    )


def downgrade() -> None:
    for table in (
        'moment_reports', 'moment_comments', 'moment_likes', 'moments', 'articles',
        'meal_plan_meals', 'meal_plans', 'recipe_meals', 'meals', 'daily_nutrition',
        'challenge_submissions', 'challenge_participants', 'tasks', 'challenges',
        'users',
    ):
        op.drop_table(table)
