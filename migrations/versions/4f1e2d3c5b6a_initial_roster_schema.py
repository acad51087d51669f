"""initial roster schema

Revision ID: 4f1e2d3c5b6a
Revises:
Create Date: 2026-01-04 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4f1e2d3c5b6a'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def _override_table(name: str, uq: str):
    op.create_table(
        name,
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('staff_id', sa.String(length=64),
                  sa.ForeignKey('staff.staff_id', ondelete='RESTRICT'), nullable=False),
        sa.Column('shift_type', sa.String(length=40), nullable=True),
        sa.Column('is_leave', sa.Boolean(), nullable=False),
        sa.Column('leave_type', sa.String(length=8), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('date', 'staff_id', name=uq),
    )
    op.create_index(f'ix_{name}_date', name, ['date'])
    op.create_index(f'ix_{name}_staff_id', name, ['staff_id'])


def upgrade() -> None:
    op.create_table(
        'staff',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('staff_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('role', sa.String(length=40), nullable=False),
        sa.Column('weekly_hours', sa.Integer(), nullable=False),
        sa.Column('default_off_days', sa.JSON(), nullable=False),
        sa.Column('al_entitlement', sa.Integer(), nullable=False),
        sa.Column('ml_entitlement', sa.Integer(), nullable=False),
        sa.Column('mat_entitlement', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('color_index', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_staff_staff_id', 'staff', ['staff_id'], unique=True)

    _override_table('schedule_overrides', 'uq_schedule_override_date_staff')
    _override_table('schedule_drafts', 'uq_schedule_draft_date_staff')

    op.create_table(
        'draft_months',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('year', 'month', name='uq_draft_month_year_month'),
    )

    op.create_table(
        'replacement_shifts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('original_staff_id', sa.String(length=64), nullable=False),
        sa.Column('temp_staff_name', sa.String(length=120), nullable=False),
        sa.Column('start_time', sa.String(length=5), nullable=False),
        sa.Column('end_time', sa.String(length=5), nullable=False),
        sa.Column('work_hours', sa.Float(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_replacement_shifts_date', 'replacement_shifts', ['date'])
    op.create_index('ix_replacement_shifts_original_staff_id', 'replacement_shifts', ['original_staff_id'])

    op.create_table(
        'public_holidays',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('date', sa.Date(), nullable=False, unique=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_public_holidays_year', 'public_holidays', ['year'])

    op.create_table(
        'leave_balances',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('staff_id', sa.String(length=64),
                  sa.ForeignKey('staff.staff_id', ondelete='RESTRICT'), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('al_entitlement', sa.Integer(), nullable=False),
        sa.Column('al_used', sa.Float(), nullable=False),
        sa.Column('rl_earned', sa.Float(), nullable=False),
        sa.Column('rl_used', sa.Float(), nullable=False),
        sa.Column('ml_entitlement', sa.Integer(), nullable=False),
        sa.Column('ml_used', sa.Float(), nullable=False),
        sa.Column('mat_entitlement', sa.Integer(), nullable=False),
        sa.Column('mat_used', sa.Float(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('staff_id', 'year', name='uq_leave_balance_staff_year'),
    )
    op.create_index('ix_leave_balances_staff_id', 'leave_balances', ['staff_id'])
    op.create_index('ix_leave_balances_year', 'leave_balances', ['year'])

    op.create_table(
        'leave_history',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('staff_id', sa.String(length=64),
                  sa.ForeignKey('staff.staff_id', ondelete='RESTRICT'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('leave_type', sa.String(length=8), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_leave_history_staff_id', 'leave_history', ['staff_id'])
    op.create_index('ix_leave_history_date', 'leave_history', ['date'])
    op.create_index('ix_leave_history_staff_date', 'leave_history', ['staff_id', 'date'])

    op.create_table(
        'maternity_leave_periods',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('staff_id', sa.String(length=64),
                  sa.ForeignKey('staff.staff_id', ondelete='RESTRICT'), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_maternity_leave_periods_staff_id', 'maternity_leave_periods', ['staff_id'])
    op.create_index('ix_maternity_staff_start', 'maternity_leave_periods', ['staff_id', 'start_date'])


def downgrade() -> None:
    op.drop_table('maternity_leave_periods')
    op.drop_table('leave_history')
    op.drop_table('leave_balances')
    op.drop_table('public_holidays')
    op.drop_table('replacement_shifts')
    op.drop_table('draft_months')
    op.drop_table('schedule_drafts')
    op.drop_table('schedule_overrides')
    op.drop_table('staff')
