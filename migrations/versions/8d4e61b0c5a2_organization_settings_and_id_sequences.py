"""organization settings (id patterns) and id sequence counters

Revision ID: 8d4e61b0c5a2
Revises: 3f1a9c2d7b10
Create Date: 2025-01-13 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8d4e61b0c5a2'
down_revision: Union[str, Sequence[str], None] = '3f1a9c2d7b10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# (pattern column, counter column, default pattern)
ID_PATTERNS = (
    ('employee_id_pattern', 'employee_id_sequence', '{ORG}-EMP-{YEAR}-{SEQUENCE:5}'),
    ('payroll_id_pattern', 'payroll_id_sequence', '{ORG}-PAY-{YEAR}{MONTH}-{SEQUENCE:4}'),
    ('leave_id_pattern', 'leave_id_sequence', '{ORG}-LV-{YEAR}-{SEQUENCE:4}'),
    ('expense_id_pattern', 'expense_id_sequence', '{ORG}-EXP-{YEAR}-{SEQUENCE:4}'),
    ('shift_id_pattern', 'shift_id_sequence', '{ORG}-SH-{YYYYMMDD}-{SEQUENCE:3}'),
    ('department_code_pattern', 'department_code_sequence', '{ORG}-DEPT-{SEQUENCE:3}'),
)


def upgrade() -> None:
    pattern_cols = []
    for pattern_col, seq_col, default in ID_PATTERNS:
        pattern_cols.append(sa.Column(pattern_col, sa.String(length=100), nullable=False, server_default=default))
        pattern_cols.append(sa.Column(seq_col, sa.Integer(), nullable=False, server_default='0'))

    op.create_table(
        'organization_settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('organization_id', sa.Integer(), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        *pattern_cols,
        sa.Column('fiscal_year_start_month', sa.Integer(), nullable=False, server_default='4'),
        sa.Column('default_currency', sa.String(length=3), nullable=False, server_default='GBP'),
        sa.Column('timezone', sa.String(length=50), nullable=False, server_default='Europe/London'),
        sa.Column('date_format', sa.String(length=20), nullable=False, server_default='DD/MM/YYYY'),
        sa.Column('payroll_frequency', sa.String(length=20), nullable=False, server_default='Monthly'),
        sa.Column('payroll_day_of_month', sa.Integer(), nullable=False, server_default='28'),
        sa.Column('leave_year_start_month', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('carry_forward_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('max_carry_forward_days', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('standard_working_hours_per_day', sa.Numeric(4, 2), nullable=False, server_default='8.00'),
        sa.Column('standard_working_days_per_week', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('organization_id', name='uq_organization_settings_org'),
    )

    # year/month are 0 (not NULL) when unscoped so the unique key always collides
    op.create_table(
        'id_sequences',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('organization_id', sa.Integer(), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('sequence_type', sa.String(length=50), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('month', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('current_value', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('organization_id', 'sequence_type', 'year', 'month', name='uq_id_sequences_scope'),
    )


def downgrade() -> None:
    op.drop_table('id_sequences')
    op.drop_table('organization_settings')
