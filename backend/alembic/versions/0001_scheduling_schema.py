"""scheduling schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa


revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'organization_settings',
        sa.Column('organization_id', sa.Integer(), autoincrement=False, primary_key=True),
        sa.Column('utc_offset_minutes', sa.Integer(), nullable=False, server_default=sa.text('-180')),
        sa.Column('default_slot_minutes', sa.Integer(), nullable=False, server_default=sa.text('30')),
        sa.Column('default_duration_minutes', sa.Integer(), nullable=False, server_default=sa.text('30')),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table(
        'salespeople',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text()),
        sa.Column('whatsapp', sa.Text()),
        sa.Column('target_share_percent', sa.Float(), nullable=False, server_default=sa.text('50')),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('leads_received_in_cycle', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint('leads_received_in_cycle >= 0', name='ck_salespeople_counter_non_negative'),
        sa.CheckConstraint('target_share_percent >= 0', name='ck_salespeople_share_non_negative'),
    )
    op.create_index('idx_salespeople_org_active', 'salespeople', ['organization_id', 'active'])

    op.create_table(
        'availability_rules',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column(
            'salesperson_id', sa.Integer(),
            sa.ForeignKey('salespeople.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.Text(), nullable=False),
        sa.Column('end_time', sa.Text(), nullable=False),
        sa.Column('slot_minutes', sa.Integer(), nullable=False, server_default=sa.text('30')),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint('day_of_week BETWEEN 0 AND 6', name='ck_availability_rules_day'),
        sa.CheckConstraint('start_time < end_time', name='ck_availability_rules_window'),
        sa.CheckConstraint('slot_minutes > 0', name='ck_availability_rules_slot'),
    )
    op.create_index('idx_availability_rules_sp_day', 'availability_rules', ['salesperson_id', 'day_of_week'])

    op.create_table(
        'blackouts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column(
            'salesperson_id', sa.Integer(),
            sa.ForeignKey('salespeople.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('starts_at', sa.DateTime(), nullable=False),
        sa.Column('ends_at', sa.DateTime(), nullable=False),
        sa.Column('reason', sa.Text()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint('starts_at < ends_at', name='ck_blackouts_window'),
    )
    op.create_index('idx_blackouts_sp_range', 'blackouts', ['salesperson_id', 'starts_at', 'ends_at'])

    op.create_table(
        'appointments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column(
            'salesperson_id', sa.Integer(),
            sa.ForeignKey('salespeople.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('lead_id', sa.Text()),
        sa.Column('scheduled_at', sa.DateTime(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False, server_default=sa.text('30')),
        sa.Column('notes', sa.Text()),
        sa.Column('status', sa.Text(), nullable=False, server_default=sa.text("'scheduled'")),
        sa.Column('cancel_reason', sa.Text()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint('duration_minutes > 0', name='ck_appointments_duration'),
    )
    op.create_index(
        'uq_appointments_sp_slot_active',
        'appointments',
        ['salesperson_id', 'scheduled_at'],
        unique=True,
        sqlite_where=sa.text("status != 'cancelled'"),
        postgresql_where=sa.text("status != 'cancelled'"),
    )
    op.create_index('idx_appointments_org_scheduled', 'appointments', ['organization_id', 'scheduled_at'])
    op.create_index('idx_appointments_lead', 'appointments', ['organization_id', 'lead_id'])


def downgrade() -> None:
    op.drop_table('appointments')
    op.drop_table('blackouts')
    op.drop_table('availability_rules')
    op.drop_table('salespeople')
    op.drop_table('organization_settings')
