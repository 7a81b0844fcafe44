"""Create provisioning tables

Revision ID: 3f1c9a7e2b40
Revises: 
Create Date: 2026-10-19 10:12:44.318205

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7e2b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'tenants',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('plan_id', sa.String(length=50), nullable=True, comment='Current subscription plan'),
        sa.Column('subscription_status', sa.String(length=50), nullable=False, server_default='active'),
        sa.Column('region', sa.String(length=2), nullable=False, server_default='US', comment='ISO country code'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'tenant_assistants',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('tenant_id', sa.String(length=255), nullable=False),
        sa.Column('external_voice_id', sa.String(length=255), nullable=False, comment='Voice AI assistant id'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('voice_cloning_enabled', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('custom_knowledge_base', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('max_minutes_per_call', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_assistant_tenant_status', 'tenant_assistants', ['tenant_id', 'status'], unique=False)
    op.create_index(op.f('ix_tenant_assistants_tenant_id'), 'tenant_assistants', ['tenant_id'], unique=False)

    op.create_table(
        'tenant_phone_numbers',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('tenant_id', sa.String(length=255), nullable=False),
        sa.Column('phone_number', sa.String(length=20), nullable=False, comment='Phone number (E.164 format)'),
        sa.Column('external_carrier_id', sa.String(length=255), nullable=True, comment='Carrier id, e.g. Twilio PN sid'),
        sa.Column('external_voice_id', sa.String(length=255), nullable=True, comment='Voice AI phone number id'),
        sa.Column('assigned_assistant_id', sa.String(length=255), nullable=True, comment='Voice AI assistant id routed to'),
        sa.Column('source', sa.String(length=20), nullable=False, server_default='carrier'),
        sa.Column('pool_entry_id', sa.Integer(), nullable=True),
        sa.Column('label', sa.String(length=100), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('released_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_phone_tenant_status', 'tenant_phone_numbers', ['tenant_id', 'status'], unique=False)
    op.create_index(op.f('ix_tenant_phone_numbers_tenant_id'), 'tenant_phone_numbers', ['tenant_id'], unique=False)

    op.create_table(
        'phone_number_pool',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('phone_number', sa.String(length=20), nullable=False, comment='Phone number (E.164 format)'),
        sa.Column('region', sa.String(length=2), nullable=False, comment='ISO country code'),
        sa.Column('carrier', sa.String(length=50), nullable=False, comment='Carrier name used when importing'),
        sa.Column('external_carrier_id', sa.String(length=255), nullable=True, comment='Carrier-side id (e.g. DID id)'),
        sa.Column('external_voice_id', sa.String(length=255), nullable=True, comment='Voice AI phone number id, set on first import'),
        sa.Column('assigned_tenant_id', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='available'),
        sa.Column('reserved_until', sa.DateTime(timezone=True), nullable=True),
        sa.Column('assigned_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('released_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('phone_number')
    )
    op.create_index('idx_pool_region_status', 'phone_number_pool', ['region', 'status'], unique=False)
    op.create_index(op.f('ix_phone_number_pool_assigned_tenant_id'), 'phone_number_pool', ['assigned_tenant_id'], unique=False)

    op.create_table(
        'number_assignment_history',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('pool_entry_id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.String(length=255), nullable=False),
        sa.Column('action', sa.String(length=20), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_number_assignment_history_pool_entry_id'), 'number_assignment_history', ['pool_entry_id'], unique=False)

    op.create_table(
        'provisioning_queue',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('tenant_id', sa.String(length=255), nullable=False),
        sa.Column('plan_id', sa.String(length=50), nullable=True),
        sa.Column('requested_count', sa.Integer(), nullable=False, comment='Numbers still to provision'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('next_attempt_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('orphaned_numbers', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_provisioning_queue_due', 'provisioning_queue', ['status', 'next_attempt_at'], unique=False)
    op.create_index(op.f('ix_provisioning_queue_tenant_id'), 'provisioning_queue', ['tenant_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_provisioning_queue_tenant_id'), table_name='provisioning_queue')
    op.drop_index('idx_provisioning_queue_due', table_name='provisioning_queue')
    op.drop_table('provisioning_queue')
    op.drop_index(op.f('ix_number_assignment_history_pool_entry_id'), table_name='number_assignment_history')
    op.drop_table('number_assignment_history')
    op.drop_index(op.f('ix_phone_number_pool_assigned_tenant_id'), table_name='phone_number_pool')
    op.drop_index('idx_pool_region_status', table_name='phone_number_pool')
    op.drop_table('phone_number_pool')
    op.drop_index(op.f('ix_tenant_phone_numbers_tenant_id'), table_name='tenant_phone_numbers')
    op.drop_index('idx_phone_tenant_status', table_name='tenant_phone_numbers')
    op.drop_table('tenant_phone_numbers')
    op.drop_index(op.f('ix_tenant_assistants_tenant_id'), table_name='tenant_assistants')
    op.drop_index('idx_assistant_tenant_status', table_name='tenant_assistants')
    op.drop_table('tenant_assistants')
    op.drop_table('tenants')
