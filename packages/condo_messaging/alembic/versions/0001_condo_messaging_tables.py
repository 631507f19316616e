"""Condo Messaging Tables

Revision ID: 0001_condo_messaging
Revises:
Create Date: 2026-10-17

Creates the tables used by the inbound messaging pipeline:
- buildings, residents, units
- conversations, messages
- maintenance_requests
- knowledge_entries (with pgvector embeddings)
- building_admins, notifications
"""

from alembic import op
import sqlalchemy as sa
from pgvector.sqlalchemy import Vector
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision = '0001_condo_messaging'
down_revision = None
branch_labels = None
depends_on = None


def _base_columns(tenant_scoped=True):
    columns = [
        sa.Column('id', UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
    ]
    if tenant_scoped:
        columns.append(sa.Column('tenant_id', UUID(as_uuid=True), nullable=False))
    columns.extend([
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ])
    return columns


def upgrade():
    op.execute('CREATE EXTENSION IF NOT EXISTS vector')

    # =========================================================================
    # BUILDINGS
    # =========================================================================

    op.create_table(
        'buildings',
        *_base_columns(tenant_scoped=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('whatsapp_business_number', sa.String(20), nullable=True),
        sa.Column('sms_number', sa.String(20), nullable=True),
        sa.Column('preferred_language', sa.String(5), server_default='es', nullable=False),
        sa.Column('subscription_tier', sa.String(20), server_default='basic', nullable=False),
        sa.Column('subscription_status', sa.String(20), server_default='active', nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('whatsapp_business_number', name='uq_buildings_whatsapp_number'),
        sa.UniqueConstraint('sms_number', name='uq_buildings_sms_number'),
    )

    # =========================================================================
    # RESIDENTS AND UNITS
    # =========================================================================

    op.create_table(
        'residents',
        *_base_columns(),
        sa.Column('unit_id', UUID(as_uuid=True), nullable=True),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), server_default='', nullable=False),
        sa.Column('role', sa.String(10), nullable=False),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('whatsapp_number', sa.String(20), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('preferred_language', sa.String(5), server_default='es', nullable=False),
        sa.Column('opt_in_whatsapp', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('opt_in_sms', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('opt_in_email', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['buildings.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('tenant_id', 'phone', name='uq_residents_tenant_phone'),
        sa.UniqueConstraint('tenant_id', 'whatsapp_number', name='uq_residents_tenant_whatsapp'),
    )
    op.create_index('ix_residents_tenant_id', 'residents', ['tenant_id'])
    op.create_index('ix_residents_unit_id', 'residents', ['unit_id'])

    op.create_table(
        'units',
        *_base_columns(),
        sa.Column('unit_number', sa.String(20), nullable=False),
        sa.Column('owner_id', UUID(as_uuid=True), nullable=False),
        sa.Column('current_renter_id', UUID(as_uuid=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['buildings.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('tenant_id', 'unit_number', name='uq_units_tenant_number'),
    )
    op.create_index('ix_units_tenant_id', 'units', ['tenant_id'])

    # =========================================================================
    # CONVERSATIONS AND MESSAGES
    # =========================================================================

    op.create_table(
        'conversations',
        *_base_columns(),
        sa.Column('resident_id', UUID(as_uuid=True), nullable=False),
        sa.Column('channel', sa.String(10), nullable=False),
        sa.Column('status', sa.String(20), server_default='active', nullable=False),
        sa.Column('last_message_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['buildings.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_conversations_tenant_id', 'conversations', ['tenant_id'])
    op.create_index(
        'uq_conversations_active_thread',
        'conversations',
        ['tenant_id', 'resident_id', 'channel'],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
    )
    op.create_index('idx_conversations_tenant_last_message', 'conversations', ['tenant_id', 'last_message_at'])

    op.create_table(
        'messages',
        *_base_columns(),
        sa.Column('conversation_id', UUID(as_uuid=True), nullable=False),
        sa.Column('sender_type', sa.String(10), nullable=False),
        sa.Column('content', sa.Text(), server_default='', nullable=False),
        sa.Column('channel', sa.String(10), nullable=False),
        sa.Column('provider_message_sid', sa.String(64), nullable=True),
        sa.Column('intent', sa.String(40), nullable=True),
        sa.Column('priority', sa.String(10), nullable=True),
        sa.Column('route_to', sa.String(10), nullable=True),
        sa.Column('requires_human_review', sa.Boolean(), nullable=True),
        sa.Column('classification', JSONB(), nullable=True),
        sa.Column('media', JSONB(), server_default='[]', nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversations.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('tenant_id', 'provider_message_sid', name='uq_messages_tenant_sid'),
    )
    op.create_index('ix_messages_tenant_id', 'messages', ['tenant_id'])
    op.create_index('ix_messages_conversation_id', 'messages', ['conversation_id'])
    op.create_index('idx_messages_conversation_created', 'messages', ['conversation_id', 'created_at'])

    # =========================================================================
    # MAINTENANCE REQUESTS
    # =========================================================================

    op.create_table(
        'maintenance_requests',
        *_base_columns(),
        sa.Column('unit_id', UUID(as_uuid=True), nullable=True),
        sa.Column('resident_id', UUID(as_uuid=True), nullable=False),
        sa.Column('conversation_id', UUID(as_uuid=True), nullable=True),
        sa.Column('category', sa.String(40), server_default='general', nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('priority', sa.String(10), server_default='medium', nullable=False),
        sa.Column('status', sa.String(20), server_default='open', nullable=False),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['buildings.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_maintenance_requests_tenant_id', 'maintenance_requests', ['tenant_id'])
    op.create_index('idx_maintenance_tenant_status', 'maintenance_requests', ['tenant_id', 'status'])
    op.create_index('idx_maintenance_tenant_resident', 'maintenance_requests', ['tenant_id', 'resident_id'])

    # =========================================================================
    # KNOWLEDGE BASE
    # =========================================================================

    op.create_table(
        'knowledge_entries',
        *_base_columns(),
        sa.Column('question', sa.Text(), nullable=False),
        sa.Column('answer', sa.Text(), nullable=False),
        sa.Column('category', sa.String(50), server_default='general', nullable=False),
        sa.Column('keywords', JSONB(), server_default='[]', nullable=False),
        sa.Column('priority', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('embedding', Vector(1536), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['buildings.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_knowledge_entries_tenant_id', 'knowledge_entries', ['tenant_id'])
    op.create_index('idx_knowledge_tenant_active', 'knowledge_entries', ['tenant_id', 'is_active'])
    op.create_index(
        'idx_knowledge_embedding_hnsw',
        'knowledge_entries',
        ['embedding'],
        postgresql_using='hnsw',
        postgresql_ops={'embedding': 'vector_cosine_ops'},
    )

    # =========================================================================
    # ADMINS AND NOTIFICATIONS
    # =========================================================================

    op.create_table(
        'building_admins',
        *_base_columns(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('preferred_language', sa.String(5), nullable=True),
        sa.Column('notify_emergency', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('notify_high', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('notify_maintenance', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('notify_general', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['buildings.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_building_admins_tenant_id', 'building_admins', ['tenant_id'])

    op.create_table(
        'notifications',
        *_base_columns(),
        sa.Column('type', sa.String(30), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('body', sa.Text(), server_default='', nullable=False),
        sa.Column('priority', sa.String(10), nullable=True),
        sa.Column('link', sa.String(255), nullable=True),
        sa.Column('data', JSONB(), server_default='{}', nullable=False),
        sa.Column('is_read', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['buildings.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_notifications_tenant_id', 'notifications', ['tenant_id'])
    op.create_index('idx_notifications_tenant_unread', 'notifications', ['tenant_id', 'is_read'])


def downgrade():
    op.drop_table('notifications')
    op.drop_table('building_admins')
    op.drop_table('knowledge_entries')
    op.drop_table('maintenance_requests')
    op.drop_table('messages')
    op.drop_table('conversations')
    op.drop_table('units')
    op.drop_table('residents')
    op.drop_table('buildings')
