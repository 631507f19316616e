"""
Condo Messaging Database Models

Tables read and written by the inbound pipeline. Every row except the
building itself carries tenant_id (the building id) and every query filters
on it.

Tables:
- buildings: Tenant accounts with one inbound number per channel
- residents: Owners and renters, unique per tenant by phone / WhatsApp number
- units: Unit occupancy (owner required, renter optional)
- conversations: One active thread per (tenant, resident, channel)
- messages: Append-only message log with classification metadata
- maintenance_requests: Requests raised from classified messages
- knowledge_entries: Building Q&A facts with embeddings for semantic search
- building_admins: Administrators and their alert preferences
- notifications: Dashboard notification rows
"""

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pgvector.sqlalchemy import Vector
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

CondoBase = declarative_base()

EMBEDDING_DIMENSIONS = 1536

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JsonColumn = JSON().with_variant(JSONB(), "postgresql")

ACTIVE_ONLY = text("status = 'active'")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConversationStatus(str, Enum):
    """Status of a conversation thread."""

    ACTIVE = "active"
    CLOSED = "closed"


class NotificationType(str, Enum):
    NEW_MESSAGE = "new_message"
    ESCALATION = "escalation"


class CondoModelMixin:
    """Common fields for all tables."""

    id = Column(Uuid, primary_key=True, default=uuid4)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class TenantScopedMixin(CondoModelMixin):
    tenant_id = Column(Uuid, nullable=False, index=True)


class Building(CondoBase, CondoModelMixin):
    """
    A condominium account. Its id is the tenant_id of every other row.

    Inbound webhooks are routed to a building by the recipient number.
    """

    __tablename__ = "buildings"

    name = Column(String(255), nullable=False)
    whatsapp_business_number = Column(String(20), nullable=True)  # E.164
    sms_number = Column(String(20), nullable=True)  # E.164
    preferred_language = Column(String(5), nullable=False, default="es")
    subscription_tier = Column(String(20), nullable=False, default="basic")
    subscription_status = Column(String(20), nullable=False, default="active")

    __table_args__ = (
        UniqueConstraint("whatsapp_business_number", name="uq_buildings_whatsapp_number"),
        UniqueConstraint("sms_number", name="uq_buildings_sms_number"),
    )


class Resident(CondoBase, TenantScopedMixin):
    """An owner or renter of a unit."""

    __tablename__ = "residents"

    unit_id = Column(Uuid, nullable=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, default="")
    role = Column(String(10), nullable=False)  # owner, renter
    phone = Column(String(20), nullable=True)
    whatsapp_number = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    preferred_language = Column(String(5), nullable=False, default="es")
    opt_in_whatsapp = Column(Boolean, nullable=False, default=True)
    opt_in_sms = Column(Boolean, nullable=False, default=True)
    opt_in_email = Column(Boolean, nullable=False, default=True)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("tenant_id", "phone", name="uq_residents_tenant_phone"),
        UniqueConstraint("tenant_id", "whatsapp_number", name="uq_residents_tenant_whatsapp"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Unit(CondoBase, TenantScopedMixin):
    """A unit with its owner and, optionally, its current renter."""

    __tablename__ = "units"

    unit_number = Column(String(20), nullable=False)
    owner_id = Column(Uuid, nullable=False)
    current_renter_id = Column(Uuid, nullable=True)

    __table_args__ = (
        UniqueConstraint("tenant_id", "unit_number", name="uq_units_tenant_number"),
    )


class Conversation(CondoBase, TenantScopedMixin):
    """
    A thread with one resident on one channel.

    At most one active row per (tenant, resident, channel); the partial
    unique index makes concurrent creation lose with an IntegrityError.
    """

    __tablename__ = "conversations"

    resident_id = Column(Uuid, nullable=False)
    channel = Column(String(10), nullable=False)  # whatsapp, sms
    status = Column(String(20), nullable=False, default=ConversationStatus.ACTIVE.value)
    last_message_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index(
            "uq_conversations_active_thread",
            "tenant_id",
            "resident_id",
            "channel",
            unique=True,
            postgresql_where=ACTIVE_ONLY,
            sqlite_where=ACTIVE_ONLY,
        ),
        Index("idx_conversations_tenant_last_message", "tenant_id", "last_message_at"),
    )


class Message(CondoBase, TenantScopedMixin):
    """
    Append-only message log.

    Inbound rows carry the classification; AI replies carry none.
    provider_message_sid is the idempotency key for webhook redeliveries.
    """

    __tablename__ = "messages"

    conversation_id = Column(Uuid, nullable=False, index=True)
    sender_type = Column(String(10), nullable=False)  # resident, ai, admin
    content = Column(Text, nullable=False, default="")
    channel = Column(String(10), nullable=False)
    provider_message_sid = Column(String(64), nullable=True)
    intent = Column(String(40), nullable=True)
    priority = Column(String(10), nullable=True)
    route_to = Column(String(10), nullable=True)
    requires_human_review = Column(Boolean, nullable=True)
    classification = Column(JsonColumn, nullable=True)  # Full ClassificationResult
    media = Column(JsonColumn, nullable=False, default=list)  # [{url, content_type}]

    __table_args__ = (
        UniqueConstraint("tenant_id", "provider_message_sid", name="uq_messages_tenant_sid"),
        Index("idx_messages_conversation_created", "conversation_id", "created_at"),
    )


class MaintenanceRequest(CondoBase, TenantScopedMixin):
    """Maintenance request raised from a classified inbound message."""

    __tablename__ = "maintenance_requests"

    unit_id = Column(Uuid, nullable=True)
    resident_id = Column(Uuid, nullable=False)
    conversation_id = Column(Uuid, nullable=True)
    category = Column(String(40), nullable=False, default="general")
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    location = Column(String(255), nullable=True)
    priority = Column(String(10), nullable=False, default="medium")
    status = Column(String(20), nullable=False, default="open")
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_maintenance_tenant_status", "tenant_id", "status"),
        Index("idx_maintenance_tenant_resident", "tenant_id", "resident_id"),
    )


class KnowledgeEntry(CondoBase, TenantScopedMixin):
    """Building-specific Q&A used to ground automatic replies."""

    __tablename__ = "knowledge_entries"

    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False)
    category = Column(String(50), nullable=False, default="general")
    keywords = Column(JsonColumn, nullable=False, default=list)  # list[str]
    priority = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    embedding = Column(Vector(EMBEDDING_DIMENSIONS), nullable=True)

    __table_args__ = (
        Index("idx_knowledge_tenant_active", "tenant_id", "is_active"),
    )


class BuildingAdmin(CondoBase, TenantScopedMixin):
    """Administrator contact with per-priority alert preferences."""

    __tablename__ = "building_admins"

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    preferred_language = Column(String(5), nullable=True)
    notify_emergency = Column(Boolean, nullable=False, default=True)
    notify_high = Column(Boolean, nullable=False, default=True)
    notify_maintenance = Column(Boolean, nullable=False, default=True)
    notify_general = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)


class Notification(CondoBase, TenantScopedMixin):
    """Dashboard notification row."""

    __tablename__ = "notifications"

    type = Column(String(30), nullable=False)
    title = Column(String(255), nullable=False)
    body = Column(Text, nullable=False, default="")
    priority = Column(String(10), nullable=True)
    link = Column(String(255), nullable=True)
    data = Column(JsonColumn, nullable=False, default=dict)
    is_read = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("idx_notifications_tenant_unread", "tenant_id", "is_read"),
    )
