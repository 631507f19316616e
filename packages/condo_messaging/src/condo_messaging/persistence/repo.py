"""
Condo Repository

Repository pattern for the inbound pipeline's database operations.
Every query is scoped by tenant_id.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import Text, cast, or_
from sqlalchemy.orm import Session

from condo_messaging.contracts.payloads import (
    Channel,
    ClassificationResult,
    MaintenanceStatus,
    SenderType,
)
from condo_messaging.persistence.models import (
    Building,
    BuildingAdmin,
    Conversation,
    ConversationStatus,
    KnowledgeEntry,
    MaintenanceRequest,
    Message,
    Notification,
    Resident,
    Unit,
    utcnow,
)


class CondoRepository:
    """Repository for condo messaging database operations."""

    def __init__(self, db: Session):
        self.db = db

    # =========================================================================
    # Buildings
    # =========================================================================

    def get_building(self, building_id: UUID) -> Building | None:
        return self.db.query(Building).filter(Building.id == building_id).first()

    def get_building_by_number(self, number: str) -> Building | None:
        """Get the building that owns an inbound WhatsApp or SMS number."""
        return (
            self.db.query(Building)
            .filter(
                or_(
                    Building.whatsapp_business_number == number,
                    Building.sms_number == number,
                )
            )
            .first()
        )

    # =========================================================================
    # Residents and units
    # =========================================================================

    def find_residents_by_contact(self, tenant_id: UUID, number: str) -> list[Resident]:
        """
        Find active residents whose phone or WhatsApp number matches.

        Returns at most two rows: enough for the caller to tell a unique
        match from an ambiguous one.
        """
        return (
            self.db.query(Resident)
            .filter(
                Resident.tenant_id == tenant_id,
                Resident.is_active == True,  # noqa: E712
                or_(Resident.phone == number, Resident.whatsapp_number == number),
            )
            .limit(2)
            .all()
        )

    def get_resident(self, tenant_id: UUID, resident_id: UUID) -> Resident | None:
        return (
            self.db.query(Resident)
            .filter(Resident.tenant_id == tenant_id, Resident.id == resident_id)
            .first()
        )

    def get_unit(self, tenant_id: UUID, unit_id: UUID) -> Unit | None:
        return (
            self.db.query(Unit)
            .filter(Unit.tenant_id == tenant_id, Unit.id == unit_id)
            .first()
        )

    def get_unit_for_resident(self, tenant_id: UUID, resident: Resident) -> Unit | None:
        """Get the resident's unit, falling back to units they own or rent."""
        if resident.unit_id:
            unit = self.get_unit(tenant_id, resident.unit_id)
            if unit:
                return unit
        return (
            self.db.query(Unit)
            .filter(
                Unit.tenant_id == tenant_id,
                or_(Unit.owner_id == resident.id, Unit.current_renter_id == resident.id),
            )
            .first()
        )

    # =========================================================================
    # Conversations
    # =========================================================================

    def get_active_conversation(
        self,
        tenant_id: UUID,
        resident_id: UUID,
        channel: Channel,
    ) -> Conversation | None:
        return (
            self.db.query(Conversation)
            .filter(
                Conversation.tenant_id == tenant_id,
                Conversation.resident_id == resident_id,
                Conversation.channel == channel.value,
                Conversation.status == ConversationStatus.ACTIVE.value,
            )
            .first()
        )

    def create_conversation(
        self,
        tenant_id: UUID,
        resident_id: UUID,
        channel: Channel,
    ) -> Conversation:
        """Create and flush an active conversation; raises IntegrityError on a race."""
        conversation = Conversation(
            tenant_id=tenant_id,
            resident_id=resident_id,
            channel=channel.value,
            status=ConversationStatus.ACTIVE.value,
            last_message_at=utcnow(),
        )
        self.db.add(conversation)
        self.db.flush()
        return conversation

    def touch_conversation(
        self,
        conversation: Conversation,
        timestamp: datetime | None = None,
    ) -> None:
        """Bump last-activity timestamp."""
        now = timestamp or utcnow()
        conversation.last_message_at = now
        conversation.updated_at = now

    def list_conversations(
        self,
        tenant_id: UUID,
        status: ConversationStatus | None = None,
        limit: int = 50,
    ) -> list[Conversation]:
        """List conversations for a tenant, most recent first."""
        query = self.db.query(Conversation).filter(Conversation.tenant_id == tenant_id)

        if status:
            query = query.filter(Conversation.status == status.value)

        return query.order_by(Conversation.last_message_at.desc()).limit(limit).all()

    # =========================================================================
    # Messages
    # =========================================================================

    def is_message_processed(self, tenant_id: UUID, provider_message_sid: str) -> bool:
        """Check if a provider SID has already been stored for this tenant."""
        return (
            self.db.query(Message.id)
            .filter(
                Message.tenant_id == tenant_id,
                Message.provider_message_sid == provider_message_sid,
            )
            .first()
            is not None
        )

    def create_message(
        self,
        tenant_id: UUID,
        conversation_id: UUID,
        sender_type: SenderType,
        content: str,
        channel: Channel,
        classification: ClassificationResult | None = None,
        provider_message_sid: str | None = None,
        media: list[dict[str, Any]] | None = None,
    ) -> Message:
        """Append a message. Classification fields are only set for inbound rows."""
        message = Message(
            tenant_id=tenant_id,
            conversation_id=conversation_id,
            sender_type=sender_type.value,
            content=content,
            channel=channel.value,
            provider_message_sid=provider_message_sid,
            media=media or [],
        )
        if classification is not None:
            message.intent = classification.intent.value
            message.priority = classification.priority.value
            message.route_to = classification.route_to.value
            message.requires_human_review = classification.requires_human_review
            message.classification = classification.to_metadata()
        self.db.add(message)
        return message

    def get_recent_messages(self, tenant_id: UUID, conversation_id: UUID, limit: int = 20) -> list[Message]:
        return (
            self.db.query(Message)
            .filter(Message.tenant_id == tenant_id, Message.conversation_id == conversation_id)
            .order_by(Message.created_at.desc())
            .limit(limit)
            .all()
        )

    # =========================================================================
    # Maintenance
    # =========================================================================

    def create_maintenance_request(
        self,
        tenant_id: UUID,
        resident_id: UUID,
        unit_id: UUID | None,
        conversation_id: UUID | None,
        category: str,
        title: str,
        description: str,
        priority: str,
        location: str | None = None,
    ) -> MaintenanceRequest:
        request = MaintenanceRequest(
            tenant_id=tenant_id,
            resident_id=resident_id,
            unit_id=unit_id,
            conversation_id=conversation_id,
            category=category,
            title=title,
            description=description,
            priority=priority,
            location=location,
            status=MaintenanceStatus.OPEN.value,
        )
        self.db.add(request)
        return request

    def list_active_maintenance_requests(
        self,
        tenant_id: UUID,
        resident_id: UUID,
    ) -> list[MaintenanceRequest]:
        """Open and in-progress requests raised by a resident."""
        return (
            self.db.query(MaintenanceRequest)
            .filter(
                MaintenanceRequest.tenant_id == tenant_id,
                MaintenanceRequest.resident_id == resident_id,
                MaintenanceRequest.status.in_(
                    [MaintenanceStatus.OPEN.value, MaintenanceStatus.IN_PROGRESS.value]
                ),
            )
            .all()
        )

    # =========================================================================
    # Knowledge base
    # =========================================================================

    def match_knowledge(
        self,
        tenant_id: UUID,
        embedding: list[float],
        threshold: float,
        count: int,
    ) -> list[tuple[KnowledgeEntry, float]]:
        """
        Cosine-similarity search over active entries with an embedding.

        Requires PostgreSQL with the vector extension.
        """
        similarity = 1 - KnowledgeEntry.embedding.cosine_distance(embedding)
        rows = (
            self.db.query(KnowledgeEntry, similarity.label("similarity"))
            .filter(
                KnowledgeEntry.tenant_id == tenant_id,
                KnowledgeEntry.is_active == True,  # noqa: E712
                KnowledgeEntry.embedding.isnot(None),
                similarity > threshold,
            )
            .order_by(similarity.desc())
            .limit(count)
            .all()
        )
        return [(row[0], float(row[1])) for row in rows]

    def search_knowledge_keywords(
        self,
        tenant_id: UUID,
        terms: list[str],
        count: int,
    ) -> list[KnowledgeEntry]:
        """Substring match of any term against question, answer or keywords."""
        if not terms:
            return []

        conditions = []
        for term in terms:
            pattern = f"%{term}%"
            conditions.extend(
                [
                    KnowledgeEntry.question.ilike(pattern),
                    KnowledgeEntry.answer.ilike(pattern),
                    cast(KnowledgeEntry.keywords, Text).ilike(pattern),
                ]
            )

        return (
            self.db.query(KnowledgeEntry)
            .filter(
                KnowledgeEntry.tenant_id == tenant_id,
                KnowledgeEntry.is_active == True,  # noqa: E712
                or_(*conditions),
            )
            .order_by(KnowledgeEntry.priority.desc())
            .limit(count)
            .all()
        )

    def get_entries_without_embedding(self, tenant_id: UUID | None = None) -> list[KnowledgeEntry]:
        query = self.db.query(KnowledgeEntry).filter(
            KnowledgeEntry.is_active == True,  # noqa: E712
            KnowledgeEntry.embedding.is_(None),
        )
        if tenant_id:
            query = query.filter(KnowledgeEntry.tenant_id == tenant_id)
        return query.all()

    # =========================================================================
    # Admins and notifications
    # =========================================================================

    def get_active_admins(self, tenant_id: UUID) -> list[BuildingAdmin]:
        return (
            self.db.query(BuildingAdmin)
            .filter(
                BuildingAdmin.tenant_id == tenant_id,
                BuildingAdmin.is_active == True,  # noqa: E712
            )
            .all()
        )

    def create_notification(
        self,
        tenant_id: UUID,
        type: str,
        title: str,
        body: str,
        priority: str | None = None,
        link: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> Notification:
        notification = Notification(
            tenant_id=tenant_id,
            type=type,
            title=title,
            body=body,
            priority=priority,
            link=link,
            data=data or {},
        )
        self.db.add(notification)
        return notification
