"""
Condo Messaging Persistence

SQLAlchemy models and repository for the inbound pipeline.
"""

from condo_messaging.persistence.models import (
    Building,
    BuildingAdmin,
    CondoBase,
    Conversation,
    ConversationStatus,
    KnowledgeEntry,
    MaintenanceRequest,
    Message,
    Notification,
    NotificationType,
    Resident,
    Unit,
)
from condo_messaging.persistence.repo import CondoRepository

__all__ = [
    "Building",
    "BuildingAdmin",
    "CondoBase",
    "CondoRepository",
    "Conversation",
    "ConversationStatus",
    "KnowledgeEntry",
    "MaintenanceRequest",
    "Message",
    "Notification",
    "NotificationType",
    "Resident",
    "Unit",
]
