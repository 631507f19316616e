"""
Messaging Contracts

Enums and payload models shared across the pipeline.
"""

from condo_messaging.contracts.payloads import (
    DEFAULT_MAINTENANCE_CATEGORY,
    Channel,
    ClassificationResult,
    InboundMessage,
    Intent,
    Language,
    MaintenanceCategory,
    MaintenanceStatus,
    MediaAttachment,
    Priority,
    ResidentRole,
    RouteTo,
    SenderType,
)

__all__ = [
    "DEFAULT_MAINTENANCE_CATEGORY",
    "Channel",
    "ClassificationResult",
    "InboundMessage",
    "Intent",
    "Language",
    "MaintenanceCategory",
    "MaintenanceStatus",
    "MediaAttachment",
    "Priority",
    "ResidentRole",
    "RouteTo",
    "SenderType",
]
