"""
Messaging Payload Models

Pydantic models and enums shared by every stage of the inbound pipeline.
The classifier's JSON contract uses camelCase keys; the models accept both
the aliases and the Python field names.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Channel(str, Enum):
    """Messaging transport a message arrived or departs on."""

    WHATSAPP = "whatsapp"
    SMS = "sms"


class Language(str, Enum):
    """Languages supported for prompts, canned replies and templates."""

    ES = "es"
    EN = "en"

    @classmethod
    def coerce(cls, value: "str | Language | None") -> "Language":
        """Map a stored preference to a supported language, defaulting to Spanish."""
        if isinstance(value, Language):
            return value
        if value and value.lower().startswith("en"):
            return cls.EN
        return cls.ES


class ResidentRole(str, Enum):
    OWNER = "owner"
    RENTER = "renter"


class SenderType(str, Enum):
    RESIDENT = "resident"
    AI = "ai"
    ADMIN = "admin"


class Intent(str, Enum):
    """Fixed intent catalogue offered to the classifier."""

    MAINTENANCE_REQUEST = "maintenance_request"
    STATUS_INQUIRY = "status_inquiry"
    GENERAL_QUESTION = "general_question"
    NOISE_COMPLAINT = "noise_complaint"
    VISITOR_ACCESS = "visitor_access"
    HOA_FEE_QUESTION = "hoa_fee_question"
    AMENITY_RESERVATION = "amenity_reservation"
    DOCUMENT_REQUEST = "document_request"
    EMERGENCY = "emergency"
    OTHER = "other"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EMERGENCY = "emergency"

    @property
    def rank(self) -> int:
        """Sort key, most urgent first."""
        return _PRIORITY_RANK[self]

    @property
    def is_elevated(self) -> bool:
        return self in (Priority.HIGH, Priority.EMERGENCY)


_PRIORITY_RANK = {
    Priority.EMERGENCY: 0,
    Priority.HIGH: 1,
    Priority.MEDIUM: 2,
    Priority.LOW: 3,
}


class RouteTo(str, Enum):
    """Who besides the administration should see a copy of the message."""

    ADMIN = "admin"
    OWNER = "owner"
    RENTER = "renter"
    BOTH = "both"


class MaintenanceCategory(str, Enum):
    """Categories offered to the classifier for maintenance requests."""

    PLUMBER = "plumber"
    ELECTRICIAN = "electrician"
    HANDYMAN = "handyman"
    AC_TECHNICIAN = "ac_technician"
    WASHER_DRYER_TECHNICIAN = "washer_dryer_technician"
    PAINTER = "painter"
    LOCKSMITH = "locksmith"
    PEST_CONTROL = "pest_control"
    CLEANING = "cleaning"
    SECURITY = "security"
    LANDSCAPING = "landscaping"
    ELEVATOR = "elevator"
    POOL_MAINTENANCE = "pool_maintenance"
    OTHER = "other"


DEFAULT_MAINTENANCE_CATEGORY = "general"


class MaintenanceStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class ClassificationResult(BaseModel):
    """
    Structured output of the Intent Classifier.

    Drives every downstream decision: maintenance creation, forwarding,
    escalation and the automatic reply. Not persisted on its own; its fields
    are copied onto the inbound message row.
    """

    model_config = ConfigDict(populate_by_name=True, use_enum_values=False)

    intent: Intent
    priority: Priority
    route_to: RouteTo = Field(..., alias="routeTo")
    suggested_response: str = Field("", alias="suggestedResponse")
    requires_human_review: bool = Field(..., alias="requiresHumanReview")
    extracted_data: dict[str, Any] = Field(default_factory=dict, alias="extractedData")

    @field_validator("intent", mode="before")
    @classmethod
    def _unknown_intent_is_other(cls, value: Any) -> Any:
        if isinstance(value, str) and value not in Intent._value2member_map_:
            return Intent.OTHER
        return value

    @field_validator("priority", "route_to", mode="before")
    @classmethod
    def _lowercase(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("suggested_response", mode="before")
    @classmethod
    def _none_response_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("extracted_data", mode="before")
    @classmethod
    def _none_data_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    def to_metadata(self) -> dict[str, Any]:
        """camelCase dict as stored alongside messages and shown in the dashboard."""
        return self.model_dump(mode="json", by_alias=True)


class MediaAttachment(BaseModel):
    """Media reference passed through verbatim from the transport."""

    url: str
    content_type: str | None = None


class InboundMessage(BaseModel):
    """
    Inbound webhook delivery after form parsing.

    Addresses are still raw here (e.g. ``whatsapp:+15551234567``); the
    Channel Normalizer turns them into a channel and bare numbers.
    """

    message_sid: str = Field(..., description="Provider message SID (idempotency key)")
    from_address: str = Field(..., description="Raw sender address")
    to_address: str = Field(..., description="Raw recipient address")
    body: str = Field("", description="Message text")
    profile_name: str | None = Field(None, description="Sender profile name, WhatsApp only")
    media: list[MediaAttachment] = Field(default_factory=list)
