"""
Maintenance Extractor

Creates a maintenance request for every message classified as
``maintenance_request`` and builds the status summary sent back for
``status_inquiry`` messages.
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from condo_messaging.contracts.payloads import (
    DEFAULT_MAINTENANCE_CATEGORY,
    ClassificationResult,
    Intent,
    Language,
    Priority,
)
from condo_messaging.persistence.models import MaintenanceRequest
from condo_messaging.persistence.repo import CondoRepository
from condo_messaging.service.persister import best_effort
from condo_messaging.templates import (
    PRIORITY_LABELS,
    STATUS_FOOTER,
    STATUS_HEADER,
    STATUS_LABELS,
    STATUS_NONE,
)

logger = logging.getLogger(__name__)

STATUS_SUMMARY_LIMIT = 5
TITLE_MAX_LENGTH = 100

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _as_text(value) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _priority_rank(priority: str) -> int:
    try:
        return Priority(priority).rank
    except ValueError:
        return Priority.LOW.rank + 1


def _created_key(request: MaintenanceRequest) -> float:
    created = request.created_at or _EPOCH
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created.timestamp()


def sort_for_status(requests: list[MaintenanceRequest]) -> list[MaintenanceRequest]:
    """Most urgent first, then most recent first."""
    return sorted(requests, key=lambda r: (_priority_rank(r.priority), -_created_key(r)))


def format_status_summary(requests: list[MaintenanceRequest], language: Language) -> str:
    if not requests:
        return STATUS_NONE[language]

    shown = sort_for_status(requests)[:STATUS_SUMMARY_LIMIT]
    statuses = STATUS_LABELS[language]
    priorities = PRIORITY_LABELS[language]

    lines = [STATUS_HEADER[language].format(total=len(requests), shown=len(shown)), ""]
    for idx, request in enumerate(shown, start=1):
        lines.append(
            f"{idx}. {request.title} - {statuses.get(request.status, request.status)}"
            f" ({priorities.get(request.priority, request.priority)})"
        )
    lines.extend(["", STATUS_FOOTER[language]])
    return "\n".join(lines)


class MaintenanceExtractor:
    """Maintenance side effects of a classified message."""

    def __init__(self, repo: CondoRepository):
        self.repo = repo

    def maybe_create(
        self,
        classification: ClassificationResult,
        tenant_id: UUID,
        unit_id: UUID | None,
        resident_id: UUID,
        conversation_id: UUID | None,
        message_text: str,
    ) -> MaintenanceRequest | None:
        """
        Create an open maintenance request when the intent asks for one.

        No deduplication against existing open requests: every qualifying
        message produces a new row.
        """
        if classification.intent != Intent.MAINTENANCE_REQUEST:
            return None

        data = classification.extracted_data
        category = _as_text(data.get("maintenanceCategory")) or DEFAULT_MAINTENANCE_CATEGORY
        text = message_text.strip()

        request = best_effort(
            self.repo.db,
            "maintenance request",
            lambda: self.repo.create_maintenance_request(
                tenant_id=tenant_id,
                resident_id=resident_id,
                unit_id=unit_id,
                conversation_id=conversation_id,
                category=category,
                title=text[:TITLE_MAX_LENGTH] or category,
                description=text,
                priority=classification.priority.value,
                location=_as_text(data.get("location")),
            ),
            tenant_id=tenant_id,
            conversation_id=conversation_id,
        )

        if request is not None:
            logger.info(
                "Maintenance request created",
                extra={
                    "tenant_id": str(tenant_id),
                    "maintenance_request_id": str(request.id),
                    "category": category,
                    "priority": request.priority,
                },
            )
        return request

    def status_summary(self, tenant_id: UUID, resident_id: UUID, language: Language) -> str:
        """Localized summary of the resident's open and in-progress requests."""
        requests = self.repo.list_active_maintenance_requests(tenant_id, resident_id)
        return format_status_summary(requests, language)
