"""
Escalation Notifier

Decides whether a classified message suppresses the automatic reply and
whether it escalates to the building administrators, and delivers the
dashboard rows, e-mails and WhatsApp alerts that go with it.
"""

import asyncio
import logging
from html import escape
from uuid import UUID

from condo_messaging.contracts.payloads import (
    Channel,
    ClassificationResult,
    Intent,
    Language,
    Priority,
)
from condo_messaging.persistence.models import (
    Building,
    BuildingAdmin,
    Conversation,
    Notification,
    NotificationType,
    Resident,
    Unit,
)
from condo_messaging.persistence.repo import CondoRepository
from condo_messaging.providers.base import EmailProvider, MessagingProvider
from condo_messaging.routing.channel import to_transport_address
from condo_messaging.routing.recipient_router import DeliveryOutcome
from condo_messaging.service.persister import best_effort
from condo_messaging.templates import (
    ADMIN_ALERT_HTML,
    ADMIN_ALERT_SUBJECT,
    ADMIN_ALERT_WHATSAPP,
    NOTIFICATION_ESCALATION_TITLE,
    PRIORITY_LABELS,
    notification_title,
)

logger = logging.getLogger(__name__)


def should_auto_reply(classification: ClassificationResult) -> bool:
    """Suppress the reply only for human-review messages of high or emergency priority."""
    return not (classification.requires_human_review and classification.priority.is_elevated)


def should_escalate(classification: ClassificationResult) -> bool:
    """Alert admins for emergencies, and for high priority messages needing review."""
    if classification.priority == Priority.EMERGENCY:
        return True
    return classification.priority.is_elevated and classification.requires_human_review


def admin_accepts(admin: BuildingAdmin, classification: ClassificationResult) -> bool:
    """Check an administrator's notification preferences for this alert."""
    if classification.priority == Priority.EMERGENCY:
        return bool(admin.notify_emergency)
    if classification.priority == Priority.HIGH:
        return bool(admin.notify_high)
    if classification.intent == Intent.MAINTENANCE_REQUEST:
        return bool(admin.notify_maintenance)
    return bool(admin.notify_general)


class EscalationNotifier:
    """Dashboard notifications and out-of-band admin alerts."""

    def __init__(
        self,
        repo: CondoRepository,
        messaging: MessagingProvider,
        email: EmailProvider | None = None,
        app_base_url: str = "http://localhost:3000",
    ):
        self.repo = repo
        self.messaging = messaging
        self.email = email
        self.app_base_url = app_base_url.rstrip("/")

    def conversation_link(self, conversation: Conversation) -> str:
        return f"{self.app_base_url}/dashboard/conversations?conversation={conversation.id}"

    # =========================================================================
    # Dashboard rows
    # =========================================================================

    def record_message_notification(
        self,
        building: Building,
        sender: Resident,
        conversation: Conversation,
        classification: ClassificationResult,
        channel: Channel,
        message_text: str,
    ) -> Notification | None:
        """Insert the dashboard row every processed message gets."""
        return best_effort(
            self.repo.db,
            "message notification",
            lambda: self.repo.create_notification(
                tenant_id=building.id,
                type=NotificationType.NEW_MESSAGE.value,
                title=notification_title(
                    classification.priority, classification.requires_human_review, channel
                ),
                body=f"{sender.full_name}: {message_text[:200]}",
                priority=classification.priority.value,
                link=self.conversation_link(conversation),
                data={
                    "conversation_id": str(conversation.id),
                    "resident_id": str(sender.id),
                    "intent": classification.intent.value,
                    "channel": channel.value,
                },
            ),
            tenant_id=building.id,
            conversation_id=conversation.id,
        )

    def record_escalation(
        self,
        building: Building,
        sender: Resident,
        conversation: Conversation,
        classification: ClassificationResult,
        message_text: str,
    ) -> Notification | None:
        """Insert the urgent dashboard row for an escalated message."""
        return best_effort(
            self.repo.db,
            "escalation notification",
            lambda: self.repo.create_notification(
                tenant_id=building.id,
                type=NotificationType.ESCALATION.value,
                title=NOTIFICATION_ESCALATION_TITLE.format(
                    priority=classification.priority.value.upper(),
                    intent=classification.intent.value,
                ),
                body=f"{sender.full_name}: {message_text[:500]}",
                priority=classification.priority.value,
                link=self.conversation_link(conversation),
                data={
                    "conversation_id": str(conversation.id),
                    "resident_id": str(sender.id),
                    "intent": classification.intent.value,
                    "extracted_data": classification.extracted_data,
                },
            ),
            tenant_id=building.id,
            conversation_id=conversation.id,
        )

    # =========================================================================
    # Out-of-band alerts
    # =========================================================================

    async def alert_admins(
        self,
        building: Building,
        sender: Resident,
        unit: Unit | None,
        conversation: Conversation,
        classification: ClassificationResult,
        message_text: str,
    ) -> list[DeliveryOutcome]:
        """
        E-mail and WhatsApp every administrator whose preferences accept the alert.

        Returns:
            One outcome per attempted send; failures are logged, never raised
        """
        admins = [a for a in self.repo.get_active_admins(building.id) if admin_accepts(a, classification)]
        if not admins:
            logger.info(
                "No administrators accept this alert",
                extra={"tenant_id": str(building.id), "priority": classification.priority.value},
            )
            return []

        sends = []
        for admin in admins:
            # Admins without a language of their own get the building's
            language = Language.coerce(admin.preferred_language or building.preferred_language)
            fields = {
                "admin_name": admin.name,
                "building_name": building.name,
                "unit": unit.unit_number if unit else "-",
                "sender_name": sender.full_name,
                "priority": PRIORITY_LABELS[language][classification.priority.value].upper(),
                "intent": classification.intent.value,
                "message": message_text,
                "link": self.conversation_link(conversation),
            }
            if self.email is not None and admin.email:
                sends.append(self._send_email(admin, language, fields, building.id))
            if classification.priority.is_elevated and admin.phone and building.whatsapp_business_number:
                sends.append(self._send_whatsapp(admin, building, language, fields))

        outcomes = list(await asyncio.gather(*sends))
        logger.info(
            "Admin alerts dispatched",
            extra={
                "tenant_id": str(building.id),
                "attempted": len(outcomes),
                "delivered": sum(1 for o in outcomes if o.success),
            },
        )
        return outcomes

    async def _send_email(
        self,
        admin: BuildingAdmin,
        language: Language,
        fields: dict[str, str],
        tenant_id: UUID,
    ) -> DeliveryOutcome:
        subject = ADMIN_ALERT_SUBJECT[language].format(**fields)
        html = ADMIN_ALERT_HTML[language].format(**{k: escape(v) for k, v in fields.items()})
        try:
            response = await self.email.send_email(to=admin.email, subject=subject, html=html)
        except Exception as e:
            logger.error(
                f"Failed to e-mail administrator: {e}",
                extra={"tenant_id": str(tenant_id), "admin_id": str(admin.id)},
                exc_info=True,
            )
            return DeliveryOutcome(recipient_id=admin.id, to=admin.email, success=False, error=str(e))
        return DeliveryOutcome(
            recipient_id=admin.id,
            to=admin.email,
            success=response.success,
            message_id=response.message_id,
        )

    async def _send_whatsapp(
        self,
        admin: BuildingAdmin,
        building: Building,
        language: Language,
        fields: dict[str, str],
    ) -> DeliveryOutcome:
        to = to_transport_address(admin.phone, Channel.WHATSAPP)
        try:
            response = await self.messaging.send_message(
                to=to,
                from_=to_transport_address(building.whatsapp_business_number, Channel.WHATSAPP),
                body=ADMIN_ALERT_WHATSAPP[language].format(**fields),
            )
        except Exception as e:
            logger.error(
                f"Failed to send WhatsApp alert to administrator: {e}",
                extra={"tenant_id": str(building.id), "admin_id": str(admin.id)},
                exc_info=True,
            )
            return DeliveryOutcome(recipient_id=admin.id, to=to, success=False, error=str(e))
        return DeliveryOutcome(
            recipient_id=admin.id,
            to=to,
            success=response.success,
            message_id=response.message_id,
        )
