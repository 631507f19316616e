"""
Reply Dispatcher

Sends the suggested response back to the sender on the channel the message
arrived on. Best effort: failures are logged and returned, never raised.
"""

import logging

from condo_messaging.contracts.payloads import Channel, ClassificationResult
from condo_messaging.persistence.models import Building, Resident
from condo_messaging.providers.base import MessagingProvider
from condo_messaging.routing.channel import to_transport_address
from condo_messaging.routing.recipient_router import DeliveryOutcome, building_number, is_opted_in
from condo_messaging.service.escalation import should_auto_reply

logger = logging.getLogger(__name__)


class ReplyDispatcher:
    """Automatic reply to the original sender."""

    def __init__(self, provider: MessagingProvider):
        self.provider = provider

    async def dispatch(
        self,
        classification: ClassificationResult,
        sender: Resident,
        sender_number: str,
        building: Building,
        channel: Channel,
    ) -> DeliveryOutcome | None:
        """
        Send ``classification.suggested_response`` to the sender.

        Returns:
            DeliveryOutcome if a send was attempted, None if the reply was
            suppressed or skipped
        """
        context = {"tenant_id": str(building.id), "resident_id": str(sender.id), "channel": channel.value}

        if not should_auto_reply(classification):
            logger.info("Auto-reply suppressed pending human review", extra=context)
            return None

        reply = classification.suggested_response.strip()
        if not reply:
            logger.info("No suggested response, nothing to send", extra=context)
            return None

        if not is_opted_in(sender, channel):
            logger.info("Auto-reply skipped: sender not opted in to channel", extra=context)
            return None

        from_number = building_number(building, channel)
        if not from_number:
            logger.warning("Auto-reply skipped: building has no number for channel", extra=context)
            return None

        to = to_transport_address(sender_number, channel)
        try:
            response = await self.provider.send_message(
                to=to,
                from_=to_transport_address(from_number, channel),
                body=reply,
            )
        except Exception as e:
            logger.error(f"Failed to send auto-reply: {e}", extra=context, exc_info=True)
            return DeliveryOutcome(recipient_id=sender.id, to=to, success=False, error=str(e))

        logger.info("Auto-reply sent", extra={**context, "message_id": response.message_id})
        return DeliveryOutcome(
            recipient_id=sender.id,
            to=to,
            success=response.success,
            message_id=response.message_id,
            error=response.error_message,
        )
