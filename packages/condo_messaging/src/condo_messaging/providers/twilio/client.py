"""
Twilio Messaging Provider

Sends WhatsApp and SMS messages through the Twilio REST API. The Twilio SDK
is synchronous, so calls run in a worker thread.
"""

import asyncio
import logging

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

from condo_messaging.providers.base import MessagingProvider, ProviderError, ProviderResponse

logger = logging.getLogger(__name__)


class TwilioMessagingProvider(MessagingProvider):
    """Twilio provider for WhatsApp (``whatsapp:`` addresses) and SMS."""

    def __init__(self, account_sid: str, auth_token: str, client: Client | None = None):
        self.client = client or Client(account_sid, auth_token)

    async def send_message(self, to: str, from_: str, body: str) -> ProviderResponse:
        try:
            message = await asyncio.to_thread(
                self.client.messages.create,
                body=body,
                from_=from_,
                to=to,
            )
        except TwilioRestException as e:
            raise ProviderError(
                e.msg or str(e),
                code=str(e.code) if e.code else None,
                details={"status": e.status, "to": to},
                retryable=bool(e.status and e.status >= 500),
            ) from e

        logger.info(
            "Twilio message sent",
            extra={"to": to, "message_id": message.sid, "status": message.status},
        )
        return ProviderResponse(
            success=True,
            message_id=message.sid,
            raw_response={"status": message.status},
        )
