"""
Resend Email Provider

Sends admin alert e-mails. The Resend SDK is synchronous and configured
through a module-level API key, so calls run in a worker thread.
"""

import asyncio
import logging

import resend
from resend.exceptions import ResendError

from condo_messaging.providers.base import EmailProvider, ProviderError, ProviderResponse

logger = logging.getLogger(__name__)


class ResendEmailProvider(EmailProvider):
    """Resend transactional e-mail provider."""

    def __init__(self, api_key: str, from_address: str):
        resend.api_key = api_key
        self.from_address = from_address

    async def send_email(self, to: str, subject: str, html: str) -> ProviderResponse:
        params = {
            "from": self.from_address,
            "to": [to],
            "subject": subject,
            "html": html,
        }
        try:
            response = await asyncio.to_thread(resend.Emails.send, params)
        except ResendError as e:
            raise ProviderError(
                str(e),
                code=str(e.code),
                details={"to": to},
            ) from e

        logger.info("Alert e-mail sent", extra={"to": to, "resend_id": response.get("id")})
        return ProviderResponse(success=True, message_id=response.get("id"), raw_response=dict(response))
