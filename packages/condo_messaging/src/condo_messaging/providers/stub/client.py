"""
Stub Providers

Development providers that log all operations without making real API calls.
Used when credentials are not configured and as test doubles.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from condo_messaging.providers.base import (
    ClassifierProvider,
    EmailProvider,
    EmbeddingProvider,
    MessagingProvider,
    ProviderError,
    ProviderResponse,
)

logger = logging.getLogger(__name__)


def _preview(text: str, limit: int = 100) -> str:
    return text[:limit] + "..." if len(text) > limit else text


class StubMessagingProvider(MessagingProvider):
    """
    Stub messaging provider.

    - Logs all outbound messages
    - Generates fake message IDs
    - Fails for recipients listed in ``fail_for``
    """

    def __init__(self, fail_for: set[str] | None = None):
        self.fail_for = fail_for or set()
        self.sent_messages: list[dict[str, Any]] = []

    async def send_message(self, to: str, from_: str, body: str) -> ProviderResponse:
        if to in self.fail_for:
            logger.info("[STUB] Simulated send failure", extra={"to": to})
            raise ProviderError(
                "Simulated failure for testing",
                code="STUB_SIMULATED_FAILURE",
                details={"to": to},
            )

        message_id = f"SMstub{uuid4().hex[:26]}"
        self.sent_messages.append(
            {
                "to": to,
                "from": from_,
                "body": body,
                "message_id": message_id,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        )

        logger.info(
            "[STUB] Sending message",
            extra={"to": to, "text": _preview(body), "message_id": message_id},
        )
        return ProviderResponse(
            success=True,
            message_id=message_id,
            raw_response={"stub": True, "message_id": message_id},
        )

    def sent_to(self, to: str) -> list[dict[str, Any]]:
        """Messages sent to one address (for testing)."""
        return [m for m in self.sent_messages if m["to"] == to]

    def clear_sent_messages(self) -> None:
        """Clear sent messages history (for testing)."""
        self.sent_messages.clear()


class StubClassifierProvider(ClassifierProvider):
    """
    Stub completion provider.

    Returns a fixed response, raises a fixed error, or sleeps before
    answering to simulate a slow model.
    """

    def __init__(
        self,
        response: str = "",
        error: Exception | None = None,
        delay_seconds: float = 0.0,
    ):
        self.response = response
        self.error = error
        self.delay_seconds = delay_seconds
        self.prompts: list[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.error:
            raise self.error
        logger.debug("[STUB] Completion", extra={"text": _preview(self.response)})
        return self.response


class StubEmbeddingProvider(EmbeddingProvider):
    """Stub embedding provider returning a fixed vector or raising."""

    def __init__(self, vector: list[float] | None = None, error: Exception | None = None):
        self.vector = vector or [0.0] * 1536
        self.error = error
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.error:
            raise self.error
        return list(self.vector)


class StubEmailProvider(EmailProvider):
    """Stub e-mail provider that records e-mails instead of sending them."""

    def __init__(self, fail_for: set[str] | None = None):
        self.fail_for = fail_for or set()
        self.sent_emails: list[dict[str, Any]] = []

    async def send_email(self, to: str, subject: str, html: str) -> ProviderResponse:
        if to in self.fail_for:
            raise ProviderError("Simulated failure for testing", code="STUB_SIMULATED_FAILURE")

        message_id = f"stub_email_{uuid4().hex[:16]}"
        self.sent_emails.append({"to": to, "subject": subject, "html": html, "message_id": message_id})
        logger.info("[STUB] Sending e-mail", extra={"to": to, "subject": subject})
        return ProviderResponse(success=True, message_id=message_id)
