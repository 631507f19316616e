"""
Provider Base

Abstract interfaces for the external capabilities the pipeline consumes:
message delivery (WhatsApp/SMS), LLM completion, text embedding and e-mail.
Implementations: Twilio, Anthropic, OpenAI, Resend, Stub (development/tests).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


class ProviderError(Exception):
    """Error from an external provider."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.code = code
        self.details = details or {}
        self.retryable = retryable


@dataclass
class ProviderResponse:
    """
    Response from provider after sending a message or e-mail.
    """

    success: bool
    message_id: str | None = None
    error_code: str | None = None
    error_message: str | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)


class MessagingProvider(ABC):
    """Sends WhatsApp and SMS messages."""

    @abstractmethod
    async def send_message(self, to: str, from_: str, body: str) -> ProviderResponse:
        """
        Send a text message.

        Args:
            to: Recipient transport address (``whatsapp:+1...`` or ``+1...``)
            from_: Sender transport address, same format as ``to``
            body: Message text

        Returns:
            ProviderResponse with the provider message id

        Raises:
            ProviderError: if the provider rejects the message
        """
        ...


class ClassifierProvider(ABC):
    """Single-turn text completion used by the Intent Classifier."""

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """
        Run one completion.

        Raises:
            ProviderError: on any API failure
        """
        ...


class EmbeddingProvider(ABC):
    """Text to vector, used by Knowledge Lookup."""

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """
        Embed a text.

        Raises:
            ProviderError: on any API failure
        """
        ...


class EmailProvider(ABC):
    """Transactional e-mail used for admin escalation alerts."""

    @abstractmethod
    async def send_email(self, to: str, subject: str, html: str) -> ProviderResponse:
        """
        Send one e-mail.

        Raises:
            ProviderError: if the provider rejects the e-mail
        """
        ...
