"""
Providers

External capability implementations and the factory that picks them from
settings. Missing credentials select the stub (delivery) or disable the
capability (classifier, embeddings, e-mail), and the pipeline degrades.
"""

import logging

from condocore.settings import Settings

from condo_messaging.providers.base import (
    ClassifierProvider,
    EmailProvider,
    EmbeddingProvider,
    MessagingProvider,
    ProviderError,
    ProviderResponse,
)

logger = logging.getLogger(__name__)


def build_messaging_provider(settings: Settings) -> MessagingProvider:
    if settings.MESSAGING_PROVIDER == "twilio" and settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN:
        from condo_messaging.providers.twilio import TwilioMessagingProvider

        return TwilioMessagingProvider(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)

    from condo_messaging.providers.stub import StubMessagingProvider

    logger.warning("Twilio not configured, using stub messaging provider")
    return StubMessagingProvider()


def build_classifier_provider(settings: Settings) -> ClassifierProvider | None:
    if not settings.ANTHROPIC_API_KEY:
        logger.warning("ANTHROPIC_API_KEY not set, classification will use the fallback")
        return None

    from condo_messaging.providers.anthropic import AnthropicClassifierProvider

    return AnthropicClassifierProvider(
        api_key=settings.ANTHROPIC_API_KEY,
        model=settings.CLASSIFIER_MODEL,
        max_tokens=settings.CLASSIFIER_MAX_TOKENS,
        temperature=settings.CLASSIFIER_TEMPERATURE,
        timeout=settings.CLASSIFIER_TIMEOUT_SECONDS,
    )


def build_embedding_provider(settings: Settings) -> EmbeddingProvider | None:
    if not settings.OPENAI_API_KEY:
        return None

    from condo_messaging.providers.openai import OpenAIEmbeddingProvider

    return OpenAIEmbeddingProvider(api_key=settings.OPENAI_API_KEY, model=settings.EMBEDDING_MODEL)


def build_email_provider(settings: Settings) -> EmailProvider | None:
    if not settings.RESEND_API_KEY:
        return None

    from condo_messaging.providers.resend import ResendEmailProvider

    return ResendEmailProvider(api_key=settings.RESEND_API_KEY, from_address=settings.ALERT_EMAIL_FROM)


__all__ = [
    "ClassifierProvider",
    "EmailProvider",
    "EmbeddingProvider",
    "MessagingProvider",
    "ProviderError",
    "ProviderResponse",
    "build_classifier_provider",
    "build_email_provider",
    "build_embedding_provider",
    "build_messaging_provider",
]
