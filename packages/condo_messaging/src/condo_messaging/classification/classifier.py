"""
Intent Classifier

Classifies a resident message into intent, priority, routing target,
suggested reply and human-review flag. Knowledge lookup and the model call
share one time budget; failure or timeout yields the deterministic fallback.
"""

import asyncio
import logging
from uuid import UUID

from condo_messaging.classification.parser import fallback_classification, parse_classification
from condo_messaging.classification.prompt import MAX_KNOWLEDGE_SNIPPETS, build_classification_prompt
from condo_messaging.contracts.payloads import ClassificationResult, Language, ResidentRole
from condo_messaging.errors import ClassificationParseError
from condo_messaging.knowledge.lookup import KnowledgeLookup
from condo_messaging.providers.base import ClassifierProvider, ProviderError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 12.0


class IntentClassifier:
    """
    LLM-backed classifier with a knowledge-grounded prompt.

    ``classify`` never raises: every failure path returns
    ``fallback_classification(language)``.
    """

    def __init__(
        self,
        provider: ClassifierProvider | None,
        knowledge: KnowledgeLookup | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.provider = provider
        self.knowledge = knowledge
        self.timeout_seconds = timeout_seconds

    async def classify(
        self,
        message_text: str,
        sender_role: ResidentRole,
        language: Language,
        tenant_name: str,
        tenant_id: UUID | None = None,
    ) -> ClassificationResult:
        if self.provider is None:
            logger.info("No classifier provider configured, using fallback")
            return fallback_classification(language)

        try:
            result = await asyncio.wait_for(
                self._classify(message_text, sender_role, language, tenant_name, tenant_id),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Classification timed out, using fallback",
                extra={"timeout_seconds": self.timeout_seconds, "tenant_id": str(tenant_id)},
            )
            return fallback_classification(language)
        except ProviderError as e:
            logger.error(
                f"Classifier provider failed: {e}",
                extra={"code": e.code, "retryable": e.retryable, "tenant_id": str(tenant_id)},
            )
            return fallback_classification(language)
        except ClassificationParseError as e:
            logger.error(
                f"Classifier output rejected: {e}",
                extra={"details": e.details, "tenant_id": str(tenant_id)},
            )
            return fallback_classification(language)
        except Exception:
            logger.exception("Unexpected classification error", extra={"tenant_id": str(tenant_id)})
            return fallback_classification(language)

        logger.info(
            "Message classified",
            extra={
                "tenant_id": str(tenant_id),
                "intent": result.intent.value,
                "priority": result.priority.value,
                "route_to": result.route_to.value,
                "requires_human_review": result.requires_human_review,
            },
        )
        return result

    async def _classify(
        self,
        message_text: str,
        sender_role: ResidentRole,
        language: Language,
        tenant_name: str,
        tenant_id: UUID | None,
    ) -> ClassificationResult:
        snippets = []
        if tenant_id is not None and self.knowledge is not None:
            snippets = await self.knowledge.search(message_text, tenant_id)

        prompt = build_classification_prompt(
            message_text=message_text,
            sender_role=sender_role,
            language=language,
            tenant_name=tenant_name,
            knowledge=snippets[:MAX_KNOWLEDGE_SNIPPETS],
        )
        raw = await self.provider.complete(prompt)
        return parse_classification(raw)
