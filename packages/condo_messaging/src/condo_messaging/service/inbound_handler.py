"""
Inbound Message Handler

Processes one inbound WhatsApp/SMS delivery:
1. Normalizes addresses and detects the channel
2. Resolves building and sender (unknown senders get a notice)
3. Guards against redelivered SIDs (database check + Redis claim)
4. Resolves the active conversation
5. Classifies the message (knowledge-grounded, bounded by a timeout)
6. Persists the message, maintenance request and dashboard rows
7. Fans out forwards, admin alerts and the auto-reply concurrently
8. Records the auto-reply
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

import redis
from sqlalchemy.orm import Session

from condocore.redis import release_claim, try_claim
from condocore.settings import Settings

from condo_messaging.classification.classifier import IntentClassifier
from condo_messaging.contracts.payloads import (
    Channel,
    ClassificationResult,
    InboundMessage,
    Intent,
    Language,
    ResidentRole,
)
from condo_messaging.errors import (
    AmbiguousSenderError,
    ConversationConflictError,
    DuplicateMessageError,
    SenderNotFoundError,
    TenantNotFoundError,
    ValidationError,
)
from condo_messaging.knowledge.lookup import KnowledgeLookup
from condo_messaging.persistence.models import Building, Conversation, Resident, Unit
from condo_messaging.persistence.repo import CondoRepository
from condo_messaging.providers import (
    build_classifier_provider,
    build_email_provider,
    build_embedding_provider,
    build_messaging_provider,
)
from condo_messaging.providers.base import (
    ClassifierProvider,
    EmailProvider,
    EmbeddingProvider,
    MessagingProvider,
)
from condo_messaging.routing.channel import NormalizedAddresses, normalize_addresses, to_transport_address
from condo_messaging.routing.conversation import ConversationResolver
from condo_messaging.routing.recipient_router import RecipientRouter, RoutingResult, building_number
from condo_messaging.routing.tenant_resolver import TenantResolver
from condo_messaging.service.escalation import EscalationNotifier, should_escalate
from condo_messaging.service.maintenance import MaintenanceExtractor
from condo_messaging.service.persister import MessagePersister
from condo_messaging.service.reply import ReplyDispatcher
from condo_messaging.templates import unknown_sender_notice

logger = logging.getLogger(__name__)

CLAIM_NAMESPACE = "inbound"


@dataclass
class PipelineProviders:
    """External capabilities, built once per process."""

    messaging: MessagingProvider
    classifier: ClassifierProvider | None = None
    embedder: EmbeddingProvider | None = None
    email: EmailProvider | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "PipelineProviders":
        return cls(
            messaging=build_messaging_provider(settings),
            classifier=build_classifier_provider(settings),
            embedder=build_embedding_provider(settings),
            email=build_email_provider(settings),
        )


@dataclass
class PipelineConfig:
    classifier_timeout_seconds: float = 12.0
    knowledge_match_threshold: float = 0.5
    knowledge_match_count: int = 5
    claim_ttl_seconds: int = 300
    app_base_url: str = "http://localhost:3000"

    @classmethod
    def from_settings(cls, settings: Settings) -> "PipelineConfig":
        return cls(
            classifier_timeout_seconds=settings.CLASSIFIER_TIMEOUT_SECONDS,
            knowledge_match_threshold=settings.KNOWLEDGE_MATCH_THRESHOLD,
            knowledge_match_count=settings.KNOWLEDGE_MATCH_COUNT,
            claim_ttl_seconds=settings.MESSAGE_CLAIM_TTL_SECONDS,
            app_base_url=settings.APP_BASE_URL,
        )


class InboundHandler:
    """
    Handles one inbound message end to end.

    Only ValidationError propagates. Every other failure is logged and
    reflected in the returned result's ``status`` so the webhook can always
    acknowledge the delivery.
    """

    def __init__(
        self,
        db: Session,
        providers: PipelineProviders,
        config: PipelineConfig | None = None,
        redis_client: redis.Redis | None = None,
    ):
        self.db = db
        self.providers = providers
        self.config = config or PipelineConfig()
        self.redis = redis_client
        self.repo = CondoRepository(db)
        self.tenant_resolver = TenantResolver(self.repo)
        self.conversation_resolver = ConversationResolver(self.repo)
        self.knowledge = KnowledgeLookup(
            self.repo,
            embedder=providers.embedder,
            threshold=self.config.knowledge_match_threshold,
            count=self.config.knowledge_match_count,
        )
        self.classifier = IntentClassifier(
            providers.classifier,
            knowledge=self.knowledge,
            timeout_seconds=self.config.classifier_timeout_seconds,
        )
        self.persister = MessagePersister(self.repo)
        self.maintenance = MaintenanceExtractor(self.repo)
        self.router = RecipientRouter(self.repo, providers.messaging)
        self.escalation = EscalationNotifier(
            self.repo,
            providers.messaging,
            email=providers.email,
            app_base_url=self.config.app_base_url,
        )
        self.replies = ReplyDispatcher(providers.messaging)

    async def process(self, message: InboundMessage) -> dict[str, Any]:
        """
        Process a single inbound message.

        Returns:
            Processing result dict with a ``status`` of processed, duplicate,
            unknown_tenant, unknown_sender or error

        Raises:
            ValidationError: missing SID or malformed addresses
        """
        if not message.message_sid.strip():
            raise ValidationError("MessageSid is required", {"field": "MessageSid"})
        addresses = normalize_addresses(message.from_address, message.to_address)

        result: dict[str, Any] = {
            "message_sid": message.message_sid,
            "channel": addresses.channel.value,
            "status": "processed",
        }

        try:
            building = self.tenant_resolver.resolve_building(addresses.recipient)
        except TenantNotFoundError:
            result["status"] = "unknown_tenant"
            return result

        result["tenant_id"] = str(building.id)

        if self.repo.is_message_processed(building.id, message.message_sid):
            logger.info(
                "Message already processed, skipping",
                extra={"tenant_id": str(building.id), "message_sid": message.message_sid},
            )
            result["status"] = "duplicate"
            return result

        if not self._claim(building, message.message_sid):
            result["status"] = "duplicate"
            return result

        try:
            await self._process_for_building(message, addresses, building, result)
        except DuplicateMessageError:
            self.db.rollback()
            result["status"] = "duplicate"
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"Error processing inbound message: {e}",
                extra={"tenant_id": str(building.id), "message_sid": message.message_sid},
                exc_info=True,
            )
            self._release(building, message.message_sid)
            result["status"] = "error"
            result["error"] = str(e)

        return result

    # =========================================================================
    # Pipeline
    # =========================================================================

    async def _process_for_building(
        self,
        message: InboundMessage,
        addresses: NormalizedAddresses,
        building: Building,
        result: dict[str, Any],
    ) -> None:
        tenant_id = building.id
        channel = addresses.channel

        try:
            sender = self.tenant_resolver.resolve_sender(tenant_id, addresses.sender)
        except SenderNotFoundError as e:
            await self._send_unknown_sender_notice(building, addresses)
            result["status"] = "unknown_sender"
            if isinstance(e, AmbiguousSenderError):
                result["reason"] = "ambiguous"
            return

        unit = self.repo.get_unit_for_resident(tenant_id, sender)
        conversation = self._resolve_conversation(tenant_id, sender, channel)
        self.db.commit()
        result["conversation_id"] = str(conversation.id)

        language = Language.coerce(sender.preferred_language)
        classification = await self.classifier.classify(
            message_text=message.body,
            sender_role=ResidentRole(sender.role),
            language=language,
            tenant_name=building.name,
            tenant_id=tenant_id,
        )
        if classification.intent == Intent.STATUS_INQUIRY:
            classification = classification.model_copy(
                update={
                    "suggested_response": self.maintenance.status_summary(tenant_id, sender.id, language)
                }
            )

        result.update(
            {
                "intent": classification.intent.value,
                "priority": classification.priority.value,
                "route_to": classification.route_to.value,
                "requires_human_review": classification.requires_human_review,
            }
        )

        # Durable records first; fan-out only starts once they are committed
        stored = self.persister.append_inbound(
            tenant_id=tenant_id,
            conversation=conversation,
            content=message.body,
            channel=channel,
            classification=classification,
            provider_message_sid=message.message_sid,
            media=message.media,
        )
        result["message_id"] = str(stored.id) if stored else None

        request = self.maintenance.maybe_create(
            classification,
            tenant_id=tenant_id,
            unit_id=unit.id if unit else None,
            resident_id=sender.id,
            conversation_id=conversation.id,
            message_text=message.body,
        )
        result["maintenance_request_id"] = str(request.id) if request else None

        self.escalation.record_message_notification(
            building, sender, conversation, classification, channel, message.body
        )
        escalate = should_escalate(classification)
        if escalate:
            self.escalation.record_escalation(building, sender, conversation, classification, message.body)
        self.db.commit()

        routing, alerts, reply = await asyncio.gather(
            self.router.route(classification, sender, building, unit, channel, message.body),
            self._alert_admins(escalate, building, sender, unit, conversation, classification, message.body),
            self.replies.dispatch(classification, sender, addresses.sender, building, channel),
            return_exceptions=True,
        )

        if isinstance(routing, BaseException):
            self._log_branch_failure("routing", routing, tenant_id)
            routing = RoutingResult()
        if isinstance(alerts, BaseException):
            self._log_branch_failure("escalation", alerts, tenant_id)
            alerts = []
        if isinstance(reply, BaseException):
            self._log_branch_failure("reply", reply, tenant_id)
            reply = None

        result["forwarded_to"] = [str(rid) for rid in routing.dispatched]
        result["escalated"] = escalate
        result["admin_alerts"] = sum(1 for a in alerts if a.success)
        result["auto_reply_sent"] = bool(reply and reply.success)

        if reply and reply.success:
            self.persister.append_reply(
                tenant_id=tenant_id,
                conversation=conversation,
                content=classification.suggested_response,
                channel=channel,
                provider_message_sid=reply.message_id,
            )
        self.db.commit()

        logger.info(
            "Inbound message processed",
            extra={
                "tenant_id": str(tenant_id),
                "conversation_id": str(conversation.id),
                "message_sid": message.message_sid,
                "intent": classification.intent.value,
                "forwarded": len(result["forwarded_to"]),
                "escalated": escalate,
                "auto_reply_sent": result["auto_reply_sent"],
            },
        )

    def _resolve_conversation(self, tenant_id: UUID, sender: Resident, channel: Channel) -> Conversation:
        try:
            return self.conversation_resolver.resolve(tenant_id, sender.id, channel)
        except ConversationConflictError:
            # The winning row can appear a moment after the conflict
            return self.conversation_resolver.resolve(tenant_id, sender.id, channel)

    async def _alert_admins(
        self,
        escalate: bool,
        building: Building,
        sender: Resident,
        unit: Unit | None,
        conversation: Conversation,
        classification: ClassificationResult,
        message_text: str,
    ):
        if not escalate:
            return []
        return await self.escalation.alert_admins(
            building, sender, unit, conversation, classification, message_text
        )

    async def _send_unknown_sender_notice(self, building: Building, addresses: NormalizedAddresses) -> None:
        from_number = building_number(building, addresses.channel)
        if not from_number:
            return

        notice = unknown_sender_notice(Language.coerce(building.preferred_language), building.name)
        try:
            await self.providers.messaging.send_message(
                to=to_transport_address(addresses.sender, addresses.channel),
                from_=to_transport_address(from_number, addresses.channel),
                body=notice,
            )
        except Exception as e:
            logger.error(
                f"Failed to send unknown-sender notice: {e}",
                extra={"tenant_id": str(building.id), "sender": addresses.sender},
                exc_info=True,
            )

    def _log_branch_failure(self, branch: str, error: BaseException, tenant_id: UUID) -> None:
        logger.error(
            f"Fan-out branch '{branch}' failed: {error}",
            extra={"tenant_id": str(tenant_id)},
            exc_info=(type(error), error, error.__traceback__),
        )

    # =========================================================================
    # Duplicate-delivery claim
    # =========================================================================

    def _claim(self, building: Building, message_sid: str) -> bool:
        """
        Claim a SID in Redis. Returns False only if another delivery holds it.
        """
        if self.redis is None:
            return True

        claimed = try_claim(
            self.redis,
            f"{CLAIM_NAMESPACE}:{building.id}",
            message_sid,
            self.config.claim_ttl_seconds,
        )
        if claimed is False:
            logger.info(
                "Message claimed by a concurrent delivery, skipping",
                extra={"tenant_id": str(building.id), "message_sid": message_sid},
            )
            return False
        return True

    def _release(self, building: Building, message_sid: str) -> None:
        if self.redis is not None:
            release_claim(self.redis, f"{CLAIM_NAMESPACE}:{building.id}", message_sid)
