"""
Message Persister

Appends inbound messages (with classification) and AI replies to the
conversation log. Writes run inside savepoints: a failed non-critical write
is logged and dropped without undoing the rest of the transaction.
"""

import logging
from typing import Any, Callable, TypeVar
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from condo_messaging.contracts.payloads import Channel, ClassificationResult, MediaAttachment, SenderType
from condo_messaging.errors import DuplicateMessageError
from condo_messaging.persistence.models import Conversation, Message
from condo_messaging.persistence.repo import CondoRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


def best_effort(db: Session, label: str, write: Callable[[], T], **context: Any) -> T | None:
    """
    Run a write inside a savepoint; log and return None if it fails.
    """
    try:
        with db.begin_nested():
            return write()
    except SQLAlchemyError as e:
        logger.error(
            f"Non-critical write failed ({label}): {e}",
            extra={key: str(value) for key, value in context.items()},
            exc_info=True,
        )
        return None


class MessagePersister:
    """Append-only writer for the message log."""

    def __init__(self, repo: CondoRepository):
        self.repo = repo

    def append_inbound(
        self,
        tenant_id: UUID,
        conversation: Conversation,
        content: str,
        channel: Channel,
        classification: ClassificationResult,
        provider_message_sid: str,
        media: list[MediaAttachment] | None = None,
    ) -> Message | None:
        """
        Append the resident's message with its classification.

        Returns:
            The stored message, or None if the write failed

        Raises:
            DuplicateMessageError: the SID was stored concurrently
        """
        try:
            with self.repo.db.begin_nested():
                message = self.repo.create_message(
                    tenant_id=tenant_id,
                    conversation_id=conversation.id,
                    sender_type=SenderType.RESIDENT,
                    content=content,
                    channel=channel,
                    classification=classification,
                    provider_message_sid=provider_message_sid,
                    media=[m.model_dump() for m in media or []],
                )
                self.repo.touch_conversation(conversation)
        except IntegrityError as e:
            if self.repo.is_message_processed(tenant_id, provider_message_sid):
                raise DuplicateMessageError(
                    "Message SID already stored",
                    {"message_sid": provider_message_sid},
                ) from e
            logger.error(
                f"Failed to store inbound message: {e}",
                extra={"tenant_id": str(tenant_id), "message_sid": provider_message_sid},
                exc_info=True,
            )
            return None
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to store inbound message: {e}",
                extra={"tenant_id": str(tenant_id), "message_sid": provider_message_sid},
                exc_info=True,
            )
            return None

        return message

    def append_reply(
        self,
        tenant_id: UUID,
        conversation: Conversation,
        content: str,
        channel: Channel,
        provider_message_sid: str | None = None,
    ) -> Message | None:
        """Append an AI reply. No classification fields are stored."""

        def write() -> Message:
            message = self.repo.create_message(
                tenant_id=tenant_id,
                conversation_id=conversation.id,
                sender_type=SenderType.AI,
                content=content,
                channel=channel,
                provider_message_sid=provider_message_sid,
            )
            self.repo.touch_conversation(conversation)
            return message

        return best_effort(
            self.repo.db,
            "ai reply",
            write,
            tenant_id=tenant_id,
            conversation_id=conversation.id,
        )
