"""
Conversation Resolver

Finds or creates the single active conversation for a
(tenant, resident, channel) triple. Creation runs inside a savepoint so a
concurrent delivery that wins the unique index does not poison the
surrounding transaction.
"""

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from condo_messaging.contracts.payloads import Channel
from condo_messaging.errors import ConversationConflictError
from condo_messaging.persistence.models import Conversation
from condo_messaging.persistence.repo import CondoRepository

logger = logging.getLogger(__name__)


class ConversationResolver:
    """Idempotent find-or-create for active conversations."""

    def __init__(self, repo: CondoRepository):
        self.repo = repo

    def resolve(self, tenant_id: UUID, resident_id: UUID, channel: Channel) -> Conversation:
        """
        Get the active conversation, creating it if needed.

        Under a creation race the loser re-fetches and returns the winner's row.

        Raises:
            ConversationConflictError: creation conflicted but no active row
                could be re-fetched
        """
        conversation = self.repo.get_active_conversation(tenant_id, resident_id, channel)
        if conversation:
            self.repo.touch_conversation(conversation)
            return conversation

        try:
            with self.repo.db.begin_nested():
                conversation = self.repo.create_conversation(tenant_id, resident_id, channel)
        except IntegrityError:
            logger.info(
                "Active conversation created concurrently, re-fetching",
                extra={
                    "tenant_id": str(tenant_id),
                    "resident_id": str(resident_id),
                    "channel": channel.value,
                },
            )
            winner = self.repo.get_active_conversation(tenant_id, resident_id, channel)
            if winner is None:
                raise ConversationConflictError(
                    "Conversation conflict without an active winner",
                    {"tenant_id": str(tenant_id), "resident_id": str(resident_id)},
                )
            self.repo.touch_conversation(winner)
            return winner

        logger.info(
            "Conversation created",
            extra={
                "tenant_id": str(tenant_id),
                "conversation_id": str(conversation.id),
                "channel": channel.value,
            },
        )
        return conversation
