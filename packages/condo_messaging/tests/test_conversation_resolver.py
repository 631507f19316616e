"""
Tests for conversation find-or-create.
"""

import pytest

from condo_messaging.contracts.payloads import Channel
from condo_messaging.errors import ConversationConflictError
from condo_messaging.persistence.models import Conversation, ConversationStatus
from condo_messaging.persistence.repo import CondoRepository
from condo_messaging.routing import ConversationResolver


class TestConversationResolver:
    """Tests for ConversationResolver.resolve."""

    def test_creates_when_missing(self, db, building, renter):
        resolver = ConversationResolver(CondoRepository(db))
        conversation = resolver.resolve(building.id, renter.id, Channel.WHATSAPP)
        db.commit()

        assert conversation.status == ConversationStatus.ACTIVE.value
        assert conversation.channel == "whatsapp"
        assert conversation.last_message_at is not None

    def test_reuses_active(self, db, building, renter):
        """Test repeated calls return the same active conversation."""
        resolver = ConversationResolver(CondoRepository(db))
        first = resolver.resolve(building.id, renter.id, Channel.WHATSAPP)
        db.commit()
        second = resolver.resolve(building.id, renter.id, Channel.WHATSAPP)
        db.commit()

        assert first.id == second.id
        assert db.query(Conversation).count() == 1

    def test_one_conversation_per_channel(self, db, building, renter):
        resolver = ConversationResolver(CondoRepository(db))
        whatsapp = resolver.resolve(building.id, renter.id, Channel.WHATSAPP)
        sms = resolver.resolve(building.id, renter.id, Channel.SMS)
        db.commit()

        assert whatsapp.id != sms.id

    def test_closed_conversation_not_reused(self, db, building, renter):
        resolver = ConversationResolver(CondoRepository(db))
        old = resolver.resolve(building.id, renter.id, Channel.SMS)
        old.status = ConversationStatus.CLOSED.value
        db.commit()

        new = resolver.resolve(building.id, renter.id, Channel.SMS)
        db.commit()

        assert new.id != old.id

    def test_concurrent_creation_returns_winner(self, session_factory, building, renter, monkeypatch):
        """
        Test the losing delivery of a creation race adopts the winner's row.

        Session A creates and commits first; session B's initial lookup is
        made to miss, so its insert hits the unique index and it re-fetches.
        """
        session_a = session_factory()
        session_b = session_factory()
        try:
            winner = ConversationResolver(CondoRepository(session_a)).resolve(
                building.id, renter.id, Channel.WHATSAPP
            )
            session_a.commit()

            repo_b = CondoRepository(session_b)
            real_lookup = repo_b.get_active_conversation
            calls = []

            def stale_first_lookup(*args, **kwargs):
                calls.append(args)
                if len(calls) == 1:
                    return None
                return real_lookup(*args, **kwargs)

            monkeypatch.setattr(repo_b, "get_active_conversation", stale_first_lookup)

            loser = ConversationResolver(repo_b).resolve(building.id, renter.id, Channel.WHATSAPP)
            session_b.commit()

            assert loser.id == winner.id
            assert len(calls) == 2
            assert session_b.query(Conversation).count() == 1
        finally:
            session_a.close()
            session_b.close()

    def test_conflict_without_winner_raises(self, db, building, renter, monkeypatch):
        """Test a unique violation with no row to re-fetch is a retryable conflict."""
        repo = CondoRepository(db)
        ConversationResolver(repo).resolve(building.id, renter.id, Channel.SMS)
        db.commit()

        monkeypatch.setattr(repo, "get_active_conversation", lambda *args, **kwargs: None)

        with pytest.raises(ConversationConflictError) as exc:
            ConversationResolver(repo).resolve(building.id, renter.id, Channel.SMS)
        assert exc.value.retryable is True
