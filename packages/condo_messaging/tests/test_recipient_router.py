"""
Tests for owner/renter forwarding.
"""

import asyncio

import pytest

from condo_messaging.contracts.payloads import (
    Channel,
    ClassificationResult,
    Intent,
    Priority,
    RouteTo,
)
from condo_messaging.persistence.repo import CondoRepository
from condo_messaging.providers.stub import StubMessagingProvider
from condo_messaging.routing import RecipientRouter, routing_targets


def classification(route_to: RouteTo) -> ClassificationResult:
    return ClassificationResult(
        intent=Intent.NOISE_COMPLAINT,
        priority=Priority.MEDIUM,
        route_to=route_to,
        suggested_response="",
        requires_human_review=True,
    )


class TestRoutingTargets:
    """Tests for the routing decision table."""

    @pytest.mark.parametrize(
        "route_to,sender_role,expected",
        [
            (RouteTo.ADMIN, "renter", []),
            (RouteTo.ADMIN, "owner", []),
            (RouteTo.OWNER, "renter", ["owner"]),
            (RouteTo.OWNER, "owner", []),
            (RouteTo.RENTER, "owner", ["renter"]),
            (RouteTo.RENTER, "renter", []),
            (RouteTo.BOTH, "renter", ["owner"]),
            (RouteTo.BOTH, "owner", ["renter"]),
        ],
    )
    def test_decision_table(self, owner, renter, route_to, sender_role, expected):
        sender = renter if sender_role == "renter" else owner
        targets = routing_targets(route_to, sender, owner, renter)
        assert [t.role for t in targets] == expected

    def test_sender_never_targeted(self, owner):
        """Test an owner who is also listed as renter is not forwarded to."""
        assert routing_targets(RouteTo.BOTH, owner, owner, owner) == []

    def test_missing_renter(self, owner):
        assert routing_targets(RouteTo.RENTER, owner, owner, None) == []


class TestRecipientRouter:
    """Tests for RecipientRouter.route."""

    def route(self, db, provider, route_to, sender, building, unit, channel=Channel.WHATSAPP):
        router = RecipientRouter(CondoRepository(db), provider)
        return asyncio.run(
            router.route(classification(route_to), sender, building, unit, channel, "Hay mucho ruido arriba")
        )

    def test_renter_to_owner(self, db, building, unit, owner, renter):
        """Test a renter's message is forwarded to the owner in the owner's language."""
        provider = StubMessagingProvider()
        result = self.route(db, provider, RouteTo.OWNER, renter, building, unit)

        assert result.dispatched == [owner.id]
        sent = provider.sent_to("whatsapp:+15551110001")
        assert len(sent) == 1
        assert sent[0]["from"] == "whatsapp:+15550000001"
        assert sent[0]["body"].startswith("📨 *Mensaje de inquilino - Unidad 4B*")
        assert "Hay mucho ruido arriba" in sent[0]["body"]
        assert "John Smith" in sent[0]["body"]

    def test_owner_to_renter_in_english(self, db, building, unit, owner, renter):
        provider = StubMessagingProvider()
        result = self.route(db, provider, RouteTo.RENTER, owner, building, unit)

        assert result.dispatched == [renter.id]
        body = provider.sent_to("whatsapp:+15551110002")[0]["body"]
        assert body.startswith("📨 *Message from the unit owner - Unit 4B*")
        assert "_This message was sent by Ana Pérez_" in body

    def test_admin_route_sends_nothing(self, db, building, unit, owner, renter):
        provider = StubMessagingProvider()
        result = self.route(db, provider, RouteTo.ADMIN, renter, building, unit)
        assert result.dispatched == []
        assert provider.sent_messages == []

    def test_sms_channel(self, db, building, unit, owner, renter):
        """Test forwards go out on the inbound channel."""
        provider = StubMessagingProvider()
        self.route(db, provider, RouteTo.OWNER, renter, building, unit, channel=Channel.SMS)
        sent = provider.sent_messages[0]
        assert sent["to"] == "+15551110001"
        assert sent["from"] == "+15550000002"

    def test_opted_out_recipient_skipped(self, db, building, unit, owner, renter):
        """Test a recipient opted out of the channel is skipped, not sent to."""
        owner.opt_in_whatsapp = False
        db.commit()

        provider = StubMessagingProvider()
        result = self.route(db, provider, RouteTo.OWNER, renter, building, unit)

        assert result.dispatched == []
        assert result.skipped == [owner.id]
        assert provider.sent_messages == []

    def test_no_unit(self, db, building, owner, renter):
        provider = StubMessagingProvider()
        result = self.route(db, provider, RouteTo.OWNER, renter, building, None)
        assert result.forwarded == []

    def test_send_failure_isolated(self, db, building, unit, owner, renter):
        """Test a provider failure is reported, not raised."""
        provider = StubMessagingProvider(fail_for={"whatsapp:+15551110001"})
        result = self.route(db, provider, RouteTo.OWNER, renter, building, unit)

        assert result.dispatched == []
        assert len(result.forwarded) == 1
        assert result.forwarded[0].success is False
        assert "Simulated failure" in result.forwarded[0].error

    def test_building_without_channel_number(self, db, building, unit, owner, renter):
        building.sms_number = None
        db.commit()

        provider = StubMessagingProvider()
        result = self.route(db, provider, RouteTo.OWNER, renter, building, unit, channel=Channel.SMS)

        assert result.skipped == [owner.id]
        assert provider.sent_messages == []
