"""
Recipient Router

Decides which other party of the sender's unit gets a forwarded copy of a
message and sends it. Each forward is isolated: one failure neither blocks
the other forward nor fails the pipeline.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from uuid import UUID

from condo_messaging.contracts.payloads import (
    Channel,
    ClassificationResult,
    Language,
    ResidentRole,
    RouteTo,
)
from condo_messaging.persistence.models import Building, Resident, Unit
from condo_messaging.persistence.repo import CondoRepository
from condo_messaging.providers.base import MessagingProvider
from condo_messaging.routing.channel import to_transport_address
from condo_messaging.templates import forward_message

logger = logging.getLogger(__name__)


def contact_address(resident: Resident, channel: Channel) -> str | None:
    """Bare number to reach a resident on a channel, if any."""
    if channel == Channel.WHATSAPP:
        return resident.whatsapp_number or resident.phone
    return resident.phone or resident.whatsapp_number


def is_opted_in(resident: Resident, channel: Channel) -> bool:
    if channel == Channel.WHATSAPP:
        return bool(resident.opt_in_whatsapp)
    return bool(resident.opt_in_sms)


def building_number(building: Building, channel: Channel) -> str | None:
    if channel == Channel.WHATSAPP:
        return building.whatsapp_business_number
    return building.sms_number


@dataclass
class DeliveryOutcome:
    """Result of one isolated send."""

    recipient_id: UUID | None
    to: str
    success: bool
    message_id: str | None = None
    error: str | None = None


@dataclass
class RoutingResult:
    forwarded: list[DeliveryOutcome] = field(default_factory=list)
    skipped: list[UUID] = field(default_factory=list)

    @property
    def dispatched(self) -> list[UUID]:
        return [o.recipient_id for o in self.forwarded if o.success]


def routing_targets(
    route_to: RouteTo,
    sender: Resident,
    owner: Resident | None,
    renter: Resident | None,
) -> list[Resident]:
    """
    Decision table: who gets a forward, before opt-in and contact checks.

    The sender never appears in the result.
    """
    sender_role = ResidentRole(sender.role)
    candidates: list[Resident | None]

    if route_to == RouteTo.OWNER and sender_role == ResidentRole.RENTER:
        candidates = [owner]
    elif route_to == RouteTo.RENTER and sender_role == ResidentRole.OWNER:
        candidates = [renter]
    elif route_to == RouteTo.BOTH:
        candidates = [owner, renter]
    else:
        candidates = []

    targets: list[Resident] = []
    seen = {sender.id}
    for candidate in candidates:
        if candidate is not None and candidate.id not in seen:
            seen.add(candidate.id)
            targets.append(candidate)
    return targets


class RecipientRouter:
    """Forwards messages to the owner and/or renter of the sender's unit."""

    def __init__(self, repo: CondoRepository, provider: MessagingProvider):
        self.repo = repo
        self.provider = provider

    async def route(
        self,
        classification: ClassificationResult,
        sender: Resident,
        building: Building,
        unit: Unit | None,
        channel: Channel,
        message_text: str,
    ) -> RoutingResult:
        """
        Forward the message according to ``classification.route_to``.

        Returns:
            RoutingResult with per-recipient outcomes and skipped recipients
        """
        result = RoutingResult()
        if classification.route_to == RouteTo.ADMIN or unit is None:
            return result

        tenant_id = building.id
        owner = self.repo.get_resident(tenant_id, unit.owner_id)
        renter = (
            self.repo.get_resident(tenant_id, unit.current_renter_id)
            if unit.current_renter_id
            else None
        )

        targets = routing_targets(classification.route_to, sender, owner, renter)
        if not targets:
            return result

        from_number = building_number(building, channel)
        if not from_number:
            logger.warning(
                "Building has no number for channel, forwards skipped",
                extra={"tenant_id": str(tenant_id), "channel": channel.value},
            )
            result.skipped.extend(t.id for t in targets)
            return result

        sends = []
        for target in targets:
            to_number = contact_address(target, channel)
            if not to_number or not is_opted_in(target, channel):
                logger.info(
                    "Forward skipped: recipient not opted in or no contact address",
                    extra={
                        "tenant_id": str(tenant_id),
                        "recipient_id": str(target.id),
                        "channel": channel.value,
                    },
                )
                result.skipped.append(target.id)
                continue

            body = forward_message(
                route_to=classification.route_to,
                language=Language.coerce(target.preferred_language),
                unit_number=unit.unit_number,
                message_text=message_text,
                sender_name=sender.full_name,
            )
            sends.append(
                self._send(
                    target.id,
                    to_transport_address(to_number, channel),
                    to_transport_address(from_number, channel),
                    body,
                    tenant_id,
                )
            )

        result.forwarded = list(await asyncio.gather(*sends))
        return result

    async def _send(
        self,
        recipient_id: UUID,
        to: str,
        from_: str,
        body: str,
        tenant_id: UUID,
    ) -> DeliveryOutcome:
        try:
            response = await self.provider.send_message(to=to, from_=from_, body=body)
        except Exception as e:
            logger.error(
                f"Failed to forward message: {e}",
                extra={"tenant_id": str(tenant_id), "recipient_id": str(recipient_id), "to": to},
                exc_info=True,
            )
            return DeliveryOutcome(recipient_id=recipient_id, to=to, success=False, error=str(e))

        logger.info(
            "Message forwarded",
            extra={"tenant_id": str(tenant_id), "recipient_id": str(recipient_id), "to": to},
        )
        return DeliveryOutcome(
            recipient_id=recipient_id,
            to=to,
            success=response.success,
            message_id=response.message_id,
            error=response.error_message,
        )
