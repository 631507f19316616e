"""
Tenant Resolver

Resolves the building from the inbound recipient number and the resident
from the sender number, scoped to that building.
"""

import logging
from uuid import UUID

from condo_messaging.errors import AmbiguousSenderError, SenderNotFoundError, TenantNotFoundError
from condo_messaging.persistence.models import Building, Resident
from condo_messaging.persistence.repo import CondoRepository

logger = logging.getLogger(__name__)


class TenantResolver:
    """
    Resolves tenant and sender from normalized webhook addresses.

    Sender lookup must be unambiguous: exactly one active resident of the
    building may match the number.
    """

    def __init__(self, repo: CondoRepository):
        self.repo = repo

    def resolve_building(self, recipient: str) -> Building:
        """
        Resolve the building that owns an inbound number.

        Raises:
            TenantNotFoundError: no building uses this number
        """
        building = self.repo.get_building_by_number(recipient)
        if building is None:
            logger.warning(f"No building found for inbound number: {recipient}")
            raise TenantNotFoundError("No building for recipient number", {"recipient": recipient})

        logger.debug(
            "Resolved building from recipient number",
            extra={"recipient": recipient, "tenant_id": str(building.id)},
        )
        return building

    def resolve_sender(self, tenant_id: UUID, sender: str) -> Resident:
        """
        Resolve the resident who sent a message.

        Raises:
            SenderNotFoundError: no resident matches
            AmbiguousSenderError: more than one resident matches
        """
        matches = self.repo.find_residents_by_contact(tenant_id, sender)

        if not matches:
            logger.info(
                "Unknown sender",
                extra={"tenant_id": str(tenant_id), "sender": sender},
            )
            raise SenderNotFoundError("Sender is not a resident", {"sender": sender})

        if len(matches) > 1:
            logger.error(
                "Ambiguous sender: number matches more than one resident",
                extra={
                    "tenant_id": str(tenant_id),
                    "sender": sender,
                    "resident_ids": [str(r.id) for r in matches],
                },
            )
            raise AmbiguousSenderError(
                "Sender matches more than one resident",
                {"sender": sender, "resident_ids": [str(r.id) for r in matches]},
            )

        return matches[0]
