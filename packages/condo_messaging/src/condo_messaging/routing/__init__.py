"""
Routing

Channel normalization, tenant and sender resolution, conversation
resolution and owner/renter forwarding.
"""

from condo_messaging.routing.channel import NormalizedAddresses, normalize_addresses
from condo_messaging.routing.conversation import ConversationResolver
from condo_messaging.routing.recipient_router import RecipientRouter, RoutingResult, routing_targets
from condo_messaging.routing.tenant_resolver import TenantResolver

__all__ = [
    "ConversationResolver",
    "NormalizedAddresses",
    "RecipientRouter",
    "RoutingResult",
    "TenantResolver",
    "normalize_addresses",
    "routing_targets",
]
