"""
Channel Normalizer

Turns raw transport addresses into a channel and bare phone numbers.
Pure functions only: no I/O, no logging.
"""

import re
from dataclasses import dataclass

from condo_messaging.contracts.payloads import Channel
from condo_messaging.errors import ValidationError

WHATSAPP_PREFIX = "whatsapp:"

_SEPARATORS = re.compile(r"[\s\-().]")
_PHONE = re.compile(r"^\+?\d{5,15}$")


@dataclass(frozen=True)
class NormalizedAddresses:
    channel: Channel
    sender: str
    recipient: str


def _strip_prefix(address: str) -> tuple[str, bool]:
    if address[: len(WHATSAPP_PREFIX)].lower() == WHATSAPP_PREFIX:
        return address[len(WHATSAPP_PREFIX) :], True
    return address, False


def normalize_number(raw: str, field: str) -> str:
    """
    Strip formatting from a phone number and validate it.

    Raises:
        ValidationError: if nothing number-like remains
    """
    number = _SEPARATORS.sub("", raw or "")
    if not number:
        raise ValidationError(f"{field} address is empty", {"field": field})
    if not _PHONE.match(number):
        raise ValidationError(
            f"{field} address is not a phone number",
            {"field": field, "value": raw},
        )
    return number


def normalize_addresses(sender: str, recipient: str) -> NormalizedAddresses:
    """
    Detect the channel from the sender address and normalize both addresses.

    A ``whatsapp:`` prefix on the sender means WhatsApp; a bare number means
    SMS. The same prefix is stripped from the recipient when present.

    Raises:
        ValidationError: empty or non-numeric address
    """
    sender_body, is_whatsapp = _strip_prefix((sender or "").strip())
    recipient_body, _ = _strip_prefix((recipient or "").strip())

    return NormalizedAddresses(
        channel=Channel.WHATSAPP if is_whatsapp else Channel.SMS,
        sender=normalize_number(sender_body, "sender"),
        recipient=normalize_number(recipient_body, "recipient"),
    )


def to_transport_address(number: str, channel: Channel) -> str:
    """Inverse of normalization: the address format the provider expects."""
    if channel == Channel.WHATSAPP:
        return f"{WHATSAPP_PREFIX}{number}"
    return number
