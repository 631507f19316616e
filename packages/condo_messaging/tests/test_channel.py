"""
Tests for channel detection and address normalization.
"""

import pytest

from condo_messaging.contracts.payloads import Channel
from condo_messaging.errors import ValidationError
from condo_messaging.routing.channel import (
    normalize_addresses,
    normalize_number,
    to_transport_address,
)


class TestNormalizeAddresses:
    """Tests for normalize_addresses."""

    def test_whatsapp_prefix_means_whatsapp(self):
        """Test a whatsapp: sender is detected as WhatsApp and both prefixes stripped."""
        result = normalize_addresses("whatsapp:+15551234567", "whatsapp:+15550000001")
        assert result.channel == Channel.WHATSAPP
        assert result.sender == "+15551234567"
        assert result.recipient == "+15550000001"

    def test_bare_number_means_sms(self):
        """Test a bare sender number is detected as SMS."""
        result = normalize_addresses("+15551234567", "+15550000002")
        assert result.channel == Channel.SMS
        assert result.sender == "+15551234567"
        assert result.recipient == "+15550000002"

    def test_prefix_is_case_insensitive(self):
        """Test WhatsApp: prefix in mixed case."""
        result = normalize_addresses("WhatsApp:+15551234567", "+15550000001")
        assert result.channel == Channel.WHATSAPP
        assert result.sender == "+15551234567"

    def test_formatting_is_stripped(self):
        """Test spaces, dashes and parentheses are removed."""
        result = normalize_addresses("+1 (555) 123-4567", "+1 555 000 0002")
        assert result.sender == "+15551234567"
        assert result.recipient == "+15550000002"

    def test_empty_sender_rejected(self):
        """Test an empty sender address is a validation error."""
        with pytest.raises(ValidationError) as exc:
            normalize_addresses("", "+15550000001")
        assert exc.value.details["field"] == "sender"

    def test_prefix_only_rejected(self):
        """Test a bare whatsapp: prefix without a number is rejected."""
        with pytest.raises(ValidationError):
            normalize_addresses("whatsapp:", "+15550000001")

    def test_non_numeric_recipient_rejected(self):
        """Test a non-numeric recipient is rejected."""
        with pytest.raises(ValidationError) as exc:
            normalize_addresses("+15551234567", "not-a-number")
        assert exc.value.details["field"] == "recipient"


class TestNormalizeNumber:
    def test_too_short(self):
        with pytest.raises(ValidationError):
            normalize_number("+123", "sender")

    def test_without_plus(self):
        assert normalize_number("15551234567", "sender") == "15551234567"


class TestTransportAddress:
    def test_whatsapp(self):
        assert to_transport_address("+15551234567", Channel.WHATSAPP) == "whatsapp:+15551234567"

    def test_sms(self):
        assert to_transport_address("+15551234567", Channel.SMS) == "+15551234567"
