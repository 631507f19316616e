"""
Twilio webhook signature validation.
"""

from typing import Any

from twilio.request_validator import RequestValidator


def validate_twilio_signature(
    auth_token: str,
    url: str,
    params: dict[str, Any],
    signature: str,
) -> bool:
    """
    Validate the ``X-Twilio-Signature`` header of a form-encoded webhook.

    Args:
        auth_token: Twilio auth token for the account
        url: Full public URL Twilio posted to
        params: Decoded form fields
        signature: X-Twilio-Signature header value

    Returns:
        True if signature is valid
    """
    if not signature:
        return False
    return RequestValidator(auth_token).validate(url, params, signature)
