from condo_messaging.providers.twilio.client import TwilioMessagingProvider
from condo_messaging.providers.twilio.webhook import validate_twilio_signature

__all__ = ["TwilioMessagingProvider", "validate_twilio_signature"]
