from condo_messaging.providers.resend.client import ResendEmailProvider

__all__ = ["ResendEmailProvider"]
