"""
Condo Messaging

Inbound WhatsApp/SMS pipeline for condominium tenants: classification,
conversation tracking, owner/renter routing, escalation and auto-replies.
"""

__version__ = "0.1.0"
