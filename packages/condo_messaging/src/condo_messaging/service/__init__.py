"""
Condo Messaging Service Layer

The inbound handler and the pipeline stages it orchestrates.
"""

from condo_messaging.service.escalation import EscalationNotifier, should_auto_reply, should_escalate
from condo_messaging.service.inbound_handler import InboundHandler, PipelineConfig, PipelineProviders
from condo_messaging.service.maintenance import MaintenanceExtractor
from condo_messaging.service.persister import MessagePersister
from condo_messaging.service.reply import ReplyDispatcher

__all__ = [
    "EscalationNotifier",
    "InboundHandler",
    "MaintenanceExtractor",
    "MessagePersister",
    "PipelineConfig",
    "PipelineProviders",
    "ReplyDispatcher",
    "should_auto_reply",
    "should_escalate",
]
