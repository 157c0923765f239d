"""Transactional outbox models and helpers."""

from roomchat.platform.outbox.models import OutboxMessage
from roomchat.platform.outbox.services import (
    DispatchReport,
    OutboxDispatcher,
    dispatch_ready,
    enqueue,
)

__all__ = [
    "OutboxMessage",
    "enqueue",
    "dispatch_ready",
    "DispatchReport",
    "OutboxDispatcher",
]
