"""Outbox staging and delivery.

Services stage events with :func:`enqueue` inside their own transaction, so an event
exists exactly when the domain change it describes was committed. Delivery is a
separate step (``flask dispatch-outbox``): :class:`OutboxDispatcher` claims ready rows,
publishes each one on the in-process event bus, then settles the outcome. Subscribers
such as a mailer hang off the bus; a subscriber that raises only delays its own event.

Row lifecycle::

    pending -> sending -> sent
                  |
                  +-> retry -> sending ...   (backoff doubles per attempt)
                  +-> dead                   (attempts exhausted)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from roomchat.core.events.event_bus import EventBus, EventRecord, event_bus
from roomchat.extensions import db
from roomchat.platform.outbox.models import OutboxMessage

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_SENDING = "sending"
STATUS_SENT = "sent"
STATUS_RETRY = "retry"
STATUS_DEAD = "dead"

MAX_ATTEMPTS = 5
BASE_RETRY_DELAY = timedelta(seconds=30)
MAX_RETRY_DELAY = timedelta(hours=1)


def enqueue(
    event_name: str,
    payload: dict,
    user_id: Optional[int],
    available_at: Optional[datetime] = None,
) -> OutboxMessage:
    """Stage an event; it is committed (or rolled back) with the caller's transaction."""
    message = OutboxMessage(
        event_type=event_name,
        payload=payload or {},
        user_id=user_id,
        available_at=available_at or datetime.utcnow(),
        status=STATUS_PENDING,
        attempts=0,
    )
    db.session.add(message)
    return message


@dataclass
class DispatchReport:
    sent: List[int] = field(default_factory=list)
    retrying: List[int] = field(default_factory=list)
    dead: List[int] = field(default_factory=list)


class OutboxDispatcher:
    def __init__(
        self,
        bus: Optional[EventBus] = None,
        *,
        max_attempts: int = MAX_ATTEMPTS,
        base_delay: timedelta = BASE_RETRY_DELAY,
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self.bus = bus or event_bus
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.clock = clock

    def run(self, limit: int = 50) -> DispatchReport:
        report = DispatchReport()
        claimed = self._claim(limit)
        failures: Dict[int, str] = {}
        for message in claimed:
            error = self._deliver(message)
            if error is None:
                report.sent.append(message.id)
            else:
                failures[message.id] = error
        self._settle(report, failures)
        if claimed:
            logger.info(
                "outbox dispatch sent=%s retrying=%s dead=%s",
                len(report.sent),
                len(report.retrying),
                len(report.dead),
            )
        return report

    def retry_delay(self, attempts: int) -> timedelta:
        """Backoff before the next try, given how many tries have been made."""
        delay = self.base_delay * (2 ** max(attempts - 1, 0))
        return min(delay, MAX_RETRY_DELAY)

    def _claim(self, limit: int) -> List[OutboxMessage]:
        # Rows locked by a concurrent dispatcher are skipped, not waited on.
        claimed = (
            OutboxMessage.query.filter(
                OutboxMessage.available_at <= self.clock(),
                OutboxMessage.status.in_((STATUS_PENDING, STATUS_RETRY)),
            )
            .order_by(OutboxMessage.available_at, OutboxMessage.id)
            .with_for_update(skip_locked=True)
            .limit(limit)
            .all()
        )
        for message in claimed:
            message.status = STATUS_SENDING
            message.attempts += 1
        db.session.commit()
        return claimed

    def _deliver(self, message: OutboxMessage) -> Optional[str]:
        payload = dict(message.payload or {})
        payload.setdefault("event_id", message.id)
        record = EventRecord(
            event_type=message.event_type,
            payload=payload,
            user_id=message.user_id,
            id=message.id,
            created_at=message.created_at,
        )
        try:
            self.bus.publish(record)
        except Exception as err:
            logger.warning("outbox delivery failed id=%s type=%s: %s", message.id, message.event_type, err)
            return str(err) or err.__class__.__name__
        return None

    def _settle(self, report: DispatchReport, failures: Dict[int, str]) -> None:
        settled = list(report.sent) + list(failures)
        if not settled:
            return
        rows = (
            OutboxMessage.query.filter(
                OutboxMessage.id.in_(settled),
                OutboxMessage.status == STATUS_SENDING,
            )
            .with_for_update()
            .all()
        )
        now = self.clock()
        for message in rows:
            error = failures.get(message.id)
            if error is None:
                message.status = STATUS_SENT
                message.last_error = None
            elif message.attempts >= self.max_attempts:
                message.status = STATUS_DEAD
                message.last_error = error
                report.dead.append(message.id)
            else:
                message.status = STATUS_RETRY
                message.last_error = error
                message.available_at = now + self.retry_delay(message.attempts)
                report.retrying.append(message.id)
        db.session.commit()


def dispatch_ready(limit: int = 50, bus: Optional[EventBus] = None) -> DispatchReport:
    return OutboxDispatcher(bus).run(limit=limit)
