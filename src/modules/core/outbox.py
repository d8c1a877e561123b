"""Outbox recording and after-commit delivery of domain events.

``record_events`` runs inside the unit of work that changed the
aggregate.  ``dispatch_on_commit`` schedules in-process delivery for when
that unit of work commits; a rollback drops both the rows and the
delivery.  ``relay_pending_events`` re-delivers rows whose in-process
delivery never happened or failed.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Iterable, Optional

import structlog
from django.db import transaction
from django.utils import timezone

from modules.core.models import EventStatus, OutboxEvent
from shared.domain.bus import IEventBus
from shared.domain.events import DomainEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)

MAX_RELAY_ATTEMPTS = 5


def record_events(events: Iterable[DomainEvent], topic: str) -> list[OutboxEvent]:
    """Persist *events* as ``PENDING`` outbox rows (same transaction)."""
    rows = [
        OutboxEvent(
            id=event.event_id,
            event_type=event.event_name,
            aggregate_id=str(event.aggregate_id),
            payload=event.to_payload(),
            topic=topic,
        )
        for event in events
    ]
    return OutboxEvent.objects.bulk_create(rows)


def deliver(event: DomainEvent, bus: Optional[IEventBus] = None) -> bool:
    """Publish *event* and mark its outbox row.

    Handler failures are recorded on the row and logged; they never
    propagate to the request that produced the event.
    """
    bus = bus or event_bus
    row = OutboxEvent.objects.filter(id=event.event_id).first()
    try:
        bus.publish(event)
    except Exception as exc:
        logger.exception(
            "outbox.delivery_failed",
            event_name=event.event_name,
            aggregate_id=str(event.aggregate_id),
        )
        if row:
            row.mark_as_failed(str(exc))
        return False
    if row:
        row.mark_as_published()
    return True


def dispatch_on_commit(events: Iterable[DomainEvent]) -> None:
    """Deliver *events* once the surrounding transaction commits."""
    for event in list(events):
        transaction.on_commit(lambda event=event: deliver(event))


def relay_pending_events(
    older_than: timedelta = timedelta(minutes=1), limit: int = 100
) -> int:
    """Re-deliver stale ``PENDING``/``FAILED`` outbox rows.

    Returns the number of rows delivered successfully.
    """
    cutoff = timezone.now() - older_than
    rows = OutboxEvent.objects.filter(
        status__in=[EventStatus.PENDING, EventStatus.FAILED],
        retry_count__lt=MAX_RELAY_ATTEMPTS,
        created_at__lte=cutoff,
    ).order_by("created_at")[:limit]

    delivered = 0
    for row in rows:
        event = DomainEvent.from_payload(row.payload)
        if deliver(event):
            delivered += 1
    logger.info("outbox.relay_completed", delivered=delivered)
    return delivered
