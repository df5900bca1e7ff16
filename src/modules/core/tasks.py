"""Background tasks for the core module."""

from __future__ import annotations

import structlog
from celery import shared_task
from django.db.models import Q

from modules.core.models import EventStatus, OutboxEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)

OUTBOX_BATCH_SIZE = 100
OUTBOX_MAX_RETRIES = 5


@shared_task(name="core.publish_outbox_events")
def publish_outbox_events(batch_size: int = OUTBOX_BATCH_SIZE) -> dict:
    """Relay pending outbox rows to the in-process event bus."""
    pending = OutboxEvent.objects.filter(
        Q(status=EventStatus.PENDING)
        | Q(status=EventStatus.FAILED, retry_count__lt=OUTBOX_MAX_RETRIES)
    ).order_by("created_at", "id")[:batch_size]

    published = failed = 0
    for outbox_event in pending:
        log = logger.bind(
            outbox_id=str(outbox_event.id), event_type=outbox_event.event_type
        )
        try:
            event_bus.publish(outbox_event.event_type, outbox_event.payload)
        except Exception as exc:
            log.exception("outbox.publish_failed")
            outbox_event.mark_as_failed(str(exc))
            failed += 1
            continue
        outbox_event.mark_as_published()
        published += 1

    logger.info("outbox.relay_finished", published=published, failed=failed)
    return {"published": published, "failed": failed}
