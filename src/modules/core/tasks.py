"""Periodic tasks for the core module."""

from celery import shared_task

from modules.core.outbox import relay_pending_events


@shared_task(name="core.relay_outbox")
def relay_outbox() -> dict:
    """Re-deliver outbox events whose after-commit delivery did not happen."""
    delivered = relay_pending_events()
    return {"status": "ok", "delivered": delivered}
