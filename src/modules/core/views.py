import time
from typing import Any, Dict

import structlog
from django.core.cache import cache
from django.db import DatabaseError, connections
from django.db.models import Count
from django.http import HttpRequest, JsonResponse
from django.utils import timezone

from modules.core.models import EventStatus, OutboxEvent

logger = structlog.get_logger()


def _outbox_backlog() -> Dict[str, Any]:
    """Undelivered outbox rows; a growing backlog means the relay is not running."""
    counts = dict(
        OutboxEvent.objects.exclude(status=EventStatus.PUBLISHED)
        .order_by()
        .values_list("status")
        .annotate(total=Count("id"))
    )
    return {
        "status": "up",
        "pending": counts.get(EventStatus.PENDING, 0),
        "failed": counts.get(EventStatus.FAILED, 0),
    }


def health_check(request: HttpRequest) -> JsonResponse:
    services: Dict[str, Dict[str, Any]] = {}
    overall_healthy = True

    # Check database
    try:
        start = time.monotonic()
        conn = connections["default"]
        conn.ensure_connection()
        with conn.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        services["database"] = {
            "status": "up",
            "response_time_ms": round((time.monotonic() - start) * 1000, 2),
        }
    except Exception:
        services["database"] = {"status": "down"}
        overall_healthy = False
        logger.error("health_check.db_failure")

    # Check cache (throttle counters live here)
    try:
        start = time.monotonic()
        cache.set("_health_check", "ok", 10)
        result = cache.get("_health_check")
        if result != "ok":
            raise ConnectionError("Cache read failed")
        services["cache"] = {
            "status": "up",
            "response_time_ms": round((time.monotonic() - start) * 1000, 2),
        }
    except Exception:
        services["cache"] = {"status": "down"}
        overall_healthy = False
        logger.error("health_check.cache_failure")

    # Outbox backlog is informational and never fails the check
    if services["database"]["status"] == "up":
        try:
            services["outbox"] = _outbox_backlog()
        except DatabaseError:
            services["outbox"] = {"status": "unknown"}
            logger.warning("health_check.outbox_unavailable")
    else:
        services["outbox"] = {"status": "unknown"}

    status_code = 200 if overall_healthy else 503

    logger.info(
        "health_check.completed", status="healthy" if overall_healthy else "unhealthy"
    )

    return JsonResponse(
        {
            "status": "healthy" if overall_healthy else "unhealthy",
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=status_code,
    )
