import uuid
from contextvars import ContextVar
from typing import Callable, Optional

import structlog
from django.http import HttpRequest, HttpResponse

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

logger = structlog.get_logger()


def _user_id(request: HttpRequest) -> Optional[str]:
    # DRF copies the JWT-authenticated user back onto the Django request.
    user = getattr(request, "user", None)
    if user is not None and user.is_authenticated:
        return str(user.pk)
    return None


class CorrelationIdMiddleware:
    """Extracts or generates a correlation ID for each request.

    Reads the X-Request-ID header and falls back to a fresh UUID4. The ID
    is bound into structlog's context variables so checkout, webhook and
    outbox log lines of one request share it, and is echoed back in the
    X-Request-ID response header.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        cid = request.META.get("HTTP_X_REQUEST_ID") or str(uuid.uuid4())
        correlation_id_var.set(cid)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=cid)

        logger.info(
            "http.request_started",
            method=request.method,
            path=request.path,
        )

        response = self.get_response(request)

        logger.info(
            "http.request_finished",
            method=request.method,
            path=request.path,
            status_code=response.status_code,
            user_id=_user_id(request),
        )

        response["X-Request-ID"] = cid
        return response
