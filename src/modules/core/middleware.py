import uuid
from contextvars import ContextVar
from typing import Callable

import structlog
from django.http import HttpRequest, HttpResponse

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

logger = structlog.get_logger(__name__)

MAX_REQUEST_ID_LENGTH = 128


def resolve_request_id(header_value: str | None) -> str:
    """Use the caller's X-Request-ID when it is usable, otherwise a new UUID4."""
    if header_value:
        value = header_value.strip()
        if value and len(value) <= MAX_REQUEST_ID_LENGTH and value.isprintable():
            return value
    return str(uuid.uuid4())


class CorrelationIdMiddleware:
    """Binds a correlation id to every log line of a request.

    The id comes from the ``X-Request-ID`` header (or is generated), is kept
    in a ContextVar and in structlog's context vars, and is echoed back in
    the ``X-Request-ID`` response header.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        cid = resolve_request_id(request.META.get("HTTP_X_REQUEST_ID"))
        correlation_id_var.set(cid)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=cid)

        logger.info(
            "request.started",
            method=request.method,
            path=request.get_full_path(),
        )

        response = self.get_response(request)

        logger.info(
            "request.finished",
            method=request.method,
            path=request.get_full_path(),
            status_code=response.status_code,
        )

        response["X-Request-ID"] = cid
        return response
