"""DRF exception handler producing one error envelope for every API error.

Shape::

    {
        "type": "validation_error" | "client_error" | "server_error",
        "errors": [{"code": "...", "detail": "...", "attr": "field" | null}],
    }

Domain exceptions are translated by the views themselves; this handler
only normalises what DRF raises (validation, authentication, throttling,
404 from the router, parse errors).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from rest_framework import exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = structlog.get_logger(__name__)


def _flatten(detail: Any, attr: Optional[str] = None) -> List[Dict[str, Any]]:
    if isinstance(detail, dict):
        errors: List[Dict[str, Any]] = []
        for key, value in detail.items():
            name = key if attr is None else f"{attr}.{key}"
            if key == "non_field_errors" and attr is None:
                name = None
            errors.extend(_flatten(value, name))
        return errors
    if isinstance(detail, list):
        errors = []
        for index, value in enumerate(detail):
            name = attr
            if isinstance(value, (dict, list)) and attr is not None:
                name = f"{attr}.{index}"
            errors.extend(_flatten(value, name))
        return errors
    code = getattr(detail, "code", None) or "error"
    return [{"code": str(code), "detail": str(detail), "attr": attr}]


def exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    response = drf_exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, exceptions.ValidationError):
        error_type = "validation_error"
        errors = _flatten(exc.detail)
    else:
        error_type = "client_error" if response.status_code < 500 else "server_error"
        detail = getattr(exc, "detail", str(exc))
        errors = _flatten(detail)

    view = context.get("view")
    logger.warning(
        "api.request_failed",
        status_code=response.status_code,
        error_type=error_type,
        view=view.__class__.__name__ if view is not None else None,
    )
    response.data = {"type": error_type, "errors": errors}
    return response
