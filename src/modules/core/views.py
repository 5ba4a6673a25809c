import time
from typing import Any, Callable, Dict

import structlog
from django.core.cache import cache
from django.db import connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

logger = structlog.get_logger()


def _ping_database() -> None:
    connection = connections["default"]
    connection.ensure_connection()
    with connection.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()


def _ping_cache() -> None:
    # Order detail payloads and throttle counters both live in this cache.
    cache.set("health:ping", "pong", 10)
    if cache.get("health:ping") != "pong":
        raise ConnectionError("cache round trip failed")


PROBES: Dict[str, Callable[[], None]] = {
    "database": _ping_database,
    "cache": _ping_cache,
}


def _run_probe(name: str, probe: Callable[[], None]) -> Dict[str, Any]:
    started = time.monotonic()
    try:
        probe()
    except Exception:
        logger.exception("health_check.probe_failed", service=name)
        return {"status": "down"}
    return {
        "status": "up",
        "response_time_ms": round((time.monotonic() - started) * 1000, 2),
    }


def health_check(request: HttpRequest) -> JsonResponse:
    """Public liveness probe used by the load balancer and the worker hosts."""
    services = {name: _run_probe(name, probe) for name, probe in PROBES.items()}
    healthy = all(result["status"] == "up" for result in services.values())
    status = "healthy" if healthy else "unhealthy"

    logger.info("health_check.completed", status=status)
    return JsonResponse(
        {
            "status": status,
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if healthy else 503,
    )


class CurrentUserView(APIView):
    """Who am I: the name stamped on order log entries for this token."""

    permission_classes = [IsAuthenticated]

    def get(self, request: HttpRequest) -> Response:
        user = request.user
        return Response({"username": user.get_username(), "is_staff": user.is_staff})
