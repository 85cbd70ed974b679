import time
from typing import Any, Dict

import structlog
from django.core.cache import cache
from django.db import DatabaseError, connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone

logger = structlog.get_logger(__name__)


def _elapsed_ms(start: float) -> float:
    return round((time.monotonic() - start) * 1000, 2)


def _probe_database() -> Dict[str, Any]:
    start = time.monotonic()
    try:
        conn = connections["default"]
        conn.ensure_connection()
        with conn.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except DatabaseError as exc:
        logger.error("health_check.database_down", error=str(exc))
        return {"status": "down"}
    return {"status": "up", "response_time_ms": _elapsed_ms(start)}


def _probe_cache() -> Dict[str, Any]:
    start = time.monotonic()
    try:
        cache.set("_health_check", "ok", 10)
        healthy = cache.get("_health_check") == "ok"
    except Exception as exc:  # cache backends raise backend-specific errors
        logger.error("health_check.cache_down", error=str(exc))
        return {"status": "down"}
    if not healthy:
        logger.error("health_check.cache_down", error="read-back mismatch")
        return {"status": "down"}
    return {"status": "up", "response_time_ms": _elapsed_ms(start)}


def health_check(request: HttpRequest) -> JsonResponse:
    """Report database and cache reachability (unauthenticated)."""
    services = {"database": _probe_database(), "cache": _probe_cache()}
    healthy = all(s["status"] == "up" for s in services.values())
    label = "healthy" if healthy else "unhealthy"

    logger.info("health_check.completed", status=label)

    return JsonResponse(
        {
            "status": label,
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if healthy else 503,
    )
