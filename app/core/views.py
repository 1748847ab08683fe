"""
Infrastructure endpoints that are not part of the messaging API.
"""

import logging

from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Liveness/readiness check.

    Reports database and cache connectivity. The database is required for
    every chat operation so its failure makes the check return 503. The cache
    only backs presence and circuit breaker state, so its failure is reported
    but not fatal.

    Example Response:
        {"status": "healthy", "database": "connected", "cache": "connected"}
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "unknown",
    }

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except DatabaseError as e:
        logger.error(f"Health check database query failed: {e}")
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"

    try:
        cache.set("health_check", "ok", timeout=1)
        connected = cache.get("health_check") == "ok"
    except Exception as e:
        logger.warning(f"Health check cache access failed: {e}")
        connected = False
    health_status["cache"] = "connected" if connected else "disconnected"

    status_code = 200 if health_status["status"] == "healthy" else 503
    return JsonResponse(health_status, status=status_code)
