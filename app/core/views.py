"""
Core views providing infrastructure endpoints.

This module contains views that are not part of the payment domain but are
essential for running the service, such as health checks.
"""

from django.db import DatabaseError, connection
from django.http import JsonResponse
from django_redis import get_redis_connection
from redis.exceptions import RedisError


def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    Reports the two stores the reconciliation path depends on:
    - database: order and installment rows (row locks live here)
    - redis: distributed refund locks

    HTTP Status Codes:
        200: Database reachable (redis is reported but not required)
        503: Database unreachable

    Example Response:
        {
            "status": "healthy",
            "database": "connected",
            "redis": "connected"
        }
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "redis": "unknown",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except DatabaseError:
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    # Refunds cannot start without redis, but notifications still reconcile
    try:
        get_redis_connection("default").ping()
        health_status["redis"] = "connected"
    except RedisError:
        health_status["redis"] = "disconnected"
        health_status["status"] = "degraded" if is_healthy else "unhealthy"

    status_code = 200 if is_healthy else 503
    return JsonResponse(health_status, status=status_code)
