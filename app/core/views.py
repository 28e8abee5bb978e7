"""
Core views providing infrastructure endpoints.

Only the health check lives here; every domain endpoint belongs to an app.
"""

from django.db import connection
from django.http import JsonResponse
from django_redis import get_redis_connection


def health_check(request):
    """
    Health check for Docker, Kubernetes probes and load balancers.

    The database is required. Redis only backs the sweep locks and the
    cache, so an unreachable Redis reports "degraded" with a 200: postings
    and reads keep working, only the periodic tasks skip their runs.

    Example Response:
        {
            "status": "healthy",
            "database": "connected",
            "redis": "connected"
        }

    HTTP Status Codes:
        200: healthy or degraded
        503: database unreachable
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "redis": "unknown",
    }
    status_code = 200

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except Exception:
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        status_code = 503

    try:
        get_redis_connection("default").ping()
        health_status["redis"] = "connected"
    except Exception:
        health_status["redis"] = "disconnected"
        if status_code == 200:
            health_status["status"] = "degraded"

    return JsonResponse(health_status, status=status_code)
