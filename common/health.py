"""
common.health
~~~~~~~~~~~~~
GET /health/ – liveness + readiness probe.

Returns:
    200  {"status": "ok", "db": "ok", "console_backend": "local"}
    503  {"status": "degraded", "db": "error: <msg>", ...} – DB unreachable
"""
import structlog
from django.conf import settings
from django.db import connection, OperationalError
from django.http import JsonResponse

logger = structlog.get_logger(__name__)


def health_check(request):
    """Report database connectivity and which config store the console uses."""
    try:
        connection.ensure_connection()
        db_status = "ok"
    except OperationalError as exc:
        db_status = f"error: {exc}"
        logger.error("health_check_db_failure", error=str(exc))

    payload = {
        "status": "ok" if db_status == "ok" else "degraded",
        "db": db_status,
        "console_backend": settings.CONSOLE_BACKEND,
    }
    return JsonResponse(payload, status=200 if db_status == "ok" else 503)
