from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status

from qrorder.infrastructure.db.session import ping_database
from qrorder.infrastructure.messaging.redis_client import ping_redis

logger = logging.getLogger(__name__)
router = APIRouter()

_PING_TIMEOUT_SECONDS = 1.0


@router.get("/health/live")
def live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
def ready(response: Response) -> dict[str, object]:
    """Ready once the order store and the event bus both answer a ping."""
    checks = {
        "postgres": ping_database(timeout_seconds=_PING_TIMEOUT_SECONDS),
        "redis": ping_redis(timeout_seconds=_PING_TIMEOUT_SECONDS),
    }
    if all(checks.values()):
        return {"status": "ok", "checks": checks}

    failed = sorted(name for name, healthy in checks.items() if not healthy)
    logger.warning("readiness_check_failed", extra={"failed_checks": failed})
    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {"status": "unavailable", "checks": checks}
