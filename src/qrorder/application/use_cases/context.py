from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from qrorder.application.ports.publisher import EventPublisher

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class TraceContext:
    trace_id: str | None
    request_id: str | None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def publish_event(publisher: EventPublisher, channel: str, message: str) -> None:
    # Events are best effort; the write has already been committed.
    try:
        publisher.publish(channel=channel, message=message)
    except Exception:
        logger.warning("event_publish_failed", extra={"channel": channel}, exc_info=True)
