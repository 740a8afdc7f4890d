from __future__ import annotations

import logging

from qrorder.application.ports.publisher import EventPublisher
from qrorder.infrastructure.messaging.redis_client import get_redis_client

logger = logging.getLogger(__name__)


class RedisEventPublisher(EventPublisher):
    """Publishes order event envelopes on the restaurant's pub/sub channel.

    Redis pub/sub is fire-and-forget: a message sent while no kitchen screen is
    subscribed is simply dropped.
    """

    def __init__(self, timeout_seconds: float = 1.0) -> None:
        self._timeout_seconds = timeout_seconds

    def publish(self, channel: str, message: str) -> None:
        client = get_redis_client(timeout_seconds=self._timeout_seconds)
        receivers = client.publish(channel, message)
        if not receivers:
            logger.debug("event_published_without_subscribers", extra={"channel": channel})
