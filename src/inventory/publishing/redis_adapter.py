"""Redis pub/sub event publisher.

Each envelope is JSON-encoded and published on a single channel
(``inventory_events`` by default) for analytics, notifications and
storefront cache invalidation subscribers.
"""

import json

import redis
import structlog

from inventory.publishing.port import EventEnvelope, EventPublisher

logger = structlog.get_logger(__name__)


class RedisEventPublisher(EventPublisher):
    def __init__(self, url: str, channel: str = "inventory_events") -> None:
        self.url = url
        self.channel = channel
        self.client: redis.Redis | None = None

    def connect(self) -> None:
        self.client = redis.Redis.from_url(self.url)
        logger.info("Event publisher connected", channel=self.channel)

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
            self.client = None

    def publish(self, envelope: EventEnvelope) -> None:
        if self.client is None:
            raise ConnectionError("Redis publisher is not connected")
        self.client.publish(self.channel, json.dumps(envelope.to_dict(), default=str))
