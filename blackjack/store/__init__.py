"""Event stores: where a table's event stream is persisted."""

import logging

from redis import Redis, RedisError

from config import AppConfig, config as app_config
from blackjack.store.base import AppendResult, EventStore, StoredEvent
from blackjack.store.memory import InMemoryEventStore
from blackjack.store.redis_store import RedisEventStore

logger = logging.getLogger(__name__)


def create_event_store(config: AppConfig | None = None) -> EventStore:
    """
    Build the configured event store.

    A Redis store that cannot be reached falls back to in-memory storage.
    """
    config = config or app_config
    if config.event_store.backend == "redis":
        client = Redis.from_url(config.redis.url)
        try:
            client.ping()
        except RedisError:
            logger.warning(
                "Redis at %s unreachable; using in-memory event store", config.redis.url
            )
        else:
            return RedisEventStore(client, prefix=config.event_store.stream_prefix)
    return InMemoryEventStore()


__all__ = [
    "AppendResult",
    "EventStore",
    "StoredEvent",
    "InMemoryEventStore",
    "RedisEventStore",
    "create_event_store",
]
