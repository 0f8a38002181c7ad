"""In-memory event store for local play and tests."""

import logging
from collections import defaultdict

from blackjack.game.events import GameEvent
from blackjack.store.base import AppendResult, EventStore, StoredEvent

logger = logging.getLogger(__name__)


class InMemoryEventStore(EventStore):
    """Keeps every stream in process memory."""

    def __init__(self) -> None:
        self._streams: dict[str, list[StoredEvent]] = defaultdict(list)
        self._idempotency: dict[str, AppendResult] = {}
        self._next_id = 1

    def append(self, event: GameEvent) -> AppendResult:
        if event.idempotency_key and event.idempotency_key in self._idempotency:
            return self._idempotency[event.idempotency_key]

        stream = self._streams[event.stream_id]
        result = AppendResult(id=self._next_id, seq=len(stream) + 1)
        self._next_id += 1
        stream.append(StoredEvent(result.id, result.seq, event))

        if event.idempotency_key:
            self._idempotency[event.idempotency_key] = result
        logger.debug("event logged: %s %s", event.event_type.value, event.payload)
        return result

    def load_by_stream(
        self,
        stream_id: str,
        after_seq: int = 0,
        limit: int = 0,
    ) -> list[StoredEvent]:
        events = [e for e in self._streams.get(stream_id, []) if e.seq > after_seq]
        if limit > 0:
            events = events[:limit]
        return events

    def all(self) -> list[StoredEvent]:
        """Return every stored event in global order."""
        events = [e for stream in self._streams.values() for e in stream]
        return sorted(events, key=lambda e: e.id)

    def __len__(self) -> int:
        return sum(len(stream) for stream in self._streams.values())
