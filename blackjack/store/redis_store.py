"""Redis stream backed event store."""

import json
import logging

from redis import Redis, RedisError
from redis.client import Pipeline

from blackjack.errors import EventStoreError
from blackjack.game.events import GameEvent
from blackjack.store.base import AppendResult, EventStore, StoredEvent

logger = logging.getLogger(__name__)


class RedisEventStore(EventStore):
    """
    One Redis stream per table.

    Global ids and per-stream sequence numbers come from ``INCR`` counters;
    the stream entry stores both alongside the JSON-encoded event. An
    idempotency key claims a ``SET NX`` slot holding the original position.
    Each append is one WATCH/MULTI transaction, retried by redis-py when a
    watched key changes. A failed append advances no counter.
    """

    def __init__(self, redis_client: Redis, prefix: str = "blackjack") -> None:
        self._redis = redis_client
        self._prefix = prefix

    def _stream_key(self, stream_id: str) -> str:
        return f"{self._prefix}:stream:{stream_id}"

    def _seq_key(self, stream_id: str) -> str:
        return f"{self._prefix}:stream:{stream_id}:seq"

    def _id_key(self) -> str:
        return f"{self._prefix}:events:id"

    def _idempotency_key(self, key: str) -> str:
        return f"{self._prefix}:idempotency:{key}"

    def append(self, event: GameEvent) -> AppendResult:
        id_key = self._id_key()
        seq_key = self._seq_key(event.stream_id)
        idem_key = None
        if event.idempotency_key:
            idem_key = self._idempotency_key(event.idempotency_key)
        watched = [id_key, seq_key] + ([idem_key] if idem_key else [])

        def write(pipe: Pipeline) -> AppendResult:
            if idem_key is not None:
                existing = pipe.get(idem_key)
                if existing is not None:
                    data = json.loads(existing)
                    return AppendResult(id=int(data["id"]), seq=int(data["seq"]))

            # WATCH pins both counters, so INCR inside MULTI yields these values
            event_id = int(pipe.get(id_key) or 0) + 1
            seq = int(pipe.get(seq_key) or 0) + 1

            pipe.multi()
            pipe.incr(id_key)
            pipe.incr(seq_key)
            pipe.xadd(
                self._stream_key(event.stream_id),
                {
                    "id": event_id,
                    "seq": seq,
                    "event_type": event.event_type.value,
                    "event": json.dumps(event.to_dict()),
                },
            )
            if idem_key is not None:
                pipe.set(idem_key, json.dumps({"id": event_id, "seq": seq}), nx=True)
            return AppendResult(id=event_id, seq=seq)

        try:
            return self._redis.transaction(write, *watched, value_from_callable=True)
        except RedisError as exc:
            raise EventStoreError(f"failed to append {event.event_type.value}: {exc}") from exc

    def load_by_stream(
        self,
        stream_id: str,
        after_seq: int = 0,
        limit: int = 0,
    ) -> list[StoredEvent]:
        try:
            entries = self._redis.xrange(self._stream_key(stream_id))
        except RedisError as exc:
            raise EventStoreError(f"failed to load stream {stream_id}: {exc}") from exc

        events: list[StoredEvent] = []
        for _entry_id, fields in entries:
            fields = {_text(k): _text(v) for k, v in fields.items()}
            seq = int(fields["seq"])
            if seq <= after_seq:
                continue
            events.append(
                StoredEvent(
                    id=int(fields["id"]),
                    seq=seq,
                    event=GameEvent.from_dict(json.loads(fields["event"])),
                )
            )
            if limit > 0 and len(events) >= limit:
                break
        return events


def _text(value: bytes | str) -> str:
    return value.decode() if isinstance(value, bytes) else value
