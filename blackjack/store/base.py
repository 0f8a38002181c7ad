"""Append-only event store interface."""

from abc import ABC, abstractmethod
from typing import NamedTuple

from blackjack.game.events import GameEvent


class AppendResult(NamedTuple):
    """Where an appended event landed."""

    id: int  # Global order across all streams
    seq: int  # Position within the event's stream


class StoredEvent(NamedTuple):
    """An event read back from the store."""

    id: int
    seq: int
    event: GameEvent


class EventStore(ABC):
    """
    Abstract event store.

    Implementations raise ``EventStoreError`` on failure. Events carrying an
    idempotency key are stored once; appending a duplicate returns the
    original position.
    """

    @abstractmethod
    def append(self, event: GameEvent) -> AppendResult:
        """Append an event to its stream."""
        ...

    @abstractmethod
    def load_by_stream(
        self,
        stream_id: str,
        after_seq: int = 0,
        limit: int = 0,
    ) -> list[StoredEvent]:
        """
        Load a stream's events ordered by seq.

        Args:
            stream_id: The stream to read
            after_seq: Only return events after this sequence number
            limit: Maximum number of events, 0 for no limit
        """
        ...
