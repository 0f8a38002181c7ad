"""Game events for the event system."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

STREAM_TYPE = "blackjack_table"
SCHEMA_VERSION = 1
PRODUCER = "game"


class EventType(str, Enum):
    """
    Types of game events.

    Values are the tags written to the event log.
    """

    # Table events
    PLAYER_JOINED = "Join"
    PLAYER_LEFT = "Leave"
    SHUFFLE_CARDS = "ShuffleCards"
    RESHUFFLE = "Reshuffle"
    TABLE_CLOSED = "TableClosed"

    # Round flow events
    BETS_OPEN = "BetsOpen"
    BET_PLACED = "PlaceBet"
    BETS_CLOSED = "BetsClosed"
    DEAL_CARDS = "DealCards"
    CARD_DEALT = "CardDealt"
    PLAYER_BLACKJACK = "PlayerBlackjack"

    # Dealer peek and insurance
    DEALER_PEEK = "DealerPeek"
    INSURANCE_OFFERED = "InsuranceOffered"
    INSURANCE = "Insurance"
    INSURANCE_CLOSED = "InsuranceClosed"

    # Turn queue events
    ENQUEUE_ROUND_START = "EnqueueRoundStart"
    ENQUEUE = "Enqueue"
    ADVANCE_TURN = "AdvanceTurn"

    # Player action events
    HIT = "Hit"
    STAND = "Stand"
    DOUBLE = "Double"
    SPLIT = "Split"
    SURRENDER = "Surrender"

    # Dealer events
    DEALER_TURN = "DealerTurn"
    REVEAL_HOLE_CARD = "RevealHoleCard"
    DEALER_HIT = "DealerHit"
    DEALER_STAND = "DealerStand"
    DEALER_BUST = "DealerBust"

    # Outcome events
    SETTLED = "Settled"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class GameEvent:
    """
    Immutable game event.

    Events are both the notification mechanism for in-process subscribers
    and the records appended to the table's event stream.
    """

    event_type: EventType
    payload: dict[str, Any] = field(default_factory=dict)
    stream_id: str = ""
    stream_type: str = STREAM_TYPE
    schema_version: int = SCHEMA_VERSION
    producer: str = PRODUCER
    idempotency_key: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __str__(self) -> str:
        return f"{self.event_type.value}: {self.payload}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-friendly primitives."""
        return {
            "event_type": self.event_type.value,
            "payload": self.payload,
            "stream_id": self.stream_id,
            "stream_type": self.stream_type,
            "schema_version": self.schema_version,
            "producer": self.producer,
            "idempotency_key": self.idempotency_key,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameEvent":
        return cls(
            event_type=EventType(data["event_type"]),
            payload=dict(data.get("payload") or {}),
            stream_id=data.get("stream_id", ""),
            stream_type=data.get("stream_type", STREAM_TYPE),
            schema_version=int(data.get("schema_version", SCHEMA_VERSION)),
            producer=data.get("producer", PRODUCER),
            idempotency_key=data.get("idempotency_key"),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )


# Type alias for event handlers
EventHandler = Callable[[GameEvent], None]


class EventEmitter:
    """
    Simple event emitter for game events.

    Allows subscribing to specific event types or all events.
    """

    def __init__(self) -> None:
        self._handlers: dict[EventType | None, list[EventHandler]] = {}
        self._event_history: list[GameEvent] = []

    def subscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        """
        Subscribe to events.

        Args:
            handler: Function to call when event occurs
            event_type: Specific event type to subscribe to, or None for all events
        """
        self._handlers.setdefault(event_type, []).append(handler)

    def unsubscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: GameEvent) -> None:
        """
        Emit an event to all subscribers.

        Args:
            event: The event to emit
        """
        self._event_history.append(event)

        # Call type-specific handlers
        for handler in self._handlers.get(event.event_type, []):
            handler(event)

        # Call catch-all handlers
        for handler in self._handlers.get(None, []):
            handler(event)

    @property
    def history(self) -> list[GameEvent]:
        """Return the event history."""
        return self._event_history.copy()

    def of_type(self, event_type: EventType) -> list[GameEvent]:
        return [e for e in self._event_history if e.event_type == event_type]

    def clear_history(self) -> None:
        self._event_history.clear()
