"""Turn queue: who acts next, and on which hand."""

from collections import deque
from dataclasses import dataclass
from typing import Iterator

from blackjack.hand import Hand
from blackjack.player import Player


@dataclass(frozen=True, eq=False)
class Turn:
    """A (player, hand) pair. Holds references, never copies."""

    player: Player
    hand: Hand

    def __repr__(self) -> str:
        return f"Turn(player={self.player.id!r}, hand={self.hand.index})"


class TurnQueue:
    """
    FIFO of pending turns with an "inject next" insert.

    The head turn is kept apart from the rest so that both popping the head
    and inserting right behind it are O(1). ``inject_next`` is how a split
    hand gets played immediately after the hand it came from, before any
    other seat.
    """

    def __init__(self) -> None:
        self._head: Turn | None = None
        self._rest: deque[Turn] = deque()

    def enqueue(self, turn: Turn) -> None:
        """Append a turn to the tail."""
        if self._head is None:
            self._head = turn
        else:
            self._rest.append(turn)

    def dequeue(self) -> Turn:
        """
        Pop the head turn.

        Raises:
            IndexError: if the queue is empty
        """
        if self._head is None:
            raise IndexError("dequeue from empty turn queue")
        turn = self._head
        self._head = self._rest.popleft() if self._rest else None
        return turn

    def peek(self) -> Turn | None:
        """Return the head turn without removing it."""
        return self._head

    def inject_next(self, turn: Turn) -> None:
        """Insert a turn directly behind the head (or as head if empty)."""
        if self._head is None:
            self._head = turn
        else:
            self._rest.appendleft(turn)

    def clear(self) -> None:
        self._head = None
        self._rest.clear()

    def __len__(self) -> int:
        return (1 if self._head is not None else 0) + len(self._rest)

    def __bool__(self) -> bool:
        return self._head is not None

    def __iter__(self) -> Iterator[Turn]:
        if self._head is not None:
            yield self._head
            yield from self._rest

    def __repr__(self) -> str:
        return f"TurnQueue({list(self)!r})"
