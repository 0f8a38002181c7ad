"""Hand evaluation and side bets for blackjack."""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Iterator

from blackjack.cards import Card


class HandStatus(Enum):
    """
    Hand status within a round.

    Only QUALIFIED hands accept further player actions; every other status
    is final until the hand is cleared for the next round.
    """

    QUALIFIED = auto()
    BUSTED = auto()
    BLACKJACK = auto()
    SURRENDERED = auto()
    SETTLED = auto()

    def __str__(self) -> str:
        return self.name.title()


class SideBetType(Enum):
    """Side bet types. Only insurance is offered at the table."""

    INSURANCE = "INSURANCE"
    DEALER_BUST = "DEALER_BUST"
    PLAYER_PAIR = "PLAYER_PAIR"


@dataclass
class SideBet:
    """A side bet placed against a hand."""

    bet_type: SideBetType
    amount: int
    min_wager: int = 1
    max_wager: int = 0
    paid: bool = False

    def mark_paid(self) -> None:
        self.paid = True

    @classmethod
    def limits_for(cls, bet_type: SideBetType, min_wager: int, max_wager: int) -> tuple[int, int]:
        """
        Return (min, max) side bet limits derived from the table limits.

        Insurance may be anything from 1 chip up to the table maximum; other
        side bets run from 10% of the table minimum to half the table maximum.
        """
        if bet_type == SideBetType.INSURANCE:
            return 1, max_wager
        return int(0.1 * min_wager), int(0.5 * max_wager)


@dataclass
class Hand:
    """A blackjack hand with value calculation."""

    cards: list[Card] = field(default_factory=list)
    bet: int = 0
    index: int = 0
    status: HandStatus = HandStatus.QUALIFIED
    side_bets: list[SideBet] = field(default_factory=list)
    is_doubled: bool = False
    is_split_hand: bool = False

    def add_card(self, card: Card) -> None:
        self.cards.append(card)

    def clear(self) -> None:
        """Remove all cards and bets from the hand."""
        self.cards.clear()
        self.side_bets.clear()
        self.bet = 0
        self.status = HandStatus.QUALIFIED
        self.is_doubled = False
        self.is_split_hand = False

    def _total(self, include_hidden: bool) -> int:
        total = 0
        aces = 0

        for card in self.cards:
            if card.hidden and not include_hidden:
                continue
            if card.is_ace:
                aces += 1
            total += card.value

        # Reduce aces from 11 to 1 as needed
        while total > 21 and aces > 0:
            total -= 10
            aces -= 1

        return total

    @property
    def value(self) -> int:
        """
        Calculate the best value of the visible cards.

        Returns the highest value that doesn't bust, or the lowest bust value.
        Face-down cards are ignored; use ``value_all`` for the true total.
        """
        return self._total(include_hidden=False)

    @property
    def value_all(self) -> int:
        """Calculate the best value including face-down cards."""
        return self._total(include_hidden=True)

    @property
    def is_soft(self) -> bool:
        """
        Check if the hand is soft (has an ace counted as 11).

        A hand is soft if it contains an ace that can be counted as 11
        without busting.
        """
        if not any(card.is_ace for card in self.cards):
            return False

        total_hard = sum(1 if card.is_ace else card.value for card in self.cards)
        return total_hard + 10 <= 21

    @property
    def is_natural(self) -> bool:
        """Check if the hand is a natural blackjack (21 with 2 cards, not split)."""
        return (
            len(self.cards) == 2
            and self.value_all == 21
            and not self.is_split_hand
        )

    @property
    def is_busted(self) -> bool:
        """Check if the hand has busted (value > 21)."""
        return self.status == HandStatus.BUSTED or self.value_all > 21

    @property
    def is_qualified(self) -> bool:
        return self.status == HandStatus.QUALIFIED

    @property
    def is_first_action(self) -> bool:
        """Check if the hand is untouched: two cards and still in play."""
        return len(self.cards) == 2 and self.is_qualified

    @property
    def is_pair(self) -> bool:
        """Check if the two cards split: same rank, or both ten-valued."""
        if len(self.cards) != 2:
            return False
        first, second = self.cards
        return first.rank == second.rank or (first.is_ten_value and second.is_ten_value)

    def check_blackjack(self) -> bool:
        """Flag the hand as BLACKJACK if it is a natural."""
        if self.status == HandStatus.QUALIFIED and self.is_natural:
            self.status = HandStatus.BLACKJACK
            return True
        return False

    def check_bust(self) -> bool:
        """Flag the hand as BUSTED if its total is over 21."""
        if self.value_all > 21:
            self.status = HandStatus.BUSTED
            return True
        return False

    def latest_unpaid_side_bet(self, bet_type: SideBetType) -> SideBet | None:
        """Return the most recent unpaid side bet of the given type."""
        for side_bet in reversed(self.side_bets):
            if side_bet.bet_type == bet_type and not side_bet.paid:
                return side_bet
        return None

    def has_side_bet(self, bet_type: SideBetType) -> bool:
        return any(sb.bet_type == bet_type for sb in self.side_bets)

    def snapshot(self) -> dict[str, Any]:
        """Return a plain-data view of the hand (hidden cards masked)."""
        return {
            "index": self.index,
            "cards": [str(card) for card in self.cards],
            "value": self.value,
            "status": self.status.name,
            "bet": self.bet,
            "side_bets": [
                {"type": sb.bet_type.value, "amount": sb.amount, "paid": sb.paid}
                for sb in self.side_bets
            ],
            "is_doubled": self.is_doubled,
            "is_split_hand": self.is_split_hand,
        }

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __str__(self) -> str:
        cards_str = " ".join(str(card) for card in self.cards)
        value_str = f"({self.value})"
        if self.is_soft:
            value_str = f"(soft {self.value})"
        if self.status == HandStatus.BLACKJACK:
            value_str = "(BLACKJACK)"
        if self.status == HandStatus.BUSTED:
            value_str = "(BUST)"
        return f"{cards_str} {value_str}"

    def __repr__(self) -> str:
        return f"Hand({self.cards!r}, value={self.value}, status={self.status.name})"
