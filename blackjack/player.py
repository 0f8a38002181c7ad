"""Seated players, their wallets, and the dealer."""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

from blackjack.cards import Card, Shoe
from blackjack.errors import (
    IneligibleHandError,
    InsufficientFundsError,
    MaxHandsError,
    WagerLimitError,
)
from blackjack.hand import Hand

MAX_HANDS_PER_PLAYER = 4
DEFAULT_GLOBAL_WALLET = 500000


class PlayerStatus(Enum):
    """Whether the player is in the current round."""

    ACTIVE = auto()
    IDLE = auto()


@dataclass(eq=False)
class Player:
    """
    A player at the table.

    ``local_wallet`` is the bankroll brought to this table; ``global_wallet``
    is what the player holds outside it. ``total_bet`` accumulates every chip
    wagered this round: main bet, doubles, splits and insurance.
    """

    id: str
    name: str
    hands: list[Hand] = field(default_factory=list)
    total_bet: int = 0
    local_wallet: int = 0
    global_wallet: int = DEFAULT_GLOBAL_WALLET
    status: PlayerStatus = PlayerStatus.ACTIVE

    def activate(self) -> None:
        self.status = PlayerStatus.ACTIVE

    def idle(self) -> None:
        self.status = PlayerStatus.IDLE

    @property
    def is_active(self) -> bool:
        return self.status == PlayerStatus.ACTIVE

    def clear_hands(self) -> None:
        """Drop all hands and reset the round's wager total."""
        for hand in self.hands:
            hand.clear()
        self.hands.clear()
        self.total_bet = 0

    def wager(self, amount: int, minimum: int, maximum: int) -> None:
        """
        Move ``amount`` from the local wallet onto the table.

        The caller attaches the amount to a hand or side bet.

        Raises:
            InsufficientFundsError: if the wallet cannot cover the wager
            WagerLimitError: if the amount is outside [minimum, maximum]
        """
        if amount > self.local_wallet:
            raise InsufficientFundsError(amount, self.local_wallet)
        if amount < minimum or amount > maximum:
            raise WagerLimitError(amount, minimum, maximum)

        self.total_bet += amount
        self.local_wallet -= amount

    def credit(self, amount: int) -> None:
        """Pay chips back into the local wallet."""
        self.local_wallet += amount

    def add_hand(self, hand: Hand) -> Hand:
        if len(self.hands) >= MAX_HANDS_PER_PLAYER:
            raise MaxHandsError(
                f"cannot add more hands: maximum of {MAX_HANDS_PER_PLAYER} reached"
            )
        self.hands.append(hand)
        return hand

    def owns(self, hand: Hand) -> bool:
        return any(h is hand for h in self.hands)

    def check_can_split(self, hand: Hand) -> None:
        """
        Raise unless ``hand`` may be split.

        Raises:
            MaxHandsError: if the player already holds the maximum hands
            IneligibleHandError: if the hand is past its first action or not a pair
        """
        if len(self.hands) >= MAX_HANDS_PER_PLAYER:
            raise MaxHandsError("cannot split; player has maximum number of hands")
        if not hand.is_first_action:
            raise IneligibleHandError(
                "cannot split; player can only split on first action of hand"
            )
        if not hand.is_pair:
            raise IneligibleHandError("cannot split; cards are not same value")

    def can_split(self, hand: Hand) -> bool:
        try:
            self.check_can_split(hand)
        except (MaxHandsError, IneligibleHandError):
            return False
        return True

    def snapshot(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "hands": [hand.snapshot() for hand in self.hands],
            "total_bet": self.total_bet,
            "local_wallet": self.local_wallet,
            "global_wallet": self.global_wallet,
            "status": self.status.name,
        }


@dataclass(eq=False)
class Dealer:
    """The dealer: owns the shoe and a single hand."""

    name: str = "Dealer"
    shoe: Shoe | None = None
    hand: Hand = field(default_factory=Hand)

    @property
    def up_card(self) -> Card | None:
        """The dealer's first, face-up card."""
        return self.hand.cards[0] if self.hand.cards else None

    def reveal_hole_card(self) -> Card | None:
        """
        Turn the hole card face up.

        The face-down card is replaced with its face-up copy, so snapshots
        taken earlier keep showing it hidden. Returns the revealed card.
        """
        for i, card in enumerate(self.hand.cards):
            if card.hidden:
                revealed = card.face_up()
                self.hand.cards[i] = revealed
                return revealed
        return None

    def clear_hand(self) -> None:
        self.hand = Hand()
