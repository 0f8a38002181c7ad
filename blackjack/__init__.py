"""Single-table blackjack engine - UI-agnostic."""

from blackjack.cards import Card, Deck, Shoe, Rank, Suit
from blackjack.hand import Hand, HandStatus, SideBet, SideBetType
from blackjack.player import Dealer, Player, PlayerStatus

__all__ = [
    "Card",
    "Deck",
    "Shoe",
    "Rank",
    "Suit",
    "Hand",
    "HandStatus",
    "SideBet",
    "SideBetType",
    "Dealer",
    "Player",
    "PlayerStatus",
]
