"""Card, Deck, and Shoe classes - immutable card representations."""

import logging
import math
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from random import Random
from typing import Iterable, Iterator, Sequence

from blackjack.errors import ShoeExhaustedError

logger = logging.getLogger(__name__)

# Cut card placement bounds, as a fraction of the shoe
MIN_PENETRATION = 0.65
MAX_PENETRATION = 0.85
CUT_CARD_JITTER = 0.02


class Suit(Enum):
    """Card suits."""

    HEARTS = auto()
    DIAMONDS = auto()
    CLUBS = auto()
    SPADES = auto()

    def __str__(self) -> str:
        symbols = {
            Suit.CLUBS: "♣",
            Suit.DIAMONDS: "♦",
            Suit.HEARTS: "♥",
            Suit.SPADES: "♠",
        }
        return symbols[self]


class Rank(Enum):
    """Card ranks with blackjack values."""

    ACE = 14
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13

    def __str__(self) -> str:
        if self.value <= 10:
            return str(self.value)
        return {
            Rank.JACK: "J",
            Rank.QUEEN: "Q",
            Rank.KING: "K",
            Rank.ACE: "A",
        }[self]

    @property
    def blackjack_value(self) -> int:
        """Return the blackjack point value (Ace = 11, face cards = 10)."""
        if self.value <= 10:
            return self.value
        if self == Rank.ACE:
            return 11
        return 10  # Face cards

    @property
    def is_ace(self) -> bool:
        return self == Rank.ACE

    @property
    def is_ten_value(self) -> bool:
        """Check if this rank has a value of 10."""
        return self.blackjack_value == 10


_RANK_SYMBOLS = {
    "A": Rank.ACE,
    "2": Rank.TWO,
    "3": Rank.THREE,
    "4": Rank.FOUR,
    "5": Rank.FIVE,
    "6": Rank.SIX,
    "7": Rank.SEVEN,
    "8": Rank.EIGHT,
    "9": Rank.NINE,
    "10": Rank.TEN,
    "T": Rank.TEN,
    "J": Rank.JACK,
    "Q": Rank.QUEEN,
    "K": Rank.KING,
}

_SUIT_SYMBOLS = {
    "C": Suit.CLUBS,
    "♣": Suit.CLUBS,
    "D": Suit.DIAMONDS,
    "♦": Suit.DIAMONDS,
    "H": Suit.HEARTS,
    "♥": Suit.HEARTS,
    "S": Suit.SPADES,
    "♠": Suit.SPADES,
}


@dataclass(frozen=True, slots=True)
class Card:
    """
    Immutable playing card.

    ``hidden`` marks a face-down card (the dealer's hole card). It does not
    take part in equality: a card turned over is still the same card.
    """

    rank: Rank
    suit: Suit
    hidden: bool = field(default=False, compare=False)

    def __str__(self) -> str:
        if self.hidden:
            return "??"
        return f"{self.rank}{self.suit}"

    def __repr__(self) -> str:
        flag = ", hidden" if self.hidden else ""
        return f"Card({self.rank.name}, {self.suit.name}{flag})"

    @property
    def value(self) -> int:
        """Return the blackjack point value."""
        return self.rank.blackjack_value

    @property
    def is_ace(self) -> bool:
        return self.rank.is_ace

    @property
    def is_ten_value(self) -> bool:
        return self.rank.is_ten_value

    def face_down(self) -> "Card":
        """Return a hidden copy of this card."""
        return replace(self, hidden=True)

    def face_up(self) -> "Card":
        """Return a visible copy of this card."""
        return replace(self, hidden=False)

    @classmethod
    def from_string(cls, s: str) -> "Card":
        """Create a card from a string like '2♣', 'AS', 'Kh', '10d'."""
        s = s.strip().upper()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        rank_str = s[:-1]
        suit_str = s[-1]

        if rank_str not in _RANK_SYMBOLS:
            raise ValueError(f"Invalid rank: {rank_str}")
        if suit_str not in _SUIT_SYMBOLS:
            raise ValueError(f"Invalid suit: {suit_str}")

        return cls(_RANK_SYMBOLS[rank_str], _SUIT_SYMBOLS[suit_str])


def parse_cards(text: str) -> list[Card]:
    """Parse a whitespace separated list of cards, e.g. ``"AS KH 10d"``."""
    return [Card.from_string(token) for token in text.split()]


class Deck:
    """A standard 52-card deck."""

    def __init__(self, rng: Random | None = None) -> None:
        self._rng = rng or Random()
        self._cards: list[Card] = []
        self.reset()

    def reset(self) -> None:
        """Reset deck to all 52 cards in order."""
        self._cards = [Card(rank, suit) for suit in Suit for rank in Rank]

    def shuffle(self) -> None:
        self._rng.shuffle(self._cards)

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)


def clamp_penetration(penetration: float) -> float:
    """Clamp a penetration fraction into the allowed cut card range."""
    return min(max(penetration, MIN_PENETRATION), MAX_PENETRATION)


class Shoe:
    """
    A multi-deck shoe with a cut card.

    Cards are dealt from a cursor rather than popped, so the full order of
    the shoe stays inspectable. The cut card is placed once per shuffle at
    ``penetration ± 2%`` of the shoe. Dealing the card at the cut position
    flags the shoe for a reshuffle; the table honors the flag between rounds.
    """

    def __init__(
        self,
        num_decks: int = 6,
        penetration: float = MIN_PENETRATION,
        rng: Random | None = None,
    ) -> None:
        """
        Initialize and shuffle a shoe with multiple decks.

        Args:
            num_decks: Number of decks in the shoe (typically 6 or 8)
            penetration: Fraction of shoe dealt before reshuffle, clamped to 0.65-0.85
            rng: Random number generator for shuffling
        """
        if num_decks < 1:
            raise ValueError("Shoe must have at least 1 deck")

        self._rng = rng or Random()
        decks = [Deck(rng=self._rng) for _ in range(num_decks)]
        self._init(
            [card for deck in decks for card in deck],
            penetration,
            shuffle=True,
        )

    def _init(self, cards: list[Card], penetration: float, shuffle: bool) -> None:
        self._penetration = clamp_penetration(penetration)
        self._cards = cards
        self._pos = 0
        self._cut_index = 0
        self._reshuffle = False
        if shuffle:
            self._rng.shuffle(self._cards)
        self._place_cut_card()

    @classmethod
    def from_decks(
        cls,
        decks: Iterable[Deck],
        penetration: float = MIN_PENETRATION,
        rng: Random | None = None,
    ) -> "Shoe":
        """Merge the given decks into a single shuffled shoe."""
        decks = list(decks)
        if not decks:
            raise ValueError("Shoe must have at least 1 deck")
        shoe = cls.__new__(cls)
        shoe._rng = rng or Random()
        shoe._init(
            [card for deck in decks for card in deck],
            penetration,
            shuffle=True,
        )
        return shoe

    @classmethod
    def from_cards(
        cls,
        cards: Sequence[Card],
        penetration: float = MAX_PENETRATION,
        rng: Random | None = None,
    ) -> "Shoe":
        """
        Build a shoe that deals ``cards`` in the given order.

        Used to replay a recorded shoe. The cut card is still placed, and a
        later reshuffle randomizes the same cards.
        """
        if not cards:
            raise ValueError("Shoe must contain at least one card")
        shoe = cls.__new__(cls)
        shoe._rng = rng or Random()
        shoe._init(
            [card.face_up() for card in cards],
            penetration,
            shuffle=False,
        )
        return shoe

    def _place_cut_card(self) -> None:
        total = len(self._cards)
        lowest = math.ceil((self._penetration - CUT_CARD_JITTER) * total)
        highest = math.floor((self._penetration + CUT_CARD_JITTER) * total)
        if lowest > highest:
            # No whole index falls inside the band on a very short shoe
            self._cut_index = int(self._penetration * total)
            return
        jitter = self._rng.uniform(-CUT_CARD_JITTER, CUT_CARD_JITTER)
        cut = round((self._penetration + jitter) * total)
        self._cut_index = min(max(cut, lowest), highest)

    def shuffle(self, penetration: float | None = None) -> None:
        """Reshuffle every card back into the shoe and place a new cut card."""
        if penetration is not None:
            self._penetration = clamp_penetration(penetration)
        self._pos = 0
        self._reshuffle = False
        self._rng.shuffle(self._cards)
        self._place_cut_card()
        logger.debug(
            "Shoe shuffled: %d cards, cut card at %d", len(self._cards), self._cut_index
        )

    def draw(self) -> Card:
        """Draw the next card from the shoe."""
        if self._pos >= len(self._cards):
            raise ShoeExhaustedError("Cannot draw from exhausted shoe")
        card = self._cards[self._pos]
        self._pos += 1
        if not self._reshuffle and self.reached_cut_card:
            self._reshuffle = True
            logger.info("Cut card reached after %d cards; reshuffle pending", self._pos)
        return card

    @property
    def reached_cut_card(self) -> bool:
        """Check if the cut card has been dealt."""
        return self._pos >= self._cut_index

    @property
    def reshuffle_pending(self) -> bool:
        """Whether the shoe must be reshuffled at the end of the round."""
        return self._reshuffle

    @property
    def cut_index(self) -> int:
        return self._cut_index

    @property
    def position(self) -> int:
        """Return the number of cards dealt since the last shuffle."""
        return self._pos

    @property
    def cards_remaining(self) -> int:
        return len(self._cards) - self._pos

    @property
    def total_cards(self) -> int:
        return len(self._cards)

    @property
    def penetration(self) -> float:
        """Return the configured (clamped) penetration."""
        return self._penetration

    def __len__(self) -> int:
        return self.cards_remaining

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards[self._pos:])
