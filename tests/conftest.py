"""Pytest fixtures for blackjack table tests."""

import pytest
from random import Random

from config import GameConfig
from blackjack.cards import Card, Deck, Shoe, Rank, Suit, parse_cards
from blackjack.hand import Hand
from blackjack.player import Player
from blackjack.game import Game
from blackjack.store import InMemoryEventStore


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def deck(rng):
    """A shuffled deck."""
    d = Deck(rng=rng)
    d.shuffle()
    return d


@pytest.fixture
def shoe(rng):
    """A shuffled 6-deck shoe at the minimum penetration."""
    return Shoe(num_decks=6, penetration=0.65, rng=rng)


@pytest.fixture
def make_hand():
    """Build a hand from card strings, e.g. make_hand("AS KH")."""

    def _make(cards: str, **kwargs) -> Hand:
        return Hand(cards=parse_cards(cards), **kwargs)

    return _make


@pytest.fixture
def empty_hand():
    """An empty player hand."""
    return Hand()


@pytest.fixture
def blackjack_hand():
    """A natural blackjack hand."""
    hand = Hand()
    hand.add_card(Card(Rank.ACE, Suit.SPADES))
    hand.add_card(Card(Rank.KING, Suit.HEARTS))
    return hand


@pytest.fixture
def soft_17_hand():
    """A soft 17 hand (A-6)."""
    hand = Hand()
    hand.add_card(Card(Rank.ACE, Suit.SPADES))
    hand.add_card(Card(Rank.SIX, Suit.HEARTS))
    return hand


@pytest.fixture
def pair_8s_hand():
    """A pair of 8s hand."""
    hand = Hand()
    hand.add_card(Card(Rank.EIGHT, Suit.SPADES))
    hand.add_card(Card(Rank.EIGHT, Suit.HEARTS))
    return hand


@pytest.fixture
def player():
    """A player who has not joined a table."""
    return Player(id="p1", name="Fedor")


@pytest.fixture
def store():
    """An in-memory event store."""
    return InMemoryEventStore()


def _padding() -> list[Card]:
    # Six ordered decks behind the stacked cards keep the cut card out of reach
    return [Card(rank, suit) for _ in range(6) for suit in Suit for rank in Rank]


@pytest.fixture
def table(store):
    """
    Build a shuffled table whose shoe deals ``cards`` first.

    Deal order per round is: each player in seat order, dealer up card,
    each player again, dealer hole card, then any draws.
    """

    def _make(
        cards: str,
        players: int = 1,
        config: GameConfig | None = None,
        strict: bool = True,
        shoe: Shoe | None = None,
    ) -> Game:
        game = Game(
            config=config,
            store=store,
            rng=Random(42),
            table_id="table-1",
            strict=strict,
        )
        names = ["Fedor", "Shane", "Jason"]
        for i in range(players):
            game.join(Player(id=f"p{i + 1}", name=names[i]))
        if shoe is None:
            shoe = Shoe.from_cards(parse_cards(cards) + _padding())
        game.shuffle(shoe=shoe)
        return game

    return _make


@pytest.fixture
def dealt_table(table):
    """A table with bets placed and cards dealt."""

    def _make(cards: str, players: int = 1, wager: int = 250, **kwargs) -> Game:
        game = table(cards, players=players, **kwargs)
        for player in game.players:
            game.place_bet(player.id, wager)
        game.close_bets()
        game.deal_cards()
        return game

    return _make

