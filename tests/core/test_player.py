"""Tests for Player wallets and the Dealer."""

import pytest

from blackjack.cards import Card, Rank, Suit
from blackjack.errors import (
    IneligibleHandError,
    InsufficientFundsError,
    MaxHandsError,
    WagerLimitError,
)
from blackjack.hand import Hand, HandStatus
from blackjack.player import MAX_HANDS_PER_PLAYER, Dealer, Player, PlayerStatus


class TestWager:
    """Tests for moving chips onto the table."""

    def test_wager_moves_chips(self, player):
        player.local_wallet = 1000
        player.wager(250, 250, 10000)

        assert player.local_wallet == 750
        assert player.total_bet == 250

    def test_wager_accumulates(self, player):
        """Test doubles and splits add to the round total."""
        player.local_wallet = 1000
        player.wager(250, 250, 10000)
        player.wager(250, 250, 250)
        assert player.total_bet == 500
        assert player.local_wallet == 500

    def test_insufficient_funds_checked_first(self, player):
        """Test that an unaffordable out-of-limit wager reports funds."""
        player.local_wallet = 100
        with pytest.raises(InsufficientFundsError) as exc_info:
            player.wager(20000, 250, 10000)
        assert exc_info.value.required == 20000
        assert exc_info.value.available == 100

    @pytest.mark.parametrize("amount", [249, 10001])
    def test_wager_outside_limits(self, player, amount):
        player.local_wallet = 100000
        with pytest.raises(WagerLimitError):
            player.wager(amount, 250, 10000)
        assert player.local_wallet == 100000
        assert player.total_bet == 0

    def test_credit(self, player):
        player.credit(500)
        assert player.local_wallet == 500


class TestHands:
    """Tests for hand ownership and split eligibility."""

    def test_add_hand_limit(self, player):
        for i in range(MAX_HANDS_PER_PLAYER):
            player.add_hand(Hand(index=i))

        with pytest.raises(MaxHandsError):
            player.add_hand(Hand(index=MAX_HANDS_PER_PLAYER))

    def test_owns_by_identity(self, player, make_hand):
        """Test an equal but distinct hand is not owned."""
        hand = player.add_hand(make_hand("8S 8H"))
        assert player.owns(hand)
        assert not player.owns(make_hand("8S 8H"))

    def test_can_split_pair(self, player, pair_8s_hand):
        player.add_hand(pair_8s_hand)
        assert player.can_split(pair_8s_hand)

    def test_cannot_split_non_pair(self, player, make_hand):
        hand = player.add_hand(make_hand("9S 10H"))
        with pytest.raises(IneligibleHandError):
            player.check_can_split(hand)
        assert not player.can_split(hand)

    def test_cannot_split_after_hit(self, player, make_hand):
        hand = player.add_hand(make_hand("8S 8H 2C"))
        with pytest.raises(IneligibleHandError):
            player.check_can_split(hand)

    def test_cannot_split_with_max_hands(self, player, make_hand):
        hands = [player.add_hand(make_hand("8S 8H", index=i)) for i in range(MAX_HANDS_PER_PLAYER)]
        with pytest.raises(MaxHandsError):
            player.check_can_split(hands[0])

    def test_clear_hands_resets_round_total(self, player, make_hand):
        player.add_hand(make_hand("8S 8H", bet=250))
        player.total_bet = 250
        player.clear_hands()

        assert player.hands == []
        assert player.total_bet == 0

    def test_status(self, player):
        player.idle()
        assert player.status == PlayerStatus.IDLE
        assert not player.is_active
        player.activate()
        assert player.is_active

    def test_snapshot(self, player, make_hand):
        player.local_wallet = 750
        player.add_hand(make_hand("8S 8H", bet=250))
        snap = player.snapshot()

        assert snap["id"] == "p1"
        assert snap["local_wallet"] == 750
        assert snap["hands"][0]["cards"] == ["8♠", "8♥"]
        assert snap["status"] == "ACTIVE"


class TestDealer:
    """Tests for the dealer's hole card."""

    def test_up_card(self):
        dealer = Dealer()
        assert dealer.up_card is None

        dealer.hand.add_card(Card(Rank.ACE, Suit.SPADES))
        dealer.hand.add_card(Card(Rank.KING, Suit.HEARTS).face_down())
        assert dealer.up_card == Card(Rank.ACE, Suit.SPADES)

    def test_reveal_hole_card(self):
        """Test revealing swaps in a face-up copy."""
        dealer = Dealer()
        dealer.hand.add_card(Card(Rank.ACE, Suit.SPADES))
        hole = Card(Rank.KING, Suit.HEARTS).face_down()
        dealer.hand.add_card(hole)
        assert dealer.hand.value == 11

        revealed = dealer.reveal_hole_card()

        assert revealed == Card(Rank.KING, Suit.HEARTS)
        assert not revealed.hidden
        assert hole.hidden
        assert dealer.hand.value == 21
        assert dealer.reveal_hole_card() is None

    def test_clear_hand(self):
        dealer = Dealer()
        dealer.hand.add_card(Card(Rank.ACE, Suit.SPADES))
        dealer.hand.status = HandStatus.BLACKJACK
        dealer.clear_hand()

        assert len(dealer.hand) == 0
        assert dealer.hand.status == HandStatus.QUALIFIED

    def test_players_compare_by_identity(self):
        assert Player(id="p1", name="Fedor") != Player(id="p1", name="Fedor")
