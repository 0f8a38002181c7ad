"""Tests for Hand evaluation."""

import pytest
from hypothesis import given, strategies as st

from blackjack.cards import Card, Rank, Suit
from blackjack.hand import Hand, HandStatus, SideBet, SideBetType


@st.composite
def card_strategy(draw):
    """Generate a random card."""
    rank = draw(st.sampled_from(list(Rank)))
    suit = draw(st.sampled_from(list(Suit)))
    return Card(rank, suit)


@st.composite
def hand_strategy(draw, min_cards=2, max_cards=6):
    """Generate a random hand."""
    cards = draw(st.lists(card_strategy(), min_size=min_cards, max_size=max_cards))
    return Hand(cards=cards)


class TestHandValue:
    """Tests for hand valuation."""

    def test_empty_hand(self, empty_hand):
        """Test empty hand properties."""
        assert len(empty_hand) == 0
        assert empty_hand.value == 0
        assert not empty_hand.is_soft
        assert not empty_hand.is_natural
        assert not empty_hand.is_busted

    @pytest.mark.parametrize(
        "cards,expected",
        [
            ("AS AH 9D", 21),
            ("AS AH AD 8C", 21),
            ("KS QH", 20),
            ("5S 5H 5D 5C", 20),
            ("10S 10H 5D", 25),
            ("AS 6H", 17),
            ("AS AH", 12),
            ("AS AH AD 9C", 12),
        ],
    )
    def test_values(self, make_hand, cards, expected):
        """Test aces soften one at a time."""
        assert make_hand(cards).value == expected

    def test_twenty_is_not_bust(self, make_hand):
        assert not make_hand("5S 5H 5D 5C").is_busted

    def test_over_twenty_one_is_bust(self, make_hand):
        assert make_hand("10S 10H 5D").is_busted

    def test_soft_hand(self, soft_17_hand):
        """Test soft hand value calculation."""
        assert soft_17_hand.value == 17
        assert soft_17_hand.is_soft

    def test_soft_to_hard_transition(self):
        """Test ace switching from 11 to 1."""
        hand = Hand()
        hand.add_card(Card(Rank.ACE, Suit.SPADES))
        hand.add_card(Card(Rank.FIVE, Suit.HEARTS))
        assert hand.value == 16
        assert hand.is_soft

        hand.add_card(Card(Rank.EIGHT, Suit.CLUBS))
        assert hand.value == 14
        assert not hand.is_soft

    def test_hidden_cards_excluded_from_value(self):
        """Test value skips face-down cards while value_all counts them."""
        hand = Hand(cards=[Card(Rank.ACE, Suit.SPADES), Card(Rank.KING, Suit.HEARTS).face_down()])
        assert hand.value == 11
        assert hand.value_all == 21

    @given(hand_strategy())
    def test_value_never_busts_when_an_ace_could_soften(self, hand):
        """Test a bust total never still counts an ace as 11."""
        hard_total = sum(1 if card.is_ace else card.value for card in hand.cards)
        if hard_total <= 21:
            assert hand.value <= 21
        else:
            assert hand.value == hard_total

    @given(hand_strategy())
    def test_value_at_least_hard_total(self, hand):
        hard_total = sum(1 if card.is_ace else card.value for card in hand.cards)
        assert hand.value in (hard_total, hard_total + 10)


class TestBlackjack:
    """Tests for natural blackjack detection."""

    def test_natural(self, blackjack_hand):
        assert blackjack_hand.is_natural
        assert blackjack_hand.check_blackjack()
        assert blackjack_hand.status == HandStatus.BLACKJACK

    def test_three_card_21_is_qualified(self, make_hand):
        """Test that 21 with 3 cards stays qualified."""
        hand = make_hand("7S 7H 7D")
        assert hand.value == 21
        assert not hand.is_natural
        assert not hand.check_blackjack()
        assert hand.status == HandStatus.QUALIFIED

    def test_split_hand_is_not_natural(self, make_hand):
        """Test that a split ace plus ten is just 21."""
        hand = make_hand("AS KD", is_split_hand=True)
        assert hand.value == 21
        assert not hand.check_blackjack()
        assert hand.status == HandStatus.QUALIFIED

    def test_natural_with_hidden_card(self):
        """Test the dealer's peek sees through the hole card."""
        hand = Hand(cards=[Card(Rank.ACE, Suit.SPADES), Card(Rank.KING, Suit.HEARTS).face_down()])
        assert hand.is_natural


class TestPairs:
    """Tests for split eligibility by rank."""

    def test_pair_of_eights(self, pair_8s_hand):
        assert pair_8s_hand.is_pair

    def test_ten_valued_cards_pair(self, make_hand):
        """Test 10 and K split as both ten-valued."""
        assert make_hand("10S KH").is_pair
        assert make_hand("JS QH").is_pair

    def test_nine_ten_not_pair(self, make_hand):
        assert not make_hand("9S 10H").is_pair

    def test_three_cards_not_pair(self, make_hand):
        assert not make_hand("8S 8H 2C").is_pair


class TestHandState:
    """Tests for status helpers and side bets."""

    def test_first_action(self, make_hand):
        """Test first action requires two cards and a live hand."""
        hand = make_hand("5S 6H")
        assert hand.is_first_action

        hand.status = HandStatus.SURRENDERED
        assert not hand.is_first_action

        assert not make_hand("5S 6H 2C").is_first_action

    def test_check_bust(self, make_hand):
        hand = make_hand("10S 6H KC")
        assert hand.check_bust()
        assert hand.status == HandStatus.BUSTED

    def test_latest_unpaid_side_bet(self):
        """Test the most recent unpaid side bet of a type is returned."""
        hand = Hand(bet=100)
        first = SideBet(SideBetType.INSURANCE, 50)
        second = SideBet(SideBetType.INSURANCE, 20)
        hand.side_bets.extend([first, second, SideBet(SideBetType.PLAYER_PAIR, 10)])

        assert hand.latest_unpaid_side_bet(SideBetType.INSURANCE) is second
        second.mark_paid()
        assert hand.latest_unpaid_side_bet(SideBetType.INSURANCE) is first
        assert hand.latest_unpaid_side_bet(SideBetType.DEALER_BUST) is None

    def test_side_bet_limits(self):
        """Test insurance and other side bet limits."""
        assert SideBet.limits_for(SideBetType.INSURANCE, 250, 10000) == (1, 10000)
        assert SideBet.limits_for(SideBetType.PLAYER_PAIR, 250, 10000) == (25, 5000)

    def test_clear(self, make_hand):
        """Test clearing a hand resets everything."""
        hand = make_hand("AS KH", bet=100, is_doubled=True, status=HandStatus.BLACKJACK)
        hand.side_bets.append(SideBet(SideBetType.INSURANCE, 50))
        hand.clear()

        assert len(hand) == 0
        assert hand.bet == 0
        assert hand.side_bets == []
        assert hand.status == HandStatus.QUALIFIED
        assert not hand.is_doubled

    def test_snapshot_masks_hidden_cards(self):
        hand = Hand(cards=[Card(Rank.ACE, Suit.SPADES), Card(Rank.KING, Suit.HEARTS).face_down()])
        snap = hand.snapshot()
        assert snap["cards"] == ["A♠", "??"]
        assert snap["value"] == 11
        assert snap["status"] == "QUALIFIED"
