"""Outcome classification and payout arithmetic."""

from dataclasses import dataclass, asdict
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP
from enum import Enum
from typing import Any

from config import GameConfig
from blackjack.hand import Hand, HandStatus, SideBet


class Outcome(str, Enum):
    """Result of a bet from the player's side."""

    WIN = "WIN"
    LOSS = "LOSS"
    PUSH = "PUSH"

    def __str__(self) -> str:
        return self.value


def evaluate_outcome(
    player_score: int,
    player_status: HandStatus,
    dealer_score: int,
    dealer_status: HandStatus,
) -> Outcome:
    """
    Classify a hand against the dealer.

    Checked in order: surrender, naturals, busts, then plain comparison.
    A surrendered hand is a loss here; the half-stake refund is applied by
    the payout step.
    """
    if player_status == HandStatus.SURRENDERED:
        return Outcome.LOSS

    if player_status == HandStatus.BLACKJACK and dealer_status == HandStatus.BLACKJACK:
        return Outcome.PUSH
    if player_status == HandStatus.BLACKJACK:
        return Outcome.WIN
    if dealer_status == HandStatus.BLACKJACK:
        return Outcome.LOSS

    # Player bust is checked first: both busting is still a loss
    if player_status == HandStatus.BUSTED or player_score > 21:
        return Outcome.LOSS
    if dealer_status == HandStatus.BUSTED or dealer_score > 21:
        return Outcome.WIN

    if player_score > dealer_score:
        return Outcome.WIN
    if player_score < dealer_score:
        return Outcome.LOSS
    return Outcome.PUSH


def _times(amount: int, ratio: float, rounding: str) -> int:
    product = Decimal(amount) * Decimal(str(ratio))
    return int(product.quantize(Decimal("1"), rounding=rounding))


def main_bet_payout(outcome: Outcome, hand: Hand, config: GameConfig) -> int:
    """
    Chips returned to the wallet for a hand's main bet, stake included.

    Blackjack wins pay ``bet * blackjack_payout`` (rounded down) plus the
    stake, regular wins ``bet * payout`` plus the stake, pushes the stake.
    Losses pay nothing, except a surrender which returns
    ``bet * surrender_payout``.
    """
    wager = hand.bet
    if outcome == Outcome.WIN:
        if hand.status == HandStatus.BLACKJACK:
            return _times(wager, config.blackjack_payout, ROUND_DOWN) + wager
        return wager * config.payout + wager
    if outcome == Outcome.PUSH:
        return wager
    if hand.status == HandStatus.SURRENDERED:
        return _times(wager, config.surrender_payout, ROUND_DOWN)
    return 0


def insurance_payout(side_bet: SideBet, dealer_blackjack: bool, config: GameConfig) -> int:
    """Chips returned for an insurance bet: 2:1 plus stake on dealer blackjack."""
    if not dealer_blackjack:
        return 0
    return _times(side_bet.amount, config.insurance_payout, ROUND_HALF_UP) + side_bet.amount


@dataclass(frozen=True)
class SettlementResult:
    """How a single bet was settled."""

    player_id: str
    hand_index: int
    bet_type: str  # "Standard" or a side bet type
    outcome: Outcome
    wager: int
    payout: int
    local_wallet: int

    @property
    def net(self) -> int:
        """Profit (or loss, negative) on the bet."""
        return self.payout - self.wager

    def to_payload(self) -> dict[str, Any]:
        data = asdict(self)
        data["outcome"] = self.outcome.value
        return data
