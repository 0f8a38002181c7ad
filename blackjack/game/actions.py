"""
Player actions.

Each action is a rule check plus a side effect on the table. Every check
runs before anything is mutated, so a rejected action leaves the table
exactly as it was. Handlers report whether the hand's turn is over; moving
the turn queue is left to the caller.
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, Callable

from blackjack.errors import IneligibleHandError, UnknownPlayerError, WrongPhaseError
from blackjack.game.events import EventType
from blackjack.game.queue import Turn
from blackjack.game.state import GameState
from blackjack.hand import Hand, HandStatus, SideBet, SideBetType
from blackjack.player import Player

if TYPE_CHECKING:
    from blackjack.game.engine import Game

logger = logging.getLogger(__name__)


class Action(Enum):
    """Player commands."""

    HIT = "Hit"
    STAND = "Stand"
    DOUBLE = "Double"
    SPLIT = "Split"
    SURRENDER = "Surrender"
    INSURANCE = "Insurance"

    def __str__(self) -> str:
        return self.value


def _require_state(game: "Game", action: Action, state: GameState) -> None:
    if game.state != state:
        raise WrongPhaseError(action.value.lower(), game.state)


def _require_qualified(hand: Hand, action: Action) -> None:
    if not hand.is_qualified:
        raise IneligibleHandError(
            f"{action.value.lower()} not applicable; hand is {hand.status}"
        )


def _hit(game: "Game", player: Player, hand: Hand) -> bool:
    """Draw one card. The turn ends on 21 or a bust."""
    _require_state(game, Action.HIT, GameState.PLAYER_TURN)
    _require_qualified(hand, Action.HIT)

    card = game.draw_card()
    hand.add_card(card)
    busted = hand.check_bust()

    game.record(
        EventType.HIT,
        player_id=player.id,
        hand_index=hand.index,
        card=str(card),
        hand_value=hand.value,
        busted=busted,
    )
    return hand.value >= 21


def _stand(game: "Game", player: Player, hand: Hand) -> bool:
    """End the turn. Only a busted hand is refused, so a natural can pass."""
    _require_state(game, Action.STAND, GameState.PLAYER_TURN)
    if hand.status == HandStatus.BUSTED:
        raise IneligibleHandError("stand not applicable; hand is busted")

    game.record(
        EventType.STAND,
        player_id=player.id,
        hand_index=hand.index,
        hand=[str(card) for card in hand.cards],
        hand_value=hand.value,
    )
    return True


def _double(game: "Game", player: Player, hand: Hand) -> bool:
    """Match the stake, take exactly one card, and end the turn."""
    _require_state(game, Action.DOUBLE, GameState.PLAYER_TURN)
    if not hand.is_first_action:
        raise IneligibleHandError("can only double on first action")

    player.wager(hand.bet, hand.bet, hand.bet)
    hand.bet *= 2
    hand.is_doubled = True

    card = game.draw_card()
    hand.add_card(card)
    busted = hand.check_bust()

    game.record(
        EventType.DOUBLE,
        player_id=player.id,
        hand_index=hand.index,
        card=str(card),
        hand_value=hand.value,
        new_bet=hand.bet,
        total_bet=player.total_bet,
        local_wallet=player.local_wallet,
        busted=busted,
    )
    return True


def _split(game: "Game", player: Player, hand: Hand) -> bool:
    """
    Split a pair into two hands, each topped up with a fresh card.

    The new hand's turn is injected directly behind the current one. The
    current hand keeps playing, so the turn does not end.
    """
    _require_state(game, Action.SPLIT, GameState.PLAYER_TURN)
    player.check_can_split(hand)

    player.wager(hand.bet, hand.bet, hand.bet)

    first, second = hand.cards
    hand.cards = [first, game.draw_card()]
    hand.is_split_hand = True
    hand.is_doubled = False
    hand.status = HandStatus.QUALIFIED

    split_hand = Hand(
        cards=[second, game.draw_card()],
        bet=hand.bet,
        index=len(player.hands),
        is_split_hand=True,
    )
    player.add_hand(split_hand)
    game.turns.inject_next(Turn(player=player, hand=split_hand))

    game.record(
        EventType.SPLIT,
        player_id=player.id,
        hand_index=hand.index,
        active_hand=[str(card) for card in hand.cards],
        split_hand=[str(card) for card in split_hand.cards],
        split_hand_index=split_hand.index,
        total_bet=player.total_bet,
        local_wallet=player.local_wallet,
    )
    return False


def _surrender(game: "Game", player: Player, hand: Hand) -> bool:
    """Give up the hand for half the stake back (paid at settlement)."""
    _require_state(game, Action.SURRENDER, GameState.PLAYER_TURN)
    if not hand.is_first_action:
        raise IneligibleHandError("can only surrender on first action")

    hand.status = HandStatus.SURRENDERED

    game.record(
        EventType.SURRENDER,
        player_id=player.id,
        hand_index=hand.index,
        surrendered=True,
    )
    return True


def _insurance(game: "Game", player: Player, hand: Hand) -> bool:
    """Place an insurance side bet of half the hand's stake."""
    _require_state(game, Action.INSURANCE, GameState.INSURANCE_TURN)
    if hand.has_side_bet(SideBetType.INSURANCE):
        raise IneligibleHandError("hand is already insured")

    amount = hand.bet // 2
    minimum, maximum = SideBet.limits_for(
        SideBetType.INSURANCE, game.config.min_wager, game.config.max_wager
    )
    player.wager(amount, minimum, maximum)
    hand.side_bets.append(
        SideBet(SideBetType.INSURANCE, amount, min_wager=minimum, max_wager=maximum)
    )

    game.record(
        EventType.INSURANCE,
        player_id=player.id,
        hand_index=hand.index,
        insured=True,
        amount=amount,
        local_wallet=player.local_wallet,
    )
    return False


_HANDLERS: dict[Action, Callable[["Game", Player, Hand], bool]] = {
    Action.HIT: _hit,
    Action.STAND: _stand,
    Action.DOUBLE: _double,
    Action.SPLIT: _split,
    Action.SURRENDER: _surrender,
    Action.INSURANCE: _insurance,
}

_missing = set(Action) - set(_HANDLERS)
if _missing:
    raise RuntimeError(f"No handler for actions: {sorted(a.value for a in _missing)}")


def apply_action(game: "Game", player_id: str, action: Action, hand: Hand) -> bool:
    """
    Apply ``action`` for the seated player ``player_id`` on ``hand``.

    Returns:
        True if the hand's turn is over

    Raises:
        UnknownPlayerError: if no seated player has ``player_id``
        IllegalActionError: if the action is not allowed; nothing is changed
    """
    player = game.find_player(player_id)
    if player is None:
        raise UnknownPlayerError(f"unknown player {player_id}")
    if not player.owns(hand):
        raise IneligibleHandError(f"hand {hand.index} does not belong to {player_id}")

    end_turn = _HANDLERS[action](game, player, hand)
    logger.debug("%s %s on hand %d (end turn: %s)", player_id, action, hand.index, end_turn)
    return end_turn
