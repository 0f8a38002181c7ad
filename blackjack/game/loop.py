"""Round driver: plays a full round against a decision callback."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Mapping

from blackjack.errors import IllegalActionError, PlayAborted
from blackjack.game.actions import Action
from blackjack.game.engine import Game
from blackjack.game.queue import Turn
from blackjack.game.settlement import SettlementResult
from blackjack.game.state import GameState
from blackjack.hand import Hand
from blackjack.player import Player

logger = logging.getLogger(__name__)


class Decision(Enum):
    """What a player (or a front end on their behalf) can answer."""

    HIT = "hit"
    STAND = "stand"
    DOUBLE = "double"
    SPLIT = "split"
    SURRENDER = "surrender"
    INSURANCE_ACCEPT = "insurance_accept"
    INSURANCE_DECLINE = "insurance_decline"
    QUIT = "quit"


_TURN_ACTIONS = {
    Decision.HIT: Action.HIT,
    Decision.STAND: Action.STAND,
    Decision.DOUBLE: Action.DOUBLE,
    Decision.SPLIT: Action.SPLIT,
    Decision.SURRENDER: Action.SURRENDER,
}


@dataclass(frozen=True)
class PromptContext:
    """Everything a front end needs to ask a player for a decision."""

    round_id: int
    state: GameState
    player_id: str
    player_name: str
    hand: dict
    dealer_up_card: str | None
    local_wallet: int
    options: tuple[Decision, ...]


Decider = Callable[[PromptContext], Decision]


def _turn_options(player: Player, hand: Hand) -> tuple[Decision, ...]:
    options = [Decision.HIT, Decision.STAND]
    if hand.is_first_action and player.local_wallet >= hand.bet:
        options.append(Decision.DOUBLE)
    if player.can_split(hand) and player.local_wallet >= hand.bet:
        options.append(Decision.SPLIT)
    if hand.is_first_action:
        options.append(Decision.SURRENDER)
    return tuple(options)


def _context(game: Game, player: Player, hand: Hand, options: tuple[Decision, ...]) -> PromptContext:
    up_card = game.dealer.up_card
    return PromptContext(
        round_id=game.round_id,
        state=game.state,
        player_id=player.id,
        player_name=player.name,
        hand=hand.snapshot(),
        dealer_up_card=str(up_card) if up_card is not None else None,
        local_wallet=player.local_wallet,
        options=options,
    )


def _ask(decide: Decider, context: PromptContext) -> Decision:
    try:
        decision = decide(context)
    except EOFError as exc:
        raise PlayAborted("input ended") from exc
    if decision == Decision.QUIT:
        raise PlayAborted(f"{context.player_name} quit")
    return decision


def _offer_insurance(game: Game, decide: Decider) -> None:
    for player in game.dealt_players:
        hand = player.hands[0]
        options = (Decision.INSURANCE_ACCEPT, Decision.INSURANCE_DECLINE)
        decision = _ask(decide, _context(game, player, hand, options))
        if decision != Decision.INSURANCE_ACCEPT:
            continue
        try:
            game.take_insurance(player.id)
        except IllegalActionError as exc:
            logger.warning("Insurance rejected for %s: %s", player.name, exc)
    game.close_insurance()


def _play_turn(game: Game, turn: Turn, decide: Decider, max_retries: int) -> None:
    """Prompt until the turn ends. Repeated illegal answers stand the hand."""
    rejected = 0
    while game.state == GameState.PLAYER_TURN and game.current_turn is turn:
        options = _turn_options(turn.player, turn.hand)
        decision = _ask(decide, _context(game, turn.player, turn.hand, options))

        action = _TURN_ACTIONS.get(decision)
        try:
            if action is None:
                raise IllegalActionError(f"{decision.value} is not a turn action")
            game.act(action)
        except IllegalActionError as exc:
            rejected += 1
            logger.warning("Rejected %s from %s: %s", decision.value, turn.player.name, exc)
            if rejected >= max_retries:
                logger.warning("Standing %s's hand after %d rejected decisions", turn.player.name, rejected)
                game.act(Action.STAND)


def play_round(
    game: Game,
    decide: Decider,
    wagers: Mapping[str, int],
    max_retries: int = 3,
) -> list[SettlementResult]:
    """
    Play one round from betting to settlement.

    Args:
        game: The table; shuffled first if it has just been opened
        decide: Called for every insurance and turn decision
        wagers: Main bet per player id; seated players not listed sit out
        max_retries: Rejected decisions allowed per turn before standing

    Returns:
        The settlement results for the round

    Raises:
        PlayAborted: if the decider quits or runs out of input
    """
    if game.state == GameState.TABLE_OPEN:
        game.shuffle()

    for player_id, amount in wagers.items():
        try:
            game.place_bet(player_id, amount)
        except IllegalActionError as exc:
            logger.warning("Wager of %d from %s rejected: %s", amount, player_id, exc)

    game.close_bets()
    game.deal_cards()

    if game.state == GameState.INSURANCE_TURN:
        _offer_insurance(game, decide)

    while game.state == GameState.PLAYER_TURN:
        turn = game.current_turn
        if turn is None or not turn.hand.is_qualified:
            game.advance_turn()
            continue
        _play_turn(game, turn, decide, max_retries)

    if game.state == GameState.DEALER_TURN:
        game.dealer_turn()
    return game.settle()
