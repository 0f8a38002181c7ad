"""Game engine and state management."""

from blackjack.game.events import GameEvent, EventType, EventEmitter
from blackjack.game.state import GameState
from blackjack.game.queue import Turn, TurnQueue
from blackjack.game.actions import Action, apply_action
from blackjack.game.settlement import Outcome, SettlementResult, evaluate_outcome
from blackjack.game.engine import Game
from blackjack.game.loop import Decision, PromptContext, play_round

__all__ = [
    "GameEvent",
    "EventType",
    "EventEmitter",
    "GameState",
    "Turn",
    "TurnQueue",
    "Action",
    "apply_action",
    "Outcome",
    "SettlementResult",
    "evaluate_outcome",
    "Game",
    "Decision",
    "PromptContext",
    "play_round",
]
