"""Game state enumeration."""

from enum import Enum, auto


class GameState(Enum):
    """
    Table state machine states.

    Flow: TABLE_OPEN → SHUFFLE_CARDS → BETS_OPEN → BETS_CLOSED → DEAL_CARDS →
    [INSURANCE_TURN] → PLAYER_TURN → DEALER_TURN → BETS_SETTLE → BETS_OPEN
    """

    # Table created, no shoe yet
    TABLE_OPEN = auto()

    # Minting a new shoe, or reshuffling after the cut card
    SHUFFLE_CARDS = auto()

    # Players place wagers
    BETS_OPEN = auto()
    BETS_CLOSED = auto()

    # Cards being dealt and the dealer peeking
    DEAL_CARDS = auto()

    # Dealer shows an Ace; players may insure
    INSURANCE_TURN = auto()

    # Players act, one turn at a time
    PLAYER_TURN = auto()

    # Dealer plays
    DEALER_TURN = auto()

    # Paying out
    BETS_SETTLE = auto()

    # Table torn down
    TABLE_CLOSED = auto()

    def __str__(self) -> str:
        return "".join(part.title() for part in self.name.split("_"))
