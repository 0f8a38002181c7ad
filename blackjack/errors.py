"""Exceptions raised by the table engine."""


class BlackjackError(Exception):
    """Base class for engine errors."""


class IllegalActionError(BlackjackError, ValueError):
    """
    A requested operation is not allowed right now.

    Raised before any state is touched, so callers can re-prompt or skip.
    """


class WrongPhaseError(IllegalActionError):
    """Operation invoked outside its required game state."""

    def __init__(self, operation: str, state: object) -> None:
        super().__init__(f"cannot {operation} while in {state}")
        self.operation = operation
        self.state = state


class IneligibleHandError(IllegalActionError):
    """The hand cannot take the requested action."""


class InsufficientFundsError(IllegalActionError):
    """The player's local wallet cannot cover the wager."""

    def __init__(self, required: int, available: int) -> None:
        super().__init__(f"not enough funds in local wallet: need {required}, have {available}")
        self.required = required
        self.available = available


class WagerLimitError(IllegalActionError):
    """Wager outside the table (or side bet) limits."""

    def __init__(self, amount: int, minimum: int, maximum: int) -> None:
        super().__init__(f"bet must be between {minimum} and {maximum}, got {amount}")
        self.amount = amount
        self.minimum = minimum
        self.maximum = maximum


class MaxHandsError(IllegalActionError):
    """Player already holds the maximum number of hands."""


class TableFullError(IllegalActionError):
    """No free seat at the table."""


class NotSeatedError(IllegalActionError):
    """Player is not seated at this table."""


class UnknownPlayerError(IllegalActionError):
    """No seated player has the given id."""


class ShoeExhaustedError(BlackjackError, IndexError):
    """Drew past the last card of the shoe."""


class EventStoreError(BlackjackError):
    """The event sink failed to persist or load events."""


class PlayAborted(BlackjackError):
    """The player quit, or input ended, mid-round."""
