"""Blackjack table engine with state machine."""

import logging
from random import Random
from typing import TYPE_CHECKING, Any, Callable
from uuid import uuid4

from transitions import Machine

from config import GameConfig
from blackjack.cards import Card, Shoe
from blackjack.errors import (
    EventStoreError,
    IllegalActionError,
    IneligibleHandError,
    InsufficientFundsError,
    NotSeatedError,
    TableFullError,
    UnknownPlayerError,
    WagerLimitError,
    WrongPhaseError,
)
from blackjack.game.actions import Action, apply_action
from blackjack.game.events import EventEmitter, EventType, GameEvent
from blackjack.game.queue import Turn, TurnQueue
from blackjack.game.settlement import (
    Outcome,
    SettlementResult,
    evaluate_outcome,
    insurance_payout,
    main_bet_payout,
)
from blackjack.game.state import GameState
from blackjack.hand import Hand, HandStatus, SideBetType
from blackjack.player import Dealer, Player

if TYPE_CHECKING:
    from blackjack.store.base import EventStore

logger = logging.getLogger(__name__)


class Game:
    """
    A single blackjack table driven by a state machine.

    The game is the only thing that mutates players, hands and the shoe.
    Callers request phase changes and actions; every request is checked
    against the current state first. Every state-affecting step is recorded
    as a ``GameEvent``, pushed to subscribers and appended to the event
    store. A failing store is logged and otherwise ignored: the in-memory
    table is the source of truth.

    With ``strict=False`` a phase operation called from the wrong state is a
    silent no-op instead of raising ``WrongPhaseError``.
    """

    # State machine states
    STATES = [s.name.lower() for s in GameState]

    # State machine transitions
    TRANSITIONS = [
        {"trigger": "begin_shuffle", "source": ["table_open", "bets_settle"], "dest": "shuffle_cards"},
        {"trigger": "reopen_bets", "source": "shuffle_cards", "dest": "bets_open", "after": "_start_round"},
        {"trigger": "next_round", "source": "bets_settle", "dest": "bets_open", "after": "_start_round"},
        {"trigger": "lock_bets", "source": "bets_open", "dest": "bets_closed"},
        {"trigger": "begin_deal", "source": "bets_closed", "dest": "deal_cards"},
        # Dealer peek outcomes
        {"trigger": "offer_insurance", "source": "deal_cards", "dest": "insurance_turn"},
        {"trigger": "begin_player_turns", "source": ["deal_cards", "insurance_turn"], "dest": "player_turn", "after": "_seed_turns"},
        {"trigger": "dealer_blackjack", "source": ["deal_cards", "insurance_turn"], "dest": "bets_settle"},
        # Normal play
        {"trigger": "begin_dealer_turn", "source": "player_turn", "dest": "dealer_turn"},
        {"trigger": "dealer_done", "source": "dealer_turn", "dest": "bets_settle"},
        {"trigger": "shut_table", "source": ["table_open", "bets_open"], "dest": "table_closed"},
    ]

    def __init__(
        self,
        config: GameConfig | None = None,
        store: "EventStore | None" = None,
        rng: Random | None = None,
        table_id: str | None = None,
        strict: bool = True,
    ) -> None:
        """
        Initialize a new table.

        Args:
            config: Table rules and limits (uses defaults if not provided)
            store: Event sink for the table's stream (events are kept in
                memory on the emitter only if not provided)
            rng: Random number generator for reproducible shoes
            table_id: Stream id for the table's events
            strict: Raise WrongPhaseError on out-of-phase calls
        """
        self.config = config or GameConfig()
        self.store = store
        self.rng = rng or Random()
        self.table_id = table_id or str(uuid4())
        self.strict = strict

        self.seats: list[Player | None] = [None] * self.config.seats
        self.dealer = Dealer()
        self.turns = TurnQueue()
        self.events = EventEmitter()
        self.round_id = 0
        self.last_settlement: list[SettlementResult] = []

        # Initialize state machine
        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial="table_open",
            auto_transitions=False,
            model_attribute="_machine_state",
        )

    @property
    def state(self) -> GameState:
        """Get current game state as enum."""
        return GameState[self._machine_state.upper()]  # type: ignore

    # ----- Events -----

    def subscribe(
        self,
        handler: Callable[[GameEvent], None],
        event_type: EventType | None = None,
    ) -> None:
        """Subscribe to game events."""
        self.events.subscribe(handler, event_type)

    def record(self, event_type: EventType, **payload: Any) -> GameEvent:
        """Emit an event to subscribers and append it to the store."""
        payload.setdefault("round_id", self.round_id)
        payload.setdefault("state", str(self.state))
        event = GameEvent(event_type=event_type, payload=payload, stream_id=self.table_id)
        self.events.emit(event)

        if self.store is not None:
            try:
                self.store.append(event)
            except EventStoreError:
                logger.warning(
                    "Failed to persist %s event for table %s",
                    event_type.value,
                    self.table_id,
                    exc_info=True,
                )
        return event

    # ----- Guards and lookups -----

    def _guard(self, operation: str, *states: GameState) -> bool:
        if self.state in states:
            return True
        if self.strict:
            raise WrongPhaseError(operation, self.state)
        logger.debug("Ignoring %s while in %s", operation, self.state)
        return False

    @property
    def players(self) -> list[Player]:
        """Seated players in dealing order."""
        return [p for p in self.seats if p is not None]

    @property
    def dealt_players(self) -> list[Player]:
        """Players holding cards this round."""
        return [p for p in self.players if p.hands]

    def find_player(self, player_id: str) -> Player | None:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def _get_player(self, player_id: str) -> Player:
        player = self.find_player(player_id)
        if player is None:
            raise UnknownPlayerError(f"unknown player {player_id}")
        return player

    def draw_card(self) -> Card:
        """Draw the next card from the dealer's shoe."""
        if self.dealer.shoe is None:
            raise IllegalActionError("no shoe on the table; shuffle first")
        return self.dealer.shoe.draw()

    # ----- Seating -----

    def join(self, player: Player, buy_in: int | None = None) -> int:
        """
        Seat a player and move their buy-in into the local wallet.

        Args:
            player: The player joining
            buy_in: Chips to bring to the table (default: as much as the
                global wallet allows, up to the maximum buy-in)

        Returns:
            The seat index, or -1 if ignored (non-strict, wrong phase)
        """
        if not self._guard("join", GameState.TABLE_OPEN, GameState.BETS_OPEN):
            return -1
        if self.find_player(player.id) is not None:
            raise IllegalActionError(f"player {player.id} is already seated")
        if None not in self.seats:
            raise TableFullError("table is full")

        cfg = self.config
        if player.global_wallet < cfg.min_buy_in:
            raise InsufficientFundsError(cfg.min_buy_in, player.global_wallet)
        if buy_in is None:
            buy_in = min(player.global_wallet, cfg.max_buy_in)
        elif buy_in < cfg.min_buy_in or buy_in > cfg.max_buy_in:
            raise WagerLimitError(buy_in, cfg.min_buy_in, cfg.max_buy_in)
        elif buy_in > player.global_wallet:
            raise InsufficientFundsError(buy_in, player.global_wallet)

        seat = self.seats.index(None)
        player.global_wallet -= buy_in
        player.local_wallet += buy_in
        player.activate()
        self.seats[seat] = player

        self.record(
            EventType.PLAYER_JOINED,
            player_id=player.id,
            name=player.name,
            seat=seat,
            buy_in=buy_in,
            local_wallet=player.local_wallet,
        )
        logger.info("%s joined table %s at seat %d", player.name, self.table_id, seat)
        return seat

    def leave(self, player: Player) -> None:
        """Unseat a player, returning their chips to the global wallet."""
        if not self._guard("leave", GameState.TABLE_OPEN, GameState.BETS_OPEN):
            return
        if not any(p is player for p in self.seats):
            raise NotSeatedError(f"player {player.id} not at table")

        # A wager placed this round has not been dealt on yet
        player.local_wallet += player.total_bet
        player.clear_hands()

        cashed_out = player.local_wallet
        player.global_wallet += cashed_out
        player.local_wallet = 0
        player.idle()
        self.seats[self.seats.index(player)] = None

        self.record(
            EventType.PLAYER_LEFT,
            player_id=player.id,
            cashed_out=cashed_out,
            global_wallet=player.global_wallet,
        )
        logger.info("%s left table %s with %d", player.name, self.table_id, cashed_out)

    # ----- Shuffle and round start -----

    def shuffle(self, shoe: Shoe | None = None) -> None:
        """
        Mint a new shoe and open betting for the first round.

        Args:
            shoe: A prepared shoe to use instead of minting fresh decks
        """
        if not self._guard("shuffle", GameState.TABLE_OPEN):
            return
        self.begin_shuffle()
        if shoe is None:
            shoe = Shoe(
                num_decks=self.config.num_decks,
                penetration=self.config.penetration,
                rng=self.rng,
            )
        self.dealer.shoe = shoe
        self.record(
            EventType.SHUFFLE_CARDS,
            message="Minting new decks and shuffling.",
            total_cards=self.dealer.shoe.total_cards,
            cut_index=self.dealer.shoe.cut_index,
        )
        logger.info(
            "Table %s shuffled a %d-card shoe", self.table_id, self.dealer.shoe.total_cards
        )
        self.reopen_bets()

    def _reshuffle_shoe(self) -> None:
        """Reshuffle the shoe in place once the cut card has been passed."""
        self.begin_shuffle()
        assert self.dealer.shoe is not None
        self.dealer.shoe.shuffle(self.config.penetration)
        self.record(
            EventType.RESHUFFLE,
            message="Cut card removed - reshuffling.",
            cut_index=self.dealer.shoe.cut_index,
        )
        logger.info("Table %s reshuffled the shoe", self.table_id)
        self.reopen_bets()

    def _start_round(self) -> None:
        """Clear the table for a new round (runs on entering BETS_OPEN)."""
        self.round_id += 1
        self.dealer.clear_hand()
        for player in self.players:
            player.clear_hands()
        self.turns.clear()
        self.record(EventType.BETS_OPEN)
        logger.debug("Round %d open for bets", self.round_id)

    # ----- Betting -----

    def place_bet(self, player_id: str, amount: int) -> None:
        """Place a player's main wager for the round."""
        if not self._guard("place bet", GameState.BETS_OPEN):
            return
        player = self._get_player(player_id)
        if player.total_bet > 0:
            raise IllegalActionError(f"player {player_id} already placed a bet this round")

        player.wager(amount, self.config.min_wager, self.config.max_wager)
        player.activate()
        self.record(
            EventType.BET_PLACED,
            player_id=player.id,
            wager=amount,
            local_wallet=player.local_wallet,
        )

    def close_bets(self) -> None:
        """Stop accepting wagers. Players who did not bet sit the round out."""
        if not self._guard("close bets", GameState.BETS_OPEN):
            return
        if not any(p.total_bet > 0 for p in self.players):
            raise IllegalActionError("no wagers placed")

        for player in self.players:
            if player.total_bet == 0:
                player.idle()
        self.lock_bets()
        self.record(
            EventType.BETS_CLOSED,
            wagers={p.id: p.total_bet for p in self.players if p.total_bet},
        )

    # ----- Dealing and dealer peek -----

    def deal_cards(self) -> GameState:
        """
        Deal two cards to each betting player and the dealer, then peek.

        Returns:
            The state after dealing: INSURANCE_TURN, PLAYER_TURN, or
            BETS_SETTLE when the dealer has blackjack
        """
        if not self._guard("deal cards", GameState.BETS_CLOSED):
            return self.state
        self.begin_deal()
        self.record(EventType.DEAL_CARDS, message="Dealing cards...")

        betting = [p for p in self.players if p.total_bet > 0]
        for player in betting:
            player.add_hand(Hand(bet=player.total_bet, index=0))

        for deal_pass in range(2):
            for player in betting:
                self._deal_to(player.hands[0], player.id)
            self._deal_to(self.dealer.hand, self.dealer.name, face_down=deal_pass == 1)

        for player in betting:
            hand = player.hands[0]
            if hand.check_blackjack():
                self.record(EventType.PLAYER_BLACKJACK, player_id=player.id, hand_index=0)

        self._dealer_peek()
        return self.state

    def _deal_to(self, hand: Hand, recipient: str, face_down: bool = False) -> Card:
        card = self.draw_card()
        if face_down:
            card = card.face_down()
        hand.add_card(card)
        self.record(
            EventType.CARD_DEALT,
            recipient=recipient,
            card=str(card),
            hand_value=hand.value,
        )
        return card

    def _dealer_peek(self) -> None:
        """Offer insurance on an Ace, peek on a ten, otherwise start play."""
        up_card = self.dealer.up_card
        if up_card is not None and up_card.is_ace:
            self.offer_insurance()
            self.record(EventType.INSURANCE_OFFERED, up_card=str(up_card))
        elif up_card is not None and up_card.is_ten_value:
            self._check_dealer_blackjack()
        else:
            self.begin_player_turns()

    def _check_dealer_blackjack(self) -> None:
        hand = self.dealer.hand
        has_blackjack = len(hand.cards) == 2 and hand.value_all == 21
        self.record(EventType.DEALER_PEEK, has_blackjack=has_blackjack)

        if has_blackjack:
            card = self.dealer.reveal_hole_card()
            hand.status = HandStatus.BLACKJACK
            self.record(EventType.REVEAL_HOLE_CARD, card=str(card), hand_value=hand.value)
            logger.info("Dealer has blackjack in round %d", self.round_id)
            self.dealer_blackjack()
        else:
            self.begin_player_turns()

    # ----- Insurance -----

    def take_insurance(self, player_id: str) -> None:
        """Insure the player's hand for half its stake."""
        if not self._guard("take insurance", GameState.INSURANCE_TURN):
            return
        player = self._get_player(player_id)
        if not player.hands:
            raise IneligibleHandError(f"player {player_id} has no hand this round")
        apply_action(self, player_id, Action.INSURANCE, player.hands[0])

    def close_insurance(self) -> GameState:
        """End the insurance window and peek for dealer blackjack."""
        if not self._guard("close insurance", GameState.INSURANCE_TURN):
            return self.state
        self.record(
            EventType.INSURANCE_CLOSED,
            insured=[
                p.id
                for p in self.dealt_players
                if p.hands[0].has_side_bet(SideBetType.INSURANCE)
            ],
        )
        self._check_dealer_blackjack()
        return self.state

    # ----- Player turns -----

    def _seed_turns(self) -> None:
        """Queue one turn per dealt player in seat order (on entering PLAYER_TURN)."""
        self.turns.clear()
        self.record(EventType.ENQUEUE_ROUND_START, message="clearing turn queue")
        for player in self.dealt_players:
            self.enqueue(Turn(player=player, hand=player.hands[0]))

    def enqueue(self, turn: Turn) -> None:
        self.turns.enqueue(turn)
        self.record(
            EventType.ENQUEUE,
            player_id=turn.player.id,
            hand_index=turn.hand.index,
        )

    @property
    def current_turn(self) -> Turn | None:
        return self.turns.peek()

    def act(self, action: Action) -> bool:
        """
        Apply an action to the hand whose turn it is.

        The turn queue advances when the action ends the hand's turn.

        Returns:
            True if the turn ended
        """
        if not self._guard(f"{action.value.lower()}", GameState.PLAYER_TURN):
            return False
        turn = self.turns.peek()
        if turn is None:
            raise IllegalActionError("no turn pending")

        end_turn = apply_action(self, turn.player.id, action, turn.hand)
        if end_turn:
            self.advance_turn()
        return end_turn

    def advance_turn(self) -> Turn | None:
        """
        Finish the head turn.

        Popping the last turn hands play to the dealer.
        """
        if not self._guard("advance turn", GameState.PLAYER_TURN):
            return None
        if not self.turns:
            self.begin_dealer_turn()
            return None

        turn = self.turns.dequeue()
        next_state = GameState.PLAYER_TURN if self.turns else GameState.DEALER_TURN
        self.record(
            EventType.ADVANCE_TURN,
            last_player_id=turn.player.id,
            last_hand_index=turn.hand.index,
            next_state=str(next_state),
        )
        if next_state == GameState.DEALER_TURN:
            self.begin_dealer_turn()
        return turn

    # ----- Dealer turn -----

    def _has_contested_hand(self) -> bool:
        """Whether any hand still depends on the dealer's final total."""
        return any(
            hand.is_qualified
            for player in self.dealt_players
            for hand in player.hands
        )

    def _dealer_should_hit(self) -> bool:
        hand = self.dealer.hand
        value = hand.value_all
        if value < 17:
            return True
        if value == 17 and hand.is_soft and self.config.dealer_hits_soft_17:
            return True
        return False

    def dealer_turn(self) -> None:
        """Reveal the hole card and draw to 17."""
        if not self._guard("play dealer turn", GameState.DEALER_TURN):
            return
        hand = self.dealer.hand
        self.record(EventType.DEALER_TURN)

        card = self.dealer.reveal_hole_card()
        if card is not None:
            self.record(EventType.REVEAL_HOLE_CARD, card=str(card), hand_value=hand.value)

        if self._has_contested_hand():
            while self._dealer_should_hit():
                card = self.draw_card()
                hand.add_card(card)
                self.record(EventType.DEALER_HIT, card=str(card), hand_value=hand.value)

        if hand.check_bust():
            self.record(EventType.DEALER_BUST, hand_value=hand.value)
        else:
            self.record(EventType.DEALER_STAND, hand_value=hand.value)
        self.dealer_done()

    # ----- Settlement -----

    def settle(self) -> list[SettlementResult]:
        """
        Pay out every bet, then open the next round.

        Insurance is settled first, then each hand's main bet. The shoe is
        reshuffled here if the cut card came out during the round.
        """
        if not self._guard("settle", GameState.BETS_SETTLE):
            return []
        dealer_hand = self.dealer.hand
        dealer_blackjack = dealer_hand.status == HandStatus.BLACKJACK
        results: list[SettlementResult] = []

        for player in self.dealt_players:
            for hand in player.hands:
                side_bet = hand.latest_unpaid_side_bet(SideBetType.INSURANCE)
                if side_bet is None:
                    continue
                payout = insurance_payout(side_bet, dealer_blackjack, self.config)
                if payout:
                    player.credit(payout)
                    side_bet.mark_paid()
                results.append(
                    self._settled(
                        player,
                        hand,
                        SideBetType.INSURANCE.value,
                        Outcome.WIN if payout else Outcome.LOSS,
                        side_bet.amount,
                        payout,
                    )
                )

        for player in self.dealt_players:
            for hand in player.hands:
                outcome = evaluate_outcome(
                    hand.value_all, hand.status, dealer_hand.value_all, dealer_hand.status
                )
                payout = main_bet_payout(outcome, hand, self.config)
                player.credit(payout)
                results.append(
                    self._settled(player, hand, "Standard", outcome, hand.bet, payout)
                )
                hand.status = HandStatus.SETTLED

        self.last_settlement = results
        logger.info(
            "Round %d settled: %d bets, house net %d",
            self.round_id,
            len(results),
            -sum(r.net for r in results),
        )

        assert self.dealer.shoe is not None
        if self.dealer.shoe.reshuffle_pending:
            self._reshuffle_shoe()
        else:
            self.next_round()
        return results

    def _settled(
        self,
        player: Player,
        hand: Hand,
        bet_type: str,
        outcome: Outcome,
        wager: int,
        payout: int,
    ) -> SettlementResult:
        result = SettlementResult(
            player_id=player.id,
            hand_index=hand.index,
            bet_type=bet_type,
            outcome=outcome,
            wager=wager,
            payout=payout,
            local_wallet=player.local_wallet,
        )
        self.record(EventType.SETTLED, **result.to_payload())
        return result

    # ----- Teardown -----

    def close_table(self) -> None:
        """Cash out every seated player and close the table for good."""
        if not self._guard("close table", GameState.TABLE_OPEN, GameState.BETS_OPEN):
            return
        for player in self.players:
            self.leave(player)
        self.shut_table()
        self.record(EventType.TABLE_CLOSED)
        logger.info("Table %s closed", self.table_id)

    # ----- Inspection -----

    def snapshot(self) -> dict[str, Any]:
        """Return a plain-data view of the whole table."""
        shoe = self.dealer.shoe
        return {
            "table_id": self.table_id,
            "state": str(self.state),
            "round_id": self.round_id,
            "seats": [p.snapshot() if p is not None else None for p in self.seats],
            "dealer": {
                "hand": self.dealer.hand.snapshot(),
                "cards": [repr(card) for card in self.dealer.hand.cards],
            },
            "turns": [(t.player.id, t.hand.index) for t in self.turns],
            "shoe": None
            if shoe is None
            else {
                "position": shoe.position,
                "cut_index": shoe.cut_index,
                "reshuffle_pending": shoe.reshuffle_pending,
            },
        }
