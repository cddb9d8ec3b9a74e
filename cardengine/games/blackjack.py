"""Blackjack: up to seven seats against the dealer, dealt from a persistent shoe."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from random import Random
from typing import List, Literal, Optional, Sequence

from ..cards import Card
from ..contract import CardGame, EndResult, NOT_ENDED, PlayerInfo, RoundState
from ..deck import create_deck, seeded_rng, shuffle
from ..dispatch import Handler, MoveTable
from ..errors import InvalidMove, ResourceExhausted, RuleViolation
from ..logging_config import log_game_event
from ..moves import Move, MoveParser
from ..rules_schema import BlackjackSettings
from ..scoring import blackjack_card_value, dealer_should_hit, hand_value, is_natural, settle_bet
from ..visibility import base_view, card_list, seat_hands


class BlackjackPhase(Enum):
    BETTING = "betting"
    PLAYER_ACTIONS = "player_actions"
    DEALER_PLAY = "dealer_play"
    PAYOUT = "payout"


class SeatStatus(Enum):
    WAITING = "waiting"
    PLAYING = "playing"
    STAND = "stand"
    BUST = "bust"
    BLACKJACK = "blackjack"
    SITTING_OUT = "sitting_out"


class PlaceBet(Move):
    action: Literal["place_bet"] = "place_bet"
    amount: int


class Hit(Move):
    action: Literal["hit"] = "hit"


class Stand(Move):
    action: Literal["stand"] = "stand"


class Double(Move):
    action: Literal["double"] = "double"


# Salt for reshuffle generators, kept apart from the per-deal salts.
RESHUFFLE_SALT = 1_000_000


@dataclass
class BlackjackState(RoundState):
    shoe: List[Card] = field(default_factory=list)
    discard_tray: List[Card] = field(default_factory=list)
    reshuffles: int = 0
    hands: List[List[Card]] = field(default_factory=list)
    dealer_hand: List[Card] = field(default_factory=list)
    bets: List[int] = field(default_factory=list)
    statuses: List[SeatStatus] = field(default_factory=list)
    results: List[Optional[str]] = field(default_factory=list)
    payouts: List[int] = field(default_factory=list)

    def all_cards(self) -> List[Card]:
        cards = list(self.shoe) + list(self.discard_tray) + list(self.dealer_hand)
        cards.extend(card for hand in self.hands for card in hand)
        return cards

    def participants(self) -> List[int]:
        return [seat for seat, status in enumerate(self.statuses) if status is not SeatStatus.SITTING_OUT]


def draw_card(state: BlackjackState) -> Card:
    """Take the top card of the shoe, reshuffling the discard tray when it runs dry."""
    if not state.shoe:
        if not state.discard_tray:
            raise ResourceExhausted("shoe_empty", "The shoe and the discard tray are both empty.")
        state.reshuffles += 1
        rng = seeded_rng(state.settings.seed, RESHUFFLE_SALT + state.reshuffles)
        state.shoe = shuffle(state.discard_tray, rng)
        state.discard_tray = []
        log_game_event("blackjack", "reshuffle", count=state.reshuffles, cards=len(state.shoe))
    return state.shoe.pop(0)


def double_allowed(state: BlackjackState, seat: int) -> bool:
    hand = state.hands[seat]
    if len(hand) != 2:
        return False
    if state.settings.double_down_rules == "nine_ten_eleven" and hand_value(hand) not in (9, 10, 11):
        return False
    return state.players[seat].chips >= state.bets[seat]


# Handlers ---------------------------------------------------------------


def check_bet(state: BlackjackState, seat: int, move: PlaceBet) -> None:
    settings = state.settings
    if state.statuses[seat] is SeatStatus.SITTING_OUT:
        raise RuleViolation("sitting_out", "You do not have enough chips to play this round.")
    if state.bets[seat] > 0:
        raise RuleViolation("already_bet", "You have already placed a bet.")
    if move.amount <= 0:
        raise InvalidMove("invalid_bet", "Bet must be positive.")
    if move.amount < settings.min_bet:
        raise RuleViolation("bet_too_small", f"Minimum bet is {settings.min_bet}.")
    if settings.max_bet is not None and move.amount > settings.max_bet:
        raise RuleViolation("bet_too_large", f"Maximum bet is {settings.max_bet}.")
    if move.amount > state.players[seat].chips:
        raise RuleViolation("insufficient_chips", "Not enough chips.")


def apply_bet(state: BlackjackState, seat: int, move: PlaceBet) -> None:
    state.bets[seat] = move.amount
    state.players[seat].chips -= move.amount
    if all(state.bets[other] > 0 for other in state.participants()):
        _deal_initial_cards(state)


def _deal_initial_cards(state: BlackjackState) -> None:
    seats = state.participants()
    for _ in range(2):
        for seat in seats:
            state.hands[seat].append(draw_card(state))
        state.dealer_hand.append(draw_card(state))
    for seat in seats:
        state.statuses[seat] = SeatStatus.BLACKJACK if is_natural(state.hands[seat]) else SeatStatus.PLAYING
    state.phase = BlackjackPhase.PLAYER_ACTIONS
    state.current_turn = -1
    _advance_to_next_player(state)


def _advance_to_next_player(state: BlackjackState) -> None:
    for seat in range(state.current_turn + 1, state.seat_count):
        if state.statuses[seat] is SeatStatus.PLAYING:
            state.current_turn = seat
            return
    state.current_turn = 0
    _dealer_play(state)


def _dealer_play(state: BlackjackState) -> None:
    state.phase = BlackjackPhase.DEALER_PLAY
    while dealer_should_hit(state.dealer_hand, state.settings.dealer_hits_soft_17):
        state.dealer_hand.append(draw_card(state))
    for seat in state.participants():
        settlement = settle_bet(state.bets[seat], state.hands[seat], state.dealer_hand, state.settings.blackjack_payout)
        state.results[seat] = settlement.result
        state.payouts[seat] = settlement.payout
        state.players[seat].chips += state.bets[seat] + settlement.payout
    state.phase = BlackjackPhase.PAYOUT
    log_game_event(
        "blackjack",
        "round_scored",
        round=state.round_number,
        dealer=hand_value(state.dealer_hand),
        payouts=state.payouts,
    )


def _take_card(state: BlackjackState, seat: int) -> None:
    state.hands[seat].append(draw_card(state))
    if hand_value(state.hands[seat]) > 21:
        state.statuses[seat] = SeatStatus.BUST


def check_action(state: BlackjackState, seat: int, move: Move) -> None:
    if state.statuses[seat] is not SeatStatus.PLAYING:
        raise RuleViolation("not_playing", "Your hand is already finished.")


def check_double(state: BlackjackState, seat: int, move: Double) -> None:
    check_action(state, seat, move)
    if not double_allowed(state, seat):
        raise RuleViolation("double_not_allowed", "You cannot double down on this hand.")


def apply_hit(state: BlackjackState, seat: int, move: Hit) -> None:
    _take_card(state, seat)
    if state.statuses[seat] is SeatStatus.BUST:
        _advance_to_next_player(state)


def apply_stand(state: BlackjackState, seat: int, move: Stand) -> None:
    state.statuses[seat] = SeatStatus.STAND
    _advance_to_next_player(state)


def apply_double(state: BlackjackState, seat: int, move: Double) -> None:
    state.players[seat].chips -= state.bets[seat]
    state.bets[seat] *= 2
    _take_card(state, seat)
    if state.statuses[seat] is not SeatStatus.BUST:
        state.statuses[seat] = SeatStatus.STAND
    _advance_to_next_player(state)


TABLE = MoveTable(
    BlackjackPhase,
    {
        BlackjackPhase.BETTING: {PlaceBet: Handler(check_bet, apply_bet)},
        BlackjackPhase.PLAYER_ACTIONS: {
            Hit: Handler(check_action, apply_hit),
            Stand: Handler(check_action, apply_stand),
            Double: Handler(check_double, apply_double),
        },
        BlackjackPhase.DEALER_PLAY: {},
        BlackjackPhase.PAYOUT: {},
    },
    barrier_phases=[BlackjackPhase.BETTING],
)


def bet_options(state: BlackjackState, seat: int) -> List[int]:
    """A ladder of legal bet sizes, smallest first."""
    settings = state.settings
    cap = state.players[seat].chips
    if settings.max_bet is not None:
        cap = min(cap, settings.max_bet)
    options = sorted({amount for amount in (settings.min_bet * step for step in (1, 2, 5, 10)) if amount <= cap})
    if cap >= settings.min_bet and cap not in options:
        options.append(cap)
    return options


class BlackjackGame(CardGame):
    name = "blackjack"
    min_players = 1
    max_players = 7
    settings_model = BlackjackSettings
    terminal_phase = BlackjackPhase.PAYOUT
    table = TABLE
    parser = MoveParser(PlaceBet, Hit, Stand, Double)

    def _new_state(self, players: List[PlayerInfo], settings: BlackjackSettings) -> BlackjackState:
        for player in players:
            player.chips = settings.starting_chips
        count = len(players)
        return BlackjackState(
            phase=BlackjackPhase.BETTING,
            current_turn=0,
            players=players,
            settings=settings,
            hands=[[] for _ in range(count)],
            bets=[0] * count,
            statuses=[SeatStatus.WAITING] * count,
            results=[None] * count,
            payouts=[0] * count,
        )

    def deal_or_setup(
        self,
        state: BlackjackState,
        *,
        rng: Optional[Random] = None,
        deck: Optional[Sequence[Card]] = None,
    ) -> BlackjackState:
        """Start a betting round. The shoe is built once and reused across rounds."""
        updated = self._next_deal(state)
        if deck is not None or not (updated.shoe or updated.discard_tray):
            fresh = create_deck(copies=updated.settings.deck_count)
            updated.shoe = self._ordered_deck(updated, fresh, rng, deck)
            updated.discard_tray = []
            updated.reshuffles = 0
        else:
            for hand in updated.hands:
                updated.discard_tray.extend(hand)
            updated.discard_tray.extend(updated.dealer_hand)
        count = updated.seat_count
        updated.hands = [[] for _ in range(count)]
        updated.dealer_hand = []
        updated.bets = [0] * count
        updated.results = [None] * count
        updated.payouts = [0] * count
        updated.statuses = [
            SeatStatus.WAITING if player.chips >= updated.settings.min_bet else SeatStatus.SITTING_OUT
            for player in updated.players
        ]
        updated.current_turn = 0
        updated.phase = BlackjackPhase.BETTING if updated.participants() else BlackjackPhase.PAYOUT
        log_game_event("blackjack", "round_dealt", round=updated.round_number, shoe=len(updated.shoe))
        return updated

    def is_eligible(self, state: BlackjackState, seat: int) -> bool:
        return state.statuses[seat] is SeatStatus.PLAYING

    def get_valid_moves(self, state: BlackjackState, seat: int) -> List[Move]:
        if state.phase is BlackjackPhase.BETTING:
            if state.statuses[seat] is SeatStatus.SITTING_OUT or state.bets[seat] > 0:
                return []
            return [PlaceBet(amount=amount) for amount in bet_options(state, seat)]
        if state.phase is BlackjackPhase.PLAYER_ACTIONS and seat == state.current_turn:
            if state.statuses[seat] is not SeatStatus.PLAYING:
                return []
            moves: List[Move] = [Stand(), Hit()]
            if double_allowed(state, seat):
                moves.append(Double())
            return moves
        return []

    def heuristic_move(self, state: BlackjackState, seat: int, moves: List[Move]) -> Move:
        if state.phase is BlackjackPhase.BETTING:
            return moves[0]
        value = hand_value(state.hands[seat])
        dealer_up = blackjack_card_value(state.dealer_hand[0])
        if value <= 11 or (value < 17 and not (value >= 13 and dealer_up <= 6)):
            return Hit()
        return Stand()

    def get_public_state(self, state: BlackjackState, viewer: Optional[int]) -> dict:
        view = base_view(state, self.name, viewer)
        revealed = [seat for seat, status in enumerate(state.statuses) if status is not SeatStatus.PLAYING]
        hole_hidden = state.phase in (BlackjackPhase.BETTING, BlackjackPhase.PLAYER_ACTIONS)
        if hole_hidden:
            dealer = {"cards": card_list(state.dealer_hand[:1]), "hidden": len(state.dealer_hand[1:]), "value": None}
        else:
            dealer = {"cards": card_list(state.dealer_hand), "hidden": 0, "value": hand_value(state.dealer_hand)}
        view.update(
            hands=seat_hands(state.hands, viewer, revealed),
            dealer=dealer,
            bets=list(state.bets),
            statuses=[status.value for status in state.statuses],
            results=list(state.results),
            payouts=list(state.payouts),
            shoe_count=len(state.shoe),
            discard_count=len(state.discard_tray),
        )
        return view

    def check_end_condition(self, state: BlackjackState) -> EndResult:
        # Sessions run until the caller stops dealing; chip exhaustion does not end them.
        return NOT_ENDED
