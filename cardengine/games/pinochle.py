"""Partnership pinochle for four seats on the 48-card double deck."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from random import Random
from typing import Dict, List, Literal, Optional, Sequence

from ..cards import Card, Rank, STANDARD_SUITS, Suit, find_card, remove_cards, sort_hand
from ..contract import CardGame, EndResult, NOT_ENDED, PlayerInfo, RoundState
from ..deck import create_deck, deal
from ..dispatch import Handler, MoveTable
from ..endings import expand_teams, first_to_reach
from ..errors import InvalidMove, RuleViolation
from ..logging_config import log_game_event
from ..melds import pinochle_meld, pinochle_meld_points
from ..moves import Move, MoveParser, PlayCard
from ..rules_schema import PinochleSettings
from ..scoring import count_counters, settle_pinochle
from ..trick import Trick, legal_follow
from ..visibility import base_view, seat_hands, trick_view


class PinochlePhase(Enum):
    BIDDING = "bidding"
    TRUMP_SELECTION = "trump_selection"
    PLAYING = "playing"
    ROUND_END = "round_end"


SEATS = 4
HAND_SIZE = 12
TEAM_OF = (0, 1, 0, 1)
LAST_TRICK_BONUS = 1

PINOCHLE_STRENGTH: Dict[Rank, int] = {
    Rank.NINE: 1,
    Rank.JACK: 2,
    Rank.QUEEN: 3,
    Rank.KING: 4,
    Rank.TEN: 5,
    Rank.ACE: 6,
}


def pinochle_strength(card: Card) -> int:
    return PINOCHLE_STRENGTH[card.rank]


class Bid(Move):
    action: Literal["bid"] = "bid"
    amount: int


class PassBid(Move):
    action: Literal["pass"] = "pass"


class SelectTrump(Move):
    action: Literal["select_trump"] = "select_trump"
    suit: Suit


@dataclass
class PinochleState(RoundState):
    hands: List[List[Card]] = field(default_factory=list)
    dealer: int = 0
    high_bid: int = 0
    high_bidder: Optional[int] = None
    passed: List[bool] = field(default_factory=list)
    trump: Optional[Suit] = None
    melds: List[Dict[str, int]] = field(default_factory=list)
    meld_points: List[int] = field(default_factory=list)
    trick: Optional[Trick] = None
    tricks_taken: List[int] = field(default_factory=list)
    won_cards: List[List[Card]] = field(default_factory=list)
    team_counters: List[int] = field(default_factory=lambda: [0, 0])
    counter_cards: List[int] = field(default_factory=lambda: [0, 0])
    round_deltas: List[int] = field(default_factory=lambda: [0, 0])
    team_scores: List[int] = field(default_factory=lambda: [0, 0])

    def all_cards(self) -> List[Card]:
        cards = [card for hand in self.hands for card in hand]
        cards.extend(card for pile in self.won_cards for card in pile)
        if self.trick is not None:
            cards.extend(self.trick.cards())
        return cards

    def minimum_next_bid(self) -> int:
        if self.high_bidder is None:
            return self.settings.minimum_bid
        return self.high_bid + 1


def _next_bidder(state: PinochleState, seat: int) -> int:
    for step in range(1, SEATS + 1):
        candidate = state.next_seat(seat, step)
        if not state.passed[candidate]:
            return candidate
    return seat


def _open_trump_selection(state: PinochleState) -> None:
    assert state.high_bidder is not None
    state.phase = PinochlePhase.TRUMP_SELECTION
    state.current_turn = state.high_bidder
    log_game_event("pinochle", "bidding_won", seat=state.high_bidder, bid=state.high_bid)


def legal_plays(state: PinochleState, seat: int) -> List[Card]:
    assert state.trick is not None
    return legal_follow(state.hands[seat], state.trick.led_suit(), trump=state.trump, must_trump=True)


# Handlers ---------------------------------------------------------------


def check_bid(state: PinochleState, seat: int, move: Bid) -> None:
    floor = state.minimum_next_bid()
    if move.amount < floor:
        raise RuleViolation("bid_too_low", f"Bid must be at least {floor}.")
    if move.amount > state.settings.maximum_bid:
        raise RuleViolation("bid_too_high", f"Bids are capped at {state.settings.maximum_bid}.")


def apply_bid(state: PinochleState, seat: int, move: Bid) -> None:
    state.high_bid = move.amount
    state.high_bidder = seat
    if all(state.passed[other] for other in range(SEATS) if other != seat):
        _open_trump_selection(state)
        return
    state.current_turn = _next_bidder(state, seat)


def check_pass(state: PinochleState, seat: int, move: PassBid) -> None:
    return None


def apply_pass(state: PinochleState, seat: int, move: PassBid) -> None:
    state.passed[seat] = True
    if all(state.passed):
        # Everyone passed: the dealer is stuck with the minimum.
        state.high_bidder = state.dealer
        state.high_bid = state.settings.minimum_bid
        _open_trump_selection(state)
        return
    remaining = [other for other in range(SEATS) if not state.passed[other]]
    if state.high_bidder is not None and remaining == [state.high_bidder]:
        _open_trump_selection(state)
        return
    state.current_turn = _next_bidder(state, seat)


def check_trump(state: PinochleState, seat: int, move: SelectTrump) -> None:
    if move.suit not in STANDARD_SUITS:
        raise InvalidMove("invalid_suit", f"{move.suit.value} cannot be trump.")


def apply_trump(state: PinochleState, seat: int, move: SelectTrump) -> None:
    state.trump = move.suit
    state.melds = [pinochle_meld(hand, move.suit) for hand in state.hands]
    state.meld_points = [sum(meld.values()) for meld in state.melds]
    state.phase = PinochlePhase.PLAYING
    state.current_turn = seat
    state.trick = Trick(leader=seat, seats=SEATS)
    log_game_event("pinochle", "trump_selected", seat=seat, trump=move.suit.value, meld=state.meld_points)


def check_play(state: PinochleState, seat: int, move: PlayCard) -> None:
    assert state.trick is not None
    card = find_card(state.hands[seat], move.card_id)
    if card is None:
        raise InvalidMove("card_not_in_hand", f"You do not hold {move.card_id}.")
    if card in legal_plays(state, seat):
        return
    led = state.trick.led_suit()
    if any(held.suit is led for held in state.hands[seat]):
        raise RuleViolation("must_follow", f"Must follow {led.value}.")
    raise RuleViolation("must_trump", "Must play trump when void in the led suit.")


def apply_play(state: PinochleState, seat: int, move: PlayCard) -> None:
    assert state.trick is not None
    state.hands[seat], (card,) = remove_cards(state.hands[seat], [move.card_id])
    state.trick.add_play(seat, card)
    if not state.trick.is_full():
        state.current_turn = state.trick.next_to_play()
        return
    winner, _ = state.trick.winning_play(state.trump, strength=pinochle_strength)
    cards = state.trick.cards()
    team = TEAM_OF[winner]
    counters = count_counters(cards)
    state.tricks_taken[winner] += 1
    state.won_cards[winner].extend(cards)
    state.team_counters[team] += counters
    state.counter_cards[team] += counters
    state.trick = Trick(leader=winner, seats=SEATS)
    state.current_turn = winner
    if not any(state.hands):
        state.team_counters[team] += LAST_TRICK_BONUS
        _score_round(state)


def _score_round(state: PinochleState) -> None:
    assert state.high_bidder is not None
    bidding_team = TEAM_OF[state.high_bidder]
    team_meld = [0, 0]
    for seat, points in enumerate(state.meld_points):
        team_meld[TEAM_OF[seat]] += points
    defenders = 1 - bidding_team
    state.round_deltas = settle_pinochle(
        state.high_bid,
        bidding_team,
        team_meld,
        state.team_counters,
        state.counter_cards[defenders] > 0,
    )
    state.team_scores = [total + delta for total, delta in zip(state.team_scores, state.round_deltas)]
    state.phase = PinochlePhase.ROUND_END
    log_game_event("pinochle", "round_scored", round=state.round_number, deltas=state.round_deltas)


TABLE = MoveTable(
    PinochlePhase,
    {
        PinochlePhase.BIDDING: {
            Bid: Handler(check_bid, apply_bid),
            PassBid: Handler(check_pass, apply_pass),
        },
        PinochlePhase.TRUMP_SELECTION: {SelectTrump: Handler(check_trump, apply_trump)},
        PinochlePhase.PLAYING: {PlayCard: Handler(check_play, apply_play)},
        PinochlePhase.ROUND_END: {},
    },
)


# AI ---------------------------------------------------------------------


def estimate_hand(hand: Sequence[Card]) -> int:
    """Best meld over the four possible trumps plus expected counters."""
    best_meld = max(pinochle_meld_points(hand, suit) for suit in STANDARD_SUITS)
    return best_meld + count_counters(hand) // 3 * 2


def longest_suit(hand: Sequence[Card]) -> Suit:
    lengths = Counter(card.suit for card in hand)
    strength = Counter()
    for card in hand:
        strength[card.suit] += pinochle_strength(card)
    return max(STANDARD_SUITS, key=lambda suit: (lengths[suit], strength[suit]))


class PinochleGame(CardGame):
    name = "pinochle"
    min_players = SEATS
    max_players = SEATS
    settings_model = PinochleSettings
    terminal_phase = PinochlePhase.ROUND_END
    table = TABLE
    parser = MoveParser(Bid, PassBid, SelectTrump, PlayCard)

    def _new_state(self, players: List[PlayerInfo], settings: PinochleSettings) -> PinochleState:
        return PinochleState(
            phase=PinochlePhase.BIDDING,
            current_turn=1,
            players=players,
            settings=settings,
            hands=[[] for _ in players],
            passed=[False] * SEATS,
        )

    def deal_or_setup(
        self,
        state: PinochleState,
        *,
        rng: Optional[Random] = None,
        deck: Optional[Sequence[Card]] = None,
    ) -> PinochleState:
        updated = self._next_deal(state)
        cards = self._ordered_deck(updated, create_deck("pinochle"), rng, deck)
        dealt = deal(cards, SEATS, HAND_SIZE)
        updated.hands = [sort_hand(hand) for hand in dealt.hands]
        updated.dealer = (updated.round_number - 1) % SEATS
        updated.high_bid = 0
        updated.high_bidder = None
        updated.passed = [False] * SEATS
        updated.trump = None
        updated.melds = []
        updated.meld_points = [0] * SEATS
        updated.trick = None
        updated.tricks_taken = [0] * SEATS
        updated.won_cards = [[] for _ in range(SEATS)]
        updated.team_counters = [0, 0]
        updated.counter_cards = [0, 0]
        updated.round_deltas = [0, 0]
        updated.phase = PinochlePhase.BIDDING
        updated.current_turn = updated.next_seat(updated.dealer)
        log_game_event("pinochle", "round_dealt", round=updated.round_number, dealer=updated.dealer)
        return updated

    def is_eligible(self, state: PinochleState, seat: int) -> bool:
        if state.phase is PinochlePhase.BIDDING:
            return not state.passed[seat]
        return True

    def get_valid_moves(self, state: PinochleState, seat: int) -> List[Move]:
        if seat != state.current_turn:
            return []
        if state.phase is PinochlePhase.BIDDING:
            moves: List[Move] = [PassBid()]
            moves.extend(Bid(amount=amount) for amount in range(state.minimum_next_bid(), state.settings.maximum_bid + 1))
            return moves
        if state.phase is PinochlePhase.TRUMP_SELECTION:
            return [SelectTrump(suit=suit) for suit in STANDARD_SUITS]
        if state.phase is PinochlePhase.PLAYING:
            return [PlayCard(card_id=card.id) for card in legal_plays(state, seat)]
        return []

    def heuristic_move(self, state: PinochleState, seat: int, moves: List[Move]) -> Move:
        hand = state.hands[seat]
        if state.phase is PinochlePhase.BIDDING:
            floor = state.minimum_next_bid()
            if estimate_hand(hand) > floor + 1 and floor <= state.settings.maximum_bid:
                return Bid(amount=floor)
            return PassBid()
        if state.phase is PinochlePhase.TRUMP_SELECTION:
            return SelectTrump(suit=longest_suit(hand))
        return PlayCard(card_id=self._choose_card(state, seat).id)

    def _choose_card(self, state: PinochleState, seat: int) -> Card:
        assert state.trick is not None
        legal = legal_plays(state, seat)
        if state.trick.is_empty():
            aces = [card for card in legal if card.rank is Rank.ACE and card.suit is not state.trump]
            return aces[0] if aces else min(legal, key=pinochle_strength)
        winning_seat, _ = state.trick.winning_play(state.trump, strength=pinochle_strength)
        if TEAM_OF[winning_seat] == TEAM_OF[seat]:
            return min(legal, key=pinochle_strength)
        winners = []
        for card in legal:
            probe = Trick(leader=state.trick.leader, seats=SEATS, plays=list(state.trick.plays))
            probe.add_play(seat, card)
            if probe.winning_play(state.trump, strength=pinochle_strength)[0] == seat:
                winners.append(card)
        if winners:
            return min(winners, key=pinochle_strength)
        return min(legal, key=pinochle_strength)

    def get_public_state(self, state: PinochleState, viewer: Optional[int]) -> dict:
        view = base_view(state, self.name, viewer)
        view.update(
            hands=seat_hands(state.hands, viewer),
            dealer=state.dealer,
            high_bid=state.high_bid if state.high_bidder is not None else None,
            high_bidder=state.high_bidder,
            passed=list(state.passed),
            trump=state.trump.value if state.trump else None,
            melds=[dict(meld) for meld in state.melds],
            meld_points=list(state.meld_points),
            trick=trick_view(state.trick),
            tricks_taken=list(state.tricks_taken),
            team_counters=list(state.team_counters),
            round_deltas=list(state.round_deltas),
            team_scores=list(state.team_scores),
        )
        return view

    def check_end_condition(self, state: PinochleState) -> EndResult:
        if state.phase is not PinochlePhase.ROUND_END or not state.deal_count:
            return NOT_ENDED
        return expand_teams(first_to_reach(state.team_scores, state.settings.winning_score), TEAM_OF)
