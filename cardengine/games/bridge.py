"""Rubber-free duplicate-style contract bridge for four seats."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from random import Random
from typing import Dict, List, Literal, Optional, Sequence, Tuple

from pydantic import Field

from ..cards import Card, Rank, STANDARD_SUITS, Suit, find_card, high_strength, remove_cards, sort_hand
from ..contract import CardGame, EndResult, NOT_ENDED, PlayerInfo, RoundState
from ..deck import create_deck, deal, seeded_rng, shuffle
from ..dispatch import Handler, MoveTable
from ..endings import expand_teams, seats_with
from ..errors import InvalidMove, RuleViolation
from ..logging_config import log_game_event
from ..moves import Move, MoveParser, PlayCard
from ..rules_schema import BridgeSettings
from ..scoring import Strain, score_contract
from ..trick import Trick, legal_follow
from ..visibility import base_view, seat_hands, trick_view


class BridgePhase(Enum):
    BIDDING = "bidding"
    PLAYING = "playing"
    HAND_END = "hand_end"


SEATS = 4
HAND_SIZE = 13
TEAM_OF = (0, 1, 0, 1)
TEAM_NAMES = ("ns", "ew")
VULNERABILITY_CYCLE = ("none", "ns", "ew", "both")
HIGH_CARD_POINTS: Dict[Rank, int] = {Rank.ACE: 4, Rank.KING: 3, Rank.QUEEN: 2, Rank.JACK: 1}


class PassCall(Move):
    action: Literal["pass"] = "pass"


class DoubleCall(Move):
    action: Literal["double"] = "double"


class RedoubleCall(Move):
    action: Literal["redouble"] = "redouble"


class BidCall(Move):
    action: Literal["bid"] = "bid"
    level: int = Field(ge=1, le=7)
    strain: Strain

    def outranks(self, level: int, strain: Strain) -> bool:
        return (self.level, self.strain.rank) > (level, strain.rank)


@dataclass
class BridgeState(RoundState):
    hands: List[List[Card]] = field(default_factory=list)
    dealer: int = 0
    vulnerability: str = "none"
    auction: List[Tuple[int, Move]] = field(default_factory=list)
    passes_in_row: int = 0
    contract_level: int = 0
    contract_strain: Optional[Strain] = None
    contract_bidder: Optional[int] = None
    doubled: bool = False
    redoubled: bool = False
    declarer: Optional[int] = None
    dummy_revealed: bool = False
    trick: Optional[Trick] = None
    tricks_taken: List[int] = field(default_factory=list)
    won_cards: List[List[Card]] = field(default_factory=list)
    hand_score: int = 0
    totals: List[int] = field(default_factory=lambda: [0, 0])
    hands_played: int = 0

    def all_cards(self) -> List[Card]:
        cards = [card for hand in self.hands for card in hand]
        cards.extend(card for pile in self.won_cards for card in pile)
        if self.trick is not None:
            cards.extend(self.trick.cards())
        return cards

    @property
    def dummy(self) -> Optional[int]:
        return None if self.declarer is None else (self.declarer + 2) % SEATS

    @property
    def trump(self) -> Optional[Suit]:
        return None if self.contract_strain is None else self.contract_strain.trump

    def declaring_tricks(self) -> int:
        if self.declarer is None:
            return 0
        return self.tricks_taken[self.declarer] + self.tricks_taken[(self.declarer + 2) % SEATS]

    def is_vulnerable(self, team: int) -> bool:
        return self.vulnerability in ("both", TEAM_NAMES[team])


def call_label(move: Move) -> str:
    if isinstance(move, BidCall):
        return f"{move.level}{move.strain.value}"
    return move.action


def _reset_hand(state: BridgeState, cards: Sequence[Card]) -> None:
    dealt = deal(cards, SEATS, HAND_SIZE)
    state.hands = [sort_hand(hand) for hand in dealt.hands]
    state.auction = []
    state.passes_in_row = 0
    state.contract_level = 0
    state.contract_strain = None
    state.contract_bidder = None
    state.doubled = False
    state.redoubled = False
    state.declarer = None
    state.dummy_revealed = False
    state.trick = None
    state.tricks_taken = [0] * SEATS
    state.won_cards = [[] for _ in range(SEATS)]
    state.hand_score = 0
    state.phase = BridgePhase.BIDDING
    state.current_turn = state.dealer


def _redeal(state: BridgeState) -> None:
    """Passed-out hand: the same dealer deals again."""
    state.deal_count += 1
    cards = shuffle(create_deck(), seeded_rng(state.settings.seed, state.deal_count))
    _reset_hand(state, cards)
    log_game_event("bridge", "passed_out", round=state.round_number, deal=state.deal_count)


# Handlers ---------------------------------------------------------------


def check_pass(state: BridgeState, seat: int, move: PassCall) -> None:
    return None


def apply_call(state: BridgeState, seat: int, move: Move) -> None:
    state.auction.append((seat, move))
    if isinstance(move, PassCall):
        state.passes_in_row += 1
    else:
        state.passes_in_row = 0
    if isinstance(move, BidCall):
        state.contract_level = move.level
        state.contract_strain = move.strain
        state.contract_bidder = seat
        state.doubled = False
        state.redoubled = False
    elif isinstance(move, DoubleCall):
        state.doubled = True
    elif isinstance(move, RedoubleCall):
        state.redoubled = True
    if state.contract_bidder is None and state.passes_in_row == SEATS:
        _redeal(state)
        return
    if state.contract_bidder is not None and state.passes_in_row == SEATS - 1:
        _close_auction(state)
        return
    state.current_turn = state.next_seat(seat)


def check_bid(state: BridgeState, seat: int, move: BidCall) -> None:
    if state.contract_strain is not None and not move.outranks(state.contract_level, state.contract_strain):
        raise RuleViolation("insufficient_bid", f"{call_label(move)} does not outrank the current bid.")


def check_double(state: BridgeState, seat: int, move: DoubleCall) -> None:
    if state.contract_bidder is None or TEAM_OF[state.contract_bidder] == TEAM_OF[seat]:
        raise RuleViolation("cannot_double", "You can only double an opponent's bid.")
    if state.doubled or state.redoubled:
        raise RuleViolation("cannot_double", "The bid is already doubled.")


def check_redouble(state: BridgeState, seat: int, move: RedoubleCall) -> None:
    if not state.doubled or state.redoubled:
        raise RuleViolation("cannot_redouble", "Only a doubled bid can be redoubled.")
    assert state.contract_bidder is not None
    if TEAM_OF[state.contract_bidder] != TEAM_OF[seat]:
        raise RuleViolation("cannot_redouble", "You can only redouble your own side's bid.")


def _close_auction(state: BridgeState) -> None:
    assert state.contract_bidder is not None
    team = TEAM_OF[state.contract_bidder]
    state.declarer = next(
        caller
        for caller, call in state.auction
        if isinstance(call, BidCall) and call.strain is state.contract_strain and TEAM_OF[caller] == team
    )
    leader = state.next_seat(state.declarer)
    state.phase = BridgePhase.PLAYING
    state.current_turn = leader
    state.trick = Trick(leader=leader, seats=SEATS)
    log_game_event(
        "bridge",
        "contract",
        level=state.contract_level,
        strain=state.contract_strain.value if state.contract_strain else None,
        declarer=state.declarer,
        doubled=state.doubled,
        redoubled=state.redoubled,
    )


def legal_plays(state: BridgeState) -> List[Card]:
    assert state.trick is not None
    return legal_follow(state.hands[state.current_turn], state.trick.led_suit())


def check_play(state: BridgeState, seat: int, move: PlayCard) -> None:
    # The declarer plays dummy's cards, so the hand is the seat whose turn it is.
    player = state.current_turn
    card = find_card(state.hands[player], move.card_id)
    if card is None:
        raise InvalidMove("card_not_in_hand", f"Seat {player} does not hold {move.card_id}.")
    if card not in legal_plays(state):
        assert state.trick is not None
        raise RuleViolation("must_follow", f"Must follow {state.trick.led_suit()}.")


def apply_play(state: BridgeState, seat: int, move: PlayCard) -> None:
    assert state.trick is not None
    player = state.current_turn
    state.hands[player], (card,) = remove_cards(state.hands[player], [move.card_id])
    state.trick.add_play(player, card)
    state.dummy_revealed = True
    if not state.trick.is_full():
        state.current_turn = state.trick.next_to_play()
        return
    winner, _ = state.trick.winning_play(state.trump)
    state.tricks_taken[winner] += 1
    state.won_cards[winner].extend(state.trick.cards())
    state.trick = Trick(leader=winner, seats=SEATS)
    state.current_turn = winner
    if not any(state.hands):
        _score_hand(state)


def _score_hand(state: BridgeState) -> None:
    assert state.declarer is not None and state.contract_strain is not None
    team = TEAM_OF[state.declarer]
    state.hand_score = score_contract(
        state.contract_level,
        state.contract_strain,
        state.declaring_tricks(),
        doubled=state.doubled,
        redoubled=state.redoubled,
        vulnerable=state.is_vulnerable(team),
    )
    state.totals[team] += state.hand_score
    state.hands_played += 1
    state.phase = BridgePhase.HAND_END
    log_game_event(
        "bridge",
        "hand_scored",
        round=state.round_number,
        tricks=state.declaring_tricks(),
        score=state.hand_score,
    )


TABLE = MoveTable(
    BridgePhase,
    {
        BridgePhase.BIDDING: {
            PassCall: Handler(check_pass, apply_call),
            BidCall: Handler(check_bid, apply_call),
            DoubleCall: Handler(check_double, apply_call),
            RedoubleCall: Handler(check_redouble, apply_call),
        },
        BridgePhase.PLAYING: {PlayCard: Handler(check_play, apply_play)},
        BridgePhase.HAND_END: {},
    },
)


# AI ---------------------------------------------------------------------


def high_card_points(hand: Sequence[Card]) -> int:
    return sum(HIGH_CARD_POINTS.get(card.rank, 0) for card in hand)


def suit_lengths(hand: Sequence[Card]) -> Dict[Suit, int]:
    return {suit: sum(1 for card in hand if card.suit is suit) for suit in STANDARD_SUITS}


def is_balanced(hand: Sequence[Card]) -> bool:
    lengths = sorted(suit_lengths(hand).values())
    return lengths[0] >= 2 and lengths[-1] <= 5 and lengths.count(2) <= 1


def choose_call(state: BridgeState, seat: int) -> Move:
    """Opening, raise and overcall choices by high-card points."""
    hand = state.hands[seat]
    points = high_card_points(hand)
    lengths = suit_lengths(hand)
    # Majors first on equal length.
    longest = max(reversed(STANDARD_SUITS), key=lambda suit: lengths[suit])
    candidate: Optional[BidCall] = None
    if state.contract_bidder is None:
        if 15 <= points <= 17 and is_balanced(hand):
            candidate = BidCall(level=1, strain=Strain.NOTRUMP)
        elif points >= 12:
            candidate = BidCall(level=1, strain=Strain(longest.value))
    elif TEAM_OF[state.contract_bidder] == TEAM_OF[seat]:
        if state.contract_bidder != seat and points >= 6 and state.contract_level < 4:
            assert state.contract_strain is not None
            candidate = BidCall(level=state.contract_level + 1, strain=state.contract_strain)
    elif points >= 12 and lengths[longest] >= 5:
        strain = Strain(longest.value)
        assert state.contract_strain is not None
        level = state.contract_level if strain.rank > state.contract_strain.rank else state.contract_level + 1
        if level <= 2:
            candidate = BidCall(level=level, strain=strain)
    if candidate is not None and (
        state.contract_strain is None or candidate.outranks(state.contract_level, state.contract_strain)
    ):
        return candidate
    return PassCall()


def choose_card(state: BridgeState) -> Card:
    assert state.trick is not None
    legal = legal_plays(state)
    if state.trick.is_empty():
        lengths = suit_lengths(legal)
        suit = max(STANDARD_SUITS, key=lambda candidate: lengths[candidate])
        return max((card for card in legal if card.suit is suit), key=high_strength)
    winning_seat, _ = state.trick.winning_play(state.trump)
    player = state.current_turn
    if TEAM_OF[winning_seat] == TEAM_OF[player]:
        return min(legal, key=high_strength)
    winners = []
    for card in legal:
        probe = Trick(leader=state.trick.leader, seats=SEATS, plays=list(state.trick.plays))
        probe.add_play(player, card)
        if probe.winning_play(state.trump)[0] == player:
            winners.append(card)
    return min(winners or legal, key=high_strength)


class BridgeGame(CardGame):
    name = "bridge"
    min_players = SEATS
    max_players = SEATS
    settings_model = BridgeSettings
    terminal_phase = BridgePhase.HAND_END
    table = TABLE
    parser = MoveParser(PassCall, BidCall, DoubleCall, RedoubleCall, PlayCard)

    def _new_state(self, players: List[PlayerInfo], settings: BridgeSettings) -> BridgeState:
        return BridgeState(
            phase=BridgePhase.BIDDING,
            current_turn=0,
            players=players,
            settings=settings,
            hands=[[] for _ in players],
            tricks_taken=[0] * SEATS,
        )

    def deal_or_setup(
        self,
        state: BridgeState,
        *,
        rng: Optional[Random] = None,
        deck: Optional[Sequence[Card]] = None,
    ) -> BridgeState:
        updated = self._next_deal(state)
        updated.dealer = (updated.round_number - 1) % SEATS
        updated.vulnerability = VULNERABILITY_CYCLE[(updated.round_number - 1) % len(VULNERABILITY_CYCLE)]
        _reset_hand(updated, self._ordered_deck(updated, create_deck(), rng, deck))
        log_game_event(
            "bridge",
            "hand_dealt",
            round=updated.round_number,
            dealer=updated.dealer,
            vulnerability=updated.vulnerability,
        )
        return updated

    def acting_seats(self, state: BridgeState) -> Tuple[int, ...]:
        if state.phase is BridgePhase.PLAYING and state.current_turn == state.dummy:
            assert state.declarer is not None
            return (state.current_turn, state.declarer)
        return (state.current_turn,)

    def get_valid_moves(self, state: BridgeState, seat: int) -> List[Move]:
        if seat not in self.acting_seats(state):
            return []
        if state.phase is BridgePhase.BIDDING:
            moves: List[Move] = [PassCall()]
            for move, checker in ((DoubleCall(), check_double), (RedoubleCall(), check_redouble)):
                try:
                    checker(state, seat, move)
                except RuleViolation:
                    continue
                moves.append(move)
            for level in range(1, 8):
                for strain in Strain:
                    bid = BidCall(level=level, strain=strain)
                    if state.contract_strain is None or bid.outranks(state.contract_level, state.contract_strain):
                        moves.append(bid)
            return moves
        if state.phase is BridgePhase.PLAYING:
            return [PlayCard(card_id=card.id) for card in legal_plays(state)]
        return []

    def heuristic_move(self, state: BridgeState, seat: int, moves: List[Move]) -> Move:
        if state.phase is BridgePhase.BIDDING:
            return choose_call(state, seat)
        return PlayCard(card_id=choose_card(state).id)

    def get_public_state(self, state: BridgeState, viewer: Optional[int]) -> dict:
        view = base_view(state, self.name, viewer)
        revealed = [state.dummy] if state.dummy_revealed and state.dummy is not None else []
        contract = None
        if state.contract_strain is not None:
            contract = {
                "level": state.contract_level,
                "strain": state.contract_strain.value,
                "bidder": state.contract_bidder,
                "doubled": state.doubled,
                "redoubled": state.redoubled,
            }
        view.update(
            hands=seat_hands(state.hands, viewer, revealed),
            dealer=state.dealer,
            vulnerability=state.vulnerability,
            auction=[{"seat": caller, "call": call_label(call)} for caller, call in state.auction],
            contract=contract,
            declarer=state.declarer,
            dummy=state.dummy,
            trick=trick_view(state.trick),
            tricks_taken=list(state.tricks_taken),
            declarer_tricks=state.declaring_tricks(),
            hand_score=state.hand_score,
            totals=list(state.totals),
            hands_played=state.hands_played,
        )
        return view

    def check_end_condition(self, state: BridgeState) -> EndResult:
        limit = state.settings.hand_limit
        if limit is None or state.phase is not BridgePhase.HAND_END or state.hands_played < limit:
            return NOT_ENDED
        best = tuple(seats_with(state.totals, max(state.totals)))
        return expand_teams(EndResult(ended=True, reason="hand_limit", winners=best), TEAM_OF)
