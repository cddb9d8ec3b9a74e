"""Hearts: four seats, pass three cards, avoid hearts and the queen of spades."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from itertools import combinations
from random import Random
from typing import List, Literal, Optional, Sequence

from ..cards import Card, Rank, Suit, find_card, high_strength, remove_cards, sort_hand
from ..contract import CardGame, EndResult, NOT_ENDED, PlayerInfo, RoundState
from ..deck import create_deck, deal
from ..dispatch import Handler, MoveTable
from ..endings import lowest_when_any_reaches
from ..errors import InvalidMove, RuleViolation
from ..logging_config import log_game_event
from ..moves import CardIds, Move, MoveParser, PlayCard
from ..rules_schema import HeartsSettings
from ..scoring import apply_moon, heart_points, trick_points
from ..trick import Trick
from ..visibility import base_view, seat_hands, trick_view


class HeartsPhase(Enum):
    PASSING = "passing"
    PLAYING = "playing"
    ROUND_END = "round_end"


PASS_DIRECTIONS = ("left", "right", "across", "none")
PASS_OFFSETS = {"left": 1, "right": 3, "across": 2}
PASS_SIZE = 3
SEATS = 4


class PassCards(Move):
    action: Literal["pass_cards"] = "pass_cards"
    card_ids: CardIds


@dataclass
class HeartsState(RoundState):
    hands: List[List[Card]] = field(default_factory=list)
    pass_direction: str = "left"
    pass_selections: List[List[str]] = field(default_factory=list)
    passes_complete: List[bool] = field(default_factory=list)
    trick: Optional[Trick] = None
    tricks_taken: List[int] = field(default_factory=list)
    won_cards: List[List[Card]] = field(default_factory=list)
    hearts_broken: bool = False
    round_scores: List[int] = field(default_factory=list)
    total_scores: List[int] = field(default_factory=list)

    def all_cards(self) -> List[Card]:
        cards = [card for hand in self.hands for card in hand]
        cards.extend(card for pile in self.won_cards for card in pile)
        if self.trick is not None:
            cards.extend(self.trick.cards())
        return cards

    def is_first_trick(self) -> bool:
        return sum(self.tricks_taken) == 0


def is_two_of_clubs(card: Card) -> bool:
    return card.rank is Rank.TWO and card.suit is Suit.CLUBS


def is_point_card(card: Card) -> bool:
    return heart_points(card) > 0


def holder_of_two_of_clubs(hands: Sequence[Sequence[Card]]) -> int:
    for seat, hand in enumerate(hands):
        if any(is_two_of_clubs(card) for card in hand):
            return seat
    return 0


def play_violation(state: HeartsState, seat: int, card: Card) -> Optional[RuleViolation]:
    """The rule ``card`` would break, or ``None`` when it is playable."""
    hand = state.hands[seat]
    trick = state.trick
    assert trick is not None
    if trick.is_empty():
        if state.is_first_trick() and not is_two_of_clubs(card) and any(is_two_of_clubs(c) for c in hand):
            return RuleViolation("must_lead_two_of_clubs", "The 2 of clubs must lead the first trick.")
        if card.suit is Suit.HEARTS and not state.hearts_broken and any(c.suit is not Suit.HEARTS for c in hand):
            return RuleViolation("hearts_not_broken", "Hearts cannot be led until they are broken.")
        return None
    led = trick.led_suit()
    if card.suit is not led and any(c.suit is led for c in hand):
        return RuleViolation("must_follow", f"Must follow {led}.")
    if card.suit is not led and state.is_first_trick() and is_point_card(card):
        if any(not is_point_card(c) for c in hand):
            return RuleViolation("no_points_first_trick", "Point cards cannot be played on the first trick.")
    return None


def playable_cards(state: HeartsState, seat: int) -> List[Card]:
    return [card for card in state.hands[seat] if play_violation(state, seat, card) is None]


# Handlers ---------------------------------------------------------------


def check_pass(state: HeartsState, seat: int, move: PassCards) -> None:
    if state.passes_complete[seat]:
        raise RuleViolation("already_passed", "You have already selected cards to pass.")
    if len(move.card_ids) != PASS_SIZE or len(set(move.card_ids)) != PASS_SIZE:
        raise InvalidMove("wrong_card_count", f"Select exactly {PASS_SIZE} different cards to pass.")
    for card_id in move.card_ids:
        if find_card(state.hands[seat], card_id) is None:
            raise InvalidMove("card_not_in_hand", f"You do not hold {card_id}.")


def apply_pass(state: HeartsState, seat: int, move: PassCards) -> None:
    state.pass_selections[seat] = list(move.card_ids)
    state.passes_complete[seat] = True
    if all(state.passes_complete):
        _exchange_passes(state)
        _start_play(state)


def _exchange_passes(state: HeartsState) -> None:
    offset = PASS_OFFSETS[state.pass_direction]
    outgoing = []
    for seat in range(SEATS):
        kept, passed = remove_cards(state.hands[seat], state.pass_selections[seat])
        state.hands[seat] = kept
        outgoing.append(passed)
    for seat, passed in enumerate(outgoing):
        target = (seat + offset) % SEATS
        state.hands[target] = sort_hand(state.hands[target] + passed)
    log_game_event("hearts", "cards_passed", round=state.round_number, direction=state.pass_direction)


def _start_play(state: HeartsState) -> None:
    state.phase = HeartsPhase.PLAYING
    leader = holder_of_two_of_clubs(state.hands)
    state.current_turn = leader
    state.trick = Trick(leader=leader, seats=SEATS)


def check_play(state: HeartsState, seat: int, move: PlayCard) -> None:
    card = find_card(state.hands[seat], move.card_id)
    if card is None:
        raise InvalidMove("card_not_in_hand", f"You do not hold {move.card_id}.")
    violation = play_violation(state, seat, card)
    if violation is not None:
        raise violation


def apply_play(state: HeartsState, seat: int, move: PlayCard) -> None:
    assert state.trick is not None
    state.hands[seat], (card,) = remove_cards(state.hands[seat], [move.card_id])
    state.trick.add_play(seat, card)
    if card.suit is Suit.HEARTS:
        state.hearts_broken = True
    if not state.trick.is_full():
        state.current_turn = state.trick.next_to_play()
        return
    winner, _ = state.trick.winning_play(None)
    cards = state.trick.cards()
    state.tricks_taken[winner] += 1
    state.won_cards[winner].extend(cards)
    state.round_scores[winner] += trick_points(cards)
    log_game_event("hearts", "trick_won", seat=winner, points=trick_points(cards))
    state.trick = Trick(leader=winner, seats=SEATS)
    state.current_turn = winner
    if not any(state.hands):
        _score_round(state)


def _score_round(state: HeartsState) -> None:
    state.round_scores = apply_moon(state.round_scores, enabled=state.settings.shoot_the_moon)
    state.total_scores = [total + score for total, score in zip(state.total_scores, state.round_scores)]
    state.phase = HeartsPhase.ROUND_END
    log_game_event("hearts", "round_scored", round=state.round_number, scores=state.round_scores)


TABLE = MoveTable(
    HeartsPhase,
    {
        HeartsPhase.PASSING: {PassCards: Handler(check_pass, apply_pass)},
        HeartsPhase.PLAYING: {PlayCard: Handler(check_play, apply_play)},
        HeartsPhase.ROUND_END: {},
    },
    barrier_phases=[HeartsPhase.PASSING],
)


# AI ---------------------------------------------------------------------


def pass_danger(card: Card) -> int:
    score = high_strength(card)
    if card.suit is Suit.SPADES and card.rank is Rank.QUEEN:
        score += 20
    if card.suit is Suit.SPADES and card.rank in (Rank.ACE, Rank.KING):
        score += 10
    if card.suit is Suit.HEARTS:
        score += 5
    return score


def _lowest(cards: Sequence[Card]) -> Card:
    return min(cards, key=high_strength)


def _highest(cards: Sequence[Card]) -> Card:
    return max(cards, key=high_strength)


def choose_lead(state: HeartsState, legal: Sequence[Card]) -> Card:
    safe = [card for card in legal if card.suit in (Suit.CLUBS, Suit.DIAMONDS)]
    if safe:
        return _lowest(safe)
    spades = [card for card in legal if card.suit is Suit.SPADES]
    holds_queen = any(card.suit is Suit.SPADES and card.rank is Rank.QUEEN for card in legal)
    if spades and not holds_queen:
        return _lowest(spades)
    hearts = [card for card in legal if card.suit is Suit.HEARTS]
    if hearts and state.hearts_broken:
        return _lowest(hearts)
    return _lowest(legal)


def choose_follow(state: HeartsState, legal: Sequence[Card]) -> Card:
    assert state.trick is not None
    led = state.trick.led_suit()
    following = [card for card in legal if card.suit is led]
    if following:
        best = max(high_strength(card) for card in state.trick.cards() if card.suit is led)
        under = [card for card in following if high_strength(card) < best]
        return _highest(under) if under else _highest(following)
    for card in legal:
        if card.suit is Suit.SPADES and card.rank is Rank.QUEEN:
            return card
    for suit in (Suit.HEARTS, Suit.SPADES):
        suited = [card for card in legal if card.suit is suit]
        if suited:
            return _highest(suited)
    return _highest(legal)


class HeartsGame(CardGame):
    name = "hearts"
    min_players = SEATS
    max_players = SEATS
    settings_model = HeartsSettings
    terminal_phase = HeartsPhase.ROUND_END
    table = TABLE
    parser = MoveParser(PassCards, PlayCard)

    def _new_state(self, players: List[PlayerInfo], settings: HeartsSettings) -> HeartsState:
        return HeartsState(
            phase=HeartsPhase.PASSING,
            current_turn=0,
            players=players,
            settings=settings,
            hands=[[] for _ in players],
            total_scores=[0] * SEATS,
        )

    def deal_or_setup(
        self,
        state: HeartsState,
        *,
        rng: Optional[Random] = None,
        deck: Optional[Sequence[Card]] = None,
    ) -> HeartsState:
        updated = self._next_deal(state)
        cards = self._ordered_deck(updated, create_deck(), rng, deck)
        dealt = deal(cards, SEATS, 13)
        updated.hands = [sort_hand(hand) for hand in dealt.hands]
        updated.pass_direction = PASS_DIRECTIONS[(updated.round_number - 1) % len(PASS_DIRECTIONS)]
        updated.pass_selections = [[] for _ in range(SEATS)]
        updated.passes_complete = [False] * SEATS
        updated.tricks_taken = [0] * SEATS
        updated.won_cards = [[] for _ in range(SEATS)]
        updated.round_scores = [0] * SEATS
        updated.hearts_broken = False
        updated.trick = None
        if updated.pass_direction == "none":
            _start_play(updated)
        else:
            updated.phase = HeartsPhase.PASSING
            updated.current_turn = 0
        log_game_event("hearts", "round_dealt", round=updated.round_number, direction=updated.pass_direction)
        return updated

    def get_valid_moves(self, state: HeartsState, seat: int) -> List[Move]:
        if state.phase is HeartsPhase.PASSING:
            if state.passes_complete[seat]:
                return []
            ids = [card.id for card in state.hands[seat]]
            return [PassCards(card_ids=combo) for combo in combinations(ids, PASS_SIZE)]
        if state.phase is HeartsPhase.PLAYING and seat == state.current_turn:
            return [PlayCard(card_id=card.id) for card in playable_cards(state, seat)]
        return []

    def heuristic_move(self, state: HeartsState, seat: int, moves: List[Move]) -> Move:
        if state.phase is HeartsPhase.PASSING:
            ranked = sorted(state.hands[seat], key=pass_danger, reverse=True)
            return PassCards(card_ids=tuple(card.id for card in ranked[:PASS_SIZE]))
        legal = playable_cards(state, seat)
        assert state.trick is not None
        card = choose_lead(state, legal) if state.trick.is_empty() else choose_follow(state, legal)
        return PlayCard(card_id=card.id)

    def get_public_state(self, state: HeartsState, viewer: Optional[int]) -> dict:
        view = base_view(state, self.name, viewer)
        selections: List[object] = []
        for seat, chosen in enumerate(state.pass_selections):
            if seat == viewer:
                selections.append(list(chosen))
            else:
                selections.append("ready" if state.passes_complete[seat] else "selecting")
        view.update(
            hands=seat_hands(state.hands, viewer),
            pass_direction=state.pass_direction,
            pass_selections=selections,
            trick=trick_view(state.trick),
            tricks_taken=list(state.tricks_taken),
            hearts_broken=state.hearts_broken,
            round_scores=list(state.round_scores),
            total_scores=list(state.total_scores),
        )
        return view

    def check_end_condition(self, state: HeartsState) -> EndResult:
        if state.phase is not HeartsPhase.ROUND_END or not state.deal_count:
            return NOT_ENDED
        return lowest_when_any_reaches(state.total_scores, state.settings.losing_score)
