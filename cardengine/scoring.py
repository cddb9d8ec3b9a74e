"""Scoring arithmetic for every game."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from itertools import combinations
from typing import Iterable, List, Optional, Sequence

from .cards import Card, LOW_RANK_ORDINAL, Rank, Suit, TEN_VALUE_RANKS, pip_value

# Blackjack -------------------------------------------------------------

BLACKJACK_PAYOUTS = {"3:2": 1.5, "6:5": 1.2}


def blackjack_card_value(card: Card) -> int:
    if card.rank is Rank.ACE:
        return 11
    if card.rank in TEN_VALUE_RANKS:
        return 10
    return int(card.rank.value)


def hand_value(cards: Iterable[Card]) -> int:
    """Best total: aces count 11, demoted to 1 one at a time while over 21."""
    cards = list(cards)
    total = sum(blackjack_card_value(card) for card in cards)
    aces = sum(1 for card in cards if card.rank is Rank.ACE)
    while total > 21 and aces:
        total -= 10
        aces -= 1
    return total


def is_soft(cards: Iterable[Card]) -> bool:
    """An ace can still count as 11 without busting."""
    cards = list(cards)
    hard = sum(1 if card.rank is Rank.ACE else blackjack_card_value(card) for card in cards)
    return any(card.rank is Rank.ACE for card in cards) and hard + 10 <= 21


def is_natural(cards: Sequence[Card]) -> bool:
    if len(cards) != 2:
        return False
    ranks = {card.rank for card in cards}
    return Rank.ACE in ranks and bool(ranks & TEN_VALUE_RANKS)


def dealer_should_hit(cards: Sequence[Card], hits_soft_17: bool) -> bool:
    value = hand_value(cards)
    if value < 17:
        return True
    return value == 17 and hits_soft_17 and is_soft(cards)


@dataclass(frozen=True)
class Settlement:
    result: str
    payout: int


def settle_bet(bet: int, player: Sequence[Card], dealer: Sequence[Card], payout_ratio: str = "3:2") -> Settlement:
    """Net result for one seat. ``payout`` excludes the returned stake."""
    player_value = hand_value(player)
    dealer_value = hand_value(dealer)
    if player_value > 21:
        return Settlement("lose", -bet)
    if is_natural(player) and not is_natural(dealer):
        return Settlement("win", int(bet * BLACKJACK_PAYOUTS[payout_ratio]))
    if dealer_value > 21 or player_value > dealer_value:
        return Settlement("win", bet)
    if player_value == dealer_value:
        return Settlement("push", 0)
    return Settlement("lose", -bet)


# Cribbage --------------------------------------------------------------


def fifteens(cards: Sequence[Card]) -> int:
    points = 0
    for size in range(2, len(cards) + 1):
        for combo in combinations(cards, size):
            if sum(pip_value(card) for card in combo) == 15:
                points += 2
    return points


def pairs(cards: Sequence[Card]) -> int:
    return sum(2 for first, second in combinations(cards, 2) if first.rank is second.rank)


def runs(cards: Sequence[Card]) -> int:
    """Longest runs of three or more, counted once per card combination."""
    counts = Counter(LOW_RANK_ORDINAL[card.rank] for card in cards)
    ordinals = sorted(counts)
    points = 0
    start = 0
    while start < len(ordinals):
        end = start
        while end + 1 < len(ordinals) and ordinals[end + 1] == ordinals[end] + 1:
            end += 1
        length = end - start + 1
        if length >= 3:
            multiplier = 1
            for ordinal in ordinals[start : end + 1]:
                multiplier *= counts[ordinal]
            points += length * multiplier
        start = end + 1
    return points


def flush(hand: Sequence[Card], starter: Card, *, is_crib: bool = False) -> int:
    suits = {card.suit for card in hand}
    if len(suits) != 1:
        return 0
    if starter.suit in suits:
        return len(hand) + 1
    return 0 if is_crib else len(hand)


def nobs(hand: Sequence[Card], starter: Card) -> int:
    return 1 if any(card.rank is Rank.JACK and card.suit is starter.suit for card in hand) else 0


def hand_breakdown(hand: Sequence[Card], starter: Card, *, is_crib: bool = False) -> dict[str, int]:
    cards = list(hand) + [starter]
    return {
        "fifteens": fifteens(cards),
        "pairs": pairs(cards),
        "runs": runs(cards),
        "flush": flush(hand, starter, is_crib=is_crib),
        "nobs": nobs(hand, starter),
    }


def score_hand(hand: Sequence[Card], starter: Card, *, is_crib: bool = False) -> int:
    return sum(hand_breakdown(hand, starter, is_crib=is_crib).values())


def peg_points(sequence: Sequence[Card], count: int) -> int:
    """Points for the card just played; ``sequence`` is the current count's plays in order."""
    points = 2 if count in (15, 31) else 0
    if len(sequence) >= 2:
        last = sequence[-1].rank
        matching = 1
        for card in reversed(sequence[:-1]):
            if card.rank is not last:
                break
            matching += 1
        points += {2: 2, 3: 6, 4: 12}.get(matching, 0)
    for length in range(len(sequence), 2, -1):
        ordinals = sorted(LOW_RANK_ORDINAL[card.rank] for card in sequence[-length:])
        if all(later == earlier + 1 for earlier, later in zip(ordinals, ordinals[1:])):
            points += length
            break
    return points


# Bridge ----------------------------------------------------------------


class Strain(Enum):
    CLUBS = "clubs"
    DIAMONDS = "diamonds"
    HEARTS = "hearts"
    SPADES = "spades"
    NOTRUMP = "notrump"

    @property
    def rank(self) -> int:
        return list(Strain).index(self)

    @property
    def trump(self) -> Optional[Suit]:
        return None if self is Strain.NOTRUMP else Suit(self.value)

    @property
    def is_minor(self) -> bool:
        return self in (Strain.CLUBS, Strain.DIAMONDS)


def trick_score(level: int, strain: Strain, *, doubled: bool = False, redoubled: bool = False) -> int:
    if strain is Strain.NOTRUMP:
        base = 40 + 30 * (level - 1)
    else:
        base = level * (20 if strain.is_minor else 30)
    if redoubled:
        return base * 4
    if doubled:
        return base * 2
    return base


def score_contract(
    level: int,
    strain: Strain,
    tricks_won: int,
    *,
    doubled: bool = False,
    redoubled: bool = False,
    vulnerable: bool = False,
) -> int:
    """Signed result for the declaring side."""
    made = tricks_won - 6
    if made >= level:
        base = trick_score(level, strain, doubled=doubled, redoubled=redoubled)
        overtricks = made - level
        if doubled or redoubled:
            per_overtrick = (200 if vulnerable else 100) * (2 if redoubled else 1)
        else:
            per_overtrick = 20 if strain.is_minor else 30
        score = base + overtricks * per_overtrick
        if base >= 100:
            score += 500 if vulnerable else 300
        if level == 6:
            score += 750 if vulnerable else 500
        elif level == 7:
            score += 1500 if vulnerable else 1000
        return score
    undertricks = level - made
    if doubled or redoubled:
        per_undertrick = (200 if vulnerable else 100) * (2 if redoubled else 1)
    else:
        per_undertrick = 100 if vulnerable else 50
    return -undertricks * per_undertrick


# Pinochle --------------------------------------------------------------

COUNTER_RANKS = frozenset({Rank.ACE, Rank.TEN, Rank.KING})


def count_counters(cards: Iterable[Card]) -> int:
    return sum(1 for card in cards if card.rank in COUNTER_RANKS)


def settle_pinochle(
    bid: int,
    bidding_team: int,
    team_meld: Sequence[int],
    team_counters: Sequence[int],
    defenders_took_counter: bool,
) -> List[int]:
    """Per-team deltas for one hand."""
    deltas = [0, 0]
    defenders = 1 - bidding_team
    bidding_total = team_meld[bidding_team] + team_counters[bidding_team]
    deltas[bidding_team] = bidding_total if bidding_total >= bid else -bid
    if defenders_took_counter:
        deltas[defenders] = team_meld[defenders] + team_counters[defenders]
    return deltas


# Canasta ---------------------------------------------------------------

CANASTA_SIZE = 7
NATURAL_CANASTA_BONUS = 500
MIXED_CANASTA_BONUS = 300


def is_wild(card: Card) -> bool:
    return card.rank in (Rank.JOKER, Rank.TWO)


def is_red_three(card: Card) -> bool:
    return card.rank is Rank.THREE and card.suit.is_red


def canasta_card_points(card: Card) -> int:
    if card.rank is Rank.JOKER:
        return 50
    if card.rank in (Rank.ACE, Rank.TWO):
        return 20
    if card.rank in (Rank.KING, Rank.QUEEN, Rank.JACK, Rank.TEN, Rank.NINE, Rank.EIGHT):
        return 10
    return 5


def meld_card_points(cards: Iterable[Card]) -> int:
    return sum(canasta_card_points(card) for card in cards)


def canasta_bonus(cards: Sequence[Card]) -> int:
    if len(cards) < CANASTA_SIZE:
        return 0
    return MIXED_CANASTA_BONUS if any(is_wild(card) for card in cards) else NATURAL_CANASTA_BONUS


def meld_value(cards: Sequence[Card]) -> int:
    return meld_card_points(cards) + canasta_bonus(cards)


# Hearts ----------------------------------------------------------------

HEARTS_TOTAL_POINTS = 26


def heart_points(card: Card) -> int:
    if card.suit is Suit.HEARTS:
        return 1
    if card.rank is Rank.QUEEN and card.suit is Suit.SPADES:
        return 13
    return 0


def trick_points(cards: Iterable[Card]) -> int:
    return sum(heart_points(card) for card in cards)


def apply_moon(round_scores: Sequence[int], *, enabled: bool = True) -> List[int]:
    """If one seat took every point it scores 0 and every other seat 26."""
    scores = list(round_scores)
    if not enabled:
        return scores
    for seat, score in enumerate(scores):
        if score == HEARTS_TOTAL_POINTS:
            return [0 if other == seat else HEARTS_TOTAL_POINTS for other in range(len(scores))]
    return scores
