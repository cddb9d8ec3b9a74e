"""Meld legality (Canasta) and meld valuation (Pinochle)."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from .cards import Card, Rank, STANDARD_SUITS, Suit, count_matching
from .errors import RuleViolation
from .scoring import is_wild

# Canasta ---------------------------------------------------------------


def naturals(cards: Iterable[Card]) -> List[Card]:
    return [card for card in cards if not is_wild(card)]


def meld_rank(cards: Iterable[Card]) -> Optional[Rank]:
    ranks = {card.rank for card in naturals(cards)}
    return next(iter(ranks)) if len(ranks) == 1 else None


def check_meld(cards: Sequence[Card], *, wildcard_limit: int, existing: Sequence[Card] = ()) -> Rank:
    """Validate ``cards`` as a new meld, or as additions to ``existing``.

    Returns the meld's rank. Raises ``RuleViolation`` with codes
    ``insufficient_cards``, ``mixed_ranks``, ``threes_not_meldable``,
    ``too_many_wildcards`` and ``wildcards_outnumber``.
    """
    combined = list(existing) + list(cards)
    if not existing and len(cards) < 3:
        raise RuleViolation("insufficient_cards", "A meld needs at least three cards.")
    natural_cards = naturals(combined)
    ranks = {card.rank for card in natural_cards}
    if not ranks:
        raise RuleViolation("wildcards_outnumber", "A meld needs natural cards.")
    if len(ranks) > 1:
        raise RuleViolation("mixed_ranks", "All natural cards in a meld must share a rank.")
    rank = next(iter(ranks))
    if rank is Rank.THREE:
        raise RuleViolation("threes_not_meldable", "Threes cannot be melded.")
    wildcards = len(combined) - len(natural_cards)
    if wildcards > wildcard_limit:
        raise RuleViolation("too_many_wildcards", f"A meld may hold at most {wildcard_limit} wildcards.")
    if wildcards >= len(natural_cards):
        raise RuleViolation("wildcards_outnumber", "Natural cards must outnumber wildcards.")
    return rank


# Pinochle --------------------------------------------------------------

RUN_RANKS = (Rank.ACE, Rank.TEN, Rank.KING, Rank.QUEEN, Rank.JACK)


def pinochle_meld(hand: Sequence[Card], trump: Suit) -> dict[str, int]:
    jacks = count_matching(hand, Rank.JACK, Suit.DIAMONDS)
    queens = count_matching(hand, Rank.QUEEN, Suit.SPADES)
    pinochles = min(jacks, queens)
    marriages = 0
    for suit in STANDARD_SUITS:
        pairs = min(count_matching(hand, Rank.KING, suit), count_matching(hand, Rank.QUEEN, suit))
        marriages += pairs * (4 if suit is trump else 2)
    return {
        "pinochle": 30 if pinochles >= 2 else 4 if pinochles == 1 else 0,
        "marriages": marriages,
        "nines": count_matching(hand, Rank.NINE, trump),
        "run": 15 if all(count_matching(hand, rank, trump) for rank in RUN_RANKS) else 0,
        "aces": 10 if {card.suit for card in hand if card.rank is Rank.ACE} >= set(STANDARD_SUITS) else 0,
    }


def pinochle_meld_points(hand: Sequence[Card], trump: Suit) -> int:
    return sum(pinochle_meld(hand, trump).values())
