"""Deck creation, shuffling and dealing utilities."""

from __future__ import annotations

from dataclasses import dataclass
from random import Random
from typing import List, Optional, Sequence

from .cards import Card, Rank, STANDARD_RANKS, STANDARD_SUITS, Suit

PINOCHLE_RANKS: tuple[Rank, ...] = (Rank.NINE, Rank.JACK, Rank.QUEEN, Rank.KING, Rank.TEN, Rank.ACE)


@dataclass
class DealResult:
    hands: List[List[Card]]
    remaining: List[Card]


def build_standard_deck(copy: int = 0) -> List[Card]:
    """Return the ordered 52-card deck."""
    return [Card(rank, suit, copy) for suit in STANDARD_SUITS for rank in STANDARD_RANKS]


def build_pinochle_deck() -> List[Card]:
    """Return the ordered 48-card double deck (9 through ace, two copies)."""
    return [Card(rank, suit, copy) for copy in range(2) for suit in STANDARD_SUITS for rank in PINOCHLE_RANKS]


def create_deck(variant: str = "standard", *, copies: int = 1, jokers: int = 0) -> List[Card]:
    """Build an unshuffled deck.

    ``standard`` is ``copies`` × 52 cards plus ``jokers``; ``pinochle`` and
    ``canasta`` are the fixed decks those games use.
    """
    if variant == "pinochle":
        return build_pinochle_deck()
    if variant == "canasta":
        copies, jokers = 2, 4
    elif variant != "standard":
        raise ValueError(f"Unknown deck variant: {variant!r}")
    if copies < 1:
        raise ValueError("Deck must contain at least one copy.")
    cards: List[Card] = []
    for copy in range(copies):
        cards.extend(build_standard_deck(copy))
    cards.extend(Card(Rank.JOKER, Suit.WILD, index) for index in range(jokers))
    return cards


def shuffle(deck: Sequence[Card], rng: Optional[Random] = None) -> List[Card]:
    """Return a uniformly shuffled copy of ``deck``."""
    cards = list(deck)
    (rng or Random()).shuffle(cards)
    return cards


def deal(deck: Sequence[Card], seats: int, count_per_seat: int) -> DealResult:
    """Deal round-robin from the top of ``deck``."""
    needed = seats * count_per_seat
    if needed > len(deck):
        raise ValueError(f"Cannot deal {count_per_seat} cards to {seats} seats from {len(deck)} cards.")
    hands: List[List[Card]] = [[] for _ in range(seats)]
    for index in range(needed):
        hands[index % seats].append(deck[index])
    return DealResult(hands=hands, remaining=list(deck[needed:]))


def seeded_rng(seed: Optional[int], salt: int) -> Random:
    """Deterministic generator for a given deal when a seed is configured."""
    if seed is None:
        return Random()
    return Random(seed * 1_000_003 + salt)
