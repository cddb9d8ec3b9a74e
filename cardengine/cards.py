"""Card-related data structures and helpers shared by every game."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Mapping, Optional, Sequence


class Suit(Enum):
    CLUBS = "clubs"
    DIAMONDS = "diamonds"
    HEARTS = "hearts"
    SPADES = "spades"
    WILD = "wild"

    def __str__(self) -> str:
        return self.value

    @property
    def is_red(self) -> bool:
        return self in (Suit.HEARTS, Suit.DIAMONDS)


class Rank(Enum):
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"
    ACE = "A"
    JOKER = "joker"

    def __str__(self) -> str:
        return self.value


STANDARD_SUITS: tuple[Suit, ...] = (Suit.CLUBS, Suit.DIAMONDS, Suit.HEARTS, Suit.SPADES)

STANDARD_RANKS: tuple[Rank, ...] = (
    Rank.TWO,
    Rank.THREE,
    Rank.FOUR,
    Rank.FIVE,
    Rank.SIX,
    Rank.SEVEN,
    Rank.EIGHT,
    Rank.NINE,
    Rank.TEN,
    Rank.JACK,
    Rank.QUEEN,
    Rank.KING,
    Rank.ACE,
)

# Ace-high strength used by Bridge and Hearts.
HIGH_RANK_STRENGTH: dict[Rank, int] = {rank: index + 2 for index, rank in enumerate(STANDARD_RANKS)}

# Ace-low ordinal used for runs in Cribbage.
LOW_RANK_ORDINAL: dict[Rank, int] = {Rank.ACE: 1, **{rank: index + 2 for index, rank in enumerate(STANDARD_RANKS[:-1])}}

FACE_RANKS = frozenset({Rank.JACK, Rank.QUEEN, Rank.KING})
TEN_VALUE_RANKS = frozenset({Rank.TEN, Rank.JACK, Rank.QUEEN, Rank.KING})

# Bridge/Hearts display order: spades, hearts, diamonds, clubs.
DISPLAY_SUIT_ORDER: dict[Suit, int] = {
    Suit.SPADES: 0,
    Suit.HEARTS: 1,
    Suit.DIAMONDS: 2,
    Suit.CLUBS: 3,
    Suit.WILD: 4,
}


@dataclass(frozen=True)
class Card:
    """Immutable playing card. ``copy`` tells apart identical cards of a multi-deck."""

    rank: Rank
    suit: Suit
    copy: int = 0

    @property
    def id(self) -> str:
        return f"{self.rank.value}_{self.suit.value}_{self.copy}"

    def __str__(self) -> str:
        return self.id

    def is_joker(self) -> bool:
        return self.rank is Rank.JOKER


def pip_value(card: Card) -> int:
    """Face value with A=1 and J/Q/K=10 (Cribbage counting)."""
    if card.rank is Rank.ACE:
        return 1
    if card.rank in TEN_VALUE_RANKS:
        return 10
    if card.rank is Rank.JOKER:
        return 0
    return int(card.rank.value)


def high_strength(card: Card) -> int:
    return HIGH_RANK_STRENGTH.get(card.rank, 0)


def find_card(hand: Iterable[Card], card_id: str) -> Optional[Card]:
    for card in hand:
        if card.id == card_id:
            return card
    return None


def has_suit(hand: Iterable[Card], suit: Suit) -> bool:
    return any(card.suit is suit for card in hand)


def count_matching(hand: Iterable[Card], rank: Rank, suit: Suit) -> int:
    return sum(1 for card in hand if card.rank is rank and card.suit is suit)


def remove_cards(hand: Sequence[Card], card_ids: Iterable[str]) -> tuple[List[Card], List[Card]]:
    """Split ``hand`` into (kept, removed) by card id, preserving order."""
    wanted = set(card_ids)
    kept = [card for card in hand if card.id not in wanted]
    removed = [card for card in hand if card.id in wanted]
    return kept, removed


def sort_hand(
    hand: Iterable[Card],
    *,
    strength: Callable[[Card], int] = high_strength,
    suit_order: Mapping[Suit, int] = DISPLAY_SUIT_ORDER,
) -> List[Card]:
    """Group by suit, strongest first within each suit."""
    return sorted(hand, key=lambda card: (suit_order[card.suit], -strength(card), card.copy))


def serialize_card(card: Card) -> dict[str, object]:
    return {"id": card.id, "rank": card.rank.value, "suit": card.suit.value}


def deserialize_card(payload: Mapping[str, object]) -> Card:
    if "id" in payload:
        return parse_card_id(str(payload["id"]))
    return Card(Rank(payload["rank"]), Suit(payload["suit"]), int(payload.get("copy", 0)))


def parse_card_id(card_id: str) -> Card:
    """Rebuild a card from its id, e.g. ``"10_hearts_1"``."""
    try:
        rank_text, suit_text, copy_text = card_id.split("_")
        return Card(Rank(rank_text), Suit(suit_text), int(copy_text))
    except ValueError as exc:
        raise ValueError(f"Malformed card id: {card_id!r}") from exc


def card_label(card: Card) -> str:
    if card.is_joker():
        return "Joker"
    names = {Rank.JACK: "Jack", Rank.QUEEN: "Queen", Rank.KING: "King", Rank.ACE: "Ace"}
    return f"{names.get(card.rank, card.rank.value)} of {card.suit.value.title()}"
