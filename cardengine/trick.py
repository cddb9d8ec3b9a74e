"""Trick representation, resolution and follow-suit legality."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Tuple

from .cards import Card, Rank, Suit, high_strength

Strength = Callable[[Card], int]
SuitOf = Callable[[Card], Suit]


class TrickError(RuntimeError):
    """Raised when trick play breaks ordering constraints."""


def natural_suit(card: Card) -> Suit:
    return card.suit


def beats(
    challenger: Card,
    current: Card,
    led: Suit,
    trump: Optional[Suit],
    *,
    strength: Strength = high_strength,
    suit_of: SuitOf = natural_suit,
) -> bool:
    """Whether ``challenger`` takes the trick from ``current``. Ties keep the earlier card."""
    challenger_suit = suit_of(challenger)
    current_suit = suit_of(current)
    if trump is not None:
        if challenger_suit is trump and current_suit is not trump:
            return True
        if current_suit is trump and challenger_suit is not trump:
            return False
        if challenger_suit is trump:
            return strength(challenger) > strength(current)
    if challenger_suit is not led:
        return False
    if current_suit is not led:
        return True
    return strength(challenger) > strength(current)


def bower_rules(trump: Suit) -> Tuple[SuitOf, Strength]:
    """Effective suit and strength for games where the jacks of trump colour rank highest."""
    partner = {
        Suit.CLUBS: Suit.SPADES,
        Suit.SPADES: Suit.CLUBS,
        Suit.HEARTS: Suit.DIAMONDS,
        Suit.DIAMONDS: Suit.HEARTS,
    }[trump]

    def suit_of(card: Card) -> Suit:
        if card.rank is Rank.JACK and card.suit is partner:
            return trump
        return card.suit

    def strength(card: Card) -> int:
        if card.rank is Rank.JACK and card.suit is trump:
            return 100
        if card.rank is Rank.JACK and card.suit is partner:
            return 99
        return high_strength(card)

    return suit_of, strength


@dataclass
class Trick:
    leader: int
    seats: int
    plays: List[Tuple[int, Card]] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.plays

    def is_full(self) -> bool:
        return len(self.plays) == self.seats

    def add_play(self, player: int, card: Card) -> None:
        if self.is_full():
            raise TrickError("Trick already complete.")
        if not self.plays and player != self.leader:
            raise TrickError("Only the leader can start the trick.")
        if any(seat == player for seat, _ in self.plays):
            raise TrickError(f"Seat {player} already played to this trick.")
        self.plays.append((player, card))

    def led_suit(self, suit_of: SuitOf = natural_suit) -> Optional[Suit]:
        return suit_of(self.plays[0][1]) if self.plays else None

    def cards(self) -> List[Card]:
        return [card for _, card in self.plays]

    def next_to_play(self) -> int:
        return (self.leader + len(self.plays)) % self.seats

    def winning_play(
        self,
        trump: Optional[Suit],
        *,
        strength: Strength = high_strength,
        suit_of: SuitOf = natural_suit,
    ) -> Tuple[int, Card]:
        if not self.plays:
            raise TrickError("Cannot determine winner on empty trick.")
        led = self.led_suit(suit_of)
        assert led is not None
        winning_player, winning_card = self.plays[0]
        for player, card in self.plays[1:]:
            if beats(card, winning_card, led, trump, strength=strength, suit_of=suit_of):
                winning_player, winning_card = player, card
        return winning_player, winning_card


def legal_follow(
    hand: Iterable[Card],
    led: Optional[Suit],
    *,
    trump: Optional[Suit] = None,
    must_trump: bool = False,
    suit_of: SuitOf = natural_suit,
) -> List[Card]:
    """Cards a seat may play to a trick whose led suit is ``led``."""
    cards = list(hand)
    if led is None:
        return cards
    following = [card for card in cards if suit_of(card) is led]
    if following:
        return following
    if must_trump and trump is not None:
        trumps = [card for card in cards if suit_of(card) is trump]
        if trumps:
            return trumps
    return cards
