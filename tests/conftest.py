from typing import List, Sequence

import pytest

from cardengine.cards import Card, Rank, Suit


def make_card(text: str) -> Card:
    """``"10_hearts"`` or ``"10_hearts_1"`` -> Card."""
    parts = text.split("_")
    copy = int(parts[2]) if len(parts) == 3 else 0
    return Card(Rank(parts[0]), Suit(parts[1]), copy)


def stack(hands: Sequence[Sequence[str]], fresh: Sequence[Card], top: Sequence[str] = ()) -> List[Card]:
    """Deck that deals ``hands`` round-robin, then ``top`` in order, then the rest of ``fresh``."""
    chosen = [[make_card(text) for text in hand] for hand in hands]
    following = [make_card(text) for text in top]
    order = [chosen[seat][index] for index in range(len(chosen[0])) for seat in range(len(chosen))]
    order.extend(following)
    used = {card.id for card in order}
    order.extend(card for card in fresh if card.id not in used)
    return order


@pytest.fixture
def card():
    return make_card


@pytest.fixture
def stacked_deck():
    return stack
