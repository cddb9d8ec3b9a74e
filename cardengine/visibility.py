"""Helpers for building redacted, JSON-ready views of a round.

Every helper builds new containers; none of them holds on to or modifies
the lists of the state it reads.
"""

from __future__ import annotations

from typing import Any, Collection, Iterable, List, Optional, Sequence, Union

from .cards import Card, serialize_card
from .contract import RoundState
from .trick import Trick

HandView = Union[List[dict], int]


def card_list(cards: Iterable[Card]) -> List[dict]:
    return [serialize_card(card) for card in cards]


def hand_view(hand: Sequence[Card], visible: bool) -> HandView:
    return card_list(hand) if visible else len(hand)


def seat_hands(
    hands: Sequence[Sequence[Card]],
    viewer: Optional[int],
    revealed: Collection[int] = (),
) -> List[HandView]:
    """Own hand and ``revealed`` seats in full; every other hand as a count."""
    return [hand_view(hand, seat == viewer or seat in revealed) for seat, hand in enumerate(hands)]


def pile_summary(pile: Sequence[Card]) -> dict:
    return {"count": len(pile), "top": serialize_card(pile[-1]) if pile else None}


def trick_view(trick: Optional[Trick]) -> Optional[dict]:
    if trick is None:
        return None
    return {
        "leader": trick.leader,
        "plays": [{"seat": seat, "card": serialize_card(card)} for seat, card in trick.plays],
    }


def base_view(state: RoundState, game: str, viewer: Optional[int]) -> dict[str, Any]:
    return {
        "game": game,
        "viewer": viewer,
        "phase": state.phase.value,
        "current_turn": state.current_turn,
        "round_number": state.round_number,
        "players": [
            {"seat": seat, "name": player.name, "is_ai": player.is_ai, "chips": player.chips}
            for seat, player in enumerate(state.players)
        ],
    }
