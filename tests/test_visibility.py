import json

import pytest

from bots.arena import DEFAULT_SEATS
from cardengine.records import record_json
from cardengine.registry import GAMES, get_game


def dealt(name, seed=17):
    game = get_game(name)
    players = [{"seat": seat, "name": f"P{seat}"} for seat in range(DEFAULT_SEATS[name])]
    return game, game.deal_or_setup(game.init_state(players, {"seed": seed}))


@pytest.mark.parametrize("name", sorted(GAMES))
def test_views_are_pure_and_json_ready(name):
    game, state = dealt(name)
    before = record_json(state)

    first = game.get_public_state(state, 0)
    second = game.get_public_state(state, 0)

    assert first == second
    assert record_json(state) == before
    json.dumps(first)
    json.dumps(game.get_public_state(state, None))
    assert first["game"] == name
    assert first["viewer"] == 0


@pytest.mark.parametrize("name", ["bridge", "canasta", "cribbage", "hearts", "pinochle"])
def test_hidden_hands_show_only_counts(name):
    game, state = dealt(name)

    own = game.get_public_state(state, 0)
    spectator = game.get_public_state(state, None)

    assert own["hands"][0] == [
        {"id": card.id, "rank": card.rank.value, "suit": card.suit.value} for card in state.hands[0]
    ]
    assert all(isinstance(hand, int) for hand in own["hands"][1:])
    assert spectator["hands"] == [len(hand) for hand in state.hands]


def test_deal_is_reproducible_from_the_seed():
    for name in GAMES:
        first = dealt(name, seed=4)[1]
        second = dealt(name, seed=4)[1]
        assert record_json(first) == record_json(second)
