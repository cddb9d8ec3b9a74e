import pytest

from bots import HeuristicBot, RandomBot
from bots.arena import DEFAULT_SEATS, main, play_rounds
from cardengine.registry import GAMES, get_game


@pytest.mark.parametrize("name", sorted(GAMES))
@pytest.mark.parametrize("bot_type", [HeuristicBot, RandomBot])
def test_bots_finish_rounds_of_every_game(name, bot_type):
    bots = [bot_type(seed=seat) for seat in range(DEFAULT_SEATS[name])]

    results = play_rounds(name, bots, rounds=2, seed=11)

    terminal = get_game(name).terminal_phase.value
    assert results["game"] == name
    assert results["history"]
    assert len(results["history"]) <= 2
    if not results["ended"]:
        assert len(results["history"]) == 2
        assert all(entry["phase"] == terminal for entry in results["history"])
    assert all(entry["moves"] > 0 for entry in results["history"])


def test_autoplay_is_deterministic_for_a_seed():
    def run():
        bots = [HeuristicBot() for _ in range(4)]
        return play_rounds("hearts", bots, rounds=2, seed=5)

    assert run() == run()


def test_cli_prints_a_summary(capsys):
    main(["cribbage", "--rounds", "1", "--seed", "3", "--log-level", "WARNING"])

    out = capsys.readouterr().out
    assert "cribbage: 1 rounds played" in out
    assert "round 1:" in out
