import logging

from cardengine.games.hearts import HeartsGame
from cardengine.logging_config import log_game_event, setup_logging

PLAYERS = [{"seat": seat, "name": f"P{seat}"} for seat in range(4)]


def test_game_events_are_key_value_lines(caplog):
    caplog.set_level(logging.DEBUG, logger="game_events")

    log_game_event("bridge", "contract", level=4, strain="hearts")

    assert caplog.records[-1].name == "game_events"
    assert caplog.records[-1].getMessage() == "Game event: game=bridge event_type=contract level=4 strain=hearts"


def test_deal_emits_an_event(caplog):
    caplog.set_level(logging.DEBUG, logger="game_events")
    game = HeartsGame()

    game.deal_or_setup(game.init_state(PLAYERS, {"seed": 1}))

    messages = [record.getMessage() for record in caplog.records if record.name == "game_events"]
    assert any(message.startswith("Game event: game=hearts event_type=round_dealt") for message in messages)


def test_events_are_skipped_above_debug(caplog):
    caplog.set_level(logging.INFO, logger="game_events")

    log_game_event("hearts", "trick_won", seat=1)

    assert not [record for record in caplog.records if record.name == "game_events"]


def test_setup_logging_reads_the_environment(monkeypatch):
    monkeypatch.setenv("CARDENGINE_LOG_LEVEL", "warning")
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", logging.NOTSET)

    setup_logging()

    assert root.level == logging.WARNING
