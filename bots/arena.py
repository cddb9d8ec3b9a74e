"""Simple bot arena: autoplay rounds of any registered game."""

from __future__ import annotations

import argparse
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from cardengine.contract import CardGame, RoundState
from cardengine.logging_config import setup_logging
from cardengine.registry import GAMES, get_game

from .base import BotStrategy
from .heuristic import HeuristicBot
from .random_bot import RandomBot

BOT_REGISTRY: Dict[str, type[BotStrategy]] = {
    "random": RandomBot,
    "heuristic": HeuristicBot,
}

# Seat counts used when the caller does not pick one.
DEFAULT_SEATS = {
    "blackjack": 3,
    "bridge": 4,
    "canasta": 4,
    "cribbage": 2,
    "hearts": 4,
    "pinochle": 4,
}

MAX_MOVES_PER_ROUND = 5000


def _card_ids(game: CardGame, state: RoundState) -> List[str]:
    return sorted(card.id for card in game.all_cards(state))


def _next_actor(game: CardGame, state: RoundState) -> Optional[int]:
    for seat in range(state.seat_count):
        if game.get_valid_moves(state, seat):
            return seat
    return None


def play_round(game: CardGame, state: RoundState, bots: Sequence[BotStrategy]) -> tuple[RoundState, int]:
    """Play until no seat has a move. Raises ``RuntimeError`` if a move loses or creates cards."""
    expected = _card_ids(game, state)
    for seat, bot in enumerate(bots):
        bot.on_round_start(game, state, seat)
    moves = 0
    while moves < MAX_MOVES_PER_ROUND:
        seat = _next_actor(game, state)
        if seat is None:
            return state, moves
        move = bots[seat].choose_move(game, state, seat)
        state = game.advance_turn(game.attempt_move(state, seat, move))
        moves += 1
        if _card_ids(game, state) != expected:
            raise RuntimeError(f"{game.name} card conservation broken after {move.describe()}.")
        if game.check_end_condition(state).ended:
            return state, moves
    raise RuntimeError(f"{game.name} round did not finish within {MAX_MOVES_PER_ROUND} moves.")


def play_rounds(
    game_name: str,
    bots: Sequence[BotStrategy],
    *,
    rounds: int = 1,
    seed: Optional[int] = None,
    settings: Optional[Mapping[str, Any]] = None,
) -> dict:
    game = get_game(game_name)
    players = [{"seat": seat, "name": f"{bot.name} {seat}", "is_ai": True} for seat, bot in enumerate(bots)]
    merged = dict(settings or {})
    if seed is not None:
        merged.setdefault("seed", seed)
    state = game.init_state(players, merged)
    history = []
    result = game.check_end_condition(state)
    for _ in range(rounds):
        state = game.deal_or_setup(state)
        state, moves = play_round(game, state, bots)
        result = game.check_end_condition(state)
        history.append({"round": state.round_number, "phase": state.phase.value, "moves": moves})
        if result.ended:
            break
    return {
        "game": game.name,
        "history": history,
        "ended": result.ended,
        "reason": result.reason,
        "winners": list(result.winners),
        "final": game.get_public_state(state, None),
    }


def main(argv: Iterable[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Autoplay rounds of a card game with bots.")
    parser.add_argument("game", choices=sorted(GAMES))
    parser.add_argument("--bot", default="heuristic", choices=BOT_REGISTRY.keys())
    parser.add_argument("--seats", type=int, default=None)
    parser.add_argument("--rounds", type=int, default=5, help="Number of rounds to play.")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--log-level", default=None)
    args = parser.parse_args(list(argv) if argv is not None else None)

    setup_logging(args.log_level)
    seats = args.seats or DEFAULT_SEATS[args.game]
    bots = [BOT_REGISTRY[args.bot]() for _ in range(seats)]
    results = play_rounds(args.game, bots, rounds=args.rounds, seed=args.seed)

    print(f"{results['game']}: {len(results['history'])} rounds played")
    for entry in results["history"]:
        print(f"  round {entry['round']}: {entry['moves']} moves, ended in {entry['phase']}")
    if results["ended"]:
        print(f"Session ended ({results['reason']}); winners: {results['winners']}")


if __name__ == "__main__":
    main()
