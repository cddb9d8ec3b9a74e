"""Threshold checks shared by the end-condition hooks."""

from __future__ import annotations

from typing import List, Sequence

from .contract import EndResult, NOT_ENDED


def seats_with(totals: Sequence[int], value: int) -> List[int]:
    return [seat for seat, total in enumerate(totals) if total == value]


def first_to_reach(totals: Sequence[int], threshold: int, reason: str = "win_score") -> EndResult:
    """Ends once any total reaches ``threshold``; the highest totals win."""
    if not any(total >= threshold for total in totals):
        return NOT_ENDED
    return EndResult(ended=True, reason=reason, winners=tuple(seats_with(totals, max(totals))))


def lowest_when_any_reaches(totals: Sequence[int], threshold: int, reason: str = "score_limit") -> EndResult:
    """Ends once any total reaches ``threshold``; the lowest totals win."""
    if not any(total >= threshold for total in totals):
        return NOT_ENDED
    return EndResult(ended=True, reason=reason, winners=tuple(seats_with(totals, min(totals))))


def expand_teams(result: EndResult, team_of: Sequence[int]) -> EndResult:
    """Map winning team indices onto the seats that belong to them."""
    if not result.ended:
        return result
    seats = [seat for seat, team in enumerate(team_of) if team in result.winners]
    return EndResult(ended=True, reason=result.reason, winners=tuple(seats))
