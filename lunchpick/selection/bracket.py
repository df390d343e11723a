from __future__ import annotations

import random
from collections.abc import Sequence

from ..restaurants.models import Restaurant
from .config import DEFAULT_SELECTION_CONFIG, SelectionConfig
from .errors import BracketCompleted, InsufficientCandidates, InvalidMatchWinner
from .models import Bracket, BracketState, MatchRecord

_rng = random.Random()


def round_name(size: int) -> str:
    """Name a round by the number of entrants paired in it."""
    if size <= 1:
        return "champion"
    if size == 2:
        return "final"
    if size <= 4:
        return "semifinal"
    if size <= 8:
        return "quarterfinal"
    if size <= 16:
        return "round of 16"
    if size <= 32:
        return "round of 32"
    return f"round of {size}"


def _begin_round(bracket: Bracket, entrants: list[str]) -> None:
    """Open a round over ``entrants``.

    The bye rule applies to every round, not only the first: whenever a
    round has an odd number of entrants, the last one advances unplayed and
    is logged as an ``auto_advanced`` match. A pool of 5 therefore gets two
    byes (5 -> 3 -> 2) and still needs exactly n - 1 picks.
    """
    next_round: list[str] = []
    if len(entrants) % 2 == 1:
        bye = entrants.pop()
        next_round.append(bye)
        bracket.history.append(MatchRecord(
            round=round_name(len(entrants)),
            match_index=len(entrants) // 2,
            winner=bye,
            auto_advanced=True,
        ))

    bracket.state = BracketState.round_in_progress
    bracket.current_round = entrants
    bracket.next_round = next_round
    bracket.match_index = 0
    bracket.round_name = round_name(len(entrants))


def start_bracket(
    candidates: Sequence[Restaurant],
    rng: random.Random | None = None,
    config: SelectionConfig = DEFAULT_SELECTION_CONFIG,
) -> Bracket:
    """Shuffle the pool and open the first round.

    ``random.Random.shuffle`` is a Fisher-Yates shuffle, so every seeding
    order is equally likely. Pools above the size cap are truncated after
    shuffling.
    """
    if len(candidates) < 2:
        raise InsufficientCandidates()

    entrants = [c.id for c in candidates]
    (rng or _rng).shuffle(entrants)
    entrants = entrants[: config.max_bracket_size]

    bracket = Bracket()
    _begin_round(bracket, entrants)
    return bracket


def resolve_match(bracket: Bracket, winner_id: str) -> Bracket:
    """Record the human pick for the current match and advance the bracket."""
    if bracket.state == BracketState.completed:
        raise BracketCompleted()
    if bracket.state == BracketState.not_started:
        raise InsufficientCandidates()

    bracket = bracket.model_copy(deep=True)
    first, second = bracket.current_pair()
    if winner_id not in (first, second):
        raise InvalidMatchWinner()
    loser = second if winner_id == first else first

    bracket.history.append(MatchRecord(
        round=bracket.round_name,
        match_index=bracket.match_index,
        winner=winner_id,
        loser=loser,
    ))
    bracket.next_round.append(winner_id)

    if bracket.match_index + 1 < len(bracket.current_round) // 2:
        bracket.match_index += 1
        return bracket

    new_round = bracket.next_round
    if len(new_round) == 1:
        bracket.state = BracketState.completed
        bracket.winner = new_round[0]
        bracket.current_round = []
        bracket.next_round = []
        bracket.match_index = 0
        bracket.round_name = round_name(1)
    else:
        _begin_round(bracket, new_round)
    return bracket
