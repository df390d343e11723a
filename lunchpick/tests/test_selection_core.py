from __future__ import annotations

import random
from collections import Counter
from datetime import datetime, timezone

import pytest

from lunchpick.restaurants.models import Category, Restaurant
from lunchpick.selection.bracket import resolve_match, round_name, start_bracket
from lunchpick.selection.config import SelectionConfig
from lunchpick.selection.draw import pick_random
from lunchpick.selection.eligibility import filter_eligible
from lunchpick.selection.errors import (
    BracketCompleted,
    InsufficientCandidates,
    InvalidMatchWinner,
    NoEligibleCandidates,
)
from lunchpick.selection.models import BracketState, RecencyWindow

_NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def _restaurant(rid: str, category: Category = Category.korean) -> Restaurant:
    return Restaurant(
        id=rid,
        name=f"Restaurant {rid}",
        distance="100m",
        category=category,
        image="🍚",
        created_by="system",
        created_at=_NOW,
        updated_at=_NOW,
    )


def _pool(n: int) -> list[Restaurant]:
    return [_restaurant(str(i)) for i in range(n)]


def _ids(restaurants) -> list[str]:
    return [r.id for r in restaurants]


def _run_to_end(bracket, pick_first: bool = True):
    while bracket.state == BracketState.round_in_progress:
        first, second = bracket.current_pair()
        bracket = resolve_match(bracket, first if pick_first else second)
    return bracket


# ── Eligibility filter ───────────────────────────────────────────────────


def test_exclusions_are_removed():
    pool = filter_eligible(_pool(3), {"1"}, RecencyWindow(), set())
    assert _ids(pool) == ["0", "2"]


def test_recent_visits_removed_when_window_enabled():
    pool = filter_eligible(_pool(4), set(), RecencyWindow(enabled=True, days=7), {"0", "1"})
    assert _ids(pool) == ["2", "3"]


def test_recent_visits_ignored_when_window_disabled():
    pool = filter_eligible(_pool(3), set(), RecencyWindow(enabled=False), {"0", "1"})
    assert _ids(pool) == ["0", "1", "2"]


def test_recency_rule_falls_back_when_everything_was_visited():
    pool = filter_eligible(_pool(3), {"2"}, RecencyWindow(enabled=True), {"0", "1"})
    # Exclusions still apply; only the recency rule is dropped.
    assert _ids(pool) == ["0", "1"]


def test_everything_excluded_raises():
    with pytest.raises(NoEligibleCandidates):
        filter_eligible(_pool(2), {"0", "1"}, RecencyWindow(), set())


def test_empty_candidates_raises():
    with pytest.raises(NoEligibleCandidates):
        filter_eligible([], set(), RecencyWindow(enabled=True), {"0"})


def test_filter_keeps_candidate_order():
    candidates = [_restaurant("c"), _restaurant("a"), _restaurant("b")]
    pool = filter_eligible(candidates, {"a"}, RecencyWindow(), set())
    assert _ids(pool) == ["c", "b"]


def test_recency_window_bounds():
    with pytest.raises(ValueError):
        RecencyWindow(enabled=True, days=0)
    with pytest.raises(ValueError):
        RecencyWindow(enabled=True, days=31)


# ── Random pick ──────────────────────────────────────────────────────────


def test_pick_random_returns_member_of_pool():
    pool = _pool(5)
    assert pick_random(pool, random.Random(1)) in pool


def test_pick_random_single_entry():
    pool = _pool(1)
    assert pick_random(pool) is pool[0]


def test_pick_random_empty_pool_raises():
    with pytest.raises(ValueError):
        pick_random([])


def test_pick_random_is_roughly_uniform():
    rng = random.Random(42)
    pool = ["a", "b", "c"]
    counts = Counter(pick_random(pool, rng) for _ in range(6000))
    assert set(counts) == set(pool)
    for n in counts.values():
        assert 1700 < n < 2300


class _EdgeRandom(random.Random):
    def random(self):
        return 0.9999999


def test_pick_random_top_of_range_stays_in_bounds():
    assert pick_random(["a", "b", "c"], _EdgeRandom()) == "c"


# ── Bracket ──────────────────────────────────────────────────────────────


def test_round_names():
    assert round_name(2) == "final"
    assert round_name(4) == "semifinal"
    assert round_name(8) == "quarterfinal"
    assert round_name(16) == "round of 16"
    assert round_name(32) == "round of 32"
    assert round_name(1) == "champion"


def test_start_bracket_needs_two_candidates():
    with pytest.raises(InsufficientCandidates):
        start_bracket(_pool(1))
    with pytest.raises(InsufficientCandidates):
        start_bracket([])


def test_start_bracket_even_pool_has_no_bye():
    bracket = start_bracket(_pool(8), random.Random(3))
    assert bracket.state == BracketState.round_in_progress
    assert sorted(bracket.current_round) == sorted(_ids(_pool(8)))
    assert bracket.next_round == []
    assert bracket.round_name == "quarterfinal"
    assert bracket.history == []


def test_start_bracket_odd_pool_gives_one_bye():
    bracket = start_bracket(_pool(5), random.Random(3))
    assert len(bracket.current_round) == 4
    assert len(bracket.next_round) == 1
    bye = bracket.history[0]
    assert bye.auto_advanced
    assert bye.loser is None
    assert bye.winner == bracket.next_round[0]
    assert bracket.round_name == "semifinal"


def test_start_bracket_is_deterministic_for_a_seed():
    a = start_bracket(_pool(10), random.Random(7))
    b = start_bracket(_pool(10), random.Random(7))
    assert a.current_round == b.current_round


def test_start_bracket_caps_pool_size():
    bracket = start_bracket(_pool(40), random.Random(1))
    assert len(bracket.current_round) == 32
    assert bracket.round_name == "round of 32"


def test_start_bracket_respects_configured_cap():
    bracket = start_bracket(_pool(10), random.Random(1), SelectionConfig(max_bracket_size=4))
    assert len(bracket.current_round) == 4


def test_eight_entrants_play_seven_matches():
    bracket = _run_to_end(start_bracket(_pool(8), random.Random(5)))
    assert bracket.state == BracketState.completed
    assert len(bracket.comparisons) == 7
    assert [m.round for m in bracket.history] == (
        ["quarterfinal"] * 4 + ["semifinal"] * 2 + ["final"]
    )
    assert bracket.round_name == "champion"


def test_five_entrants_play_four_matches_with_two_byes():
    bracket = _run_to_end(start_bracket(_pool(5), random.Random(9)))
    assert bracket.state == BracketState.completed
    assert len(bracket.comparisons) == 4
    assert sum(1 for m in bracket.history if m.auto_advanced) == 2
    assert bracket.winner in _ids(_pool(5))


@pytest.mark.parametrize("n", [2, 3, 6, 7, 13, 32])
def test_every_pool_size_needs_n_minus_one_picks(n):
    bracket = _run_to_end(start_bracket(_pool(n), random.Random(n)), pick_first=False)
    assert len(bracket.comparisons) == n - 1


def test_each_entrant_loses_at_most_once():
    bracket = _run_to_end(start_bracket(_pool(9), random.Random(2)))
    losers = [m.loser for m in bracket.comparisons]
    assert len(losers) == len(set(losers))
    assert bracket.winner not in losers


def test_resolve_match_leaves_input_untouched():
    bracket = start_bracket(_pool(4), random.Random(1))
    first, _ = bracket.current_pair()
    resolve_match(bracket, first)
    assert bracket.match_index == 0
    assert bracket.next_round == []


def test_resolve_match_rejects_outsider():
    bracket = start_bracket(_pool(4), random.Random(1))
    with pytest.raises(InvalidMatchWinner):
        resolve_match(bracket, "not-in-pair")


def test_resolve_match_after_completion_raises():
    bracket = _run_to_end(start_bracket(_pool(2), random.Random(1)))
    with pytest.raises(BracketCompleted):
        resolve_match(bracket, bracket.winner)


def test_two_entrants_single_final():
    bracket = start_bracket(_pool(2), random.Random(1))
    assert bracket.round_name == "final"
    first, _ = bracket.current_pair()
    bracket = resolve_match(bracket, first)
    assert bracket.state == BracketState.completed
    assert bracket.winner == first
    assert bracket.current_pair() is None
