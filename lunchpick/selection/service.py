"""
Orchestration around the pure selection core: loads the pool, applies the
user's exclusions, records the outcome and emits usage events.
"""

from __future__ import annotations

import logging
import random

from ..analytics.store import EventType, record_event
from ..preferences.store import find_preference, recency_window
from ..restaurants.data_store import find_restaurant, list_restaurants
from ..restaurants.models import Category, Restaurant
from .bracket import resolve_match, start_bracket
from .draw import pick_random
from .eligibility import filter_eligible
from .errors import InsufficientCandidates
from .history import record_selection, record_visit, recent_visit_ids
from .models import (
    Bracket,
    BracketState,
    DrawFilters,
    DrawRequest,
    DrawResponse,
    SelectionType,
    TournamentView,
    VisitType,
)

logger = logging.getLogger(__name__)


def draw_restaurant(user: dict, body: DrawRequest, rng: random.Random | None = None) -> DrawResponse:
    candidates = list_restaurants(category=body.category)
    pref = find_preference(user["id"])
    window = recency_window(pref, body.exclude_recent, body.recent_days)
    recent = recent_visit_ids(user["id"], window.days) if window.enabled else set()
    excluded = pref.excluded_ids if pref else set()

    eligible = filter_eligible(candidates, excluded, window, recent)
    fallback = bool(recent) and all(r.id in recent for r in eligible)
    restaurant = pick_random(eligible, rng)

    visit = record_visit(user, restaurant, VisitType.random)
    selection = record_selection(user, restaurant, SelectionType.random)
    record_event(EventType.draw, {
        "user_id": user["id"],
        "category": body.category.value if body.category else None,
        "pool_size": len(eligible),
        "candidates": len(candidates),
        "fallback": fallback,
        "restaurant_id": restaurant.id,
        "restaurant_name": restaurant.name,
    })
    if fallback:
        logger.info("Recency rule dropped for %s: every eligible restaurant was visited recently", user["name"])
    logger.info("Drew %s for %s from %d eligible", restaurant.name, user["name"], len(eligible))

    return DrawResponse(
        restaurant=restaurant,
        visit=visit,
        selection=selection,
        total_available=len(eligible),
        filters=DrawFilters(
            category=body.category.value if body.category else "all",
            exclude_recent=window.enabled,
            recent_days=window.days,
        ),
    )


def begin_tournament(category: Category | None = None, rng: random.Random | None = None) -> Bracket:
    return start_bracket(list_restaurants(category=category), rng)


def pick_winner(bracket: Bracket, winner_id: str, user: dict) -> Bracket:
    bracket = resolve_match(bracket, winner_id)
    if bracket.state == BracketState.completed:
        champion = find_restaurant(bracket.winner)
        if champion is not None:
            record_selection(user, champion, SelectionType.worldcup)
        record_event(EventType.tournament_completed, {
            "user_id": user["id"],
            "winner_id": bracket.winner,
            "winner_name": champion.name if champion else None,
            "comparisons": len(bracket.comparisons),
        })
        logger.info(
            "Tournament for %s finished after %d picks",
            user["name"], len(bracket.comparisons),
        )
    return bracket


def _resolve(restaurant_id: str) -> Restaurant:
    # Bracket entrants may have been soft-deleted mid-tournament; still show them.
    restaurant = find_restaurant(restaurant_id)
    if restaurant is None:
        raise InsufficientCandidates("A restaurant in this tournament no longer exists")
    return restaurant


def tournament_view(bracket: Bracket) -> TournamentView:
    pair = bracket.current_pair()
    return TournamentView(
        state=bracket.state,
        round=bracket.round_name,
        match_index=bracket.match_index,
        matches_in_round=len(bracket.current_round) // 2,
        pair=[_resolve(rid) for rid in pair] if pair else [],
        winner=_resolve(bracket.winner) if bracket.winner else None,
        history=bracket.history,
    )
