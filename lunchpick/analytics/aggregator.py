from __future__ import annotations

from collections import Counter
from typing import Any

from .feedback import get_feedback
from .models import FeedbackStatus
from .store import EventType


def _rate(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    draws = [e for e in events if e["type"] == EventType.draw.value]
    total = len(draws)

    # Pool sizes seen by the picker
    pools = [d["pool_size"] for d in draws if "pool_size" in d]
    avg_pool = round(sum(pools) / len(pools), 1) if pools else 0.0

    # Recency fallback: every eligible restaurant had been visited recently
    fallbacks = sum(1 for d in draws if d.get("fallback"))

    category_counter: Counter[str] = Counter()
    for d in draws:
        category_counter[d.get("category") or "all"] += 1
    top_categories = [{"name": n, "count": c} for n, c in category_counter.most_common(10)]

    picked_counter: Counter[str] = Counter()
    for d in draws:
        if d.get("restaurant_name"):
            picked_counter[d["restaurant_name"]] += 1
    top_restaurants = [{"name": n, "count": c} for n, c in picked_counter.most_common(10)]

    # Votes
    votes = [e for e in events if e["type"] == EventType.vote.value]
    retracted = sum(1 for v in votes if v.get("action") == "retracted")
    closed = [e for e in events if e["type"] == EventType.ballot_closed.value]
    auto_closed = sum(1 for c in closed if c.get("reason") == "deadline")

    # Tournaments
    tournaments = [e for e in events if e["type"] == EventType.tournament_completed.value]
    champion_counter: Counter[str] = Counter(
        t["winner_name"] for t in tournaments if t.get("winner_name")
    )

    feedback = get_feedback(limit=None)
    resolved = sum(1 for f in feedback if f.status == FeedbackStatus.completed)

    by_type: Counter[str] = Counter(e["type"] for e in events)

    return {
        "total_events": len(events),
        "events_by_type": dict(by_type),
        "total_draws": total,
        "avg_pool_size": avg_pool,
        "fallback": {
            "count": fallbacks,
            "rate": _rate(fallbacks, total),
        },
        "top_categories": top_categories,
        "top_restaurants": top_restaurants,
        "votes": {
            "cast": len(votes) - retracted,
            "retracted": retracted,
            "ballots_closed": len(closed),
            "auto_closed": auto_closed,
        },
        "tournaments": {
            "completed": len(tournaments),
            "top_champions": [
                {"name": n, "count": c} for n, c in champion_counter.most_common(5)
            ],
        },
        "feedback_summary": {
            "total": len(feedback),
            "completed": resolved,
            "resolution_rate": _rate(resolved, len(feedback)),
        },
    }
