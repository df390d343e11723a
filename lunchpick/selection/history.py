from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

from ..restaurants.models import Restaurant
from .models import Selection, SelectionType, Visit, VisitType

_visits: list[Visit] = []
_selections: list[Selection] = []


def record_visit(
    user: dict,
    restaurant: Restaurant,
    visit_type: VisitType = VisitType.random,
) -> Visit:
    visit = Visit(
        id=uuid.uuid4().hex,
        user_id=user["id"],
        user_name=user["name"],
        restaurant_id=restaurant.id,
        restaurant_name=restaurant.name,
        visit_type=visit_type,
        visited_at=datetime.now(timezone.utc),
    )
    _visits.append(visit)
    return visit


def record_selection(
    user: dict,
    restaurant: Restaurant,
    selection_type: SelectionType = SelectionType.random,
) -> Selection:
    selection = Selection(
        id=uuid.uuid4().hex,
        user_id=user["id"],
        user_name=user["name"],
        restaurant_id=restaurant.id,
        restaurant_name=restaurant.name,
        restaurant_image=restaurant.image,
        selection_type=selection_type,
        selected_at=datetime.now(timezone.utc),
    )
    _selections.append(selection)
    return selection


def get_visits(user_id: str | None = None, limit: int | None = None) -> list[Visit]:
    """Visits newest first, optionally for one user."""
    visits = [v for v in reversed(_visits) if user_id is None or v.user_id == user_id]
    return visits[:limit] if limit else visits


def recent_visit_ids(user_id: str, days: int, now: datetime | None = None) -> set[str]:
    since = (now or datetime.now(timezone.utc)) - timedelta(days=days)
    return {v.restaurant_id for v in _visits if v.user_id == user_id and v.visited_at >= since}


def delete_visits(user_id: str) -> int:
    before = len(_visits)
    _visits[:] = [v for v in _visits if v.user_id != user_id]
    return before - len(_visits)


def get_selections(limit: int | None = None) -> list[Selection]:
    selections = list(reversed(_selections))
    return selections[:limit] if limit else selections


def clear_history() -> None:
    _visits.clear()
    _selections.clear()
