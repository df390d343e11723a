from __future__ import annotations

import uuid
from datetime import datetime, timezone

from ..restaurants.models import Restaurant
from .models import CalendarEntry, CalendarEntryCreate, CalendarEntryUpdate

_entries: dict[str, CalendarEntry] = {}


class DuplicateCalendarEntry(Exception):
    pass


def list_entries(user_id: str, year: int | None = None, month: int | None = None) -> list[CalendarEntry]:
    entries = [e for e in _entries.values() if e.user_id == user_id]
    if year and month:
        entries = [
            e for e in entries
            if e.visit_date.year == year and e.visit_date.month == month
        ]
    entries.sort(key=lambda e: e.visit_date, reverse=True)
    return entries


def add_entry(user: dict, restaurant: Restaurant, body: CalendarEntryCreate) -> CalendarEntry:
    for e in _entries.values():
        if (
            e.user_id == user["id"]
            and e.restaurant_id == restaurant.id
            and e.visit_date == body.visit_date
        ):
            raise DuplicateCalendarEntry(
                f"{restaurant.name} is already on your calendar for {body.visit_date.isoformat()}"
            )

    entry = CalendarEntry(
        id=uuid.uuid4().hex,
        user_id=user["id"],
        user_name=user["name"],
        restaurant_id=restaurant.id,
        restaurant_name=restaurant.name,
        restaurant_category=restaurant.category.value,
        restaurant_image=restaurant.image,
        visit_date=body.visit_date,
        visit_type=body.visit_type,
        memo=body.memo,
        rating=body.rating,
        created_at=datetime.now(timezone.utc),
    )
    _entries[entry.id] = entry
    return entry


def get_entry(entry_id: str) -> CalendarEntry | None:
    return _entries.get(entry_id)


def update_entry(entry: CalendarEntry, body: CalendarEntryUpdate) -> CalendarEntry:
    changes = body.model_dump(exclude_unset=True)
    if changes.get("memo", "") is None:
        changes["memo"] = ""
    updated = entry.model_copy(update=changes)
    _entries[entry.id] = updated
    return updated


def delete_entry(entry_id: str) -> None:
    _entries.pop(entry_id, None)


def clear_entries() -> None:
    _entries.clear()
