from __future__ import annotations

from datetime import datetime, timezone

from ..restaurants.models import Restaurant
from ..selection.models import RecencyWindow
from .models import (
    ExcludeAction,
    ExcludedRestaurant,
    PreferenceSettingsUpdate,
    UserPreference,
)

_preferences: dict[str, UserPreference] = {}


class AlreadyExcluded(Exception):
    pass


def get_preference(user: dict) -> UserPreference:
    """Return the user's preference, creating the default one on first read."""
    pref = _preferences.get(user["id"])
    if pref is None:
        pref = UserPreference(
            user_id=user["id"],
            user_name=user["name"],
            updated_at=datetime.now(timezone.utc),
        )
        _preferences[user["id"]] = pref
    return pref


def find_preference(user_id: str) -> UserPreference | None:
    return _preferences.get(user_id)


def update_settings(user: dict, changes: PreferenceSettingsUpdate) -> UserPreference:
    pref = get_preference(user)
    merged = pref.preferences.model_copy(update=changes.model_dump(exclude_none=True))
    pref = pref.model_copy(update={
        "preferences": merged,
        "updated_at": datetime.now(timezone.utc),
    })
    _preferences[user["id"]] = pref
    return pref


def set_exclusion(
    user: dict,
    restaurant: Restaurant,
    action: ExcludeAction,
    reason: str | None = None,
) -> UserPreference:
    pref = get_preference(user)
    excluded = list(pref.excluded_restaurants)

    if action == ExcludeAction.exclude:
        if restaurant.id in pref.excluded_ids:
            raise AlreadyExcluded(f"{restaurant.name} is already excluded")
        excluded.append(ExcludedRestaurant(
            restaurant_id=restaurant.id,
            restaurant_name=restaurant.name,
            excluded_at=datetime.now(timezone.utc),
            reason=reason or "user choice",
        ))
    else:
        excluded = [e for e in excluded if e.restaurant_id != restaurant.id]

    pref = pref.model_copy(update={
        "excluded_restaurants": excluded,
        "updated_at": datetime.now(timezone.utc),
    })
    _preferences[user["id"]] = pref
    return pref


def recency_window(
    pref: UserPreference | None,
    exclude_recent: bool = False,
    recent_days: int = 7,
) -> RecencyWindow:
    """Combine the stored preference with the per-request flags.

    A stored preference that turns the rule on wins over the request, and its
    day count wins over the request's.
    """
    if pref is None:
        return RecencyWindow(enabled=exclude_recent, days=recent_days)
    return RecencyWindow(
        enabled=pref.preferences.exclude_recent_visits or exclude_recent,
        days=pref.preferences.recent_visit_days or recent_days,
    )


def clear_preferences() -> None:
    _preferences.clear()
