from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime, timezone

import pandas as pd

from .config import DEFAULT_RESTAURANT_CONFIG, RestaurantConfig
from .models import Category, Restaurant, RestaurantCreate, RestaurantSort, RestaurantUpdate

logger = logging.getLogger(__name__)

SYSTEM_USER = "system"

# Optional fields a null in an update clears; a null anywhere else is ignored.
_CLEARABLE_FIELDS = {"description", "website_url"}

_restaurants: dict[str, Restaurant] | None = None


class RestaurantError(Exception):
    pass


class DuplicateRestaurant(RestaurantError):
    pass


class RestaurantLimitReached(RestaurantError):
    pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


def _load(config: RestaurantConfig = DEFAULT_RESTAURANT_CONFIG) -> dict[str, Restaurant]:
    if not config.seed_csv.is_file():
        logger.warning("Seed file %s not found, starting with no restaurants", config.seed_csv)
        return {}

    df = pd.read_csv(config.seed_csv)
    df["description"] = df["description"].fillna("")
    df["category"] = (
        df["category"]
        .fillna(Category.other.value)
        .str.strip()
        .str.lower()
        .where(lambda s: s.isin([c.value for c in Category]), Category.other.value)
    )

    store: dict[str, Restaurant] = {}
    now = _now()
    for _, row in df.iterrows():
        restaurant = Restaurant(
            id=_new_id(),
            name=str(row["name"]).strip(),
            distance=str(row["distance"]).strip(),
            category=Category(row["category"]),
            image=str(row["image"]).strip(),
            description=row["description"] or None,
            created_by=SYSTEM_USER,
            created_at=now,
            updated_at=now,
        )
        store[restaurant.id] = restaurant

    logger.info("Loaded %d seed restaurants from %s", len(store), config.seed_csv)
    return store


def _store() -> dict[str, Restaurant]:
    """Return the in-memory restaurant store, seeding it on first call."""
    global _restaurants
    if _restaurants is None:
        _restaurants = _load()
    return _restaurants


_DISTANCE_RE = re.compile(r"^\s*([\d.]+)\s*(km|m)?\s*$", re.IGNORECASE)


def _distance_meters(distance: str) -> float:
    match = _DISTANCE_RE.match(distance)
    if not match:
        return float("inf")
    value = float(match.group(1))
    if (match.group(2) or "m").lower() == "km":
        value *= 1000
    return value


def list_restaurants(
    category: Category | None = None,
    search: str | None = None,
    sort_by: RestaurantSort = RestaurantSort.name,
    include_inactive: bool = False,
) -> list[Restaurant]:
    items = [r for r in _store().values() if include_inactive or r.is_active]

    if category:
        items = [r for r in items if r.category == category]

    if search and search.strip():
        needle = search.strip().lower()
        items = [
            r for r in items
            if needle in r.name.lower()
            or needle in r.category.value
            or needle in (r.description or "").lower()
        ]

    if sort_by == RestaurantSort.distance:
        items.sort(key=lambda r: _distance_meters(r.distance))
    elif sort_by == RestaurantSort.newest:
        items.sort(key=lambda r: r.created_at, reverse=True)
    else:
        items.sort(key=lambda r: r.name.lower())
    return items


def find_restaurant(restaurant_id: str) -> Restaurant | None:
    return _store().get(restaurant_id)


def get_restaurant(restaurant_id: str) -> Restaurant | None:
    """Return the restaurant only while it is active."""
    restaurant = _store().get(restaurant_id)
    if restaurant is None or not restaurant.is_active:
        return None
    return restaurant


def _check_duplicate_name(name: str, exclude_id: str | None = None) -> None:
    for r in _store().values():
        if r.is_active and r.id != exclude_id and r.name == name:
            raise DuplicateRestaurant(f"A restaurant named {name!r} already exists")


def create_restaurant(
    body: RestaurantCreate,
    created_by: str,
    config: RestaurantConfig | None = None,
) -> Restaurant:
    config = config or DEFAULT_RESTAURANT_CONFIG
    name = body.name.strip()
    _check_duplicate_name(name)

    owned = sum(1 for r in _store().values() if r.is_active and r.created_by == created_by)
    if owned >= config.max_restaurants_per_user:
        raise RestaurantLimitReached(
            f"You can register at most {config.max_restaurants_per_user} restaurants"
        )

    now = _now()
    restaurant = Restaurant(
        id=_new_id(),
        name=name,
        distance=body.distance.strip(),
        category=body.category,
        image=body.image.strip(),
        description=body.description.strip() if body.description else None,
        website_url=body.website_url.strip() if body.website_url else None,
        created_by=created_by,
        created_at=now,
        updated_at=now,
    )
    _store()[restaurant.id] = restaurant
    return restaurant


def update_restaurant(restaurant_id: str, body: RestaurantUpdate) -> Restaurant | None:
    restaurant = get_restaurant(restaurant_id)
    if restaurant is None:
        return None

    changes = {
        key: value
        for key, value in body.model_dump(exclude_unset=True).items()
        if value is not None or key in _CLEARABLE_FIELDS
    }
    if changes.get("name"):
        changes["name"] = changes["name"].strip()
        _check_duplicate_name(changes["name"], exclude_id=restaurant_id)

    updated = restaurant.model_copy(update={**changes, "updated_at": _now()})
    _store()[restaurant_id] = updated
    return updated


def deactivate_restaurant(restaurant_id: str) -> Restaurant | None:
    restaurant = get_restaurant(restaurant_id)
    if restaurant is None:
        return None
    updated = restaurant.model_copy(update={"is_active": False, "updated_at": _now()})
    _store()[restaurant_id] = updated
    return updated


def save_restaurant(restaurant: Restaurant) -> None:
    _store()[restaurant.id] = restaurant


def reset_restaurants() -> None:
    """Drop every restaurant and reseed from the CSV on next access."""
    global _restaurants
    _restaurants = None


def clear_restaurants() -> None:
    global _restaurants
    _restaurants = {}
