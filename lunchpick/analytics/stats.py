from __future__ import annotations

from typing import Any

import pandas as pd

from ..restaurants.data_store import list_restaurants
from ..selection.history import get_selections, get_visits

_VISIT_COLUMNS = ["restaurant_id", "restaurant_name", "user_id", "visited_at"]


def _visits_frame(user_id: str | None = None) -> pd.DataFrame:
    visits = get_visits(user_id=user_id)
    if not visits:
        return pd.DataFrame(columns=[*_VISIT_COLUMNS, "category"])

    df = pd.DataFrame([v.model_dump(include=set(_VISIT_COLUMNS)) for v in visits])
    categories = pd.DataFrame(
        [{"restaurant_id": r.id, "category": r.category.value}
         for r in list_restaurants(include_inactive=True)],
        columns=["restaurant_id", "category"],
    )
    df = df.merge(categories, on="restaurant_id", how="left")
    df["category"] = df["category"].fillna("other")
    return df


def _top_visited(df: pd.DataFrame, limit: int) -> list[dict[str, Any]]:
    if df.empty:
        return []
    counts = (
        df.groupby(["restaurant_id", "restaurant_name"])
        .size()
        .reset_index(name="visit_count")
        .sort_values(["visit_count", "restaurant_name"], ascending=[False, True])
        .head(limit)
    )
    return [
        {"restaurant_id": row.restaurant_id, "name": row.restaurant_name, "visit_count": int(row.visit_count)}
        for row in counts.itertuples(index=False)
    ]


def _per_category(series: pd.Series) -> dict[str, int]:
    return {str(k): int(v) for k, v in series.value_counts().items()}


def compute_stats(user_id: str, user_count: int) -> dict[str, Any]:
    """Overview for the dashboard: global counts plus the caller's own history."""
    restaurants = list_restaurants()
    restaurant_categories = pd.Series([r.category.value for r in restaurants], dtype="object")

    all_visits = _visits_frame()
    my_visits = _visits_frame(user_id)
    selections = get_selections()

    return {
        "overview": {
            "total_restaurants": len(restaurants),
            "total_users": user_count,
            "total_visits": len(all_visits),
            "total_selections": len(selections),
        },
        "restaurants_by_category": _per_category(restaurant_categories),
        "popular_restaurants": _top_visited(all_visits, 10),
        "recent_selections": [
            s.model_dump(mode="json") for s in selections[:5]
        ],
        "my_stats": {
            "total_visits": len(my_visits),
            "visits_by_category": _per_category(my_visits["category"]),
            "top_restaurants": _top_visited(my_visits, 5),
        },
    }
