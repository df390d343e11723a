from __future__ import annotations

import pandas as pd

from ..restaurants.data_store import list_restaurants
from ..restaurants.models import Category

_COLUMNS = ["id", "name", "category", "average_rating", "review_count", "total_likes", "created_at"]


def get_dataframe(category: Category | None = None) -> pd.DataFrame:
    """Active restaurants as a frame, one row per restaurant."""
    rows = [
        {**r.model_dump(include=set(_COLUMNS)), "category": r.category.value}
        for r in list_restaurants(category=category)
    ]
    return pd.DataFrame(rows, columns=_COLUMNS)


def get_rated_dataframe(category: Category | None = None) -> pd.DataFrame:
    """Only restaurants somebody has reviewed or liked."""
    df = get_dataframe(category)
    mask = (df["average_rating"] > 0) | (df["review_count"] > 0) | (df["total_likes"] > 0)
    return df.loc[mask]
