from __future__ import annotations

import pandas as pd

from ..restaurants.data_store import get_restaurant
from ..reviews.store import popular_reviews
from .data_store import get_rated_dataframe
from .models import (
    CategoryStats,
    OverallStats,
    RecommendationRequest,
    RecommendationResponse,
    RecommendationSort,
)

# Primary key first, the remaining two break ties.
_SORT_KEYS = {
    RecommendationSort.rating: ["average_rating", "review_count", "total_likes"],
    RecommendationSort.likes: ["total_likes", "average_rating", "review_count"],
    RecommendationSort.reviews: ["review_count", "average_rating", "total_likes"],
}


def _category_stats(df: pd.DataFrame) -> list[CategoryStats]:
    if df.empty:
        return []
    grouped = (
        df.groupby("category")
        .agg(
            restaurant_count=("id", "size"),
            average_rating=("average_rating", "mean"),
            total_reviews=("review_count", "sum"),
            total_likes=("total_likes", "sum"),
        )
        .reset_index()
        .sort_values("average_rating", ascending=False)
    )
    return [
        CategoryStats(
            category=row.category,
            count=int(row.restaurant_count),
            average_rating=round(float(row.average_rating), 1),
            total_reviews=int(row.total_reviews),
            total_likes=int(row.total_likes),
        )
        for row in grouped.itertuples(index=False)
    ]


def _overall_stats(df: pd.DataFrame) -> OverallStats:
    if df.empty:
        return OverallStats()
    return OverallStats(
        total_restaurants=len(df),
        average_rating=round(float(df["average_rating"].mean()), 1),
        total_reviews=int(df["review_count"].sum()),
        total_likes=int(df["total_likes"].sum()),
    )


def get_recommendations(request: RecommendationRequest) -> RecommendationResponse:
    df = get_rated_dataframe(request.category)

    top = df.sort_values(
        _SORT_KEYS[request.sort_by], ascending=False, kind="mergesort"
    ).head(request.limit)

    recommendations = [
        restaurant
        for restaurant in (get_restaurant(rid) for rid in top["id"])
        if restaurant is not None
    ]

    return RecommendationResponse(
        recommendations=recommendations,
        category_stats=_category_stats(df),
        overall_stats=_overall_stats(df),
        popular_reviews=popular_reviews(limit=5),
    )
