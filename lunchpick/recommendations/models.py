from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from ..restaurants.models import Category, Restaurant
from ..reviews.models import Review


class RecommendationSort(str, Enum):
    rating = "rating"
    likes = "likes"
    reviews = "reviews"


class RecommendationRequest(BaseModel):
    category: Category | None = None
    sort_by: RecommendationSort = RecommendationSort.rating
    limit: int = Field(default=10, ge=1, le=50)


class CategoryStats(BaseModel):
    category: str
    count: int
    average_rating: float
    total_reviews: int
    total_likes: int


class OverallStats(BaseModel):
    total_restaurants: int = 0
    average_rating: float = 0.0
    total_reviews: int = 0
    total_likes: int = 0


class RecommendationResponse(BaseModel):
    recommendations: list[Restaurant]
    category_stats: list[CategoryStats]
    overall_stats: OverallStats
    popular_reviews: list[Review]
