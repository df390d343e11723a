from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ReviewSort(str, Enum):
    newest = "newest"
    likes = "likes"
    rating = "rating"


class ReviewLike(BaseModel):
    user_id: str
    user_name: str
    liked_at: datetime


class Review(BaseModel):
    id: str
    user_id: str
    user_name: str
    restaurant_id: str
    restaurant_name: str
    rating: int = Field(..., ge=1, le=5)
    content: str
    likes: list[ReviewLike] = Field(default_factory=list)
    like_count: int = 0
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class ReviewRequest(BaseModel):
    restaurant_id: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5)
    content: str = Field(..., min_length=1, max_length=500)


class ReviewListResponse(BaseModel):
    reviews: list[Review]
    count: int


class LikeResponse(BaseModel):
    review_id: str
    like_count: int
    action: str
    is_liked: bool
