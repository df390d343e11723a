from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class Category(str, Enum):
    korean = "korean"
    chinese = "chinese"
    japanese = "japanese"
    western = "western"
    snack = "snack"
    chicken = "chicken"
    cafe = "cafe"
    vietnamese = "vietnamese"
    other = "other"


class RestaurantSort(str, Enum):
    name = "name"
    distance = "distance"
    newest = "newest"


class Restaurant(BaseModel):
    id: str
    name: str
    distance: str
    category: Category
    image: str
    description: str | None = None
    website_url: str | None = None
    is_active: bool = True
    created_by: str
    average_rating: float = 0.0
    review_count: int = 0
    total_likes: int = 0
    created_at: datetime
    updated_at: datetime


class RestaurantCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    distance: str = Field(..., min_length=1)
    category: Category
    image: str = Field(..., min_length=1)
    description: str | None = Field(default=None, max_length=200)
    website_url: str | None = None


class RestaurantUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=50)
    distance: str | None = Field(default=None, min_length=1)
    category: Category | None = None
    image: str | None = Field(default=None, min_length=1)
    description: str | None = Field(default=None, max_length=200)
    website_url: str | None = None


class RestaurantListResponse(BaseModel):
    restaurants: list[Restaurant]
    count: int
