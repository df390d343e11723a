from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from ..restaurants.models import Category


class ExcludedRestaurant(BaseModel):
    restaurant_id: str
    restaurant_name: str
    excluded_at: datetime
    reason: str | None = Field(default=None, max_length=100)


class PreferenceSettings(BaseModel):
    exclude_recent_visits: bool = False
    recent_visit_days: int = Field(default=7, ge=1, le=30)
    favorite_categories: list[Category] = Field(default_factory=list)


class UserPreference(BaseModel):
    user_id: str
    user_name: str
    excluded_restaurants: list[ExcludedRestaurant] = Field(default_factory=list)
    preferences: PreferenceSettings = Field(default_factory=PreferenceSettings)
    updated_at: datetime

    @property
    def excluded_ids(self) -> set[str]:
        return {e.restaurant_id for e in self.excluded_restaurants}


class PreferenceSettingsUpdate(BaseModel):
    exclude_recent_visits: bool | None = None
    recent_visit_days: int | None = Field(default=None, ge=1, le=30)
    favorite_categories: list[Category] | None = None


class PreferenceUpdateRequest(BaseModel):
    preferences: PreferenceSettingsUpdate


class ExcludeAction(str, Enum):
    exclude = "exclude"
    include = "include"


class ExcludeRequest(BaseModel):
    restaurant_id: str = Field(..., min_length=1)
    action: ExcludeAction
    reason: str | None = Field(default=None, max_length=100)
