from __future__ import annotations

import datetime as dt
from enum import Enum

from pydantic import BaseModel, Field


class CalendarVisitType(str, Enum):
    random = "random"
    manual = "manual"
    slot_machine = "slot_machine"
    worldcup = "worldcup"


class CalendarEntry(BaseModel):
    id: str
    user_id: str
    user_name: str
    restaurant_id: str
    restaurant_name: str
    restaurant_category: str
    restaurant_image: str
    visit_date: dt.date
    visit_type: CalendarVisitType = CalendarVisitType.manual
    memo: str = ""
    rating: int | None = Field(default=None, ge=1, le=5)
    created_at: dt.datetime


class CalendarEntryCreate(BaseModel):
    restaurant_id: str = Field(..., min_length=1)
    visit_date: dt.date
    visit_type: CalendarVisitType = CalendarVisitType.manual
    memo: str = Field(default="", max_length=200)
    rating: int | None = Field(default=None, ge=1, le=5)


class CalendarEntryUpdate(BaseModel):
    memo: str | None = Field(default=None, max_length=200)
    rating: int | None = Field(default=None, ge=1, le=5)
