from __future__ import annotations

import datetime as dt
from enum import Enum

from pydantic import BaseModel, Field, field_validator


def _as_calendar_date(value):
    """Accept a date, a datetime or an ISO string and keep only the day."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        return dt.datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    return value


def _as_aware(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value


class BallotKind(str, Enum):
    restaurant = "restaurant"
    date = "date"


class BallotStatus(str, Enum):
    active = "active"
    closed = "closed"


class VoteRecord(BaseModel):
    voter_id: str
    voter_name: str
    voted_at: dt.datetime


class OptionKey(BaseModel):
    """Identifies one option: a restaurant, or a (date, time slot) pair."""

    restaurant_id: str | None = None
    date: dt.date | None = None
    start_time: str | None = None
    end_time: str | None = None

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, value):
        return _as_calendar_date(value)


class BallotOption(BaseModel):
    restaurant_id: str | None = None
    restaurant_name: str | None = None
    restaurant_category: str | None = None
    restaurant_image: str | None = None
    date: dt.date | None = None
    start_time: str | None = None
    end_time: str | None = None
    votes: list[VoteRecord] = Field(default_factory=list)
    vote_count: int = 0

    def matches(self, key: OptionKey) -> bool:
        if self.restaurant_id is not None:
            return key.restaurant_id == self.restaurant_id
        return (
            key.date == self.date
            and key.start_time == self.start_time
            and key.end_time == self.end_time
        )

    def has_voter(self, voter_id: str) -> bool:
        return any(v.voter_id == voter_id for v in self.votes)


class BallotCreator(BaseModel):
    user_id: str
    user_name: str


class BallotWinner(BaseModel):
    restaurant_id: str | None = None
    restaurant_name: str | None = None
    date: dt.date | None = None
    start_time: str | None = None
    end_time: str | None = None
    vote_count: int


class Ballot(BaseModel):
    id: str
    kind: BallotKind
    title: str
    description: str = ""
    created_by: BallotCreator
    options: list[BallotOption]
    status: BallotStatus = BallotStatus.active
    allow_multiple: bool = False
    end_time: dt.datetime
    total_voters: int = 0
    date_totals: dict[str, int] = Field(default_factory=dict)
    winner: BallotWinner | None = None
    created_at: dt.datetime
    updated_at: dt.datetime


# ── Requests ─────────────────────────────────────────────────────────────


class _BallotRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=200)
    allow_multiple: bool = False
    end_time: dt.datetime

    @field_validator("end_time")
    @classmethod
    def aware_end_time(cls, value: dt.datetime) -> dt.datetime:
        return _as_aware(value)


class CreateBallotRequest(_BallotRequest):
    restaurant_ids: list[str] = Field(..., min_length=2)


class TimeSlotIn(BaseModel):
    start_time: str = Field(..., min_length=1)
    end_time: str = Field(..., min_length=1)


class DateCandidateIn(BaseModel):
    date: dt.date
    time_slots: list[TimeSlotIn] = Field(..., min_length=1)

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, value):
        return _as_calendar_date(value)


class CreateDateBallotRequest(_BallotRequest):
    dates: list[DateCandidateIn] = Field(..., min_length=2)


class RestaurantVoteRequest(BaseModel):
    restaurant_id: str = Field(..., min_length=1)


class DateVoteRequest(BaseModel):
    date: dt.date
    start_time: str = Field(..., min_length=1)
    end_time: str = Field(..., min_length=1)

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, value):
        return _as_calendar_date(value)
