from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from ..restaurants.models import Category, Restaurant


class RecencyWindow(BaseModel):
    enabled: bool = False
    days: int = Field(default=7, ge=1, le=30)


class VisitType(str, Enum):
    random = "random"
    manual = "manual"


class SelectionType(str, Enum):
    random = "random"
    manual = "manual"
    worldcup = "worldcup"


class Visit(BaseModel):
    id: str
    user_id: str
    user_name: str
    restaurant_id: str
    restaurant_name: str
    visit_type: VisitType = VisitType.random
    visited_at: datetime


class Selection(BaseModel):
    id: str
    user_id: str
    user_name: str
    restaurant_id: str
    restaurant_name: str
    restaurant_image: str
    selection_type: SelectionType = SelectionType.random
    selected_at: datetime


class VisitRequest(BaseModel):
    restaurant_id: str = Field(..., min_length=1)
    visit_type: VisitType = VisitType.manual


class SelectionRequest(BaseModel):
    restaurant_id: str = Field(..., min_length=1)
    selection_type: SelectionType = SelectionType.manual


class DrawRequest(BaseModel):
    category: Category | None = None
    exclude_recent: bool = False
    recent_days: int = Field(default=7, ge=1, le=30)


class DrawFilters(BaseModel):
    category: str
    exclude_recent: bool
    recent_days: int


class DrawResponse(BaseModel):
    restaurant: Restaurant
    visit: Visit
    selection: Selection
    total_available: int
    filters: DrawFilters


# ── Tournament bracket ──────────────────────────────────────────────────


class BracketState(str, Enum):
    not_started = "not_started"
    round_in_progress = "round_in_progress"
    completed = "completed"


class MatchRecord(BaseModel):
    round: str
    match_index: int
    winner: str
    loser: str | None = None
    auto_advanced: bool = False


class Bracket(BaseModel):
    """Single-elimination tournament over restaurant ids.

    ``current_round`` only holds the entrants that are paired this round; a
    bye entrant is already sitting in ``next_round``.
    """

    state: BracketState = BracketState.not_started
    current_round: list[str] = Field(default_factory=list)
    next_round: list[str] = Field(default_factory=list)
    match_index: int = 0
    round_name: str = ""
    history: list[MatchRecord] = Field(default_factory=list)
    winner: str | None = None

    @property
    def comparisons(self) -> list[MatchRecord]:
        return [m for m in self.history if not m.auto_advanced]

    def current_pair(self) -> tuple[str, str] | None:
        if self.state != BracketState.round_in_progress:
            return None
        i = self.match_index * 2
        return self.current_round[i], self.current_round[i + 1]


class TournamentStartRequest(BaseModel):
    category: Category | None = None


class TournamentPickRequest(BaseModel):
    restaurant_id: str = Field(..., min_length=1)


class TournamentView(BaseModel):
    state: BracketState
    round: str
    match_index: int
    matches_in_round: int
    pair: list[Restaurant] = Field(default_factory=list)
    winner: Restaurant | None = None
    history: list[MatchRecord] = Field(default_factory=list)
