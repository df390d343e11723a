from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class GameType(str, Enum):
    runner = "runner"
    avoid = "avoid"


class GameScore(BaseModel):
    id: str
    user_id: str
    user_name: str
    nickname: str
    score: int
    game_type: GameType = GameType.runner
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class GameScoreRequest(BaseModel):
    nickname: str = Field(..., min_length=1, max_length=20)
    score: int = Field(..., ge=0)
    game_type: GameType = GameType.runner
    metadata: dict[str, Any] = Field(default_factory=dict)


class PlayerScores(BaseModel):
    best_score: GameScore | None = None
    recent_scores: list[GameScore] = Field(default_factory=list)
    rank: int | None = None
