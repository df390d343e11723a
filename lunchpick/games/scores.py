from __future__ import annotations

import uuid
from datetime import datetime, timezone

from .models import GameScore, GameScoreRequest, GameType, PlayerScores

_scores: list[GameScore] = []


def record_score(user: dict, body: GameScoreRequest) -> GameScore:
    score = GameScore(
        id=uuid.uuid4().hex,
        user_id=user["id"],
        user_name=user["name"],
        nickname=body.nickname.strip(),
        score=body.score,
        game_type=body.game_type,
        metadata=body.metadata,
        created_at=datetime.now(timezone.utc),
    )
    _scores.append(score)
    return score


def _ranked(scores: list[GameScore]) -> list[GameScore]:
    # Highest score first; on equal scores the newer run comes first.
    return sorted(scores, key=lambda s: (s.score, s.created_at), reverse=True)


def top_scores(game_type: GameType | None = None, limit: int = 10) -> list[GameScore]:
    scores = [s for s in _scores if game_type is None or s.game_type == game_type]
    return _ranked(scores)[:limit]


def player_scores(user_id: str, game_type: GameType | None = None) -> PlayerScores:
    pool = [s for s in _scores if game_type is None or s.game_type == game_type]
    mine = [s for s in pool if s.user_id == user_id]
    if not mine:
        return PlayerScores()

    best = _ranked(mine)[0]
    recent = sorted(mine, key=lambda s: s.created_at, reverse=True)[:10]
    rank = 1 + sum(1 for s in pool if s.score > best.score)
    return PlayerScores(best_score=best, recent_scores=recent, rank=rank)


def clear_scores() -> None:
    _scores.clear()
