from __future__ import annotations

import uuid

from .models import Bracket

_brackets: dict[str, Bracket] = {}


def new_tournament_id() -> str:
    return uuid.uuid4().hex


def get_bracket(tournament_id: str | None) -> Bracket | None:
    if not tournament_id:
        return None
    return _brackets.get(tournament_id)


def save_bracket(tournament_id: str, bracket: Bracket) -> None:
    _brackets[tournament_id] = bracket


def discard_bracket(tournament_id: str | None) -> None:
    if tournament_id:
        _brackets.pop(tournament_id, None)


def clear_brackets() -> None:
    _brackets.clear()
