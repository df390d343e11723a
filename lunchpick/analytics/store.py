from __future__ import annotations

import time
from enum import Enum
from typing import Any

_events: list[dict[str, Any]] = []


class EventType(str, Enum):
    draw = "draw"
    vote = "vote"
    ballot_closed = "ballot_closed"
    tournament_completed = "tournament_completed"


def record_event(event_type: EventType, data: dict[str, Any]) -> None:
    """Append one usage event; ``user_id`` and friends travel in ``data``."""
    _events.append({
        "type": event_type.value,
        "timestamp": time.time(),
        **data,
    })


def get_events(event_type: EventType | None = None, since: float | None = None) -> list[dict[str, Any]]:
    return [
        e for e in _events
        if (event_type is None or e["type"] == event_type.value)
        and (since is None or e["timestamp"] >= since)
    ]


def clear_events() -> None:
    _events.clear()
