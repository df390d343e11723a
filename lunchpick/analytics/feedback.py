from __future__ import annotations

import uuid
from datetime import datetime, timezone

from .models import (
    AdminReply,
    Feedback,
    FeedbackRequest,
    FeedbackStatus,
    FeedbackType,
    FeedbackUpdateRequest,
)

_feedback: dict[str, Feedback] = {}


def record_feedback(user: dict, body: FeedbackRequest) -> Feedback:
    now = datetime.now(timezone.utc)
    feedback = Feedback(
        id=uuid.uuid4().hex,
        user_id=user["id"],
        user_name=user["name"],
        type=body.type,
        title=body.title.strip(),
        content=body.content.strip(),
        priority=body.priority,
        created_at=now,
        updated_at=now,
    )
    _feedback[feedback.id] = feedback
    return feedback


def get_feedback(
    user_id: str | None = None,
    status: FeedbackStatus | None = None,
    feedback_type: FeedbackType | None = None,
    limit: int | None = 20,
) -> list[Feedback]:
    items = [
        f for f in _feedback.values()
        if (user_id is None or f.user_id == user_id)
        and (status is None or f.status == status)
        and (feedback_type is None or f.type == feedback_type)
    ]
    items.sort(key=lambda f: f.created_at, reverse=True)
    return items if limit is None else items[:limit]


def get_feedback_item(feedback_id: str) -> Feedback | None:
    return _feedback.get(feedback_id)


def update_feedback(feedback: Feedback, body: FeedbackUpdateRequest, admin: dict) -> Feedback:
    now = datetime.now(timezone.utc)
    changes: dict = {"updated_at": now}
    if body.status:
        changes["status"] = body.status
    if body.admin_reply:
        changes["admin_reply"] = AdminReply(
            content=body.admin_reply.strip(),
            replied_at=now,
            replied_by=admin["name"],
        )
    updated = feedback.model_copy(update=changes)
    _feedback[feedback.id] = updated
    return updated


def clear_feedback() -> None:
    _feedback.clear()
