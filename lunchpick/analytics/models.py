from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class FeedbackType(str, Enum):
    feature_request = "feature_request"
    bug_report = "bug_report"
    improvement = "improvement"
    general = "general"


class FeedbackPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class FeedbackStatus(str, Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"
    rejected = "rejected"


class AdminReply(BaseModel):
    content: str
    replied_at: datetime
    replied_by: str


class Feedback(BaseModel):
    id: str
    user_id: str
    user_name: str
    type: FeedbackType = FeedbackType.general
    title: str
    content: str
    priority: FeedbackPriority = FeedbackPriority.medium
    status: FeedbackStatus = FeedbackStatus.pending
    admin_reply: AdminReply | None = None
    created_at: datetime
    updated_at: datetime


class FeedbackRequest(BaseModel):
    type: FeedbackType = FeedbackType.general
    title: str = Field(..., min_length=1, max_length=100)
    content: str = Field(..., min_length=1, max_length=1000)
    priority: FeedbackPriority = FeedbackPriority.medium


class FeedbackUpdateRequest(BaseModel):
    status: FeedbackStatus | None = None
    admin_reply: str | None = Field(default=None, min_length=1, max_length=1000)


class FeedbackListResponse(BaseModel):
    feedback: list[Feedback]
    count: int
