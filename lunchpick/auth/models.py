from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class Role(str, Enum):
    user = "user"
    admin = "admin"


class User(BaseModel):
    id: str
    name: str
    role: Role = Role.user
    is_active: bool = True
    last_login_at: datetime
    created_at: datetime

    def session_payload(self) -> dict:
        return {"id": self.id, "name": self.name, "role": self.role.value}


class LoginRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=40)


class AdminRequest(BaseModel):
    admin_code: str = Field(..., min_length=1)
