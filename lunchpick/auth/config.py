from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import bcrypt
from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


def _hash_code(plain: str) -> bytes:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt())


@dataclass(frozen=True)
class AuthConfig:
    session_secret: str = os.getenv("SESSION_SECRET", "lunchpick-secret-change-in-production")
    # Only the hash of the admin code is kept in memory.
    admin_code_hash: bytes = field(
        default_factory=lambda: _hash_code(os.getenv("ADMIN_CODE", "lunchpick-admin"))
    )
    name_min_length: int = 2
    name_max_length: int = 20


DEFAULT_AUTH_CONFIG = AuthConfig()
