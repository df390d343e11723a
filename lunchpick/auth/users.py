from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone

import bcrypt

from .config import DEFAULT_AUTH_CONFIG, AuthConfig
from .models import Role, User

_users: dict[str, User] = {}

# Letters of any script, digits and spaces.
_NAME_RE = re.compile(r"^[^\W_]+(?: *[^\W_]+)*$")


class InvalidName(ValueError):
    pass


def normalize_name(name: str, config: AuthConfig = DEFAULT_AUTH_CONFIG) -> str:
    """Strip and validate a login name; raises ``InvalidName``."""
    name = name.strip()
    if not config.name_min_length <= len(name) <= config.name_max_length:
        raise InvalidName(
            f"Name must be {config.name_min_length}-{config.name_max_length} characters"
        )
    if not _NAME_RE.match(name):
        raise InvalidName("Name may only contain letters, digits and spaces")
    return name


def find_user(name: str) -> User | None:
    return _users.get(name.strip())


def login(name: str) -> tuple[User, bool]:
    """Log in by name, creating the user on first visit. Returns ``(user, created)``."""
    name = normalize_name(name)
    now = datetime.now(timezone.utc)
    existing = _users.get(name)
    if existing is not None:
        user = existing.model_copy(update={"last_login_at": now, "is_active": True})
        _users[name] = user
        return user, False

    user = User(id=uuid.uuid4().hex, name=name, last_login_at=now, created_at=now)
    _users[name] = user
    return user, True


def verify_admin_code(code: str, config: AuthConfig = DEFAULT_AUTH_CONFIG) -> bool:
    return bcrypt.checkpw(code.encode(), config.admin_code_hash)


def promote_to_admin(name: str, code: str, config: AuthConfig = DEFAULT_AUTH_CONFIG) -> User | None:
    """Grant the admin role when ``code`` matches. ``None`` on a wrong code."""
    user = _users.get(name)
    if user is None or not verify_admin_code(code, config):
        return None
    user = user.model_copy(update={"role": Role.admin})
    _users[name] = user
    return user


def list_users() -> list[User]:
    users = [u for u in _users.values() if u.is_active]
    users.sort(key=lambda u: u.last_login_at, reverse=True)
    return users


def user_count() -> int:
    return sum(1 for u in _users.values() if u.is_active)


def clear_users() -> None:
    _users.clear()
