from __future__ import annotations

from fastapi import HTTPException, Request

from ..ratelimit.limiter import SlidingWindowRateLimiter


def require_user(request: Request) -> dict:
    """Raise 401 if nobody is logged in."""
    user = request.session.get("user")
    if not user:
        raise HTTPException(status_code=401, detail="Login required")
    return user


def require_admin(request: Request) -> dict:
    """Raise 401 if not logged in, 403 if not admin."""
    user = request.session.get("user")
    if not user:
        raise HTTPException(status_code=401, detail="Login required")
    if user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def rate_limited(request: Request) -> None:
    """Count the request against the client's allowance; 429 once exhausted."""
    limiter: SlidingWindowRateLimiter = request.app.state.rate_limiter
    identifier = request.client.host if request.client else "unknown"
    limiter.hit(identifier)
