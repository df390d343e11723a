from __future__ import annotations

from fastapi.testclient import TestClient

from lunchpick.app import app
from lunchpick.ratelimit.config import RateLimitConfig
from lunchpick.ratelimit.limiter import RateLimitExceeded, SlidingWindowRateLimiter
from lunchpick.restaurants.data_store import reset_restaurants

client = TestClient(app)


class _Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _limiter(max_requests=2, window=60.0, clock=None):
    return SlidingWindowRateLimiter(
        RateLimitConfig(max_requests=max_requests, window_seconds=window),
        clock=clock or _Clock(),
    )


def test_allows_up_to_capacity():
    limiter = _limiter()
    assert limiter.hit("a") == 1
    assert limiter.hit("a") == 0
    try:
        limiter.hit("a")
    except RateLimitExceeded as exc:
        assert exc.retry_after == 60.0
    else:
        raise AssertionError("third hit should be refused")


def test_identifiers_are_independent():
    limiter = _limiter(max_requests=1)
    limiter.hit("a")
    limiter.hit("b")
    assert limiter.remaining("a") == 0
    assert limiter.remaining("c") == 1


def test_window_slides():
    clock = _Clock()
    limiter = _limiter(clock=clock)
    limiter.hit("a")
    clock.now += 30
    limiter.hit("a")
    clock.now += 30  # first hit is now a full window old
    assert limiter.remaining("a") == 1
    limiter.hit("a")
    assert limiter.remaining("a") == 0


def test_idle_identifiers_are_forgotten():
    clock = _Clock()
    limiter = _limiter(clock=clock)
    limiter.hit("a")
    limiter.hit("b")
    assert limiter.tracked() == 2
    clock.now += 60
    limiter.hit("c")
    assert limiter.tracked() == 1
    assert limiter.remaining("a") == 2


def test_reset_clears_all():
    limiter = _limiter(max_requests=1)
    limiter.hit("a")
    limiter.reset()
    assert limiter.remaining("a") == 1


def test_endpoint_returns_429_when_exhausted():
    reset_restaurants()
    original = app.state.rate_limiter
    app.state.rate_limiter = _limiter(max_requests=2, window=900)
    try:
        client.post("/auth/login", json={"name": "Jiwoo"})
        assert client.get("/calendar").status_code == 200
        assert client.get("/calendar").status_code == 200
        resp = client.get("/calendar")
        assert resp.status_code == 429
        assert resp.headers["Retry-After"] == "900"
        # Routes without the limiter stay available.
        assert client.get("/restaurants").status_code == 200
    finally:
        app.state.rate_limiter = original
