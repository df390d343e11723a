from __future__ import annotations

from fastapi.testclient import TestClient

from lunchpick.analytics.store import EventType, clear_events, get_events
from lunchpick.app import app
from lunchpick.preferences.store import clear_preferences
from lunchpick.restaurants.data_store import reset_restaurants
from lunchpick.selection.history import clear_history

client = TestClient(app)


def _reset():
    reset_restaurants()
    clear_history()
    clear_preferences()
    clear_events()


def _login(c, name="Jiwoo"):
    c.post("/auth/login", json={"name": name})


def _restaurants(c, **params) -> list[dict]:
    return c.get("/restaurants", params=params).json()["restaurants"]


def _exclude(c, restaurant_id):
    return c.post("/preferences/exclude", json={"restaurant_id": restaurant_id, "action": "exclude"})


# ── Draw ─────────────────────────────────────────────────────────────────


def test_draw_returns_restaurant_and_records_history():
    _reset()
    _login(client)
    resp = client.post("/draw", json={})
    assert resp.status_code == 200
    body = resp.json()
    assert body["total_available"] == 10
    assert body["filters"] == {"category": "all", "exclude_recent": False, "recent_days": 7}
    assert body["visit"]["restaurant_id"] == body["restaurant"]["id"]
    assert body["visit"]["visit_type"] == "random"
    assert body["selection"]["selection_type"] == "random"

    visits = client.get("/visits").json()
    assert [v["id"] for v in visits] == [body["visit"]["id"]]


def test_draw_by_category():
    _reset()
    _login(client)
    body = client.post("/draw", json={"category": "korean"}).json()
    assert body["restaurant"]["category"] == "korean"
    assert body["total_available"] == 3


def test_draw_never_returns_excluded():
    _reset()
    _login(client)
    korean = _restaurants(client, category="korean")
    for r in korean[:2]:
        _exclude(client, r["id"])
    for _ in range(10):
        body = client.post("/draw", json={"category": "korean"}).json()
        assert body["restaurant"]["id"] == korean[2]["id"]
        assert body["total_available"] == 1


def test_draw_with_everything_excluded_is_404():
    _reset()
    _login(client)
    for r in _restaurants(client, category="japanese"):
        _exclude(client, r["id"])
    resp = client.post("/draw", json={"category": "japanese"})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "No restaurants are available to pick from"


def test_recent_visits_skipped_when_requested():
    _reset()
    _login(client)
    korean = _restaurants(client, category="korean")
    client.post("/visits", json={"restaurant_id": korean[0]["id"]})
    client.post("/visits", json={"restaurant_id": korean[1]["id"]})
    body = client.post("/draw", json={"category": "korean", "exclude_recent": True}).json()
    assert body["restaurant"]["id"] == korean[2]["id"]
    assert body["filters"]["exclude_recent"] is True


def test_recency_falls_back_when_all_visited():
    _reset()
    _login(client)
    sushi = _restaurants(client, category="japanese")[0]
    client.post("/visits", json={"restaurant_id": sushi["id"]})
    resp = client.post("/draw", json={"category": "japanese", "exclude_recent": True})
    assert resp.status_code == 200
    assert resp.json()["restaurant"]["id"] == sushi["id"]

    event = get_events(EventType.draw)[-1]
    assert event["fallback"] is True
    assert event["pool_size"] == 1


def test_stored_preference_turns_on_recency_rule():
    _reset()
    _login(client)
    client.put("/preferences", json={"preferences": {"exclude_recent_visits": True, "recent_visit_days": 3}})
    body = client.post("/draw", json={}).json()
    assert body["filters"]["exclude_recent"] is True
    assert body["filters"]["recent_days"] == 3


def test_other_users_visits_do_not_count():
    _reset()
    c = TestClient(app)
    _login(c, "Neighbour")
    sushi = _restaurants(c, category="japanese")[0]
    c.post("/visits", json={"restaurant_id": sushi["id"]})
    _login(c, "Jiwoo")
    c.post("/draw", json={"category": "japanese", "exclude_recent": True})
    assert get_events(EventType.draw)[-1]["fallback"] is False


def test_draw_validation():
    _login(client)
    assert client.post("/draw", json={"recent_days": 0}).status_code == 422
    assert client.post("/draw", json={"recent_days": 31}).status_code == 422
    assert client.post("/draw", json={"category": "pizza"}).status_code == 422


# ── Visits and selections ────────────────────────────────────────────────


def test_manual_visit_and_selection():
    _reset()
    _login(client)
    rid = _restaurants(client)[0]["id"]
    visit = client.post("/visits", json={"restaurant_id": rid})
    assert visit.status_code == 201
    assert visit.json()["visit_type"] == "manual"
    selection = client.post("/selections", json={"restaurant_id": rid})
    assert selection.status_code == 201
    assert client.get("/selections").json()[0]["id"] == selection.json()["id"]


def test_visits_newest_first_and_limited():
    _reset()
    _login(client)
    for r in _restaurants(client)[:3]:
        client.post("/visits", json={"restaurant_id": r["id"]})
    visits = client.get("/visits", params={"limit": 2}).json()
    assert len(visits) == 2
    assert visits[0]["visited_at"] >= visits[1]["visited_at"]


def test_delete_visits_clears_only_mine():
    _reset()
    c = TestClient(app)
    _login(c, "Other")
    rid = _restaurants(c)[0]["id"]
    c.post("/visits", json={"restaurant_id": rid})
    _login(c, "Jiwoo")
    c.post("/visits", json={"restaurant_id": rid})
    assert c.delete("/visits").json()["deleted"] == 1
    assert c.get("/visits").json() == []
    _login(c, "Other")
    assert len(c.get("/visits").json()) == 1


def test_visit_for_missing_restaurant_404():
    _login(client)
    assert client.post("/visits", json={"restaurant_id": "nope"}).status_code == 404


# ── Preferences ──────────────────────────────────────────────────────────


def test_preferences_created_with_defaults():
    _reset()
    _login(client)
    body = client.get("/preferences").json()
    assert body["excluded_restaurants"] == []
    assert body["preferences"] == {
        "exclude_recent_visits": False,
        "recent_visit_days": 7,
        "favorite_categories": [],
    }


def test_preferences_update_merges():
    _reset()
    _login(client)
    client.put("/preferences", json={"preferences": {"favorite_categories": ["korean"]}})
    body = client.put("/preferences", json={"preferences": {"recent_visit_days": 14}}).json()
    assert body["preferences"]["favorite_categories"] == ["korean"]
    assert body["preferences"]["recent_visit_days"] == 14


def test_exclude_twice_conflicts_and_include_restores():
    _reset()
    _login(client)
    rid = _restaurants(client)[0]["id"]
    first = _exclude(client, rid)
    assert first.json()["excluded_restaurants"][0]["reason"] == "user choice"
    assert _exclude(client, rid).status_code == 409
    body = client.post(
        "/preferences/exclude", json={"restaurant_id": rid, "action": "include"}
    ).json()
    assert body["excluded_restaurants"] == []
