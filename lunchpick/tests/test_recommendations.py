from __future__ import annotations

from fastapi.testclient import TestClient

from lunchpick.app import app
from lunchpick.restaurants.data_store import reset_restaurants
from lunchpick.reviews.store import clear_reviews

client = TestClient(app)


def _reset():
    reset_restaurants()
    clear_reviews()


def _login(c, name="Jiwoo"):
    c.post("/auth/login", json={"name": name})


def _restaurant(c, category) -> dict:
    return c.get("/restaurants", params={"category": category}).json()["restaurants"][0]


def _review(c, restaurant_id, rating):
    resp = c.post("/reviews", json={"restaurant_id": restaurant_id, "rating": rating, "content": "ok"})
    return resp.json()["review"]["id"]


def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_recommendations_empty_without_reviews():
    _reset()
    _login(client)
    body = client.get("/recommendations").json()
    assert body["recommendations"] == []
    assert body["category_stats"] == []
    assert body["overall_stats"] == {
        "total_restaurants": 0, "average_rating": 0.0, "total_reviews": 0, "total_likes": 0,
    }
    assert body["popular_reviews"] == []


def _seed_reviews(c) -> dict[str, str]:
    sushi = _restaurant(c, "japanese")["id"]
    chicken = _restaurant(c, "chicken")["id"]
    cafe = _restaurant(c, "cafe")["id"]
    _login(c, "Alpha")
    _review(c, sushi, 5)
    _review(c, chicken, 3)
    liked = _review(c, cafe, 4)
    _login(c, "Bravo")
    _review(c, chicken, 4)
    c.post(f"/reviews/{liked}/like")
    return {"sushi": sushi, "chicken": chicken, "cafe": cafe, "liked_review": liked}


def test_recommendations_sorted_by_rating():
    _reset()
    c = TestClient(app)
    _login(c)
    ids = _seed_reviews(c)
    body = c.get("/recommendations").json()
    assert [r["id"] for r in body["recommendations"]] == [ids["sushi"], ids["cafe"], ids["chicken"]]
    assert body["overall_stats"]["total_restaurants"] == 3
    assert body["overall_stats"]["total_reviews"] == 4
    assert body["overall_stats"]["total_likes"] == 1
    assert body["popular_reviews"][0]["id"] == ids["liked_review"]


def test_recommendations_sorted_by_reviews_and_likes():
    _reset()
    c = TestClient(app)
    _login(c)
    ids = _seed_reviews(c)
    by_reviews = c.get("/recommendations", params={"sort_by": "reviews"}).json()
    assert by_reviews["recommendations"][0]["id"] == ids["chicken"]
    by_likes = c.get("/recommendations", params={"sort_by": "likes"}).json()
    assert by_likes["recommendations"][0]["id"] == ids["cafe"]


def test_recommendations_category_filter_and_limit():
    _reset()
    c = TestClient(app)
    _login(c)
    ids = _seed_reviews(c)
    body = c.get("/recommendations", params={"category": "chicken"}).json()
    assert [r["id"] for r in body["recommendations"]] == [ids["chicken"]]
    assert body["category_stats"] == [{
        "category": "chicken", "count": 1, "average_rating": 3.5, "total_reviews": 2, "total_likes": 0,
    }]
    limited = c.get("/recommendations", params={"limit": 1}).json()
    assert len(limited["recommendations"]) == 1


def test_recommendations_validation():
    _login(client)
    assert client.get("/recommendations", params={"limit": 0}).status_code == 422
    assert client.get("/recommendations", params={"sort_by": "hype"}).status_code == 422
