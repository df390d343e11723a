from __future__ import annotations

import uuid
from datetime import datetime, timezone

from ..restaurants.data_store import find_restaurant, save_restaurant
from ..restaurants.models import Restaurant
from .models import Review, ReviewLike, ReviewRequest, ReviewSort

_reviews: dict[str, Review] = {}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _active_reviews(restaurant_id: str | None = None) -> list[Review]:
    return [
        r for r in _reviews.values()
        if r.is_active and (restaurant_id is None or r.restaurant_id == restaurant_id)
    ]


def refresh_restaurant_stats(restaurant_id: str) -> None:
    """Recompute the rating, review count and like total shown on a restaurant."""
    restaurant = find_restaurant(restaurant_id)
    if restaurant is None:
        return

    reviews = _active_reviews(restaurant_id)
    if reviews:
        average = round(sum(r.rating for r in reviews) / len(reviews), 1)
    else:
        average = 0.0

    save_restaurant(restaurant.model_copy(update={
        "average_rating": average,
        "review_count": len(reviews),
        "total_likes": sum(r.like_count for r in reviews),
    }))


def list_reviews(
    restaurant_id: str | None = None,
    user_id: str | None = None,
    sort_by: ReviewSort = ReviewSort.newest,
    limit: int = 20,
) -> list[Review]:
    reviews = [
        r for r in _active_reviews(restaurant_id)
        if user_id is None or r.user_id == user_id
    ]

    # Stable sorts: newest first, then the primary key on top.
    reviews.sort(key=lambda r: r.created_at, reverse=True)
    if sort_by == ReviewSort.likes:
        reviews.sort(key=lambda r: r.like_count, reverse=True)
    elif sort_by == ReviewSort.rating:
        reviews.sort(key=lambda r: r.rating, reverse=True)
    return reviews[:limit]


def get_review(review_id: str) -> Review | None:
    review = _reviews.get(review_id)
    if review is None or not review.is_active:
        return None
    return review


def upsert_review(user: dict, restaurant: Restaurant, body: ReviewRequest) -> tuple[Review, bool]:
    """One review per user and restaurant: posting again rewrites it."""
    existing = next(
        (
            r for r in _active_reviews(restaurant.id)
            if r.user_id == user["id"]
        ),
        None,
    )
    now = _now()

    if existing is not None:
        review = existing.model_copy(update={
            "rating": body.rating,
            "content": body.content.strip(),
            "updated_at": now,
        })
        created = False
    else:
        review = Review(
            id=uuid.uuid4().hex,
            user_id=user["id"],
            user_name=user["name"],
            restaurant_id=restaurant.id,
            restaurant_name=restaurant.name,
            rating=body.rating,
            content=body.content.strip(),
            created_at=now,
            updated_at=now,
        )
        created = True

    _reviews[review.id] = review
    refresh_restaurant_stats(restaurant.id)
    return review, created


def delete_review(review: Review) -> None:
    _reviews[review.id] = review.model_copy(update={"is_active": False, "updated_at": _now()})
    refresh_restaurant_stats(review.restaurant_id)


def toggle_like(review: Review, user: dict) -> tuple[Review, str]:
    if any(like.user_id == user["id"] for like in review.likes):
        likes = [like for like in review.likes if like.user_id != user["id"]]
        action = "unliked"
    else:
        likes = [*review.likes, ReviewLike(user_id=user["id"], user_name=user["name"], liked_at=_now())]
        action = "liked"

    review = review.model_copy(update={"likes": likes, "like_count": len(likes)})
    _reviews[review.id] = review
    refresh_restaurant_stats(review.restaurant_id)
    return review, action


def popular_reviews(limit: int = 5) -> list[Review]:
    return list_reviews(sort_by=ReviewSort.likes, limit=limit)


def clear_reviews() -> None:
    _reviews.clear()
