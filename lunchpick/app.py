from __future__ import annotations

import logging
import math

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from .analytics.aggregator import compute_analytics
from .analytics.feedback import get_feedback, get_feedback_item, record_feedback, update_feedback
from .analytics.models import (
    Feedback,
    FeedbackListResponse,
    FeedbackRequest,
    FeedbackStatus,
    FeedbackType,
    FeedbackUpdateRequest,
)
from .analytics.stats import compute_stats
from .analytics.store import EventType, get_events, record_event
from .auth.config import DEFAULT_AUTH_CONFIG
from .auth.dependencies import rate_limited, require_admin, require_user
from .auth.models import AdminRequest, LoginRequest
from .auth.users import InvalidName, find_user, list_users, login, promote_to_admin, user_count
from .games.models import GameScore, GameScoreRequest, GameType, PlayerScores
from .games.scores import player_scores, record_score, top_scores
from .preferences.models import ExcludeRequest, PreferenceUpdateRequest, UserPreference
from .preferences.store import AlreadyExcluded, get_preference, set_exclusion, update_settings
from .ratelimit.limiter import RateLimitExceeded, SlidingWindowRateLimiter
from .recommendations.models import (
    RecommendationRequest,
    RecommendationResponse,
    RecommendationSort,
)
from .recommendations.retrieval import get_recommendations
from .restaurants.data_store import (
    RestaurantError,
    create_restaurant,
    deactivate_restaurant,
    get_restaurant,
    list_restaurants,
    update_restaurant,
)
from .restaurants.models import (
    Category,
    Restaurant,
    RestaurantCreate,
    RestaurantListResponse,
    RestaurantSort,
    RestaurantUpdate,
)
from .reviews.models import LikeResponse, Review, ReviewListResponse, ReviewRequest, ReviewSort
from .reviews.store import delete_review, get_review, list_reviews, toggle_like, upsert_review
from .selection.errors import (
    AlreadyClosed,
    BallotClosed,
    BracketCompleted,
    DeadlinePassed,
    InsufficientCandidates,
    InvalidMatchWinner,
    NoEligibleCandidates,
    NotCreator,
    OptionNotFound,
    SelectionError,
)
from .selection.history import delete_visits, get_selections, get_visits, record_selection, record_visit
from .selection.models import (
    Bracket,
    DrawRequest,
    DrawResponse,
    Selection,
    SelectionRequest,
    TournamentPickRequest,
    TournamentStartRequest,
    TournamentView,
    Visit,
    VisitRequest,
)
from .selection.service import begin_tournament, draw_restaurant, pick_winner, tournament_view
from .selection.tournaments import discard_bracket, get_bracket, new_tournament_id, save_bracket
from .visit_calendar.models import CalendarEntry, CalendarEntryCreate, CalendarEntryUpdate
from .visit_calendar.store import (
    DuplicateCalendarEntry,
    add_entry,
    delete_entry,
    get_entry,
    list_entries,
    update_entry,
)
from .voting.models import (
    Ballot,
    BallotKind,
    BallotStatus,
    CreateBallotRequest,
    CreateDateBallotRequest,
    DateVoteRequest,
    OptionKey,
    RestaurantVoteRequest,
)
from .voting.store import (
    InvalidBallot,
    create_date_ballot,
    create_restaurant_ballot,
    delete_ballot,
    get_ballot,
    list_ballots,
    save_ballot,
)
from .voting.tally import cast_or_retract_vote, close_ballot, refresh_ballot

logger = logging.getLogger(__name__)

app = FastAPI(title="Lunchpick API", version="1.0.0")
app.add_middleware(SessionMiddleware, secret_key=DEFAULT_AUTH_CONFIG.session_secret)
app.state.rate_limiter = SlidingWindowRateLimiter()


# ── Error mapping ────────────────────────────────────────────────────────

_STATUS_BY_ERROR: dict[type[Exception], int] = {
    NoEligibleCandidates: 404,
    OptionNotFound: 404,
    InsufficientCandidates: 400,
    InvalidMatchWinner: 400,
    InvalidBallot: 400,
    InvalidName: 400,
    NotCreator: 403,
    BracketCompleted: 409,
    BallotClosed: 409,
    DeadlinePassed: 409,
    AlreadyClosed: 409,
    AlreadyExcluded: 409,
    DuplicateCalendarEntry: 409,
    RestaurantError: 409,
    RateLimitExceeded: 429,
}


async def domain_error_handler(request: Request, exc: Exception) -> JSONResponse:
    status_code = next(
        (code for cls, code in _STATUS_BY_ERROR.items() if isinstance(exc, cls)),
        400,
    )
    detail = exc.message if isinstance(exc, SelectionError) else str(exc)
    headers = None
    if isinstance(exc, RateLimitExceeded):
        headers = {"Retry-After": str(math.ceil(exc.retry_after))}
    return JSONResponse(status_code=status_code, content={"detail": detail}, headers=headers)


for _error in (SelectionError, *_STATUS_BY_ERROR):
    app.add_exception_handler(_error, domain_error_handler)


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/categories")
def categories() -> list[str]:
    return [c.value for c in Category]


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/login")
def auth_login(body: LoginRequest, request: Request) -> dict:
    user, created = login(body.name)
    request.session["user"] = user.session_payload()
    if created:
        logger.info("New user %s", user.name)
    return {"status": "ok", "user": user.session_payload(), "created": created}


@app.post("/auth/check")
def auth_check(body: LoginRequest) -> dict:
    return {"exists": find_user(body.name) is not None}


@app.post("/auth/logout")
def auth_logout(request: Request) -> dict:
    discard_bracket(request.session.get("tournament_id"))
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/auth/me")
def auth_me(user: dict = Depends(require_user)) -> dict:
    return user


@app.post("/auth/admin")
def auth_admin(body: AdminRequest, request: Request, user: dict = Depends(require_user)) -> dict:
    promoted = promote_to_admin(user["name"], body.admin_code)
    if promoted is None:
        logger.warning("Rejected admin code for %s", user["name"])
        raise HTTPException(status_code=403, detail="Invalid admin code")
    request.session["user"] = promoted.session_payload()
    return {"status": "ok", "user": promoted.session_payload()}


@app.get("/users")
def users(user: dict = Depends(require_user)) -> list[dict]:
    return [
        {"id": u.id, "name": u.name, "role": u.role.value, "last_login_at": u.last_login_at}
        for u in list_users()
    ]


# ── Restaurants ──────────────────────────────────────────────────────────


def _active_restaurant(restaurant_id: str) -> Restaurant:
    restaurant = get_restaurant(restaurant_id)
    if restaurant is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return restaurant


def _check_owner(owner_id: str, user: dict) -> None:
    if owner_id != user["id"] and user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Not allowed")


@app.get("/restaurants", response_model=RestaurantListResponse)
def restaurants(
    category: Category | None = None,
    search: str | None = None,
    sort_by: RestaurantSort = RestaurantSort.name,
    user: dict = Depends(require_user),
) -> RestaurantListResponse:
    items = list_restaurants(category=category, search=search, sort_by=sort_by)
    return RestaurantListResponse(restaurants=items, count=len(items))


@app.get("/restaurants/{restaurant_id}", response_model=Restaurant)
def restaurant_detail(restaurant_id: str, user: dict = Depends(require_user)) -> Restaurant:
    return _active_restaurant(restaurant_id)


@app.post(
    "/restaurants",
    response_model=Restaurant,
    status_code=201,
    dependencies=[Depends(rate_limited)],
)
def restaurant_create(body: RestaurantCreate, user: dict = Depends(require_user)) -> Restaurant:
    restaurant = create_restaurant(body, created_by=user["id"])
    logger.info("%s added restaurant %s", user["name"], restaurant.name)
    return restaurant


@app.put(
    "/restaurants/{restaurant_id}",
    response_model=Restaurant,
    dependencies=[Depends(rate_limited)],
)
def restaurant_update(
    restaurant_id: str,
    body: RestaurantUpdate,
    user: dict = Depends(require_user),
) -> Restaurant:
    _check_owner(_active_restaurant(restaurant_id).created_by, user)
    return update_restaurant(restaurant_id, body)


@app.delete("/restaurants/{restaurant_id}", dependencies=[Depends(rate_limited)])
def restaurant_delete(restaurant_id: str, user: dict = Depends(require_user)) -> dict:
    _check_owner(_active_restaurant(restaurant_id).created_by, user)
    deactivate_restaurant(restaurant_id)
    return {"status": "deleted"}


# ── Random draw ──────────────────────────────────────────────────────────


@app.post("/draw", response_model=DrawResponse)
def draw(body: DrawRequest, user: dict = Depends(require_user)) -> DrawResponse:
    return draw_restaurant(user, body)


# ── Preferences ──────────────────────────────────────────────────────────


@app.get("/preferences", response_model=UserPreference)
def preferences(user: dict = Depends(require_user)) -> UserPreference:
    return get_preference(user)


@app.put("/preferences", response_model=UserPreference)
def preferences_update(
    body: PreferenceUpdateRequest,
    user: dict = Depends(require_user),
) -> UserPreference:
    return update_settings(user, body.preferences)


@app.post("/preferences/exclude", response_model=UserPreference)
def preferences_exclude(body: ExcludeRequest, user: dict = Depends(require_user)) -> UserPreference:
    restaurant = _active_restaurant(body.restaurant_id)
    return set_exclusion(user, restaurant, body.action, body.reason)


# ── Visits and selections ────────────────────────────────────────────────


@app.get("/visits", response_model=list[Visit])
def visits(
    limit: int = Query(default=10, ge=1, le=100),
    user: dict = Depends(require_user),
) -> list[Visit]:
    return get_visits(user_id=user["id"], limit=limit)


@app.post("/visits", response_model=Visit, status_code=201)
def visit_create(body: VisitRequest, user: dict = Depends(require_user)) -> Visit:
    return record_visit(user, _active_restaurant(body.restaurant_id), body.visit_type)


@app.delete("/visits")
def visits_delete(user: dict = Depends(require_user)) -> dict:
    return {"status": "deleted", "deleted": delete_visits(user["id"])}


@app.get("/selections", response_model=list[Selection])
def selections(
    limit: int = Query(default=10, ge=1, le=100),
    user: dict = Depends(require_user),
) -> list[Selection]:
    return get_selections(limit=limit)


@app.post("/selections", response_model=Selection, status_code=201)
def selection_create(body: SelectionRequest, user: dict = Depends(require_user)) -> Selection:
    return record_selection(user, _active_restaurant(body.restaurant_id), body.selection_type)


# ── Ballots ──────────────────────────────────────────────────────────────


def _load_ballot(ballot_id: str, kind: BallotKind) -> Ballot:
    """Fetch a ballot, closing and persisting it first if its deadline passed."""
    ballot = get_ballot(ballot_id, kind)
    if ballot is None:
        raise HTTPException(status_code=404, detail="Ballot not found")
    refreshed = refresh_ballot(ballot)
    if refreshed is not ballot:
        save_ballot(refreshed)
        record_event(EventType.ballot_closed, {"ballot_id": ballot_id, "reason": "deadline"})
        logger.info("Ballot %s closed at its deadline", ballot_id)
    return refreshed


def _list_ballots(kind: BallotKind, status: BallotStatus | None, mine: bool, user: dict) -> list[Ballot]:
    ballots = []
    for ballot in list_ballots(kind, created_by=user["id"] if mine else None):
        ballot = _load_ballot(ballot.id, kind)
        if status is None or ballot.status == status:
            ballots.append(ballot)
    return ballots


def _vote(ballot_id: str, kind: BallotKind, key: OptionKey, user: dict) -> dict:
    ballot = _load_ballot(ballot_id, kind)
    try:
        updated = cast_or_retract_vote(ballot, user["id"], user["name"], key)
    except DeadlinePassed as exc:
        save_ballot(exc.ballot)
        raise
    save_ballot(updated)

    option = next(o for o in updated.options if o.matches(key))
    action = "voted" if option.has_voter(user["id"]) else "retracted"
    record_event(EventType.vote, {"ballot_id": ballot_id, "user_id": user["id"], "action": action})
    return {"action": action, "ballot": updated}


def _close(ballot_id: str, kind: BallotKind, user: dict) -> Ballot:
    closed = close_ballot(_load_ballot(ballot_id, kind), user["id"])
    save_ballot(closed)
    record_event(EventType.ballot_closed, {"ballot_id": ballot_id, "reason": "creator"})
    return closed


def _delete(ballot_id: str, kind: BallotKind, user: dict) -> dict:
    ballot = _load_ballot(ballot_id, kind)
    if ballot.created_by.user_id != user["id"]:
        raise NotCreator()
    delete_ballot(ballot_id)
    return {"status": "deleted"}


@app.get("/ballots", response_model=list[Ballot])
def ballots(
    status: BallotStatus | None = None,
    mine: bool = False,
    user: dict = Depends(require_user),
) -> list[Ballot]:
    return _list_ballots(BallotKind.restaurant, status, mine, user)


@app.post("/ballots", response_model=Ballot, status_code=201)
def ballot_create(body: CreateBallotRequest, user: dict = Depends(require_user)) -> Ballot:
    restaurant_ids = list(dict.fromkeys(body.restaurant_ids))
    restaurants = [get_restaurant(rid) for rid in restaurant_ids]
    if any(r is None for r in restaurants):
        raise HTTPException(status_code=400, detail="Some restaurants were not found")
    if len(restaurants) < 2:
        raise HTTPException(status_code=400, detail="Pick at least two different restaurants")
    return create_restaurant_ballot(body, user, restaurants)


@app.get("/ballots/{ballot_id}", response_model=Ballot)
def ballot_detail(ballot_id: str, user: dict = Depends(require_user)) -> Ballot:
    return _load_ballot(ballot_id, BallotKind.restaurant)


@app.post("/ballots/{ballot_id}/vote")
def ballot_vote(ballot_id: str, body: RestaurantVoteRequest, user: dict = Depends(require_user)) -> dict:
    return _vote(ballot_id, BallotKind.restaurant, OptionKey(restaurant_id=body.restaurant_id), user)


@app.post("/ballots/{ballot_id}/close", response_model=Ballot)
def ballot_close(ballot_id: str, user: dict = Depends(require_user)) -> Ballot:
    return _close(ballot_id, BallotKind.restaurant, user)


@app.delete("/ballots/{ballot_id}")
def ballot_delete(ballot_id: str, user: dict = Depends(require_user)) -> dict:
    return _delete(ballot_id, BallotKind.restaurant, user)


@app.get("/date-ballots", response_model=list[Ballot])
def date_ballots(
    status: BallotStatus | None = None,
    mine: bool = False,
    user: dict = Depends(require_user),
) -> list[Ballot]:
    return _list_ballots(BallotKind.date, status, mine, user)


@app.post("/date-ballots", response_model=Ballot, status_code=201)
def date_ballot_create(body: CreateDateBallotRequest, user: dict = Depends(require_user)) -> Ballot:
    return create_date_ballot(body, user)


@app.get("/date-ballots/{ballot_id}", response_model=Ballot)
def date_ballot_detail(ballot_id: str, user: dict = Depends(require_user)) -> Ballot:
    return _load_ballot(ballot_id, BallotKind.date)


@app.post("/date-ballots/{ballot_id}/vote")
def date_ballot_vote(ballot_id: str, body: DateVoteRequest, user: dict = Depends(require_user)) -> dict:
    key = OptionKey(date=body.date, start_time=body.start_time, end_time=body.end_time)
    return _vote(ballot_id, BallotKind.date, key, user)


@app.post("/date-ballots/{ballot_id}/close", response_model=Ballot)
def date_ballot_close(ballot_id: str, user: dict = Depends(require_user)) -> Ballot:
    return _close(ballot_id, BallotKind.date, user)


@app.delete("/date-ballots/{ballot_id}")
def date_ballot_delete(ballot_id: str, user: dict = Depends(require_user)) -> dict:
    return _delete(ballot_id, BallotKind.date, user)


# ── Tournament ───────────────────────────────────────────────────────────
#
# Brackets live server-side; the session only carries the tournament id.


def _session_bracket(request: Request) -> Bracket:
    bracket = get_bracket(request.session.get("tournament_id"))
    if bracket is None:
        raise HTTPException(status_code=404, detail="No tournament in progress")
    return bracket


@app.post("/tournament/start", response_model=TournamentView)
def tournament_start(
    body: TournamentStartRequest,
    request: Request,
    user: dict = Depends(require_user),
) -> TournamentView:
    bracket = begin_tournament(body.category)
    discard_bracket(request.session.get("tournament_id"))
    tournament_id = new_tournament_id()
    save_bracket(tournament_id, bracket)
    request.session["tournament_id"] = tournament_id
    return tournament_view(bracket)


@app.get("/tournament", response_model=TournamentView)
def tournament(request: Request, user: dict = Depends(require_user)) -> TournamentView:
    return tournament_view(_session_bracket(request))


@app.post("/tournament/pick", response_model=TournamentView)
def tournament_pick(
    body: TournamentPickRequest,
    request: Request,
    user: dict = Depends(require_user),
) -> TournamentView:
    bracket = pick_winner(_session_bracket(request), body.restaurant_id, user)
    save_bracket(request.session["tournament_id"], bracket)
    return tournament_view(bracket)


@app.delete("/tournament")
def tournament_delete(request: Request, user: dict = Depends(require_user)) -> dict:
    discard_bracket(request.session.pop("tournament_id", None))
    return {"status": "deleted"}


# ── Reviews ──────────────────────────────────────────────────────────────


def _active_review(review_id: str) -> Review:
    review = get_review(review_id)
    if review is None:
        raise HTTPException(status_code=404, detail="Review not found")
    return review


@app.get("/reviews", response_model=ReviewListResponse)
def reviews(
    restaurant_id: str | None = None,
    user_id: str | None = None,
    sort_by: ReviewSort = ReviewSort.newest,
    limit: int = Query(default=20, ge=1, le=50),
    user: dict = Depends(require_user),
) -> ReviewListResponse:
    items = list_reviews(restaurant_id=restaurant_id, user_id=user_id, sort_by=sort_by, limit=limit)
    return ReviewListResponse(reviews=items, count=len(items))


@app.post("/reviews")
def review_create(body: ReviewRequest, user: dict = Depends(require_user)) -> dict:
    review, created = upsert_review(user, _active_restaurant(body.restaurant_id), body)
    return {"review": review, "created": created}


@app.delete("/reviews/{review_id}")
def review_delete(review_id: str, user: dict = Depends(require_user)) -> dict:
    review = _active_review(review_id)
    _check_owner(review.user_id, user)
    delete_review(review)
    return {"status": "deleted"}


@app.post("/reviews/{review_id}/like", response_model=LikeResponse)
def review_like(review_id: str, user: dict = Depends(require_user)) -> LikeResponse:
    review, action = toggle_like(_active_review(review_id), user)
    return LikeResponse(
        review_id=review.id,
        like_count=review.like_count,
        action=action,
        is_liked=action == "liked",
    )


# ── Recommendations ──────────────────────────────────────────────────────


@app.get("/recommendations", response_model=RecommendationResponse)
def recommendations(
    category: Category | None = None,
    sort_by: RecommendationSort = RecommendationSort.rating,
    limit: int = Query(default=10, ge=1, le=50),
    user: dict = Depends(require_user),
) -> RecommendationResponse:
    return get_recommendations(
        RecommendationRequest(category=category, sort_by=sort_by, limit=limit)
    )


# ── Visit calendar ───────────────────────────────────────────────────────


def _own_entry(entry_id: str, user: dict) -> CalendarEntry:
    entry = get_entry(entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Calendar entry not found")
    if entry.user_id != user["id"]:
        raise HTTPException(status_code=403, detail="Not allowed")
    return entry


@app.get("/calendar", response_model=list[CalendarEntry], dependencies=[Depends(rate_limited)])
def calendar(
    year: int | None = Query(default=None, ge=2000, le=2100),
    month: int | None = Query(default=None, ge=1, le=12),
    user: dict = Depends(require_user),
) -> list[CalendarEntry]:
    return list_entries(user["id"], year, month)


@app.post(
    "/calendar",
    response_model=CalendarEntry,
    status_code=201,
    dependencies=[Depends(rate_limited)],
)
def calendar_create(body: CalendarEntryCreate, user: dict = Depends(require_user)) -> CalendarEntry:
    return add_entry(user, _active_restaurant(body.restaurant_id), body)


@app.get("/calendar/{entry_id}", response_model=CalendarEntry, dependencies=[Depends(rate_limited)])
def calendar_detail(entry_id: str, user: dict = Depends(require_user)) -> CalendarEntry:
    return _own_entry(entry_id, user)


@app.put("/calendar/{entry_id}", response_model=CalendarEntry, dependencies=[Depends(rate_limited)])
def calendar_update(
    entry_id: str,
    body: CalendarEntryUpdate,
    user: dict = Depends(require_user),
) -> CalendarEntry:
    return update_entry(_own_entry(entry_id, user), body)


@app.delete("/calendar/{entry_id}", dependencies=[Depends(rate_limited)])
def calendar_delete(entry_id: str, user: dict = Depends(require_user)) -> dict:
    delete_entry(_own_entry(entry_id, user).id)
    return {"status": "deleted"}


# ── Mini-game leaderboards ───────────────────────────────────────────────


@app.post("/game-scores", response_model=GameScore, status_code=201)
def game_score_create(body: GameScoreRequest, user: dict = Depends(require_user)) -> GameScore:
    return record_score(user, body)


@app.get("/game-scores/top", response_model=list[GameScore])
def game_scores_top(
    game_type: GameType | None = None,
    limit: int = Query(default=10, ge=1, le=50),
    user: dict = Depends(require_user),
) -> list[GameScore]:
    return top_scores(game_type, limit)


@app.get("/game-scores/me", response_model=PlayerScores)
def game_scores_me(
    game_type: GameType | None = None,
    user: dict = Depends(require_user),
) -> PlayerScores:
    return player_scores(user["id"], game_type)


# ── Feedback board ───────────────────────────────────────────────────────


@app.post("/feedback", response_model=Feedback, status_code=201)
def feedback_create(body: FeedbackRequest, user: dict = Depends(require_user)) -> Feedback:
    return record_feedback(user, body)


@app.get("/feedback", response_model=FeedbackListResponse)
def feedback(
    status: FeedbackStatus | None = None,
    type: FeedbackType | None = None,
    user: dict = Depends(require_user),
) -> FeedbackListResponse:
    items = get_feedback(status=status, feedback_type=type)
    return FeedbackListResponse(feedback=items, count=len(items))


@app.put("/feedback/{feedback_id}", response_model=Feedback)
def feedback_update(
    feedback_id: str,
    body: FeedbackUpdateRequest,
    user: dict = Depends(require_admin),
) -> Feedback:
    item = get_feedback_item(feedback_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Feedback not found")
    return update_feedback(item, body, user)


# ── Stats and admin ──────────────────────────────────────────────────────


@app.get("/stats")
def stats(user: dict = Depends(require_user)) -> dict:
    return compute_stats(user["id"], user_count())


@app.get("/analytics")
def analytics(user: dict = Depends(require_admin)) -> dict:
    return compute_analytics(get_events())
