from __future__ import annotations

import uuid
from datetime import datetime, timezone

from ..restaurants.models import Restaurant
from .models import (
    Ballot,
    BallotCreator,
    BallotKind,
    BallotOption,
    BallotStatus,
    CreateBallotRequest,
    CreateDateBallotRequest,
)
from .tally import recount

_ballots: dict[str, Ballot] = {}
_LIST_LIMIT = 50


class InvalidBallot(ValueError):
    pass


def _check_deadline(end_time: datetime, now: datetime) -> None:
    if end_time <= now:
        raise InvalidBallot("The deadline must be in the future")


def create_restaurant_ballot(
    body: CreateBallotRequest,
    user: dict,
    restaurants: list[Restaurant],
) -> Ballot:
    now = datetime.now(timezone.utc)
    _check_deadline(body.end_time, now)

    ballot = Ballot(
        id=uuid.uuid4().hex,
        kind=BallotKind.restaurant,
        title=body.title.strip(),
        description=(body.description or "").strip(),
        created_by=BallotCreator(user_id=user["id"], user_name=user["name"]),
        options=[
            BallotOption(
                restaurant_id=r.id,
                restaurant_name=r.name,
                restaurant_category=r.category.value,
                restaurant_image=r.image,
            )
            for r in restaurants
        ],
        allow_multiple=body.allow_multiple,
        end_time=body.end_time,
        created_at=now,
        updated_at=now,
    )
    _ballots[ballot.id] = ballot
    return ballot


def create_date_ballot(body: CreateDateBallotRequest, user: dict) -> Ballot:
    now = datetime.now(timezone.utc)
    _check_deadline(body.end_time, now)

    options = [
        BallotOption(date=candidate.date, start_time=slot.start_time, end_time=slot.end_time)
        for candidate in body.dates
        for slot in candidate.time_slots
    ]
    ballot = Ballot(
        id=uuid.uuid4().hex,
        kind=BallotKind.date,
        title=body.title.strip(),
        description=(body.description or "").strip(),
        created_by=BallotCreator(user_id=user["id"], user_name=user["name"]),
        options=options,
        allow_multiple=body.allow_multiple,
        end_time=body.end_time,
        created_at=now,
        updated_at=now,
    )
    recount(ballot)
    _ballots[ballot.id] = ballot
    return ballot


def get_ballot(ballot_id: str, kind: BallotKind | None = None) -> Ballot | None:
    ballot = _ballots.get(ballot_id)
    if ballot is None or (kind is not None and ballot.kind != kind):
        return None
    return ballot


def list_ballots(
    kind: BallotKind,
    status: BallotStatus | None = None,
    created_by: str | None = None,
) -> list[Ballot]:
    ballots = [
        b for b in _ballots.values()
        if b.kind == kind
        and (status is None or b.status == status)
        and (created_by is None or b.created_by.user_id == created_by)
    ]
    ballots.sort(key=lambda b: b.created_at, reverse=True)
    return ballots[:_LIST_LIMIT]


def save_ballot(ballot: Ballot) -> None:
    _ballots[ballot.id] = ballot


def delete_ballot(ballot_id: str) -> None:
    _ballots.pop(ballot_id, None)


def clear_ballots() -> None:
    _ballots.clear()
