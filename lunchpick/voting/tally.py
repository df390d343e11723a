"""
Ballot tally policy.

Every function here is pure over the ballot it is given: mutations happen
on a deep copy that the caller persists as-is. Storage offers no version
check, so two voters racing on the same ballot resolve as last write wins.
"""

from __future__ import annotations

from datetime import datetime, timezone

from ..selection.errors import (
    AlreadyClosed,
    BallotClosed,
    DeadlinePassed,
    NotCreator,
    OptionNotFound,
)
from .models import Ballot, BallotOption, BallotStatus, BallotWinner, OptionKey, VoteRecord


def _now() -> datetime:
    return datetime.now(timezone.utc)


def recount(ballot: Ballot) -> None:
    voters: set[str] = set()
    date_totals: dict[str, int] = {}
    for option in ballot.options:
        option.vote_count = len(option.votes)
        voters.update(v.voter_id for v in option.votes)
        if option.date is not None:
            key = option.date.isoformat()
            date_totals[key] = date_totals.get(key, 0) + option.vote_count
    ballot.total_voters = len(voters)
    ballot.date_totals = date_totals


def _winner_of(option: BallotOption) -> BallotWinner:
    return BallotWinner(
        restaurant_id=option.restaurant_id,
        restaurant_name=option.restaurant_name,
        date=option.date,
        start_time=option.start_time,
        end_time=option.end_time,
        vote_count=option.vote_count,
    )


def compute_winner(ballot: Ballot) -> BallotWinner | None:
    """Strictly greatest vote count; on a tie the earliest option wins."""
    best: BallotOption | None = None
    max_votes = 0
    for option in ballot.options:
        if option.vote_count > max_votes:
            max_votes = option.vote_count
            best = option
    return _winner_of(best) if best else None


def _close(ballot: Ballot, now: datetime) -> None:
    ballot.status = BallotStatus.closed
    ballot.winner = compute_winner(ballot)
    ballot.updated_at = now


def is_expired(ballot: Ballot, now: datetime | None = None) -> bool:
    return ballot.status == BallotStatus.active and (now or _now()) > ballot.end_time


def refresh_ballot(ballot: Ballot, now: datetime | None = None) -> Ballot:
    """Close a ballot whose deadline has passed.

    Returns the same object when nothing changed, so callers can tell whether
    the ballot needs to be written back.
    """
    now = now or _now()
    if not is_expired(ballot, now):
        return ballot
    closed = ballot.model_copy(deep=True)
    _close(closed, now)
    return closed


def cast_or_retract_vote(
    ballot: Ballot,
    voter_id: str,
    voter_name: str,
    key: OptionKey,
    now: datetime | None = None,
) -> Ballot:
    """Cast a vote, or take it back when the voter clicks the same option again."""
    now = now or _now()
    if ballot.status != BallotStatus.active:
        raise BallotClosed()
    if now > ballot.end_time:
        raise DeadlinePassed(refresh_ballot(ballot, now))

    ballot = ballot.model_copy(deep=True)
    option = next((o for o in ballot.options if o.matches(key)), None)
    if option is None:
        raise OptionNotFound()

    if option.has_voter(voter_id):
        option.votes = [v for v in option.votes if v.voter_id != voter_id]
    else:
        if not ballot.allow_multiple:
            for other in ballot.options:
                other.votes = [v for v in other.votes if v.voter_id != voter_id]
        option.votes.append(VoteRecord(voter_id=voter_id, voter_name=voter_name, voted_at=now))

    recount(ballot)
    ballot.updated_at = now
    return ballot


def close_ballot(ballot: Ballot, user_id: str, now: datetime | None = None) -> Ballot:
    if ballot.created_by.user_id != user_id:
        raise NotCreator()
    if ballot.status != BallotStatus.active:
        raise AlreadyClosed()

    ballot = ballot.model_copy(deep=True)
    _close(ballot, now or _now())
    return ballot
