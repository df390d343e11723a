from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..voting.models import Ballot


class SelectionError(Exception):
    """Base class for conditions the selector reports back to its caller."""

    message = "selection failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class NoEligibleCandidates(SelectionError):
    message = "No restaurants are available to pick from"


class InsufficientCandidates(SelectionError):
    message = "A tournament needs at least two restaurants"


class BracketCompleted(SelectionError):
    message = "The tournament is already finished"


class InvalidMatchWinner(SelectionError):
    message = "The winner must be one of the two restaurants in the current match"


class BallotClosed(SelectionError):
    message = "This poll has ended"


class DeadlinePassed(SelectionError):
    """Raised when a vote arrives after the deadline.

    The ballot has been closed (winner computed) as a side effect; the closed
    copy travels on ``ballot`` so the caller can persist it.
    """

    message = "The voting deadline has passed"

    def __init__(self, ballot: Ballot, message: str | None = None) -> None:
        super().__init__(message)
        self.ballot = ballot


class OptionNotFound(SelectionError):
    message = "The selected option is not part of this poll"


class NotCreator(SelectionError):
    message = "Only the poll creator can do that"


class AlreadyClosed(SelectionError):
    message = "This poll is already closed"
