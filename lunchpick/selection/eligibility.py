from __future__ import annotations

from collections.abc import Collection, Sequence

from ..restaurants.models import Restaurant
from .errors import NoEligibleCandidates
from .models import RecencyWindow


def filter_eligible(
    candidates: Sequence[Restaurant],
    excluded_ids: Collection[str],
    window: RecencyWindow,
    recent_visit_ids: Collection[str],
) -> list[Restaurant]:
    """Prune the draw pool for one user.

    ``candidates`` must already be limited to active restaurants. Explicit
    exclusions always apply; the recency rule is dropped for this draw when
    it alone would leave nothing to pick.
    """
    excluded = set(excluded_ids)
    pool = [c for c in candidates if c.id not in excluded]

    if window.enabled and recent_visit_ids:
        recent = set(recent_visit_ids)
        fresh = [c for c in pool if c.id not in recent]
        if fresh:
            pool = fresh

    if not pool:
        raise NoEligibleCandidates()
    return pool
