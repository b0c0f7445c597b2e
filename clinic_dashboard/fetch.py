"""
Scatter/gather for per-subject review fetches.

Weekly review data is sourced one subject at a time by an asynchronous
fetch. The helpers here issue those fetches concurrently and only hand
the engine a review list once every fetch has completed; a failing fetch
propagates its exception and nothing is scored.

The fetch callable is supplied by the caller:

    async def fetch(subject_id: str, start: datetime, end: datetime) -> list[ReviewEvent]
"""

import asyncio
import logging

from .aggregation import team_score
from .hierarchy import approved_reports
from .models import ReviewEvent, WeekSelector, as_tuple
from .windows import resolve_window

logger = logging.getLogger(__name__)


async def gather_reviews(fetch, subject_ids, window) -> list[ReviewEvent]:
    """Fetch every subject's reviews for `window` concurrently.

    Returns the concatenated reviews in subject order. An empty window
    issues no fetches.
    """
    subject_ids = list(subject_ids)
    if window.is_empty or not subject_ids:
        return []

    batches = await asyncio.gather(
        *(fetch(subject_id, window.start, window.end) for subject_id in subject_ids)
    )
    reviews = [review for batch in batches for review in batch]
    logger.info(
        "Fetched %d review(s) for %d subject(s) in %s",
        len(reviews), len(subject_ids), window.label,
    )
    return list(as_tuple(reviews, ReviewEvent, "fetched reviews"))


async def weekly_team_score(
    fetch,
    director_id: str,
    year: int,
    week: int,
    kpis,
    assignments,
    profiles,
) -> int:
    """Team score of `director_id` for one week, fetching approved reports' reviews first."""
    window = resolve_window(WeekSelector(year=year, week=week))
    reports = approved_reports(director_id, assignments, profiles)
    reviews = await gather_reviews(fetch, reports.all, window)
    return team_score(director_id, window, reviews, kpis, assignments, profiles)
