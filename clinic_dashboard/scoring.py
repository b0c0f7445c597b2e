"""
Individual scoring. Pure functions with no side effects.

A subject's score for a window is the share of KPI weight earned across
every review event dated inside the window:

    score = round_half_up(earned_weight / total_weight * 100)

Reviews whose KPI is missing from the snapshot or soft-deleted are
skipped. Repeated reviews of the same KPI all count.
"""

import logging
import math
from fractions import Fraction

from .models import Kpi, PeriodScore, ReviewEvent, Window, as_tuple

logger = logging.getLogger(__name__)


def round_half_up(value) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    Accepts ints, Fractions or floats; the arithmetic stays exact.
    """
    return math.floor(Fraction(value) + Fraction(1, 2))


def _check_window(window) -> Window:
    if not isinstance(window, Window):
        raise TypeError(f"window must be a Window, got {type(window).__name__}")
    return window


def active_kpi_map(kpis) -> dict[str, Kpi]:
    """Map KPI id to KPI, leaving out removed KPIs."""
    return {k.id: k for k in as_tuple(kpis, Kpi, "kpis") if k.active}


def reviews_in_window(
    window: Window,
    reviews,
    subject_ids=None,
) -> list[ReviewEvent]:
    """Reviews dated inside `window`, optionally restricted to some subjects."""
    _check_window(window)
    reviews = as_tuple(reviews, ReviewEvent, "reviews")
    if window.is_empty:
        return []
    wanted = None if subject_ids is None else set(subject_ids)
    return [
        r for r in reviews
        if window.contains(r.date) and (wanted is None or r.subject_id in wanted)
    ]


def score_subject(
    subject_id: str,
    window: Window,
    reviews,
    kpis,
) -> PeriodScore:
    """Weighted percentage score of one subject over one window.

    Parameters
    ----------
    subject_id : Profile id of the clinician or director being scored.
    window : Resolved half-open Window.
    reviews : Iterable of ReviewEvent (any subjects, any dates).
    kpis : Iterable of Kpi; removed KPIs are ignored.

    Returns
    -------
    PeriodScore with an integer score in [0, 100]. A subject with no
    matching reviews scores 0 and has reviewed_kpi_count == 0.
    """
    kpi_map = active_kpi_map(kpis)
    matching = reviews_in_window(window, reviews, subject_ids=(subject_id,))

    total_weight = 0
    earned_weight = 0
    reviewed: set[str] = set()
    unresolved = 0

    for review in matching:
        kpi = kpi_map.get(review.kpi_id)
        if kpi is None:
            unresolved += 1
            continue
        reviewed.add(kpi.id)
        total_weight += kpi.weight
        if review.met:
            earned_weight += kpi.weight

    if unresolved:
        logger.debug(
            "Skipped %d review(s) of %s referencing missing or removed KPIs",
            unresolved, subject_id,
        )

    score = round_half_up(Fraction(earned_weight * 100, total_weight)) if total_weight > 0 else 0

    return PeriodScore(
        subject_id=subject_id,
        window_start=window.start,
        window_end=window.end,
        score=score,
        reviewed_kpi_count=len(reviewed),
        total_kpi_count=len(kpi_map),
    )


def score_subjects(subject_ids, window: Window, reviews, kpis) -> list[PeriodScore]:
    """PeriodScores for several subjects, in the order given."""
    reviews = as_tuple(reviews, ReviewEvent, "reviews")
    kpis = as_tuple(kpis, Kpi, "kpis")
    return [score_subject(sid, window, reviews, kpis) for sid in subject_ids]


def context_score(context, subject_id: str, window: Window) -> PeriodScore:
    """Individual PeriodScore of `subject_id` over `window` from a ScoringContext."""
    return score_subject(subject_id, window, context.reviews, context.kpis)


def kpi_breakdown(
    subject_id: str,
    window: Window,
    reviews,
    kpis,
) -> list[dict]:
    """Per-KPI detail rows for one subject and window.

    Returns
    -------
    One dict per active KPI, in KPI input order:
    {
        "kpi": Kpi,
        "reviews": [ReviewEvent, ...],   # oldest first
        "points": int | None,            # latest review: weight if met, else 0
        "has_data": bool,
    }
    """
    kpi_map = active_kpi_map(kpis)
    matching = sorted(
        reviews_in_window(window, reviews, subject_ids=(subject_id,)),
        key=lambda r: r.date,
    )

    rows = []
    for kpi in kpi_map.values():
        kpi_reviews = [r for r in matching if r.kpi_id == kpi.id]
        points = None
        if kpi_reviews:
            points = kpi.weight if kpi_reviews[-1].met else 0
        rows.append({
            "kpi": kpi,
            "reviews": kpi_reviews,
            "points": points,
            "has_data": bool(kpi_reviews),
        })
    return rows
