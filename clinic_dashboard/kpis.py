"""
KPI statistics across a population. Pure functions with no side effects.

Where the individual scorer answers "how did this person do", these
functions answer "how did this KPI do" across the people a viewer is
allowed to see, for one window.
"""

import logging
from fractions import Fraction

import pandas as pd

from .config import NEEDS_ATTENTION_BELOW
from .models import ReviewEvent, as_tuple
from .scoring import active_kpi_map, reviews_in_window, round_half_up

logger = logging.getLogger(__name__)

_RATE_COLUMNS = [
    "kpi_id", "title", "floor", "weight",
    "review_count", "met_count", "not_met_count",
    "met_rate", "met_pct", "not_met_subjects",
]


def kpi_met_rates(window, reviews, kpis, subject_ids) -> pd.DataFrame:
    """Met rate of each KPI over the reviews of `subject_ids` in `window`.

    Parameters
    ----------
    window : Resolved Window.
    reviews : Iterable of ReviewEvent.
    kpis : Iterable of Kpi; removed KPIs are left out.
    subject_ids : Ids whose reviews count (typically approved team members).

    Returns
    -------
    DataFrame with columns:
        kpi_id, title, floor, weight, review_count, met_count,
        not_met_count, met_rate (unrounded percentage),
        met_pct (half-up rounded), not_met_subjects
    One row per active KPI that has at least one review, in KPI order.
    """
    if subject_ids is None:
        raise TypeError("subject_ids must be an iterable of profile ids, got None")
    subject_ids = list(subject_ids)
    kpi_map = active_kpi_map(kpis)
    matching = reviews_in_window(window, as_tuple(reviews, ReviewEvent, "reviews"), subject_ids)

    rows = []
    for kpi in kpi_map.values():
        kpi_reviews = [r for r in matching if r.kpi_id == kpi.id]
        if not kpi_reviews:
            continue
        met_count = sum(1 for r in kpi_reviews if r.met)
        met_rate = met_count * 100 / len(kpi_reviews)
        rows.append({
            "kpi_id": kpi.id,
            "title": kpi.title,
            "floor": kpi.floor,
            "weight": kpi.weight,
            "review_count": len(kpi_reviews),
            "met_count": met_count,
            "not_met_count": len(kpi_reviews) - met_count,
            "met_rate": met_rate,
            "met_pct": round_half_up(Fraction(met_count * 100, len(kpi_reviews))),
            "not_met_subjects": [r.subject_id for r in kpi_reviews if not r.met],
        })

    if not rows:
        logger.info("No KPI reviews in %s for %d subject(s)", window.label or window.start, len(subject_ids))
        return pd.DataFrame(columns=_RATE_COLUMNS)

    return pd.DataFrame(rows, columns=_RATE_COLUMNS)


def kpis_needing_attention(rates: pd.DataFrame) -> int:
    """Number of KPIs whose met rate is below the attention threshold."""
    if rates.empty:
        return 0
    return int((rates["met_rate"] < NEEDS_ATTENTION_BELOW).sum())


def average_met_rate(rates: pd.DataFrame) -> int:
    """Rounded mean of the per-KPI met rates, 0 when no KPI was reviewed."""
    if rates.empty:
        return 0
    return round_half_up(rates["met_rate"].mean())
