"""
Classification of scores: trend direction, cohorts and rating bands.
"""

import logging
from collections.abc import Iterable, Mapping

from .config import (
    NEEDS_ATTENTION_BELOW,
    RATING_BANDS,
    TOP_PERFORMER_MIN,
    TREND_STABLE_BELOW,
)
from .models import CohortResult, TrendResult

logger = logging.getLogger(__name__)


def classify_trend(series) -> TrendResult:
    """Compare the last two entries of a chronological score series.

    Logic
    -----
    - fewer than two entries        -> stable, 0
    - |last - previous| < 2         -> stable, 0
    - last > previous               -> up,   |difference|
    - otherwise                     -> down, |difference|
    """
    if series is None:
        raise TypeError("series must be a sequence of numbers, got None")
    series = list(series)
    if len(series) < 2:
        return TrendResult("stable", 0)

    previous, last = series[-2], series[-1]
    magnitude = abs(last - previous)
    if magnitude < TREND_STABLE_BELOW:
        return TrendResult("stable", 0)
    return TrendResult("up" if last > previous else "down", magnitude)


def _pairs(scored) -> list[tuple]:
    if scored is None or not isinstance(scored, Iterable):
        raise TypeError("scored must be an iterable of (id, score) pairs or mappings")
    pairs = []
    for item in scored:
        if isinstance(item, Mapping):
            pairs.append((item["id"], item["score"]))
        else:
            subject_id, score = item
            pairs.append((subject_id, score))
    return pairs


def classify_cohort(scored) -> CohortResult:
    """Split scored subjects into top performers (>= 90) and needs-attention (< 70).

    Input order is preserved; scores in [70, 90) land in neither list.
    """
    top, attention = [], []
    for subject_id, score in _pairs(scored):
        if score >= TOP_PERFORMER_MIN:
            top.append(subject_id)
        elif score < NEEDS_ATTENTION_BELOW:
            attention.append(subject_id)
    return CohortResult(top_performers=top, needs_attention=attention)


def rating_band(score) -> str:
    """Return 'excellent', 'good', 'average' or 'needs_improvement'."""
    for band, bounds in sorted(RATING_BANDS.items(), key=lambda kv: -kv[1]["min_score"]):
        if score >= bounds["min_score"]:
            return band
    return "needs_improvement"


def rating_label(score) -> str:
    return RATING_BANDS[rating_band(score)]["label"]


def score_distribution(scores) -> dict[str, int]:
    """Count scores per rating band; every band is present in the result."""
    counts = {band: 0 for band in RATING_BANDS}
    for score in scores:
        counts[rating_band(score)] += 1
    return counts
