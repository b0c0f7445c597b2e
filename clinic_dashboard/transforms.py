"""
Data transforms: flatten a scoring snapshot into fact and dimension
tables, and build the chronological score series the trend views plot.
"""

import logging
from fractions import Fraction

import pandas as pd

from .aggregation import team_score, team_score_transitive
from .classify import rating_band
from .config import MONTH_NAMES, SUBJECT_HISTORY_MONTHS, TEAM_TREND_MONTHS
from .hierarchy import approved_reports, supervisor_of
from .scoring import context_score, round_half_up, score_subject
from .windows import month_window, resolve_window, trailing_months

logger = logging.getLogger(__name__)


def build_dim_profile(context) -> pd.DataFrame:
    """Profile dimension table.

    Returns
    -------
    dim_profile DataFrame with columns:
        profile_id, name, username, role, accept, created_at, supervisor_id
    """
    columns = ["profile_id", "name", "username", "role", "accept", "created_at", "supervisor_id"]
    rows = [
        {
            "profile_id": p.id,
            "name": p.name,
            "username": p.username,
            "role": p.role,
            "accept": p.accept,
            "created_at": p.created_at,
            "supervisor_id": supervisor_of(p.id, context.assignments),
        }
        for p in context.profiles
    ]
    df = pd.DataFrame(rows, columns=columns)
    logger.info("Built dim_profile with %d rows", len(df))
    return df


def build_fact_reviews(context) -> pd.DataFrame:
    """One row per review event, joined to its KPI.

    Reviews whose KPI is missing or removed are kept with a null weight
    and zero points so the table still reconciles with the raw data.

    Returns
    -------
    fact_reviews DataFrame with columns:
        review_id, subject_id, reviewer_id, kpi_id, kpi_title, weight,
        met, points, date, month, year
    """
    columns = [
        "review_id", "subject_id", "reviewer_id", "kpi_id", "kpi_title",
        "weight", "met", "points", "date", "month", "year",
    ]
    rows = []
    for review in context.reviews:
        kpi = context.kpi(review.kpi_id)
        if kpi is not None and not kpi.active:
            kpi = None
        rows.append({
            "review_id": review.id,
            "subject_id": review.subject_id,
            "reviewer_id": review.reviewer_id,
            "kpi_id": review.kpi_id,
            "kpi_title": kpi.title if kpi else None,
            "weight": kpi.weight if kpi else None,
            "met": review.met,
            "points": kpi.weight if kpi and review.met else 0,
            "date": review.date,
            "month": review.date.month,
            "year": review.date.year,
        })

    df = pd.DataFrame(rows, columns=columns)
    if df.empty:
        logger.warning("Snapshot has no reviews; fact_reviews is empty")
    else:
        df["date"] = pd.to_datetime(df["date"])
        unresolved = int(df["weight"].isna().sum())
        if unresolved:
            logger.warning("%d review(s) reference missing or removed KPIs", unresolved)

    logger.info("Built fact_reviews with %d rows", len(df))
    return df


def build_fact_period_scores(context, subject_ids, selectors) -> pd.DataFrame:
    """PeriodScores for every (subject, selector) combination.

    Returns
    -------
    fact_period_scores DataFrame with columns:
        subject_id, period, granularity, window_start, window_end, score,
        reviewed_kpi_count, total_kpi_count, has_signal, rating
    """
    columns = [
        "subject_id", "period", "granularity", "window_start", "window_end", "score",
        "reviewed_kpi_count", "total_kpi_count", "has_signal", "rating",
    ]
    subject_ids = list(subject_ids)
    rows = []
    for selector in selectors:
        window = resolve_window(selector)
        for subject_id in subject_ids:
            ps = score_subject(subject_id, window, context.reviews, context.kpis)
            rows.append({
                "subject_id": subject_id,
                "period": window.label,
                "granularity": window.granularity,
                "window_start": ps.window_start,
                "window_end": ps.window_end,
                "score": ps.score,
                "reviewed_kpi_count": ps.reviewed_kpi_count,
                "total_kpi_count": ps.total_kpi_count,
                "has_signal": ps.has_signal,
                "rating": rating_band(ps.score),
            })

    df = pd.DataFrame(rows, columns=columns)
    logger.info("Built fact_period_scores with %d rows", len(df))
    return df


def build_fact_team_scores(context, window) -> pd.DataFrame:
    """One row per director with both team-score variants for `window`.

    Returns
    -------
    fact_team_scores DataFrame with columns:
        director_id, name, accept, member_count, individual_score,
        team_score, team_score_transitive
    """
    columns = [
        "director_id", "name", "accept", "member_count",
        "individual_score", "team_score", "team_score_transitive",
    ]
    args = (window, context.reviews, context.kpis, context.assignments, context.profiles)
    rows = []
    for director in context.directors:
        rows.append({
            "director_id": director.id,
            "name": director.name,
            "accept": director.accept,
            "member_count": len(approved_reports(director.id, context.assignments, context.profiles)),
            "individual_score": context_score(context, director.id, window).score,
            "team_score": team_score(director.id, *args),
            "team_score_transitive": team_score_transitive(director.id, *args),
        })

    df = pd.DataFrame(rows, columns=columns)
    logger.info("Built fact_team_scores with %d rows", len(df))
    return df


# ---------------------------------------------------------------------------
# Series
# ---------------------------------------------------------------------------

def _series_row(selector) -> dict:
    full_month = MONTH_NAMES[selector.month - 1]
    return {
        "month": full_month[:3],
        "full_month": full_month,
        "year": selector.year,
        "display_name": f"{full_month[:3]} {selector.year % 100:02d}",
    }


def monthly_score_series(
    context,
    subject_id: str,
    month,
    year: int,
    count: int = SUBJECT_HISTORY_MONTHS,
) -> pd.DataFrame:
    """Individual scores for the `count` months ending at month/year, oldest first.

    Returns
    -------
    DataFrame with columns: month, full_month, year, display_name, score
    """
    rows = []
    for selector in trailing_months(month, year, count):
        window = month_window(selector.month, selector.year)
        row = _series_row(selector)
        row["score"] = context_score(context, subject_id, window).score
        rows.append(row)
    return pd.DataFrame(rows, columns=["month", "full_month", "year", "display_name", "score"])


def team_trend_series(
    context,
    member_ids,
    month,
    year: int,
    count: int = TEAM_TREND_MONTHS,
) -> pd.DataFrame:
    """Mean individual score of `member_ids` per month, oldest first.

    A month with no members averages to 0.

    Returns
    -------
    DataFrame with columns: month, full_month, year, display_name, avg_score
    """
    member_ids = list(member_ids)
    rows = []
    for selector in trailing_months(month, year, count):
        window = month_window(selector.month, selector.year)
        row = _series_row(selector)
        scores = [context_score(context, mid, window).score for mid in member_ids]
        row["avg_score"] = round_half_up(Fraction(sum(scores), len(scores))) if scores else 0
        rows.append(row)
    return pd.DataFrame(rows, columns=["month", "full_month", "year", "display_name", "avg_score"])
