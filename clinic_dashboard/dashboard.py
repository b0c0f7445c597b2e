"""
Dashboard-ready output functions.

These are the primary entry points for a front end and for the PDF
exporter. Each function takes the scoring snapshot plus the selected
period and returns plain dicts or DataFrames suitable for rendering
cards, charts, and tables. Unapproved staff never appear in member
tables, cohorts, trend series or member counts.
"""

import logging
from fractions import Fraction

import pandas as pd

from .aggregation import organisation_score, team_score, team_score_transitive
from .classify import classify_cohort, classify_trend, rating_band, rating_label, score_distribution
from .config import SUBJECT_HISTORY_MONTHS, TEAM_TREND_MONTHS
from .hierarchy import approved, approved_ids, approved_reports
from .kpis import average_met_rate, kpi_met_rates, kpis_needing_attention
from .models import MonthSelector
from .scoring import context_score, round_half_up
from .transforms import build_fact_team_scores, monthly_score_series, team_trend_series
from .windows import previous_selector, resolve_window, trailing_months

logger = logging.getLogger(__name__)

_MEMBER_COLUMNS = [
    "subject_id", "name", "role", "score", "rating", "rating_label", "has_signal",
    "reviewed_kpi_count", "total_kpi_count", "previous_score",
    "trend_direction", "trend_magnitude",
]


def get_member_scores_table(context, subject_ids, selector) -> pd.DataFrame:
    """One row per approved subject with score, rating and trend vs the prior period.

    Unknown and unapproved ids are dropped. Row order follows `subject_ids`.

    Returns
    -------
    DataFrame with columns:
        subject_id, name, role, score, rating, rating_label, has_signal,
        reviewed_kpi_count, total_kpi_count, previous_score,
        trend_direction, trend_magnitude
    """
    window = resolve_window(selector)
    previous_window = resolve_window(previous_selector(selector))

    rows = []
    for subject_id in approved_ids(subject_ids, context.profiles):
        profile = context.profile(subject_id)
        current = context_score(context, subject_id, window)
        previous = context_score(context, subject_id, previous_window)
        trend = classify_trend([previous.score, current.score])
        rows.append({
            "subject_id": subject_id,
            "name": profile.name,
            "role": profile.role,
            "score": current.score,
            "rating": rating_band(current.score),
            "rating_label": rating_label(current.score),
            "has_signal": current.has_signal,
            "reviewed_kpi_count": current.reviewed_kpi_count,
            "total_kpi_count": current.total_kpi_count,
            "previous_score": previous.score,
            "trend_direction": trend.direction,
            "trend_magnitude": trend.magnitude,
        })

    if not rows:
        logger.warning("No approved subjects to tabulate for %s", window.label)
    return pd.DataFrame(rows, columns=_MEMBER_COLUMNS)


def _cohort_summary(members: pd.DataFrame) -> dict:
    cohort = classify_cohort(zip(members["subject_id"], members["score"]))
    return {
        "top_performers": cohort.top_performers,
        "needs_attention": cohort.needs_attention,
        "distribution": score_distribution(members["score"].tolist()),
    }


def get_director_overview(context, director_id: str, selector) -> dict:
    """Cards, member table and cohorts for one director's team.

    Returns
    -------
    Dict with structure:
    {
        "director_id": "d1",
        "name": "...",
        "period": "March 2024",
        "granularity": "month",
        "individual_score": 80,
        "team_score": 72,
        "team_score_transitive": 70,
        "member_count": 5,
        "members": DataFrame,            # approved direct reports
        "top_performers": ["c1"],
        "needs_attention": ["c3"],
        "distribution": {"excellent": 1, "good": 2, ...},
        "team_trend": DataFrame | None,  # monthly selectors only
    }
    """
    profile = context.profile(director_id)
    if profile is None:
        logger.warning("Unknown director '%s'", director_id)

    window = resolve_window(selector)
    args = (window, context.reviews, context.kpis, context.assignments, context.profiles)
    reports = approved_reports(director_id, context.assignments, context.profiles)
    members = get_member_scores_table(context, reports.all, selector)

    team_trend = None
    if isinstance(selector, MonthSelector):
        team_trend = team_trend_series(
            context, members["subject_id"].tolist(), selector.month, selector.year,
            count=TEAM_TREND_MONTHS,
        )

    overview = {
        "director_id": director_id,
        "name": profile.name if profile else None,
        "period": window.label,
        "granularity": window.granularity,
        "individual_score": context_score(context, director_id, window).score,
        "team_score": team_score(director_id, *args),
        "team_score_transitive": team_score_transitive(director_id, *args),
        "member_count": len(reports),
        "members": members,
        "team_trend": team_trend,
    }
    overview.update(_cohort_summary(members))
    return overview


def get_organisation_overview(context, selector) -> dict:
    """Organisation-wide view: every approved director and clinician.

    Cohorts and the score distribution are computed over approved
    clinicians; directors are summarised through their team scores.

    Returns
    -------
    Dict with structure:
    {
        "period": "March 2024",
        "organisation_score": 74,
        "average_clinician_score": 71,
        "directors": DataFrame,          # fact_team_scores, approved only
        "clinicians": DataFrame,         # member table
        "top_performers": [...],
        "needs_attention": [...],
        "distribution": {...},
        "trend": DataFrame | None,       # monthly selectors only
    }
    """
    window = resolve_window(selector)
    args = (context.reviews, context.kpis, context.assignments, context.profiles)

    directors = build_fact_team_scores(context, window)
    directors = directors[directors["accept"].astype(bool)].reset_index(drop=True)

    clinician_ids = [p.id for p in approved(context.profiles) if p.is_clinician]
    clinicians = get_member_scores_table(context, clinician_ids, selector)

    average = 0
    if not clinicians.empty:
        average = round_half_up(Fraction(int(clinicians["score"].sum()), len(clinicians)))

    trend = None
    if isinstance(selector, MonthSelector):
        rows = []
        for month in trailing_months(selector.month, selector.year, TEAM_TREND_MONTHS):
            month_window = resolve_window(month)
            rows.append({
                "period": month_window.label,
                "avg_score": organisation_score(month_window, *args),
            })
        trend = pd.DataFrame(rows, columns=["period", "avg_score"])

    overview = {
        "period": window.label,
        "organisation_score": organisation_score(window, *args),
        "average_clinician_score": average,
        "directors": directors,
        "clinicians": clinicians,
        "trend": trend,
    }
    overview.update(_cohort_summary(clinicians))
    return overview


def get_subject_history(
    context,
    subject_id: str,
    month,
    year: int,
    count: int = SUBJECT_HISTORY_MONTHS,
) -> dict:
    """Rolling monthly history for one subject with its trend classification."""
    series = monthly_score_series(context, subject_id, month, year, count=count)
    average = 0
    if not series.empty:
        average = round_half_up(Fraction(int(series["score"].sum()), len(series)))
    return {
        "subject_id": subject_id,
        "series": series,
        "trend": classify_trend(series["score"].tolist()),
        "average": average,
    }


def get_kpi_performance_summary(context, selector, subject_ids) -> dict:
    """Per-KPI met rates across approved subjects for the selected period."""
    window = resolve_window(selector)
    subject_ids = approved_ids(subject_ids, context.profiles)
    rates = kpi_met_rates(window, context.reviews, context.kpis, subject_ids)
    return {
        "period": window.label,
        "rates": rates,
        "average_met_rate": average_met_rate(rates),
        "kpis_needing_attention": kpis_needing_attention(rates),
    }


def get_available_periods(context) -> list[MonthSelector]:
    """Months that have at least one review, oldest first, for UI dropdowns."""
    months = sorted({(r.date.year, r.date.month) for r in context.reviews})
    return [MonthSelector(month=m, year=y) for y, m in months]


def get_export_payload(context, selector, director_id: str | None = None) -> dict:
    """Serialisable summary of a frozen period for the PDF exporter.

    Built from the same functions as the on-screen views, so the numbers
    match what the dashboard showed for the same snapshot and period.
    With `director_id` the payload covers that director's team, otherwise
    the whole organisation.
    """
    window = resolve_window(selector)

    if director_id is not None:
        overview = get_director_overview(context, director_id, selector)
        members = overview["members"]
        headline = {
            "scope": "team",
            "director_id": director_id,
            "director_name": overview["name"],
            "score": overview["team_score"],
        }
    else:
        overview = get_organisation_overview(context, selector)
        members = overview["clinicians"]
        headline = {
            "scope": "organisation",
            "score": overview["organisation_score"],
        }

    payload = {
        "period": window.label,
        "granularity": window.granularity,
        "window_start": window.start.isoformat(),
        "window_end": window.end.isoformat(),
        **headline,
        "rating": rating_label(headline["score"]),
        "top_performers": list(overview["top_performers"]),
        "needs_attention": list(overview["needs_attention"]),
        "distribution": dict(overview["distribution"]),
        "members": [
            {
                "id": row.subject_id,
                "name": row.name,
                "role": row.role,
                "score": int(row.score),
                "rating": row.rating_label,
                "kpis_reviewed": int(row.reviewed_kpi_count),
                "kpis_total": int(row.total_kpi_count),
            }
            for row in members.itertuples(index=False)
        ],
    }
    logger.info("Prepared export payload for %s (%s)", window.label, headline["scope"])
    return payload
