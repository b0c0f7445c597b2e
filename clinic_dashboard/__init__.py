"""
Clinical Staff Performance — scoring and aggregation engine

Turns weighted KPI review events into percentage scores for clinicians
and directors, rolls them up the supervision hierarchy, and classifies
the results for dashboards and PDF exports.

To score a period:
    Build a ScoringContext from the current profiles, KPIs, assignments
    and reviews (loaders.load_snapshot reads an Excel export), resolve
    the selected month or week with windows.resolve_window, then call
    scoring.score_subject or aggregation.team_score.

To connect to a front end:
    Call dashboard.get_director_overview(context, director_id, selector)
    or dashboard.get_organisation_overview(context, selector) to get plain
    dicts and DataFrames for cards, trend charts and member tables.

To change thresholds or rating bands:
    Edit config.TOP_PERFORMER_MIN, config.NEEDS_ATTENTION_BELOW and
    config.RATING_BANDS.
"""

from .models import (
    Assignment,
    Kpi,
    MonthSelector,
    PeriodScore,
    Profile,
    ReviewEvent,
    ScoringContext,
    WeekSelector,
    Window,
)

__all__ = [
    "Assignment",
    "Kpi",
    "MonthSelector",
    "PeriodScore",
    "Profile",
    "ReviewEvent",
    "ScoringContext",
    "WeekSelector",
    "Window",
]
