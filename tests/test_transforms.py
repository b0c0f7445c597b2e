import pandas as pd

from clinic_dashboard.models import MonthSelector, ScoringContext, WeekSelector
from clinic_dashboard.transforms import (
    build_dim_profile,
    build_fact_period_scores,
    build_fact_reviews,
    build_fact_team_scores,
    monthly_score_series,
    team_trend_series,
)


# ----------------------------------------------------------------------
# Fact and dimension tables
# ----------------------------------------------------------------------

def test_dim_profile(team):
    df = build_dim_profile(team)
    assert len(df) == 7
    by_id = df.set_index("profile_id")
    assert by_id.loc["C3", "supervisor_id"] == "D2"
    assert pd.isna(by_id.loc["D", "supervisor_id"])
    assert not by_id.loc["C4", "accept"]


def test_fact_reviews_keeps_unresolved_rows(kpis, make_review):
    context = ScoringContext(
        kpis=kpis,
        reviews=[
            make_review("S", "k1", True),
            make_review("S", "k-old", True),
            make_review("S", "missing", False),
        ],
    )
    df = build_fact_reviews(context)
    assert len(df) == 3
    assert df["points"].tolist() == [10, 0, 0]
    assert df["weight"].isna().tolist() == [False, True, True]
    assert pd.api.types.is_datetime64_any_dtype(df["date"])
    assert df["month"].tolist() == [3, 3, 3]


def test_fact_reviews_empty_snapshot():
    df = build_fact_reviews(ScoringContext())
    assert df.empty
    assert "review_id" in df.columns


def test_fact_period_scores(team):
    selectors = [MonthSelector(month=2, year=2024), MonthSelector(month=3, year=2024)]
    df = build_fact_period_scores(team, ["C1", "C2"], selectors)
    assert len(df) == 4
    assert df["period"].tolist() == ["February 2024", "February 2024", "March 2024", "March 2024"]
    march_c1 = df[(df["period"] == "March 2024") & (df["subject_id"] == "C1")].iloc[0]
    assert march_c1["score"] == 90
    assert march_c1["rating"] == "excellent"
    assert not df[df["period"] == "February 2024"]["has_signal"].any()


def test_fact_period_scores_weekly(team):
    df = build_fact_period_scores(team, ["C3"], [WeekSelector(year=2024, week=11)])
    assert df.iloc[0]["granularity"] == "week"
    assert df.iloc[0]["score"] == 100


def test_fact_team_scores(team, march):
    df = build_fact_team_scores(team, march).set_index("director_id")
    assert df.loc["D", "member_count"] == 3
    assert df.loc["D", "individual_score"] == 0
    assert df.loc["D", "team_score"] == 50
    assert df.loc["D", "team_score_transitive"] == 63
    assert df.loc["D2", "individual_score"] == 60
    # C4 is not approved
    assert df.loc["D2", "member_count"] == 1
    assert df.loc["D2", "team_score"] == 100
    assert df.loc["D2", "team_score_transitive"] == 100


# ----------------------------------------------------------------------
# Series
# ----------------------------------------------------------------------

def test_monthly_score_series(team):
    df = monthly_score_series(team, "C1", "March", 2024)
    assert len(df) == 12
    assert df.iloc[0]["display_name"] == "Apr 23"
    assert df.iloc[-1]["display_name"] == "Mar 24"
    assert df.iloc[-1]["full_month"] == "March"
    assert df["score"].tolist() == [0] * 11 + [90]


def test_team_trend_series(team):
    df = team_trend_series(team, ["C1", "C2", "D2"], 3, 2024, count=2)
    assert df["avg_score"].tolist() == [0, 50]
    assert df["month"].tolist() == ["Feb", "Mar"]


def test_team_trend_series_without_members(team):
    df = team_trend_series(team, [], 3, 2024)
    assert len(df) == 6
    assert (df["avg_score"] == 0).all()
