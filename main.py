"""
Clinical Staff Performance — End-to-end scoring pipeline.

Builds a scoring snapshot (from the Excel export if present, otherwise
simulated), runs every engine layer over it and prints smoke-test
summaries.

Usage:
    python main.py
"""

import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent))

from clinic_dashboard.config import ORGANISATION_NAME, SNAPSHOT_FILE
from clinic_dashboard.loaders import load_snapshot
from clinic_dashboard.models import WeekSelector
from clinic_dashboard.simulator import generate_snapshot
from clinic_dashboard.transforms import (
    build_dim_profile,
    build_fact_reviews,
    build_fact_period_scores,
    build_fact_team_scores,
)
from clinic_dashboard.aggregation import team_score_transitive
from clinic_dashboard.classify import classify_trend
from clinic_dashboard.dashboard import (
    get_available_periods,
    get_director_overview,
    get_export_payload,
    get_kpi_performance_summary,
    get_organisation_overview,
    get_subject_history,
)
from clinic_dashboard.windows import resolve_window

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def main() -> None:
    """Run the full scoring pipeline and print smoke-test outputs."""

    print("=" * 70)
    print(f"  {ORGANISATION_NAME.upper()} — Scoring Engine")
    print("  Pipeline Smoke Test")
    print("=" * 70)
    print()

    # ------------------------------------------------------------------
    # 1. Load snapshot
    # ------------------------------------------------------------------
    print("[ 1 ] LOADING SNAPSHOT")
    print("-" * 40)

    if SNAPSHOT_FILE.exists():
        context = load_snapshot(str(SNAPSHOT_FILE))
        print(f"\nLoaded snapshot from {SNAPSHOT_FILE.name}")
    else:
        logger.warning("%s not found; using simulated snapshot", SNAPSHOT_FILE.name)
        context = generate_snapshot()
        print("\nUsing simulated snapshot")

    print(
        f"  {len(context.profiles)} profiles | {len(context.kpis)} KPIs | "
        f"{len(context.assignments)} assignments | {len(context.reviews)} reviews"
    )

    periods = get_available_periods(context)
    if not periods:
        print("\nNo reviews in snapshot — nothing to score.")
        return
    selector = periods[-1]
    window = resolve_window(selector)
    print(f"\nAvailable periods: {[resolve_window(p).label for p in periods]}")
    print(f"Selected period: {window.label}")

    # ------------------------------------------------------------------
    # 2. Fact & dimension tables
    # ------------------------------------------------------------------
    print("\n")
    print("[ 2 ] BUILDING FACT & DIMENSION TABLES")
    print("-" * 40)

    dim_profile = build_dim_profile(context)
    print(f"\ndim_profile: {len(dim_profile)} rows")
    print(dim_profile[["profile_id", "name", "role", "accept", "supervisor_id"]].to_string(index=False))

    fact_reviews = build_fact_reviews(context)
    print(f"\nfact_reviews: {len(fact_reviews)} rows")
    if not fact_reviews.empty:
        print(fact_reviews.head(10).to_string(index=False))

    scored_ids = [p.id for p in context.profiles if p.role in ("clinician", "director")]
    fact_scores = build_fact_period_scores(context, scored_ids, periods)
    print(f"\nfact_period_scores: {len(fact_scores)} rows")
    print(fact_scores[fact_scores["period"] == window.label].to_string(index=False))

    fact_teams = build_fact_team_scores(context, window)
    print(f"\nfact_team_scores — {window.label}:")
    print(fact_teams.to_string(index=False))

    # ------------------------------------------------------------------
    # 3. Dashboard outputs
    # ------------------------------------------------------------------
    print("\n")
    print("[ 3 ] DASHBOARD OUTPUTS")
    print("-" * 40)

    org = get_organisation_overview(context, selector)
    print(f"\nOrganisation score: {org['organisation_score']}%")
    print(f"Average clinician score: {org['average_clinician_score']}%")
    print(f"Top performers: {org['top_performers']}")
    print(f"Needs attention: {org['needs_attention']}")
    print(f"Distribution: {org['distribution']}")

    for director in context.directors:
        overview = get_director_overview(context, director.id, selector)
        print(
            f"\n  {overview['name']:16s} | team {overview['team_score']:3d}% "
            f"| transitive {overview['team_score_transitive']:3d}% "
            f"| members {overview['member_count']}"
        )
        if not overview["members"].empty:
            print(overview["members"][["name", "score", "rating_label", "trend_direction"]].to_string(index=False))

    first_clinician = next((p for p in context.clinicians if p.accept), None)
    if first_clinician is not None:
        history = get_subject_history(context, first_clinician.id, selector.month, selector.year)
        print(f"\nHistory — {first_clinician.name}:")
        print(history["series"][["display_name", "score"]].to_string(index=False))
        print(f"  Trend: {history['trend'].direction} ({history['trend'].magnitude})")

    kpi_summary = get_kpi_performance_summary(
        context, selector, [p.id for p in context.clinicians]
    )
    print(f"\nKPI met rates — {kpi_summary['period']}:")
    if not kpi_summary["rates"].empty:
        print(kpi_summary["rates"][["title", "review_count", "met_count", "met_pct"]].to_string(index=False))
    print(f"  Average met rate: {kpi_summary['average_met_rate']}%")
    print(f"  KPIs below threshold: {kpi_summary['kpis_needing_attention']}")

    week = WeekSelector(year=window.start.year, week=1)
    week_window = resolve_window(week)
    print(f"\nWeekly window check: {week_window.label} -> {week_window.start:%Y-%m-%d} .. {week_window.end:%Y-%m-%d}")

    # ------------------------------------------------------------------
    # 4. Acceptance checks
    # ------------------------------------------------------------------
    print("\n")
    print("[ 4 ] ACCEPTANCE CRITERIA CHECKS")
    print("-" * 40)

    # Check 1: every score is an integer in [0, 100]
    check1 = fact_scores["score"].between(0, 100).all()
    print(f"\n  [{'PASS' if check1 else 'FAIL'}] All period scores within 0-100")

    # Check 2: export payload matches the on-screen organisation score
    payload = get_export_payload(context, selector)
    check2 = payload["score"] == org["organisation_score"]
    print(f"  [{'PASS' if check2 else 'FAIL'}] Export score {payload['score']} matches dashboard")

    # Check 3: transitive team score terminates for every director
    args = (window, context.reviews, context.kpis, context.assignments, context.profiles)
    check3 = all(0 <= team_score_transitive(d.id, *args) <= 100 for d in context.directors)
    print(f"  [{'PASS' if check3 else 'FAIL'}] Transitive team scores bounded")

    # Check 4: trend classifier spot checks
    check4 = (
        classify_trend([70, 60]).direction == "down"
        and classify_trend([60, 70]).direction == "up"
        and classify_trend([80, 81]).direction == "stable"
    )
    print(f"  [{'PASS' if check4 else 'FAIL'}] Trend classifier spot checks")

    # Check 5: 2024 week 1 starts on Monday 1 January
    w1 = resolve_window(WeekSelector(year=2024, week=1))
    check5 = w1.start.strftime("%Y-%m-%d") == "2024-01-01"
    print(f"  [{'PASS' if check5 else 'FAIL'}] 2024 week 1 starts {w1.start:%Y-%m-%d}")

    print("\n" + "=" * 70)
    print("  Pipeline complete.")
    print("=" * 70)


if __name__ == "__main__":
    main()
