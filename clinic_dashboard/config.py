"""
Configuration: score thresholds, rating bands, calendar names, file paths.

RATING_BANDS maps each band name to the minimum score it covers and its
display label. Bands are checked from the highest minimum downwards.
"""

from pathlib import Path

# ---------------------------------------------------------------------------
# File paths: adjust these if the snapshot export moves
# ---------------------------------------------------------------------------
DATA_DIR = Path(__file__).resolve().parent.parent

SNAPSHOT_FILE = DATA_DIR / "dashboard_snapshot.xlsx"

# ---------------------------------------------------------------------------
# Organisation identity
# ---------------------------------------------------------------------------
ORGANISATION_NAME = "Clinical Staff Performance"

# ---------------------------------------------------------------------------
# Score thresholds
# ---------------------------------------------------------------------------
TOP_PERFORMER_MIN = 90
NEEDS_ATTENTION_BELOW = 70

# Differences between consecutive periods smaller than this are "stable"
TREND_STABLE_BELOW = 2

# ---------------------------------------------------------------------------
# Rating bands
# ---------------------------------------------------------------------------
# min_score: inclusive lower bound
# label: display label used on cards and in PDF exports
RATING_BANDS: dict[str, dict] = {
    "excellent": {
        "min_score": 90,
        "label": "Excellent",
    },
    "good": {
        "min_score": 80,
        "label": "Good",
    },
    "average": {
        "min_score": 70,
        "label": "Average",
    },
    "needs_improvement": {
        "min_score": 0,
        "label": "Needs Improvement",
    },
}

# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
ROLES = ("clinician", "director", "admin", "super-admin")

# Roles whose members are scored and can appear under a director
SCORED_ROLES = ("clinician", "director")

KPI_WEIGHT_MIN = 1
KPI_WEIGHT_MAX = 20

# ---------------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------------
MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

MIN_YEAR = 1
MAX_YEAR = 9998

# Rolling series lengths used by the dashboard
SUBJECT_HISTORY_MONTHS = 12
TEAM_TREND_MONTHS = 6

# ---------------------------------------------------------------------------
# Snapshot workbook layout
# ---------------------------------------------------------------------------
# sheet name -> raw header label -> canonical column name
SNAPSHOT_SHEETS: dict[str, dict[str, str]] = {
    "Profiles": {
        "id": "id",
        "name": "name",
        "username": "username",
        "role": "role",
        "accept": "accept",
        "created_at": "created_at",
    },
    "KPIs": {
        "id": "id",
        "title": "title",
        "description": "description",
        "weight": "weight",
        "floor": "floor",
        "is_removed": "removed",
        "removed": "removed",
    },
    "Assignments": {
        "director": "supervisor_id",
        "supervisor_id": "supervisor_id",
        "clinician": "subordinate_id",
        "subordinate_id": "subordinate_id",
    },
    "Reviews": {
        "id": "id",
        "clinician": "subject_id",
        "subject_id": "subject_id",
        "kpi": "kpi_id",
        "kpi_id": "kpi_id",
        "director": "reviewer_id",
        "reviewer_id": "reviewer_id",
        "met_check": "met",
        "met": "met",
        "notes": "notes",
        "plan": "plan",
        "date": "date",
    },
}
