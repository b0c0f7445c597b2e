"""
Loader for a dashboard snapshot exported to Excel.

The workbook carries one sheet per entity: Profiles, KPIs, Assignments,
Reviews. Each sheet has a single header row (detected by signature, so
title rows above it are tolerated) followed by one record per row.
Column labels follow the data-store export (`met_check`, `clinician`,
`director`, `is_removed`, ...) or the canonical names; both map through
config.SNAPSHOT_SHEETS.
"""

import logging
from contextlib import contextmanager

import openpyxl
import pandas as pd

from ..config import SNAPSHOT_SHEETS
from ..models import Assignment, Kpi, Profile, ReviewEvent, ScoringContext
from .utils import clean_str, find_header_row, normalise_date, parse_bool, safe_int, to_snake_case

logger = logging.getLogger(__name__)

_COLUMNS = {
    "Profiles": ["id", "name", "username", "role", "accept", "created_at"],
    "KPIs": ["id", "title", "description", "weight", "floor", "removed"],
    "Assignments": ["supervisor_id", "subordinate_id"],
    "Reviews": ["id", "subject_id", "kpi_id", "reviewer_id", "met", "notes", "plan", "date"],
}


@contextmanager
def _workbook(path: str):
    """Open the snapshot workbook once and close it when the block exits."""
    try:
        wb = openpyxl.load_workbook(path, data_only=True, read_only=False)
    except Exception:
        logger.exception("Failed to open snapshot workbook: %s", path)
        raise
    try:
        yield wb
    finally:
        wb.close()


def _read_sheet(wb, sheet_name: str, source: str) -> pd.DataFrame:
    """Read one entity sheet of an open workbook into a DataFrame with
    canonical column names. `source` only labels log and error messages."""
    if sheet_name not in wb.sheetnames:
        raise ValueError(f"Sheet '{sheet_name}' not found in {source}")

    ws = wb[sheet_name]
    column_map = SNAPSHOT_SHEETS[sheet_name]
    header_row = find_header_row(ws, set(column_map))
    if header_row is None:
        raise ValueError(f"No header row found in sheet '{sheet_name}' of {source}")

    # Map column index (1-based) -> canonical column name; first match wins
    col_map: dict[int, str] = {}
    for cell in ws[header_row]:
        if cell.value is None:
            continue
        canonical = column_map.get(to_snake_case(cell.value))
        if canonical and canonical not in col_map.values():
            col_map[cell.column] = canonical

    rows = []
    for row_idx in range(header_row + 1, ws.max_row + 1):
        record = {
            name: ws.cell(row=row_idx, column=col_idx).value
            for col_idx, name in col_map.items()
        }
        if all(v is None for v in record.values()):
            continue
        rows.append(record)

    if not rows:
        logger.warning("No rows extracted from sheet '%s' of %s", sheet_name, source)

    df = pd.DataFrame(rows, columns=_COLUMNS[sheet_name])
    logger.info("Loaded %d %s rows from %s", len(df), sheet_name, source)
    return df


def _profiles_frame(wb, source: str) -> pd.DataFrame:
    df = _read_sheet(wb, "Profiles", source)
    df["accept"] = df["accept"].map(parse_bool).astype(bool)
    df["created_at"] = df["created_at"].map(normalise_date)
    df["role"] = df["role"].map(lambda v: (clean_str(v) or "").lower())
    return df


def _kpis_frame(wb, source: str) -> pd.DataFrame:
    df = _read_sheet(wb, "KPIs", source)
    df["weight"] = df["weight"].map(safe_int)
    df["removed"] = df["removed"].map(parse_bool).astype(bool)
    return df


def _assignments_frame(wb, source: str) -> pd.DataFrame:
    return _read_sheet(wb, "Assignments", source)


def _reviews_frame(wb, source: str) -> pd.DataFrame:
    df = _read_sheet(wb, "Reviews", source)
    df["met"] = df["met"].map(parse_bool).astype(bool)
    df["date"] = df["date"].map(normalise_date)
    return df


def load_profiles(path: str) -> pd.DataFrame:
    """Profiles sheet: id, name, username, role, accept, created_at."""
    with _workbook(path) as wb:
        return _profiles_frame(wb, path)


def load_kpis(path: str) -> pd.DataFrame:
    """KPIs sheet: id, title, description, weight, floor, removed."""
    with _workbook(path) as wb:
        return _kpis_frame(wb, path)


def load_assignments(path: str) -> pd.DataFrame:
    """Assignments sheet: supervisor_id, subordinate_id."""
    with _workbook(path) as wb:
        return _assignments_frame(wb, path)


def load_reviews(path: str) -> pd.DataFrame:
    """Reviews sheet: id, subject_id, kpi_id, reviewer_id, met, notes, plan, date."""
    with _workbook(path) as wb:
        return _reviews_frame(wb, path)


# ---------------------------------------------------------------------------
# DataFrame -> records
# ---------------------------------------------------------------------------

def _records(df: pd.DataFrame, build, entity: str) -> list:
    """Build validated records row by row, skipping rows that fail validation."""
    records = []
    skipped = 0
    for row in df.to_dict("records"):
        try:
            records.append(build(row))
        except (TypeError, ValueError) as exc:
            skipped += 1
            logger.warning("Skipping %s row %s: %s", entity, row.get("id", row), exc)
    if skipped:
        logger.warning("Skipped %d invalid %s row(s)", skipped, entity)
    return records


def _profile(row: dict) -> Profile:
    created_at = row.get("created_at")
    return Profile(
        id=clean_str(row["id"]),
        name=clean_str(row["name"]) or "",
        username=clean_str(row.get("username")),
        role=row["role"],
        accept=bool(row["accept"]),
        created_at=None if created_at is None or pd.isna(created_at) else created_at.to_pydatetime(),
    )


def _kpi(row: dict) -> Kpi:
    weight = row["weight"]
    return Kpi(
        id=clean_str(row["id"]),
        title=clean_str(row["title"]) or "",
        description=clean_str(row.get("description")) or "",
        weight=None if weight is None or pd.isna(weight) else int(weight),
        floor=clean_str(row.get("floor")) or "",
        removed=bool(row["removed"]),
    )


def _assignment(row: dict) -> Assignment:
    return Assignment(
        supervisor_id=clean_str(row["supervisor_id"]),
        subordinate_id=clean_str(row["subordinate_id"]),
    )


def _review(row: dict) -> ReviewEvent:
    reviewed_at = row["date"]
    return ReviewEvent(
        id=clean_str(row["id"]),
        subject_id=clean_str(row["subject_id"]),
        kpi_id=clean_str(row["kpi_id"]),
        reviewer_id=clean_str(row.get("reviewer_id")),
        met=bool(row["met"]),
        notes=clean_str(row.get("notes")),
        plan=clean_str(row.get("plan")),
        date=None if reviewed_at is None or pd.isna(reviewed_at) else reviewed_at.to_pydatetime(),
    )


def build_context(
    profiles_df: pd.DataFrame,
    kpis_df: pd.DataFrame,
    assignments_df: pd.DataFrame,
    reviews_df: pd.DataFrame,
) -> ScoringContext:
    """Validate loaded DataFrames into a ScoringContext."""
    return ScoringContext(
        profiles=_records(profiles_df, _profile, "profile"),
        kpis=_records(kpis_df, _kpi, "KPI"),
        assignments=_records(assignments_df, _assignment, "assignment"),
        reviews=_records(reviews_df, _review, "review"),
    )


def load_snapshot(path: str) -> ScoringContext:
    """Load all four entity sheets from one open workbook and return a
    validated ScoringContext."""
    with _workbook(path) as wb:
        frames = (
            _profiles_frame(wb, path),
            _kpis_frame(wb, path),
            _assignments_frame(wb, path),
            _reviews_frame(wb, path),
        )
    context = build_context(*frames)
    logger.info(
        "Snapshot %s: %d profiles, %d KPIs, %d assignments, %d reviews",
        path, len(context.profiles), len(context.kpis),
        len(context.assignments), len(context.reviews),
    )
    return context
