"""
Shared utilities for snapshot ingestion: header detection, date
normalisation, header-label normalisation and cell coercion.
"""

import logging
import re
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)

_EXCEL_EPOCH = pd.Timestamp("1899-12-30")

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_NON_ALNUM = re.compile(r"[^0-9a-z]+")

_TRUE_STRINGS = {"true", "t", "yes", "y", "1", "met", "approved"}
_FALSE_STRINGS = {"false", "f", "no", "n", "0", "not met", "pending", ""}


def _is_blank(val: Any) -> bool:
    return val is None or (isinstance(val, float) and pd.isna(val))


def normalise_date(val: Any) -> pd.Timestamp | None:
    """Convert an Excel serial number, ISO string or datetime to a naive pd.Timestamp.

    Serial numbers count days from the 1899-12-30 epoch; the fractional
    part is the time of day. Timezone-aware values are shifted to UTC and
    made naive so they compare with the rest of the snapshot. Returns None
    for blanks and unparseable values.
    """
    if _is_blank(val):
        return None
    if isinstance(val, (int, float)) and not isinstance(val, bool):
        try:
            return _EXCEL_EPOCH + pd.Timedelta(days=float(val))
        except (ValueError, OverflowError):
            logger.warning("Serial date %s is out of range", val)
            return None
    try:
        ts = pd.Timestamp(val)
    except (ValueError, TypeError):
        logger.warning("Unparseable date cell: %r", val)
        return None
    if pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts


def to_snake_case(name: Any) -> str:
    """Normalise a header label so 'Met Check', 'isRemoved' and 'created-at'
    all compare equal to the export's snake_case column names."""
    spaced = _CAMEL_BOUNDARY.sub("_", str(name).strip())
    return _NON_ALNUM.sub("_", spaced.lower()).strip("_")


def find_header_row(
    sheet,
    signature: set[str],
    max_rows: int = 20,
) -> int | None:
    """Locate the header row of an openpyxl sheet.

    Returns the 1-based index of the first row within `max_rows` where at
    least two normalised labels appear in `signature`, or None.
    """
    rows = sheet.iter_rows(min_row=1, max_row=max_rows, values_only=True)
    for row_idx, values in enumerate(rows, start=1):
        labels = {to_snake_case(v) for v in values if v is not None}
        if len(labels & signature) >= 2:
            return row_idx
    return None


def clean_str(val: Any) -> str | None:
    """Strip a cell value to a string; blanks and NaN become None."""
    if _is_blank(val):
        return None
    if isinstance(val, float) and val.is_integer():
        # ids exported from numeric columns come back as 12.0
        val = int(val)
    s = str(val).strip()
    return s or None


def safe_int(val: Any) -> int | None:
    """Integral value of a cell, or None for blanks, formulas and fractions."""
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, str):
        val = val.strip()
        if not val or val.startswith("="):
            return None
    try:
        number = float(val)
    except (ValueError, TypeError):
        return None
    if pd.isna(number) or not number.is_integer():
        return None
    return int(number)


def parse_bool(val: Any, default: bool = False) -> bool:
    """Interpret spreadsheet booleans: TRUE/FALSE, yes/no, 1/0, met/not met."""
    if _is_blank(val):
        return default
    if isinstance(val, bool):
        return val
    if isinstance(val, (int, float)):
        return val != 0
    s = str(val).strip().lower()
    if s in _TRUE_STRINGS:
        return True
    if s in _FALSE_STRINGS:
        return False
    logger.warning("Unrecognised boolean value %r; using %s", val, default)
    return default
