"""
Window resolution: month and week selectors to half-open date ranges.

Weeks follow a "first Monday" calendar. Week 1 starts on the Monday
on-or-before Jan 1 when Jan 1 falls Monday..Thursday, otherwise on the
first Monday after Jan 1 (a Sunday Jan 1 counts as on-or-before, so its
week 1 starts on Jan 2). Weeks then run in consecutive 7-day blocks.
"""

import logging
from datetime import date, datetime, timedelta

from .config import MAX_YEAR, MIN_YEAR, MONTH_NAMES
from .models import MonthSelector, WeekSelector, Window

logger = logging.getLogger(__name__)

_MONTH_LOOKUP = {name.lower(): i for i, name in enumerate(MONTH_NAMES, start=1)}
_MONTH_LOOKUP.update({name[:3].lower(): i for i, name in enumerate(MONTH_NAMES, start=1)})


def _check_int(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    return value


def _check_year(year) -> int:
    _check_int(year, "year")
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise ValueError(f"year must be between {MIN_YEAR} and {MAX_YEAR}, got {year}")
    return year


def month_number(month: int | str) -> int:
    """Return 1-12 for a month given as a number, full name or 3-letter name."""
    if isinstance(month, str):
        key = month.strip().lower()
        if key not in _MONTH_LOOKUP:
            raise ValueError(f"Unknown month name: {month!r}")
        return _MONTH_LOOKUP[key]
    _check_int(month, "month")
    if not 1 <= month <= 12:
        raise ValueError(f"month must be between 1 and 12, got {month}")
    return month


def month_name(month: int | str) -> str:
    return MONTH_NAMES[month_number(month) - 1]


# ---------------------------------------------------------------------------
# Week calendar
# ---------------------------------------------------------------------------

def _jan1_weekday(year: int) -> int:
    """Weekday of Jan 1 with 0=Sunday .. 6=Saturday."""
    return (date(year, 1, 1).weekday() + 1) % 7


def week_anchor(year: int) -> date:
    """Start date of week 1 of `year` (may fall in the previous year)."""
    _check_year(year)
    jan1_day = _jan1_weekday(year)
    if jan1_day <= 4:
        offset = 1 - jan1_day
    else:
        offset = 8 - jan1_day
    return date(year, 1, 1) + timedelta(days=offset)


def weeks_in_year(year: int) -> int:
    """Number of weeks whose start date falls on or before Dec 31 of `year`."""
    anchor = week_anchor(year)
    return (date(year, 12, 31) - anchor).days // 7 + 1


def week_start(year: int, week: int) -> date | None:
    """Start date of `week`, or None when the week number is out of range."""
    _check_int(week, "week")
    if not 1 <= week <= weeks_in_year(year):
        return None
    return week_anchor(year) + timedelta(days=(week - 1) * 7)


def current_week(today: date | None = None) -> tuple[int, int]:
    """Return (year, week) containing `today`. Never returns a week below 1."""
    if today is None:
        today = date.today()
    if isinstance(today, datetime):
        today = today.date()
    anchor = week_anchor(today.year)
    week = (today - anchor).days // 7 + 1
    return today.year, max(1, week)


def month_of_week(year: int, week: int) -> int | None:
    """Calendar month (1-12) containing the week's start date."""
    start = week_start(year, week)
    if start is None:
        return None
    return start.month


def weeks_in_month(year: int, month: int | str) -> list[int]:
    """Week numbers of `year` whose 7-day span overlaps the calendar month."""
    month = month_number(month)
    first = date(_check_year(year), month, 1)
    if month == 12:
        last = date(year, 12, 31)
    else:
        last = date(year, month + 1, 1) - timedelta(days=1)

    weeks = []
    anchor = week_anchor(year)
    for week in range(1, weeks_in_year(year) + 1):
        start = anchor + timedelta(days=(week - 1) * 7)
        end = start + timedelta(days=6)
        if start <= last and end >= first:
            weeks.append(week)
    return weeks


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def month_window(month: int | str, year: int) -> Window:
    month = month_number(month)
    _check_year(year)
    start = datetime(year, month, 1)
    if month == 12:
        end = datetime(year + 1, 1, 1)
    else:
        end = datetime(year, month + 1, 1)
    return Window(start, end, granularity="month", label=f"{MONTH_NAMES[month - 1]} {year}")


def week_window(year: int, week: int) -> Window:
    start = week_start(year, week)
    label = f"Week {week}, {year}"
    if start is None:
        logger.warning("Week %s is out of range for %s; resolving to an empty window", week, year)
        anchor = datetime.combine(week_anchor(year), datetime.min.time())
        return Window(anchor, anchor, granularity="week", label=label)

    start_dt = datetime.combine(start, datetime.min.time())
    return Window(start_dt, start_dt + timedelta(days=7), granularity="week", label=label)


def resolve_window(selector: MonthSelector | WeekSelector) -> Window:
    """Convert a month or week selector into an absolute half-open Window.

    Out-of-range week numbers never raise: they resolve to an empty
    window that matches no review. Any other malformed selector raises.
    """
    if isinstance(selector, MonthSelector):
        return month_window(selector.month, selector.year)
    if isinstance(selector, WeekSelector):
        return week_window(selector.year, selector.week)
    raise TypeError(
        f"selector must be a MonthSelector or WeekSelector, got {type(selector).__name__}"
    )


def previous_selector(selector: MonthSelector | WeekSelector) -> MonthSelector | WeekSelector:
    """The period immediately before `selector`, crossing year boundaries."""
    if isinstance(selector, MonthSelector):
        return trailing_months(selector.month, selector.year, 2)[0]
    if isinstance(selector, WeekSelector):
        _check_int(selector.week, "week")
        if selector.week > 1:
            return WeekSelector(year=selector.year, week=selector.week - 1)
        year = _check_year(selector.year - 1)
        return WeekSelector(year=year, week=weeks_in_year(year))
    raise TypeError(
        f"selector must be a MonthSelector or WeekSelector, got {type(selector).__name__}"
    )


def trailing_months(month: int | str, year: int, count: int) -> list[MonthSelector]:
    """The `count` months ending at (and including) month/year, oldest first."""
    month = month_number(month)
    _check_year(year)
    _check_int(count, "count")

    selectors = []
    for back in range(count - 1, -1, -1):
        index = (year * 12 + (month - 1)) - back
        selectors.append(MonthSelector(month=index % 12 + 1, year=index // 12))
    return selectors
