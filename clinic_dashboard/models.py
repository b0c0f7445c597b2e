"""
Validated record types for the scoring engine.

Every entity the engine reads (KPI, profile, assignment, review event)
is a frozen dataclass checked on construction, so missing or malformed
fields fail at the boundary instead of surfacing as silent lookups deep
inside a score calculation.

ScoringContext bundles one immutable snapshot of all four collections.
It is the only place id lookups live; nothing is cached at module level.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from .config import KPI_WEIGHT_MAX, KPI_WEIGHT_MIN, ROLES

logger = logging.getLogger(__name__)


def _require_str(value, name: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str, got {type(value).__name__}")
    if not value:
        raise ValueError(f"{name} must not be empty")
    return value


def as_datetime(value, name: str = "date") -> datetime:
    """Return `value` as a naive datetime; dates become midnight.

    Timezone-aware values are shifted to UTC and made naive, the same
    normalisation snapshot ingestion applies, so every comparison between
    review dates and window bounds is naive against naive.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    raise TypeError(f"{name} must be a date or datetime, got {type(value).__name__}")


def as_tuple(items, item_type: type, name: str) -> tuple:
    """Materialise an iterable of records, rejecting None and stray types."""
    if items is None:
        raise TypeError(f"{name} must be an iterable of {item_type.__name__}, got None")
    if isinstance(items, (str, bytes)) or not isinstance(items, Iterable):
        raise TypeError(f"{name} must be an iterable of {item_type.__name__}")
    result = tuple(items)
    for item in result:
        if not isinstance(item, item_type):
            raise TypeError(
                f"{name} must contain only {item_type.__name__}, got {type(item).__name__}"
            )
    return result


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Kpi:
    id: str
    title: str
    weight: int
    description: str = ""
    floor: str = ""
    removed: bool = False

    def __post_init__(self):
        _require_str(self.id, "Kpi.id")
        if isinstance(self.weight, bool) or not isinstance(self.weight, int):
            raise TypeError(f"Kpi.weight must be an int, got {type(self.weight).__name__}")
        if not KPI_WEIGHT_MIN <= self.weight <= KPI_WEIGHT_MAX:
            raise ValueError(
                f"Kpi.weight must be between {KPI_WEIGHT_MIN} and {KPI_WEIGHT_MAX}, "
                f"got {self.weight}"
            )

    @property
    def active(self) -> bool:
        return not self.removed


@dataclass(frozen=True)
class Profile:
    id: str
    name: str
    role: str
    accept: bool = False
    username: str | None = None
    created_at: datetime | None = None

    def __post_init__(self):
        _require_str(self.id, "Profile.id")
        if self.role not in ROLES:
            raise ValueError(f"Profile.role must be one of {ROLES}, got {self.role!r}")

    @property
    def is_director(self) -> bool:
        return self.role == "director"

    @property
    def is_clinician(self) -> bool:
        return self.role == "clinician"


@dataclass(frozen=True)
class Assignment:
    """Supervision edge: `supervisor_id` supervises `subordinate_id`."""

    supervisor_id: str
    subordinate_id: str

    def __post_init__(self):
        _require_str(self.supervisor_id, "Assignment.supervisor_id")
        _require_str(self.subordinate_id, "Assignment.subordinate_id")


@dataclass(frozen=True)
class ReviewEvent:
    id: str
    subject_id: str
    kpi_id: str
    met: bool
    date: datetime
    reviewer_id: str | None = None
    notes: str | None = None
    plan: str | None = None

    def __post_init__(self):
        _require_str(self.id, "ReviewEvent.id")
        _require_str(self.subject_id, "ReviewEvent.subject_id")
        _require_str(self.kpi_id, "ReviewEvent.kpi_id")
        if not isinstance(self.met, bool):
            raise TypeError(f"ReviewEvent.met must be a bool, got {type(self.met).__name__}")
        object.__setattr__(self, "date", as_datetime(self.date, "ReviewEvent.date"))


# ---------------------------------------------------------------------------
# Windows and selectors
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MonthSelector:
    month: int | str
    year: int


@dataclass(frozen=True)
class WeekSelector:
    year: int
    week: int


@dataclass(frozen=True)
class Window:
    """Half-open date range [start, end). start == end matches nothing."""

    start: datetime
    end: datetime
    granularity: str = "month"
    label: str = ""

    def __post_init__(self):
        object.__setattr__(self, "start", as_datetime(self.start, "Window.start"))
        object.__setattr__(self, "end", as_datetime(self.end, "Window.end"))
        if self.end < self.start:
            raise ValueError("Window.end must not be before Window.start")

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def contains(self, moment: datetime) -> bool:
        return self.start <= as_datetime(moment, "moment") < self.end


# ---------------------------------------------------------------------------
# Derived values
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PeriodScore:
    subject_id: str
    window_start: datetime
    window_end: datetime
    score: int
    reviewed_kpi_count: int
    total_kpi_count: int

    @property
    def has_signal(self) -> bool:
        """False when nothing was reviewed; a 0 score then means 'no data'."""
        return self.reviewed_kpi_count > 0


@dataclass(frozen=True)
class TrendResult:
    direction: str
    magnitude: float


@dataclass(frozen=True)
class CohortResult:
    top_performers: list = field(default_factory=list)
    needs_attention: list = field(default_factory=list)


@dataclass(frozen=True)
class DirectReports:
    clinicians: list = field(default_factory=list)
    sub_directors: list = field(default_factory=list)

    @property
    def all(self) -> list:
        return [*self.clinicians, *self.sub_directors]

    def __len__(self) -> int:
        return len(self.clinicians) + len(self.sub_directors)


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScoringContext:
    """Immutable snapshot of profiles, KPIs, assignments and reviews.

    Build one per query (or per frozen export window) and pass it to
    every scoring call. Identical contexts always produce identical
    scores.
    """

    profiles: tuple = ()
    kpis: tuple = ()
    assignments: tuple = ()
    reviews: tuple = ()
    _profiles_by_id: dict = field(default_factory=dict, init=False, repr=False, compare=False)
    _kpis_by_id: dict = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "profiles", as_tuple(self.profiles, Profile, "profiles"))
        object.__setattr__(self, "kpis", as_tuple(self.kpis, Kpi, "kpis"))
        object.__setattr__(
            self, "assignments", as_tuple(self.assignments, Assignment, "assignments")
        )
        object.__setattr__(self, "reviews", as_tuple(self.reviews, ReviewEvent, "reviews"))

        profiles_by_id = {p.id: p for p in self.profiles}
        if len(profiles_by_id) != len(self.profiles):
            logger.warning("Snapshot contains duplicate profile ids; last one wins")
        object.__setattr__(self, "_profiles_by_id", profiles_by_id)
        object.__setattr__(self, "_kpis_by_id", {k.id: k for k in self.kpis})

    def profile(self, profile_id: str) -> Profile | None:
        return self._profiles_by_id.get(profile_id)

    def kpi(self, kpi_id: str) -> Kpi | None:
        return self._kpis_by_id.get(kpi_id)

    @property
    def active_kpis(self) -> list[Kpi]:
        return [k for k in self.kpis if k.active]

    @property
    def directors(self) -> list[Profile]:
        return [p for p in self.profiles if p.is_director]

    @property
    def clinicians(self) -> list[Profile]:
        return [p for p in self.profiles if p.is_clinician]
