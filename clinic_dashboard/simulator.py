"""
Simulated snapshot generator for the clinical performance dashboard.

Generates a realistic organisation: a chief director supervising two
directors (one of whom supervises a further director), clinicians spread
across those teams, a KPI catalogue, and review events for a run of
months. All values are synthetic; no real staff data is used.
"""

from datetime import datetime, timedelta

import numpy as np

from .models import Assignment, Kpi, Profile, ReviewEvent, ScoringContext

# ---------------------------------------------------------------------------
# Typical catalogue parameters
# ---------------------------------------------------------------------------
_KPIS = [
    ("k-notes", "Timely clinical notes", "Notes signed within 24 hours of each session", 15, "Documentation"),
    ("k-plans", "Treatment plans current", "Treatment plans reviewed within the last 90 days", 20, "Documentation"),
    ("k-outcomes", "Outcome measures", "Standardised outcome measures collected at intake and review", 10, "Clinical"),
    ("k-caseload", "Caseload target", "Active caseload within the agreed range", 12, "Clinical"),
    ("k-supervision", "Supervision attended", "Attended scheduled clinical supervision", 8, "Professional"),
    ("k-training", "Mandatory training", "All mandatory training modules in date", 5, "Professional"),
    ("k-safety", "Risk assessments", "Risk assessments completed for new referrals", 18, "Safety"),
    ("k-legacy", "Paper audit", "Retired paper-file audit", 6, "Documentation"),
]

_REMOVED_KPIS = {"k-legacy"}

_DIRECTORS = [
    ("d-chief", "Morgan Hale", None),
    ("d-north", "Avery Quinn", "d-chief"),
    ("d-south", "Jordan Ellis", "d-chief"),
    ("d-east", "Riley Chen", "d-north"),
]

_CLINICIANS = [
    ("c-01", "Sam Patel", "d-north", 0.95),
    ("c-02", "Alex Romero", "d-north", 0.80),
    ("c-03", "Casey Brooks", "d-north", 0.55),
    ("c-04", "Taylor Nguyen", "d-south", 0.90),
    ("c-05", "Jamie Osei", "d-south", 0.70),
    ("c-06", "Drew Kowalski", "d-south", 0.60),
    ("c-07", "Robin Sato", "d-east", 0.85),
    ("c-08", "Quinn Adeyemi", "d-east", 0.75),
    # Pending approval: reviewed, but hidden from dashboards
    ("c-09", "Parker Lund", "d-east", 0.65),
]

_UNAPPROVED = {"c-09"}

_DIRECTOR_MET_PROBABILITY = 0.85


def generate_kpis() -> list[Kpi]:
    """KPI catalogue, including one soft-deleted KPI."""
    return [
        Kpi(id=kid, title=title, description=desc, weight=weight, floor=floor,
            removed=kid in _REMOVED_KPIS)
        for kid, title, desc, weight, floor in _KPIS
    ]


def generate_profiles(created_at: datetime = datetime(2024, 1, 2)) -> list[Profile]:
    """Directors, clinicians and one super-admin."""
    profiles = [Profile(id="admin", name="Dana Admin", role="super-admin", accept=True,
                        username="admin", created_at=created_at)]
    for pid, name, _ in _DIRECTORS:
        profiles.append(Profile(id=pid, name=name, role="director", accept=True,
                                username=pid, created_at=created_at))
    for pid, name, _, _ in _CLINICIANS:
        profiles.append(Profile(id=pid, name=name, role="clinician",
                                accept=pid not in _UNAPPROVED,
                                username=pid, created_at=created_at))
    return profiles


def generate_assignments() -> list[Assignment]:
    """Supervision edges for the simulated organisation."""
    edges = [Assignment(supervisor, pid) for pid, _, supervisor in _DIRECTORS if supervisor]
    edges += [Assignment(supervisor, pid) for pid, _, supervisor, _ in _CLINICIANS]
    return edges


def generate_reviews(
    start_month: str = "2024-01-01",
    n_months: int = 6,
    seed: int = 42,
) -> list[ReviewEvent]:
    """One review per subject per KPI per month, on a random day in the month.

    Each clinician has a base met-probability that drifts slightly month to
    month; directors are reviewed by their own supervisor.
    """
    rng = np.random.default_rng(seed)
    start = datetime.fromisoformat(start_month)
    supervisors = {a.subordinate_id: a.supervisor_id for a in generate_assignments()}

    subjects = [(pid, _DIRECTOR_MET_PROBABILITY) for pid, _, _ in _DIRECTORS]
    subjects += [(pid, p) for pid, _, _, p in _CLINICIANS]

    reviews = []
    counter = 0
    for offset in range(n_months):
        year = start.year + (start.month - 1 + offset) // 12
        month = (start.month - 1 + offset) % 12 + 1
        month_start = datetime(year, month, 1)

        for subject_id, base_p in subjects:
            p = float(np.clip(base_p + rng.normal(0, 0.05), 0.0, 1.0))
            reviewer = supervisors.get(subject_id, "admin")
            for kid, _, _, _, _ in _KPIS:
                counter += 1
                day = int(rng.integers(0, 28))
                reviews.append(ReviewEvent(
                    id=f"r-{counter:05d}",
                    subject_id=subject_id,
                    kpi_id=kid,
                    reviewer_id=reviewer,
                    met=bool(rng.random() < p),
                    date=month_start + timedelta(days=day, hours=int(rng.integers(8, 18))),
                    notes=None,
                    plan=None,
                ))

    return reviews


def generate_snapshot(
    start_month: str = "2024-01-01",
    n_months: int = 6,
    seed: int = 42,
) -> ScoringContext:
    """Complete simulated ScoringContext."""
    return ScoringContext(
        profiles=generate_profiles(),
        kpis=generate_kpis(),
        assignments=generate_assignments(),
        reviews=generate_reviews(start_month, n_months, seed),
    )
