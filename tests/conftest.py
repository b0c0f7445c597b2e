"""Shared fixtures: small hand-built snapshots and the simulated organisation."""

from datetime import datetime
from itertools import count

import pytest

from clinic_dashboard.models import Assignment, Kpi, Profile, ReviewEvent, ScoringContext
from clinic_dashboard.simulator import generate_snapshot
from clinic_dashboard.windows import month_window

MID_MARCH = datetime(2024, 3, 15, 10, 0)


@pytest.fixture
def make_review():
    ids = count(1)

    def _make(subject_id, kpi_id, met, when=MID_MARCH, reviewer_id=None):
        return ReviewEvent(
            id=f"r{next(ids)}",
            subject_id=subject_id,
            kpi_id=kpi_id,
            met=met,
            date=when,
            reviewer_id=reviewer_id,
        )

    return _make


@pytest.fixture
def march():
    return month_window("March", 2024)


@pytest.fixture
def kpis():
    return [
        Kpi("k1", "Timely notes", 10),
        Kpi("k2", "Plans current", 20),
        Kpi("k-old", "Paper audit", 5, removed=True),
    ]


@pytest.fixture
def team_kpis():
    return [
        Kpi("w9", "Nine", 9),
        Kpi("w1", "One", 1),
        Kpi("w3", "Three", 3),
        Kpi("w2", "Two", 2),
    ]


@pytest.fixture
def team(team_kpis, make_review):
    """March 2024 snapshot.

    D supervises C1 (90), C2 (0) and sub-director D2 (60).
    D2 supervises C3 (100) and C4 (0, not yet approved).
    """
    profiles = [
        Profile("D", "Dana Ward", "director", accept=True),
        Profile("D2", "Devon Hart", "director", accept=True),
        Profile("C1", "Cleo Marsh", "clinician", accept=True),
        Profile("C2", "Cam Price", "clinician", accept=True),
        Profile("C3", "Cy Lowe", "clinician", accept=True),
        Profile("C4", "Pat Kerr", "clinician", accept=False),
        Profile("A", "Ash Admin", "admin", accept=True),
    ]
    assignments = [
        Assignment("D", "C1"),
        Assignment("D", "C2"),
        Assignment("D", "D2"),
        Assignment("D2", "C3"),
        Assignment("D2", "C4"),
    ]
    reviews = [
        make_review("C1", "w9", True),
        make_review("C1", "w1", False),
        make_review("C2", "w9", False),
        make_review("D2", "w3", True),
        make_review("D2", "w2", False),
        make_review("C3", "w9", True),
        make_review("C4", "w9", False),
    ]
    return ScoringContext(
        profiles=profiles, kpis=team_kpis, assignments=assignments, reviews=reviews
    )


@pytest.fixture(scope="session")
def simulated():
    return generate_snapshot()
