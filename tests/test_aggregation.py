from datetime import datetime

import pytest

from clinic_dashboard.aggregation import (
    organisation_score,
    team_member_scores,
    team_score,
    team_score_transitive,
)
from clinic_dashboard.models import Assignment, Kpi, Profile, ReviewEvent, ScoringContext
from clinic_dashboard.scoring import context_score
from clinic_dashboard.windows import month_window


def _args(context, window):
    return (window, context.reviews, context.kpis, context.assignments, context.profiles)


# ----------------------------------------------------------------------
# One level
# ----------------------------------------------------------------------

def test_team_score_includes_zero_scores(team, march):
    # (90 + 0 + 60) / 3
    assert team_score("D", *_args(team, march)) == 50


def test_team_score_uses_sub_director_individual_score(team, march):
    assert context_score(team, "D2", march).score == 60
    # C4 is not approved, so only C3 (100) counts
    assert team_score("D2", *_args(team, march)) == 100
    assert team_score_transitive("D2", *_args(team, march)) == 100


def test_team_score_without_reports_is_zero(team, march):
    assert team_score("C1", *_args(team, march)) == 0
    assert team_score("nobody", *_args(team, march)) == 0


def test_team_member_scores(team, march):
    pairs = team_member_scores("D", *_args(team, march))
    assert [(p.id, s.score) for p, s in pairs] == [("C1", 90), ("C2", 0), ("D2", 60)]


# ----------------------------------------------------------------------
# Transitive
# ----------------------------------------------------------------------

def test_transitive_uses_sub_team_scores(team, march):
    # (90 + 0 + team(D2)=100) / 3 = 63.33
    assert team_score_transitive("D", *_args(team, march)) == 63


def test_transitive_rounds_once_at_the_end():
    moment = datetime(2024, 3, 10)
    kpis = [Kpi("a", "A", 1), Kpi("b", "B", 2)]
    profiles = [
        Profile("D", "D", "director", accept=True),
        Profile("S", "S", "director", accept=True),
        Profile("c1", "c1", "clinician", accept=True),
        Profile("c2", "c2", "clinician", accept=True),
        Profile("c3", "c3", "clinician", accept=True),
    ]
    assignments = [Assignment("D", "S"), Assignment("D", "c3"),
                   Assignment("S", "c1"), Assignment("S", "c2")]
    reviews = [
        ReviewEvent("r1", "c1", "a", True, moment),
        ReviewEvent("r2", "c1", "b", False, moment),
        ReviewEvent("r3", "c2", "a", False, moment),
        ReviewEvent("r4", "c3", "b", False, moment),
    ]
    window = month_window(3, 2024)
    # c1 = 33, c2 = 0, S = 16.5
    assert team_score_transitive("S", window, reviews, kpis, assignments, profiles) == 17
    # D = (0 + 16.5) / 2 = 8.25; rounding S first would give 8.5 -> 9
    assert team_score_transitive("D", window, reviews, kpis, assignments, profiles) == 8


def test_cycle_terminates_and_contributes_zero(march, make_review):
    kpis = [Kpi("k", "K", 10), Kpi("j", "J", 10)]
    profiles = [
        Profile("A", "A", "director", accept=True),
        Profile("B", "B", "director", accept=True),
        Profile("CA", "CA", "clinician", accept=True),
        Profile("CB", "CB", "clinician", accept=True),
    ]
    assignments = [Assignment("A", "B"), Assignment("B", "A"),
                   Assignment("A", "CA"), Assignment("B", "CB")]
    reviews = [
        make_review("CA", "k", True), make_review("CA", "j", True),
        make_review("CB", "k", True), make_review("CB", "j", False),
    ]
    args = (march, reviews, kpis, assignments, profiles)
    # A: mean(CA=100, B=mean(CB=50, A already visited -> 0))
    assert team_score_transitive("A", *args) == 63
    # B: mean(CB=50, A=mean(CA=100, B already visited -> 0))
    assert team_score_transitive("B", *args) == 50
    assert team_score("A", *args) == 50


def test_self_supervision_terminates(march):
    profiles = [Profile("A", "A", "director", accept=True)]
    assignments = [Assignment("A", "A")]
    assert team_score_transitive("A", march, [], [], assignments, profiles) == 0


def test_visited_argument_is_not_mutated(team, march):
    visited = {"D2"}
    # D2 pre-visited: (90 + 0 + 0) / 3
    assert team_score_transitive("D", *_args(team, march), visited=visited) == 30
    assert visited == {"D2"}


def test_long_chain_does_not_overflow(march, make_review):
    depth = 1500
    profiles = [Profile(f"D{i}", f"D{i}", "director", accept=True) for i in range(depth)]
    profiles.append(Profile("C", "C", "clinician", accept=True))
    assignments = [Assignment(f"D{i}", f"D{i + 1}") for i in range(depth - 1)]
    assignments.append(Assignment(f"D{depth - 1}", "C"))
    kpis = [Kpi("k", "K", 5)]
    reviews = [make_review("C", "k", True)]
    assert team_score_transitive("D0", march, reviews, kpis, assignments, profiles) == 100


# ----------------------------------------------------------------------
# Approval
# ----------------------------------------------------------------------

@pytest.fixture
def mixed_approval(make_review):
    """X supervises C (100), unapproved U (0), sub-director S and an
    unapproved sub-director P. S supervises SC (100), P supervises PC (0)."""
    profiles = [
        Profile("X", "X", "director", accept=True),
        Profile("S", "S", "director", accept=True),
        Profile("P", "P", "director", accept=False),
        Profile("C", "C", "clinician", accept=True),
        Profile("U", "U", "clinician", accept=False),
        Profile("SC", "SC", "clinician", accept=True),
        Profile("PC", "PC", "clinician", accept=True),
    ]
    assignments = [
        Assignment("X", "C"), Assignment("X", "U"),
        Assignment("X", "S"), Assignment("X", "P"),
        Assignment("S", "SC"), Assignment("P", "PC"),
    ]
    reviews = [
        make_review("C", "k", True),
        make_review("U", "k", False),
        make_review("SC", "k", True),
        make_review("PC", "k", False),
    ]
    return ScoringContext(
        profiles=profiles, kpis=[Kpi("k", "K", 10)], assignments=assignments, reviews=reviews
    )


def test_unapproved_reports_excluded_from_team_score(mixed_approval, march):
    # C (100) and S (individual 0); U and P are left out
    assert team_score("X", *_args(mixed_approval, march)) == 50


def test_unapproved_reports_excluded_from_transitive(mixed_approval, march):
    # C (100) and team(S) = SC (100); P's team would pull this to 67
    assert team_score_transitive("X", *_args(mixed_approval, march)) == 100


def test_unapproved_reports_excluded_from_member_scores(mixed_approval, march):
    pairs = team_member_scores("X", *_args(mixed_approval, march))
    assert [(p.id, s.score) for p, s in pairs] == [("C", 100), ("S", 0)]


def test_director_with_only_unapproved_reports_scores_zero(mixed_approval, march):
    assert team_score("S", *_args(mixed_approval, march)) == 100
    profiles = [p for p in mixed_approval.profiles if p.id != "SC"]
    profiles.append(Profile("SC", "SC", "clinician", accept=False))
    args = (march, mixed_approval.reviews, mixed_approval.kpis, mixed_approval.assignments, profiles)
    assert team_score("S", *args) == 0
    assert team_score_transitive("S", *args) == 0


# ----------------------------------------------------------------------
# Organisation
# ----------------------------------------------------------------------

def test_organisation_score(team, march):
    # approved directors D (50) and D2 (100)
    assert organisation_score(*_args(team, march)) == 75


def test_organisation_score_without_directors(march):
    assert organisation_score(march, [], [], [], []) == 0
