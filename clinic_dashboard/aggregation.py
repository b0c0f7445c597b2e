"""
Team aggregation over the supervision hierarchy.

Two entry points, picked deliberately by the caller:

team_score
    One level. Mean of the individual scores of every approved direct
    report, clinicians and sub-directors alike. Zero scores are included.

team_score_transitive
    Team-of-teams. Clinicians contribute their individual score, each
    sub-director contributes its own transitive team score. Directors
    already visited contribute 0, so cyclic assignment data terminates.

Unapproved reports are left out of both before anything is scored or
recursed into. Both round half-up once, at the end.
"""

import logging
from fractions import Fraction

from .hierarchy import approved, approved_reports
from .models import Assignment, Kpi, Profile, ReviewEvent, as_tuple
from .scoring import round_half_up, score_subject

logger = logging.getLogger(__name__)


def _mean(values: list) -> Fraction:
    if not values:
        return Fraction(0)
    return Fraction(sum(values)) / len(values)


def team_score(
    director_id: str,
    window,
    reviews,
    kpis,
    assignments,
    profiles,
) -> int:
    """Mean individual PeriodScore of a director's approved direct reports.

    Returns 0 when the director has no approved direct reports.
    """
    reviews = as_tuple(reviews, ReviewEvent, "reviews")
    kpis = as_tuple(kpis, Kpi, "kpis")
    reports = approved_reports(director_id, assignments, profiles)
    if not len(reports):
        return 0

    scores = [score_subject(sid, window, reviews, kpis).score for sid in reports.all]
    return round_half_up(_mean(scores))


def _transitive(
    director_id: str,
    window,
    reviews: tuple,
    kpis: tuple,
    assignments: tuple,
    profiles: tuple,
    visited: set,
) -> Fraction:
    # Depth-first over an explicit stack so long supervision chains
    # cannot exhaust the interpreter's recursion limit.
    def open_frame(supervisor_id):
        visited.add(supervisor_id)
        reports = approved_reports(supervisor_id, assignments, profiles)
        scores = [score_subject(cid, window, reviews, kpis).score for cid in reports.clinicians]
        return supervisor_id, list(reversed(reports.sub_directors)), scores

    frames = [open_frame(director_id)]
    result = None

    while frames:
        supervisor_id, pending, contributions = frames[-1]
        if result is not None:
            contributions.append(result)
            result = None

        if pending:
            sub_id = pending.pop()
            if sub_id in visited:
                logger.debug(
                    "Assignment cycle: %s already visited under %s; contributing 0",
                    sub_id, supervisor_id,
                )
                contributions.append(0)
            else:
                frames.append(open_frame(sub_id))
            continue

        frames.pop()
        result = _mean(contributions)

    return result


def team_score_transitive(
    director_id: str,
    window,
    reviews,
    kpis,
    assignments,
    profiles,
    visited=None,
) -> int:
    """Recursive team score with cycle protection.

    Parameters
    ----------
    visited : Optional iterable of director ids to treat as already
              visited. It is copied, never mutated.

    Returns
    -------
    Integer in [0, 100]. Terminates for any assignment graph.
    """
    visited = set() if visited is None else set(visited)
    result = _transitive(
        director_id,
        window,
        as_tuple(reviews, ReviewEvent, "reviews"),
        as_tuple(kpis, Kpi, "kpis"),
        as_tuple(assignments, Assignment, "assignments"),
        as_tuple(profiles, Profile, "profiles"),
        visited,
    )
    return round_half_up(result)


def team_member_scores(
    director_id: str,
    window,
    reviews,
    kpis,
    assignments,
    profiles,
) -> list[tuple]:
    """(Profile, PeriodScore) for each approved direct report, clinicians first."""
    profiles = as_tuple(profiles, Profile, "profiles")
    reviews = as_tuple(reviews, ReviewEvent, "reviews")
    kpis = as_tuple(kpis, Kpi, "kpis")
    by_id = {p.id: p for p in profiles}

    reports = approved_reports(director_id, assignments, profiles)
    return [
        (by_id[sid], score_subject(sid, window, reviews, kpis))
        for sid in reports.all
    ]


def organisation_score(window, reviews, kpis, assignments, profiles) -> int:
    """Mean team score across all approved directors (0 when there are none).

    Each director's rounded team score is averaged, matching the figure
    shown on the per-director cards.
    """
    reviews = as_tuple(reviews, ReviewEvent, "reviews")
    kpis = as_tuple(kpis, Kpi, "kpis")
    assignments = as_tuple(assignments, Assignment, "assignments")
    profiles = as_tuple(profiles, Profile, "profiles")

    directors = [p for p in approved(profiles) if p.is_director]
    if not directors:
        return 0

    scores = [
        team_score(d.id, window, reviews, kpis, assignments, profiles)
        for d in directors
    ]
    return round_half_up(_mean(scores))
