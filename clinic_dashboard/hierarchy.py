"""
Supervision hierarchy lookups over assignment edges.

`direct_reports` answers structural questions only and never hides
assignment data for unapproved staff. Team scores are computed over
`approved_reports`, which applies the approval filter on top.
"""

import logging

from .config import SCORED_ROLES
from .models import Assignment, DirectReports, Profile, as_tuple

logger = logging.getLogger(__name__)


def direct_reports(director_id: str, assignments, profiles) -> DirectReports:
    """Direct subordinates of `director_id`, one level deep.

    Parameters
    ----------
    director_id : Profile id of the supervising director.
    assignments : Iterable of Assignment edges.
    profiles : Iterable of Profile, used to partition subordinates by role.

    Returns
    -------
    DirectReports with clinician ids and sub-director ids in assignment
    order. Duplicate edges collapse to one entry. Subordinates whose
    profile is unknown, or whose role is neither clinician nor director,
    are left out.
    """
    assignments = as_tuple(assignments, Assignment, "assignments")
    roles = {p.id: p.role for p in as_tuple(profiles, Profile, "profiles")}

    clinicians: list[str] = []
    sub_directors: list[str] = []
    seen: set[str] = set()

    for edge in assignments:
        if edge.supervisor_id != director_id or edge.subordinate_id in seen:
            continue
        seen.add(edge.subordinate_id)

        role = roles.get(edge.subordinate_id)
        if role == "clinician":
            clinicians.append(edge.subordinate_id)
        elif role == "director":
            sub_directors.append(edge.subordinate_id)
        else:
            logger.debug(
                "Ignoring subordinate %s of %s with role %r",
                edge.subordinate_id, director_id, role,
            )

    return DirectReports(clinicians=clinicians, sub_directors=sub_directors)


def supervisor_of(subject_id: str, assignments) -> str | None:
    """Supervisor id of `subject_id`, or None when unassigned.

    A subordinate should have at most one supervisor; if the data holds
    several, the first edge wins.
    """
    supervisors = [
        a.supervisor_id
        for a in as_tuple(assignments, Assignment, "assignments")
        if a.subordinate_id == subject_id
    ]
    if len(supervisors) > 1:
        logger.warning("%s has %d supervisors; using %s", subject_id, len(supervisors), supervisors[0])
    return supervisors[0] if supervisors else None


def unassigned(profiles, assignments, role: str | None = None) -> list[Profile]:
    """Scored staff with no supervisor edge, optionally limited to one role."""
    assigned = {a.subordinate_id for a in as_tuple(assignments, Assignment, "assignments")}
    roles = SCORED_ROLES if role is None else (role,)
    return [
        p for p in as_tuple(profiles, Profile, "profiles")
        if p.role in roles and p.id not in assigned
    ]


def approved(profiles) -> list[Profile]:
    """Profiles whose account has been approved."""
    return [p for p in as_tuple(profiles, Profile, "profiles") if p.accept]


def approved_ids(ids, profiles) -> list[str]:
    """Keep only ids of approved profiles, preserving order."""
    accepted = {p.id for p in approved(profiles)}
    return [i for i in ids if i in accepted]


def approved_reports(director_id: str, assignments, profiles) -> DirectReports:
    """Direct reports of `director_id` whose accounts are approved.

    This is the membership every team score is computed over; unapproved
    staff keep their assignment edges but are never scored.
    """
    profiles = as_tuple(profiles, Profile, "profiles")
    reports = direct_reports(director_id, assignments, profiles)
    return DirectReports(
        clinicians=approved_ids(reports.clinicians, profiles),
        sub_directors=approved_ids(reports.sub_directors, profiles),
    )
