"""Snapshot ingestion loaders for exported dashboard data."""

from .snapshot import load_profiles, load_kpis, load_assignments, load_reviews
from .snapshot import build_context, load_snapshot

__all__ = [
    "load_profiles",
    "load_kpis",
    "load_assignments",
    "load_reviews",
    "build_context",
    "load_snapshot",
]
