from datetime import datetime, timedelta, timezone
from fractions import Fraction

import pytest
from hypothesis import given
from hypothesis import strategies as st

from clinic_dashboard.models import Kpi, ReviewEvent
from clinic_dashboard.scoring import (
    context_score,
    kpi_breakdown,
    reviews_in_window,
    round_half_up,
    score_subject,
    score_subjects,
)
from clinic_dashboard.windows import month_window


# ----------------------------------------------------------------------
# Rounding
# ----------------------------------------------------------------------

def test_round_half_up():
    assert round_half_up(Fraction(1, 2)) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(Fraction(100, 3)) == 33
    assert round_half_up(Fraction(200, 3)) == 67
    assert round_half_up(0) == 0


# ----------------------------------------------------------------------
# Individual scores
# ----------------------------------------------------------------------

def test_weighted_score(kpis, march, make_review):
    reviews = [make_review("S", "k1", True), make_review("S", "k2", False)]
    result = score_subject("S", march, reviews, kpis)
    assert result.score == 33
    assert result.reviewed_kpi_count == 2
    assert result.total_kpi_count == 2
    assert result.window_start == march.start
    assert result.window_end == march.end


def test_half_point_rounds_up(march, make_review):
    kpis = [Kpi("a", "A", 1), Kpi("b", "B", 7)]
    reviews = [make_review("S", "a", True), make_review("S", "b", False)]
    # 1 / 8 * 100 == 12.5
    assert score_subject("S", march, reviews, kpis).score == 13


def test_no_reviews_scores_zero(kpis, march):
    result = score_subject("S", march, [], kpis)
    assert result.score == 0
    assert not result.has_signal
    assert result.total_kpi_count == 2


def test_missing_and_removed_kpis_are_skipped(kpis, march, make_review):
    reviews = [
        make_review("S", "k1", True),
        make_review("S", "k-old", False),
        make_review("S", "deleted", False),
    ]
    result = score_subject("S", march, reviews, kpis)
    assert result.score == 100
    assert result.reviewed_kpi_count == 1


def test_only_unresolvable_reviews_score_zero(kpis, march, make_review):
    reviews = [make_review("S", "k-old", True), make_review("S", "deleted", True)]
    result = score_subject("S", march, reviews, kpis)
    assert result.score == 0
    assert result.reviewed_kpi_count == 0


def test_repeated_reviews_all_count(kpis, march, make_review):
    reviews = [
        make_review("S", "k1", True),
        make_review("S", "k1", True, when=datetime(2024, 3, 20)),
        make_review("S", "k2", False),
    ]
    result = score_subject("S", march, reviews, kpis)
    assert result.score == 50
    assert result.reviewed_kpi_count == 2


def test_window_boundaries(kpis, march, make_review):
    reviews = [
        make_review("S", "k1", True, when=datetime(2024, 3, 1)),
        make_review("S", "k2", False, when=datetime(2024, 4, 1)),
        make_review("S", "k2", False, when=datetime(2024, 2, 29, 23, 59, 59)),
    ]
    assert score_subject("S", march, reviews, kpis).score == 100


def test_other_subjects_ignored(kpis, march, make_review):
    reviews = [make_review("S", "k1", True), make_review("T", "k2", False)]
    assert score_subject("S", march, reviews, kpis).score == 100


def test_aware_review_dates_score_in_naive_window(kpis, march, make_review):
    minus_five = timezone(timedelta(hours=-5))
    reviews = [
        # 2024-03-31 20:00 local is 2024-04-01 01:00 UTC
        make_review("S", "k1", True, when=datetime(2024, 3, 31, 20, tzinfo=minus_five)),
        make_review("S", "k2", True, when=datetime(2024, 3, 10, tzinfo=timezone.utc)),
    ]
    result = score_subject("S", march, reviews, kpis)
    assert result.score == 100
    assert result.reviewed_kpi_count == 1


def test_context_score(team, march):
    assert context_score(team, "C1", march).score == 90
    assert context_score(team, "D2", march).score == 60
    assert context_score(team, "nobody", march).score == 0


def test_malformed_inputs_raise(kpis, march):
    with pytest.raises(TypeError):
        score_subject("S", march, None, kpis)
    with pytest.raises(TypeError):
        score_subject("S", march, [], None)
    with pytest.raises(TypeError):
        score_subject("S", (march.start, march.end), [], kpis)


def test_score_subjects_preserves_order(kpis, march, make_review):
    reviews = [make_review("S", "k1", True), make_review("T", "k2", True)]
    results = score_subjects(["T", "S", "U"], march, iter(reviews), kpis)
    assert [r.subject_id for r in results] == ["T", "S", "U"]
    assert [r.score for r in results] == [100, 100, 0]


def test_reviews_in_window_subject_filter(march, make_review):
    reviews = [make_review("S", "k1", True), make_review("T", "k1", True)]
    assert [r.subject_id for r in reviews_in_window(march, reviews, ["T"])] == ["T"]
    assert len(reviews_in_window(march, reviews)) == 2


def test_kpi_breakdown_uses_latest_review(kpis, march, make_review):
    reviews = [
        make_review("S", "k1", False, when=datetime(2024, 3, 20)),
        make_review("S", "k1", True, when=datetime(2024, 3, 5)),
    ]
    rows = kpi_breakdown("S", march, reviews, kpis)
    assert [row["kpi"].id for row in rows] == ["k1", "k2"]
    assert rows[0]["points"] == 0
    assert [r.date.day for r in rows[0]["reviews"]] == [5, 20]
    assert rows[1]["points"] is None
    assert not rows[1]["has_data"]


# ----------------------------------------------------------------------
# Properties
# ----------------------------------------------------------------------

_KPIS = [Kpi("a", "A", 3), Kpi("b", "B", 11), Kpi("c", "C", 20), Kpi("gone", "Gone", 5, removed=True)]
_WINDOW = month_window(6, 2024)

review_lists = st.lists(
    st.tuples(st.sampled_from(["a", "b", "c", "gone", "missing"]), st.booleans()),
    max_size=25,
)


def _reviews(pairs):
    return [
        ReviewEvent(f"r{i}", "S", kpi_id, met, datetime(2024, 6, 1 + i % 28))
        for i, (kpi_id, met) in enumerate(pairs)
    ]


@given(review_lists)
def test_score_always_within_bounds(pairs):
    result = score_subject("S", _WINDOW, _reviews(pairs), _KPIS)
    assert isinstance(result.score, int)
    assert 0 <= result.score <= 100
    assert 0 <= result.reviewed_kpi_count <= result.total_kpi_count == 3


@given(review_lists)
def test_meeting_more_kpis_never_lowers_score(pairs):
    before = score_subject("S", _WINDOW, _reviews(pairs), _KPIS).score
    improved = [(kpi_id, True) for kpi_id, _ in pairs]
    assert score_subject("S", _WINDOW, _reviews(improved), _KPIS).score >= before


@given(st.lists(st.sampled_from(["a", "b", "c"]), min_size=1, max_size=10))
def test_all_met_is_full_score(kpi_ids):
    pairs = [(kpi_id, True) for kpi_id in kpi_ids]
    assert score_subject("S", _WINDOW, _reviews(pairs), _KPIS).score == 100


@given(st.lists(st.tuples(st.sampled_from(["a", "b"]), st.booleans()), max_size=20))
def test_met_review_of_new_kpi_never_lowers_score(pairs):
    before = score_subject("S", _WINDOW, _reviews(pairs), _KPIS).score
    after = score_subject("S", _WINDOW, _reviews([*pairs, ("c", True)]), _KPIS).score
    assert after >= before


@given(st.lists(st.integers(1, 20), max_size=30))
def test_no_reviews_is_zero_for_any_catalogue(weights):
    kpis = [Kpi(f"k{i}", f"KPI {i}", w) for i, w in enumerate(weights)]
    result = score_subject("S", _WINDOW, [], kpis)
    assert result.score == 0
    assert result.total_kpi_count == len(weights)
