import math
import random

import pytest

from sentinel.engine.risk_scoring import FACTORS, RiskLevel, RiskMatrixScorer


@pytest.fixture()
def scorer():
    return RiskMatrixScorer()


def test_default_weights_sum_to_one():
    assert math.fsum(RiskMatrixScorer.DEFAULT_WEIGHTS.values()) == 1.0
    assert set(RiskMatrixScorer.DEFAULT_WEIGHTS) == set(FACTORS)


@pytest.mark.parametrize("weights", [
    {"growth_rate": 1.0},
    {**RiskMatrixScorer.DEFAULT_WEIGHTS, "growth_rate": 0.5},
])
def test_invalid_weights_rejected(weights):
    with pytest.raises(ValueError):
        RiskMatrixScorer(weights)


@pytest.mark.parametrize("days,expected", [
    (None, 0),
    (0, 100),
    (29, 100),
    (30, 70),
    (59, 70),
    (60, 40),
    (89, 40),
    (90, 20),
    (400, 20),
])
def test_deadline_score(scorer, days, expected):
    assert scorer.deadline_score(days) == expected


@pytest.mark.parametrize("total,expected", [
    (70.0, RiskLevel.MEDIUM),
    (70.1, RiskLevel.HIGH),
    (40.0, RiskLevel.LOW),
    (40.1, RiskLevel.MEDIUM),
])
def test_level_cutoffs(scorer, total, expected):
    assert scorer.level(total) == expected


def test_location_scores(scorer, aggregate, sample_rows):
    pins = {p.code: p for p in aggregate(sample_rows).pins}
    entry = scorer.score_location(pins["781001"], days_to_deadline=46)

    assert entry.scores["growth_rate"] == pytest.approx(200 / 3)
    assert entry.scores["enrollment_volume"] == pytest.approx(24.0)
    assert entry.scores["border_proximity"] == pytest.approx(36.0)
    assert entry.scores["policy_deadline"] == 70
    assert entry.scores["age_distribution"] == 100
    assert entry.total_score == pytest.approx(53.7)
    assert entry.risk_level == RiskLevel.MEDIUM


def test_factors_are_clamped(scorer, make_pin):
    entry = scorer.score_location(make_pin(total=20000, growth=-80, pushback=500), None)
    assert entry.scores["growth_rate"] == 0
    assert entry.scores["enrollment_volume"] == 100
    assert entry.scores["border_proximity"] == 100
    assert all(0 <= v <= 100 for v in entry.scores.values())


def test_age_score_without_series(scorer, make_pin):
    assert scorer.age_score(make_pin(total=100)) == 0


def test_matrix_sorted_descending(scorer, aggregate, sample_rows, policy_events, today):
    matrix = scorer.score(aggregate(sample_rows), policy_events, today)
    totals = [m.total_score for m in matrix]
    assert totals == sorted(totals, reverse=True)
    assert matrix[0].location_code == "781003"


def test_invariant_under_input_reordering(scorer, aggregate, sample_rows, policy_events, today):
    shuffled = list(sample_rows)
    random.Random(7).shuffle(shuffled)

    baseline = {m.location_code: m.total_score for m in scorer.score(aggregate(sample_rows), policy_events, today)}
    reordered = {m.location_code: m.total_score for m in scorer.score(aggregate(shuffled), policy_events, today)}
    assert baseline == reordered
