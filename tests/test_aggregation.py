from datetime import date

import pytest

from sentinel.engine.aggregation import EnrollmentAggregator, RiskTier
from sentinel.exceptions import LocationNotFoundError, StructuralInputError
from sentinel.utils.aggregators import round_half_up


class TestGrowthRate:
    def test_recent_vs_older_window(self):
        # older window 100, recent window 250
        assert EnrollmentAggregator.growth_rate([40, 30, 30, 100, 100, 50]) == 150

    def test_single_point_is_zero(self):
        assert EnrollmentAggregator.growth_rate([500]) == 0
        assert EnrollmentAggregator.growth_rate([]) == 0

    def test_two_points_compare_against_first(self):
        # recent = 100 + 250, older = [100]
        assert EnrollmentAggregator.growth_rate([100, 250]) == 250

    def test_three_points_have_empty_older_window(self):
        assert EnrollmentAggregator.growth_rate([100, 200, 300]) == 0

    def test_four_points_older_window_is_first_entry(self):
        assert EnrollmentAggregator.growth_rate([100, 100, 100, 200]) == 300

    def test_zero_older_sum(self):
        assert EnrollmentAggregator.growth_rate([0, 0, 0, 50, 50, 50]) == 0

    def test_negative_growth(self):
        assert EnrollmentAggregator.growth_rate([200, 200, 200, 100, 100, 100]) == -50

    def test_recomputation_is_idempotent(self, aggregate, sample_rows):
        first = aggregate(sample_rows)
        second = aggregate(sample_rows)
        assert [p.growth_rate for p in first.pins] == [p.growth_rate for p in second.pins]
        for pin in first.pins:
            assert EnrollmentAggregator.growth_rate([s.enrollment for s in pin.series]) == pin.growth_rate


def test_round_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(-0.4) == 0
    assert round_half_up(149.49) == 149


class TestRiskTier:
    @pytest.mark.parametrize("growth,total,expected", [
        (151, 0, RiskTier.HIGH),
        (0, 3001, RiskTier.HIGH),
        (150, 0, RiskTier.MEDIUM),
        (150, 3001, RiskTier.HIGH),
        (81, 0, RiskTier.MEDIUM),
        (0, 1501, RiskTier.MEDIUM),
        (80, 1500, RiskTier.LOW),
        (-20, 0, RiskTier.LOW),
    ])
    def test_classify(self, growth, total, expected):
        assert EnrollmentAggregator.classify(growth, total) == expected

    def test_growth_150_example_is_medium_without_volume(self, aggregate, series_rows):
        snapshot = aggregate(series_rows("781001", [40, 30, 30, 100, 100, 50]))
        pin = snapshot.pins[0]
        assert pin.growth_rate == 150
        assert pin.risk_tier == RiskTier.MEDIUM


class TestPushbackEstimate:
    @pytest.mark.parametrize("tier,expected", [
        (RiskTier.HIGH, 30),
        (RiskTier.MEDIUM, 20),
        (RiskTier.LOW, 10),
    ])
    def test_multiplier_by_tier(self, tier, expected):
        assert EnrollmentAggregator.pushback_estimate(1000, tier) == expected

    def test_exposed_as_estimate(self, aggregate, sample_rows):
        data = aggregate(sample_rows).pins[0].to_dict()
        assert data["border_pushback_is_estimate"] is True


class TestAggregate:
    def test_locations_in_first_seen_order(self, aggregate, sample_rows):
        snapshot = aggregate(sample_rows)
        assert [p.code for p in snapshot.pins] == ["781001", "781002", "781003", "781004"]

    def test_sample_classification(self, aggregate, sample_rows):
        pins = {p.code: p for p in aggregate(sample_rows).pins}
        assert (pins["781001"].growth_rate, pins["781001"].total_enrollment) == (200, 1200)
        assert pins["781001"].risk_tier == RiskTier.HIGH
        assert pins["781002"].growth_rate == 27
        assert pins["781002"].risk_tier == RiskTier.LOW
        assert pins["781003"].risk_tier == RiskTier.HIGH
        assert pins["781003"].border_pushback_estimate == 108

    def test_same_date_records_are_summed_and_series_sorted(self, aggregate, make_row):
        rows = [
            make_row("781001", date(2024, 10, 3), adults=30),
            make_row("781001", date(2024, 10, 1), adults=10, infants=5),
            make_row("781001", date(2024, 10, 1), adults=20, children=2),
        ]
        pin = aggregate(rows).pins[0]
        assert [p.date for p in pin.series] == [date(2024, 10, 1), date(2024, 10, 3)]
        first = pin.series[0]
        assert (first.enrollment, first.age_0_5, first.age_5_17, first.age_18_plus) == (37, 5, 2, 30)
        assert pin.total_enrollment == 67

    def test_district_taken_from_first_record(self, aggregate, make_row):
        rows = [
            make_row("781001", date(2024, 10, 1), adults=1, district="Kamrup"),
            make_row("781001", date(2024, 10, 2), adults=1, district="Kamrup Metro"),
        ]
        assert aggregate(rows).pins[0].district == "Kamrup"

    def test_global_date_series(self, aggregate, sample_rows):
        snapshot = aggregate(sample_rows)
        dates = list(snapshot.date_series)
        assert dates == sorted(dates)
        assert snapshot.date_series[date(2024, 10, 1)] == 100 + 100 + 600 + 50
        assert snapshot.date_series[date(2024, 10, 6)] == 300 + 150 + 600 + 50

    def test_monthly_totals(self, aggregate, make_row):
        rows = [
            make_row("781001", date(2024, 1, 5), adults=10),
            make_row("781001", date(2024, 1, 20), adults=15),
            make_row("781001", date(2024, 2, 1), adults=40),
        ]
        pin = aggregate(rows).pins[0]
        assert [(m.month, m.enrollment) for m in pin.monthly_totals] == [("2024-01", 25), ("2024-02", 40)]

    def test_empty_input(self, aggregate):
        snapshot = aggregate([])
        assert snapshot.is_empty
        assert snapshot.summary()["first_date"] is None

    def test_unknown_location_lookup(self, aggregate, sample_rows):
        with pytest.raises(LocationNotFoundError):
            aggregate(sample_rows).get_pin("999999")


class TestMalformedRecords:
    def test_lenient_mode_skips_and_counts(self, aggregate, make_row):
        rows = [
            make_row("781001", date(2024, 10, 1), adults=10),
            make_row("781001", None, adults=10),
            make_row("", date(2024, 10, 1), adults=10),
            make_row("781002", date(2024, 10, 1), adults=-5),
            make_row("781002", "not a date", adults=5),
        ]
        snapshot = aggregate(rows)
        assert len(snapshot.records) == 1
        assert snapshot.rejected_count == 4

    def test_strict_mode_raises(self, aggregate, make_row):
        rows = [make_row("781001", date(2024, 10, 1)), make_row("781001", None)]
        with pytest.raises(StructuralInputError):
            aggregate(rows, strict=True)

    def test_missing_counts_default_to_zero(self, aggregate):
        snapshot = aggregate([{"date": "01-10-2024", "state": "Assam", "district": "Kamrup", "pincode": 781001}])
        pin = snapshot.pins[0]
        assert pin.code == "781001"
        assert pin.total_enrollment == 0
