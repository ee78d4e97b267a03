import pytest

from sentinel.engine.forecasting import TrendForecaster, WarningSeverity


@pytest.fixture()
def forecaster():
    return TrendForecaster()


class TestPredict:
    def test_short_history_gives_no_forecast(self, forecaster, make_pin, snapshot_of):
        assert forecaster.predict([100, 200], 30) is None
        report = forecaster.forecast(snapshot_of(make_pin(total=10)))
        assert (report.next_30_days, report.next_60_days, report.next_90_days) == (None, None, None)
        assert report.to_dict()["next_90_days"] is None

    def test_compounds_per_thirty_day_period(self, forecaster):
        history = [100, 200, 400]
        assert forecaster.predict(history, 30).value == 800
        assert forecaster.predict(history, 60).value == 1600
        forecast = forecaster.predict(history, 90)
        assert (forecast.periods, forecast.value) == (3, 3200)
        assert forecast.trend == "Increasing"

    def test_volatile_growth_has_medium_confidence(self, forecaster):
        assert forecaster.predict([100, 200, 400], 30).confidence == "Medium"

    def test_steady_growth_has_high_confidence(self, forecaster):
        forecast = forecaster.predict([100, 110, 121], 30)
        assert forecast.confidence == "High"
        assert forecast.value == 133

    def test_decreasing(self, forecaster):
        forecast = forecaster.predict([400, 200, 100], 30)
        assert forecast.trend == "Decreasing"
        assert forecast.value == 50

    def test_zero_base_pair_contributes_nothing(self, forecaster):
        assert forecaster.average_growth([0, 100, 200]) == pytest.approx(0.5)

    def test_uses_last_six_points(self, forecaster):
        history = [1, 1000, 1, 1000, 100, 100, 100, 100, 100, 100]
        assert forecaster.average_growth(history) == 0.0


class TestAnomalyProbability:
    def test_capped_at_100(self, forecaster, make_pin):
        pin = make_pin(total=5000, growth=300, pushback=80)
        assert forecaster.anomaly_probability(pin, 20) == 100

    def test_additive_tiers(self, forecaster, make_pin):
        pin = make_pin(total=2000, growth=160, pushback=50)
        assert forecaster.anomaly_probability(pin, None) == 30 + 10 + 10
        assert forecaster.anomaly_probability(pin, 59) == 60
        assert forecaster.anomaly_probability(pin, 60) == 50


class TestWarnings:
    def test_severity_and_order(self, forecaster, make_pin, snapshot_of):
        snapshot = snapshot_of(
            make_pin(code="A", total=2000, growth=160, pushback=50),   # 50 + 10
            make_pin(code="B", total=3000, growth=210, pushback=10),   # 40 + 20 + 10
            make_pin(code="C", total=5000, growth=210, pushback=80),   # capped
            make_pin(code="D", total=2600, growth=160, pushback=50),   # 30 + 20 + 10 + 10
        )
        warnings = forecaster.early_warnings(snapshot, 45)
        assert [(w.location_code, w.probability, w.severity) for w in warnings] == [
            ("C", 100, WarningSeverity.CRITICAL),
            ("B", 70, WarningSeverity.HIGH),
            ("D", 70, WarningSeverity.HIGH),
        ]

    def test_message_lists_triggering_reasons(self, forecaster, make_pin):
        message = forecaster.warning_message(make_pin(total=5000, growth=210), 45)
        assert "Extreme growth rate of 210%" in message
        assert "High enrollment volume (5,000)" in message
        assert "45 days to policy deadline" in message

    def test_message_without_individual_reason(self, forecaster, make_pin):
        message = forecaster.warning_message(make_pin(total=3000, growth=160), None)
        assert message == "Combined moderate indicators exceed the warning threshold."

    def test_high_risk_locations(self, forecaster, make_pin, snapshot_of):
        pins = [make_pin(code=str(i), total=100, growth=151 + i) for i in range(12)]
        pins.append(make_pin(code="low", total=100, growth=10))
        result = forecaster.high_risk_locations(snapshot_of(*pins), None)
        assert len(result) == 10
        assert "low" not in [r.location_code for r in result]
        probabilities = [r.probability for r in result]
        assert probabilities == sorted(probabilities, reverse=True)


def test_sample_forecast(forecaster, aggregate, sample_rows):
    report = forecaster.forecast(aggregate(sample_rows))
    assert report.next_30_days is not None
    assert report.next_30_days.trend == "Increasing"
    assert [h.location_code for h in report.high_risk_locations] == ["781003", "781001"]
    assert report.early_warnings == []
