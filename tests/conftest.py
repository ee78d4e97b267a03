import pathlib
import sys
from collections import OrderedDict
from datetime import date, timedelta

import pytest


REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.append(str(REPO_ROOT))

# 46 days before the 2024-12-31 deadline; the 2024-10-15 event has passed
ANALYSIS_DATE = date(2024, 11, 15)


@pytest.fixture()
def today():
    return ANALYSIS_DATE


@pytest.fixture()
def make_row():
    """Raw upload row keyed the way dashboard exports name their columns."""
    def _make_row(code, day, adults=0, infants=0, children=0, district=None, state="Assam"):
        return {
            "date": day.isoformat() if isinstance(day, date) else day,
            "state": state,
            "district": district or f"District {code}",
            "pincode": code,
            "age_0_5": infants,
            "age_5_17": children,
            "age_18_plus": adults,
        }
    return _make_row


@pytest.fixture()
def series_rows(make_row):
    """One row per day for a location, all counts in the adult bucket."""
    def _series_rows(code, values, start=date(2024, 10, 1), step_days=1, **kwargs):
        return [
            make_row(code, start + timedelta(days=i * step_days), adults=v, **kwargs)
            for i, v in enumerate(values)
        ]
    return _series_rows


@pytest.fixture()
def aggregate():
    from sentinel.engine.aggregation import EnrollmentAggregator

    def _aggregate(rows, strict=False):
        return EnrollmentAggregator(strict=strict).aggregate(rows)
    return _aggregate


@pytest.fixture()
def make_pin():
    """PinRecord with chosen volume/growth and no series."""
    from sentinel.engine.aggregation import EnrollmentAggregator, PinRecord

    def _make_pin(code="100001", total=0, growth=0, pushback=None, district="Test District"):
        tier = EnrollmentAggregator.classify(growth, total)
        return PinRecord(
            code=code,
            district=district,
            state="Test State",
            total_enrollment=total,
            series=(),
            monthly_totals=(),
            growth_rate=growth,
            risk_tier=tier,
            border_pushback_estimate=(
                EnrollmentAggregator.pushback_estimate(total, tier) if pushback is None else pushback
            ),
        )
    return _make_pin


@pytest.fixture()
def snapshot_of():
    """Snapshot wrapping hand-built pins."""
    from sentinel.engine.aggregation import AggregateSnapshot

    def _snapshot_of(*pins):
        return AggregateSnapshot(pins=tuple(pins), date_series=OrderedDict(), records=())
    return _snapshot_of


@pytest.fixture()
def policy_events():
    from sentinel.services.ingestion import load_policy_events
    return load_policy_events()


@pytest.fixture()
def sample_rows(series_rows):
    """
    Four locations over six days (2024-10-01 .. 2024-10-06):

    781001 Kamrup   growth 200, total 1200 -> high
    781002 Kamrup   growth 27,  total 750  -> low
    781003 Barpeta  growth 0,   total 3600 -> high (volume)
    781004 Barpeta  growth 0,   total 300  -> low
    """
    return (
        series_rows("781001", [100, 100, 100, 300, 300, 300], district="Kamrup")
        + series_rows("781002", [100, 110, 120, 130, 140, 150], district="Kamrup")
        + series_rows("781003", [600] * 6, district="Barpeta")
        + series_rows("781004", [50] * 6, district="Barpeta")
    )


@pytest.fixture()
def service(policy_events, today):
    from sentinel.services.analysis_service import AnalysisService
    return AnalysisService(policy_events=policy_events, today=lambda: today, strict=False)


@pytest.fixture()
def loaded_service(service, sample_rows):
    service.load_rows(sample_rows)
    return service


@pytest.fixture()
def api_client(loaded_service):
    from fastapi.testclient import TestClient
    from sentinel.main import app
    from sentinel.services.analysis_service import get_analysis_service, reset_analysis_service

    app.dependency_overrides[get_analysis_service] = lambda: loaded_service
    client = TestClient(app)
    try:
        yield client
    finally:
        app.dependency_overrides.pop(get_analysis_service, None)
        reset_analysis_service()
