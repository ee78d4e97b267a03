"""
Analysis service - the single entry point presentation code talks to.

Holds the current AggregateSnapshot, the policy timeline and the alert
engine. Loading data swaps the snapshot reference; every analysis reads
whichever snapshot was current when it started.
"""
import dataclasses
import logging
import threading
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from sentinel.config import settings
from sentinel.engine import (
    AgeGroupAnalyzer,
    AggregateSnapshot,
    AlertEngine,
    AlertEvaluation,
    ComparativeAnalyzer,
    DataQualityAssessor,
    EnrollmentAggregator,
    PatternRecognizer,
    PolicyCorrelationAnalyzer,
    RiskMatrixScorer,
    StatisticalAnomalyDetector,
    TrendForecaster,
)
from sentinel.engine.age_analysis import AgeReport
from sentinel.engine.alerting import Alert
from sentinel.engine.anomaly_detection import AnomalyRecord
from sentinel.engine.comparative import DistrictSummary
from sentinel.engine.data_quality import QualityReport
from sentinel.engine.forecasting import ForecastReport
from sentinel.engine.pattern_recognition import PatternReport
from sentinel.engine.policy_correlation import PolicyCorrelation
from sentinel.engine.risk_scoring import RiskMatrixEntry
from sentinel.schemas.alerts import AlertRules
from sentinel.schemas.records import PolicyEvent
from sentinel.services.ingestion import load_policy_events, records_from_csv, records_from_rows
from sentinel.utils.date_utils import days_to_nearest_deadline

logger = logging.getLogger(__name__)


def _empty_snapshot() -> AggregateSnapshot:
    return EnrollmentAggregator().aggregate([])


class AnalysisService:
    """Facade over the aggregation and analysis engines."""

    def __init__(self,
                 policy_events: Optional[Sequence[PolicyEvent]] = None,
                 alert_rules: Optional[AlertRules] = None,
                 strict: Optional[bool] = None,
                 today: Optional[Callable[[], date]] = None,
                 history_capacity: Optional[int] = None):
        """
        Args:
            policy_events: Deadline timeline (defaults to POLICY_EVENTS_FILE
                or the built-in timeline)
            alert_rules: Initial alert thresholds (defaults from settings)
            strict: Reject the whole batch on the first malformed record
            today: Callable returning the analysis date
            history_capacity: Alert history size
        """
        if policy_events is None:
            policy_events = load_policy_events(settings.POLICY_EVENTS_FILE)
        if alert_rules is None:
            alert_rules = AlertRules(
                growth_threshold=settings.ALERT_GROWTH_THRESHOLD,
                enrollment_threshold=settings.ALERT_ENROLLMENT_THRESHOLD,
                days_to_deadline_threshold=settings.ALERT_DAYS_TO_DEADLINE,
            )

        self.policy_events: List[PolicyEvent] = sorted(policy_events, key=lambda e: e.date)
        self._today = today or date.today
        self._aggregator = EnrollmentAggregator(
            strict=settings.STRICT_INGESTION if strict is None else strict
        )
        self._snapshot = _empty_snapshot()
        self._load_lock = threading.Lock()

        self._detector = StatisticalAnomalyDetector()
        self._scorer = RiskMatrixScorer()
        self._patterns = PatternRecognizer()
        self._forecaster = TrendForecaster()
        self._alerts = AlertEngine(
            rules=alert_rules,
            capacity=history_capacity or settings.ALERT_HISTORY_CAPACITY,
        )
        self._policy = PolicyCorrelationAnalyzer()
        self._age = AgeGroupAnalyzer()
        self._quality = DataQualityAssessor()
        self._comparative = ComparativeAnalyzer()

    @property
    def snapshot(self) -> AggregateSnapshot:
        return self._snapshot

    @property
    def alert_rules(self) -> AlertRules:
        return self._alerts.rules

    def today(self) -> date:
        return self._today()

    def days_to_deadline(self) -> Optional[int]:
        return days_to_nearest_deadline(self.policy_events, self.today())

    def risk_weights(self) -> Dict[str, float]:
        return dict(self._scorer.weights)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def aggregate(self, records: Iterable[Any], replace: bool = True) -> AggregateSnapshot:
        """
        Aggregate records and make the result the current snapshot.

        Args:
            records: RawRecords or canonical mappings
            replace: Drop the current dataset first; otherwise append to it

        Raises:
            StructuralInputError: in strict mode, on the first malformed record
        """
        records = list(records)
        with self._load_lock:
            previous = self._snapshot
            if not replace:
                records = list(previous.records) + records

            snapshot = self._aggregator.aggregate(records)
            if not replace and previous.rejected_count:
                by_location = dict(previous.rejected_by_location)
                for code, count in snapshot.rejected_by_location.items():
                    by_location[code] = by_location.get(code, 0) + count
                snapshot = dataclasses.replace(
                    snapshot,
                    rejected_count=snapshot.rejected_count + previous.rejected_count,
                    rejected_by_location=by_location,
                )

            self._snapshot = snapshot
        return snapshot

    def load_rows(self, rows: Iterable[Mapping[str, Any]], replace: bool = True) -> AggregateSnapshot:
        """Normalize source headers, then aggregate."""
        return self.aggregate(records_from_rows(rows), replace=replace)

    def load_csv(self, source, replace: bool = True) -> AggregateSnapshot:
        """Load CSV text (str) or a CSV file (Path)."""
        return self.aggregate(records_from_csv(source), replace=replace)

    # ------------------------------------------------------------------
    # Core analyses
    # ------------------------------------------------------------------

    def detect_anomalies(self,
                         method: Optional[str] = None,
                         sensitivity: Optional[str] = None) -> List[AnomalyRecord]:
        return self._detector.detect(
            self._snapshot,
            method=method or settings.DEFAULT_ANOMALY_METHOD,
            sensitivity=sensitivity or settings.DEFAULT_SENSITIVITY,
            policy_events=self.policy_events,
            today=self.today(),
        )

    def score_risk(self) -> List[RiskMatrixEntry]:
        return self._scorer.score(self._snapshot, self.policy_events, self.today())

    def recognize_patterns(self) -> PatternReport:
        return self._patterns.recognize(self._snapshot)

    def forecast(self) -> ForecastReport:
        return self._forecaster.forecast(self._snapshot, self.policy_events, self.today())

    def configure_alerts(self, config: Union[AlertRules, Mapping[str, Any]]) -> AlertRules:
        """
        Raises:
            ConfigurationError: invalid values; current rules are kept
        """
        return self._alerts.configure(config)

    def evaluate_alerts(self, now: Optional[datetime] = None) -> AlertEvaluation:
        return self._alerts.evaluate(self._snapshot, self.policy_events, self.today(), now)

    def alert_history(self) -> List[Alert]:
        return self._alerts.history

    def clear_alert_history(self):
        self._alerts.clear_history()

    # ------------------------------------------------------------------
    # Supplementary analyses
    # ------------------------------------------------------------------

    def policy_correlation(self) -> List[PolicyCorrelation]:
        return self._policy.analyze(self._snapshot, self.policy_events)

    def analyze_age_groups(self) -> AgeReport:
        return self._age.analyze(self._snapshot)

    def assess_data_quality(self) -> QualityReport:
        return self._quality.assess(self._snapshot)

    def compare_districts(self) -> List[DistrictSummary]:
        return self._comparative.districts(self._snapshot)

    def compare_locations(self, codes: Sequence[str]) -> List[Dict[str, Any]]:
        return self._comparative.compare(self._snapshot, codes)

    def location_detail(self, code: str) -> Dict[str, Any]:
        """
        Full detail for one location, including its risk matrix row.

        Raises:
            LocationNotFoundError: unknown code
        """
        snapshot = self._snapshot
        pin = snapshot.get_pin(code)
        entry = self._scorer.score_location(pin, self.days_to_deadline())
        detail = pin.to_dict(include_series=True)
        detail["risk_matrix"] = entry.to_dict()
        return detail

    def summary(self) -> Dict[str, Any]:
        data = self._snapshot.summary()
        data["days_to_deadline"] = self.days_to_deadline()
        data["policy_events"] = [
            {"date": e.date.isoformat(), "title": e.title, "description": e.description}
            for e in self.policy_events
        ]
        return data


_service: Optional[AnalysisService] = None


def get_analysis_service() -> AnalysisService:
    """Process-wide service instance (FastAPI dependency)."""
    global _service
    if _service is None:
        _service = AnalysisService()
        logger.info(f"Analysis service ready with {len(_service.policy_events)} policy events")
    return _service


def reset_analysis_service():
    """Drop the process-wide instance (used by tests)."""
    global _service
    _service = None
