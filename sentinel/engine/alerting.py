"""
Threshold Alerting.

Evaluates analyst-configured rules against every location and keeps a
bounded, most-recent-first alert history. Rules and history are the only
mutable state in the engine; both are guarded by one lock so that an
evaluation pass completes before the next configure/evaluate starts.
"""
import logging
import threading
import uuid
from collections import deque
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from sentinel.engine.aggregation import AggregateSnapshot, PinRecord
from sentinel.exceptions import ConfigurationError
from sentinel.schemas.alerts import AlertRules, AlertRulesUpdate
from sentinel.utils.date_utils import days_to_nearest_deadline

logger = logging.getLogger(__name__)


class AlertType(Enum):
    GROWTH = "Growth Rate"
    ENROLLMENT = "High Enrollment"
    DEADLINE = "Policy Deadline"


class AlertSeverity(Enum):
    HIGH = "High"
    CRITICAL = "Critical"


@dataclass(frozen=True)
class Alert:
    id: str
    location_code: str
    district: str
    type: AlertType
    severity: AlertSeverity
    message: str
    timestamp: datetime
    value: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "location_code": self.location_code,
            "district": self.district,
            "type": self.type.value,
            "severity": self.severity.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "value": self.value,
        }


@dataclass
class AlertEvaluation:
    active: List[Alert]
    history: List[Alert]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "active": [a.to_dict() for a in self.active],
            "history": [a.to_dict() for a in self.history],
            "critical_count": sum(1 for a in self.active if a.severity == AlertSeverity.CRITICAL),
            "high_count": sum(1 for a in self.active if a.severity == AlertSeverity.HIGH),
        }


class AlertEngine:
    """Rule evaluation with a rolling alert history."""

    HISTORY_CAPACITY = 50
    CRITICAL_MULTIPLIER = 1.5
    DEADLINE_MIN_GROWTH = 100
    DEADLINE_CRITICAL_DAYS = 30

    def __init__(self, rules: Optional[AlertRules] = None, capacity: int = HISTORY_CAPACITY):
        self._rules = rules or AlertRules()
        self._history: deque = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def rules(self) -> AlertRules:
        return self._rules

    @property
    def history(self) -> List[Alert]:
        with self._lock:
            return list(self._history)

    def configure(self, config: Union[AlertRules, AlertRulesUpdate, Mapping[str, Any]]) -> AlertRules:
        """
        Merge new threshold values onto the current rules.

        Raises:
            ConfigurationError: a value is non-numeric, out of range or an
                unknown field; the current rules are left untouched.
        """
        if isinstance(config, (AlertRules, AlertRulesUpdate)):
            updates = config.model_dump(exclude_none=True)
        else:
            try:
                updates = {k: v for k, v in dict(config).items() if v is not None}
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Alert configuration must be a mapping, got {type(config).__name__}") from e

        with self._lock:
            try:
                new_rules = AlertRules.model_validate({**self._rules.model_dump(), **updates})
            except ValidationError as e:
                messages = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
                logger.warning(f"Rejected alert configuration: {'; '.join(messages)}")
                raise ConfigurationError("Invalid alert configuration: " + "; ".join(messages), messages) from e
            self._rules = new_rules

        logger.info(f"Alert rules updated: {new_rules.model_dump()}")
        return new_rules

    def evaluate(self,
                 snapshot: AggregateSnapshot,
                 policy_events: Sequence = (),
                 today: Optional[date] = None,
                 now: Optional[datetime] = None) -> AlertEvaluation:
        """
        Run one alert pass and prepend its alerts to the history.

        Re-running with unchanged data emits equivalent alerts again.
        """
        days = days_to_nearest_deadline(policy_events, today)
        timestamp = now or datetime.now(timezone.utc)

        with self._lock:
            rules = self._rules
            alerts: List[Alert] = []
            for pin in snapshot.pins:
                alerts.extend(self._evaluate_location(pin, rules, days, timestamp))

            for alert in reversed(alerts):
                self._history.appendleft(alert)
            history = list(self._history)

        logger.info(f"Alert pass: {len(alerts)} alerts, history size {len(history)}")
        return AlertEvaluation(active=alerts, history=history)

    def clear_history(self):
        with self._lock:
            self._history.clear()

    def _evaluate_location(self,
                           pin: PinRecord,
                           rules: AlertRules,
                           days_to_deadline: Optional[int],
                           timestamp: datetime) -> List[Alert]:
        alerts = []

        if pin.growth_rate > rules.growth_threshold:
            alerts.append(self._alert(
                pin, AlertType.GROWTH, timestamp,
                severity=self._threshold_severity(pin.growth_rate, rules.growth_threshold),
                message=f"Growth rate of {pin.growth_rate}% exceeds threshold of {rules.growth_threshold:g}%",
                value=pin.growth_rate,
            ))

        if pin.total_enrollment > rules.enrollment_threshold:
            alerts.append(self._alert(
                pin, AlertType.ENROLLMENT, timestamp,
                severity=self._threshold_severity(pin.total_enrollment, rules.enrollment_threshold),
                message=(f"Enrollment of {pin.total_enrollment:,} exceeds threshold of "
                         f"{rules.enrollment_threshold:,.0f}"),
                value=pin.total_enrollment,
            ))

        if (days_to_deadline is not None
                and days_to_deadline < rules.days_to_deadline_threshold
                and pin.growth_rate > self.DEADLINE_MIN_GROWTH):
            alerts.append(self._alert(
                pin, AlertType.DEADLINE, timestamp,
                severity=(AlertSeverity.CRITICAL if days_to_deadline < self.DEADLINE_CRITICAL_DAYS
                          else AlertSeverity.HIGH),
                message=(f"High growth ({pin.growth_rate}%) detected {days_to_deadline} days "
                         f"before policy deadline"),
                value=days_to_deadline,
            ))

        return alerts

    def _threshold_severity(self, value: float, threshold: float) -> AlertSeverity:
        if value > threshold * self.CRITICAL_MULTIPLIER:
            return AlertSeverity.CRITICAL
        return AlertSeverity.HIGH

    @staticmethod
    def _alert(pin: PinRecord, alert_type: AlertType, timestamp: datetime,
               severity: AlertSeverity, message: str, value: float) -> Alert:
        slug = alert_type.name.lower()
        return Alert(
            id=f"{pin.code}-{slug}-{uuid.uuid4().hex[:8]}",
            location_code=pin.code,
            district=pin.district,
            type=alert_type,
            severity=severity,
            message=message,
            timestamp=timestamp,
            value=value,
        )
