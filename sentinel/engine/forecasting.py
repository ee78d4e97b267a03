"""
Trend Forecasting and Early Warning.

Covers:
- 30/60/90 day enrollment projection by compounding the average
  period-over-period growth of the last six DateSeries points
- Per-location anomaly probability (additive heuristic, capped at 100)
- High-risk location ranking and early warnings

No statistical model is fitted; this is plain trend extrapolation.
"""
import math
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from sentinel.engine.aggregation import AggregateSnapshot, PinRecord, RiskTier
from sentinel.utils.aggregators import round_half_up
from sentinel.utils.date_utils import days_to_nearest_deadline


class WarningSeverity(Enum):
    HIGH = "High"
    CRITICAL = "Critical"


@dataclass
class TrendForecast:
    """Projected total for one horizon."""
    horizon_days: int
    periods: int
    value: int
    avg_growth: float
    confidence: str
    trend: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "horizon_days": self.horizon_days,
            "periods": self.periods,
            "value": self.value,
            "growth_rate": round(self.avg_growth * 100, 1),
            "confidence": self.confidence,
            "trend": self.trend,
        }


@dataclass
class HighRiskLocation:
    location_code: str
    district: str
    probability: int
    current_risk: RiskTier

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location_code": self.location_code,
            "district": self.district,
            "probability": self.probability,
            "current_risk": self.current_risk.value,
        }


@dataclass
class EarlyWarning:
    location_code: str
    district: str
    severity: WarningSeverity
    probability: int
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location_code": self.location_code,
            "district": self.district,
            "severity": self.severity.value,
            "probability": self.probability,
            "message": self.message,
        }


@dataclass
class ForecastReport:
    next_30_days: Optional[TrendForecast]
    next_60_days: Optional[TrendForecast]
    next_90_days: Optional[TrendForecast]
    high_risk_locations: List[HighRiskLocation]
    early_warnings: List[EarlyWarning]

    def to_dict(self) -> Dict[str, Any]:
        def horizon(f):
            return f.to_dict() if f is not None else None

        return {
            "next_30_days": horizon(self.next_30_days),
            "next_60_days": horizon(self.next_60_days),
            "next_90_days": horizon(self.next_90_days),
            "high_risk_locations": [h.to_dict() for h in self.high_risk_locations],
            "early_warnings": [w.to_dict() for w in self.early_warnings],
        }


class TrendForecaster:
    """
    Trend extrapolation plus heuristic anomaly probability.

    The growth cutoffs here are independent of the anomaly detector's and
    the alert engine's and are tuned separately.
    """

    HISTORY_WINDOW = 6
    MIN_HISTORY = 3
    DAYS_PER_PERIOD = 30
    HORIZONS = (30, 60, 90)

    # Above this average growth the projection is labelled Medium, else High
    VOLATILE_GROWTH = 0.10

    # (strictly above, points)
    GROWTH_POINTS = [(200, 40), (150, 30), (100, 20)]
    VOLUME_POINTS = [(4000, 30), (2500, 20), (1500, 10)]
    PUSHBACK_POINTS = [(70, 20), (40, 10)]
    DEADLINE_WINDOW_DAYS = 60
    DEADLINE_POINTS = 10
    MAX_PROBABILITY = 100

    HIGH_RISK_GROWTH = 150
    HIGH_RISK_LIMIT = 10

    WARNING_PROBABILITY = 60
    CRITICAL_PROBABILITY = 80
    EXTREME_GROWTH = 200
    HIGH_VOLUME = 4000

    def forecast(self,
                 snapshot: AggregateSnapshot,
                 policy_events: Sequence = (),
                 today: Optional[date] = None) -> ForecastReport:
        days = days_to_nearest_deadline(policy_events, today)
        history = list(snapshot.date_series.values())
        next_30, next_60, next_90 = (self.predict(history, h) for h in self.HORIZONS)

        return ForecastReport(
            next_30_days=next_30,
            next_60_days=next_60,
            next_90_days=next_90,
            high_risk_locations=self.high_risk_locations(snapshot, days),
            early_warnings=self.early_warnings(snapshot, days),
        )

    def average_growth(self, history: Sequence[float]) -> float:
        """Mean relative change across consecutive pairs of the recent window."""
        recent = list(history[-self.HISTORY_WINDOW:])
        if len(recent) < 2:
            return 0.0
        changes = [
            (curr - prev) / prev if prev else 0.0
            for prev, curr in zip(recent, recent[1:])
        ]
        return sum(changes) / len(changes)

    def predict(self, history: Sequence[float], horizon_days: int) -> Optional[TrendForecast]:
        """
        Project the last known total forward.

        Returns:
            TrendForecast, or None when fewer than MIN_HISTORY points exist
        """
        if len(history) < self.MIN_HISTORY:
            return None

        avg_growth = self.average_growth(history)
        periods = math.ceil(horizon_days / self.DAYS_PER_PERIOD)
        predicted = history[-1] * (1 + avg_growth) ** periods

        return TrendForecast(
            horizon_days=horizon_days,
            periods=periods,
            value=round_half_up(predicted),
            avg_growth=avg_growth,
            confidence="Medium" if avg_growth > self.VOLATILE_GROWTH else "High",
            trend="Increasing" if avg_growth > 0 else "Decreasing",
        )

    def anomaly_probability(self, pin: PinRecord, days_to_deadline: Optional[int]) -> int:
        probability = 0
        probability += self._points(pin.growth_rate, self.GROWTH_POINTS)
        probability += self._points(pin.total_enrollment, self.VOLUME_POINTS)
        probability += self._points(pin.border_pushback_estimate, self.PUSHBACK_POINTS)
        if days_to_deadline is not None and days_to_deadline < self.DEADLINE_WINDOW_DAYS:
            probability += self.DEADLINE_POINTS
        return min(probability, self.MAX_PROBABILITY)

    def high_risk_locations(self,
                            snapshot: AggregateSnapshot,
                            days_to_deadline: Optional[int]) -> List[HighRiskLocation]:
        candidates = [
            HighRiskLocation(
                location_code=pin.code,
                district=pin.district,
                probability=self.anomaly_probability(pin, days_to_deadline),
                current_risk=pin.risk_tier,
            )
            for pin in snapshot.pins
            if pin.risk_tier == RiskTier.HIGH or pin.growth_rate > self.HIGH_RISK_GROWTH
        ]
        candidates.sort(key=lambda c: c.probability, reverse=True)
        return candidates[:self.HIGH_RISK_LIMIT]

    def early_warnings(self,
                       snapshot: AggregateSnapshot,
                       days_to_deadline: Optional[int]) -> List[EarlyWarning]:
        warnings = []
        for pin in snapshot.pins:
            probability = self.anomaly_probability(pin, days_to_deadline)
            if probability <= self.WARNING_PROBABILITY:
                continue
            warnings.append(EarlyWarning(
                location_code=pin.code,
                district=pin.district,
                severity=WarningSeverity.CRITICAL if probability > self.CRITICAL_PROBABILITY else WarningSeverity.HIGH,
                probability=probability,
                message=self.warning_message(pin, days_to_deadline),
            ))
        warnings.sort(key=lambda w: w.probability, reverse=True)
        return warnings

    def warning_message(self, pin: PinRecord, days_to_deadline: Optional[int]) -> str:
        reasons = []
        if pin.growth_rate > self.EXTREME_GROWTH:
            reasons.append(f"Extreme growth rate of {pin.growth_rate}%")
        if pin.total_enrollment > self.HIGH_VOLUME:
            reasons.append(f"High enrollment volume ({pin.total_enrollment:,})")
        if days_to_deadline is not None and days_to_deadline < self.DEADLINE_WINDOW_DAYS:
            reasons.append(f"{days_to_deadline} days to policy deadline")

        if not reasons:
            return "Combined moderate indicators exceed the warning threshold."
        return ". ".join(reasons) + "."

    @staticmethod
    def _points(value: float, tiers) -> int:
        for cutoff, points in tiers:
            if value > cutoff:
                return points
        return 0
