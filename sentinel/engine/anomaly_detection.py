"""
Statistical Anomaly Detection.

Three interchangeable screens over per-location totals:
- Z-score of total enrollment (population mean / std)
- IQR fences around total enrollment
- Growth-rate threshold

Each returns AnomalyRecords ranked by score, highest first.
"""
import logging
import math
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from sentinel.engine.aggregation import AggregateSnapshot
from sentinel.utils.aggregators import population_mean_std
from sentinel.utils.date_utils import days_to_nearest_deadline

logger = logging.getLogger(__name__)


class AnomalyMethod(Enum):
    ZSCORE = "zscore"
    IQR = "iqr"
    GROWTH = "growth"


class Sensitivity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Confidence(Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


@dataclass
class AnomalyRecord:
    """A location flagged by one detection method."""
    location_code: str
    district: str
    enrollment: int
    score: float
    confidence: Confidence
    reason: str
    days_to_deadline: Optional[int]  # None when no future deadline

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location_code": self.location_code,
            "district": self.district,
            "enrollment": self.enrollment,
            "score": round(self.score, 2),
            "confidence": self.confidence.value,
            "reason": self.reason,
            "days_to_deadline": self.days_to_deadline,
        }


class StatisticalAnomalyDetector:
    """
    Rule-based anomaly screens with sensitivity-dependent cutoffs.

    Higher sensitivity always means a looser cutoff, so the set of flagged
    locations can only grow from low to high.
    """

    ZSCORE_THRESHOLDS = {
        Sensitivity.LOW: 3.0,
        Sensitivity.MEDIUM: 2.5,
        Sensitivity.HIGH: 2.0,
    }
    ZSCORE_CONFIDENCE = [(3.0, Confidence.HIGH), (2.5, Confidence.MEDIUM)]

    IQR_MULTIPLIERS = {
        Sensitivity.LOW: 2.5,
        Sensitivity.MEDIUM: 2.0,
        Sensitivity.HIGH: 1.5,
    }
    IQR_CONFIDENCE = [(100.0, Confidence.HIGH), (50.0, Confidence.MEDIUM)]

    GROWTH_THRESHOLDS = {
        Sensitivity.LOW: 200,
        Sensitivity.MEDIUM: 150,
        Sensitivity.HIGH: 100,
    }
    GROWTH_CONFIDENCE = [(250, Confidence.HIGH), (150, Confidence.MEDIUM)]

    def detect(self,
               snapshot: AggregateSnapshot,
               method: Union[str, AnomalyMethod] = AnomalyMethod.ZSCORE,
               sensitivity: Union[str, Sensitivity] = Sensitivity.MEDIUM,
               policy_events: Sequence = (),
               today: Optional[date] = None) -> List[AnomalyRecord]:
        """
        Run one detection method.

        Args:
            snapshot: Aggregated locations
            method: "zscore", "iqr" or "growth" (unknown names fall back to zscore)
            sensitivity: "low", "medium" or "high"
            policy_events: PolicyEvents used for days-to-deadline
            today: Analysis date for the deadline countdown

        Returns:
            AnomalyRecords sorted by descending score
        """
        method = self._resolve_method(method)
        sensitivity = Sensitivity(sensitivity)
        days = days_to_nearest_deadline(policy_events, today)

        if method == AnomalyMethod.IQR:
            anomalies = self.detect_iqr(snapshot, sensitivity, days)
        elif method == AnomalyMethod.GROWTH:
            anomalies = self.detect_growth(snapshot, sensitivity, days)
        else:
            anomalies = self.detect_zscore(snapshot, sensitivity, days)

        logger.debug(f"{method.value}/{sensitivity.value}: {len(anomalies)} anomalies")
        return sorted(anomalies, key=lambda a: a.score, reverse=True)

    def _resolve_method(self, method) -> AnomalyMethod:
        if isinstance(method, AnomalyMethod):
            return method
        try:
            return AnomalyMethod(method)
        except ValueError:
            logger.warning(f"Unknown anomaly method {method!r}, using zscore")
            return AnomalyMethod.ZSCORE

    def detect_zscore(self,
                      snapshot: AggregateSnapshot,
                      sensitivity: Sensitivity,
                      days_to_deadline: Optional[int] = None) -> List[AnomalyRecord]:
        """Flag locations whose |z| of total enrollment exceeds the threshold."""
        threshold = self.ZSCORE_THRESHOLDS[sensitivity]
        mean, std = population_mean_std([p.total_enrollment for p in snapshot.pins])

        # Zero variance: every location sits on the mean
        if std == 0:
            return []

        anomalies = []
        for pin in snapshot.pins:
            z = abs(pin.total_enrollment - mean) / std
            if z > threshold:
                anomalies.append(AnomalyRecord(
                    location_code=pin.code,
                    district=pin.district,
                    enrollment=pin.total_enrollment,
                    score=z,
                    confidence=self._confidence(z, self.ZSCORE_CONFIDENCE),
                    reason=f"Z-Score of {z:.2f} exceeds threshold of {threshold:g}",
                    days_to_deadline=days_to_deadline,
                ))
        return anomalies

    def detect_iqr(self,
                   snapshot: AggregateSnapshot,
                   sensitivity: Sensitivity,
                   days_to_deadline: Optional[int] = None) -> List[AnomalyRecord]:
        """Flag locations outside the Q1/Q3 fences."""
        values = sorted(p.total_enrollment for p in snapshot.pins)
        if not values:
            return []

        n = len(values)
        q1 = values[math.floor(n * 0.25)]
        q3 = values[math.floor(n * 0.75)]
        iqr = q3 - q1
        multiplier = self.IQR_MULTIPLIERS[sensitivity]
        lower = q1 - multiplier * iqr
        upper = q3 + multiplier * iqr

        anomalies = []
        for pin in snapshot.pins:
            x = pin.total_enrollment
            if x > upper:
                deviation = (x - upper) / max(abs(upper), 1) * 100
            elif x < lower:
                deviation = (lower - x) / max(abs(lower), 1) * 100
            else:
                continue

            score = round(deviation, 1)
            anomalies.append(AnomalyRecord(
                location_code=pin.code,
                district=pin.district,
                enrollment=x,
                score=score,
                confidence=self._confidence(score, self.IQR_CONFIDENCE),
                reason=f"{deviation:.1f}% deviation from IQR bounds ({lower:.0f} - {upper:.0f})",
                days_to_deadline=days_to_deadline,
            ))
        return anomalies

    def detect_growth(self,
                      snapshot: AggregateSnapshot,
                      sensitivity: Sensitivity,
                      days_to_deadline: Optional[int] = None) -> List[AnomalyRecord]:
        """Flag locations whose growth rate exceeds the threshold."""
        threshold = self.GROWTH_THRESHOLDS[sensitivity]

        anomalies = []
        for pin in snapshot.pins:
            if pin.growth_rate > threshold:
                anomalies.append(AnomalyRecord(
                    location_code=pin.code,
                    district=pin.district,
                    enrollment=pin.total_enrollment,
                    score=float(pin.growth_rate),
                    confidence=self._confidence(pin.growth_rate, self.GROWTH_CONFIDENCE),
                    reason=f"Growth rate of {pin.growth_rate}% exceeds threshold of {threshold}%",
                    days_to_deadline=days_to_deadline,
                ))
        return anomalies

    @staticmethod
    def _confidence(value: float, cutoffs) -> Confidence:
        for cutoff, confidence in cutoffs:
            if value > cutoff:
                return confidence
        return Confidence.LOW
