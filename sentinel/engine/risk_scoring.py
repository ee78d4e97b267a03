"""
Weighted Risk Matrix.

Scores every location on five factors, each normalized to 0-100:
1. Growth rate
2. Enrollment volume
3. Border pushback estimate
4. Policy deadline proximity
5. Age distribution (adult share)

The composite is a weighted sum of the factors and maps to a Low / Medium /
High risk level. This is independent of the aggregation risk tier, which is
never modified here.
"""
import math
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from sentinel.engine.aggregation import AggregateSnapshot, PinRecord
from sentinel.utils.aggregators import clamp
from sentinel.utils.date_utils import days_to_nearest_deadline


class RiskLevel(Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


FACTORS = ["growth_rate", "enrollment_volume", "border_proximity", "policy_deadline", "age_distribution"]


@dataclass
class RiskMatrixEntry:
    """Per-location factor scores and weighted composite."""
    location_code: str
    district: str
    scores: Dict[str, float]
    total_score: float
    risk_level: RiskLevel

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location_code": self.location_code,
            "district": self.district,
            "scores": {name: round(value, 1) for name, value in self.scores.items()},
            "total_score": round(self.total_score, 1),
            "risk_level": self.risk_level.value,
        }


class RiskMatrixScorer:
    """
    Five-factor weighted risk scoring.

    Normalization scales map each raw factor onto 0-100 before capping.
    """

    DEFAULT_WEIGHTS = {
        "growth_rate": 0.30,
        "enrollment_volume": 0.25,
        "border_proximity": 0.20,
        "policy_deadline": 0.15,
        "age_distribution": 0.10,
    }

    GROWTH_SCALE = 300
    VOLUME_SCALE = 5000
    PUSHBACK_SCALE = 100

    # (days strictly below, score); beyond the last cutoff -> DEADLINE_FAR_SCORE
    DEADLINE_SCORES = [(30, 100), (60, 70), (90, 40)]
    DEADLINE_FAR_SCORE = 20
    NO_DEADLINE_SCORE = 0

    # (adult % strictly above, score); otherwise AGE_BASELINE_SCORE
    AGE_SCORES = [(80, 100), (70, 70), (60, 40)]
    AGE_BASELINE_SCORE = 20

    HIGH_CUTOFF = 70
    MEDIUM_CUTOFF = 40

    def __init__(self, weights: Optional[Dict[str, float]] = None):
        """
        Initialize scorer.

        Args:
            weights: Per-factor weights; must cover all five factors and sum to 1.0
        """
        self.weights = dict(weights or self.DEFAULT_WEIGHTS)

        if set(self.weights) != set(FACTORS):
            raise ValueError(f"Weights must cover exactly: {', '.join(FACTORS)}")
        if abs(math.fsum(self.weights.values()) - 1.0) > 1e-9:
            raise ValueError("Weights must sum to 1.0")

    def score(self,
              snapshot: AggregateSnapshot,
              policy_events: Sequence = (),
              today: Optional[date] = None) -> List[RiskMatrixEntry]:
        """
        Score every location.

        Returns:
            RiskMatrixEntries sorted by descending total score
        """
        days = days_to_nearest_deadline(policy_events, today)
        matrix = [self.score_location(pin, days) for pin in snapshot.pins]
        return sorted(matrix, key=lambda m: m.total_score, reverse=True)

    def score_location(self, pin: PinRecord, days_to_deadline: Optional[int]) -> RiskMatrixEntry:
        scores = {
            "growth_rate": clamp(pin.growth_rate / self.GROWTH_SCALE * 100),
            "enrollment_volume": clamp(pin.total_enrollment / self.VOLUME_SCALE * 100),
            "border_proximity": clamp(pin.border_pushback_estimate / self.PUSHBACK_SCALE * 100),
            "policy_deadline": float(self.deadline_score(days_to_deadline)),
            "age_distribution": float(self.age_score(pin)),
        }
        total = math.fsum(scores[name] * self.weights[name] for name in FACTORS)

        return RiskMatrixEntry(
            location_code=pin.code,
            district=pin.district,
            scores=scores,
            total_score=total,
            risk_level=self.level(total),
        )

    def deadline_score(self, days: Optional[int]) -> int:
        if days is None:
            return self.NO_DEADLINE_SCORE
        for cutoff, score in self.DEADLINE_SCORES:
            if days < cutoff:
                return score
        return self.DEADLINE_FAR_SCORE

    def age_score(self, pin: PinRecord) -> int:
        if not pin.series:
            return 0
        adult_pct = pin.adult_enrollment / pin.total_enrollment * 100 if pin.total_enrollment > 0 else 0
        for cutoff, score in self.AGE_SCORES:
            if adult_pct > cutoff:
                return score
        return self.AGE_BASELINE_SCORE

    def level(self, total_score: float) -> RiskLevel:
        if total_score > self.HIGH_CUTOFF:
            return RiskLevel.HIGH
        if total_score > self.MEDIUM_CUTOFF:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW
