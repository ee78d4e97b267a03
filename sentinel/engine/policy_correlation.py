"""
Policy Event Correlation.

Compares average per-record enrollment in a window before each policy event
with the window after it.
"""
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Sequence

from sentinel.engine.aggregation import AggregateSnapshot


@dataclass
class PolicyCorrelation:
    policy: str
    date: date
    avg_before: float
    avg_after: float
    change_pct: float
    strength: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "policy": self.policy,
            "date": self.date.isoformat(),
            "avg_before": round(self.avg_before),
            "avg_after": round(self.avg_after),
            "change_pct": self.change_pct,
            "strength": self.strength,
        }


class PolicyCorrelationAnalyzer:
    """Before/after enrollment averages around each policy date."""

    DAYS_BEFORE = 60
    DAYS_AFTER = 30
    STRONG_CHANGE = 50
    MODERATE_CHANGE = 20

    def analyze(self, snapshot: AggregateSnapshot, policy_events: Sequence) -> List[PolicyCorrelation]:
        results = []
        for event in policy_events:
            before_total = before_count = after_total = after_count = 0

            for record in snapshot.records:
                diff = (record.date - event.date).days
                if -self.DAYS_BEFORE <= diff < 0:
                    before_total += record.total
                    before_count += 1
                elif 0 <= diff <= self.DAYS_AFTER:
                    after_total += record.total
                    after_count += 1

            avg_before = before_total / before_count if before_count else 0.0
            avg_after = after_total / after_count if after_count else 0.0
            change = round((avg_after - avg_before) / avg_before * 100, 1) if avg_before > 0 else 0.0

            results.append(PolicyCorrelation(
                policy=event.title,
                date=event.date,
                avg_before=avg_before,
                avg_after=avg_after,
                change_pct=change,
                strength=self.strength(change),
            ))
        return results

    def strength(self, change_pct: float) -> str:
        if abs(change_pct) > self.STRONG_CHANGE:
            return "Strong"
        if abs(change_pct) > self.MODERATE_CHANGE:
            return "Moderate"
        return "Weak"
