"""
Age Group Analysis.

Covers:
- Overall distribution across the 0-5, 5-17 and 18+ buckets
- Locations with an unusually high adult or infant share
- Bucket growth between the first and last recorded dates
"""
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, List

from sentinel.engine.aggregation import COUNT_COLUMNS, AggregateSnapshot
from sentinel.utils.aggregators import percentage
from sentinel.utils.constants import AGE_GROUPS


@dataclass
class SuspiciousAgePattern:
    location_code: str
    district: str
    pattern: str
    percentage: float
    reason: str
    severity: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location_code": self.location_code,
            "district": self.district,
            "pattern": self.pattern,
            "percentage": self.percentage,
            "reason": self.reason,
            "severity": self.severity,
        }


@dataclass
class AgeReport:
    distribution: Dict[str, Dict[str, float]]
    suspicious: List[SuspiciousAgePattern]
    growth_rates: Dict[str, float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "distribution": self.distribution,
            "suspicious": [s.to_dict() for s in self.suspicious],
            "growth_rates": self.growth_rates,
        }


class AgeGroupAnalyzer:
    """Age-bucket distribution and ratio screening."""

    ADULT_SHARE_FLAG = 70
    ADULT_SHARE_HIGH = 85
    CHILD_SHARE_FLAG = 40
    CHILD_SHARE_HIGH = 50

    def analyze(self, snapshot: AggregateSnapshot) -> AgeReport:
        return AgeReport(
            distribution=self.distribution(snapshot),
            suspicious=self.suspicious_patterns(snapshot),
            growth_rates=self.growth_rates(snapshot),
        )

    def distribution(self, snapshot: AggregateSnapshot) -> Dict[str, Dict[str, float]]:
        totals = {column: 0 for column in COUNT_COLUMNS}
        for record in snapshot.records:
            for column in COUNT_COLUMNS:
                totals[column] += getattr(record, column)

        overall = sum(totals.values())
        return {
            column: {"label": label, "count": totals[column], "percentage": percentage(totals[column], overall)}
            for column, label in zip(COUNT_COLUMNS, AGE_GROUPS)
        }

    def suspicious_patterns(self, snapshot: AggregateSnapshot) -> List[SuspiciousAgePattern]:
        suspicious = []
        for pin in snapshot.pins:
            ages = pin.age_totals
            total = sum(ages.values())
            if total == 0:
                continue

            adult_pct = ages["age_18_plus"] / total * 100
            child_pct = ages["age_0_5"] / total * 100

            if adult_pct > self.ADULT_SHARE_FLAG:
                suspicious.append(SuspiciousAgePattern(
                    location_code=pin.code,
                    district=pin.district,
                    pattern="High Adult Ratio",
                    percentage=round(adult_pct, 1),
                    reason=f"{adult_pct:.1f}% adult enrollments (expected ~50-60%)",
                    severity="High" if adult_pct > self.ADULT_SHARE_HIGH else "Medium",
                ))
            if child_pct > self.CHILD_SHARE_FLAG:
                suspicious.append(SuspiciousAgePattern(
                    location_code=pin.code,
                    district=pin.district,
                    pattern="High Child Ratio",
                    percentage=round(child_pct, 1),
                    reason=f"{child_pct:.1f}% child (0-5) enrollments (expected ~15-25%)",
                    severity="High" if child_pct > self.CHILD_SHARE_HIGH else "Medium",
                ))
        return suspicious

    def growth_rates(self, snapshot: AggregateSnapshot) -> Dict[str, float]:
        """Percent change per bucket from the first to the last date."""
        by_date: "OrderedDict" = OrderedDict()
        for record in sorted(snapshot.records, key=lambda r: r.date):
            bucket = by_date.setdefault(record.date, {column: 0 for column in COUNT_COLUMNS})
            for column in COUNT_COLUMNS:
                bucket[column] += getattr(record, column)

        if len(by_date) < 2:
            return {column: 0.0 for column in COUNT_COLUMNS}

        buckets = list(by_date.values())
        older, recent = buckets[0], buckets[-1]
        return {
            column: round((recent[column] - older[column]) / older[column] * 100, 1) if older[column] > 0 else 0.0
            for column in COUNT_COLUMNS
        }
