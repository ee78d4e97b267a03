"""
Data Quality Assessment.

Covers:
- Completeness (accepted vs rejected rows, overall and per location)
- Statistical outliers on enrollment and growth rate
- Consistency checks (duplicate rows, suspicious date span)
"""
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, List

from sentinel.engine.aggregation import AggregateSnapshot
from sentinel.utils.aggregators import percentage, population_mean_std
from sentinel.utils.date_utils import date_span


@dataclass
class Outlier:
    location_code: str
    district: str
    type: str
    value: float
    expected: float
    z_score: float
    severity: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location_code": self.location_code,
            "district": self.district,
            "type": self.type,
            "value": self.value,
            "expected": round(self.expected, 1),
            "deviation": f"{self.z_score:.2f} std dev",
            "severity": self.severity,
        }


@dataclass
class ConsistencyIssue:
    type: str
    description: str
    severity: str = "Low"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "description": self.description, "severity": self.severity}


@dataclass
class QualityReport:
    completeness: Dict[str, Any]
    outliers: List[Outlier]
    consistency: List[ConsistencyIssue]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "completeness": self.completeness,
            "outliers": [o.to_dict() for o in self.outliers],
            "consistency": [c.to_dict() for c in self.consistency],
        }


class DataQualityAssessor:
    """Completeness, outlier and consistency screening."""

    OUTLIER_Z = 3.0
    OUTLIER_HIGH_Z = 4.0
    MAX_EXPECTED_SPAN_DAYS = 365

    def assess(self, snapshot: AggregateSnapshot) -> QualityReport:
        return QualityReport(
            completeness=self.completeness(snapshot),
            outliers=self.outliers(snapshot),
            consistency=self.consistency(snapshot),
        )

    def completeness(self, snapshot: AggregateSnapshot) -> Dict[str, Any]:
        """
        Share of accepted rows, overall and per location.

        Rejected rows without a usable location code count towards the
        overall score only.
        """
        complete = len(snapshot.records)
        total = complete + snapshot.rejected_count

        accepted_by_location = Counter(r.location_code for r in snapshot.records)
        codes = list(accepted_by_location)
        codes += [c for c in snapshot.rejected_by_location if c not in accepted_by_location]

        by_location = []
        for code in codes:
            accepted = accepted_by_location.get(code, 0)
            location_total = accepted + snapshot.rejected_by_location.get(code, 0)
            by_location.append({
                "location_code": code,
                "score": percentage(accepted, location_total),
                "complete": accepted,
                "total": location_total,
            })

        return {
            "score": percentage(complete, total) if total else 100.0,
            "total_records": total,
            "complete_records": complete,
            "rejected_records": snapshot.rejected_count,
            "by_location": by_location,
        }

    def outliers(self, snapshot: AggregateSnapshot) -> List[Outlier]:
        outliers = []
        for label, attr in (("Enrollment", "total_enrollment"), ("Growth Rate", "growth_rate")):
            values = [getattr(pin, attr) for pin in snapshot.pins]
            mean, std = population_mean_std(values)
            if std == 0:
                continue
            for pin, value in zip(snapshot.pins, values):
                z = abs(value - mean) / std
                if z > self.OUTLIER_Z:
                    outliers.append(Outlier(
                        location_code=pin.code,
                        district=pin.district,
                        type=label,
                        value=value,
                        expected=mean,
                        z_score=z,
                        severity="High" if z > self.OUTLIER_HIGH_Z else "Medium",
                    ))
        return outliers

    def consistency(self, snapshot: AggregateSnapshot) -> List[ConsistencyIssue]:
        issues = []

        seen = Counter((r.date, r.location_code) for r in snapshot.records)
        for (day, code), count in seen.items():
            for _ in range(count - 1):
                issues.append(ConsistencyIssue(
                    type="Duplicate",
                    description=f"Duplicate record found for PIN {code} on {day.isoformat()}",
                ))

        span = date_span(r.date for r in snapshot.records)
        if span is not None:
            days = (span[1] - span[0]).days
            if days > self.MAX_EXPECTED_SPAN_DAYS:
                issues.append(ConsistencyIssue(
                    type="Date Range",
                    description=f"Data spans {days} days - verify if this is expected",
                ))
        return issues
