"""
Comparative Analysis: district roll-up and side-by-side location comparison.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

import pandas as pd

from sentinel.engine.aggregation import AggregateSnapshot, PinRecord, RiskTier
from sentinel.utils.aggregators import aggregate_by_district


@dataclass
class DistrictSummary:
    district: str
    state: str
    total_enrollment: int
    location_count: int
    high_risk_count: int
    avg_growth: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "district": self.district,
            "state": self.state,
            "total_enrollment": self.total_enrollment,
            "location_count": self.location_count,
            "high_risk_count": self.high_risk_count,
            "avg_growth": self.avg_growth,
        }


class ComparativeAnalyzer:

    MIN_COMPARE = 2
    MAX_COMPARE = 3

    def districts(self, snapshot: AggregateSnapshot) -> List[DistrictSummary]:
        if snapshot.is_empty:
            return []

        df = pd.DataFrame([
            {
                "state": pin.state,
                "district": pin.district,
                "total_enrollment": pin.total_enrollment,
                "location_count": 1,
                "high_risk_count": int(pin.risk_tier == RiskTier.HIGH),
                "growth_sum": pin.growth_rate,
            }
            for pin in snapshot.pins
        ])
        agg = aggregate_by_district(df)
        agg = agg.sort_values("total_enrollment", ascending=False, kind="stable")

        return [
            DistrictSummary(
                district=row.district,
                state=row.state,
                total_enrollment=int(row.total_enrollment),
                location_count=int(row.location_count),
                high_risk_count=int(row.high_risk_count),
                avg_growth=round(float(row.growth_sum) / int(row.location_count), 1),
            )
            for row in agg.itertuples(index=False)
        ]

    def compare(self, snapshot: AggregateSnapshot, codes: Sequence[str]) -> List[Dict[str, Any]]:
        """
        Side-by-side detail for 2-3 locations.

        Raises:
            ValueError: fewer than two or more than three distinct codes
            LocationNotFoundError: a code is not in the snapshot
        """
        codes = list(dict.fromkeys(c for c in codes if c))
        if not self.MIN_COMPARE <= len(codes) <= self.MAX_COMPARE:
            raise ValueError(
                f"Select between {self.MIN_COMPARE} and {self.MAX_COMPARE} locations to compare"
            )
        pins: List[PinRecord] = [snapshot.get_pin(code) for code in codes]
        return [pin.to_dict(include_series=True) for pin in pins]
