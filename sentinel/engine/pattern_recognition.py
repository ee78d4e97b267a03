"""
Pattern Recognition.

Covers:
- Growth/volume quadrant clustering (rule based, every location lands in
  exactly one bucket)
- Spike-pattern similarity: pairwise Pearson correlation of monthly totals
- Weekday vs weekend enrollment split
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

from sentinel.engine.aggregation import AggregateSnapshot, PinRecord
from sentinel.utils.aggregators import pearson_correlation, percentage
from sentinel.utils.date_utils import is_weekend


class Cluster(Enum):
    HIGH_VOLUME = "high_volume"
    RAPID_GROWTH = "rapid_growth"
    STABLE = "stable"
    EMERGING = "emerging"


@dataclass
class CorrelatedLocation:
    location_code: str
    district: str
    correlation: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location_code": self.location_code,
            "district": self.district,
            "correlation": round(self.correlation, 2),
        }


@dataclass
class SpikePattern:
    """A primary location and the later locations that move with it."""
    primary_code: str
    primary_district: str
    similar: List[CorrelatedLocation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "primary_code": self.primary_code,
            "primary_district": self.primary_district,
            "similar": [s.to_dict() for s in self.similar],
        }


@dataclass
class WeekdaySplit:
    weekday_count: int
    weekend_count: int
    weekday_percentage: float
    weekend_percentage: float
    weekend_noteworthy: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weekday": {"count": self.weekday_count, "percentage": self.weekday_percentage},
            "weekend": {"count": self.weekend_count, "percentage": self.weekend_percentage},
            "weekend_noteworthy": self.weekend_noteworthy,
        }


@dataclass
class PatternReport:
    clusters: Dict[Cluster, List[PinRecord]]
    spike_patterns: List[SpikePattern]
    weekday_split: WeekdaySplit

    def to_dict(self) -> Dict[str, Any]:
        return {
            "clusters": {
                cluster.value: [
                    {"code": p.code, "district": p.district,
                     "total_enrollment": p.total_enrollment, "growth_rate": p.growth_rate}
                    for p in pins
                ]
                for cluster, pins in self.clusters.items()
            },
            "spike_patterns": [p.to_dict() for p in self.spike_patterns],
            "weekday_split": self.weekday_split.to_dict(),
        }


class PatternRecognizer:
    """Clustering, spike correlation and temporal split over a snapshot."""

    HIGH_VOLUME_ENROLLMENT = 3000
    RAPID_GROWTH = 150
    STABLE_ENROLLMENT = 2000
    STABLE_GROWTH_CEILING = 100

    CORRELATION_THRESHOLD = 0.7
    WEEKEND_SHARE_NOTEWORTHY = 20.0

    def recognize(self, snapshot: AggregateSnapshot) -> PatternReport:
        return PatternReport(
            clusters=self.cluster(snapshot),
            spike_patterns=self.spike_patterns(snapshot),
            weekday_split=self.weekday_split(snapshot),
        )

    def classify(self, pin: PinRecord) -> Cluster:
        """Predicates are checked in order; the first match wins."""
        if pin.total_enrollment > self.HIGH_VOLUME_ENROLLMENT and pin.growth_rate > self.RAPID_GROWTH:
            return Cluster.HIGH_VOLUME
        if pin.growth_rate > self.RAPID_GROWTH:
            return Cluster.RAPID_GROWTH
        if pin.total_enrollment > self.STABLE_ENROLLMENT and pin.growth_rate < self.STABLE_GROWTH_CEILING:
            return Cluster.STABLE
        return Cluster.EMERGING

    def cluster(self, snapshot: AggregateSnapshot) -> Dict[Cluster, List[PinRecord]]:
        clusters: Dict[Cluster, List[PinRecord]] = {c: [] for c in Cluster}
        for pin in snapshot.pins:
            clusters[self.classify(pin)].append(pin)
        return clusters

    def spike_patterns(self, snapshot: AggregateSnapshot) -> List[SpikePattern]:
        """
        Group locations with correlated monthly totals.

        Each unordered pair is compared once (i < j) and reported under the
        earlier location. Pairs with different series lengths are skipped.
        """
        pins = snapshot.pins
        series = [[m.enrollment for m in pin.monthly_totals] for pin in pins]

        patterns = []
        for i, primary in enumerate(pins):
            similar = []
            for j in range(i + 1, len(pins)):
                if len(series[i]) != len(series[j]):
                    continue
                r = pearson_correlation(series[i], series[j])
                if r > self.CORRELATION_THRESHOLD:
                    similar.append(CorrelatedLocation(pins[j].code, pins[j].district, r))
            if similar:
                patterns.append(SpikePattern(primary.code, primary.district, similar))
        return patterns

    def weekday_split(self, snapshot: AggregateSnapshot) -> WeekdaySplit:
        weekday = weekend = 0
        for record in snapshot.records:
            if is_weekend(record.date):
                weekend += record.total
            else:
                weekday += record.total

        total = weekday + weekend
        weekend_pct = percentage(weekend, total)
        return WeekdaySplit(
            weekday_count=weekday,
            weekend_count=weekend,
            weekday_percentage=percentage(weekday, total),
            weekend_percentage=weekend_pct,
            weekend_noteworthy=total > 0 and weekend / total * 100 > self.WEEKEND_SHARE_NOTEWORTHY,
        )
