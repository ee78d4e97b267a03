"""
Analytics engine for enrollment risk monitoring.

Core components:
1. Enrollment Aggregation - per-location series, growth rate, risk tier
2. Statistical Anomaly Detection - z-score, IQR, growth threshold
3. Weighted Risk Matrix - five-factor composite score
4. Pattern Recognition - quadrant clusters, spike correlation, weekday split
5. Trend Forecasting - 30/60/90 day projection, early warnings
6. Threshold Alerting - configurable rules, bounded history

Supplementary analyses: policy correlation, age groups, data quality,
district/location comparison.
"""

from .aggregation import (
    AggregateSnapshot,
    EnrollmentAggregator,
    MonthlyTotal,
    PinRecord,
    RiskTier,
    SeriesPoint,
)
from .anomaly_detection import AnomalyMethod, AnomalyRecord, Confidence, Sensitivity, StatisticalAnomalyDetector
from .risk_scoring import RiskLevel, RiskMatrixEntry, RiskMatrixScorer
from .pattern_recognition import Cluster, PatternRecognizer, PatternReport
from .forecasting import ForecastReport, TrendForecaster
from .alerting import Alert, AlertEngine, AlertEvaluation, AlertSeverity, AlertType
from .policy_correlation import PolicyCorrelationAnalyzer
from .age_analysis import AgeGroupAnalyzer
from .data_quality import DataQualityAssessor
from .comparative import ComparativeAnalyzer

__all__ = [
    'AggregateSnapshot',
    'EnrollmentAggregator',
    'MonthlyTotal',
    'PinRecord',
    'RiskTier',
    'SeriesPoint',
    'AnomalyMethod',
    'AnomalyRecord',
    'Confidence',
    'Sensitivity',
    'StatisticalAnomalyDetector',
    'RiskLevel',
    'RiskMatrixEntry',
    'RiskMatrixScorer',
    'Cluster',
    'PatternRecognizer',
    'PatternReport',
    'ForecastReport',
    'TrendForecaster',
    'Alert',
    'AlertEngine',
    'AlertEvaluation',
    'AlertSeverity',
    'AlertType',
    'PolicyCorrelationAnalyzer',
    'AgeGroupAnalyzer',
    'DataQualityAssessor',
    'ComparativeAnalyzer',
]
