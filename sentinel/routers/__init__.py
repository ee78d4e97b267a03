"""
Routers package initialization.
"""
from sentinel.routers import records
from sentinel.routers import anomaly
from sentinel.routers import risk
from sentinel.routers import patterns
from sentinel.routers import forecasting
from sentinel.routers import alerts
from sentinel.routers import analytics
from sentinel.routers import locations

__all__ = [
    "records",
    "anomaly",
    "risk",
    "patterns",
    "forecasting",
    "alerts",
    "analytics",
    "locations",
]
