"""
Services package initialization.
"""
from sentinel.services.analysis_service import AnalysisService, get_analysis_service
from sentinel.services.ingestion import (
    load_policy_events,
    normalize_header,
    records_from_csv,
    records_from_rows,
)

__all__ = [
    "AnalysisService",
    "get_analysis_service",
    "load_policy_events",
    "normalize_header",
    "records_from_csv",
    "records_from_rows",
]
