"""
Anomaly Detection API endpoints.
"""
from fastapi import APIRouter, Depends, Query
from typing import Literal, Optional

from sentinel.config import settings
from sentinel.services.analysis_service import AnalysisService, get_analysis_service

router = APIRouter()


@router.get("")
def get_anomalies(
    method: Optional[Literal["zscore", "iqr", "growth"]] = Query(None, description="Detection method"),
    sensitivity: Optional[Literal["low", "medium", "high"]] = Query(None, description="Sensitivity level"),
    service: AnalysisService = Depends(get_analysis_service)
):
    """
    Detect anomalous locations.

    - **zscore**: total enrollment far from the population mean
    - **iqr**: total enrollment outside the interquartile fences
    - **growth**: growth rate above the sensitivity threshold

    Results are ranked by descending score.
    """
    method = method or settings.DEFAULT_ANOMALY_METHOD
    sensitivity = sensitivity or settings.DEFAULT_SENSITIVITY
    anomalies = service.detect_anomalies(method, sensitivity)
    return {
        "method": method,
        "sensitivity": sensitivity,
        "total": len(anomalies),
        "anomalies": [a.to_dict() for a in anomalies],
    }
