"""
Forecasting API endpoints.
"""
from fastapi import APIRouter, Depends

from sentinel.services.analysis_service import AnalysisService, get_analysis_service

router = APIRouter()


@router.get("")
def get_forecast(service: AnalysisService = Depends(get_analysis_service)):
    """
    Linear trend projection of total enrollment for 30/60/90 days.

    A horizon is null when fewer than three dates of history are loaded.
    Also returns high-risk locations and early warnings.
    """
    return service.forecast().to_dict()
