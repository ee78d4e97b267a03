"""
Location detail API endpoints.
"""
from fastapi import APIRouter, Depends

from sentinel.services.analysis_service import AnalysisService, get_analysis_service

router = APIRouter()


@router.get("/{code}")
def get_location(code: str, service: AnalysisService = Depends(get_analysis_service)):
    """Series, monthly totals, age split, explanation and risk matrix row for one location."""
    return service.location_detail(code)
