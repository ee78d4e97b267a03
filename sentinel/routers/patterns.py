"""
Pattern recognition API endpoints.
"""
from fastapi import APIRouter, Depends

from sentinel.services.analysis_service import AnalysisService, get_analysis_service

router = APIRouter()


@router.get("")
def get_patterns(service: AnalysisService = Depends(get_analysis_service)):
    """Quadrant clusters, correlated spike groups and the weekday/weekend split."""
    return service.recognize_patterns().to_dict()
