"""
Supplementary analytics API endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List

from sentinel.services.analysis_service import AnalysisService, get_analysis_service

router = APIRouter()


@router.get("/age")
def get_age_analysis(service: AnalysisService = Depends(get_analysis_service)):
    """Age-group distribution, suspicious age ratios and age-group growth."""
    return service.analyze_age_groups().to_dict()


@router.get("/data-quality")
def get_data_quality(service: AnalysisService = Depends(get_analysis_service)):
    """Completeness, statistical outliers and consistency issues."""
    return service.assess_data_quality().to_dict()


@router.get("/districts")
def get_districts(service: AnalysisService = Depends(get_analysis_service)):
    """District roll-up ordered by total enrollment."""
    districts = service.compare_districts()
    return {"total": len(districts), "districts": [d.to_dict() for d in districts]}


@router.get("/compare")
def compare_locations(
    codes: List[str] = Query(..., description="Two or three location codes"),
    service: AnalysisService = Depends(get_analysis_service)
):
    """Side-by-side detail for 2-3 locations."""
    # Accept both ?codes=a&codes=b and ?codes=a,b
    flat = [c.strip() for value in codes for c in value.split(",") if c.strip()]
    try:
        locations = service.compare_locations(flat)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"locations": locations}
