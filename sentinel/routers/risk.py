"""
Risk matrix API endpoints.
"""
from fastapi import APIRouter, Depends

from sentinel.services.analysis_service import AnalysisService, get_analysis_service

router = APIRouter()


@router.get("/matrix")
def get_risk_matrix(service: AnalysisService = Depends(get_analysis_service)):
    """Weighted five-factor risk score per location, highest first."""
    matrix = service.score_risk()
    return {
        "days_to_deadline": service.days_to_deadline(),
        "weights": service.risk_weights(),
        "matrix": [entry.to_dict() for entry in matrix],
    }


@router.get("/policy-correlation")
def get_policy_correlation(service: AnalysisService = Depends(get_analysis_service)):
    """Average enrollment 60 days before vs 30 days after each policy event."""
    return {"correlations": [c.to_dict() for c in service.policy_correlation()]}
