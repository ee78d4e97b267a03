"""
Alert rule and evaluation API endpoints.
"""
from fastapi import APIRouter, Depends

from sentinel.schemas.alerts import AlertRules, AlertRulesUpdate
from sentinel.services.analysis_service import AnalysisService, get_analysis_service

router = APIRouter()


@router.get("/rules", response_model=AlertRules)
def get_rules(service: AnalysisService = Depends(get_analysis_service)):
    """Current alert thresholds."""
    return service.alert_rules


@router.put("/rules", response_model=AlertRules)
def update_rules(
    update: AlertRulesUpdate,
    service: AnalysisService = Depends(get_analysis_service)
):
    """
    Change alert thresholds. Omitted fields keep their value.

    Invalid values are rejected as a whole and the previous rules stay active.
    """
    return service.configure_alerts(update)


@router.post("/evaluate")
def evaluate_alerts(service: AnalysisService = Depends(get_analysis_service)):
    """Run one alert pass over the current data."""
    return service.evaluate_alerts().to_dict()


@router.get("/history")
def get_history(service: AnalysisService = Depends(get_analysis_service)):
    """Most recent alerts first."""
    history = service.alert_history()
    return {"total": len(history), "alerts": [a.to_dict() for a in history]}
