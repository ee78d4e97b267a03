"""
FastAPI application entry point.

Enrollment Sentinel - risk analytics over time-stamped enrollment records
keyed by state, district and pin code.
"""
import logging

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sentinel.config import settings, configure_logging
from sentinel.exceptions import ConfigurationError, LocationNotFoundError, StructuralInputError
from sentinel.routers import (
    records,
    anomaly,
    risk,
    patterns,
    forecasting,
    alerts,
    analytics,
    locations,
)
from sentinel.services.analysis_service import AnalysisService, get_analysis_service

configure_logging()
logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="""
    **Enrollment Sentinel API**

    Load enrollment records (date, state, district, pin code, age buckets)
    and query risk signals computed over the current dataset.

    ## Key Features

    * **Aggregation**: per-location series, growth rate and risk tier
    * **Anomaly Detection**: z-score, IQR and growth-threshold methods
    * **Risk Matrix**: weighted five-factor composite score
    * **Pattern Recognition**: quadrant clusters and correlated spikes
    * **Forecasting**: 30/60/90 day linear trend and early warnings
    * **Alerts**: configurable thresholds with a rolling history

    Border pushback figures are synthetic estimates, not measurements.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Startup event
@app.on_event("startup")
async def startup_event():
    """Build the analysis service so the policy timeline is loaded up front."""
    service = get_analysis_service()
    logger.info(f"{settings.PROJECT_NAME} {settings.VERSION} started "
                f"({len(service.policy_events)} policy events)")


# Include routers with prefixes
app.include_router(
    records.router,
    prefix=f"{settings.API_PREFIX}/records",
    tags=["Records"]
)
app.include_router(
    anomaly.router,
    prefix=f"{settings.API_PREFIX}/anomalies",
    tags=["Anomaly Detection"]
)
app.include_router(
    risk.router,
    prefix=f"{settings.API_PREFIX}/risk",
    tags=["Risk Matrix"]
)
app.include_router(
    patterns.router,
    prefix=f"{settings.API_PREFIX}/patterns",
    tags=["Pattern Recognition"]
)
app.include_router(
    forecasting.router,
    prefix=f"{settings.API_PREFIX}/forecast",
    tags=["Forecasting"]
)
app.include_router(
    alerts.router,
    prefix=f"{settings.API_PREFIX}/alerts",
    tags=["Alerts"]
)
app.include_router(
    analytics.router,
    prefix=f"{settings.API_PREFIX}/analytics",
    tags=["Analytics"]
)
app.include_router(
    locations.router,
    prefix=f"{settings.API_PREFIX}/locations",
    tags=["Locations"]
)


# Root endpoint
@app.get("/", tags=["Root"])
def root():
    """API root endpoint with basic information."""
    return {
        "message": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "docs": "/docs",
        "redoc": "/redoc",
        "endpoints": {
            "records": f"{settings.API_PREFIX}/records",
            "anomalies": f"{settings.API_PREFIX}/anomalies",
            "risk": f"{settings.API_PREFIX}/risk",
            "patterns": f"{settings.API_PREFIX}/patterns",
            "forecast": f"{settings.API_PREFIX}/forecast",
            "alerts": f"{settings.API_PREFIX}/alerts",
            "analytics": f"{settings.API_PREFIX}/analytics",
            "locations": f"{settings.API_PREFIX}/locations",
        }
    }


# Health check
@app.get(f"{settings.API_PREFIX}/health", tags=["Health"])
def health_check(service: AnalysisService = Depends(get_analysis_service)):
    """Health check endpoint."""
    snapshot = service.snapshot
    return {
        "status": "healthy",
        "version": settings.VERSION,
        "data_loaded": not snapshot.is_empty,
        "locations": len(snapshot.pins),
    }


def _error_response(status_code: int, error: str, detail=None) -> JSONResponse:
    content = {"error": error, "status_code": status_code}
    if detail is not None:
        content["detail"] = detail
    return JSONResponse(status_code=status_code, content=content)


# Error handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    return _error_response(exc.status_code, exc.detail)


@app.exception_handler(StructuralInputError)
async def structural_input_handler(request, exc):
    logger.warning(f"Rejected input on {request.url.path}: {exc}")
    return _error_response(400, str(exc))


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request, exc):
    return _error_response(400, str(exc), exc.errors)


@app.exception_handler(LocationNotFoundError)
async def location_not_found_handler(request, exc):
    return _error_response(404, str(exc))


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    logger.exception(f"Unhandled error on {request.url.path}")
    return _error_response(500, "Internal server error", str(exc))
