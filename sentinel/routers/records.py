"""
Record upload API endpoints.
"""
from fastapi import APIRouter, Depends

from sentinel.schemas.records import CsvUploadRequest, RecordUploadRequest, RecordUploadResponse
from sentinel.services.analysis_service import AnalysisService, get_analysis_service
from sentinel.engine.aggregation import AggregateSnapshot

router = APIRouter()


def _upload_response(snapshot: AggregateSnapshot) -> RecordUploadResponse:
    dates = list(snapshot.date_series.keys())
    return RecordUploadResponse(
        accepted=len(snapshot.records),
        rejected=snapshot.rejected_count,
        locations=len(snapshot.pins),
        dates=len(dates),
        first_date=dates[0] if dates else None,
        last_date=dates[-1] if dates else None,
    )


@router.post("", response_model=RecordUploadResponse)
def upload_records(
    request: RecordUploadRequest,
    service: AnalysisService = Depends(get_analysis_service)
):
    """
    Load enrollment rows sent as JSON.

    Column names are normalized ("Pincode", "Age 0 5", ...). Malformed rows
    are skipped and counted unless strict ingestion is enabled.
    """
    snapshot = service.load_rows(request.records, replace=request.replace)
    return _upload_response(snapshot)


@router.post("/csv", response_model=RecordUploadResponse)
def upload_csv(
    request: CsvUploadRequest,
    service: AnalysisService = Depends(get_analysis_service)
):
    """Load enrollment rows from CSV text."""
    snapshot = service.load_csv(request.content, replace=request.replace)
    return _upload_response(snapshot)


@router.get("/summary")
def get_summary(service: AnalysisService = Depends(get_analysis_service)):
    """Dataset totals, risk tier counts and the policy timeline."""
    return service.summary()
