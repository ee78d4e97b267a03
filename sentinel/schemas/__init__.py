"""
Schemas package initialization.
"""
from sentinel.schemas.records import (
    RawRecord,
    PolicyEvent,
    RecordUploadRequest,
    CsvUploadRequest,
    RecordUploadResponse,
)
from sentinel.schemas.alerts import AlertRules, AlertRulesUpdate

__all__ = [
    "RawRecord",
    "PolicyEvent",
    "RecordUploadRequest",
    "CsvUploadRequest",
    "RecordUploadResponse",
    "AlertRules",
    "AlertRulesUpdate",
]
