"""
Enrollment record Pydantic schemas.
"""
from pydantic import AliasChoices, BaseModel, Field, field_validator
from typing import List, Optional
from datetime import date
from sentinel.utils.date_utils import coerce_date


class RawRecord(BaseModel):
    """
    One validated enrollment row: a location's counts for a single date.

    Count fields default to 0 when absent. Instances are immutable.
    """
    date: date
    state: str = Field(..., min_length=1)
    district: str = Field(..., min_length=1)
    location_code: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("location_code", "pincode", "pin"),
        description="Postal pin code identifying the location",
    )
    age_0_5: int = Field(0, ge=0)
    age_5_17: int = Field(0, ge=0)
    age_18_plus: int = Field(0, ge=0, validation_alias=AliasChoices("age_18_plus", "age_18_greater"))

    class Config:
        frozen = True
        str_strip_whitespace = True

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v):
        parsed = coerce_date(v)
        if parsed is None:
            raise ValueError(f"Unrecognised date: {v!r}")
        return parsed

    @field_validator("location_code", mode="before")
    @classmethod
    def code_to_string(cls, v):
        if isinstance(v, bool):
            raise ValueError("location_code must be a string or integer")
        if isinstance(v, int):
            return str(v)
        if isinstance(v, float) and v.is_integer():
            return str(int(v))
        return v

    @field_validator("age_0_5", "age_5_17", "age_18_plus", mode="before")
    @classmethod
    def missing_count_is_zero(cls, v):
        if v is None or v == "":
            return 0
        if isinstance(v, float) and v != v:  # NaN from pandas
            return 0
        return v

    @property
    def total(self) -> int:
        """Sum of the three age buckets."""
        return self.age_0_5 + self.age_5_17 + self.age_18_plus


class PolicyEvent(BaseModel):
    """Dated external deadline used for proximity scoring."""
    date: date
    title: str
    description: str = ""

    class Config:
        frozen = True

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v):
        parsed = coerce_date(v)
        if parsed is None:
            raise ValueError(f"Unrecognised date: {v!r}")
        return parsed


class RecordUploadRequest(BaseModel):
    """JSON upload of raw rows (validated one by one on ingestion)."""
    records: List[dict] = Field(..., description="Rows with date/state/district/pincode and age counts")
    replace: bool = Field(True, description="Replace the current dataset instead of appending")


class CsvUploadRequest(BaseModel):
    """CSV text upload; headers are normalized on ingestion."""
    content: str = Field(..., min_length=1)
    replace: bool = True


class RecordUploadResponse(BaseModel):
    """Outcome of an ingestion + aggregation pass."""
    accepted: int
    rejected: int
    locations: int
    dates: int
    first_date: Optional[date]
    last_date: Optional[date]
