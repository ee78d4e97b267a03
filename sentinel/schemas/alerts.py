"""
Alert rule Pydantic schemas.
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional


class AlertRules(BaseModel):
    """Analyst-configured thresholds for the alert pass."""
    growth_threshold: float = Field(150, ge=0, description="Growth rate (%) above which a growth alert fires")
    enrollment_threshold: float = Field(3000, ge=0, description="Total enrollment above which a volume alert fires")
    days_to_deadline_threshold: int = Field(60, ge=1, le=3650, description="Deadline alert window in days")

    class Config:
        extra = "forbid"
        frozen = True

    @field_validator("growth_threshold", "enrollment_threshold", "days_to_deadline_threshold", mode="before")
    @classmethod
    def reject_bool(cls, v):
        if isinstance(v, bool):
            raise ValueError("must be a number")
        return v


class AlertRulesUpdate(BaseModel):
    """Partial update; omitted fields keep their current value."""
    growth_threshold: Optional[float] = None
    enrollment_threshold: Optional[float] = None
    days_to_deadline_threshold: Optional[int] = None

    class Config:
        extra = "forbid"
