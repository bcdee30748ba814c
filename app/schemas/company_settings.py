from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from datetime import date
from typing import List, Optional

from app.schemas.compensation import PendingUsagePolicy


class CompanySettingsUpdate(BaseModel):
    company_name: str = Field(min_length=1)
    contact_email: EmailStr
    contact_phone: Optional[str] = None
    website: Optional[str] = None

    weekend_rate: float = Field(default=0.5, ge=0)
    evening_rate: float = Field(default=0.25, ge=0)
    night_rate: float = Field(default=0.5, ge=0)
    overtime_rate: float = Field(default=1.0, ge=0)
    holiday_rate: float = Field(default=1.0, ge=0)
    daily_hours_threshold: float = Field(default=8.0, gt=0, le=24)
    daily_request_cap: float = Field(default=8.0, gt=0, le=24)
    pending_usage_policy: PendingUsagePolicy = PendingUsagePolicy.DEDUCT_IMMEDIATELY
    public_holidays: List[date] = Field(default_factory=list)

    @field_validator("company_name")
    @classmethod
    def company_name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Company name is required")
        return v.strip()


class CompanySettingsResponse(CompanySettingsUpdate):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
