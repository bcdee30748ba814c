from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import List, Optional
import enum

from app.models.time_entry import WorkType, EntryStatus


class ClockInRequest(BaseModel):
    description: Optional[str] = None


class ClockOutRequest(BaseModel):
    break_minutes: int = Field(default=0, ge=0)


class TimeEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    start_time: datetime
    end_time: Optional[datetime] = None
    total_break_minutes: Optional[int] = 0
    work_type: WorkType
    description: Optional[str] = None
    approved: bool
    status: EntryStatus


class ClockStatus(BaseModel):
    is_clocked: bool
    current_entry: Optional[TimeEntryResponse] = None
    today_hours: float
    week_hours: float


class WeeklyHoursStatus(str, enum.Enum):
    SURPLUS = "SURPLUS"
    SHORTAGE = "SHORTAGE"
    ON_TARGET = "ON_TARGET"
    # Zero-hours contracts have no weekly target
    NO_TARGET = "NO_TARGET"


class WeeklyHours(BaseModel):
    user_id: int
    user_name: Optional[str] = None
    email: str
    contract_hours_per_week: int
    worked_hours: float
    surplus_hours: float
    shortage_hours: float
    status: WeeklyHoursStatus
    formatted_difference: str
    entry_count: int


class WeeklyOvertimeReport(BaseModel):
    week_start: date
    week_end: date
    users: List[WeeklyHours]
    total_surplus_hours: float
    total_shortage_hours: float
