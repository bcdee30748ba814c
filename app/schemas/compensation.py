from pydantic import BaseModel, ConfigDict, Field, computed_field
import datetime as dt
from typing import Annotated, List, Literal, Optional, Union
import enum

from app.models.time_entry import WorkType, EntryStatus


# --- Ledger input / policy ---

class WorkInterval(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    user_id: Optional[int] = None
    start_time: dt.datetime
    end_time: Optional[dt.datetime] = None
    total_break_minutes: Optional[int] = 0
    work_type: WorkType = WorkType.REGULAR
    approved: bool = False
    description: Optional[str] = None


class PendingUsagePolicy(str, enum.Enum):
    DEDUCT_IMMEDIATELY = "deduct_immediately"
    DEDUCT_ON_APPROVAL = "deduct_on_approval"


class CompensationPolicy(BaseModel):
    weekend_rate: float = 0.5
    evening_rate: float = 0.25
    night_rate: float = 0.5
    overtime_rate: float = 1.0
    holiday_rate: float = 1.0
    daily_hours_threshold: float = 8.0
    daily_request_cap: float = 8.0
    evening_start_hour: int = 18
    night_start_hour: int = 22
    night_end_hour: int = 6
    pending_usage_policy: PendingUsagePolicy = PendingUsagePolicy.DEDUCT_IMMEDIATELY
    public_holidays: List[dt.date] = Field(default_factory=list)
    # Aware datetimes are converted to this zone before classification
    timezone: Optional[str] = None


# --- Ledger output ---

class HoursBucket(BaseModel):
    total: float = 0.0
    compensation: float = 0.0
    formatted: str = "0u 0m"


class CompensationBreakdown(BaseModel):
    weekend_hours: HoursBucket = Field(default_factory=HoursBucket)
    evening_hours: HoursBucket = Field(default_factory=HoursBucket)
    night_hours: HoursBucket = Field(default_factory=HoursBucket)
    overtime_hours: HoursBucket = Field(default_factory=HoursBucket)
    holiday_hours: HoursBucket = Field(default_factory=HoursBucket)


class TransactionType(str, enum.Enum):
    ACCRUED = "ACCRUED"
    USED = "USED"


class LedgerTransaction(BaseModel):
    id: Optional[int] = None
    date: dt.date
    type: TransactionType
    hours: float
    reason: str
    source: str
    status: str


class DataQualityIssue(BaseModel):
    interval_id: Optional[int] = None
    issue: str
    detail: str


class CompensationBalance(BaseModel):
    total_accrued: float = 0.0
    total_used: float = 0.0
    pending_requests: float = 0.0
    breakdown: CompensationBreakdown = Field(default_factory=CompensationBreakdown)
    transactions: List[LedgerTransaction] = Field(default_factory=list)
    data_quality_issues: List[DataQualityIssue] = Field(default_factory=list)

    @computed_field
    @property
    def current_balance(self) -> float:
        return self.total_accrued - self.total_used


class UsageRejectionCode(str, enum.Enum):
    INVALID_HOURS = "INVALID_HOURS"
    DAILY_CAP_EXCEEDED = "DAILY_CAP_EXCEEDED"
    DATE_IN_PAST = "DATE_IN_PAST"
    DUPLICATE_DATE = "DUPLICATE_DATE"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"


class UsageAccepted(BaseModel):
    accepted: Literal[True] = True
    requested_hours: float
    remaining_balance: float


class UsageRejected(BaseModel):
    accepted: Literal[False] = False
    code: UsageRejectionCode
    message: str


UsageDecision = Union[UsageAccepted, UsageRejected]


# --- API payloads ---

class RequestDayType(str, enum.Enum):
    FULL_DAY = "FULL_DAY"
    HALF_DAY = "HALF_DAY"
    CUSTOM = "CUSTOM"


class CompensationRequestCreate(BaseModel):
    date: dt.date
    hours: float
    reason: Optional[str] = None
    type: RequestDayType = RequestDayType.CUSTOM


class CompensationRequestResult(BaseModel):
    request_id: int
    date: dt.date
    hours: float
    formatted_hours: str
    remaining_balance: float
    formatted_remaining_balance: str
    status: str
    requires_approval: bool = True
    description: Optional[str] = None


class ApproveAction(BaseModel):
    action: Literal["approve"]
    reason: Optional[str] = None


class RejectAction(BaseModel):
    action: Literal["reject"]
    reason: Optional[str] = None


class CancelAction(BaseModel):
    action: Literal["cancel"]


class UpdateAction(BaseModel):
    action: Literal["update"]
    date: Optional[dt.date] = None
    hours: Optional[float] = None
    reason: Optional[str] = None


CompensationRequestAction = Annotated[
    Union[ApproveAction, RejectAction, CancelAction, UpdateAction],
    Field(discriminator="action"),
]


class CompensationEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    start_time: dt.datetime
    end_time: Optional[dt.datetime] = None
    work_type: WorkType
    description: Optional[str] = None
    approved: bool
    status: EntryStatus
    approved_by_id: Optional[int] = None
    approved_at: Optional[dt.datetime] = None
    rejection_reason: Optional[str] = None


class PeriodInfo(BaseModel):
    start: dt.date
    end: dt.date
    label: str


class CompensationOverview(BaseModel):
    user_id: int
    user_name: Optional[str] = None
    contract_hours_per_week: int
    current_balance: float
    total_accrued: float
    total_used: float
    pending_requests: float
    breakdown: CompensationBreakdown
    recent_transactions: List[LedgerTransaction]
    projected_balance: float
    data_quality_issues: List[DataQualityIssue] = Field(default_factory=list)
    period: PeriodInfo
