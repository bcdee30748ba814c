from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base
import enum

class WorkType(str, enum.Enum):
    REGULAR = "REGULAR"
    COMPENSATION_USED = "COMPENSATION_USED"

class EntryStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"

# Entries in these states no longer count toward any balance
INACTIVE_STATUSES = (EntryStatus.REJECTED, EntryStatus.CANCELLED)

class TimeEntry(Base):
    """A clocked work period or a compensation-leave booking (start/end are company-local wall time)."""
    __tablename__ = "time_entries"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=True)  # NULL while clocked in
    total_break_minutes = Column(Integer, default=0)
    work_type = Column(Enum(WorkType), default=WorkType.REGULAR, nullable=False, index=True)
    description = Column(String, nullable=True)

    approved = Column(Boolean, default=False, nullable=False)
    status = Column(Enum(EntryStatus), default=EntryStatus.PENDING, nullable=False)
    approved_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", foreign_keys=[user_id], back_populates="time_entries")
    approver = relationship("User", foreign_keys=[approved_by_id])
