"""
User Model with role-based access.
"""
from sqlalchemy import Column, Integer, String, Enum, DateTime, Boolean
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from app.database import Base


class UserRole(str, enum.Enum):
    """
    User roles, most to least permissions.

    - ADMIN: Company-wide access, manages settings
    - HR_MANAGER: Personnel administration, approvals
    - MANAGER: Team planning and approvals
    - EMPLOYEE: Self-service access
    """
    ADMIN = "ADMIN"
    HR_MANAGER = "HR_MANAGER"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"


ELEVATED_ROLES = (UserRole.ADMIN, UserRole.MANAGER, UserRole.HR_MANAGER)


class ContractType(str, enum.Enum):
    PERMANENT_FULL_TIME = "PERMANENT_FULL_TIME"
    PERMANENT_PART_TIME = "PERMANENT_PART_TIME"
    TEMPORARY_FULL_TIME = "TEMPORARY_FULL_TIME"
    TEMPORARY_PART_TIME = "TEMPORARY_PART_TIME"
    ZERO_HOURS = "ZERO_HOURS"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    full_name = Column(String, nullable=True)

    role = Column(Enum(UserRole), default=UserRole.EMPLOYEE, nullable=False)
    contract_type = Column(Enum(ContractType), default=ContractType.PERMANENT_FULL_TIME, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    time_entries = relationship(
        "TimeEntry",
        foreign_keys="[TimeEntry.user_id]",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<User {self.email} ({self.role.value})>"

    @property
    def is_elevated(self) -> bool:
        """Admins, managers and HR managers may view and act on other users' data."""
        return self.role in ELEVATED_ROLES

    @property
    def contract_hours_per_week(self) -> int:
        if self.contract_type in (ContractType.PERMANENT_PART_TIME, ContractType.TEMPORARY_PART_TIME):
            return 32
        if self.contract_type == ContractType.ZERO_HOURS:
            return 0
        return 40
