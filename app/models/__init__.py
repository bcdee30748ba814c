# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import user, time_entry, company_settings, audit_log

# Explicit class exports for cleaner imports
from .user import User, UserRole
from .time_entry import TimeEntry, WorkType, EntryStatus
from .company_settings import CompanySettings
from .audit_log import AuditLog

__all__ = [
    "User",
    "UserRole",
    "TimeEntry",
    "WorkType",
    "EntryStatus",
    "CompanySettings",
    "AuditLog",
]
