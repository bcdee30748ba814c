from sqlalchemy import Column, Integer, String, Float, JSON, DateTime
from sqlalchemy.sql import func
from app.database import Base

class CompanySettings(Base):
    """Single-row company configuration, including the compensation premium policy."""
    __tablename__ = "company_settings"

    id = Column(Integer, primary_key=True, index=True)
    company_name = Column(String, nullable=False)
    contact_email = Column(String, nullable=False)
    contact_phone = Column(String, nullable=True)
    website = Column(String, nullable=True)

    weekend_rate = Column(Float, default=0.5)
    evening_rate = Column(Float, default=0.25)
    night_rate = Column(Float, default=0.5)
    overtime_rate = Column(Float, default=1.0)
    holiday_rate = Column(Float, default=1.0)
    daily_hours_threshold = Column(Float, default=8.0)
    daily_request_cap = Column(Float, default=8.0)
    pending_usage_policy = Column(String, default="deduct_immediately")
    public_holidays = Column(JSON, default=list)  # ISO dates

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
