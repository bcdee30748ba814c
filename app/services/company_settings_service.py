"""
Company settings persistence and the compensation policy derived from them.

Settings live in a single `company_settings` row; until an admin saves one,
the environment defaults from `settings.compensation` apply.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.company_settings import CompanySettings
from app.schemas.company_settings import CompanySettingsResponse, CompanySettingsUpdate
from app.schemas.compensation import CompensationPolicy

logger = logging.getLogger(__name__)


def _default_settings() -> CompanySettingsResponse:
    comp = settings.compensation
    return CompanySettingsResponse(
        company_name=settings.default_company_name or settings.app_name,
        contact_email="info@jobflow.nl",
        weekend_rate=comp.weekend_rate,
        evening_rate=comp.evening_rate,
        night_rate=comp.night_rate,
        overtime_rate=comp.overtime_rate,
        holiday_rate=comp.holiday_rate,
        daily_hours_threshold=comp.daily_hours_threshold,
        daily_request_cap=comp.daily_request_cap,
        pending_usage_policy=comp.pending_usage_policy,
    )


def _get_row(db: Session) -> Optional[CompanySettings]:
    return db.query(CompanySettings).order_by(CompanySettings.id).first()


def get_company_settings(db: Session) -> CompanySettingsResponse:
    row = _get_row(db)
    if row is None:
        return _default_settings()
    return CompanySettingsResponse.model_validate(row)


def update_company_settings(db: Session, data: CompanySettingsUpdate) -> CompanySettingsResponse:
    row = _get_row(db)
    if row is None:
        row = CompanySettings()
        db.add(row)

    values = data.model_dump()
    values["public_holidays"] = [d.isoformat() for d in data.public_holidays]
    values["pending_usage_policy"] = data.pending_usage_policy.value
    for key, value in values.items():
        setattr(row, key, value)

    db.commit()
    db.refresh(row)
    logger.info("Company settings updated", extra={"company_name": row.company_name})
    return CompanySettingsResponse.model_validate(row)


def get_compensation_policy(db: Session) -> CompensationPolicy:
    """Build the policy object handed to the ledger; the ledger itself never reads settings."""
    current = get_company_settings(db)
    comp = settings.compensation
    return CompensationPolicy(
        weekend_rate=current.weekend_rate,
        evening_rate=current.evening_rate,
        night_rate=current.night_rate,
        overtime_rate=current.overtime_rate,
        holiday_rate=current.holiday_rate,
        daily_hours_threshold=current.daily_hours_threshold,
        daily_request_cap=current.daily_request_cap,
        evening_start_hour=comp.evening_start_hour,
        night_start_hour=comp.night_start_hour,
        night_end_hour=comp.night_end_hour,
        pending_usage_policy=current.pending_usage_policy,
        public_holidays=current.public_holidays,
        timezone=settings.company_timezone,
    )
