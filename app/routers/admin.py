from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import User, UserRole
from app.routers.auth_deps import require_role
from app.schemas.company_settings import CompanySettingsResponse, CompanySettingsUpdate
from app.services import company_settings_service
from app.services.audit import AuditService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/company-settings", response_model=CompanySettingsResponse)
def get_company_settings(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.ADMIN, UserRole.MANAGER]))
):
    return company_settings_service.get_company_settings(db)


@router.put("/company-settings", response_model=CompanySettingsResponse)
def update_company_settings(
    data: CompanySettingsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.ADMIN]))
):
    before = company_settings_service.get_company_settings(db)
    AuditService.log(
        db,
        action="update_company_settings",
        entity_type="company_settings",
        entity_id=before.id,
        user_id=current_user.id,
        user_role=current_user.role,
        details={"company_name": data.company_name},
        before_state=before,
        after_state=data,
    )
    return company_settings_service.update_company_settings(db, data)
