from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging
from app.core.config import settings
from app.core.exceptions import AuthenticationError
from app.database import get_db
from app.models.user import User
from app.services import auth as auth_service
from app.services.audit import AuditService
from app.schemas.auth import LoginRequest, Token, UserResponse, UserSummary
from app.routers.auth_deps import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _authenticate(db: Session, email: str, password: str):
    user = db.query(User).filter(User.email == email).first()
    if user and auth_service.verify_password(password, user.hashed_password):
        return user
    return None


@router.post("/login", response_model=Token)
def login(login_data: LoginRequest, db: Session = Depends(get_db)):
    user = _authenticate(db, login_data.email, login_data.password)
    if user is None:
        AuditService.log(
            db,
            action="failed_login",
            entity_type="user",
            entity_id=None,
            user_id=None,
            user_role=None,
            details={"email": login_data.email}
        )
        db.commit()
        logger.info("Failed login attempt", extra={"email": login_data.email})
        raise AuthenticationError("Incorrect email or password")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is inactive")

    token = auth_service.create_access_token(
        data={"sub": user.email, "role": user.role.value, "user_id": user.id}
    )
    AuditService.log(
        db,
        action="login",
        entity_type="user",
        entity_id=user.id,
        user_id=user.id,
        user_role=user.role,
        details={"email": user.email}
    )
    db.commit()

    return Token(
        access_token=token,
        expires_in=settings.access_token_expire_minutes * 60,
        user=UserSummary.model_validate(user),
    )


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user
