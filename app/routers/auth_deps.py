"""
Authentication and access-control dependencies.

Self-service users (EMPLOYEE) act on their own data only; ADMIN, HR_MANAGER
and MANAGER may read anyone's compensation and decide on requests.
"""
import logging
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from typing import Callable, List, NoReturn
from app.database import get_db
from app.models.user import User, UserRole
from app.services import auth as auth_service
from app.schemas.auth import TokenData

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def _unauthorized(detail: str) -> NoReturn:
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _token_data(token: str) -> TokenData:
    payload = auth_service.decode_access_token(token)
    if payload is None:
        logger.warning("Rejected bearer token: undecodable")
        _unauthorized("Could not validate credentials")
    if payload.get("error") == "TOKEN_EXPIRED":
        logger.info("Rejected bearer token: expired")
        _unauthorized("TOKEN_EXPIRED")
    if payload.get("type") != "access" or not payload.get("sub"):
        logger.warning("Rejected bearer token: wrong type or missing subject")
        _unauthorized("Invalid token")
    return TokenData(email=payload["sub"], role=payload.get("role"))


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    token_data = _token_data(token)
    user = db.query(User).filter(User.email == token_data.email).first()
    if user is None:
        logger.warning(f"Token subject {token_data.email} has no account")
        _unauthorized("User not found")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is inactive")
    return user


def require_role(allowed_roles: List[UserRole]) -> Callable:
    """Dependency factory: `Depends(require_role([UserRole.ADMIN]))`."""
    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required roles: {[r.value for r in allowed_roles]}"
            )
        return current_user
    return role_checker


def ensure_can_view_user(current_user: User, target_user_id: int) -> None:
    if current_user.is_elevated or current_user.id == target_user_id:
        return
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
