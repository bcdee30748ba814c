from pydantic import BaseModel, EmailStr, ConfigDict, Field
from typing import Optional
from app.models.user import UserRole, ContractType
from datetime import datetime


class UserSummary(BaseModel):
    """Identity returned alongside a freshly issued token."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: EmailStr
    role: UserRole
    full_name: Optional[str] = None


class UserResponse(UserSummary):
    contract_type: Optional[ContractType] = None
    contract_hours_per_week: int
    is_active: bool
    created_at: Optional[datetime] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserSummary


class TokenData(BaseModel):
    email: str
    role: Optional[str] = None
