from pydantic import BaseModel, EmailStr, Field, ConfigDict
from datetime import datetime

from inventory_api.models.user import UserRole


class UserCreate(BaseModel):
    """Schema for registering a new user."""
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    role: UserRole = Field(default=UserRole.CLIENT, description="admin or client")


class UserLogin(BaseModel):
    """Schema for login credentials."""
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """Public view of a user account."""
    id: int
    name: str
    email: EmailStr
    role: UserRole
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    """Access token issued on register/login."""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
