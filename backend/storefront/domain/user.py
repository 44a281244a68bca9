"""
User Domain Models

Accounts that can log in to the store: shoppers and staff (admin, super-admin).

Author: Online Store Team
Date: 2025-02-14
"""
from pydantic import BaseModel, Field, ConfigDict, EmailStr
from typing import Optional, Literal
from datetime import datetime


Role = Literal["user", "admin", "super-admin"]


class User(BaseModel):
    """
    User domain model

    password_hash is loaded for credential checks but never serialized.
    """

    id: int = Field(..., description="User ID")
    username: str = Field(..., description="Unique username")
    name: Optional[str] = Field(None, description="Display name")
    email: str = Field(..., description="Unique, lowercase email")
    password_hash: Optional[str] = Field(None, exclude=True)
    role: Role = Field("user", description="user, admin or super-admin")
    profile_image: Optional[str] = Field(None, description="Profile image URL")
    is_email_verified: bool = Field(False, description="Whether the email has been verified")
    last_login_at: Optional[datetime] = Field(None, description="Last successful login")

    is_deleted: bool = Field(False, description="Soft delete flag")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_admin(self) -> bool:
        return self.role in ("admin", "super-admin")

    @property
    def is_super_admin(self) -> bool:
        return self.role == "super-admin"

    @property
    def display_name(self) -> str:
        return self.name or self.username


class UserCreate(BaseModel):
    """Registration payload"""
    name: Optional[str] = None
    email: EmailStr
    password: str = Field(..., min_length=6)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserProfileUpdate(BaseModel):
    """Fields a user may change on their own profile"""
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6)


class UserAdminUpdate(BaseModel):
    """Fields an admin may change on any account"""
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    role: Optional[Role] = None


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str = Field(..., min_length=6)


class VerifyEmailRequest(BaseModel):
    token: str
