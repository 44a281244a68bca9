"""
Authentication for the Online Store API

Issues and validates the store's own JWTs (short-lived access token in the
Authorization header, long-lived refresh token in an httpOnly cookie), hashes
passwords, and provides the user / role dependencies used by the routers.
"""
import hashlib
import secrets
from typing import Optional, Tuple
from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from passlib.context import CryptContext

from storefront.core.config import settings
from storefront.domain.user import User
from storefront.repositories.user_repository import UserRepository


# Security scheme for bearer tokens
security = HTTPBearer(auto_error=False)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

REFRESH_COOKIE_NAME = "refreshToken"
REFRESH_COOKIE_PATH = "/api/users/refresh"


# ============================================================================
# Passwords and one-time tokens
# ============================================================================

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(plain_password, password_hash)


def hash_one_time_token(raw_token: str) -> str:
    """Only the sha256 of reset / verification tokens is stored"""
    return hashlib.sha256(raw_token.encode()).hexdigest()


def generate_one_time_token() -> Tuple[str, str, datetime]:
    """
    Create an email token.

    Returns:
        (raw token to email, hashed token to store, expiry)
    """
    raw = secrets.token_hex(32)
    expires = datetime.now(timezone.utc) + timedelta(minutes=settings.EMAIL_TOKEN_EXPIRE_MINUTES)
    return raw, hash_one_time_token(raw), expires


# ============================================================================
# JWT
# ============================================================================

def _create_token(user_id: int, token_type: str, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "id": user_id,
        "type": token_type,
        "iat": now,
        "exp": now + expires_delta,
        "jti": secrets.token_hex(8)
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def create_access_token(user_id: int) -> str:
    return _create_token(user_id, "access", timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))


def create_refresh_token(user_id: int) -> str:
    return _create_token(user_id, "refresh", timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))


def decode_token(token: str, expected_type: str = "access") -> dict:
    """
    Decode and validate one of our JWTs.

    Payload structure:
    {
        "id": 42,
        "type": "access" | "refresh",
        "iat": 1234567890,
        "exp": 1234567890,
        "jti": "a1b2c3d4e5f6a7b8"
    }
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        if "expired" in str(e).lower():
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Not authorized, token expired",
                headers={"WWW-Authenticate": "Bearer"}
            )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, token failed",
            headers={"WWW-Authenticate": "Bearer"}
        )

    if payload.get("type") != expected_type or payload.get("id") is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, token failed",
            headers={"WWW-Authenticate": "Bearer"}
        )
    return payload


# ============================================================================
# Dependencies
# ============================================================================

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> User:
    """
    Dependency that resolves the authenticated, non-deleted user.

    Usage:
        @router.get("/profile")
        async def profile(user: User = Depends(get_current_user)):
            return user
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, no token",
            headers={"WWW-Authenticate": "Bearer"}
        )

    payload = decode_token(credentials.credentials)

    user = UserRepository().find_by_id(int(payload["id"]))
    if not user or user.is_deleted:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, user not found",
            headers={"WWW-Authenticate": "Bearer"}
        )
    return user


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[User]:
    """Same as get_current_user but returns None instead of raising"""
    if not credentials:
        return None
    try:
        return await get_current_user(credentials)
    except HTTPException:
        return None


def require_role(required_role: str, detail: str):
    """
    Dependency factory for role-based access control.

    Roles are ordered user < admin < super-admin, so require_role("admin")
    also admits super-admins.
    """
    async def role_checker(user: User = Depends(get_current_user)) -> User:
        role_hierarchy = {
            "super-admin": 3,
            "admin": 2,
            "user": 1
        }

        if role_hierarchy.get(user.role, 0) < role_hierarchy.get(required_role, 0):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)

        return user

    return role_checker


require_admin = require_role("admin", "Not authorized as an admin")
require_super_admin = require_role("super-admin", "Not authorized as a super admin")
