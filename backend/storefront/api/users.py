"""
Users API Endpoints
Registration, login / token refresh, password reset, email verification,
profile, and admin user management

Author: Online Store Team
Date: 2025-02-14
"""
import re
import logging

from fastapi import APIRouter, Cookie, Depends, HTTPException, Query, Response, status
from fastapi.responses import JSONResponse
from typing import Optional

from storefront.api.common import get_or_404, hard_delete_or_404, page_envelope, soft_delete_or_404
from storefront.core.auth import (
    REFRESH_COOKIE_NAME,
    REFRESH_COOKIE_PATH,
    create_access_token,
    create_refresh_token,
    decode_token,
    generate_one_time_token,
    get_current_user,
    hash_one_time_token,
    hash_password,
    require_admin,
    require_super_admin,
    verify_password,
)
from storefront.core.config import settings
from storefront.core.pagination import PageParams, pagination
from storefront.core.rate_limit import login_rate_limit, password_reset_rate_limit, register_rate_limit
from storefront.domain.user import (
    ForgotPasswordRequest,
    ResetPasswordRequest,
    User,
    UserAdminUpdate,
    UserCreate,
    UserLogin,
    UserProfileUpdate,
    VerifyEmailRequest,
)
from storefront.repositories.user_repository import UserRepository
from storefront.services.email_service import EmailService, send_safely

logger = logging.getLogger(__name__)

router = APIRouter()

_USERNAME_INVALID_CHARS = re.compile(r"[^A-Za-z0-9_-]")

FORGOT_PASSWORD_MESSAGE = "If that email is registered, a password reset link has been sent"


# =============================================================================
# Helpers
# =============================================================================

def username_from_email(email: str) -> str:
    """Local part of the email with anything outside [A-Za-z0-9_-] replaced by _"""
    return _USERNAME_INVALID_CHARS.sub("_", email.split("@", 1)[0]) or "user"


def _unique_username(repo: UserRepository, base: str) -> str:
    candidate, suffix = base, 1
    while repo.username_exists(candidate):
        suffix += 1
        candidate = f"{base}{suffix}"
    return candidate


def _set_refresh_cookie(response: Response, user_id: int) -> None:
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=create_refresh_token(user_id),
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        path=REFRESH_COOKIE_PATH,
        httponly=True,
        secure=settings.is_production,
        samesite="strict"
    )


def _clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(key=REFRESH_COOKIE_NAME, path=REFRESH_COOKIE_PATH)


def _auth_payload(user: User) -> dict:
    token = create_access_token(user.id)
    return {**user.model_dump(mode="json"), "token": token, "access_token": token}


def _send_verification(user: User) -> None:
    raw, hashed, expires = generate_one_time_token()
    UserRepository().set_email_verification_token(user.id, hashed, expires)
    send_safely(EmailService().send_verification_email, user.email, raw)


# =============================================================================
# Registration and sessions
# =============================================================================

@router.post("/", status_code=status.HTTP_201_CREATED)
async def register_user(
    payload: UserCreate,
    response: Response,
    _limit: None = Depends(register_rate_limit)
):
    """Create an account, sign it in and send the verification email"""
    repo = UserRepository()
    if repo.email_exists(payload.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already exists")

    user = repo.create(
        username=_unique_username(repo, username_from_email(payload.email)),
        email=payload.email,
        password_hash=hash_password(payload.password),
        name=payload.name
    )
    logger.info(f"Registered user {user.id} ({user.email})")

    _send_verification(user)
    _set_refresh_cookie(response, user.id)
    return _auth_payload(user)


@router.post("/login")
async def login(
    payload: UserLogin,
    response: Response,
    _limit: None = Depends(login_rate_limit)
):
    repo = UserRepository()
    user = repo.find_by_email(payload.email)
    if not user or not verify_password(payload.password, user.password_hash):
        logger.info(f"Failed login for {payload.email}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    repo.record_login(user.id)
    _set_refresh_cookie(response, user.id)
    return _auth_payload(user)


@router.post("/refresh")
async def refresh_access_token(refresh_token: Optional[str] = Cookie(None, alias=REFRESH_COOKIE_NAME)):
    """Exchange the refresh cookie for a new access token and rotate the cookie"""
    def unauthorized(detail: str) -> JSONResponse:
        failure = JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"message": detail})
        _clear_refresh_cookie(failure)
        return failure

    if not refresh_token:
        return unauthorized("Not authorized, no refresh token")

    try:
        payload = decode_token(refresh_token, expected_type="refresh")
    except HTTPException:
        return unauthorized("Not authorized, refresh token failed")

    user = UserRepository().find_by_id(int(payload["id"]))
    if not user:
        return unauthorized("Not authorized, user not found")

    token = create_access_token(user.id)
    success = JSONResponse(content={"token": token, "access_token": token})
    _set_refresh_cookie(success, user.id)
    return success


@router.post("/logout")
async def logout(response: Response):
    _clear_refresh_cookie(response)
    return {"message": "Logged out successfully"}


# =============================================================================
# Password reset and email verification
# =============================================================================

@router.post("/forgot-password")
async def forgot_password(
    payload: ForgotPasswordRequest,
    _limit: None = Depends(password_reset_rate_limit)
):
    """Same answer whether or not the email exists"""
    repo = UserRepository()
    user = repo.find_by_email(payload.email)
    if user:
        raw, hashed, expires = generate_one_time_token()
        repo.set_password_reset_token(user.id, hashed, expires)
        send_safely(EmailService().send_password_reset_email, user.email, raw)
        logger.info(f"Password reset requested for user {user.id}")

    return {"message": FORGOT_PASSWORD_MESSAGE}


@router.post("/reset-password")
async def reset_password(payload: ResetPasswordRequest):
    repo = UserRepository()
    user = repo.find_by_password_reset_token(hash_one_time_token(payload.token))
    if not user:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired reset token")

    repo.reset_password(user.id, hash_password(payload.new_password))
    logger.info(f"Password reset for user {user.id}")
    return {"message": "Password has been reset successfully"}


@router.post("/verify-email")
async def verify_email(payload: VerifyEmailRequest):
    repo = UserRepository()
    user = repo.find_by_email_verification_token(hash_one_time_token(payload.token))
    if not user:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired verification token")

    repo.mark_email_verified(user.id)
    return {"message": "Email verified successfully"}


@router.post("/resend-verification")
async def resend_verification(user: User = Depends(get_current_user)):
    if user.is_email_verified:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email is already verified")

    _send_verification(user)
    return {"message": "Verification email sent"}


# =============================================================================
# Profile
# =============================================================================

@router.get("/profile")
async def get_profile(user: User = Depends(get_current_user)):
    return user


@router.put("/profile")
async def update_profile(payload: UserProfileUpdate, user: User = Depends(get_current_user)):
    """Update own username / name / email / password; answers with a fresh token"""
    repo = UserRepository()
    fields = payload.model_dump(exclude_unset=True, exclude_none=True)

    if "username" in fields and repo.username_exists(fields["username"], exclude_id=user.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already in use")
    if "email" in fields and repo.email_exists(fields["email"], exclude_id=user.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")

    if "password" in fields:
        fields["password_hash"] = hash_password(fields.pop("password"))

    updated = repo.update(user.id, fields)
    return _auth_payload(updated)


# =============================================================================
# Admin
# =============================================================================

@router.get("/")
async def get_users(
    keyword: Optional[str] = Query(None, description="Search by username or email"),
    page: PageParams = Depends(pagination(10, 100)),
    _admin=Depends(require_admin)
):
    users, total = UserRepository().find_all(keyword=keyword, limit=page.page_size, offset=page.offset)
    return page_envelope("users", users, total, page)


@router.get("/{user_id}")
async def get_user(user_id: int, _admin=Depends(require_admin)):
    return get_or_404(UserRepository(), user_id, "User")


@router.put("/{user_id}")
async def update_user(user_id: int, payload: UserAdminUpdate, admin: User = Depends(require_admin)):
    repo = UserRepository()
    get_or_404(repo, user_id, "User")

    fields = payload.model_dump(exclude_unset=True, exclude_none=True)

    if fields.get("role") == "super-admin" and not admin.is_super_admin:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authorized as a super admin")
    if "username" in fields and repo.username_exists(fields["username"], exclude_id=user_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already in use")
    if "email" in fields and repo.email_exists(fields["email"], exclude_id=user_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")

    return repo.update(user_id, fields)


@router.delete("/{user_id}")
async def delete_user(user_id: int, admin: User = Depends(require_admin)):
    if user_id == admin.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")
    return soft_delete_or_404(UserRepository(), user_id, "User")


@router.delete("/{user_id}/hard")
async def hard_delete_user(user_id: int, admin: User = Depends(require_super_admin)):
    if user_id == admin.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")
    return hard_delete_or_404(UserRepository(), user_id, "User")
