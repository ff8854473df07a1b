"""Auth: login, logout, current user, password change.

SECURITY FEATURES:
- Password hashing with bcrypt
- httpOnly, Secure, SameSite cookies
- Generic error message on failed login (no user enumeration)
"""
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from medistock.api.deps import get_current_user, get_db
from medistock.core.audit import AuditLog
from medistock.core.config import settings
from medistock.core.security import create_access_token
from medistock.models.user import User
from medistock.schemas.user import PasswordChange, Token, UserLogin, UserResponse
from medistock.services import user_service

router = APIRouter()


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.post("/login", response_model=Token)
def login(data: UserLogin, request: Request, response: Response, db: Session = Depends(get_db)):
    """
    Login and set the token in an httpOnly cookie.

    The token is also returned in the body for API clients that send it as
    a Bearer header.
    """
    user = user_service.authenticate(db, data.email, data.password)
    if not user:
        AuditLog.log_authentication("login", data.email, _client_ip(request), False, "bad credentials")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token = create_access_token(subject=str(user.id), role=user.role)
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        secure=settings.SECURE_COOKIES,
        httponly=True,
        samesite=settings.SAME_SITE_COOKIE,
    )
    AuditLog.log_authentication("login", user.email, _client_ip(request), True)
    return Token(access_token=token, role=user.role)


@router.post("/logout")
def logout(response: Response, current_user: User = Depends(get_current_user)):
    response.delete_cookie(
        key=settings.AUTH_COOKIE_NAME,
        secure=settings.SECURE_COOKIES,
        httponly=True,
        samesite=settings.SAME_SITE_COOKIE,
    )
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    """Get current authenticated user."""
    return current_user


@router.post("/change-password")
def change_password(
    data: PasswordChange,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user_service.change_password(db, current_user, data.current_password, data.new_password)
    return {"message": "Password updated"}
