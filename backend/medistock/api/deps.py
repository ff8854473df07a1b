"""FastAPI dependencies: DB session, current user from JWT, role gates.

JWT is accepted from:
1. Authorization header (API clients)
2. httpOnly cookie (web frontend)
"""
from typing import Generator, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from medistock.core.audit import AuditLog
from medistock.core.config import settings
from medistock.core.exceptions import BusinessError
from medistock.core.security import decode_access_token
from medistock.db.session import SessionLocal
from medistock.models.user import Role, User

security = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> int:
    """Header takes precedence over cookie."""
    token = None
    if credentials:
        token = credentials.credentials
    elif settings.AUTH_COOKIE_NAME in request.cookies:
        token = request.cookies[settings.AUTH_COOKIE_NAME]

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    sub = decode_access_token(token)
    if not sub:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return int(sub)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")


def get_current_user(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> User:
    """Load current user from DB. Deactivated accounts are rejected like unknown ones."""
    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise BusinessError.unauthorized(f"user {user_id} missing or inactive")
    return user


def require_roles(*roles: str):
    """Dependency factory: the current user must hold one of `roles`."""
    allowed = frozenset(roles)

    def checker(request: Request, current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            AuditLog.log_access_denied(current_user, allowed, request.url.path)
            raise BusinessError.forbidden(f"{current_user.role} on {request.method} {request.url.path}")
        return current_user

    return checker


# Screen-level gates: Auditors read, Pharmacists operate, Admins do everything
can_view = require_roles(*Role.ALL)
can_operate = require_roles(Role.ADMIN, Role.PHARMACIST)
admin_only = require_roles(Role.ADMIN)
