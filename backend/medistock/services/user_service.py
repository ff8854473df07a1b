"""Staff accounts and roles."""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from medistock.core.audit import AuditLog
from medistock.core.config import settings
from medistock.core.exceptions import ConflictError, NotFoundError, ValidationError
from medistock.core.security import get_password_hash, verify_password
from medistock.models.user import Role, User

logger = logging.getLogger(__name__)


def _check_password(password: str) -> None:
    if len(password) < settings.MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters")
    if not any(c.isdigit() for c in password):
        raise ValidationError("Password must contain at least one number")


def _check_role(role: str) -> None:
    if role not in Role.ALL:
        raise ValidationError(f"Role must be one of: {', '.join(Role.ALL)}")


def authenticate(db: Session, email: str, password: str) -> Optional[User]:
    user = db.query(User).filter(User.email == email.lower()).first()
    if not user or not user.is_active or not verify_password(password, user.hashed_password):
        return None
    return user


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User", user_id)
    return user


def list_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.id).all()


def create_user(db: Session, email: str, password: str, role: str, name: Optional[str] = None) -> User:
    _check_role(role)
    _check_password(password)
    email = email.lower()
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("Email already registered")

    user = User(email=email, name=name, role=role, hashed_password=get_password_hash(password))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"[USERS] Created {role} account {user.id}")
    return user


def update_user(
    db: Session,
    user_id: int,
    acting_user: User,
    role: Optional[str] = None,
    is_active: Optional[bool] = None,
    name: Optional[str] = None,
) -> User:
    user = get_user(db, user_id)
    if user.id == acting_user.id and (
        (role is not None and role != Role.ADMIN) or is_active is False
    ):
        raise ValidationError("You cannot demote or deactivate your own account")

    if role is not None:
        _check_role(role)
        if role != user.role:
            user.role = role
            AuditLog.log_permission_change(user_id=user.id, granted_by=acting_user.id, role=role)
    if is_active is not None:
        user.is_active = is_active
    if name is not None:
        user.name = name
    db.commit()
    db.refresh(user)
    return user


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.hashed_password):
        raise ValidationError("Current password is incorrect")
    _check_password(new_password)
    user.hashed_password = get_password_hash(new_password)
    db.commit()
    AuditLog.log_action("password_change", "user", user.id, user)
