"""Staff account management (Admin only)."""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from medistock.api.deps import admin_only, get_db
from medistock.models.user import User
from medistock.schemas.user import UserCreate, UserResponse, UserUpdate
from medistock.services import user_service

router = APIRouter()


@router.get("", response_model=List[UserResponse])
def list_users(db: Session = Depends(get_db), current_user: User = Depends(admin_only)):
    return user_service.list_users(db)


@router.post("", response_model=UserResponse, status_code=201)
def create_user(data: UserCreate, db: Session = Depends(get_db), current_user: User = Depends(admin_only)):
    return user_service.create_user(db, data.email, data.password, data.role, data.name)


@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    """Change a user's role, name or active flag."""
    return user_service.update_user(
        db, user_id, current_user, role=data.role, is_active=data.is_active, name=data.name
    )
