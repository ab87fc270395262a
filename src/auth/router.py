"""
Authentication routes for the referral tracker.
"""
from typing import Any, Dict, List
from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session

from ..core.results import result_response
from ..database import get_db
from .dependencies import get_current_active_user, require_admin
from .models import User
from .schemas import LoginResponse, UserLogin, UserPasswordReset, UserResponse, UserRoleUpdate
from .service import (
    create_user,
    delete_user,
    list_users,
    login_user,
    reset_user_password,
    update_user_role,
)

# Create API router
router = APIRouter()

@router.post("/login", response_model=LoginResponse, summary="User Login")
def login_route(login_data: UserLogin, db: Session = Depends(get_db)):
    """
    Exchange email and password for a bearer token.
    """
    return login_user(db, login_data.email, login_data.password)

@router.get("/me", response_model=UserResponse, summary="Get Current User Profile")
def get_current_user_profile(current_user: User = Depends(get_current_active_user)):
    return current_user

# ============================================================================
# USER MANAGEMENT (ADMIN)
# ============================================================================

@router.get("/users", response_model=List[UserResponse])
def list_users_route(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return list_users(db)

@router.post("/users", status_code=status.HTTP_201_CREATED)
def create_user_route(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """
    Create a staff or admin account.
    """
    return result_response(create_user(db, payload), status.HTTP_201_CREATED)

@router.put("/users/{user_id}/role")
def update_user_role_route(
    user_id: int,
    role_data: UserRoleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """
    Change another user's role. Admins cannot change their own role.
    """
    return result_response(update_user_role(db, user_id, role_data.role, current_user))

@router.put("/users/{user_id}/password")
def reset_user_password_route(
    user_id: int,
    reset_data: UserPasswordReset,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    return result_response(reset_user_password(db, user_id, reset_data.new_password))

@router.delete("/users/{user_id}")
def delete_user_route(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """
    Delete another user's account. Admins cannot delete themselves.
    """
    return result_response(delete_user(db, user_id, current_user))
