"""
Authentication service layer for business logic.

Covers sign-in and the admin-only user management operations. Admins may not
change their own role or delete their own account.
"""
import logging
from typing import Any, Dict, List
from sqlalchemy.orm import Session

from ..core.results import ActionResult, parse_payload
from ..core.security import (
    create_access_token,
    hash_password,
    password_length_error,
    user_claims,
    verify_password,
)
from ..exceptions import ResourceNotFoundException
from .exceptions import InvalidCredentialsException, InactiveAccountException
from .models import User, UserRole
from .schemas import UserCreate, UserResponse

# Set up logging
logger = logging.getLogger(__name__)

def login_user(db: Session, email: str, password: str) -> Dict[str, Any]:
    """
    Authenticate a user and generate an access token.

    Args:
        db: Database session
        email: User's email address
        password: User's password

    Returns:
        Dict with access token and user information

    Raises:
        InvalidCredentialsException: If credentials are invalid
        InactiveAccountException: If the account has been deactivated
    """
    user = db.query(User).filter(User.email == email).first()

    if not user or not verify_password(password, user.password_hash):
        logger.warning(f"Login failed: Invalid credentials for {email}")
        raise InvalidCredentialsException()

    if not user.is_active:
        logger.warning(f"Login failed: Account {user.id} is deactivated")
        raise InactiveAccountException()

    access_token = create_access_token(user_claims(user))

    logger.info(f"Login successful: User {user.id} ({email})")

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": UserResponse.model_validate(user),
    }

def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise ResourceNotFoundException("User not found")
    return user

def list_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.created_at.asc(), User.id.asc()).all()

def create_user(db: Session, data: Any) -> ActionResult:
    """
    Create a staff or admin account.

    Args:
        db: Database session
        data: Raw payload matching UserCreate

    Returns:
        ActionResult: The new user id, or field errors
    """
    payload, errors = parse_payload(UserCreate, data)
    if errors:
        return ActionResult.invalid(errors)

    existing = db.query(User).filter(User.email == payload.email).first()
    if existing:
        return ActionResult.invalid({"email": ["Email already in use"]})

    user = User(
        full_name=payload.full_name,
        email=payload.email,
        password_hash=hash_password(payload.password),
        role=payload.role,
    )
    db.add(user)
    try:
        db.commit()
        db.refresh(user)
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating user {payload.email}: {str(e)}")
        raise

    logger.info(f"User {user.id} created with role {user.role.value}")
    return ActionResult.ok(user.id)

def update_user_role(db: Session, user_id: int, role: UserRole, current_user: User) -> ActionResult:
    """
    Change another user's role.

    Raises:
        ResourceNotFoundException: If the user does not exist
    """
    if current_user.id == user_id:
        return ActionResult.failure("You cannot change your own role.")

    user = get_user(db, user_id)
    user.role = role
    try:
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating role of user {user_id}: {str(e)}")
        raise

    logger.info(f"User {user_id} role set to {role.value} by user {current_user.id}")
    return ActionResult.ok(user_id)

def delete_user(db: Session, user_id: int, current_user: User) -> ActionResult:
    """
    Delete another user's account.

    Records the user created keep their rows; the creator reference is cleared.

    Raises:
        ResourceNotFoundException: If the user does not exist
    """
    if current_user.id == user_id:
        return ActionResult.failure("You cannot delete your own account.")

    user = get_user(db, user_id)
    try:
        db.delete(user)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting user {user_id}: {str(e)}")
        raise

    logger.info(f"User {user_id} deleted by user {current_user.id}")
    return ActionResult.ok()

def reset_user_password(db: Session, user_id: int, new_password: str) -> ActionResult:
    """
    Set a new password for a user.

    Raises:
        ResourceNotFoundException: If the user does not exist
    """
    error = password_length_error(new_password)
    if error:
        return ActionResult.failure(error)

    user = get_user(db, user_id)
    user.password_hash = hash_password(new_password)
    try:
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error resetting password of user {user_id}: {str(e)}")
        raise

    logger.info(f"Password reset for user {user_id}")
    return ActionResult.ok(user_id)
