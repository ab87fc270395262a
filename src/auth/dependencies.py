"""
FastAPI dependencies for authentication and authorization.
"""
from typing import Optional
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
import logging

from ..database import get_db
from ..core.security import verify_token
from ..core.permissions import Permission, has_permission
from .models import User
from .exceptions import InvalidTokenException, InactiveAccountException, PermissionDeniedException

logger = logging.getLogger(__name__)

# OAuth2 scheme for JWT token authentication
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)

def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    """
    Get current authenticated user from JWT token with database verification.

    Args:
        token: JWT token from Authorization header
        db: Database session

    Returns:
        User: Current authenticated user

    Raises:
        InvalidTokenException: If the token is missing, invalid, or the user is gone
    """
    if not token:
        raise InvalidTokenException()

    payload = verify_token(token)
    if not payload:
        raise InvalidTokenException("Invalid or expired token")

    user_id = payload.get("id")
    if not user_id:
        raise InvalidTokenException("Invalid token payload")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise InvalidTokenException("User not found")

    return user

def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    """
    Get current user and verify the account is still active.

    Raises:
        InactiveAccountException: If the account has been deactivated
    """
    if not current_user.is_active:
        raise InactiveAccountException()
    return current_user

def require_permission(permission: Permission):
    """
    Dependency factory to require a capability.

    Args:
        permission: Capability the route needs

    Returns:
        Function that checks the current user's role grants the capability
    """
    def permission_checker(current_user: User = Depends(get_current_active_user)) -> User:
        if not has_permission(current_user.role, permission):
            logger.warning(
                f"User {current_user.id} ({current_user.role.value}) denied {permission.value}"
            )
            raise PermissionDeniedException(
                f"Access denied. Missing permission: {permission.value}"
            )
        return current_user
    return permission_checker

# Convenience dependency for user management
require_admin = require_permission(Permission.MANAGE_USERS)
