"""
Bootstrap utilities for first admin creation.

The tracker has no self-registration: the first account is an admin created
from BOOTSTRAP_ADMIN_EMAIL / BOOTSTRAP_ADMIN_PASSWORD, who then adds the staff.
"""
import logging
from sqlalchemy.orm import Session
from ..auth.models import User, UserRole
from ..config import settings
from .security import hash_password, password_length_error

logger = logging.getLogger(__name__)

def admin_count(db: Session) -> int:
    return db.query(User).filter(User.role == UserRole.ADMIN).count()

def create_bootstrap_admin(db: Session) -> bool:
    """
    Create the first admin user from the bootstrap settings.

    Args:
        db: Database session

    Returns:
        bool: True if the admin was created, False otherwise
    """
    email = settings.bootstrap_admin_email
    password = settings.bootstrap_admin_password
    if not email or not password:
        logger.warning("Bootstrap admin credentials not provided in environment variables")
        return False

    error = password_length_error(password)
    if error:
        logger.warning(f"Bootstrap failed: {error}")
        return False

    if db.query(User).filter(User.email == email).first():
        logger.warning(f"Bootstrap failed: Email {email} already exists")
        return False

    try:
        admin = User(
            email=email,
            full_name="Administrator",
            password_hash=hash_password(password),
            role=UserRole.ADMIN,
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)
    except Exception as e:
        logger.error(f"Failed to create bootstrap admin: {str(e)}")
        db.rollback()
        return False

    logger.info(f"Bootstrap admin created: {admin.email} (ID: {admin.id})")
    return True

def bootstrap_admin_if_needed(db: Session) -> None:
    """
    Create the bootstrap admin when no admin exists. Called at startup.

    Args:
        db: Database session
    """
    existing = admin_count(db)
    if existing:
        logger.info(f"Admin users found ({existing} total). Bootstrap not needed.")
        return

    logger.info("No admin users found. Attempting bootstrap admin creation...")
    if not create_bootstrap_admin(db):
        logger.warning(
            "Bootstrap admin creation skipped. Set BOOTSTRAP_ADMIN_EMAIL and "
            "BOOTSTRAP_ADMIN_PASSWORD to create the first admin."
        )
