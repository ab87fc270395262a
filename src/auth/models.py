"""
User Model - Stores clinic staff accounts used to sign in to the referral tracker.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum
from sqlalchemy.sql import func
import enum
from ..database import Base

class UserRole(str, enum.Enum):
    """
    Enumeration for user roles in the referral tracker.

    Roles:
    - STAFF: Front-office staff who work the referral pipeline
    - ADMIN: Administrators who additionally manage user accounts
    """
    STAFF = "STAFF"
    ADMIN = "ADMIN"

class User(Base):
    """
    User Model - Stores all user information in the system

    Fields:
    - id: Primary key for user identification
    - email: Unique email address for login
    - full_name: User's display name
    - password_hash: Securely hashed password (never store raw passwords)
    - role: User role (staff, admin)
    - is_active: Whether the account may sign in
    - created_at: Timestamp when user was created
    - updated_at: Timestamp when user was last updated
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(Enum(UserRole, name="user_role"), default=UserRole.STAFF, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"

    @property
    def display_name(self) -> str:
        """Name shown next to records the user created"""
        return self.full_name or self.email
