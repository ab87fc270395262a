"""
User Schemas - Pydantic models for user data validation and serialization.
"""
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, validator
from datetime import datetime
from ..core.security import password_length_error
from .models import UserRole

class UserLogin(BaseModel):
    """
    Login Schema - Credentials submitted to obtain an access token

    Fields:
    - email: User's email address
    - password: User's plain text password
    """
    email: EmailStr
    password: str = Field(..., min_length=1)

class UserCreate(BaseModel):
    """
    User Creation Schema - Used when an admin creates an account

    Fields:
    - full_name: User's display name
    - email: Unique email address
    - password: Initial password (hashed before storage)
    - role: STAFF or ADMIN
    """
    full_name: str
    email: EmailStr
    password: str
    role: UserRole = UserRole.STAFF

    @validator("full_name")
    def name_required(cls, v):
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @validator("password")
    def password_length(cls, v):
        error = password_length_error(v)
        if error:
            raise ValueError(error)
        return v

class UserRoleUpdate(BaseModel):
    """Role change requested by an admin"""
    role: UserRole

class UserPasswordReset(BaseModel):
    """New password set by an admin for another account"""
    new_password: str

class UserResponse(BaseModel):
    """
    User Response Schema - Used when returning user data

    Fields:
    - id: User ID
    - email: Email address
    - full_name: User's display name
    - role: User role
    - is_active: Whether the account may sign in
    - created_at: When the account was created
    """
    id: int
    email: EmailStr
    full_name: str
    role: UserRole
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        """Configuration for Pydantic model to enable ORM mode"""
        from_attributes = True

class LoginResponse(BaseModel):
    """
    Login Response Schema - Returned after successful authentication

    Fields:
    - access_token: JWT bearer token
    - token_type: Always "bearer"
    - user: The signed-in user
    """
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
