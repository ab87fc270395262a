"""
Password hashing and bearer tokens for staff sign-in.

Tokens carry the user's id, email and role. The role claim is informational
only: every request reloads the user so role changes and deletions apply
immediately.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import jwt, JWTError
from passlib.context import CryptContext
import logging

from ..config import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

MIN_PASSWORD_LENGTH = 6

def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def password_length_error(password: str) -> Optional[str]:
    """Message for a password under the minimum length, None when it is long enough"""
    if len(password or "") < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    return None

def create_access_token(claims: Dict[str, Any], lifetime: Optional[timedelta] = None) -> str:
    """
    Sign a bearer token.

    Args:
        claims: Token claims, normally from ``user_claims``
        lifetime: Defaults to ``settings.access_token_expire_minutes``

    Returns:
        str: Encoded JWT
    """
    lifetime = lifetime or timedelta(minutes=settings.access_token_expire_minutes)
    payload = dict(claims, exp=datetime.now(timezone.utc) + lifetime)
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)

def user_claims(user) -> Dict[str, Any]:
    return {"id": user.id, "email": user.email, "role": user.role.value}

def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode a bearer token; None when the signature or expiry check fails.
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as e:
        logger.debug(f"Rejected token: {str(e)}")
        return None
