"""
Credential store:
- Password hashing via passlib[bcrypt]
- Session tokens are JWTs via python-jose[cryptography]
- Request identity resolved once here and passed explicitly to services
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
import logging

from app.config import settings
from app.database import get_db
from app.crud.user import crud_user
from app.exceptions import InvalidCredentials, InactiveAccount, InvalidSession
from app import models

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

# auto_error=False so a missing header reaches our own InvalidSession envelope
security = HTTPBearer(auto_error=False)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token"""
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "iat": now})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode and verify JWT token, None when the signature or expiry is bad"""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        return None

def is_active(user: models.User) -> bool:
    return bool(user.is_active)

def authenticate(db: Session, username: str, password: str) -> models.User:
    """
    Check a username/password pair.
    Raises InvalidCredentials for an unknown user or wrong password and
    InactiveAccount for a disabled user with a correct password.
    """
    user = crud_user.get_by_username(db, username)
    if not user or not verify_password(password, user.password_hash):
        logger.warning(f"Failed login attempt for username: {username}")
        raise InvalidCredentials()
    if not is_active(user):
        logger.warning(f"Inactive user attempted login: {username}")
        raise InactiveAccount()
    return user

def issue_session(user: models.User) -> str:
    return create_access_token(
        data={"sub": user.username, "user_id": user.id, "role": user.role.value}
    )

def verify_session(db: Session, token: str) -> models.User:
    """Resolve a session token to an active user or raise InvalidSession"""
    payload = decode_access_token(token)
    if payload is None:
        raise InvalidSession()

    username = payload.get("sub")
    if username is None:
        logger.warning("JWT token missing 'sub' claim")
        raise InvalidSession()

    user = crud_user.get_by_username(db, username)
    if user is None:
        logger.warning(f"Token subject not found: {username}")
        raise InvalidSession("User not found")
    if not is_active(user):
        logger.warning(f"Token presented for inactive user: {username}")
        raise InvalidSession("User account is inactive")
    return user

def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> models.User:
    """FastAPI dependency: the authenticated user for this request"""
    if credentials is None:
        raise InvalidSession("Missing bearer token")
    return verify_session(db, credentials.credentials)
