"""
Authentication and authorization utilities for the Admin service.

Provides password hashing, JWT token creation/validation, and FastAPI
dependencies for protecting endpoints. Tokens are accepted either as a
Bearer header or from the httpOnly session cookie set at sign in.
"""
from datetime import datetime, timedelta
from typing import Optional
import logging
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from . import models
from .database import get_db
from .config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES, AUTH_COOKIE_NAME

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Security scheme for JWT bearer tokens; the cookie is the fallback
security = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.
    
    Args:
        plain_password: The plain text password to verify
        hashed_password: The hashed password to compare against
        
    Returns:
        True if the password matches, False otherwise
    """
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """
    Hash a password for secure storage.
    
    Args:
        password: The plain text password to hash
        
    Returns:
        The hashed password
    """
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.
    
    Args:
        data: Dictionary containing the claims to encode in the token
        expires_delta: Optional custom expiration time delta
        
    Returns:
        Encoded JWT token string
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def token_for_admin(admin: models.Admin) -> str:
    """Issue an access token carrying the admin's identity and role."""
    return create_access_token(
        data={"sub": str(admin.id), "username": admin.username, "role": admin.role, "userType": "admin"}
    )


def authenticate_admin(db: Session, username: str, password: str) -> Optional[models.Admin]:
    """
    Authenticate an admin by username and password.
    
    Args:
        db: Database session
        username: Admin login name
        password: Plain text password to verify
        
    Returns:
        Admin object if authentication succeeds, None otherwise
    """
    admin = db.query(models.Admin).filter(models.Admin.username == username).first()
    if not admin:
        return None
    if not verify_password(password, admin.password):
        return None
    return admin


def get_current_admin(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> models.Admin:
    """
    FastAPI dependency to get the current authenticated admin from the JWT.
    
    Args:
        request: Incoming request, read for the session cookie
        credentials: HTTP Authorization credentials (injected)
        db: Database session (injected)
        
    Returns:
        Current authenticated admin
        
    Raises:
        HTTPException: 401 if the token is missing or invalid, 403 if the account is inactive
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token = credentials.credentials if credentials else request.cookies.get(AUTH_COOKIE_NAME)
    if not token:
        raise credentials_exception

    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        admin_id_str: str = payload.get("sub")
        if admin_id_str is None:
            logger.error("No 'sub' claim in token")
            raise credentials_exception
        admin_id = int(admin_id_str)
    except (JWTError, ValueError) as e:
        logger.error(f"JWT validation error: {e}")
        raise credentials_exception
    
    admin = db.query(models.Admin).filter(models.Admin.id == admin_id).first()
    if admin is None:
        raise credentials_exception
    if not admin.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin account is inactive"
        )
    return admin


def require_superadmin(current_admin: models.Admin = Depends(get_current_admin)) -> models.Admin:
    """
    FastAPI dependency to require the superadmin role.
    
    Raises:
        HTTPException: 403 if the admin is only a viewer
    """
    if current_admin.role != "superadmin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Superadmin privileges required"
        )
    return current_admin
