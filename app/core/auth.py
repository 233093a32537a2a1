import base64
import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt
from jose.exceptions import JWTError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import get_db
from app.models.user import User

logger = logging.getLogger(__name__)

# Bearer scheme; missing credentials are reported by get_current_user, not FastAPI
security = HTTPBearer(auto_error=False)

# scrypt parameters (RFC 7914 interactive-login recommendation)
_SCRYPT_N = 2**14
_SCRYPT_R = 8
_SCRYPT_P = 1
_SCRYPT_LENGTH = 32
_SALT_BYTES = 16
_HASH_SCHEME = "scrypt"


def _scrypt(salt: bytes) -> Scrypt:
    return Scrypt(salt=salt, length=_SCRYPT_LENGTH, n=_SCRYPT_N, r=_SCRYPT_R, p=_SCRYPT_P)


def hash_password(password: str) -> str:
    """Hash a password as "scrypt$<salt>$<hash>" (base64 parts)."""
    salt = os.urandom(_SALT_BYTES)
    derived = _scrypt(salt).derive(password.encode("utf-8"))
    return "$".join(
        [
            _HASH_SCHEME,
            base64.b64encode(salt).decode("ascii"),
            base64.b64encode(derived).decode("ascii"),
        ]
    )


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time check of a password against a stored hash."""
    try:
        scheme, salt_b64, hash_b64 = password_hash.split("$")
    except ValueError:
        logger.warning("Malformed password hash in storage")
        return False
    if scheme != _HASH_SCHEME:
        return False
    try:
        _scrypt(base64.b64decode(salt_b64)).verify(password.encode("utf-8"), base64.b64decode(hash_b64))
    except InvalidKey:
        return False
    return True


def create_access_token(user: User) -> str:
    """Issue an HS256 access token carrying userId and email."""
    expires_at = datetime.now(timezone.utc) + timedelta(days=settings.jwt_expires_days)
    claims = {
        "userId": str(user.id),
        "email": user.email,
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> Dict[str, Any]:
    """
    Verify an access token and return its claims.

    Raises:
        HTTPException: 403 if the token is invalid, expired, or missing userId.
    """
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.warning("JWT verification error: %s", e)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token")
    if not claims.get("userId"):
        logger.warning("Token missing userId claim")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token")
    return claims


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """Return the user for valid credentials, else None."""
    user = db.query(User).filter(User.email == email).first()
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> UUID:
    """
    Extract the authenticated user id from the Bearer token.

    Raises:
        HTTPException: 401 when no token is sent, 403 when it does not verify.
    """
    if not credentials or not credentials.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Access token required")
    claims = verify_token(credentials.credentials)
    try:
        return UUID(str(claims["userId"]))
    except ValueError:
        logger.warning("Invalid userId claim: %r", claims["userId"])
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token")


def get_current_user(
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> User:
    """Load the authenticated user; 404 if the account no longer exists."""
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
