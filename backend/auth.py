from passlib.context import CryptContext
from jose import JWTError, jwt
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict
import os

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

JWT_SECRET = os.getenv("JWT_SECRET", "your-secret-key-change-in-production")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRATION_DAYS = int(os.getenv("JWT_EXPIRATION_DAYS", "7"))

COOKIE_NAME = "auth_token"
MIN_PASSWORD_LENGTH = 6


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: Dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(days=JWT_EXPIRATION_DAYS)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)
    return encoded_jwt


def decode_access_token(token: str) -> Optional[Dict]:
    """Decode and validate a JWT token."""
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
        return payload
    except JWTError:
        return None


def create_user_token(user: Dict) -> str:
    """Issue the session token for a stored user document."""
    return create_access_token({
        "id": user["user_id"],
        "email": user["email"],
        "role": user["role"],
    })


def validate_password_strength(password: str) -> tuple[bool, str]:
    """Validate password meets the minimum length."""
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        return False, f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
    return True, "Password is valid"


def cookie_settings() -> Dict:
    """Keyword arguments for Response.set_cookie on the session cookie."""
    secure_default = os.getenv("ENVIRONMENT", "development") != "development"
    secure = os.getenv("COOKIE_SECURE", str(secure_default)).strip().lower() == "true"
    return {
        "httponly": True,
        "secure": secure,
        "samesite": "lax",
        "max_age": JWT_EXPIRATION_DAYS * 24 * 60 * 60,
        "path": "/",
    }
