"""JWT handling for callers identified by the external auth service."""
import uuid
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from examcore.config import ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, SECRET_KEY

ROLE_STUDENT = "student"
ROLE_INSTRUCTOR = "instructor"
ROLE_ADMIN = "admin"
ROLES = frozenset({ROLE_STUDENT, ROLE_INSTRUCTOR, ROLE_ADMIN})


def create_access_token(
    user_id: str,
    role: str = ROLE_STUDENT,
    expires_minutes: int | None = None,
) -> tuple[str, str]:
    """Create a JWT access token.

    Returns:
        Tuple of (token, jti)
    """
    if role not in ROLES:
        raise ValueError(f"Unknown role: {role}")

    jti = str(uuid.uuid4())
    minutes = ACCESS_TOKEN_EXPIRE_MINUTES if expires_minutes is None else expires_minutes
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    to_encode = {
        "sub": str(user_id),
        "role": role,
        "exp": expire,
        "jti": jti,
    }
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt, jti


def verify_token(token: str) -> dict | None:
    """Verify and decode a JWT token.

    Returns:
        Decoded token payload or None if invalid.
    """
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    if not payload.get("sub") or payload.get("role") not in ROLES:
        return None
    return payload
