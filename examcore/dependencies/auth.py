"""Authentication dependencies for FastAPI."""
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from examcore.services.auth_service import (
    ROLE_ADMIN,
    ROLE_INSTRUCTOR,
    ROLE_STUDENT,
    verify_token,
)

# HTTP Bearer scheme for JWT
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """Caller identity taken from the access token."""

    user_id: str
    role: str


async def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> Principal:
    """Get the authenticated caller.

    Raises:
        HTTPException: 401 if not authenticated or token is invalid.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return Principal(user_id=payload["sub"], role=payload["role"])


async def require_student(
    principal: Annotated[Principal, Depends(get_current_principal)],
) -> Principal:
    if principal.role != ROLE_STUDENT:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only students can take exams",
        )
    return principal


async def require_instructor(
    principal: Annotated[Principal, Depends(get_current_principal)],
) -> Principal:
    if principal.role not in (ROLE_INSTRUCTOR, ROLE_ADMIN):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Instructor access required",
        )
    return principal
