"""FastAPI dependencies."""
from examcore.dependencies.auth import (
    Principal,
    get_current_principal,
    require_instructor,
    require_student,
)

__all__ = ["Principal", "get_current_principal", "require_instructor", "require_student"]
