"""Application configuration and constants."""
import os
from pathlib import Path


def _parse_int_env(name: str, default: int) -> int:
    """Parse integer from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _parse_bool_env(name: str, default: bool) -> bool:
    """Parse boolean flag from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# Database
DB_DIR = Path(os.environ.get("DB_DIR", Path.cwd() / "data"))
DB_DIR.mkdir(parents=True, exist_ok=True)
DATABASE_URL = os.environ.get(
    "DATABASE_URL", f"sqlite:///{DB_DIR / 'examcore.db'}"
)

# Authentication
SECRET_KEY = os.environ.get(
    "SECRET_KEY",
    "CHANGE_ME_IN_PRODUCTION_USE_openssl_rand_hex_32"
)
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = _parse_int_env("ACCESS_TOKEN_EXPIRE_MINUTES", 60)

# Attempts
ATTEMPT_GRACE_SECONDS = _parse_int_env("ATTEMPT_GRACE_SECONDS", 60)
ENFORCE_ATTEMPT_DEADLINE = _parse_bool_env("ENFORCE_ATTEMPT_DEADLINE", True)
DEFAULT_INSTRUCTIONS = os.environ.get(
    "DEFAULT_INSTRUCTIONS",
    "Please read all questions carefully before answering.",
)

# Grading
SUBMISSIONS_PAGE_LIMIT = _parse_int_env("SUBMISSIONS_PAGE_LIMIT", 10)

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
