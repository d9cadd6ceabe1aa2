"""Main FastAPI application for the exam attempt engine."""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from examcore.config import LOG_LEVEL
from examcore.core.logging_setup import setup_console_logging
from examcore.database import init_db
from examcore.routes import grading, sessions
from examcore.utils import utc_now_iso

setup_console_logging(LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="Exam Attempt API")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# Startup events
@app.on_event("startup")
def startup_events() -> None:
    """Initialize database on startup."""
    init_db()


@app.exception_handler(OperationalError)
def storage_unavailable(request: Request, exc: OperationalError) -> JSONResponse:
    """Storage failures surface as a retryable 503 without internal detail."""
    logger.error(f"Storage error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={
            "detail": {
                "code": "storage_unavailable",
                "message": "Storage temporarily unavailable, please retry",
                "retryable": True,
            }
        },
    )


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "time": utc_now_iso()}


# Include routers
app.include_router(sessions.router)
app.include_router(grading.router)
