"""API route modules."""
from examcore.routes import grading, sessions

__all__ = ["grading", "sessions"]
