"""Service layer for attempts, grading and review."""
