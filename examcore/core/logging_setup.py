from __future__ import annotations
import logging

# Third-party loggers that drown out attempt/grading events at DEBUG
_NOISY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "httpx", "multipart")


def setup_console_logging(level: int | str = logging.INFO) -> None:
    """
    Call once at app start. Sends examcore logs to the console.

    ``level`` may be a logging constant or a level name such as ``"DEBUG"``
    (the form it takes when read from ``LOG_LEVEL``).
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    if root.handlers:
        # already configured by uvicorn or pytest
        return

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] %(levelname)s %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root.addHandler(handler)
