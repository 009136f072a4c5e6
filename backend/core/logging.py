"""
Application-wide logging configuration.

Console logging only: uvicorn picks up stdout, so the API, auth and store
failures all end up in the same stream with a uniform format.
"""

import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Configure root logging settings.

    Should be called once, in `main.py` at app startup.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT
    )
    logging.getLogger(__name__).info("Logging initialized with level %s", level)


def get_logger(name: str) -> logging.Logger:
    """Return a logger instance to be used in any module."""
    return logging.getLogger(name)
