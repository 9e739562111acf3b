"""Logging configuration for the travel cache service."""

import logging

from travel_cache.config import settings


def configure_logging(level: str | None = None) -> None:
    """Configure root logging with a single console handler.

    Safe to call more than once: existing root handlers are replaced so
    uvicorn reloads do not duplicate log lines.

    Args:
        level: Log level name. Defaults to settings.log_level.
    """
    log_format = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"
    log_level = (level or settings.log_level).upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(log_format))

    root_logger.addHandler(console_handler)
