"""Logging configuration for the application."""

import logging
import sys

from beatcrest.core.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging() -> None:
    """Configure application-wide logging.

    Level is DEBUG when settings.debug is True, otherwise INFO.
    Output goes to stdout. The HTTP client's per-request INFO lines are
    kept at WARNING unless debugging.
    """
    settings = get_settings()
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    if not settings.debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)

