"""Logging configuration for the shift swap engine."""

import logging
import os
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for scripts and the API process.

    Args:
        level: Log level name; defaults to the LOG_LEVEL environment variable, then INFO
    """
    level_name = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level_name, logging.INFO))

    # SQLAlchemy has its own echo switch (SQL_DEBUG)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
