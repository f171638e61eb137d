"""Logging configuration for the clipkeeper CLI."""
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

# Rotation settings for --log-file.
LOG_FILE_MAX_BYTES: int = 1048576
LOG_FILE_BACKUP_COUNT: int = 3


def configure_logging(verbose: bool, log_file: str | None = None) -> None:
    """Configure logging level and handlers.

    Args:
        verbose: If True, set DEBUG level; otherwise WARNING level.
        log_file: Optional path of an additional rotating log file.

    Errors are always printed to stderr regardless of verbosity.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        file_handler = RotatingFileHandler(
            log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUP_COUNT,
        )
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        handlers.append(file_handler)
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        handlers=handlers,
        force=True,
    )
