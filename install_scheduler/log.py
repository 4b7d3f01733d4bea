"""Logging setup for command-line use. Library modules only call logging.getLogger."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOGGER_NAME = "install_scheduler"


def configure_logging(level: int | str = logging.INFO, log_path: str | Path | None = None) -> logging.Logger:
    """
    Attach stderr (and optionally file) handlers to the package logger.

    Args:
        level: Logging level for the package logger
        log_path: Optional file to append timestamped records to

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Prevent duplicate handlers if called more than once
    if not logger.handlers:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        logger.addHandler(stream_handler)

        if log_path is not None:
            log_path = Path(log_path)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )
            logger.addHandler(file_handler)

    return logger
