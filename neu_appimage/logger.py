"""Centralized logging configuration using Loguru."""

from __future__ import annotations

import pathlib
import sys
from typing import Optional

from loguru import logger

CONSOLE_FORMAT = "<level>{level: <8}</level> | <level>{message}</level>"


def setup_logging(
    *,
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    log_directory: Optional[str] = None,
    log_filename: str = "neu_appimage.log",
) -> None:
    """Configure the console sink and, optionally, a structured file sink.

    Parameters
    ----------
    console_level:
        Minimum log level for console output.
    file_level:
        Minimum log level for file output.
    log_directory:
        Where the JSON log file is written. ``None`` disables the file sink.
    log_filename:
        Name of the file that captures structured log output.

    Existing handlers are removed so repeated calls do not duplicate output.
    """

    logger.remove()

    logger.add(
        sys.stdout,
        level=console_level.upper(),
        format=CONSOLE_FORMAT,
        backtrace=True,
        diagnose=False,
        colorize=True,
    )

    if log_directory is None:
        logger.debug("Logging configured")
        return

    log_path = pathlib.Path(log_directory).expanduser().resolve()
    log_path.mkdir(parents=True, exist_ok=True)
    file_path = log_path / log_filename

    logger.add(
        file_path,
        level=file_level.upper(),
        backtrace=False,
        diagnose=False,
        rotation="10 MB",
        retention="30 days",
        compression="zip",
        serialize=True,
    )

    logger.bind(
        console_level=console_level,
        file_level=file_level,
        log_file=str(file_path),
    ).debug("Logging configured")


__all__ = ["setup_logging"]
