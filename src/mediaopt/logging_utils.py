"""Centralized logging utilities for mediaopt entry points."""

from __future__ import annotations

import logging
import sys
from typing import Optional

VERBOSE = 15
TRACE = 5
QUIET = logging.CRITICAL + 10

logging.addLevelName(VERBOSE, "VERBOSE")
logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(QUIET, "QUIET")

# Media tool level names, as accepted by -loglevel, and their numeric values.
TOOL_LEVELS: dict[str, tuple[int, int]] = {
    "quiet": (-8, QUIET),
    "panic": (0, logging.CRITICAL),
    "fatal": (8, logging.CRITICAL),
    "error": (16, logging.ERROR),
    "warning": (24, logging.WARNING),
    "info": (32, logging.INFO),
    "verbose": (40, VERBOSE),
    "debug": (48, logging.DEBUG),
    "trace": (56, TRACE),
}


def resolve_log_level(level: int | str) -> int:
    """Translate a level name or number into a ``logging`` level.

    Accepts Python level names ("WARNING"), media tool names ("verbose"),
    and media tool numeric levels ("24"). Numeric values map to the closest
    named level at or below them.

    Raises
    ------
    ValueError
        If the level is not recognized

    """
    if isinstance(level, int):
        return level

    text = str(level).strip()
    lowered = text.lower()
    if lowered in TOOL_LEVELS:
        return TOOL_LEVELS[lowered][1]

    named = logging.getLevelName(text.upper())
    if isinstance(named, int):
        return named

    try:
        numeric = int(text)
    except ValueError:
        raise ValueError(f"Invalid log level \"{level}\"") from None

    resolved = QUIET
    for tool_value, py_level in sorted(TOOL_LEVELS.values()):
        if numeric >= tool_value:
            resolved = py_level
    return resolved


def configure_logging(
    log_level: int | str,
    log_file: Optional[str] = None,
    trace_mode: bool = False,
) -> logging.Logger:
    """Configure root logging handlers shared across the CLI and library users.

    Parameters
    ----------
    log_level : int | str
        Numeric logging level or level name (e.g., "INFO" or "verbose").
    log_file : str, optional
        Optional path to a log file for teeing log output.
    trace_mode : bool, default False
        When true, emit timestamps and logger names for debugging traces.

    Returns
    -------
    logging.Logger
        The configured root logger instance.

    """
    try:
        resolved_level = resolve_log_level(log_level)
    except ValueError:
        resolved_level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(resolved_level)
    root_logger.handlers.clear()

    format_str = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s" if trace_mode else "%(levelname)s: %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S" if trace_mode else None
    formatter = logging.Formatter(format_str, datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(resolved_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
            file_handler.setLevel(resolved_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
            root_logger.info("Logging to file: %s", log_file)
        except OSError as exc:  # pragma: no cover - handled at runtime
            root_logger.warning("Could not create log file %s: %s", log_file, exc)

    return root_logger


def set_console_level(level: int) -> None:
    """Change the level of the console handlers.

    File handlers keep their own level; the root logger is lowered to the
    most verbose handler so report files still receive their records.
    """
    root_logger = logging.getLogger()
    effective = level
    for handler in root_logger.handlers:
        if isinstance(handler, logging.FileHandler):
            effective = min(effective, handler.level)
        elif isinstance(handler, logging.StreamHandler):
            handler.setLevel(level)
    root_logger.setLevel(effective)


def add_report_handler(path: str, level: int) -> logging.FileHandler:
    """Attach a file handler that records everything at ``level`` and above."""
    handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"))
    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    if root_logger.level > level:
        root_logger.setLevel(level)
    return handler
