"""Timing helpers for tracing parse phases."""

import logging
import time
from typing import Any, Optional

logger = logging.getLogger(__name__)


class TimingContext:
    """Context manager for timing operations with automatic logging.

    Parameters
    ----------
    operation_name : str
        Name of the operation being timed
    logger_instance : logging.Logger, optional
        Logger to use for output. If None, uses module logger
    log_level : int, default logging.DEBUG
        Log level for timing messages

    Examples
    --------
    >>> with TimingContext("Splitting the commandline"):
    ...     split_commandline(args, options, groups)
    [DEBUG] Splitting the commandline completed in 0.00s

    """

    def __init__(
        self, operation_name: str, logger_instance: Optional[logging.Logger] = None, log_level: int = logging.DEBUG
    ) -> None:
        """Initialize the timing context for an operation."""
        self.operation_name = operation_name
        self.logger = logger_instance or logger
        self.log_level = log_level
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None

    def __enter__(self) -> "TimingContext":
        """Enter the timing context and start the timer."""
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit the timing context and log the elapsed time."""
        self.end_time = time.perf_counter()
        if exc_type is None:
            self.logger.log(self.log_level, "%s completed in %.2fs", self.operation_name, self.elapsed)
        else:
            self.logger.log(self.log_level, "%s failed after %.2fs", self.operation_name, self.elapsed)

    @property
    def elapsed(self) -> float:
        """Return elapsed seconds, or the running time if still inside the block."""
        if self.start_time is None:
            return 0.0
        end = self.end_time if self.end_time is not None else time.perf_counter()
        return end - self.start_time
