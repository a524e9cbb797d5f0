"""Command-line interface of the mediaopt media tool.

The command line follows the media tool convention: global options, then
for each input ``[input options] -i url``, then for each output
``[output options] url``.

Configuration
-------------
Defaults are read from ``.mediaopt.toml`` / ``.yaml`` / ``.yml`` / ``.json``
(searched upward from the working directory, then in the home directory),
from ``[tool.mediaopt]`` in ``pyproject.toml``, or from the file named by
``MEDIAOPT_CONFIG``. ``default_args`` in the configuration are prepended to
the command line.

Examples
--------
Copy the video stream of an input::

    $ mediaopt -i in.mp4 -c:v copy out.mp4

Trim the first ten seconds::

    $ mediaopt -t 10 -i in.mp4 out.mkv

Show the options::

    $ mediaopt -h long

"""

import logging
import os
import sys
from typing import Optional, Sequence

from mediaopt.applier import ProgramExit
from mediaopt.cli.config import load_config_with_priority
from mediaopt.constants import (
    DEFAULT_LOG_LEVEL,
    ENV_CONFIG,
    ENV_REPORT,
    EXIT_CONFIG_ERROR,
    EXIT_ERROR,
    EXIT_FILE_ERROR,
    EXIT_SUCCESS,
    EXIT_TOKENIZE_ERROR,
    EXIT_VALIDATION_ERROR,
)
from mediaopt.exceptions import ApplyError, ConfigError, MediaOptError, OpenFileError, TokenizeError
from mediaopt.logging_utils import configure_logging
from mediaopt.tokenizer import locate_option
from mediaopt.tool.context import ToolState
from mediaopt.tool.driver import parse_options
from mediaopt.tool.handlers import get_version, init_report, opt_loglevel
from mediaopt.tool.help import show_usage
from mediaopt.tool.table import build_options

logger = logging.getLogger(__name__)

__all__ = ["main", "get_exit_code_for_exception"]


def get_exit_code_for_exception(exception: Exception) -> int:
    """Map an exception to an appropriate CLI exit code.

    Parameters
    ----------
    exception : Exception
        The exception to map to an exit code

    Returns
    -------
    int
        The appropriate exit code for the exception type

    """
    if isinstance(exception, ConfigError):
        return EXIT_CONFIG_ERROR
    if isinstance(exception, TokenizeError):
        return EXIT_TOKENIZE_ERROR
    if isinstance(exception, ApplyError):
        return EXIT_VALIDATION_ERROR
    if isinstance(exception, OpenFileError):
        return EXIT_FILE_ERROR
    return EXIT_ERROR


def _setup_logging(config: dict) -> None:
    """Configure logging from the loaded configuration; trace mode implies debug."""
    trace = bool(config.get("trace", False))
    log_level = logging.DEBUG if trace else config.get("log_level", DEFAULT_LOG_LEVEL)
    configure_logging(log_level, log_file=config.get("log_file"), trace_mode=trace)


def _apply_early_options(args: Sequence[str], state: ToolState) -> Optional[int]:
    """Honor -loglevel, -report and -hide_banner before the banner is shown.

    Returns
    -------
    int or None
        Exit code when an early option is rejected

    """
    options = build_options(state).options

    idx = locate_option(args, options, "loglevel")
    if idx is None:
        idx = locate_option(args, options, "v")
    if idx is not None and idx + 1 < len(args):
        if opt_loglevel(state, None, "loglevel", args[idx + 1]) < 0:
            return EXIT_VALIDATION_ERROR

    if locate_option(args, options, "report") is not None or os.environ.get(ENV_REPORT):
        if init_report(state) < 0:
            return EXIT_FILE_ERROR

    idx = locate_option(args, options, "hide_banner")
    if idx is not None:
        state.hide_banner = not args[idx].startswith("-no")
    return None


def _show_banner(state: ToolState) -> None:
    print(f"{state.program_name} version {get_version()} Copyright (c) 2025 Tom Villani, Ph.D.", file=sys.stderr)


def main(args: Optional[Sequence[str]] = None, config_path: Optional[str] = None) -> int:
    """Run the media tool option flow and return an exit code.

    Parameters
    ----------
    args : Sequence[str], optional
        Command line tokens without the program name; defaults to ``sys.argv[1:]``
    config_path : str, optional
        Explicit configuration file, overriding discovery

    Returns
    -------
    int
        Process exit code

    """
    argv = list(sys.argv[1:] if args is None else args)

    try:
        config = load_config_with_priority(explicit_path=config_path, env_var_path=os.environ.get(ENV_CONFIG))
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return get_exit_code_for_exception(e)

    _setup_logging(config)
    argv = list(config.get("default_args", [])) + argv

    state = ToolState(hide_banner=bool(config.get("hide_banner", False)))
    early_exit = _apply_early_options(argv, state)
    if early_exit is not None:
        return early_exit

    if not state.hide_banner:
        _show_banner(state)

    try:
        outcome = parse_options(argv, state)
    except MediaOptError as e:
        print(f"Error: {e}", file=sys.stderr)
        return get_exit_code_for_exception(e)

    if isinstance(outcome, ProgramExit):
        return outcome.code

    if not outcome.outputs:
        if not outcome.inputs:
            show_usage(state)
            logger.warning("Use -h to get full help or, even better, run 'mediaopt -h long'.")
            return EXIT_ERROR
        logger.error("At least one output file must be specified")
        return EXIT_ERROR

    for line in outcome.summary().splitlines():
        logger.info("%s", line)
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
