#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Top-level parse flow of the media tool.

``parse_options`` splits the command line, applies the global group with no
per-file context, then builds, fills and opens one ``OptionsContext`` per
input group and afterwards per output group.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Callable, Optional, Sequence, Union

from mediaopt.applier import ProgramExit, parse_option_group
from mediaopt.constants import GROUP_INFILE, GROUP_OUTFILE
from mediaopt.exceptions import ApplyError, OpenFileError
from mediaopt.parse_context import OptionGroupList
from mediaopt.passthrough import PassthroughRegistry
from mediaopt.timing import TimingContext
from mediaopt.tokenizer import split_commandline
from mediaopt.tool.context import MediaJob, OptionsContext, ToolState
from mediaopt.tool.opener import open_input_file, open_output_file
from mediaopt.tool.table import build_options

logger = logging.getLogger(__name__)

OpenFileFunc = Callable[[OptionsContext, str], int]


def open_files(group_list: OptionGroupList, inout: str, open_file: OpenFileFunc) -> Optional[ProgramExit]:
    """Apply and open every group of one kind, in command line order.

    Parameters
    ----------
    group_list : OptionGroupList
        Realized groups of one kind
    inout : str
        "input" or "output", used in messages
    open_file : callable
        Open step called as ``open_file(ctx, filename)``; a negative return
        aborts the remaining groups

    Returns
    -------
    ProgramExit or None
        Exit request raised by an option of one of the groups

    Raises
    ------
    ApplyError
        If an option of a group cannot be applied
    OpenFileError
        If the open step fails

    """
    for group in group_list.groups:
        o = OptionsContext(g=group)

        try:
            outcome = parse_option_group(o, group)
        except ApplyError:
            logger.error("Error parsing options for %s file %s.", inout, group.arg)
            raise
        if outcome is not None:
            return outcome

        logger.debug("Opening an %s file: %s.", inout, group.arg)
        ret = open_file(o, group.arg)
        if ret < 0:
            logger.error("Error opening %s file %s.", inout, group.arg)
            raise OpenFileError(f"Error opening {inout} file {group.arg}.", filename=group.arg, file_kind=inout)
        logger.debug("Successfully opened the file.")

    return None


def parse_options(
    args: Sequence[str],
    state: Optional[ToolState] = None,
    passthrough: Optional[PassthroughRegistry] = None,
) -> Union[MediaJob, ProgramExit]:
    """Run the whole option flow over ``args``.

    Parameters
    ----------
    args : Sequence[str]
        Command line tokens, program name excluded
    state : ToolState, optional
        Tool state to fill; a fresh one is created when omitted
    passthrough : PassthroughRegistry, optional
        Pass-through collaborator handed to the tokenizer

    Returns
    -------
    MediaJob or ProgramExit
        The planned files, or the exit request of an informational option

    Raises
    ------
    TokenizeError
        If the command line cannot be split
    ApplyError
        If an option cannot be applied
    OpenFileError
        If an input or output file is rejected

    """
    if state is None:
        state = ToolState()
    registry = build_options(state)

    with TimingContext("Splitting the commandline", logger):
        octx = split_commandline(args, registry.options, registry.groups, passthrough)

    outcome = parse_option_group(None, octx.global_opts)
    if outcome is not None:
        return outcome

    with TimingContext("Opening input files", logger):
        outcome = open_files(octx.groups[GROUP_INFILE], "input", partial(open_input_file, state))
    if outcome is not None:
        return outcome

    with TimingContext("Opening output files", logger):
        outcome = open_files(octx.groups[GROUP_OUTFILE], "output", partial(open_output_file, state))
    if outcome is not None:
        return outcome

    return state.job
