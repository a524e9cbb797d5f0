#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Split a command line into global options and per-file option groups.

The scan is a single left-to-right pass with no backtracking. Options are
collected in an in-progress group until a file argument seals it: a bare
token seals an output group (group kind 0), and a separator such as ``-i``
followed by its argument seals a group of the separator's kind.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from mediaopt.constants import (
    DASHDASH,
    FLAG_PREFIX,
    GROUP_OUTFILE,
    IMPLICIT_FALSE,
    IMPLICIT_TRUE,
    NEGATION_PREFIX,
)
from mediaopt.exceptions import MissingArgumentError, UnrecognizedOptionError
from mediaopt.flags import OptionFlag, is_global
from mediaopt.parse_context import OptionGroup, OptionKV, OptionParseContext
from mediaopt.passthrough import AVOptionRegistry, PassthroughRegistry
from mediaopt.registry import OptionDef, OptionGroupDef, find_option, match_group_separator

logger = logging.getLogger(__name__)


def finish_group(
    octx: OptionParseContext,
    group_idx: int,
    arg: str,
    passthrough: Optional[PassthroughRegistry] = None,
) -> OptionGroup:
    """Seal the in-progress group into the list of group kind ``group_idx``.

    Parameters
    ----------
    octx : OptionParseContext
        Context being filled
    group_idx : int
        Group kind the sealed group belongs to
    arg : str
        Argument of the group delimiting token (the filename)
    passthrough : PassthroughRegistry, optional
        Registry whose pending values are attached to the sealed group

    Returns
    -------
    OptionGroup
        The sealed group

    """
    group_list = octx.groups[group_idx]
    sealed = octx.cur_group
    sealed.group_def = group_list.group_def
    sealed.arg = arg
    if passthrough is not None:
        sealed.passthrough = passthrough.take()

    group_list.groups.append(sealed)
    octx.cur_group = OptionGroup.new_in_progress()
    return sealed


def add_opt(octx: OptionParseContext, opt: OptionDef, key: str, val: str) -> None:
    """Record an option in the global group or in the in-progress group."""
    group = octx.global_opts if is_global(opt.flags) else octx.cur_group
    group.opts.append(OptionKV(opt, key, val))


def locate_option(args: Sequence[str], options: Sequence[OptionDef], optname: str) -> Optional[int]:
    """Find ``optname`` in ``args`` without splitting the line.

    Used before the real split to honor options that must take effect
    early, such as ``-loglevel`` and ``-hide_banner``. Arguments of
    ``HAS_ARG`` options are skipped so they are never mistaken for options.

    Returns
    -------
    int or None
        Index of the matching token, or None

    """
    i = 0
    while i < len(args):
        token = args[i]
        if token.startswith(FLAG_PREFIX) and len(token) > len(FLAG_PREFIX):
            name = token[len(FLAG_PREFIX):]
            po = find_option(options, name)
            if po is None and name.startswith(NEGATION_PREFIX):
                po = find_option(options, name[len(NEGATION_PREFIX):])
            if po is not None and po.name == optname:
                return i
            if po is not None and po.flags & OptionFlag.HAS_ARG:
                i += 1
        i += 1
    return None


def _takes_optional_argument(opt: OptionDef) -> bool:
    return bool(opt.flags & OptionFlag.HAS_ARG) or opt.argname is not None


def split_commandline(
    args: Sequence[str],
    options: Sequence[OptionDef],
    groups: Sequence[OptionGroupDef],
    passthrough: Optional[PassthroughRegistry] = None,
) -> OptionParseContext:
    """Split ``args`` into global options and per-file groups.

    Parameters
    ----------
    args : Sequence[str]
        Command line tokens, program name excluded
    options : Sequence[OptionDef]
        Option table
    groups : Sequence[OptionGroupDef]
        Group definition table; index 0 is the unnamed (output) group kind
    passthrough : PassthroughRegistry, optional
        Collaborator for options missing from ``options``; a fresh
        ``AVOptionRegistry`` is used when omitted

    Returns
    -------
    OptionParseContext
        The filled context

    Raises
    ------
    MissingArgumentError
        If a separator or an option that takes an argument ends the line
    UnrecognizedOptionError
        If an option is unknown to every registry

    """
    if passthrough is None:
        passthrough = AVOptionRegistry()

    octx = OptionParseContext.create(groups)
    argc = len(args)
    optindex = 0
    dashdash: Optional[int] = None

    logger.debug("Splitting the commandline.")

    while optindex < argc:
        token = args[optindex]
        optindex += 1

        logger.debug("Reading option '%s' ...", token)

        if token == DASHDASH:
            dashdash = optindex
            continue

        # unnamed group separators, e.g. output filename
        if not token.startswith(FLAG_PREFIX) or len(token) <= len(FLAG_PREFIX) or dashdash == optindex - 1:
            finish_group(octx, GROUP_OUTFILE, token, passthrough)
            logger.debug(" matched as %s.", groups[GROUP_OUTFILE].name)
            continue

        opt = token[len(FLAG_PREFIX):]

        # named group separators, e.g. -i
        group_idx = match_group_separator(groups, opt)
        if group_idx is not None:
            if optindex >= argc:
                raise MissingArgumentError(opt)
            arg = args[optindex]
            optindex += 1
            finish_group(octx, group_idx, arg, passthrough)
            logger.debug(" matched as %s with argument '%s'.", groups[group_idx].name, arg)
            continue

        # normal options
        po = find_option(options, opt)
        if po is not None:
            if po.flags & OptionFlag.OPT_EXIT:
                # optional argument, e.g. -h topic
                arg = ""
                if _takes_optional_argument(po) and optindex < argc:
                    arg = args[optindex]
                    optindex += 1
            elif po.flags & OptionFlag.HAS_ARG:
                if optindex >= argc:
                    raise MissingArgumentError(opt)
                arg = args[optindex]
                optindex += 1
            else:
                arg = IMPLICIT_TRUE
            add_opt(octx, po, opt, arg)
            logger.debug(" matched as option '%s' (%s) with argument '%s'.", po.name, po.help, arg)
            continue

        # options understood by the media library
        if optindex < argc and passthrough.recognizes(opt):
            arg = args[optindex]
            optindex += 1
            passthrough.record(opt, arg)
            logger.debug(" matched as pass-through option '%s' with argument '%s'.", opt, arg)
            continue

        # boolean -nofoo options
        if opt.startswith(NEGATION_PREFIX):
            po = find_option(options, opt[len(NEGATION_PREFIX):])
            if po is not None and po.flags & OptionFlag.OPT_BOOL:
                add_opt(octx, po, opt, IMPLICIT_FALSE)
                logger.debug(" matched as option '%s' (%s) with argument 0.", po.name, po.help)
                continue

        logger.error("Unrecognized option '%s'.", opt)
        raise UnrecognizedOptionError(opt)

    if octx.cur_group.opts or not passthrough.is_empty():
        logger.warning("Trailing option(s) found in the command: may be ignored.")

    logger.debug("Finished splitting the commandline.")
    return octx
