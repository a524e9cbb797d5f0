#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Apply an option group to its destination.

Each option occurrence in a group is validated against the group's scope,
parsed according to its declared value kind, and written to a fixed global
location, a field of the per-file context, or handed to a callback.
Specifier-qualified options append a new ``SpecifierOpt`` to a list field
instead of overwriting a scalar.
"""

from __future__ import annotations

import errno
import logging
import os
from dataclasses import dataclass
from typing import Any, Optional

from mediaopt.constants import DBL_MAX, FLT_MAX, INT32_MAX, INT32_MIN, INT64_MAX, INT64_MIN, SPECIFIER_SEPARATOR
from mediaopt.exceptions import HandlerError, OptionDefinitionError
from mediaopt.flags import OptionFlag, needs_context, value_kind
from mediaopt.numbers import parse_number, parse_time
from mediaopt.parse_context import OptionGroup, SpecifierOpt
from mediaopt.registry import FixedLocation, OptionDef, StructOffset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgramExit:
    """Terminal outcome requested by an exits-after-handling option.

    This is not an error: the caller decides how to terminate.
    """

    code: int = 0


def describe_status(status: int) -> str:
    """Return a readable description of a negative handler status."""
    code = -status
    if code in errno.errorcode:
        return os.strerror(code)
    return f"Error number {status} occurred"


def specifier_of(key: str) -> str:
    """Return the stream specifier part of an option key, or an empty string."""
    _, sep, spec = key.partition(SPECIFIER_SEPARATOR)
    return spec if sep else ""


def _parse_value(po: OptionDef, key: str, arg: str) -> Any:
    kind = value_kind(po.flags)
    if kind == OptionFlag.OPT_STRING:
        return arg
    if kind == OptionFlag.OPT_BOOL:
        return bool(parse_number(key, arg, OptionFlag.OPT_INT, INT32_MIN, INT32_MAX))
    if kind == OptionFlag.OPT_INT:
        return int(parse_number(key, arg, OptionFlag.OPT_INT, INT32_MIN, INT32_MAX))
    if kind == OptionFlag.OPT_INT64:
        return int(parse_number(key, arg, OptionFlag.OPT_INT64, INT64_MIN, INT64_MAX))
    if kind == OptionFlag.OPT_TIME:
        return parse_time(key, arg, is_duration=True)
    if kind == OptionFlag.OPT_FLOAT:
        return parse_number(key, arg, OptionFlag.OPT_FLOAT, -FLT_MAX, FLT_MAX)
    if kind == OptionFlag.OPT_DOUBLE:
        return parse_number(key, arg, OptionFlag.OPT_DOUBLE, -DBL_MAX, DBL_MAX)
    raise OptionDefinitionError(f"Option '{po.name}' has no value kind")


def write_option(optctx: Optional[Any], po: OptionDef, key: str, arg: str) -> Optional[ProgramExit]:
    """Apply one option occurrence.

    Parameters
    ----------
    optctx : object or None
        Per-file context, or None while applying global options
    po : OptionDef
        Definition of the option
    key : str
        Option key as written, possibly with a ``:specifier`` suffix
    arg : str
        Argument as written

    Returns
    -------
    ProgramExit or None
        ``ProgramExit`` if the option exits after handling

    Raises
    ------
    ValueParseError
        If the argument does not parse as the declared kind
    HandlerError
        If a callback returns a negative status
    OptionDefinitionError
        If a per-file option is applied without a per-file context

    """
    if needs_context(po.flags) and optctx is None:
        raise OptionDefinitionError(f"Option '{key}' writes into a per-file context but was applied globally")

    dest = po.dest
    if po.is_callback:
        ret = dest(optctx, key, arg)
        if ret < 0:
            reason = describe_status(ret)
            logger.error("Failed to set value '%s' for option '%s': %s", arg, key, reason)
            raise HandlerError(key, arg, ret, reason)
    else:
        value = _parse_value(po, key, arg)
        if po.flags & OptionFlag.OPT_SPEC:
            assert isinstance(dest, StructOffset)
            entry = SpecifierOpt(specifier_of(key))
            dest.read(optctx).append(entry)
            entry.value = value
        elif isinstance(dest, StructOffset):
            dest.write(optctx, value)
        else:
            assert isinstance(dest, FixedLocation)
            dest.write(value)

    if po.flags & OptionFlag.OPT_EXIT:
        return ProgramExit(0)
    return None


def parse_option_group(optctx: Optional[Any], group: OptionGroup) -> Optional[ProgramExit]:
    """Apply every option of ``group`` in order.

    The whole group is checked for scope violations before anything is
    written, so a mismatch leaves the destination untouched.

    Parameters
    ----------
    optctx : object or None
        Fresh per-file context, or None for the global group
    group : OptionGroup
        Group to apply

    Returns
    -------
    ProgramExit or None
        The first exit request encountered; later options are not applied

    Raises
    ------
    ScopeMismatchError
        If an option does not belong to the group's kind
    ValueParseError, HandlerError
        Propagated from ``write_option``

    """
    logger.debug("Parsing a group of options: %s %s.", group.group_def.name, group.arg)

    group.check_scope()

    for kv in group.opts:
        logger.debug("Applying option %s (%s) with argument %s.", kv.key, kv.opt.help, kv.val)
        outcome = write_option(optctx, kv.opt, kv.key, kv.val)
        if outcome is not None:
            return outcome

    logger.debug("Successfully parsed a group of options.")
    return None
