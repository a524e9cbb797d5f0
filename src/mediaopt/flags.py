#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Option flag bits.

Every option definition carries an ``OptionFlag`` describing its value kind,
which files it applies to, and special behaviors. Group definitions carry a
subset of the same bits that legal options in the group must intersect.
"""

from __future__ import annotations

from enum import IntFlag


class OptionFlag(IntFlag):
    """Bitset describing an option's value kind, applicability and behavior."""

    NONE = 0x0000
    HAS_ARG = 0x0001
    OPT_BOOL = 0x0002
    OPT_EXPERT = 0x0004
    OPT_STRING = 0x0008
    OPT_VIDEO = 0x0010
    OPT_AUDIO = 0x0020
    OPT_INT = 0x0080
    OPT_FLOAT = 0x0100
    OPT_SUBTITLE = 0x0200
    OPT_INT64 = 0x0400
    OPT_EXIT = 0x0800
    OPT_DATA = 0x1000
    OPT_PERFILE = 0x2000
    OPT_OFFSET = 0x4000
    OPT_SPEC = 0x8000
    OPT_TIME = 0x10000
    OPT_DOUBLE = 0x20000
    OPT_INPUT = 0x40000
    OPT_OUTPUT = 0x80000


# Dispatch order matters: the first kind bit found wins.
VALUE_KINDS: tuple[OptionFlag, ...] = (
    OptionFlag.OPT_STRING,
    OptionFlag.OPT_BOOL,
    OptionFlag.OPT_INT,
    OptionFlag.OPT_INT64,
    OptionFlag.OPT_TIME,
    OptionFlag.OPT_FLOAT,
    OptionFlag.OPT_DOUBLE,
)

VALUE_KIND_FLAGS = OptionFlag.NONE
for _kind in VALUE_KINDS:
    VALUE_KIND_FLAGS |= _kind
del _kind

PER_FILE_FLAGS = OptionFlag.OPT_PERFILE | OptionFlag.OPT_SPEC | OptionFlag.OPT_OFFSET
CONTEXT_FLAGS = OptionFlag.OPT_OFFSET | OptionFlag.OPT_SPEC


def value_kind(flags: OptionFlag) -> OptionFlag:
    """Return the value kind bit the applier dispatches on.

    Returns ``OptionFlag.NONE`` for options without a scalar destination,
    i.e. callback options.
    """
    for kind in VALUE_KINDS:
        if flags & kind:
            return kind
    return OptionFlag.NONE


def is_global(flags: OptionFlag) -> bool:
    """Check whether an option is recorded in the global group."""
    return not flags & PER_FILE_FLAGS


def needs_context(flags: OptionFlag) -> bool:
    """Check whether an option writes into a per-file context."""
    return bool(flags & CONTEXT_FLAGS)
