#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Declarative option and group definitions.

An option table is an ordered sequence of ``OptionDef`` records. Each record
names the option, its flags, and where a parsed value goes. The destination
is one of three shapes:

- ``FixedLocation``: an attribute of a process-lifetime object (global toggles)
- ``Callback``: a handler called with the per-file context, key and argument
- ``StructOffset``: a field selector into the per-file context, so one table
  entry can target many per-file instances

Group definitions describe how files are delimited on the command line: the
unnamed group is started by any bare token (output files) and named groups
by their separator token (``-i`` for input files).
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional, Sequence, Union

from mediaopt.constants import SPECIFIER_SEPARATOR
from mediaopt.exceptions import OptionDefinitionError
from mediaopt.flags import CONTEXT_FLAGS, OptionFlag, value_kind

HandlerFunc = Callable[[Any, str, str], int]


@dataclass(frozen=True)
class FixedLocation:
    """Write target that does not depend on the current file.

    Parameters
    ----------
    owner : object
        Process-lifetime object holding the value
    field : str
        Attribute name on ``owner``

    """

    owner: Any
    field: str

    def write(self, value: Any) -> None:
        """Store ``value`` on the owner."""
        setattr(self.owner, self.field, value)

    def read(self) -> Any:
        """Return the current value."""
        return getattr(self.owner, self.field)


@dataclass(frozen=True)
class Callback:
    """Handler invoked as ``func(ctx, key, arg)``; a negative return is failure."""

    func: HandlerFunc

    def __call__(self, ctx: Any, key: str, arg: str) -> int:
        """Invoke the handler."""
        return self.func(ctx, key, arg)


@dataclass(frozen=True)
class StructOffset:
    """Field selector into a per-file context object."""

    field: str

    def write(self, ctx: Any, value: Any) -> None:
        """Store ``value`` in the selected field of ``ctx``."""
        setattr(ctx, self.field, value)

    def read(self, ctx: Any) -> Any:
        """Return the selected field of ``ctx``."""
        return getattr(ctx, self.field)


Destination = Union[FixedLocation, Callback, StructOffset]


def field_selector(context_cls: type, name: str) -> StructOffset:
    """Build a ``StructOffset`` after checking that ``context_cls`` declares ``name``.

    Parameters
    ----------
    context_cls : type
        Dataclass used as the per-file context
    name : str
        Field name to select

    Returns
    -------
    StructOffset
        Selector bound to the field

    Raises
    ------
    OptionDefinitionError
        If the class is not a dataclass or has no such field

    """
    if not dataclasses.is_dataclass(context_cls):
        raise OptionDefinitionError(f"{context_cls!r} is not a dataclass and cannot be used as a per-file context")
    names = {f.name for f in dataclasses.fields(context_cls)}
    if name not in names:
        raise OptionDefinitionError(f"{context_cls.__name__} has no field '{name}'")
    return StructOffset(name)


@dataclass(frozen=True)
class OptionDef:
    """Immutable description of one recognized option.

    Parameters
    ----------
    name : str
        Option name without the leading dash
    flags : OptionFlag
        Value kind, applicability and behavior bits
    dest : Destination
        Where the parsed value goes
    help : str
        One-line help text
    argname : str, optional
        Name of the argument shown in help output

    Raises
    ------
    OptionDefinitionError
        If the destination shape does not agree with the flags

    """

    name: str
    flags: OptionFlag
    dest: Destination
    help: str = ""
    argname: Optional[str] = None

    def __post_init__(self) -> None:
        """Check that the destination variant matches the flag bits."""
        if self.flags & CONTEXT_FLAGS:
            if not isinstance(self.dest, StructOffset):
                raise OptionDefinitionError(
                    f"Option '{self.name}' is OPT_OFFSET/OPT_SPEC but its destination is "
                    f"{type(self.dest).__name__}, expected StructOffset"
                )
        elif value_kind(self.flags):
            if not isinstance(self.dest, FixedLocation):
                raise OptionDefinitionError(
                    f"Option '{self.name}' has a value kind but its destination is "
                    f"{type(self.dest).__name__}, expected FixedLocation"
                )
        elif not isinstance(self.dest, Callback):
            raise OptionDefinitionError(
                f"Option '{self.name}' has no value kind, so its destination must be a Callback"
            )

    @property
    def is_callback(self) -> bool:
        """Return True when the option is applied by calling a handler."""
        return isinstance(self.dest, Callback)


@dataclass(frozen=True)
class OptionGroupDef:
    """Immutable description of a group kind.

    Parameters
    ----------
    name : str
        Display name (e.g. "input url")
    sep : str, optional
        Separator token that starts a group of this kind; ``None`` for the
        unnamed group started by bare tokens
    flags : OptionFlag
        Options applied to groups of this kind must intersect this mask;
        an empty mask allows anything

    """

    name: str
    sep: Optional[str] = None
    flags: OptionFlag = OptionFlag.NONE

    def allows(self, opt: OptionDef) -> bool:
        """Check whether ``opt`` may be applied in a group of this kind."""
        return not self.flags or bool(self.flags & opt.flags)


# Anchors that are never realized as file groups.
GLOBAL_GROUP = OptionGroupDef("global")
IN_PROGRESS_GROUP = OptionGroupDef("in progress")


def strip_specifier(name: str) -> str:
    """Return ``name`` without any ``:specifier`` suffix."""
    return name.split(SPECIFIER_SEPARATOR, 1)[0]


def find_option(options: Sequence[OptionDef], name: str) -> Optional[OptionDef]:
    """Return the first definition named ``name`` (specifier stripped), or None."""
    base = strip_specifier(name)
    for opt in options:
        if opt.name == base:
            return opt
    return None


def match_group_separator(groups: Sequence[OptionGroupDef], token: str) -> Optional[int]:
    """Return the index of the first group whose separator equals ``token``."""
    for index, group in enumerate(groups):
        if group.sep is not None and group.sep == token:
            return index
    return None


class OptionRegistry:
    """Immutable bundle of an option table and a group definition table.

    Parameters
    ----------
    options : Sequence[OptionDef]
        Ordered option table; names are unique by convention, first match wins
    groups : Sequence[OptionGroupDef]
        Group definitions; position is the group kind index

    """

    def __init__(self, options: Sequence[OptionDef], groups: Sequence[OptionGroupDef]) -> None:
        """Freeze the tables."""
        self._options: tuple[OptionDef, ...] = tuple(options)
        self._groups: tuple[OptionGroupDef, ...] = tuple(groups)

    @property
    def options(self) -> tuple[OptionDef, ...]:
        """Return the option table."""
        return self._options

    @property
    def groups(self) -> tuple[OptionGroupDef, ...]:
        """Return the group definition table."""
        return self._groups

    def find(self, name: str) -> Optional[OptionDef]:
        """Look up an option by name; see ``find_option``."""
        return find_option(self._options, name)

    def match_separator(self, token: str) -> Optional[int]:
        """Look up a group kind by separator; see ``match_group_separator``."""
        return match_group_separator(self._groups, token)

    def select(self, req_flags: OptionFlag = OptionFlag.NONE, rej_flags: OptionFlag = OptionFlag.NONE,
               alt_flags: OptionFlag = OptionFlag.NONE) -> Iterator[OptionDef]:
        """Yield options carrying all of ``req_flags``, none of ``rej_flags``.

        When ``alt_flags`` is given, options must also carry at least one of
        those bits.
        """
        for opt in self._options:
            if (opt.flags & req_flags) != req_flags:
                continue
            if opt.flags & rej_flags:
                continue
            if alt_flags and not opt.flags & alt_flags:
                continue
            yield opt

    def __len__(self) -> int:
        return len(self._options)

    def __iter__(self) -> Iterator[OptionDef]:
        return iter(self._options)
