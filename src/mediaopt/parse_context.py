#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Parse-time data model.

The tokenizer fills an ``OptionParseContext``: one global group, one
``OptionGroupList`` per group kind, and the in-progress ``cur_group`` that
collects options until a file argument seals it. Each group is an ordered
list of ``OptionKV`` records; order is significant because specifier-qualified
options accumulate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence, Union

from mediaopt.exceptions import ScopeMismatchError
from mediaopt.passthrough import PassthroughOptions
from mediaopt.registry import GLOBAL_GROUP, IN_PROGRESS_GROUP, OptionDef, OptionGroupDef

SpecifierValue = Union[str, int, float, bool, None]


@dataclass
class OptionKV:
    """One option occurrence: its definition, literal key and literal value."""

    opt: OptionDef
    key: str
    val: str


@dataclass
class OptionGroup:
    """Options scoped to one file (or to the global scope).

    Parameters
    ----------
    group_def : OptionGroupDef
        Definition of the group kind
    arg : str
        Positional argument of the group, i.e. the filename
    opts : list[OptionKV]
        Options in command line order
    passthrough : PassthroughOptions
        Pass-through values recorded while this group was in progress

    """

    group_def: OptionGroupDef
    arg: str = ""
    opts: list[OptionKV] = field(default_factory=list)
    passthrough: PassthroughOptions = field(default_factory=PassthroughOptions)

    @classmethod
    def new_global(cls) -> OptionGroup:
        """Create the group that holds global options."""
        return cls(GLOBAL_GROUP)

    @classmethod
    def new_in_progress(cls) -> OptionGroup:
        """Create an accumulator for the file currently being scanned."""
        return cls(IN_PROGRESS_GROUP)

    def check_scope(self) -> None:
        """Verify that every option may be applied to this group.

        Raises
        ------
        ScopeMismatchError
            For the first option whose flags do not intersect a non-empty
            group mask

        """
        for kv in self.opts:
            if not self.group_def.allows(kv.opt):
                raise ScopeMismatchError(kv.key, kv.opt.help, self.group_def.name, self.arg)

    def __len__(self) -> int:
        return len(self.opts)


@dataclass
class OptionGroupList:
    """All realized groups of one kind (e.g. every input file)."""

    group_def: OptionGroupDef
    groups: list[OptionGroup] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.groups)


@dataclass
class OptionParseContext:
    """Result of splitting a command line."""

    global_opts: OptionGroup
    groups: list[OptionGroupList]
    cur_group: OptionGroup

    @classmethod
    def create(cls, group_defs: Sequence[OptionGroupDef]) -> OptionParseContext:
        """Create an empty context with one group list per group kind."""
        return cls(
            global_opts=OptionGroup.new_global(),
            groups=[OptionGroupList(group_def) for group_def in group_defs],
            cur_group=OptionGroup.new_in_progress(),
        )

    def realized_groups(self) -> list[OptionGroup]:
        """Return every sealed file group, kind by kind."""
        return [group for group_list in self.groups for group in group_list.groups]


@dataclass
class SpecifierOpt:
    """A value qualified by a stream specifier (e.g. ``"v"`` or ``"a:0"``)."""

    specifier: str
    value: SpecifierValue = None
