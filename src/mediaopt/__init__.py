"""mediaopt - a table-driven command-line option engine for media tools.

Multi-file media tools take command lines such as::

    mediaopt -hide_banner -ss 5 -i in.mp4 -c:v libx264 -c:a copy out.mkv

where options before ``-i url`` belong to that input, options before a bare
``url`` belong to that output, and everything else is global. mediaopt splits
such a line into an ``OptionParseContext``, validates each option against
the kind of file it is applied to, parses its value into the declared kind,
and writes it to a global location, a field of a per-file context, or a
handler callback.

Key Features
------------
- Declarative option tables (``OptionDef``) and group tables (``OptionGroupDef``)
- Single-pass tokenizer with ``--``, ``-noX`` negation and pass-through options
- Typed value parsing with SI postfixes, durations and dates
- Specifier-qualified options (``-c:v``, ``-b:a:1``) accumulated per stream
- A complete media tool option table built on the engine (``mediaopt.tool``)

Examples
--------
Split and apply a command line with the bundled tool table:

    >>> from mediaopt import parse_options
    >>> job = parse_options(["-i", "in.mp4", "-c:v", "copy", "out.mp4"])
    >>> job.outputs[0].codecs[0].value
    'copy'

Tokenize only:

    >>> from mediaopt import split_commandline
    >>> from mediaopt.tool import ToolState, build_options
    >>> registry = build_options(ToolState())
    >>> octx = split_commandline(["-y", "out.mkv"], registry.options, registry.groups)
    >>> [g.arg for g in octx.realized_groups()]
    ['out.mkv']

"""

#  Copyright (c) 2025 Tom Villani, Ph.D.

# Check Python version before any imports
import sys

if sys.version_info < (3, 10):
    raise ImportError(
        "mediaopt requires Python 3.10 or later. "
        f"You are using Python {sys.version_info.major}.{sys.version_info.minor}."
    )

__version__ = "1.0.0"

from mediaopt.applier import ProgramExit, parse_option_group, write_option
from mediaopt.exceptions import (
    ApplyError,
    ConfigError,
    HandlerError,
    MediaOptError,
    MissingArgumentError,
    OpenFileError,
    OptionDefinitionError,
    ScopeMismatchError,
    TokenizeError,
    UnrecognizedOptionError,
    ValueParseError,
)
from mediaopt.flags import OptionFlag
from mediaopt.parse_context import OptionGroup, OptionGroupList, OptionKV, OptionParseContext, SpecifierOpt
from mediaopt.passthrough import AVOptionRegistry, PassthroughOptions, PassthroughRegistry
from mediaopt.registry import (
    Callback,
    FixedLocation,
    OptionDef,
    OptionGroupDef,
    OptionRegistry,
    StructOffset,
    field_selector,
    find_option,
    match_group_separator,
)
from mediaopt.specifiers import StreamInfo, check_stream_specifier, match_per_stream_opt
from mediaopt.tokenizer import finish_group, split_commandline
from mediaopt.tool.driver import parse_options

__all__ = [
    "__version__",
    # engine
    "split_commandline",
    "finish_group",
    "parse_option_group",
    "write_option",
    "parse_options",
    "ProgramExit",
    # tables
    "OptionFlag",
    "OptionDef",
    "OptionGroupDef",
    "OptionRegistry",
    "FixedLocation",
    "Callback",
    "StructOffset",
    "field_selector",
    "find_option",
    "match_group_separator",
    # parse context
    "OptionKV",
    "OptionGroup",
    "OptionGroupList",
    "OptionParseContext",
    "SpecifierOpt",
    # pass-through
    "PassthroughRegistry",
    "PassthroughOptions",
    "AVOptionRegistry",
    # specifiers
    "StreamInfo",
    "check_stream_specifier",
    "match_per_stream_opt",
    # exceptions
    "MediaOptError",
    "OptionDefinitionError",
    "TokenizeError",
    "MissingArgumentError",
    "UnrecognizedOptionError",
    "ApplyError",
    "ScopeMismatchError",
    "ValueParseError",
    "HandlerError",
    "OpenFileError",
    "ConfigError",
]
