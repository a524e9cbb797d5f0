#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Option tables, handlers and open steps of the media tool built on the engine."""

from mediaopt.tool.context import (
    CatalogEntry,
    InputFile,
    MediaCatalog,
    MediaJob,
    OptionsContext,
    OutputFile,
    StreamMap,
    ToolState,
)
from mediaopt.tool.driver import open_files, parse_options
from mediaopt.tool.table import GROUPS, build_options

__all__ = [
    "CatalogEntry",
    "GROUPS",
    "InputFile",
    "MediaCatalog",
    "MediaJob",
    "OptionsContext",
    "OutputFile",
    "StreamMap",
    "ToolState",
    "build_options",
    "open_files",
    "parse_options",
]
