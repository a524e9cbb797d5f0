#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Help output rendered from the option table."""

from __future__ import annotations

import logging
from typing import Optional

from mediaopt.flags import PER_FILE_FLAGS, OptionFlag
from mediaopt.registry import OptionDef, OptionRegistry
from mediaopt.tool.context import CatalogEntry, OptionsContext, ToolState

logger = logging.getLogger(__name__)

STREAM_TYPES = OptionFlag.OPT_VIDEO | OptionFlag.OPT_AUDIO | OptionFlag.OPT_SUBTITLE


def format_option(po: OptionDef) -> str:
    """Render one help line, e.g. ``-t duration        record or transcode...``."""
    name = po.name
    if po.argname:
        name = f"{name} {po.argname}"
    return f"-{name:<17}  {po.help}"


def show_help_options(
    registry: OptionRegistry,
    msg: str,
    req_flags: OptionFlag = OptionFlag.NONE,
    rej_flags: OptionFlag = OptionFlag.NONE,
    alt_flags: OptionFlag = OptionFlag.NONE,
) -> None:
    """Print the options selected by the flag masks under the heading ``msg``.

    Nothing is printed for the heading when no option is selected.
    """
    first = True
    for po in registry.select(req_flags, rej_flags, alt_flags):
        if first:
            print(msg)
            first = False
        print(format_option(po))
    if not first:
        print()


def show_usage(state: ToolState) -> None:
    """Print the one-line usage summary."""
    print(f"usage: {state.program_name} [options] [[infile options] -i infile]... {{[outfile options] outfile}}...")
    print()


def show_help_default(state: ToolState, registry: OptionRegistry, topic: str) -> None:
    """Print the grouped option overview; ``long`` and ``full`` add expert options."""
    show_advanced = topic in ("long", "full")

    show_usage(state)
    print("Getting help:")
    print("    -h      -- print basic options")
    print("    -h long -- print more options")
    print("    -h full -- print all options (including all format and codec specific options, very long)")
    print("    -h type=name -- print all options for the named decoder/encoder/demuxer/muxer/filter/bsf/protocol")
    print("    -h option=name -- print a single option")
    print()

    show_help_options(registry, "Print help / information / capabilities:", OptionFlag.OPT_EXIT)
    show_help_options(
        registry,
        "Global options (affect whole program instead of just one file):",
        OptionFlag.NONE,
        PER_FILE_FLAGS | OptionFlag.OPT_EXIT | OptionFlag.OPT_EXPERT,
    )
    if show_advanced:
        show_help_options(
            registry, "Advanced global options:", OptionFlag.OPT_EXPERT, PER_FILE_FLAGS | OptionFlag.OPT_EXIT
        )

    show_help_options(
        registry,
        "Per-file main options:",
        OptionFlag.NONE,
        OptionFlag.OPT_EXPERT | STREAM_TYPES | OptionFlag.OPT_EXIT,
        PER_FILE_FLAGS,
    )
    if show_advanced:
        show_help_options(registry, "Advanced per-file options:", OptionFlag.OPT_EXPERT, STREAM_TYPES, PER_FILE_FLAGS)

    show_help_options(registry, "Video options:", OptionFlag.OPT_VIDEO, OptionFlag.OPT_EXPERT | OptionFlag.OPT_AUDIO)
    if show_advanced:
        show_help_options(
            registry, "Advanced Video options:", OptionFlag.OPT_EXPERT | OptionFlag.OPT_VIDEO, OptionFlag.OPT_AUDIO
        )

    show_help_options(registry, "Audio options:", OptionFlag.OPT_AUDIO, OptionFlag.OPT_EXPERT | OptionFlag.OPT_VIDEO)
    if show_advanced:
        show_help_options(
            registry, "Advanced Audio options:", OptionFlag.OPT_EXPERT | OptionFlag.OPT_AUDIO, OptionFlag.OPT_VIDEO
        )

    show_help_options(registry, "Subtitle options:", OptionFlag.OPT_SUBTITLE)


def _show_entry(kind: str, name: str, entry: Optional[CatalogEntry]) -> None:
    if entry is None:
        logger.error("%s '%s' is not recognized.", kind.capitalize(), name)
        return
    print(f"{kind.capitalize()} {entry.name} [{entry.description}]:")
    if entry.media_type:
        print(f"    Type: {entry.media_type}")
    if entry.extensions:
        print(f"    Common extensions: {','.join(entry.extensions)}.")


def _find(entries: list[CatalogEntry], name: str, capability: str = "") -> Optional[CatalogEntry]:
    for entry in entries:
        if entry.name == name and capability in entry.capabilities:
            return entry
    return None


def show_help(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """Print help for ``arg``.

    Topics: empty (basic overview), ``long``, ``full``, ``option=NAME`` and
    ``TYPE=NAME`` where TYPE is one of decoder, encoder, demuxer, muxer,
    filter, bsf or protocol.
    """
    registry = state.registry
    if registry is None:
        return 0

    topic, _, par = arg.partition("=")
    catalog = state.catalog

    if topic == "option" and par:
        po = registry.find(par)
        if po is None:
            logger.error("Option '%s' is not recognized.", par)
        else:
            print(format_option(po))
    elif topic == "decoder" and par:
        _show_entry("decoder", par, catalog.find_codec(par, "D"))
    elif topic == "encoder" and par:
        _show_entry("encoder", par, catalog.find_codec(par, "E"))
    elif topic == "demuxer" and par:
        _show_entry("demuxer", par, catalog.find_format(par, "D"))
    elif topic == "muxer" and par:
        _show_entry("muxer", par, catalog.find_format(par, "E"))
    elif topic == "filter" and par:
        _show_entry("filter", par, _find(catalog.filters, par))
    elif topic == "bsf" and par:
        _show_entry("bit stream filter", par, _find(catalog.bsfs, par))
    elif topic == "protocol" and par:
        _show_entry("protocol", par, _find(catalog.protocols, par))
    else:
        show_help_default(state, registry, topic)
    return 0
