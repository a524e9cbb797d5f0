#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Callback handlers referenced by the option table.

Every handler takes the tool state first (bound with ``functools.partial``
when the table is built) followed by the engine's ``(ctx, key, arg)``
triple, and returns a status: zero or positive on success, a negative
errno value on failure. ``ctx`` is the per-file ``OptionsContext`` or None
when the option is global.
"""

from __future__ import annotations

import errno
import logging
import os
import platform
import re
import sys
from datetime import datetime, timezone
from importlib.metadata import PackageNotFoundError, version
from typing import Iterable, Optional

from mediaopt.applier import write_option
from mediaopt.constants import ENV_REPORT
from mediaopt.exceptions import OptionDefinitionError
from mediaopt.logging_utils import TOOL_LEVELS, add_report_handler, resolve_log_level, set_console_level
from mediaopt.numbers import parse_time
from mediaopt.tool.context import CatalogEntry, OptionsContext, StreamMap, ToolState

logger = logging.getLogger(__name__)

CPU_FLAG_NAMES = frozenset(
    {
        "mmx", "mmxext", "sse", "sse2", "sse2slow", "sse3", "sse3slow", "ssse3", "atom", "sse4.1",
        "sse4.2", "avx", "avx2", "avx512", "xop", "fma3", "fma4", "3dnow", "3dnowext", "cmov",
        "aesni", "bmi1", "bmi2", "armv5te", "armv6", "armv6t2", "vfp", "vfpv3", "neon", "setend",
        "armv8", "altivec", "vsx", "power8", "k6", "k62", "k63", "p3", "p4", "pentium2",
        "pentium3", "pentium4", "athlon", "athlonxp", "k8",
    }
)

_MAP_RE = re.compile(r"^(\d+)(?::(.*))?$")
_CPUFLAG_TOKEN_RE = re.compile(r"([+-]?)([A-Za-z0-9_.]+)")


def get_version() -> str:
    """Return the installed package version, or the source version when not installed."""
    from mediaopt import __version__

    try:
        return version("mediaopt")
    except PackageNotFoundError:
        return __version__


def _print_listing(title: str, legend: Iterable[str], entries: Iterable[CatalogEntry], columns: int) -> None:
    print(f"{title}:")
    for line in legend:
        print(f" {line}")
    print(" " + "-" * columns)
    for entry in entries:
        caps = "".join(c if c in entry.capabilities else "." for c in "DE")[:columns]
        if columns > 2:
            caps += (entry.media_type or ".")[0].upper()
        print(f" {caps} {entry.name:<15} {entry.description}")


# ---------------------------------------------------------------------------
# Informational options (all exit after handling)
# ---------------------------------------------------------------------------


def show_license(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """Print the license."""
    print(
        f"{state.program_name} is free software; you can redistribute it and/or modify\n"
        "it under the terms of the MIT License.\n\n"
        f"{state.program_name} is distributed in the hope that it will be useful,\n"
        "but WITHOUT ANY WARRANTY; without even the implied warranty of\n"
        "MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE."
    )
    return 0


def show_version(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """Print the program version."""
    print(f"{state.program_name} version {get_version()} Copyright (c) 2025 Tom Villani, Ph.D.")
    print(f"running on Python {platform.python_version()} ({platform.python_implementation()})")
    return 0


def show_buildconf(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """Print the runtime configuration the program was started with."""
    print("  configuration:")
    print(f"    python={sys.executable}")
    print(f"    python-version={platform.python_version()}")
    print(f"    platform={platform.platform()}")
    print(f"    machine={platform.machine()}")
    for package in ("pyyaml", "tomli"):
        try:
            print(f"    {package}={version(package)}")
        except PackageNotFoundError:
            print(f"    {package}=not installed")
    return 0


def show_formats(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """List every container format."""
    _print_listing(
        "File formats",
        ["D. = Demuxing supported", ".E = Muxing supported"],
        sorted(state.catalog.formats, key=lambda e: e.name),
        2,
    )
    return 0


def show_muxers(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """List formats that support muxing."""
    _print_listing(
        "File formats",
        [".E = Muxing supported"],
        sorted((e for e in state.catalog.formats if "E" in e.capabilities), key=lambda e: e.name),
        2,
    )
    return 0


def show_demuxers(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """List formats that support demuxing."""
    _print_listing(
        "File formats",
        ["D. = Demuxing supported"],
        sorted((e for e in state.catalog.formats if "D" in e.capabilities), key=lambda e: e.name),
        2,
    )
    return 0


def show_devices(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """List capture and playback devices."""
    _print_listing(
        "Devices",
        ["D. = Demuxing supported", ".E = Muxing supported"],
        sorted(state.catalog.devices, key=lambda e: e.name),
        2,
    )
    return 0


def show_codecs(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """List every codec."""
    _print_listing(
        "Codecs",
        [
            "D.. = Decoding supported",
            ".E. = Encoding supported",
            "..V = Video codec",
            "..A = Audio codec",
            "..S = Subtitle codec",
        ],
        sorted(state.catalog.codecs, key=lambda e: e.name),
        3,
    )
    return 0


def show_decoders(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """List codecs that can decode."""
    _print_listing(
        "Decoders",
        ["D.. = Decoding supported", "..V = Video", "..A = Audio", "..S = Subtitle"],
        sorted((e for e in state.catalog.codecs if "D" in e.capabilities), key=lambda e: e.name),
        3,
    )
    return 0


def show_encoders(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """List codecs that can encode."""
    _print_listing(
        "Encoders",
        [".E. = Encoding supported", "..V = Video", "..A = Audio", "..S = Subtitle"],
        sorted((e for e in state.catalog.codecs if "E" in e.capabilities), key=lambda e: e.name),
        3,
    )
    return 0


def _print_names(title: str, entries: Iterable[CatalogEntry]) -> None:
    print(f"{title}:")
    for entry in entries:
        if entry.description:
            print(f"{entry.name:<12} {entry.description}")
        else:
            print(entry.name)


def show_bsfs(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """List bitstream filters."""
    _print_names("Bitstream filters", state.catalog.bsfs)
    return 0


def show_protocols(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """List input and output protocols."""
    print("Supported file protocols:")
    print("Input:")
    for entry in state.catalog.protocols:
        if "D" in entry.capabilities:
            print(f"  {entry.name}")
    print("Output:")
    for entry in state.catalog.protocols:
        if "E" in entry.capabilities:
            print(f"  {entry.name}")
    return 0


def show_filters(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """List filters."""
    _print_names("Filters", state.catalog.filters)
    return 0


def show_pix_fmts(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """List pixel formats."""
    _print_names("Pixel formats", state.catalog.pix_fmts)
    return 0


def show_layouts(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """List standard channel layouts."""
    print("Standard channel layouts:")
    print("NAME           DECOMPOSITION")
    for entry in state.catalog.layouts:
        print(f"{entry.name:<14} {entry.description}")
    return 0


def show_sample_fmts(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """List audio sample formats."""
    _print_names("Sample formats", state.catalog.sample_fmts)
    return 0


def show_colors(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """List recognized color names."""
    print(f"{'name':<32} #RRGGBB")
    for entry in state.catalog.colors:
        print(f"{entry.name:<32} {entry.description}")
    return 0


def _show_device_list(state: ToolState, arg: str, capability: str, label: str) -> int:
    devices = [e for e in state.catalog.devices if capability in e.capabilities]
    if arg:
        name = arg.split(",", 1)[0]
        devices = [e for e in devices if e.name == name]
        if not devices:
            logger.error("Unknown %s device '%s'.", "input" if capability == "D" else "output", name)
            return -errno.ENODEV
    for entry in devices:
        print(f"Auto-detected {label} for {entry.name}:")
        if entry.description:
            print(f"  {entry.description}")
    return 0


def show_sources(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """List the sources of input devices, optionally of one device."""
    return _show_device_list(state, arg, "D", "sources")


def show_sinks(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """List the sinks of output devices, optionally of one device."""
    return _show_device_list(state, arg, "E", "sinks")


# ---------------------------------------------------------------------------
# Global settings
# ---------------------------------------------------------------------------


def opt_loglevel(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """Set the console log level from a tool level name or number.

    Accepts the tool names (``quiet``, ``panic``, ``fatal``, ``error``,
    ``warning``, ``info``, ``verbose``, ``debug``, ``trace``) and their
    numeric values. Flag prefixes such as ``repeat+`` are accepted and
    ignored.
    """
    level_text = arg
    while "+" in level_text:
        _, _, level_text = level_text.partition("+")
    try:
        level = resolve_log_level(level_text)
    except ValueError:
        logger.error('Invalid loglevel "%s". Possible levels are numbers or:', arg)
        for name in TOOL_LEVELS:
            logger.error('"%s"', name)
        return -errno.EINVAL
    set_console_level(level)
    return 0


def _expand_report_template(template: str, program_name: str, now: datetime) -> str:
    out = []
    i = 0
    while i < len(template):
        c = template[i]
        if c == "%" and i + 1 < len(template):
            code = template[i + 1]
            if code == "p":
                out.append(program_name)
            elif code == "t":
                out.append(now.strftime("%Y%m%d-%H%M%S"))
            else:
                out.append(code)
            i += 2
            continue
        out.append(c)
        i += 1
    return "".join(out)


def init_report(state: ToolState, env: Optional[str] = None) -> int:
    """Start writing a debug report file.

    The file name defaults to ``{program}-{YYYYMMDD-HHMMSS}.log`` in the
    current directory. ``env`` (or the ``MEDIAOPT_REPORT`` environment
    variable) may override it with ``file=TEMPLATE:level=N``, where ``%p``
    expands to the program name and ``%t`` to the timestamp.
    """
    if state.report_file is not None:
        return 0

    if env is None:
        env = os.environ.get(ENV_REPORT, "")

    template = "%p-%t.log"
    level = logging.DEBUG
    for item in filter(None, env.split(":")):
        name, sep, value = item.partition("=")
        if not sep:
            logger.error("Failed to parse %s: '%s'", ENV_REPORT, item)
            continue
        if name == "file":
            template = value
        elif name == "level":
            try:
                level = resolve_log_level(value)
            except ValueError:
                logger.error("Invalid report file level")
                return -errno.EINVAL
        else:
            logger.error("Unknown key '%s' in %s", name, ENV_REPORT)

    filename = _expand_report_template(template, state.program_name, datetime.now())
    try:
        add_report_handler(filename, level)
    except OSError as e:
        logger.error("Failed to open report \"%s\": %s", filename, e.strerror)
        return -(e.errno or errno.EIO)

    state.report_file = filename
    logger.info('Report written to "%s"', filename)
    logger.log(level, "%s started on %s", state.program_name, datetime.now().strftime("%Y-%m-%d at %H:%M:%S"))
    return 0


def opt_report(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """Start the debug report file."""
    return init_report(state)


def opt_max_alloc(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """Set the maximum size of a single allocated block."""
    try:
        value = int(arg, 10)
    except ValueError:
        logger.error('Invalid max_alloc "%s".', arg)
        return -errno.EINVAL
    if value < 0:
        logger.error('Invalid max_alloc "%s".', arg)
        return -errno.EINVAL
    state.max_alloc = value
    return 0


def opt_cpuflags(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """Force specific cpu flags, e.g. ``sse2+avx`` or ``-avx2``."""
    if arg.isdigit():
        state.cpuflags = arg
        return 0
    pos = 0
    while pos < len(arg):
        match = _CPUFLAG_TOKEN_RE.match(arg, pos)
        if match is None or match.group(2).lower() not in CPU_FLAG_NAMES:
            logger.error("Invalid cpuflags '%s'.", arg)
            return -errno.EINVAL
        pos = match.end()
        if pos < len(arg) and arg[pos] == ",":
            pos += 1
    state.cpuflags = arg
    return 0


# ---------------------------------------------------------------------------
# Per-file options
# ---------------------------------------------------------------------------


def _reapply(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """Apply ``key`` through the table, as if it had been written on the command line."""
    if state.registry is None:
        raise OptionDefinitionError(f"Option '{key}' is an alias but no option table is bound to the tool state")
    po = state.registry.find(key)
    if po is None:
        raise OptionDefinitionError(f"Alias target '{key}' is not in the option table")
    write_option(ctx, po, key, arg)
    return 0


def opt_map(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """Record a ``-map`` entry.

    Syntax: ``[-]input_file_id[:stream_specifier][?]`` or ``[linklabel]``.
    A leading ``-`` disables matching earlier maps of the same output file.
    """
    assert ctx is not None
    negative = arg.startswith("-")
    spec = arg[1:] if negative else arg

    if spec.startswith("["):
        label, sep, _ = spec[1:].partition("]")
        if not sep or not label:
            logger.error("Invalid output link label: %s.", spec)
            return -errno.EINVAL
        ctx.stream_maps.append(StreamMap(linklabel=label))
        return 0

    optional = spec.endswith("?")
    if optional:
        spec = spec[:-1]
    # deprecated sync stream suffix
    spec = spec.split(",", 1)[0]

    match = _MAP_RE.match(spec)
    if match is None:
        logger.error("Invalid stream map '%s'.", arg)
        return -errno.EINVAL

    file_index = int(match.group(1))
    specifier = match.group(2) or ""
    if file_index >= len(state.job.inputs):
        logger.error("Invalid input file index: %d.", file_index)
        return -errno.EINVAL

    if negative:
        for existing in ctx.stream_maps:
            if existing.file_index == file_index and (not specifier or existing.specifier == specifier):
                existing.disabled = True
        return 0

    ctx.stream_maps.append(StreamMap(file_index=file_index, specifier=specifier, optional=optional))
    return 0


def opt_recording_timestamp(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """Set the recording timestamp as ``creation_time`` metadata."""
    seconds = parse_time(key, arg, is_duration=False) // 1_000_000
    stamp = datetime.fromtimestamp(seconds, tz=timezone.utc).strftime("creation_time=%Y-%m-%dT%H:%M:%S%z")
    _reapply(state, ctx, "metadata", stamp)
    logger.warning("%s is deprecated, set the 'creation_time' metadata tag instead.", key)
    return 0


def opt_sseof(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """Set the start position relative to the end of the input."""
    assert ctx is not None
    ctx.start_time_eof = parse_time(key, arg, is_duration=True, allow_negative=True)
    return 0


def opt_itsoffset(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """Set the timestamp offset of an input."""
    assert ctx is not None
    ctx.input_ts_offset = parse_time(key, arg, is_duration=True, allow_negative=True)
    return 0


def opt_video_codec(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """Alias for ``-codec:v``."""
    return _reapply(state, ctx, "codec:v", arg)


def opt_audio_codec(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """Alias for ``-codec:a``."""
    return _reapply(state, ctx, "codec:a", arg)


def opt_subtitle_codec(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """Alias for ``-codec:s``."""
    return _reapply(state, ctx, "codec:s", arg)


def opt_data_codec(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """Alias for ``-codec:d``."""
    return _reapply(state, ctx, "codec:d", arg)


def opt_video_frames(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """Alias for ``-frames:v``."""
    return _reapply(state, ctx, "frames:v", arg)


def opt_audio_frames(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """Alias for ``-frames:a``."""
    return _reapply(state, ctx, "frames:a", arg)


def opt_data_frames(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """Alias for ``-frames:d``."""
    return _reapply(state, ctx, "frames:d", arg)


def opt_video_filters(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """Alias for ``-filter:v``."""
    return _reapply(state, ctx, "filter:v", arg)


def opt_audio_filters(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """Alias for ``-filter:a``."""
    return _reapply(state, ctx, "filter:a", arg)


def opt_audio_qscale(state: ToolState, ctx: Optional[OptionsContext], key: str, arg: str) -> int:
    """Alias for ``-q:a``."""
    return _reapply(state, ctx, "q:a", arg)


def disabled_media_types(o: OptionsContext) -> tuple[str, ...]:
    """Return the media types switched off with ``-vn``, ``-an``, ``-sn`` or ``-dn``."""
    flags = (
        ("video", o.video_disable),
        ("audio", o.audio_disable),
        ("subtitle", o.subtitle_disable),
        ("data", o.data_disable),
    )
    return tuple(name for name, disabled in flags if disabled)
