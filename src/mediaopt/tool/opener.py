#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Open steps invoked once per realized input or output group.

The engine hands each step a filled ``OptionsContext`` and the group's
filename. The steps reconcile per-file options, validate them against the
media catalog, and append the planned file to the tool state's job. Actual
probing and muxing belong to the media library.
"""

from __future__ import annotations

import errno
import logging
import os
import re

from mediaopt.constants import INT64_MAX, NOPTS_VALUE
from mediaopt.specifiers import TYPE_LETTERS, last_value, values_for
from mediaopt.tool.context import InputFile, OptionsContext, OutputFile, ToolState
from mediaopt.tool.handlers import disabled_media_types

logger = logging.getLogger(__name__)

_PROTOCOL_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.-]+):")
_CODEC_TYPE_LETTERS = ("v", "a", "s", "d")


def _reconcile_duration(o: OptionsContext) -> bool:
    """Turn ``-to`` into a duration; return False when ``-to`` precedes ``-ss``."""
    if o.stop_time != INT64_MAX and o.recording_time != INT64_MAX:
        o.stop_time = INT64_MAX
        logger.warning("-t and -to cannot be used together; using -t.")

    if o.stop_time != INT64_MAX and o.recording_time == INT64_MAX:
        start_time = 0 if o.start_time == NOPTS_VALUE else o.start_time
        if o.stop_time <= start_time:
            logger.error("-to value smaller than -ss; aborting.")
            return False
        o.recording_time = o.stop_time - start_time
    return True


def _normalize_filename(filename: str) -> str:
    return "pipe:" if filename == "-" else filename


def _is_local_file(filename: str) -> bool:
    match = _PROTOCOL_RE.match(filename)
    return match is None or match.group(1) == "file"


def _local_path(filename: str) -> str:
    return filename[len("file:"):] if filename.startswith("file:") else filename


def _check_codec(state: ToolState, name: str, media_type: str, encoder: bool) -> bool:
    kind = "encoder" if encoder else "decoder"
    entry = state.catalog.find_codec(name, "E" if encoder else "D")
    if entry is None:
        logger.error("Unknown %s '%s'", kind, name)
        return False
    if entry.media_type is not None and entry.media_type != media_type:
        logger.error("Invalid %s type '%s'", kind, name)
        return False
    return True


def _codec_media_type(specifier: str) -> str | None:
    head = specifier.split(":", 1)[0]
    return TYPE_LETTERS.get(head)


def open_input_file(state: ToolState, o: OptionsContext, filename: str) -> int:
    """Plan an input file from its per-file options.

    Returns
    -------
    int
        Zero on success, a negative errno value on failure

    """
    if not _reconcile_duration(o):
        return -errno.EINVAL

    if o.format and state.catalog.find_format(o.format, "D") is None:
        logger.error("Unknown input format: '%s'", o.format)
        return -errno.EINVAL

    filename = _normalize_filename(filename)
    state.stdin_interaction &= not (filename.startswith("pipe:") or filename in ("fd:", "/dev/stdin"))

    passthrough = o.g.passthrough if o.g is not None else None
    format_opts = dict(passthrough.format_opts) if passthrough is not None else {}
    codec_opts = dict(passthrough.codec_opts) if passthrough is not None else {}

    # format-level hints from the last value of each specifier list
    if o.audio_sample_rate:
        format_opts["sample_rate"] = str(last_value(o.audio_sample_rate))
    if o.audio_channels and o.format:
        format_opts["channels"] = str(last_value(o.audio_channels))
    if o.frame_rates and o.format:
        format_opts["framerate"] = str(last_value(o.frame_rates))
    if o.frame_sizes:
        format_opts["video_size"] = str(last_value(o.frame_sizes))
    if o.frame_pix_fmts:
        format_opts["pixel_format"] = str(last_value(o.frame_pix_fmts))
    format_opts.setdefault("scan_all_pmts", "1")

    codecs: dict[str, str] = {}
    for letter in _CODEC_TYPE_LETTERS:
        chosen = values_for(o.codec_names, letter)
        if chosen:
            name = str(chosen[-1])
            if not _check_codec(state, name, TYPE_LETTERS[letter], encoder=False):
                return -errno.EINVAL
            codecs[TYPE_LETTERS[letter]] = name

    if o.start_time != NOPTS_VALUE and o.start_time_eof != NOPTS_VALUE:
        logger.warning("Cannot use -ss and -sseof both, using -ss for %s", filename)
        o.start_time_eof = NOPTS_VALUE
    if o.start_time_eof != NOPTS_VALUE and o.start_time_eof >= 0:
        logger.error("-sseof value must be negative; aborting")
        return -errno.EINVAL

    input_file = InputFile(
        index=len(state.job.inputs),
        filename=filename,
        format=o.format,
        start_time=o.start_time if o.start_time != NOPTS_VALUE else o.start_time_eof,
        recording_time=o.recording_time,
        input_ts_offset=o.input_ts_offset,
        loops=o.loops,
        rate_emu=o.rate_emu,
        accurate_seek=o.accurate_seek,
        codecs=codecs,
        format_opts=format_opts,
        codec_opts=codec_opts,
        ts_scale=list(o.ts_scale),
    )
    state.job.inputs.append(input_file)
    logger.debug("Input #%d, %s, from '%s'", input_file.index, o.format or "auto", filename)
    return 0


def _parse_metadata(o: OptionsContext) -> dict[str, dict[str, str]] | None:
    metadata: dict[str, dict[str, str]] = {}
    for entry in o.metadata:
        key, sep, value = str(entry.value).partition("=")
        if not sep or not key:
            logger.error("No '=' character in metadata string %s.", entry.value)
            return None
        metadata.setdefault(entry.specifier or "g", {})[key] = value
    return metadata


def open_output_file(state: ToolState, o: OptionsContext, filename: str) -> int:
    """Plan an output file from its per-file options.

    Returns
    -------
    int
        Zero on success, a negative errno value on failure

    """
    if not _reconcile_duration(o):
        return -errno.EINVAL

    filename = _normalize_filename(filename)

    if o.format:
        if state.catalog.find_format(o.format, "E") is None:
            logger.error("Requested output format '%s' is not a suitable output format", o.format)
            return -errno.EINVAL
        format_name = o.format
    else:
        guessed = state.catalog.guess_format(filename)
        if guessed is None:
            logger.error("Unable to find a suitable output format for '%s'", filename)
            return -errno.EINVAL
        format_name = guessed.name

    if _is_local_file(filename):
        path = _local_path(filename)
        for input_file in state.job.inputs:
            if input_file.filename == filename:
                logger.error("Output %s same as Input #%d - exiting", filename, input_file.index)
                return -errno.EINVAL
        if os.path.exists(path):
            if state.no_file_overwrite:
                logger.error("File '%s' already exists. Exiting.", filename)
                return -errno.EEXIST
            if not state.file_overwrite:
                logger.error("File '%s' already exists. Use -y to overwrite.", filename)
                return -errno.EEXIST

    codecs = []
    for entry in o.codec_names:
        name = str(entry.value)
        media_type = _codec_media_type(entry.specifier)
        if name == "copy":
            codecs.append(entry)
            continue
        if media_type is not None and not _check_codec(state, name, media_type, encoder=True):
            return -errno.EINVAL
        if media_type is None and state.catalog.find_codec(name, "E") is None:
            logger.error("Unknown encoder '%s'", name)
            return -errno.EINVAL
        codecs.append(entry)

    metadata = _parse_metadata(o)
    if metadata is None:
        return -errno.EINVAL

    for stream_map in o.stream_maps:
        if stream_map.disabled or stream_map.linklabel:
            continue
        logger.debug("Stream map %d:%s for %s", stream_map.file_index, stream_map.specifier, filename)

    passthrough = o.g.passthrough if o.g is not None else None
    output_file = OutputFile(
        index=len(state.job.outputs),
        filename=filename,
        format=format_name,
        recording_time=o.recording_time,
        start_time=o.start_time,
        limit_filesize=o.limit_filesize,
        shortest=o.shortest,
        stream_maps=[m for m in o.stream_maps if not m.disabled],
        codecs=codecs,
        metadata=metadata,
        disabled_types=disabled_media_types(o),
        format_opts=dict(passthrough.format_opts) if passthrough is not None else {},
        codec_opts=dict(passthrough.codec_opts) if passthrough is not None else {},
    )
    state.job.outputs.append(output_file)
    logger.debug("Output #%d, %s, to '%s'", output_file.index, format_name, filename)
    return 0
