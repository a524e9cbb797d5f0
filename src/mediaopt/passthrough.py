#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Pass-through options understood by external components.

Options that are not in the local option table may still be meaningful to
the media library (generic codec, format, scaler or resampler parameters).
The tokenizer asks a ``PassthroughRegistry`` whether it recognizes such a key
and, if so, hands it the key and its argument. Recorded values are
snapshotted into each group when the group is sealed; the applier never reads
them back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Protocol, runtime_checkable

from mediaopt.constants import DEFAULT_SCALER_FLAGS
from mediaopt.registry import strip_specifier

logger = logging.getLogger(__name__)


@dataclass
class PassthroughOptions:
    """Pass-through values recorded for one group."""

    codec_opts: dict[str, str] = field(default_factory=dict)
    format_opts: dict[str, str] = field(default_factory=dict)
    sws_dict: dict[str, str] = field(default_factory=dict)
    swr_opts: dict[str, str] = field(default_factory=dict)

    def is_empty(self) -> bool:
        """Return True when nothing but defaults was recorded."""
        sws_user = {k: v for k, v in self.sws_dict.items() if (k, v) != ("flags", DEFAULT_SCALER_FLAGS)}
        return not (self.codec_opts or self.format_opts or self.swr_opts or sws_user)


@runtime_checkable
class PassthroughRegistry(Protocol):
    """Collaborator consulted for options missing from the local table."""

    def recognizes(self, key: str) -> bool:
        """Return True if some external component understands ``key``."""
        ...

    def record(self, key: str, value: str) -> None:
        """Remember ``value`` for ``key``."""
        ...

    def take(self) -> PassthroughOptions:
        """Return everything recorded since the last call and start afresh."""
        ...

    def is_empty(self) -> bool:
        """Return True when nothing has been recorded since the last ``take``."""
        ...


# Generic encoder/decoder parameters.
CODEC_OPTION_NAMES = frozenset(
    {
        "b", "ab", "bt", "flags", "flags2", "g", "bf", "qmin", "qmax", "qdiff", "maxrate", "minrate",
        "bufsize", "threads", "thread_type", "strict", "profile", "level", "preset", "tune", "crf",
        "cq", "x264opts", "x264-params", "x265-params", "pix_fmt", "sample_fmt", "channel_layout",
        "ar", "ac", "time_base", "refs", "sc_threshold", "keyint_min", "coder", "trellis",
        "debug", "err_detect", "lowres", "skip_frame", "skip_loop_filter", "skip_idct",
        "ec", "compression_level", "global_quality", "color_range", "colorspace",
        "color_primaries", "color_trc", "field_order", "dump_separator", "codec_whitelist",
        "max_pixels", "apply_cropping", "tag",
    }
)

# Demuxer/muxer parameters.
FORMAT_OPTION_NAMES = frozenset(
    {
        "probesize", "analyzeduration", "fflags", "avioflags", "packetsize", "fpsprobesize",
        "max_delay", "movflags", "chunk_size", "max_interleave_delta", "avoid_negative_ts",
        "flush_packets", "metadata_header_padding", "output_ts_offset", "use_wallclock_as_timestamps",
        "seek2any", "correct_ts_overflow", "rtbufsize", "max_ts_probe", "fdebug", "formatprobesize",
        "protocol_whitelist", "protocol_blacklist", "format_whitelist", "skip_initial_bytes",
        "start_time_realtime", "err_detect", "strict", "video_size", "pixel_format", "framerate",
        "sample_rate", "channels", "scan_all_pmts", "headers", "user_agent", "timeout",
        "rw_timeout", "reconnect", "reconnect_streamed", "reconnect_delay_max",
        "hls_time", "hls_list_size", "hls_flags", "segment_time", "segment_format",
    }
)

# Scaler parameters.
SCALER_OPTION_NAMES = frozenset(
    {"sws_flags", "srcw", "srch", "dstw", "dsth", "src_range", "dst_range", "param0", "param1"}
)

# Resampler parameters.
RESAMPLER_OPTION_NAMES = frozenset(
    {"ich", "och", "uch", "isr", "osr", "isf", "osf", "tsf", "icl", "ocl", "clev", "slev", "lfe_mix_level",
     "rmvol", "dither_method", "filter_size", "phase_shift", "linear_interp", "cutoff", "resampler",
     "async", "first_pts", "min_comp", "min_hard_comp", "comp_duration", "max_soft_comp"}
)

_STREAM_TYPE_PREFIXES = ("v", "a", "s")


class AVOptionRegistry:
    """Default pass-through registry backed by static option name tables.

    One instance belongs to one tokenizer invocation. Keys are routed the way
    the media library routes them: codec parameters (optionally prefixed with
    a stream type letter, optionally suffixed with a specifier), format
    parameters, scaler parameters, and resampler parameters. A key may be
    routed to more than one dictionary.

    Parameters
    ----------
    codec_names, format_names, scaler_names, resampler_names : Iterable[str], optional
        Override the recognized name tables

    """

    def __init__(
        self,
        codec_names: Iterable[str] | None = None,
        format_names: Iterable[str] | None = None,
        scaler_names: Iterable[str] | None = None,
        resampler_names: Iterable[str] | None = None,
    ) -> None:
        """Initialize the registry with empty dictionaries."""
        self.codec_names = frozenset(codec_names) if codec_names is not None else CODEC_OPTION_NAMES
        self.format_names = frozenset(format_names) if format_names is not None else FORMAT_OPTION_NAMES
        self.scaler_names = frozenset(scaler_names) if scaler_names is not None else SCALER_OPTION_NAMES
        self.resampler_names = (
            frozenset(resampler_names) if resampler_names is not None else RESAMPLER_OPTION_NAMES
        )
        self._current = self._fresh()

    @staticmethod
    def _fresh() -> PassthroughOptions:
        return PassthroughOptions(sws_dict={"flags": DEFAULT_SCALER_FLAGS})

    def _is_codec_option(self, key: str) -> bool:
        stripped = strip_specifier(key)
        if stripped in self.codec_names:
            return True
        return key[:1] in _STREAM_TYPE_PREFIXES and strip_specifier(key[1:]) in self.codec_names

    def _targets(self, key: str) -> list[dict[str, str]]:
        targets = []
        if self._is_codec_option(key):
            targets.append(self._current.codec_opts)
        if key in self.format_names:
            targets.append(self._current.format_opts)
        stripped = strip_specifier(key)
        if stripped in self.scaler_names:
            targets.append(self._current.sws_dict)
        if stripped in self.resampler_names:
            targets.append(self._current.swr_opts)
        return targets

    def recognizes(self, key: str) -> bool:
        """Return True if any name table knows ``key``."""
        return bool(self._targets(key))

    def record(self, key: str, value: str) -> None:
        """Store ``value`` under ``key`` in every dictionary that knows it."""
        if key in ("debug", "fdebug"):
            logger.info("'%s' is handled by the media library; logging verbosity is set with -loglevel", key)
        targets = self._targets(key)
        if not targets:
            logger.debug("Pass-through option '%s' is not known to any component", key)
            return
        for target in targets:
            target[key] = value

    def take(self) -> PassthroughOptions:
        """Return the recorded options and re-seed the scaler defaults."""
        current = self._current
        self._current = self._fresh()
        return current

    def is_empty(self) -> bool:
        """Return True when nothing beyond defaults is pending."""
        return self._current.is_empty()
