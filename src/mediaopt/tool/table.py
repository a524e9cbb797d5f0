#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Option and group tables of the media tool.

The table is built per ``ToolState`` so fixed-location options and handlers
are bound to that state; ``build_options`` also stores the resulting
registry on the state for the help renderer and alias handlers.
"""

from __future__ import annotations

from functools import partial
from typing import Callable

from mediaopt.flags import OptionFlag
from mediaopt.registry import Callback, FixedLocation, OptionDef, OptionGroupDef, OptionRegistry, field_selector
from mediaopt.tool import handlers as h
from mediaopt.tool.context import OptionsContext, ToolState
from mediaopt.tool.help import show_help

HAS_ARG = OptionFlag.HAS_ARG
OPT_BOOL = OptionFlag.OPT_BOOL
OPT_EXPERT = OptionFlag.OPT_EXPERT
OPT_STRING = OptionFlag.OPT_STRING
OPT_VIDEO = OptionFlag.OPT_VIDEO
OPT_AUDIO = OptionFlag.OPT_AUDIO
OPT_INT = OptionFlag.OPT_INT
OPT_FLOAT = OptionFlag.OPT_FLOAT
OPT_SUBTITLE = OptionFlag.OPT_SUBTITLE
OPT_INT64 = OptionFlag.OPT_INT64
OPT_EXIT = OptionFlag.OPT_EXIT
OPT_DATA = OptionFlag.OPT_DATA
OPT_PERFILE = OptionFlag.OPT_PERFILE
OPT_OFFSET = OptionFlag.OPT_OFFSET
OPT_SPEC = OptionFlag.OPT_SPEC
OPT_TIME = OptionFlag.OPT_TIME
OPT_DOUBLE = OptionFlag.OPT_DOUBLE
OPT_INPUT = OptionFlag.OPT_INPUT
OPT_OUTPUT = OptionFlag.OPT_OUTPUT

GROUPS: tuple[OptionGroupDef, ...] = (
    OptionGroupDef("output url", None, OPT_OUTPUT),
    OptionGroupDef("input url", "i", OPT_INPUT),
)


def _off(name: str):
    return field_selector(OptionsContext, name)


def _common_options(state: ToolState, cb: Callable[[Callable[..., int]], Callback]) -> list[OptionDef]:
    fixed = partial(FixedLocation, state)
    return [
        OptionDef("L", OPT_EXIT, cb(h.show_license), "show license"),
        OptionDef("h", OPT_EXIT, cb(show_help), "show help", "topic"),
        OptionDef("?", OPT_EXIT, cb(show_help), "show help", "topic"),
        OptionDef("help", OPT_EXIT, cb(show_help), "show help", "topic"),
        OptionDef("-help", OPT_EXIT, cb(show_help), "show help", "topic"),
        OptionDef("version", OPT_EXIT, cb(h.show_version), "show version"),
        OptionDef("buildconf", OPT_EXIT, cb(h.show_buildconf), "show build configuration"),
        OptionDef("formats", OPT_EXIT, cb(h.show_formats), "show available formats"),
        OptionDef("muxers", OPT_EXIT, cb(h.show_muxers), "show available muxers"),
        OptionDef("demuxers", OPT_EXIT, cb(h.show_demuxers), "show available demuxers"),
        OptionDef("devices", OPT_EXIT, cb(h.show_devices), "show available devices"),
        OptionDef("codecs", OPT_EXIT, cb(h.show_codecs), "show available codecs"),
        OptionDef("decoders", OPT_EXIT, cb(h.show_decoders), "show available decoders"),
        OptionDef("encoders", OPT_EXIT, cb(h.show_encoders), "show available encoders"),
        OptionDef("bsfs", OPT_EXIT, cb(h.show_bsfs), "show available bit stream filters"),
        OptionDef("protocols", OPT_EXIT, cb(h.show_protocols), "show available protocols"),
        OptionDef("filters", OPT_EXIT, cb(h.show_filters), "show available filters"),
        OptionDef("pix_fmts", OPT_EXIT, cb(h.show_pix_fmts), "show available pixel formats"),
        OptionDef("layouts", OPT_EXIT, cb(h.show_layouts), "show standard channel layouts"),
        OptionDef("sample_fmts", OPT_EXIT, cb(h.show_sample_fmts), "show available audio sample formats"),
        OptionDef("colors", OPT_EXIT, cb(h.show_colors), "show available color names"),
        OptionDef("loglevel", HAS_ARG, cb(h.opt_loglevel), "set logging level", "loglevel"),
        OptionDef("v", HAS_ARG, cb(h.opt_loglevel), "set logging level", "loglevel"),
        OptionDef("report", OptionFlag.NONE, cb(h.opt_report), "generate a report"),
        OptionDef("max_alloc", HAS_ARG, cb(h.opt_max_alloc), "set maximum size of a single allocated block", "bytes"),
        OptionDef("cpuflags", HAS_ARG | OPT_EXPERT, cb(h.opt_cpuflags), "force specific cpu flags", "flags"),
        OptionDef("hide_banner", OPT_BOOL | OPT_EXPERT, fixed("hide_banner"), "do not show program banner",
                  "hide_banner"),
        OptionDef("sources", OPT_EXIT | HAS_ARG, cb(h.show_sources), "list sources of the input device", "device"),
        OptionDef("sinks", OPT_EXIT | HAS_ARG, cb(h.show_sinks), "list sinks of the output device", "device"),
    ]


def _main_options(state: ToolState, cb: Callable[[Callable[..., int]], Callback]) -> list[OptionDef]:
    fixed = partial(FixedLocation, state)
    return [
        # main options
        OptionDef("f", HAS_ARG | OPT_STRING | OPT_OFFSET | OPT_INPUT | OPT_OUTPUT, _off("format"),
                  "force format", "fmt"),
        OptionDef("y", OPT_BOOL, fixed("file_overwrite"), "overwrite output files"),
        OptionDef("n", OPT_BOOL, fixed("no_file_overwrite"), "never overwrite output files"),
        OptionDef("c", HAS_ARG | OPT_STRING | OPT_SPEC | OPT_INPUT | OPT_OUTPUT, _off("codec_names"),
                  "codec name", "codec"),
        OptionDef("codec", HAS_ARG | OPT_STRING | OPT_SPEC | OPT_INPUT | OPT_OUTPUT, _off("codec_names"),
                  "codec name", "codec"),
        OptionDef("map", HAS_ARG | OPT_EXPERT | OPT_PERFILE | OPT_OUTPUT, cb(h.opt_map),
                  "set input stream mapping", "[-]input_file_id[:stream_specifier][?]"),
        OptionDef("t", HAS_ARG | OPT_TIME | OPT_OFFSET | OPT_INPUT | OPT_OUTPUT, _off("recording_time"),
                  'record or transcode "duration" seconds of audio/video', "duration"),
        OptionDef("to", HAS_ARG | OPT_TIME | OPT_OFFSET | OPT_INPUT | OPT_OUTPUT, _off("stop_time"),
                  "record or transcode stop time", "time_stop"),
        OptionDef("fs", HAS_ARG | OPT_INT64 | OPT_OFFSET | OPT_OUTPUT, _off("limit_filesize"),
                  "set the limit file size in bytes", "limit_size"),
        OptionDef("ss", HAS_ARG | OPT_TIME | OPT_OFFSET | OPT_INPUT | OPT_OUTPUT, _off("start_time"),
                  "set the start time offset", "time_off"),
        OptionDef("sseof", HAS_ARG | OPT_PERFILE | OPT_INPUT, cb(h.opt_sseof),
                  "set the start time offset relative to EOF", "time_off"),
        OptionDef("seek_timestamp", OPT_BOOL | OPT_EXPERT | OPT_OFFSET | OPT_INPUT, _off("seek_timestamp"),
                  "enable/disable seeking by timestamp with -ss"),
        OptionDef("accurate_seek", OPT_BOOL | OPT_OFFSET | OPT_EXPERT | OPT_INPUT, _off("accurate_seek"),
                  "enable/disable accurate seeking with -ss"),
        OptionDef("itsoffset", HAS_ARG | OPT_EXPERT | OPT_PERFILE | OPT_INPUT, cb(h.opt_itsoffset),
                  "set the input ts offset", "time_off"),
        OptionDef("itsscale", HAS_ARG | OPT_DOUBLE | OPT_SPEC | OPT_EXPERT | OPT_INPUT, _off("ts_scale"),
                  "set the input ts scale", "scale"),
        OptionDef("timestamp", HAS_ARG | OPT_PERFILE | OPT_OUTPUT, cb(h.opt_recording_timestamp),
                  "set the recording timestamp ('now' to set the current time)", "time"),
        OptionDef("metadata", HAS_ARG | OPT_STRING | OPT_SPEC | OPT_OUTPUT, _off("metadata"),
                  "add metadata", "string=string"),
        OptionDef("frames", OPT_INT64 | HAS_ARG | OPT_SPEC | OPT_OUTPUT, _off("max_frames"),
                  "set the number of frames to output", "number"),
        OptionDef("benchmark", OPT_BOOL | OPT_EXPERT, fixed("do_benchmark"),
                  "add timings for benchmarking"),
        OptionDef("stats", OPT_BOOL, fixed("print_stats"), "print progress report during encoding"),
        OptionDef("stdin", OPT_BOOL | OPT_EXPERT, fixed("stdin_interaction"),
                  "enable or disable interaction on standard input"),
        OptionDef("find_stream_info", OPT_BOOL | OPT_PERFILE | OPT_INPUT | OPT_EXPERT, fixed("find_stream_info"),
                  "read and decode the streams to fill missing information with heuristics"),
        OptionDef("re", OPT_BOOL | OPT_EXPERT | OPT_OFFSET | OPT_INPUT, _off("rate_emu"),
                  "read input at native frame rate"),
        OptionDef("stream_loop", OPT_INT | HAS_ARG | OPT_EXPERT | OPT_INPUT | OPT_OFFSET, _off("loops"),
                  "set number of times input stream shall be looped", "loop count"),
        OptionDef("thread_queue_size", HAS_ARG | OPT_INT | OPT_OFFSET | OPT_EXPERT | OPT_INPUT,
                  _off("thread_queue_size"), "set the maximum number of queued packets from the demuxer"),
        OptionDef("shortest", OPT_BOOL | OPT_EXPERT | OPT_OFFSET | OPT_OUTPUT, _off("shortest"),
                  "finish encoding within shortest input"),
        OptionDef("bitexact", OPT_BOOL | OPT_EXPERT | OPT_OFFSET | OPT_OUTPUT | OPT_INPUT, _off("bitexact"),
                  "bitexact mode"),
        OptionDef("muxdelay", OPT_FLOAT | HAS_ARG | OPT_EXPERT | OPT_OFFSET | OPT_OUTPUT, _off("mux_max_delay"),
                  "set the maximum demux-decode delay", "seconds"),
        OptionDef("muxpreload", OPT_FLOAT | HAS_ARG | OPT_EXPERT | OPT_OFFSET | OPT_OUTPUT, _off("mux_preload"),
                  "set the initial demux-decode delay", "seconds"),
        OptionDef("q", HAS_ARG | OPT_EXPERT | OPT_DOUBLE | OPT_SPEC | OPT_OUTPUT, _off("qscale"),
                  "use fixed quality scale (VBR)", "q"),
        OptionDef("qscale", HAS_ARG | OPT_EXPERT | OPT_DOUBLE | OPT_SPEC | OPT_OUTPUT, _off("qscale"),
                  "use fixed quality scale (VBR)", "q"),
        OptionDef("filter", HAS_ARG | OPT_STRING | OPT_SPEC | OPT_OUTPUT, _off("filters"),
                  "set stream filtergraph", "filter_graph"),
        OptionDef("disposition", OPT_STRING | HAS_ARG | OPT_SPEC | OPT_EXPERT | OPT_OUTPUT, _off("disposition"),
                  "disposition", ""),
        OptionDef("time_base", HAS_ARG | OPT_STRING | OPT_EXPERT | OPT_SPEC | OPT_OUTPUT, _off("time_bases"),
                  "set the desired time base hint for output stream (1:24, 1:48000 or 0.04166, 2.0833e-5)", "ratio"),
        # video options
        OptionDef("vframes", OPT_VIDEO | HAS_ARG | OPT_PERFILE | OPT_OUTPUT, cb(h.opt_video_frames),
                  "set the number of video frames to output", "number"),
        OptionDef("r", OPT_VIDEO | HAS_ARG | OPT_STRING | OPT_SPEC | OPT_INPUT | OPT_OUTPUT, _off("frame_rates"),
                  "set frame rate (Hz value, fraction or abbreviation)", "rate"),
        OptionDef("s", OPT_VIDEO | HAS_ARG | OPT_SUBTITLE | OPT_STRING | OPT_SPEC | OPT_INPUT | OPT_OUTPUT,
                  _off("frame_sizes"), "set frame size (WxH or abbreviation)", "size"),
        OptionDef("pix_fmt", OPT_VIDEO | HAS_ARG | OPT_EXPERT | OPT_STRING | OPT_SPEC | OPT_INPUT | OPT_OUTPUT,
                  _off("frame_pix_fmts"), "set pixel format", "format"),
        OptionDef("vn", OPT_VIDEO | OPT_BOOL | OPT_OFFSET | OPT_INPUT | OPT_OUTPUT, _off("video_disable"),
                  "disable video"),
        OptionDef("vcodec", OPT_VIDEO | HAS_ARG | OPT_PERFILE | OPT_INPUT | OPT_OUTPUT, cb(h.opt_video_codec),
                  "force video codec ('copy' to copy stream)", "codec"),
        OptionDef("vf", OPT_VIDEO | HAS_ARG | OPT_PERFILE | OPT_OUTPUT, cb(h.opt_video_filters),
                  "set video filters", "filter_graph"),
        OptionDef("hwaccel", OPT_VIDEO | OPT_STRING | HAS_ARG | OPT_EXPERT | OPT_SPEC | OPT_INPUT, _off("hwaccels"),
                  "use HW accelerated decoding", "hwaccel name"),
        OptionDef("autorotate", OPT_BOOL | OPT_SPEC | OPT_EXPERT | OPT_INPUT, _off("autorotate"),
                  "automatically insert correct rotate filters"),
        # audio options
        OptionDef("aframes", OPT_AUDIO | HAS_ARG | OPT_PERFILE | OPT_OUTPUT, cb(h.opt_audio_frames),
                  "set the number of audio frames to output", "number"),
        OptionDef("aq", OPT_AUDIO | HAS_ARG | OPT_PERFILE | OPT_OUTPUT, cb(h.opt_audio_qscale),
                  "set audio quality (codec-specific)", "quality"),
        OptionDef("ar", OPT_AUDIO | HAS_ARG | OPT_INT | OPT_SPEC | OPT_INPUT | OPT_OUTPUT, _off("audio_sample_rate"),
                  "set audio sampling rate (in Hz)", "rate"),
        OptionDef("ac", OPT_AUDIO | HAS_ARG | OPT_INT | OPT_SPEC | OPT_INPUT | OPT_OUTPUT, _off("audio_channels"),
                  "set number of audio channels", "channels"),
        OptionDef("an", OPT_AUDIO | OPT_BOOL | OPT_OFFSET | OPT_INPUT | OPT_OUTPUT, _off("audio_disable"),
                  "disable audio"),
        OptionDef("acodec", OPT_AUDIO | HAS_ARG | OPT_PERFILE | OPT_INPUT | OPT_OUTPUT, cb(h.opt_audio_codec),
                  "force audio codec ('copy' to copy stream)", "codec"),
        OptionDef("af", OPT_AUDIO | HAS_ARG | OPT_PERFILE | OPT_OUTPUT, cb(h.opt_audio_filters),
                  "set audio filters", "filter_graph"),
        # subtitle options
        OptionDef("sn", OPT_SUBTITLE | OPT_BOOL | OPT_OFFSET | OPT_INPUT | OPT_OUTPUT, _off("subtitle_disable"),
                  "disable subtitle"),
        OptionDef("scodec", OPT_SUBTITLE | HAS_ARG | OPT_PERFILE | OPT_INPUT | OPT_OUTPUT, cb(h.opt_subtitle_codec),
                  "force subtitle codec ('copy' to copy stream)", "codec"),
        # data options
        OptionDef("dframes", OPT_DATA | HAS_ARG | OPT_PERFILE | OPT_OUTPUT, cb(h.opt_data_frames),
                  "set the number of data frames to output", "number"),
        OptionDef("dn", OPT_BOOL | OPT_VIDEO | OPT_OFFSET | OPT_INPUT | OPT_OUTPUT, _off("data_disable"),
                  "disable data"),
        OptionDef("dcodec", OPT_DATA | HAS_ARG | OPT_PERFILE | OPT_EXPERT | OPT_INPUT | OPT_OUTPUT,
                  cb(h.opt_data_codec), "force data codec ('copy' to copy stream)", "codec"),
    ]


def build_options(state: ToolState) -> OptionRegistry:
    """Build the option table bound to ``state`` and attach it to the state.

    Parameters
    ----------
    state : ToolState
        State written by fixed-location options and passed to handlers

    Returns
    -------
    OptionRegistry
        Option table with the tool's group definitions

    """

    def cb(func: Callable[..., int]) -> Callback:
        return Callback(partial(func, state))

    registry = OptionRegistry(_common_options(state, cb) + _main_options(state, cb), GROUPS)
    state.registry = registry
    return registry
