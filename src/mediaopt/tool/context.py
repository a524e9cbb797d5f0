#  Copyright (c) 2025 Tom Villani, Ph.D.
"""State shared by the option table, its handlers and the open steps.

``ToolState`` holds the process-lifetime values that fixed-location options
write to. ``OptionsContext`` is the per-file destination: a fresh one is
built for every input or output group, filled by the applier, and handed to
the open step.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from mediaopt.constants import INT32_MAX, INT64_MAX, NOPTS_VALUE, PROGRAM_NAME
from mediaopt.parse_context import OptionGroup, SpecifierOpt

if TYPE_CHECKING:
    from mediaopt.registry import OptionRegistry


@dataclass(frozen=True)
class CatalogEntry:
    """One entry of a media library listing.

    ``capabilities`` uses the media tool letters: ``D`` demuxing/decoding,
    ``E`` muxing/encoding. ``media_type`` is set for codecs.
    """

    name: str
    description: str = ""
    capabilities: str = ""
    media_type: Optional[str] = None
    extensions: tuple[str, ...] = ()


@dataclass
class MediaCatalog:
    """Listings supplied by the media library."""

    formats: list[CatalogEntry] = field(default_factory=list)
    codecs: list[CatalogEntry] = field(default_factory=list)
    devices: list[CatalogEntry] = field(default_factory=list)
    bsfs: list[CatalogEntry] = field(default_factory=list)
    protocols: list[CatalogEntry] = field(default_factory=list)
    filters: list[CatalogEntry] = field(default_factory=list)
    pix_fmts: list[CatalogEntry] = field(default_factory=list)
    layouts: list[CatalogEntry] = field(default_factory=list)
    sample_fmts: list[CatalogEntry] = field(default_factory=list)
    colors: list[CatalogEntry] = field(default_factory=list)

    def find_format(self, name: str, capability: str) -> Optional[CatalogEntry]:
        """Return the format ``name`` if it supports ``capability`` ("D" or "E")."""
        for entry in self.formats:
            if capability in entry.capabilities and name in entry.name.split(","):
                return entry
        return None

    def guess_format(self, filename: str) -> Optional[CatalogEntry]:
        """Guess an output format from the filename extension."""
        _, dot, ext = filename.rpartition(".")
        if not dot:
            return None
        ext = ext.lower()
        for entry in self.formats:
            if "E" in entry.capabilities and ext in entry.extensions:
                return entry
        return None

    def find_codec(self, name: str, capability: str) -> Optional[CatalogEntry]:
        """Return the codec ``name`` if it supports ``capability`` ("D" or "E")."""
        for entry in self.codecs:
            if entry.name == name and capability in entry.capabilities:
                return entry
        return None


def _default_catalog() -> MediaCatalog:
    formats = [
        CatalogEntry("mp4", "MP4 (MPEG-4 Part 14)", "DE", extensions=("mp4", "m4a", "m4v")),
        CatalogEntry("mov", "QuickTime / MOV", "DE", extensions=("mov",)),
        CatalogEntry("matroska", "Matroska", "DE", extensions=("mkv", "mka")),
        CatalogEntry("webm", "WebM", "DE", extensions=("webm",)),
        CatalogEntry("avi", "AVI (Audio Video Interleaved)", "DE", extensions=("avi",)),
        CatalogEntry("mpegts", "MPEG-TS (MPEG-2 Transport Stream)", "DE", extensions=("ts", "m2t")),
        CatalogEntry("mp3", "MP3 (MPEG audio layer 3)", "DE", extensions=("mp3",)),
        CatalogEntry("wav", "WAV / WAVE (Waveform Audio)", "DE", extensions=("wav",)),
        CatalogEntry("flac", "raw FLAC", "DE", extensions=("flac",)),
        CatalogEntry("ogg", "Ogg", "DE", extensions=("ogg", "oga", "opus")),
        CatalogEntry("image2", "image2 sequence", "DE", extensions=("png", "jpg", "jpeg", "bmp")),
        CatalogEntry("rawvideo", "raw video", "DE", extensions=("yuv", "rgb")),
        CatalogEntry("hls", "Apple HTTP Live Streaming", "DE", extensions=("m3u8",)),
        CatalogEntry("lavfi", "Libavfilter virtual input device", "D"),
        CatalogEntry("null", "raw null video", "E"),
    ]
    codecs = [
        CatalogEntry("h264", "H.264 / AVC / MPEG-4 AVC", "DE", "video"),
        CatalogEntry("libx264", "libx264 H.264 / AVC", "E", "video"),
        CatalogEntry("hevc", "H.265 / HEVC", "DE", "video"),
        CatalogEntry("libx265", "libx265 H.265 / HEVC", "E", "video"),
        CatalogEntry("vp9", "Google VP9", "DE", "video"),
        CatalogEntry("av1", "Alliance for Open Media AV1", "DE", "video"),
        CatalogEntry("mpeg4", "MPEG-4 part 2", "DE", "video"),
        CatalogEntry("rawvideo", "raw video", "DE", "video"),
        CatalogEntry("png", "PNG (Portable Network Graphics) image", "DE", "video"),
        CatalogEntry("aac", "AAC (Advanced Audio Coding)", "DE", "audio"),
        CatalogEntry("mp3", "MP3 (MPEG audio layer 3)", "DE", "audio"),
        CatalogEntry("libmp3lame", "libmp3lame MP3", "E", "audio"),
        CatalogEntry("opus", "Opus", "DE", "audio"),
        CatalogEntry("flac", "FLAC (Free Lossless Audio Codec)", "DE", "audio"),
        CatalogEntry("pcm_s16le", "PCM signed 16-bit little-endian", "DE", "audio"),
        CatalogEntry("subrip", "SubRip subtitle", "DE", "subtitle"),
        CatalogEntry("ass", "ASS (Advanced SSA) subtitle", "DE", "subtitle"),
        CatalogEntry("mov_text", "3GPP Timed Text subtitle", "DE", "subtitle"),
        CatalogEntry("bin_data", "binary data", "DE", "data"),
    ]
    return MediaCatalog(
        formats=formats,
        codecs=codecs,
        protocols=[CatalogEntry(p, capabilities="DE") for p in ("file", "pipe", "http", "https", "tcp", "udp", "rtmp")],
        bsfs=[CatalogEntry(b) for b in ("aac_adtstoasc", "h264_mp4toannexb", "hevc_mp4toannexb", "null")],
        filters=[CatalogEntry(f) for f in ("scale", "crop", "fps", "format", "aresample", "volume", "null", "anull")],
        pix_fmts=[CatalogEntry(p) for p in ("yuv420p", "yuv422p", "yuv444p", "nv12", "rgb24", "rgba", "gray")],
        layouts=[CatalogEntry(n, d) for n, d in (("mono", "FC"), ("stereo", "FL+FR"), ("5.1", "FL+FR+FC+LFE+BL+BR"))],
        sample_fmts=[CatalogEntry(s) for s in ("u8", "s16", "s32", "flt", "dbl", "s16p", "fltp")],
        colors=[CatalogEntry(n, v) for n, v in (("black", "#000000"), ("white", "#ffffff"), ("red", "#ff0000"))],
    )


@dataclass
class StreamMap:
    """One ``-map`` entry of an output file."""

    disabled: bool = False
    file_index: int = -1
    specifier: str = ""
    linklabel: str = ""
    optional: bool = False


@dataclass
class InputFile:
    """An input file as planned by the open step."""

    index: int
    filename: str
    format: str = ""
    start_time: int = NOPTS_VALUE
    recording_time: int = INT64_MAX
    input_ts_offset: int = 0
    loops: int = 0
    rate_emu: bool = False
    accurate_seek: bool = True
    codecs: dict[str, str] = field(default_factory=dict)
    format_opts: dict[str, str] = field(default_factory=dict)
    codec_opts: dict[str, str] = field(default_factory=dict)
    ts_scale: list[SpecifierOpt] = field(default_factory=list)


@dataclass
class OutputFile:
    """An output file as planned by the open step."""

    index: int
    filename: str
    format: str = ""
    recording_time: int = INT64_MAX
    start_time: int = NOPTS_VALUE
    limit_filesize: int = INT64_MAX
    shortest: bool = False
    stream_maps: list[StreamMap] = field(default_factory=list)
    codecs: list[SpecifierOpt] = field(default_factory=list)
    metadata: dict[str, dict[str, str]] = field(default_factory=dict)
    disabled_types: tuple[str, ...] = ()
    format_opts: dict[str, str] = field(default_factory=dict)
    codec_opts: dict[str, str] = field(default_factory=dict)


@dataclass
class MediaJob:
    """Everything the open steps planned for one invocation."""

    inputs: list[InputFile] = field(default_factory=list)
    outputs: list[OutputFile] = field(default_factory=list)

    def summary(self) -> str:
        """Return a one-line-per-file description."""
        lines = [f"Input #{f.index}: {f.filename}" + (f" ({f.format})" if f.format else "") for f in self.inputs]
        lines += [f"Output #{f.index}: {f.filename}" + (f" ({f.format})" if f.format else "") for f in self.outputs]
        return "\n".join(lines)


@dataclass
class ToolState:
    """Process-lifetime values of one tool invocation."""

    program_name: str = PROGRAM_NAME
    hide_banner: bool = False
    file_overwrite: bool = False
    no_file_overwrite: bool = False
    print_stats: bool = True
    do_benchmark: bool = False
    max_alloc: int = INT32_MAX
    cpuflags: str = ""
    report_file: Optional[str] = None
    stdin_interaction: bool = True
    find_stream_info: bool = True
    catalog: MediaCatalog = field(default_factory=_default_catalog)
    job: MediaJob = field(default_factory=MediaJob)
    registry: Optional["OptionRegistry"] = None


@dataclass
class OptionsContext:
    """Per-file options filled from one input or output group."""

    g: Optional[OptionGroup] = None

    # input/output options
    start_time: int = NOPTS_VALUE
    start_time_eof: int = NOPTS_VALUE
    seek_timestamp: bool = False
    format: str = ""

    codec_names: list[SpecifierOpt] = field(default_factory=list)
    audio_channels: list[SpecifierOpt] = field(default_factory=list)
    audio_sample_rate: list[SpecifierOpt] = field(default_factory=list)
    frame_rates: list[SpecifierOpt] = field(default_factory=list)
    frame_sizes: list[SpecifierOpt] = field(default_factory=list)
    frame_pix_fmts: list[SpecifierOpt] = field(default_factory=list)

    # input options
    input_ts_offset: int = 0
    loops: int = 0
    rate_emu: bool = False
    accurate_seek: bool = True
    thread_queue_size: int = -1

    ts_scale: list[SpecifierOpt] = field(default_factory=list)
    hwaccels: list[SpecifierOpt] = field(default_factory=list)
    autorotate: list[SpecifierOpt] = field(default_factory=list)

    # output options
    stream_maps: list[StreamMap] = field(default_factory=list)
    recording_time: int = INT64_MAX
    stop_time: int = INT64_MAX
    limit_filesize: int = INT64_MAX
    mux_preload: float = 0.0
    mux_max_delay: float = 0.7
    shortest: bool = False
    bitexact: bool = False

    video_disable: bool = False
    audio_disable: bool = False
    subtitle_disable: bool = False
    data_disable: bool = False

    metadata: list[SpecifierOpt] = field(default_factory=list)
    max_frames: list[SpecifierOpt] = field(default_factory=list)
    qscale: list[SpecifierOpt] = field(default_factory=list)
    filters: list[SpecifierOpt] = field(default_factory=list)
    disposition: list[SpecifierOpt] = field(default_factory=list)
    time_bases: list[SpecifierOpt] = field(default_factory=list)
