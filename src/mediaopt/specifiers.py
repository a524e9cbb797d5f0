#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Stream specifiers for specifier-qualified option values.

A specifier-qualified option (e.g. ``-c:v libx264 -c:a:1 aac``) accumulates
one ``SpecifierOpt`` per occurrence. When a file is opened, each stream picks
the last accumulated value whose specifier matches it.

Specifier syntax:

- empty: every stream
- ``N``: the stream with absolute index N
- ``v``, ``a``, ``s``, ``d``, ``t``: streams of that media type; ``V`` is
  video without attached pictures; may be followed by ``:N`` (N-th stream of
  that type) or by another specifier
- ``p:ID[:spec]``: streams of program ID
- ``#ID`` or ``i:ID``: stream with that format-level id
- ``m:key[:value]``: streams whose metadata has ``key`` (equal to ``value``)
- ``u``: streams with a usable configuration
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional, Sequence

from mediaopt.exceptions import ValueParseError
from mediaopt.parse_context import SpecifierOpt, SpecifierValue

MediaType = Literal["video", "audio", "subtitle", "data", "attachment"]

TYPE_LETTERS: dict[str, MediaType] = {
    "v": "video",
    "V": "video",
    "a": "audio",
    "s": "subtitle",
    "d": "data",
    "t": "attachment",
}


@dataclass(frozen=True)
class StreamInfo:
    """What the specifier matcher needs to know about a stream.

    Stream discovery belongs to the media library; callers describe the
    streams they found with this record.
    """

    index: int
    media_type: MediaType
    stream_id: int = 0
    program_ids: tuple[int, ...] = ()
    metadata: dict[str, str] = field(default_factory=dict)
    attached_pic: bool = False
    usable: bool = True


def _invalid(spec: str) -> ValueParseError:
    return ValueParseError(f"Invalid stream specifier: {spec}", option=spec, value=spec)


def _parse_index(text: str, spec: str) -> int:
    if not text.isdigit():
        raise _invalid(spec)
    return int(text)


def _position(stream: StreamInfo, candidates: Sequence[StreamInfo]) -> int:
    for pos, candidate in enumerate(candidates):
        if candidate.index == stream.index:
            return pos
    return -1


def _matches(spec: str, full: str, stream: StreamInfo, streams: Sequence[StreamInfo]) -> bool:
    if not spec:
        return True

    head = spec[0]
    if head.isdigit():
        return stream.index == _parse_index(spec, full)

    if head in TYPE_LETTERS and (len(spec) == 1 or spec[1] == ":"):
        media_type = TYPE_LETTERS[head]
        rest = spec[2:]
        same_type = [
            s for s in streams if s.media_type == media_type and not (head == "V" and s.attached_pic)
        ]
        if stream.media_type != media_type or (head == "V" and stream.attached_pic):
            # still validate the remainder so bad syntax is reported
            if rest and rest[0].isdigit():
                _parse_index(rest, full)
            return False
        if rest and rest[0].isdigit():
            return _position(stream, same_type) == _parse_index(rest, full)
        return _matches(rest, full, stream, streams)

    if spec.startswith("p:"):
        program, _, rest = spec[2:].partition(":")
        program_id = _parse_index(program, full)
        if program_id not in stream.program_ids:
            return False
        if rest and rest[0].isdigit():
            in_program = [s for s in streams if program_id in s.program_ids]
            return _position(stream, in_program) == _parse_index(rest, full)
        return _matches(rest, full, stream, streams)

    if head == "#" or spec.startswith("i:"):
        id_text = spec[1:] if head == "#" else spec[2:]
        try:
            stream_id = int(id_text, 0)
        except ValueError as e:
            raise _invalid(full) from e
        return stream.stream_id == stream_id

    if spec.startswith("m:"):
        key, sep, value = spec[2:].partition(":")
        if not key:
            raise _invalid(full)
        if key not in stream.metadata:
            return False
        return not sep or stream.metadata[key] == value

    if spec == "u":
        return stream.usable

    raise _invalid(full)


def check_stream_specifier(spec: str, stream: StreamInfo, streams: Optional[Sequence[StreamInfo]] = None) -> bool:
    """Check whether ``stream`` matches ``spec``.

    Parameters
    ----------
    spec : str
        Stream specifier, without the option name
    stream : StreamInfo
        Candidate stream
    streams : Sequence[StreamInfo], optional
        Every stream of the file, in index order; needed for per-type and
        per-program positions. Defaults to ``[stream]``.

    Returns
    -------
    bool
        True on match

    Raises
    ------
    ValueParseError
        If the specifier is malformed

    """
    return _matches(spec, spec, stream, streams if streams is not None else [stream])


def match_per_stream_opt(
    values: Sequence[SpecifierOpt], stream: StreamInfo, streams: Optional[Sequence[StreamInfo]] = None
) -> SpecifierValue:
    """Return the last value whose specifier matches ``stream``, or None."""
    result: SpecifierValue = None
    for opt in values:
        if check_stream_specifier(opt.specifier, stream, streams):
            result = opt.value
    return result


def values_for(values: Sequence[SpecifierOpt], specifier: str) -> list[SpecifierValue]:
    """Return every value recorded with exactly ``specifier``."""
    return [opt.value for opt in values if opt.specifier == specifier]


def last_value(values: Sequence[SpecifierOpt]) -> SpecifierValue:
    """Return the most recently recorded value regardless of specifier."""
    return values[-1].value if values else None
