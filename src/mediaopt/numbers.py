#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Numeric and time literal parsing for option values.

Numbers accept the notation media tools conventionally allow on the command
line: SI postfixes (``128k``, ``2M``), binary multiples (``1Ki``), a ``B``
postfix multiplying by eight, decibels (``-3dB``) and hexadecimal integers.
Times are either durations (``[-][HH:]MM:SS[.m...]`` or
``[-]S+[.m...][s|ms|us]``) or dates, converted to microseconds.
"""

from __future__ import annotations

import datetime
import math
import re
import time

from mediaopt.constants import INT32_MAX, INT32_MIN, INT64_MAX, INT64_MIN
from mediaopt.exceptions import ValueParseError
from mediaopt.flags import OptionFlag

SI_PREFIXES: dict[str, int] = {
    "y": -24, "z": -21, "a": -18, "f": -15, "p": -12, "n": -9, "u": -6, "m": -3, "c": -2, "d": -1,
    "h": 2, "k": 3, "K": 3, "M": 6, "G": 9, "T": 12, "P": 15, "E": 18, "Z": 21, "Y": 24,
}

_HEX_RE = re.compile(r"\s*[+-]?0[xX][0-9a-fA-F]+")
_FLOAT_RE = re.compile(
    r"""\s*[+-]?(?:
        (?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?
        |inf(?:inity)?
        |nan
    )""",
    re.VERBOSE | re.IGNORECASE,
)

_DURATION_CLOCK_RE = re.compile(r"(?:(?P<hours>\d+):)?(?P<minutes>[0-5]?\d):(?P<seconds>[0-5]?\d)")
_DURATION_SECONDS_RE = re.compile(r"\d+")
_DATE_RE = re.compile(r"(?P<year>\d{4})-?(?P<month>\d{2})-?(?P<day>\d{2})")
_TIME_OF_DAY_RE = re.compile(
    r"(?P<hour>\d{2}):?(?P<minute>\d{2}):?(?P<second>\d{2})"
)


def parse_si_number(numstr: str) -> tuple[float, str]:
    """Parse a leading number with optional postfix.

    Parameters
    ----------
    numstr : str
        Text starting with a number

    Returns
    -------
    tuple[float, str]
        The value and the unparsed tail. When no number could be read the
        value is ``0.0`` and the tail is the whole input.

    Examples
    --------
    >>> parse_si_number("128k")
    (128000.0, '')
    >>> parse_si_number("1KiB")
    (8192.0, '')

    """
    hex_match = _HEX_RE.match(numstr)
    if hex_match:
        try:
            value = float(int(hex_match.group(0).strip(), 16))
        except OverflowError:
            value = -math.inf if hex_match.group(0).strip().startswith("-") else math.inf
        end = hex_match.end()
    else:
        match = _FLOAT_RE.match(numstr)
        if not match:
            return 0.0, numstr
        value = float(match.group(0))
        end = match.end()

    tail = numstr[end:]
    if tail.startswith("dB"):
        try:
            value = 10 ** (value / 20)
        except OverflowError:
            value = math.inf
        tail = tail[2:]
    elif tail[:1] in SI_PREFIXES:
        exponent = SI_PREFIXES[tail[0]]
        if tail[1:2] == "i":
            # Ki = 2**10, Mi = 2**20, ...
            value *= 2 ** (exponent * 10 // 3) if exponent % 3 == 0 else 2 ** (exponent / 0.3)
            tail = tail[2:]
        else:
            value *= 10.0**exponent
            tail = tail[1:]
    if tail.startswith("B"):
        value *= 8
        tail = tail[1:]
    return value, tail


def parse_number(context: str, numstr: str, kind: OptionFlag, min_value: float, max_value: float) -> float:
    """Parse ``numstr`` and check it against the declared kind and range.

    Parameters
    ----------
    context : str
        Option key, used in error messages
    numstr : str
        The literal to parse
    kind : OptionFlag
        ``OPT_INT`` or ``OPT_INT64`` require an exact integral value; any
        other kind only checks the range
    min_value, max_value : float
        Inclusive bounds

    Returns
    -------
    float
        The parsed value

    Raises
    ------
    ValueParseError
        If the literal is not a number, is out of range, or is not an
        integer exactly representable at the declared width

    """
    value, tail = parse_si_number(numstr)
    if tail or not numstr.strip():
        raise ValueParseError(f"Expected number for {context} but found: {numstr}", option=context, value=numstr)
    if math.isnan(value) or value < min_value or value > max_value:
        raise ValueParseError(
            f"The value for {context} was {numstr} which is not within {min_value} - {max_value}",
            option=context,
            value=numstr,
        )
    if kind == OptionFlag.OPT_INT64 and not _is_exact_integer(value, INT64_MIN, INT64_MAX):
        raise ValueParseError(f"Expected int64 for {context} but found {numstr}", option=context, value=numstr)
    if kind == OptionFlag.OPT_INT and not _is_exact_integer(value, INT32_MIN, INT32_MAX):
        raise ValueParseError(f"Expected int for {context} but found {numstr}", option=context, value=numstr)
    return value


def _is_exact_integer(value: float, lo: int, hi: int) -> bool:
    if math.isinf(value):
        return False
    as_int = int(value)
    return lo <= as_int <= hi and float(as_int) == value


def parse_time(context: str, timestr: str, is_duration: bool = True, allow_negative: bool = False) -> int:
    """Parse a duration or a date into microseconds.

    Parameters
    ----------
    context : str
        Option key, used in error messages
    timestr : str
        The literal to parse
    is_duration : bool, default True
        Parse as a duration; otherwise as a date (microseconds since epoch)
    allow_negative : bool, default False
        Accept a leading minus sign on durations

    Returns
    -------
    int
        Microseconds

    Raises
    ------
    ValueParseError
        If the literal is not a valid specification

    """
    kind = "duration" if is_duration else "date"
    try:
        if is_duration:
            value = _parse_duration(timestr)
        else:
            value = _parse_date(timestr)
    except ValueError as e:
        raise ValueParseError(
            f"Invalid {kind} specification for {context}: {timestr}", option=context, value=timestr, original_error=e
        ) from e
    if is_duration and value < 0 and not allow_negative:
        raise ValueParseError(
            f"Invalid {kind} specification for {context}: {timestr} (negative durations are not allowed)",
            option=context,
            value=timestr,
        )
    return value


def _parse_fraction(text: str) -> tuple[int, str]:
    """Read ``.m...`` into microseconds; digits beyond the sixth are ignored."""
    if not text.startswith("."):
        return 0, text
    digits = re.match(r"\d*", text[1:]).group(0)  # type: ignore[union-attr]
    micros = int((digits[:6] or "0").ljust(6, "0"))
    return micros, text[1 + len(digits):]


def _parse_duration(timestr: str) -> int:
    text = timestr
    negative = text.startswith("-")
    if negative:
        text = text[1:]

    clock = _DURATION_CLOCK_RE.match(text)
    if clock:
        hours = int(clock.group("hours") or 0)
        seconds = hours * 3600 + int(clock.group("minutes")) * 60 + int(clock.group("seconds"))
        rest = text[clock.end():]
    else:
        plain = _DURATION_SECONDS_RE.match(text)
        if not plain:
            raise ValueError(f"no digits in {timestr!r}")
        seconds = int(plain.group(0))
        rest = text[plain.end():]

    micros, rest = _parse_fraction(rest)
    suffix = 1_000_000
    if rest.startswith("ms"):
        suffix = 1000
        micros //= 1000
        rest = rest[2:]
    elif rest.startswith("us"):
        suffix = 1
        micros = 0
        rest = rest[2:]
    elif rest.startswith("s"):
        rest = rest[1:]
    if rest:
        raise ValueError(f"trailing characters {rest!r}")

    total = seconds * suffix + micros
    if total > INT64_MAX:
        raise ValueError("duration out of range")
    return -total if negative else total


def _parse_date(timestr: str) -> int:
    text = timestr.strip()
    if text.lower() == "now":
        return time.time_ns() // 1000

    today = datetime.date.today()
    date_match = _DATE_RE.match(text)
    if date_match:
        day = datetime.date(int(date_match.group("year")), int(date_match.group("month")), int(date_match.group("day")))
        text = text[date_match.end():]
        if text[:1] in ("T", "t", " "):
            text = text[1:]
    else:
        day = today

    tod_match = _TIME_OF_DAY_RE.match(text)
    if tod_match:
        clock = datetime.time(
            int(tod_match.group("hour")), int(tod_match.group("minute")), int(tod_match.group("second"))
        )
        text = text[tod_match.end():]
    elif date_match and not text:
        clock = datetime.time(0, 0, 0)
    else:
        raise ValueError(f"no time of day in {timestr!r}")

    micros, text = _parse_fraction(text)
    utc = text in ("Z", "z")
    if text and not utc:
        raise ValueError(f"trailing characters {text!r}")

    moment = datetime.datetime.combine(day, clock)
    if utc:
        moment = moment.replace(tzinfo=datetime.timezone.utc)
    return int(moment.timestamp()) * 1_000_000 + micros
