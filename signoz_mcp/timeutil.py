"""Time window resolution for tool arguments.

Tools accept either a relative ``timeRange`` ("30m", "2h", "7d", "1h30m") or
explicit ``start``/``end`` epochs. :func:`resolve_time_window` reconciles the
two into a single pair of integers in the unit the target endpoint expects.
"""

import re
import time
from collections.abc import Mapping
from datetime import UTC, datetime, timedelta, tzinfo
from decimal import Decimal, InvalidOperation
from typing import Any

from signoz_mcp.errors import ToolArgumentError

NANOS_PER_UNIT = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3_600 * 1_000_000_000,
    "d": 86_400 * 1_000_000_000,
}

# Output units for resolved windows, as divisors of nanoseconds
EPOCH_UNITS = {"s": 1_000_000_000, "ms": 1_000_000, "ns": 1}

# Epoch values below this (2000-01-01 in ms) are treated as seconds
SECONDS_THRESHOLD_MS = 946_684_800_000

_DURATION_RE = re.compile(r"^(?:(?:\d+(?:\.\d*)?|\.\d+)(?:ns|us|µs|μs|ms|s|m|h|d))+$")
_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h|d)")
_INTEGER_RE = re.compile(r"^-?\d+$")

TIME_RANGE_ERROR = "invalid time range format: use formats like '2h', '30m', '2d', '7d'"

_DATETIME_FORMATS = [
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
    "%d %b %Y %H:%M",
    "%d %b %Y",
    "%b %d, %Y %H:%M",
    "%b %d, %Y",
    "%B %d, %Y",
]

# "Dec 3rd 5 PM", "march 14 17"
_NATURAL_RE = re.compile(r"^([a-z]+)\s+(\d{1,2})(?:st|nd|rd|th)?\s+(\d{1,2})\s*(am|pm)?$", re.IGNORECASE)
# "5 PM", "5:30pm", "17:00"
_CLOCK_RE = re.compile(r"^(\d{1,2})(?::(\d{2}))?\s*(am|pm)?$", re.IGNORECASE)

MONTHS = {
    name: number
    for number, names in enumerate(
        [
            ("january", "jan"),
            ("february", "feb"),
            ("march", "mar"),
            ("april", "apr"),
            ("may",),
            ("june", "jun"),
            ("july", "jul"),
            ("august", "aug"),
            ("september", "sep", "sept"),
            ("october", "oct"),
            ("november", "nov"),
            ("december", "dec"),
        ],
        start=1,
    )
    for name in names
}

# Natural dates further ahead than this are taken to mean last year
FUTURE_DATE_SLACK = timedelta(days=30)


def _duration_nanos(value: str) -> int:
    total = Decimal(0)
    for number, unit in _DURATION_PART_RE.findall(value):
        total += Decimal(number) * NANOS_PER_UNIT[unit]
    return int(total)


def parse_time_range(value: Any) -> timedelta:
    """Parse a relative range such as ``"2h"``, ``"7d"`` or ``"1h30m"``.

    Raises:
        ToolArgumentError: If the value is not a duration string.
    """
    if not isinstance(value, str) or not _DURATION_RE.match(value.strip()):
        raise ToolArgumentError(TIME_RANGE_ERROR)
    try:
        nanos = _duration_nanos(value.strip())
    except InvalidOperation as e:
        raise ToolArgumentError(TIME_RANGE_ERROR) from e
    return timedelta(microseconds=nanos // 1_000)


def _timedelta_nanos(delta: timedelta) -> int:
    return ((delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds) * 1_000


def _present(args: Mapping[str, Any], key: str) -> Any:
    value = args.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return value


def _parse_epoch(value: Any, field: str) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and _INTEGER_RE.match(value.strip()):
        return int(value.strip())
    raise ToolArgumentError(f'invalid {field} timestamp "{value}": use timeRange instead (e.g., "1h", "24h")')


def resolve_time_window(
    args: Mapping[str, Any],
    unit: str = "ms",
    default_range: str = "6h",
    now_ns: int | None = None,
) -> tuple[int, int]:
    """Resolve ``timeRange``/``start``/``end`` arguments to an epoch pair.

    ``timeRange`` always wins over explicit bounds. When neither ``timeRange``
    nor ``start`` is given, ``default_range`` ending now is used. Explicit
    bounds are taken verbatim in ``unit``; a missing ``end`` means now.

    Args:
        args: Raw tool arguments.
        unit: Output unit, one of ``"s"``, ``"ms"`` or ``"ns"``.
        default_range: Range applied when the caller gave no window.
        now_ns: Current time in nanoseconds, for deterministic callers.

    Returns:
        Tuple of (start, end) in ``unit``.

    Raises:
        ToolArgumentError: On a malformed range or non-numeric start/end.
    """
    divisor = EPOCH_UNITS[unit]
    if now_ns is None:
        now_ns = time.time_ns()

    time_range = _present(args, "timeRange")
    start = _present(args, "start")
    end = _present(args, "end")

    if time_range is None and start is None:
        time_range = default_range

    if time_range is not None:
        span = _timedelta_nanos(parse_time_range(time_range))
        return (now_ns - span) // divisor, now_ns // divisor

    start_epoch = _parse_epoch(start, "start")
    end_epoch = _parse_epoch(end, "end") if end is not None else now_ns // divisor
    return start_epoch, end_epoch


def _to_millis(moment: datetime, tz: tzinfo | None = UTC) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=tz)
    return int(moment.timestamp() * 1000)


def _clock_hour(hour: int, meridiem: str | None) -> int:
    meridiem = (meridiem or "").lower()
    if meridiem == "pm" and hour < 12:
        return hour + 12
    if meridiem == "am" and hour == 12:
        return 0
    return hour


def _parse_natural(text: str, now: datetime) -> datetime | None:
    """Parse "Dec 3rd 5 PM" (year from ``now``) or a bare clock time (today)."""
    match = _NATURAL_RE.match(text)
    if match:
        month_name, day, hour, meridiem = match.groups()
        month = MONTHS.get(month_name.lower())
        if month is None:
            raise ToolArgumentError(f'invalid month "{month_name}" in time "{text}": use e.g. "Dec 3rd 5 PM"')
        try:
            moment = now.replace(
                month=month, day=int(day), hour=_clock_hour(int(hour), meridiem), minute=0, second=0, microsecond=0
            )
        except ValueError:
            raise ToolArgumentError(f'invalid date "{text}": use e.g. "Dec 3rd 5 PM"') from None
        if moment - now > FUTURE_DATE_SLACK:
            try:
                moment = moment.replace(year=moment.year - 1)
            except ValueError:
                # Feb 29 rolls over to Mar 1
                moment = moment.replace(year=moment.year - 1, month=3, day=1)
        return moment

    match = _CLOCK_RE.match(text)
    if match:
        hour, minute, meridiem = match.groups()
        try:
            return now.replace(
                hour=_clock_hour(int(hour), meridiem), minute=int(minute or 0), second=0, microsecond=0
            )
        except ValueError:
            raise ToolArgumentError(f'invalid time of day "{text}": use e.g. "5 PM" or "17:00"') from None
    return None


def parse_datetime_string(value: Any, now: datetime | None = None) -> int:
    """Parse a human-friendly timestamp into epoch milliseconds.

    Accepts epoch numbers (seconds or milliseconds), ``now``/``today``/
    ``yesterday``/``tomorrow``, relative ranges meaning "that long ago",
    ISO-8601, a handful of common date layouts, "Dec 3rd 5 PM" and bare
    clock times such as "5 PM". Values without an offset are read in the
    time zone of ``now`` (UTC by default).

    Raises:
        ToolArgumentError: If no supported format matches.
    """
    if now is None:
        now = datetime.now(UTC)
    tz = now.tzinfo or UTC

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        number = int(value)
        return number * 1000 if number < SECONDS_THRESHOLD_MS else number

    text = str(value).strip() if value is not None else ""
    if not text:
        raise ToolArgumentError('empty time value: use epoch milliseconds or a range such as "24h"')

    if _INTEGER_RE.match(text):
        return parse_datetime_string(int(text), now)

    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    keywords = {
        "now": now,
        "today": midnight,
        "yesterday": midnight - timedelta(days=1),
        "tomorrow": midnight + timedelta(days=1),
    }
    if text.lower() in keywords:
        return _to_millis(keywords[text.lower()], tz)

    if _DURATION_RE.match(text):
        return _to_millis(now - parse_time_range(text), tz)

    try:
        return _to_millis(datetime.fromisoformat(text), tz)
    except ValueError:
        pass

    for layout in _DATETIME_FORMATS:
        try:
            return _to_millis(datetime.strptime(text, layout), tz)
        except ValueError:
            continue

    moment = _parse_natural(text, now)
    if moment is not None:
        return _to_millis(moment, tz)

    raise ToolArgumentError(
        f'unable to parse time "{text}": use epoch milliseconds, RFC3339 (e.g., "2025-08-28T13:00:00Z"), '
        'a relative range like "24h" or a date like "Dec 3rd 5 PM"'
    )
