"""
Timestamp normalization for device-reported time strings.

Over its firmware history the sensor device has sent timestamps in several
encodings: ISO-like with a "T" separator (with microseconds, milliseconds or
no fraction), space-separated, and slash-delimited dates. They are tried as an
ordered list of formats, first full match wins:

    iso_micro      2024-11-30T08:01:15.123456
    iso_milli      2024-11-30T08:01:15.123
    iso_seconds    2024-11-30T08:01:15
    space_milli    2024-11-30 08:01:15.123
    space_seconds  2024-11-30 08:01:15
    slash_milli    2024/11/30 08:01:15.123
    slash_seconds  2024/11/30 08:01:15
    slash_micro    2024/11/30 08:01:15.123456

Values carry no timezone and are interpreted as UTC. Results are epoch
milliseconds; sub-millisecond digits are truncated.

normalize_timestamp() never raises. A string matching none of the formats
yields a ParseFailed value and the caller picks the fallback, so one bad
sample cannot abort the statistics of a whole ride.
"""
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Pattern, Sequence, Union

_EPOCH = datetime(1970, 1, 1)
_ONE_MS = timedelta(milliseconds=1)

_DATE_DASH = r"\d{4}-\d{2}-\d{2}"
_DATE_SLASH = r"\d{4}/\d{2}/\d{2}"
_TIME = r"\d{2}:\d{2}:\d{2}"


@dataclass(frozen=True)
class TimestampFormat:
    name: str
    regex: Pattern
    strptime_pattern: str


def _fmt(name: str, regex: str, pattern: str) -> TimestampFormat:
    return TimestampFormat(name, re.compile(regex), pattern)


TIMESTAMP_FORMATS = (
    _fmt("iso_micro", rf"{_DATE_DASH}T{_TIME}\.\d{{6}}", "%Y-%m-%dT%H:%M:%S.%f"),
    _fmt("iso_milli", rf"{_DATE_DASH}T{_TIME}\.\d{{3}}", "%Y-%m-%dT%H:%M:%S.%f"),
    _fmt("iso_seconds", rf"{_DATE_DASH}T{_TIME}", "%Y-%m-%dT%H:%M:%S"),
    _fmt("space_milli", rf"{_DATE_DASH} {_TIME}\.\d{{3}}", "%Y-%m-%d %H:%M:%S.%f"),
    _fmt("space_seconds", rf"{_DATE_DASH} {_TIME}", "%Y-%m-%d %H:%M:%S"),
    _fmt("slash_milli", rf"{_DATE_SLASH} {_TIME}\.\d{{3}}", "%Y/%m/%d %H:%M:%S.%f"),
    _fmt("slash_seconds", rf"{_DATE_SLASH} {_TIME}", "%Y/%m/%d %H:%M:%S"),
    _fmt("slash_micro", rf"{_DATE_SLASH} {_TIME}\.\d{{6}}", "%Y/%m/%d %H:%M:%S.%f"),
)


@dataclass(frozen=True)
class ParsedTimestamp:
    epoch_ms: int
    format_name: str


@dataclass(frozen=True)
class ParseFailed:
    """No known format matched. Carries the offending value for logging."""
    value: Optional[str]
    reason: str


def datetime_to_epoch_ms(dt: datetime) -> int:
    """Epoch milliseconds for a naive-UTC or aware datetime (exact integer math)."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return (dt - _EPOCH) // _ONE_MS


def epoch_ms_to_datetime(epoch_ms: int) -> datetime:
    """Naive UTC datetime for an epoch-milliseconds instant."""
    return _EPOCH + timedelta(milliseconds=epoch_ms)


def format_timestamp(dt: datetime) -> str:
    """Render a datetime in the device's "space_milli" encoding."""
    return dt.strftime("%Y-%m-%d %H:%M:%S.") + f"{dt.microsecond // 1000:03d}"


def normalize_timestamp(
    value: Optional[str],
    formats: Sequence[TimestampFormat] = TIMESTAMP_FORMATS,
) -> Union[ParsedTimestamp, ParseFailed]:
    """
    Parse a device timestamp string against an ordered list of formats.

    Args:
        value: Raw string from the device (may be None or garbage).
        formats: Candidate formats, highest priority first.

    Returns:
        ParsedTimestamp for the first format that fully matches and yields a
        valid calendar instant, otherwise ParseFailed.
    """
    if not isinstance(value, str):
        return ParseFailed(value, "not a string")
    text = value.strip()
    if not text:
        return ParseFailed(value, "empty")

    for fmt in formats:
        if not fmt.regex.fullmatch(text):
            continue
        try:
            dt = datetime.strptime(text, fmt.strptime_pattern)
        except ValueError:
            # Right shape but impossible date (e.g. month 13); try the rest
            continue
        return ParsedTimestamp(datetime_to_epoch_ms(dt), fmt.name)

    return ParseFailed(value, "no matching format")


def to_epoch_ms(
    value: Optional[str],
    fallback: Optional[int] = None,
    formats: Sequence[TimestampFormat] = TIMESTAMP_FORMATS,
) -> Optional[int]:
    """Parse value to epoch ms, or return the caller-supplied fallback."""
    result = normalize_timestamp(value, formats)
    if isinstance(result, ParseFailed):
        return fallback
    return result.epoch_ms


def to_datetime(
    value: Union[str, datetime, None],
    fallback: Optional[datetime] = None,
) -> Optional[datetime]:
    """Coerce a datetime or device timestamp string to a naive UTC datetime."""
    if isinstance(value, datetime):
        return epoch_ms_to_datetime(datetime_to_epoch_ms(value))
    epoch_ms = to_epoch_ms(value)
    if epoch_ms is None:
        return fallback
    return epoch_ms_to_datetime(epoch_ms)
