import re
from typing import Optional
import pandas as pd


EPOCH_MILLIS_REGEX = re.compile(r"^\d+$")

# Tried in order once a value is known not to be epoch millis.
DATE_FORMATS = (
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%d",
    "%Y/%m/%d",
)


class DateParseError(ValueError):
    pass


def _from_epoch_millis(s: str) -> Optional[pd.Timestamp]:
    if not EPOCH_MILLIS_REGEX.match(s):
        return None
    try:
        return pd.to_datetime(int(s), unit="ms", utc=True)
    except (ValueError, OverflowError):
        return None


def parse_date(value: str) -> pd.Timestamp:
    """Parse a lead date field into a UTC timestamp.

    Values without a ``-`` are read as milliseconds since the epoch; anything
    else must match one of DATE_FORMATS. Zone-less formats are taken as UTC.
    A negative epoch carries a ``-`` and so never parses.
    """
    s = value if isinstance(value, str) else str(value)
    if "-" not in s:
        ts = _from_epoch_millis(s)
        if ts is not None:
            return ts
    for fmt in DATE_FORMATS:
        try:
            return pd.to_datetime(s, format=fmt, utc=True)
        except (ValueError, TypeError):
            continue
    raise DateParseError(f"unable to parse date: {s}")


def try_parse_date(value: Optional[str]) -> Optional[pd.Timestamp]:
    if not value:
        return None
    try:
        return parse_date(value)
    except DateParseError:
        return None


def hours_since(ts: pd.Timestamp, now: pd.Timestamp) -> float:
    return (now - ts).total_seconds() / 3600.0
