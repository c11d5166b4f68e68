"""
gpxstream - GPX timestamps

Reads the xsd:dateTime subset found in GPX files:

    YYYY-MM-DDTHH:MM:SS[.fraction][Z|+HH:MM|-HH:MM]

and always yields an aware UTC datetime (or None).  Fractions are kept
to the millisecond.
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

_FIELDS_RE = re.compile(r"^\s*(\d+)-(\d+)-(\d+)T(\d+):(\d+):(\d+)\s*$")
_OFFSET_RE = re.compile(r"^\s*(\d+)(?::(\d+))?")


def _split_offset(text: str) -> Tuple[str, int, int, int]:
    """Strip a trailing zone designator.  Returns (rest, sign, hours, minutes)."""
    zulu = text.find("Z")
    if zulu >= 0:
        return text[:zulu], 1, 0, 0

    plus = text.find("+")
    if plus >= 0:
        hours, minutes = _parse_offset(text[plus + 1:])
        return text[:plus], 1, hours, minutes

    tee = text.find("T")
    if tee >= 0:
        minus = text.find("-", tee)
        if minus >= 0:
            hours, minutes = _parse_offset(text[minus + 1:])
            return text[:minus], -1, hours, minutes

    return text, 1, 0, 0


def _parse_offset(text: str) -> Tuple[int, int]:
    m = _OFFSET_RE.match(text)
    if not m:
        return 0, 0
    return int(m.group(1)), int(m.group(2) or 0)


def parse_xml_time(text: Optional[str]) -> Optional[datetime]:
    """Parse a GPX timestamp into UTC.

    A "+02:00" suffix means the fields are two hours ahead of UTC, so the
    result is two hours earlier than the naive fields.  Anything that does
    not match the date/time grammar gives None, never a guess.
    """
    if not text:
        return None

    rest, sign, off_hr, off_min = _split_offset(text)

    fsec = 0.0
    point = rest.find(".")
    if point >= 0:
        try:
            fsec = float("0" + rest[point:].strip())
        except ValueError:
            fsec = 0.0
        rest = rest[:point]

    m = _FIELDS_RE.match(rest)
    if not m:
        return None
    year, month, day, hour, minute, second = (int(g) for g in m.groups())
    try:
        dt = datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)
    except ValueError:
        return None

    if fsec:
        dt += timedelta(milliseconds=math.floor(fsec * 1000 + 0.5))

    return dt - sign * timedelta(hours=off_hr, minutes=off_min)


def format_xml_time(dt: Optional[datetime]) -> str:
    """UTC timestamp as written to GPX; milliseconds only when non-zero.

    Naive datetimes are taken to be UTC already.
    """
    if dt is None:
        return ""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    millis = dt.microsecond // 1000
    base = dt.strftime("%Y-%m-%dT%H:%M:%S")
    if millis:
        return f"{base}.{millis:03d}Z"
    return f"{base}Z"
