"""
gpxstream - Closed vocabularies

String <-> enum tables for the vendor vocabularies carried in GPX files:
geocache type and container, fix quality, tri-state flags, display
colours and display modes.  Reading is case-insensitive and accepts
synonyms; writing always produces the first (canonical) spelling.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Dict, List, Optional, Tuple


class FixType(Enum):
    UNKNOWN = ""
    NONE = "none"
    FIX_2D = "2d"
    FIX_3D = "3d"
    DGPS = "dgps"
    PPS = "pps"


class Status(Enum):
    UNKNOWN = 0
    TRUE = 1
    FALSE = 2


class CacheType(Enum):
    UNKNOWN = 0
    TRADITIONAL = 1
    MULTI = 2
    VIRTUAL = 3
    LETTERBOX = 4
    EVENT = 5
    SURPRISE = 6
    WEBCAM = 7
    EARTH = 8
    LOCATIONLESS = 9
    BENCHMARK = 10
    CITO = 11
    APE = 12
    MEGA = 13
    WHERIGO = 14


class CacheContainer(Enum):
    UNKNOWN = 0
    MICRO = 1
    REGULAR = 2
    LARGE = 3
    VIRTUAL = 4
    OTHER = 5
    SMALL = 6


class DisplayMode(Enum):
    SYMBOL = "SymbolOnly"
    SYMBOL_AND_NAME = "SymbolAndName"
    SYMBOL_AND_COMMENT = "SymbolAndDescription"


# First spelling of a type wins on output; later ones are read synonyms.
_CACHE_TYPE_NAMES: List[Tuple[CacheType, str]] = [
    (CacheType.TRADITIONAL, "Traditional Cache"),
    (CacheType.TRADITIONAL, "Traditional"),       # opencaching.de
    (CacheType.MULTI, "Multi-cache"),
    (CacheType.MULTI, "Multi"),                   # opencaching.de
    (CacheType.VIRTUAL, "Virtual Cache"),
    (CacheType.VIRTUAL, "Virtual"),               # opencaching.de
    (CacheType.EVENT, "Event Cache"),
    (CacheType.EVENT, "Event"),                   # opencaching.de
    (CacheType.WEBCAM, "Webcam Cache"),
    (CacheType.WEBCAM, "Webcam"),                 # opencaching.de
    (CacheType.SURPRISE, "Unknown Cache"),
    (CacheType.EARTH, "Earthcache"),
    (CacheType.EARTH, "Earth"),                   # opencaching.de
    (CacheType.CITO, "Cache In Trash Out Event"),
    (CacheType.LETTERBOX, "Letterbox Hybrid"),
    (CacheType.LOCATIONLESS, "Locationless (Reverse) Cache"),
    (CacheType.APE, "Project APE Cache"),
    (CacheType.MEGA, "Mega-Event Cache"),
    (CacheType.WHERIGO, "Wherigo Cache"),
    (CacheType.BENCHMARK, "Benchmark"),           # GSAK, not Groundspeak
]

_CACHE_CONTAINER_NAMES: List[Tuple[CacheContainer, str]] = [
    (CacheContainer.OTHER, "Unknown"),
    (CacheContainer.OTHER, "Other"),
    (CacheContainer.MICRO, "Micro"),
    (CacheContainer.REGULAR, "Regular"),
    (CacheContainer.LARGE, "Large"),
    (CacheContainer.SMALL, "Small"),
    (CacheContainer.VIRTUAL, "Virtual"),
]

UNKNOWN_COLOR = -1

# Display colour names with their BBGGRR values.
_GARMIN_COLORS: List[Tuple[str, int]] = [
    ("Unknown", UNKNOWN_COLOR),
    ("Black", 0x000000),
    ("DarkRed", 0x00008B),
    ("DarkGreen", 0x006400),
    ("DarkYellow", 0x008B8B),
    ("DarkBlue", 0x8B0000),
    ("DarkMagenta", 0x8B008B),
    ("DarkCyan", 0x8B8B00),
    ("LightGray", 0xD3D3D3),
    ("DarkGray", 0xA9A9A9),
    ("Red", 0x0000FF),
    ("Green", 0x00FF00),
    ("Yellow", 0x00FFFF),
    ("Blue", 0xFF0000),
    ("Magenta", 0xFF00FF),
    ("Cyan", 0xFFFF00),
    ("White", 0xFFFFFF),
    ("Transparent", UNKNOWN_COLOR),
]


def _reader_map(table) -> Dict[str, Enum]:
    out: Dict[str, Enum] = {}
    for value, name in table:
        out.setdefault(name.casefold(), value)
    return out


def _writer_map(table) -> Dict[Enum, str]:
    out: Dict[Enum, str] = {}
    for value, name in table:
        out.setdefault(value, name)
    return out


_CACHE_TYPE_BY_NAME = _reader_map(_CACHE_TYPE_NAMES)
_CACHE_TYPE_TO_NAME = _writer_map(_CACHE_TYPE_NAMES)
_CONTAINER_BY_NAME = _reader_map(_CACHE_CONTAINER_NAMES)
_CONTAINER_TO_NAME = _writer_map(_CACHE_CONTAINER_NAMES)
_FIX_BY_TEXT = {f.value: f for f in FixType if f is not FixType.UNKNOWN}


# ─────────────────────────────────────────────────────────────
# Geocache type / container
# ─────────────────────────────────────────────────────────────

def cache_type_from_name(name: str) -> CacheType:
    return _CACHE_TYPE_BY_NAME.get(name.strip().casefold(), CacheType.UNKNOWN)


def cache_type_name(cache_type: CacheType) -> str:
    return _CACHE_TYPE_TO_NAME.get(cache_type, "Unknown")


def cache_container_from_name(name: str) -> CacheContainer:
    return _CONTAINER_BY_NAME.get(name.strip().casefold(), CacheContainer.UNKNOWN)


def cache_container_name(container: CacheContainer) -> str:
    return _CONTAINER_TO_NAME.get(container, "Unknown")


# ─────────────────────────────────────────────────────────────
# Fix quality, tri-state flags, ratings
# ─────────────────────────────────────────────────────────────

def fix_from_text(text: str) -> FixType:
    """Exact match on the five GPX literals; anything else is UNKNOWN."""
    return _FIX_BY_TEXT.get(text, FixType.UNKNOWN)


def fix_to_text(fix: FixType) -> Optional[str]:
    """GPX says to omit <fix> when unknown, so UNKNOWN maps to None."""
    if fix is FixType.UNKNOWN:
        return None
    return fix.value


def status_from_text(text: str) -> Status:
    folded = text.strip().casefold()
    if folded == "true":
        return Status.TRUE
    if folded == "false":
        return Status.FALSE
    return Status.UNKNOWN


def status_to_text(status: Status) -> Optional[str]:
    if status is Status.TRUE:
        return "True"
    if status is Status.FALSE:
        return "False"
    return None


def rating_from_text(text: str) -> int:
    """Difficulty/terrain "3.5" -> 35.  Unparseable text rates 0."""
    try:
        value = float(text.strip())
    except (ValueError, TypeError, AttributeError):
        return 0
    if not math.isfinite(value):
        return 0
    return int(math.floor(value * 10 + 0.5))


def rating_to_text(rating: int) -> str:
    whole, tenth = divmod(rating, 10)
    if tenth:
        return f"{whole}.{tenth}"
    return str(whole)


# ─────────────────────────────────────────────────────────────
# Display colour / display mode
# ─────────────────────────────────────────────────────────────

def color_value_by_name(name: str) -> int:
    """Colour name -> BBGGRR value, UNKNOWN_COLOR when not in the table."""
    folded = name.strip().casefold()
    for color_name, value in _GARMIN_COLORS:
        if color_name.casefold() == folded:
            return value
    return UNKNOWN_COLOR


def color_index_by_rgb(bbggrr: int) -> int:
    """Index into the colour table, 0 (Unknown) when the value has no name."""
    for index, (_, value) in enumerate(_GARMIN_COLORS):
        if index and value == bbggrr:
            return index
    return 0


def color_name(index: int) -> str:
    return _GARMIN_COLORS[index][0]


def display_mode_from_text(text: str) -> DisplayMode:
    if text == DisplayMode.SYMBOL.value:
        return DisplayMode.SYMBOL
    if text == DisplayMode.SYMBOL_AND_COMMENT.value:
        return DisplayMode.SYMBOL_AND_COMMENT
    return DisplayMode.SYMBOL_AND_NAME
