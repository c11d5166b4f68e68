"""
gpxstream - Tag path table

GPX reuses element names (<name>, <desc>, <link>, ...) with different
meanings depending on where they sit, so dispatch is keyed on the full
slash-separated path from the document root, e.g. ``/gpx/wpt/name``.

The table below is built once at import time and is read-only afterwards.
Several physical paths can map to the same TagType (GPX 1.0 vs 1.1
placement, vendor aliases).  The passthrough flag marks recognized
elements whose raw XML must also be preserved for output.
"""

from __future__ import annotations

from enum import Enum, auto
from types import MappingProxyType
from typing import List, Mapping, NamedTuple, Tuple


class TagType(Enum):
    UNKNOWN = 0
    GPX = auto()

    # Optional file-level info
    NAME = auto()
    DESC = auto()
    AUTHOR = auto()
    EMAIL = auto()
    URL = auto()
    URLNAME = auto()
    KEYWORDS = auto()
    LINK = auto()
    LINK_TEXT = auto()
    LINK_TYPE = auto()

    WPT = auto()
    WPTTYPE_ELE = auto()
    WPTTYPE_TIME = auto()
    WPTTYPE_GEOIDHEIGHT = auto()
    WPTTYPE_NAME = auto()
    WPTTYPE_CMT = auto()
    WPTTYPE_DESC = auto()
    WPTTYPE_URL = auto()          # GPX 1.0 only
    WPTTYPE_URLNAME = auto()      # GPX 1.0 only
    WPTTYPE_LINK = auto()         # GPX 1.1 only
    WPTTYPE_LINK_TEXT = auto()
    WPTTYPE_LINK_TYPE = auto()
    WPTTYPE_SYM = auto()
    WPTTYPE_TYPE = auto()
    WPTTYPE_FIX = auto()
    WPTTYPE_SAT = auto()
    WPTTYPE_HDOP = auto()
    WPTTYPE_VDOP = auto()
    WPTTYPE_PDOP = auto()

    CACHE = auto()
    CACHE_NAME = auto()
    CACHE_CONTAINER = auto()
    CACHE_TYPE = auto()
    CACHE_DIFFICULTY = auto()
    CACHE_TERRAIN = auto()
    CACHE_HINT = auto()
    CACHE_DESC_SHORT = auto()
    CACHE_DESC_LONG = auto()
    CACHE_LOG_WPT = auto()
    CACHE_LOG_TYPE = auto()
    CACHE_LOG_DATE = auto()
    CACHE_PLACER = auto()
    CACHE_FAVORITE_POINTS = auto()
    CACHE_PERSONAL_NOTE = auto()

    WPT_EXTENSIONS = auto()

    GARMIN_WPT_EXTENSIONS = auto()
    GARMIN_WPT_PROXIMITY = auto()
    GARMIN_WPT_TEMPERATURE = auto()
    GARMIN_WPT_DEPTH = auto()
    GARMIN_WPT_DISPLAY_MODE = auto()
    GARMIN_WPT_CATEGORIES = auto()
    GARMIN_WPT_CATEGORY = auto()
    GARMIN_WPT_ADDR = auto()
    GARMIN_WPT_CITY = auto()
    GARMIN_WPT_STATE = auto()
    GARMIN_WPT_COUNTRY = auto()
    GARMIN_WPT_POSTAL_CODE = auto()
    GARMIN_WPT_PHONE_NR = auto()

    RTE = auto()
    RTE_NAME = auto()
    RTE_DESC = auto()
    RTE_URL = auto()
    RTE_URLNAME = auto()
    RTE_LINK = auto()
    RTE_LINK_TEXT = auto()
    RTE_LINK_TYPE = auto()
    RTE_NUMBER = auto()
    GARMIN_RTE_DISPLAY_COLOR = auto()
    RTE_RTEPT = auto()

    TRK = auto()
    TRK_NAME = auto()
    TRK_DESC = auto()
    TRK_TRKSEG = auto()
    TRK_URL = auto()
    TRK_URLNAME = auto()
    TRK_LINK = auto()
    TRK_LINK_TEXT = auto()
    TRK_LINK_TYPE = auto()
    TRK_NUMBER = auto()
    GARMIN_TRK_DISPLAY_COLOR = auto()
    TRK_TRKSEG_TRKPT = auto()
    TRK_TRKSEG_TRKPT_COURSE = auto()    # GPX 1.0 only
    TRK_TRKSEG_TRKPT_SPEED = auto()     # GPX 1.0 only
    TRK_TRKSEG_TRKPT_HEARTRATE = auto()
    TRK_TRKSEG_TRKPT_CADENCE = auto()

    HUMMINBIRD_WPT_DEPTH = auto()
    HUMMINBIRD_WPT_STATUS = auto()
    HUMMINBIRD_TRK_TRKSEG_TRKPT_DEPTH = auto()


class TagPathEntry(NamedTuple):
    tag_type: TagType
    passthrough: bool
    path: str


GARMIN_RTE_EXT = "/gpx/rte/extensions/gpxx:RouteExtension"
GARMIN_TRK_EXT = "/gpx/trk/extensions/gpxx:TrackExtension"
GARMIN_WPT_EXT = "/gpx/wpt/extensions/gpxx:WaypointExtension"
GARMIN_TRKPT_EXT = "/gpx/trk/trkseg/trkpt/extensions/gpxtpx:TrackPointExtension"


def _metatag(tag_type: TagType, name: str) -> List[TagPathEntry]:
    """/gpx/<name> for GPX 1.0, /gpx/metadata/<name> for GPX 1.1."""
    return [
        TagPathEntry(tag_type, False, "/gpx/" + name),
        TagPathEntry(tag_type, False, "/gpx/metadata/" + name),
    ]


def _geotag(tag_type: TagType, name: str) -> List[TagPathEntry]:
    """Groundspeak 1.0 style, un-prefixed extension style and opencaching style."""
    return [
        TagPathEntry(tag_type, True, "/gpx/wpt/groundspeak:cache/groundspeak:" + name),
        TagPathEntry(tag_type, True, "/gpx/wpt/extensions/cache/" + name),
        TagPathEntry(tag_type, True, "/gpx/wpt/geocache/" + name),
    ]


def _wpttype_tag(tag_type: TagType, name: str, passthrough: bool = False) -> List[TagPathEntry]:
    """Children common to waypoints, track points and route points."""
    return [
        TagPathEntry(tag_type, passthrough, "/gpx/wpt/" + name),
        TagPathEntry(tag_type, passthrough, "/gpx/trk/trkseg/trkpt/" + name),
        TagPathEntry(tag_type, passthrough, "/gpx/rte/rtept/" + name),
    ]


_GS_LOG = "/gpx/wpt/groundspeak:cache/groundspeak:logs/groundspeak:log/"
_EXT_LOG = "/gpx/wpt/extensions/cache/logs/log/"

# In GPX schema order.
TAG_PATH_MAP: Tuple[TagPathEntry, ...] = tuple([
    TagPathEntry(TagType.GPX, False, "/gpx"),
    *_metatag(TagType.NAME, "name"),
    *_metatag(TagType.DESC, "desc"),
    TagPathEntry(TagType.AUTHOR, False, "/gpx/author"),
    TagPathEntry(TagType.EMAIL, False, "/gpx/email"),
    TagPathEntry(TagType.URL, False, "/gpx/url"),
    TagPathEntry(TagType.URLNAME, False, "/gpx/urlname"),
    *_metatag(TagType.KEYWORDS, "keywords"),
    TagPathEntry(TagType.LINK, False, "/gpx/metadata/link"),
    TagPathEntry(TagType.LINK_TEXT, False, "/gpx/metadata/link/text"),
    TagPathEntry(TagType.LINK_TYPE, False, "/gpx/metadata/link/type"),

    TagPathEntry(TagType.WPT, False, "/gpx/wpt"),

    TagPathEntry(TagType.CACHE, True, "/gpx/wpt/groundspeak:cache"),
    *_geotag(TagType.CACHE_NAME, "name"),
    *_geotag(TagType.CACHE_CONTAINER, "container"),
    *_geotag(TagType.CACHE_TYPE, "type"),
    *_geotag(TagType.CACHE_DIFFICULTY, "difficulty"),
    *_geotag(TagType.CACHE_TERRAIN, "terrain"),
    *_geotag(TagType.CACHE_HINT, "encoded_hints"),
    *_geotag(TagType.CACHE_HINT, "hints"),
    *_geotag(TagType.CACHE_DESC_SHORT, "short_description"),
    *_geotag(TagType.CACHE_DESC_LONG, "long_description"),
    *_geotag(TagType.CACHE_PLACER, "owner"),
    *_geotag(TagType.CACHE_FAVORITE_POINTS, "favorite_points"),
    *_geotag(TagType.CACHE_PERSONAL_NOTE, "personal_note"),
    TagPathEntry(TagType.CACHE_LOG_WPT, True, _GS_LOG + "groundspeak:log_wpt"),
    TagPathEntry(TagType.CACHE_LOG_WPT, True, _EXT_LOG + "log_wpt"),
    TagPathEntry(TagType.CACHE_LOG_TYPE, True, _GS_LOG + "groundspeak:type"),
    TagPathEntry(TagType.CACHE_LOG_TYPE, True, _EXT_LOG + "type"),
    TagPathEntry(TagType.CACHE_LOG_DATE, True, _GS_LOG + "groundspeak:date"),
    TagPathEntry(TagType.CACHE_LOG_DATE, True, _EXT_LOG + "date"),

    # Kept as a mirror so foreign extension content keeps its wrapper.
    TagPathEntry(TagType.WPT_EXTENSIONS, True, "/gpx/wpt/extensions"),

    TagPathEntry(TagType.GARMIN_WPT_EXTENSIONS, False, GARMIN_WPT_EXT),
    TagPathEntry(TagType.GARMIN_WPT_PROXIMITY, False, GARMIN_WPT_EXT + "/gpxx:Proximity"),
    TagPathEntry(TagType.GARMIN_WPT_TEMPERATURE, False, GARMIN_WPT_EXT + "/gpxx:Temperature"),
    TagPathEntry(TagType.GARMIN_WPT_TEMPERATURE, True, GARMIN_TRKPT_EXT + "/gpxtpx:atemp"),
    TagPathEntry(TagType.GARMIN_WPT_DEPTH, False, GARMIN_WPT_EXT + "/gpxx:Depth"),
    TagPathEntry(TagType.GARMIN_WPT_DISPLAY_MODE, False, GARMIN_WPT_EXT + "/gpxx:DisplayMode"),
    TagPathEntry(TagType.GARMIN_WPT_CATEGORIES, False, GARMIN_WPT_EXT + "/gpxx:Categories"),
    TagPathEntry(TagType.GARMIN_WPT_CATEGORY, False, GARMIN_WPT_EXT + "/gpxx:Categories/gpxx:Category"),
    TagPathEntry(TagType.GARMIN_WPT_ADDR, False, GARMIN_WPT_EXT + "/gpxx:Address/gpxx:StreetAddress"),
    TagPathEntry(TagType.GARMIN_WPT_CITY, False, GARMIN_WPT_EXT + "/gpxx:Address/gpxx:City"),
    TagPathEntry(TagType.GARMIN_WPT_STATE, False, GARMIN_WPT_EXT + "/gpxx:Address/gpxx:State"),
    TagPathEntry(TagType.GARMIN_WPT_COUNTRY, False, GARMIN_WPT_EXT + "/gpxx:Address/gpxx:Country"),
    TagPathEntry(TagType.GARMIN_WPT_POSTAL_CODE, False, GARMIN_WPT_EXT + "/gpxx:Address/gpxx:PostalCode"),
    TagPathEntry(TagType.GARMIN_WPT_PHONE_NR, False, GARMIN_WPT_EXT + "/gpxx:PhoneNumber"),

    # In vendor namespace, but core waypoint fields.
    TagPathEntry(TagType.TRK_TRKSEG_TRKPT_HEARTRATE, True, GARMIN_TRKPT_EXT + "/gpxtpx:hr"),
    TagPathEntry(TagType.TRK_TRKSEG_TRKPT_CADENCE, True, GARMIN_TRKPT_EXT + "/gpxtpx:cad"),

    # Centimetres.
    TagPathEntry(TagType.HUMMINBIRD_WPT_DEPTH, False, "/gpx/wpt/extensions/h:depth"),
    TagPathEntry(TagType.HUMMINBIRD_WPT_STATUS, False, "/gpx/wpt/extensions/h:status"),

    TagPathEntry(TagType.RTE, False, "/gpx/rte"),
    TagPathEntry(TagType.RTE_NAME, False, "/gpx/rte/name"),
    TagPathEntry(TagType.RTE_DESC, False, "/gpx/rte/desc"),
    TagPathEntry(TagType.RTE_URL, False, "/gpx/rte/url"),
    TagPathEntry(TagType.RTE_URLNAME, False, "/gpx/rte/urlname"),
    TagPathEntry(TagType.RTE_LINK, False, "/gpx/rte/link"),
    TagPathEntry(TagType.RTE_LINK_TEXT, False, "/gpx/rte/link/text"),
    TagPathEntry(TagType.RTE_LINK_TYPE, False, "/gpx/rte/link/type"),
    TagPathEntry(TagType.RTE_NUMBER, False, "/gpx/rte/number"),
    TagPathEntry(TagType.GARMIN_RTE_DISPLAY_COLOR, True, GARMIN_RTE_EXT + "/gpxx:DisplayColor"),
    TagPathEntry(TagType.RTE_RTEPT, False, "/gpx/rte/rtept"),

    TagPathEntry(TagType.TRK, False, "/gpx/trk"),
    TagPathEntry(TagType.TRK_NAME, False, "/gpx/trk/name"),
    TagPathEntry(TagType.TRK_DESC, False, "/gpx/trk/desc"),
    TagPathEntry(TagType.TRK_TRKSEG, False, "/gpx/trk/trkseg"),
    TagPathEntry(TagType.TRK_URL, False, "/gpx/trk/url"),
    TagPathEntry(TagType.TRK_URLNAME, False, "/gpx/trk/urlname"),
    TagPathEntry(TagType.TRK_LINK, False, "/gpx/trk/link"),
    TagPathEntry(TagType.TRK_LINK_TEXT, False, "/gpx/trk/link/text"),
    TagPathEntry(TagType.TRK_LINK_TYPE, False, "/gpx/trk/link/type"),
    TagPathEntry(TagType.TRK_NUMBER, False, "/gpx/trk/number"),
    TagPathEntry(TagType.GARMIN_TRK_DISPLAY_COLOR, True, GARMIN_TRK_EXT + "/gpxx:DisplayColor"),

    TagPathEntry(TagType.TRK_TRKSEG_TRKPT, False, "/gpx/trk/trkseg/trkpt"),
    TagPathEntry(TagType.TRK_TRKSEG_TRKPT_COURSE, False, "/gpx/trk/trkseg/trkpt/course"),
    TagPathEntry(TagType.TRK_TRKSEG_TRKPT_SPEED, False, "/gpx/trk/trkseg/trkpt/speed"),

    # Centimetres.
    TagPathEntry(TagType.HUMMINBIRD_TRK_TRKSEG_TRKPT_DEPTH, False,
                 "/gpx/trk/trkseg/trkpt/extensions/h:depth"),

    *_wpttype_tag(TagType.WPTTYPE_ELE, "ele"),
    *_wpttype_tag(TagType.WPTTYPE_TIME, "time"),
    *_wpttype_tag(TagType.WPTTYPE_GEOIDHEIGHT, "geoidheight"),
    *_wpttype_tag(TagType.WPTTYPE_NAME, "name"),
    *_wpttype_tag(TagType.WPTTYPE_CMT, "cmt"),
    *_wpttype_tag(TagType.WPTTYPE_DESC, "desc"),
    *_wpttype_tag(TagType.WPTTYPE_URL, "url"),
    *_wpttype_tag(TagType.WPTTYPE_URLNAME, "urlname"),
    *_wpttype_tag(TagType.WPTTYPE_LINK, "link"),
    *_wpttype_tag(TagType.WPTTYPE_LINK_TEXT, "link/text"),
    *_wpttype_tag(TagType.WPTTYPE_LINK_TYPE, "link/type"),
    *_wpttype_tag(TagType.WPTTYPE_SYM, "sym"),
    *_wpttype_tag(TagType.WPTTYPE_TYPE, "type", passthrough=True),
    *_wpttype_tag(TagType.WPTTYPE_FIX, "fix"),
    *_wpttype_tag(TagType.WPTTYPE_SAT, "sat"),
    *_wpttype_tag(TagType.WPTTYPE_HDOP, "hdop"),
    *_wpttype_tag(TagType.WPTTYPE_VDOP, "vdop"),
    *_wpttype_tag(TagType.WPTTYPE_PDOP, "pdop"),
])


def _build_table(entries) -> Mapping[str, TagPathEntry]:
    table = {}
    for entry in entries:
        if entry.path in table:
            raise ValueError(f"Duplicate tag path: {entry.path}")
        table[entry.path] = entry
    return MappingProxyType(table)


TAG_TABLE: Mapping[str, TagPathEntry] = _build_table(TAG_PATH_MAP)


def lookup(path: str) -> Tuple[TagType, bool]:
    """Resolve a full element path to (tag type, passthrough).

    Unknown paths resolve to (TagType.UNKNOWN, True): everything we do not
    understand is preserved.
    """
    entry = TAG_TABLE.get(path)
    if entry is None:
        return TagType.UNKNOWN, True
    return entry.tag_type, entry.passthrough
