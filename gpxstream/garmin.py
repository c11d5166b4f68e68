"""
gpxstream - Handheld-GPS waypoint extension (gpxx:WaypointExtension)

Reads the children of /gpx/wpt/extensions/gpxx:WaypointExtension into a
waypoint (proximity, temperature, depth) and its GarminData record
(display mode, categories, address, phone number), and writes them back.
"""

from __future__ import annotations

import logging
import re

from gpxstream.models import Waypoint
from gpxstream.tags import TagType
from gpxstream.vocab import display_mode_from_text

logger = logging.getLogger(__name__)

GPXX_NS = "http://www.garmin.com/xmlschemas/GpxExtensions/v3"

_CATEGORY_RE = re.compile(r"^\s*Category\s+(\d+)\s*$", re.IGNORECASE)

_ADDRESS_FIELDS = {
    TagType.GARMIN_WPT_ADDR: "addr",
    TagType.GARMIN_WPT_CITY: "city",
    TagType.GARMIN_WPT_STATE: "state",
    TagType.GARMIN_WPT_COUNTRY: "country",
    TagType.GARMIN_WPT_POSTAL_CODE: "postal_code",
    TagType.GARMIN_WPT_PHONE_NR: "phone_nr",
}


def _to_float(text: str) -> float:
    try:
        return float(text)
    except ValueError:
        logger.debug("Unparseable number in waypoint extension: %r", text)
        return 0.0


def convert_category(text: str) -> int:
    """"Category 3" -> 0b100.  Returns 0 when the text is not a category 1..16."""
    m = _CATEGORY_RE.match(text)
    if not m:
        return 0
    n = int(m.group(1))
    if not 1 <= n <= 16:
        return 0
    return 1 << (n - 1)


def xml_convert(tag: TagType, text: str, wpt: Waypoint):
    """Apply one recognized gpxx:WaypointExtension child to ``wpt``."""
    gmsd = wpt.alloc_garmin()

    if tag is TagType.GARMIN_WPT_PROXIMITY:
        wpt.proximity = _to_float(text)
    elif tag is TagType.GARMIN_WPT_TEMPERATURE:
        wpt.temperature = _to_float(text)
    elif tag is TagType.GARMIN_WPT_DEPTH:
        wpt.depth = _to_float(text)
    elif tag is TagType.GARMIN_WPT_DISPLAY_MODE:
        gmsd.display = display_mode_from_text(text)
    elif tag is TagType.GARMIN_WPT_CATEGORY:
        # Unknown category names are dropped without complaint.
        gmsd.category |= convert_category(text)
    elif tag in _ADDRESS_FIELDS:
        setattr(gmsd, _ADDRESS_FIELDS[tag], text)


def has_extension_data(wpt: Waypoint) -> bool:
    gmsd = wpt.garmin
    if gmsd is None:
        return False
    return (wpt.depth is not None or wpt.proximity is not None
            or wpt.temperature is not None or gmsd.display is not None
            or gmsd.has_address() or bool(gmsd.phone_nr) or bool(gmsd.category))


def xml_fprint(writer, wpt: Waypoint, fmt_double):
    """Write <extensions><gpxx:WaypointExtension> for ``wpt`` (GPX 1.1 only)."""
    if not has_extension_data(wpt):
        return
    gmsd = wpt.garmin

    writer.start_element("extensions")
    writer.start_element("gpxx:WaypointExtension", {"xmlns:gpxx": GPXX_NS})
    if wpt.proximity is not None:
        writer.text_element("gpxx:Proximity", fmt_double(wpt.proximity))
    if wpt.temperature is not None:
        writer.text_element("gpxx:Temperature", fmt_double(wpt.temperature))
    if wpt.depth is not None:
        writer.text_element("gpxx:Depth", fmt_double(wpt.depth))
    if gmsd.display is not None:
        writer.text_element("gpxx:DisplayMode", gmsd.display.value)
    if gmsd.category:
        writer.start_element("gpxx:Categories")
        for bit in range(16):
            if gmsd.category & (1 << bit):
                writer.text_element("gpxx:Category", f"Category {bit + 1}")
        writer.end_element()
    if gmsd.has_address():
        writer.start_element("gpxx:Address")
        writer.optional_text_element("gpxx:StreetAddress", gmsd.addr)
        writer.optional_text_element("gpxx:City", gmsd.city)
        writer.optional_text_element("gpxx:State", gmsd.state)
        writer.optional_text_element("gpxx:Country", gmsd.country)
        writer.optional_text_element("gpxx:PostalCode", gmsd.postal_code)
        writer.end_element()
    writer.optional_text_element("gpxx:PhoneNumber", gmsd.phone_nr)
    writer.end_element()  # gpxx:WaypointExtension
    writer.end_element()  # extensions
