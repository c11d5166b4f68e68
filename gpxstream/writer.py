"""
gpxstream - GPX writer

Walks a GpsDataset once per section (metadata, waypoints, routes, tracks)
and emits GPX 1.0 or 1.1 through an indenting XMLGenerator.  Preserved
elements are written back next to the recognized element they followed
on input; with vendor extensions switched on they are replaced by the
synthesized extension elements instead.

The dataset is never modified.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple, Union
from xml.sax.saxutils import XMLGenerator

from gpxstream import garmin
from gpxstream.config import DEFAULT_GPX_VERSION, SOFT_FULL_NAME, GpxOptions, version_number
from gpxstream.errors import ErrorCode, GpxConfigError
from gpxstream.models import GpsDataset, GpxGlobal, RouteHead, UrlLink, Waypoint
from gpxstream.shortname import ShortNameHandle
from gpxstream.timeparse import format_xml_time
from gpxstream.vocab import UNKNOWN_COLOR, color_index_by_rgb, color_name, fix_to_text
from gpxstream.xmltree import PreservedTree

logger = logging.getLogger(__name__)

HUMMINBIRD_NS = "http://humminbird.com"
GPXTPX_NS = "http://www.garmin.com/xmlschemas/TrackPointExtension/v1"

Attributes = Union[Dict[str, str], Sequence[Tuple[str, str]], None]


def _fmt_double(value: float) -> str:
    return "%.9f" % value


def _fmt_float(value: float) -> str:
    return "%.6f" % value


def select_version(options: GpxOptions, detected: str = "") -> str:
    """Explicit gpxver, else the highest input version, else 1.0.

    Either vendor extension needs GPX 1.1 and overrides everything.
    """
    if options.vendor_extensions:
        return "1.1"
    version = options.gpxver or detected or DEFAULT_GPX_VERSION
    if version_number(version) <= 0:
        raise GpxConfigError(f"gpx version number of {version} not valid",
                             ErrorCode.E_CONFIG_VERSION)
    return version


# ─────────────────────────────────────────────────────────────
# Streaming XML writer
# ─────────────────────────────────────────────────────────────

class XmlStreamWriter:
    """XMLGenerator with automatic indentation.

    An element that holds only child elements gets its children on their
    own lines; once an element has character data of its own nothing more
    is indented inside it, so mixed content keeps its exact text.
    """

    def __init__(self, stream, indent: str = "  "):
        self._gen = XMLGenerator(stream, "UTF-8", short_empty_elements=True)
        self._indent = indent
        self._open: List[str] = []
        self._has_children: List[bool] = []
        self._has_text: List[bool] = []

    def _newline(self):
        self._gen.ignorableWhitespace("\n" + self._indent * len(self._open))

    def start_document(self):
        self._gen.startDocument()

    def end_document(self):
        self._gen.endDocument()

    def start_element(self, name: str, attrs: Attributes = None):
        if self._open:
            self._has_children[-1] = True
            if not self._has_text[-1]:
                self._newline()
        self._gen.startElement(name, dict(attrs or {}))
        self._open.append(name)
        self._has_children.append(False)
        self._has_text.append(False)

    def end_element(self):
        name = self._open.pop()
        has_children = self._has_children.pop()
        has_text = self._has_text.pop()
        if has_children and not has_text:
            self._newline()
        self._gen.endElement(name)
        if not self._open:
            self._gen.ignorableWhitespace("\n")

    def characters(self, text: str):
        if not text:
            return
        if self._open:
            self._has_text[-1] = True
        self._gen.characters(text)

    def text_element(self, name: str, text: str):
        self.start_element(name)
        self.characters(text)
        self.end_element()

    def optional_text_element(self, name: str, text: Optional[str]):
        if text:
            self.text_element(name, text)


# ─────────────────────────────────────────────────────────────
# Preserved elements
# ─────────────────────────────────────────────────────────────

# Links are one slot whichever GPX version spelled them.
_ANCHOR_GROUPS = {"url": "link", "urlname": "link"}


class _PreservedEmitter:
    """Writes the preserved roots of one entity at their anchor positions.

    The entity writer calls after(tag) behind every slot of its canonical
    child order; roots anchored to that tag go out there.  Whatever is
    still pending at flush() goes out at the end.
    """

    def __init__(self, xml: XmlStreamWriter, tree: Optional[PreservedTree],
                 wpt: Optional[Waypoint] = None, enabled: bool = True):
        self.xml = xml
        self.tree = tree
        self.wpt = wpt
        self._pending: List[int] = []
        if tree is not None and enabled:
            self._pending = [i for i in tree.roots if not tree.is_blank(i)]

    def after(self, anchor: Optional[str]):
        if not self._pending:
            return
        matched = [i for i in self._pending
                   if _ANCHOR_GROUPS.get(self.tree[i].anchor, self.tree[i].anchor) == anchor]
        if not matched:
            return
        self._pending = [i for i in self._pending if i not in matched]
        for index in matched:
            self._write(index)
            # A mirrored known element is itself an anchor for what followed it.
            if self.tree[index].mirror:
                self.after(self.tree[index].tag)

    def flush(self):
        pending, self._pending = self._pending, []
        for index in pending:
            self._write(index)

    def _write(self, index: int):
        tree = self.tree
        node = tree[index]
        xml = self.xml

        xml.start_element(node.tag, node.attributes)
        xml.characters(node.text)
        for child in node.children:
            if tree.is_blank(child):
                xml.characters(tree[child].tail)
                continue
            self._write(child)
        if node.tag == "groundspeak:cache" and self.wpt is not None:
            gc_data = self.wpt.gc_data
            if gc_data is not None and gc_data.exported is not None:
                xml.text_element("time", format_xml_time(gc_data.exported))
        xml.end_element()
        xml.characters(node.tail)


# ─────────────────────────────────────────────────────────────
# GPX serializer
# ─────────────────────────────────────────────────────────────

# Metadata fields GPX allows once: first value only, or all values joined.
_GLOBAL_JOIN = {"name": " ", "desc": " ", "author": " ", "keywords": ", "}


class GpxWriter:
    def __init__(self, stream, dataset: GpsDataset, metadata: Optional[GpxGlobal] = None,
                 options: Optional[GpxOptions] = None, version: str = "",
                 namespaces: Optional[Dict[str, str]] = None,
                 now: Optional[datetime] = None):
        self.options = options or GpxOptions()
        self.dataset = dataset
        self.metadata = metadata if metadata is not None else GpxGlobal()
        self.namespaces = dict(namespaces or {})
        self.version = select_version(self.options, version)
        self.ver = version_number(self.version)
        self.now = now
        self.xml = XmlStreamWriter(stream)
        self._names: Optional[ShortNameHandle] = None

    def write(self):
        self.xml.start_document()
        self._write_header()

        self._reset_names()
        for wpt in self.dataset.waypoints:
            self._write_point("wpt", wpt, self._name_for(wpt))
        self._reset_names()
        for route in self.dataset.routes:
            self._write_route(route)
        self._reset_names()
        for track in self.dataset.tracks:
            self._write_track(track)

        self.xml.end_element()  # gpx
        self.xml.end_document()
        logger.info("Wrote GPX %s: %d waypoints, %d routes, %d tracks",
                    self.version, len(self.dataset.waypoints),
                    len(self.dataset.routes), len(self.dataset.tracks))

    # --- Short names ---

    def _reset_names(self):
        self._names = ShortNameHandle(self.options.snlen,
                                      whitespace_ok=not self.options.suppresswhite)

    def _name_for(self, wpt: Waypoint) -> str:
        if self.options.synthesize_shortnames:
            return self._names.from_waypoint(wpt)
        return wpt.shortname

    # --- Header and metadata ---

    def _write_header(self):
        opts = self.options
        xml = self.xml
        major, _, minor = self.version.partition(".")
        attrs = {
            "version": self.version,
            "creator": SOFT_FULL_NAME,
            "xmlns": f"http://www.topografix.com/GPX/{major}/{minor or '0'}",
        }
        if opts.vendor_extensions:
            if opts.humminbirdextensions:
                attrs["xmlns:h"] = HUMMINBIRD_NS
            if opts.garminextensions:
                attrs["xmlns:gpxx"] = garmin.GPXX_NS
                attrs["xmlns:gpxtpx"] = GPXTPX_NS
        else:
            for name, value in self.namespaces.items():
                attrs.setdefault(name, value)
        xml.start_element("gpx", attrs)

        meta = self.metadata
        if self.ver > 10:
            xml.start_element("metadata")
        self._write_global("name", meta.name)
        self._write_global("desc", meta.desc)
        if self.ver < 11:
            # GPX 1.1 has no plain-text author, email, url or urlname.
            self._write_global("author", meta.author)
            self._write_global("email", meta.email)
            self._write_global("url", meta.url)
            self._write_global("urlname", meta.urlname)
        else:
            for link in meta.link:
                self._write_link(link)
        now = self.now or datetime.now(timezone.utc)
        xml.text_element("time", format_xml_time(now))
        self._write_global("keywords", meta.keywords)
        self._write_bounds()
        if self.ver > 10:
            xml.end_element()  # metadata

    def _write_global(self, tag: str, values: List[str]):
        if not values:
            return
        sep = _GLOBAL_JOIN.get(tag)
        text = values[0] if sep is None else sep.join(values)
        self.xml.text_element(tag, text)

    def _write_bounds(self):
        bounds = self.dataset.bounds()
        if not bounds.valid:
            return
        min_lat, min_lon, max_lat, max_lon = bounds.as_tuple()
        self.xml.start_element("bounds", {
            "minlat": _fmt_double(min_lat),
            "minlon": _fmt_double(min_lon),
            "maxlat": _fmt_double(max_lat),
            "maxlon": _fmt_double(max_lon),
        })
        self.xml.end_element()

    # --- Links ---

    def _write_link(self, link: UrlLink):
        self.xml.start_element("link", {"href": link.url})
        self.xml.optional_text_element("text", link.text)
        self.xml.optional_text_element("type", link.type)
        self.xml.end_element()

    def _write_urls(self, urls: List[UrlLink]):
        if not any(link.url for link in urls):
            return
        if self.ver > 10:
            for link in urls:
                if link.url:
                    self._write_link(link)
        else:
            # GPX 1.0 has room for a single url.
            link = urls[0]
            if link.url:
                self.xml.text_element("url", self.options.urlbase + link.url)
                self.xml.optional_text_element("urlname", link.text)

    # --- Points ---

    def _write_point(self, tag: str, wpt: Waypoint, name: Optional[str]):
        opts = self.options
        xml = self.xml
        # In GPX 1.1 handheld-GPS data on a waypoint is written from the model instead.
        keep_preserved = not opts.vendor_extensions and (
            tag != "wpt" or wpt.garmin is None or self.ver < 11)
        chain = _PreservedEmitter(xml, wpt.preserved, wpt, enabled=keep_preserved)

        xml.start_element(tag, {"lat": _fmt_double(wpt.lat), "lon": _fmt_double(wpt.lon)})
        chain.after(None)

        if wpt.altitude is not None:
            xml.text_element("ele", "%.*f" % (opts.elevprec, wpt.altitude))
        chain.after("ele")
        if wpt.creation_time is not None:
            xml.text_element("time", format_xml_time(wpt.creation_time))
        chain.after("time")
        if tag == "trkpt" and self.ver == 10:
            # Only GPX 1.0 track points have these.
            if wpt.course is not None:
                xml.text_element("course", _fmt_float(wpt.course))
            if wpt.speed is not None:
                xml.text_element("speed", _fmt_float(wpt.speed))
        chain.after("course")
        chain.after("speed")
        if wpt.geoidheight is not None:
            xml.text_element("geoidheight", "%.1f" % wpt.geoidheight)
        chain.after("geoidheight")

        xml.optional_text_element("name", name)
        chain.after("name")
        xml.optional_text_element("cmt", wpt.description)
        chain.after("cmt")
        xml.optional_text_element("desc", wpt.notes or wpt.description)
        chain.after("desc")
        self._write_urls(wpt.urls)
        chain.after("link")
        xml.optional_text_element("sym", wpt.icon_descr)
        chain.after("sym")

        fix = fix_to_text(wpt.fix)
        if fix is not None:
            xml.text_element("fix", fix)
        chain.after("fix")
        if wpt.sat > 0:
            xml.text_element("sat", str(wpt.sat))
        chain.after("sat")
        for field_name in ("hdop", "vdop", "pdop"):
            value = getattr(wpt, field_name)
            if value:
                xml.text_element(field_name, _fmt_float(value))
            chain.after(field_name)

        if opts.vendor_extensions:
            self._write_vendor_extensions(tag, wpt)
        else:
            chain.flush()
            if tag == "wpt" and wpt.garmin is not None and self.ver > 10:
                garmin.xml_fprint(xml, wpt, _fmt_double)
        xml.end_element()

    def _write_vendor_extensions(self, tag: str, wpt: Waypoint):
        opts = self.options
        xml = self.xml
        has_temp = wpt.temperature is not None
        has_depth = wpt.depth is not None

        humminbird = opts.humminbirdextensions and (has_depth or has_temp)
        garmin_wpt = (opts.garminextensions and tag == "wpt"
                      and (wpt.proximity is not None or has_temp or has_depth))
        garmin_trk = (opts.garminextensions and tag == "trkpt"
                      and (has_temp or has_depth or wpt.heartrate or wpt.cadence))
        if not (humminbird or garmin_wpt or garmin_trk):
            return

        xml.start_element("extensions")
        if opts.humminbirdextensions:
            if has_depth:
                # Centimetres on the wire.
                xml.text_element("h:depth", _fmt_double(wpt.depth * 100.0))
            if has_temp:
                xml.text_element("h:temperature", _fmt_float(wpt.temperature))
        if garmin_wpt:
            xml.start_element("gpxx:WaypointExtension")
            if wpt.proximity is not None:
                xml.text_element("gpxx:Proximity", _fmt_double(wpt.proximity))
            if has_temp:
                xml.text_element("gpxx:Temperature", _fmt_float(wpt.temperature))
            if has_depth:
                xml.text_element("gpxx:Depth", _fmt_double(wpt.depth))
            xml.end_element()
        if garmin_trk:
            xml.start_element("gpxtpx:TrackPointExtension")
            if has_temp:
                xml.text_element("gpxtpx:atemp", _fmt_float(wpt.temperature))
            if has_depth:
                xml.text_element("gpxtpx:depth", _fmt_double(wpt.depth))
            if wpt.heartrate:
                xml.text_element("gpxtpx:hr", str(wpt.heartrate))
            if wpt.cadence:
                xml.text_element("gpxtpx:cad", str(wpt.cadence))
            xml.end_element()
        xml.end_element()  # extensions

    # --- Routes and tracks ---

    def _write_head(self, tag: str, head: RouteHead):
        opts = self.options
        xml = self.xml
        chain = _PreservedEmitter(xml, head.preserved, enabled=not opts.vendor_extensions)

        xml.start_element(tag)
        chain.after(None)
        xml.optional_text_element("name", head.name)
        chain.after("name")
        xml.optional_text_element("desc", head.desc)
        chain.after("desc")
        self._write_urls(head.urls)
        chain.after("link")
        if head.number:
            xml.text_element("number", str(head.number))
        chain.after("number")

        if opts.garminextensions and self.ver > 10:
            self._write_display_color(tag, head)
        chain.flush()

    def _write_display_color(self, tag: str, head: RouteHead):
        if head.line_color <= UNKNOWN_COLOR:
            return
        index = color_index_by_rgb(head.line_color)
        if index <= 0:
            return
        xml = self.xml
        xml.start_element("extensions")
        if tag == "rte":
            xml.start_element("gpxx:RouteExtension")
            xml.text_element("gpxx:IsAutoNamed", "false" if head.name else "true")
        else:
            xml.start_element("gpxx:TrackExtension")
        xml.text_element("gpxx:DisplayColor", color_name(index))
        xml.end_element()
        xml.end_element()  # extensions

    def _write_route(self, route):
        self._write_head("rte", route)
        for point in route:
            self._write_point("rtept", point, self._name_for(point))
        self.xml.end_element()  # rte

    def _write_track(self, track):
        xml = self.xml
        self._write_head("trk", track)
        for segment in track.segments():
            xml.start_element("trkseg")
            for point in segment:
                name = self._name_for(point)
                if point.shortname_is_synthetic:
                    name = None
                self._write_point("trkpt", point, name)
            xml.end_element()  # trkseg
        xml.end_element()  # trk


def write_gpx(stream, dataset: GpsDataset, metadata: Optional[GpxGlobal] = None,
              options: Optional[GpxOptions] = None, version: str = "",
              namespaces: Optional[Dict[str, str]] = None,
              now: Optional[datetime] = None):
    """Write ``dataset`` as one GPX document to a text or binary stream."""
    GpxWriter(stream, dataset, metadata, options, version, namespaces, now).write()
