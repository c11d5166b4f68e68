"""
gpxstream - GPX reader

A forward-only state machine over SAX events.  Every start and end tag is
resolved through the tag path table on its full path; the resulting
TagType selects the action.  Elements the table does not know, and known
elements flagged passthrough, are copied into the PreservedTree of the
entity currently being built so the writer can put them back.

All mutable state lives in a ParseContext that is passed explicitly to
start_element / characters / end_element.  One context per document.
"""

from __future__ import annotations

import io
import logging
import os
import xml.sax
import xml.sax.handler
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple, Union

from gpxstream import garmin
from gpxstream.config import GpxOptions, version_number
from gpxstream.errors import ErrorCode, GpxParseError
from gpxstream.models import (
    GpsDataset, GpsRoute, GpsTrack, GpxGlobal, RouteHead, UrlLink, Waypoint,
)
from gpxstream.tags import TagType, lookup
from gpxstream.timeparse import parse_xml_time
from gpxstream.vocab import (
    cache_container_from_name, cache_type_from_name, color_value_by_name,
    fix_from_text, rating_from_text, status_from_text,
)
from gpxstream.xmltree import PreservedTree

logger = logging.getLogger(__name__)

Attributes = List[Tuple[str, str]]


# ─────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────

def _safe_float(s: str, default: float = 0.0) -> float:
    try:
        return float(s.strip())
    except (ValueError, TypeError, AttributeError):
        logger.debug("[%s] not a number: %r", ErrorCode.W_FIELD_LENIENT.value, s)
        return default


def _safe_int(s: str, default: int = 0) -> int:
    try:
        return int(s.strip())
    except (ValueError, TypeError, AttributeError):
        logger.debug("[%s] not an integer: %r", ErrorCode.W_FIELD_LENIENT.value, s)
        return default


# ─────────────────────────────────────────────────────────────
# Parse context
# ─────────────────────────────────────────────────────────────

@dataclass
class ParseContext:
    """State for reading one document.

    ``metadata``, ``namespaces`` and ``dataset`` are shared with the
    caller and outlive the context; ``version`` starts from the highest
    version seen so far and only ever goes up.
    """
    options: GpxOptions = field(default_factory=GpxOptions)
    dataset: GpsDataset = field(default_factory=GpsDataset)
    metadata: GpxGlobal = field(default_factory=GpxGlobal)
    namespaces: Dict[str, str] = field(default_factory=dict)
    version: str = ""
    filename: Optional[str] = None

    path: List[str] = field(default_factory=list)
    cdata: str = ""

    waypoint: Optional[Waypoint] = None
    route: Optional[GpsRoute] = None
    track: Optional[GpsTrack] = None
    point_link: Optional[UrlLink] = None    # GPX 1.0 <url>/<urlname> of a point
    head_link: Optional[UrlLink] = None     # GPX 1.0 <url>/<urlname> of a route/track
    link: UrlLink = field(default_factory=UrlLink)  # GPX 1.1 <link> in progress

    cache_descr_is_html: bool = False
    gc_log_date: Optional[datetime] = None
    logpoint_count: int = 0
    next_trkpt_is_new_seg: bool = False

    # Entity that receives preserved elements, and where we are in its tree.
    owner: Optional[Union[Waypoint, RouteHead]] = None
    owner_depth: int = 0
    current_node: Optional[int] = None
    anchor: Optional[str] = None

    preserved_count: int = 0

    @property
    def tag_path(self) -> str:
        return "/" + "/".join(self.path)

    def set_owner(self, owner: Optional[Union[Waypoint, RouteHead]], depth: int):
        self.owner = owner
        self.owner_depth = depth
        self.current_node = None
        self.anchor = None


# ─────────────────────────────────────────────────────────────
# Preserved (unknown / passthrough) elements
# ─────────────────────────────────────────────────────────────

def _start_something_else(ctx: ParseContext, name: str, attrs: Attributes, mirror: bool):
    if ctx.owner is None:
        logger.debug("Dropping %s: nothing to attach it to", ctx.tag_path)
        return
    if ctx.owner.preserved is None:
        ctx.owner.preserved = PreservedTree()
    tree = ctx.owner.preserved
    anchor = ctx.anchor if ctx.current_node is None else None
    ctx.current_node = tree.add(name, attrs, parent=ctx.current_node,
                                depth=len(ctx.path), anchor=anchor, mirror=mirror)
    ctx.preserved_count += 1
    if not mirror:
        logger.debug("[%s] preserving %s", ErrorCode.W_UNKNOWN_ELEMENT.value, ctx.tag_path)


def _end_something_else(ctx: ParseContext):
    if ctx.current_node is not None:
        ctx.current_node = ctx.owner.preserved[ctx.current_node].parent


# ─────────────────────────────────────────────────────────────
# Start-tag actions
# ─────────────────────────────────────────────────────────────

def _tag_gpx(ctx: ParseContext, attrs: Dict[str, str]):
    version = attrs.get("version", "").strip()
    if version:
        # Output defaults to the highest input version.
        if not ctx.version or version_number(ctx.version) < version_number(version):
            logger.debug("GPX version %s (was %s)", version, ctx.version or "unset")
            ctx.version = version
    # Keep prefixed namespace declarations for passed-through elements.
    for name, value in attrs.items():
        if name.startswith("xmlns:") and name not in ctx.namespaces:
            ctx.namespaces[name] = value


def _tag_link(ctx: ParseContext, attrs: Dict[str, str]):
    ctx.link = UrlLink(attrs.get("href", ""))


def _tag_wpt(ctx: ParseContext, attrs: Dict[str, str]):
    wpt = Waypoint()
    if "lat" in attrs:
        wpt.lat = _safe_float(attrs["lat"])
    if "lon" in attrs:
        wpt.lon = _safe_float(attrs["lon"])
    ctx.waypoint = wpt
    ctx.point_link = UrlLink()
    ctx.set_owner(wpt, len(ctx.path))


def _tag_trkpt(ctx: ParseContext, attrs: Dict[str, str]):
    _tag_wpt(ctx, attrs)
    if ctx.next_trkpt_is_new_seg:
        ctx.waypoint.new_trkseg = True
        ctx.next_trkpt_is_new_seg = False


def _tag_rte(ctx: ParseContext, attrs: Dict[str, str]):
    ctx.route = GpsRoute()
    ctx.head_link = UrlLink()
    ctx.set_owner(ctx.route, len(ctx.path))


def _tag_trk(ctx: ParseContext, attrs: Dict[str, str]):
    ctx.track = GpsTrack()
    ctx.head_link = UrlLink()
    ctx.set_owner(ctx.track, len(ctx.path))


def _tag_trkseg(ctx: ParseContext, attrs: Dict[str, str]):
    ctx.next_trkpt_is_new_seg = True


def _tag_gs_cache(ctx: ParseContext, attrs: Dict[str, str]):
    if ctx.waypoint is None:
        return
    gc_data = ctx.waypoint.alloc_gc_data()
    if "id" in attrs:
        gc_data.id = _safe_int(attrs["id"])
    if "available" in attrs:
        gc_data.is_available = status_from_text(attrs["available"])
    if "archived" in attrs:
        gc_data.is_archived = status_from_text(attrs["archived"])


def _tag_cache_desc(ctx: ParseContext, attrs: Dict[str, str]):
    ctx.cache_descr_is_html = attrs.get("html") == "True"


def _tag_cache_placer(ctx: ParseContext, attrs: Dict[str, str]):
    if ctx.waypoint is not None and "id" in attrs:
        ctx.waypoint.alloc_gc_data().placer_id = _safe_int(attrs["id"])


def _tag_log_wpt(ctx: ParseContext, attrs: Dict[str, str]):
    """Turn a geocache log's coordinates into a waypoint of its own.

    The name reuses characters 3-6 of the parent's name (the part after
    the "GC" prefix) plus a per-parent counter.
    """
    parent = ctx.waypoint
    if not ctx.options.logpoint or parent is None:
        return
    if len(parent.shortname) <= 2:
        return
    log_wpt = Waypoint()
    if "lat" in attrs:
        log_wpt.lat = _safe_float(attrs["lat"])
    if "lon" in attrs:
        log_wpt.lon = _safe_float(attrs["lon"])
    log_wpt.shortname = "%-4.4s%02d" % (parent.shortname[2:], ctx.logpoint_count)
    ctx.logpoint_count += 1
    ctx.dataset.add_waypoint(log_wpt)


StartAction = Callable[[ParseContext, Dict[str, str]], None]

_START_ACTIONS: Dict[TagType, StartAction] = {
    TagType.GPX: _tag_gpx,
    TagType.LINK: _tag_link,
    TagType.WPT: _tag_wpt,
    TagType.WPTTYPE_LINK: _tag_link,
    TagType.RTE: _tag_rte,
    TagType.RTE_RTEPT: _tag_wpt,
    TagType.RTE_LINK: _tag_link,
    TagType.TRK: _tag_trk,
    TagType.TRK_TRKSEG: _tag_trkseg,
    TagType.TRK_TRKSEG_TRKPT: _tag_trkpt,
    TagType.TRK_LINK: _tag_link,
    TagType.CACHE: _tag_gs_cache,
    TagType.CACHE_LOG_WPT: _tag_log_wpt,
    TagType.CACHE_DESC_LONG: _tag_cache_desc,
    TagType.CACHE_DESC_SHORT: _tag_cache_desc,
    TagType.CACHE_PLACER: _tag_cache_placer,
}


# ─────────────────────────────────────────────────────────────
# End-tag actions
# ─────────────────────────────────────────────────────────────

EndAction = Callable[[ParseContext, str], None]


def _global(field_name: str) -> EndAction:
    def action(ctx: ParseContext, text: str):
        ctx.metadata.add(field_name, text)
    return action


def _wpt_field(attr: str, convert: Callable[[str], object] = str) -> EndAction:
    def action(ctx: ParseContext, text: str):
        if ctx.waypoint is not None:
            setattr(ctx.waypoint, attr, convert(text))
    return action


def _gc_field(attr: str, convert: Callable[[str], object] = str) -> EndAction:
    def action(ctx: ParseContext, text: str):
        if ctx.waypoint is not None:
            setattr(ctx.waypoint.alloc_gc_data(), attr, convert(text))
    return action


def _head(ctx: ParseContext, tag: TagType) -> Optional[RouteHead]:
    return ctx.route if tag.name.startswith("RTE") or "_RTE_" in tag.name else ctx.track


def _head_field(attr: str, convert: Callable[[str], object] = str) -> Callable:
    def action(ctx: ParseContext, text: str, _tag: TagType):
        head = _head(ctx, _tag)
        if head is not None:
            setattr(head, attr, convert(text))
    return action


def _link_field(attr: str) -> EndAction:
    def action(ctx: ParseContext, text: str):
        setattr(ctx.link, attr, text)
    return action


def _take_link(ctx: ParseContext) -> UrlLink:
    link, ctx.link = ctx.link, UrlLink()
    return link


def _end_global_link(ctx: ParseContext, text: str):
    ctx.metadata.add_link(_take_link(ctx))


def _end_wpt_link(ctx: ParseContext, text: str):
    link = _take_link(ctx)
    if ctx.waypoint is not None:
        ctx.waypoint.urls.append(link)


def _end_head_link(ctx: ParseContext, text: str, _tag: TagType):
    link = _take_link(ctx)
    head = _head(ctx, _tag)
    if head is not None:
        head.urls.append(link)


def _finish_point(ctx: ParseContext) -> Optional[Waypoint]:
    wpt = ctx.waypoint
    if wpt is not None and ctx.point_link is not None and ctx.point_link.url:
        wpt.urls.append(ctx.point_link)
    ctx.point_link = None
    ctx.waypoint = None
    return wpt


def _end_wpt(ctx: ParseContext, text: str):
    wpt = _finish_point(ctx)
    if wpt is not None:
        ctx.dataset.add_waypoint(wpt)
    ctx.logpoint_count = 0
    ctx.set_owner(None, 0)


def _end_rtept(ctx: ParseContext, text: str):
    wpt = _finish_point(ctx)
    if wpt is None or ctx.route is None:
        return
    ctx.route.append(wpt)
    # Back to /gpx/rte.
    ctx.set_owner(ctx.route, len(ctx.path) - 1)


def _end_trkpt(ctx: ParseContext, text: str):
    wpt = _finish_point(ctx)
    if wpt is None or ctx.track is None:
        return
    ctx.track.append(wpt)
    # Back to /gpx/trk, past the enclosing trkseg.
    ctx.set_owner(ctx.track, len(ctx.path) - 2)
    ctx.anchor = "trkseg"


def _finish_head(ctx: ParseContext, head: Optional[RouteHead]) -> Optional[RouteHead]:
    if head is not None and ctx.head_link is not None and ctx.head_link.url:
        head.urls.append(ctx.head_link)
    ctx.head_link = None
    ctx.set_owner(None, 0)
    return head


def _end_rte(ctx: ParseContext, text: str):
    route = _finish_head(ctx, ctx.route)
    ctx.route = None
    if route is not None:
        ctx.dataset.add_route(route)


def _end_trk(ctx: ParseContext, text: str):
    track = _finish_head(ctx, ctx.track)
    ctx.track = None
    if track is not None:
        ctx.dataset.add_track(track)


def _end_head_url(attr: str):
    def action(ctx: ParseContext, text: str):
        if ctx.head_link is not None:
            setattr(ctx.head_link, attr, text)
    return action


def _end_point_url(attr: str):
    def action(ctx: ParseContext, text: str):
        if ctx.point_link is not None:
            setattr(ctx.point_link, attr, text)
    return action


def _end_cache_desc(attr: str):
    def action(ctx: ParseContext, text: str):
        if ctx.waypoint is None:
            return
        desc = getattr(ctx.waypoint.alloc_gc_data(), attr)
        desc.is_html = ctx.cache_descr_is_html
        desc.text = text
    return action


def _end_cache_log_date(ctx: ParseContext, text: str):
    ctx.gc_log_date = parse_xml_time(text)


def _end_cache_log_type(ctx: ParseContext, text: str):
    # Logs carry their date first; only the first "Found it" counts.
    if ctx.waypoint is not None and text == "Found it":
        gc_data = ctx.waypoint.alloc_gc_data()
        if gc_data.last_found is None:
            gc_data.last_found = ctx.gc_log_date
    ctx.gc_log_date = None


def _end_garmin(tag: TagType) -> EndAction:
    def action(ctx: ParseContext, text: str):
        if ctx.waypoint is not None:
            garmin.xml_convert(tag, text, ctx.waypoint)
    return action


def _end_centimetres(ctx: ParseContext, text: str):
    if ctx.waypoint is not None:
        ctx.waypoint.depth = _safe_float(text) / 100.0


def _end_display_color(ctx: ParseContext, text: str, _tag: TagType):
    head = _head(ctx, _tag)
    if head is not None:
        head.line_color = color_value_by_name(text)


def _count(text: str) -> int:
    return int(_safe_float(text))


_END_ACTIONS: Dict[TagType, Callable] = {
    # File-global
    TagType.NAME: _global("name"),
    TagType.DESC: _global("desc"),
    TagType.AUTHOR: _global("author"),
    TagType.EMAIL: _global("email"),
    TagType.URL: _global("url"),
    TagType.URLNAME: _global("urlname"),
    TagType.KEYWORDS: _global("keywords"),
    TagType.LINK: _end_global_link,
    TagType.LINK_TEXT: _link_field("text"),
    TagType.LINK_TYPE: _link_field("type"),

    # Waypoints
    TagType.WPT: _end_wpt,
    TagType.CACHE_NAME: _wpt_field("notes"),
    TagType.CACHE_CONTAINER: _gc_field("container", cache_container_from_name),
    TagType.CACHE_TYPE: _gc_field("type", cache_type_from_name),
    TagType.CACHE_DIFFICULTY: _gc_field("diff", rating_from_text),
    TagType.CACHE_TERRAIN: _gc_field("terr", rating_from_text),
    TagType.CACHE_HINT: _gc_field("hint"),
    TagType.CACHE_DESC_LONG: _end_cache_desc("desc_long"),
    TagType.CACHE_DESC_SHORT: _end_cache_desc("desc_short"),
    TagType.CACHE_PLACER: _gc_field("placer"),
    TagType.CACHE_LOG_DATE: _end_cache_log_date,
    TagType.CACHE_LOG_TYPE: _end_cache_log_type,
    TagType.CACHE_FAVORITE_POINTS: _gc_field("favorite_points", _safe_int),
    TagType.CACHE_PERSONAL_NOTE: _gc_field("personal_note"),

    TagType.HUMMINBIRD_WPT_DEPTH: _end_centimetres,
    TagType.HUMMINBIRD_TRK_TRKSEG_TRKPT_DEPTH: _end_centimetres,

    # Routes
    TagType.RTE: _end_rte,
    TagType.RTE_RTEPT: _end_rtept,
    TagType.RTE_URL: _end_head_url("url"),
    TagType.RTE_URLNAME: _end_head_url("text"),
    TagType.RTE_LINK_TEXT: _link_field("text"),
    TagType.RTE_LINK_TYPE: _link_field("type"),

    # Tracks
    TagType.TRK: _end_trk,
    TagType.TRK_TRKSEG_TRKPT: _end_trkpt,
    TagType.TRK_URL: _end_head_url("url"),
    TagType.TRK_URLNAME: _end_head_url("text"),
    TagType.TRK_LINK_TEXT: _link_field("text"),
    TagType.TRK_LINK_TYPE: _link_field("type"),
    TagType.TRK_TRKSEG_TRKPT_COURSE: _wpt_field("course", _safe_float),
    TagType.TRK_TRKSEG_TRKPT_SPEED: _wpt_field("speed", _safe_float),
    TagType.TRK_TRKSEG_TRKPT_HEARTRATE: _wpt_field("heartrate", _count),
    TagType.TRK_TRKSEG_TRKPT_CADENCE: _wpt_field("cadence", _count),

    # Common to waypoints, route points and track points
    TagType.WPTTYPE_ELE: _wpt_field("altitude", _safe_float),
    TagType.WPTTYPE_NAME: _wpt_field("shortname"),
    TagType.WPTTYPE_SYM: _wpt_field("icon_descr"),
    TagType.WPTTYPE_TIME: _wpt_field("creation_time", parse_xml_time),
    TagType.WPTTYPE_GEOIDHEIGHT: _wpt_field("geoidheight", _safe_float),
    TagType.WPTTYPE_CMT: _wpt_field("description"),
    TagType.WPTTYPE_DESC: _wpt_field("notes"),
    TagType.WPTTYPE_PDOP: _wpt_field("pdop", _safe_float),
    TagType.WPTTYPE_HDOP: _wpt_field("hdop", _safe_float),
    TagType.WPTTYPE_VDOP: _wpt_field("vdop", _safe_float),
    TagType.WPTTYPE_SAT: _wpt_field("sat", _count),
    TagType.WPTTYPE_FIX: _wpt_field("fix", fix_from_text),
    TagType.WPTTYPE_URL: _end_point_url("url"),
    TagType.WPTTYPE_URLNAME: _end_point_url("text"),
    TagType.WPTTYPE_LINK: _end_wpt_link,
    TagType.WPTTYPE_LINK_TEXT: _link_field("text"),
    TagType.WPTTYPE_LINK_TYPE: _link_field("type"),
}

for _tag in (
    TagType.GARMIN_WPT_PROXIMITY, TagType.GARMIN_WPT_TEMPERATURE,
    TagType.GARMIN_WPT_DEPTH, TagType.GARMIN_WPT_DISPLAY_MODE,
    TagType.GARMIN_WPT_CATEGORY, TagType.GARMIN_WPT_ADDR,
    TagType.GARMIN_WPT_CITY, TagType.GARMIN_WPT_STATE,
    TagType.GARMIN_WPT_COUNTRY, TagType.GARMIN_WPT_POSTAL_CODE,
    TagType.GARMIN_WPT_PHONE_NR,
):
    _END_ACTIONS[_tag] = _end_garmin(_tag)

# Route and track headers share these; the tag decides which head is meant.
_HEAD_END_ACTIONS: Dict[TagType, Callable] = {
    TagType.RTE_NAME: _head_field("name"),
    TagType.RTE_DESC: _head_field("desc"),
    TagType.RTE_NUMBER: _head_field("number", _safe_int),
    TagType.RTE_LINK: _end_head_link,
    TagType.GARMIN_RTE_DISPLAY_COLOR: _end_display_color,
    TagType.TRK_NAME: _head_field("name"),
    TagType.TRK_DESC: _head_field("desc"),
    TagType.TRK_NUMBER: _head_field("number", _safe_int),
    TagType.TRK_LINK: _end_head_link,
    TagType.GARMIN_TRK_DISPLAY_COLOR: _end_display_color,
}


# ─────────────────────────────────────────────────────────────
# Event entry points
# ─────────────────────────────────────────────────────────────

def start_element(ctx: ParseContext, name: str, attrs: Attributes):
    ctx.cdata = ""
    ctx.path.append(name)

    tag, passthrough = lookup(ctx.tag_path)
    if tag is TagType.UNKNOWN:
        _start_something_else(ctx, name, attrs, mirror=False)
        return

    action = _START_ACTIONS.get(tag)
    if action is not None:
        action(ctx, dict(attrs))
    if passthrough:
        _start_something_else(ctx, name, attrs, mirror=True)


def characters(ctx: ParseContext, text: str):
    ctx.cdata += text
    if ctx.current_node is None:
        return

    tree = ctx.owner.preserved
    node = tree[ctx.current_node]
    # Text inside a recognized, unmirrored child is not ours.
    if len(ctx.path) != node.depth:
        return
    if node.children:
        tree[node.children[-1]].tail = ctx.cdata.strip()
    else:
        node.text = ctx.cdata.strip()


def end_element(ctx: ParseContext, name: str):
    text = ctx.cdata.strip()
    tag, passthrough = lookup(ctx.tag_path)

    if tag is TagType.UNKNOWN:
        _end_something_else(ctx)
    else:
        if tag in _HEAD_END_ACTIONS:
            _HEAD_END_ACTIONS[tag](ctx, text, tag)
        elif tag in _END_ACTIONS:
            _END_ACTIONS[tag](ctx, text)
        if passthrough:
            _end_something_else(ctx)
        if ctx.owner is not None and len(ctx.path) == ctx.owner_depth + 1:
            ctx.anchor = name

    ctx.path.pop()
    ctx.cdata = ""


class _GpxContentHandler(xml.sax.handler.ContentHandler):
    def __init__(self, ctx: ParseContext):
        super().__init__()
        self.ctx = ctx

    def startElement(self, name, attrs):
        start_element(self.ctx, name, list(attrs.items()))

    def endElement(self, name):
        end_element(self.ctx, name)

    def characters(self, content):
        characters(self.ctx, content)


# ─────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────

def read_gpx(source, ctx: Optional[ParseContext] = None) -> ParseContext:
    """Read one GPX document from a path, a binary file object or bytes.

    Raises GpxParseError (with line and column) on malformed XML; nothing
    read from a failed document should be trusted.
    """
    if ctx is None:
        ctx = ParseContext()
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    elif isinstance(source, (str, os.PathLike)):
        path = os.fspath(source)
        if ctx.filename is None:
            ctx.filename = path
        with open(path, "rb") as f:
            return read_gpx(f, ctx)

    parser = xml.sax.make_parser()
    parser.setFeature(xml.sax.handler.feature_namespaces, False)
    parser.setFeature(xml.sax.handler.feature_external_ges, False)
    parser.setContentHandler(_GpxContentHandler(ctx))
    try:
        parser.parse(source)
    except xml.sax.SAXParseException as exc:
        code = ErrorCode.E_PARSE_MALFORMED
        if not ctx.path and "no element found" in exc.getMessage():
            code = ErrorCode.E_PARSE_EMPTY
        raise GpxParseError(exc.getMessage(), ctx.filename,
                            exc.getLineNumber(), exc.getColumnNumber(), code) from exc

    logger.info("%s: %d waypoints, %d routes, %d tracks, %d preserved elements",
                ctx.filename or "<stream>", len(ctx.dataset.waypoints),
                len(ctx.dataset.routes), len(ctx.dataset.tracks), ctx.preserved_count)
    return ctx
