"""
gpxstream - Data models: Waypoint, GpsRoute, GpsTrack, GpsDataset, GpxGlobal

Points, routes and tracks as the GPX reader builds them and the writer
consumes them.  Anything the reader cannot interpret rides along on the
owning entity in ``preserved``.
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple
from enum import Enum

from gpxstream.vocab import CacheContainer, CacheType, DisplayMode, FixType, Status, UNKNOWN_COLOR
from gpxstream.xmltree import PreservedTree


class ArrayType(Enum):
    ROUTE = "route"
    TRACK = "track"
    WAYPOINT = "waypoint"


@dataclass
class UrlLink:
    url: str = ""
    text: str = ""
    type: str = ""


@dataclass
class RichText:
    text: str = ""
    is_html: bool = False


@dataclass
class Geocache:
    """Groundspeak / opencaching cache record attached to a waypoint."""
    id: int = 0
    is_available: Status = Status.UNKNOWN
    is_archived: Status = Status.UNKNOWN
    type: CacheType = CacheType.UNKNOWN
    container: CacheContainer = CacheContainer.UNKNOWN
    diff: int = 0       # difficulty x 10
    terr: int = 0       # terrain x 10
    desc_short: RichText = field(default_factory=RichText)
    desc_long: RichText = field(default_factory=RichText)
    hint: str = ""
    placer: str = ""
    placer_id: int = 0
    last_found: Optional[datetime] = None
    exported: Optional[datetime] = None
    favorite_points: int = 0
    personal_note: str = ""


@dataclass
class GarminData:
    """Handheld-GPS waypoint extras that have no home in core GPX."""
    display: Optional[DisplayMode] = None
    category: int = 0           # 16-bit mask, bit n = "Category n+1"
    addr: str = ""
    city: str = ""
    state: str = ""
    country: str = ""
    postal_code: str = ""
    phone_nr: str = ""

    def has_address(self) -> bool:
        return any((self.addr, self.city, self.state, self.country, self.postal_code))


@dataclass
class Waypoint:
    """A single GPS point: standalone waypoint, route point or track point."""
    lat: float = 0.0
    lon: float = 0.0
    altitude: Optional[float] = None
    creation_time: Optional[datetime] = None
    geoidheight: Optional[float] = None
    course: Optional[float] = None
    speed: Optional[float] = None

    shortname: str = ""
    description: str = ""       # <cmt>
    notes: str = ""             # <desc>
    icon_descr: str = ""        # <sym>
    urls: List[UrlLink] = field(default_factory=list)

    fix: FixType = FixType.UNKNOWN
    sat: int = 0
    hdop: float = 0.0
    vdop: float = 0.0
    pdop: float = 0.0

    proximity: Optional[float] = None
    temperature: Optional[float] = None
    depth: Optional[float] = None
    heartrate: int = 0
    cadence: int = 0

    new_trkseg: bool = False
    shortname_is_synthetic: bool = False

    gc_data: Optional[Geocache] = None
    garmin: Optional[GarminData] = None
    preserved: Optional[PreservedTree] = None

    def alloc_gc_data(self) -> Geocache:
        if self.gc_data is None:
            self.gc_data = Geocache()
        return self.gc_data

    def alloc_garmin(self) -> GarminData:
        if self.garmin is None:
            self.garmin = GarminData()
        return self.garmin

    def add_url(self, url: str, text: str = "", link_type: str = ""):
        self.urls.append(UrlLink(url, text, link_type))

    def has_url(self) -> bool:
        return any(link.url for link in self.urls)

    def distance_from(self, other: Waypoint) -> float:
        """Haversine distance in meters."""
        R = 6371000  # Earth radius in meters
        lat1, lat2 = math.radians(self.lat), math.radians(other.lat)
        dlat = math.radians(other.lat - self.lat)
        dlon = math.radians(other.lon - self.lon)
        a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
        return R * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


class Bounds:
    """Running min/max of latitude and longitude."""

    def __init__(self):
        self.min_lat = self.min_lon = math.inf
        self.max_lat = self.max_lon = -math.inf

    def add_point(self, point: Waypoint):
        self.min_lat = min(self.min_lat, point.lat)
        self.min_lon = min(self.min_lon, point.lon)
        self.max_lat = max(self.max_lat, point.lat)
        self.max_lon = max(self.max_lon, point.lon)

    @property
    def valid(self) -> bool:
        return self.min_lat <= self.max_lat

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Returns (min_lat, min_lon, max_lat, max_lon)."""
        return (self.min_lat, self.min_lon, self.max_lat, self.max_lon)


class GpsPointArray:
    """Base class for collections of GPS points."""

    def __init__(self, array_type: ArrayType, name: str = ""):
        self._points: List[Waypoint] = []
        self._name: str = name
        self._type: ArrayType = array_type

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str):
        self._name = value

    @property
    def array_type(self) -> ArrayType:
        return self._type

    def __len__(self) -> int:
        return len(self._points)

    def __getitem__(self, index) -> Waypoint:
        return self._points[index]

    def __iter__(self):
        return iter(self._points)

    def __bool__(self) -> bool:
        return len(self._points) > 0

    @property
    def empty(self) -> bool:
        return len(self._points) == 0

    def append(self, point: Waypoint):
        self._points.append(point)

    def total_distance(self) -> float:
        """Total distance in meters."""
        total = 0.0
        for i in range(1, len(self._points)):
            total += self._points[i - 1].distance_from(self._points[i])
        return total

    def bounds(self) -> Bounds:
        bounds = Bounds()
        for point in self._points:
            bounds.add_point(point)
        return bounds


class RouteHead(GpsPointArray):
    """Header fields shared by routes and tracks."""

    def __init__(self, array_type: ArrayType, name: str = ""):
        super().__init__(array_type, name)
        self.desc: str = ""
        self.number: int = 0
        self.urls: List[UrlLink] = []
        self.line_color: int = UNKNOWN_COLOR    # BBGGRR
        self.preserved: Optional[PreservedTree] = None

    def add_url(self, url: str, text: str = "", link_type: str = ""):
        self.urls.append(UrlLink(url, text, link_type))

    def has_url(self) -> bool:
        return any(link.url for link in self.urls)


class GpsRoute(RouteHead):
    def __init__(self, name: str = ""):
        super().__init__(ArrayType.ROUTE, name)


class GpsTrack(RouteHead):
    def __init__(self, name: str = ""):
        super().__init__(ArrayType.TRACK, name)

    def segments(self) -> List[List[Waypoint]]:
        """Points grouped by segment; the first point always opens one."""
        out: List[List[Waypoint]] = []
        for point in self:
            if point.new_trkseg or not out:
                out.append([])
            out[-1].append(point)
        return out


class GpsWaypointArray(GpsPointArray):
    def __init__(self, name: str = ""):
        super().__init__(ArrayType.WAYPOINT, name)


class GpsDataset:
    """Everything read from one or more GPX documents."""

    def __init__(self):
        self.waypoints = GpsWaypointArray()
        self.routes: List[GpsRoute] = []
        self.tracks: List[GpsTrack] = []

    def add_waypoint(self, point: Waypoint):
        self.waypoints.append(point)

    def add_route(self, route: GpsRoute):
        self.routes.append(route)

    def add_track(self, track: GpsTrack):
        self.tracks.append(track)

    def __bool__(self) -> bool:
        return bool(self.waypoints) or bool(self.routes) or bool(self.tracks)

    def all_points(self):
        """Waypoints, then route points, then track points."""
        yield from self.waypoints
        for route in self.routes:
            yield from route
        for track in self.tracks:
            yield from track

    def bounds(self) -> Bounds:
        bounds = Bounds()
        for point in self.all_points():
            bounds.add_point(point)
        return bounds


class GpxGlobal:
    """File-level metadata accumulated across every GPX document read.

    Text fields keep the first occurrence of each distinct value, in the
    order seen.  Links are kept as-is.
    """

    FIELDS = ("name", "desc", "author", "email", "url", "urlname", "keywords")

    def __init__(self):
        self.name: List[str] = []
        self.desc: List[str] = []
        self.author: List[str] = []
        self.email: List[str] = []
        self.url: List[str] = []
        self.urlname: List[str] = []
        self.keywords: List[str] = []
        self.link: List[UrlLink] = []

    def add(self, field_name: str, value: str):
        values = getattr(self, field_name)
        if value not in values:
            values.append(value)

    def add_link(self, link: UrlLink):
        self.link.append(link)

    def reset(self):
        self.__init__()

    def __bool__(self) -> bool:
        return any(getattr(self, f) for f in self.FIELDS) or bool(self.link)
