"""
gpxstream — Streaming GPX reader and writer
===========================================
Reads GPX 1.0 and 1.1 into waypoints, routes and tracks, and writes them
back out, keeping elements it does not interpret.

Quick start:
    gpxconv in.gpx -o out.gpx          # CLI

Library:
    from gpxstream import GpxSession, convert
    convert(["a.gpx", "b.gpx"], "merged.gpx")
"""

from gpxstream.config import GpxOptions
from gpxstream.errors import ErrorCode, GpxConfigError, GpxError, GpxParseError
from gpxstream.formats import (
    FORMAT_REGISTRY, GpxSession, convert, get_format, read_file, write_file,
)
from gpxstream.models import (
    ArrayType, GpsDataset, GpsRoute, GpsTrack, GpsWaypointArray, GpxGlobal, Waypoint,
)

__version__ = "1.0.0"
__all__ = [
    "GpxOptions", "ErrorCode", "GpxError", "GpxParseError", "GpxConfigError",
    "GpxSession", "read_file", "write_file", "convert", "get_format", "FORMAT_REGISTRY",
    "ArrayType", "GpsDataset", "GpsRoute", "GpsTrack", "GpsWaypointArray",
    "GpxGlobal", "Waypoint",
]
