#!/usr/bin/env python3
"""
gpxstream - GPX converter
=========================
Merge and rewrite GPX files, keeping anything the converter does not
understand.

Usage:
    gpxconv in.gpx -o out.gpx                    # Rewrite at the input version
    gpxconv a.gpx b.gpx -o merged.gpx            # Merge two files
    gpxconv in.gpx -o out.gpx --gpxver 1.1       # Upgrade to GPX 1.1
    gpxconv in.gpx -o out.gpx --garmin           # Write handheld-GPS extensions
    gpxconv in.gpx --info                        # Show file info only
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from gpxstream.config import SOFT_FULL_NAME, GpxOptions
from gpxstream.errors import GpxError
from gpxstream.formats import GpxSession, read_file, write_file
from gpxstream.models import GpsDataset, GpsPointArray
from gpxstream.vocab import cache_container_name, cache_type_name, rating_to_text

logger = logging.getLogger(__name__)


def format_distance(meters: float) -> str:
    """Format distance in human-readable form."""
    if meters >= 1000:
        return f"{meters / 1000:.2f} km"
    return f"{meters:.0f} m"


def _show_array(label: str, arr: GpsPointArray):
    name = arr.name or "(unnamed)"
    print(f"\n   {label}: {name}")
    print(f"       Points: {len(arr)}")
    if len(arr):
        print(f"       Distance: {format_distance(arr.total_distance())}")
        first, last = arr[0], arr[-1]
        print(f"       Start: {first.lat:.6f}, {first.lon:.6f}  {first.shortname}")
        if len(arr) > 1:
            print(f"       End:   {last.lat:.6f}, {last.lon:.6f}  {last.shortname}")


def show_info(dataset: GpsDataset, session: GpxSession, filepath: str = ""):
    """Display information about GPS data."""
    if filepath:
        print(f"\n📁 File: {filepath}")
    print(f"   GPX version: {session.version or '(none)'}")
    print(f"   Waypoints: {len(dataset.waypoints)}, Routes: {len(dataset.routes)}, "
          f"Tracks: {len(dataset.tracks)}")

    bounds = dataset.bounds()
    if bounds.valid:
        min_lat, min_lon, max_lat, max_lon = bounds.as_tuple()
        print(f"   Bounds: ({min_lat:.6f}, {min_lon:.6f}) → ({max_lat:.6f}, {max_lon:.6f})")

    for wpt in dataset.waypoints:
        gc = wpt.gc_data
        if gc is None:
            continue
        print(f"\n   📦 {wpt.shortname}: {wpt.notes or '(no name)'}")
        print(f"       {cache_type_name(gc.type)} / {cache_container_name(gc.container)}"
              f"  D{rating_to_text(gc.diff)} T{rating_to_text(gc.terr)}")
        if gc.last_found is not None:
            print(f"       Last found: {gc.last_found:%Y-%m-%d}")

    for route in dataset.routes:
        _show_array("🛣️  Route", route)
    for track in dataset.tracks:
        _show_array("📍 Track", track)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gpxconv",
        description=f"{SOFT_FULL_NAME} — GPX converter",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s in.gpx -o out.gpx                Rewrite at the input version
  %(prog)s a.gpx b.gpx -o merged.gpx        Merge files
  %(prog)s in.gpx -o out.gpx --gpxver 1.1   Force GPX 1.1
  %(prog)s --info route.gpx                 Show file information
        """)

    parser.add_argument("inputs", nargs="+", help="Input GPX file(s)")
    parser.add_argument("-o", "--output", help="Output GPX file")
    parser.add_argument("--info", action="store_true", help="Show file info")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    gpx_group = parser.add_argument_group("GPX options")
    gpx_group.add_argument("--gpxver", help="Target GPX version for output")
    gpx_group.add_argument("--snlen", type=int, default=32, help="Length of generated shortnames")
    gpx_group.add_argument("--suppresswhite", action="store_true",
                           help="No whitespace in generated shortnames")
    gpx_group.add_argument("--shortnames", action="store_true",
                           help="Generate shortnames instead of copying names")
    gpx_group.add_argument("--logpoint", action="store_true",
                           help="Create waypoints from geocache log entries")
    gpx_group.add_argument("--urlbase", default="", help="Base URL for link tag in output")
    gpx_group.add_argument("--humminbird", action="store_true",
                           help="Add info (depth) as Humminbird extension")
    gpx_group.add_argument("--garmin", action="store_true",
                           help="Add info (depth) as Garmin extension")
    gpx_group.add_argument("--elevprec", type=int, default=3,
                           help="Precision of elevations, number of decimals")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    try:
        options = GpxOptions.build(
            gpxver=args.gpxver, snlen=args.snlen, suppresswhite=args.suppresswhite,
            synthesize_shortnames=args.shortnames, logpoint=args.logpoint,
            urlbase=args.urlbase, humminbirdextensions=args.humminbird,
            garminextensions=args.garmin, elevprec=args.elevprec,
        )
    except GpxError as e:
        print(f"❌ Invalid options: {e}", file=sys.stderr)
        return 1

    session = GpxSession(options)
    dataset = GpsDataset()
    for path in args.inputs:
        try:
            read_file(path, dataset, session=session)
        except (GpxError, OSError) as e:
            print(f"❌ Error reading {path}: {e}", file=sys.stderr)
            return 1
        if args.verbose:
            print(f"   Read {path}")

    if args.verbose or args.info:
        show_info(dataset, session, ", ".join(args.inputs))

    if not args.output:
        if not args.info:
            total = sum(1 for _ in dataset.all_points())
            print(f"✅ Read {total} points from {len(args.inputs)} file(s)")
            print("   (use -o to write a GPX file, or --info for details)")
        return 0

    try:
        write_file(args.output, dataset, session=session)
    except (GpxError, OSError) as e:
        print(f"❌ Error writing {args.output}: {e}", file=sys.stderr)
        return 1

    total = sum(1 for _ in dataset.all_points())
    print(f"✅ Converted → {args.output} ({total} points)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
