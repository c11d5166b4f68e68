"""Shared test fixtures for gpxstream tests."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from gpxstream.config import GpxOptions
from gpxstream.formats import GpxSession

FIXED_NOW = datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)


@pytest.fixture
def default_options() -> GpxOptions:
    """Return a default GpxOptions."""
    return GpxOptions()


@pytest.fixture
def session(default_options: GpxOptions) -> GpxSession:
    return GpxSession(default_options)


@pytest.fixture
def now() -> datetime:
    """Fixed clock for the metadata <time> element."""
    return FIXED_NOW


@pytest.fixture
def tmp_gpx_file(tmp_path: Path):
    """Factory fixture to write a GPX string to a temp .gpx file and return the path."""

    def _write(content: str, filename: str = "test.gpx") -> str:
        file_path = tmp_path / filename
        file_path.write_text(content, encoding="utf-8")
        return str(file_path)

    return _write


@pytest.fixture
def sample_gpx10() -> str:
    """GPX 1.0 with file metadata, a waypoint, a route and a two-segment track."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.0" creator="test" xmlns="http://www.topografix.com/GPX/1/0">
  <name>Sample</name>
  <desc>Ten points</desc>
  <author>Alice</author>
  <email>alice@example.com</email>
  <url>http://example.com/</url>
  <urlname>Example</urlname>
  <keywords>hiking</keywords>
  <bounds minlat="0" minlon="0" maxlat="99" maxlon="99"/>
  <wpt lat="51.5" lon="-0.1">
    <ele>12.5</ele>
    <time>2020-01-02T03:04:05Z</time>
    <name>HOME</name>
    <cmt>comment</cmt>
    <desc>notes</desc>
    <url>http://example.com/home</url>
    <urlname>Home page</urlname>
    <sym>House</sym>
    <fix>3d</fix>
    <sat>7</sat>
    <hdop>1.5</hdop>
  </wpt>
  <rte>
    <name>R1</name>
    <number>4</number>
    <rtept lat="1.0" lon="2.0"><name>A</name></rtept>
    <rtept lat="1.5" lon="2.5"><name>B</name></rtept>
  </rte>
  <trk>
    <name>T1</name>
    <trkseg>
      <trkpt lat="10.0" lon="20.0"><course>90.5</course><speed>3.25</speed></trkpt>
      <trkpt lat="10.1" lon="20.1"/>
    </trkseg>
    <trkseg>
      <trkpt lat="10.2" lon="20.2"/>
    </trkseg>
  </trk>
</gpx>
"""


@pytest.fixture
def sample_gpx11() -> str:
    """GPX 1.1 with metadata, links, a geocache and foreign extensions."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1"
     xmlns:groundspeak="http://www.groundspeak.com/cache/1/0"
     xmlns:acme="http://acme.example/ns">
  <metadata>
    <name>Caches</name>
    <desc>Some caches</desc>
    <link href="http://example.com/meta"><text>Meta</text><type>text/html</type></link>
    <keywords>cache, gc</keywords>
  </metadata>
  <wpt lat="45.0" lon="7.0">
    <name>GC1234</name>
    <link href="http://coord.info/GC1234"><text>Cache page</text></link>
    <sym>Geocache</sym>
    <type>Geocache|Traditional Cache</type>
    <groundspeak:cache id="42" available="True" archived="False">
      <groundspeak:name>Old Oak</groundspeak:name>
      <groundspeak:placed_by>Bob</groundspeak:placed_by>
      <groundspeak:owner id="77">Bob</groundspeak:owner>
      <groundspeak:type>Traditional Cache</groundspeak:type>
      <groundspeak:container>Small</groundspeak:container>
      <groundspeak:difficulty>3.5</groundspeak:difficulty>
      <groundspeak:terrain>2</groundspeak:terrain>
      <groundspeak:short_description html="False">Short</groundspeak:short_description>
      <groundspeak:long_description html="True">&lt;b&gt;Long&lt;/b&gt;</groundspeak:long_description>
      <groundspeak:encoded_hints>Under the root</groundspeak:encoded_hints>
      <groundspeak:logs>
        <groundspeak:log id="2">
          <groundspeak:date>2021-06-01T00:00:00Z</groundspeak:date>
          <groundspeak:type>Found it</groundspeak:type>
          <groundspeak:log_wpt lat="45.001" lon="7.001"/>
        </groundspeak:log>
        <groundspeak:log id="1">
          <groundspeak:date>2020-03-01T00:00:00Z</groundspeak:date>
          <groundspeak:type>Found it</groundspeak:type>
          <groundspeak:log_wpt lat="45.002" lon="7.002"/>
        </groundspeak:log>
      </groundspeak:logs>
    </groundspeak:cache>
    <extensions>
      <acme:rating stars="4">good</acme:rating>
    </extensions>
  </wpt>
  <trk>
    <name>Walk</name>
    <link href="http://example.com/walk"/>
    <extensions>
      <gpxx:TrackExtension xmlns:gpxx="http://www.garmin.com/xmlschemas/GpxExtensions/v3">
        <gpxx:DisplayColor>Red</gpxx:DisplayColor>
      </gpxx:TrackExtension>
    </extensions>
    <trkseg>
      <trkpt lat="1.0" lon="1.0">
        <ele>100</ele>
        <extensions>
          <gpxtpx:TrackPointExtension xmlns:gpxtpx="http://www.garmin.com/xmlschemas/TrackPointExtension/v1">
            <gpxtpx:atemp>21.5</gpxtpx:atemp>
            <gpxtpx:hr>120</gpxtpx:hr>
            <gpxtpx:cad>80</gpxtpx:cad>
          </gpxtpx:TrackPointExtension>
        </extensions>
      </trkpt>
    </trkseg>
  </trk>
</gpx>
"""
