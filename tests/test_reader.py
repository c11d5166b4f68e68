"""Tests for the GPX reader state machine."""

from __future__ import annotations

import io
from datetime import datetime, timezone

import pytest

from gpxstream.config import GpxOptions
from gpxstream.errors import ErrorCode, GpxParseError
from gpxstream.formats import GpxSession
from gpxstream.models import UrlLink
from gpxstream.reader import ParseContext, characters, end_element, read_gpx, start_element
from gpxstream.vocab import CacheContainer, CacheType, FixType, Status


def _gpx(body: str, version: str = "1.1", extra: str = "") -> str:
    return (f'<?xml version="1.0" encoding="UTF-8"?>\n'
            f'<gpx version="{version}" creator="test"{extra}>{body}</gpx>')


class TestGpx10:
    def test_metadata(self, session, sample_gpx10):
        session.read_string(sample_gpx10)
        meta = session.metadata
        assert meta.name == ["Sample"]
        assert meta.desc == ["Ten points"]
        assert meta.author == ["Alice"]
        assert meta.email == ["alice@example.com"]
        assert meta.url == ["http://example.com/"]
        assert meta.urlname == ["Example"]
        assert meta.keywords == ["hiking"]
        assert session.version == "1.0"

    def test_waypoint_fields(self, session, sample_gpx10):
        ds = session.read_string(sample_gpx10)
        assert len(ds.waypoints) == 1
        wpt = ds.waypoints[0]
        assert (wpt.lat, wpt.lon) == (51.5, -0.1)
        assert wpt.altitude == 12.5
        assert wpt.creation_time == datetime(2020, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert wpt.shortname == "HOME"
        assert wpt.description == "comment"
        assert wpt.notes == "notes"
        assert wpt.icon_descr == "House"
        assert wpt.urls == [UrlLink("http://example.com/home", "Home page", "")]
        assert wpt.fix is FixType.FIX_3D
        assert wpt.sat == 7
        assert wpt.hdop == 1.5
        assert wpt.preserved is None

    def test_route(self, session, sample_gpx10):
        ds = session.read_string(sample_gpx10)
        assert len(ds.routes) == 1
        route = ds.routes[0]
        assert route.name == "R1"
        assert route.number == 4
        assert [p.shortname for p in route] == ["A", "B"]

    def test_track_segments_and_course(self, session, sample_gpx10):
        ds = session.read_string(sample_gpx10)
        track = ds.tracks[0]
        assert track.name == "T1"
        assert [p.new_trkseg for p in track] == [True, False, True]
        assert track[0].course == 90.5
        assert track[0].speed == 3.25
        assert track[1].course is None

    def test_bounds_element_is_not_kept(self, session, sample_gpx10):
        ds = session.read_string(sample_gpx10)
        for point in ds.all_points():
            assert point.preserved is None


class TestGpx11:
    def test_metadata_and_namespaces(self, session, sample_gpx11):
        session.read_string(sample_gpx11)
        meta = session.metadata
        assert meta.name == ["Caches"]
        assert meta.keywords == ["cache, gc"]
        assert meta.link == [UrlLink("http://example.com/meta", "Meta", "text/html")]
        assert session.version == "1.1"
        assert session.namespaces == {
            "xmlns:groundspeak": "http://www.groundspeak.com/cache/1/0",
            "xmlns:acme": "http://acme.example/ns",
        }

    def test_geocache(self, session, sample_gpx11):
        wpt = session.read_string(sample_gpx11).waypoints[0]
        assert wpt.shortname == "GC1234"
        assert wpt.notes == "Old Oak"
        gc = wpt.gc_data
        assert gc.id == 42
        assert gc.is_available is Status.TRUE
        assert gc.is_archived is Status.FALSE
        assert gc.type is CacheType.TRADITIONAL
        assert gc.container is CacheContainer.SMALL
        assert gc.diff == 35
        assert gc.terr == 20
        assert gc.placer == "Bob"
        assert gc.placer_id == 77
        assert gc.hint == "Under the root"
        assert (gc.desc_short.text, gc.desc_short.is_html) == ("Short", False)
        assert (gc.desc_long.text, gc.desc_long.is_html) == ("<b>Long</b>", True)

    def test_only_first_found_log_counts(self, session, sample_gpx11):
        gc = session.read_string(sample_gpx11).waypoints[0].gc_data
        assert gc.last_found == datetime(2021, 6, 1, tzinfo=timezone.utc)

    def test_link(self, session, sample_gpx11):
        wpt = session.read_string(sample_gpx11).waypoints[0]
        assert wpt.urls == [UrlLink("http://coord.info/GC1234", "Cache page", "")]

    def test_preserved_roots_and_anchors(self, session, sample_gpx11):
        tree = session.read_string(sample_gpx11).waypoints[0].preserved
        roots = tree.root_nodes()
        assert [r.tag for r in roots] == ["type", "groundspeak:cache", "extensions"]
        assert [r.anchor for r in roots] == ["sym", "type", "groundspeak:cache"]
        assert all(r.mirror for r in roots)

    def test_foreign_extension_content(self, session, sample_gpx11):
        tree = session.read_string(sample_gpx11).waypoints[0].preserved
        rating = tree.find("acme:rating")
        assert rating.attributes == [("stars", "4")]
        assert rating.text == "good"
        assert not rating.mirror

    def test_cache_keeps_unknown_children(self, session, sample_gpx11):
        tree = session.read_string(sample_gpx11).waypoints[0].preserved
        placed_by = tree.find("groundspeak:placed_by")
        assert placed_by.text == "Bob"
        assert tree.find("groundspeak:difficulty").text == "3.5"

    def test_track_extensions(self, session, sample_gpx11):
        track = session.read_string(sample_gpx11).tracks[0]
        assert track.line_color == 0x0000FF
        assert track.urls == [UrlLink("http://example.com/walk", "", "")]
        assert [r.tag for r in track.preserved.root_nodes()] == ["extensions"]
        assert track.preserved.root_nodes()[0].anchor == "link"

        point = track[0]
        assert point.altitude == 100.0
        assert point.temperature == 21.5
        assert point.heartrate == 120
        assert point.cadence == 80
        assert point.preserved.root_nodes()[0].anchor == "ele"
        assert point.preserved.find("gpxtpx:hr").text == "120"


class TestLogpoints:
    def test_disabled_by_default(self, session, sample_gpx11):
        assert len(session.read_string(sample_gpx11).waypoints) == 1

    def test_log_waypoints(self, sample_gpx11):
        session = GpxSession(GpxOptions(logpoint=True))
        ds = session.read_string(sample_gpx11)
        names = [w.shortname for w in ds.waypoints]
        assert names == ["123400", "123401", "GC1234"]
        assert (ds.waypoints[0].lat, ds.waypoints[0].lon) == (45.001, 7.001)

    def test_short_parent_name_makes_no_log_waypoint(self):
        doc = _gpx('<wpt lat="1" lon="2"><name>GC</name><groundspeak:cache>'
                   '<groundspeak:logs><groundspeak:log>'
                   '<groundspeak:log_wpt lat="3" lon="4"/>'
                   '</groundspeak:log></groundspeak:logs></groundspeak:cache></wpt>')
        session = GpxSession(GpxOptions(logpoint=True))
        assert len(session.read_string(doc).waypoints) == 1

    def test_counter_resets_per_parent(self):
        cache = ('<groundspeak:cache><groundspeak:logs><groundspeak:log>'
                 '<groundspeak:log_wpt lat="3" lon="4"/>'
                 '</groundspeak:log></groundspeak:logs></groundspeak:cache>')
        doc = _gpx(f'<wpt lat="1" lon="2"><name>GCAAAA</name>{cache}</wpt>'
                   f'<wpt lat="1" lon="2"><name>GCBBBB</name>{cache}</wpt>')
        session = GpxSession(GpxOptions(logpoint=True))
        names = [w.shortname for w in session.read_string(doc).waypoints]
        assert names == ["AAAA00", "GCAAAA", "BBBB00", "GCBBBB"]


class TestAcrossDocuments:
    @pytest.mark.parametrize("order", [("1.0", "1.1"), ("1.1", "1.0")])
    def test_version_only_goes_up(self, session, order):
        for version in order:
            session.read_string(_gpx("", version=version))
        assert session.version == "1.1"

    def test_metadata_deduplicated_in_first_seen_order(self, session):
        session.read_string(_gpx("<metadata><desc>same</desc></metadata>"))
        session.read_string(_gpx("<metadata><desc>other</desc></metadata>"))
        session.read_string(_gpx("<metadata><desc>same</desc></metadata>"))
        assert session.metadata.desc == ["same", "other"]

    def test_points_accumulate_into_one_dataset(self, session):
        ds = session.read_string(_gpx('<wpt lat="1" lon="1"/>'))
        session.read_string(_gpx('<wpt lat="2" lon="2"/>'), ds)
        assert [w.lat for w in ds.waypoints] == [1.0, 2.0]

    def test_first_namespace_declaration_wins(self, session):
        session.read_string(_gpx("", extra=' xmlns:a="urn:one"'))
        session.read_string(_gpx("", extra=' xmlns:a="urn:two" xmlns:b="urn:b"'))
        assert session.namespaces == {"xmlns:a": "urn:one", "xmlns:b": "urn:b"}

    def test_reset(self, session):
        session.read_string(_gpx("<metadata><name>x</name></metadata>", extra=' xmlns:a="u"'))
        session.reset()
        assert not session.metadata
        assert session.version == ""
        assert session.namespaces == {}


class TestUnknownElements:
    def test_foo_bar_baz(self, session):
        ds = session.read_string(_gpx('<wpt lat="1.0" lon="2.0"><foo bar="1">baz</foo></wpt>'))
        tree = ds.waypoints[0].preserved
        (foo,) = tree.root_nodes()
        assert foo.tag == "foo"
        assert foo.attributes == [("bar", "1")]
        assert foo.text == "baz"
        assert foo.anchor is None

    def test_mixed_content(self, session):
        ds = session.read_string(_gpx(
            '<wpt lat="1" lon="2"><name>N</name><foo>a<b x="y">c</b>d<e/></foo></wpt>'))
        tree = ds.waypoints[0].preserved
        foo = tree.root_nodes()[0]
        assert foo.anchor == "name"
        assert foo.text == "a"
        b, e = tree.children(0)
        assert (b.tag, b.text, b.tail, b.attributes) == ("b", "c", "d", [("x", "y")])
        assert (e.tag, e.text, e.tail) == ("e", "", "")

    def test_attribute_order_preserved(self, session):
        ds = session.read_string(_gpx('<wpt lat="1" lon="2"><q z="1" a="2" m="3"/></wpt>'))
        assert ds.waypoints[0].preserved[0].attributes == [("z", "1"), ("a", "2"), ("m", "3")]

    def test_top_level_unknown_dropped(self, session):
        ds = session.read_string(_gpx('<foo>bar</foo><wpt lat="1" lon="2"/>'))
        assert ds.waypoints[0].preserved is None

    def test_content_after_route_point_belongs_to_route(self, session):
        ds = session.read_string(_gpx(
            '<rte><name>R</name><rtept lat="1" lon="2"/><foo/></rte>'))
        route = ds.routes[0]
        assert route[0].preserved is None
        (foo,) = route.preserved.root_nodes()
        assert foo.anchor == "rtept"

    def test_unknown_in_point_stays_with_point(self, session):
        ds = session.read_string(_gpx(
            '<trk><trkseg><trkpt lat="1" lon="2"><foo/></trkpt></trkseg></trk>'))
        track = ds.tracks[0]
        assert track.preserved is None
        assert track[0].preserved.root_nodes()[0].tag == "foo"


class TestVendorExtensions:
    def test_humminbird_depth_in_centimetres(self, session):
        ds = session.read_string(_gpx(
            '<wpt lat="1" lon="2"><extensions><h:depth>250</h:depth></extensions></wpt>'
            '<trk><trkseg><trkpt lat="1" lon="2"><extensions><h:depth>30</h:depth>'
            '</extensions></trkpt></trkseg></trk>'))
        assert ds.waypoints[0].depth == 2.5
        assert ds.tracks[0][0].depth == 0.3

    def test_garmin_waypoint_extension(self, session):
        ds = session.read_string(_gpx(
            '<wpt lat="1" lon="2"><extensions><gpxx:WaypointExtension>'
            '<gpxx:Proximity>15</gpxx:Proximity>'
            '<gpxx:DisplayMode>SymbolOnly</gpxx:DisplayMode>'
            '<gpxx:Categories><gpxx:Category>Category 2</gpxx:Category></gpxx:Categories>'
            '<gpxx:Address><gpxx:City>Oslo</gpxx:City></gpxx:Address>'
            '</gpxx:WaypointExtension></extensions></wpt>'))
        wpt = ds.waypoints[0]
        assert wpt.proximity == 15.0
        assert wpt.garmin.category == 2
        assert wpt.garmin.city == "Oslo"

    def test_route_display_colour(self, session):
        ds = session.read_string(_gpx(
            '<rte><extensions><gpxx:RouteExtension>'
            '<gpxx:DisplayColor>DarkGreen</gpxx:DisplayColor>'
            '</gpxx:RouteExtension></extensions></rte>'))
        assert ds.routes[0].line_color == 0x006400


class TestLenientFields:
    def test_bad_numbers_default(self, session):
        ds = session.read_string(_gpx(
            '<wpt lat="x" lon="2"><ele>high</ele><sat>3.0</sat><hdop>?</hdop>'
            '<fix>4d</fix><time>yesterday</time></wpt>'))
        wpt = ds.waypoints[0]
        assert wpt.lat == 0.0
        assert wpt.altitude == 0.0
        assert wpt.sat == 3
        assert wpt.hdop == 0.0
        assert wpt.fix is FixType.UNKNOWN
        assert wpt.creation_time is None

    def test_bad_rating(self, session):
        ds = session.read_string(_gpx(
            '<wpt lat="1" lon="2"><groundspeak:cache>'
            '<groundspeak:difficulty>hard</groundspeak:difficulty>'
            '</groundspeak:cache></wpt>'))
        assert ds.waypoints[0].gc_data.diff == 0


class TestRouteAndTrackLinks:
    def test_gpx10_head_url(self, session):
        ds = session.read_string(_gpx(
            '<rte><url>http://r</url><urlname>R</urlname></rte>', version="1.0"))
        assert ds.routes[0].urls == [UrlLink("http://r", "R", "")]

    def test_gpx11_head_links(self, session):
        ds = session.read_string(_gpx(
            '<trk><link href="http://a"><text>A</text><type>t</type></link>'
            '<link href="http://b"/></trk>'))
        assert ds.tracks[0].urls == [UrlLink("http://a", "A", "t"), UrlLink("http://b", "", "")]


class TestErrors:
    def test_mismatched_tag(self, session):
        with pytest.raises(GpxParseError) as excinfo:
            session.read_string('<gpx version="1.1">\n<wpt lat="1" lon="2">\n</gpx>')
        err = excinfo.value
        assert err.code is ErrorCode.E_PARSE_MALFORMED
        assert err.line == 3

    def test_truncated(self, session):
        with pytest.raises(GpxParseError) as excinfo:
            session.read_string('<gpx version="1.1"><wpt lat="1" lon="2">')
        assert excinfo.value.code is ErrorCode.E_PARSE_MALFORMED

    def test_empty(self, session):
        with pytest.raises(GpxParseError) as excinfo:
            session.read(b"")
        assert excinfo.value.code is ErrorCode.E_PARSE_EMPTY

    def test_file_name_reported(self, session, tmp_gpx_file):
        path = tmp_gpx_file("<gpx><wpt></gpx>", "broken.gpx")
        with pytest.raises(GpxParseError) as excinfo:
            session.read(path)
        assert excinfo.value.filename == path
        assert "broken.gpx" in str(excinfo.value)


class TestEventApi:
    def test_driving_the_state_machine_directly(self):
        ctx = ParseContext()
        start_element(ctx, "gpx", [("version", "1.0")])
        start_element(ctx, "wpt", [("lat", "5"), ("lon", "6")])
        start_element(ctx, "name", [])
        characters(ctx, "  Spot ")
        end_element(ctx, "name")
        end_element(ctx, "wpt")
        end_element(ctx, "gpx")
        assert ctx.version == "1.0"
        assert ctx.dataset.waypoints[0].shortname == "Spot"
        assert ctx.path == []

    def test_close_without_open_point_is_harmless(self):
        ctx = ParseContext()
        ctx.path = ["gpx"]
        start_element(ctx, "name", [])
        ctx.path = ["gpx", "wpt"]
        end_element(ctx, "wpt")
        assert len(ctx.dataset.waypoints) == 0

    def test_read_from_binary_stream(self):
        ctx = read_gpx(io.BytesIO(_gpx('<wpt lat="1" lon="2"/>').encode()))
        assert len(ctx.dataset.waypoints) == 1
