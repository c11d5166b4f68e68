"""Tests for the data model."""

from __future__ import annotations

import pytest

from gpxstream.models import (
    ArrayType, Bounds, GpsDataset, GpsRoute, GpsTrack, GpxGlobal, UrlLink, Waypoint,
)


def _wpt(lat, lon, **kwargs) -> Waypoint:
    return Waypoint(lat=lat, lon=lon, **kwargs)


class TestWaypoint:
    def test_lazy_records(self):
        wpt = Waypoint()
        assert wpt.gc_data is None
        gc = wpt.alloc_gc_data()
        assert wpt.alloc_gc_data() is gc
        assert wpt.alloc_garmin() is wpt.garmin

    def test_urls(self):
        wpt = Waypoint()
        assert not wpt.has_url()
        wpt.add_url("http://a", "A")
        assert wpt.has_url()
        assert wpt.urls == [UrlLink("http://a", "A", "")]

    def test_distance(self):
        a = _wpt(0.0, 0.0)
        b = _wpt(0.0, 1.0)
        assert a.distance_from(b) == pytest.approx(111195, rel=1e-3)


class TestArrays:
    def test_route_type_and_name(self):
        route = GpsRoute("R")
        assert route.array_type is ArrayType.ROUTE
        assert route.name == "R"
        assert route.empty

    def test_empty_route_is_falsy(self):
        assert not GpsRoute()

    def test_track_segments(self):
        track = GpsTrack()
        for lat, new_seg in [(1, False), (2, False), (3, True), (4, False)]:
            track.append(_wpt(lat, 0, new_trkseg=new_seg))
        assert [[p.lat for p in seg] for seg in track.segments()] == [[1, 2], [3, 4]]

    def test_first_point_always_opens_segment(self):
        track = GpsTrack()
        track.append(_wpt(1, 0))
        assert len(track.segments()) == 1


class TestBoundsAndDataset:
    def test_bounds(self):
        bounds = Bounds()
        assert not bounds.valid
        bounds.add_point(_wpt(1, 5))
        bounds.add_point(_wpt(-2, 3))
        assert bounds.valid
        assert bounds.as_tuple() == (-2, 3, 1, 5)

    def test_dataset_point_order(self):
        ds = GpsDataset()
        ds.add_waypoint(_wpt(1, 1))
        route = GpsRoute()
        route.append(_wpt(2, 2))
        ds.add_route(route)
        track = GpsTrack()
        track.append(_wpt(3, 3))
        ds.add_track(track)
        assert [p.lat for p in ds.all_points()] == [1, 2, 3]
        assert ds.bounds().as_tuple() == (1, 1, 3, 3)

    def test_empty_dataset(self):
        assert not GpsDataset()
        assert not GpsDataset().bounds().valid


class TestGpxGlobal:
    def test_dedup_keeps_first_seen_order(self):
        meta = GpxGlobal()
        meta.add("desc", "one")
        meta.add("desc", "two")
        meta.add("desc", "one")
        assert meta.desc == ["one", "two"]

    def test_links_not_deduplicated(self):
        meta = GpxGlobal()
        meta.add_link(UrlLink("http://a"))
        meta.add_link(UrlLink("http://a"))
        assert len(meta.link) == 2

    def test_reset(self):
        meta = GpxGlobal()
        meta.add("name", "x")
        assert meta
        meta.reset()
        assert not meta
        assert meta.name == []
