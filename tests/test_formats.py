"""Tests for the format registry, sessions and file conversion."""

from __future__ import annotations

from pathlib import Path

import pytest

from gpxstream.errors import ErrorCode, GpxConfigError, GpxError
from gpxstream.formats import (
    GpxSession, convert, get_format, read_file, supported_input_formats,
    supported_output_formats, write_file,
)
from gpxstream.models import GpsDataset


class TestRegistry:
    def test_gpx_registered(self):
        fmt = get_format("gpx")
        assert fmt is not None
        assert fmt.reader is not None and fmt.writer is not None

    def test_lookup_ignores_case_and_dot(self):
        assert get_format(".GPX") is get_format("gpx")

    def test_unknown(self):
        assert get_format("kml") is None

    def test_supported_lists(self):
        assert supported_input_formats() == ["gpx"]
        assert supported_output_formats() == ["gpx"]


class TestReadFile:
    def test_read(self, tmp_gpx_file, sample_gpx10):
        dataset = read_file(tmp_gpx_file(sample_gpx10))
        assert len(dataset.waypoints) == 1
        assert len(dataset.tracks) == 1

    def test_options_as_keywords(self, tmp_gpx_file, sample_gpx11):
        dataset = read_file(tmp_gpx_file(sample_gpx11), logpoint=True)
        assert len(dataset.waypoints) == 3

    def test_unsupported_extension(self, tmp_path):
        with pytest.raises(GpxError) as excinfo:
            read_file(str(tmp_path / "points.kml"))
        assert excinfo.value.code is ErrorCode.E_FORMAT_UNSUPPORTED
        assert "supported: gpx" in str(excinfo.value)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_file(str(tmp_path / "missing.gpx"))

    def test_bad_option(self, tmp_gpx_file, sample_gpx10):
        with pytest.raises(GpxConfigError):
            read_file(tmp_gpx_file(sample_gpx10), snlen=0)


class TestWriteFile:
    def test_write(self, tmp_path, tmp_gpx_file, sample_gpx10, now):
        session = GpxSession()
        dataset = read_file(tmp_gpx_file(sample_gpx10), session=session)
        out = tmp_path / "out.gpx"
        write_file(str(out), dataset, session=session, now=now)
        text = out.read_text(encoding="utf-8")
        assert 'version="1.0"' in text
        assert "<name>HOME</name>" in text

    def test_invalid_version_creates_no_file(self, tmp_path):
        session = GpxSession()
        session.version = "x"
        out = tmp_path / "out.gpx"
        with pytest.raises(GpxConfigError):
            write_file(str(out), GpsDataset(), session=session)
        assert not out.exists()

    def test_unsupported_output(self, tmp_path):
        with pytest.raises(GpxError) as excinfo:
            write_file(str(tmp_path / "out.txt"), None)
        assert excinfo.value.code is ErrorCode.E_FORMAT_UNSUPPORTED


class TestConvert:
    def test_merge_two_files(self, tmp_path, tmp_gpx_file, sample_gpx10, sample_gpx11, now):
        first = tmp_gpx_file(sample_gpx10, "a.gpx")
        second = tmp_gpx_file(sample_gpx11, "b.gpx")
        out = tmp_path / "merged.gpx"
        dataset = convert([first, second], str(out), now=now)

        assert len(dataset.waypoints) == 2
        assert len(dataset.routes) == 1
        assert len(dataset.tracks) == 2
        text = out.read_text(encoding="utf-8")
        assert 'version="1.1"' in text
        assert "<name>Sample Caches</name>" in text
        assert "<groundspeak:cache" in text

    def test_single_path(self, tmp_path, tmp_gpx_file, sample_gpx10, now):
        out = tmp_path / "copy.gpx"
        convert(tmp_gpx_file(sample_gpx10), str(out), now=now, gpxver="1.1")
        assert 'version="1.1"' in out.read_text(encoding="utf-8")

    def test_output_reads_back(self, tmp_path, tmp_gpx_file, sample_gpx11, now):
        out = tmp_path / "copy.gpx"
        convert([tmp_gpx_file(sample_gpx11)], str(out), now=now)
        again = read_file(str(out))
        wpt = again.waypoints[0]
        assert wpt.gc_data.diff == 35
        assert wpt.preserved.find("acme:rating").text == "good"
        assert again.tracks[0][0].heartrate == 120

    def test_path_objects(self, tmp_path, tmp_gpx_file, sample_gpx10, now):
        src = Path(tmp_gpx_file(sample_gpx10))
        out = tmp_path / "copy.gpx"
        convert([src], out, now=now)
        assert out.exists()
