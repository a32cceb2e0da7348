"""Tests for heading sources, smoothing and tracking."""

from __future__ import annotations

import pytest

from borghi.services.geo import angular_difference
from borghi.services.heading import (
    HeadingSmoother,
    HeadingTracker,
    MagnetometerHeadingSource,
    NativeCompassSource,
    select_heading_source,
)


def _collect(source):
    seen: list[float] = []
    source.add_listener(seen.append)
    return seen


class TestNativeCompassSource:
    def test_true_heading_preferred(self):
        source = NativeCompassSource()
        seen = _collect(source)
        source.push(90.0, 85.0)
        assert seen == [90.0]

    def test_negative_true_heading_falls_back(self):
        source = NativeCompassSource()
        seen = _collect(source)
        source.push(-1.0, 45.0)
        assert seen == [45.0]

    def test_no_values_ignored(self):
        source = NativeCompassSource()
        seen = _collect(source)
        source.push(None, None)
        assert seen == []

    def test_normalized(self):
        source = NativeCompassSource()
        seen = _collect(source)
        source.push(360.0)
        assert seen == [0.0]


class TestMagnetometerHeadingSource:
    @pytest.mark.parametrize("x,y,expected", [(1.0, 0.0, 90.0), (0.0, 1.0, 180.0), (-1.0, 0.0, 270.0)])
    def test_vector_to_heading(self, x, y, expected):
        source = MagnetometerHeadingSource()
        seen = _collect(source)
        source.push(x, y)
        assert seen == [pytest.approx(expected)]

    def test_zero_vector_ignored(self):
        source = MagnetometerHeadingSource()
        seen = _collect(source)
        source.push(0.0, 0.0, 5.0)
        assert seen == []


def test_select_heading_source():
    assert isinstance(select_heading_source(True), NativeCompassSource)
    assert isinstance(select_heading_source(False), MagnetometerHeadingSource)


class TestHeadingSmoother:
    def test_empty(self):
        assert HeadingSmoother().value is None

    def test_wraparound_mean(self):
        s = HeadingSmoother()
        s.add(359.0)
        s.add(1.0)
        assert angular_difference(s.value, 0.0) < 1e-6

    def test_window_drops_oldest(self):
        s = HeadingSmoother(window=3)
        for h in (10.0, 20.0, 30.0, 40.0):
            s.add(h)
        assert len(s) == 3
        assert s.value == pytest.approx(30.0)

    def test_reset(self):
        s = HeadingSmoother()
        s.add(10.0)
        s.reset()
        assert s.value is None

    def test_invalid_window(self):
        with pytest.raises(ValueError):
            HeadingSmoother(window=0)


class TestHeadingTracker:
    def test_follows_attached_source(self):
        source = NativeCompassSource()
        tracker = HeadingTracker()
        assert tracker.heading is None
        tracker.attach(source)
        source.push(120.0)
        assert tracker.heading == pytest.approx(120.0)
        assert tracker.source_name == "native_compass"

    def test_detach_stops_updates(self):
        source = NativeCompassSource()
        tracker = HeadingTracker()
        tracker.attach(source)
        source.push(120.0)
        tracker.detach()
        source.push(200.0)
        assert tracker.heading is None
        assert tracker.source_name is None

    def test_switching_source(self):
        native = NativeCompassSource()
        mag = MagnetometerHeadingSource()
        tracker = HeadingTracker()
        tracker.attach(native)
        native.push(10.0)
        tracker.attach(mag)
        native.push(50.0)
        mag.push(1.0, 0.0)
        assert tracker.heading == pytest.approx(90.0)
        assert tracker.source_name == "magnetometer"
