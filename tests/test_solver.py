from __future__ import annotations

import logging
import math

import pytest

from almanac.solver import (
    bisect_elevation,
    bisect_longitude,
    fixed_point,
    interpolate,
    mod360,
    scan_crossings,
)


def test_mod360():
    assert mod360(370.0) == pytest.approx(10.0)
    assert mod360(-10.0) == pytest.approx(350.0)
    assert mod360(0.0) == 0.0


def test_fixed_point_converges():
    assert fixed_point(math.cos, 1.0, 1e-9, max_steps=200) == pytest.approx(0.739085, abs=1e-6)


def test_fixed_point_reports_missing_event():
    assert fixed_point(lambda x: None, 1.0, 1e-9) is None


def test_fixed_point_logs_exhaustion(caplog):
    with caplog.at_level(logging.WARNING, logger="almanac.solver"):
        result = fixed_point(lambda x: x + 1, 0.0, 1e-3, max_steps=5)
    assert result == 5.0
    assert "solver_max_steps" in caplog.text


def test_interpolate_symmetric_parabola():
    fit = interpolate(0.75, -0.25, 0.75)
    assert fit.xe == pytest.approx(0.0)
    assert fit.ye == pytest.approx(-0.25)
    assert fit.roots == pytest.approx((-0.5, 0.5))


def test_interpolate_straight_line():
    fit = interpolate(-1.0, 0.0, 1.0)
    assert fit.roots == (0.0,)
    assert math.isinf(fit.xe)


def test_interpolate_without_roots():
    assert interpolate(1.0, 2.0, 1.5).roots == ()


def test_scan_finds_rise_and_set():
    rising, setting, above = scan_crossings(lambda hour: math.sin(2 * math.pi * (hour - 6.3) / 24))
    assert rising == pytest.approx(6.3, abs=0.01)
    assert setting == pytest.approx(18.3, abs=0.01)
    assert not above


def test_scan_without_crossings():
    assert scan_crossings(lambda hour: 1.0) == (None, None, True)
    assert scan_crossings(lambda hour: -1.0) == (None, None, False)


def test_bisect_longitude_across_wrap():
    def longitude(x):
        return mod360(10 * x)

    assert bisect_longitude(longitude, 355.0, 30.0, 40.0) == pytest.approx(35.5, abs=1e-4)
    assert bisect_longitude(longitude, 0.0, 30.0, 40.0) == pytest.approx(36.0, abs=1e-4)


def test_bisect_elevation_rising():
    assert bisect_elevation(lambda s: s / 100, 12.34, 0, 10000) == pytest.approx(1234, abs=2)


def test_bisect_elevation_setting():
    assert bisect_elevation(lambda s: (10000 - s) / 100, 12.34, 10000, 0) == pytest.approx(8766, abs=2)
