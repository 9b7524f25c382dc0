from __future__ import annotations

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

import pytest

from almanac.location import GeoLocation
from almanac.moon import MoonPosition, lunar_longitude, lunar_position, next_apogee_after, next_perigee_after
from almanac.timescale import TimeScale, TimeValue, julian_centuries

# 1992-04-12T00:00 TT, Meeus example 47.a
JDE_47A = TimeValue.from_calendar(1992, 4, 12, scale=TimeScale.EPHEMERIS).value


def _moment(zone: str, *fields: int) -> TimeValue:
    return TimeValue.from_datetime(datetime(*fields, tzinfo=ZoneInfo(zone)))


def _utc(*fields: int) -> TimeValue:
    return TimeValue.from_datetime(datetime(*fields, tzinfo=UTC))


def test_lunar_position_meeus_47a():
    data = lunar_position(julian_centuries(JDE_47A))
    assert data.nutation == pytest.approx(0.0046096, abs=1e-4)
    assert data.obliquity == pytest.approx(23.440635, abs=1e-4)
    assert data.right_ascension == pytest.approx(134.688469, abs=0.001)
    assert data.declination == pytest.approx(13.768367, abs=0.001)
    assert data.distance == pytest.approx(368409.68, abs=0.5)


def test_lunar_longitude_meeus_47a():
    nutation = lunar_position(julian_centuries(JDE_47A)).nutation
    assert lunar_longitude(JDE_47A, nutation) == pytest.approx(133.167265, abs=0.001)


def test_moon_position_hamburg():
    hamburg = GeoLocation(53 + 33 / 60, 10.0, zone="Europe/Berlin")
    position = MoonPosition.at(_moment("Europe/Berlin", 2017, 6, 15, 7, 30), hamburg)
    assert position.azimuth == pytest.approx(207.622, abs=0.02)
    assert position.elevation == pytest.approx(19.343, abs=0.02)


def test_moon_position_shanghai():
    shanghai = GeoLocation(31 + 14 / 60, 121 + 28 / 60, zone="Asia/Shanghai")
    position = MoonPosition.at(_moment("Asia/Shanghai", 2017, 12, 13, 8, 10), shanghai)
    assert position.right_ascension == pytest.approx(202.87178, abs=0.005)
    assert position.declination == pytest.approx(-4.55167, abs=0.005)
    assert position.azimuth == pytest.approx(185.055, abs=0.02)
    assert position.elevation == pytest.approx(53.189, abs=0.02)
    assert position.distance == pytest.approx(394687.49, abs=1.0)


@pytest.mark.parametrize(
    "fields, azimuth, elevation",
    [
        ((2018, 1, 1, 0, 30), 226.808, 61.234),
        ((2018, 1, 1, 5, 20), 285.615, 11.418),
        ((2018, 1, 1, 16, 50), 65.706, 1.971),
        ((2018, 1, 1, 21, 0), 105.119, 46.049),
    ],
)
def test_moon_position_new_york(fields, azimuth, elevation):
    new_york = GeoLocation(40 + 43 / 60, -74.0, zone="America/New_York")
    position = MoonPosition.at(_moment("America/New_York", *fields), new_york)
    assert position.azimuth == pytest.approx(azimuth, abs=0.02)
    assert position.elevation == pytest.approx(elevation, abs=0.02)


def test_apogee_meeus_50a():
    apogee = next_apogee_after(_utc(1988, 10, 1))
    assert abs(apogee.posix - _utc(1988, 10, 7, 20, 29).posix) <= 60


def test_perigee_january_2019():
    perigee = next_perigee_after(_utc(2019, 1, 1))
    assert abs(perigee.posix - _utc(2019, 1, 21, 19, 57).posix) <= 120


def test_anomalistic_months_loop_is_stable():
    moment = _utc(1988, 7, 1)
    for _ in range(4):
        moment = next_apogee_after(moment)
    assert abs(moment.posix - _utc(1988, 10, 7, 20, 29).posix) <= 60


def test_apsides_alternate_forwards():
    start = _utc(2024, 1, 1)
    apogee = next_apogee_after(start)
    perigee = next_perigee_after(start)
    assert apogee.posix > start.posix
    assert perigee.posix > start.posix
    # half an anomalistic month apart
    assert 10 < abs(apogee.posix - perigee.posix) / 86400 < 18
