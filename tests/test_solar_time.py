from __future__ import annotations

import math
from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from almanac.calculators import CC, MEEUS, NOAA, SIMPLE, Calculator
from almanac.errors import UnsupportedFeatureError
from almanac.location import GeoLocation
from almanac.solar_time import SolarTime, Twilight, apparent_solar_time, equation_of_time, mean_solar_time
from almanac.timescale import TimeValue

SHANGHAI = GeoLocation(31 + 14 / 60, 121 + 28 / 60)
LAPLAND = GeoLocation(70.0, 28.0)
SVALBARD = GeoLocation(78 + 13 / 60, 15 + 38 / 60)


class DeclinationlessCalculator(Calculator):
    name = "NO-DECLINATION"

    def sunrise(self, day, latitude, longitude, zenith):
        return None

    def sunset(self, day, latitude, longitude, zenith):
        return None

    def equation_of_time(self, jde):
        return 0.0

    def declination(self, jde):
        return math.nan


def _local(zone: str, *fields: int) -> float:
    return datetime(*fields, tzinfo=ZoneInfo(zone)).timestamp()


def _offset(hours: int, *fields: int) -> float:
    return (datetime(*fields, tzinfo=UTC) - timedelta(hours=hours)).timestamp()


@pytest.mark.parametrize(
    "calculator, event, expected, tolerance",
    [
        (NOAA, "sunrise", (1990, 6, 25, 5, 26, 32), 5),
        (NOAA, "sunset", (1990, 6, 25, 20, 32, 56), 5),
        (SIMPLE, "sunrise", (1990, 6, 25, 5, 26), 60),
        (SIMPLE, "sunset", (1990, 6, 25, 20, 33), 60),
    ],
)
def test_new_york(calculator, event, expected, tolerance):
    solar = SolarTime(GeoLocation(40.9, -74.3), calculator)
    moment = getattr(solar, event)(date(1990, 6, 25))
    assert abs(moment.posix - _local("America/New_York", *expected)) <= tolerance


def test_new_york_noon():
    solar = SolarTime(GeoLocation(40.9, -74.3), NOAA)
    noon = solar.transit_at_noon(date(1990, 6, 25))
    assert abs(noon.posix - _local("America/New_York", 1990, 6, 25, 12, 59, 47)) <= 5


def test_atlanta():
    atlanta = GeoLocation(33.766667, -84.416667)
    day = date(2009, 9, 6)
    noaa = SolarTime(atlanta, NOAA)
    assert abs(noaa.sunrise(day).posix - _local("America/New_York", 2009, 9, 6, 7, 14, 56)) <= 5
    assert abs(noaa.sunset(day).posix - _local("America/New_York", 2009, 9, 6, 19, 56, 19)) <= 5
    simple = SolarTime(atlanta, SIMPLE)
    assert abs(simple.sunrise(day).posix - _local("America/New_York", 2009, 9, 6, 7, 14)) <= 60
    assert abs(simple.sunset(day).posix - _local("America/New_York", 2009, 9, 6, 19, 56)) <= 60
    meeus = SolarTime(atlanta, MEEUS)
    assert abs(meeus.sunrise(day).posix - _local("America/New_York", 2009, 9, 6, 7, 15)) <= 60


def test_germany():
    solar = SolarTime(GeoLocation(50.93311, 11.58336), NOAA)
    day = date(2014, 6, 21)
    zone = "Europe/Berlin"
    assert abs(solar.transit_at_midnight(day).posix - _local(zone, 2014, 6, 21, 1, 15, 19)) <= 5
    assert abs(solar.sunrise(day).posix - _local(zone, 2014, 6, 21, 4, 59, 27)) <= 5
    assert abs(solar.transit_at_noon(day).posix - _local(zone, 2014, 6, 21, 13, 15, 26)) <= 5
    assert abs(solar.sunset(day).posix - _local(zone, 2014, 6, 21, 21, 31, 25)) <= 5


@pytest.mark.parametrize("calculator", [SIMPLE, NOAA, CC, MEEUS])
def test_sydney_agrees_across_calculators(calculator):
    sunrise = SolarTime(GeoLocation(-33.85, 151.2), calculator).sunrise(date(2017, 1, 1))
    assert abs(sunrise.posix - _offset(11, 2017, 1, 1, 5, 48)) < 60


def test_kilimanjaro_summit_and_sea_level():
    day = date(2017, 12, 22)
    latitude = -(3 + 4 / 60)
    longitude = 37 + 21 / 60 + 33 / 3600
    summit = SolarTime(GeoLocation(latitude, longitude, 5895), MEEUS)
    assert abs(summit.sunrise(day).posix - _offset(3, 2017, 12, 22, 6, 10, 35)) <= 5
    assert abs(summit.sunset(day).posix - _offset(3, 2017, 12, 22, 18, 47, 47)) <= 5
    assert summit.sunshine(day, "Africa/Dar_es_Salaam").length == pytest.approx(12 * 3600 + 37 * 60 + 12, abs=10)

    sea_level = SolarTime(GeoLocation(latitude, longitude, 0), NOAA)
    assert abs(sea_level.sunrise(day).posix - _offset(3, 2017, 12, 22, 6, 20, 13)) <= 5
    assert abs(sea_level.sunset(day).posix - _offset(3, 2017, 12, 22, 18, 38, 9)) <= 5
    assert sea_level.sunshine(day).length == pytest.approx(12 * 3600 + 17 * 60 + 56, abs=10)


def test_altitude_is_ignored_by_noaa():
    day = date(2017, 12, 22)
    summit = SolarTime(GeoLocation(-3.0667, 37.3592, 5895), NOAA)
    sea_level = SolarTime(GeoLocation(-3.0667, 37.3592, 0), NOAA)
    assert summit.sunrise(day).value == sea_level.sunrise(day).value


def test_highest_elevation():
    solar = SolarTime(GeoLocation(40.0, -105.0), NOAA)
    assert math.floor(solar.highest_elevation(date(2010, 6, 21)) * 100) / 100 == 73.43


def test_lapland_polar_night():
    solar = SolarTime(LAPLAND, NOAA)
    day = date(2014, 1, 16)
    assert solar.sunrise(day) is None
    assert solar.sunset(day) is None
    assert solar.is_polar_night(day)
    assert not solar.is_midnight_sun(day)
    sunshine = solar.sunshine(day)
    assert sunshine.is_absent
    assert sunshine.length == 0
    assert sunshine.start_local() is None


def test_lapland_first_sunrise():
    solar = SolarTime(LAPLAND, NOAA)
    day = date(2014, 1, 17)
    assert abs(solar.sunrise(day).posix - _offset(2, 2014, 1, 17, 11, 51, 58)) <= 5
    assert abs(solar.sunset(day).posix - _offset(2, 2014, 1, 17, 12, 44, 56)) <= 5
    assert not solar.is_polar_night(day)


def test_lapland_sunshine_runs_past_midnight():
    solar = SolarTime(LAPLAND, NOAA)
    day = date(2014, 5, 15)
    sunrise = solar.sunrise(day)
    sunset = solar.sunset(day)
    assert abs(sunrise.posix - _offset(3, 2014, 5, 15, 1, 51, 3)) <= 5
    assert abs(sunset.posix - _offset(3, 2014, 5, 16, 0, 34, 4)) <= 5

    sunshine = solar.sunshine(day, "Etc/GMT-3")
    assert sunshine.start.value == sunrise.value
    assert sunshine.end.value == sunset.value
    assert sunshine.length == pytest.approx(81781, abs=10)
    assert not sunshine.is_absent
    assert sunshine.is_present(sunrise)
    assert not sunshine.is_present(sunset)
    assert sunshine.start_local().utcoffset() == timedelta(hours=3)
    assert sunshine.end_local().date() == date(2014, 5, 16)


def test_lapland_midnight_sun():
    solar = SolarTime(LAPLAND, NOAA)
    day = date(2014, 5, 17)
    assert solar.sunrise(day) is None
    assert solar.sunset(day) is None
    assert solar.is_midnight_sun(day)
    assert not solar.is_polar_night(day)
    sunshine = solar.sunshine(day, "Europe/Helsinki")
    assert sunshine.length == 86400
    assert sunshine.start_local() == datetime(2014, 5, 17, tzinfo=ZoneInfo("Europe/Helsinki"))


def test_polar_checks_need_polar_latitude():
    solar = SolarTime(GeoLocation(60.0, 25.0), NOAA)
    assert not solar.is_polar_night(date(2014, 12, 21))
    assert not solar.is_midnight_sun(date(2014, 6, 21))


def test_samoa_local_mean_time():
    apia = GeoLocation(-(13 + 50 / 60), -(171 + 45 / 60))
    zone = "Pacific/Apia"
    solar = SolarTime(apia)
    assert abs(solar.sunrise(date(2011, 12, 29)).posix - _local(zone, 2011, 12, 29, 7, 1, 6)) <= 5
    assert abs(solar.sunrise(date(2011, 12, 31)).posix - _local(zone, 2012, 1, 1, 7, 2, 13)) <= 5


def test_samoa_observer_zone():
    zone = "Pacific/Apia"
    apia = GeoLocation(-(13 + 50 / 60), -(171 + 45 / 60), zone=zone)
    solar = SolarTime(apia)
    assert abs(solar.sunrise(date(2011, 12, 29)).posix - _local(zone, 2011, 12, 29, 7, 1, 6)) <= 5
    assert abs(solar.sunrise(date(2011, 12, 31)).posix - _local(zone, 2011, 12, 31, 7, 1, 39)) <= 5
    assert abs(solar.sunrise(date(2012, 1, 1)).posix - _local(zone, 2012, 1, 1, 7, 2, 13)) <= 5


@pytest.mark.parametrize("zone", [None, "Arctic/Longyearbyen"])
def test_longyearbyen_has_two_sunsets(zone):
    location = GeoLocation(78 + 13 / 60, 15 + 38 / 60, zone=zone)
    solar = SolarTime(location)
    day = date(2020, 8, 25)
    tz = "Arctic/Longyearbyen"
    # references are truncated to the minute
    assert -30 <= solar.sunset(day - timedelta(days=1)).posix - _local(tz, 2020, 8, 25, 0, 10) < 90
    assert -30 <= solar.sunrise(day).posix - _local(tz, 2020, 8, 25, 1, 50) < 90
    assert -30 <= solar.sunset(day).posix - _local(tz, 2020, 8, 25, 23, 45) < 90


def test_twilight_ordering():
    solar = SolarTime(GeoLocation(53.55, 10.0))
    day = date(2024, 3, 20)
    darkest_first = [Twilight.ASTRONOMICAL, Twilight.NAUTICAL, Twilight.CIVIL, Twilight.BLUE_HOUR]
    mornings = [solar.sunrise(day, twilight) for twilight in darkest_first]
    evenings = [solar.sunset(day, twilight) for twilight in reversed(darkest_first)]
    events = mornings + [solar.sunrise(day), solar.transit_at_noon(day), solar.sunset(day)] + evenings
    values = [event.value for event in events]
    assert values == sorted(values)
    assert len(set(values)) == len(values)


def test_twilight_angles_accept_strings():
    solar = SolarTime(GeoLocation(53.55, 10.0))
    assert solar.zenith_angle("civil") == pytest.approx(96.0)
    assert Twilight.ASTRONOMICAL.angle == 18.0


def test_sunrise_and_sunset_are_symmetric_around_noon():
    solar = SolarTime(GeoLocation(0.0, 0.0), NOAA)
    day = date(2024, 3, 20)
    noon = solar.transit_at_noon(day).posix
    assert (noon - solar.sunrise(day).posix) == pytest.approx(solar.sunset(day).posix - noon, abs=30)


@pytest.mark.parametrize(
    "month, expected",
    [(1, -1239), (2, -1301), (3, -587), (4, 208), (5, 303), (6, -271),
     (7, -654), (8, -203), (9, 839), (10, 1599), (11, 1294), (12, -19)],
)
def test_equation_of_time(month, expected):
    # local mean time at 98.583 degrees west
    moment = TimeValue.from_posix(datetime(2017, month, 25, 6, 26, 14, tzinfo=UTC).timestamp() + 98.583 * 240)
    assert round(equation_of_time(moment) / 60 * 100) == pytest.approx(expected, abs=3)


def test_solar_time_of_day():
    moment = TimeValue.from_posix(datetime(2024, 11, 3, 12, tzinfo=UTC).timestamp())
    mean = mean_solar_time(moment, 15.0 * 240)
    assert mean.tzinfo is None
    assert abs((mean - datetime(2024, 11, 3, 13)).total_seconds()) < 2
    apparent = apparent_solar_time(moment, 15.0 * 240)
    eot = equation_of_time(moment)
    assert (apparent - mean).total_seconds() == pytest.approx(eot, abs=1e-3)
    assert 16 * 60 < eot < 17 * 60


def test_shadow_in_shanghai():
    solar = SolarTime(SHANGHAI)
    day = date(2017, 12, 13)
    moment = solar.time_of_shadow_before_noon(day, 1.8, 6.87)
    assert abs(moment.posix - _local("Asia/Shanghai", 2017, 12, 13, 8, 10)) < 30
    assert solar.time_of_shadow_before_noon(day, 1.8, 0.5) is None


def test_no_shadow_at_zenith():
    lake_nasser = SolarTime(GeoLocation(23 + 26 / 60 + 7.2 / 3600, 25.0))
    day = date(2018, 6, 21)
    noon = lake_nasser.transit_at_noon(day)
    assert abs(lake_nasser.time_of_shadow_before_noon(day, 1.8, 0.0).posix - noon.posix) < 30
    assert abs(lake_nasser.time_of_shadow_after_noon(day, 1.8, 0.0).posix - noon.posix) < 30


@pytest.mark.parametrize("height, length", [(math.inf, 10.0), (0.0, 10.0), (1.8, -10.0), (1.8, math.nan)])
def test_invalid_shadow_arguments(height, length):
    with pytest.raises(ValueError):
        SolarTime(SHANGHAI).time_of_shadow_before_noon(date(2017, 12, 13), height, length)


def test_shadow_in_polar_region():
    with pytest.raises(UnsupportedFeatureError, match="polar regions"):
        SolarTime(SVALBARD).time_of_shadow_before_noon(date(2020, 8, 25), 2.0, 100.0)


def test_missing_declination_is_reported():
    solar = SolarTime(GeoLocation(80.0, 0.0), DeclinationlessCalculator())
    with pytest.raises(UnsupportedFeatureError, match="NO-DECLINATION"):
        solar.highest_elevation(date(2024, 1, 1))
    with pytest.raises(UnsupportedFeatureError):
        solar.sunshine(date(2024, 1, 1))


def test_unknown_calculator_name():
    with pytest.raises(ValueError, match="Unknown calculator"):
        SolarTime(SHANGHAI, "HORIZONS")


@pytest.mark.parametrize("calculator", [SIMPLE, NOAA])
def test_hamburg_midsummer(calculator):
    # timeanddate.com, Hamburg 2016-06-21: sunrise 04:51, sunset 21:53 CEST
    solar = SolarTime(GeoLocation(53.55, 10.0), calculator)
    day = date(2016, 6, 21)
    tz = "Europe/Berlin"
    assert abs(solar.sunrise(day).posix - _local(tz, 2016, 6, 21, 4, 51)) <= 120
    assert abs(solar.sunset(day).posix - _local(tz, 2016, 6, 21, 21, 53)) <= 120


@pytest.mark.parametrize("calculator", [NOAA, MEEUS])
def test_no_sunrise_at_80_degrees_north_in_winter(calculator):
    solar = SolarTime(GeoLocation(80.0, 0.0), calculator)
    day = date(2016, 12, 21)
    assert solar.sunrise(day) is None
    assert solar.sunset(day) is None
    assert solar.is_polar_night(day)
    assert not solar.is_midnight_sun(day)


@pytest.mark.parametrize("month", range(1, 13))
def test_equation_of_time_repeats_after_a_tropical_year(month):
    moment = TimeValue.from_calendar(2021, month, 15)
    later = moment.plus_days(365.242189)
    assert abs(equation_of_time(later, MEEUS) - equation_of_time(moment, MEEUS)) < 1.0


class FixedDeclinationCalculator(DeclinationlessCalculator):
    name = "FIXED-DECLINATION"

    def __init__(self, declination):
        self._declination = declination

    def declination(self, jde):
        return self._declination


@pytest.mark.parametrize("latitude", [0.1, 7.77, 19.19, 23.44, 33.3, 45.0, 51.48, 60.0])
def test_highest_elevation_with_sun_in_zenith(latitude):
    solar = SolarTime(GeoLocation(latitude, 0.0), FixedDeclinationCalculator(latitude))
    assert solar.highest_elevation(date(2024, 6, 1)) == pytest.approx(90.0, abs=1e-5)
