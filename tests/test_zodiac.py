from __future__ import annotations

from datetime import UTC, datetime

import pytest

from almanac.moon import lunar_longitude
from almanac.seasons import AstronomicalSeason
from almanac.solver import mod360
from almanac.sun import apparent_solar_longitude, nutations
from almanac.timescale import TimeValue
from almanac.zodiac import Body, Direction, Zodiac, ZodiacEvent, ZodiacKind, precession


def _utc(*fields: int) -> TimeValue:
    return TimeValue.from_datetime(datetime(*fields, tzinfo=UTC))


def test_constellation_boundaries():
    assert Zodiac.ARIES.start_longitude == 29.09
    assert Zodiac.ARIES.end_longitude == Zodiac.TAURUS.start_longitude
    assert Zodiac.PISCES.next() is Zodiac.ARIES
    assert Zodiac.SCORPIUS.next() is Zodiac.OPHIUCHUS
    assert len(list(Zodiac)) == 13


def test_constellation_of_longitude():
    assert Zodiac.of_constellation(10.0) is Zodiac.PISCES
    assert Zodiac.of_constellation(355.0) is Zodiac.PISCES
    assert Zodiac.of_constellation(29.09) is Zodiac.ARIES
    assert Zodiac.of_constellation(250.0) is Zodiac.OPHIUCHUS
    assert Zodiac.of_constellation(-80.0) is Zodiac.SAGITTARIUS


def test_signs_skip_ophiuchus():
    assert not Zodiac.OPHIUCHUS.is_sign
    assert Zodiac.SCORPIUS.next_sign() is Zodiac.SAGITTARIUS
    assert Zodiac.ARIES.sign_start() == 0.0
    assert Zodiac.PISCES.sign_start() == 330.0
    assert Zodiac.of_sign(45.0) is Zodiac.TAURUS
    assert Zodiac.of_sign(359.9) is Zodiac.PISCES
    with pytest.raises(ValueError, match="Ophiuchus is not a zodiac sign."):
        Zodiac.OPHIUCHUS.sign_start()


def test_ophiuchus_sign_event_is_rejected():
    with pytest.raises(ValueError, match="Ophiuchus"):
        ZodiacEvent(Body.SUN, Zodiac.OPHIUCHUS, ZodiacKind.SIGN)


def test_event_accepts_plain_strings():
    event = ZodiacEvent("moon", Zodiac.LEO, "sign")
    assert event.body is Body.MOON
    assert event.kind is ZodiacKind.SIGN
    assert event.boundary("exit") == Zodiac.VIRGO.sign_start()


def test_precession_is_zero_at_j2000():
    assert precession(2451545.0) == 0.0
    assert precession(2451545.0 + 36525) == pytest.approx(1.397, abs=0.001)


def test_sun_enters_aries_sign_at_equinox():
    event = ZodiacEvent(Body.SUN, Zodiac.ARIES, ZodiacKind.SIGN)
    entry = event.at_or_after(_utc(2024, 1, 1))
    equinox = AstronomicalSeason.VERNAL_EQUINOX.in_year(2024)
    assert abs(entry.posix - equinox.posix) <= 1


def test_sun_enters_aries_constellation_in_april():
    event = ZodiacEvent(Body.SUN, Zodiac.ARIES)
    entry = event.at_or_after(_utc(2024, 1, 1))
    dt = entry.to_datetime()
    assert (dt.month, dt.day) in ((4, 18), (4, 19))
    jde = entry.to_ephemeris().value
    longitude = apparent_solar_longitude(entry.to_ephemeris().centuries)
    assert mod360(longitude - precession(jde)) == pytest.approx(29.09, abs=1e-3)


def test_exit_equals_entry_of_next_constellation():
    start = _utc(2024, 1, 1)
    leaving = ZodiacEvent(Body.SUN, Zodiac.SCORPIUS).at_or_after(start, Direction.EXIT)
    entering = ZodiacEvent(Body.SUN, Zodiac.OPHIUCHUS).at_or_after(start, Direction.ENTRY)
    assert leaving.value == entering.value


def test_moon_crossing_within_a_month():
    start = _utc(2024, 5, 1)
    entry = ZodiacEvent(Body.MOON, Zodiac.GEMINI, ZodiacKind.SIGN).at_or_after(start)
    assert 0 <= entry.posix - start.posix <= 27.4 * 86400
    jde = entry.to_ephemeris().value
    assert mod360(lunar_longitude(jde, nutations(jde)[0])) == pytest.approx(60.0, abs=0.01)
