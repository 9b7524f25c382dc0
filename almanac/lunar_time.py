"""Moonrise and moonset for an observer on a local calendar date."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional

from .horizon import gmst, horizontal_parallax, refraction_of_std_atmosphere, spheroid_dip
from .location import GeoLocation, load_zone
from .moon import lunar_position
from .solver import scan_crossings
from .timescale import MJD_ZERO, TimeValue, delta_t, julian_centuries

__all__ = ["LunarTime", "Moonlight"]

# share of the horizontal parallax left after subtracting the apparent lunar radius
PARALLAX_FACTOR = 0.7275


def _local_date(moment: TimeValue, zone: str) -> date:
    return moment.to_datetime().astimezone(load_zone(zone)).date()


@dataclass(frozen=True)
class Moonlight:
    """Moonrise, moonset and visibility of the moon within one local day.

    ``start`` and ``end`` bound the day in the observer zone; ``above``
    tells whether the moon was above the horizon at the start of the day.
    """

    day: date
    zone: str
    start: TimeValue
    end: TimeValue
    moonrise: Optional[TimeValue]
    moonset: Optional[TimeValue]
    above: bool

    def moonrise_local(self) -> Optional[datetime]:
        return None if self.moonrise is None else self.moonrise.to_datetime().astimezone(load_zone(self.zone))

    def moonset_local(self) -> Optional[datetime]:
        return None if self.moonset is None else self.moonset.to_datetime().astimezone(load_zone(self.zone))

    def is_present(self, moment: TimeValue) -> bool:
        """Is the moon above the horizon at *moment*? Always false outside the day."""

        posix = moment.posix
        if posix < self.start.posix or posix >= self.end.posix:
            return False
        rise = None if self.moonrise is None else self.moonrise.posix
        set_ = None if self.moonset is None else self.moonset.posix
        if rise is None and set_ is None:
            return self.above
        if rise is None:
            return posix < set_
        if set_ is None:
            return posix >= rise
        if rise < set_:
            return rise <= posix < set_
        return posix < set_ or posix >= rise

    @property
    def is_present_all_day(self) -> bool:
        return self.above and self.moonrise is None and self.moonset is None

    @property
    def is_absent(self) -> bool:
        return self.length == 0

    @property
    def length(self) -> int:
        """Seconds of moonlight within the day."""

        start = self.start.posix
        end = self.end.posix
        if self.moonrise is None and self.moonset is None:
            return round(end - start) if self.above else 0
        if self.moonrise is None:
            return round(self.moonset.posix - start)
        if self.moonset is None:
            return round(end - self.moonrise.posix)
        rise = self.moonrise.posix
        set_ = self.moonset.posix
        if rise < set_:
            return round(set_ - rise)
        return round((set_ - start) + (end - rise))


class LunarTime:
    """Moonrise/moonset calculator for a location with an observer zone.

    The local day is scanned in two-hour windows; three samples of the
    topocentric lunar height per window are fitted by a parabola.
    """

    def __init__(self, location: GeoLocation) -> None:
        if location.zone is None:
            raise ValueError("Lunar events require an observer zone")
        self.location = location

    def __repr__(self) -> str:
        return f"LunarTime(location={self.location!r})"

    def on(self, day: date) -> Moonlight:
        zone = self.location.zone
        tz = load_zone(zone)
        start = TimeValue.from_datetime(datetime.combine(day, time.min, tzinfo=tz))
        end = TimeValue.from_datetime(datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz))

        mjd0 = start.to_mean_solar().mjd
        lon = math.radians(self.location.longitude)
        lat = math.radians(self.location.latitude)
        sin_lat = math.sin(lat)
        cos_lat = math.cos(lat)
        geodetic = spheroid_dip(self.location.latitude, self.location.altitude)
        refraction = refraction_of_std_atmosphere(self.location.altitude) / 60
        dt = delta_t(TimeValue.from_calendar(day.year, day.month, day.day).value) / 86400

        def height(hour: float) -> float:
            mjd = mjd0 + hour / 24.0
            data = lunar_position(julian_centuries(mjd + MJD_ZERO + dt))
            nutation = data.nutation * math.cos(math.radians(data.obliquity))
            tau = gmst(mjd) + math.radians(nutation) + lon - math.radians(data.right_ascension)
            decl = math.radians(data.declination)
            sin_alt = sin_lat * math.sin(decl) + cos_lat * math.cos(decl) * math.cos(tau)
            correction = PARALLAX_FACTOR * horizontal_parallax(data.distance) - refraction - geodetic
            return sin_alt - math.sin(math.radians(correction))

        rising_hour, setting_hour, above = scan_crossings(height)

        moonrise = self._event(start, rising_hour, day, zone)
        moonset = self._event(start, setting_hour, day, zone)
        return Moonlight(day, zone, start, end, moonrise, moonset, above)

    @staticmethod
    def _event(start: TimeValue, hour: Optional[float], day: date, zone: str) -> Optional[TimeValue]:
        if hour is None:
            return None
        moment = start.plus_seconds(hour * 3600).truncated(1)
        # crossings of a 25 hour scan may fall on the next day
        if _local_date(moment, zone) != day:
            return None
        return moment
