"""Solar events at a location: sunrise, sunset, twilight, noon, sunshine and shadows."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Dict, Optional, Union
from zoneinfo import ZoneInfo

from .calculators import DECLINATION, Calculator, CalculatorRegistry, default_registry, from_local_event
from .errors import UnsupportedFeatureError
from .location import GeoLocation, load_zone
from .solver import bisect_elevation
from .sun import SunPosition
from .timescale import TimeValue

__all__ = [
    "SolarTime",
    "Sunshine",
    "Twilight",
    "apparent_solar_time",
    "equation_of_time",
    "mean_solar_time",
]

ARC_MINUTE = 1.0 / 60
POLAR_LATITUDE = 66.0


class Twilight(str, Enum):
    """Depression of the sun below the horizon that ends or starts a twilight phase."""

    BLUE_HOUR = "blue_hour"
    CIVIL = "civil"
    NAUTICAL = "nautical"
    ASTRONOMICAL = "astronomical"

    @property
    def angle(self) -> float:
        return TWILIGHT_ANGLES[self]


TWILIGHT_ANGLES: Dict[Twilight, float] = {
    Twilight.BLUE_HOUR: 4.0,
    Twilight.CIVIL: 6.0,
    Twilight.NAUTICAL: 12.0,
    Twilight.ASTRONOMICAL: 18.0,
}

CalculatorSpec = Union[str, Calculator, None]


def _resolve(calculator: CalculatorSpec, registry: Optional[CalculatorRegistry] = None) -> Calculator:
    if isinstance(calculator, Calculator):
        return calculator
    return (registry or default_registry()).get(calculator)


def _start_of_day(day: date, zone: ZoneInfo) -> TimeValue:
    return TimeValue.from_datetime(datetime.combine(day, time.min, tzinfo=zone))


def equation_of_time(moment: TimeValue, calculator: CalculatorSpec = None) -> float:
    """Difference between apparent and mean solar time in seconds.

    Parameters
    ----------
    moment:
        Instant in any time scale.
    calculator:
        Calculator instance or registered name; ``None`` selects the default.

    Raises
    ------
    ValueError
        If the calculator name is unknown.
    """

    return _resolve(calculator).equation_of_time(moment.to_ephemeris().value)


def mean_solar_time(moment: TimeValue, offset: float) -> datetime:
    """Local mean solar time at an offset in seconds east of Greenwich (``longitude * 240``)."""

    ut = moment.to_mean_solar()
    return datetime(1970, 1, 1) + timedelta(seconds=round(ut.posix + offset, 3))


def apparent_solar_time(moment: TimeValue, offset: float, calculator: CalculatorSpec = None) -> datetime:
    """Sundial time at an offset in seconds east of Greenwich."""

    eot = equation_of_time(moment, calculator)
    return mean_solar_time(moment, offset) + timedelta(seconds=round(eot, 3))


@dataclass(frozen=True)
class Sunshine:
    """Interval of sunshine within one calendar day.

    ``start`` and ``end`` are ``None`` when the sun stays below the horizon
    all day. Without a sunrise the interval starts with the day; without a
    sunset it runs to the start of the next day in ``zone``.
    """

    start: Optional[TimeValue]
    end: Optional[TimeValue]
    zone: str

    @classmethod
    def of(
        cls,
        day: date,
        sunrise: Optional[TimeValue],
        sunset: Optional[TimeValue],
        zone: str,
        absent: bool,
    ) -> "Sunshine":
        if absent:
            return cls(None, None, zone)
        tz = load_zone(zone)
        start = sunrise if sunrise is not None else _start_of_day(day, tz)
        end = sunset if sunset is not None else _start_of_day(day + timedelta(days=1), tz)
        return cls(start, end, zone)

    @property
    def is_absent(self) -> bool:
        return self.start is None or self.length == 0

    @property
    def length(self) -> int:
        """Duration of sunshine in seconds."""

        if self.start is None or self.end is None:
            return 0
        return max(0, round(self.end.posix - self.start.posix))

    def is_present(self, moment: TimeValue) -> bool:
        if self.start is None or self.end is None:
            return False
        posix = moment.posix
        return self.start.posix <= posix < self.end.posix

    def start_local(self) -> Optional[datetime]:
        return None if self.start is None else self.start.to_datetime().astimezone(load_zone(self.zone))

    def end_local(self) -> Optional[datetime]:
        return None if self.end is None else self.end.to_datetime().astimezone(load_zone(self.zone))


class SolarTime:
    """Solar events for one observer, computed with one calculator.

    Calendar dates are interpreted as local dates of the observer. Near the
    date line, when the location carries an observer zone, dates are mapped
    to the local mean time of the longitude before calculation.
    """

    def __init__(
        self,
        location: GeoLocation,
        calculator: CalculatorSpec = None,
        registry: Optional[CalculatorRegistry] = None,
    ) -> None:
        self.location = location
        self.calculator = _resolve(calculator, registry)

    def __repr__(self) -> str:
        return f"SolarTime(location={self.location!r}, calculator={self.calculator.name!r})"

    # zenith angles

    def geodetic_angle(self) -> float:
        return self.calculator.geodetic_angle(self.location.latitude, self.location.altitude)

    def zenith_angle(self, twilight: Optional[Twilight] = None) -> float:
        if twilight is None:
            return self.calculator.zenith_angle(self.location.latitude, self.location.altitude)
        return 90.0 + self.geodetic_angle() + Twilight(twilight).angle

    # events

    def sunrise(self, day: date, twilight: Optional[Twilight] = None) -> Optional[TimeValue]:
        """Sunrise, or the start of the given twilight, on *day*; ``None`` if it does not happen."""

        loc = self.location
        return self.calculator.sunrise(self._to_lmt(day), loc.latitude, loc.longitude, self.zenith_angle(twilight))

    def sunset(self, day: date, twilight: Optional[Twilight] = None) -> Optional[TimeValue]:
        """Sunset, or the end of the given twilight, on *day*; ``None`` if it does not happen."""

        loc = self.location
        return self.calculator.sunset(self._to_lmt(day), loc.latitude, loc.longitude, self.zenith_angle(twilight))

    def transit_at_noon(self, day: date) -> TimeValue:
        """Instant of the highest position of the sun (sundial noon)."""

        return self._transit(self._to_lmt(day), 12)

    def transit_at_midnight(self, day: date) -> TimeValue:
        return self._transit(self._to_lmt(day), 0)

    def sunshine(self, day: date, zone: Optional[str] = None) -> Sunshine:
        """Sunshine interval of *day*; local times of the result refer to *zone*.

        *zone* defaults to the observer zone, then to UTC. It does not change
        the interpretation of *day*.

        Raises
        ------
        UnsupportedFeatureError
            If the calculator has no solar declination and the sun neither
            rises nor sets.
        """

        if zone is None:
            zone = self.location.zone or "UTC"
        d = self._to_lmt(day)
        start, end = self._rise_and_set(d)
        absent = False
        if start is None and end is None:
            absent = self._highest_elevation(d) < 90 - self.zenith_angle()
        return Sunshine.of(d, start, end, zone, absent)

    def is_polar_night(self, day: date) -> bool:
        elevation = self._elevation_without_events(day)
        return elevation is not None and elevation < 90 - self.zenith_angle()

    def is_midnight_sun(self, day: date) -> bool:
        elevation = self._elevation_without_events(day)
        return elevation is not None and elevation > 90 - self.zenith_angle()

    def highest_elevation(self, day: date) -> float:
        """Elevation of the sun at noon in degrees, ignoring refraction.

        Raises
        ------
        UnsupportedFeatureError
            If the calculator does not provide the solar declination.
        """

        return self._highest_elevation(self._to_lmt(day))

    # shadows

    def time_of_shadow_before_noon(
        self, day: date, object_height: float, shadow_length: float
    ) -> Optional[TimeValue]:
        """Morning instant when a vertical object casts a shadow of the given length.

        Returns ``None`` if the sun never climbs high enough for the shadow.

        Raises
        ------
        ValueError
            If the height is not finite and positive or the length is not
            finite and non-negative.
        UnsupportedFeatureError
            For polar regions (``|latitude| > 66``).
        """

        self._check_shadow(object_height, shadow_length)
        return self._time_of_shadow(day, False, object_height, shadow_length)

    def time_of_shadow_after_noon(
        self, day: date, object_height: float, shadow_length: float
    ) -> Optional[TimeValue]:
        """Afternoon counterpart of :meth:`time_of_shadow_before_noon`."""

        self._check_shadow(object_height, shadow_length)
        return self._time_of_shadow(day, True, object_height, shadow_length)

    # internals

    def _transit(self, day: date, hour: int) -> TimeValue:
        moment = from_local_event(day, hour, self.location.longitude, self.calculator)
        return moment.truncated(self.calculator.precision_seconds)

    def _rise_and_set(self, day: date):
        loc = self.location
        zenith = self.zenith_angle()
        start = self.calculator.sunrise(day, loc.latitude, loc.longitude, zenith)
        end = self.calculator.sunset(day, loc.latitude, loc.longitude, zenith)
        return start, end

    def _elevation_without_events(self, day: date) -> Optional[float]:
        if abs(self.location.latitude) < POLAR_LATITUDE:
            return None
        d = self._to_lmt(day)
        start, end = self._rise_and_set(d)
        if start is not None or end is not None:
            return None
        return self._highest_elevation(d)

    def _highest_elevation(self, day: date) -> float:
        noon = self._transit(day, 12)
        declination = self.calculator.feature(noon.to_ephemeris().value, DECLINATION)
        if math.isnan(declination):
            raise UnsupportedFeatureError(f"Solar declination not supported by: {self.calculator.name}")
        dec = math.radians(declination)
        lat = math.radians(self.location.latitude)
        # hour angle is zero at noon
        sin_elevation = math.sin(lat) * math.sin(dec) + math.cos(lat) * math.cos(dec)
        return math.degrees(math.asin(max(-1.0, min(1.0, sin_elevation))))

    def _check_shadow(self, object_height: float, shadow_length: float) -> None:
        if not math.isfinite(object_height) or object_height <= 0.0:
            raise ValueError("Object height must be finite and positive.")
        if not math.isfinite(shadow_length) or shadow_length < 0.0:
            raise ValueError("Length of shadow must be finite and not negative.")
        if abs(self.location.latitude) > POLAR_LATITUDE:
            raise UnsupportedFeatureError("Cannot calculate time of shadow for polar regions.")

    def _time_of_shadow(
        self, day: date, after_noon: bool, object_height: float, shadow_length: float
    ) -> Optional[TimeValue]:
        d = self._to_lmt(day)
        start, end = self._rise_and_set(d)
        riseset = end if after_noon else start
        if riseset is None:
            return None
        noon = self._transit(d, 12)
        max_elevation = SunPosition.at(noon, self.location).elevation
        if max_elevation <= ARC_MINUTE:
            return riseset

        elevation = 90.0 if shadow_length == 0.0 else math.degrees(math.atan(object_height / shadow_length))
        if elevation > max_elevation + ARC_MINUTE:
            return None

        posix = bisect_elevation(
            lambda seconds: SunPosition.at(TimeValue.from_posix(seconds), self.location).elevation,
            elevation,
            round(riseset.posix),
            round(noon.posix),
        )
        return TimeValue.from_posix(posix)

    def _to_lmt(self, day: date) -> date:
        zone = self.location.observer_zone
        if zone is None or abs(self.location.longitude) < 150.0:
            return day
        noon = datetime.combine(day, time(12), tzinfo=zone)
        lmt = timezone(timedelta(seconds=self.location.longitude * 240))
        return noon.astimezone(lmt).date()
