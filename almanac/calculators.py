"""Sunrise/sunset calculators and the registry that hands them out by name.

Each calculator is one published algorithm with its own scope and precision.
All methods taking ``jde`` expect a Julian day in ephemeris time (TT).
"""

from __future__ import annotations

import json
import logging
import math
import threading
from abc import ABC, abstractmethod
from datetime import date
from typing import Dict, Iterable, List, Optional

from .config import default_calculator_name
from .horizon import mean_radius_dip, refraction_of_std_atmosphere, spheroid_dip
from .solver import fixed_point
from .sun import apparent_obliquity, apparent_solar_longitude, solar_equatorial
from .timescale import TimeValue, day_of_year, delta_t, epoch_days, julian_centuries

__all__ = [
    "CC",
    "Calculator",
    "CalculatorRegistry",
    "DECLINATION",
    "MEEUS",
    "NOAA",
    "RIGHT_ASCENSION",
    "SIMPLE",
    "SOLAR_LONGITUDE",
    "STD_ZENITH",
    "SUN_RADIUS",
    "default_registry",
    "from_local_event",
]

LOGGER = logging.getLogger(__name__)

SIMPLE = "SIMPLE"
NOAA = "NOAA"
CC = "CC"
MEEUS = "MEEUS"

DECLINATION = "declination"
RIGHT_ASCENSION = "right-ascension"
SOLAR_LONGITUDE = "solar-longitude"

SUN_RADIUS = 16.0  # arc minutes
STD_REFRACTION = 34.0  # arc minutes
STD_ZENITH = 90.0 + (SUN_RADIUS + STD_REFRACTION) / 60.0
SIMPLE_LATITUDE_SCOPE = 65.0  # degrees

_JULIAN_DAY_NUMBER_OF_EPOCH = 2440588  # JDN of 1970-01-01


class Calculator(ABC):
    """Strategy answering when the sun crosses a zenith angle on a given date."""

    name: str = ""
    precision_seconds: int = 1

    @abstractmethod
    def sunrise(self, day: date, latitude: float, longitude: float, zenith: float) -> Optional[TimeValue]:
        """Return the civil instant of sunrise or ``None`` if the sun does not rise."""

    @abstractmethod
    def sunset(self, day: date, latitude: float, longitude: float, zenith: float) -> Optional[TimeValue]:
        """Return the civil instant of sunset or ``None`` if the sun does not set."""

    @abstractmethod
    def equation_of_time(self, jde: float) -> float:
        """Apparent minus mean solar time in seconds."""

    @abstractmethod
    def declination(self, jde: float) -> float:
        """Declination of the sun in degrees."""

    def feature(self, jde: float, name: str) -> float:
        """Auxiliary quantity by name, ``nan`` when this calculator lacks it."""

        if name == DECLINATION:
            return self.declination(jde)
        return math.nan

    def geodetic_angle(self, latitude: float, altitude: float) -> float:
        return 0.0

    def zenith_angle(self, latitude: float, altitude: float) -> float:
        return STD_ZENITH + self.geodetic_angle(latitude, altitude)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


def _equation_of_time(obliquity: float, mean_longitude: float, eccentricity: float, mean_anomaly: float) -> float:
    # Meeus p.185, lower accuracy model
    tan_half = math.tan(math.radians(obliquity / 2))
    y = tan_half * tan_half
    l2 = math.radians(2 * mean_longitude)
    m = math.radians(mean_anomaly)
    sin_m = math.sin(m)
    e = eccentricity
    eot = (
        y * math.sin(l2)
        - 2 * e * sin_m
        + 4 * e * y * sin_m * math.cos(l2)
        - y * y * math.sin(2 * l2) / 2
        - 5 * e * e * math.sin(2 * m) / 4
    )
    return math.degrees(eot) * 240


def _right_ascension(obliquity: float, longitude: float) -> float:
    eps = math.radians(obliquity)
    lam = math.radians(longitude)
    return math.degrees(math.atan2(math.cos(eps) * math.sin(lam), math.cos(lam))) % 360


def _cos_hour_angle(latitude: float, declination_rad: float, zenith: float) -> Optional[float]:
    lat = math.radians(latitude)
    cos_h = (math.cos(math.radians(zenith)) - math.sin(declination_rad) * math.sin(lat)) / (
        math.cos(declination_rad) * math.cos(lat)
    )
    if cos_h > 1.0 or cos_h < -1.0:
        return None
    return cos_h


def from_local_event(day: date, hour: int, longitude: float, calculator: Calculator) -> TimeValue:
    """Instant of a local apparent solar hour on *day* (noon is 12, midnight 0).

    The equation of time is applied in two steps.
    """

    elapsed = epoch_days(day) * 86400 + hour * 3600 - longitude * 240
    m1 = TimeValue.from_posix(elapsed)
    eot = calculator.equation_of_time(m1.to_ephemeris().value)
    m2 = m1.minus_seconds(eot)
    eot = calculator.equation_of_time(m2.to_ephemeris().value)
    return m1.minus_seconds(eot)


class SimpleCalculator(Calculator):
    """Almanac for Computers (US Naval Observatory, 1990).

    Minute precision, intended for latitudes within about 65 degrees. Higher
    latitudes yield undefined results. Altitude is ignored.
    """

    name = SIMPLE
    precision_seconds = 60

    def sunrise(self, day: date, latitude: float, longitude: float, zenith: float) -> Optional[TimeValue]:
        return self._event(day, latitude, longitude, zenith, rise=True)

    def sunset(self, day: date, latitude: float, longitude: float, zenith: float) -> Optional[TimeValue]:
        return self._event(day, latitude, longitude, zenith, rise=False)

    def equation_of_time(self, jde: float) -> float:
        t = self._time0(jde)
        return (
            -7.66 * math.sin(math.radians(0.9856 * t - 3.8)) - 9.78 * math.sin(math.radians(1.9712 * t + 17.96))
        ) * 60

    def declination(self, jde: float) -> float:
        true_longitude = self._true_longitude(self._time0(jde))
        return math.degrees(math.asin(0.39782 * math.sin(math.radians(true_longitude))))

    @staticmethod
    def _time0(jde: float) -> float:
        year, month, dom, fraction = TimeValue.ephemeris(jde).to_civil().to_calendar()
        return day_of_year(year, month, dom) + math.floor(fraction * 86400) / 86400.0

    @staticmethod
    def _adjust(value: float) -> float:
        while value < 0.0:
            value += 360
        while value >= 360.0:
            value -= 360
        return value

    def _true_longitude(self, t0: float) -> float:
        m = 0.9856 * t0 - 3.289
        return self._adjust(m + 1.916 * math.sin(math.radians(m)) + 0.020 * math.sin(2 * math.radians(m)) + 282.634)

    def _event(self, day: date, latitude: float, longitude: float, zenith: float, rise: bool) -> Optional[TimeValue]:
        if abs(latitude) > SIMPLE_LATITUDE_SCOPE:
            LOGGER.warning(
                json.dumps(
                    {"event": "calculator_out_of_scope", "calculator": self.name, "latitude": latitude}
                )
            )
        doy = day.timetuple().tm_yday
        lng_hour = longitude / 15
        t0 = doy + ((6 if rise else 18) - lng_hour) / 24
        true_longitude = self._true_longitude(t0)

        ra = self._adjust(math.degrees(math.atan(0.91764 * math.tan(math.radians(true_longitude)))))
        # same quadrant as the true longitude
        ra = (ra + math.floor(true_longitude / 90) * 90 - math.floor(ra / 90) * 90) / 15

        sin_dec = 0.39782 * math.sin(math.radians(true_longitude))
        cos_h = _cos_hour_angle(latitude, math.asin(sin_dec), zenith)
        if cos_h is None:
            return None

        h = math.degrees(math.acos(cos_h))
        if rise:
            h = 360 - h
        h /= 15

        lmt = h + ra - 0.06571 * t0 - 6.622
        if lmt < 0.0:
            lmt += 24
        elif lmt >= 24.0:
            lmt -= 24
        ut = lmt - lng_hour
        secs = epoch_days(day) * 86400 + math.floor(ut * 3600)
        # fractional seconds are dropped, then rounded half up to full minutes
        return TimeValue.from_posix(math.floor(secs / 60.0 + 0.5) * 60)


class NoaaCalculator(Calculator):
    """Spreadsheet algorithm of the NOAA Earth System Research Laboratory.

    About one minute precision outside polar regions; altitude is ignored.
    """

    name = NOAA

    def sunrise(self, day: date, latitude: float, longitude: float, zenith: float) -> Optional[TimeValue]:
        return self._event(day, latitude, longitude, zenith, rise=True)

    def sunset(self, day: date, latitude: float, longitude: float, zenith: float) -> Optional[TimeValue]:
        return self._event(day, latitude, longitude, zenith, rise=False)

    def equation_of_time(self, jde: float) -> float:
        jct = julian_centuries(jde)
        return _equation_of_time(
            apparent_obliquity(jct), self._mean_longitude(jct), self._eccentricity(jct), self._mean_anomaly(jct)
        )

    def declination(self, jde: float) -> float:
        return math.degrees(self._declination_rad(julian_centuries(jde)))

    def feature(self, jde: float, name: str) -> float:
        if name == RIGHT_ASCENSION:
            jct = julian_centuries(jde)
            return _right_ascension(apparent_obliquity(jct), self._solar_longitude(jct))
        return super().feature(jde, name)

    def _event(self, day: date, latitude: float, longitude: float, zenith: float, rise: bool) -> Optional[TimeValue]:
        noon = from_local_event(day, 12, longitude, self)
        jde = noon.to_ephemeris().value
        h = self._hour_angle(jde, latitude, zenith, rise)
        if h is None:
            return None
        # corrected for the local time of day
        h = self._hour_angle(jde + h / 86400, latitude, zenith, rise)
        if h is None:
            return None
        return noon.plus_seconds(h).truncated(1)

    def _hour_angle(self, jde: float, latitude: float, zenith: float, rise: bool) -> Optional[float]:
        cos_h = _cos_hour_angle(latitude, self._declination_rad(julian_centuries(jde)), zenith)
        if cos_h is None:
            return None
        seconds = math.degrees(math.acos(cos_h)) * 240
        return -seconds if rise else seconds

    @staticmethod
    def _mean_longitude(jct: float) -> float:
        return math.fmod(280.46646 + (36000.76983 + 0.0003032 * jct) * jct, 360)

    @staticmethod
    def _mean_anomaly(jct: float) -> float:
        return 357.52911 + (35999.05029 - 0.0001537 * jct) * jct

    @staticmethod
    def _eccentricity(jct: float) -> float:
        return 0.016708634 - (0.000042037 + 0.0000001267 * jct) * jct

    def _solar_longitude(self, jct: float) -> float:
        m = math.radians(self._mean_anomaly(jct))
        center = (
            math.sin(m) * (1.914602 - (0.004817 + 0.000014 * jct) * jct)
            + math.sin(2 * m) * (0.019993 - 0.000101 * jct)
            + math.sin(3 * m) * 0.000289
        )
        return self._mean_longitude(jct) + center - 0.00569 - 0.00478 * math.sin(math.radians(125.04 - 1934.136 * jct))

    def _declination_rad(self, jct: float) -> float:
        return math.asin(
            math.sin(math.radians(apparent_obliquity(jct))) * math.sin(math.radians(self._solar_longitude(jct)))
        )


class CalendricalCalculator(Calculator):
    """Calendrical Calculations (Reingold/Dershowitz) with an approximate geodetic dip."""

    name = CC

    def sunrise(self, day: date, latitude: float, longitude: float, zenith: float) -> Optional[TimeValue]:
        return self._event(day, latitude, longitude, zenith, rise=True)

    def sunset(self, day: date, latitude: float, longitude: float, zenith: float) -> Optional[TimeValue]:
        return self._event(day, latitude, longitude, zenith, rise=False)

    def equation_of_time(self, jde: float) -> float:
        jct = julian_centuries(jde)
        return _equation_of_time(
            self._obliquity(jct), self._mean_longitude(jct), self._eccentricity(jct), self._mean_anomaly(jct)
        )

    def declination(self, jde: float) -> float:
        return math.degrees(self._declination_rad(julian_centuries(jde)))

    def feature(self, jde: float, name: str) -> float:
        if name == RIGHT_ASCENSION:
            jct = julian_centuries(jde)
            return _right_ascension(self._obliquity(jct), apparent_solar_longitude(jct))
        return super().feature(jde, name)

    def geodetic_angle(self, latitude: float, altitude: float) -> float:
        return mean_radius_dip(altitude)

    def _event(self, day: date, latitude: float, longitude: float, zenith: float, rise: bool) -> Optional[TimeValue]:
        lmt = epoch_days(day) + _JULIAN_DAY_NUMBER_OF_EPOCH + (0.25 if rise else 0.75)
        midnight = TimeValue.from_calendar(day.year, day.month, day.day)
        # julian days start at noon
        ephemeris = delta_t(midnight.value) - 43200
        offset = (int(longitude * 240) - ephemeris) / 86400.0
        alpha = zenith - 90.0

        result = fixed_point(
            lambda x: self._approx_moment_of_depression(x, latitude, offset, alpha, rise),
            lmt,
            30.0 / 86400,
        )
        if result is None:
            return None
        return TimeValue.ephemeris(result - offset).to_civil().truncated(1)

    def _approx_moment_of_depression(
        self, lmt: float, latitude: float, offset: float, alpha: float, early: bool
    ) -> Optional[float]:
        day = math.floor(lmt)
        attempt = self._sine_offset(lmt - offset, latitude, alpha)
        if alpha >= 0:
            alternative = day if early else day + 1
        else:
            alternative = day + 0.5
        value = self._sine_offset(alternative - offset, latitude, alpha) if abs(attempt) > 1 else attempt
        if abs(value) > 1:
            return None
        tmp = (-1 if early else 1) * (math.fmod(0.5 + math.degrees(math.asin(value)) / 360.0, 1) - 0.25)
        tmp += day + 0.5
        # not very precise, Calendrical Calculations p.184
        return tmp - self.equation_of_time(tmp - offset) / 86400

    def _sine_offset(self, jde: float, latitude: float, alpha: float) -> float:
        lat = math.radians(latitude)
        dec = self._declination_rad(julian_centuries(jde))
        return math.tan(lat) * math.tan(dec) + math.sin(math.radians(alpha)) / (math.cos(dec) * math.cos(lat))

    @staticmethod
    def _obliquity(jct: float) -> float:
        return 23.0 + 26.0 / 60 + (21.448 + (-46.815 + (-0.00059 + 0.001813 * jct) * jct) * jct) / 3600

    @staticmethod
    def _mean_longitude(jct: float) -> float:
        return math.fmod(280.46645 + (36000.76983 + 0.0003032 * jct) * jct, 360)

    @staticmethod
    def _mean_anomaly(jct: float) -> float:
        return 357.5291 + (35999.0503 + (-0.0001559 + 0.00000048 * jct) * jct) * jct

    @staticmethod
    def _eccentricity(jct: float) -> float:
        return 0.016708617 - (0.000042037 + 0.0000001236 * jct) * jct

    def _declination_rad(self, jct: float) -> float:
        return math.asin(
            math.sin(math.radians(self._obliquity(jct))) * math.sin(math.radians(apparent_solar_longitude(jct)))
        )


class MeeusCalculator(Calculator):
    """High precision calculator based on Meeus and the Bretagnon/Simon solar series.

    Takes the observer altitude into account by the dip of the horizon on
    the WGS84 spheroid and a standard-atmosphere refraction.
    """

    name = MEEUS

    def sunrise(self, day: date, latitude: float, longitude: float, zenith: float) -> Optional[TimeValue]:
        return self._event(day, latitude, longitude, zenith, rise=True)

    def sunset(self, day: date, latitude: float, longitude: float, zenith: float) -> Optional[TimeValue]:
        return self._event(day, latitude, longitude, zenith, rise=False)

    def equation_of_time(self, jde: float) -> float:
        jct = julian_centuries(jde)
        return _equation_of_time(
            apparent_obliquity(jct),
            NoaaCalculator._mean_longitude(jct),
            NoaaCalculator._eccentricity(jct),
            NoaaCalculator._mean_anomaly(jct),
        )

    def declination(self, jde: float) -> float:
        return solar_equatorial(jde).declination

    def feature(self, jde: float, name: str) -> float:
        if name == RIGHT_ASCENSION:
            return solar_equatorial(jde).right_ascension
        if name == SOLAR_LONGITUDE:
            return apparent_solar_longitude(julian_centuries(jde))
        return super().feature(jde, name)

    def geodetic_angle(self, latitude: float, altitude: float) -> float:
        return spheroid_dip(latitude, altitude)

    def zenith_angle(self, latitude: float, altitude: float) -> float:
        if altitude == 0:
            return STD_ZENITH
        refraction = refraction_of_std_atmosphere(altitude)
        return 90 + self.geodetic_angle(latitude, altitude) + (SUN_RADIUS + refraction) / 60.0

    def _event(self, day: date, latitude: float, longitude: float, zenith: float, rise: bool) -> Optional[TimeValue]:
        noon = from_local_event(day, 12, longitude, self)
        jde = noon.to_ephemeris().value
        # usually converges after two or three steps
        h = fixed_point(lambda old: self._hour_angle(jde + old / 86400, latitude, zenith, rise), 0.0, 15.0)
        if h is None:
            return None
        return noon.plus_seconds(h).truncated(1)

    def _hour_angle(self, jde: float, latitude: float, zenith: float, rise: bool) -> Optional[float]:
        cos_h = _cos_hour_angle(latitude, math.radians(self.declination(jde)), zenith)
        if cos_h is None:
            return None
        seconds = math.degrees(math.acos(cos_h)) * 240
        return -seconds if rise else seconds


class CalculatorRegistry:
    """Thread-safe mapping from calculator names to calculators.

    Readers see an immutable snapshot; writers replace it under a lock. The
    first registration of a name wins unless ``replace=True`` is passed.
    """

    def __init__(self, calculators: Iterable[Calculator] = ()) -> None:
        self._lock = threading.Lock()
        self._calculators: Dict[str, Calculator] = {}
        for calculator in calculators:
            self.register(calculator)

    def register(self, calculator: Calculator, replace: bool = False) -> Calculator:
        """Register *calculator* and return the one now stored under its name."""

        if not isinstance(calculator, Calculator):
            raise TypeError(f"Expected a Calculator, got {type(calculator).__name__}")
        key = calculator.name.strip().upper()
        if not key:
            raise ValueError("Calculator name must not be empty")

        with self._lock:
            existing = self._calculators.get(key)
            if existing is not None and not replace:
                return existing
            snapshot = dict(self._calculators)
            snapshot[key] = calculator
            self._calculators = snapshot

        LOGGER.info(
            json.dumps({"event": "calculator_registered", "name": key, "replaced": existing is not None})
        )
        return calculator

    def get(self, name: Optional[str] = None) -> Calculator:
        """Look up a calculator; ``None`` selects the configured default."""

        key = (name if name is not None else default_calculator_name()).strip().upper()
        calculator = self._calculators.get(key)
        if calculator is None:
            raise ValueError(f"Unknown calculator: {name if name is not None else key}")
        return calculator

    def names(self) -> List[str]:
        return sorted(self._calculators)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip().upper() in self._calculators

    def __iter__(self):
        return iter(self.names())


_DEFAULT_REGISTRY: Optional[CalculatorRegistry] = None
_REGISTRY_LOCK = threading.Lock()


def default_registry() -> CalculatorRegistry:
    """Return the process-wide registry with the built-in calculators."""

    global _DEFAULT_REGISTRY

    if _DEFAULT_REGISTRY is not None:
        return _DEFAULT_REGISTRY

    with _REGISTRY_LOCK:
        if _DEFAULT_REGISTRY is None:
            _DEFAULT_REGISTRY = CalculatorRegistry(
                [SimpleCalculator(), NoaaCalculator(), CalendricalCalculator(), MeeusCalculator()]
            )
        return _DEFAULT_REGISTRY
