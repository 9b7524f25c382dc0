"""Julian day values tagged with a time scale, plus delta-T conversion."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from enum import Enum
from typing import Tuple

import erfa

from .errors import OutOfRangeError

__all__ = [
    "MAX_JD",
    "MIN_JD",
    "TimeScale",
    "TimeValue",
    "day_of_year",
    "delta_t",
    "epoch_days",
    "julian_centuries",
    "length_of_year",
]

MIN_JD = 990575.0  # about -2000-01-01
MAX_JD = 2817152.0  # about +3000-12-31
_EPHEMERIS_MARGIN = 1.0  # days; delta-T stays below 5000 s in year 3000
J2000 = erfa.DJ00
MJD_ZERO = erfa.DJM0
DAYS_PER_CENTURY = erfa.DJC
SECONDS_PER_DAY = erfa.DAYSEC
UNIX_EPOCH_JD = 2440587.5

_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_UNIX_EPOCH_ORDINAL = 719163  # date(1970, 1, 1).toordinal()

# Leap seconds are only applied where the bundled ERFA table is authoritative.
_LEAP_ERA_START = float(sum(erfa.cal2jd(1972, 1, 1)))
_LEAP_ERA_END = float(sum(erfa.cal2jd(2027, 1, 1)))


class TimeScale(str, Enum):
    """Time scales a :class:`TimeValue` can be expressed in."""

    EPHEMERIS = "TT"
    MEAN_SOLAR = "UT"
    CIVIL = "POSIX"


def julian_centuries(jd: float) -> float:
    """Return Julian centuries elapsed since J2000.0."""

    return (jd - J2000) / DAYS_PER_CENTURY


def epoch_days(day: date) -> int:
    """Return the count of days between 1970-01-01 and *day*."""

    return day.toordinal() - _UNIX_EPOCH_ORDINAL


def day_of_year(year: int, month: int, day: int) -> int:
    """Ordinal day within the proleptic Gregorian year (1-based)."""

    return int(sum(erfa.cal2jd(year, month, day)) - sum(erfa.cal2jd(year, 1, 1))) + 1


def length_of_year(year: int) -> int:
    return int(sum(erfa.cal2jd(year + 1, 1, 1)) - sum(erfa.cal2jd(year, 1, 1)))


def _decimal_year(jd: float) -> float:
    return 2000.0 + (jd - J2000) / 365.2425


def _espenak_meeus(y: float) -> float:
    """Polynomial expressions for delta-T by Espenak and Meeus (NASA, 2006)."""

    if y < -500 or y >= 2150:
        u = (y - 1820) / 100
        return -20 + 32 * u * u
    if y < 500:
        u = y / 100
        return (
            10583.6
            + (-1014.41 + (33.78311 + (-5.952053 + (-0.1798452 + (0.022174192 + 0.0090316521 * u) * u) * u) * u) * u)
            * u
        )
    if y < 1600:
        u = (y - 1000) / 100
        return (
            1574.2
            + (-556.01 + (71.23472 + (0.319781 + (-0.8503463 + (-0.005050998 + 0.0083572073 * u) * u) * u) * u) * u)
            * u
        )
    if y < 1700:
        t = y - 1600
        return 120 + (-0.9808 + (-0.01532 + t / 7129) * t) * t
    if y < 1800:
        t = y - 1700
        return 8.83 + (0.1603 + (-0.0059285 + (0.00013336 - t / 1174000) * t) * t) * t
    if y < 1860:
        t = y - 1800
        return 13.72 + (
            -0.332447
            + (
                0.0068612
                + (0.0041116 + (-0.00037436 + (0.0000121272 + (-0.0000001699 + 0.000000000875 * t) * t) * t) * t)
                * t
            )
            * t
        ) * t
    if y < 1900:
        t = y - 1860
        return 7.62 + (0.5737 + (-0.251754 + (0.01680668 + (-0.0004473624 + t / 233174) * t) * t) * t) * t
    if y < 1920:
        t = y - 1900
        return -2.79 + (1.494119 + (-0.0598939 + (0.0061966 - 0.000197 * t) * t) * t) * t
    if y < 1941:
        t = y - 1920
        return 21.20 + (0.84493 + (-0.076100 + 0.0020936 * t) * t) * t
    if y < 1961:
        t = y - 1950
        return 29.07 + (0.407 + (-1 / 233 + t / 2547) * t) * t
    if y < 1986:
        t = y - 1975
        return 45.45 + (1.067 + (-1 / 260 - t / 718) * t) * t
    if y < 2005:
        t = y - 2000
        return 63.86 + (
            0.3345 + (-0.060374 + (0.0017275 + (0.000651814 + 0.00002373599 * t) * t) * t) * t
        ) * t
    if y < 2050:
        t = y - 2000
        return 62.92 + (0.32217 + 0.005589 * t) * t
    u = (y - 1820) / 100
    return -20 + 32 * u * u - 0.5628 * (2150 - y)


def delta_t(jd_ut: float) -> float:
    """Return delta-T (TT - UT) in seconds for a Julian day in mean solar time.

    Inside the leap-second era the exact offset ``TAI-UTC + 32.184 s`` is
    taken from ERFA; UT1-UTC is neglected there. Outside that era the
    Espenak-Meeus polynomials are evaluated at the decimal year, shifted to
    meet the ERFA value at either end of the era. The shift fades out
    linearly over ``_BLEND_YEARS``.
    """

    if _LEAP_ERA_START <= jd_ut < _LEAP_ERA_END:
        return _leap_era_delta_t(jd_ut)
    year = _decimal_year(jd_ut)
    if jd_ut < _LEAP_ERA_START:
        edge, offset = _ERA_START_YEAR, _START_OFFSET
    else:
        edge, offset = _ERA_END_YEAR, _END_OFFSET
    fade = max(0.0, 1.0 - abs(year - edge) / _BLEND_YEARS)
    return _espenak_meeus(year) + offset * fade


def _leap_era_delta_t(jd_ut: float) -> float:
    tai1, tai2 = erfa.utctai(jd_ut, 0.0)
    tt1, tt2 = erfa.taitt(tai1, tai2)
    return float(((tt1 - jd_ut) + tt2) * SECONDS_PER_DAY)


_BLEND_YEARS = 30.0
_ERA_START_YEAR = _decimal_year(_LEAP_ERA_START)
_ERA_END_YEAR = _decimal_year(_LEAP_ERA_END)
_START_OFFSET = _leap_era_delta_t(_LEAP_ERA_START) - _espenak_meeus(_ERA_START_YEAR)
_END_OFFSET = _leap_era_delta_t(_LEAP_ERA_END - 1.0) - _espenak_meeus(_ERA_END_YEAR)

# one microsecond, in days
_INVERSION_TOLERANCE = 1e-6 / SECONDS_PER_DAY


def _mean_solar_from_ephemeris(jde: float) -> float:
    ut = jde - delta_t(jde) / SECONDS_PER_DAY
    for _ in range(10):
        previous = ut
        ut = jde - delta_t(ut) / SECONDS_PER_DAY
        if abs(ut - previous) < _INVERSION_TOLERANCE:
            break
    return ut


@dataclass(frozen=True)
class TimeValue:
    """A Julian day number tagged with the time scale it is counted in.

    Instances are immutable. Conversion to another scale is explicit via
    :meth:`to_scale`; arithmetic keeps the scale tag.
    """

    value: float
    scale: TimeScale = TimeScale.CIVIL

    def __post_init__(self) -> None:
        try:
            value = float(self.value)
        except (TypeError, ValueError) as exc:
            raise OutOfRangeError(f"Julian day must be a number: {self.value!r}") from exc
        if not math.isfinite(value):
            raise OutOfRangeError(f"Julian day must be a finite value: {value}")
        scale = TimeScale(self.scale)
        # TT runs ahead of UT, so every civil value in range has a TT counterpart
        upper = MAX_JD + _EPHEMERIS_MARGIN if scale is TimeScale.EPHEMERIS else MAX_JD
        if not MIN_JD <= value <= upper:
            raise OutOfRangeError(
                f"Julian day out of range {MIN_JD} <= jd <= {upper}: {value}"
            )
        object.__setattr__(self, "value", value)
        object.__setattr__(self, "scale", scale)

    # factories

    @classmethod
    def ephemeris(cls, jd: float) -> "TimeValue":
        return cls(jd, TimeScale.EPHEMERIS)

    @classmethod
    def mean_solar(cls, jd: float) -> "TimeValue":
        return cls(jd, TimeScale.MEAN_SOLAR)

    @classmethod
    def civil(cls, jd: float) -> "TimeValue":
        return cls(jd, TimeScale.CIVIL)

    @classmethod
    def from_posix(cls, seconds: float) -> "TimeValue":
        """Create a civil value from seconds since 1970-01-01T00:00:00Z."""

        return cls(UNIX_EPOCH_JD + seconds / SECONDS_PER_DAY, TimeScale.CIVIL)

    @classmethod
    def from_datetime(cls, dt: datetime, scale: TimeScale = TimeScale.CIVIL) -> "TimeValue":
        if dt.tzinfo is None:
            raise ValueError("datetime must be timezone-aware")
        seconds = (dt.astimezone(UTC) - _UNIX_EPOCH).total_seconds()
        return cls.from_posix(seconds).to_scale(scale)

    @classmethod
    def from_calendar(
        cls,
        year: int,
        month: int,
        day: int,
        hour: float = 0.0,
        scale: TimeScale = TimeScale.CIVIL,
    ) -> "TimeValue":
        """Create a value from a proleptic Gregorian date (negative years allowed)."""

        djm0, djm = erfa.cal2jd(year, month, day)
        return cls(float(djm0) + float(djm) + hour / 24.0, scale)

    # conversions

    def to_scale(self, scale: TimeScale) -> "TimeValue":
        scale = TimeScale(scale)
        if scale is self.scale:
            return self
        if self.scale is TimeScale.EPHEMERIS:
            return TimeValue(_mean_solar_from_ephemeris(self.value), scale)
        if scale is TimeScale.EPHEMERIS:
            return TimeValue(self.value + delta_t(self.value) / SECONDS_PER_DAY, scale)
        # civil and mean solar time differ by UT1-UTC only, which is neglected.
        return TimeValue(self.value, scale)

    def to_ephemeris(self) -> "TimeValue":
        return self.to_scale(TimeScale.EPHEMERIS)

    def to_mean_solar(self) -> "TimeValue":
        return self.to_scale(TimeScale.MEAN_SOLAR)

    def to_civil(self) -> "TimeValue":
        return self.to_scale(TimeScale.CIVIL)

    @property
    def posix(self) -> float:
        """Seconds since the UNIX epoch of the civil equivalent of this value."""

        return (self.to_civil().value - UNIX_EPOCH_JD) * SECONDS_PER_DAY

    def to_datetime(self) -> datetime:
        """Return the civil instant as an aware UTC datetime (millisecond resolution)."""

        try:
            return _UNIX_EPOCH + timedelta(seconds=round(self.posix, 3))
        except OverflowError as exc:
            raise OutOfRangeError(f"Julian day not representable as datetime: {self.value}") from exc

    def isoformat(self) -> str:
        """Format the civil instant as ISO-8601 UTC with milliseconds.

        Unlike :meth:`to_datetime` this covers the whole supported range;
        years before 1 are written with a sign (astronomical numbering).
        """

        millis = round(self.posix * 1000)
        of_day = millis % 86_400_000
        noon = UNIX_EPOCH_JD + (millis - of_day) / 86_400_000 + 0.5
        year, month, day, _ = TimeValue.civil(noon).to_calendar()
        hours, rest = divmod(of_day, 3_600_000)
        minutes, rest = divmod(rest, 60_000)
        seconds, ms = divmod(rest, 1000)
        sign = "-" if year < 0 else ""
        return (
            f"{sign}{abs(year):04d}-{month:02d}-{day:02d}"
            f"T{hours:02d}:{minutes:02d}:{seconds:02d}.{ms:03d}Z"
        )

    def to_calendar(self) -> Tuple[int, int, int, float]:
        """Return ``(year, month, day, fraction_of_day)`` in this value's scale."""

        year, month, day, fraction = erfa.jd2cal(self.value, 0.0)
        return int(year), int(month), int(day), float(fraction)

    def truncated(self, unit_seconds: int) -> "TimeValue":
        """Truncate the civil equivalent to a multiple of *unit_seconds*."""

        # a Julian day float resolves about 40 microseconds, so settle on milliseconds first
        posix = round(self.posix, 3)
        return TimeValue.from_posix(math.floor(posix / unit_seconds) * unit_seconds)

    # arithmetic

    def plus_days(self, days: float) -> "TimeValue":
        return TimeValue(self.value + days, self.scale)

    def minus_days(self, days: float) -> "TimeValue":
        return TimeValue(self.value - days, self.scale)

    def plus_seconds(self, seconds: float) -> "TimeValue":
        return TimeValue(self.value + seconds / SECONDS_PER_DAY, self.scale)

    def minus_seconds(self, seconds: float) -> "TimeValue":
        return TimeValue(self.value - seconds / SECONDS_PER_DAY, self.scale)

    @property
    def mjd(self) -> float:
        return self.value - MJD_ZERO

    @property
    def centuries(self) -> float:
        """Julian centuries since J2000.0 counted in this value's scale."""

        return julian_centuries(self.value)

    # ordering is only defined within one scale

    def _require_same_scale(self, other: object) -> "TimeValue":
        if not isinstance(other, TimeValue):
            return NotImplemented  # type: ignore[return-value]
        if other.scale is not self.scale:
            raise TypeError(
                f"Cannot compare time values on different scales: {self.scale.name} and {other.scale.name}"
            )
        return other

    def __lt__(self, other: object) -> bool:
        that = self._require_same_scale(other)
        if that is NotImplemented:
            return NotImplemented
        return self.value < that.value

    def __le__(self, other: object) -> bool:
        that = self._require_same_scale(other)
        if that is NotImplemented:
            return NotImplemented
        return self.value <= that.value

    def __gt__(self, other: object) -> bool:
        that = self._require_same_scale(other)
        if that is NotImplemented:
            return NotImplemented
        return self.value > that.value

    def __ge__(self, other: object) -> bool:
        that = self._require_same_scale(other)
        if that is NotImplemented:
            return NotImplemented
        return self.value >= that.value
