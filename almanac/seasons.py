"""Equinoxes, solstices and the 24 solar terms of the East Asian calendars."""

from __future__ import annotations

import math
from enum import Enum
from typing import Dict, List

from .solver import bisect_longitude, mod360
from .sun import apparent_solar_longitude
from .timescale import TimeScale, TimeValue, julian_centuries

__all__ = ["AstronomicalSeason", "SolarTerm", "solar_longitude_at_or_after"]

MEAN_TROPICAL_YEAR = 365.242189
BRACKET_DAYS = 5.0


def _solar_longitude(jde: float) -> float:
    return apparent_solar_longitude(julian_centuries(jde))


def solar_longitude_at_or_after(angle: float, moment: TimeValue) -> TimeValue:
    """First instant at or after *moment* when the apparent solar longitude equals *angle*.

    Parameters
    ----------
    angle:
        Target longitude in degrees.
    moment:
        Start of the search in any time scale.

    Returns
    -------
    TimeValue
        Civil instant with second precision.
    """

    jde = moment.to_ephemeris().value
    estimate = jde + mod360(angle - _solar_longitude(jde)) * MEAN_TROPICAL_YEAR / 360.0
    low = max(jde, estimate - BRACKET_DAYS)
    high = estimate + BRACKET_DAYS
    result = bisect_longitude(_solar_longitude, angle, low, high)
    return TimeValue.ephemeris(result).to_civil().truncated(1)


def _start_of_year(year: int) -> TimeValue:
    return TimeValue.from_calendar(year, 1, 1, scale=TimeScale.EPHEMERIS)


class AstronomicalSeason(Enum):
    """Start of a season as seen on the northern hemisphere, valued by solar longitude."""

    VERNAL_EQUINOX = 0
    SUMMER_SOLSTICE = 90
    AUTUMNAL_EQUINOX = 180
    WINTER_SOLSTICE = 270

    @property
    def solar_longitude(self) -> int:
        return self.value

    def in_year(self, year: int) -> TimeValue:
        """Instant of this event in the given Gregorian year (civil, second precision)."""

        return solar_longitude_at_or_after(self.solar_longitude, _start_of_year(year))

    def on_southern_hemisphere(self) -> "AstronomicalSeason":
        """Event that starts the same season on the southern hemisphere."""

        return AstronomicalSeason((self.value + 180) % 360)


SOLAR_TERM_NAMES: Dict[str, str] = {
    "J1": "立春", "Z1": "雨水", "J2": "惊蛰", "Z2": "春分",
    "J3": "清明", "Z3": "谷雨", "J4": "立夏", "Z4": "小满",
    "J5": "芒种", "Z5": "夏至", "J6": "小暑", "Z6": "大暑",
    "J7": "立秋", "Z7": "处暑", "J8": "白露", "Z8": "秋分",
    "J9": "寒露", "Z9": "霜降", "J10": "立冬", "Z10": "小雪",
    "J11": "大雪", "Z11": "冬至", "J12": "小寒", "Z12": "大寒",
}


class SolarTerm(Enum):
    """The 24 solar terms, every 15 degrees of solar longitude, starting with lichun.

    Codes follow the usual numbering: ``J`` for the minor terms (jieqi),
    ``Z`` for the major terms (zhongqi).
    """

    J1 = 315
    Z1 = 330
    J2 = 345
    Z2 = 0
    J3 = 15
    Z3 = 30
    J4 = 45
    Z4 = 60
    J5 = 75
    Z5 = 90
    J6 = 105
    Z6 = 120
    J7 = 135
    Z7 = 150
    J8 = 165
    Z8 = 180
    J9 = 195
    Z9 = 210
    J10 = 225
    Z10 = 240
    J11 = 255
    Z11 = 270
    J12 = 285
    Z12 = 300

    @property
    def code(self) -> str:
        return self.name

    @property
    def solar_longitude(self) -> int:
        return self.value

    @property
    def index(self) -> int:
        """Number of the term within its kind, 1 to 12."""

        return int(self.name[1:])

    @property
    def is_major(self) -> bool:
        return self.name.startswith("Z")

    @property
    def is_minor(self) -> bool:
        return self.name.startswith("J")

    @property
    def chinese_name(self) -> str:
        return SOLAR_TERM_NAMES[self.name]

    def roll(self, amount: int) -> "SolarTerm":
        members = list(SolarTerm)
        return members[(members.index(self) + amount) % 24]

    @classmethod
    def of_major(cls, index: int) -> "SolarTerm":
        if not 1 <= index <= 12:
            raise ValueError(f"Out of range 1 <= index <= 12: {index}")
        return cls[f"Z{index}"]

    @classmethod
    def of_minor(cls, index: int) -> "SolarTerm":
        if not 1 <= index <= 12:
            raise ValueError(f"Out of range 1 <= index <= 12: {index}")
        return cls[f"J{index}"]

    @classmethod
    def of(cls, moment: TimeValue) -> "SolarTerm":
        """Solar term whose interval contains *moment*."""

        longitude = _solar_longitude(moment.to_ephemeris().value)
        return list(cls)[(math.floor(longitude / 15) + 3) % 24]

    def at_or_after(self, moment: TimeValue) -> TimeValue:
        return solar_longitude_at_or_after(self.solar_longitude, moment)

    def in_year(self, year: int) -> TimeValue:
        """Instant of this term in the given Gregorian year (civil, second precision)."""

        return self.at_or_after(_start_of_year(year))

    @classmethod
    def all_in_year(cls, year: int) -> List[TimeValue]:
        """All 24 terms of *year* in chronological order."""

        return sorted((term.in_year(year) for term in cls), key=lambda moment: moment.value)
