"""Solar position model: apparent longitude series, nutation and horizon position."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

import erfa
import numpy as np

from .horizon import EquatorialCoordinates, to_horizontal
from .location import GeoLocation
from .timescale import TimeValue, julian_centuries

__all__ = [
    "SunPosition",
    "apparent_solar_longitude",
    "mean_obliquity",
    "nutations",
    "solar_equatorial",
    "sun_distance",
]

# Periodic terms for the sun by Bretagnon & Simon ("Planetary Programs and
# Tables from -4000 to +2800"): amplitude, phase and rate per century.
DG_X = np.array(
    [
        403406, 195207, 119433, 112392, 3891, 2819, 1721, 660, 350, 334, 314, 268, 242, 234, 158, 132, 129, 114,
        99, 93, 86, 78, 72, 68, 64, 46, 38, 37, 32, 29, 28, 27, 27, 25, 24, 21, 21, 20, 18, 17, 14, 13, 13, 13,
        12, 10, 10, 10, 10,
    ],
    dtype=float,
)
DG_Y = np.array(
    [
        270.54861, 340.19128, 63.91854, 331.2622, 317.843, 86.631, 240.052, 310.26, 247.23, 260.87, 297.82,
        343.14, 166.79, 81.53, 3.5, 132.75, 182.95, 162.03, 29.8, 266.4, 249.2, 157.6, 257.8, 185.1, 69.9,
        8, 197.1, 250.4, 65.3, 162.7, 341.5, 291.6, 98.5, 146.7, 110, 5.2, 342.6, 230.9, 256.1, 45.3,
        242.9, 115.2, 151.8, 285.3, 53.3, 126.6, 205.7, 85.9, 146.1,
    ]
)
DG_Z = np.array(
    [
        0.9287892, 35999.1376958, 35999.4089666, 35998.7287385, 71998.20261, 71998.4403, 36000.35726, 71997.4812,
        32964.4678, -19.441, 445267.1117, 45036.884, 3.1008, 22518.4434, -19.9739, 65928.9345, 9038.0293,
        3034.7684, 33718.148, 3034.448, -2280.773, 29929.992, 31556.493, 149.588, 9037.75, 107997.405,
        -4444.176, 151.771, 67555.316, 31556.08, -4561.54, 107996.706, 1221.655, 62894.167, 31437.369,
        14578.298, -31931.757, 34777.243, 1221.999, 62894.511, -4442.039, 107997.909, 119.066, 16859.071,
        -4.578, 26895.292, -39.127, 12297.536, 90073.778,
    ]
)


def nutations(jde: float) -> Tuple[float, float]:
    """Return nutation in longitude and in obliquity (degrees), IAU 1980 series."""

    dpsi, deps = erfa.nut80(jde, 0.0)
    return math.degrees(dpsi), math.degrees(deps)


def mean_obliquity(jde: float) -> float:
    """Mean obliquity of the ecliptic in degrees (IAU 1980, Meeus 22.2)."""

    return math.degrees(erfa.obl80(jde, 0.0))


def _aberration(jct: float) -> float:
    return 0.0000974 * math.cos(math.radians(177.63 + 35999.01848 * jct)) - 0.005575


def _nutation_in_longitude(jct: float) -> float:
    a = math.radians(124.9 + (-1934.134 + 0.002063 * jct) * jct)
    b = math.radians(201.11 + (72001.5377 + 0.00057 * jct) * jct)
    return -0.004778 * math.sin(a) - 0.0003667 * math.sin(b)


def apparent_solar_longitude(jct: float) -> float:
    """Apparent ecliptic longitude of the sun in degrees within [0, 360).

    Parameters
    ----------
    jct:
        Julian centuries since J2000.0 in ephemeris time.
    """

    p49 = float(np.dot(DG_X, np.sin(np.radians(DG_Y + DG_Z * jct))))
    longitude = (
        282.7771834
        + 36000.76953744 * jct
        + 5.729577951308232 * p49 / 1000000
        + _aberration(jct)
        + _nutation_in_longitude(jct)
    )
    return longitude % 360


def apparent_obliquity(jct: float) -> float:
    """Mean obliquity corrected by the dominant nutation term (Meeus 25.8)."""

    mean = 23.0 + 26.0 / 60 + (21.448 + (-46.815 + (-0.00059 + 0.001813 * jct) * jct) * jct) / 3600
    return mean + 0.00256 * math.cos(math.radians(125.04 - 1934.136 * jct))


def solar_equatorial(jde: float) -> EquatorialCoordinates:
    """Apparent right ascension and declination of the sun for a Julian day in TT."""

    jct = julian_centuries(jde)
    lng = math.radians(apparent_solar_longitude(jct))
    eps = math.radians(apparent_obliquity(jct))
    ra = math.degrees(math.atan2(math.cos(eps) * math.sin(lng), math.cos(lng))) % 360
    dec = math.degrees(math.asin(math.sin(eps) * math.sin(lng)))
    return EquatorialCoordinates(ra, dec)


def sun_distance(jde: float) -> float:
    """Radius vector of the earth in astronomical units (Meeus 25.5)."""

    jct = julian_centuries(jde)
    anomaly = 357.52911 + (35999.05029 - 0.0001537 * jct) * jct
    e = 0.016708634 - (0.000042037 + 0.0000001267 * jct) * jct
    m = math.radians(anomaly)
    center = (
        math.sin(m) * (1.914602 - (0.004817 + 0.000014 * jct) * jct)
        + math.sin(2 * m) * (0.019993 - 0.000101 * jct)
        + math.sin(3 * m) * 0.000289
    )
    true_anomaly = math.radians(anomaly + center)
    return 1.000001018 * (1 - e * e) / (1 + e * math.cos(true_anomaly))


@dataclass(frozen=True)
class SunPosition:
    """Apparent position of the sun for an observer (all angles in degrees)."""

    right_ascension: float
    declination: float
    azimuth: float
    elevation: float

    @classmethod
    def at(cls, moment: TimeValue, location: GeoLocation) -> "SunPosition":
        jde = moment.to_ephemeris().value
        nutation, nutation_obliquity = nutations(jde)
        obliquity = mean_obliquity(jde) + nutation_obliquity
        coordinates = solar_equatorial(jde)
        azimuth, elevation = to_horizontal(coordinates, moment, location, nutation, obliquity)
        return cls(coordinates.right_ascension, coordinates.declination, azimuth, elevation)

    def shadow_length(self, object_height: float) -> float:
        """Length of the shadow cast by a vertical object of *object_height*.

        Returns ``inf`` when the sun is not above the horizon.
        """

        if not math.isfinite(object_height) or object_height <= 0.0:
            raise ValueError(f"Object height must be finite and positive: {object_height}")
        if self.elevation <= 0.0:
            return math.inf
        if self.elevation >= 90.0:
            return 0.0
        return object_height / math.tan(math.radians(self.elevation))
