"""Lunar position (Meeus chapter 47) and apsides (Meeus chapter 50).

The worst-case error of the truncated series is about 10" in longitude and
4" in latitude.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import NamedTuple

import numpy as np

from .horizon import EquatorialCoordinates, to_horizontal
from .location import GeoLocation
from .sun import mean_obliquity, nutations
from .timescale import DAYS_PER_CENTURY, J2000, TimeValue, day_of_year, julian_centuries, length_of_year

__all__ = [
    "LunarData",
    "MoonPosition",
    "lunar_longitude",
    "lunar_position",
    "mean_anomaly_of_moon",
    "mean_anomaly_of_sun",
    "mean_elongation",
    "next_apogee_after",
    "next_perigee_after",
]

# Meeus table 47.A: multiples of D, M, M', F and the coefficients of
# longitude (1e-6 deg) and distance (1e-3 km).
A_D = np.array([
    0, 2, 2, 0, 0, 0, 2, 2, 2, 2, 0, 1, 0, 2, 0, 0, 4, 0, 4, 2, 2, 1, 1, 2, 2, 4, 2, 0, 2, 2, 1, 2,
    0, 0, 2, 2, 2, 4, 0, 3, 2, 4, 0, 2, 2, 2, 4, 0, 4, 1, 2, 0, 1, 3, 4, 2, 0, 1, 2, 2,
])
A_M = np.array([
    0, 0, 0, 0, 1, 0, 0, -1, 0, -1, 1, 0, 1, 0, 0, 0, 0, 0, 0, 1, 1, 0, 1, -1, 0, 0, 0, 1, 0, -1, 0, -2,
    1, 2, -2, 0, 0, -1, 0, 0, 1, -1, 2, 2, 1, -1, 0, 0, -1, 0, 1, 0, 1, 0, 0, -1, 2, 1, 0, 0,
])
A_M2 = np.array([
    1, -1, 0, 2, 0, 0, -2, -1, 1, 0, -1, 0, 1, 0, 1, 1, -1, 3, -2, -1, 0, -1, 0, 1, 2, 0, -3, -2, -1, -2, 1, 0,
    2, 0, -1, 1, 0, -1, 2, -1, 1, -2, -1, -1, -2, 0, 1, 4, 0, -2, 0, 2, 1, -2, -3, 2, 1, -1, 3, -1,
])
A_F = np.array([
    0, 0, 0, 0, 0, 2, 0, 0, 0, 0, 0, 0, 0, -2, 2, -2, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 2, 0, 0, 0,
    0, 0, 0, -2, 2, 0, 2, 0, 0, 0, 0, 0, 0, -2, 0, 0, 0, 0, -2, -2, 0, 0, 0, 0, 0, 0, 0, -2,
])
COEFF_L = np.array([
    6288774, 1274027, 658314, 213618, -185116, -114332, 58793, 57066, 53322, 45758, -40923, -34720, -30383,
    15327, -12528, 10980, 10675, 10034, 8548, -7888, -6766, -5163, 4987, 4036, 3994, 3861, 3665, -2689,
    -2602, 2390, -2348, 2236, -2120, -2069, 2048, -1773, -1595, 1215, -1110, -892, -810, 759, -713, -700,
    691, 596, 549, 537, 520, -487, -399, -381, 351, -340, 330, 327, -323, 299, 294, 0,
], dtype=float)
COEFF_R = np.array([
    -20905355, -3699111, -2955968, -569925, 48888, -3149, 246158, -152138, -170733, -204586, -129620, 108743,
    104755, 10321, 0, 79661, -34782, -23210, -21636, 24208, 30824, -8379, -16675, -12831, -10445, -11650,
    14403, -7003, 0, 10056, 6322, -9884, 5751, 0, -4950, 4130, 0, -3958, 0, 3258, 2616, -1897, -2117, 2354,
    0, 0, -1423, -1117, -1571, -1739, 0, -4421, 0, 0, 0, 0, 1165, 0, 0, 8752,
], dtype=float)

# Meeus table 47.B: latitude terms (1e-6 deg).
B_D = np.array([
    0, 0, 0, 2, 2, 2, 2, 0, 2, 0, 2, 2, 2, 2, 2, 2, 2, 0, 4, 0, 0, 0, 1, 0, 0, 0, 1, 0, 4, 4,
    0, 4, 2, 2, 2, 2, 0, 2, 2, 2, 2, 4, 2, 2, 0, 2, 1, 1, 0, 2, 1, 2, 0, 4, 4, 1, 4, 1, 4, 2,
])
B_M = np.array([
    0, 0, 0, 0, 0, 0, 0, 0, 0, 0, -1, 0, 0, 1, -1, -1, -1, 1, 0, 1, 0, 1, 0, 1, 1, 1, 0, 0, 0, 0,
    0, 0, 0, 0, -1, 0, 0, 0, 0, 1, 1, 0, -1, -2, 0, 1, 1, 1, 1, 1, 0, -1, 1, 0, -1, 0, 0, 0, -1, -2,
])
B_M2 = np.array([
    0, 1, 1, 0, -1, -1, 0, 2, 1, 2, 0, -2, 1, 0, -1, 0, -1, -1, -1, 0, 0, -1, 0, 1, 1, 0, 0, 3, 0, -1,
    1, -2, 0, 2, 1, -2, 3, 2, -3, -1, 0, 0, 1, 0, 1, 1, 0, 0, -2, -1, 1, -2, 2, -2, -1, 1, 1, -1, 0, 0,
])
B_F = np.array([
    1, 1, -1, -1, 1, -1, 1, 1, -1, -1, -1, -1, 1, -1, 1, 1, -1, -1, -1, 1, 3, 1, 1, 1, -1, -1, -1, 1, -1, 1,
    -3, 1, -3, -1, -1, 1, -1, 1, -1, 1, 1, 1, 1, -1, 3, -1, -1, 1, -1, -1, 1, -1, 1, -1, -1, -1, -1, -1, -1, 1,
])
COEFF_B = np.array([
    5128122, 280602, 277693, 173237, 55413, 46271, 32573, 17198, 9266, 8822, 8216, 4324, 4200, -3359, 2463,
    2211, 2065, -1870, 1828, -1794, -1749, -1565, -1491, -1475, -1410, -1344, -1335, 1107, 1021, 833, 777,
    671, 607, 596, 491, -451, 439, 422, 421, -366, -351, 331, 315, 302, -283, -229, 223, 223, -220, -220,
    -185, 181, -177, 176, 166, -164, 132, -119, 115, 107,
], dtype=float)

# Meeus table 50.A: perigee and apogee terms (days).
PERIGEE_D = np.array([
    2, 4, 6, 8, 2, 0, 10, 4, 6, 12, 1, 8, 14, 0, 3, 10, 16, 12, 5, 2, 18, 14, 7, 2, 20, 1, 16, 4, 9, 4, 2, 4,
    6, 22, 18, 6, 11, 8, 4, 6, 3, 5, 13, 20, 3, 4, 1, 22, 0, 6, 2, 0, 0, 2, 0, 2, 24, 4, 2, 1,
])
PERIGEE_F = np.array([
    0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 2, 0, 0, 0, 0, 0, 2, 0, 0, 0, 0, 0, 0, 0, 0, 0, 2, 0, 0, 0, 0, 0,
    0, 0, 0, -2, 2, 0, 0, 0, 0, 0, 2, 0, 0, 4, -2, -2, 0, 2, 4, 2, -2, 0, -4, 0, 0,
])
PERIGEE_M = np.array([
    0, 0, 0, 0, -1, 1, 0, -1, -1, 0, 0, -1, 0, 0, 0, -1, 0, -1, 0, 0, 0, -1, 0, 1, 0, 1, -1, 1, 0, 0, -2, -2,
    -2, 0, -1, 1, 0, 1, 0, 0, 1, 1, 0, -1, 2, -2, 2, -1, 0, 0, 1, 2, -1, 0, -2, 2, 0, 0, 2, -1,
])
PERIGEE_COEFF = np.array([
    -1.6769, 0.4589, -0.1856, 0.0883, -0.0773, 0.0502, -0.046, 0.0422, -0.0256, 0.0253, 0.0237, 0.0162, -0.0145,
    0.0129, -0.0112, -0.0104, 0.0086, 0.0069, 0.0066, -0.0053, -0.0052, -0.0046, -0.0041, 0.004, 0.0032, -0.0032,
    0.0031, -0.0029, 0.0027, 0.0027, -0.0027, 0.0024, -0.0021, -0.0021, -0.0021, 0.0019, -0.0018, -0.0014,
    -0.0014, -0.0014, 0.0014, -0.0014, 0.0013, 0.0013, 0.0011, -0.0011, -0.001, -0.0009, -0.0008, 0.0008,
    0.0008, 0.0007, 0.0007, 0.0007, -0.0006, -0.0006, 0.0006, 0.0005, 0.0005, -0.0004,
])
PERIGEE_COEFF_T = np.zeros(len(PERIGEE_COEFF))
PERIGEE_COEFF_T[:8] = [0, 0, 0, 0, 0.00019, -0.00013, 0, -0.00011]

APOGEE_D = np.array([
    2, 4, 0, 2, 0, 1, 6, 4, 2, 1, 8, 6, 2, 2, 3, 4, 8, 4, 10, 3, 0, 2, 2, 6, 6, 10, 5, 4, 0, 12, 2, 1,
])
APOGEE_F = np.array([
    0, 0, 0, 0, 2, 0, 0, 0, 2, 0, 0, 0, -2, 0, 0, 2, 0, 0, 0, 0, 0, 0, 0, 2, 0, 0, 0, -2, 2, 0, 2, 0,
])
APOGEE_M = np.array([
    0, 0, 1, -1, 0, 0, 0, -1, 0, 1, 0, -1, 0, -2, 0, 0, -1, -2, 0, 1, 2, 1, 2, 0, -2, -1, 0, 0, 1, 0, -1, -1,
])
APOGEE_COEFF = np.array([
    0.4392, 0.0684, 0.0456, 0.0426, 0.0212, -0.0189, 0.0144, 0.0113, 0.0047, 0.0036, 0.0035, 0.0034, -0.0034,
    0.0022, -0.0017, 0.0013, 0.0011, 0.001, 0.0009, 0.0007, 0.0006, 0.0005, 0.0005, 0.0004, 0.0004, 0.0004,
    -0.0004, -0.0004, 0.0003, 0.0003, 0.0003, -0.0003,
])
APOGEE_COEFF_T = np.zeros(len(APOGEE_COEFF))
APOGEE_COEFF_T[:4] = [0, 0, -0.00011, -0.00011]

MIO = 1000000.0


def _normalize(angle: float) -> float:
    return angle - 360 * math.floor(angle / 360)


def mean_longitude(jct: float) -> float:
    """Meeus (47.1): L'."""
    return _normalize(
        218.3164477 + (481267.88123421 + (-0.0015786 + (1 / 538841 + (-1 / 65194000) * jct) * jct) * jct) * jct
    )


def mean_elongation(jct: float) -> float:
    """Meeus (47.2): D."""
    return _normalize(
        297.8501921 + (445267.1114034 + (-0.0018819 + (1 / 545868 - (1 / 113065000) * jct) * jct) * jct) * jct
    )


def mean_anomaly_of_sun(jct: float) -> float:
    """Meeus (47.3): M."""
    return _normalize(357.5291092 + (35999.0502909 + (-0.0001536 + (1 / 24490000) * jct) * jct) * jct)


def mean_anomaly_of_moon(jct: float) -> float:
    """Meeus (47.4): M'."""
    return _normalize(
        134.9633964 + (477198.8675055 + (0.0087414 + (1 / 69699 - (1 / 14712000) * jct) * jct) * jct) * jct
    )


def mean_distance_of_moon(jct: float) -> float:
    """Meeus (47.5): F, the argument of latitude."""
    return _normalize(
        93.272095 + (483202.0175233 + (-0.0036539 + (-1 / 3526000 + (1 / 863310000) * jct) * jct) * jct) * jct
    )


def _eccentricity_factors(multiples: np.ndarray, e: float) -> np.ndarray:
    factors = np.ones(len(multiples))
    factors[np.abs(multiples) == 1] = e
    factors[np.abs(multiples) == 2] = e * e
    return factors


class LunarData(NamedTuple):
    nutation: float
    obliquity: float
    right_ascension: float
    declination: float
    distance: float


def _longitude_terms(jct: float, with_distance: bool):
    d = mean_elongation(jct)
    m = mean_anomaly_of_sun(jct)
    m2 = mean_anomaly_of_moon(jct)
    f = mean_distance_of_moon(jct)
    e = 1 - (0.002516 + 0.0000074 * jct) * jct
    args = np.radians(A_D * d + A_M * m + A_M2 * m2 + A_F * f)
    factors = _eccentricity_factors(A_M, e)
    sum_l = float(np.sum(COEFF_L * factors * np.sin(args)))
    sum_r = float(np.sum(COEFF_R * factors * np.cos(args))) if with_distance else 0.0

    lp = mean_longitude(jct)
    a1 = 119.75 + 131.849 * jct
    a2 = 53.09 + 479264.29 * jct
    sum_l += (
        3958 * math.sin(math.radians(a1))
        + 1962 * math.sin(math.radians(lp - f))
        + 318 * math.sin(math.radians(a2))
    )
    return lp, d, m, m2, f, e, sum_l, sum_r


def lunar_position(jct: float) -> LunarData:
    """Geocentric apparent position of the moon.

    Parameters
    ----------
    jct:
        Julian centuries since J2000.0 in ephemeris time.

    Returns
    -------
    LunarData
        Nutation in longitude and true obliquity (degrees), right ascension
        in [0, 360), declination (degrees) and distance between the centers
        of earth and moon (km).
    """

    lp, d, m, m2, f, e, sum_l, sum_r = _longitude_terms(jct, with_distance=True)

    args = np.radians(B_D * d + B_M * m + B_M2 * m2 + B_F * f)
    sum_b = float(np.sum(COEFF_B * _eccentricity_factors(B_M, e) * np.sin(args)))
    a1 = 119.75 + 131.849 * jct
    a3 = 313.45 + 481266.484 * jct
    sum_b += (
        -2235 * math.sin(math.radians(lp))
        + 382 * math.sin(math.radians(a3))
        + 175 * math.sin(math.radians(a1 - f))
        + 175 * math.sin(math.radians(a1 + f))
        + 127 * math.sin(math.radians(lp - m2))
        - 115 * math.sin(math.radians(lp + m2))
    )

    jde = J2000 + jct * DAYS_PER_CENTURY
    nutation, nutation_obliquity = nutations(jde)
    obliquity = mean_obliquity(jde) + nutation_obliquity
    eps = math.radians(obliquity)
    lng = math.radians(lp + sum_l / MIO + nutation)
    lat = math.radians(sum_b / MIO)
    distance = 385000.56 + sum_r / 1000

    ra = math.atan2(math.sin(lng) * math.cos(eps) - math.tan(lat) * math.sin(eps), math.cos(lng))
    decl = math.asin(math.sin(lat) * math.cos(eps) + math.cos(lat) * math.sin(eps) * math.sin(lng))
    return LunarData(nutation, obliquity, _normalize(math.degrees(ra)), math.degrees(decl), distance)


def lunar_longitude(jde: float, nutation: float) -> float:
    """Apparent ecliptic longitude of the moon in degrees within [0, 360)."""

    lp, _, _, _, _, _, sum_l, _ = _longitude_terms(julian_centuries(jde), with_distance=False)
    return _normalize(lp + sum_l / MIO + nutation)


@dataclass(frozen=True)
class MoonPosition:
    """Apparent position of the moon for an observer (degrees; distance in km)."""

    right_ascension: float
    declination: float
    azimuth: float
    elevation: float
    distance: float

    @classmethod
    def at(cls, moment: TimeValue, location: GeoLocation) -> "MoonPosition":
        data = lunar_position(moment.to_ephemeris().centuries)
        coordinates = EquatorialCoordinates(data.right_ascension, data.declination)
        azimuth, elevation = to_horizontal(
            coordinates, moment, location, data.nutation, data.obliquity, distance_km=data.distance
        )
        return cls(data.right_ascension, data.declination, azimuth, elevation, data.distance)


def _apsis(lunation: int, apogee: bool) -> TimeValue:
    k = lunation - 0.5 if apogee else float(lunation)
    jct = k / 1325.55  # Meeus (50.3)
    t2 = jct * jct
    jde = 2451534.6698 + 27.55454989 * k + (-0.0006691 + (-0.000001098 + 0.0000000052 * jct) * jct) * t2

    d = _normalize(171.9179 + 335.9106046 * k + (-0.0100383 + (-0.00001156 + 0.000000055 * jct) * jct) * t2)
    m = _normalize(347.3477 + 27.1577721 * k + (-0.000813 - 0.000001 * jct) * t2)
    f = _normalize(316.6109 + 364.5287911 * k + (-0.0125053 - 0.0000148 * jct) * t2)

    if apogee:
        md, mm, mf, coeff, coeff_t = APOGEE_D, APOGEE_M, APOGEE_F, APOGEE_COEFF, APOGEE_COEFF_T
    else:
        md, mm, mf, coeff, coeff_t = PERIGEE_D, PERIGEE_M, PERIGEE_F, PERIGEE_COEFF, PERIGEE_COEFF_T

    args = np.radians(md * d + mm * m + mf * f)
    correction = float(np.sum((coeff + coeff_t * jct) * np.sin(args)))
    return TimeValue.ephemeris(jde + correction).to_civil().truncated(60)


def _anomalistic(after: TimeValue, apogee: bool) -> TimeValue:
    ref = after.truncated(60)
    year, month, dom, _ = ref.to_calendar()
    # the estimate is too small, step forward
    lunation = math.floor((year + day_of_year(year, month, dom) / length_of_year(year) - 1999.97) * 13.2555)
    result = _apsis(lunation, apogee)
    while result.value <= ref.value:
        lunation += 1
        result = _apsis(lunation, apogee)
    return result


def next_apogee_after(moment: TimeValue) -> TimeValue:
    """First lunar apogee strictly after *moment* (civil, minute precision)."""

    return _anomalistic(moment, apogee=True)


def next_perigee_after(moment: TimeValue) -> TimeValue:
    """First lunar perigee strictly after *moment* (civil, minute precision)."""

    return _anomalistic(moment, apogee=False)
