"""Moon phases (Meeus chapter 49) and the illuminated fraction of the lunar disk."""

from __future__ import annotations

import math
from enum import Enum

import numpy as np

from .moon import mean_anomaly_of_moon, mean_anomaly_of_sun, mean_elongation
from .timescale import TimeValue

__all__ = ["MEAN_SYNODIC_MONTH", "MoonPhase", "illumination"]

MEAN_SYNODIC_MONTH = 29.530588861

# new moon of lunation 0 (2000-01-06T18:13:42Z)
_ZERO_REF_POSIX = 947182422

# multiples of E (W), M (X), M' (Y) and F (Z) per periodic term
W_NEW_FULL = np.array([0, 1, 0, 0, 1, 1, 2, 0, 0, 1, 0, 1, 1, 1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0])
W_QUARTER = np.array([0, 1, 1, 0, 0, 1, 2, 0, 0, 0, 1, 1, 1, 2, 1, 0, 0, 0, 0, 0, 0, 0, 0, 0])
X_NEW_FULL = np.array([0, 1, 0, 0, -1, 1, 2, 0, 0, 1, 0, 1, 1, -1, 2, 0, 3, 1, 0, 1, -1, -1, 1, 0])
X_QUARTER = np.array([0, 1, 1, 0, 0, -1, 2, 0, 0, 0, -1, 1, 1, 2, 1, -1, 0, 1, -2, 1, 3, 0, -1, 1])
Y_NEW_FULL = np.array([1, 0, 2, 0, 1, 1, 0, 1, 1, 2, 3, 0, 0, 2, 1, 2, 0, 1, 2, 1, 1, 1, 3, 4])
Y_QUARTER = np.array([1, 0, 1, 2, 0, 1, 0, 1, 1, 3, 2, 0, 0, 1, 2, 1, 2, 1, 1, 1, 0, 2, 1, 3])
Z_NEW_FULL = np.array([0, 0, 0, 2, 0, 0, 0, -2, 2, 0, 0, 2, -2, 0, 0, -2, 0, -2, 2, 2, 2, -2, 0, 0])
Z_QUARTER = np.array([0, 0, 0, 0, 2, 0, 0, -2, 2, 0, 0, 2, -2, 0, 0, -2, 2, 2, 0, -2, 0, -2, 2, 0])

V_NEW = np.array([
    -0.40720, 0.17241, 0.01608, 0.01039, 0.00739, -0.00514, 0.00208, -0.00111, -0.00057, 0.00056, -0.00042,
    0.00042, 0.00038, -0.00024, -0.00007, 0.00004, 0.00004, 0.00003, 0.00003, -0.00003, 0.00003, -0.00002,
    -0.00002, 0.00002,
])
V_FULL = np.array([
    -0.40614, 0.17302, 0.01614, 0.01043, 0.00734, -0.00515, 0.00209, -0.00111, -0.00057, 0.00056, -0.00042,
    0.00042, 0.00038, -0.00024, -0.00007, 0.00004, 0.00004, 0.00003, 0.00003, -0.00003, 0.00003, -0.00002,
    -0.00002, 0.00002,
])
V_QUARTER = np.array([
    -0.62801, 0.17172, -0.01183, 0.00862, 0.00804, 0.00454, 0.00204, -0.0018, -0.0007, -0.0004, -0.00034,
    0.00032, 0.00032, -0.00028, 0.00027, -0.00005, 0.00004, -0.00004, 0.00004, 0.00003, 0.00003, 0.00002,
    0.00002, -0.00002,
])

# additional corrections for all phases: argument = A0 + A1 * k (+ A2 * T^2), amplitude
PLANETARY_A0 = np.array([
    299.77, 251.88, 251.83, 349.42, 84.66, 141.74, 207.14, 154.84, 34.52, 207.19, 291.34, 161.72, 239.56, 331.55,
])
PLANETARY_A1 = np.array([
    0.107408, 0.016321, 26.651886, 36.412478, 18.206239, 53.303771, 2.453732, 7.306860, 27.261239, 0.121824,
    1.844379, 24.198154, 25.513099, 3.592518,
])
PLANETARY_A2 = np.array([-0.009173] + [0.0] * 13)
PLANETARY_AMPLITUDE = np.array([
    0.000325, 0.000165, 0.000164, 0.000126, 0.00011, 0.000062, 0.00006, 0.000056, 0.000047, 0.000042, 0.00004,
    0.000037, 0.000035, 0.000023,
])

_SCALES = {2: 100, 3: 1000, 4: 10000, 5: 100000}


class MoonPhase(Enum):
    """Principal phases of the moon, valued by the elongation of the moon from the sun."""

    NEW_MOON = 0
    FIRST_QUARTER = 90
    FULL_MOON = 180
    LAST_QUARTER = 270

    @property
    def phase(self) -> int:
        return self.value

    def at_lunation(self, n: int) -> TimeValue:
        """Instant of this phase in lunation *n* (civil, second precision).

        Lunation 0 starts with the new moon of 2000-01-06. Negative values
        count backwards.
        """

        k = n + self.phase / 360.0
        jct = k / 1236.85
        t2 = jct * jct
        jde = 2451550.09766 + MEAN_SYNODIC_MONTH * k + (0.00015437 + (-0.00000015 + 0.00000000073 * jct) * jct) * t2
        omega = 124.7746 - 1.56375588 * k + (0.0020672 + 0.00000215 * jct) * t2
        jde -= 0.00017 * math.sin(math.radians(omega))

        e = 1 - (0.002516 + 0.0000074 * jct) * jct
        m = 2.5534 + 29.1053567 * k - (0.0000014 + 0.00000011 * jct) * t2
        m2 = 201.5643 + 385.81693528 * k + (0.0107582 + (0.00001238 - 0.000000058 * jct) * jct) * t2
        f = 160.7108 + 390.67050284 * k + (-0.0016118 + (-0.00000227 + 0.000000011 * jct) * jct) * t2

        jde += self._periodic24(e, m, m2, f)

        if self in (MoonPhase.FIRST_QUARTER, MoonPhase.LAST_QUARTER):
            mr, m2r, fr = math.radians(m), math.radians(m2), math.radians(f)
            w = (
                0.00306
                - 0.00038 * e * math.cos(mr)
                + 0.00026 * math.cos(m2r)
                - 0.00002 * math.cos(m2r - mr)
                + 0.00002 * math.cos(m2r + mr)
                + 0.00002 * math.cos(2 * fr)
            )
            jde += w if self is MoonPhase.FIRST_QUARTER else -w

        args = np.radians(PLANETARY_A0 + PLANETARY_A1 * k + PLANETARY_A2 * t2)
        jde += float(np.dot(PLANETARY_AMPLITUDE, np.sin(args)))

        return TimeValue.ephemeris(jde).to_civil().truncated(1)

    def after(self, moment: TimeValue) -> TimeValue:
        """First instant of this phase strictly after *moment*."""

        estimate = self._estimated_lunations(moment)
        n = estimate
        result = self.at_lunation(n)
        while not result.posix > moment.posix:
            n += 1
            result = self.at_lunation(n)
        if n <= estimate:
            while True:
                n -= 1
                candidate = self.at_lunation(n)
                if candidate.posix > moment.posix:
                    result = candidate
                else:
                    break
        return result

    def before(self, moment: TimeValue) -> TimeValue:
        """Last instant of this phase strictly before *moment*."""

        estimate = self._estimated_lunations(moment)
        n = estimate
        result = self.at_lunation(n)
        while not result.posix < moment.posix:
            n -= 1
            result = self.at_lunation(n)
        if n >= estimate:
            while True:
                n += 1
                candidate = self.at_lunation(n)
                if candidate.posix < moment.posix:
                    result = candidate
                else:
                    break
        return result

    def _estimated_lunations(self, moment: TimeValue) -> int:
        # whole days elapsed, truncated towards zero
        days = int((moment.posix - _ZERO_REF_POSIX) / 86400)
        return math.floor(days / MEAN_SYNODIC_MONTH - self.phase / 360.0 + 0.5)

    def _periodic24(self, e: float, m: float, m2: float, f: float) -> float:
        if self is MoonPhase.NEW_MOON:
            w, x, y, z, v = W_NEW_FULL, X_NEW_FULL, Y_NEW_FULL, Z_NEW_FULL, V_NEW
        elif self is MoonPhase.FULL_MOON:
            w, x, y, z, v = W_NEW_FULL, X_NEW_FULL, Y_NEW_FULL, Z_NEW_FULL, V_FULL
        else:
            w, x, y, z, v = W_QUARTER, X_QUARTER, Y_QUARTER, Z_QUARTER, V_QUARTER
        args = np.radians(x * m + y * m2 + z * f)
        return float(np.sum(v * np.power(e, w) * np.sin(args)))


def illumination(moment: TimeValue, decimals: int = 2) -> float:
    """Illuminated fraction of the lunar disk in [0.0, 1.0].

    Uses the lower accuracy phase angle of Meeus (48.4) from the mean lunar
    elements, rounded half up.

    Parameters
    ----------
    moment:
        Instant of observation.
    decimals:
        Number of decimal places, between 2 and 5.

    Raises
    ------
    ValueError
        If *decimals* is outside the supported range.
    """

    try:
        scale = _SCALES[decimals]
    except KeyError as exc:
        raise ValueError(f"Decimals out of range 2 <= decimals <= 5: {decimals}") from exc

    jct = moment.to_ephemeris().centuries
    d = mean_elongation(jct)
    m = math.radians(mean_anomaly_of_sun(jct))
    m2 = math.radians(mean_anomaly_of_moon(jct))
    dr = math.radians(d)
    phase_angle = (
        180
        - d
        - 6.289 * math.sin(m2)
        + 2.100 * math.sin(m)
        - 1.274 * math.sin(2 * dr - m2)
        - 0.658 * math.sin(2 * dr)
        - 0.214 * math.sin(2 * m2)
        - 0.110 * math.sin(dr)
    )
    k = (1 + math.cos(math.radians(phase_angle))) / 2
    return math.floor(k * scale + 0.5) / scale
