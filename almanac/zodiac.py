"""Entry into and exit from zodiac constellations and signs by the sun or the moon."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .moon import lunar_longitude
from .solver import bisect_longitude, mod360
from .sun import apparent_solar_longitude, nutations
from .timescale import TimeValue, julian_centuries

__all__ = ["Body", "Direction", "Zodiac", "ZodiacEvent", "ZodiacKind"]

GENERAL_PRECESSION = 5029.0966 / 3600  # degrees per Julian century

# mean daily motion in degrees and search margin in days
_MOTION = {"SUN": (360 / 365.242189, 5.0), "MOON": (360 / 27.321582, 2.0)}


class Body(str, Enum):
    SUN = "sun"
    MOON = "moon"


class Direction(str, Enum):
    ENTRY = "entry"
    EXIT = "exit"


class ZodiacKind(str, Enum):
    """Astronomical constellations (IAU boundaries) or tropical signs of 30 degrees."""

    CONSTELLATION = "constellation"
    SIGN = "sign"


class Zodiac(Enum):
    """The 13 ecliptic constellations, valued by the J2000 ecliptic longitude of their start."""

    ARIES = 29.09
    TAURUS = 53.47
    GEMINI = 90.43
    CANCER = 118.26
    LEO = 138.18
    VIRGO = 174.15
    LIBRA = 218.04
    SCORPIUS = 241.05
    OPHIUCHUS = 247.68
    SAGITTARIUS = 266.28
    CAPRICORNUS = 299.69
    AQUARIUS = 327.87
    PISCES = 351.65

    @property
    def start_longitude(self) -> float:
        return self.value

    @property
    def end_longitude(self) -> float:
        return self.next().value

    def next(self) -> "Zodiac":
        members = list(Zodiac)
        return members[(members.index(self) + 1) % len(members)]

    @property
    def is_sign(self) -> bool:
        return self is not Zodiac.OPHIUCHUS

    def sign_start(self) -> float:
        """Tropical longitude where the sign of the same name begins."""

        if not self.is_sign:
            raise ValueError("Ophiuchus is not a zodiac sign.")
        signs = [member for member in Zodiac if member.is_sign]
        return 30.0 * signs.index(self)

    def next_sign(self) -> "Zodiac":
        signs = [member for member in Zodiac if member.is_sign]
        return signs[(signs.index(self) + 1) % len(signs)]

    @classmethod
    def of_constellation(cls, longitude_j2000: float) -> "Zodiac":
        """Constellation containing an ecliptic longitude referred to J2000."""

        longitude = mod360(longitude_j2000)
        result = cls.PISCES
        for member in cls:
            if longitude >= member.value:
                result = member
        return result

    @classmethod
    def of_sign(cls, longitude: float) -> "Zodiac":
        signs = [member for member in cls if member.is_sign]
        return signs[int(mod360(longitude) // 30)]


def _body_longitude(body: Body) -> Callable[[float], float]:
    if Body(body) is Body.SUN:
        return lambda jde: apparent_solar_longitude(julian_centuries(jde))
    return lambda jde: lunar_longitude(jde, nutations(jde)[0])


def precession(jde: float) -> float:
    """Accumulated general precession in longitude since J2000, in degrees."""

    return GENERAL_PRECESSION * julian_centuries(jde)


@dataclass(frozen=True)
class ZodiacEvent:
    """Crossing of a zodiac boundary by the sun or the moon.

    For constellations the J2000 boundaries are moved by general precession
    to the epoch of the crossing; signs are tropical and need no correction.
    """

    body: Body
    zodiac: Zodiac
    kind: ZodiacKind = ZodiacKind.CONSTELLATION

    def __post_init__(self) -> None:
        object.__setattr__(self, "body", Body(self.body))
        object.__setattr__(self, "kind", ZodiacKind(self.kind))
        if self.kind is ZodiacKind.SIGN and not self.zodiac.is_sign:
            raise ValueError("Ophiuchus is not a zodiac sign.")

    def boundary(self, direction: Direction) -> float:
        """Boundary longitude in degrees (J2000 frame for constellations)."""

        direction = Direction(direction)
        if self.kind is ZodiacKind.SIGN:
            zodiac = self.zodiac if direction is Direction.ENTRY else self.zodiac.next_sign()
            return zodiac.sign_start()
        zodiac = self.zodiac if direction is Direction.ENTRY else self.zodiac.next()
        return zodiac.start_longitude

    def at_or_after(self, moment: TimeValue, direction: Direction = Direction.ENTRY) -> TimeValue:
        """First crossing at or after *moment* (civil, second precision).

        Parameters
        ----------
        moment:
            Start of the search in any time scale.
        direction:
            ``ENTRY`` into or ``EXIT`` out of the zodiac.
        """

        angle = self.boundary(direction)
        body_longitude = _body_longitude(self.body)
        if self.kind is ZodiacKind.CONSTELLATION:

            def longitude(jde: float) -> float:
                return mod360(body_longitude(jde) - precession(jde))

        else:
            longitude = body_longitude

        speed, margin = _MOTION[self.body.name]
        jde = moment.to_ephemeris().value
        estimate = jde + mod360(angle - longitude(jde)) / speed
        low = max(jde, estimate - margin)
        high = estimate + margin
        result = bisect_longitude(longitude, angle, low, high)
        return TimeValue.ephemeris(result).to_civil().truncated(1)
