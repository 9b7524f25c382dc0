"""Root finders shared by the horizon, season, zodiac and shadow searches.

Every search is bounded. An event that never happens is reported as
``None``; running out of steps is logged and the best estimate returned.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

__all__ = [
    "QuadraticFit",
    "bisect_elevation",
    "bisect_longitude",
    "fixed_point",
    "interpolate",
    "mod360",
    "scan_crossings",
]

LOGGER = logging.getLogger(__name__)

MAX_FIXED_POINT_STEPS = 20
MAX_BISECTION_STEPS = 64
SCAN_CUTOFF_HOURS = 25.0


def mod360(angle: float) -> float:
    return angle - 360 * math.floor(angle / 360)


def _exhausted(solver: str, steps: int, **details: float) -> None:
    payload = {"event": "solver_max_steps", "solver": solver, "steps": steps}
    payload.update(details)
    LOGGER.warning(json.dumps(payload))


def fixed_point(
    step: Callable[[float], Optional[float]],
    start: float,
    tolerance: float,
    max_steps: int = MAX_FIXED_POINT_STEPS,
) -> Optional[float]:
    """Iterate ``x = step(x)`` from *start* until successive values agree.

    Parameters
    ----------
    step:
        Refinement function. Returning ``None`` signals that the event does
        not occur, which ends the search.
    start:
        Initial estimate.
    tolerance:
        Absolute difference between two iterates that counts as converged.
    max_steps:
        Upper bound on the number of evaluations.

    Returns
    -------
    float or None
        The converged value, or ``None`` if *step* reported no event.
    """

    old = start
    for _ in range(max_steps):
        new = step(old)
        if new is None:
            return None
        if abs(new - old) < tolerance:
            return new
        old = new
    _exhausted("fixed_point", max_steps, last=old)
    return old


@dataclass(frozen=True)
class QuadraticFit:
    """Parabola through three equidistant samples at x = -1, 0, +1.

    ``roots`` holds the zero crossings inside [-1, +1] in ascending order.
    """

    xe: float
    ye: float
    roots: Tuple[float, ...]


def interpolate(y_minus: float, y_0: float, y_plus: float) -> QuadraticFit:
    a = 0.5 * (y_plus + y_minus) - y_0
    b = 0.5 * (y_plus - y_minus)
    if a == 0.0:
        # degenerate to a straight line
        if b == 0.0:
            return QuadraticFit(0.0, y_0, ())
        root = -y_0 / b
        return QuadraticFit(math.copysign(math.inf, -b), y_0, (root,) if abs(root) <= 1.0 else ())
    xe = -b / (2.0 * a)
    ye = (a * xe + b) * xe + y_0
    dis = b * b - 4 * a * y_0
    roots: List[float] = []
    if dis >= 0:
        dx = 0.5 * math.sqrt(dis) / abs(a)
        if abs(xe - dx) <= 1.0:
            roots.append(xe - dx)
        if abs(xe + dx) <= 1.0:
            roots.append(xe + dx)
    return QuadraticFit(xe, ye, tuple(roots))


def scan_crossings(
    func: Callable[[float], float],
    step: float = 2.0,
    cutoff: float = SCAN_CUTOFF_HOURS,
) -> Tuple[Optional[float], Optional[float], bool]:
    """Scan a day in windows of *step* hours for upward and downward zero crossings.

    *func* maps hours since the start of the day to a signed height above
    the threshold. Three samples per window are fitted by a parabola. The
    scan ends once both crossings are found or the window center passes
    *cutoff* hours, which covers a 25 hour civil day.

    Returns
    -------
    tuple
        ``(rising_hour, setting_hour, above_at_start)``; missing crossings
        are ``None``.
    """

    half = step / 2
    hour = half
    y_minus = func(0.0)
    above = y_minus > 0.0
    rising: Optional[float] = None
    setting: Optional[float] = None

    while True:
        y_0 = func(hour)
        y_plus = func(hour + half)
        fit = interpolate(y_minus, y_0, y_plus)
        if len(fit.roots) == 1:
            if y_minus < 0.0:
                rising = hour + fit.roots[0] * half
            else:
                setting = hour + fit.roots[0] * half
        elif len(fit.roots) == 2:
            if fit.ye < 0.0:
                rising = hour + fit.roots[1] * half
                setting = hour + fit.roots[0] * half
            else:
                rising = hour + fit.roots[0] * half
                setting = hour + fit.roots[1] * half
        y_minus = y_plus
        hour += step
        if hour > cutoff or (rising is not None and setting is not None):
            break

    return rising, setting, above


def bisect_longitude(
    longitude: Callable[[float], float],
    angle: float,
    low: float,
    high: float,
    tolerance: float = 1e-5,
    max_steps: int = MAX_BISECTION_STEPS,
) -> float:
    """Find the Julian day in ``[low, high]`` where an ecliptic longitude reaches *angle*.

    The bracket must contain exactly one crossing. The half keeping the root
    is chosen by reducing ``longitude(mid) - angle`` modulo 360: below 180
    degrees the target has been passed.
    """

    for _ in range(max_steps):
        mid = (low + high) / 2
        if high - low < tolerance:
            return mid
        if mod360(longitude(mid) - angle) < 180.0:
            high = mid
        else:
            low = mid
    _exhausted("bisect_longitude", max_steps, angle=angle)
    return (low + high) / 2


def bisect_elevation(
    elevation: Callable[[int], float],
    target: float,
    low_sun: int,
    high_sun: int,
    tolerance: float = 1.0 / 60,
    max_steps: int = MAX_BISECTION_STEPS,
) -> int:
    """Find the POSIX second between *low_sun* and *high_sun* where *elevation* reaches *target*.

    *low_sun* is the end of the bracket with the lower sun, which comes first
    before noon and last after noon. The search stops once the elevation is
    within *tolerance* degrees or the bracket has shrunk to one second.
    """

    for _ in range(max_steps):
        center = (low_sun + high_sun) // 2
        value = elevation(center)
        if abs(value - target) < tolerance or abs(high_sun - low_sun) <= 1:
            return center
        if target > value:
            low_sun = center
        else:
            high_sun = center
    _exhausted("bisect_elevation", max_steps, target=target)
    return (low_sun + high_sun) // 2
