"""Annual tables of seasons, solar terms and moon phases solved in parallel."""

from __future__ import annotations

import json
import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from joblib import Parallel, cpu_count, delayed

from .config import parallel_jobs
from .phases import MEAN_SYNODIC_MONTH, MoonPhase
from .seasons import AstronomicalSeason, SolarTerm
from .timescale import TimeValue

__all__ = ["RootTask", "compute_year"]

LOGGER = logging.getLogger(__name__)

# civil julian day of the new moon of lunation 0
_LUNATION_ZERO_JD = 2451550.2595

_SEASON_TERMS = {
    AstronomicalSeason.VERNAL_EQUINOX: SolarTerm.Z2,
    AstronomicalSeason.SUMMER_SOLSTICE: SolarTerm.Z5,
    AstronomicalSeason.AUTUMNAL_EQUINOX: SolarTerm.Z8,
    AstronomicalSeason.WINTER_SOLSTICE: SolarTerm.Z11,
}


@dataclass(frozen=True)
class RootTask:
    task_id: str
    kind: str
    target: str
    year: int = 0
    lunation: int = 0


def _solve_task(task: RootTask) -> Tuple[str, float]:
    try:
        if task.kind == "solar":
            result = SolarTerm[task.target].in_year(task.year)
        elif task.kind == "lunar":
            result = MoonPhase[task.target].at_lunation(task.lunation)
        else:
            raise ValueError(f"Unknown task kind: {task.kind}")
    except Exception as exc:  # pragma: no cover - parallel error propagation
        raise RuntimeError(f"Failed to solve task {task.task_id}") from exc
    return task.task_id, result.value


def _solve_tasks_parallel(tasks: List[RootTask], n_jobs: Optional[int]) -> Dict[str, float]:
    if not tasks:
        return {}

    if n_jobs is None:
        n_jobs = max(1, min(cpu_count(), len(tasks)))

    if n_jobs == 1:
        return dict(_solve_task(task) for task in tasks)

    results = Parallel(n_jobs=n_jobs)(delayed(_solve_task)(task) for task in tasks)
    return dict(results)


def _lunation_range(year: int) -> range:
    start = TimeValue.from_calendar(year, 1, 1).value
    first = math.floor((start - _LUNATION_ZERO_JD) / MEAN_SYNODIC_MONTH) - 1
    return range(first, first + 15)


def _to_datetime(jd: float) -> datetime:
    return TimeValue.civil(jd).to_datetime()


def compute_year(year: int, n_jobs: Optional[int] = None) -> Dict[str, object]:
    """Compute the astronomical events of a Gregorian year.

    Parameters
    ----------
    year:
        Gregorian year between 1 and 2999.
    n_jobs:
        Worker count for :class:`joblib.Parallel`; defaults to
        ``ALMANAC_JOBS`` or one worker per task up to the CPU count.

    Returns
    -------
    dict
        ``year``, ``seasons`` (name -> UTC datetime), ``solar_terms``
        (code -> name and UTC datetime) and ``moon_phases`` (chronological
        list of phase, lunation and UTC datetime).
    """

    if not 1 <= year <= 2999:
        raise ValueError(f"Year out of range 1 <= year <= 2999: {year}")
    if n_jobs is None:
        n_jobs = parallel_jobs()

    started = time.perf_counter()
    tasks: List[RootTask] = []
    for term in SolarTerm:
        tasks.append(RootTask(f"solar:{term.code}", "solar", term.name, year=year))
    for lunation in _lunation_range(year):
        for phase in MoonPhase:
            tasks.append(RootTask(f"lunar:{phase.name}:{lunation}", "lunar", phase.name, lunation=lunation))

    results = _solve_tasks_parallel(tasks, n_jobs)

    solar_terms: Dict[str, Dict[str, object]] = {}
    for term in sorted(SolarTerm, key=lambda t: results[f"solar:{t.code}"]):
        solar_terms[term.code] = {
            "name": term.chinese_name,
            "longitude": term.solar_longitude,
            "datetime": _to_datetime(results[f"solar:{term.code}"]),
        }

    seasons = {
        season.name: solar_terms[term.code]["datetime"] for season, term in _SEASON_TERMS.items()
    }

    start = TimeValue.from_calendar(year, 1, 1).value
    end = TimeValue.from_calendar(year + 1, 1, 1).value
    moon_phases: List[Dict[str, object]] = []
    for lunation in _lunation_range(year):
        for phase in MoonPhase:
            jd = results[f"lunar:{phase.name}:{lunation}"]
            if start <= jd < end:
                moon_phases.append({"phase": phase.name, "lunation": lunation, "jd": jd})
    moon_phases.sort(key=lambda entry: entry["jd"])
    for entry in moon_phases:
        entry["datetime"] = _to_datetime(entry.pop("jd"))

    LOGGER.info(
        json.dumps(
            {
                "event": "year_computed",
                "year": year,
                "tasks": len(tasks),
                "n_jobs": n_jobs,
                "duration_ms": round((time.perf_counter() - started) * 1000, 3),
            }
        )
    )
    return {"year": year, "seasons": seasons, "solar_terms": solar_terms, "moon_phases": moon_phases}
