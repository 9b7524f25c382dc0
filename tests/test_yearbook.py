from __future__ import annotations

from datetime import UTC, datetime

import pytest

from almanac.seasons import AstronomicalSeason
from almanac.yearbook import RootTask, _solve_task, compute_year


@pytest.fixture(scope="module")
def year_2024():
    return compute_year(2024, n_jobs=1)


def test_seasons(year_2024):
    seasons = year_2024["seasons"]
    assert list(seasons) == [season.name for season in AstronomicalSeason]
    expected = datetime(2024, 3, 20, 3, 6, tzinfo=UTC)
    assert abs((seasons["VERNAL_EQUINOX"] - expected).total_seconds()) < 60


def test_solar_terms_are_chronological(year_2024):
    terms = year_2024["solar_terms"]
    assert len(terms) == 24
    assert next(iter(terms)) == "J12"
    moments = [entry["datetime"] for entry in terms.values()]
    assert moments == sorted(moments)
    assert terms["Z11"]["name"] == "冬至"
    assert terms["Z11"]["longitude"] == 270


def test_moon_phases_cover_the_year(year_2024):
    phases = year_2024["moon_phases"]
    moments = [entry["datetime"] for entry in phases]
    assert moments == sorted(moments)
    assert all(moment.year == 2024 for moment in moments)
    assert sum(entry["phase"] == "NEW_MOON" for entry in phases) == 13
    assert 48 <= len(phases) <= 52
    first = phases[0]
    assert first["phase"] == "LAST_QUARTER"
    assert first["datetime"].date() == datetime(2024, 1, 4).date()


def test_parallel_matches_sequential(year_2024):
    parallel = compute_year(2024, n_jobs=2)
    assert parallel == year_2024


def test_jobs_from_environment(monkeypatch, year_2024):
    monkeypatch.setenv("ALMANAC_JOBS", "1")
    assert compute_year(2024) == year_2024


@pytest.mark.parametrize("year", [0, 3000])
def test_year_out_of_range(year):
    with pytest.raises(ValueError, match="Year out of range"):
        compute_year(year)


def test_unknown_task_kind():
    with pytest.raises(RuntimeError, match="Failed to solve task bogus"):
        _solve_task(RootTask("bogus", "planetary", "MARS"))
