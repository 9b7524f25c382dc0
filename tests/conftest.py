from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Iterable

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from fastapi.testclient import TestClient  # noqa: E402


@pytest.fixture(scope="session")
def api_client() -> Iterable[TestClient]:
    os.environ["ALMANAC_JOBS"] = "1"
    from almanac_api import app

    with TestClient(app) as client:
        yield client
    os.environ.pop("ALMANAC_JOBS", None)


@pytest.fixture(autouse=True)
def default_calculator(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ALMANAC_CALCULATOR", raising=False)
