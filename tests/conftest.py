"""
HTTP fixtures: a TestClient whose settings, rules and clock point at the
temporary database and manual clock from the root conftest.
"""

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from src.adapters.clock import ManualClock
from src.api.deps import Settings, get_clock, get_rules, get_settings
from src.api.main import app
from src.rules.models import Rules


@pytest.fixture
def settings(tmp_path: Path, db_path: str) -> Settings:
    s = Settings()
    s.data_dir = tmp_path
    s.db_path = db_path
    s.admin_key = None
    return s


@pytest.fixture
def client(settings: Settings, rules: Rules, clock: ManualClock) -> Iterator[TestClient]:
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_rules] = lambda: rules
    app.dependency_overrides[get_clock] = lambda: clock
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def vendor_headers(make_vendor: Callable[..., Any]) -> dict[str, str]:
    """X-Vendor-Id for a vendor on the starter plan."""
    return {"X-Vendor-Id": str(make_vendor().id)}
