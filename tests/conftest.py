"""
Pytest configuration and shared fixtures.

Provides test configuration instances and sample dispatch data for unit and
integration tests.
"""

import time

import pytest
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
import pandas as pd

from src.core.config import Config
from src.dispatch.schema import Observation


BASE_TIME = datetime(2025, 3, 3, 8, 0, tzinfo=timezone.utc)  # a Monday


@pytest.fixture
def mock_config():
    """
    Fixture providing test configuration.

    Ensures tests run consistently regardless of DISPATCH_* environment
    variables or a local .env file.

    Returns:
        Config: Test instance with default thresholds
    """
    return Config(_env_file=None, log_level="WARNING")


@pytest.fixture(autouse=True)
def utc_local_zone(monkeypatch):
    """
    Pin the process time zone to UTC.

    Hour and weekday grouping fall back to the system zone, so expected
    local hours must not depend on the machine running the tests.
    """
    monkeypatch.setenv("TZ", "UTC")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


@pytest.fixture
def base_time() -> datetime:
    return BASE_TIME


@pytest.fixture
def make_observation():
    """
    Factory fixture for Observation objects.

    Defaults to a compliant dispatch at BASE_TIME; `minutes` offsets the
    alarm time.
    """

    def _make(
        vehicle_id: str = "RTW-1",
        minutes: float = 0,
        sector: Optional[str] = "Nord",
        response_time: Optional[float] = 60.0,
        travel_time: Optional[float] = 240.0,
        compliant: Optional[bool] = True,
        **kwargs: Any,
    ) -> Observation:
        return Observation(
            vehicle_id=vehicle_id,
            alarm_time=BASE_TIME + timedelta(minutes=minutes),
            sector=sector,
            response_time=response_time,
            travel_time=travel_time,
            compliant=compliant,
            **kwargs,
        )

    return _make


@pytest.fixture
def sample_dispatch_frame() -> pd.DataFrame:
    """
    Fixture providing a day of raw dispatch rows as a DataFrame.

    48 dispatches every 30 minutes across four vehicles and three sectors.
    RTW-4 in sector "Hafen" is consistently slow on the road; every eighth
    row is a routine transport ("-NF").

    Returns:
        pd.DataFrame: Raw rows with ISO timestamp strings
    """
    alarms = pd.date_range("2025-03-03 00:00", periods=48, freq="30min", tz="UTC")
    vehicles = ["RTW-1", "RTW-2", "RTW-3", "RTW-4"]
    sectors = {"RTW-1": "Nord", "RTW-2": "Nord", "RTW-3": "Mitte", "RTW-4": "Hafen"}

    rows: List[Dict[str, Any]] = []
    for i, alarm in enumerate(alarms):
        vehicle = vehicles[i % 4]
        response = 45 + (i % 5) * 10  # 45-85s
        travel = 200 + (i % 7) * 10 if vehicle != "RTW-4" else 420 + (i % 3) * 30
        departed = alarm + pd.Timedelta(seconds=response)
        arrived = departed + pd.Timedelta(seconds=travel)
        rows.append({
            "idevent": f"E-{i:04d}",
            "call_sign": vehicle,
            "revier_bf_ab_2018": sectors[vehicle],
            "nameeventtype": "Transport-NF" if i % 8 == 7 else "Notfall",
            "time_alarm": alarm.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "time_on_the_way": departed.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "time_arrived": arrived.strftime("%Y-%m-%dT%H:%M:%SZ"),
        })

    return pd.DataFrame(rows)


@pytest.fixture
def sample_dispatch_rows(sample_dispatch_frame) -> List[Dict[str, Any]]:
    """Raw rows as plain dicts, the shape the query layer delivers."""
    return sample_dispatch_frame.to_dict("records")


def pytest_configure(config):
    """
    Pytest hook for custom configuration.

    Registers custom markers used throughout tests.
    """
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running (deferred CI)"
    )
