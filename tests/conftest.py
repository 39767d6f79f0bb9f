"""
Pytest configuration and shared fixtures.

This file is automatically loaded by pytest and provides:
- Custom markers for test categorization
- Shared fixtures for common test setup
- A deterministic synthetic propagator for pass-search tests
"""

import sys
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import pytest
from _pytest.config import Config
from _pytest.python import Function

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pass_predictor.geodesy import geodetic_to_eci, sidereal_time  # noqa: E402
from pass_predictor.orbit import ElementSet, OrbitalState, PositionSample  # noqa: E402


# =============================================================================
# COLLECTION HOOKS
# =============================================================================


def pytest_collection_modifyitems(config: Config, items: List[Function]) -> None:
    """Auto-mark integration tests."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


def pytest_configure(config: Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line("markers", "integration: marks integration tests")


# =============================================================================
# SYNTHETIC PROPAGATOR
# =============================================================================


# Antipode of the (40, -75) observer used throughout the tests
FAR_POINT = (-40.0, 105.0)


class SyntheticPropagator:
    """
    Propagator stand-in that places the object at scripted geodetic points.

    ``points`` maps step index to (lat, lon), or to None for an invalid
    sample. Steps not listed use ``default``.
    """

    def __init__(
        self,
        start_time: datetime,
        step_seconds: float,
        points: Optional[Dict[int, Optional[Tuple[float, float]]]] = None,
        default: Optional[Tuple[float, float]] = FAR_POINT,
        altitude_km: float = 700.0,
    ) -> None:
        self.start_time = start_time
        self.step_seconds = step_seconds
        self.points = points or {}
        self.default = default
        self.altitude_km = altitude_km
        self.calls: List[datetime] = []
        self.built: List[str] = []

    def build_state(self, element_set: ElementSet) -> OrbitalState:
        self.built.append(element_set.key)
        return OrbitalState(element_set=element_set, satrec=None)

    def propagate(self, state: OrbitalState, instant: datetime) -> PositionSample:
        self.calls.append(instant)
        index = round((instant - self.start_time).total_seconds() / self.step_seconds)
        point = self.points.get(index, self.default)
        if point is None:
            return PositionSample(instant=instant, position=None, error_code=6)
        latitude, longitude = point
        position = geodetic_to_eci(latitude, longitude, self.altitude_km, sidereal_time(instant))
        return PositionSample(instant=instant, position=position)


# =============================================================================
# FIXTURES - Common test setup
# =============================================================================


@pytest.fixture
def iss_tle_lines() -> Tuple[str, str]:
    """Sample TLE data for the ISS (epoch 2024-01-01)."""
    return (
        "1 25544U 98067A   24001.00000000  .00002182  00000-0  40864-4 0  9990",
        "2 25544  51.6461 339.7939 0001220  92.8340 267.3124 15.49309239426382",
    )


@pytest.fixture
def landsat_tle_lines() -> Tuple[str, str]:
    """Sample TLE data for Landsat 8 (epoch 2024-01-01)."""
    return (
        "1 39084U 13008A   24001.00000000  .00000012  00000-0  28110-4 0  9993",
        "2 39084  98.2062 348.0319 0001378  83.7123 276.4313 14.57107527560649",
    )


@pytest.fixture
def iss_element_set(iss_tle_lines: Tuple[str, str]) -> ElementSet:
    return ElementSet(key="iss", line1=iss_tle_lines[0], line2=iss_tle_lines[1], name="ISS (ZARYA)")


@pytest.fixture
def landsat_element_set(landsat_tle_lines: Tuple[str, str]) -> ElementSet:
    return ElementSet(key="l8", line1=landsat_tle_lines[0], line2=landsat_tle_lines[1])


@pytest.fixture
def malformed_element_set() -> ElementSet:
    return ElementSet(key="broken", line1="1 not a real tle line", line2="2 neither is this")


@pytest.fixture
def synthetic_element_set() -> ElementSet:
    """Element set whose lines are never parsed (used with SyntheticPropagator)."""
    return ElementSet(key="x", line1="1 synthetic", line2="2 synthetic")


@pytest.fixture
def tle_epoch() -> datetime:
    """Instant close to the sample TLE epochs."""
    return datetime(2024, 1, 1, 12, 0, 0)


@pytest.fixture
def base_datetime() -> datetime:
    """Standard base datetime for synthetic tests."""
    return datetime(2025, 11, 8, 0, 0, 0)


@pytest.fixture
def observer():
    """Observer near Philadelphia."""
    from pass_predictor.predictor import Observer

    return Observer(latitude=40.0, longitude=-75.0)


@pytest.fixture
def make_propagator(base_datetime: datetime) -> Callable[..., SyntheticPropagator]:
    """Factory for SyntheticPropagator anchored at base_datetime with 600 s steps."""

    def _make(points=None, default=FAR_POINT, step_seconds: float = 600) -> SyntheticPropagator:
        return SyntheticPropagator(base_datetime, step_seconds, points=points, default=default)

    return _make


@pytest.fixture
def tle_text(iss_tle_lines: Tuple[str, str], landsat_tle_lines: Tuple[str, str]) -> str:
    """TLE text in the downloadable export format."""
    return (
        f"ISS:\n{iss_tle_lines[0]}\n{iss_tle_lines[1]}\n\n"
        f"L8:\n{landsat_tle_lines[0]}\n{landsat_tle_lines[1]}\n\n"
    )


@pytest.fixture
def tle_file(tmp_path: Path, tle_text: str) -> Path:
    path = tmp_path / "satellites.tle"
    path.write_text(tle_text)
    return path

