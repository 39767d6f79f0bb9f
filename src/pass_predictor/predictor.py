"""
Next-pass prediction for a single tracked object.

The search samples the object's sub-satellite point at fixed steps from the
start instant and reports the first sample that falls within the overhead
threshold of the observer. There is no refinement towards the closest
approach, and a pass that starts and ends between two samples is missed.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Iterator, Optional, Tuple
import logging
import math

from .config import PredictionConfig
from .exceptions import PropagationInvalid
from .geodesy import GeodeticPoint, eci_to_geodetic, sidereal_time
from .orbit import ElementSet, OrbitalState, OrbitPropagator
from .utils import (
    calculate_ground_distance, format_pass_time, get_current_utc, to_naive_utc
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Observer:
    """Ground observer position in degrees. Not range-checked here."""

    latitude: float
    longitude: float


@dataclass(frozen=True)
class PassResult:
    """
    Outcome of a next-pass search for one object.

    ``pass_time`` is None when no sample qualified within the horizon, or
    when the object could not be processed at all (``error`` is then set).
    """

    object_key: str
    pass_time: Optional[datetime] = None
    position: Optional[GeodeticPoint] = None
    distance_km: Optional[float] = None
    error: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.pass_time is not None

    @property
    def errored(self) -> bool:
        return self.error is not None

    def marker(self) -> Optional[Dict[str, Any]]:
        """Position record for placing a marker at the matching sample."""
        if self.pass_time is None or self.position is None:
            return None
        return {
            "latitude": self.position.latitude,
            "longitude": self.position.longitude,
            "object_key": self.object_key,
        }

    def describe(self, local: bool = True) -> str:
        label = self.object_key.upper()
        if self.pass_time is not None:
            return f"{label}: Next pass at {format_pass_time(self.pass_time, local=local)}"
        if self.error is not None:
            return f"{label}: No upcoming pass detected ({self.error})."
        return f"{label}: No upcoming pass detected."

    def to_dict(self) -> Dict[str, Any]:
        return {
            "object_key": self.object_key,
            "pass_time": self.pass_time.isoformat() if self.pass_time else None,
            "position": self.position.to_dict() if self.position else None,
            "distance_km": round(self.distance_km, 3) if self.distance_km is not None else None,
            "error": self.error,
        }


def ground_track(
    propagator: Any,
    state: OrbitalState,
    start_time: datetime,
    step_seconds: float,
    count: int,
) -> Iterator[Tuple[datetime, GeodeticPoint]]:
    """
    Lazily yield sub-satellite points at fixed steps.

    Invalid samples are skipped.

    Args:
        propagator: Object with a ``propagate(state, instant)`` method
        state: Orbital state to propagate
        start_time: First sample instant (naive UTC)
        step_seconds: Interval between samples
        count: Number of samples to take

    Yields:
        Tuples of (instant, GeodeticPoint)
    """
    for i in range(count):
        instant = start_time + timedelta(seconds=i * step_seconds)
        sample = propagator.propagate(state, instant)
        try:
            position = sample.require_position()
        except PropagationInvalid as e:
            logger.debug(f"Skipping sample for {state.key}: {e}")
            continue
        yield instant, eci_to_geodetic(position, sidereal_time(instant))


def predict_next_pass(
    element_set: ElementSet,
    observer: Observer,
    horizon_seconds: float,
    step_seconds: float,
    threshold_km: float,
    start_time: Optional[datetime] = None,
    propagator: Optional[Any] = None,
) -> PassResult:
    """
    Find the first sample at which an object is overhead of the observer.

    Args:
        element_set: TLE lines of the object
        observer: Observer position
        horizon_seconds: Look-ahead horizon
        step_seconds: Sampling interval
        threshold_km: Surface distance below which the object is overhead
        start_time: Search start (defaults to now, UTC)
        propagator: Propagation adapter (defaults to OrbitPropagator)

    Returns:
        PassResult with ``pass_time`` set for the first qualifying sample

    Raises:
        MalformedElementSet: If the element set cannot be parsed
    """
    if step_seconds <= 0 or horizon_seconds <= 0:
        raise ValueError("horizon_seconds and step_seconds must be positive")

    propagator = propagator or OrbitPropagator()
    start = to_naive_utc(start_time) if start_time is not None else get_current_utc()

    state = propagator.build_state(element_set)
    count = math.floor(horizon_seconds / step_seconds) + 1

    for instant, point in ground_track(propagator, state, start, step_seconds, count):
        distance = calculate_ground_distance(
            observer.latitude, observer.longitude, point.latitude, point.longitude
        )
        if distance < threshold_km:
            logger.info(
                f"Pass found for {element_set.key} at {instant.isoformat()} "
                f"({distance:.1f} km from observer)"
            )
            return PassResult(
                object_key=element_set.key,
                pass_time=instant,
                position=point,
                distance_km=distance,
            )

    logger.info(f"No pass found for {element_set.key} within {horizon_seconds:.0f}s")
    return PassResult(object_key=element_set.key)


class PassPredictor:
    """
    Next-pass search bound to a prediction configuration.
    """

    def __init__(
        self,
        config: Optional[PredictionConfig] = None,
        propagator: Optional[Any] = None,
    ) -> None:
        self.config = config or PredictionConfig()
        self.propagator = propagator or OrbitPropagator()

    def predict(
        self,
        element_set: ElementSet,
        observer: Observer,
        start_time: Optional[datetime] = None,
    ) -> PassResult:
        """Run the next-pass search for one element set."""
        return predict_next_pass(
            element_set,
            observer,
            horizon_seconds=self.config.horizon_seconds,
            step_seconds=self.config.step_seconds,
            threshold_km=self.config.threshold_km,
            start_time=start_time,
            propagator=self.propagator,
        )
