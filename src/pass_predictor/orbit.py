"""
Satellite orbit propagation and TLE handling module.

This module turns two-line element sets into SGP4 propagation state and
advances that state to requested instants using the sgp4 library.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Sequence, Tuple
import logging
import math

from sgp4.api import Satrec, jday  # type: ignore[import-untyped]

from .exceptions import MalformedElementSet, PropagationInvalid

logger = logging.getLogger(__name__)

TLE_LINE_LENGTH = 69

# Error code used when the propagation routine raised instead of reporting one
PROPAGATION_EXCEPTION = -1

Vector3 = Tuple[float, float, float]


@dataclass(frozen=True)
class ElementSet:
    """
    Two-line element set for one tracked object.

    ``key`` is the short identifier the object is tracked under (e.g. ``"l7"``).
    """

    key: str
    line1: str
    line2: str
    name: Optional[str] = None

    @classmethod
    def from_lines(cls, key: str, lines: Sequence[str]) -> "ElementSet":
        """
        Create an ElementSet from raw TLE lines.

        Args:
            key: Object key
            lines: ``[line1, line2]`` or ``[name, line1, line2]``

        Raises:
            MalformedElementSet: If the wrong number of lines is given
        """
        if len(lines) == 3:
            name, line1, line2 = lines
            return cls(key=key, line1=line1, line2=line2, name=name.strip())
        if len(lines) == 2:
            line1, line2 = lines
            return cls(key=key, line1=line1, line2=line2)
        raise MalformedElementSet(key, f"expected 2 or 3 lines, got {len(lines)}")

    @property
    def display_name(self) -> str:
        return self.name or self.key.upper()


@dataclass(frozen=True)
class OrbitalState:
    """Propagation state built from one element set."""

    element_set: ElementSet
    satrec: Any

    @property
    def key(self) -> str:
        return self.element_set.key


@dataclass(frozen=True)
class PositionSample:
    """
    Result of propagating an orbital state to one instant.

    ``position`` is an Earth-centred inertial (TEME) vector in km, or None
    when the model reported a decayed or numerically invalid orbit.
    """

    instant: datetime
    position: Optional[Vector3]
    error_code: int = 0

    @property
    def valid(self) -> bool:
        return self.position is not None

    def require_position(self) -> Vector3:
        """
        Return the position vector.

        Raises:
            PropagationInvalid: If the sample has no valid position
        """
        if self.position is None:
            raise PropagationInvalid(self.instant, self.error_code)
        return self.position


def _check_tle_format(element_set: ElementSet) -> None:
    """Check the fixed-column layout of both TLE lines."""
    for number, line in ((1, element_set.line1), (2, element_set.line2)):
        if not isinstance(line, str):
            raise MalformedElementSet(element_set.key, f"line {number} is not text")
        stripped = line.rstrip()
        if len(stripped) != TLE_LINE_LENGTH:
            raise MalformedElementSet(
                element_set.key,
                f"line {number} must be {TLE_LINE_LENGTH} characters, got {len(stripped)}"
            )
        if not stripped.startswith(f"{number} "):
            raise MalformedElementSet(
                element_set.key, f'line {number} must start with "{number} "'
            )


class OrbitPropagator:
    """
    Adapter around the SGP4/SDP4 propagation routine.

    This is the seam between the pass search and the propagation library;
    tests substitute objects with the same ``build_state``/``propagate``
    methods.
    """

    def build_state(self, element_set: ElementSet) -> OrbitalState:
        """
        Parse TLE lines into propagation state.

        Args:
            element_set: Element set to parse

        Returns:
            OrbitalState for the element set

        Raises:
            MalformedElementSet: If the lines are not valid TLE text
        """
        _check_tle_format(element_set)
        try:
            satrec = Satrec.twoline2rv(element_set.line1.rstrip(), element_set.line2.rstrip())
        except Exception as e:
            logger.error(f"Failed to parse element set for {element_set.key}: {e}")
            raise MalformedElementSet(element_set.key, str(e))

        logger.debug(f"Built orbital state for {element_set.key} (NORAD {satrec.satnum})")
        return OrbitalState(element_set=element_set, satrec=satrec)

    def propagate(self, state: OrbitalState, instant: datetime) -> PositionSample:
        """
        Advance the orbital state to an instant.

        Never raises: model errors and exceptions produce an invalid sample.

        Args:
            state: Orbital state from build_state
            instant: Naive UTC datetime

        Returns:
            PositionSample for the instant
        """
        jd, fr = jday(
            instant.year, instant.month, instant.day,
            instant.hour, instant.minute,
            instant.second + instant.microsecond * 1e-6
        )
        try:
            error_code, position, _velocity = state.satrec.sgp4(jd, fr)
        except Exception as e:
            logger.debug(f"Propagation failed for {state.key} at {instant}: {e}")
            return PositionSample(instant=instant, position=None, error_code=PROPAGATION_EXCEPTION)

        if error_code != 0:
            return PositionSample(instant=instant, position=None, error_code=error_code)
        if not all(math.isfinite(component) for component in position):
            return PositionSample(instant=instant, position=None, error_code=PROPAGATION_EXCEPTION)

        x, y, z = position
        return PositionSample(instant=instant, position=(x, y, z))
