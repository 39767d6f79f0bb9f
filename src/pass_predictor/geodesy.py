"""
Conversions between Earth-centred inertial positions and geodetic coordinates.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Sequence, Tuple
import math

from orbit_predictor.coordinate_systems import ecef_to_llh, eci_to_ecef, llh_to_ecef  # type: ignore[import-untyped]
from orbit_predictor.utils import gstime_from_datetime  # type: ignore[import-untyped]


@dataclass(frozen=True)
class GeodeticPoint:
    """Geodetic position: degrees latitude/longitude, km above the ellipsoid."""

    latitude: float
    longitude: float
    altitude_km: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "latitude": round(self.latitude, 6),
            "longitude": round(self.longitude, 6),
            "altitude_km": round(self.altitude_km, 3),
        }


def sidereal_time(instant: datetime) -> float:
    """Greenwich mean sidereal time in radians for a naive UTC datetime."""
    return gstime_from_datetime(instant)


def normalize_longitude(longitude: float) -> float:
    """Wrap a longitude in degrees into [-180, 180)."""
    return (longitude + 180.0) % 360.0 - 180.0


def eci_to_geodetic(position: Sequence[float], gmst: float) -> GeodeticPoint:
    """
    Convert an ECI position to geodetic coordinates.

    Args:
        position: (x, y, z) in km, Earth-centred inertial frame
        gmst: Greenwich mean sidereal time in radians at the position's instant

    Returns:
        GeodeticPoint with longitude in [-180, 180) and latitude in [-90, 90]
    """
    x, y, z = eci_to_ecef(tuple(position), gmst)

    if math.hypot(x, y) == 0.0:
        # Over a pole; ecef_to_llh is undefined here
        _, _, polar_radius = llh_to_ecef(90.0, 0.0, 0.0)
        return GeodeticPoint(
            latitude=math.copysign(90.0, z),
            longitude=0.0,
            altitude_km=abs(z) - polar_radius,
        )

    latitude, longitude, altitude = ecef_to_llh((x, y, z))

    return GeodeticPoint(
        latitude=max(-90.0, min(90.0, float(latitude))),
        longitude=normalize_longitude(float(longitude)),
        altitude_km=float(altitude),
    )


def geodetic_to_eci(
    latitude: float, longitude: float, altitude_km: float, gmst: float
) -> Tuple[float, float, float]:
    """
    Convert geodetic coordinates to an ECI position.

    Args:
        latitude: Geodetic latitude in degrees
        longitude: Longitude in degrees
        altitude_km: Height above the WGS-84 ellipsoid in km
        gmst: Greenwich mean sidereal time in radians

    Returns:
        (x, y, z) in km
    """
    x, y, z = llh_to_ecef(latitude, longitude, altitude_km)
    cos_t = math.cos(gmst)
    sin_t = math.sin(gmst)
    return (x * cos_t - y * sin_t, x * sin_t + y * cos_t, z)
