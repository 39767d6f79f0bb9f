"""
Tests for ECI/geodetic conversion.
"""

import math
from datetime import datetime

import pytest
from orbit_predictor.coordinate_systems import ecef_to_llh, eci_to_ecef, llh_to_ecef

from pass_predictor.geodesy import (
    GeodeticPoint,
    eci_to_geodetic,
    geodetic_to_eci,
    normalize_longitude,
    sidereal_time,
)
from pass_predictor.orbit import OrbitPropagator

EQUATORIAL_RADIUS_KM = 6378.137


class TestEciToGeodetic:

    def test_point_on_x_axis(self) -> None:
        point = eci_to_geodetic((7000.0, 0.0, 0.0), 0.0)
        assert point.latitude == pytest.approx(0.0, abs=1e-9)
        assert point.longitude == pytest.approx(0.0, abs=1e-9)
        assert point.altitude_km == pytest.approx(7000.0 - EQUATORIAL_RADIUS_KM, abs=1e-3)

    def test_earth_rotation_shifts_longitude_west(self) -> None:
        point = eci_to_geodetic((7000.0, 0.0, 0.0), math.pi / 2)
        assert point.longitude == pytest.approx(-90.0, abs=1e-9)
        assert point.latitude == pytest.approx(0.0, abs=1e-9)

    def test_north_pole(self) -> None:
        point = eci_to_geodetic((0.0, 0.0, 7000.0), 1.234)
        assert point.latitude == 90.0
        assert point.longitude == 0.0
        _, _, polar_radius = llh_to_ecef(90.0, 0.0, 0.0)
        assert point.altitude_km == pytest.approx(7000.0 - polar_radius, abs=1e-9)

    def test_south_pole(self) -> None:
        point = eci_to_geodetic((0.0, 0.0, -7000.0), 0.0)
        assert point.latitude == -90.0

    @pytest.mark.parametrize("position,gmst", [
        ((4000.0, 3000.0, 4500.0), 0.7),
        ((60.0, -40.0, 6900.0), 2.5),
        ((-42164.0, 100.0, 0.0), 4.0),
        ((-3000.0, -5000.0, -3500.0), 6.0),
    ])
    def test_matches_orbit_predictor(self, position, gmst) -> None:
        latitude, longitude, altitude = ecef_to_llh(eci_to_ecef(position, gmst))
        point = eci_to_geodetic(position, gmst)
        assert point.latitude == pytest.approx(float(latitude), abs=1e-9)
        assert point.longitude == pytest.approx(normalize_longitude(float(longitude)), abs=1e-9)
        assert point.altitude_km == pytest.approx(float(altitude), abs=1e-9)

    @pytest.mark.parametrize("gmst", [0.0, 1.0, 3.0, 5.5])
    def test_longitude_is_normalized(self, gmst) -> None:
        for angle in range(0, 360, 15):
            theta = math.radians(angle)
            point = eci_to_geodetic((7000.0 * math.cos(theta), 7000.0 * math.sin(theta), 100.0), gmst)
            assert -180.0 <= point.longitude < 180.0
            assert -90.0 <= point.latitude <= 90.0

    @pytest.mark.parametrize("lat,lon,alt", [
        (40.01, -75.01, 700.0),
        (0.0, 179.5, 400.0),
        (-65.3, -120.0, 550.0),
        (51.6, 10.0, 420.0),
        (89.0, 45.0, 800.0),
    ])
    def test_inverse_conversion(self, lat, lon, alt) -> None:
        gmst = 2.1
        point = eci_to_geodetic(geodetic_to_eci(lat, lon, alt, gmst), gmst)
        assert point.latitude == pytest.approx(lat, abs=1e-4)
        assert point.longitude == pytest.approx(lon, abs=1e-4)
        assert point.altitude_km == pytest.approx(alt, abs=0.05)

    def test_real_orbit_sub_satellite_point(self, iss_element_set, tle_epoch) -> None:
        propagator = OrbitPropagator()
        state = propagator.build_state(iss_element_set)
        sample = propagator.propagate(state, tle_epoch)

        point = eci_to_geodetic(sample.position, sidereal_time(tle_epoch))

        # Sub-satellite latitude is bounded by the 51.6 degree inclination
        assert abs(point.latitude) < 52.5
        assert 350.0 < point.altitude_km < 450.0


class TestHelpers:

    @pytest.mark.parametrize("value,expected", [
        (0.0, 0.0),
        (180.0, -180.0),
        (-180.0, -180.0),
        (190.0, -170.0),
        (-190.0, 170.0),
        (540.0, -180.0),
        (359.0, -1.0),
    ])
    def test_normalize_longitude(self, value, expected) -> None:
        assert normalize_longitude(value) == pytest.approx(expected)

    def test_sidereal_time_range(self) -> None:
        gmst = sidereal_time(datetime(2024, 1, 1, 12, 0, 0))
        assert 0.0 <= gmst < 2 * math.pi

    def test_sidereal_time_advances_faster_than_solar(self) -> None:
        # One solar day later the sidereal angle has advanced ~0.9856 degrees
        first = sidereal_time(datetime(2024, 1, 1, 0, 0, 0))
        second = sidereal_time(datetime(2024, 1, 2, 0, 0, 0))
        delta = math.degrees((second - first) % (2 * math.pi))
        assert delta == pytest.approx(0.9856, abs=0.01)

    def test_geodetic_point_to_dict(self) -> None:
        point = GeodeticPoint(40.0123456789, -75.0, 700.12345)
        assert point.to_dict() == {
            "latitude": 40.012346,
            "longitude": -75.0,
            "altitude_km": 700.123,
        }
