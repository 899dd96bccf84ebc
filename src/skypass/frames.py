"""Reference-frame transforms: inertial to Earth-fixed to topocentric."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import NamedTuple

from .constants import FLATTENING, TWO_PI, XKMPER
from .errors import ConfigurationError
from .timeutil import deg_to_rad, rad_to_deg

Vector3 = tuple[float, float, float]


class LookAngles(NamedTuple):
    """Observer-relative direction to a target.

    Attributes:
        azimuth: Radians clockwise from north, in [0, 2π).
        elevation: Radians above the local horizon, in [-π/2, π/2].
        range_km: Slant range (km).
    """
    azimuth: float
    elevation: float
    range_km: float

    @property
    def azimuth_deg(self) -> float:
        return rad_to_deg(self.azimuth)

    @property
    def elevation_deg(self) -> float:
        return rad_to_deg(self.elevation)


@dataclass(frozen=True)
class ObserverFrame:
    """Geodetic observer position with trig terms cached for reuse.

    Attributes:
        latitude: Geodetic latitude (rad).
        longitude: East longitude (rad).
        height_km: Height above the WGS-72 ellipsoid (km).
    """
    latitude: float
    longitude: float
    height_km: float = 0.0

    sin_lat: float = field(init=False, repr=False)
    cos_lat: float = field(init=False, repr=False)
    sin_lon: float = field(init=False, repr=False)
    cos_lon: float = field(init=False, repr=False)
    position_ecf: Vector3 = field(init=False, repr=False)

    def __post_init__(self) -> None:
        for label, value in (
            ("latitude", self.latitude),
            ("longitude", self.longitude),
            ("height", self.height_km),
        ):
            if not math.isfinite(value):
                raise ConfigurationError(f"Observer {label} must be finite. Got: {value}")
        if abs(self.latitude) > math.pi / 2:
            raise ConfigurationError(
                f"Latitude must be in range [-90, 90] degrees. Got: {rad_to_deg(self.latitude):.4f}"
            )
        if abs(self.longitude) > math.pi:
            raise ConfigurationError(
                f"Longitude must be in range [-180, 180] degrees. Got: {rad_to_deg(self.longitude):.4f}"
            )

        # frozen: assign the cached terms through object.__setattr__
        set_ = object.__setattr__
        set_(self, "sin_lat", math.sin(self.latitude))
        set_(self, "cos_lat", math.cos(self.latitude))
        set_(self, "sin_lon", math.sin(self.longitude))
        set_(self, "cos_lon", math.cos(self.longitude))
        set_(self, "position_ecf", self._geodetic_to_ecf())

    @classmethod
    def from_degrees(
        cls,
        lat_deg: float,
        lon_deg: float,
        height_km: float = 0.0,
    ) -> ObserverFrame:
        """Build an observer from latitude/longitude in degrees."""
        if not (-90.0 <= lat_deg <= 90.0):
            raise ConfigurationError(
                f"Latitude must be in range [-90, 90] degrees. Got: {lat_deg}"
            )
        if not (-180.0 <= lon_deg <= 180.0):
            raise ConfigurationError(
                f"Longitude must be in range [-180, 180] degrees. Got: {lon_deg}"
            )
        return cls(deg_to_rad(lat_deg), deg_to_rad(lon_deg), height_km)

    def _geodetic_to_ecf(self) -> Vector3:
        c = 1.0 / math.sqrt(1.0 + FLATTENING * (FLATTENING - 2.0) * self.sin_lat**2)
        sq = (1.0 - FLATTENING) ** 2 * c
        achcp = (XKMPER * c + self.height_km) * self.cos_lat
        return (
            achcp * self.cos_lon,
            achcp * self.sin_lon,
            (XKMPER * sq + self.height_km) * self.sin_lat,
        )


def eci_to_ecf(position: Vector3, sidereal_angle: float) -> Vector3:
    """Rotate an inertial vector into the Earth-fixed frame.

    Rotation about the polar axis by ``-sidereal_angle``; z is unchanged.
    """
    c = math.cos(sidereal_angle)
    s = math.sin(sidereal_angle)
    x, y, z = position
    return (c * x + s * y, -s * x + c * y, z)


def ecf_to_eci(position: Vector3, sidereal_angle: float) -> Vector3:
    c = math.cos(sidereal_angle)
    s = math.sin(sidereal_angle)
    x, y, z = position
    return (c * x - s * y, s * x + c * y, z)


def look_angles(observer: ObserverFrame, ecf: Vector3) -> LookAngles:
    """Azimuth, elevation and range of an Earth-fixed target.

    The observer-to-target vector is rotated into the South-East-Zenith
    basis of the observer's geodetic latitude and longitude.

    Raises:
        ValueError: If the target coincides with the observer.
    """
    ox, oy, oz = observer.position_ecf
    rx = ecf[0] - ox
    ry = ecf[1] - oy
    rz = ecf[2] - oz

    sin_lat, cos_lat = observer.sin_lat, observer.cos_lat
    sin_lon, cos_lon = observer.sin_lon, observer.cos_lon

    top_s = sin_lat * cos_lon * rx + sin_lat * sin_lon * ry - cos_lat * rz
    top_e = -sin_lon * rx + cos_lon * ry
    top_z = cos_lat * cos_lon * rx + cos_lat * sin_lon * ry + sin_lat * rz

    range_km = math.sqrt(top_s * top_s + top_e * top_e + top_z * top_z)
    if range_km == 0.0:
        raise ValueError("Target coincides with observer.")

    elevation = math.asin(max(-1.0, min(1.0, top_z / range_km)))
    azimuth = (math.atan2(-top_e, top_s) + math.pi) % TWO_PI
    if azimuth >= TWO_PI:
        azimuth = 0.0
    return LookAngles(azimuth, elevation, range_km)
