"""Orbital state initialization and two-body propagation.

The state is the SGP4 "un-Kozai'd" mean orbit: the published mean motion is
corrected once for first-order Earth oblateness, then advanced linearly in
mean anomaly. No secular rates, drag or periodic terms are applied, which
keeps positions within a few kilometres of full SGP4 over a day for
near-circular LEO orbits -- enough to schedule passes.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import NamedTuple, Optional

from .constants import (
    AE,
    CK2,
    KEPLER_MAX_ITERATIONS,
    KEPLER_TOLERANCE,
    LOW_PERIGEE_KM,
    MINUTES_PER_DAY,
    TWO_PI,
    XKE,
    XKMPER,
)
from .errors import ParseError
from .timeutil import deg_to_rad, julian_day_from_datetime
from .tle_parser import TLE

logger = logging.getLogger(__name__)

Vector3 = tuple[float, float, float]


@dataclass(frozen=True)
class OrbitalState:
    """Immutable propagation state for one object.

    Attributes:
        name: Object name (if known).
        norad_id: NORAD catalog number (0 for synthetic states).
        epoch: Julian date of the element-set epoch.
        mean_motion: Oblateness-corrected mean motion (rad/min).
        eccentricity: Eccentricity, 0 <= e < 1.
        inclination: Inclination (rad).
        raan: Right ascension of ascending node (rad).
        arg_perigee: Argument of perigee (rad).
        mean_anomaly: Mean anomaly at epoch (rad).
        bstar: B* drag term, carried but not applied.
        semi_major_axis: Oblateness-corrected semi-major axis (Earth radii).
    """

    name: Optional[str]
    norad_id: int
    epoch: float
    mean_motion: float
    eccentricity: float
    inclination: float
    raan: float
    arg_perigee: float
    mean_anomaly: float
    bstar: float
    semi_major_axis: float

    @property
    def perigee_altitude_km(self) -> float:
        return (self.semi_major_axis * (1.0 - self.eccentricity) - AE) * XKMPER

    @property
    def is_low_perigee(self) -> bool:
        """Perigee below 220 km. Informational only; propagation ignores it."""
        return self.perigee_altitude_km < LOW_PERIGEE_KM

    @property
    def period_minutes(self) -> float:
        return TWO_PI / self.mean_motion


class KeplerSolution(NamedTuple):
    eccentric_anomaly: float
    iterations: int
    converged: bool


def initialize(tle: TLE) -> OrbitalState:
    """Build the propagation state for a parsed TLE.

    Converts mean motion from rev/day to rad/min and removes the J2 bias
    baked into the published (Kozai) mean motion, yielding the Brouwer
    semi-major axis and mean motion.

    Raises:
        ParseError: If the elements cannot describe a bound orbit.
    """
    if not 0.0 <= tle.eccentricity < 1.0:
        raise ParseError(f"invalid eccentricity {tle.eccentricity}", name=tle.name)
    if not tle.mean_motion > 0.0 or not math.isfinite(tle.mean_motion):
        raise ParseError(f"invalid mean motion {tle.mean_motion}", name=tle.name)
    for value in (tle.inclination, tle.raan, tle.arg_perigee, tle.mean_anomaly, tle.epoch_jd):
        if not math.isfinite(value):
            raise ParseError(f"non-finite element {value}", name=tle.name)

    no = tle.mean_motion * TWO_PI / MINUTES_PER_DAY
    inclination = deg_to_rad(tle.inclination)
    e = tle.eccentricity

    a1 = (XKE / no) ** (2.0 / 3.0)
    cosio = math.cos(inclination)
    x3thm1 = 3.0 * cosio * cosio - 1.0
    betao2 = 1.0 - e * e
    betao = math.sqrt(betao2)
    del1 = 1.5 * CK2 * x3thm1 / (a1 * a1 * betao * betao2)
    ao = a1 * (1.0 - del1 * (1.0 / 3.0 + del1 * (1.0 + 134.0 / 81.0 * del1)))
    delo = 1.5 * CK2 * x3thm1 / (ao * ao * betao * betao2)

    state = OrbitalState(
        name=tle.name,
        norad_id=tle.norad_id,
        epoch=tle.epoch_jd,
        mean_motion=no / (1.0 + delo),
        eccentricity=e,
        inclination=inclination,
        raan=deg_to_rad(tle.raan),
        arg_perigee=deg_to_rad(tle.arg_perigee),
        mean_anomaly=deg_to_rad(tle.mean_anomaly),
        bstar=tle.bstar,
        semi_major_axis=ao / (1.0 - delo),
    )
    logger.debug(
        "Initialized %s: a=%.6f ER, n=%.8f rad/min, perigee=%.1f km%s",
        tle.name or tle.norad_id,
        state.semi_major_axis,
        state.mean_motion,
        state.perigee_altitude_km,
        " (low perigee)" if state.is_low_perigee else "",
    )
    return state


def solve_kepler(
    mean_anomaly: float,
    eccentricity: float,
    max_iterations: int = KEPLER_MAX_ITERATIONS,
    tolerance: float = KEPLER_TOLERANCE,
) -> KeplerSolution:
    """Solve ``M = E - e sin E`` for E by Newton iteration.

    Starts from ``E = M``. If the increment has not dropped below
    ``tolerance`` after ``max_iterations`` steps, the last iterate is
    returned with ``converged=False`` rather than raising.
    """
    e = eccentricity
    ecc_anomaly = mean_anomaly
    for i in range(1, max_iterations + 1):
        delta = (mean_anomaly - ecc_anomaly + e * math.sin(ecc_anomaly)) / (
            1.0 - e * math.cos(ecc_anomaly)
        )
        ecc_anomaly += delta
        if abs(delta) < tolerance:
            return KeplerSolution(ecc_anomaly, i, True)
    return KeplerSolution(ecc_anomaly, max_iterations, False)


def minutes_since_epoch(state: OrbitalState, jd: float) -> float:
    return (jd - state.epoch) * MINUTES_PER_DAY


def propagate(state: OrbitalState, when: datetime | float) -> Optional[Vector3]:
    """Inertial (TEME-like) position of the object, in km.

    Args:
        state: Initialized orbital state.
        when: UTC datetime or Julian date.

    Returns:
        ``(x, y, z)`` in km, or ``None`` if the result is not finite
        (degenerate elements); callers treat ``None`` as "unavailable".
    """
    jd = float(when) if isinstance(when, (int, float)) else julian_day_from_datetime(when)
    tsince = minutes_since_epoch(state, jd)

    e = state.eccentricity
    a = state.semi_major_axis
    mean_anomaly = math.fmod(state.mean_anomaly + state.mean_motion * tsince, TWO_PI)

    solution = solve_kepler(mean_anomaly, e)
    if not solution.converged:
        logger.debug(
            "Kepler solver hit %d iterations for %s (e=%.4f)",
            solution.iterations,
            state.name or state.norad_id,
            e,
        )
    sin_e = math.sin(solution.eccentric_anomaly)
    cos_e = math.cos(solution.eccentric_anomaly)

    # Position in the orbital plane, x toward perigee
    xorb = a * (cos_e - e)
    yorb = a * math.sqrt(1.0 - e * e) * sin_e

    # 3-1-3 rotation: argument of perigee, inclination, node
    cosw, sinw = math.cos(state.arg_perigee), math.sin(state.arg_perigee)
    cosi, sini = math.cos(state.inclination), math.sin(state.inclination)
    cosn, sinn = math.cos(state.raan), math.sin(state.raan)

    x1 = cosw * xorb - sinw * yorb
    y1 = sinw * xorb + cosw * yorb

    position = (
        (cosn * x1 - sinn * y1 * cosi) * XKMPER,
        (sinn * x1 + cosn * y1 * cosi) * XKMPER,
        (y1 * sini) * XKMPER,
    )
    if not all(math.isfinite(c) for c in position):
        return None
    return position
