"""Physical and model constants shared by the initializer and propagator.

Values follow the WGS-72 set used by the NORAD general perturbation
element sets, so that mean motion decoded from a TLE stays consistent
with the semi-major axis recovered from it.
"""

from __future__ import annotations

import math

TWO_PI = 2.0 * math.pi
"""2π constant."""

DE2RA = math.pi / 180.0
"""Degrees to radians."""

XKE = 7.43669161e-2
"""sqrt(GM) in (Earth radii)^1.5 per minute."""

CK2 = 5.413079e-4
"""J2/2 in Earth-radii units."""

AE = 1.0
"""Distance unit (Earth radii)."""

XKMPER = 6378.135
"""Earth equatorial radius (km), WGS-72."""

FLATTENING = 1.0 / 298.26
"""Earth flattening, WGS-72."""

MINUTES_PER_DAY = 1440.0
"""Minutes in a solar day."""

SECONDS_PER_DAY = 86400.0
"""Seconds in a solar day."""

JD_J2000 = 2451545.0
"""Julian date of the J2000.0 epoch."""

LOW_PERIGEE_KM = 220.0
"""Perigee altitude below which an orbit is flagged as low-perigee."""

KEPLER_MAX_ITERATIONS = 10
KEPLER_TOLERANCE = 1e-8

DEFAULT_STEP_SECONDS = 10.0
DEFAULT_WINDOW_HOURS = 24.0
