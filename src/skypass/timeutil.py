"""Julian-date and sidereal-time helpers.

All functions here are pure; datetimes are treated as UTC. Naive datetimes
are assumed to already be in UTC.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone

from .constants import DE2RA, JD_J2000, SECONDS_PER_DAY, TWO_PI

_JD_UNIX_EPOCH = 2440587.5


def deg_to_rad(deg: float) -> float:
    return deg * DE2RA


def rad_to_deg(rad: float) -> float:
    return rad / DE2RA


def julian_day(
    year: int,
    month: int,
    day: float,
    hour: int = 0,
    minute: int = 0,
    second: float = 0.0,
) -> float:
    """Julian date of a Gregorian calendar instant.

    Uses the compact polynomial form valid for 1901-2099, which covers every
    TLE epoch. ``day`` may be zero or fractional, so ``julian_day(y, 1, 0)``
    is the Julian date of "day zero" of year ``y``.
    """
    return (
        367.0 * year
        - math.floor(7 * (year + math.floor((month + 9) / 12)) * 0.25)
        + math.floor(275 * month / 9)
        + day
        + 1721013.5
        + ((second / 60.0 + minute) / 60.0 + hour) / 24.0
    )


def julian_day_from_datetime(dt: datetime) -> float:
    """Julian date of a datetime, including sub-second precision."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return julian_day(
        dt.year,
        dt.month,
        dt.day,
        dt.hour,
        dt.minute,
        dt.second + dt.microsecond / 1e6,
    )


def datetime_from_julian_day(jd: float) -> datetime:
    """Timezone-aware UTC datetime for a Julian date."""
    epoch = datetime(1970, 1, 1, tzinfo=timezone.utc)
    return epoch + timedelta(seconds=(jd - _JD_UNIX_EPOCH) * SECONDS_PER_DAY)


def sidereal_time(jd: float) -> float:
    """Greenwich mean sidereal time (radians, in [0, 2π)).

    IAU-82 polynomial in Julian centuries of UT1 since J2000.0. The raw
    value is negative for dates before J2000, so it is wrapped explicitly.
    """
    tut1 = (jd - JD_J2000) / 36525.0
    seconds = (
        -6.2e-6 * tut1**3
        + 0.093104 * tut1**2
        + (876600.0 * 3600.0 + 8640184.812866) * tut1
        + 67310.54841
    )
    # 240 seconds of time per degree
    theta = (seconds * DE2RA / 240.0) % TWO_PI
    # float modulo of a tiny negative value can round up to exactly 2π
    if theta >= TWO_PI:
        theta = 0.0
    return theta
