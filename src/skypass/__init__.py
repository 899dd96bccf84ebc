"""skypass: overhead pass prediction from Two-Line Element sets.

Predicts when an Earth-orbiting object rises above and sets below a ground
observer's horizon, from a TLE and the observer's geodetic position.

Modules:
    tle_parser:  Parse TLE text into element records.
    orbit:       Orbital state initialization, Kepler solver, propagation.
    frames:      Inertial/Earth-fixed/topocentric transforms and look angles.
    timeutil:    Julian dates and Greenwich mean sidereal time.
    passes:      Horizon state machine and pass search over a time window.
    celestrak:   TLE file loading and the CelesTrak GP client.
    viz:         Sky-track and timeline plots.
    cli:         Command-line interface.

Example:
    >>> from skypass.tle_parser import TLE
    >>> from skypass.orbit import initialize
    >>> from skypass.frames import ObserverFrame
    >>> from skypass.passes import SearchConfig, predict_passes
    >>>
    >>> state = initialize(TLE.parse(line1, line2, name="ISS (ZARYA)"))
    >>> observer = ObserverFrame.from_degrees(52.2, 0.12, 0.03)
    >>> for p in predict_passes(state, observer, SearchConfig(min_elevation_deg=10)):
    ...     print(p.summary())
"""

__version__ = "0.1.0"
