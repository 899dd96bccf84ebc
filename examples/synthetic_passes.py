"""
Example: Pass prediction for synthetic orbits.

This example needs no network access. It builds circular orbits directly
from mean elements, places them relative to an observer on the equator and
a second observer further north, and shows how orbit geometry and the
elevation mask shape the pass list.
"""

import sys
sys.path.insert(0, "src")

from datetime import datetime, timezone
from skypass.constants import TWO_PI, XKE
from skypass.frames import ObserverFrame
from skypass.orbit import OrbitalState
from skypass.passes import SearchConfig, pass_elevation_profile, predict_passes
from skypass.timeutil import deg_to_rad, julian_day_from_datetime, sidereal_time


def make_circular_state(
    start: datetime,
    altitude_km: float,
    inclination_deg: float = 0.0,
    lag_deg: float = 30.0,
    name: str = "SYNTH-SAT",
) -> OrbitalState:
    """Circular orbit whose ascending node sits ``lag_deg`` west of Greenwich at ``start``."""
    a = 1.0 + altitude_km / 6378.135
    jd = julian_day_from_datetime(start)
    return OrbitalState(
        name=name,
        norad_id=0,
        epoch=jd,
        mean_motion=XKE / a**1.5,
        eccentricity=0.0,
        inclination=deg_to_rad(inclination_deg),
        raan=(sidereal_time(jd) - deg_to_rad(lag_deg)) % TWO_PI,
        arg_perigee=0.0,
        mean_anomaly=0.0,
        bstar=0.0,
        semi_major_axis=a,
    )


def main():
    print("=" * 65)
    print("  skypass: Synthetic Pass Prediction Demo")
    print("=" * 65)

    start = datetime(2024, 3, 20, tzinfo=timezone.utc)
    states = [
        make_circular_state(start, 400.0, name="EQ-400"),
        make_circular_state(start, 800.0, name="EQ-800"),
        make_circular_state(start, 550.0, inclination_deg=53.0, name="INC-53"),
        make_circular_state(start, 700.0, inclination_deg=98.0, name="SSO-700"),
    ]
    observers = {
        "Equator (0°, 0°)": ObserverFrame.from_degrees(0.0, 0.0),
        "Mid-latitude (45°N, 0°)": ObserverFrame.from_degrees(45.0, 0.0),
    }

    for mask in (0.0, 20.0):
        config = SearchConfig(window_hours=12.0, step_seconds=10.0, min_elevation_deg=mask, start=start)
        print(f"\n── 12 h window, {mask:.0f}° mask ──")

        for label, observer in observers.items():
            print(f"\n  {label}")
            for state in states:
                passes = predict_passes(state, observer, config)
                best = max((p.max_elevation for p in passes), default=None)
                best_str = f"best {best:5.1f}°" if best is not None else "never rises"
                print(f"    {state.name:8s} {len(passes):3d} passes  {best_str}")

    # ── Detail for one pass ──
    state = states[0]
    observer = observers["Equator (0°, 0°)"]
    passes = predict_passes(state, observer, SearchConfig(window_hours=2.0, start=start))
    if not passes:
        return

    first = passes[0]
    print(f"\n{'=' * 65}")
    print(f"FIRST PASS OF {state.name}")
    print(f"{'=' * 65}")
    print(f"  {first.summary()}")

    profile = pass_elevation_profile(state, observer, first, step_seconds=60.0)
    print(f"\n  {'TIME (UTC)':20s} {'AZ':>7} {'EL':>7} {'RANGE (km)':>11}")
    for _, row in profile.iterrows():
        print(
            f"  {row['time']:%Y-%m-%d %H:%M:%S}  "
            f"{row['azimuth_deg']:6.1f}° "
            f"{row['elevation_deg']:6.1f}° "
            f"{row['range_km']:10.1f}"
        )

    try:
        import matplotlib
        matplotlib.use("Agg")
        from skypass.viz import plot_sky_track

        plot_sky_track(
            pass_elevation_profile(state, observer, first),
            title=f"{state.name}: first pass",
            save_path="data/demo_sky_track.png",
        )
        print("\nPlot saved to data/demo_sky_track.png")
    except ImportError:
        print("\nInstall matplotlib for visualization: pip install matplotlib")


if __name__ == "__main__":
    main()
