#!/usr/bin/env python3
"""
skypass Example: Next-day passes of amateur radio satellites.

Fetches the CelesTrak "amateur" group (no account needed) and predicts
passes above a 10° mask for an observer given on the command line:

    python examples/amateur_passes.py 51.48 -0.01 0.05
"""
import sys
sys.path.insert(0, "src")

from skypass.celestrak import CelesTrakClient
from skypass.frames import ObserverFrame
from skypass.passes import SearchConfig, passes_to_frame, predict_passes_batch
from skypass.viz import generate_report


def main():
    lat, lon, alt = (float(v) for v in sys.argv[1:4]) if len(sys.argv) >= 4 else (51.48, -0.01, 0.05)

    print("=" * 65)
    print("  skypass: Amateur Satellite Passes")
    print("=" * 65)

    observer = ObserverFrame.from_degrees(lat, lon, alt)
    config = SearchConfig.for_ham_radio().anchored()

    print("\nFetching element sets from CelesTrak...")
    entries = CelesTrakClient().get_group("amateur")
    print(f"Fetched {len(entries)} TLEs")

    results = predict_passes_batch(entries, observer, config, progress=True)
    skipped = [r for r in results if not r.ok]
    for r in skipped:
        print(f"  skipped {r.label}: {r.error.reason}")

    df = passes_to_frame(results)
    print(f"\n{len(df)} passes above {config.min_elevation_deg:.0f}° between "
          f"{config.start:%Y-%m-%d %H:%M} and {config.end:%Y-%m-%d %H:%M} UTC")

    if df.empty:
        return

    print(f"\n{'AOS (UTC)':20s} {'NAME':24s} {'MAX EL':>7} {'DUR':>6}")
    print("-" * 62)
    for _, row in df.head(25).iterrows():
        minutes, seconds = divmod(int(row["duration_s"]), 60)
        print(
            f"{row['aos']:%Y-%m-%d %H:%M:%S}  "
            f"{row['name'][:24]:24s} "
            f"{row['max_el_deg']:6.1f}° "
            f"{minutes:3d}:{seconds:02d}"
        )

    print("\nGenerating report...")
    report_path = generate_report(
        df,
        output_dir="data/reports/amateur",
        observer_label=f"{lat:.3f}°, {lon:.3f}°",
        min_elevation_deg=config.min_elevation_deg,
    )
    print(f"Report saved to {report_path}")

    df.to_csv("data/amateur_passes.csv", index=False)
    print("Results saved to data/amateur_passes.csv")


if __name__ == "__main__":
    main()
