#!/usr/bin/env python3
"""Plots for predicted passes.

Sky tracks (azimuth/elevation on a polar chart, zenith at the centre) and a
Gantt-style timeline of passes per object. Works interactively (Jupyter) or
for batch reports saved as PNGs.
"""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import matplotlib.dates as mdates


plt.rcParams.update({
    "figure.facecolor": "white",
    "axes.facecolor": "#fafafa",
    "axes.grid": True,
    "grid.alpha": 0.3,
    "font.family": "sans-serif",
    "font.size": 10,
})

# Peak-elevation bands
ELEVATION_COLORS = [
    (60.0, "#2ecc71"),
    (30.0, "#3498db"),
    (10.0, "#f39c12"),
    (0.0, "#95a5a6"),
]


def elevation_color(max_el_deg: float) -> str:
    for floor, color in ELEVATION_COLORS:
        if max_el_deg >= floor:
            return color
    return ELEVATION_COLORS[-1][1]


def plot_sky_track(
    profile_df: pd.DataFrame,
    title: Optional[str] = None,
    min_elevation_deg: float = 0.0,
    save_path: Optional[str | Path] = None,
    figsize: tuple = (6, 6),
) -> plt.Figure:
    """Plot one pass on a polar sky chart.

    Args:
        profile_df: DataFrame from pass_elevation_profile()
        title: Plot title
        min_elevation_deg: Elevation mask drawn as a shaded ring
        save_path: Path to save figure (optional)

    Returns:
        matplotlib Figure
    """
    fig, ax = plt.subplots(figsize=figsize, subplot_kw={"projection": "polar"})
    ax.set_theta_zero_location("N")
    ax.set_theta_direction(-1)
    ax.set_rlim(0, 90)
    ax.set_rticks([0, 30, 60, 90])
    ax.set_yticklabels(["90°", "60°", "30°", "0°"])

    if min_elevation_deg > 0:
        theta = np.linspace(0, 2 * np.pi, 361)
        ax.fill_between(theta, 90 - min_elevation_deg, 90, color="#e74c3c", alpha=0.08)

    if profile_df.empty:
        ax.set_title(title or "Sky track")
        return fig

    theta = np.radians(profile_df["azimuth_deg"].to_numpy())
    radius = 90.0 - profile_df["elevation_deg"].clip(lower=0.0).to_numpy()
    peak = profile_df["elevation_deg"].max()

    ax.plot(theta, radius, linewidth=1.5, color=elevation_color(peak))
    ax.scatter(theta[0], radius[0], marker="^", color="#2c3e50", zorder=3, label="AOS")
    ax.scatter(theta[-1], radius[-1], marker="v", color="#7f8c8d", zorder=3, label="LOS")

    start = profile_df["time"].iloc[0]
    ax.set_title(title or f"Pass {start:%Y-%m-%d %H:%M} UTC (max {peak:.1f}°)")
    ax.legend(loc="lower right", fontsize=8)

    plt.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")

    return fig


def plot_pass_timeline(
    pass_df: pd.DataFrame,
    title: str = "Pass Timeline",
    save_path: Optional[str | Path] = None,
    figsize: tuple = (14, 5),
) -> plt.Figure:
    """Gantt chart of passes, one row per object, colored by peak elevation."""
    fig, ax = plt.subplots(figsize=figsize)

    if pass_df.empty:
        ax.text(0.5, 0.5, "No passes predicted", transform=ax.transAxes,
                ha="center", va="center", fontsize=14, color="#95a5a6")
        return fig

    names = list(dict.fromkeys(pass_df["name"]))
    for row_idx, name in enumerate(names):
        subset = pass_df[pass_df["name"] == name]
        for _, p in subset.iterrows():
            aos = pd.Timestamp(p["aos"])
            los = pd.Timestamp(p["los"])
            ax.barh(
                row_idx,
                mdates.date2num(los) - mdates.date2num(aos),
                left=mdates.date2num(aos),
                height=0.6,
                color=elevation_color(p["max_el_deg"]),
                edgecolor="white",
            )

    ax.set_yticks(range(len(names)))
    ax.set_yticklabels(names)
    ax.invert_yaxis()
    ax.set_xlabel("Time (UTC)")
    ax.set_title(title)
    ax.xaxis_date()
    ax.xaxis.set_major_formatter(mdates.DateFormatter("%m-%d %H:%M"))
    fig.autofmt_xdate(rotation=30)

    plt.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")

    return fig


def generate_report(
    pass_df: pd.DataFrame,
    profiles: Optional[dict[str, pd.DataFrame]] = None,
    output_dir: str | Path = "data/reports",
    observer_label: str = "Observer",
    min_elevation_deg: float = 0.0,
) -> Path:
    """Write a markdown summary plus timeline and sky-track PNGs.

    Args:
        pass_df: DataFrame from passes_to_frame()
        profiles: Optional mapping of file stem to pass_elevation_profile()
            output; one sky-track PNG is written per entry.

    Returns the output directory path.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    n_passes = len(pass_df)
    n_objects = pass_df["name"].nunique() if n_passes else 0

    summary = (
        f"# Pass Report\n"
        f"## {observer_label}\n\n"
        f"- **Passes predicted:** {n_passes}\n"
        f"- **Objects with passes:** {n_objects}\n"
        f"- **Report generated:** {datetime.now(timezone.utc):%Y-%m-%d %H:%M} UTC\n\n"
    )

    if n_passes:
        summary += "### Best pass per object\n"
        best = pass_df.loc[pass_df.groupby("name")["max_el_deg"].idxmax()]
        for _, row in best.iterrows():
            summary += (
                f"- {row['name']}: {row['max_el_deg']:.1f}° at "
                f"{pd.Timestamp(row['aos']):%Y-%m-%d %H:%M}\n"
            )

    (output_dir / "report.md").write_text(summary)

    if n_passes:
        plot_pass_timeline(
            pass_df,
            title=f"{observer_label}: Pass Timeline",
            save_path=output_dir / "timeline.png",
        )

    for stem, profile in (profiles or {}).items():
        plot_sky_track(
            profile,
            min_elevation_deg=min_elevation_deg,
            save_path=output_dir / f"{stem}.png",
        )
        plt.close("all")

    plt.close("all")
    return output_dir
