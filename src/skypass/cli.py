#!/usr/bin/env python3
"""skypass command-line interface.

Usage::

    skypass predict --tle data/stations.tle 52.2 0.12 0.03
    skypass predict --norad-id 25544 --min-el 10 --hours 48 -- -33.87 151.21 0.05
    skypass predict --group amateur --output passes.csv --plot-dir data/reports 40.0 -105.3 1.6
    skypass info --tle data/stations.tle

Latitude and longitude are in degrees (north/east positive), altitude in km.
Put ``--`` before the coordinates when the first one is negative.
"""
from __future__ import annotations

import re
import sys
import logging
from datetime import datetime, timezone

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from .celestrak import CelesTrakClient, load_tle_file
from .errors import ConfigurationError, ParseError
from .frames import ObserverFrame
from .orbit import initialize
from .passes import (
    ObjectPasses,
    SearchConfig,
    pass_elevation_profile,
    passes_to_frame,
    predict_passes_batch,
)
from .tle_parser import TLE, ElementLines, epoch_age_days

console = Console()

STALE_EPOCH_DAYS = 14.0


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """skypass: predict overhead passes of Earth-orbiting objects from TLEs."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(name)s — %(message)s")


def _source_options(f):
    f = click.option("--group", "-g", help="CelesTrak group name (e.g. 'stations')")(f)
    f = click.option("--norad-id", "-n", "norad_ids", type=int, multiple=True,
                     help="NORAD catalog ID (repeatable); fetched from CelesTrak")(f)
    f = click.option("--tle", "-t", "filepath", type=click.Path(exists=True, dir_okay=False),
                     help="TLE file path (2-line or 3-line format)")(f)
    return f


@main.command()
@click.argument("lat", type=float)
@click.argument("lon", type=float)
@click.argument("alt", type=float)
@_source_options
@click.option("--min-el", "-m", default=0.0, show_default=True,
              help="Minimum peak elevation for a pass (degrees)")
@click.option("--hours", "-h", default=24.0, show_default=True,
              help="Number of hours to search ahead")
@click.option("--step", "-s", default=10.0, show_default=True,
              help="Scan time step (seconds)")
@click.option("--start", type=click.DateTime(), help="Window start in UTC (default: now)")
@click.option("--strict", is_flag=True, help="Abort on the first malformed element set")
@click.option("--output", "-o", type=click.Path(), help="Save passes to CSV")
@click.option("--plot-dir", type=click.Path(), help="Generate report with sky-track plots")
def predict(
    lat: float,
    lon: float,
    alt: float,
    filepath: str | None,
    norad_ids: tuple[int, ...],
    group: str | None,
    min_el: float,
    hours: float,
    step: float,
    start: datetime | None,
    strict: bool,
    output: str | None,
    plot_dir: str | None,
):
    """Predict passes over the observer at LAT LON ALT."""
    try:
        observer = ObserverFrame.from_degrees(lat, lon, alt)
        config = SearchConfig(
            window_hours=hours,
            step_seconds=step,
            min_elevation_deg=min_el,
            start=start.replace(tzinfo=timezone.utc) if start else None,
        ).anchored()
    except ConfigurationError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    entries = _load_entries(filepath, norad_ids, group)
    if not entries:
        console.print("[red]No TLEs found[/red]")
        sys.exit(1)

    try:
        results = predict_passes_batch(
            entries,
            observer,
            config,
            skip_invalid=not strict,
            progress=len(entries) > 1,
        )
    except ParseError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    for result in results:
        _display_result(result)

    n_passes = sum(len(r.passes) for r in results)
    n_failed = sum(1 for r in results if not r.ok)
    console.print(
        Panel(
            f"Observer: {lat:.4f}°, {lon:.4f}°, {alt:.3f} km\n"
            f"Window: {config.start:%Y-%m-%d %H:%M:%S} → {config.end:%Y-%m-%d %H:%M:%S} UTC\n"
            f"Objects: {len(results)} ({n_failed} skipped)\n"
            f"Passes found: [bold green]{n_passes}[/bold green]",
            title="Pass Prediction",
            box=box.ROUNDED,
        )
    )

    df = passes_to_frame(results)

    if output:
        df.to_csv(output, index=False)
        console.print(f"\nResults saved to {output}")

    if plot_dir:
        from .viz import generate_report
        profiles = _build_profiles(entries, results, observer, step)
        path = generate_report(
            df,
            profiles=profiles,
            output_dir=plot_dir,
            observer_label=f"{lat:.3f}°, {lon:.3f}°",
            min_elevation_deg=min_el,
        )
        console.print(f"Report generated in {path}")


@main.command()
@_source_options
def info(filepath: str | None, norad_ids: tuple[int, ...], group: str | None):
    """Show parsed elements and derived orbit quantities."""
    entries = _load_entries(filepath, norad_ids, group)
    if not entries:
        console.print("[red]No TLEs found[/red]")
        sys.exit(1)

    now = datetime.now(timezone.utc)
    table = Table(title="Element Sets", box=box.SIMPLE_HEAVY)
    table.add_column("Name", style="cyan")
    table.add_column("NORAD", justify="right")
    table.add_column("Epoch (UTC)")
    table.add_column("Incl (°)", justify="right")
    table.add_column("Ecc", justify="right")
    table.add_column("Period (min)", justify="right")
    table.add_column("Perigee (km)", justify="right")

    for index, (name, line1, line2) in enumerate(entries):
        try:
            tle = TLE.parse(line1, line2, name=name)
            state = initialize(tle)
        except ParseError as e:
            table.add_row(name or f"#{index}", "", f"[red]{e.reason}[/red]", "", "", "", "")
            continue

        age = epoch_age_days(tle, now)
        epoch_style = "yellow" if abs(age) > STALE_EPOCH_DAYS else "white"
        perigee = f"{state.perigee_altitude_km:.1f}"
        if state.is_low_perigee:
            perigee = f"[red]{perigee} (low)[/red]"
        table.add_row(
            tle.name or "UNKNOWN",
            str(tle.norad_id),
            f"[{epoch_style}]{tle.epoch_dt:%Y-%m-%d %H:%M}[/{epoch_style}]",
            f"{tle.inclination:.4f}",
            f"{tle.eccentricity:.7f}",
            f"{state.period_minutes:.2f}",
            perigee,
        )

    console.print(table)


def _load_entries(
    filepath: str | None,
    norad_ids: tuple[int, ...],
    group: str | None,
) -> list[ElementLines]:
    if filepath:
        entries = load_tle_file(filepath)
        console.print(f"Loaded {len(entries)} TLEs from {filepath}")
        return entries

    if norad_ids or group:
        client = CelesTrakClient()
        entries: list[ElementLines] = []
        for norad_id in norad_ids:
            entries.extend(client.get_elements(norad_id))
        if group:
            entries.extend(client.get_group(group))
        console.print(f"Fetched {len(entries)} TLEs from CelesTrak")
        return entries

    console.print("[red]Error: provide --tle, --norad-id or --group[/red]")
    sys.exit(1)


def _display_result(result: ObjectPasses):
    """Display one object's passes with rich formatting."""
    if not result.ok:
        console.print(f"[red]Skipped {result.label}: {result.error.reason}[/red]")
        return

    if not result.passes:
        console.print(f"No passes found for {result.label}")
        return

    table = Table(
        title=f"Passes for {result.label}",
        box=box.SIMPLE_HEAVY,
    )
    table.add_column("AOS (UTC)", style="cyan")
    table.add_column("Az", justify="right")
    table.add_column("LOS (UTC)", style="cyan")
    table.add_column("Az", justify="right")
    table.add_column("MaxEl", justify="right")
    table.add_column("@Az", justify="right")

    for p in result.passes:
        color = "green" if p.max_elevation >= 30 else "white"
        table.add_row(
            f"{p.aos:%Y-%m-%d %H:%M:%S}",
            f"{p.aos_azimuth:5.1f}",
            f"{p.los:%Y-%m-%d %H:%M:%S}",
            f"{p.los_azimuth:5.1f}",
            f"[{color}]{p.max_elevation:6.1f}[/{color}]",
            f"{p.max_elevation_azimuth:5.1f}",
        )

    console.print(table)


def _build_profiles(entries, results, observer, step):
    """Resampled az/el tracks for every reported pass, keyed by file stem."""
    profiles = {}
    for result in results:
        if not result.passes:
            continue
        name, line1, line2 = entries[result.index]
        state = initialize(TLE.parse(line1, line2, name=name))
        slug = re.sub(r"[^A-Za-z0-9]+", "_", result.label).strip("_").lower()
        for i, record in enumerate(result.passes):
            profiles[f"{slug}_{i + 1:02d}"] = pass_elevation_profile(
                state, observer, record, step_seconds=min(step, 5.0)
            )
    return profiles


if __name__ == "__main__":
    main()
