#!/usr/bin/env python3
"""Pass detection engine.

Sweeps a fixed-step time grid for one object, converting each sample to
observer look angles, and feeds the elevation/azimuth stream through a
two-state horizon machine:

    BELOW_HORIZON --(elevation >= 0)--> ABOVE_HORIZON   (provisional AOS)
    ABOVE_HORIZON --(elevation <  0)--> BELOW_HORIZON   (LOS, maybe emit)

AOS and LOS are the sampled crossing instants, so pass boundaries carry up
to one step of quantization error. A pass still above the horizon when the
window closes is never emitted.
"""
from __future__ import annotations

import logging
import numpy as np
import pandas as pd

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum, auto
from typing import Iterable, Optional

from tqdm import tqdm

from .constants import DEFAULT_STEP_SECONDS, DEFAULT_WINDOW_HOURS
from .errors import ConfigurationError, ParseError
from .frames import LookAngles, ObserverFrame, eci_to_ecf, look_angles
from .orbit import OrbitalState, initialize, propagate
from .timeutil import julian_day_from_datetime, sidereal_time
from .tle_parser import TLE, ElementLines

logger = logging.getLogger(__name__)

PASS_COLUMNS = [
    "name",
    "norad_id",
    "aos",
    "aos_az_deg",
    "los",
    "los_az_deg",
    "duration_s",
    "max_el_deg",
    "max_el_az_deg",
]


# Configuration
@dataclass(frozen=True)
class SearchConfig:
    """Scan settings shared by every object in a run.

    Attributes:
        window_hours: Length of the search window (hours), > 0.
        step_seconds: Sampling step (seconds), > 0.
        min_elevation_deg: Peak elevation a pass must reach to be reported.
        start: Window start (UTC). ``None`` means "now" when the scan runs.
    """
    window_hours: float = DEFAULT_WINDOW_HOURS
    step_seconds: float = DEFAULT_STEP_SECONDS
    min_elevation_deg: float = 0.0
    start: Optional[datetime] = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Raise ConfigurationError if any setting is out of range."""
        if not self.window_hours > 0:
            raise ConfigurationError(
                f"Search window must be positive. Got: {self.window_hours} h"
            )
        if not self.step_seconds > 0:
            raise ConfigurationError(
                f"Time step must be positive. Got: {self.step_seconds} s"
            )
        if not (0.0 <= self.min_elevation_deg <= 90.0):
            raise ConfigurationError(
                f"Minimum elevation must be in range [0, 90] degrees. "
                f"Got: {self.min_elevation_deg}"
            )

    @classmethod
    def quick_look(cls, **overrides) -> SearchConfig:
        """Short, coarse scan for a first look at the next few hours."""
        return cls(**{"window_hours": 6.0, "step_seconds": 30.0, **overrides})

    @classmethod
    def for_ham_radio(cls, **overrides) -> SearchConfig:
        """Full day with a 10° mask, typical for handheld-antenna work."""
        return cls(**{"min_elevation_deg": 10.0, **overrides})

    def anchored(self, now: Optional[datetime] = None) -> SearchConfig:
        """Copy with a concrete UTC start time."""
        if self.start is not None:
            return replace(self, start=_as_utc(self.start))
        return replace(self, start=_as_utc(now or datetime.now(timezone.utc)))

    @property
    def end(self) -> Optional[datetime]:
        if self.start is None:
            return None
        return _as_utc(self.start) + timedelta(hours=self.window_hours)


# Pass record
@dataclass(frozen=True)
class PassRecord:
    """One complete rise-to-set pass.

    Attributes:
        aos: Acquisition of signal (first sample at or above 0°).
        aos_azimuth: Azimuth at AOS (degrees, [0, 360)).
        los: Loss of signal (first sample below 0° after AOS).
        los_azimuth: Azimuth at LOS (degrees, [0, 360)).
        max_elevation: Peak sampled elevation (degrees).
        max_elevation_azimuth: Azimuth at peak elevation (degrees).
    """
    aos: datetime
    aos_azimuth: float
    los: datetime
    los_azimuth: float
    max_elevation: float
    max_elevation_azimuth: float

    @property
    def duration(self) -> timedelta:
        return self.los - self.aos

    def to_dict(self) -> dict:
        """Serialize to a flat dictionary for DataFrame construction."""
        return {
            "aos": self.aos,
            "aos_az_deg": round(self.aos_azimuth, 1),
            "los": self.los,
            "los_az_deg": round(self.los_azimuth, 1),
            "duration_s": self.duration.total_seconds(),
            "max_el_deg": round(self.max_elevation, 1),
            "max_el_az_deg": round(self.max_elevation_azimuth, 1),
        }

    def summary(self) -> str:
        """Return a one-line human-readable summary of the pass."""
        minutes, seconds = divmod(int(self.duration.total_seconds()), 60)
        return (
            f"[{self.aos:%Y-%m-%d %H:%M:%S}] "
            f"AOS {self.aos_azimuth:5.1f}° → "
            f"max {self.max_elevation:4.1f}° @ {self.max_elevation_azimuth:5.1f}° → "
            f"LOS {self.los_azimuth:5.1f}° "
            f"({minutes}m {seconds:02d}s)"
        )


# Horizon state machine
class HorizonState(Enum):
    BELOW_HORIZON = auto()
    ABOVE_HORIZON = auto()


@dataclass
class PassAccumulator:
    """Running data for the pass currently above the horizon."""
    aos: datetime
    aos_azimuth: float
    peak_elevation: float
    peak_azimuth: float


class PassTracker:
    """Turns a chronological elevation/azimuth stream into pass records.

    Args:
        min_elevation_deg: Passes whose peak elevation stays below this are
            discarded at LOS.

    Example:
        >>> tracker = PassTracker(min_elevation_deg=10.0)
        >>> for when, el, az in samples:
        ...     record = tracker.update(when, el, az)
        ...     if record:
        ...         print(record.summary())
    """
    def __init__(self, min_elevation_deg: float = 0.0) -> None:
        self.min_elevation_deg = min_elevation_deg
        self.state = HorizonState.BELOW_HORIZON
        self.current: Optional[PassAccumulator] = None
        self.discarded = 0

    def update(
        self,
        when: datetime,
        elevation_deg: float,
        azimuth_deg: float,
    ) -> Optional[PassRecord]:
        """Consume one sample; return a record when a qualifying pass sets."""
        if self.state is HorizonState.BELOW_HORIZON:
            if elevation_deg >= 0.0:
                self._rise(when, elevation_deg, azimuth_deg)
            return None

        if elevation_deg < 0.0:
            return self._set(when, azimuth_deg)

        acc = self.current
        if elevation_deg > acc.peak_elevation:
            acc.peak_elevation = elevation_deg
            acc.peak_azimuth = azimuth_deg
        return None

    def _rise(self, when: datetime, elevation_deg: float, azimuth_deg: float) -> None:
        self.state = HorizonState.ABOVE_HORIZON
        self.current = PassAccumulator(
            aos=when,
            aos_azimuth=azimuth_deg,
            peak_elevation=elevation_deg,
            peak_azimuth=azimuth_deg,
        )

    def _set(self, when: datetime, azimuth_deg: float) -> Optional[PassRecord]:
        acc = self.current
        self.state = HorizonState.BELOW_HORIZON
        self.current = None

        if acc.peak_elevation < self.min_elevation_deg:
            self.discarded += 1
            logger.debug(
                "Discarding pass at %s: peak %.1f° below %.1f° mask",
                acc.aos,
                acc.peak_elevation,
                self.min_elevation_deg,
            )
            return None

        return PassRecord(
            aos=acc.aos,
            aos_azimuth=acc.aos_azimuth,
            los=when,
            los_azimuth=azimuth_deg,
            max_elevation=acc.peak_elevation,
            max_elevation_azimuth=acc.peak_azimuth,
        )


# Scanning
def look_at(
    state: OrbitalState,
    observer: ObserverFrame,
    when: datetime,
) -> Optional[LookAngles]:
    """Look angles from ``observer`` to the object at ``when``.

    Returns ``None`` when propagation is unavailable for that instant or the
    object sits exactly at the observer (direction undefined).
    """
    jd = julian_day_from_datetime(when)
    position = propagate(state, jd)
    if position is None:
        return None
    try:
        return look_angles(observer, eci_to_ecf(position, sidereal_time(jd)))
    except ValueError as e:
        logger.debug("%s at %s: %s", state.name or state.norad_id, when, e)
        return None


def predict_passes(
    state: OrbitalState,
    observer: ObserverFrame,
    config: Optional[SearchConfig] = None,
) -> list[PassRecord]:
    """Find every complete pass of one object inside the search window.

    Args:
        state: Initialized orbital state.
        observer: Observer position.
        config: Window, step and elevation mask (defaults to 24 h, 10 s, 0°).

    Returns:
        Pass records in chronological order (by AOS).
    """
    config = (config or SearchConfig()).anchored()
    start = config.start
    step = timedelta(seconds=config.step_seconds)
    n_steps = int(config.window_hours * 3600.0 / config.step_seconds + 1e-9)

    tracker = PassTracker(config.min_elevation_deg)
    passes: list[PassRecord] = []
    unavailable = 0

    for i in range(n_steps + 1):
        when = start + i * step
        look = look_at(state, observer, when)
        if look is None:
            unavailable += 1
            continue

        record = tracker.update(when, look.elevation_deg, look.azimuth_deg)
        if record is not None:
            logger.debug("Pass for %s: %s", state.name or state.norad_id, record.summary())
            passes.append(record)

    if unavailable:
        logger.warning(
            "%s: %d of %d samples unavailable",
            state.name or state.norad_id,
            unavailable,
            n_steps + 1,
        )
    if tracker.state is HorizonState.ABOVE_HORIZON:
        logger.debug(
            "%s: pass in progress at window end, not reported",
            state.name or state.norad_id,
        )
    return passes


@dataclass
class ObjectPasses:
    """Per-object outcome of a batch run.

    Attributes:
        name: Object name as supplied (line 0), if any.
        index: Position of the object in the input batch.
        norad_id: NORAD catalog number, when the element set parsed.
        passes: Pass records, chronological.
        error: Parse failure for this object, if any.
    """
    name: Optional[str]
    index: int
    norad_id: Optional[int] = None
    passes: list[PassRecord] = field(default_factory=list)
    error: Optional[ParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def label(self) -> str:
        if self.name:
            return self.name
        if self.norad_id is not None:
            return f"NORAD {self.norad_id}"
        return f"object #{self.index}"


def predict_passes_batch(
    entries: Iterable[ElementLines],
    observer: ObserverFrame,
    config: Optional[SearchConfig] = None,
    skip_invalid: bool = True,
    progress: bool = False,
) -> list[ObjectPasses]:
    """Predict passes for several objects.

    Every object is scanned over the same window. A malformed element set
    yields an :class:`ObjectPasses` carrying its :class:`ParseError` and
    does not stop the rest of the batch, unless ``skip_invalid`` is False.

    Args:
        entries: ``(name, line1, line2)`` triples.
        observer: Observer position.
        config: Search settings (defaults to 24 h, 10 s, 0°).
        skip_invalid: Record parse errors and continue instead of raising.
        progress: Show a tqdm progress bar.

    Returns:
        One result per entry, in input order.

    Raises:
        ParseError: On the first malformed object if ``skip_invalid`` is False.
    """
    config = (config or SearchConfig()).anchored()
    entries = list(entries)
    results: list[ObjectPasses] = []

    for index, (name, line1, line2) in enumerate(
        tqdm(entries, desc="Predicting passes", disable=not progress)
    ):
        try:
            state = initialize(TLE.parse(line1, line2, name=name))
        except ParseError as e:
            err = e.for_object(name, index)
            if not skip_invalid:
                raise err from e
            logger.warning("Skipping %s", err)
            results.append(ObjectPasses(name=name, index=index, error=err))
            continue

        results.append(
            ObjectPasses(
                name=name,
                index=index,
                norad_id=state.norad_id,
                passes=predict_passes(state, observer, config),
            )
        )

    logger.debug(
        "Batch done: %d objects, %d passes, %d failed",
        len(results),
        sum(len(r.passes) for r in results),
        sum(1 for r in results if not r.ok),
    )
    return results


# Tabular utils
def passes_to_frame(results: list[ObjectPasses]) -> pd.DataFrame:
    """Flatten batch results into one DataFrame, one row per pass.

    Returns:
        DataFrame sorted by AOS, with the columns in ``PASS_COLUMNS``.
    """
    rows: list[dict] = []
    for result in results:
        for record in result.passes:
            rows.append({"name": result.label, "norad_id": result.norad_id, **record.to_dict()})

    if not rows:
        return pd.DataFrame(columns=PASS_COLUMNS)

    df = pd.DataFrame(rows, columns=PASS_COLUMNS)
    return df.sort_values("aos").reset_index(drop=True)


def pass_elevation_profile(
    state: OrbitalState,
    observer: ObserverFrame,
    record: PassRecord,
    step_seconds: float = 5.0,
) -> pd.DataFrame:
    """Resample a pass between AOS and LOS for plotting.

    Returns:
        DataFrame with ``time``, ``azimuth_deg``, ``elevation_deg`` and
        ``range_km`` columns. Unavailable samples are dropped.
    """
    offsets = np.arange(0.0, record.duration.total_seconds() + step_seconds, step_seconds)
    rows = []
    for offset in offsets:
        when = record.aos + timedelta(seconds=float(offset))
        look = look_at(state, observer, when)
        if look is None:
            continue
        rows.append({
            "time": when,
            "azimuth_deg": look.azimuth_deg,
            "elevation_deg": look.elevation_deg,
            "range_km": look.range_km,
        })
    return pd.DataFrame(rows, columns=["time", "azimuth_deg", "elevation_deg", "range_km"])


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
