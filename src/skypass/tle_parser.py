"""TLE parsing.

Parses standard NORAD Two-Line Element sets into a flat record of the
published mean elements. Turning that record into a propagatable orbital
state (unit conversion and the oblateness correction) lives in
:mod:`skypass.orbit`.

Column layout follows the NORAD two-line format as published by CelesTrak
(columns/v04n03); angles stay in degrees and mean motion in rev/day here.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Optional

from .constants import MINUTES_PER_DAY, SECONDS_PER_DAY
from .errors import ParseError
from .timeutil import datetime_from_julian_day, julian_day

logger = logging.getLogger(__name__)

TLE_LINE_LENGTH = 69
MIN_LINE_LENGTH = 68
"""Lines may omit the trailing checksum digit, nothing else."""

ElementLines = tuple[Optional[str], str, str]
"""``(name, line1, line2)`` as handed over by a TLE source."""


@dataclass(slots=True, frozen=True)
class TLE:
    """Published mean elements of one object, as read from a TLE.

    Units are those of the text format: angles in degrees, mean motion in
    rev/day, its derivatives already divided by 2 and 6, B* in inverse
    Earth radii. ``epoch_jd`` is derived from the two-digit year (57-99 is
    the 1900s) and the fractional day of year. ``name`` is line 0, if any.
    """

    # Identity
    name: Optional[str]
    norad_id: int
    intl_designator: str
    classification: str

    # Epoch
    epoch_year: int
    epoch_day: float
    epoch_jd: float

    # Line 1 fields
    mean_motion_dot: float
    mean_motion_ddot: float
    bstar: float

    # Line 2 fields
    inclination: float
    raan: float
    eccentricity: float
    arg_perigee: float
    mean_anomaly: float
    mean_motion: float
    rev_number: int

    @property
    def epoch_dt(self) -> datetime:
        """Epoch as a timezone-aware UTC datetime."""
        return datetime_from_julian_day(self.epoch_jd)

    @property
    def period_minutes(self) -> float:
        """Unperturbed orbital period from the published mean motion."""
        return MINUTES_PER_DAY / self.mean_motion

    @staticmethod
    def parse(
        line1: str,
        line2: str,
        name: Optional[str] = None,
    ) -> TLE:
        """Decode the two element lines of one object.

        Lines may be 68 characters when the checksum digit is missing;
        trailing whitespace is ignored. A checksum mismatch only logs a
        warning.

        Raises:
            ParseError: If a line is short, a field is not numeric, the
                NORAD IDs don't match, or the elements are physically invalid.
        """
        name = name.strip() if name and name.strip() else None
        l1 = line1.rstrip()
        l2 = line2.rstrip()

        for num, line in ((1, l1), (2, l2)):
            if len(line) < MIN_LINE_LENGTH:
                raise ParseError(
                    f"line {num} is {len(line)} characters, expected {TLE_LINE_LENGTH}",
                    name=name,
                )
            if line[0] != str(num):
                raise ParseError(
                    f"Line {num} must start with '{num}', got '{line[0]}'",
                    name=name,
                )

        l1 = l1.ljust(TLE_LINE_LENGTH)
        l2 = l2.ljust(TLE_LINE_LENGTH)

        _verify_checksum(l1, 1)
        _verify_checksum(l2, 2)

        try:
            # line 1: identity, epoch, drag terms
            norad_id = int(l1[2:7])
            classification = l1[7]
            intl_designator = l1[9:17].strip()

            epoch_year_2d = int(l1[18:20])
            epoch_year = epoch_year_2d + (1900 if epoch_year_2d >= 57 else 2000)
            epoch_day = float(l1[20:32])
            mean_motion_dot = float(l1[33:43])
            mean_motion_ddot = _parse_implied_decimal(l1[44:52])
            bstar = _parse_implied_decimal(l1[53:61])

            # line 2: orbit shape and orientation
            norad_id_2 = int(l2[2:7])
            inclination = float(l2[8:16])
            raan = float(l2[17:25])
            eccentricity = float("0." + l2[26:33].strip())
            arg_perigee = float(l2[34:42])
            mean_anomaly = float(l2[43:51])
            mean_motion = float(l2[52:63])
            rev_number = int(l2[63:68].strip() or 0)
        except ValueError as e:
            raise ParseError(f"non-numeric field: {e}", name=name) from e

        # float() also accepts nan and inf
        for label, value in (
            ("epoch day", epoch_day),
            ("mean motion derivative", mean_motion_dot),
            ("inclination", inclination),
            ("RAAN", raan),
            ("argument of perigee", arg_perigee),
            ("mean anomaly", mean_anomaly),
            ("mean motion", mean_motion),
        ):
            if not math.isfinite(value):
                raise ParseError(f"non-numeric field: {label} is {value}", name=name)

        if norad_id != norad_id_2:
            raise ParseError(
                f"NORAD ID mismatch: {norad_id} vs {norad_id_2}", name=name
            )
        if not 0.0 <= eccentricity < 1.0:
            raise ParseError(f"invalid eccentricity {eccentricity}", name=name)
        if not mean_motion > 0.0:
            raise ParseError(f"invalid mean motion {mean_motion} rev/day", name=name)

        return TLE(
            name=name,
            norad_id=norad_id,
            intl_designator=intl_designator,
            classification=classification,
            epoch_year=epoch_year,
            epoch_day=epoch_day,
            epoch_jd=julian_day(epoch_year, 1, 0) + epoch_day,
            mean_motion_dot=mean_motion_dot,
            mean_motion_ddot=mean_motion_ddot,
            bstar=bstar,
            inclination=inclination,
            raan=raan,
            eccentricity=eccentricity,
            arg_perigee=arg_perigee,
            mean_anomaly=mean_anomaly,
            mean_motion=mean_motion,
            rev_number=rev_number,
        )

    @staticmethod
    def parse_batch(text: str) -> list[TLE]:
        """Parse every object in a block of TLE text, all or nothing.

        Raises:
            ParseError: For the first malformed object, labelled with its
                name and zero-based position in ``text``.
        """
        tles: list[TLE] = []
        for index, (name, line1, line2) in enumerate(split_elements(text)):
            try:
                tles.append(TLE.parse(line1, line2, name=name))
            except ParseError as e:
                raise e.for_object(name, index) from e
        return tles

    def to_dict(self) -> dict:
        """Field mapping for DataFrame rows, plus epoch datetime and period."""
        row = {f.name: getattr(self, f.name) for f in fields(self)}
        row["epoch"] = self.epoch_dt
        row["period_min"] = self.period_minutes
        return row


def split_elements(text: str) -> list[ElementLines]:
    """Split raw text into ``(name, line1, line2)`` triples without parsing.

    Automatically detects whether each TLE has a name line (line 0) or is a
    bare 2-line element set. Lines that fit neither layout are logged and
    skipped.
    """
    lines = [ln.rstrip() for ln in text.splitlines() if ln.strip()]
    out: list[ElementLines] = []
    i = 0

    while i < len(lines):
        if (
            lines[i].startswith("1 ")
            and i + 1 < len(lines)
            and lines[i + 1].startswith("2 ")
        ):
            out.append((None, lines[i], lines[i + 1]))
            i += 2
        elif (
            i + 2 < len(lines)
            and lines[i + 1].startswith("1 ")
            and lines[i + 2].startswith("2 ")
        ):
            out.append((lines[i].strip(), lines[i + 1], lines[i + 2]))
            i += 3
        else:
            logger.warning("Skipping unrecognised TLE line %r", lines[i][:24])
            i += 1

    return out


# Field decoding


def _parse_implied_decimal(s: str) -> float:
    """Decode an exponent field such as B* or the mean-motion second derivative.

    Layout is ``±NNNNN±E``: a sign, a five-digit mantissa with an implied
    leading ``0.``, and a signed single-digit base-10 exponent. For example,
    ``" 16538-4"`` becomes ``0.16538e-4``.

    Raises:
        ValueError: If the mantissa or exponent is not numeric.
    """
    s = s.rstrip()
    if not s.strip():
        return 0.0

    s = s.rjust(8)
    sign = -1.0 if s[0] == "-" else 1.0
    mantissa = s[1:6].strip()
    exponent = s[6:8].strip() or "0"
    if not mantissa.isdigit():
        raise ValueError(f"bad implied-decimal mantissa {s!r}")
    return sign * float(f"0.{mantissa}") * 10.0 ** int(exponent)


def _verify_checksum(line: str, line_num: int) -> None:
    """Warn when column 69 disagrees with the digit sum (minus signs count 1).

    Hand-edited and re-exported element sets often carry stale checksums,
    so a mismatch is not fatal.
    """
    if len(line) < TLE_LINE_LENGTH or not line[68].isdigit():
        return

    expected = int(line[68])
    total = 0
    for ch in line[:68]:
        if ch.isdigit():
            total += int(ch)
        elif ch == "-":
            total += 1

    computed = total % 10
    if computed != expected:
        logger.warning(
            "Checksum mismatch on line %d: stated %d, computed %d",
            line_num,
            expected,
            computed,
        )


def epoch_age_days(tle: TLE, at: datetime) -> float:
    """Days between the element-set epoch and ``at`` (positive if later)."""
    return (at - tle.epoch_dt).total_seconds() / SECONDS_PER_DAY
