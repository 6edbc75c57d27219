"""Tick resolution, duration codes and fixed glyph metrics."""

import math
from fractions import Fraction
from typing import Final

from tickspacer.errors import BadDurationError

# ── Time constants ───────────────────────────────────────────────────────────

#: Ticks in one whole note.
RESOLUTION: Final[int] = 16384

#: Duration code → number of the note value within a whole note.
DURATION_DIVISIONS: Final[dict[str, int]] = {
    "w": 1,
    "h": 2,
    "q": 4,
    "8": 8,
    "16": 16,
    "32": 32,
    "64": 64,
}

# ── Glyph metrics ────────────────────────────────────────────────────────────
# Fixed widths in pixels standing in for font measurement.

NOTEHEAD_WIDTHS: Final[dict[str, float]] = {
    "w": 16.5,
    "h": 10.5,
    "q": 10.5,
    "8": 10.5,
    "16": 10.5,
    "32": 10.5,
    "64": 10.5,
}

REST_WIDTHS: Final[dict[str, float]] = {
    "w": 12.5,
    "h": 12.5,
    "q": 8.0,
    "8": 8.5,
    "16": 10.5,
    "32": 12.0,
    "64": 13.5,
}

BARNOTE_WIDTH: Final[float] = 8.0

# ── Pitch constants ──────────────────────────────────────────────────────────

#: Diatonic step index used to compute stave lines (c=0 ... b=6). "r" places a rest
#: on the middle line of any clef.
STEP_INDEX: Final[dict[str, int]] = {"c": 0, "d": 1, "e": 2, "f": 3, "g": 4, "a": 5, "b": 6, "r": 6}

#: Vertical shift, in lines, applied to key lines for each clef.
CLEF_LINE_SHIFTS: Final[dict[str, float]] = {
    "treble": 0,
    "bass": 6,
    "alto": 3,
    "tenor": 4,
    "percussion": 0,
}

#: Glyph positions at which a rest is considered to sit at its default place.
DEFAULT_REST_POSITIONS: Final[frozenset[str]] = frozenset({"R/4", "B/4"})


def parse_duration(code: str) -> tuple[str, bool]:
    """
    Split a duration code into its base value and rest flag.

    Args:
        code: Duration string such as ``"q"``, ``"8"`` or ``"hr"``.

    Returns:
        (base_code, is_rest)

    Raises:
        BadDurationError: If the base value is not a known duration.
    """
    normalized = code.strip().lower()
    is_rest = normalized.endswith("r")
    base = normalized[:-1] if is_rest else normalized
    if base not in DURATION_DIVISIONS:
        raise BadDurationError(f"Invalid duration code '{code}'.")
    return base, is_rest


def duration_to_ticks(code: str, dots: int = 0) -> Fraction:
    """Return the exact tick length of a duration code with ``dots`` dots."""
    base, _ = parse_duration(code)
    ticks = Fraction(RESOLUTION, DURATION_DIVISIONS[base])
    addition = ticks
    for _ in range(dots):
        addition /= 2
        ticks += addition
    return ticks


def key_line(key: str, clef: str = "treble") -> float:
    """
    Compute the stave line of a key such as ``"c/4"`` or ``"f#/5"``.

    Line 0 is the ledger line below a treble stave; each step adds half a line.

    Raises:
        BadDurationError: If the key cannot be parsed.
    """
    pieces = key.strip().lower().split("/")
    if len(pieces) < 2 or not pieces[0] or pieces[0][0] not in STEP_INDEX:
        raise BadDurationError(f"Key must have note + octave: '{key}'.")
    try:
        octave = int(pieces[1])
    except ValueError as exc:
        raise BadDurationError(f"Invalid octave in key '{key}'.") from exc

    step = pieces[0][0]
    base_index = octave * 7 - 4 * 7
    line = (base_index + STEP_INDEX[step]) / 2
    if step == "r":
        return line
    return line + CLEF_LINE_SHIFTS.get(clef, 0)


def round_n(x: float, n: int) -> float:
    """Round ``x`` to the nearest multiple of ``n``, halves rounding up."""
    if math.fmod(x, n) >= n / 2:
        return int(x / n) * n + n
    return int(x / n) * n


def mid_line(a: float, b: float) -> float:
    """
    Return the line halfway between ``a`` (top) and ``b`` (bottom).

    A midpoint that lands between whole lines is snapped to the nearest half line.
    """
    middle = b + (a - b) / 2
    if math.fmod(middle, 2) > 0:
        middle = round_n(middle * 10, 5) / 10
    return middle
