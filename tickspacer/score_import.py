"""Build voices from music21 measures so real scores can be laid out."""

from __future__ import annotations

import logging
from fractions import Fraction
from typing import Any, Final

from tickspacer.errors import BadArgumentError, BadDurationError
from tickspacer.tables import RESOLUTION
from tickspacer.tickables import Accidental, Note
from tickspacer.voice import Voice, VoiceMode

logger = logging.getLogger(__name__)

_TYPE_CODES: Final[dict[str, str]] = {
    "whole": "w",
    "half": "h",
    "quarter": "q",
    "eighth": "8",
    "16th": "16",
    "32nd": "32",
    "64th": "64",
}

_ACCIDENTALS: Final[dict[str, str]] = {
    "sharp": "#",
    "double-sharp": "##",
    "flat": "b",
    "double-flat": "bb",
    "natural": "n",
}

REST_KEY: Final[str] = "r/4"


def _quarter_length_to_ticks(quarter_length: Any) -> Fraction:
    return Fraction(quarter_length) * Fraction(RESOLUTION, 4)


def clef_name(clef: Any) -> str:
    """Map a music21 clef object to one of the clef names used for key lines."""
    if clef is None:
        return "treble"
    sign = getattr(clef, "sign", "G")
    line = getattr(clef, "line", None)
    if sign == "F":
        return "bass"
    if sign == "C":
        return "tenor" if line == 4 else "alto"
    if sign == "percussion":
        return "percussion"
    return "treble"


def note_from_element(element: Any, clef: str = "treble") -> Note | None:
    """
    Convert a music21 note, chord or rest into a ``Note``.

    Grace notes take no time and are skipped (None is returned).

    Raises:
        BadDurationError: If the element's duration type has no duration code.
    """
    duration = element.duration
    if duration.isGrace or duration.quarterLength == 0:
        return None

    code = _TYPE_CODES.get(duration.type)
    if code is None:
        raise BadDurationError(f"Unsupported duration type '{duration.type}'.")

    if element.isRest:
        note = Note([REST_KEY], f"{code}r", clef=clef, dots=duration.dots)
    else:
        pitches = sorted(element.pitches, key=lambda p: p.ps)
        keys = [f"{p.step.lower()}/{p.implicitOctave}" for p in pitches]
        note = Note(keys, code, clef=clef, dots=duration.dots)
        for props_index, props in enumerate(note.key_props):
            pitch = pitches[keys.index(props.key)]
            if pitch.accidental is not None and pitch.accidental.name in _ACCIDENTALS:
                note.add_accidental(props_index, Accidental(_ACCIDENTALS[pitch.accidental.name]))

    # Tuplets and other scaled durations: match music21's exact length.
    expected = _quarter_length_to_ticks(duration.quarterLength)
    if expected != note.ticks:
        ratio = expected / note.ticks
        note.apply_tick_multiplier(ratio.numerator, ratio.denominator)
    if duration.tuplets:
        note.tuplet = duration.tuplets[0]
    return note


def voices_from_measure(measure: Any, *, clef: str | None = None) -> list[Voice]:
    """
    Convert a music21 ``Measure`` into voices, one per music21 voice it holds.

    Voices are soft, so pickup and underfilled measures still format.
    """
    if clef is None:
        clef = clef_name(measure.getContextByClass("Clef"))
    total = Fraction(measure.barDuration.quarterLength)

    sources = list(measure.voices) or [measure]
    voices: list[Voice] = []
    for source in sources:
        voice = Voice(total, 4, mode=VoiceMode.SOFT)
        for element in source.notesAndRests:
            note = note_from_element(element, clef)
            if note is not None:
                voice.add_tickable(note)
        voices.append(voice)

    logger.debug("Imported %d voice(s) from measure %s", len(voices), getattr(measure, "number", "?"))
    return voices


def voices_from_score(path: str, measure_number: int = 1) -> list[list[Voice]]:
    """
    Parse a score file with music21 and return the voices of one measure, grouped by part.

    Each part is drawn on its own stave, so each group should be joined separately.

    Raises:
        BadArgumentError: If no part has the requested measure.
    """
    from music21 import converter

    score = converter.parse(path)
    parts: list[list[Voice]] = []
    for part in score.parts:
        measure = part.measure(measure_number)
        if measure is None:
            continue
        parts.append(voices_from_measure(measure))

    if not parts:
        raise BadArgumentError(f"No part has a measure number {measure_number}.")
    return parts
