"""Tests for building voices from music21 streams."""

from fractions import Fraction
from types import SimpleNamespace

import pytest

from tickspacer.formatter import Formatter
from tickspacer.score_import import clef_name, voices_from_measure

music21 = pytest.importorskip("music21")


def _measure(*elements, time_signature: str = "3/4"):
    measure = music21.stream.Measure(number=1)
    measure.append(music21.meter.TimeSignature(time_signature))
    for element in elements:
        measure.append(element)
    return measure


def test_clef_names() -> None:
    assert clef_name(None) == "treble"
    assert clef_name(SimpleNamespace(sign="F", line=4)) == "bass"
    assert clef_name(SimpleNamespace(sign="C", line=3)) == "alto"
    assert clef_name(SimpleNamespace(sign="C", line=4)) == "tenor"
    assert clef_name(SimpleNamespace(sign="G", line=2)) == "treble"


def test_measure_with_note_rest_and_chord() -> None:
    measure = _measure(
        music21.note.Note("C4", quarterLength=1),
        music21.note.Rest(quarterLength=1),
        music21.chord.Chord(["E4", "G#4"], quarterLength=1),
    )

    (voice,) = voices_from_measure(measure, clef="treble")

    assert voice.total_ticks == 12288
    assert voice.ticks_used == 12288
    first, rest, chord = voice.tickables
    assert first.keys == ["c/4"]
    assert rest.is_rest()
    assert chord.keys == ["e/4", "g/4"]
    assert [modifier.glyph_name for modifier in chord.modifiers] == ["accidental#"]


def test_triplets_set_resolution_multiplier() -> None:
    triplet = [music21.note.Note("D5", quarterLength=Fraction(1, 3)) for _ in range(3)]
    measure = _measure(*triplet, music21.note.Note("D5"), music21.note.Note("D5"))

    (voice,) = voices_from_measure(measure, clef="treble")

    assert voice.resolution_multiplier == 3
    assert voice.tickables[0].ticks == Fraction(4096, 3)
    assert voice.tickables[0].tuplet is not None
    assert voice.is_complete()

    formatter = Formatter().join_voices([voice])
    formatter.format([voice], 0)
    assert len(formatter.tick_contexts) == 5
