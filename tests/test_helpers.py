"""Tests for the format-and-draw helpers and beam generation."""

import pytest

from tickspacer.helpers import format_and_draw, format_and_draw_tab
from tickspacer.rendering import RecordingContext, generate_beams
from tickspacer.stave import Stave
from tickspacer.tickables import Note
from tickspacer.voice import Voice, VoiceMode


def _notes(*codes: str, key: str = "b/4") -> list[Note]:
    return [Note([key], code) for code in codes]


def test_generate_beams_groups_short_notes_by_beat() -> None:
    voice = Voice(4, 4, mode=VoiceMode.SOFT).add_tickables(_notes("8", "8", "q", "8", "8", "8", "8"))

    beams = generate_beams(voice)

    assert [len(beam.notes) for beam in beams] == [2, 2, 2]
    assert voice.tickables[2].beam is None
    assert voice.tickables[0].beam is beams[0]


def test_generate_beams_breaks_on_rests() -> None:
    voice = Voice(4, 4, mode=VoiceMode.SOFT).add_tickables(_notes("8", "8r", "8", "8", "h"))
    beams = generate_beams(voice)
    assert len(beams) == 1
    assert beams[0].notes == voice.tickables[2:4]


def test_format_and_draw_records_glyphs_and_bounding_box() -> None:
    ctx = RecordingContext()
    stave = Stave(10, 0, 300)
    notes = _notes("q", "q", "h")

    box = format_and_draw(ctx, stave, notes)

    assert len(ctx.glyphs("notehead")) == 3
    assert box is not None
    assert box.x == pytest.approx(stave.note_start_x)
    xs = [note.get_absolute_x() for note in notes]
    assert xs == sorted(xs)


def test_format_and_draw_auto_beam_draws_beam_lines() -> None:
    ctx = RecordingContext()
    notes = _notes(*["8"] * 8)

    format_and_draw(ctx, Stave(0, 0, 400), notes, auto_beam=True)

    lines = [cmd for cmd in ctx.commands if cmd[0] == "line"]
    assert len(lines) == 4
    assert all(note.beam is not None for note in notes)


def test_format_and_draw_aligns_rests_when_requested() -> None:
    ctx = RecordingContext()
    rest = Note(["b/4"], "qr")
    notes = [rest, Note(["e/5"], "q"), Note(["e/5"], "h")]

    format_and_draw(ctx, Stave(0, 0, 300), notes, align_rests=True)

    assert rest.get_key_line(0) == 4.5
    assert len(ctx.glyphs("restq")) == 1


def test_format_and_draw_tab_aligns_staves() -> None:
    ctx = RecordingContext()
    stave = Stave(0, 0, 300)
    tab_stave = Stave(0, 120, 300)
    notes = _notes("q", "q", "h")
    tab_notes = _notes("h", "q", "q", key="e/4")

    format_and_draw_tab(ctx, tab_stave, stave, tab_notes, notes)

    assert notes[0].get_absolute_x() == tab_notes[0].get_absolute_x()
    assert notes[2].get_absolute_x() == tab_notes[1].get_absolute_x()
    assert all(note.stave is tab_stave for note in tab_notes)
    assert all(note.stave is stave for note in notes)
    assert ("line", 0, stave.top_line_y, 0, tab_stave.bottom_line_y) in ctx.commands
