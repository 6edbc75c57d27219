"""Convenience entry points that format notes and draw them in one call."""

from __future__ import annotations

from typing import Sequence

from tickspacer.formatter import Formatter
from tickspacer.rendering import Beam, RenderContext, draw_connector, generate_beams
from tickspacer.stave import Stave
from tickspacer.tickables import BoundingBox, Tickable
from tickspacer.voice import Voice, VoiceMode


def _soft_voice(notes: Sequence[Tickable]) -> Voice:
    """A 4/4 voice that accepts any number of notes."""
    return Voice(4, 4, mode=VoiceMode.SOFT).add_tickables(notes)


def _draw_beams(context: RenderContext, beams: list[Beam]) -> None:
    for beam in beams:
        beam.draw(context)


def format_and_draw(
    context: RenderContext,
    stave: Stave,
    notes: Sequence[Tickable],
    *,
    auto_beam: bool = False,
    align_rests: bool = False,
) -> BoundingBox | None:
    """
    Format ``notes`` onto ``stave`` and draw them.

    Args:
        context:     Surface to draw on.
        stave:       Stave the notes belong to.
        notes:       Notes, rests and bar notes in order.
        auto_beam:   Generate beams for runs of short notes.
        align_rests: Move default rests next to neighbouring notes.

    Returns:
        Bounding box of the drawn notes, or None when nothing has a position.
    """
    voice = _soft_voice(notes)
    beams = generate_beams(voice) if auto_beam else []

    Formatter().join_voices([voice]).format_to_stave(
        [voice], stave, align_rests=align_rests, context=context
    )

    voice.set_stave(stave)
    voice.draw(context, stave)
    _draw_beams(context, beams)
    return voice.get_bounding_box()


def format_and_draw_tab(
    context: RenderContext,
    tab_stave: Stave,
    stave: Stave,
    tab_notes: Sequence[Tickable],
    notes: Sequence[Tickable],
    *,
    auto_beam: bool = False,
    align_rests: bool = False,
) -> None:
    """
    Align notes on ``stave`` with tab notes on ``tab_stave`` and draw both.

    Both voices share one formatter, so tickables at the same tick line up
    vertically across the two staves. A connector joins the staves.
    """
    note_voice = _soft_voice(notes)
    tab_voice = _soft_voice(tab_notes)
    beams = generate_beams(note_voice) if auto_beam else []

    # Tab notes are bound first so the shared format pass leaves them on their own stave.
    tab_voice.set_stave(tab_stave)
    tab_voice.pre_format()

    Formatter().join_voices([note_voice]).join_voices([tab_voice]).format_to_stave(
        [note_voice, tab_voice], stave, align_rests=align_rests, context=context
    )

    note_voice.draw(context, stave)
    tab_voice.draw(context, tab_stave)
    _draw_beams(context, beams)
    draw_connector(context, stave, tab_stave)
