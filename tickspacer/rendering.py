"""Render context protocol, a recording context, and simple beams."""

from __future__ import annotations

from dataclasses import dataclass, field
from fractions import Fraction
from typing import TYPE_CHECKING, Protocol, Sequence, cast

from tickspacer.tables import RESOLUTION
from tickspacer.tickables import Note, Tickable

if TYPE_CHECKING:
    from tickspacer.stave import Stave
    from tickspacer.voice import Voice


class RenderContext(Protocol):
    """Drawing surface the tickables, staves and beams paint on."""

    def draw_glyph(self, name: str, x: float, y: float) -> None:
        ...

    def draw_line(self, x1: float, y1: float, x2: float, y2: float) -> None:
        ...


@dataclass
class RecordingContext:
    """
    Render context that records draw commands instead of painting them.

    Each command is a tuple whose first element names the primitive:
    ``("glyph", name, x, y)`` or ``("line", x1, y1, x2, y2)``.
    """

    commands: list[tuple] = field(default_factory=list)

    def draw_glyph(self, name: str, x: float, y: float) -> None:
        self.commands.append(("glyph", name, x, y))

    def draw_line(self, x1: float, y1: float, x2: float, y2: float) -> None:
        self.commands.append(("line", x1, y1, x2, y2))

    def glyphs(self, prefix: str = "") -> list[tuple]:
        """Recorded glyph commands whose name starts with ``prefix``."""
        return [cmd for cmd in self.commands if cmd[0] == "glyph" and cmd[1].startswith(prefix)]


class Beam:
    """A straight beam joining two or more notes."""

    STEM_HEIGHT = 35.0

    def __init__(self, notes: Sequence[Note]) -> None:
        if len(notes) < 2:
            raise ValueError("A beam needs at least two notes.")
        self.notes = list(notes)
        for note in self.notes:
            note.beam = self

    def draw(self, context: RenderContext) -> None:
        first, last = self.notes[0], self.notes[-1]
        ys = [y for note in self.notes for y in note.ys]
        if not ys:
            return
        y = min(ys) - self.STEM_HEIGHT
        context.draw_line(
            first.get_absolute_x() + first.glyph_width,
            y,
            last.get_absolute_x() + last.glyph_width,
            y,
        )


def _beamable(tickable: Tickable) -> bool:
    return isinstance(tickable, Note) and not tickable.is_rest() and tickable.ticks < Fraction(RESOLUTION, 4)


def generate_beams(voice: Voice, group_ticks: Fraction = Fraction(RESOLUTION, 4)) -> list[Beam]:
    """
    Beam runs of notes shorter than a quarter that fall within one beat group.

    Rests, longer notes and bar notes break a run; runs of one note stay unbeamed.
    """
    beams: list[Beam] = []
    run: list[Note] = []
    run_group: int | None = None
    ticks_used = Fraction(0)

    def close_run() -> None:
        if len(run) > 1:
            beams.append(Beam(run))
        run.clear()

    for tickable in voice.tickables:
        group = int(ticks_used // group_ticks)
        if _beamable(tickable) and (run_group is None or group == run_group or not run):
            run.append(cast(Note, tickable))
            run_group = group
        else:
            close_run()
            if _beamable(tickable):
                run.append(cast(Note, tickable))
            run_group = group
        ticks_used += tickable.ticks
    close_run()
    return beams


def draw_connector(context: RenderContext, top: Stave, bottom: Stave) -> None:
    """Draw a single line joining the left edges of two staves."""
    context.draw_line(top.x, top.top_line_y, bottom.x, bottom.bottom_line_y)
