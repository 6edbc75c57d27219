"""Stave: the minimal geometry the formatter needs from a stave."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tickspacer.rendering import RenderContext


class Stave:
    """
    A five-line stave positioned at (x, y).

    Only horizontal extents and line positions are modelled; clefs, key and
    time signatures drawn at the start of the stave are summarised by
    ``begin_width``.
    """

    NUM_LINES = 5
    SPACE_ABOVE_STAFF_LN = 4  # lines of headroom above the top stave line

    def __init__(
        self,
        x: float,
        y: float,
        width: float,
        *,
        clef: str = "treble",
        spacing: float = 10.0,
        start_padding: float = 5.0,
        end_padding: float = 5.0,
        begin_width: float = 0.0,
        context: RenderContext | None = None,
    ) -> None:
        self.x = x
        self.y = y
        self.width = width
        self.clef = clef
        self.spacing = spacing
        self.start_padding = start_padding
        self.end_padding = end_padding
        self.begin_width = begin_width
        self.context = context

    @property
    def note_start_x(self) -> float:
        """First x available to notes, after padding and begin modifiers."""
        return self.x + self.start_padding + self.begin_width

    @property
    def note_end_x(self) -> float:
        return self.x + self.width - self.end_padding

    @property
    def top_line_y(self) -> float:
        return self.get_y_for_line(0)

    @property
    def bottom_line_y(self) -> float:
        return self.get_y_for_line(self.NUM_LINES - 1)

    def get_y_for_line(self, line: int) -> float:
        """y of stave line ``line``, counting down from the top line (0)."""
        return self.y + (self.SPACE_ABOVE_STAFF_LN + line) * self.spacing

    def get_y_for_note(self, line: float) -> float:
        """y of a note on key line ``line`` (1 = bottom stave line, 5 = top)."""
        return self.y + (self.SPACE_ABOVE_STAFF_LN + self.NUM_LINES - line) * self.spacing

    def set_context(self, context: RenderContext) -> Stave:
        self.context = context
        return self

    def draw(self, context: RenderContext | None = None) -> None:
        ctx = context if context is not None else self.context
        if ctx is None:
            raise ValueError("No render context to draw the stave on.")
        for line in range(self.NUM_LINES):
            y = self.get_y_for_line(line)
            ctx.draw_line(self.x, y, self.x + self.width, y)
