"""
Alignment contexts: groups of tickables sharing one tick offset.

A ``TickContext`` decides horizontal timing and width; a ``ModifierContext``
negotiates room for accidentals, dots and displaced note heads among notes
drawn at the same offset on one stave. Both expose the same capability
surface so that the grid builder and the formatter can treat them alike.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from fractions import Fraction
from typing import TYPE_CHECKING

from tickspacer.tickables import Modifier, Note, Tickable

if TYPE_CHECKING:
    from tickspacer.rendering import RenderContext


@dataclass(frozen=True)
class ContextMetrics:
    """Width of a context and the extra pixels it needs on either side."""

    width: float
    extra_left_px: float = 0.0
    extra_right_px: float = 0.0


class AlignmentContext(ABC):
    """Capabilities shared by tick and modifier contexts."""

    def __init__(self) -> None:
        self.x = 0.0
        self.preformatted = False
        self.postformatted = False

    @property
    @abstractmethod
    def width(self) -> float:
        """Pixels this context occupies."""

    @property
    @abstractmethod
    def metrics(self) -> ContextMetrics:
        """Width plus left/right modifier requirements."""

    @abstractmethod
    def pre_format(self) -> None:
        """Compute width and metrics from the members."""

    def should_ignore_ticks(self) -> bool:
        return False

    def get_center_aligned_tickables(self) -> list[Tickable]:
        return []

    def set_context(self, context: RenderContext) -> None:
        """Hand a rendering context to members that measure themselves with one."""

    def post_format(self) -> None:
        self.postformatted = True


class TickContext(AlignmentContext):
    """All tickables, across voices and staves, that start at the same tick."""

    PADDING = 3.0

    def __init__(self) -> None:
        super().__init__()
        self.tickables: list[Tickable] = []
        self.tick_contexts: list[TickContext] = []
        self.ignore_ticks = True
        self.max_ticks = Fraction(0)
        self.min_ticks: Fraction | None = None
        self.padding = self.PADDING
        self.note_px = 0.0
        self.extra_left_px = 0.0
        self.extra_right_px = 0.0
        self._width = 0.0

    def add_tickable(self, tickable: Tickable) -> TickContext:
        if not tickable.should_ignore_ticks():
            self.ignore_ticks = False
            ticks = tickable.ticks
            if ticks > self.max_ticks:
                self.max_ticks = ticks
            if self.min_ticks is None or ticks < self.min_ticks:
                self.min_ticks = ticks

        tickable.set_tick_context(self)
        self.tickables.append(tickable)
        self.preformatted = False
        return self

    @property
    def width(self) -> float:
        return self._width + self.padding * 2

    @property
    def metrics(self) -> ContextMetrics:
        return ContextMetrics(
            width=self.width,
            extra_left_px=self.extra_left_px,
            extra_right_px=self.extra_right_px,
        )

    def should_ignore_ticks(self) -> bool:
        return self.ignore_ticks

    def get_center_aligned_tickables(self) -> list[Tickable]:
        return [tickable for tickable in self.tickables if tickable.center_alignment]

    def get_next_context(self) -> TickContext | None:
        """The context immediately to the right of this one, if any."""
        index = self.tick_contexts.index(self)
        if index + 1 < len(self.tick_contexts):
            return self.tick_contexts[index + 1]
        return None

    def set_context(self, context: RenderContext) -> None:
        for tickable in self.tickables:
            tickable.set_context(context)

    def pre_format(self) -> None:
        if self.preformatted:
            return

        for tickable in self.tickables:
            tickable.pre_format()
            metrics = tickable.get_metrics()
            self.extra_left_px = max(self.extra_left_px, metrics.extra_left_px + metrics.mod_left_px)
            self.extra_right_px = max(self.extra_right_px, metrics.extra_right_px + metrics.mod_right_px)
            self.note_px = max(self.note_px, metrics.note_width)

        self._width = self.note_px + self.extra_left_px + self.extra_right_px
        self.preformatted = True


class ModifierContext(AlignmentContext):
    """
    Notes of one stave that share a tick, together with their modifiers.

    Formatting stacks left modifiers into ``left_shift`` and right modifiers
    into ``right_shift``. When a later voice's note head would collide with an
    earlier one (key lines less than one line apart) it is shifted right by
    the earlier head's width, and the shift is added to ``right_shift``.
    """

    MODIFIER_SPACING = 2.0

    def __init__(self) -> None:
        super().__init__()
        self.notes: list[Tickable] = []
        self.modifiers: dict[str, list[Modifier]] = {}
        self.left_shift = 0.0
        self.right_shift = 0.0

    def add_member(self, member: Tickable | Modifier) -> None:
        if isinstance(member, Modifier):
            self.modifiers.setdefault(member.category, []).append(member)
        else:
            self.notes.append(member)
        self.preformatted = False

    @property
    def width(self) -> float:
        return self.left_shift + self.right_shift

    @property
    def metrics(self) -> ContextMetrics:
        return ContextMetrics(
            width=self.width,
            extra_left_px=self.left_shift,
            extra_right_px=self.right_shift,
        )

    def should_ignore_ticks(self) -> bool:
        return bool(self.notes) and all(note.should_ignore_ticks() for note in self.notes)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _side_width(self, note: Tickable, position: str) -> float:
        widths = [
            modifier.width
            for category in self.modifiers.values()
            for modifier in category
            if modifier.note is note and modifier.position == position
        ]
        if not widths:
            return 0.0
        return sum(widths) + self.MODIFIER_SPACING * len(widths)

    def _displace_colliding_heads(self) -> float:
        """Shift note heads of later voices clear of earlier ones; return the shift."""
        placed: list[Note] = []
        shift = 0.0
        for note in self.notes:
            if not isinstance(note, Note) or note.is_rest():
                continue
            note.x_shift = 0.0
            for other in placed:
                if other.stave is not note.stave:
                    continue
                gap = min(abs(a.line - b.line) for a in note.key_props for b in other.key_props)
                if gap < 1:
                    note.x_shift = other.glyph_width
                    shift = max(shift, note.x_shift)
                    break
            placed.append(note)
        return shift

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def pre_format(self) -> None:
        if self.preformatted:
            return

        self.left_shift = max((self._side_width(note, Modifier.LEFT) for note in self.notes), default=0.0)
        right = max((self._side_width(note, Modifier.RIGHT) for note in self.notes), default=0.0)
        self.right_shift = right + self._displace_colliding_heads()
        self.preformatted = True

    def post_format(self) -> None:
        if self.postformatted:
            return
        for note in self.notes:
            note.post_format()
        self.postformatted = True
