"""Tickables: notes, rests and bar notes that consume (or ignore) musical time."""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from typing import TYPE_CHECKING, Any, Final, Sequence

from tickspacer.errors import BadDurationError, NoTickContextError
from tickspacer.tables import (
    BARNOTE_WIDTH,
    NOTEHEAD_WIDTHS,
    REST_WIDTHS,
    duration_to_ticks,
    key_line,
    mid_line,
    parse_duration,
)

if TYPE_CHECKING:
    from tickspacer.contexts import ModifierContext, TickContext
    from tickspacer.rendering import Beam, RenderContext
    from tickspacer.stave import Stave
    from tickspacer.voice import Voice


@dataclass
class KeyProps:
    """Vertical properties of one key (note head) of a note."""

    key: str
    line: float
    displaced: bool = False


@dataclass(frozen=True)
class TickableMetrics:
    """
    Horizontal space requirements of a single tickable.

    Attributes:
        width:          Total width including modifiers.
        note_width:     Width of the glyph itself.
        mod_left_px:    Space reserved by left-side modifiers (accidentals).
        mod_right_px:   Space reserved by right-side modifiers (dots).
        extra_left_px:  Extra space for note heads displaced to the left.
        extra_right_px: Extra space for note heads displaced to the right.
    """

    width: float
    note_width: float
    mod_left_px: float = 0.0
    mod_right_px: float = 0.0
    extra_left_px: float = 0.0
    extra_right_px: float = 0.0


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned rectangle in rendering coordinates."""

    x: float
    y: float
    width: float
    height: float

    def merge(self, other: BoundingBox) -> BoundingBox:
        """Return the smallest box enclosing both boxes."""
        left = min(self.x, other.x)
        top = min(self.y, other.y)
        right = max(self.x + self.width, other.x + other.width)
        bottom = max(self.y + self.height, other.y + other.height)
        return BoundingBox(left, top, right - left, bottom - top)


# ── Modifiers ────────────────────────────────────────────────────────────────

class Modifier:
    """
    A symbol attached beside one key of a note.

    Left modifiers (accidentals) push the note head right; right modifiers
    (dots) need room after it. The modifier context negotiates both.
    """

    LEFT: Final[str] = "left"
    RIGHT: Final[str] = "right"

    category = "modifier"
    glyph_name = "modifier"

    def __init__(self, width: float, position: str = RIGHT) -> None:
        if position not in (self.LEFT, self.RIGHT):
            raise ValueError(f"Unknown modifier position '{position}'.")
        self.width = width
        self.position = position
        self.note: Note | None = None
        self.index = 0


class Accidental(Modifier):
    """Sharp, flat or natural drawn to the left of a note head."""

    category = "accidentals"

    WIDTHS: Final[dict[str, float]] = {
        "#": 10.0,
        "##": 13.0,
        "b": 8.0,
        "bb": 14.0,
        "n": 8.0,
    }

    def __init__(self, accidental_type: str) -> None:
        if accidental_type not in self.WIDTHS:
            raise ValueError(f"Unknown accidental '{accidental_type}'.")
        super().__init__(self.WIDTHS[accidental_type], Modifier.LEFT)
        self.accidental_type = accidental_type
        self.glyph_name = f"accidental{accidental_type}"


class Dot(Modifier):
    """Augmentation dot drawn to the right of a note head."""

    category = "dots"
    glyph_name = "dot"

    def __init__(self) -> None:
        super().__init__(5.0, Modifier.RIGHT)


# ── Tickables ────────────────────────────────────────────────────────────────

class Tickable:
    """
    Base class for anything placed on the tick grid.

    Horizontal position is owned by the tick context the tickable belongs to;
    ``x_shift`` and ``center_x_shift`` are per-tickable offsets applied on top.
    """

    def __init__(self, ticks: Fraction) -> None:
        self.intrinsic_ticks = Fraction(ticks)
        self.tick_multiplier = Fraction(1)
        self.ticks = Fraction(ticks)
        self.ignore_ticks = False
        self.center_alignment = False
        self.x_shift = 0.0
        self.center_x_shift = 0.0
        self.width = 0.0
        self.voice: Voice | None = None
        self.stave: Stave | None = None
        self.tick_context: TickContext | None = None
        self.modifier_context: ModifierContext | None = None
        self.modifiers: list[Modifier] = []
        self.tuplet: Any = None
        self.beam: Beam | None = None
        self.render_context: RenderContext | None = None
        self.preformatted = False
        self.postformatted = False

    def is_rest(self) -> bool:
        return False

    def should_ignore_ticks(self) -> bool:
        return self.ignore_ticks

    def apply_tick_multiplier(self, numerator: int, denominator: int) -> None:
        """Scale this tickable's duration, e.g. by 2/3 for a triplet member."""
        self.tick_multiplier *= Fraction(numerator, denominator)
        self.ticks = self.intrinsic_ticks * self.tick_multiplier

    def set_context(self, context: RenderContext) -> None:
        self.render_context = context

    def set_stave(self, stave: Stave) -> None:
        self.stave = stave

    def set_tick_context(self, context: TickContext) -> None:
        self.tick_context = context
        self.preformatted = False

    def add_to_modifier_context(self, context: ModifierContext) -> None:
        self.modifier_context = context
        context.add_member(self)
        self.preformatted = False

    def get_metrics(self) -> TickableMetrics:
        return TickableMetrics(width=self.width, note_width=self.width)

    def pre_format(self) -> None:
        self.preformatted = True

    def post_format(self) -> None:
        self.postformatted = True

    def get_x(self) -> float:
        """x relative to the start of the note area, including ``x_shift``."""
        if self.tick_context is None:
            raise NoTickContextError("Tickable has no tick context; format its voice first.")
        return self.tick_context.x + self.x_shift

    def get_absolute_x(self) -> float:
        """Final x in rendering coordinates."""
        x = self.get_x() + self.center_x_shift
        if self.stave is not None:
            x += self.stave.note_start_x
        return x

    def get_bounding_box(self) -> BoundingBox | None:
        return None

    def draw(self, context: RenderContext) -> None:
        """Record the glyphs of this tickable on ``context``."""


class Note(Tickable):
    """
    A note, chord or rest drawn on a stave.

    Args:
        keys:        Keys such as ``["c/4", "e/4"]``; a rest uses its key as glyph position.
        duration:    Duration code (``w h q 8 16 32 64``), ``r`` suffix for rests.
        clef:        Clef used to convert keys to stave lines.
        dots:        Number of augmentation dots.
        glyph_width: Width override for the note head or rest glyph.
        stem_direction: 1 for up, -1 for down; chosen from the key lines when omitted.
    """

    def __init__(
        self,
        keys: Sequence[str],
        duration: str,
        *,
        clef: str = "treble",
        dots: int = 0,
        glyph_width: float | None = None,
        stem_direction: int | None = None,
    ) -> None:
        if not keys:
            raise BadDurationError("A note needs at least one key.")
        base, rest = parse_duration(duration)
        super().__init__(duration_to_ticks(base, dots))

        self.keys = list(keys)
        self.duration = base
        self.rest = rest
        self.dots = dots
        self.clef = clef
        self.glyph_width = glyph_width if glyph_width is not None else self._default_glyph_width()
        self.key_props = sorted(
            (KeyProps(key=key, line=key_line(key, clef)) for key in self.keys),
            key=lambda props: props.line,
        )
        self.ys: list[float] = []
        self.stem_direction = stem_direction if stem_direction is not None else self._auto_stem()
        self.left_displaced_head_px = 0.0
        self.right_displaced_head_px = 0.0
        self._mark_displaced_heads()

        for _ in range(dots):
            self.add_modifier(Dot())

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _default_glyph_width(self) -> float:
        table = REST_WIDTHS if self.rest else NOTEHEAD_WIDTHS
        return table[self.duration]

    def _auto_stem(self) -> int:
        if self.rest:
            return 1
        lines = [props.line for props in self.key_props]
        return -1 if sum(lines) / len(lines) >= 3 else 1

    def _mark_displaced_heads(self) -> None:
        """Displace the second head of any interval of a second in a chord."""
        if self.rest:
            return
        previous_line: float | None = None
        displaced = False
        for props in self.key_props:
            if previous_line is not None and props.line - previous_line == 0.5:
                displaced = not displaced
            else:
                displaced = False
            props.displaced = displaced
            if displaced:
                if self.stem_direction == 1:
                    self.right_displaced_head_px = self.glyph_width
                else:
                    self.left_displaced_head_px = self.glyph_width
            previous_line = props.line

    def _compute_ys(self) -> None:
        if self.stave is None:
            self.ys = []
            return
        self.ys = [self.stave.get_y_for_note(props.line) for props in self.key_props]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def is_rest(self) -> bool:
        return self.rest

    @property
    def glyph_position(self) -> str:
        """Key at which the glyph is drawn; meaningful for rests."""
        return self.keys[0]

    def get_line_for_rest(self) -> float:
        """Line a neighbouring rest should sit on to line up with this note."""
        rest_line = self.key_props[0].line
        if len(self.key_props) > 1:
            last_line = self.key_props[-1].line
            top = max(rest_line, last_line)
            bottom = min(rest_line, last_line)
            rest_line = mid_line(top, bottom)
        return rest_line

    def get_key_line(self, index: int) -> float:
        return self.key_props[index].line

    def set_key_line(self, index: int, line: float) -> None:
        self.key_props[index].line = line
        self._compute_ys()

    def add_modifier(self, modifier: Modifier, index: int = 0) -> Note:
        modifier.note = self
        modifier.index = index
        self.modifiers.append(modifier)
        self.preformatted = False
        return self

    def add_accidental(self, index: int, accidental: Accidental) -> Note:
        return self.add_modifier(accidental, index)

    def add_to_modifier_context(self, context: ModifierContext) -> None:
        super().add_to_modifier_context(context)
        for modifier in self.modifiers:
            context.add_member(modifier)

    def set_stave(self, stave: Stave) -> None:
        super().set_stave(stave)
        self._compute_ys()

    def get_metrics(self) -> TickableMetrics:
        mod_left = 0.0
        mod_right = 0.0
        if self.modifier_context is not None:
            mod_left = self.modifier_context.left_shift
            mod_right = self.modifier_context.right_shift
        return TickableMetrics(
            width=self.width,
            note_width=self.glyph_width,
            mod_left_px=mod_left,
            mod_right_px=mod_right,
            extra_left_px=self.left_displaced_head_px,
            extra_right_px=self.right_displaced_head_px,
        )

    def pre_format(self) -> None:
        if self.preformatted:
            return
        width = self.glyph_width + self.left_displaced_head_px + self.right_displaced_head_px
        if self.modifier_context is not None:
            self.modifier_context.pre_format()
            width += self.modifier_context.width
        self.width = width
        self.preformatted = True

    def get_bounding_box(self) -> BoundingBox | None:
        if not self.ys or self.tick_context is None:
            return None
        metrics = self.get_metrics()
        top = min(self.ys)
        bottom = max(self.ys)
        return BoundingBox(
            self.get_absolute_x() - metrics.mod_left_px - metrics.extra_left_px,
            top,
            self.width,
            bottom - top,
        )

    def draw(self, context: RenderContext) -> None:
        if not self.ys:
            self._compute_ys()
        x = self.get_absolute_x()
        glyph = f"rest{self.duration}" if self.rest else f"notehead{self.duration}"
        for props, y in zip(self.key_props, self.ys):
            head_x = x
            if props.displaced:
                head_x += self.glyph_width * self.stem_direction
            context.draw_glyph(glyph, head_x, y)
        for modifier in self.modifiers:
            y = self.ys[modifier.index] if modifier.index < len(self.ys) else 0.0
            if modifier.position == Modifier.LEFT:
                context.draw_glyph(modifier.glyph_name, x - modifier.width, y)
            else:
                context.draw_glyph(modifier.glyph_name, x + self.glyph_width, y)


class BarNote(Tickable):
    """A bar line placed among notes; takes space but no time."""

    def __init__(self, width: float = BARNOTE_WIDTH) -> None:
        super().__init__(Fraction(0))
        self.ignore_ticks = True
        self.width = width

    def get_metrics(self) -> TickableMetrics:
        return TickableMetrics(width=self.width, note_width=self.width)

    def draw(self, context: RenderContext) -> None:
        if self.stave is None:
            return
        x = self.get_absolute_x()
        context.draw_line(x, self.stave.top_line_y, x, self.stave.bottom_line_y)


class Tuplet:
    """
    Groups ``notes`` so that ``num_notes`` of them occupy the time of ``notes_occupied``.

    The tick multiplier is applied on construction, so the tuplet must be built
    before its notes are added to a voice.
    """

    def __init__(
        self,
        notes: Sequence[Tickable],
        num_notes: int | None = None,
        notes_occupied: int = 2,
    ) -> None:
        if not notes:
            raise ValueError("A tuplet needs at least one note.")
        self.notes = list(notes)
        self.num_notes = num_notes if num_notes is not None else len(self.notes)
        self.notes_occupied = notes_occupied
        for note in self.notes:
            note.apply_tick_multiplier(self.notes_occupied, self.num_notes)
            note.tuplet = self
