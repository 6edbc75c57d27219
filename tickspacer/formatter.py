"""
Formatter: aligns voices on a shared tick grid and justifies them to a width.

Voices are broken up into a grid of rational tick offsets to which every
tickable is assigned. Minimum widths are then computed for each offset from
the widths of the notes and modifiers found there, which gives the smallest
amount of space each offset needs. Finally the leftover width is spread over
the offsets in proportion to elapsed ticks, fixing every tick context's x.
"""

from __future__ import annotations

import logging
from enum import Enum
from fractions import Fraction
from typing import TYPE_CHECKING, Sequence

from tickspacer.contexts import ModifierContext, TickContext
from tickspacer.errors import BadArgumentError, NoMinTotalWidthError
from tickspacer.grid import TickGrid, create_contexts
from tickspacer.rests import align_rests_to_notes
from tickspacer.tickables import Tickable
from tickspacer.voice import Voice

if TYPE_CHECKING:
    from tickspacer.rendering import RenderContext
    from tickspacer.stave import Stave

logger = logging.getLogger(__name__)


def _add_to_tick_context(tickable: Tickable, context: TickContext) -> None:
    context.add_tickable(tickable)


def _add_to_modifier_context(tickable: Tickable, context: ModifierContext) -> None:
    tickable.add_to_modifier_context(context)


class WidthState(Enum):
    """Whether the cached minimum total width matches the joined voices."""

    STALE = "stale"
    BUILT = "built"


class Formatter:
    """
    Positions the tickables of one or more voices horizontally.

    A formatter owns its tick and modifier grids and the cached minimum width;
    it mutates the tickables it formats but does not own them. Instances are
    not safe to share between threads.

    Typical use::

        Formatter().join_voices([treble]).join_voices([bass]).format([treble, bass], 400)
    """

    # Pixels kept free at the end of a stave by ``format_to_stave``.
    STAVE_PADDING = 10

    def __init__(self) -> None:
        self.width_state = WidthState.STALE
        self.pixels_per_tick = 0.0
        self.total_ticks = Fraction(0)
        self.tick_contexts: TickGrid[TickContext] | None = None
        self.modifier_contexts: list[TickGrid[ModifierContext]] = []
        self._min_total_width = 0.0

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _tick_units(self, grid: TickGrid[TickContext]) -> float:
        """Total duration expressed in scaled integer ticks."""
        return float(self.total_ticks * grid.resolution_multiplier)

    def _rate(self, width: float, units: float) -> float:
        return width / units if units else 0.0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def align_rests(self, voices: Sequence[Voice], align_all_notes: bool) -> None:
        """
        Align the rests of every voice to neighbouring notes.

        Raises:
            BadArgumentError: If ``voices`` is empty.
        """
        if not voices:
            raise BadArgumentError("No voices to format rests.")
        for voice in voices:
            align_rests_to_notes(voice.tickables, align_all_notes)

    def create_modifier_contexts(self, voices: Sequence[Voice]) -> TickGrid[ModifierContext]:
        contexts = create_contexts(voices, ModifierContext, _add_to_modifier_context)
        self.modifier_contexts.append(contexts)
        return contexts

    def create_tick_contexts(self, voices: Sequence[Voice]) -> TickGrid[TickContext]:
        """Build the tick grid and record the total ticks of the first voice."""
        contexts = create_contexts(voices, TickContext, _add_to_tick_context)
        for context in contexts.contexts:
            context.tick_contexts = contexts.contexts

        self.total_ticks = voices[0].ticks_used
        self.tick_contexts = contexts
        return contexts

    def pre_calculate_min_total_width(self, voices: Sequence[Voice] | None = None) -> float:
        """
        Compute (once) the minimum width needed to lay out ``voices``.

        Raises:
            BadArgumentError: If no tick grid exists yet and ``voices`` is missing.
        """
        if self.width_state is WidthState.BUILT:
            return self._min_total_width

        contexts = self.tick_contexts
        if contexts is None:
            if not voices:
                raise BadArgumentError("'voices' required to run pre_calculate_min_total_width.")
            contexts = self.create_tick_contexts(voices)

        total = 0.0
        for _, context in contexts.items():
            # Descends into tickables and modifier contexts to size them.
            context.pre_format()
            total += context.width

        self._min_total_width = total
        self.width_state = WidthState.BUILT
        return total

    @property
    def min_total_width(self) -> float:
        """
        Minimum width of the formatted voices.

        Raises:
            NoMinTotalWidthError: If neither ``pre_calculate_min_total_width`` nor
                ``pre_format`` has run since the voices were joined.
        """
        if self.width_state is not WidthState.BUILT:
            raise NoMinTotalWidthError(
                "Call 'pre_calculate_min_total_width' or 'pre_format' before reading 'min_total_width'."
            )
        return self._min_total_width

    def pre_format(
        self,
        justify_width: float = 0,
        rendering_context: RenderContext | None = None,
        voices: Sequence[Voice] | None = None,
        stave: Stave | None = None,
    ) -> None:
        """
        Justify the tick contexts to ``justify_width`` pixels and set their x values.

        Pass 1 gives every context at least its own width, keeps it clear of the
        previous context's modifiers and packs tick-less contexts (bar lines)
        directly after their predecessor. Pass 2 spreads the remaining width
        over the contexts in proportion to elapsed ticks.

        Args:
            justify_width:     Target width in pixels; 0 keeps minimum widths.
            rendering_context: Handed to each tick context before it is sized.
            voices:            When given with ``stave``, bound to the stave and
                               pre-formatted so y values exist first.
            stave:             Stave for ``voices``.

        Raises:
            BadArgumentError: If no tick grid has been created.
        """
        contexts = self.tick_contexts
        if contexts is None:
            raise BadArgumentError("Tick contexts have not been created; call 'create_tick_contexts' first.")

        if voices and stave is not None:
            for voice in voices:
                voice.set_stave(stave)
                voice.pre_format()

        units = self._tick_units(contexts)
        if not justify_width:
            justify_width = 0
            self.pixels_per_tick = 0.0
        else:
            self.pixels_per_tick = self._rate(justify_width, units)

        x = 0.0
        center_x = justify_width / 2
        white_space = 0.0  # space to the right of the previous context
        prev_tick = 0
        prev_width = 0.0
        last_metrics = None
        initial_justify_width = justify_width
        min_total_width = 0.0

        # Pass 1: give each context the width it asks for.
        for index, (tick, context) in enumerate(contexts.items()):
            if rendering_context is not None:
                context.set_context(rendering_context)
            context.pre_format()

            metrics = context.metrics
            width = context.width
            min_total_width += width
            min_x = 0.0

            tick_space = min((tick - prev_tick) * self.pixels_per_tick, width)
            set_x = x + tick_space

            # Keep clear of the previous context's right modifiers.
            if last_metrics is not None:
                min_x = x + prev_width - last_metrics.extra_left_px

            if context.should_ignore_ticks():
                set_x = min_x + width
                if justify_width:
                    # The tick-less context takes its room out of the justify width.
                    justify_width -= width
                    self.pixels_per_tick = self._rate(justify_width, units)
            else:
                set_x = max(set_x, min_x)

            left_px = metrics.extra_left_px
            if last_metrics is not None:
                white_space = (set_x - x) - (prev_width - last_metrics.extra_left_px)

            if index > 0 and white_space > 0:
                if white_space >= left_px:
                    left_px = 0
                else:
                    left_px -= white_space

            set_x += left_px
            context.x = set_x

            last_metrics = metrics
            prev_width = width
            prev_tick = tick
            x = set_x

        self._min_total_width = min_total_width
        self.width_state = WidthState.BUILT

        if justify_width > 0:
            # Pass 2: distribute the leftover width proportionally to ticks.
            remaining_x = initial_justify_width - (x + prev_width)
            leftover_pixels_per_tick = self._rate(remaining_x, units)
            accumulated_space = 0.0
            prev_tick = 0

            for tick, context in contexts.items():
                accumulated_space += (tick - prev_tick) * leftover_pixels_per_tick
                context.x = context.x + accumulated_space
                prev_tick = tick

                for tickable in context.get_center_aligned_tickables():
                    tickable.center_x_shift = center_x - context.x

        logger.debug(
            "Justified %d context(s) to %s px (min width %.2f, %.4f px/tick)",
            len(contexts),
            initial_justify_width,
            min_total_width,
            self.pixels_per_tick,
        )

    def post_format(self) -> Formatter:
        """Finish layout decisions that need both x and y of every tickable."""
        for grid in self.modifier_contexts:
            for _, context in grid.items():
                context.post_format()
        if self.tick_contexts is not None:
            for _, context in self.tick_contexts.items():
                context.post_format()
        return self

    def join_voices(self, voices: Sequence[Voice]) -> Formatter:
        """Declare that ``voices`` share one stave, so their modifiers are negotiated together."""
        self.create_modifier_contexts(voices)
        self.width_state = WidthState.STALE
        return self

    def format(
        self,
        voices: Sequence[Voice],
        justify_width: float,
        *,
        align_rests: bool = False,
        context: RenderContext | None = None,
        stave: Stave | None = None,
    ) -> Formatter:
        """
        Align rests, build the tick grid and justify ``voices`` to ``justify_width``.

        Post-formatting only runs when ``stave`` is given, since it needs y values.
        """
        self.align_rests(voices, align_rests)
        self.create_tick_contexts(voices)
        self.pre_format(justify_width, context, voices, stave)

        if stave is not None:
            self.post_format()
        return self

    def format_to_stave(
        self,
        voices: Sequence[Voice],
        stave: Stave,
        *,
        align_rests: bool = False,
        context: RenderContext | None = None,
    ) -> Formatter:
        """Like ``format`` with the width taken from the stave's note area."""
        justify_width = stave.note_end_x - stave.note_start_x - self.STAVE_PADDING
        logger.debug("Formatting voices to width: %s", justify_width)
        return self.format(
            voices,
            justify_width,
            align_rests=align_rests,
            context=context if context is not None else stave.context,
            stave=stave,
        )
