"""Voice: an ordered run of tickables with a declared total duration."""

from __future__ import annotations

import math
from enum import Enum
from fractions import Fraction
from typing import TYPE_CHECKING, Iterable

from tickspacer.errors import TooManyTicksError
from tickspacer.tables import RESOLUTION
from tickspacer.tickables import BoundingBox, Tickable

if TYPE_CHECKING:
    from tickspacer.rendering import RenderContext
    from tickspacer.stave import Stave


class VoiceMode(Enum):
    """
    How strictly a voice must fill its declared duration.

    STRICT: must be filled exactly and may not overflow.
    SOFT:   no constraint.
    FULL:   may not overflow but need not be complete.
    """

    STRICT = "strict"
    SOFT = "soft"
    FULL = "full"


class Voice:
    """
    An ordered sequence of tickables spanning ``num_beats`` beats of ``beat_value``.

    The resolution multiplier is the least common multiple of the denominators
    of every added tickable's ticks; multiplying any tick offset in this voice
    by it yields an integer.
    """

    def __init__(
        self,
        num_beats: int | Fraction = 4,
        beat_value: int = 4,
        *,
        resolution: int = RESOLUTION,
        mode: VoiceMode = VoiceMode.STRICT,
    ) -> None:
        self.num_beats = num_beats
        self.beat_value = beat_value
        self.total_ticks = Fraction(num_beats) * Fraction(resolution, beat_value)
        self.ticks_used = Fraction(0)
        self.smallest_tick_count = self.total_ticks
        self.resolution_multiplier = 1
        self.mode = mode
        self.tickables: list[Tickable] = []
        self.stave: Stave | None = None
        self.preformatted = False

    def set_mode(self, mode: VoiceMode) -> Voice:
        self.mode = mode
        return self

    def is_complete(self) -> bool:
        if self.mode in (VoiceMode.STRICT, VoiceMode.FULL):
            return self.ticks_used == self.total_ticks
        return True

    def add_tickable(self, tickable: Tickable) -> Voice:
        """
        Append a tickable, updating ticks used and the resolution multiplier.

        Raises:
            TooManyTicksError: If a strict or full voice would overflow.
        """
        if not tickable.should_ignore_ticks():
            ticks = tickable.ticks
            if self.mode in (VoiceMode.STRICT, VoiceMode.FULL) and self.ticks_used + ticks > self.total_ticks:
                raise TooManyTicksError("Too many ticks for this voice.")
            self.ticks_used += ticks
            if ticks < self.smallest_tick_count:
                self.smallest_tick_count = ticks
            self.resolution_multiplier = math.lcm(self.resolution_multiplier, ticks.denominator)

        self.tickables.append(tickable)
        tickable.voice = self
        return self

    def add_tickables(self, tickables: Iterable[Tickable]) -> Voice:
        for tickable in tickables:
            self.add_tickable(tickable)
        return self

    def set_stave(self, stave: Stave) -> Voice:
        self.stave = stave
        self.preformatted = False
        return self

    def pre_format(self) -> None:
        """Bind unplaced tickables to this voice's stave so their y values exist."""
        if self.preformatted:
            return
        if self.stave is not None:
            for tickable in self.tickables:
                if tickable.stave is None:
                    tickable.set_stave(self.stave)
        self.preformatted = True

    def get_bounding_box(self) -> BoundingBox | None:
        box: BoundingBox | None = None
        for tickable in self.tickables:
            tickable_box = tickable.get_bounding_box()
            if tickable_box is None:
                continue
            box = tickable_box if box is None else box.merge(tickable_box)
        return box

    def draw(self, context: RenderContext, stave: Stave | None = None) -> None:
        target = stave if stave is not None else self.stave
        for tickable in self.tickables:
            if target is not None and tickable.stave is None:
                tickable.set_stave(target)
            tickable.draw(context)
