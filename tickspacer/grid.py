"""Tick grid construction shared by tick and modifier contexts."""

from __future__ import annotations

import bisect
import logging
import math
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Callable, Generic, Iterator, Sequence, TypeVar

from tickspacer.contexts import AlignmentContext
from tickspacer.errors import BadArgumentError, IncompleteVoiceError, TickMismatchError
from tickspacer.tickables import Tickable
from tickspacer.voice import Voice, VoiceMode

logger = logging.getLogger(__name__)

C = TypeVar("C", bound=AlignmentContext)


@dataclass
class TickGrid(Generic[C]):
    """
    Contexts keyed by integer tick offset.

    Attributes:
        map:                   Offset → context.
        offsets:               Distinct offsets in ascending order.
        contexts:              Contexts in creation order.
        resolution_multiplier: Scale that turns every voice's ticks into integers.
    """

    map: dict[int, C] = field(default_factory=dict)
    offsets: list[int] = field(default_factory=list)
    contexts: list[C] = field(default_factory=list)
    resolution_multiplier: int = 1

    def __getitem__(self, offset: int) -> C:
        return self.map[offset]

    def __len__(self) -> int:
        return len(self.offsets)

    def items(self) -> Iterator[tuple[int, C]]:
        """Yield (offset, context) pairs in ascending offset order."""
        for offset in self.offsets:
            yield offset, self.map[offset]

    def add(self, offset: int, factory: Callable[[], C]) -> C:
        """Return the context at ``offset``, creating and indexing it when new."""
        context = self.map.get(offset)
        if context is None:
            context = factory()
            self.contexts.append(context)
            self.map[offset] = context
            bisect.insort(self.offsets, offset)
        return context


def resolution_multiplier(voices: Sequence[Voice]) -> int:
    """Least common multiple of every voice's resolution multiplier."""
    return math.lcm(*(voice.resolution_multiplier for voice in voices))


def validate_voices(voices: Sequence[Voice]) -> None:
    """
    Check that ``voices`` can be formatted together.

    Raises:
        BadArgumentError:     If ``voices`` is empty.
        TickMismatchError:    If the voices differ in total ticks.
        IncompleteVoiceError: If a strict voice is not completely filled.
    """
    if not voices:
        raise BadArgumentError("No voices to format.")

    total_ticks = voices[0].total_ticks
    for voice in voices:
        if voice.total_ticks != total_ticks:
            raise TickMismatchError("Voices should have same total note duration in ticks.")
        if voice.mode == VoiceMode.STRICT and not voice.is_complete():
            raise IncompleteVoiceError("Voice does not have enough notes.")


def create_contexts(
    voices: Sequence[Voice],
    context_factory: Callable[[], C],
    add_fn: Callable[[Tickable, C], None],
) -> TickGrid[C]:
    """
    Place tickables that start at the same tick of any voice in one context.

    Args:
        voices:          Voices to merge; all must share one total duration.
        context_factory: Builds an empty context (``TickContext`` or ``ModifierContext``).
        add_fn:          Attaches a tickable to a context.

    Returns:
        The grid of contexts keyed by scaled integer tick offset.

    Raises:
        BadArgumentError, TickMismatchError, IncompleteVoiceError: See ``validate_voices``.
    """
    validate_voices(voices)

    grid: TickGrid[C] = TickGrid(resolution_multiplier=resolution_multiplier(voices))

    for voice in voices:
        ticks_used = Fraction(0)
        for tickable in voice.tickables:
            scaled = ticks_used * grid.resolution_multiplier
            # Every voice multiplier divides the shared one, so this is exact.
            integer_ticks = int(scaled)
            context = grid.add(integer_ticks, context_factory)
            add_fn(tickable, context)
            ticks_used += tickable.ticks

    logger.debug(
        "Built %d %s(s) for %d voice(s), resolution multiplier %d",
        len(grid),
        getattr(context_factory, "__name__", "context"),
        len(voices),
        grid.resolution_multiplier,
    )
    return grid
