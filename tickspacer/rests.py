"""Move default-positioned rests onto the lines of neighbouring notes."""

from __future__ import annotations

import logging
from typing import Sequence, cast

from tickspacer.tables import DEFAULT_REST_POSITIONS, mid_line
from tickspacer.tickables import Note, Tickable

logger = logging.getLogger(__name__)


def _is_pitched(tickable: Tickable) -> bool:
    return isinstance(tickable, Note) and not tickable.is_rest() and not tickable.should_ignore_ticks()


def look_ahead(notes: Sequence[Tickable], rest_line: float, index: int, compare: bool) -> float:
    """
    Return the rest line of the next pitched note after ``notes[index]``.

    When no pitched note follows, ``rest_line`` is returned. With ``compare``
    set and a next line different from ``rest_line``, the midpoint of the
    two lines is returned instead.
    """
    next_rest_line = rest_line
    for tickable in notes[index + 1:]:
        if _is_pitched(tickable):
            next_rest_line = cast(Note, tickable).get_line_for_rest()
            break

    if compare and rest_line != next_rest_line:
        top = max(rest_line, next_rest_line)
        bottom = min(rest_line, next_rest_line)
        next_rest_line = mid_line(top, bottom)
    return next_rest_line


def align_rests_to_notes(
    notes: Sequence[Tickable],
    align_all_notes: bool,
    align_tuplets: bool = False,
) -> None:
    """
    Position rests relative to the notes around them.

    Args:
        notes:           Tickables of one voice, in order.
        align_all_notes: Align every default rest; when False only beamed rests move.
        align_tuplets:   Also align rests that belong to a tuplet.
    """
    for index, note in enumerate(notes):
        if not isinstance(note, Note) or not note.is_rest():
            continue
        if note.tuplet is not None and not align_tuplets:
            continue
        # Rests placed explicitly away from the default position stay put.
        if note.glyph_position.upper() not in DEFAULT_REST_POSITIONS:
            continue
        if not (align_all_notes or note.beam is not None):
            continue

        props = note.key_props[0]
        previous = notes[index - 1] if index > 0 else None

        if previous is None or not (previous.is_rest() or _is_pitched(previous)):
            line = look_ahead(notes, props.line, index, False)
        elif previous.is_rest():
            line = cast(Note, previous).key_props[0].line
        else:
            line = look_ahead(notes, cast(Note, previous).get_line_for_rest(), index, True)

        if line != props.line:
            logger.debug("Moving rest %d from line %s to line %s", index, props.line, line)
        note.set_key_line(0, line)
