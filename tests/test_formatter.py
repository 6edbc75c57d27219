"""Unit tests for the Formatter: minimum widths and justification."""

import pytest

from tickspacer.errors import BadArgumentError, NoMinTotalWidthError, TickMismatchError
from tickspacer.formatter import Formatter, WidthState
from tickspacer.stave import Stave
from tickspacer.tickables import Accidental, BarNote, Note
from tickspacer.voice import Voice

QUARTER_CONTEXT_WIDTH = 16.5  # 10.5 note head + 2 * 3 padding
BAR_CONTEXT_WIDTH = 14.0  # 8 bar note + 2 * 3 padding


def _voice(*codes: str, key: str = "b/4", beats: int = 4) -> Voice:
    tickables = [BarNote() if code == "|" else Note([key], code) for code in codes]
    return Voice(beats, 4).add_tickables(tickables)


def _xs(formatter: Formatter) -> list[float]:
    assert formatter.tick_contexts is not None
    return [context.x for _, context in formatter.tick_contexts.items()]


# ---------------------------------------------------------------------------
# Minimum width
# ---------------------------------------------------------------------------

def test_min_total_width_not_ready_before_computation() -> None:
    with pytest.raises(NoMinTotalWidthError):
        _ = Formatter().min_total_width


def test_min_total_width_sums_context_widths() -> None:
    voice = _voice("q", "q", "q", "q")
    formatter = Formatter().join_voices([voice])

    total = formatter.pre_calculate_min_total_width([voice])

    assert total == pytest.approx(4 * QUARTER_CONTEXT_WIDTH)
    assert formatter.min_total_width == total
    assert formatter.tick_contexts is not None
    assert total == pytest.approx(sum(c.width for _, c in formatter.tick_contexts.items()))
    assert formatter.width_state is WidthState.BUILT


def test_min_total_width_is_cached() -> None:
    voice = _voice("q", "q", "q", "q")
    formatter = Formatter().join_voices([voice])
    first = formatter.pre_calculate_min_total_width([voice])
    grid = formatter.tick_contexts
    assert formatter.pre_calculate_min_total_width([voice]) == first
    assert formatter.tick_contexts is grid


def test_join_voices_marks_width_stale() -> None:
    voice = _voice("q", "q", "q", "q")
    formatter = Formatter().join_voices([voice])
    formatter.pre_calculate_min_total_width([voice])

    formatter.join_voices([voice])

    assert formatter.width_state is WidthState.STALE
    with pytest.raises(NoMinTotalWidthError):
        _ = formatter.min_total_width


def test_min_total_width_without_grid_or_voices_is_bad_argument() -> None:
    with pytest.raises(BadArgumentError):
        Formatter().pre_calculate_min_total_width()


# ---------------------------------------------------------------------------
# Justification
# ---------------------------------------------------------------------------

def test_zero_width_packs_contexts_at_minimum_width() -> None:
    voice = _voice("q", "q", "q", "q")
    formatter = Formatter().join_voices([voice]).format([voice], 0)

    xs = _xs(formatter)
    assert xs == pytest.approx([0.0, 16.5, 33.0, 49.5])
    assert formatter.pixels_per_tick == 0
    assert xs[-1] + QUARTER_CONTEXT_WIDTH == pytest.approx(formatter.min_total_width)


def test_justified_width_reaches_target_with_trailing_bar() -> None:
    voice = _voice("q", "q", "q", "q", "|")
    formatter = Formatter().join_voices([voice]).format([voice], 400)

    xs = _xs(formatter)
    assert xs == pytest.approx([0.0, 93.0, 186.0, 279.0, 386.0])
    assert xs == sorted(xs)
    assert xs[-1] + BAR_CONTEXT_WIDTH == pytest.approx(400)


def test_justified_width_never_overshoots_target() -> None:
    voice = _voice("q", "8", "8", "h")
    formatter = Formatter().join_voices([voice]).format([voice], 300)

    xs = _xs(formatter)
    assert xs == sorted(xs)
    assert formatter.tick_contexts is not None
    last = formatter.tick_contexts.contexts[-1]
    assert xs[-1] + last.width <= 300 + 1e-9


def test_ignore_tick_context_packs_after_previous_context() -> None:
    voice = _voice("q", "q", "q", "q", "|")
    formatter = Formatter().join_voices([voice]).format([voice], 0)

    xs = _xs(formatter)
    assert xs[-1] == pytest.approx(xs[-2] + QUARTER_CONTEXT_WIDTH + BAR_CONTEXT_WIDTH)


def test_ignore_tick_context_shrinks_pixels_per_tick() -> None:
    voice = _voice("q", "q", "q", "q", "|")
    formatter = Formatter().join_voices([voice]).format([voice], 400)
    assert formatter.pixels_per_tick == pytest.approx((400 - BAR_CONTEXT_WIDTH) / 16384)


def test_left_modifiers_push_context_right() -> None:
    notes = [Note(["b/4"], "q") for _ in range(4)]
    notes[1].add_accidental(0, Accidental("#"))
    voice = Voice(4, 4).add_tickables(notes)

    formatter = Formatter().join_voices([voice]).format([voice], 0)

    # Accidental (10) + spacing (2) are reserved before the second head.
    assert _xs(formatter)[:3] == pytest.approx([0.0, 28.5, 45.0])


def test_pre_format_is_repeatable() -> None:
    voice = _voice("q", "8", "8", "h", "|")
    formatter = Formatter().join_voices([voice])
    formatter.create_tick_contexts([voice])

    formatter.pre_format(350)
    first = _xs(formatter)
    formatter.pre_format(350)

    assert _xs(formatter) == first


def test_pre_format_without_grid_is_bad_argument() -> None:
    with pytest.raises(BadArgumentError):
        Formatter().pre_format(100)


def test_center_aligned_tickable_gets_center_shift() -> None:
    whole = Note(["b/4"], "w")
    whole.center_alignment = True
    voice = Voice(4, 4).add_tickable(whole)

    formatter = Formatter().join_voices([voice]).format([voice], 200)

    assert whole.center_x_shift == pytest.approx(100 - whole.tick_context.x)  # type: ignore[union-attr]


def test_format_rejects_empty_voice_list() -> None:
    with pytest.raises(BadArgumentError):
        Formatter().format([], 100)


def test_format_rejects_unequal_durations() -> None:
    with pytest.raises(TickMismatchError):
        Formatter().format([_voice("q", "q", "q", "q"), _voice("q", "q", "q", beats=3)], 100)


def test_voices_on_two_staves_align_by_tick() -> None:
    treble = _voice("h", "h")
    bass = _voice("q", "q", "q", "q", key="d/3")
    treble.set_stave(Stave(0, 0, 300))
    bass.set_stave(Stave(0, 120, 300, clef="bass"))

    formatter = Formatter().join_voices([treble]).join_voices([bass])
    formatter.format([treble, bass], 250)

    assert treble.tickables[0].get_x() == bass.tickables[0].get_x()
    assert treble.tickables[1].get_x() == bass.tickables[2].get_x()
    assert len(formatter.modifier_contexts) == 2


# ---------------------------------------------------------------------------
# Stave integration
# ---------------------------------------------------------------------------

def test_format_to_stave_uses_stave_width() -> None:
    stave = Stave(10, 0, 300)
    voice = _voice("q", "q", "q", "q", "|")

    formatter = Formatter().join_voices([voice]).format_to_stave([voice], stave)

    # Note area runs 15 → 305, less the 10 px stave padding.
    assert _xs(formatter)[-1] + BAR_CONTEXT_WIDTH == pytest.approx(280)
    assert voice.tickables[0].get_absolute_x() == pytest.approx(stave.note_start_x)


def test_post_format_only_runs_with_stave() -> None:
    voice = _voice("q", "q", "q", "q")
    Formatter().join_voices([voice]).format([voice], 200)
    assert not any(t.postformatted for t in voice.tickables)

    staved = _voice("q", "q", "q", "q")
    Formatter().join_voices([staved]).format([staved], 200, stave=Stave(0, 0, 250))
    assert all(t.postformatted for t in staved.tickables)
    assert all(t.stave is not None for t in staved.tickables)
