"""Unit tests for tick grid construction."""

from types import SimpleNamespace

import pytest

from tickspacer.contexts import ModifierContext, TickContext
from tickspacer.errors import BadArgumentError, IncompleteVoiceError, TickMismatchError
from tickspacer.grid import create_contexts, resolution_multiplier
from tickspacer.tickables import Note, Tuplet
from tickspacer.voice import Voice, VoiceMode


def _voice(*codes: str, beats: int = 4, mode: VoiceMode = VoiceMode.STRICT) -> Voice:
    return Voice(beats, 4, mode=mode).add_tickables(Note(["b/4"], code) for code in codes)


def _tick_grid(voices: list[Voice]):
    return create_contexts(voices, TickContext, lambda tickable, context: context.add_tickable(tickable))


def test_offsets_merge_voices_on_shared_ticks() -> None:
    grid = _tick_grid([_voice("h", "h"), _voice("q", "q", "q", "q")])
    assert grid.offsets == [0, 4096, 8192, 12288]
    assert grid.resolution_multiplier == 1
    assert len(grid[0].tickables) == 2
    assert len(grid[4096].tickables) == 1
    assert len(grid[8192].tickables) == 2


def test_offsets_are_strictly_ascending_and_unique() -> None:
    grid = _tick_grid([_voice("q", "h", "q"), _voice("8", "8", "q", "h"), _voice("w")])
    assert grid.offsets == sorted(set(grid.offsets))
    assert len(grid.offsets) == len(grid.contexts)


def test_contexts_kept_in_creation_order() -> None:
    grid = _tick_grid([_voice("h", "h"), _voice("q", "q", "q", "q")])
    # The first voice creates 0 and 8192, the second adds 4096 and 12288.
    assert grid.contexts == [grid[0], grid[8192], grid[4096], grid[12288]]
    assert [offset for offset, _ in grid.items()] == [0, 4096, 8192, 12288]


def test_triplets_scale_offsets_by_shared_multiplier() -> None:
    triplets = [Note(["b/4"], "8") for _ in range(3)]
    Tuplet(triplets)
    mixed = Voice(4, 4).add_tickables(triplets + [Note(["b/4"], "q"), Note(["b/4"], "h")])
    plain = _voice("q", "q", "q", "q")

    grid = _tick_grid([plain, mixed])

    assert mixed.resolution_multiplier == 3
    assert grid.resolution_multiplier == 3
    assert grid.offsets == [0, 4096, 8192, 12288, 24576, 36864]
    assert len(grid[12288].tickables) == 2


def test_resolution_multiplier_is_lcm() -> None:
    voices = [SimpleNamespace(resolution_multiplier=m) for m in (2, 3, 4)]
    assert resolution_multiplier(voices) == 12  # type: ignore[arg-type]


def test_resolution_multiplier_unchanged_by_dividing_factor() -> None:
    base = [SimpleNamespace(resolution_multiplier=m) for m in (3, 12)]
    scaled = [SimpleNamespace(resolution_multiplier=m) for m in (6, 12)]
    assert resolution_multiplier(base) == resolution_multiplier(scaled)  # type: ignore[arg-type]


def test_empty_voice_list_is_bad_argument() -> None:
    with pytest.raises(BadArgumentError):
        _tick_grid([])


def test_mismatched_durations_raise() -> None:
    with pytest.raises(TickMismatchError):
        _tick_grid([_voice("q", "q", "q", "q"), _voice("q", "q", "q", beats=3)])


def test_incomplete_strict_voice_raises() -> None:
    with pytest.raises(IncompleteVoiceError):
        _tick_grid([_voice("q", "q")])


def test_incomplete_soft_voice_is_accepted() -> None:
    grid = _tick_grid([_voice("q", "q", mode=VoiceMode.SOFT)])
    assert grid.offsets == [0, 4096]


def test_modifier_contexts_use_same_builder() -> None:
    voice = _voice("q", "q", "q", "q")
    grid = create_contexts([voice], ModifierContext, lambda tickable, context: tickable.add_to_modifier_context(context))
    assert grid.offsets == [0, 4096, 8192, 12288]
    assert all(isinstance(context, ModifierContext) for context in grid.contexts)
    assert voice.tickables[2].modifier_context is grid[8192]


def test_each_call_builds_a_fresh_grid() -> None:
    voices = [_voice("h", "h")]
    first = _tick_grid(voices)
    second = _tick_grid(voices)
    assert first is not second
    assert first[0] is not second[0]
