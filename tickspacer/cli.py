"""tickspacer CLI entry point."""

import logging
import sys

import click

from tickspacer import __version__
from tickspacer.errors import FormatterError
from tickspacer.formatter import Formatter
from tickspacer.tickables import BarNote, Note, Tickable
from tickspacer.voice import Voice, VoiceMode

DEFAULT_WIDTH = 400


def _parse_time(time_signature: str) -> tuple[int, int]:
    """Parse ``"3/4"`` into (3, 4)."""
    try:
        beats, beat_value = (int(part) for part in time_signature.split("/"))
    except ValueError:
        raise click.BadParameter(f"'{time_signature}' is not a time signature like 4/4.") from None
    if beats <= 0 or beat_value <= 0:
        raise click.BadParameter(f"'{time_signature}' is not a time signature like 4/4.")
    return beats, beat_value


def _parse_token(token: str) -> Tickable:
    """
    Convert one voice token into a tickable.

    ``q`` is a quarter note on b/4, ``8r`` an eighth rest, ``q.`` a dotted
    quarter, ``h@e/5`` a half note on e/5, ``|`` a bar line.
    """
    if token == "|":
        return BarNote()
    duration, _, key = token.partition("@")
    dots = len(duration) - len(duration.rstrip("."))
    duration = duration.rstrip(".")
    keys = key.split("+") if key else ["b/4"]
    return Note(keys, duration, dots=dots)


def _build_voice(spec: str, beats: int, beat_value: int, mode: VoiceMode) -> Voice:
    voice = Voice(beats, beat_value, mode=mode)
    for token in spec.split():
        voice.add_tickable(_parse_token(token))
    return voice


def _echo_layout(formatter: Formatter) -> None:
    grid = formatter.tick_contexts
    if grid is None:
        return
    click.echo(f"  {'tick':>8}  {'x':>8}  {'width':>7}")
    for offset, context in grid.items():
        flag = "  (no ticks)" if context.should_ignore_ticks() else ""
        click.echo(f"  {offset:>8}  {context.x:8.2f}  {context.width:7.2f}{flag}")
    click.echo()
    click.echo(f"  Minimum width : {formatter.min_total_width:.2f} px")


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="tickspacer")
@click.option("--verbose", "-v", is_flag=True, help="Log formatter decisions to stderr.")
def main(verbose: bool) -> None:
    """tickspacer: align voices on a shared tick grid and justify them to a width."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")


# ── layout subcommand ──────────────────────────────────────────────────────────

@main.command()
@click.option(
    "--voice",
    "voice_specs",
    multiple=True,
    required=True,
    metavar="TOKENS",
    help="Space separated notes of one voice, e.g. \"q q 8 8 qr\". Repeat for more voices.",
)
@click.option(
    "--width",
    type=click.FloatRange(min=0),
    default=DEFAULT_WIDTH,
    show_default=True,
    help="Justification width in pixels. 0 keeps minimum widths.",
)
@click.option("--time", "time_signature", default="4/4", show_default=True, help="Time signature.")
@click.option("--align-rests", is_flag=True, help="Move rests next to neighbouring notes.")
@click.option("--soft", is_flag=True, help="Allow voices that do not fill the bar.")
def layout(
    voice_specs: tuple[str, ...],
    width: float,
    time_signature: str,
    align_rests: bool,
    soft: bool,
) -> None:
    """
    Format voices written as duration tokens and print each tick's x position.

    \b
    Examples:
      tickspacer layout --voice "q q h"
      tickspacer layout --voice "h h" --voice "q q q q" --width 300
      tickspacer layout --voice "8 8 8r 8@c/5 h | " --time 4/4 --align-rests
    """
    beats, beat_value = _parse_time(time_signature)
    mode = VoiceMode.SOFT if soft else VoiceMode.STRICT

    click.echo(f"tickspacer v{__version__}")
    click.echo(f"  Voices : {len(voice_specs)}  |  Width: {width:g} px  |  Time: {time_signature}")
    click.echo()

    try:
        voices = [_build_voice(spec, beats, beat_value, mode) for spec in voice_specs]
        formatter = Formatter().join_voices(voices)
        formatter.format(voices, width, align_rests=align_rests)
    except FormatterError as exc:
        click.echo(f"  ERROR: {exc}", err=True)
        sys.exit(1)

    _echo_layout(formatter)


# ── score subcommand ───────────────────────────────────────────────────────────

@main.command()
@click.argument("score_file", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option("--measure", type=click.IntRange(min=0), default=1, show_default=True, help="Measure number.")
@click.option(
    "--width",
    type=click.FloatRange(min=0),
    default=DEFAULT_WIDTH,
    show_default=True,
    help="Justification width in pixels.",
)
def score(score_file: str, measure: int, width: float) -> None:
    """
    Lay out one measure of a MusicXML or MIDI file, aligning every part.

    SCORE_FILE is any file music21 can parse.
    """
    from tickspacer.score_import import voices_from_score

    click.echo(f"tickspacer v{__version__}")
    click.echo(f"  Score   : {score_file}")
    click.echo(f"  Measure : {measure}  |  Width: {width:g} px")
    click.echo()

    try:
        parts = voices_from_score(score_file, measure)
        formatter = Formatter()
        for part_voices in parts:
            formatter.join_voices(part_voices)
        voices = [voice for part_voices in parts for voice in part_voices]
        formatter.format(voices, width)
    except FormatterError as exc:
        click.echo(f"  ERROR: {exc}", err=True)
        sys.exit(1)

    _echo_layout(formatter)
