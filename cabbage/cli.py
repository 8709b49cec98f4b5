"""cabbage CLI entry point."""

import logging
import sys
from pathlib import Path

import click

from cabbage import __version__
from cabbage.errors import CompileError
from cabbage.midi_exporter import MidiExporter
from cabbage.song import Song
from cabbage.song_file import load_song
from cabbage.timeline import emit_song


def _load_or_exit(song_file: str) -> Song:
    try:
        return load_song(song_file)
    except CompileError as exc:
        click.echo(f"  ERROR: {exc}", err=True)
        sys.exit(1)
    except OSError as exc:
        click.echo(f"  ERROR: Could not read song file — {exc}", err=True)
        sys.exit(1)


def _format_quarters(value: float) -> str:
    return f"{value:g}"


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="cabbage")
@click.option("--verbose", "-v", is_flag=True, help="Log each compilation step.")
def main(verbose: bool) -> None:
    """cabbage — compile compact note notation into MIDI files."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")


# ── compile subcommand ─────────────────────────────────────────────────────────

@main.command(name="compile")
@click.argument("song_file", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Destination MIDI file path. Defaults to the song file with a .mid extension.",
)
def compile_song(song_file: str, output: str | None) -> None:
    """
    Compile a JSON song file into a MIDI file.

    \b
    Examples:
      cabbage compile salad.json
      cabbage compile salad.json -o build/salad.mid
    """
    resolved_output = output if output is not None else str(Path(song_file).with_suffix(".mid"))

    click.echo(f"cabbage v{__version__}")
    click.echo(f"  Song   : {song_file}")
    click.echo(f"  Output : {resolved_output}")
    click.echo()

    click.echo("[1/2] Compiling notation...")
    song = _load_or_exit(song_file)
    click.echo(
        f"      {song.title} by {song.author}  |  {song.measure_count} measure(s), "
        f"{len(song.voices)} voice(s), {song.time_signature} at {song.tempo} BPM"
    )

    click.echo(f"[2/2] Writing MIDI file → '{resolved_output}'...")
    try:
        MidiExporter().export(song, resolved_output)
    except CompileError as exc:
        click.echo(f"  ERROR: {exc}", err=True)
        sys.exit(1)
    except ValueError as exc:
        click.echo(f"  ERROR: Could not render song — {exc}", err=True)
        sys.exit(1)
    except OSError as exc:
        click.echo(f"  ERROR: Could not write MIDI file — {exc}", err=True)
        sys.exit(1)

    click.echo()
    click.echo(f"Written to {resolved_output}")


# ── timeline subcommand ────────────────────────────────────────────────────────

@main.command()
@click.argument("song_file", type=click.Path(exists=True, dir_okay=False, readable=True))
def timeline(song_file: str) -> None:
    """
    Print every voice's compiled note timeline.

    Each row shows the onset delay, the sounding duration (both in quarter
    notes), the MIDI pitch and the velocity.
    """
    song = _load_or_exit(song_file)

    for channel, voice_timeline in enumerate(emit_song(song)):
        click.echo(
            f"Voice {channel}: {voice_timeline.instrument.name} "
            f"({len(voice_timeline.events)} note(s))"
        )
        for note in voice_timeline.events:
            click.echo(
                f"  +{_format_quarters(float(note.onset_delay)):<6} "
                f"{_format_quarters(float(note.sound_duration)):<6} "
                f"pitch {note.pitch:<3}  vel {note.velocity}"
            )
        if voice_timeline.trailing_rest:
            click.echo(f"  +{_format_quarters(float(voice_timeline.trailing_rest))} (rest)")
