"""MidiExporter: writes a compiled song to a Standard MIDI File."""

import logging
from fractions import Fraction

from midiutil import MIDIFile
from midiutil.MidiFile import FLATS, MAJOR, MINOR, SHARPS

from cabbage.config import CHANNEL_VOLUME, MAX_VOICES
from cabbage.errors import TooManyVoices
from cabbage.song import Song
from cabbage.timeline import TimelineSettings, VoiceTimeline, emit_song

logger = logging.getLogger(__name__)

# In midiutil Format 1 MIDI, track 0 is the conductor/tempo track.
# Voice n is written to track n + 1 on channel n.
TRACK_CONDUCTOR = 0
CC_VOLUME = 7
MAX_PITCH = 127


def _is_power_of_two(value: int) -> bool:
    return value > 0 and value & (value - 1) == 0


class MidiExporter:
    """
    Writes one MIDI track per voice.

    Track layout (Format 1)
    -----------------------
    Track 0 — conductor: tempo, the sequence name "<title> by <author>",
              and a time or key signature event at every offset where
              the meter or key changes.

    Track n — "Voice <n-1>": channel volume and program change at time 0,
              then one note per timeline event.

    Timing
    ------
    Timelines are in quarter notes, which is midiutil's beat unit, so onset
    delays and durations are written as-is.
    """

    def __init__(self, settings: TimelineSettings = TimelineSettings()) -> None:
        self.settings = settings

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _write_conductor(self, midi: MIDIFile, song: Song) -> None:
        midi.addTrackName(TRACK_CONDUCTOR, 0, f"{song.title} by {song.author}")
        midi.addTempo(TRACK_CONDUCTOR, 0, song.tempo)

        for offset, time_signature in song.meter_changes or [(Fraction(0), song.time_signature)]:
            if not _is_power_of_two(time_signature.denominator):
                logger.debug("Skipping time signature meta event for %s", time_signature)
                continue
            midi.addTimeSignature(
                TRACK_CONDUCTOR,
                float(offset),
                time_signature.numerator,
                time_signature.denominator.bit_length() - 1,
                24,
            )

        for offset, key in song.key_changes or [(Fraction(0), song.key)]:
            midi.addKeySignature(
                TRACK_CONDUCTOR,
                float(offset),
                key.sharps_or_flats,
                FLATS if key.accidental == "b" else SHARPS,
                MINOR if key.is_minor else MAJOR,
            )

    def _write_voice(self, midi: MIDIFile, channel: int, timeline: VoiceTimeline) -> None:
        track = channel + 1
        midi.addTrackName(track, 0, f"Voice {channel}")
        midi.addControllerEvent(track, channel, 0, CC_VOLUME, CHANNEL_VOLUME)
        midi.addProgramChange(track, channel, 0, timeline.instrument.program)

        cursor = Fraction(0)
        for note in timeline.events:
            if not 0 <= note.pitch <= MAX_PITCH:
                raise ValueError(
                    f"Voice {channel} ({timeline.instrument.name}) has pitch {note.pitch}, "
                    f"outside the MIDI range 0-{MAX_PITCH}."
                )
            cursor += note.onset_delay
            midi.addNote(
                track=track,
                channel=channel,
                pitch=note.pitch,
                time=float(cursor),
                duration=float(note.sound_duration),
                volume=note.velocity,
            )
            cursor += note.sound_duration

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self, song: Song) -> MIDIFile:
        """
        Render *song* into an in-memory MIDIFile.

        Raises:
            TooManyVoices: If the song has more voices than MIDI channels.
            ValueError:    If a note falls outside the MIDI pitch range.
        """
        if len(song.voices) > MAX_VOICES:
            raise TooManyVoices(len(song.voices), MAX_VOICES)

        timelines = emit_song(song, self.settings)
        midi = MIDIFile(numTracks=len(timelines) + 1, removeDuplicates=False, deinterleave=False)
        self._write_conductor(midi, song)
        for channel, timeline in enumerate(timelines):
            self._write_voice(midi, channel, timeline)
            logger.debug(
                "Voice %d (%s): %d note(s)", channel, timeline.instrument.name, len(timeline.events)
            )
        return midi

    def export(self, song: Song, output_path: str) -> None:
        """
        Write *song* to *output_path* as a Standard MIDI File.

        Raises:
            OSError: If the output file cannot be opened for writing.
        """
        midi = self.build(song)
        with open(output_path, "wb") as f:
            midi.writeFile(f)
        logger.debug("Wrote %s", output_path)
