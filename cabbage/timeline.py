"""Timeline emitter: flattens a voice into timed, pitched note events."""

from dataclasses import dataclass, field
from fractions import Fraction

from cabbage.config import ACCENT_VELOCITY, NORMAL_VELOCITY, STACCATO_LENGTH
from cabbage.events import Note, PitchMapping
from cabbage.instruments import Instrument
from cabbage.song import Song, Voice


@dataclass(frozen=True)
class TimelineSettings:
    normal_velocity: int = NORMAL_VELOCITY
    accent_velocity: int = ACCENT_VELOCITY
    staccato_length: Fraction = STACCATO_LENGTH
    pitch_mapping: PitchMapping = PitchMapping()


@dataclass(frozen=True)
class TimedNote:
    """
    A sounding note, timed relative to the end of the previous one.

    Attributes:
        pitch:          MIDI note number.
        velocity:       MIDI note-on velocity.
        onset_delay:    Silence before the note starts, in quarter notes.
        sound_duration: How long the note sounds, in quarter notes.
    """

    pitch: int
    velocity: int
    onset_delay: Fraction
    sound_duration: Fraction


@dataclass
class VoiceTimeline:
    instrument: Instrument
    events: list[TimedNote] = field(default_factory=list)
    trailing_rest: Fraction = Fraction(0)

    @property
    def length(self) -> Fraction:
        return (
            sum((e.onset_delay + e.sound_duration for e in self.events), Fraction(0))
            + self.trailing_rest
        )


def emit_timeline(voice: Voice, settings: TimelineSettings = TimelineSettings()) -> VoiceTimeline:
    """
    Walk a voice once and emit one TimedNote per Note.

    Rests produce no event; their length is added to the next note's delay,
    so a run of rests becomes a single gap. A staccato note sounds for
    ``settings.staccato_length`` and the rest of its length also goes into
    the next delay, leaving later onsets where they would have been.
    """
    timeline = VoiceTimeline(instrument=voice.instrument)
    pending_rest = Fraction(0)

    for event in voice:
        length = event.length
        if not isinstance(event, Note):
            pending_rest += length
            continue

        sound = length
        if event.is_staccato and length > settings.staccato_length:
            sound = settings.staccato_length

        velocity = settings.accent_velocity if event.accented else settings.normal_velocity
        timeline.events.append(
            TimedNote(
                pitch=event.pitch(settings.pitch_mapping),
                velocity=velocity,
                onset_delay=pending_rest,
                sound_duration=sound,
            )
        )
        pending_rest = length - sound

    timeline.trailing_rest = pending_rest
    return timeline


def emit_song(song: Song, settings: TimelineSettings = TimelineSettings()) -> list[VoiceTimeline]:
    """Timelines for every voice of *song*, in voice-creation order."""
    return [emit_timeline(voice, settings) for voice in song.voices]
