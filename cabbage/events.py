"""Events that make up a voice: notes, rests and whole-measure rests."""

from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from typing import Union

from cabbage.config import REFERENCE_OCTAVE, REFERENCE_PITCH, SEMITONES_PER_OCTAVE
from cabbage.durations import Duration, TimeSignature, measure_rest_length

# Diatonic letter → semitone within the octave
LETTER_SEMITONES: dict[str, int] = {"c": 0, "d": 2, "e": 4, "f": 5, "g": 7, "a": 9, "b": 11}

ACCIDENTAL_OFFSETS: dict[str, int] = {"": 0, "#": 1, "b": -1}


class Articulation(Enum):
    LEGATO = "legato"
    STACCATO = "staccato"


@dataclass(frozen=True)
class PitchMapping:
    """Where the notation's octave numbers land on the MIDI note scale."""

    reference_pitch: int = REFERENCE_PITCH
    reference_octave: int = REFERENCE_OCTAVE


@dataclass(frozen=True)
class Note:
    """
    A pitched note.

    Attributes:
        duration:     Notated duration.
        letter:       Pitch letter, "a" to "g".
        accidental:   "#", "b" or "" after key signature resolution.
        octave:       Absolute octave, 4 being the reference octave.
        accented:     Played louder.
        articulation: Legato or staccato.
    """

    duration: Duration
    letter: str
    accidental: str
    octave: int
    accented: bool = False
    articulation: Articulation = Articulation.LEGATO

    @property
    def length(self) -> Fraction:
        return self.duration.length

    @property
    def is_staccato(self) -> bool:
        return self.articulation is Articulation.STACCATO

    def spelled(self) -> tuple[int, int]:
        """
        Return (semitone, octave) with accidental overflow carried.

        C flat in octave 4 becomes (11, 3) and B sharp in octave 4 becomes (0, 5).
        """
        semitone = LETTER_SEMITONES[self.letter] + ACCIDENTAL_OFFSETS[self.accidental]
        octave = self.octave
        if semitone >= SEMITONES_PER_OCTAVE:
            semitone -= SEMITONES_PER_OCTAVE
            octave += 1
        elif semitone < 0:
            semitone += SEMITONES_PER_OCTAVE
            octave -= 1
        return semitone, octave

    def pitch(self, mapping: PitchMapping = PitchMapping()) -> int:
        """MIDI note number of this note."""
        semitone, octave = self.spelled()
        return (
            mapping.reference_pitch
            + (octave - mapping.reference_octave) * SEMITONES_PER_OCTAVE
            + semitone
        )

    def __str__(self) -> str:
        accent = ">" if self.accented else ""
        return f"{self.duration}:{self.letter}{self.accidental}{self.octave}{accent}{self.articulation.value}"


@dataclass(frozen=True)
class Rest:
    duration: Duration

    @property
    def length(self) -> Fraction:
        return self.duration.length

    def __str__(self) -> str:
        return f"{self.duration}:&"


@dataclass(frozen=True)
class MeasureRest:
    """Silence spanning whole measures of the time signature it was created under."""

    measures: int
    time_signature: TimeSignature

    @property
    def length(self) -> Fraction:
        return measure_rest_length(self.time_signature, self.measures)

    def __str__(self) -> str:
        return f"|{self.measures}|"


Event = Union[Note, Rest, MeasureRest]
