"""Instruments and their General MIDI program numbers."""

from dataclasses import dataclass

import pretty_midi

from cabbage.errors import UnresolvableInstrumentProgram


def program_for(name: str) -> int:
    """
    Look up the General MIDI program (0-127) for an instrument name.

    Names follow the GM patch list, e.g. "Violin", "Acoustic Grand Piano",
    "String Ensemble 1".

    Raises:
        UnresolvableInstrumentProgram: If the name is not a GM patch name.
    """
    try:
        return int(pretty_midi.instrument_name_to_program(name))
    except ValueError:
        raise UnresolvableInstrumentProgram(name) from None


@dataclass(frozen=True)
class Instrument:
    """
    An instrument declared in a song.

    Attributes:
        symbol:  Short identifier used to address the instrument's lines.
        name:    GM patch name as declared.
        program: GM program number resolved from *name*.
    """

    symbol: str
    name: str
    program: int

    @classmethod
    def declare(cls, symbol: str, name: str) -> "Instrument":
        return cls(symbol=str(symbol), name=str(name), program=program_for(name))

    def __str__(self) -> str:
        return self.name
